"""campusrag -- ingestion and retrieval over course fact sheets, FAQ entries and theses."""

__version__ = "0.1.0"
