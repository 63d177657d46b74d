"""Source processors turning raw files into ingestible text and entries.

- **CoursePdfProcessor** -- fact sheet PDFs via PyMuPDF, pages joined by form feeds.
- **FaqCsvProcessor** -- help-desk FAQ export via ``csv.DictReader``.
- **ThesisSheetProcessor** -- thesis registry workbook via openpyxl.
"""

from campusrag.services.ingestion.source_processors.course_pdf_processor import CoursePdfProcessor
from campusrag.services.ingestion.source_processors.faq_csv_processor import FaqCsvProcessor, FaqEntry
from campusrag.services.ingestion.source_processors.thesis_sheet_processor import (
    ThesisEntry,
    ThesisSheetProcessor,
)

__all__ = [
    "CoursePdfProcessor",
    "FaqCsvProcessor",
    "FaqEntry",
    "ThesisEntry",
    "ThesisSheetProcessor",
]
