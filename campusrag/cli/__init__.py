"""Command-line tools for campusrag.

- ``python -m campusrag.cli.ingest`` -- ingest course fact sheets, FAQ rows
  and theses into the vector store, list collections, ask questions.
"""
