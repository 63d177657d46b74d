"""Source processor for course fact sheet PDFs.

Reads PDF files using PyMuPDF (fitz) and returns the text of all pages
joined with form feeds, so the boilerplate stripper can find the page
boundaries.  Metadata extraction, stripping and chunking happen later in
the ingestion service.
"""

from __future__ import annotations

from pathlib import Path

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from campusrag.services.ingestion.boilerplate import PAGE_BREAK
from campusrag.utils.errors import SourceAccessError

logger = structlog.get_logger(logger_name=__name__)


class CoursePdfProcessor:
    """Extracts raw page text from course fact sheet PDFs."""

    def read(self, file_path: str | Path) -> str:
        """Return the text of every page of *file_path*, separated by ``\\f``.

        Raises
        ------
        SourceAccessError
            If the file cannot be opened or parsed as a PDF.
        """
        try:
            doc = fitz.open(str(file_path))
        except Exception as exc:
            raise SourceAccessError(
                message=f"Cannot open PDF {file_path}: {exc}",
                provider_name="pymupdf",
            ) from exc

        try:
            pages = [page.get_text("text") for page in doc]
        except Exception as exc:
            raise SourceAccessError(
                message=f"Cannot extract text from {file_path}: {exc}",
                provider_name="pymupdf",
            ) from exc
        finally:
            doc.close()

        logger.debug("pdf_pages_extracted", file_path=str(file_path), pages=len(pages))
        if not any(text.strip() for text in pages):
            logger.warning("pdf_no_text_extracted", file_path=str(file_path))
        return PAGE_BREAK.join(pages)
