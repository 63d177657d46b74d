"""Source processor for the thesis registry spreadsheet (XLSX).

The first worksheet lists one thesis per row: title, student, year,
supervisor.  Rows whose trailing cells are empty so that fewer than four
values remain are skipped.  A leading header row (``titleThesis`` /
``Title``) is recognised and ignored.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
from openpyxl import load_workbook
from pydantic import BaseModel, ConfigDict

from campusrag.models.records import RecordDraft, ThesisMetadata
from campusrag.utils.errors import SourceAccessError

logger = structlog.get_logger(logger_name=__name__)

_HEADER_LABELS = frozenset({"titlethesis", "title", "titel"})


class ThesisEntry(BaseModel):
    """One thesis registry row."""

    model_config = ConfigDict(frozen=True)

    title_thesis: str
    student: str
    year: str
    supervisor: str

    @property
    def text(self) -> str:
        return (
            f"Title: {self.title_thesis}\n"
            f"Student: {self.student}\n"
            f"Year: {self.year}\n"
            f"Supervisor: {self.supervisor}"
        )

    def to_draft(self, source: str) -> RecordDraft:
        metadata = ThesisMetadata(
            source=source,
            title_thesis=self.title_thesis,
            student=self.student,
            year=self.year,
            supervisor=self.supervisor,
        )
        return RecordDraft(text=self.text, metadata=metadata.to_metadata(), label=self.title_thesis[:40])


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


class ThesisSheetProcessor:
    """Reads the first worksheet of a thesis registry workbook."""

    def read(self, file_path: str | Path) -> list[ThesisEntry]:
        """Parse *file_path* into :class:`ThesisEntry` objects.

        Raises
        ------
        SourceAccessError
            If the workbook cannot be opened.
        """
        try:
            workbook = load_workbook(filename=str(file_path), read_only=True, data_only=True)
        except Exception as exc:
            raise SourceAccessError(
                message=f"Cannot open thesis workbook {file_path}: {exc}",
                provider_name="openpyxl",
            ) from exc

        entries: list[ThesisEntry] = []
        skipped = 0
        try:
            sheet = workbook.worksheets[0]
            for index, row in enumerate(sheet.iter_rows(values_only=True)):
                cells = [_cell_text(value) for value in row]
                while cells and not cells[-1]:
                    cells.pop()
                if index == 0 and cells and cells[0].lower() in _HEADER_LABELS:
                    continue
                if len(cells) < 4:
                    skipped += 1
                    continue
                entries.append(
                    ThesisEntry(
                        title_thesis=cells[0],
                        student=cells[1],
                        year=cells[2],
                        supervisor=cells[3],
                    )
                )
        finally:
            workbook.close()

        logger.info("thesis_sheet_read", file_path=str(file_path), entries=len(entries), skipped=skipped)
        return entries
