"""Text normalization utilities for extracted document text.

This module handles three small normalization concerns:

1. **Merged-word repair** -- PDF text extraction frequently drops the space
   between a word that ends one layout box and the word that starts the
   next one ("creditsThe").  :func:`normalize` re-inserts a space at every
   lowercase-to-uppercase boundary before any metadata pattern runs.

2. **Field cleaning** -- FAQ spreadsheet cells carry stray line breaks and
   runs of spaces; :func:`clean_text` collapses them.

3. **Name lists** -- Lecturer and supervisor cells hold comma-separated
   names; :func:`split_names` turns them into a clean list.
"""

import re

_CASE_BOUNDARY = re.compile(r"([a-z])([A-Z])")
_WHITESPACE_RUN = re.compile(r"\s+")


def normalize(raw: str) -> str:
    """Insert a space between a lowercase letter and a following uppercase letter.

    The transform is idempotent: once a boundary has been split, the
    uppercase letter is preceded by a space and never matches again.

    Args:
        raw: Text as returned by the PDF extractor.

    Returns:
        The repaired text.  ``None`` is treated as an empty string.
    """
    if not raw:
        return ""
    return _CASE_BOUNDARY.sub(r"\1 \2", raw)


def clean_text(text: str | None) -> str:
    """Strip and collapse every whitespace run (newlines included) to one space."""
    if not text:
        return ""
    return _WHITESPACE_RUN.sub(" ", str(text)).strip()


def split_names(raw: str | None) -> list[str]:
    """Split a comma-separated name list into trimmed, normalized names.

    Args:
        raw: e.g. ``"Meister Nicole, Schmidt Peter"``.

    Returns:
        Non-empty names in their original order.
    """
    if not raw:
        return []
    names = (normalize(part).strip() for part in raw.split(","))
    return [name for name in names if name]
