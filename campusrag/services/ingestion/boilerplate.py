"""Trailing boilerplate removal for course fact sheets.

Every fact sheet ends with a page of legal and administrative text
(examination regulations, disclaimers) that is identical across courses and
only adds noise to retrieval.  :func:`strip_trailing_page` drops it.

Two page signals are used, strongest first:

1. **Form feeds** -- the PDF processor joins pages with ``\\f``; with two
   or more pages the last one is dropped.
2. **Footer stamps** -- when the text arrives without page breaks, the
   per-page footer (``Page 2 / 4`` or ``Fact sheet version: 3.0 as of
   01/02/2024``) marks where each page ended; with two or more stamps the
   text is cut at the start of the last one.

The result is always a prefix of the input and a document with a single
detected page is returned unchanged.
"""

from __future__ import annotations

import re

import structlog

logger = structlog.get_logger(logger_name=__name__)

PAGE_BREAK = "\f"

_FOOTER_PATTERN = re.compile(
    r"Page \d+ / \d+|Fact sheet version: \d+\.\d+ as of \d+/\d+/\d{4}"
)


def strip_trailing_page(text: str) -> str:
    """Remove the last page of *text* when more than one page is detected.

    Args:
        text: Normalized document text, pages separated by form feeds.

    Returns:
        The text without its trailing page, or *text* unchanged.
    """
    if not text:
        return ""

    pages = text.split(PAGE_BREAK)
    if len(pages) >= 2:
        return PAGE_BREAK.join(pages[:-1])

    footers = list(_FOOTER_PATTERN.finditer(text))
    if len(footers) >= 2:
        cut = footers[-1].start()
        logger.debug("trailing_page_cut_at_footer", footers=len(footers), offset=cut)
        return text[:cut]

    return text
