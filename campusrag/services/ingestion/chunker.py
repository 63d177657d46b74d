"""Text chunking with overlapping windows and separator-priority boundaries.

Splits a stripped fact sheet into windows of at most ``chunk_size``
characters (default 1000) that share up to ``overlap`` characters (default
200) with their predecessor.

The chunking strategy has two goals:

1. **Boundary-preserving** -- a window ends on the highest-priority
   separator that fits (paragraph break, then line break, then space) and
   only falls back to a hard character cut when none does.

2. **Lossless** -- windows are exact substrings of the input and every
   chunk record stores how many leading characters it shares with the
   previous one (``overlapChars``), so the chunks of one document can be
   stitched back into the original text.

Each document also yields one ``full`` record carrying the complete text,
for queries that ask for everything about a course.
"""

from __future__ import annotations

import structlog

from campusrag.models.records import CourseMetadata, RecordDraft, RecordType

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_SEPARATORS: tuple[str, ...] = ("\n\n", "\n", " ")


class TextChunker:
    """Splits text into overlapping windows on separator boundaries.

    Parameters
    ----------
    chunk_size:
        Maximum characters per window (default 1000).
    overlap:
        Maximum characters shared by consecutive windows (default 200).
        The next window starts ``overlap`` characters before the previous
        end, moved forward to the next word start.
    separators:
        Boundary strings in priority order.
    """

    def __init__(
        self,
        chunk_size: int = 1000,
        overlap: int = 200,
        separators: tuple[str, ...] = DEFAULT_SEPARATORS,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if overlap < 0 or overlap >= chunk_size:
            raise ValueError(
                f"overlap must be in [0, chunk_size), got overlap={overlap} chunk_size={chunk_size}"
            )
        self._chunk_size = chunk_size
        self._overlap = overlap
        self._separators = tuple(sep for sep in separators if sep)

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def split_spans(self, text: str) -> list[tuple[int, int]]:
        """Return ``(start, end)`` offsets of every window over *text*.

        Consecutive spans satisfy ``prev_start < start <= prev_end``, so the
        spans cover *text* without gaps.  Empty input returns ``[]``.
        """
        length = len(text)
        if length == 0:
            return []

        spans: list[tuple[int, int]] = []
        start = 0
        while length - start > self._chunk_size:
            end = self._find_break(text, start)
            spans.append((start, end))
            start = self._next_start(text, start, end)
        spans.append((start, length))
        return spans

    def split(self, text: str) -> list[str]:
        """Split *text* into ordered window strings."""
        return [text[start:end] for start, end in self.split_spans(text)]

    def build_course_records(
        self,
        text: str,
        metadata: CourseMetadata,
        document_id: str,
    ) -> tuple[RecordDraft, list[RecordDraft]]:
        """Build the ``full`` draft and the ordered ``chunk`` drafts for one document.

        Parameters
        ----------
        text:
            Normalized, boilerplate-stripped document text.
        metadata:
            Fields recovered by the metadata extractor; copied into every
            draft.
        document_id:
            Value of ``fullDocumentId`` linking the chunks to the document.

        Returns
        -------
        tuple[RecordDraft, list[RecordDraft]]
            The whole-document draft and the chunk drafts, in text order.

        Raises
        ------
        ValueError
            If *text* is empty.
        """
        spans = self.split_spans(text)
        if not spans:
            raise ValueError("cannot build records from empty text")

        full = RecordDraft(
            text=text,
            metadata=metadata.model_copy(
                update={"type": RecordType.FULL, "full_document_id": document_id}
            ).to_metadata(),
            label=f"{document_id}#full",
        )

        total = len(spans)
        chunks: list[RecordDraft] = []
        previous_end = 0
        for index, (start, end) in enumerate(spans):
            chunk_meta = metadata.model_copy(
                update={
                    "type": RecordType.CHUNK,
                    "chunk_index": index,
                    "total_chunks": total,
                    "full_document_id": document_id,
                    "overlap_chars": previous_end - start if index else 0,
                }
            )
            chunks.append(
                RecordDraft(
                    text=text[start:end],
                    metadata=chunk_meta.to_metadata(),
                    label=f"{document_id}#{index}",
                )
            )
            previous_end = end

        logger.debug(
            "chunking_complete",
            document_id=document_id,
            num_chunks=total,
            text_length=len(text),
        )
        return full, chunks

    # ------------------------------------------------------------------
    # Window boundaries
    # ------------------------------------------------------------------

    def _find_break(self, text: str, start: int) -> int:
        """Return the end offset of the window starting at *start*.

        The end must leave room for progress: it lies strictly beyond
        ``start + overlap`` so the following window starts after *start*.
        """
        limit = start + self._chunk_size
        floor = start + self._overlap
        for sep in self._separators:
            idx = text.rfind(sep, max(start, floor + 1 - len(sep)), limit)
            if idx != -1:
                return idx + len(sep)
        return limit

    def _next_start(self, text: str, start: int, end: int) -> int:
        """Return where the window after ``[start, end)`` begins."""
        if self._overlap == 0:
            return end
        candidate = max(end - self._overlap, start + 1)
        while candidate < end and not text[candidate - 1].isspace():
            candidate += 1
        return candidate


def reconstruct(chunks: list[str], overlaps: list[int]) -> str:
    """Stitch chunk texts back together, dropping each chunk's shared prefix."""
    return "".join(chunk[overlap:] for chunk, overlap in zip(chunks, overlaps))
