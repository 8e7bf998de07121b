"""Managed marker utilities for the generated index block."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

DEFAULT_KEY = "index"
APPEND_HEADING = "## Docs Index"


@dataclass
class SpliceResult:
    """New document text and whether the document had to be created."""

    text: str
    created: bool


class MarkerManager:
    """Applies docindex markers for idempotent block replacement."""

    BEGIN_FMT = "<!-- docindex:begin:{key} -->"
    END_FMT = "<!-- docindex:end:{key} -->"

    def __init__(self, key: str = DEFAULT_KEY) -> None:
        self.key = key
        self.begin = self.BEGIN_FMT.format(key=key)
        self.end = self.END_FMT.format(key=key)

    def wrap(self, body: str) -> str:
        """Wrap a block body with the begin/end sentinel lines."""
        return f"{self.begin}\n{body.rstrip()}\n{self.end}"

    def locate(self, document: str) -> Optional[Tuple[int, int]]:
        """Return the span strictly between a well-formed sentinel pair.

        The last begin sentinel that is followed by an end sentinel wins, so a
        block appended after stray or out-of-order markers is found again on the
        next run.
        """
        search_end = len(document)
        while True:
            begin_index = document.rfind(self.begin, 0, search_end)
            if begin_index == -1:
                return None
            body_start = begin_index + len(self.begin)
            end_index = document.find(self.end, body_start)
            if end_index != -1:
                return body_start, end_index
            search_end = begin_index

    def extract(self, document: str) -> Optional[str]:
        """Return the current block body without markers, or ``None``."""
        span = self.locate(document)
        if span is None:
            return None
        start, stop = span
        return document[start:stop].strip()

    def splice(
        self,
        document: Optional[str],
        body: str,
        *,
        header: str = "",
    ) -> SpliceResult:
        """Insert ``body`` between the markers of ``document``.

        ``None`` means the document does not exist: the result is ``header``
        followed by a fresh block. When a well-formed block exists only the text
        between its markers changes. Otherwise a new block is appended and every
        existing byte is kept as a prefix.
        """
        if document is None:
            return SpliceResult(text=f"{header}{self.wrap(body)}\n", created=True)

        span = self.locate(document)
        if span is not None:
            start, stop = span
            inner = f"\n{body.rstrip()}\n"
            return SpliceResult(text=document[:start] + inner + document[stop:], created=False)

        separator = "" if not document or document.endswith("\n") else "\n"
        if document.strip():
            separator += "\n"
        appended = f"{document}{separator}{APPEND_HEADING}\n\n{self.wrap(body)}\n"
        return SpliceResult(text=appended, created=False)


__all__ = ["APPEND_HEADING", "DEFAULT_KEY", "MarkerManager", "SpliceResult"]
