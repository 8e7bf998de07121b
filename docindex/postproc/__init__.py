"""Post-processing helpers for the host document."""

from .index_format import parse_index, render_index, render_index_body
from .markers import MarkerManager, SpliceResult

__all__ = [
    "MarkerManager",
    "SpliceResult",
    "parse_index",
    "render_index",
    "render_index_body",
]
