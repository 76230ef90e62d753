from .base import DocumentParser
from .events import EventKind, MarkdownEvent, iter_events
from .markdown_parser import MarkdownParser, segment_markdown
from .models import Section

__all__ = [
    "DocumentParser",
    "EventKind",
    "MarkdownEvent",
    "MarkdownParser",
    "Section",
    "iter_events",
    "segment_markdown",
]
