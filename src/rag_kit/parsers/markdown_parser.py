# parsers/markdown_parser.py

import logging
from time import monotonic

from markdown_it import MarkdownIt

from rag_kit.observability import names
from rag_kit.observability.base import MetricsHook, NoOpMetricsHook

from .base import DocumentParser
from .events import EventKind, MarkdownEvent, iter_events
from .models import Section

logger = logging.getLogger(__name__)

CODE_FENCE = "```\n"


class MarkdownParser(DocumentParser):
    """
    Heading-aware markdown segmenter.

    - Splits at every heading, whatever its level
    - Tracks the heading path as a stack
    - Heading text is kept in the section content as well as in the path
    - Sections whose content is blank are dropped
    """

    def __init__(self, metrics_hook: MetricsHook = NoOpMetricsHook()) -> None:
        self._md = MarkdownIt("commonmark")
        self.metrics_hook = metrics_hook

    def segment(self, text: str) -> list[Section]:
        start = monotonic()
        state = _SegmentState()

        for event in iter_events(text, self._md):
            state.feed(event)

        sections = state.finish(len(text))

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.SEGMENTING_DURATION, elapsed_ms)
        self.metrics_hook.increment(names.SEGMENTING_SECTIONS_CREATED, len(sections))
        logger.debug("Segmented %d chars into %d sections", len(text), len(sections))
        return sections


class _SegmentState:
    def __init__(self) -> None:
        self.sections: list[Section] = []
        self.heading_path: list[str] = []
        self.level = 0
        self.start_offset = 0
        self.buffer: list[str] = []
        self.heading_title: list[str] | None = None
        self.heading_length = 0
        self.in_code_block = False

    def feed(self, event: MarkdownEvent) -> None:
        match event.kind:
            case EventKind.HEADING_START:
                self._close(event.offset)
                while len(self.heading_path) >= event.level:
                    self.heading_path.pop()
                self.level = event.level
                self.start_offset = event.offset
                self.heading_title = []
            case EventKind.HEADING_END:
                if self.heading_title is not None:
                    while len(self.heading_path) < self.level - 1:
                        self.heading_path.append("")
                    self.heading_path.append("".join(self.heading_title).strip())
                    self.heading_title = None
                    self.heading_length = sum(len(piece) for piece in self.buffer)
            case EventKind.TEXT:
                if self.heading_title is not None:
                    self.heading_title.append(event.text)
                self.buffer.append(event.text)
                self.buffer.append(" ")
            case EventKind.CODE:
                if self.heading_title is not None:
                    self.heading_title.append(event.text)
                self.buffer.append(f"`{event.text}` ")
            case EventKind.CODE_BLOCK_START:
                self.in_code_block = True
                self.buffer.append(CODE_FENCE)
            case EventKind.CODE_BLOCK_END:
                self.in_code_block = False
                self.buffer.append(CODE_FENCE)
            case EventKind.SOFT_BREAK | EventKind.HARD_BREAK:
                self.buffer.append("\n" if self.in_code_block else " ")

    def finish(self, text_len: int) -> list[Section]:
        # a heading cut off before its end event still names its section
        if self.heading_title is not None:
            self.feed(MarkdownEvent(EventKind.HEADING_END, text_len, level=self.level))
        self._close(text_len)
        return self.sections

    def _close(self, end_offset: int) -> None:
        content = "".join(self.buffer)
        heading_length = self.heading_length
        self.buffer = []
        self.heading_length = 0
        if not content.strip():
            return
        self.sections.append(
            Section(
                content=content,
                heading_path=list(self.heading_path),
                level=self.level,
                start_offset=self.start_offset,
                end_offset=end_offset,
                heading_length=heading_length,
            )
        )


def segment_markdown(text: str) -> list[Section]:
    """Segment ``text`` with a default :class:`MarkdownParser`."""
    return MarkdownParser().segment(text)
