# parsers/events.py

"""Block/inline markdown events in document order.

markdown-it-py produces a nested token stream; the segmenter only needs a
flat sequence of a few event kinds, so the stream is translated here and
everything else is dropped.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from markdown_it import MarkdownIt
from markdown_it.token import Token

# Same line-ending rule markdown-it applies before parsing.
_NEWLINE_RE = re.compile(r"\r\n?|\n")

_TEXT_TOKENS = frozenset({"text", "text_special"})
_CODE_BLOCK_TOKENS = frozenset({"fence", "code_block"})


class EventKind(str, Enum):
    HEADING_START = "heading_start"
    HEADING_END = "heading_end"
    TEXT = "text"
    CODE = "code"
    CODE_BLOCK_START = "code_block_start"
    CODE_BLOCK_END = "code_block_end"
    SOFT_BREAK = "soft_break"
    HARD_BREAK = "hard_break"


@dataclass(frozen=True)
class MarkdownEvent:
    kind: EventKind
    offset: int
    text: str = ""
    level: int = 0


def iter_events(text: str, parser: MarkdownIt | None = None) -> Iterator[MarkdownEvent]:
    """Yield markdown events for ``text``.

    ``offset`` is the character index of the line where the enclosing block
    starts; inline events and closing events share the offset of their block.
    """
    md = parser or MarkdownIt("commonmark")
    line_starts = _line_starts(text)

    offset = 0
    for token in md.parse(text):
        if token.map:
            offset = _line_offset(token.map[0], line_starts, len(text))

        if token.type == "heading_open":
            yield MarkdownEvent(
                EventKind.HEADING_START, offset, level=_heading_level(token)
            )
        elif token.type == "heading_close":
            yield MarkdownEvent(
                EventKind.HEADING_END, offset, level=_heading_level(token)
            )
        elif token.type in _CODE_BLOCK_TOKENS:
            yield MarkdownEvent(EventKind.CODE_BLOCK_START, offset)
            if token.content:
                yield MarkdownEvent(EventKind.TEXT, offset, text=token.content)
            yield MarkdownEvent(EventKind.CODE_BLOCK_END, offset)
        elif token.type == "inline":
            yield from _inline_events(token.children or [], offset)


def _inline_events(children: list[Token], offset: int) -> Iterator[MarkdownEvent]:
    for child in children:
        if child.type in _TEXT_TOKENS:
            if child.content:
                yield MarkdownEvent(EventKind.TEXT, offset, text=child.content)
        elif child.type == "code_inline":
            yield MarkdownEvent(EventKind.CODE, offset, text=child.content)
        elif child.type == "softbreak":
            yield MarkdownEvent(EventKind.SOFT_BREAK, offset)
        elif child.type == "hardbreak":
            yield MarkdownEvent(EventKind.HARD_BREAK, offset)
        elif child.children:
            # images carry their alt text as children
            yield from _inline_events(child.children, offset)


def _line_starts(text: str) -> list[int]:
    starts = [0]
    starts.extend(match.end() for match in _NEWLINE_RE.finditer(text))
    return starts


def _line_offset(line: int, line_starts: list[int], text_len: int) -> int:
    if line >= len(line_starts):
        return text_len
    return line_starts[line]


def _heading_level(token: Token) -> int:
    # tag is "h1".."h6"
    return int(token.tag[1:])
