# parsers/models.py

from dataclasses import dataclass


@dataclass(frozen=True)
class Section:
    """A run of document text under one heading context.

    ``heading_path`` lists heading titles outer to inner and always has
    ``level`` entries; skipped heading levels are filled with ``""``.
    Offsets are character indices into the source document.
    ``heading_length`` is how many leading characters of ``content`` came
    from the heading itself.
    """

    content: str
    heading_path: list[str]
    level: int
    start_offset: int
    end_offset: int
    heading_length: int = 0

    @property
    def title(self) -> str:
        for heading in reversed(self.heading_path):
            if heading:
                return heading
        return ""

    @property
    def body(self) -> str:
        """Content without the leading heading text."""
        return self.content[self.heading_length :]

    @property
    def label(self) -> str:
        return " > ".join(h for h in self.heading_path if h)

    @property
    def span(self) -> tuple[int, int]:
        return (self.start_offset, self.end_offset)
