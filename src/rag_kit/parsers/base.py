# parsers/base.py

from abc import ABC, abstractmethod

from .models import Section


class DocumentParser(ABC):
    @abstractmethod
    def segment(self, text: str) -> list[Section]:
        """
        Split a document into ordered sections.

        Requirements:
        - Deterministic output for same input
        - Offsets are document-global and non-decreasing
        - Malformed markup is tolerated, never fatal
        """
        raise NotImplementedError
