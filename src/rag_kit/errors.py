# src/rag_kit/errors.py

"""Exception types raised by rag-kit.

Configuration problems are plain ``ValueError``s raised before any work
starts. The types below cover failures that happen while working.
"""


class RagKitError(Exception):
    """Base class for rag-kit failures."""


class TokenizationError(RagKitError):
    """The tokenizer could not encode or decode a piece of text.

    Fatal for the document being chunked; other documents are unaffected.
    """


class EmbeddingMismatchError(RagKitError):
    """An embeddings provider returned the wrong number or shape of vectors."""

    def __init__(self, message: str, *, expected: int, actual: int) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class SessionImportError(RagKitError):
    """A session import payload failed validation."""
