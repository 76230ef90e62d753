from dataclasses import dataclass
from typing import Protocol

from rag_kit.errors import EmbeddingMismatchError
from rag_kit.observability.base import MetricsHook


@dataclass(frozen=True)
class Embedding:
    vector: list[float]


class EmbeddingsClient(Protocol):
    """One vector per input text, in input order."""

    metrics_hook: MetricsHook

    async def embed(self, texts: list[str]) -> list[Embedding]: ...


def validate_embeddings(
    texts: list[str],
    embeddings: list[Embedding],
    dimensions: int | None = None,
) -> None:
    """Reject provider output that does not line up with the request.

    Raises:
        EmbeddingMismatchError: on a count mismatch, or when vectors differ in
            length from each other or from ``dimensions``.
    """
    if len(embeddings) != len(texts):
        raise EmbeddingMismatchError(
            f"Expected {len(texts)} embeddings, got {len(embeddings)}",
            expected=len(texts),
            actual=len(embeddings),
        )
    if not embeddings:
        return

    expected_dim = dimensions if dimensions is not None else len(embeddings[0].vector)
    for embedding in embeddings:
        if len(embedding.vector) != expected_dim:
            raise EmbeddingMismatchError(
                f"Expected {expected_dim}-dimensional vectors, "
                f"got {len(embedding.vector)}",
                expected=expected_dim,
                actual=len(embedding.vector),
            )
