from collections.abc import Iterable, Sequence
from typing import Protocol

from rag_kit.observability.base import MetricsHook

from .types import DocumentRecord, SearchHit, StoredChunk


class ChunkStore(Protocol):
    """Persistence and server-side search for ingested chunks."""

    metrics_hook: MetricsHook

    async def find_document(self, content_sha256: str) -> DocumentRecord | None:
        """Return the document with this content hash, if already ingested."""
        ...

    async def get_document(self, document_id: str) -> DocumentRecord: ...

    async def add_document(self, document: DocumentRecord) -> None: ...

    async def upsert_chunks(self, items: Iterable[StoredChunk]) -> None: ...

    async def count_chunks(self, document_id: str) -> int: ...

    async def hybrid_search(
        self,
        *,
        query_embedding: Sequence[float],
        query_text: str,
        k: int,
        tags: Sequence[str] | None = None,
    ) -> list[SearchHit]:
        """
        Fused semantic + lexical search.
        Returns at most ``k`` hits ordered by ``combined_score`` (highest first).
        """
        ...
