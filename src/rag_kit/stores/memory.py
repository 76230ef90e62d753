"""In-process chunk store with the same hybrid search contract as a database."""

import logging
from collections.abc import Iterable, Sequence
from time import monotonic

from rag_kit.indexing.lexical import LexicalIndex, normalize_terms
from rag_kit.observability import names
from rag_kit.observability.base import MetricsHook, NoOpMetricsHook
from rag_kit.retrieval.similarity import cosine_similarity

from .base import ChunkStore
from .types import DocumentRecord, SearchHit, StoredChunk

logger = logging.getLogger(__name__)


class InMemoryChunkStore(ChunkStore):
    """Chunk store kept in dictionaries.

    Hybrid search mirrors the database function it stands in for:

    - top ``2k`` chunks by cosine similarity
    - top ``2k`` chunks by keyword frequency, scaled to [0, 1]
    - full outer join on chunk id, missing scores count as 0
    - ``combined = semantic_weight * semantic + lexical_weight * lexical``

    Nothing is persisted; state lives as long as the instance.

    Example:
        >>> store = InMemoryChunkStore()
        >>> await store.add_document(DocumentRecord(id="d1", source_uri="a.md",
        ...                                         content_sha256="..."))
        >>> await store.upsert_chunks([StoredChunk("d1", chunk, [0.1, 0.2])])
        >>> hits = await store.hybrid_search(query_embedding=[0.1, 0.2],
        ...                                  query_text="rollback", k=5)
    """

    def __init__(
        self,
        semantic_weight: float = 0.7,
        lexical_weight: float = 0.3,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self.semantic_weight = semantic_weight
        self.lexical_weight = lexical_weight
        self.metrics_hook = metrics_hook
        self._documents: dict[str, DocumentRecord] = {}
        self._chunks: dict[str, StoredChunk] = {}
        self._index = LexicalIndex()

    async def find_document(self, content_sha256: str) -> DocumentRecord | None:
        for document in self._documents.values():
            if document.content_sha256 == content_sha256:
                return document
        return None

    async def get_document(self, document_id: str) -> DocumentRecord:
        try:
            return self._documents[document_id]
        except KeyError:
            logger.error("Document not found: %s", document_id)
            raise KeyError(f"Document '{document_id}' not found")

    async def add_document(self, document: DocumentRecord) -> None:
        self._documents[document.id] = document
        logger.debug("Added document %s (%s)", document.id, document.source_uri)

    async def upsert_chunks(self, items: Iterable[StoredChunk]) -> None:
        start = monotonic()
        replaced = False
        for item in items:
            if item.document_id not in self._documents:
                raise KeyError(f"Document '{item.document_id}' not found")
            replaced = replaced or item.id in self._chunks
            self._chunks[item.id] = item
            if not replaced:
                self._index.add(item.id, item.chunk.content)

        # posting lists cannot drop entries, so rebuild after an overwrite
        if replaced:
            self._index.clear()
            for stored in self._chunks.values():
                self._index.add(stored.id, stored.chunk.content)

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(
            names.STORE_UPSERT_DURATION, elapsed_ms, labels={"backend": "memory"}
        )

    async def count_chunks(self, document_id: str) -> int:
        return sum(1 for c in self._chunks.values() if c.document_id == document_id)

    async def hybrid_search(
        self,
        *,
        query_embedding: Sequence[float],
        query_text: str,
        k: int,
        tags: Sequence[str] | None = None,
    ) -> list[SearchHit]:
        start = monotonic()
        if k < 1:
            raise ValueError("k must be at least 1")

        eligible = [c for c in self._chunks.values() if self._matches_tags(c, tags)]
        fetch_k = k * 2

        semantic = sorted(
            ((c, cosine_similarity(query_embedding, c.embedding)) for c in eligible),
            key=lambda pair: pair[1],
            reverse=True,
        )[:fetch_k]

        terms = normalize_terms(query_text)
        lexical_raw = []
        for stored in eligible:
            score = sum(self._index.frequency(term, stored.id) for term in terms)
            if score > 0:
                lexical_raw.append((stored, float(score)))
        lexical_raw.sort(key=lambda pair: pair[1], reverse=True)
        lexical_raw = lexical_raw[:fetch_k]
        top_lexical = lexical_raw[0][1] if lexical_raw else 1.0

        semantic_scores = {c.id: score for c, score in semantic}
        lexical_scores = {c.id: score / top_lexical for c, score in lexical_raw}

        joined: dict[str, StoredChunk] = {}
        for stored, _ in semantic + lexical_raw:
            joined.setdefault(stored.id, stored)

        hits = []
        for chunk_id, stored in joined.items():
            semantic_score = semantic_scores.get(chunk_id, 0.0)
            lexical_score = lexical_scores.get(chunk_id, 0.0)
            hits.append(
                SearchHit(
                    chunk_id=chunk_id,
                    document_id=stored.document_id,
                    content=stored.chunk.content,
                    section=stored.chunk.section,
                    semantic_score=semantic_score,
                    lexical_score=lexical_score,
                    combined_score=self.semantic_weight * semantic_score
                    + self.lexical_weight * lexical_score,
                    metadata=dict(stored.chunk.metadata),
                    span=stored.chunk.span,
                    embedding=list(stored.embedding),
                )
            )
        hits.sort(key=lambda hit: hit.combined_score, reverse=True)
        hits = hits[:k]

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(
            names.STORE_SEARCH_DURATION, elapsed_ms, labels={"backend": "memory"}
        )
        logger.debug(
            "Hybrid search over %d chunks returned %d hits", len(eligible), len(hits)
        )
        return hits

    def _matches_tags(self, stored: StoredChunk, tags: Sequence[str] | None) -> bool:
        if tags is None:
            return True
        document = self._documents[stored.document_id]
        return bool(set(document.tags) & set(tags))
