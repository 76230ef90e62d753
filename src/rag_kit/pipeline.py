# src/rag_kit/pipeline.py

"""Ingest and query flows.

Ingest: document -> sections -> chunks -> embeddings -> chunk store.
Query: query -> embedding -> hybrid search -> rerank -> diverse top-k ->
bounded context with citations and timing diagnostics.

All algorithmic steps are synchronous; only the embeddings provider and the
chunk store are awaited.
"""

import logging
import uuid
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field, replace
from time import monotonic
from typing import Any

from rag_kit.chunking.chunking import chunk_sections
from rag_kit.config import ChunkingConfig, RetrievalConfig
from rag_kit.embeddings.base import EmbeddingsClient, validate_embeddings
from rag_kit.observability import names
from rag_kit.observability.base import MetricsHook, NoOpMetricsHook
from rag_kit.parsers.base import DocumentParser
from rag_kit.parsers.markdown_parser import MarkdownParser
from rag_kit.retrieval.assembler import AssemblyMode, ContextAssembler
from rag_kit.retrieval.ranker import Ranker
from rag_kit.retrieval.selector import select_diverse
from rag_kit.retrieval.similarity import cosine_similarity
from rag_kit.retrieval.types import Candidate
from rag_kit.stores.base import ChunkStore
from rag_kit.stores.types import DocumentRecord, SearchHit, StoredChunk
from rag_kit.tokenizers.base import Tokenizer, estimate_tokens
from rag_kit.tokenizers.tiktoken import TiktokenTokenizer
from rag_kit.utils import sha256_hex, truncate_text

logger = logging.getLogger(__name__)


# ============================================================================
# Ingest
# ============================================================================


@dataclass(frozen=True)
class IngestResult:
    document_id: str
    chunks_count: int
    tokens_estimate: int
    warnings: list[str] = field(default_factory=list)
    duplicate: bool = False


class IngestPipeline:
    def __init__(
        self,
        *,
        embeddings: EmbeddingsClient,
        store: ChunkStore,
        tokenizer: Tokenizer | None = None,
        chunking: ChunkingConfig = ChunkingConfig(),
        parser: DocumentParser | None = None,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        # default tokenizer follows the configured encoding
        self._tokenizer = tokenizer or TiktokenTokenizer(chunking.encoding)
        self._embeddings = embeddings
        self._store = store
        self._chunking = chunking
        self._parser = parser or MarkdownParser(metrics_hook=metrics_hook)
        self.metrics_hook = metrics_hook

    async def ingest(
        self,
        data: bytes | str,
        *,
        source_uri: str,
        tags: Sequence[str] = (),
        source_type: str = "md",
        category: str = "",
    ) -> IngestResult:
        """Ingest one document unless identical content is already stored.

        Nothing is written to the store until every chunk has an embedding,
        so a tokenizer or provider failure leaves the store untouched.

        Raises:
            TokenizationError: If the tokenizer fails on this document.
            EmbeddingMismatchError: If the provider's vectors do not line up
                with the chunks.
        """
        start = monotonic()
        content_sha256 = sha256_hex(data)

        existing = await self._store.find_document(content_sha256)
        if existing is not None:
            logger.warning(
                "Document already exists with ID: %s (%s)", existing.id, source_uri
            )
            self.metrics_hook.increment(names.INGEST_DUPLICATES_TOTAL)
            return IngestResult(
                document_id=existing.id,
                chunks_count=await self._store.count_chunks(existing.id),
                tokens_estimate=0,
                warnings=[f"Document already ingested as {existing.id}"],
                duplicate=True,
            )

        if isinstance(data, bytes):
            text = data.decode("utf-8", errors="replace")
        else:
            text = data
        document = DocumentRecord(
            id=str(uuid.uuid4()),
            source_uri=source_uri,
            content_sha256=content_sha256,
            source_type=source_type,
            tags=tuple(tags),
        )

        sections = self._parser.segment(text)
        chunks = chunk_sections(
            sections,
            tokenizer=self._tokenizer,
            max_tokens=self._chunking.max_tokens,
            overlap_tokens=self._chunking.overlap_tokens,
            metadata={
                "source_id": document.id,
                "source_uri": source_uri,
                "category": category,
            },
            metrics_hook=self.metrics_hook,
        )

        warnings: list[str] = []
        if not chunks:
            warnings.append("No extractable sections")

        texts = [chunk.content for chunk in chunks]
        embeddings = await self._embeddings.embed(texts)
        validate_embeddings(texts, embeddings)

        await self._store.add_document(document)
        await self._store.upsert_chunks(
            StoredChunk(document_id=document.id, chunk=chunk, embedding=emb.vector)
            for chunk, emb in zip(chunks, embeddings)
        )

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.INGEST_DURATION, elapsed_ms)
        self.metrics_hook.increment(names.INGEST_DOCUMENTS_TOTAL)
        logger.info("Ingested document %s with %d chunks", document.id, len(chunks))
        return IngestResult(
            document_id=document.id,
            chunks_count=len(chunks),
            tokens_estimate=estimate_tokens(text),
            warnings=warnings,
        )


# ============================================================================
# Query
# ============================================================================


@dataclass(frozen=True)
class ScoredChunk:
    chunk_id: str
    document_id: str
    content: str
    score: float
    source_uri: str
    section: str


@dataclass(frozen=True)
class Citation:
    document_id: str
    source_uri: str
    section: str | None
    page: int | None = None
    char_span: tuple[int, int] | None = None


@dataclass(frozen=True)
class QueryDiagnostics:
    ann_k: int
    lexical_k: int
    reranker_name: str
    query_time_ms: int
    embedding_time_ms: int
    rerank_time_ms: int


@dataclass(frozen=True)
class QueryResponse:
    context: list[ScoredChunk]
    citations: list[Citation]
    diagnostics: QueryDiagnostics
    context_text: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class QueryPipeline:
    def __init__(
        self,
        *,
        embeddings: EmbeddingsClient,
        store: ChunkStore,
        config: RetrievalConfig = RetrievalConfig(),
        ranker: Ranker | None = None,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self._embeddings = embeddings
        self._store = store
        self._config = config
        self._ranker = ranker or Ranker(
            category_weights=config.category_weights,
            forced_priority_ids=config.forced_priority_ids,
            metrics_hook=metrics_hook,
        )
        self._assembler = ContextAssembler(
            max_context_length=config.max_context_length, metrics_hook=metrics_hook
        )
        self.metrics_hook = metrics_hook

    async def query(
        self,
        query: str,
        *,
        k: int | None = None,
        tags: Sequence[str] | None = None,
    ) -> QueryResponse:
        start = monotonic()
        if k is None:
            k = self._config.k
        logger.debug("Query: %s (k=%d)", truncate_text(query, 80), k)

        embedding_start = monotonic()
        texts = [query]
        embeddings = await self._embeddings.embed(texts)
        validate_embeddings(texts, embeddings)
        query_embedding = embeddings[0].vector
        embedding_time_ms = _elapsed_ms(embedding_start)

        hits = await self._store.hybrid_search(
            query_embedding=query_embedding, query_text=query, k=k, tags=tags
        )

        rerank_start = monotonic()
        candidates, reranker_name = _rerank(hits, query_embedding)
        ranked = self._ranker.rank_precomputed(candidates)
        selected = select_diverse(
            ranked,
            self._config.top_k,
            self._config.diversity_cap,
            metrics_hook=self.metrics_hook,
        )
        rerank_time_ms = _elapsed_ms(rerank_start)

        source_uris = {}
        for candidate in selected:
            if candidate.source_id not in source_uris:
                document = await self._store.get_document(candidate.source_id)
                source_uris[candidate.source_id] = document.source_uri

        context = [
            ScoredChunk(
                chunk_id=c.id,
                document_id=c.source_id,
                content=c.content,
                score=c.combined_score,
                source_uri=source_uris[c.source_id],
                section=c.title,
            )
            for c in selected
        ]
        citations = [_citation(c, source_uris[c.source_id]) for c in selected]
        assembled = self._assembler.assemble(selected, AssemblyMode.RANKED)

        query_time_ms = _elapsed_ms(start)
        self.metrics_hook.record_latency(names.QUERY_DURATION, query_time_ms)
        self.metrics_hook.increment(names.QUERY_REQUESTS_TOTAL)
        logger.info(
            "Query processed in %dms with %d results", query_time_ms, len(context)
        )
        return QueryResponse(
            context=context,
            citations=citations,
            diagnostics=QueryDiagnostics(
                ann_k=k * 2,
                lexical_k=k * 2,
                reranker_name=reranker_name,
                query_time_ms=query_time_ms,
                embedding_time_ms=embedding_time_ms,
                rerank_time_ms=rerank_time_ms,
            ),
            context_text=assembled.text,
        )


def _rerank(
    hits: list[SearchHit], query_embedding: list[float]
) -> tuple[list[Candidate], str]:
    """Turn hits into candidates, rescored by cosine when every hit has a vector."""
    candidates = [
        Candidate(
            id=hit.chunk_id,
            content=hit.content,
            source_id=hit.document_id,
            category=str(hit.metadata.get("category", "")),
            title=hit.section,
            embedding=hit.embedding,
            semantic_score=hit.semantic_score,
            lexical_score=hit.lexical_score,
            combined_score=hit.combined_score,
            metadata={**hit.metadata, "span": hit.span},
        )
        for hit in hits
    ]
    if not candidates or any(c.embedding is None for c in candidates):
        return candidates, "none"

    rescored = []
    for candidate in candidates:
        # checked above: every candidate carries an embedding here
        similarity = cosine_similarity(query_embedding, candidate.embedding or [])
        rescored.append(
            replace(candidate, semantic_score=similarity, combined_score=similarity)
        )
    return rescored, "cosine"


def _citation(candidate: Candidate, source_uri: str) -> Citation:
    page = candidate.metadata.get("page")
    span = candidate.metadata.get("span")
    return Citation(
        document_id=candidate.source_id,
        source_uri=source_uri,
        section=candidate.title or None,
        page=int(page) if page is not None else None,
        char_span=tuple(span) if span is not None else None,
    )


def _elapsed_ms(start: float) -> int:
    return int(1000 * (monotonic() - start))
