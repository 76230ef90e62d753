from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from rag_kit.chunking.chunking import Chunk


@dataclass(frozen=True)
class DocumentRecord:
    id: str
    source_uri: str
    content_sha256: str
    source_type: str = "md"
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class StoredChunk:
    document_id: str
    chunk: Chunk
    embedding: list[float]

    @property
    def id(self) -> str:
        return self.chunk.chunk_id


@dataclass(frozen=True)
class SearchHit:
    chunk_id: str
    document_id: str
    content: str
    section: str
    semantic_score: float
    lexical_score: float
    combined_score: float
    metadata: Mapping[str, Any] = field(default_factory=dict)
    span: tuple[int, int] | None = None
    embedding: list[float] | None = None
