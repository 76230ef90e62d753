from .base import ChunkStore
from .memory import InMemoryChunkStore
from .types import DocumentRecord, SearchHit, StoredChunk

__all__ = [
    "ChunkStore",
    "DocumentRecord",
    "InMemoryChunkStore",
    "SearchHit",
    "StoredChunk",
]
