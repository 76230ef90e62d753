# Chunking
from .chunking import Chunk, chunk_section, chunk_sections

# Configuration
from .config import ChunkingConfig, RetrievalConfig

# Embeddings
from .embeddings import (
    Embedding,
    EmbeddingsClient,
    EmbeddingsConfig,
    LocalEmbeddingsClient,
    OpenAIEmbeddingsClient,
    create_embeddings_client,
)

# Errors
from .errors import (
    EmbeddingMismatchError,
    RagKitError,
    SessionImportError,
    TokenizationError,
)

# Indexing
from .indexing import LexicalIndex

# Observability
from .observability import InMemoryMetricsHook, MetricsHook, NoOpMetricsHook

# Parsing
from .parsers import MarkdownParser, Section, segment_markdown

# Pipelines
from .pipeline import IngestPipeline, IngestResult, QueryPipeline, QueryResponse

# Retrieval
from .retrieval import (
    AssemblyMode,
    Candidate,
    ContextAssembler,
    Ranker,
    cosine_similarity,
    select_diverse,
)

# Session
from .session import KnowledgeSession

# Stores
from .stores import ChunkStore, InMemoryChunkStore

# Tokenizers
from .tokenizers import TiktokenTokenizer, Tokenizer

__all__ = [
    # Chunking
    "Chunk",
    "chunk_section",
    "chunk_sections",
    # Configuration
    "ChunkingConfig",
    "RetrievalConfig",
    # Embeddings
    "Embedding",
    "EmbeddingsClient",
    "EmbeddingsConfig",
    "LocalEmbeddingsClient",
    "OpenAIEmbeddingsClient",
    "create_embeddings_client",
    # Errors
    "EmbeddingMismatchError",
    "RagKitError",
    "SessionImportError",
    "TokenizationError",
    # Indexing
    "LexicalIndex",
    # Observability
    "InMemoryMetricsHook",
    "MetricsHook",
    "NoOpMetricsHook",
    # Parsing
    "MarkdownParser",
    "Section",
    "segment_markdown",
    # Pipelines
    "IngestPipeline",
    "IngestResult",
    "QueryPipeline",
    "QueryResponse",
    # Retrieval
    "AssemblyMode",
    "Candidate",
    "ContextAssembler",
    "Ranker",
    "cosine_similarity",
    "select_diverse",
    # Session
    "KnowledgeSession",
    # Stores
    "ChunkStore",
    "InMemoryChunkStore",
    # Tokenizers
    "TiktokenTokenizer",
    "Tokenizer",
]
