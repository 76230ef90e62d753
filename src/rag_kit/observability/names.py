# src/rag_kit/observability/names.py

"""Standard metric names for rag-kit observability.

Use these constants instead of hardcoded strings for consistency
across the codebase.

Note: All duration metrics are in milliseconds by convention.
Units are handled by the metrics backend (e.g., converted to seconds in Prometheus).
"""

# ============================================================================
# Segmenting Metrics
# ============================================================================

# Duration
SEGMENTING_DURATION = "segmenting_duration"

# Counters
SEGMENTING_SECTIONS_CREATED = "segmenting_sections_created"


# ============================================================================
# Chunking Metrics
# ============================================================================

# Duration
CHUNKING_DURATION = "chunking_duration"

# Counters (chunks accumulate over time)
CHUNKING_CHUNKS_CREATED = "chunking_chunks_created"


# ============================================================================
# Lexical Index Metrics
# ============================================================================

# Gauges
INDEX_DISTINCT_WORDS = "index_distinct_words"


# ============================================================================
# Retrieval Metrics
# ============================================================================

# Duration
RANKING_DURATION = "ranking_duration"
ASSEMBLY_DURATION = "assembly_duration"

# Counters
RANKING_CANDIDATES_SCORED = "ranking_candidates_scored"
SELECTION_CANDIDATES_ACCEPTED = "selection_candidates_accepted"
ASSEMBLY_TRUNCATIONS_TOTAL = "assembly_truncations_total"

# Gauges
ASSEMBLY_CONTEXT_CHARS = "assembly_context_chars"


# ============================================================================
# Chunk Store Metrics
# ============================================================================

# Duration
STORE_SEARCH_DURATION = "store_search_duration"
STORE_UPSERT_DURATION = "store_upsert_duration"


# ============================================================================
# Embeddings Metrics
# ============================================================================

# Duration
EMBEDDINGS_DURATION = "embeddings_duration"

# Counters
EMBEDDINGS_REQUESTS_TOTAL = "embeddings_requests_total"
EMBEDDINGS_ERRORS_TOTAL = "embeddings_errors_total"

# Gauges
EMBEDDINGS_BATCH_SIZE = "embeddings_batch_size"


# ============================================================================
# Pipeline Metrics
# ============================================================================

# Duration
INGEST_DURATION = "ingest_duration"
QUERY_DURATION = "query_duration"

# Counters
INGEST_DOCUMENTS_TOTAL = "ingest_documents_total"
INGEST_DUPLICATES_TOTAL = "ingest_duplicates_total"
QUERY_REQUESTS_TOTAL = "query_requests_total"
