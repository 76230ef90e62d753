from .assembler import (
    TRUNCATION_MARKER,
    AssembledContext,
    AssemblyMode,
    ContextAssembler,
)
from .ranker import Ranker, lexical_score
from .selector import select_diverse
from .similarity import cosine_similarity
from .types import Candidate

__all__ = [
    "AssembledContext",
    "AssemblyMode",
    "Candidate",
    "ContextAssembler",
    "Ranker",
    "TRUNCATION_MARKER",
    "cosine_similarity",
    "lexical_score",
    "select_diverse",
]
