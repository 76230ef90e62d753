# src/rag_kit/config.py

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from rag_kit.chunking.chunking import validate_window
from rag_kit.retrieval.assembler import DEFAULT_MAX_CONTEXT_LENGTH
from rag_kit.retrieval.selector import DEFAULT_DIVERSITY_CAP


def _get_param_value(passed_value: int | None, env_var: str, default: int) -> int:
    if passed_value is not None:
        return passed_value
    env_value = os.environ.get(env_var)
    if env_value is not None:
        return int(env_value)
    return default


@dataclass(frozen=True)
class ChunkingConfig:
    """How documents are cut into chunks.

    Immutable. Validated on construction so a bad window never reaches
    the chunker.
    """

    max_tokens: int = 500
    overlap_tokens: int = 50
    encoding: str = "p50k_base"

    def __post_init__(self) -> None:
        validate_window(self.max_tokens, self.overlap_tokens)

    @classmethod
    def from_env(
        cls,
        max_tokens: int | None = None,
        overlap_tokens: int | None = None,
    ) -> "ChunkingConfig":
        return cls(
            max_tokens=_get_param_value(max_tokens, "RAG_KIT_MAX_TOKENS", 500),
            overlap_tokens=_get_param_value(
                overlap_tokens, "RAG_KIT_OVERLAP_TOKENS", 50
            ),
            encoding=os.environ.get("RAG_KIT_TOKENIZER_ENCODING", "p50k_base"),
        )


@dataclass(frozen=True)
class RetrievalConfig:
    """Query-time knobs.

    ``k`` is how many hits the search primitive returns, ``top_k`` how many
    survive selection.
    """

    k: int = 10
    top_k: int = 8
    diversity_cap: int = DEFAULT_DIVERSITY_CAP
    category_weights: Mapping[str, float] = field(default_factory=dict)
    forced_priority_ids: tuple[str, ...] = ()
    max_context_length: int = DEFAULT_MAX_CONTEXT_LENGTH

    def __post_init__(self) -> None:
        if self.k < 1:
            raise ValueError("k must be >= 1")
        if self.top_k < 0:
            raise ValueError("top_k must be >= 0")
        if self.diversity_cap < 1:
            raise ValueError("diversity_cap must be >= 1")
        if self.max_context_length < 0:
            raise ValueError("max_context_length must be >= 0")

    @classmethod
    def from_env(
        cls,
        k: int | None = None,
        top_k: int | None = None,
        diversity_cap: int | None = None,
        max_context_length: int | None = None,
    ) -> "RetrievalConfig":
        return cls(
            k=_get_param_value(k, "RAG_KIT_K", 10),
            top_k=_get_param_value(top_k, "RAG_KIT_TOP_K", 8),
            diversity_cap=_get_param_value(
                diversity_cap, "RAG_KIT_DIVERSITY_CAP", DEFAULT_DIVERSITY_CAP
            ),
            max_context_length=_get_param_value(
                max_context_length,
                "RAG_KIT_MAX_CONTEXT_LENGTH",
                DEFAULT_MAX_CONTEXT_LENGTH,
            ),
        )
