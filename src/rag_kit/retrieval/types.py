from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Candidate:
    """A retrievable item scored for one query.

    Produced per query and never persisted. ``source_id`` groups candidates
    that come from the same document for the diversity cap.
    """

    id: str
    content: str
    source_id: str
    category: str = ""
    title: str = ""
    tags: tuple[str, ...] = ()
    embedding: list[float] | None = None
    semantic_score: float = 0.0
    lexical_score: float = 0.0
    combined_score: float = 0.0
    metadata: Mapping[str, Any] = field(default_factory=dict)
