# src/rag_kit/retrieval/assembler.py

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from time import monotonic

from rag_kit.observability import names
from rag_kit.observability.base import MetricsHook, NoOpMetricsHook

from .types import Candidate

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONTEXT_LENGTH = 100_000  # ~25k tokens
DEFAULT_CATEGORY_ORDER = ("personal", "context", "knowledge")
TRUNCATION_MARKER = "\n[Context truncated due to length limits]"
RANKED_HEADER = "# RELEVANT CONTEXT\n\n"


class AssemblyMode(str, Enum):
    """How selected candidates are rendered."""

    RANKED = "ranked"
    FULL = "full"


@dataclass(frozen=True)
class AssembledContext:
    text: str
    included_ids: list[str] = field(default_factory=list)
    truncated: bool = False


class _Budget:
    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.parts: list[str] = []
        self.used = 0
        self.truncated = False

    def append(self, piece: str) -> bool:
        """Append ``piece`` if it fits; otherwise mark truncation once."""
        if self.truncated:
            return False
        if self.used + len(piece) > self.limit:
            self.parts.append(TRUNCATION_MARKER)
            self.truncated = True
            return False
        self.parts.append(piece)
        self.used += len(piece)
        return True

    def text(self) -> str:
        return "".join(self.parts)


class ContextAssembler:
    """Renders candidates into one size-bounded context string.

    Every piece is checked against the budget before it is appended; the
    first piece that does not fit is replaced by ``TRUNCATION_MARKER`` and
    assembly stops. The result is never longer than
    ``max_context_length + len(TRUNCATION_MARKER)``.
    """

    def __init__(
        self,
        max_context_length: int = DEFAULT_MAX_CONTEXT_LENGTH,
        category_order: Sequence[str] = DEFAULT_CATEGORY_ORDER,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        if max_context_length < 0:
            raise ValueError("max_context_length must be >= 0")
        self.max_context_length = max_context_length
        self.category_order = tuple(category_order)
        self.metrics_hook = metrics_hook

    def assemble(
        self,
        items: Iterable[Candidate],
        mode: AssemblyMode = AssemblyMode.RANKED,
    ) -> AssembledContext:
        start = monotonic()
        budget = _Budget(self.max_context_length)
        if mode is AssemblyMode.RANKED:
            included = self._ranked(list(items), budget)
        else:
            included = self._full(list(items), budget)

        result = AssembledContext(
            text=budget.text(), included_ids=included, truncated=budget.truncated
        )

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(
            names.ASSEMBLY_DURATION, elapsed_ms, labels={"mode": mode.value}
        )
        self.metrics_hook.record_gauge(names.ASSEMBLY_CONTEXT_CHARS, len(result.text))
        if result.truncated:
            self.metrics_hook.increment(names.ASSEMBLY_TRUNCATIONS_TOTAL)
        logger.info(
            "Built %s context with %d blocks, %d chars",
            mode.value,
            len(included),
            budget.used,
        )
        return result

    def _ranked(self, items: list[Candidate], budget: _Budget) -> list[str]:
        included: list[str] = []
        if not budget.append(RANKED_HEADER):
            return included
        for item in items:
            block = (
                f"## {item.title} (Relevance: {item.combined_score:.1f})\n"
                f"{item.content}\n\n"
            )
            if not budget.append(block):
                break
            included.append(item.id)
        return included

    def _full(self, items: list[Candidate], budget: _Budget) -> list[str]:
        by_category: dict[str, list[Candidate]] = {}
        for item in items:
            by_category.setdefault(item.category, []).append(item)

        order = [c for c in self.category_order if c in by_category]
        order += sorted(c for c in by_category if c not in self.category_order)

        included: list[str] = []
        for category in order:
            if not budget.append(f"\n# {category.upper()} INFORMATION\n\n"):
                return included
            for item in by_category[category]:
                if not budget.append(f"## {item.title}\n{item.content}\n\n"):
                    return included
                included.append(item.id)
        return included
