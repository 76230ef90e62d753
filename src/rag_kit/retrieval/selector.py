import logging
from collections import defaultdict
from collections.abc import Iterable

from rag_kit.observability import names
from rag_kit.observability.base import MetricsHook, NoOpMetricsHook

from .types import Candidate

logger = logging.getLogger(__name__)

DEFAULT_DIVERSITY_CAP = 2


def select_diverse(
    ranked: Iterable[Candidate],
    k: int,
    diversity_cap: int = DEFAULT_DIVERSITY_CAP,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> list[Candidate]:
    """Take the best ``k`` candidates, at most ``diversity_cap`` per source.

    Input order is trusted as rank order and preserved in the output.
    """
    if k < 0:
        raise ValueError("k must be >= 0")
    if diversity_cap < 1:
        raise ValueError("diversity_cap must be >= 1")

    selected: list[Candidate] = []
    per_source: dict[str, int] = defaultdict(int)
    for candidate in ranked:
        if len(selected) >= k:
            break
        if per_source[candidate.source_id] >= diversity_cap:
            continue
        per_source[candidate.source_id] += 1
        selected.append(candidate)

    metrics_hook.increment(names.SELECTION_CANDIDATES_ACCEPTED, len(selected))
    logger.debug(
        "Selected %d candidates from %d sources", len(selected), len(per_source)
    )
    return selected
