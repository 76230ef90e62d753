# src/rag_kit/retrieval/ranker.py

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace
from time import monotonic

from rag_kit.indexing.lexical import LexicalIndex, normalize_terms
from rag_kit.observability import names
from rag_kit.observability.base import MetricsHook, NoOpMetricsHook

from .similarity import cosine_similarity
from .types import Candidate

logger = logging.getLogger(__name__)

TITLE_BONUS = 10.0
TAG_BONUS = 5.0
PRIORITY_SCORE = 100.0


def lexical_score(
    terms: Iterable[str], candidate: Candidate, index: LexicalIndex
) -> float:
    """Keyword score of ``candidate`` for already-normalized query ``terms``.

    Each term adds its frequency in the candidate's postings, a title bonus
    when the title contains it, and a tag bonus per tag containing it.
    """
    title = candidate.title.lower()
    tags = [tag.lower() for tag in candidate.tags]
    score = 0.0
    for term in terms:
        score += index.frequency(term, candidate.id)
        if term in title:
            score += TITLE_BONUS
        for tag in tags:
            if term in tag:
                score += TAG_BONUS
    return score


class Ranker:
    """Fuses semantic and lexical signals into one ordered candidate list.

    Two entry points share the weighting and ordering rules:

    - ``rank`` computes scores in process (lexical index + cosine).
    - ``rank_precomputed`` trusts scores supplied by an external search
      primitive, e.g. a database-side hybrid search.

    Ordering is descending ``combined_score`` and stable, so ties keep the
    order the candidates were given in. For each entry of
    ``forced_priority_ids`` the first candidate whose id contains it is
    always returned, at the front.
    """

    def __init__(
        self,
        *,
        category_weights: Mapping[str, float] | None = None,
        forced_priority_ids: Sequence[str] = (),
        priority_score: float = PRIORITY_SCORE,
        drop_unmatched: bool = True,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self.category_weights = dict(category_weights or {})
        self.forced_priority_ids = list(forced_priority_ids)
        self.priority_score = priority_score
        self.drop_unmatched = drop_unmatched
        self.metrics_hook = metrics_hook

    def rank(
        self,
        query_text: str,
        candidates: Sequence[Candidate],
        *,
        query_embedding: Sequence[float] | None = None,
        index: LexicalIndex | None = None,
        limit: int | None = None,
    ) -> list[Candidate]:
        """Score ``candidates`` against the query and order them.

        Args:
            query_text: Raw query; normalized the same way as indexed text.
            candidates: Items to score, in discovery order.
            query_embedding: When given, candidates that carry an embedding
                are scored by cosine similarity instead of keywords.
            index: Lexical index covering the candidate ids. Built from the
                candidates' content and titles when omitted.
            limit: Keep at most this many organically ranked candidates.
                Forced-priority candidates are added on top.

        Returns:
            Candidates with ``semantic_score``, ``lexical_score`` and
            ``combined_score`` filled in, best first.
        """
        start = monotonic()
        if index is None:
            index = LexicalIndex()
            for candidate in candidates:
                index.add(candidate.id, candidate.content, candidate.title)

        terms = normalize_terms(query_text)
        scored: list[Candidate] = []
        for candidate in candidates:
            lexical = lexical_score(terms, candidate, index)
            semantic = 0.0
            if query_embedding is not None and candidate.embedding is not None:
                semantic = cosine_similarity(query_embedding, candidate.embedding)
                base = semantic
            else:
                base = lexical
            scored.append(
                replace(
                    candidate,
                    semantic_score=semantic,
                    lexical_score=lexical,
                    combined_score=base * self._weight(candidate),
                )
            )

        if self.drop_unmatched:
            organic = [c for c in scored if c.combined_score > 0]
        else:
            organic = scored
        ranked = self._order(organic, scored, limit)

        self._record(start, len(candidates))
        logger.debug(
            "Ranked %d candidates for %d query terms, kept %d",
            len(candidates),
            len(terms),
            len(ranked),
        )
        return ranked

    def rank_precomputed(
        self,
        candidates: Sequence[Candidate],
        *,
        limit: int | None = None,
    ) -> list[Candidate]:
        """Order candidates whose scores came from an external search.

        ``combined_score`` is taken as the base signal and only category
        weighting, ordering and forced priority are applied.
        """
        start = monotonic()
        weighted = [
            replace(c, combined_score=c.combined_score * self._weight(c))
            for c in candidates
        ]
        ranked = self._order(weighted, weighted, limit)
        self._record(start, len(candidates))
        return ranked

    def _weight(self, candidate: Candidate) -> float:
        return self.category_weights.get(candidate.category, 1.0)

    def _order(
        self,
        organic: list[Candidate],
        pool: list[Candidate],
        limit: int | None,
    ) -> list[Candidate]:
        # sorted() is stable: equal scores keep discovery order
        ranked = sorted(organic, key=lambda c: c.combined_score, reverse=True)
        if limit is not None:
            ranked = ranked[:limit]
        return self._apply_forced_priority(ranked, pool)

    def _apply_forced_priority(
        self, ranked: list[Candidate], pool: list[Candidate]
    ) -> list[Candidate]:
        if not self.forced_priority_ids:
            return ranked

        present = {c.id for c in ranked}
        best = ranked[0].combined_score if ranked else 0.0
        sentinel = max(self.priority_score, best + 1.0)

        forced = []
        for forced_id in self.forced_priority_ids:
            # first candidate in pool order whose id contains the forced id
            candidate = next((c for c in pool if forced_id in c.id), None)
            if candidate is None or candidate.id in present:
                continue
            forced.append(replace(candidate, combined_score=sentinel))
            present.add(candidate.id)

        if forced:
            logger.debug("Forced %d priority candidates to the front", len(forced))
        return forced + ranked

    def _record(self, start: float, count: int) -> None:
        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.RANKING_DURATION, elapsed_ms)
        self.metrics_hook.increment(names.RANKING_CANDIDATES_SCORED, count)
