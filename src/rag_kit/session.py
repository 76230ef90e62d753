# src/rag_kit/session.py

"""Self-contained search session over markdown loaded in memory.

Used where no database-side search exists: the session owns its sections,
its lexical index and its ranking settings, and can be exported to plain
data and imported again in another process.

A session is not thread-safe. Mutating calls (``load_markdown``, ``clear``,
``import_sections``) must come from the single owner of the session; hosts
that need concurrent access should route every call through that owner.
"""

import json
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import asdict, dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from rag_kit.errors import SessionImportError
from rag_kit.indexing.lexical import LexicalIndex
from rag_kit.observability import names
from rag_kit.observability.base import MetricsHook, NoOpMetricsHook
from rag_kit.parsers.markdown_parser import MarkdownParser
from rag_kit.retrieval.assembler import (
    DEFAULT_MAX_CONTEXT_LENGTH,
    AssemblyMode,
    ContextAssembler,
)
from rag_kit.retrieval.ranker import Ranker
from rag_kit.retrieval.types import Candidate

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_WEIGHTS = {"personal": 2.0, "context": 1.5}
DEFAULT_CORE_SECTION_IDS = ("personal_identity", "personal_background")
MIN_TAG_LENGTH = 4


@dataclass(frozen=True)
class SessionSection:
    id: str
    title: str
    content: str
    tags: list[str]
    category: str


class SectionRecord(BaseModel):
    """Wire shape of one exported section."""

    id: str
    title: str
    content: str
    tags: list[str] = []
    category: str

    class Config:
        extra = "forbid"


def title_tags(title: str) -> list[str]:
    """Keyword tags taken from a heading: lowercased words of 4+ characters."""
    return [word.lower() for word in title.split() if len(word) >= MIN_TAG_LENGTH]


class KnowledgeSession:
    def __init__(
        self,
        *,
        max_context_length: int = DEFAULT_MAX_CONTEXT_LENGTH,
        category_weights: Mapping[str, float] | None = None,
        forced_priority_ids: Sequence[str] = DEFAULT_CORE_SECTION_IDS,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self.metrics_hook = metrics_hook
        self._sections: list[SessionSection] = []
        self._ids: set[str] = set()
        self._index = LexicalIndex()
        self._parser = MarkdownParser(metrics_hook=metrics_hook)
        self._ranker = Ranker(
            category_weights=(
                DEFAULT_CATEGORY_WEIGHTS
                if category_weights is None
                else category_weights
            ),
            forced_priority_ids=forced_priority_ids,
            metrics_hook=metrics_hook,
        )
        self._assembler = ContextAssembler(
            max_context_length=max_context_length, metrics_hook=metrics_hook
        )
        logger.info(
            "Initialized KnowledgeSession with max_context_length=%d",
            max_context_length,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def clear(self) -> None:
        self._sections.clear()
        self._ids.clear()
        self._index.clear()
        logger.info("Cleared all sections and index")

    def load_markdown(self, content: str, category: str) -> int:
        """Segment ``content`` and add its sections under ``category``.

        Returns:
            Number of sections added.
        """
        added = 0
        for section in self._parser.segment(content):
            title = section.title
            self._add(
                SessionSection(
                    id=self._next_id(category),
                    title=title,
                    content=section.body.strip(),
                    tags=title_tags(title),
                    category=category,
                )
            )
            added += 1

        logger.info("Loaded %d sections from category '%s'", added, category)
        return added

    def set_max_context_length(self, length: int) -> None:
        self._assembler = ContextAssembler(
            max_context_length=length, metrics_hook=self.metrics_hook
        )
        logger.info("Set max context length to %d chars", length)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def search_candidates(self, query: str, max_results: int = 10) -> list[Candidate]:
        logger.debug("Searching for: %s", query)
        return self._ranker.rank(
            query,
            [self._candidate(s) for s in self._sections],
            index=self._index,
            limit=max_results,
        )

    def search(self, query: str, max_results: int = 10) -> str:
        """Ranked context for ``query``, bounded by the context budget."""
        ranked = self.search_candidates(query, max_results)
        return self._assembler.assemble(ranked, AssemblyMode.RANKED).text

    def full_context(self) -> str:
        """Every section grouped by category, ignoring relevance."""
        candidates = [self._candidate(s) for s in self._sections]
        return self._assembler.assemble(candidates, AssemblyMode.FULL).text

    def section_count(self) -> int:
        return len(self._sections)

    def index_size(self) -> int:
        return self._index.size()

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def export_sections(self) -> list[dict[str, Any]]:
        return [asdict(section) for section in self._sections]

    def export_json(self) -> str:
        return json.dumps(self.export_sections())

    def import_sections(self, records: Iterable[Mapping[str, Any]]) -> int:
        """Replace the session contents with ``records``.

        All records are validated before anything changes; on failure the
        session keeps its current sections.

        Raises:
            SessionImportError: If any record does not match ``SectionRecord``.
        """
        try:
            validated = [SectionRecord(**dict(record)) for record in records]
        except (ValidationError, TypeError, ValueError) as exc:
            raise SessionImportError(f"Invalid session payload: {exc}") from exc

        self.clear()
        for record in validated:
            self._add(
                SessionSection(
                    id=record.id,
                    title=record.title,
                    content=record.content.strip(),
                    tags=list(record.tags),
                    category=record.category,
                )
            )
        logger.info("Imported %d sections", len(self._sections))
        return len(self._sections)

    def import_json(self, payload: str) -> int:
        try:
            records = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise SessionImportError(f"Invalid session JSON: {exc}") from exc
        if not isinstance(records, list):
            raise SessionImportError("Session JSON must be a list of sections")
        return self.import_sections(records)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _add(self, section: SessionSection) -> None:
        self._index.add(section.id, section.content, section.title)
        self._sections.append(section)
        self._ids.add(section.id)
        self.metrics_hook.record_gauge(names.INDEX_DISTINCT_WORDS, self._index.size())

    def _next_id(self, category: str) -> str:
        n = len(self._sections)
        while f"{category}_{n}" in self._ids:
            n += 1
        return f"{category}_{n}"

    @staticmethod
    def _candidate(section: SessionSection) -> Candidate:
        return Candidate(
            id=section.id,
            content=section.content,
            source_id=section.category,
            category=section.category,
            title=section.title,
            tags=tuple(section.tags),
        )
