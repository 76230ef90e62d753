"""Inverted word index used for keyword scoring."""

import logging
from collections import defaultdict

from rag_kit.chunking.chunking import Chunk

logger = logging.getLogger(__name__)


def normalize_word(word: str) -> str:
    """Lowercase ``word`` and drop every non-alphanumeric character."""
    return "".join(c for c in word.lower() if c.isalnum())


def normalize_terms(text: str) -> list[str]:
    """Split on whitespace and normalize, skipping words that end up empty."""
    terms = []
    for word in text.split():
        term = normalize_word(word)
        if term:
            terms.append(term)
    return terms


class LexicalIndex:
    """Word -> posting list of item ids.

    An id is appended once per occurrence, so a posting list's length for
    one id is that word's raw frequency in the item. No stemming, no stop
    words.
    """

    def __init__(self) -> None:
        self._postings: dict[str, list[str]] = defaultdict(list)

    def add(self, item_id: str, *texts: str) -> None:
        for text in texts:
            for term in normalize_terms(text):
                self._postings[term].append(item_id)

    def index_chunk(self, chunk: Chunk) -> None:
        self.add(chunk.chunk_id, chunk.content, chunk.section)

    def frequency(self, word: str, item_id: str) -> int:
        postings = self._postings.get(word)
        if not postings:
            return 0
        return postings.count(item_id)

    def postings(self, word: str) -> list[str]:
        # copy so callers cannot mutate the index
        return list(self._postings.get(word, ()))

    def size(self) -> int:
        return len(self._postings)

    def clear(self) -> None:
        self._postings.clear()
        logger.debug("Cleared lexical index")

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, word: object) -> bool:
        return word in self._postings
