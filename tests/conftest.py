import pytest

from rag_kit.embeddings.base import Embedding
from rag_kit.observability.base import NoOpMetricsHook

VOCABULARY = ("rollback", "deployment", "cat", "dog", "release")


class CharTokenizer:
    """One token per character, so token arithmetic is exact."""

    def encode(self, text: str) -> list[int]:
        return [ord(c) for c in text]

    def decode(self, token_ids: list[int]) -> str:
        return "".join(chr(i) for i in token_ids)


class BagOfWordsEmbeddings:
    """Counts vocabulary words; a small constant keeps vectors non-zero."""

    def __init__(self) -> None:
        self.metrics_hook = NoOpMetricsHook()
        self.calls: list[list[str]] = []

    async def embed(self, texts: list[str]) -> list[Embedding]:
        self.calls.append(list(texts))
        return [
            Embedding(vector=[0.01] + [float(t.lower().count(w)) for w in VOCABULARY])
            for t in texts
        ]


@pytest.fixture
def tokenizer() -> CharTokenizer:
    return CharTokenizer()


@pytest.fixture
def embeddings() -> BagOfWordsEmbeddings:
    return BagOfWordsEmbeddings()
