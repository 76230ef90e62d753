# src/rag_kit/embeddings/config.py

from dataclasses import dataclass
from typing import Literal

Provider = Literal["openai", "local"]


@dataclass(frozen=True)
class EmbeddingsConfig:
    provider: Provider
    model: str
    timeout: float = 30.0
    batch_size: int = 100
    # fixed per deployment; checked against every response when set
    dimensions: int | None = None

    # provider-specific (used only when relevant)
    api_key: str | None = None

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")
