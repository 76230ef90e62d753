# src/rag_kit/embeddings/openai.py

import asyncio
import logging
from time import monotonic
from typing import Any

from openai import AsyncOpenAI, OpenAIError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from rag_kit.errors import EmbeddingMismatchError
from rag_kit.observability import names
from rag_kit.observability.base import MetricsHook, NoOpMetricsHook

from .base import Embedding, EmbeddingsClient, validate_embeddings

logger = logging.getLogger(__name__)

_LABELS = {"backend": "openai"}


class OpenAIEmbeddingsClient(EmbeddingsClient):
    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-ada-002",
        timeout: float = 10,
        batch_size: int = 100,
        dimensions: int | None = None,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ):
        self._client = AsyncOpenAI(api_key=api_key, timeout=timeout)
        self._model = model
        self._batch_size = batch_size
        self._dimensions = dimensions
        self.metrics_hook = metrics_hook
        logger.info(
            "Initialized OpenAIEmbeddingsClient with model=%s, timeout=%s, batch_size=%s",
            model,
            timeout,
            batch_size,
        )

    async def embed(self, texts: list[str]) -> list[Embedding]:
        if not texts:
            logger.debug("Empty input, returning empty list")
            return []

        start = monotonic()
        logger.info("Embedding %d texts in batches of %d", len(texts), self._batch_size)

        batches = [
            texts[batch_start : batch_start + self._batch_size]
            for batch_start in range(0, len(texts), self._batch_size)
        ]

        logger.debug("Processing %d batches concurrently", len(batches))
        responses = await asyncio.gather(
            *[self._embed_batch(batch) for batch in batches]
        )

        # asyncio.gather keeps batch order, so the flattened list is in input order
        embeddings: list[Embedding] = []
        for batch, response in zip(batches, responses):
            if len(response.data) != len(batch):
                self.metrics_hook.increment(
                    names.EMBEDDINGS_ERRORS_TOTAL, labels=_LABELS
                )
                raise EmbeddingMismatchError(
                    f"Batch of {len(batch)} texts returned "
                    f"{len(response.data)} embeddings",
                    expected=len(batch),
                    actual=len(response.data),
                )
            for data in response.data:
                embeddings.append(Embedding(vector=list(data.embedding)))

        try:
            validate_embeddings(texts, embeddings, self._dimensions)
        except EmbeddingMismatchError:
            self.metrics_hook.increment(names.EMBEDDINGS_ERRORS_TOTAL, labels=_LABELS)
            raise

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(
            names.EMBEDDINGS_DURATION, elapsed_ms, labels=_LABELS
        )
        self.metrics_hook.increment(names.EMBEDDINGS_REQUESTS_TOTAL, labels=_LABELS)
        self.metrics_hook.record_gauge(
            names.EMBEDDINGS_BATCH_SIZE, len(texts), labels=_LABELS
        )
        logger.info("Successfully embedded %d texts", len(embeddings))
        return embeddings

    async def _embed_batch(self, batch: list[str]) -> Any:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(3),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            retry=retry_if_exception_type(OpenAIError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                return await self._client.embeddings.create(
                    model=self._model,
                    input=batch,
                )
