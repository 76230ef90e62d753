# src/rag_kit/tokenizers/tiktoken.py

import logging

import tiktoken

from rag_kit.errors import TokenizationError

from .base import Tokenizer

logger = logging.getLogger(__name__)


class TiktokenTokenizer(Tokenizer):
    """Tokenizer backed by a tiktoken encoding.

    Special tokens in the input are encoded as such instead of raising,
    so arbitrary document text is accepted.
    """

    def __init__(self, encoding: str = "p50k_base") -> None:
        self._encoding = tiktoken.get_encoding(encoding)
        self.encoding_name = encoding
        logger.info("Initialized TiktokenTokenizer with encoding=%s", encoding)

    def encode(self, text: str) -> list[int]:
        try:
            return self._encoding.encode(text, allowed_special="all")
        except Exception as exc:
            raise TokenizationError(
                f"Failed to encode text with {self.encoding_name}: {exc}"
            ) from exc

    def decode(self, token_ids: list[int]) -> str:
        try:
            return self._encoding.decode(token_ids)
        except Exception as exc:
            raise TokenizationError(
                f"Failed to decode {len(token_ids)} tokens with "
                f"{self.encoding_name}: {exc}"
            ) from exc

    def count(self, text: str) -> int:
        return len(self.encode(text))
