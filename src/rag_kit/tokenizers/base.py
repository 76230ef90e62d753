from typing import Protocol


class Tokenizer(Protocol):
    """Deterministic text <-> token id mapping.

    ``decode(encode(text)[i:j])`` must be usable as chunk text for any
    slice boundary the chunker picks.
    """

    def encode(self, text: str) -> list[int]: ...

    def decode(self, token_ids: list[int]) -> str: ...


def estimate_tokens(text: str) -> int:
    """Rough token estimate (~4 characters per token)."""
    return len(text) // 4
