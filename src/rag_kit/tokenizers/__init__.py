from .base import Tokenizer, estimate_tokens
from .tiktoken import TiktokenTokenizer

__all__ = [
    "TiktokenTokenizer",
    "Tokenizer",
    "estimate_tokens",
]
