from .lexical import LexicalIndex, normalize_terms, normalize_word

__all__ = [
    "LexicalIndex",
    "normalize_terms",
    "normalize_word",
]
