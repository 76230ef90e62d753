from .chunking import Chunk, chunk_section, chunk_sections, validate_window

__all__ = [
    "Chunk",
    "chunk_section",
    "chunk_sections",
    "validate_window",
]
