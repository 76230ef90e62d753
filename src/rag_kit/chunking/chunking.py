import logging
from collections.abc import Iterable
from dataclasses import dataclass
from time import monotonic

from rag_kit.observability import names
from rag_kit.observability.base import MetricsHook, NoOpMetricsHook
from rag_kit.parsers.models import Section
from rag_kit.tokenizers.base import Tokenizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Chunk:
    chunk_id: str
    content: str
    section_path: list[str]
    token_count: int
    offset_start: int
    offset_end: int
    metadata: dict

    @property
    def span(self) -> tuple[int, int]:
        return (self.offset_start, self.offset_end)

    @property
    def section(self) -> str:
        return " > ".join(h for h in self.section_path if h)


def validate_window(max_tokens: int, overlap_tokens: int) -> None:
    if max_tokens <= 0:
        raise ValueError("max_tokens must be > 0")
    if overlap_tokens < 0:
        raise ValueError("overlap_tokens must be >= 0")
    if overlap_tokens >= max_tokens:
        raise ValueError("overlap_tokens must be < max_tokens")


def chunk_section(
    section: Section,
    *,
    tokenizer: Tokenizer,
    max_tokens: int,
    overlap_tokens: int,
    section_index: int = 0,
    metadata: dict | None = None,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> list[Chunk]:
    """Split one section into token-bounded, overlapping chunks.

    A section that fits in ``max_tokens`` becomes a single chunk with the
    section's exact content and span. Larger sections are cut into windows
    of ``max_tokens`` tokens, each starting ``overlap_tokens`` before the
    previous window's end. Character spans of split chunks are a linear
    estimate from token positions, not exact offsets.
    """
    start = monotonic()
    validate_window(max_tokens, overlap_tokens)
    metadata = metadata or {}
    source_id = metadata.get("source_id", "unknown")

    tokens = tokenizer.encode(section.content)
    total = len(tokens)
    chunks: list[Chunk] = []

    def make_chunk(
        index: int, content: str, token_count: int, offset_start: int, offset_end: int
    ) -> Chunk:
        return Chunk(
            chunk_id=f"{source_id}:{section_index}:{index}",
            content=content,
            section_path=list(section.heading_path),
            token_count=token_count,
            offset_start=offset_start,
            offset_end=offset_end,
            metadata={
                **metadata,
                "heading_path": list(section.heading_path),
                "level": section.level,
                "chunk_index": index,
            },
        )

    if total <= max_tokens:
        chunks.append(
            make_chunk(
                0, section.content, total, section.start_offset, section.end_offset
            )
        )
    else:
        char_len = section.end_offset - section.start_offset
        window_start = 0
        while True:
            window_end = min(window_start + max_tokens, total)
            window = tokens[window_start:window_end]
            chunks.append(
                make_chunk(
                    len(chunks),
                    tokenizer.decode(window),
                    len(window),
                    section.start_offset + window_start * char_len // total,
                    section.start_offset + window_end * char_len // total,
                )
            )
            logger.debug(
                "Chunk window [%d, %d) of %d tokens", window_start, window_end, total
            )
            if window_end == total:
                break
            window_start = window_end - overlap_tokens

    elapsed_ms = 1000 * (monotonic() - start)
    metrics_hook.record_latency(names.CHUNKING_DURATION, elapsed_ms)
    metrics_hook.increment(names.CHUNKING_CHUNKS_CREATED, len(chunks))
    return chunks


def chunk_sections(
    sections: Iterable[Section],
    *,
    tokenizer: Tokenizer,
    max_tokens: int,
    overlap_tokens: int,
    metadata: dict,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> list[Chunk]:
    # reject bad windows even when there is nothing to chunk
    validate_window(max_tokens, overlap_tokens)

    chunks: list[Chunk] = []
    for section_index, section in enumerate(sections):
        chunks.extend(
            chunk_section(
                section,
                tokenizer=tokenizer,
                max_tokens=max_tokens,
                overlap_tokens=overlap_tokens,
                section_index=section_index,
                metadata=metadata,
                metrics_hook=metrics_hook,
            )
        )
    logger.info(
        "Chunked document %s into %d chunks",
        metadata.get("source_id", "unknown"),
        len(chunks),
    )
    return chunks
