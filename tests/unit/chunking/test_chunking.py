import pytest

from rag_kit.chunking.chunking import chunk_section, chunk_sections, validate_window
from rag_kit.errors import TokenizationError
from rag_kit.observability import names
from rag_kit.observability.base import InMemoryMetricsHook
from rag_kit.parsers.markdown_parser import segment_markdown
from rag_kit.parsers.models import Section


def _section(content: str, start: int = 0, path: list[str] | None = None) -> Section:
    path = path or []
    return Section(
        content=content,
        heading_path=path,
        level=len(path),
        start_offset=start,
        end_offset=start + len(content),
    )


class TestChunkSection:
    def test_single_chunk_when_section_fits(self, tokenizer) -> None:
        """A section within max_tokens is one chunk with its exact content."""
        section = _section("hello world", start=7, path=["Intro"])

        result = chunk_section(
            section, tokenizer=tokenizer, max_tokens=500, overlap_tokens=50
        )

        assert len(result) == 1
        assert result[0].content == "hello world"
        assert result[0].token_count == 11
        assert result[0].span == (7, 18)
        assert result[0].section_path == ["Intro"]

    def test_long_section_is_windowed(self, tokenizer) -> None:
        """1200 tokens with 500/50 windows give 500, 500 and 300 tokens."""
        section = _section("x" * 1200)

        result = chunk_section(
            section, tokenizer=tokenizer, max_tokens=500, overlap_tokens=50
        )

        assert [c.token_count for c in result] == [500, 500, 300]
        assert [c.span for c in result] == [(0, 500), (450, 950), (900, 1200)]

    def test_windows_share_overlap(self, tokenizer) -> None:
        section = _section("abcdefghij")

        result = chunk_section(section, tokenizer=tokenizer, max_tokens=4, overlap_tokens=2)

        assert [c.content for c in result] == ["abcd", "cdef", "efgh", "ghij"]

    def test_windows_cover_every_token(self, tokenizer) -> None:
        """Summed tokens minus overlaps equal the section's token count."""
        section = _section("y" * 1037)
        overlap = 13

        result = chunk_section(
            section, tokenizer=tokenizer, max_tokens=100, overlap_tokens=overlap
        )

        covered = sum(c.token_count for c in result) - overlap * (len(result) - 1)
        assert covered == 1037
        assert all(c.token_count <= 100 for c in result)

    def test_spans_stay_inside_section(self, tokenizer) -> None:
        section = _section("z" * 300, start=40)

        result = chunk_section(
            section, tokenizer=tokenizer, max_tokens=64, overlap_tokens=8
        )

        assert result[0].offset_start == 40
        assert result[-1].offset_end == 340
        for chunk in result:
            assert 40 <= chunk.offset_start <= chunk.offset_end <= 340

    def test_chunk_id_and_metadata(self, tokenizer) -> None:
        section = _section("abcdefgh", path=["A", "B"])

        result = chunk_section(
            section,
            tokenizer=tokenizer,
            max_tokens=4,
            overlap_tokens=0,
            section_index=3,
            metadata={"source_id": "doc1", "author": "test"},
        )

        assert [c.chunk_id for c in result] == ["doc1:3:0", "doc1:3:1"]
        assert result[1].metadata == {
            "source_id": "doc1",
            "author": "test",
            "heading_path": ["A", "B"],
            "level": 2,
            "chunk_index": 1,
        }
        assert result[0].section == "A > B"

    def test_chunk_id_uses_unknown_when_no_source_id(self, tokenizer) -> None:
        result = chunk_section(
            _section("hello"), tokenizer=tokenizer, max_tokens=10, overlap_tokens=0
        )

        assert result[0].chunk_id == "unknown:0:0"

    def test_tokenizer_failure_propagates(self) -> None:
        class BrokenTokenizer:
            def encode(self, text: str) -> list[int]:
                raise TokenizationError("boom")

            def decode(self, token_ids: list[int]) -> str:
                return ""

        with pytest.raises(TokenizationError):
            chunk_section(
                _section("text"),
                tokenizer=BrokenTokenizer(),
                max_tokens=10,
                overlap_tokens=0,
            )

    def test_records_metrics(self, tokenizer) -> None:
        hook = InMemoryMetricsHook()

        chunk_section(
            _section("x" * 1200),
            tokenizer=tokenizer,
            max_tokens=500,
            overlap_tokens=50,
            metrics_hook=hook,
        )

        assert hook.counters[names.CHUNKING_CHUNKS_CREATED] == 3


class TestChunkSections:
    def test_two_headings_give_two_chunks(self, tokenizer) -> None:
        body = " ".join(["word"] * 60)
        sections = segment_markdown(f"# A\n\n{body}\n\n# B\n\n{body}")

        result = chunk_sections(
            sections,
            tokenizer=tokenizer,
            max_tokens=500,
            overlap_tokens=50,
            metadata={"source_id": "doc"},
        )

        assert len(result) == 2
        assert [c.section_path for c in result] == [["A"], ["B"]]
        assert [c.chunk_id for c in result] == ["doc:0:0", "doc:1:0"]

    def test_no_sections_no_chunks(self, tokenizer) -> None:
        result = chunk_sections(
            [], tokenizer=tokenizer, max_tokens=10, overlap_tokens=0, metadata={}
        )

        assert result == []

    def test_invalid_window_rejected_without_sections(self, tokenizer) -> None:
        with pytest.raises(ValueError, match="overlap_tokens must be < max_tokens"):
            chunk_sections(
                [], tokenizer=tokenizer, max_tokens=10, overlap_tokens=10, metadata={}
            )


class TestValidateWindow:
    @pytest.mark.parametrize(
        ("max_tokens", "overlap_tokens", "message"),
        [
            (0, 0, "max_tokens must be > 0"),
            (-5, 0, "max_tokens must be > 0"),
            (10, -1, "overlap_tokens must be >= 0"),
            (10, 10, "overlap_tokens must be < max_tokens"),
            (10, 11, "overlap_tokens must be < max_tokens"),
        ],
    )
    def test_rejects_bad_windows(
        self, max_tokens: int, overlap_tokens: int, message: str
    ) -> None:
        with pytest.raises(ValueError, match=message):
            validate_window(max_tokens, overlap_tokens)

    def test_accepts_valid_window(self) -> None:
        validate_window(500, 50)
        validate_window(1, 0)
