from rag_kit.observability.base import InMemoryMetricsHook
from rag_kit.observability import names
from rag_kit.parsers.events import EventKind, iter_events
from rag_kit.parsers.markdown_parser import MarkdownParser, segment_markdown


class TestSegmentMarkdown:
    def test_two_top_level_headings(self) -> None:
        """Each H1 starts a new section with its own path."""
        text = "# A\n\nbody text\n\n# B\n\nmore"

        sections = segment_markdown(text)

        assert len(sections) == 2
        assert sections[0].heading_path == ["A"]
        assert sections[0].level == 1
        assert "body text" in sections[0].content
        assert sections[1].heading_path == ["B"]
        assert "more" in sections[1].content

    def test_heading_text_is_kept_in_content(self) -> None:
        sections = segment_markdown("# Title\n\nbody")

        assert sections[0].content.startswith("Title")

    def test_offsets_cover_document(self) -> None:
        text = "# A\n\nbody text\n\n# B\n\nmore"

        sections = segment_markdown(text)

        assert sections[0].span == (0, 16)
        assert sections[1].span == (16, len(text))

    def test_body_excludes_heading_text(self) -> None:
        sections = segment_markdown("# Identity\n\nMy name is Sam.\n\n## Home `dir`\n\nx")

        assert sections[0].body.strip() == "My name is Sam."
        assert sections[1].body.strip() == "x"
        assert "`dir`" in sections[1].content[: sections[1].heading_length]

    def test_preamble_body_is_whole_content(self) -> None:
        sections = segment_markdown("just text")

        assert sections[0].heading_length == 0
        assert sections[0].body == sections[0].content

    def test_document_without_headings(self) -> None:
        """Body text before any heading is a level-0 section with no path."""
        sections = segment_markdown("just some text")

        assert len(sections) == 1
        assert sections[0].level == 0
        assert sections[0].heading_path == []
        assert sections[0].title == ""
        assert sections[0].span == (0, len("just some text"))

    def test_preamble_before_first_heading(self) -> None:
        sections = segment_markdown("intro\n\n# A\n\nbody")

        assert [s.heading_path for s in sections] == [[], ["A"]]

    def test_empty_and_blank_documents(self) -> None:
        assert segment_markdown("") == []
        assert segment_markdown("   \n\n  ") == []

    def test_nested_heading_path(self) -> None:
        text = "# Guide\n\n## Install\n\nsteps\n\n## Usage\n\nrun it\n\n# Other\n\nx"

        sections = segment_markdown(text)

        assert [s.heading_path for s in sections] == [
            ["Guide"],
            ["Guide", "Install"],
            ["Guide", "Usage"],
            ["Other"],
        ]
        assert sections[1].label == "Guide > Install"

    def test_skipped_level_is_padded(self) -> None:
        """A jump from H1 to H3 keeps path length equal to level."""
        sections = segment_markdown("# A\n\n### C\n\ntext")

        assert sections[1].heading_path == ["A", "", "C"]
        assert sections[1].level == 3
        assert sections[1].title == "C"
        assert sections[1].label == "A > C"

    def test_heading_only_section_is_kept(self) -> None:
        sections = segment_markdown("# A\n\n# B\n\nbody")

        assert [s.heading_path for s in sections] == [["A"], ["B"]]
        assert sections[0].content.strip() == "A"

    def test_fenced_code_is_wrapped(self) -> None:
        sections = segment_markdown("# Code\n\n```python\nx = 1\n```\n")

        assert "```\nx = 1\n" in sections[0].content
        assert sections[0].content.count("```") == 2

    def test_inline_code_is_backticked(self) -> None:
        sections = segment_markdown("Use `pip` to install")

        assert "`pip`" in sections[0].content

    def test_offsets_are_monotonic(self) -> None:
        text = "# A\n\none\n\n## B\n\ntwo\n\n### C\n\nthree\n\n# D\n\nfour"

        sections = segment_markdown(text)

        for previous, current in zip(sections, sections[1:]):
            assert previous.start_offset <= previous.end_offset
            assert previous.end_offset <= current.start_offset
        assert sections[-1].end_offset == len(text)

    def test_records_metrics(self) -> None:
        hook = InMemoryMetricsHook()

        MarkdownParser(metrics_hook=hook).segment("# A\n\nx\n\n# B\n\ny")

        assert hook.counters[names.SEGMENTING_SECTIONS_CREATED] == 2
        assert len(hook.latencies[names.SEGMENTING_DURATION]) == 1


class TestIterEvents:
    def test_heading_events_carry_level(self) -> None:
        events = list(iter_events("## Title\n"))

        kinds = [e.kind for e in events]
        assert kinds == [EventKind.HEADING_START, EventKind.TEXT, EventKind.HEADING_END]
        assert events[0].level == 2
        assert events[1].text == "Title"

    def test_soft_break_between_lines(self) -> None:
        events = list(iter_events("line one\nline two"))

        assert [e.kind for e in events] == [
            EventKind.TEXT,
            EventKind.SOFT_BREAK,
            EventKind.TEXT,
        ]

    def test_code_block_events(self) -> None:
        events = list(iter_events("```\ncode\n```\n"))

        assert [e.kind for e in events] == [
            EventKind.CODE_BLOCK_START,
            EventKind.TEXT,
            EventKind.CODE_BLOCK_END,
        ]
        assert events[1].text == "code\n"
