from rag_kit.chunking.chunking import Chunk
from rag_kit.indexing.lexical import LexicalIndex, normalize_terms, normalize_word


class TestNormalize:
    def test_lowercases_and_strips_punctuation(self) -> None:
        assert normalize_word("Rollback!") == "rollback"
        assert normalize_word("e-mail") == "email"
        assert normalize_word("v2.0") == "v20"

    def test_terms_skip_empty_words(self) -> None:
        assert normalize_terms("Deploy -- the  APP, now!") == ["deploy", "the", "app", "now"]

    def test_unicode_letters_are_kept(self) -> None:
        assert normalize_word("Café") == "café"


class TestLexicalIndex:
    def test_frequency_counts_occurrences(self) -> None:
        index = LexicalIndex()
        index.add("a", "cat dog cat")
        index.add("b", "cat")

        assert index.frequency("cat", "a") == 2
        assert index.frequency("cat", "b") == 1
        assert index.frequency("dog", "b") == 0
        assert index.frequency("bird", "a") == 0

    def test_add_accepts_several_texts(self) -> None:
        index = LexicalIndex()
        index.add("a", "body text", "Title Text")

        assert index.frequency("text", "a") == 2
        assert "title" in index

    def test_postings_returns_copy(self) -> None:
        index = LexicalIndex()
        index.add("a", "cat")

        postings = index.postings("cat")
        postings.append("b")

        assert index.postings("cat") == ["a"]
        assert index.postings("missing") == []

    def test_size_and_clear(self) -> None:
        index = LexicalIndex()
        index.add("a", "one two two")

        assert index.size() == 2
        assert len(index) == 2

        index.clear()

        assert index.size() == 0
        assert "one" not in index

    def test_index_chunk_includes_section_label(self) -> None:
        chunk = Chunk(
            chunk_id="doc:0:0",
            content="steps here",
            section_path=["Runbook", "Rollback"],
            token_count=10,
            offset_start=0,
            offset_end=10,
            metadata={},
        )
        index = LexicalIndex()

        index.index_chunk(chunk)

        assert index.frequency("rollback", "doc:0:0") == 1
        assert index.frequency("steps", "doc:0:0") == 1
