"""Tests for tokenizer module."""
import pytest

from src.tokenizer import tokenize, extract_terms
from tests.conftest import make_bookmark


class TestTokenize:
    def test_lowercases_and_splits(self):
        assert tokenize("Hello World") == ["hello", "world"]

    def test_punctuation_is_separator(self):
        assert tokenize("rust-lang.org/book?x=1") == ["rust", "lang", "org", "book", "x", "1"]

    def test_underscore_and_digits_kept(self):
        assert tokenize("snake_case v2") == ["snake_case", "v2"]

    @pytest.mark.parametrize("text", ["", "   ", "\t\n", None, "!!! ---"])
    def test_empty_inputs(self, text):
        assert tokenize(text) == []

    def test_cjk_characters_are_single_tokens(self):
        assert tokenize("中文") == ["中", "文"]

    def test_mixed_cjk_and_latin(self):
        assert tokenize("学习Python编程") == ["学", "习", "python", "编", "程"]

    def test_non_ascii_letters_are_separators(self):
        assert tokenize("café") == ["caf"]

    def test_repeated_words_kept(self):
        assert tokenize("go go go") == ["go", "go", "go"]


class TestExtractTerms:
    def test_field_order(self):
        bookmark = make_bookmark(
            title="Title",
            url="https://host.io/path",
            description="desc",
            notes="note",
            tags=["tag"],
        )
        assert extract_terms(bookmark) == ["title", "desc", "note", "host", "io", "path", "tag"]

    def test_url_uses_hostname_and_path(self):
        bookmark = make_bookmark(url="https://example.com:8080/docs/intro?q=search#top")
        assert extract_terms(bookmark) == ["example", "com", "docs", "intro"]

    def test_unparseable_url_falls_back_to_raw(self):
        bookmark = make_bookmark(url="example.com/some page")
        assert extract_terms(bookmark) == ["example", "com", "some", "page"]

    def test_http_without_host_falls_back_to_raw(self):
        bookmark = make_bookmark(url="http://")
        assert extract_terms(bookmark) == ["http"]

    def test_invalid_ipv6_falls_back_to_raw(self):
        bookmark = make_bookmark(url="http://[::1/x")
        assert extract_terms(bookmark) == ["http", "1", "x"]

    def test_missing_optional_fields(self):
        bookmark = make_bookmark(title="Only Title")
        assert extract_terms(bookmark) == ["only", "title"]

    def test_duplicates_preserved(self):
        bookmark = make_bookmark(title="rust", tags=["rust", "rust"])
        assert extract_terms(bookmark).count("rust") == 3

    def test_empty_bookmark_has_no_terms(self):
        assert extract_terms(make_bookmark()) == []
