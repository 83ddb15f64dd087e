"""Tests for search_index module."""
import dataclasses
import threading

import pytest

from src.search_index import InvertedIndex
from src.tokenizer import extract_terms
from tests.conftest import make_bookmark


def _snapshot(index):
    return {term: dict(index.postings(term)) for term in index.terms()}


class TestAdd:
    def test_counts_term_frequency(self):
        index = InvertedIndex()
        index.add(make_bookmark("a", "rust rust", tags=["rust"]))
        assert index.frequency("rust", "a") == 3

    def test_stores_snapshot(self):
        index = InvertedIndex()
        bookmark = make_bookmark("a", "Title")
        index.add(bookmark)
        assert index.get("a") is bookmark
        assert "a" in index

    def test_bookmark_without_terms_is_recorded(self):
        index = InvertedIndex()
        index.add(make_bookmark("empty"))
        stats = index.stats()
        assert stats.total_bookmarks == 1
        assert stats.total_terms == 0

    def test_duplicate_id_replaces_previous_version(self):
        index = InvertedIndex()
        index.add(make_bookmark("a", "old words"))
        index.add(make_bookmark("a", "new words"))
        assert index.postings("old") is None
        assert index.frequency("words", "a") == 1
        assert len(index) == 1


class TestRemove:
    def test_unknown_id_is_noop(self, index):
        before = _snapshot(index)
        index.remove("does-not-exist")
        assert _snapshot(index) == before

    def test_add_then_remove_restores_state(self, index):
        before = _snapshot(index)
        stats_before = index.stats()

        index.add(make_bookmark("new", "Python Rust", "https://rust-lang.org", tags=["python"]))
        index.remove("new")

        assert _snapshot(index) == before
        assert index.stats() == stats_before
        assert index.get("new") is None

    def test_prunes_empty_terms(self):
        index = InvertedIndex()
        index.add(make_bookmark("a", "unique"))
        index.remove("a")
        assert index.postings("unique") is None
        assert index.stats().total_terms == 0

    def test_keeps_terms_shared_with_other_bookmarks(self):
        index = InvertedIndex()
        index.add(make_bookmark("a", "shared one"))
        index.add(make_bookmark("b", "shared two"))
        index.remove("a")
        assert index.postings("shared") == {"b": 1}


class TestUpdate:
    def test_postings_reflect_only_new_content(self):
        index = InvertedIndex()
        original = make_bookmark("a", "golang tutorial", tags=["go"])
        index.add(original)
        index.update(dataclasses.replace(original, title="python tutorial", tags=("py",)))

        assert index.postings("golang") is None
        assert index.postings("go") is None
        assert index.frequency("python", "a") == 1
        assert index.frequency("tutorial", "a") == 1

    def test_update_equals_fresh_add(self):
        fresh = InvertedIndex()
        updated = InvertedIndex()
        new_version = make_bookmark("a", "new title", "https://new.example.com")

        fresh.add(new_version)
        updated.add(make_bookmark("a", "old title", "https://old.example.com"))
        updated.update(new_version)

        assert _snapshot(updated) == _snapshot(fresh)

    def test_update_unknown_id_adds(self):
        index = InvertedIndex()
        index.update(make_bookmark("a", "hello"))
        assert index.frequency("hello", "a") == 1


class TestRebuild:
    def test_replaces_everything(self, index):
        index.rebuild([make_bookmark("x", "fresh")])
        assert index.stats().total_bookmarks == 1
        assert index.postings("python") is None

    def test_idempotent(self, sample_bookmarks):
        index = InvertedIndex()
        index.rebuild(sample_bookmarks)
        first = _snapshot(index)
        index.rebuild(sample_bookmarks)
        assert _snapshot(index) == first
        assert index.stats().total_bookmarks == len(sample_bookmarks)

    def test_preserves_input_order(self, sample_bookmarks):
        index = InvertedIndex()
        index.rebuild(reversed(sample_bookmarks))
        assert [b.id for b in index.bookmarks()] == ["4", "3", "2", "1"]

    def test_duplicate_ids_in_input_keep_last(self):
        index = InvertedIndex()
        index.rebuild([make_bookmark("a", "old words"), make_bookmark("a", "new words")])
        assert index.postings("old") is None
        assert index.frequency("words", "a") == 1
        assert index.stats().total_bookmarks == 1
        assert index.get("a").title == "new words"

    def test_clear(self, index):
        index.clear()
        assert index.stats().total_bookmarks == 0
        assert index.stats().total_terms == 0


class TestStats:
    def test_counts_distinct_terms(self):
        index = InvertedIndex()
        bookmark = make_bookmark("a", "one two two", tags=["three"])
        index.add(bookmark)
        assert index.stats().total_terms == len(set(extract_terms(bookmark)))


class TestConcurrency:
    def test_parallel_mutations_keep_index_consistent(self):
        index = InvertedIndex()

        def worker(prefix):
            for i in range(50):
                bookmark_id = f"{prefix}-{i}"
                index.add(make_bookmark(bookmark_id, f"common {prefix}"))
                if i % 2:
                    index.remove(bookmark_id)

        threads = [threading.Thread(target=worker, args=(p,)) for p in ("a", "b", "c")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(index) == 75
        assert len(index.postings("common")) == 75
