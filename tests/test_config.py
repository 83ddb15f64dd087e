"""Tests for config module."""
import pytest

from src.config import Config, SearchConfig


class TestConfig:
    def test_default_values(self, monkeypatch):
        monkeypatch.delenv("BOOKMARKS_SEARCH_LIMIT", raising=False)
        monkeypatch.delenv("BOOKMARKS_SEARCH_MAX_LIMIT", raising=False)
        config = Config()
        assert config.search.default_limit == 20
        assert config.search.max_limit == 100
        assert config.db_path is None
        assert config.server_name == "bookmarks-search-index"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("BOOKMARKS_SEARCH_LIMIT", "5")
        monkeypatch.setenv("BOOKMARKS_SEARCH_MAX_LIMIT", "50")
        monkeypatch.setenv("BOOKMARKS_DB", "/tmp/test.db")
        monkeypatch.setenv("BOOKMARKS_SERVER_NAME", "my-bookmarks")

        config = Config.from_env()
        assert config.search.default_limit == 5
        assert config.search.max_limit == 50
        assert str(config.db_path) == "/tmp/test.db"
        assert config.server_name == "my-bookmarks"


class TestClampLimit:
    @pytest.mark.parametrize("requested, expected", [
        (None, 20),
        (0, 20),
        (-3, 20),
        (7, 7),
        (500, 100),
    ])
    def test_clamp(self, requested, expected):
        config = SearchConfig(default_limit=20, max_limit=100)
        assert config.clamp_limit(requested) == expected
