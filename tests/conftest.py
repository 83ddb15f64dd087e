"""Shared fixtures for tests."""
import pytest

from src.models import Bookmark
from src.search_index import InvertedIndex


def make_bookmark(id="1", title="", url="", **kwargs) -> Bookmark:
    """Build a bookmark with sensible test defaults."""
    kwargs.setdefault("created_at", 1000)
    kwargs.setdefault("updated_at", 1000)
    return Bookmark(id=id, title=title, url=url, **kwargs)


@pytest.fixture
def sample_bookmarks():
    """A small, varied set of bookmarks."""
    return [
        make_bookmark(
            "1", "Python Docs", "https://docs.python.org/3/library",
            description="Official Python documentation covering the standard library.",
            tags=["python", "documentation"],
            category_id="dev",
            created_at=100, updated_at=400,
            favorite=True,
        ),
        make_bookmark(
            "2", "Jira Board", "https://jira.example.com/board",
            notes="Sprint planning board",
            tags=["work"],
            category_id="work",
            created_at=200, updated_at=300,
        ),
        make_bookmark(
            "3", "SQLite Guide", "https://sqlite.org/guide",
            description="Guide to using SQLite for data storage.",
            tags=["sqlite", "database", "tutorial"],
            category_id="dev",
            created_at=300, updated_at=200,
        ),
        make_bookmark(
            "4", "Stack Overflow", "https://stackoverflow.com",
            tags=["programming", "community"],
            created_at=400, updated_at=100,
            archived=True,
        ),
    ]


@pytest.fixture
def index(sample_bookmarks):
    """An index built from the sample bookmarks."""
    idx = InvertedIndex()
    idx.rebuild(sample_bookmarks)
    return idx


@pytest.fixture
def db_path(tmp_path):
    """Return path for a temporary bookmarks database."""
    return tmp_path / "test_bookmarks.db"
