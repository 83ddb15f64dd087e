"""Tests for bookmarks_db module."""
import sqlite3

import pytest
import pytest_asyncio

from src.bookmarks_db import BookmarkDatabase
from src.models import Category, Tag
from tests.conftest import make_bookmark


@pytest_asyncio.fixture
async def db(db_path):
    """Create and initialize a test database."""
    d = BookmarkDatabase(db_path)
    await d.initialize()
    yield d
    await d.close()


@pytest.mark.asyncio
class TestBookmarkDatabase:
    async def test_initialize_creates_db(self, db_path):
        d = BookmarkDatabase(db_path)
        await d.initialize()
        assert db_path.exists()
        await d.close()

    async def test_uninitialized_raises(self, db_path):
        d = BookmarkDatabase(db_path)
        with pytest.raises(RuntimeError):
            await d.get_all_bookmarks()

    async def test_add_and_get(self, db):
        bookmark = make_bookmark(
            "a", "Title", "https://a.com",
            description="desc", tags=["x", "y"], favorite=True,
        )
        await db.add_bookmark(bookmark)
        stored = await db.get_bookmark("a")
        assert stored == bookmark
        assert stored.tags == ("x", "y")
        assert stored.favorite is True

    async def test_get_nonexistent_returns_none(self, db):
        assert await db.get_bookmark("missing") is None

    async def test_add_duplicate_id_raises(self, db):
        await db.add_bookmark(make_bookmark("a", "one"))
        with pytest.raises(sqlite3.IntegrityError):
            await db.add_bookmark(make_bookmark("a", "two"))

    async def test_update(self, db):
        await db.add_bookmark(make_bookmark("a", "old"))
        await db.update_bookmark(make_bookmark("a", "new"))
        assert (await db.get_bookmark("a")).title == "new"

    async def test_delete(self, db):
        await db.add_bookmark(make_bookmark("a", "x"))
        assert await db.delete_bookmark("a") is True
        assert await db.get_bookmark("a") is None
        assert await db.delete_bookmark("a") is False

    async def test_get_all_keeps_insertion_order(self, db):
        for bookmark_id in ["c", "a", "b"]:
            await db.add_bookmark(make_bookmark(bookmark_id, bookmark_id))
        assert [b.id for b in await db.get_all_bookmarks()] == ["c", "a", "b"]

    async def test_get_by_category(self, db):
        await db.add_bookmark(make_bookmark("a", "x", category_id="dev"))
        await db.add_bookmark(make_bookmark("b", "y", category_id="work"))
        result = await db.get_bookmarks_by_category("dev")
        assert [b.id for b in result] == ["a"]

    async def test_categories(self, db):
        await db.add_category(Category(id="c1", name="Dev", created_at=1, updated_at=1))
        await db.add_category(Category(id="c2", name="Py", parent_id="c1", created_at=1, updated_at=1))
        assert (await db.get_category("c2")).parent_id == "c1"
        assert len(await db.get_all_categories()) == 2
        assert await db.delete_category("c2") is True
        assert await db.get_category("c2") is None

    async def test_tags(self, db):
        await db.add_tag(Tag(id="t1", name="python", created_at=1, usage_count=2))
        tag = await db.get_tag_by_name("python")
        assert tag.id == "t1"
        tag.usage_count = 5
        await db.update_tag(tag)
        assert (await db.get_tag("t1")).usage_count == 5

    async def test_tag_names_unique(self, db):
        await db.add_tag(Tag(id="t1", name="python"))
        with pytest.raises(sqlite3.IntegrityError):
            await db.add_tag(Tag(id="t2", name="python"))

    async def test_export_import_roundtrip(self, db, tmp_path):
        await db.add_bookmark(make_bookmark("a", "A", tags=["x"]))
        await db.add_category(Category(id="c1", name="Dev"))
        await db.add_tag(Tag(id="t1", name="x", usage_count=1))
        data = await db.export_data()
        assert data["version"] == 1

        other = BookmarkDatabase(tmp_path / "other.db")
        await other.initialize()
        await other.add_bookmark(make_bookmark("stale", "gone"))
        await other.import_data(data)

        assert [b.id for b in await other.get_all_bookmarks()] == ["a"]
        assert (await other.get_tag_by_name("x")).usage_count == 1
        await other.close()

    async def test_failed_import_leaves_data(self, db):
        await db.add_bookmark(make_bookmark("keep", "kept"))
        bad = {"bookmarks": [{"id": "x", "title": "x"}, {"id": "x", "title": "dup"}]}
        with pytest.raises(sqlite3.IntegrityError):
            await db.import_data(bad)
        assert [b.id for b in await db.get_all_bookmarks()] == ["keep"]
