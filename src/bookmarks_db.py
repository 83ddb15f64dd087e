"""SQLite store for bookmarks, categories and tags."""
import json
import aiosqlite
from pathlib import Path
from typing import Optional, List, Dict, Any

from src.models import Bookmark, Category, Tag


# Default database location
DEFAULT_DB_PATH = Path.home() / ".bookmarks-index" / "bookmarks.db"

SCHEMA_VERSION = 1


class BookmarkDatabase:
    """Async SQLite store; the source of truth the search index is built from."""

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize the store.

        Args:
            db_path: Path to SQLite database. Defaults to ~/.bookmarks-index/bookmarks.db
        """
        self.db_path = db_path or DEFAULT_DB_PATH
        self._connection: Optional[aiosqlite.Connection] = None

    async def initialize(self) -> None:
        """Initialize the database, creating tables if needed."""
        if self._connection:
            return

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row

        await self._connection.executescript("""
            CREATE TABLE IF NOT EXISTS bookmarks (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                url TEXT NOT NULL,
                description TEXT,
                notes TEXT,
                category_id TEXT,
                tags TEXT NOT NULL DEFAULT '[]',
                created_at INTEGER NOT NULL,
                updated_at INTEGER NOT NULL,
                favorite INTEGER NOT NULL DEFAULT 0,
                archived INTEGER NOT NULL DEFAULT 0
            );
            CREATE INDEX IF NOT EXISTS idx_bookmarks_category ON bookmarks(category_id);
            CREATE INDEX IF NOT EXISTS idx_bookmarks_created ON bookmarks(created_at);
            CREATE INDEX IF NOT EXISTS idx_bookmarks_updated ON bookmarks(updated_at);
            CREATE INDEX IF NOT EXISTS idx_bookmarks_favorite ON bookmarks(favorite);
            CREATE INDEX IF NOT EXISTS idx_bookmarks_archived ON bookmarks(archived);

            CREATE TABLE IF NOT EXISTS categories (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                description TEXT,
                color TEXT,
                icon TEXT,
                parent_id TEXT,
                created_at INTEGER NOT NULL,
                updated_at INTEGER NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_categories_parent ON categories(parent_id);
            CREATE INDEX IF NOT EXISTS idx_categories_name ON categories(name);

            CREATE TABLE IF NOT EXISTS tags (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL UNIQUE,
                color TEXT,
                created_at INTEGER NOT NULL,
                usage_count INTEGER NOT NULL DEFAULT 0
            );
            CREATE INDEX IF NOT EXISTS idx_tags_usage ON tags(usage_count);
        """)

        await self._connection.commit()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _conn(self) -> aiosqlite.Connection:
        if not self._connection:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._connection

    # ------------------------------------------------------------------
    # Bookmarks
    # ------------------------------------------------------------------

    async def add_bookmark(self, bookmark: Bookmark) -> None:
        """Insert a new bookmark.

        Raises:
            sqlite3.IntegrityError: If a bookmark with the same ID exists
        """
        conn = self._conn()
        await self._insert_bookmark(conn, bookmark)
        await conn.commit()

    async def update_bookmark(self, bookmark: Bookmark) -> None:
        """Insert or replace a bookmark."""
        conn = self._conn()
        await conn.execute("""
            INSERT OR REPLACE INTO bookmarks
                (id, title, url, description, notes, category_id, tags,
                 created_at, updated_at, favorite, archived)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, self._bookmark_params(bookmark))
        await conn.commit()

    async def delete_bookmark(self, bookmark_id: str) -> bool:
        """Delete a bookmark.

        Returns:
            True if deleted, False if not found
        """
        conn = self._conn()
        cursor = await conn.execute("DELETE FROM bookmarks WHERE id = ?", (bookmark_id,))
        await conn.commit()
        return cursor.rowcount > 0

    async def get_bookmark(self, bookmark_id: str) -> Optional[Bookmark]:
        cursor = await self._conn().execute(
            "SELECT * FROM bookmarks WHERE id = ?",
            (bookmark_id,)
        )
        row = await cursor.fetchone()

        if row is None:
            return None

        return self._row_to_bookmark(row)

    async def get_all_bookmarks(self) -> List[Bookmark]:
        """Get all bookmarks in insertion order."""
        cursor = await self._conn().execute("SELECT * FROM bookmarks ORDER BY rowid")
        rows = await cursor.fetchall()
        return [self._row_to_bookmark(row) for row in rows]

    async def get_bookmarks_by_category(self, category_id: str) -> List[Bookmark]:
        cursor = await self._conn().execute(
            "SELECT * FROM bookmarks WHERE category_id = ? ORDER BY rowid",
            (category_id,)
        )
        rows = await cursor.fetchall()
        return [self._row_to_bookmark(row) for row in rows]

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def add_category(self, category: Category) -> None:
        conn = self._conn()
        await self._insert_category(conn, category)
        await conn.commit()

    async def update_category(self, category: Category) -> None:
        conn = self._conn()
        await conn.execute("""
            INSERT OR REPLACE INTO categories
                (id, name, description, color, icon, parent_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, self._category_params(category))
        await conn.commit()

    async def delete_category(self, category_id: str) -> bool:
        conn = self._conn()
        cursor = await conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
        await conn.commit()
        return cursor.rowcount > 0

    async def get_category(self, category_id: str) -> Optional[Category]:
        cursor = await self._conn().execute(
            "SELECT * FROM categories WHERE id = ?",
            (category_id,)
        )
        row = await cursor.fetchone()
        return Category.from_dict(dict(row)) if row else None

    async def get_all_categories(self) -> List[Category]:
        cursor = await self._conn().execute("SELECT * FROM categories ORDER BY rowid")
        rows = await cursor.fetchall()
        return [Category.from_dict(dict(row)) for row in rows]

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    async def add_tag(self, tag: Tag) -> None:
        conn = self._conn()
        await self._insert_tag(conn, tag)
        await conn.commit()

    async def update_tag(self, tag: Tag) -> None:
        conn = self._conn()
        await conn.execute(
            "INSERT OR REPLACE INTO tags (id, name, color, created_at, usage_count) VALUES (?, ?, ?, ?, ?)",
            (tag.id, tag.name, tag.color, tag.created_at, tag.usage_count),
        )
        await conn.commit()

    async def delete_tag(self, tag_id: str) -> bool:
        conn = self._conn()
        cursor = await conn.execute("DELETE FROM tags WHERE id = ?", (tag_id,))
        await conn.commit()
        return cursor.rowcount > 0

    async def get_tag(self, tag_id: str) -> Optional[Tag]:
        cursor = await self._conn().execute("SELECT * FROM tags WHERE id = ?", (tag_id,))
        row = await cursor.fetchone()
        return Tag.from_dict(dict(row)) if row else None

    async def get_tag_by_name(self, name: str) -> Optional[Tag]:
        cursor = await self._conn().execute("SELECT * FROM tags WHERE name = ?", (name,))
        row = await cursor.fetchone()
        return Tag.from_dict(dict(row)) if row else None

    async def get_all_tags(self) -> List[Tag]:
        cursor = await self._conn().execute("SELECT * FROM tags ORDER BY rowid")
        rows = await cursor.fetchall()
        return [Tag.from_dict(dict(row)) for row in rows]

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    async def export_data(self) -> Dict[str, Any]:
        """Export everything as a JSON-serializable dict.

        Returns:
            Dict with 'version', 'bookmarks', 'categories' and 'tags' keys
        """
        bookmarks = await self.get_all_bookmarks()
        categories = await self.get_all_categories()
        tags = await self.get_all_tags()

        return {
            "version": SCHEMA_VERSION,
            "bookmarks": [b.to_dict() for b in bookmarks],
            "categories": [c.to_dict() for c in categories],
            "tags": [t.to_dict() for t in tags],
        }

    async def import_data(self, data: Dict[str, Any]) -> None:
        """Replace all stored data with an exported payload.

        Runs in a single transaction; on error nothing is changed.

        Args:
            data: Dict as produced by export_data()
        """
        conn = self._conn()
        try:
            await conn.execute("DELETE FROM bookmarks")
            await conn.execute("DELETE FROM categories")
            await conn.execute("DELETE FROM tags")

            for item in data.get("bookmarks", []):
                await self._insert_bookmark(conn, Bookmark.from_dict(item))
            for item in data.get("categories", []):
                await self._insert_category(conn, Category.from_dict(item))
            for item in data.get("tags", []):
                await self._insert_tag(conn, Tag.from_dict(item))
        except Exception:
            await conn.rollback()
            raise

        await conn.commit()

    # ------------------------------------------------------------------
    # Row helpers
    # ------------------------------------------------------------------

    async def _insert_bookmark(self, conn: aiosqlite.Connection, bookmark: Bookmark) -> None:
        await conn.execute("""
            INSERT INTO bookmarks
                (id, title, url, description, notes, category_id, tags,
                 created_at, updated_at, favorite, archived)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, self._bookmark_params(bookmark))

    async def _insert_category(self, conn: aiosqlite.Connection, category: Category) -> None:
        await conn.execute("""
            INSERT INTO categories
                (id, name, description, color, icon, parent_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, self._category_params(category))

    async def _insert_tag(self, conn: aiosqlite.Connection, tag: Tag) -> None:
        await conn.execute(
            "INSERT INTO tags (id, name, color, created_at, usage_count) VALUES (?, ?, ?, ?, ?)",
            (tag.id, tag.name, tag.color, tag.created_at, tag.usage_count),
        )

    @staticmethod
    def _bookmark_params(bookmark: Bookmark) -> tuple:
        return (
            bookmark.id,
            bookmark.title,
            bookmark.url,
            bookmark.description,
            bookmark.notes,
            bookmark.category_id,
            json.dumps(list(bookmark.tags)),
            bookmark.created_at,
            bookmark.updated_at,
            int(bookmark.favorite),
            int(bookmark.archived),
        )

    @staticmethod
    def _category_params(category: Category) -> tuple:
        return (
            category.id,
            category.name,
            category.description,
            category.color,
            category.icon,
            category.parent_id,
            category.created_at,
            category.updated_at,
        )

    def _row_to_bookmark(self, row: aiosqlite.Row) -> Bookmark:
        """Convert a database row to a Bookmark.

        Args:
            row: SQLite row object

        Returns:
            Bookmark with parsed tags
        """
        result = dict(row)

        try:
            result["tags"] = json.loads(result.get("tags") or "[]")
        except json.JSONDecodeError:
            result["tags"] = []

        return Bookmark.from_dict(result)
