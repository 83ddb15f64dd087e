"""Service layer tying the bookmark store to the search index.

The store is the source of truth. Every write goes to the store first and is
then mirrored into the in-memory index, which is rebuilt from the store when
the service initializes.
"""
import dataclasses
import sys
from typing import Any, Dict, Iterable, List, Optional

from src.bookmarks_db import BookmarkDatabase
from src.models import (
    Bookmark,
    Category,
    IndexStats,
    SearchOptions,
    SearchResult,
    Tag,
    generate_id,
    now_ms,
)
from src.search import IndexSearchEngine, SearchEngine
from src.search_index import InvertedIndex


DEFAULT_BOOKMARK_TITLE = "Untitled"
DEFAULT_CATEGORY_NAME = "Untitled category"

_BOOKMARK_FIELDS = {f.name for f in dataclasses.fields(Bookmark)}
_CATEGORY_FIELDS = {f.name for f in dataclasses.fields(Category)}
_REQUIRED_TEXT_FIELDS = {"title", "url", "name"}
_FLAG_FIELDS = {"favorite", "archived"}


class NotFoundError(LookupError):
    """Raised when a bookmark, category or tag does not exist."""


class CategoryInUseError(ValueError):
    """Raised when deleting a category that still has children or bookmarks."""


def _clean_updates(updates: Dict[str, Any], allowed: set) -> Dict[str, Any]:
    """Validate and normalize caller-supplied fields.

    Raises:
        ValueError: On unknown fields or values of the wrong type
    """
    unknown = set(updates) - allowed
    if unknown:
        raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")
    cleaned = {k: v for k, v in updates.items() if k not in ("id", "created_at", "updated_at")}

    for key in _REQUIRED_TEXT_FIELDS & set(cleaned):
        if not isinstance(cleaned[key], str):
            raise ValueError(f"'{key}' must be a string")
    for key in _FLAG_FIELDS & set(cleaned):
        cleaned[key] = bool(cleaned[key])
    if "tags" in cleaned:
        tags = cleaned["tags"]
        if not isinstance(tags, (list, tuple)) or not all(isinstance(t, str) for t in tags):
            raise ValueError("'tags' must be a list of strings")
        cleaned["tags"] = tuple(tags)
    return cleaned


class BookmarkService:
    """Bookmark CRUD and search over a store and an explicitly owned index."""

    def __init__(self, db: BookmarkDatabase, index: Optional[InvertedIndex] = None):
        self.db = db
        self.index = index if index is not None else InvertedIndex()
        self.engine: SearchEngine = IndexSearchEngine(self.index)
        self._initialized = False

    async def initialize(self) -> None:
        """Open the store and build the index from it (once)."""
        if self._initialized:
            return

        await self.db.initialize()
        await self.reindex()
        self._initialized = True

    async def reindex(self) -> IndexStats:
        """Rebuild the index from every bookmark in the store.

        Returns:
            Index stats after the rebuild
        """
        bookmarks = await self.db.get_all_bookmarks()
        self.index.rebuild(bookmarks)
        return self.index.stats()

    async def create_bookmark(self, data: Dict[str, Any]) -> Bookmark:
        """Create a bookmark.

        Args:
            data: Bookmark fields; missing ones get defaults

        Returns:
            The stored bookmark
        """
        await self.initialize()

        fields = _clean_updates(data, _BOOKMARK_FIELDS)
        now = now_ms()
        bookmark = Bookmark(
            id=generate_id(),
            title=fields.get("title") or DEFAULT_BOOKMARK_TITLE,
            url=fields.get("url") or "",
            description=fields.get("description"),
            notes=fields.get("notes"),
            category_id=fields.get("category_id"),
            tags=fields.get("tags", ()),
            created_at=data.get("created_at") or now,
            updated_at=now,
            favorite=bool(fields.get("favorite", False)),
            archived=bool(fields.get("archived", False)),
        )

        await self.db.add_bookmark(bookmark)
        self.index.add(bookmark)

        await self._update_tag_usage_counts(bookmark.tags, 1)

        return bookmark

    async def update_bookmark(self, bookmark_id: str, updates: Dict[str, Any]) -> Bookmark:
        """Update fields of an existing bookmark.

        Args:
            bookmark_id: ID of the bookmark
            updates: Fields to change

        Returns:
            The updated bookmark

        Raises:
            NotFoundError: If the bookmark does not exist
        """
        await self.initialize()

        existing = await self.db.get_bookmark(bookmark_id)
        if existing is None:
            raise NotFoundError(f"Bookmark not found: {bookmark_id}")

        updated = dataclasses.replace(
            existing,
            **_clean_updates(updates, _BOOKMARK_FIELDS),
            updated_at=now_ms(),
        )

        await self.db.update_bookmark(updated)
        self.index.update(updated)

        added_tags = [tag for tag in updated.tags if tag not in existing.tags]
        removed_tags = [tag for tag in existing.tags if tag not in updated.tags]
        await self._update_tag_usage_counts(added_tags, 1)
        await self._update_tag_usage_counts(removed_tags, -1)

        return updated

    async def delete_bookmark(self, bookmark_id: str) -> None:
        """Delete a bookmark.

        Raises:
            NotFoundError: If the bookmark does not exist
        """
        await self.initialize()

        bookmark = await self.db.get_bookmark(bookmark_id)
        if bookmark is None:
            raise NotFoundError(f"Bookmark not found: {bookmark_id}")

        await self.db.delete_bookmark(bookmark_id)
        self.index.remove(bookmark_id)

        await self._update_tag_usage_counts(bookmark.tags, -1)

    async def get_bookmark(self, bookmark_id: str) -> Optional[Bookmark]:
        await self.initialize()
        return await self.db.get_bookmark(bookmark_id)

    async def get_all_bookmarks(self) -> List[Bookmark]:
        await self.initialize()
        return await self.db.get_all_bookmarks()

    async def search_bookmarks(self, options: SearchOptions) -> List[SearchResult]:
        """Search the index. The index itself is synchronous."""
        await self.initialize()
        return self.engine.search(options)

    async def toggle_favorite(self, bookmark_id: str) -> Bookmark:
        bookmark = await self.get_bookmark(bookmark_id)
        if bookmark is None:
            raise NotFoundError(f"Bookmark not found: {bookmark_id}")
        return await self.update_bookmark(bookmark_id, {"favorite": not bookmark.favorite})

    async def toggle_archive(self, bookmark_id: str) -> Bookmark:
        bookmark = await self.get_bookmark(bookmark_id)
        if bookmark is None:
            raise NotFoundError(f"Bookmark not found: {bookmark_id}")
        return await self.update_bookmark(bookmark_id, {"archived": not bookmark.archived})

    async def index_stats(self) -> IndexStats:
        await self.initialize()
        return self.index.stats()

    async def _update_tag_usage_counts(self, tag_names: Iterable[str], delta: int) -> None:
        """Adjust usage counts, creating tags on first use.

        Args:
            tag_names: Tags whose count changes
            delta: +1 or -1
        """
        for name in dict.fromkeys(tag_names):
            tag = await self.db.get_tag_by_name(name)

            if tag is None:
                if delta > 0:
                    await self.db.add_tag(Tag(
                        id=generate_id(),
                        name=name,
                        created_at=now_ms(),
                        usage_count=delta,
                    ))
                else:
                    print(f"[BookmarkService] Tag not found for usage update: {name}", file=sys.stderr)
                continue

            tag.usage_count = max(0, tag.usage_count + delta)
            await self.db.update_tag(tag)


class CategoryService:
    """Category management."""

    def __init__(self, db: BookmarkDatabase):
        self.db = db

    async def create_category(self, data: Dict[str, Any]) -> Category:
        await self.db.initialize()

        fields = _clean_updates(data, _CATEGORY_FIELDS)
        now = now_ms()
        category = Category(
            id=generate_id(),
            name=fields.get("name") or DEFAULT_CATEGORY_NAME,
            description=fields.get("description"),
            color=fields.get("color"),
            icon=fields.get("icon"),
            parent_id=fields.get("parent_id"),
            created_at=data.get("created_at") or now,
            updated_at=now,
        )

        await self.db.add_category(category)
        return category

    async def update_category(self, category_id: str, updates: Dict[str, Any]) -> Category:
        await self.db.initialize()

        existing = await self.db.get_category(category_id)
        if existing is None:
            raise NotFoundError(f"Category not found: {category_id}")

        updated = dataclasses.replace(
            existing,
            **_clean_updates(updates, _CATEGORY_FIELDS),
            updated_at=now_ms(),
        )

        await self.db.update_category(updated)
        return updated

    async def delete_category(self, category_id: str) -> None:
        """Delete a category.

        Raises:
            NotFoundError: If the category does not exist
            CategoryInUseError: If it has subcategories or bookmarks
        """
        await self.db.initialize()

        if await self.db.get_category(category_id) is None:
            raise NotFoundError(f"Category not found: {category_id}")

        categories = await self.db.get_all_categories()
        if any(c.parent_id == category_id for c in categories):
            raise CategoryInUseError("Cannot delete a category that has subcategories")

        bookmarks = await self.db.get_bookmarks_by_category(category_id)
        if bookmarks:
            raise CategoryInUseError("Cannot delete a category that still has bookmarks")

        await self.db.delete_category(category_id)

    async def get_category(self, category_id: str) -> Optional[Category]:
        await self.db.initialize()
        return await self.db.get_category(category_id)

    async def get_all_categories(self) -> List[Category]:
        await self.db.initialize()
        return await self.db.get_all_categories()

    async def get_category_tree(self) -> List[Category]:
        """Get the top-level categories."""
        categories = await self.get_all_categories()
        return [c for c in categories if not c.parent_id]


class TagService:
    """Tag queries and styling."""

    def __init__(self, db: BookmarkDatabase):
        self.db = db

    async def get_all_tags(self) -> List[Tag]:
        await self.db.initialize()
        return await self.db.get_all_tags()

    async def get_popular_tags(self, limit: int = 10) -> List[Tag]:
        tags = await self.get_all_tags()
        tags.sort(key=lambda t: t.usage_count, reverse=True)
        return tags[:limit]

    async def update_tag_color(self, tag_id: str, color: str) -> Tag:
        await self.db.initialize()

        tag = await self.db.get_tag(tag_id)
        if tag is None:
            raise NotFoundError(f"Tag not found: {tag_id}")

        tag.color = color
        await self.db.update_tag(tag)
        return tag
