"""Data types shared by the index, the store and the service layer."""
import random
import string
import time
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple


_ID_ALPHABET = string.digits + string.ascii_lowercase


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def generate_id() -> str:
    """Generate a unique ID for a bookmark, category or tag.

    Timestamp-based with a random base36 suffix, e.g. '1718000000000-k3j9x0a2b'.
    """
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{now_ms()}-{suffix}"


@dataclass(frozen=True)
class Bookmark:
    """A bookmark document.

    Frozen so the snapshot held by the search index is replaced wholesale on
    update and never mutated in place.
    """
    id: str
    title: str
    url: str
    description: Optional[str] = None
    notes: Optional[str] = None
    category_id: Optional[str] = None
    tags: Tuple[str, ...] = ()
    created_at: int = 0
    updated_at: int = 0
    favorite: bool = False
    archived: bool = False

    def __post_init__(self):
        if not isinstance(self.tags, tuple):
            object.__setattr__(self, "tags", tuple(self.tags or ()))

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["tags"] = list(self.tags)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bookmark":
        return cls(
            id=data["id"],
            title=data.get("title") or "",
            url=data.get("url") or "",
            description=data.get("description"),
            notes=data.get("notes"),
            category_id=data.get("category_id"),
            tags=tuple(data.get("tags") or ()),
            created_at=int(data.get("created_at") or 0),
            updated_at=int(data.get("updated_at") or 0),
            favorite=bool(data.get("favorite", False)),
            archived=bool(data.get("archived", False)),
        )


@dataclass
class Category:
    """A (possibly nested) bookmark category."""
    id: str
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    parent_id: Optional[str] = None
    created_at: int = 0
    updated_at: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            description=data.get("description"),
            color=data.get("color"),
            icon=data.get("icon"),
            parent_id=data.get("parent_id"),
            created_at=int(data.get("created_at") or 0),
            updated_at=int(data.get("updated_at") or 0),
        )


@dataclass
class Tag:
    """A tag with its usage count across bookmarks."""
    id: str
    name: str
    color: Optional[str] = None
    created_at: int = 0
    usage_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tag":
        return cls(
            id=data["id"],
            name=data["name"],
            color=data.get("color"),
            created_at=int(data.get("created_at") or 0),
            usage_count=int(data.get("usage_count") or 0),
        )


class SortKey(str, Enum):
    RELEVANCE = "relevance"
    TITLE = "title"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass
class SearchOptions:
    """Query text plus optional filters, sort and limit for a search.

    Every filter is independent; None means "no constraint".
    """
    query: str = ""
    category_id: Optional[str] = None
    tags: Optional[Sequence[str]] = None
    favorite: Optional[bool] = None
    archived: Optional[bool] = None
    sort_by: SortKey = SortKey.RELEVANCE
    sort_order: SortOrder = SortOrder.DESC
    limit: Optional[int] = None

    def __post_init__(self):
        # Accept plain strings such as "createdAt" / "asc"
        self.sort_by = SortKey(self.sort_by)
        self.sort_order = SortOrder(self.sort_order)


@dataclass
class SearchResult:
    bookmark: Bookmark
    score: int = 0
    matched_fields: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bookmark": self.bookmark.to_dict(),
            "score": self.score,
            "matched_fields": list(self.matched_fields),
        }


@dataclass(frozen=True)
class IndexStats:
    total_terms: int
    total_bookmarks: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)
