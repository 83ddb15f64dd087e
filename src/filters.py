"""Filter predicates for bookmark search."""
from typing import Optional, Sequence

from src.models import Bookmark


def matches_filters(
    bookmark: Bookmark,
    category_id: Optional[str] = None,
    tags: Optional[Sequence[str]] = None,
    favorite: Optional[bool] = None,
    archived: Optional[bool] = None,
) -> bool:
    """Check whether a bookmark passes every given filter.

    Unset filters impose no constraint. Tags use AND logic: the bookmark must
    carry every requested tag (exact, case-sensitive match).

    Args:
        bookmark: Bookmark to check
        category_id: Required category
        tags: Tags that must all be present
        favorite: Required favorite flag
        archived: Required archived flag

    Returns:
        True if the bookmark passes
    """
    if category_id is not None and bookmark.category_id != category_id:
        return False

    if tags:
        bookmark_tags = set(bookmark.tags)
        if not all(tag in bookmark_tags for tag in tags):
            return False

    if favorite is not None and bookmark.favorite != favorite:
        return False

    if archived is not None and bookmark.archived != archived:
        return False

    return True
