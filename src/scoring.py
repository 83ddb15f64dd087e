"""Relevance scoring for indexed bookmarks."""
from typing import List, Sequence

from src.search_index import InvertedIndex


# Field bonuses, each awarded at most once per bookmark per query
TITLE_BONUS = 10
TAGS_BONUS = 8
DESCRIPTION_BONUS = 5
NOTES_BONUS = 3


def score_bookmark(
    index: InvertedIndex,
    bookmark_id: str,
    query_terms: Sequence[str],
    matched_fields: List[str],
) -> int:
    """Score an indexed bookmark against tokenized query terms.

    The base score is the sum of the term frequencies of every query term
    (a repeated query term counts again). When the bookmark contains a term,
    the raw field text is checked for it as a substring and each field that
    matches adds its bonus once.

    Args:
        index: Index holding the bookmark
        bookmark_id: ID of the bookmark to score
        query_terms: Tokenized query
        matched_fields: Fields already credited for this bookmark; updated in place

    Returns:
        Relevance score (0 if the bookmark is not indexed)
    """
    bookmark = index.get(bookmark_id)
    if bookmark is None:
        return 0

    title = bookmark.title.lower()
    tags = [tag.lower() for tag in bookmark.tags]
    description = (bookmark.description or "").lower()
    notes = (bookmark.notes or "").lower()

    score = 0
    for term in query_terms:
        frequency = index.frequency(term, bookmark_id)
        score += frequency
        if frequency == 0:
            continue

        # Substring checks, not token equality: "rust" also hits "rustacean"
        if "title" not in matched_fields and term in title:
            matched_fields.append("title")
            score += TITLE_BONUS
        if "tags" not in matched_fields and any(term in tag for tag in tags):
            matched_fields.append("tags")
            score += TAGS_BONUS
        if "description" not in matched_fields and term in description:
            matched_fields.append("description")
            score += DESCRIPTION_BONUS
        if "notes" not in matched_fields and term in notes:
            matched_fields.append("notes")
            score += NOTES_BONUS

    return score
