"""Search engine module for bookmarks."""
import unicodedata
from typing import Any, Callable, Dict, List, Protocol

from src.filters import matches_filters
from src.models import SearchOptions, SearchResult, SortKey, SortOrder
from src.scoring import score_bookmark
from src.search_index import InvertedIndex
from src.tokenizer import tokenize


class SearchEngine(Protocol):
    """Protocol for search engines to allow extensibility."""

    def search(self, options: SearchOptions) -> List[SearchResult]:
        """Search bookmarks.

        Args:
            options: Query text, filters, sort and limit

        Returns:
            List of results in the requested order
        """
        ...


def title_sort_key(title: str) -> Any:
    """Collation key for titles: case- and accent-insensitive first."""
    decomposed = unicodedata.normalize("NFKD", title)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base.casefold(), title)


_SORT_KEYS: Dict[SortKey, Callable[[SearchResult], Any]] = {
    SortKey.RELEVANCE: lambda r: r.score,
    SortKey.TITLE: lambda r: title_sort_key(r.bookmark.title),
    SortKey.CREATED_AT: lambda r: r.bookmark.created_at,
    SortKey.UPDATED_AT: lambda r: r.bookmark.updated_at,
}


class IndexSearchEngine:
    """Search engine backed by an inverted index."""

    def __init__(self, index: InvertedIndex):
        self.index = index

    def _candidates(self, query_terms: List[str]) -> List[str]:
        """IDs of bookmarks containing any query term, in first-seen order."""
        seen: Dict[str, None] = {}
        for term in query_terms:
            posting = self.index.postings(term)
            if posting:
                for bookmark_id in posting:
                    seen.setdefault(bookmark_id, None)
        return list(seen)

    def search(self, options: SearchOptions) -> List[SearchResult]:
        """Search bookmarks using the inverted index.

        An empty query matches every indexed bookmark (score 0), so filters
        alone can be used to browse. Otherwise a bookmark qualifies if it
        contains any query term and is ranked by `score_bookmark`.

        Args:
            options: Query text, filters, sort and limit

        Returns:
            Filtered, sorted and truncated results
        """
        query_terms = tokenize(options.query)
        filters = dict(
            category_id=options.category_id,
            tags=options.tags,
            favorite=options.favorite,
            archived=options.archived,
        )

        results: List[SearchResult] = []

        with self.index.lock:
            if not query_terms:
                for bookmark in self.index.bookmarks():
                    if matches_filters(bookmark, **filters):
                        results.append(SearchResult(bookmark=bookmark))
            else:
                for bookmark_id in self._candidates(query_terms):
                    bookmark = self.index.get(bookmark_id)
                    if bookmark is None or not matches_filters(bookmark, **filters):
                        continue
                    matched_fields: List[str] = []
                    score = score_bookmark(self.index, bookmark_id, query_terms, matched_fields)
                    results.append(SearchResult(
                        bookmark=bookmark,
                        score=score,
                        matched_fields=matched_fields,
                    ))

        results.sort(
            key=_SORT_KEYS[options.sort_by],
            reverse=options.sort_order == SortOrder.DESC,
        )

        if options.limit is not None and options.limit > 0:
            return results[:options.limit]

        return results
