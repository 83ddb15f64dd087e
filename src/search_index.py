"""Inverted index over bookmarks with incremental maintenance."""
import sys
import threading
from typing import Dict, Iterable, List, Optional

from src.models import Bookmark, IndexStats
from src.tokenizer import extract_terms


class InvertedIndex:
    """In-memory inverted index: term -> {bookmark_id: frequency}.

    Also keeps a snapshot of every indexed bookmark for scoring and filtering.
    The index is not persisted; it is rebuilt from the bookmark store on
    startup.

    All public operations run under a single re-entrant lock. Readers that
    need a consistent view across several calls (the search engine) hold
    ``index.lock`` for the whole query.
    """

    def __init__(self):
        self._postings: Dict[str, Dict[str, int]] = {}
        self._bookmarks: Dict[str, Bookmark] = {}
        self.lock = threading.RLock()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, bookmark: Bookmark) -> None:
        """Add a bookmark to the index.

        Every occurrence of a term increments its frequency for this bookmark.
        A bookmark with no extractable terms is still recorded.

        Args:
            bookmark: Bookmark to index
        """
        with self.lock:
            if bookmark.id in self._bookmarks:
                print(
                    f"[SearchIndex] Bookmark {bookmark.id} already indexed, replacing it",
                    file=sys.stderr,
                )
                self._remove(bookmark.id)
            self._add(self._postings, self._bookmarks, bookmark)

    def update(self, bookmark: Bookmark) -> None:
        """Re-index a bookmark from scratch.

        Args:
            bookmark: New version of the bookmark
        """
        with self.lock:
            self._remove(bookmark.id)
            self._add(self._postings, self._bookmarks, bookmark)

    def remove(self, bookmark_id: str) -> None:
        """Remove a bookmark from the index. Unknown IDs are ignored.

        Args:
            bookmark_id: ID of the bookmark to remove
        """
        with self.lock:
            self._remove(bookmark_id)

    def rebuild(self, bookmarks: Iterable[Bookmark]) -> None:
        """Replace the whole index with the given bookmarks.

        Args:
            bookmarks: All bookmarks, indexed in input order
        """
        postings: Dict[str, Dict[str, int]] = {}
        snapshots: Dict[str, Bookmark] = {}
        for bookmark in bookmarks:
            if bookmark.id in snapshots:
                self._remove_from(postings, snapshots, bookmark.id)
            self._add(postings, snapshots, bookmark)

        with self.lock:
            self._postings = postings
            self._bookmarks = snapshots

        print(
            f"[SearchIndex] Rebuilt index: {len(snapshots)} bookmarks, {len(postings)} terms",
            file=sys.stderr,
        )

    def clear(self) -> None:
        """Drop every term and bookmark."""
        self.rebuild([])

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def stats(self) -> IndexStats:
        """Get the number of distinct terms and indexed bookmarks."""
        with self.lock:
            return IndexStats(
                total_terms=len(self._postings),
                total_bookmarks=len(self._bookmarks),
            )

    def postings(self, term: str) -> Optional[Dict[str, int]]:
        """Get the posting map for a term, or None if no bookmark contains it.

        The returned mapping belongs to the index and must not be modified.
        """
        return self._postings.get(term)

    def frequency(self, term: str, bookmark_id: str) -> int:
        """Get how many times a term occurs in a bookmark."""
        posting = self._postings.get(term)
        if posting is None:
            return 0
        return posting.get(bookmark_id, 0)

    def get(self, bookmark_id: str) -> Optional[Bookmark]:
        """Get the indexed snapshot of a bookmark."""
        return self._bookmarks.get(bookmark_id)

    def bookmarks(self) -> List[Bookmark]:
        """Get all indexed bookmarks, in insertion order."""
        with self.lock:
            return list(self._bookmarks.values())

    def terms(self) -> List[str]:
        with self.lock:
            return list(self._postings)

    def __contains__(self, bookmark_id: object) -> bool:
        return bookmark_id in self._bookmarks

    def __len__(self) -> int:
        return len(self._bookmarks)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _remove(self, bookmark_id: str) -> None:
        self._remove_from(self._postings, self._bookmarks, bookmark_id)

    @staticmethod
    def _add(
        postings: Dict[str, Dict[str, int]],
        snapshots: Dict[str, Bookmark],
        bookmark: Bookmark,
    ) -> None:
        snapshots[bookmark.id] = bookmark
        for term in extract_terms(bookmark):
            posting = postings.setdefault(term, {})
            posting[bookmark.id] = posting.get(bookmark.id, 0) + 1

    @staticmethod
    def _remove_from(
        postings: Dict[str, Dict[str, int]],
        snapshots: Dict[str, Bookmark],
        bookmark_id: str,
    ) -> None:
        bookmark = snapshots.pop(bookmark_id, None)
        if bookmark is None:
            return

        for term in set(extract_terms(bookmark)):
            posting = postings.get(term)
            if posting is None:
                continue
            posting.pop(bookmark_id, None)
            # Only live vocabulary stays in the index
            if not posting:
                del postings[term]
