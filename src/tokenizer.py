"""Tokenization and term extraction for bookmarks."""
import re
from typing import List, Optional
from urllib.parse import urlsplit

from src.models import Bookmark


# CJK Unified Ideographs handled by the index (U+4E00..U+9FA5)
_CJK = "一-龥"
_NON_TOKEN_CHARS = re.compile(rf"[^A-Za-z0-9_\s{_CJK}]")
_TOKENS = re.compile(rf"[{_CJK}]|[^\s{_CJK}]+")

# Schemes whose URLs are invalid without a host
_SPECIAL_SCHEMES = {"http", "https", "ftp", "ws", "wss"}


def tokenize(text: Optional[str]) -> List[str]:
    """Tokenize text into normalized search terms.

    The text is lowercased and anything that is not an ASCII word character,
    whitespace or a CJK ideograph becomes a separator. Runs of word characters
    form one token; every CJK ideograph is a token of its own.

    Args:
        text: Text to tokenize

    Returns:
        List of tokens in order of appearance
    """
    if not text:
        return []

    normalized = _NON_TOKEN_CHARS.sub(" ", text.lower())
    return _TOKENS.findall(normalized)


def _split_url(url: str) -> Optional[List[str]]:
    """Return [hostname, path] for a parseable URL, or None."""
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname or ""
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    if not scheme:
        return None
    if scheme in _SPECIAL_SCHEMES and not hostname:
        return None

    return [hostname, parts.path]


def extract_terms(bookmark: Bookmark) -> List[str]:
    """Extract every term a bookmark contributes to the index.

    Duplicates are kept, since they count towards term frequency.

    Args:
        bookmark: Bookmark to extract terms from

    Returns:
        Terms from title, description, notes, URL and tags (in that order)
    """
    terms: List[str] = []

    terms.extend(tokenize(bookmark.title))

    if bookmark.description:
        terms.extend(tokenize(bookmark.description))

    if bookmark.notes:
        terms.extend(tokenize(bookmark.notes))

    if bookmark.url:
        url_parts = _split_url(bookmark.url)
        if url_parts is None:
            # Not a parseable URL, index the raw string instead
            terms.extend(tokenize(bookmark.url))
        else:
            hostname, path = url_parts
            terms.extend(tokenize(hostname))
            terms.extend(tokenize(path))

    for tag in bookmark.tags:
        terms.extend(tokenize(tag))

    return terms
