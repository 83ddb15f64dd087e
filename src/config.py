"""Configuration for the bookmarks search index server."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class SearchConfig:
    """Configuration for search requests coming through the server."""
    default_limit: int = 20  # Results returned when the caller gives no limit
    max_limit: int = 100  # Upper bound on any requested limit

    @classmethod
    def from_env(cls) -> "SearchConfig":
        """Create config from environment variables."""
        return cls(
            default_limit=int(os.environ.get("BOOKMARKS_SEARCH_LIMIT", "20")),
            max_limit=int(os.environ.get("BOOKMARKS_SEARCH_MAX_LIMIT", "100")),
        )

    def clamp_limit(self, limit: Optional[int]) -> int:
        """Resolve a requested limit against the defaults.

        Args:
            limit: Requested limit (None or <= 0 means "use the default")

        Returns:
            Limit between 1 and max_limit
        """
        if limit is None or limit <= 0:
            limit = self.default_limit
        return max(1, min(limit, self.max_limit))


@dataclass
class Config:
    """Main configuration for the bookmarks search index server."""
    search: SearchConfig = field(default_factory=SearchConfig.from_env)
    db_path: Optional[Path] = None  # None = use default
    server_name: str = "bookmarks-search-index"

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment variables."""
        db_path_str = os.environ.get("BOOKMARKS_DB")
        db_path = Path(db_path_str) if db_path_str else None

        return cls(
            search=SearchConfig.from_env(),
            db_path=db_path,
            server_name=os.environ.get("BOOKMARKS_SERVER_NAME", "bookmarks-search-index"),
        )


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global config instance.

    Returns:
        Config loaded from environment
    """
    global _config

    if _config is None:
        _config = Config.from_env()

    return _config
