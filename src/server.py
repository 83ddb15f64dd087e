"""MCP server exposing bookmark search and management tools."""
import asyncio
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from src.bookmark_service import (
    BookmarkService,
    CategoryInUseError,
    CategoryService,
    NotFoundError,
    TagService,
)
from src.bookmarks_db import BookmarkDatabase
from src.config import get_config
from src.models import SearchOptions


@dataclass
class Services:
    """Everything the tool handlers need, owned by one server instance."""
    bookmarks: BookmarkService
    categories: CategoryService
    tags: TagService

    @classmethod
    def create(cls, db: Optional[BookmarkDatabase] = None) -> "Services":
        if db is None:
            db = BookmarkDatabase(get_config().db_path)
        return cls(
            bookmarks=BookmarkService(db),
            categories=CategoryService(db),
            tags=TagService(db),
        )


def _json_reply(payload: Any) -> List[TextContent]:
    return [TextContent(type="text", text=json.dumps(payload, indent=2, ensure_ascii=False))]


def _error_reply(message: str) -> List[TextContent]:
    return [TextContent(type="text", text=f"Error: {message}")]


def _int_argument(arguments: Dict[str, Any], name: str) -> Optional[int]:
    """Read an optional integer argument.

    Raises:
        ValueError: If the value is present but not an integer
    """
    value = arguments.get(name)
    if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
        raise ValueError(f"'{name}' must be an integer")
    return value


_BOOKMARK_FIELD_SCHEMA = {
    "title": {"type": "string"},
    "url": {"type": "string"},
    "description": {"type": "string"},
    "notes": {"type": "string"},
    "category_id": {"type": "string"},
    "tags": {"type": "array", "items": {"type": "string"}},
    "favorite": {"type": "boolean"},
    "archived": {"type": "boolean"},
}

_ID_SCHEMA = {
    "type": "object",
    "properties": {"id": {"type": "string"}},
    "required": ["id"],
}

TOOLS = [
    Tool(
        name="search_bookmarks",
        description=(
            "Search bookmarks by keywords with optional filters. An empty query lists "
            "all bookmarks matching the filters. Returns bookmarks with score and matched fields."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search keywords (may be empty)"},
                "category_id": {"type": "string"},
                "tags": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Bookmarks must carry ALL of these tags",
                },
                "favorite": {"type": "boolean"},
                "archived": {"type": "boolean"},
                "sort_by": {
                    "type": "string",
                    "enum": ["relevance", "title", "createdAt", "updatedAt"],
                },
                "sort_order": {"type": "string", "enum": ["asc", "desc"]},
                "limit": {"type": "integer"},
            },
        },
    ),
    Tool(
        name="get_bookmark",
        description="Get a single bookmark by ID.",
        inputSchema=_ID_SCHEMA,
    ),
    Tool(
        name="add_bookmark",
        description="Create a bookmark and index it for search.",
        inputSchema={
            "type": "object",
            "properties": dict(_BOOKMARK_FIELD_SCHEMA),
            "required": ["url"],
        },
    ),
    Tool(
        name="update_bookmark",
        description="Update fields of a bookmark and re-index it.",
        inputSchema={
            "type": "object",
            "properties": {"id": {"type": "string"}, **_BOOKMARK_FIELD_SCHEMA},
            "required": ["id"],
        },
    ),
    Tool(
        name="delete_bookmark",
        description="Delete a bookmark and remove it from the index.",
        inputSchema=_ID_SCHEMA,
    ),
    Tool(
        name="toggle_favorite",
        description="Flip the favorite flag of a bookmark.",
        inputSchema=_ID_SCHEMA,
    ),
    Tool(
        name="toggle_archive",
        description="Flip the archived flag of a bookmark.",
        inputSchema=_ID_SCHEMA,
    ),
    Tool(
        name="index_stats",
        description="Number of indexed terms and bookmarks.",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="list_categories",
        description="List categories. With roots_only, only top-level categories.",
        inputSchema={
            "type": "object",
            "properties": {"roots_only": {"type": "boolean"}},
        },
    ),
    Tool(
        name="create_category",
        description="Create a category.",
        inputSchema={
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "description": {"type": "string"},
                "color": {"type": "string"},
                "icon": {"type": "string"},
                "parent_id": {"type": "string"},
            },
            "required": ["name"],
        },
    ),
    Tool(
        name="delete_category",
        description="Delete a category that has no subcategories and no bookmarks.",
        inputSchema=_ID_SCHEMA,
    ),
    Tool(
        name="list_tags",
        description="List tags by usage count, most used first.",
        inputSchema={
            "type": "object",
            "properties": {"limit": {"type": "integer"}},
        },
    ),
    Tool(
        name="export_data",
        description="Export all bookmarks, categories and tags as JSON.",
        inputSchema={"type": "object", "properties": {}},
    ),
]


async def search_bookmarks_tool(services: Services, arguments: Dict[str, Any]) -> List[TextContent]:
    """Tool handler for search_bookmarks."""
    config = get_config().search

    try:
        limit = _int_argument(arguments, "limit")
        options = SearchOptions(
            query=arguments.get("query") or "",
            category_id=arguments.get("category_id"),
            tags=arguments.get("tags"),
            favorite=arguments.get("favorite"),
            archived=arguments.get("archived"),
            sort_by=arguments.get("sort_by") or "relevance",
            sort_order=arguments.get("sort_order") or "desc",
            limit=config.clamp_limit(limit),
        )
    except ValueError as e:
        return _error_reply(str(e))

    results = await services.bookmarks.search_bookmarks(options)

    if not results:
        return [TextContent(
            type="text",
            text=f"No bookmarks found matching query: {options.query}"
        )]

    return _json_reply([r.to_dict() for r in results])


async def get_bookmark_tool(services: Services, arguments: Dict[str, Any]) -> List[TextContent]:
    bookmark = await services.bookmarks.get_bookmark(arguments["id"])
    if bookmark is None:
        return _error_reply(f"Bookmark not found: {arguments['id']}")
    return _json_reply(bookmark.to_dict())


async def add_bookmark_tool(services: Services, arguments: Dict[str, Any]) -> List[TextContent]:
    if not arguments.get("url"):
        return _error_reply("'url' parameter is required")
    bookmark = await services.bookmarks.create_bookmark(arguments)
    return _json_reply(bookmark.to_dict())


async def update_bookmark_tool(services: Services, arguments: Dict[str, Any]) -> List[TextContent]:
    updates = dict(arguments)
    bookmark_id = updates.pop("id")
    bookmark = await services.bookmarks.update_bookmark(bookmark_id, updates)
    return _json_reply(bookmark.to_dict())


async def delete_bookmark_tool(services: Services, arguments: Dict[str, Any]) -> List[TextContent]:
    await services.bookmarks.delete_bookmark(arguments["id"])
    return _json_reply({"deleted": arguments["id"]})


async def toggle_favorite_tool(services: Services, arguments: Dict[str, Any]) -> List[TextContent]:
    bookmark = await services.bookmarks.toggle_favorite(arguments["id"])
    return _json_reply(bookmark.to_dict())


async def toggle_archive_tool(services: Services, arguments: Dict[str, Any]) -> List[TextContent]:
    bookmark = await services.bookmarks.toggle_archive(arguments["id"])
    return _json_reply(bookmark.to_dict())


async def index_stats_tool(services: Services, arguments: Dict[str, Any]) -> List[TextContent]:
    stats = await services.bookmarks.index_stats()
    return _json_reply(stats.to_dict())


async def list_categories_tool(services: Services, arguments: Dict[str, Any]) -> List[TextContent]:
    if arguments.get("roots_only"):
        categories = await services.categories.get_category_tree()
    else:
        categories = await services.categories.get_all_categories()
    return _json_reply([c.to_dict() for c in categories])


async def create_category_tool(services: Services, arguments: Dict[str, Any]) -> List[TextContent]:
    category = await services.categories.create_category(arguments)
    return _json_reply(category.to_dict())


async def delete_category_tool(services: Services, arguments: Dict[str, Any]) -> List[TextContent]:
    await services.categories.delete_category(arguments["id"])
    return _json_reply({"deleted": arguments["id"]})


async def list_tags_tool(services: Services, arguments: Dict[str, Any]) -> List[TextContent]:
    tags = await services.tags.get_popular_tags(_int_argument(arguments, "limit") or 10)
    return _json_reply([t.to_dict() for t in tags])


async def export_data_tool(services: Services, arguments: Dict[str, Any]) -> List[TextContent]:
    await services.bookmarks.initialize()
    return _json_reply(await services.bookmarks.db.export_data())


TOOL_HANDLERS = {
    "search_bookmarks": search_bookmarks_tool,
    "get_bookmark": get_bookmark_tool,
    "add_bookmark": add_bookmark_tool,
    "update_bookmark": update_bookmark_tool,
    "delete_bookmark": delete_bookmark_tool,
    "toggle_favorite": toggle_favorite_tool,
    "toggle_archive": toggle_archive_tool,
    "index_stats": index_stats_tool,
    "list_categories": list_categories_tool,
    "create_category": create_category_tool,
    "delete_category": delete_category_tool,
    "list_tags": list_tags_tool,
    "export_data": export_data_tool,
}


async def dispatch_tool(services: Services, name: str, arguments: Any) -> List[TextContent]:
    """Run a tool by name, turning domain errors into error replies.

    Raises:
        ValueError: If the tool name is unknown
    """
    handler = TOOL_HANDLERS.get(name)
    if handler is None:
        raise ValueError(f"Unknown tool: {name}")

    try:
        return await handler(services, arguments or {})
    except KeyError as e:
        return _error_reply(f"missing parameter {e}")
    except (NotFoundError, CategoryInUseError) as e:
        return _error_reply(str(e))
    except ValueError as e:
        return _error_reply(f"invalid arguments: {e}")


def create_server(services: Optional[Services] = None) -> Server:
    """Create and configure the MCP server.

    Args:
        services: Services to expose; created from config when omitted

    Returns:
        Configured Server instance
    """
    if services is None:
        services = Services.create()

    server = Server(get_config().server_name)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return list(TOOLS)

    @server.call_tool()
    async def call_tool(name: str, arguments: Any) -> list[TextContent]:
        """Handle tool calls."""
        return await dispatch_tool(services, name, arguments)

    return server


async def main():
    """Main entry point for the MCP server."""
    services = Services.create()
    await services.bookmarks.initialize()
    server = create_server(services)

    try:
        async with stdio_server() as (read_stream, write_stream):
            initialization_options = server.create_initialization_options()
            await server.run(read_stream, write_stream, initialization_options)
    finally:
        await services.bookmarks.db.close()


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())
