"""MCP server exposing codebase search, file lookup and past-answer tools."""

import asyncio
import json
import logging

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from config.settings import get_settings
from src.cli.services import build_search_engine
from src.retrieval.search import DEFAULT_LIMIT, SearchEngine

logger = logging.getLogger(__name__)

MAX_RESULTS = 20
MAX_QUERY_LENGTH = 1000

TOOLS = [
    Tool(
        name="search_codebase",
        description=(
            "Search the codebase for relevant code snippets using semantic search. "
            "Use this to find code related to a specific topic or functionality."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Natural language search query"},
                "limit": {"type": "integer", "default": DEFAULT_LIMIT, "description": "Number of results (max 20)"},
                "learn": {"type": "boolean", "default": False, "description": "Rerank using answer feedback"},
            },
            "required": ["query"],
        },
    ),
    Tool(
        name="get_file_content",
        description="Get content from a specific file in the codebase by file path.",
        inputSchema={
            "type": "object",
            "properties": {
                "file_path": {"type": "string", "description": "Full or partial file path"},
                "limit": {"type": "integer", "default": 10, "description": "Maximum chunks to return"},
            },
            "required": ["file_path"],
        },
    ),
    Tool(
        name="top_answers",
        description="Find well-received past answers to questions similar to the query.",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Question to match"},
                "limit": {"type": "integer", "default": 2, "description": "Number of answers (max 20)"},
            },
            "required": ["query"],
        },
    ),
]


def _json(payload) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(payload))]


def _valid_query(arguments: dict) -> str | None:
    query = arguments.get("query", "")
    if not isinstance(query, str) or not query.strip() or len(query) > MAX_QUERY_LENGTH:
        return None
    return query


async def handle_search_codebase(engine: SearchEngine, arguments: dict) -> list[TextContent]:
    query = _valid_query(arguments)
    if query is None:
        return _json({"error": "invalid_query"})
    if engine.store.count == 0:
        return _json({"error": "empty_corpus"})

    limit = min(int(arguments.get("limit", DEFAULT_LIMIT)), MAX_RESULTS)
    results = engine.search(query, limit=limit, learn=bool(arguments.get("learn", False)))
    return _json([r.to_dict() for r in results])


async def handle_get_file_content(engine: SearchEngine, arguments: dict) -> list[TextContent]:
    file_path = arguments.get("file_path", "")
    if not file_path:
        return _json({"error": "not_found"})

    limit = min(int(arguments.get("limit", 10)), MAX_RESULTS)
    chunks = engine.by_file_path(file_path, limit=limit)
    if not chunks:
        return _json({"error": "not_found"})

    return _json([
        {
            "file_path": c.file_path,
            "content": c.content,
            "lines": c.line_range,
            "language": c.metadata.language,
        }
        for c in chunks
    ])


async def handle_top_answers(engine: SearchEngine, arguments: dict) -> list[TextContent]:
    query = _valid_query(arguments)
    if query is None:
        return _json({"error": "invalid_query"})

    limit = min(int(arguments.get("limit", 2)), MAX_RESULTS)
    results = engine.top_answer_exemplars(query, limit=limit)
    return _json([
        {
            "answer_id": r.chunk.id,
            "content": r.chunk.content,
            "query": r.chunk.metadata.extra.get("query", ""),
            "similarity": round(r.similarity, 4),
            "feedback_score": r.chunk.metadata.feedback_score,
        }
        for r in results
    ])


HANDLERS = {
    "search_codebase": handle_search_codebase,
    "get_file_content": handle_get_file_content,
    "top_answers": handle_top_answers,
}


def create_server(engine: SearchEngine) -> Server:
    """Build an MCP server whose tools run against ``engine``."""
    server = Server("repochat")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return TOOLS

    @server.call_tool()
    async def call_tool(name: str, arguments: dict) -> list[TextContent]:
        handler = HANDLERS.get(name)
        if handler is None:
            return [TextContent(type="text", text=f"Unknown tool: {name}")]
        return await handler(engine, arguments or {})

    return server


async def main():
    engine = build_search_engine(get_settings())
    server = create_server(engine)
    async with stdio_server() as (read, write):
        await server.run(read, write, server.create_initialization_options())


if __name__ == "__main__":
    asyncio.run(main())
