"""Retrieval tools the chat model can call while answering."""

from langchain_core.tools import StructuredTool

from src.retrieval.search import SearchEngine


def build_tools(search_engine: SearchEngine) -> list[StructuredTool]:
    """Bind search_codebase and get_file_content to a search engine."""

    def search_codebase(query: str, limit: int = 5) -> dict:
        """Search the codebase for relevant code snippets using semantic search.

        Use this to find code related to a specific topic or functionality.
        """
        results = search_engine.search(query, limit=limit)
        return {"results": [r.to_dict() for r in results]}

    def get_file_content(file_path: str, limit: int = 10) -> dict:
        """Get content from a specific file in the codebase by file path."""
        chunks = search_engine.by_file_path(file_path, limit=limit)
        return {
            "results": [
                {
                    "file_path": c.file_path,
                    "content": c.content,
                    "lines": c.line_range,
                    "language": c.metadata.language,
                }
                for c in chunks
            ]
        }

    return [
        StructuredTool.from_function(search_codebase),
        StructuredTool.from_function(get_file_content),
    ]
