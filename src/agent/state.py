"""Agent state definition for the LangGraph chat workflow."""

from typing import TypedDict


class ChunkResult(TypedDict):
    """A retrieved chunk as shown to the model."""
    chunk_id: str
    file_path: str
    content: str
    lines: str
    language: str
    similarity: float


class HistoryMessage(TypedDict):
    role: str  # "user" | "assistant"
    content: str


class ChatState(TypedDict):
    """State object passed through the LangGraph workflow."""
    query: str
    user_name: str
    history: list[HistoryMessage]
    retrieved_chunks: list[ChunkResult]
    exemplars: list[str]
    answer: str | None
