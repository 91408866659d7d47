"""Search result data model."""

from dataclasses import dataclass

from src.models.chunk import CodeChunk


@dataclass
class SearchResult:
    """A stored chunk matched against a query."""

    chunk: CodeChunk
    similarity: float
    score: float | None = None

    def __post_init__(self):
        if not -1.0 <= self.similarity <= 1.0 + 1e-6:
            raise ValueError(f"similarity must be between -1.0 and 1.0, got {self.similarity}")

    @property
    def ranking_score(self) -> float:
        return self.similarity if self.score is None else self.score

    def to_dict(self) -> dict:
        chunk = self.chunk
        result = {
            "chunk_id": chunk.id,
            "file_path": chunk.file_path,
            "content": chunk.content,
            "lines": chunk.line_range,
            "language": chunk.metadata.language,
            "similarity": round(self.similarity, 4),
        }
        if self.score is not None:
            result["score"] = round(self.score, 4)
        return result
