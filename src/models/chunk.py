"""Code chunk data model."""

from dataclasses import dataclass, field, replace

from src.models.enums import ChunkSource, Vote

EXEMPLAR_PREFIX = "ai_response"


@dataclass
class ChunkMetadata:
    """Language hints plus the learned feedback record of a chunk."""

    language: str = "text"
    has_imports: bool = False
    has_exports: bool = False
    upvotes: int = 0
    downvotes: int = 0
    feedback_score: int = 0
    source: ChunkSource = ChunkSource.CODE
    extra: dict = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.source, ChunkSource):
            self.source = ChunkSource(self.source)
        if self.upvotes < 0 or self.downvotes < 0:
            raise ValueError("vote counters must be >= 0")

    @property
    def is_exemplar(self) -> bool:
        return self.source == ChunkSource.AI_RESPONSE

    def apply_vote(self, vote: Vote) -> "ChunkMetadata":
        """Return a copy with one more vote counted.

        The score is unbounded here; ranking saturates it on read.
        """
        vote = Vote(vote)
        if vote == Vote.UP:
            return replace(
                self,
                upvotes=self.upvotes + 1,
                feedback_score=self.feedback_score + 1,
                extra=dict(self.extra),
            )
        return replace(
            self,
            downvotes=self.downvotes + 1,
            feedback_score=self.feedback_score - 1,
            extra=dict(self.extra),
        )


@dataclass
class CodeChunk:
    """A contiguous, size-bounded slice of a repository file."""

    file_path: str
    content: str
    chunk_index: int
    start_line: int
    end_line: int
    content_hash: str = ""
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)
    embedding: list[float] = field(default_factory=list)
    chunk_id: str | None = None

    def __post_init__(self):
        if not self.file_path:
            raise ValueError("file_path must not be empty")
        if self.chunk_index < 0:
            raise ValueError("chunk_index must be >= 0")
        if self.start_line < 0 or self.end_line < self.start_line:
            raise ValueError(
                f"invalid line span {self.start_line}-{self.end_line} for {self.file_path}"
            )

    @property
    def id(self) -> str:
        if self.chunk_id:
            return self.chunk_id
        return f"{self.file_path}#{self.chunk_index}"

    @property
    def line_range(self) -> str:
        return f"{self.start_line}-{self.end_line}"


def exemplar_id(channel_id: str, message_id: str) -> str:
    """Store id of the answer exemplar created for a bot message."""
    return f"{EXEMPLAR_PREFIX}/{channel_id}/{message_id}"
