"""Repository file data models."""

from dataclasses import dataclass


@dataclass
class SourceFile:
    """A file listed by a file source, before its body is fetched."""

    path: str
    type: str = "blob"
    size: int | None = None


@dataclass
class RepoFile:
    """A fetched repository file."""

    path: str
    content: str
    size: int = 0

    def __post_init__(self):
        if not self.path:
            raise ValueError("path must not be empty")
        if not self.size:
            self.size = len(self.content.encode("utf-8"))
