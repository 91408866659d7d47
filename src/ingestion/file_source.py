"""Repository file sources: GitHub REST API and local checkouts.

Both sources restrict listings to supported text extensions, drop build
artifacts, lockfiles and binary assets, and fetch file bodies in small
concurrent batches.
"""

import base64
import logging
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterator

import requests

from src.models.source_file import RepoFile, SourceFile

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"

SUPPORTED_EXTENSIONS = (
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".md",
    ".json",
    ".sql",
    ".yaml",
    ".yml",
)

IGNORE_PATTERNS = (
    "node_modules",
    ".next",
    ".git",
    "dist",
    "build",
    "coverage",
    ".DS_Store",
    "package-lock.json",
    "yarn.lock",
    "bun.lockb",
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".ico",
    ".svg",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
)


def should_ignore_file(path: str) -> bool:
    return any(pattern in path for pattern in IGNORE_PATTERNS)


def is_supported_file(path: str) -> bool:
    return path.endswith(SUPPORTED_EXTENSIONS)


def is_candidate(path: str) -> bool:
    return is_supported_file(path) and not should_ignore_file(path)


class FileSource(ABC):
    """Lists repository files and fetches their bodies."""

    def __init__(self, batch_size: int = 10, batch_delay: float = 0.1):
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        self.batch_size = batch_size
        self.batch_delay = batch_delay

    @abstractmethod
    def list_files(self) -> list[SourceFile]:
        """Return candidate files in a stable order."""
        ...

    @abstractmethod
    def fetch_file(self, path: str) -> RepoFile | None:
        """Fetch one file body, or None when it cannot be read."""
        ...

    def iter_batches(self, paths: list[str]) -> Iterator[list[RepoFile]]:
        """Fetch file bodies in bounded concurrent batches, yielding each batch.

        Files keep the order of ``paths``; unreadable files are dropped.
        """
        for start in range(0, len(paths), self.batch_size):
            batch = paths[start:start + self.batch_size]
            with ThreadPoolExecutor(max_workers=len(batch)) as pool:
                results = list(pool.map(self.fetch_file, batch))
            yield [f for f in results if f is not None]

            # Stay under remote rate limits
            if start + self.batch_size < len(paths) and self.batch_delay > 0:
                time.sleep(self.batch_delay)

    def fetch_files(self, paths: list[str]) -> list[RepoFile]:
        return [f for batch in self.iter_batches(paths) for f in batch]


class GitHubFileSource(FileSource):
    """Reads a repository branch through the GitHub REST API."""

    def __init__(
        self,
        owner: str,
        repo: str,
        branch: str = "develop",
        token: str = "",
        session: requests.Session | None = None,
        batch_size: int = 10,
        batch_delay: float = 0.1,
    ):
        super().__init__(batch_size=batch_size, batch_delay=batch_delay)
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self._session = session or requests.Session()
        self._session.headers.setdefault("Accept", "application/vnd.github+json")
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    @property
    def ref(self) -> str:
        return f"{self.owner}/{self.repo}@{self.branch}"

    def _get(self, path: str, **params) -> dict:
        resp = self._session.get(f"{GITHUB_API_URL}{path}", params=params or None, timeout=30)
        resp.raise_for_status()
        return resp.json()

    def list_files(self) -> list[SourceFile]:
        logger.info("Fetching file tree for %s", self.ref)
        ref = self._get(f"/repos/{self.owner}/{self.repo}/git/ref/heads/{self.branch}")
        commit_sha = ref["object"]["sha"]
        tree = self._get(
            f"/repos/{self.owner}/{self.repo}/git/trees/{commit_sha}",
            recursive="true",
        )
        if tree.get("truncated"):
            logger.warning("GitHub truncated the file tree for %s", self.ref)

        files = [
            SourceFile(path=item["path"], type=item["type"], size=item.get("size"))
            for item in tree.get("tree", [])
            if item.get("type") == "blob" and is_candidate(item["path"])
        ]
        logger.info("Found %d supported files", len(files))
        return files

    def fetch_file(self, path: str) -> RepoFile | None:
        try:
            data = self._get(
                f"/repos/{self.owner}/{self.repo}/contents/{path}",
                ref=self.branch,
            )
        except Exception as e:
            logger.warning("Failed to fetch %s: %s", path, e)
            return None

        if not isinstance(data, dict) or data.get("type") != "file" or "content" not in data:
            return None
        content = base64.b64decode(data["content"]).decode("utf-8", errors="replace")
        return RepoFile(path=data.get("path", path), content=content, size=data.get("size", 0))


class LocalFileSource(FileSource):
    """Reads files from a repository checkout on disk."""

    def __init__(self, root: str | Path, batch_size: int = 10, batch_delay: float = 0.0):
        super().__init__(batch_size=batch_size, batch_delay=batch_delay)
        self.root = Path(root)
        if not self.root.is_dir():
            raise ValueError(f"not a directory: {self.root}")

    @property
    def ref(self) -> str:
        return str(self.root)

    def list_files(self) -> list[SourceFile]:
        files = []
        for file_path in sorted(self.root.rglob("*")):
            if not file_path.is_file():
                continue
            rel = file_path.relative_to(self.root).as_posix()
            if is_candidate(rel):
                files.append(SourceFile(path=rel, size=file_path.stat().st_size))
        logger.info("Found %d supported files under %s", len(files), self.root)
        return files

    def fetch_file(self, path: str) -> RepoFile | None:
        try:
            content = (self.root / path).read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Failed to read %s: %s", path, e)
            return None
        return RepoFile(path=path, content=content)
