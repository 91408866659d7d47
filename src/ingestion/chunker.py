"""Line-based code chunker with trailing overlap and language metadata."""

import re

from src.models.chunk import ChunkMetadata, CodeChunk

# ~4 characters per token
MAX_CHUNK_SIZE = 2000
OVERLAP_SIZE = 200

LANGUAGE_MAP = {
    "ts": "typescript",
    "tsx": "typescript",
    "js": "javascript",
    "jsx": "javascript",
    "py": "python",
    "md": "markdown",
    "json": "json",
    "sql": "sql",
    "sh": "shell",
    "yaml": "yaml",
    "yml": "yaml",
}

IMPORT_PATTERNS = [
    re.compile(r"^import\s+", re.MULTILINE),
    re.compile(r"^from\s+\S+\s+import\s+", re.MULTILINE),
]
EXPORT_PATTERN = re.compile(r"^export\s+", re.MULTILINE)


def detect_language(file_path: str) -> str:
    """Map a file extension to a language tag, "text" when unknown."""
    name = file_path.rsplit("/", 1)[-1]
    if "." not in name:
        return "text"
    ext = name.rsplit(".", 1)[-1].lower()
    return LANGUAGE_MAP.get(ext, "text")


def has_imports(text: str) -> bool:
    return any(pattern.search(text) for pattern in IMPORT_PATTERNS)


def has_exports(text: str) -> bool:
    return EXPORT_PATTERN.search(text) is not None


def _overlap_line_count(buffer_len: int, line_size: int, overlap_size: int) -> int:
    """Number of trailing lines to carry into the next chunk.

    Always leaves the new buffer shorter than the emitted one.
    """
    if overlap_size <= 0:
        return 0
    count = overlap_size // line_size if line_size else overlap_size
    return max(0, min(count, buffer_len - 1))


def _make_chunk(
    lines: list[str],
    file_path: str,
    chunk_index: int,
    start_line: int,
    end_line: int,
    language: str,
) -> CodeChunk:
    text = "\n".join(lines)
    return CodeChunk(
        file_path=file_path,
        content=text,
        chunk_index=chunk_index,
        start_line=start_line,
        end_line=end_line,
        metadata=ChunkMetadata(
            language=language,
            has_imports=has_imports(text),
            has_exports=has_exports(text),
        ),
    )


def chunk_code(
    content: str,
    file_path: str,
    max_chunk_size: int = MAX_CHUNK_SIZE,
    overlap_size: int = OVERLAP_SIZE,
) -> list[CodeChunk]:
    """Split file text into overlapping, size-bounded chunks.

    Lines accumulate until the next one would push the buffer past
    ``max_chunk_size`` characters; the buffer is then emitted and the next
    one starts with roughly ``overlap_size`` characters of trailing lines.
    Single lines are never truncated. Empty chunks are returned as-is, the
    caller is responsible for dropping them.
    """
    lines = content.split("\n")
    language = detect_language(file_path)

    chunks: list[CodeChunk] = []
    buffer: list[str] = []
    start_line = 0
    size = 0

    for i, line in enumerate(lines):
        line_size = len(line)

        if size + line_size > max_chunk_size and buffer:
            chunks.append(
                _make_chunk(buffer, file_path, len(chunks), start_line, i - 1, language)
            )
            keep = _overlap_line_count(len(buffer), line_size, overlap_size)
            buffer = buffer[len(buffer) - keep:] if keep else []
            start_line = i - keep
            size = sum(len(kept) for kept in buffer)

        buffer.append(line)
        size += line_size

    if buffer:
        chunks.append(
            _make_chunk(buffer, file_path, len(chunks), start_line, len(lines) - 1, language)
        )

    return chunks
