"""ChromaDB vector store integration for repository code chunks."""

import logging

import chromadb
from chromadb.config import Settings as ChromaSettings

from src.embedding.provider import EmbeddingConfigurationError, check_dimension
from src.models.chunk import ChunkMetadata, CodeChunk
from src.models.enums import ChunkSource
from src.models.search import SearchResult

logger = logging.getLogger(__name__)

COLLECTION_NAME = "code_chunks"

_EXTRA_PREFIX = "x_"


def chunk_to_metadata(chunk: CodeChunk) -> dict:
    """Flatten a chunk into the scalar-only metadata dict ChromaDB accepts."""
    meta = chunk.metadata
    flat = {
        "file_path": chunk.file_path,
        "content_hash": chunk.content_hash,
        "chunk_index": chunk.chunk_index,
        "start_line": chunk.start_line,
        "end_line": chunk.end_line,
    }
    flat.update(metadata_to_dict(meta))
    return flat


def metadata_to_dict(meta: ChunkMetadata) -> dict:
    flat = {
        "language": meta.language,
        "has_imports": meta.has_imports,
        "has_exports": meta.has_exports,
        "upvotes": meta.upvotes,
        "downvotes": meta.downvotes,
        "feedback_score": meta.feedback_score,
        "source": meta.source.value,
    }
    for key, value in meta.extra.items():
        if value is not None:
            flat[f"{_EXTRA_PREFIX}{key}"] = value
    return flat


def metadata_from_dict(flat: dict) -> ChunkMetadata:
    extra = {
        key[len(_EXTRA_PREFIX):]: value
        for key, value in flat.items()
        if key.startswith(_EXTRA_PREFIX)
    }
    return ChunkMetadata(
        language=flat.get("language", "text"),
        has_imports=bool(flat.get("has_imports", False)),
        has_exports=bool(flat.get("has_exports", False)),
        upvotes=int(flat.get("upvotes", 0) or 0),
        downvotes=int(flat.get("downvotes", 0) or 0),
        feedback_score=int(flat.get("feedback_score", 0) or 0),
        source=flat.get("source") or ChunkSource.CODE.value,
        extra=extra,
    )


def chunk_from_record(chunk_id: str, text: str, flat: dict) -> CodeChunk:
    return CodeChunk(
        file_path=flat.get("file_path", chunk_id),
        content=text or "",
        chunk_index=int(flat.get("chunk_index", 0)),
        start_line=int(flat.get("start_line", 0)),
        end_line=int(flat.get("end_line", 0)),
        content_hash=flat.get("content_hash", ""),
        metadata=metadata_from_dict(flat),
        chunk_id=chunk_id,
    )


class ChromaStore:
    """ChromaDB-backed vector store for code chunks and answer exemplars.

    Manages a single collection with cosine distance. Each record carries the
    chunk text, its embedding and a flat metadata dict holding the chunk's
    position, language hints and learned feedback counters.
    """

    def __init__(
        self,
        path: str = "./data/chroma",
        collection_name: str = COLLECTION_NAME,
        dimension: int | None = None,
    ):
        if path == ":memory:":
            self._client = chromadb.Client(ChromaSettings(anonymized_telemetry=False))
        else:
            self._client = chromadb.PersistentClient(
                path=path,
                settings=ChromaSettings(anonymized_telemetry=False),
            )
        self._collection = self._client.get_or_create_collection(
            name=collection_name,
            metadata={"hnsw:space": "cosine"},
        )
        self._dimension = dimension
        if dimension is not None:
            stored = self._stored_dimension()
            if stored is not None and stored != dimension:
                raise EmbeddingConfigurationError(
                    f"collection '{collection_name}' holds {stored}-dim vectors, "
                    f"embedding provider produces {dimension}"
                )

    def _stored_dimension(self) -> int | None:
        """Length of an already stored vector, None for an empty collection."""
        sample = self._collection.get(limit=1, include=["embeddings"])
        embeddings = sample.get("embeddings")
        if embeddings is None or len(embeddings) == 0:
            return None
        return len(embeddings[0])

    def close(self) -> None:
        self._collection = None
        self._client = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def upsert_chunks(self, chunks: list[CodeChunk]) -> int:
        """Insert or replace chunks by id.

        Returns the number of chunks written.
        """
        if not chunks:
            return 0

        for chunk in chunks:
            if not chunk.content.strip():
                raise ValueError(f"refusing to store empty chunk {chunk.id}")
            if not chunk.embedding:
                raise ValueError(f"chunk {chunk.id} has no embedding")
        if self._dimension is not None:
            check_dimension([c.embedding for c in chunks], self._dimension)

        self._collection.upsert(
            ids=[c.id for c in chunks],
            embeddings=[c.embedding for c in chunks],
            documents=[c.content for c in chunks],
            metadatas=[chunk_to_metadata(c) for c in chunks],
        )
        return len(chunks)

    def delete_file_chunks(self, file_path: str) -> None:
        """Delete every chunk stored for an exact file path."""
        self._collection.delete(where={"file_path": file_path})

    def delete_chunks(self, ids: list[str]) -> None:
        """Delete chunks by id; unknown ids are ignored."""
        if ids:
            self._collection.delete(ids=list(ids))

    def count_matching(self, file_path: str, content_hash: str) -> int:
        """Count chunks stored for a file at a given content hash."""
        results = self._collection.get(
            where={"$and": [
                {"file_path": file_path},
                {"content_hash": content_hash},
            ]},
            include=["metadatas"],
        )
        return len(results["ids"])

    def query_nearest(
        self,
        query_embedding: list[float],
        threshold: float = 0.0,
        top_k: int = 5,
        where: dict | None = None,
    ) -> list[SearchResult]:
        """Return up to top_k chunks with cosine similarity strictly above threshold.

        Results are ordered by similarity, highest first.
        """
        total = self.count
        if total == 0 or top_k <= 0:
            return []

        kwargs = {
            "query_embeddings": [query_embedding],
            "n_results": min(top_k, total),
            "include": ["documents", "metadatas", "distances"],
        }
        if where is not None:
            kwargs["where"] = where

        try:
            results = self._collection.query(**kwargs)
        except Exception:
            # older chroma releases reject n_results above the filtered match count
            if "where" not in kwargs:
                raise
            matching = len(self._collection.get(where=where, include=["metadatas"])["ids"])
            if matching == 0:
                return []
            kwargs["n_results"] = min(top_k, matching)
            results = self._collection.query(**kwargs)

        output = []
        if results["ids"] and results["ids"][0]:
            for i, chunk_id in enumerate(results["ids"][0]):
                # cosine space: distance = 1 - cosine similarity
                similarity = 1.0 - results["distances"][0][i]
                if similarity <= threshold:
                    continue
                chunk = chunk_from_record(
                    chunk_id,
                    results["documents"][0][i],
                    results["metadatas"][0][i] or {},
                )
                output.append(SearchResult(chunk=chunk, similarity=max(-1.0, min(similarity, 1.0))))

        output.sort(key=lambda r: r.similarity, reverse=True)
        return output

    def get_chunks(self, ids: list[str]) -> dict[str, CodeChunk]:
        """Fetch stored chunks by id. Unknown ids are absent from the result."""
        if not ids:
            return {}
        results = self._collection.get(ids=list(ids), include=["documents", "metadatas"])
        chunks = {}
        for i, chunk_id in enumerate(results["ids"]):
            chunks[chunk_id] = chunk_from_record(
                chunk_id,
                results["documents"][i] if results["documents"] else "",
                results["metadatas"][i] if results["metadatas"] else {},
            )
        return chunks

    def get_by_file_path(self, path_fragment: str, limit: int = 10) -> list[CodeChunk]:
        """Chunks whose file path contains path_fragment, in chunk order.

        ChromaDB has no substring filter on metadata, so paths are matched
        after a metadata scan.
        """
        results = self._collection.get(include=["documents", "metadatas"])
        chunks = [
            chunk_from_record(chunk_id, text, meta or {})
            for chunk_id, text, meta in zip(
                results["ids"], results["documents"], results["metadatas"]
            )
            if path_fragment in (meta or {}).get("file_path", "")
        ]
        chunks.sort(key=lambda c: (c.chunk_index, c.file_path))
        return chunks[:limit]

    def update_metadata_batch(self, updates: dict[str, ChunkMetadata]) -> int:
        """Replace the metadata of several chunks as one all-or-nothing batch.

        Ids that no longer exist are skipped. If the write fails, the previous
        metadata of every chunk in the batch is restored before re-raising.

        Returns the number of chunks updated.
        """
        if not updates:
            return 0

        snapshot = self._collection.get(ids=list(updates), include=["metadatas"])
        if not snapshot["ids"]:
            return 0

        ids = []
        metadatas = []
        for chunk_id, previous in zip(snapshot["ids"], snapshot["metadatas"]):
            merged = dict(previous or {})
            merged.update(metadata_to_dict(updates[chunk_id]))
            ids.append(chunk_id)
            metadatas.append(merged)

        missing = set(updates) - set(ids)
        if missing:
            logger.warning("Skipping feedback for %d vanished chunks: %s", len(missing), sorted(missing))

        try:
            self._collection.update(ids=ids, metadatas=metadatas)
        except Exception:
            logger.error("Metadata batch of %d chunks failed, restoring previous values", len(ids))
            self._collection.update(
                ids=list(snapshot["ids"]),
                metadatas=[dict(m or {}) for m in snapshot["metadatas"]],
            )
            raise
        return len(ids)

    @property
    def count(self) -> int:
        """Return the number of chunks in the collection."""
        return self._collection.count()
