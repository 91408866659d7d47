"""Ingestion pipeline orchestrator.

Wires together: file source → hash check → chunker → embedding → chroma_store.
"""

import hashlib
import logging

from src.embedding.provider import EmbeddingConfigurationError, EmbeddingProvider
from src.ingestion.chunker import MAX_CHUNK_SIZE, OVERLAP_SIZE, chunk_code
from src.ingestion.file_source import FileSource
from src.models.chunk import CodeChunk
from src.models.source_file import RepoFile
from src.vectorstore.chroma_store import ChromaStore

logger = logging.getLogger(__name__)

EMBED_BATCH_SIZE = 100


def compute_content_hash(content: str) -> str:
    """SHA-256 hex digest of a whole file body."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def _embed_and_store_batch(
    file_path: str,
    content_hash: str,
    chunks: list[CodeChunk],
    start_index: int,
    store: ChromaStore,
    embedding_provider: EmbeddingProvider,
) -> int:
    """Embed one batch of a file's chunks and insert them.

    Chunk indexes start at the batch's offset in the file's chunk list.
    """
    valid = [c for c in chunks if c.content.strip()]
    if not valid:
        logger.info("Skipping batch for %s (no valid chunks)", file_path)
        return 0

    vectors = embedding_provider.embed([c.content for c in valid])
    for i, (chunk, vector) in enumerate(zip(valid, vectors)):
        chunk.chunk_index = start_index + i
        chunk.content_hash = content_hash
        chunk.embedding = vector
    return store.upsert_chunks(valid)


def ingest_file(
    file: RepoFile,
    store: ChromaStore,
    embedding_provider: EmbeddingProvider,
    force_regenerate: bool = False,
    chunk_size: int = MAX_CHUNK_SIZE,
    chunk_overlap: int = OVERLAP_SIZE,
    embed_batch_size: int = EMBED_BATCH_SIZE,
) -> int | None:
    """Replace the stored chunks of one file.

    Returns the number of chunks embedded, or None when the file was
    skipped because the same content is already indexed.
    """
    content_hash = compute_content_hash(file.content)

    if not force_regenerate and store.count_matching(file.path, content_hash) > 0:
        logger.info("Skipping %s (already processed)", file.path)
        return None

    # Full replacement: old chunks go before the new set is written
    store.delete_file_chunks(file.path)

    chunks = [
        c for c in chunk_code(file.content, file.path, chunk_size, chunk_overlap)
        if c.content.strip()
    ]
    if not chunks:
        logger.info("Skipping %s (no valid chunks)", file.path)
        return 0

    logger.info("Processing %s: %d chunks", file.path, len(chunks))
    stored = 0
    try:
        for start in range(0, len(chunks), embed_batch_size):
            stored += _embed_and_store_batch(
                file.path,
                content_hash,
                chunks[start:start + embed_batch_size],
                start,
                store,
                embedding_provider,
            )
    except Exception:
        # A partial set would carry the new hash and be skipped on the next run
        logger.warning("Removing %d partial chunks of %s", stored, file.path)
        store.delete_file_chunks(file.path)
        raise
    return stored


def run_ingestion_pipeline(
    source: FileSource,
    store: ChromaStore,
    embedding_provider: EmbeddingProvider,
    force_regenerate: bool = False,
    chunk_size: int = MAX_CHUNK_SIZE,
    chunk_overlap: int = OVERLAP_SIZE,
    embed_batch_size: int = EMBED_BATCH_SIZE,
    extra_files: list[RepoFile] | None = None,
) -> dict:
    """Run the full ingestion pipeline for one repository.

    Steps:
    1. List supported files from the source
    2. Fetch file bodies batch by batch
    3. Skip files whose content hash is already indexed
    4. Chunk, embed and store the rest, one file at a time

    A failing file is logged and counted, and the run moves on. Embedding
    configuration errors abort the run.

    Returns a summary dict; ``chunks_stored`` is the total number of chunks
    embedded across all files.
    """
    file_list = source.list_files()
    logger.info("Found %d files to process", len(file_list))

    chunks_stored = 0
    files_ingested = 0
    files_skipped = 0
    errors = 0

    def _process(file: RepoFile) -> None:
        nonlocal chunks_stored, files_ingested, files_skipped, errors
        try:
            stored = ingest_file(
                file,
                store,
                embedding_provider,
                force_regenerate=force_regenerate,
                chunk_size=chunk_size,
                chunk_overlap=chunk_overlap,
                embed_batch_size=embed_batch_size,
            )
        except EmbeddingConfigurationError:
            raise
        except Exception as e:
            logger.error("Error processing %s: %s", file.path, e)
            errors += 1
            return
        if stored is None:
            files_skipped += 1
        else:
            files_ingested += 1
            chunks_stored += stored

    total_batches = (len(file_list) + source.batch_size - 1) // source.batch_size
    paths = [f.path for f in file_list]
    for batch_num, files in enumerate(source.iter_batches(paths), 1):
        logger.info("Processing batch %d/%d (%d files)", batch_num, total_batches, len(files))
        for file in files:
            _process(file)

    for file in extra_files or []:
        _process(file)

    logger.info("Generated embeddings for %d chunks", chunks_stored)
    return {
        "files_total": len(file_list) + len(extra_files or []),
        "files_ingested": files_ingested,
        "files_skipped": files_skipped,
        "chunks_stored": chunks_stored,
        "errors": errors,
    }
