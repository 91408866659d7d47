"""Abstract embedding provider interface."""

from abc import ABC, abstractmethod


class EmbeddingConfigurationError(RuntimeError):
    """Embedding setup is unusable: missing credential or wrong dimension.

    Never retried or swallowed; the running operation must stop.
    """


class EmbeddingProvider(ABC):
    """Interface for text embedding generation.

    Ingestion and querying must use the same provider and model: vectors from
    different embedding spaces are not comparable.
    """

    @abstractmethod
    def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for a batch of text strings.

        Args:
            texts: List of text strings to embed.

        Returns:
            List of embedding vectors, one per input, each of length
            ``dimension``.

        Raises:
            ValueError: If texts is empty.
        """
        ...

    def embed_query(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for query texts.

        Override for models that need a query-side instruction prefix.
        Default delegates to embed().
        """
        return self.embed(texts)

    def embed_one(self, text: str) -> list[float]:
        return self.embed_query([text])[0]

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the embedding dimension (e.g., 384 or 1536)."""
        ...


def check_dimension(vectors: list[list[float]], expected: int) -> None:
    """Raise EmbeddingConfigurationError if any vector has the wrong length."""
    for vector in vectors:
        if len(vector) != expected:
            raise EmbeddingConfigurationError(
                f"embedding dimension mismatch: expected {expected}, got {len(vector)}"
            )
