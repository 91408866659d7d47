"""OpenAI embedding provider via langchain-openai."""

import logging

from langchain_openai import OpenAIEmbeddings

from src.embedding.provider import EmbeddingConfigurationError, EmbeddingProvider

logger = logging.getLogger(__name__)

MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Hosted embeddings; text-embedding-3-small yields 1536-dim vectors."""

    def __init__(
        self,
        api_key: str,
        model_name: str = "text-embedding-3-small",
        dimension: int | None = None,
    ):
        if not api_key:
            raise EmbeddingConfigurationError(
                "OPENAI_API_KEY is required for the openai embedding provider"
            )
        if dimension is None:
            dimension = MODEL_DIMENSIONS.get(model_name)
        if dimension is None:
            raise EmbeddingConfigurationError(
                f"Unknown dimension for embedding model {model_name}; "
                "set REPOCHAT_EMBEDDING_DIMENSION"
            )
        self._client = OpenAIEmbeddings(model=model_name, api_key=api_key)
        self._model_name = model_name
        self._dimension = dimension

    @property
    def model_name(self) -> str:
        return self._model_name

    def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            raise ValueError("texts must not be empty")
        logger.debug("Embedding %d texts with %s", len(texts), self._model_name)
        return self._client.embed_documents(texts)

    def embed_query(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            raise ValueError("texts must not be empty")
        return [self._client.embed_query(text) for text in texts]

    @property
    def dimension(self) -> int:
        return self._dimension
