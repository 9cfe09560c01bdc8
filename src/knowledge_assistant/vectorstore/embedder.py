"""Ollama embedding client implementation."""

from typing import List, Optional

import httpx
import ollama

from knowledge_assistant.rag.errors import EmbeddingFailedError, ServiceUnavailableError
from knowledge_assistant.utils.config import Settings, get_settings
from knowledge_assistant.utils.logger import get_logger
from knowledge_assistant.vectorstore.base import Embedder, validate_query_text

logger = get_logger()


class OllamaEmbedder(Embedder):
    """Embeds query text with an Ollama embedding model."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[ollama.AsyncClient] = None
    ):
        """
        Initialize the embedder.

        Args:
            settings: Deployment settings (defaults to global settings)
            client: Preconfigured Ollama client (built from settings if None)
        """
        self.settings = settings or get_settings()
        self.embedding_model = self.settings.ollama_embedding_model
        self._expected_dimension = self.settings.embedding_dimension
        self.ollama_client = client or ollama.AsyncClient(
            host=self.settings.ollama_base_url,
            timeout=self.settings.request_timeout_seconds,
        )

    @property
    def dimension(self) -> int:
        if self._expected_dimension is None:
            raise EmbeddingFailedError(
                "Embedding dimension is not configured; set EMBEDDING_DIMENSION"
            )
        return self._expected_dimension

    async def embed(self, text: str) -> List[float]:
        """
        Generate embedding for text using Ollama.

        Args:
            text: Text to embed

        Returns:
            List of floats representing the embedding

        Raises:
            InvalidInputError: If text is empty
            EmbeddingFailedError: If Ollama fails or returns an unusable vector
            ServiceUnavailableError: If Ollama does not answer in time
        """
        validate_query_text(text)
        logger.debug(f"Generating embedding for text (length: {len(text)})")

        try:
            response = await self.ollama_client.embeddings(
                model=self.embedding_model,
                prompt=text
            )
        except httpx.TimeoutException as e:
            raise ServiceUnavailableError(f"Embedding service timed out: {e}") from e
        except ollama.ResponseError as e:
            logger.error(f"Ollama rejected embedding request: {e.error}")
            raise EmbeddingFailedError(
                f"Embedding service error: {e.error}", status_code=e.status_code
            ) from e
        except (ConnectionError, httpx.HTTPError) as e:
            logger.error(f"Failed to reach embedding service: {e}")
            raise EmbeddingFailedError(f"Embedding service unreachable: {e}") from e
        except Exception as e:
            logger.error(f"Unexpected embedding service failure: {e}")
            raise EmbeddingFailedError(f"Embedding service failed: {e}") from e

        try:
            embedding = response["embedding"]
        except (KeyError, TypeError) as e:
            raise EmbeddingFailedError("Ollama response has no embedding field") from e

        if not embedding:
            raise EmbeddingFailedError("No embedding returned from Ollama")

        if self._expected_dimension is not None and len(embedding) != self._expected_dimension:
            raise EmbeddingFailedError(
                f"Embedding has {len(embedding)} dimensions, "
                f"expected {self._expected_dimension}"
            )

        logger.debug(f"Successfully generated embedding (size: {len(embedding)})")
        return [float(value) for value in embedding]
