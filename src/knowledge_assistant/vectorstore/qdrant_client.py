"""Qdrant vector database client implementation."""

from typing import Any, List, Optional

import httpx
from pydantic import ValidationError
from qdrant_client import AsyncQdrantClient
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse

from knowledge_assistant.rag.errors import (
    AuthenticationFailedError,
    IndexNotFoundError,
    MalformedResponseError,
    RAGError,
    ServiceUnavailableError,
    UnknownError,
)
from knowledge_assistant.rag.models import Configuration, RetrievedMatch
from knowledge_assistant.utils.config import Settings, get_settings
from knowledge_assistant.utils.logger import get_logger
from knowledge_assistant.vectorstore.base import VectorIndexClient, validate_search_args

logger = get_logger()


class QdrantIndexClient(VectorIndexClient):
    """Searches a Qdrant collection; the collection name is the index name."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        settings: Optional[Settings] = None,
        client: Optional[AsyncQdrantClient] = None
    ):
        """
        Initialize Qdrant client and configuration.

        Args:
            api_key: Qdrant API key (reads from settings if None)
            settings: Deployment settings (defaults to global settings)
            client: Preconfigured async Qdrant client (built from settings if None)
        """
        self.settings = settings or get_settings()
        self.client = client or AsyncQdrantClient(
            url=self.settings.qdrant_url,
            api_key=api_key or self.settings.qdrant_api_key or None,
            timeout=int(self.settings.request_timeout_seconds),
        )

    @classmethod
    def from_config(cls, config: Configuration, settings: Optional[Settings] = None) -> "QdrantIndexClient":
        """Build a client for a configured session."""
        return cls(api_key=config.vector_api_key, settings=settings)

    async def search(
        self,
        query_vector: List[float],
        index_name: str,
        top_k: int
    ) -> List[RetrievedMatch]:
        """
        Search for the nearest document chunks.

        Args:
            query_vector: Query embedding
            index_name: Qdrant collection to search
            top_k: Maximum number of results

        Returns:
            Matches in the order Qdrant returned them
        """
        validate_search_args(index_name, top_k)
        logger.info(f"Searching index '{index_name}' (top_k={top_k})")

        try:
            response = await self.client.query_points(
                collection_name=index_name,
                query=query_vector,
                limit=top_k,
                # Cosine similarity can go negative; keep scores in [0, 1]
                score_threshold=0.0,
                with_payload=True,
            )
        except UnexpectedResponse as e:
            raise self._error_for_response(e, index_name) from e
        except (ResponseHandlingException, httpx.HTTPError) as e:
            logger.error(f"Vector store request failed: {e}")
            raise ServiceUnavailableError(f"Vector store unreachable: {e}") from e

        points = getattr(response, "points", None)
        if points is None:
            raise MalformedResponseError("Vector store response has no points")

        matches = [self._to_match(point) for point in points[:top_k]]
        logger.info(f"Found {len(matches)} results")
        return matches

    async def aclose(self) -> None:
        await self.client.close()

    def _to_match(self, point: Any) -> RetrievedMatch:
        """
        Convert a scored point into a RetrievedMatch.

        Args:
            point: Scored point with id, score and payload

        Returns:
            RetrievedMatch

        Raises:
            MalformedResponseError: If payload or score is unusable
        """
        payload = getattr(point, "payload", None) or {}
        text = payload.get("text")
        source = payload.get("source")

        if not isinstance(text, str) or not isinstance(source, str):
            raise MalformedResponseError(
                f"Point {getattr(point, 'id', '?')} is missing 'text' or 'source' in its payload"
            )

        try:
            return RetrievedMatch(
                id=str(point.id),
                score=point.score,
                source_name=source,
                text=text,
            )
        except (ValidationError, AttributeError) as e:
            raise MalformedResponseError(f"Invalid point in vector store response: {e}") from e

    def _error_for_response(self, error: UnexpectedResponse, index_name: str) -> RAGError:
        status = error.status_code
        logger.error(f"Vector store returned HTTP {status} for index '{index_name}'")

        if status in (401, 403):
            return AuthenticationFailedError("Vector store rejected the API key", status_code=status)
        if status == 404:
            return IndexNotFoundError(f"Index '{index_name}' does not exist", status_code=status)
        if status == 429 or status >= 500:
            return ServiceUnavailableError("Vector store is unavailable", status_code=status)
        return UnknownError(f"Vector store error: {error.reason_phrase}", status_code=status)
