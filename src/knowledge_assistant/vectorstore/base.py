"""Abstract capability interfaces for embedding and vector search."""

from abc import ABC, abstractmethod
from typing import List

from knowledge_assistant.rag.errors import InvalidInputError
from knowledge_assistant.rag.models import RetrievedMatch


class Embedder(ABC):
    """
    Converts text into a fixed-length embedding vector.

    Implementations must be deterministic: identical text yields an
    identical vector, and every vector has length `dimension`.
    """

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of every vector produced by this embedder."""
        pass

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """
        Embed a piece of text.

        Args:
            text: Non-empty text to embed

        Returns:
            Embedding vector of length `dimension`

        Raises:
            InvalidInputError: If text is empty
            EmbeddingFailedError: If the embedding service fails
        """
        pass


class VectorIndexClient(ABC):
    """
    Queries a vector store for the nearest neighbours of a vector.

    Ordering and scores are whatever the store returns; implementations
    never re-rank or filter locally.
    """

    @abstractmethod
    async def search(
        self,
        query_vector: List[float],
        index_name: str,
        top_k: int
    ) -> List[RetrievedMatch]:
        """
        Find the top-k nearest matches in a named index.

        Args:
            query_vector: Query embedding
            index_name: Name of an existing index
            top_k: Maximum number of matches to return (>= 1)

        Returns:
            At most top_k matches in store order (may be empty)

        Raises:
            AuthenticationFailedError, IndexNotFoundError,
            ServiceUnavailableError, MalformedResponseError
        """
        pass

    async def aclose(self) -> None:
        """Release network resources held by the client."""
        return None


def validate_search_args(index_name: str, top_k: int) -> None:
    """Reject search arguments no store could answer."""
    if not index_name or not index_name.strip():
        raise InvalidInputError("Index name must not be empty")
    if isinstance(top_k, bool) or not isinstance(top_k, int) or top_k < 1:
        raise InvalidInputError(f"top_k must be a positive integer, got {top_k!r}")


def validate_query_text(text: str) -> str:
    """Return text unchanged, or raise InvalidInputError if it is blank."""
    if not isinstance(text, str) or not text.strip():
        raise InvalidInputError("Cannot embed empty text")
    return text
