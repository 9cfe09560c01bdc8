"""Pydantic models for the question-answering pipeline."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from knowledge_assistant.rag.errors import ErrorKind, InvalidConfigurationError, RAGError
from knowledge_assistant.utils.config import Settings, get_settings

# Largest top-k offered by the settings form, unless MAX_TOP_K is set
MAX_TOP_K = 10


class PipelineState(str, Enum):
    """Query pipeline state."""
    UNCONFIGURED = "unconfigured"
    READY = "ready"
    QUERYING = "querying"


class MessageRole(str, Enum):
    """Author of a chat message."""
    USER = "user"
    ASSISTANT = "assistant"


class Configuration(BaseModel):
    """Credentials and retrieval parameters for one configured session."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    generative_api_key: str = Field(..., min_length=1, description="Gemini API key")
    vector_api_key: str = Field(..., min_length=1, description="Vector store API key")
    index_name: str = Field(..., min_length=1, description="Name of the vector index to query")
    top_k: int = Field(..., ge=1, description="Matches to retrieve per question")

    @field_validator("top_k")
    @classmethod
    def _within_top_k_limit(cls, value: int, info: ValidationInfo) -> int:
        limit = (info.context or {}).get("max_top_k", MAX_TOP_K)
        if value > limit:
            raise ValueError(f"top_k must be at most {limit}")
        return value

    def __repr__(self) -> str:
        # Keep API keys out of logs and tracebacks
        return f"Configuration(index_name={self.index_name!r}, top_k={self.top_k})"

    __str__ = __repr__

    @classmethod
    def parse(
        cls,
        data: "Configuration | Mapping[str, Any]",
        max_top_k: Optional[int] = None
    ) -> "Configuration":
        """
        Validate a configuration record.

        Args:
            data: Configuration or mapping with all four fields
            max_top_k: Upper bound for top_k (MAX_TOP_K if None)

        Raises:
            InvalidConfigurationError: If a field is missing, blank or out of range
        """
        limit = max_top_k if max_top_k is not None else MAX_TOP_K
        if isinstance(data, cls):
            if data.top_k <= limit:
                return data
            data = data.model_dump()
        try:
            return cls.model_validate(dict(data), context={"max_top_k": limit})
        except (ValidationError, TypeError, ValueError) as e:
            raise InvalidConfigurationError(_describe_validation_error(e, limit)) from e

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **overrides: Any) -> "Configuration":
        """Build a configuration from environment settings."""
        settings = settings or get_settings()
        data = {
            "generative_api_key": settings.gemini_api_key,
            "vector_api_key": settings.qdrant_api_key,
            "index_name": settings.index_name,
            "top_k": settings.top_k,
        }
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.parse(data, max_top_k=settings.max_top_k)


def _describe_validation_error(error: Exception, max_top_k: int) -> str:
    if not isinstance(error, ValidationError):
        return f"Invalid configuration: {error}"

    missing, invalid = set(), set()
    for err in error.errors():
        if not err.get("loc"):
            continue
        field = str(err["loc"][0])
        if err["type"] in ("missing", "string_too_short") or err.get("input") is None:
            missing.add(field)
        else:
            invalid.add(field)

    if missing:
        return "Please fill in all required fields: " + ", ".join(sorted(missing))
    if "top_k" in invalid:
        return f"top_k must be a whole number between 1 and {max_top_k}"
    return "Invalid value for: " + ", ".join(sorted(invalid))


class RetrievedMatch(BaseModel):
    """A document chunk returned by the vector index."""

    model_config = ConfigDict(frozen=True)

    id: str
    score: float = Field(..., ge=0.0, le=1.0, description="Similarity, higher is more relevant")
    source_name: str
    text: str


class ChatMessage(BaseModel):
    """One entry of the conversation log."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    sources: Tuple[RetrievedMatch, ...] = ()
    is_error: bool = False
    error_kind: Optional[ErrorKind] = None

    @field_validator("sources", mode="before")
    @classmethod
    def _freeze_sources(cls, value):
        return tuple(value) if value is not None else ()

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str, sources=()) -> "ChatMessage":
        return cls(role=MessageRole.ASSISTANT, content=content, sources=sources)

    @classmethod
    def from_error(cls, error: RAGError) -> "ChatMessage":
        """Build the assistant message reported for a failed query."""
        return cls(
            role=MessageRole.ASSISTANT,
            content=(
                f"Sorry, I encountered an error ({error.kind.value}): {error}. "
                f"{_ERROR_HINTS.get(error.kind, _DEFAULT_HINT)}"
            ),
            is_error=True,
            error_kind=error.kind,
        )


_DEFAULT_HINT = "Please try again."

_ERROR_HINTS = {
    ErrorKind.AUTHENTICATION_FAILED: "Please check your API keys and try again.",
    ErrorKind.INDEX_NOT_FOUND: "Please check the index name in your settings.",
    ErrorKind.RATE_LIMITED: "The service is busy, please wait a moment and try again.",
    ErrorKind.SERVICE_UNAVAILABLE: "The service is temporarily unavailable, please try again shortly.",
    ErrorKind.EMBEDDING_FAILED: "Please check that the embedding service is running and try again.",
}
