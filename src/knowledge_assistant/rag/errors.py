"""Error taxonomy for the question-answering pipeline."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Kind of failure, shown to the user and used for retry decisions."""
    INVALID_CONFIGURATION = "InvalidConfiguration"
    NOT_CONFIGURED = "NotConfigured"
    INVALID_INPUT = "InvalidInput"
    BUSY = "Busy"
    AUTHENTICATION_FAILED = "AuthenticationFailed"
    INDEX_NOT_FOUND = "IndexNotFound"
    RATE_LIMITED = "RateLimited"
    SERVICE_UNAVAILABLE = "ServiceUnavailable"
    MALFORMED_RESPONSE = "MalformedResponse"
    EMBEDDING_FAILED = "EmbeddingFailed"
    UNKNOWN = "Unknown"


TRANSIENT_KINDS = frozenset({ErrorKind.RATE_LIMITED, ErrorKind.SERVICE_UNAVAILABLE})


class RAGError(Exception):
    """Base exception for all pipeline errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        """True when resubmitting the same request may succeed later."""
        return self.kind in TRANSIENT_KINDS

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


class InvalidConfigurationError(RAGError):
    kind = ErrorKind.INVALID_CONFIGURATION


class NotConfiguredError(RAGError):
    kind = ErrorKind.NOT_CONFIGURED


class InvalidInputError(RAGError):
    kind = ErrorKind.INVALID_INPUT


class BusyError(RAGError):
    kind = ErrorKind.BUSY


class AuthenticationFailedError(RAGError):
    kind = ErrorKind.AUTHENTICATION_FAILED


class IndexNotFoundError(RAGError):
    kind = ErrorKind.INDEX_NOT_FOUND


class RateLimitedError(RAGError):
    kind = ErrorKind.RATE_LIMITED


class ServiceUnavailableError(RAGError):
    kind = ErrorKind.SERVICE_UNAVAILABLE


class MalformedResponseError(RAGError):
    kind = ErrorKind.MALFORMED_RESPONSE


class EmbeddingFailedError(RAGError):
    kind = ErrorKind.EMBEDDING_FAILED


class UnknownError(RAGError):
    kind = ErrorKind.UNKNOWN
