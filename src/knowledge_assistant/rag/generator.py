"""Generative model clients."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from knowledge_assistant.rag.errors import (
    AuthenticationFailedError,
    MalformedResponseError,
    RAGError,
    RateLimitedError,
    ServiceUnavailableError,
    UnknownError,
)
from knowledge_assistant.rag.models import Configuration
from knowledge_assistant.utils.config import Settings, get_settings
from knowledge_assistant.utils.logger import get_logger

logger = get_logger()


class GenerativeClient(ABC):
    """Sends a prompt to a language model and returns its text completion."""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """
        Generate a completion for a prompt.

        Raises:
            AuthenticationFailedError, RateLimitedError,
            ServiceUnavailableError, MalformedResponseError
        """
        pass


class GeminiClient(GenerativeClient):
    """
    Client for the Gemini generateContent REST endpoint.

    Generation parameters are fixed per deployment and read from settings.
    A fresh HTTP client is used per request so no state is kept between calls.
    """

    def __init__(
        self,
        api_key: str,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize Gemini client.

        Args:
            api_key: Gemini API key
            settings: Deployment settings (defaults to global settings)
            transport: Optional httpx transport (used by tests)
        """
        self.settings = settings or get_settings()
        self.api_key = api_key
        self.model = self.settings.gemini_model
        self.endpoint = (
            f"{self.settings.gemini_base_url.rstrip('/')}/models/{self.model}:generateContent"
        )
        self._transport = transport

    @classmethod
    def from_config(cls, config: Configuration, settings: Optional[Settings] = None) -> "GeminiClient":
        """Build a client for a configured session."""
        return cls(api_key=config.generative_api_key, settings=settings)

    @property
    def generation_config(self) -> Dict[str, Any]:
        return {
            "temperature": self.settings.gemini_temperature,
            "maxOutputTokens": self.settings.gemini_max_output_tokens,
            "topP": self.settings.gemini_top_p,
            "topK": self.settings.gemini_top_k,
        }

    def build_request(self, prompt: str) -> Dict[str, Any]:
        """Build the JSON body for a single-part text prompt."""
        return {
            "contents": [
                {
                    "parts": [
                        {"text": prompt}
                    ]
                }
            ],
            "generationConfig": self.generation_config,
        }

    async def complete(self, prompt: str) -> str:
        """
        Generate an answer for a prompt.

        Args:
            prompt: Fully assembled prompt

        Returns:
            Text of the first candidate's first part
        """
        logger.debug(f"Calling Gemini model {self.model} (prompt length: {len(prompt)})")

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.request_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.endpoint,
                    headers={
                        "Content-Type": "application/json",
                        "x-goog-api-key": self.api_key,
                    },
                    json=self.build_request(prompt),
                )
        except httpx.TimeoutException as e:
            raise ServiceUnavailableError(f"Gemini API timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"Gemini API request failed: {e}")
            raise ServiceUnavailableError(f"Gemini API unreachable: {e}") from e

        if not response.is_success:
            raise self._error_for_status(response)

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError("Gemini API returned a non-JSON body") from e

        text = self.parse_completion(data)
        logger.debug(f"Gemini generated {len(text)} characters")
        return text

    @staticmethod
    def parse_completion(data: Any) -> str:
        """
        Read the first candidate's first text part from a response envelope.

        Raises:
            MalformedResponseError: If any expected field is missing
        """
        if not isinstance(data, dict):
            raise MalformedResponseError("Gemini response is not a JSON object")

        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            feedback = data.get("promptFeedback")
            block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
            if block_reason:
                raise MalformedResponseError(f"Gemini returned no candidates (blocked: {block_reason})")
            raise MalformedResponseError("Gemini response has no candidates")

        content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list) or not parts:
            raise MalformedResponseError("Gemini candidate has no content parts")

        text = parts[0].get("text") if isinstance(parts[0], dict) else None
        if not isinstance(text, str):
            raise MalformedResponseError("Gemini candidate part has no text")

        return text

    def _error_for_status(self, response: httpx.Response) -> RAGError:
        status = response.status_code
        message = "Gemini API error"
        logger.error(f"{message}: {status}")

        if status in (401, 403):
            return AuthenticationFailedError(message, status_code=status)
        if status == 429:
            return RateLimitedError(message, status_code=status)
        if status >= 500:
            return ServiceUnavailableError(message, status_code=status)
        return UnknownError(message, status_code=status)


class StaticGenerator(GenerativeClient):
    """Returns a fixed answer and records the prompts it was given."""

    def __init__(self, answer: str = "Based on the provided documents, here is what I found."):
        self.answer = answer
        self.prompts: List[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.answer
