"""Query pipeline: question -> embedding -> retrieval -> prompt -> answer."""

import asyncio
import time
from typing import Any, Awaitable, Callable, Iterator, List, Mapping, Optional, Set, Tuple, TypeVar

from knowledge_assistant.rag.context_builder import assemble
from knowledge_assistant.rag.errors import (
    BusyError,
    InvalidInputError,
    NotConfiguredError,
    RAGError,
    ServiceUnavailableError,
    UnknownError,
)
from knowledge_assistant.rag.generator import GeminiClient, GenerativeClient
from knowledge_assistant.rag.models import (
    ChatMessage,
    Configuration,
    MessageRole,
    PipelineState,
    RetrievedMatch,
)
from knowledge_assistant.utils.config import Settings, get_settings
from knowledge_assistant.utils.logger import get_logger
from knowledge_assistant.vectorstore.base import Embedder, VectorIndexClient
from knowledge_assistant.vectorstore.qdrant_client import QdrantIndexClient

logger = get_logger()

T = TypeVar("T")

IndexClientFactory = Callable[[Configuration], VectorIndexClient]
GeneratorFactory = Callable[[Configuration], GenerativeClient]

GREETING = (
    "👋 Hello! I'm your PDF Knowledge Assistant. I can help you find information "
    "from your uploaded documents. What would you like to know?"
)


class ConversationLog:
    """Append-only, ordered record of chat messages."""

    def __init__(self):
        self._messages: List[ChatMessage] = []

    def append(self, message: ChatMessage) -> None:
        self._messages.append(message)

    def clear(self) -> None:
        self._messages.clear()

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        """Snapshot of the log; later appends do not affect it."""
        return tuple(self._messages)

    @property
    def latest_sources(self) -> Tuple[RetrievedMatch, ...]:
        """Sources of the most recent answer that cited any."""
        for message in reversed(self._messages):
            if message.role == MessageRole.ASSISTANT and message.sources:
                return message.sources
        return ()

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(self.messages)


class QueryPipeline:
    """
    Stateful question-answering pipeline.

    States: UNCONFIGURED -> READY -> QUERYING -> READY. Only one question
    is in flight at a time; a second `ask` while querying raises BusyError.
    Stage failures never escape `ask`: they become error messages in the
    conversation log and the pipeline returns to READY.
    """

    def __init__(
        self,
        embedder: Embedder,
        index_client_factory: Optional[IndexClientFactory] = None,
        generator_factory: Optional[GeneratorFactory] = None,
        log: Optional[ConversationLog] = None,
        settings: Optional[Settings] = None
    ):
        """
        Initialize the pipeline.

        Args:
            embedder: Embedder used for every question
            index_client_factory: Builds the vector index client for a configuration
                (defaults to QdrantIndexClient)
            generator_factory: Builds the generative client for a configuration
                (defaults to GeminiClient)
            log: Conversation log to append to (a new one if None)
            settings: Deployment settings (defaults to global settings)
        """
        self.settings = settings or get_settings()
        self.embedder = embedder
        self._index_client_factory = index_client_factory or self._default_index_client
        self._generator_factory = generator_factory or self._default_generator
        self.log = log if log is not None else ConversationLog()

        self._state = PipelineState.UNCONFIGURED
        self._config: Optional[Configuration] = None
        self._index_client: Optional[VectorIndexClient] = None
        self._generator: Optional[GenerativeClient] = None
        self._closing: Set[asyncio.Task] = set()
        self._epoch = 0
        self.last_prompt: Optional[str] = None

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def configuration(self) -> Optional[Configuration]:
        return self._config

    def configure(self, config: "Configuration | Mapping[str, Any]") -> Configuration:
        """
        Validate a configuration and make the pipeline ready.

        Args:
            config: Configuration or mapping with its four fields

        Returns:
            The validated configuration

        Raises:
            InvalidConfigurationError: If a field is missing or invalid;
                the pipeline state is left unchanged
        """
        validated = Configuration.parse(config, max_top_k=self.settings.max_top_k)

        index_client = self._index_client_factory(validated)
        generator = self._generator_factory(validated)

        previous = self._index_client
        self._config = validated
        self._index_client = index_client
        self._generator = generator
        self._epoch += 1
        self._state = PipelineState.READY
        if previous is not None and previous is not index_client:
            self._retire(previous)

        logger.info(f"Pipeline configured: {validated}")

        if not len(self.log):
            self._greet()
        return validated

    def reset(self) -> None:
        """Clear the conversation and abandon any question still in flight."""
        self._epoch += 1
        self.log.clear()
        self.last_prompt = None
        if self._config is not None:
            self._state = PipelineState.READY
            self._greet()
        logger.info("Conversation cleared")

    async def ask(self, question: str) -> Optional[ChatMessage]:
        """
        Answer a question from the indexed documents.

        Appends the user message and the assistant reply to the log.

        Args:
            question: User question

        Returns:
            The assistant message, or None if the pipeline was reset or
            reconfigured while the question was in flight

        Raises:
            NotConfiguredError: If configure() has not succeeded yet
            BusyError: If another question is still being answered
            InvalidInputError: If the question is blank
        """
        if self._state == PipelineState.UNCONFIGURED:
            raise NotConfiguredError("Please configure API keys and index before asking questions")
        if self._state == PipelineState.QUERYING:
            raise BusyError("A question is already being answered")
        if not isinstance(question, str) or not question.strip():
            raise InvalidInputError("Question must not be empty")

        question = question.strip()
        epoch = self._epoch
        config = self._config
        self._state = PipelineState.QUERYING
        self.log.append(ChatMessage.user(question))

        start_time = time.time()
        try:
            reply = await self._answer(question, config, epoch)
        except RAGError as e:
            logger.error(f"Query failed with {e.kind.value}: {e}")
            reply = ChatMessage.from_error(e)
        except Exception as e:
            logger.exception(f"Unexpected error while answering: {e}")
            reply = ChatMessage.from_error(UnknownError(str(e) or type(e).__name__))
        finally:
            if self._epoch == epoch:
                self._state = PipelineState.READY

        if self._epoch != epoch:
            logger.warning("Discarding answer for a conversation that was reset or reconfigured")
            return None

        self.log.append(reply)
        logger.info(f"Answered in {time.time() - start_time:.2f}s (error={reply.is_error})")
        return reply

    async def aclose(self) -> None:
        """Close the current vector index client and wait for replaced ones to close."""
        if self._closing:
            await asyncio.gather(*self._closing)
        client, self._index_client = self._index_client, None
        if client is not None:
            await client.aclose()

    def _retire(self, client: VectorIndexClient) -> None:
        """Close an index client replaced by reconfiguration."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._close_replaced(client))
            return
        task = loop.create_task(self._close_replaced(client))
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    @staticmethod
    async def _close_replaced(client: VectorIndexClient) -> None:
        try:
            await client.aclose()
        except Exception as e:
            logger.warning(f"Failed to close replaced index client: {e}")

    async def _answer(self, question: str, config: Configuration, epoch: int) -> ChatMessage:
        index_client = self._index_client
        generator = self._generator

        query_vector = await self._bounded("embedding", self.embedder.embed(question))

        matches = await self._bounded(
            "vector search",
            index_client.search(query_vector, config.index_name, config.top_k)
        )
        if matches:
            logger.info(f"Retrieved {len(matches)} documents")
        else:
            logger.warning("No documents found for question")

        prompt = assemble(question, matches)
        if self._epoch == epoch:
            self.last_prompt = prompt

        answer = await self._bounded("generation", generator.complete(prompt))
        return ChatMessage.assistant(answer, sources=matches)

    async def _bounded(self, stage: str, call: Awaitable[T]) -> T:
        """Await an external call, turning an expired wait into ServiceUnavailableError."""
        try:
            return await asyncio.wait_for(call, timeout=self.settings.request_timeout_seconds)
        except asyncio.TimeoutError as e:
            raise ServiceUnavailableError(
                f"{stage} did not finish within {self.settings.request_timeout_seconds}s"
            ) from e

    def _greet(self) -> None:
        if self.settings.greeting_enabled:
            self.log.append(ChatMessage.assistant(GREETING))

    def _default_index_client(self, config: Configuration) -> VectorIndexClient:
        return QdrantIndexClient.from_config(config, settings=self.settings)

    def _default_generator(self, config: Configuration) -> GenerativeClient:
        return GeminiClient.from_config(config, settings=self.settings)
