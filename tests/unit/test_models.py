"""Tests for configuration, message models and the error taxonomy."""

import pytest
from pydantic import ValidationError

from knowledge_assistant.rag.errors import (
    AuthenticationFailedError,
    ErrorKind,
    InvalidConfigurationError,
    RateLimitedError,
    ServiceUnavailableError,
)
from knowledge_assistant.rag.models import ChatMessage, Configuration, MessageRole, RetrievedMatch
from knowledge_assistant.rag.pipeline import ConversationLog


class TestConfiguration:
    """Test cases for Configuration."""

    def test_parse_mapping(self, valid_config):
        config = Configuration.parse(valid_config)
        assert config.generative_api_key == "key1"
        assert config.top_k == 3

    def test_parse_returns_existing_instance(self, valid_config):
        config = Configuration.parse(valid_config)
        assert Configuration.parse(config) is config

    def test_frozen(self, valid_config):
        config = Configuration.parse(valid_config)
        with pytest.raises(ValidationError):
            config.top_k = 7

    def test_keys_hidden_from_repr(self, valid_config):
        """API keys never show up in logs."""
        text = repr(Configuration.parse(valid_config)) + str(Configuration.parse(valid_config))
        assert "key1" not in text
        assert "key2" not in text
        assert "stroke" in text

    def test_top_k_required(self, valid_config):
        data = {k: v for k, v in valid_config.items() if k != "top_k"}
        with pytest.raises(InvalidConfigurationError) as exc_info:
            Configuration.parse(data)
        assert str(exc_info.value) == "Please fill in all required fields: top_k"

    def test_top_k_out_of_range_message(self, valid_config):
        """A present but out-of-range top_k is not reported as missing."""
        with pytest.raises(InvalidConfigurationError) as exc_info:
            Configuration.parse({**valid_config, "top_k": 15})
        assert "between 1 and 10" in str(exc_info.value)
        assert "fill in" not in str(exc_info.value)

    def test_parse_rechecks_existing_instance_limit(self, valid_config):
        config = Configuration.parse({**valid_config, "top_k": 8})
        with pytest.raises(InvalidConfigurationError):
            Configuration.parse(config, max_top_k=5)

    def test_parse_not_a_mapping(self):
        with pytest.raises(InvalidConfigurationError):
            Configuration.parse(None)

    def test_from_settings(self, settings_factory):
        settings = settings_factory(gemini_api_key="g", qdrant_api_key="q", index_name="stroke", top_k=7)

        config = Configuration.from_settings(settings, top_k=10)

        assert config.generative_api_key == "g"
        assert config.vector_api_key == "q"
        assert config.top_k == 10

    def test_from_settings_uses_max_top_k(self, settings_factory):
        settings = settings_factory(gemini_api_key="g", qdrant_api_key="q", max_top_k=20)
        assert Configuration.from_settings(settings, top_k=15).top_k == 15

    def test_from_settings_missing_keys(self, settings_factory):
        with pytest.raises(InvalidConfigurationError):
            Configuration.from_settings(settings_factory(gemini_api_key="", qdrant_api_key=""))


class TestMessages:
    """Test cases for ChatMessage and ConversationLog."""

    def test_user_message(self):
        message = ChatMessage.user("hello")
        assert message.role == MessageRole.USER
        assert message.sources == ()
        assert not message.is_error
        assert message.timestamp.tzinfo is not None

    def test_unique_ids(self):
        assert ChatMessage.user("a").id != ChatMessage.user("a").id

    def test_immutable(self):
        message = ChatMessage.assistant("answer")
        with pytest.raises(ValidationError):
            message.content = "changed"

    def test_sources_become_tuple(self):
        match = RetrievedMatch(id="1", score=0.9, source_name="a.pdf", text="t")
        message = ChatMessage.assistant("answer", sources=[match])
        assert message.sources == (match,)

    def test_error_message(self):
        message = ChatMessage.from_error(AuthenticationFailedError("Gemini API error", status_code=401))

        assert message.is_error
        assert message.role == MessageRole.ASSISTANT
        assert message.error_kind == ErrorKind.AUTHENTICATION_FAILED
        assert "AuthenticationFailed" in message.content
        assert "HTTP 401" in message.content
        assert "check your API keys" in message.content

    def test_score_range(self):
        with pytest.raises(ValidationError):
            RetrievedMatch(id="1", score=1.01, source_name="a.pdf", text="t")

    def test_log_latest_sources(self):
        match = RetrievedMatch(id="1", score=0.9, source_name="a.pdf", text="t")
        log = ConversationLog()
        log.append(ChatMessage.user("q1"))
        log.append(ChatMessage.assistant("a1", sources=[match]))
        log.append(ChatMessage.user("q2"))
        log.append(ChatMessage.from_error(RateLimitedError("slow down", status_code=429)))

        assert log.latest_sources == (match,)
        assert len(log) == 4

    def test_log_snapshot(self):
        log = ConversationLog()
        snapshot = log.messages
        log.append(ChatMessage.user("q"))
        assert snapshot == ()
        assert len(log.messages) == 1


class TestErrors:
    """Test cases for the error taxonomy."""

    def test_transient_kinds(self):
        assert RateLimitedError("x").retryable
        assert ServiceUnavailableError("x").retryable
        assert not AuthenticationFailedError("x").retryable
        assert not InvalidConfigurationError("x").retryable

    def test_str_includes_status(self):
        assert str(ServiceUnavailableError("down", status_code=503)) == "down (HTTP 503)"
        assert str(ServiceUnavailableError("down")) == "down"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
