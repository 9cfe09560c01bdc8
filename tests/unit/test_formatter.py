"""Tests for terminal response formatting."""

import pytest

from knowledge_assistant.chat.formatter import ResponseFormatter
from knowledge_assistant.rag.errors import IndexNotFoundError
from knowledge_assistant.rag.models import ChatMessage
from knowledge_assistant.vectorstore.fakes import DEMO_MATCHES


class TestResponseFormatter:
    """Test cases for ResponseFormatter."""

    def setup_method(self):
        """Set up test fixtures."""
        self.formatter = ResponseFormatter()

    def test_user_message(self):
        text = self.formatter.format(ChatMessage.user("What is a stroke?"))
        assert "You:" in text
        assert "What is a stroke?" in text
        assert "Sources:" not in text

    def test_answer_lists_sources_with_scores(self):
        message = ChatMessage.assistant("Act fast.", sources=DEMO_MATCHES)
        text = self.formatter.format(message)

        assert "Assistant:" in text
        assert "1. stroke_treatment_guidelines.pdf (Score: 0.950)" in text
        assert "3. stroke_prevention_study.pdf (Score: 0.820)" in text
        # Excerpts only appear in the dedicated sources view
        assert DEMO_MATCHES[0].text not in text

    def test_error_marked(self):
        message = ChatMessage.from_error(IndexNotFoundError("Index 'x' does not exist", status_code=404))
        text = self.formatter.format(message)
        assert "⚠️" in text
        assert "IndexNotFound" in text

    def test_format_sources_with_excerpts(self):
        text = self.formatter.format_sources(DEMO_MATCHES)
        assert "Acute ischemic stroke treatment" in text
        assert "..." in text  # long excerpts are shortened

    def test_format_sources_empty(self):
        assert self.formatter.format_sources([]) == ""

    def test_does_not_mutate(self):
        message = ChatMessage.assistant("Line one\n\n\n\nLine two", sources=DEMO_MATCHES[:1])
        text = self.formatter.format(message)

        assert "Line one\n\nLine two" in text
        assert message.content == "Line one\n\n\n\nLine two"

    def test_conversation_order(self):
        messages = [ChatMessage.user("first"), ChatMessage.assistant("second")]
        text = self.formatter.format_conversation(messages)
        assert text.index("first") < text.index("second")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
