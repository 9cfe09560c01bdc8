"""Response formatting for terminal display."""

import re
import textwrap
from typing import Iterable, Sequence

from knowledge_assistant.rag.models import ChatMessage, MessageRole, RetrievedMatch


class ResponseFormatter:
    """Renders chat messages as plain text without modifying them."""

    # Preview length of a source excerpt
    SNIPPET_LENGTH = 160

    def __init__(self, width: int = 88):
        self.width = width

    def format(self, message: ChatMessage) -> str:
        """
        Format a chat message for the terminal.

        Args:
            message: Message to render

        Returns:
            Formatted message string
        """
        if message.role == MessageRole.USER:
            header = "You"
        elif message.is_error:
            header = "Assistant ⚠️"
        else:
            header = "Assistant"

        stamp = message.timestamp.astimezone().strftime("%H:%M")
        body = self._format_line_breaks(message.content)
        formatted = f"[{stamp}] {header}:\n{body}"

        if message.sources:
            formatted += self.format_sources(message.sources, with_text=False)

        return formatted

    def format_conversation(self, messages: Iterable[ChatMessage]) -> str:
        """Render messages in log order, separated by blank lines."""
        return "\n\n".join(self.format(message) for message in messages)

    def format_sources(self, sources: Sequence[RetrievedMatch], with_text: bool = True) -> str:
        """
        Format sources as an attribution section.

        Args:
            sources: Matches used for an answer
            with_text: Include a short excerpt of each match

        Returns:
            Formatted sources text
        """
        if not sources:
            return ""

        lines = ["", "", "Sources:"]
        for idx, source in enumerate(sources, 1):
            lines.append(f"  {idx}. {source.source_name} (Score: {source.score:.3f})")
            if with_text:
                excerpt = self._truncate(source.text)
                lines.extend(
                    textwrap.wrap(excerpt, width=self.width, initial_indent="     ",
                                  subsequent_indent="     ")
                )
        return "\n".join(lines)

    def _format_line_breaks(self, text: str) -> str:
        # Replace multiple newlines with max 2
        return re.sub(r'\n{3,}', '\n\n', text.strip())

    def _truncate(self, text: str) -> str:
        if len(text) <= self.SNIPPET_LENGTH:
            return text
        return text[:self.SNIPPET_LENGTH].rsplit(" ", 1)[0] + "..."
