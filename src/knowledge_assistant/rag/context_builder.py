"""Grounding prompt assembly from retrieved matches."""

from typing import Sequence

from knowledge_assistant.rag.models import RetrievedMatch

PROMPT_PREAMBLE = (
    "Based on the following document excerpts, please answer the user's question "
    "comprehensively and accurately."
)

CONTEXT_HEADER = "Context from documents:"

QUESTION_LABEL = "User question:"

INSTRUCTIONS = """Instructions:
- Answer only from the provided context; do not use outside knowledge
- If the context doesn't contain enough information, clearly state what's missing instead of making it up
- Cite which documents you're referencing when possible
- Be concise but thorough
- Format your response in a clear, readable manner"""


def format_match(match: RetrievedMatch) -> str:
    """Render one match as a labeled context block."""
    return f"Document: {match.source_name}\nContent: {match.text}"


def build_context(matches: Sequence[RetrievedMatch]) -> str:
    """Join match blocks with a blank line, keeping retrieval order."""
    return "\n\n".join(format_match(match) for match in matches)


def assemble(question: str, matches: Sequence[RetrievedMatch]) -> str:
    """
    Render the grounding prompt sent to the generative model.

    Pure function: identical inputs always yield an identical prompt.
    With no matches the context section is left empty and the model is
    expected to say it lacks grounding.

    Args:
        question: User question, inserted verbatim
        matches: Retrieved matches in relevance order

    Returns:
        Prompt text
    """
    return (
        f"{PROMPT_PREAMBLE}\n\n"
        f"{CONTEXT_HEADER}\n"
        f"{build_context(matches)}\n\n"
        f"{QUESTION_LABEL} {question}\n\n"
        f"{INSTRUCTIONS}"
    )


def extract_context_section(prompt: str) -> str:
    """Return the context section of a prompt produced by `assemble`."""
    start = prompt.index(CONTEXT_HEADER) + len(CONTEXT_HEADER) + 1
    end = prompt.rindex(f"\n\n{QUESTION_LABEL} ")
    return prompt[start:end]
