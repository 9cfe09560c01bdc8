"""Shared pytest fixtures."""

import pytest

from knowledge_assistant.rag.models import RetrievedMatch
from knowledge_assistant.utils.config import Settings


def make_settings(**overrides) -> Settings:
    """Settings isolated from any local .env file."""
    values = {
        "log_file_path": "",
        "greeting_enabled": False,
        "request_timeout_seconds": 5.0,
        "embedding_dimension": 4,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def settings_factory():
    """Build settings with overrides, e.g. a short timeout."""
    return make_settings


@pytest.fixture
def valid_config() -> dict:
    return {
        "generative_api_key": "key1",
        "vector_api_key": "key2",
        "index_name": "stroke",
        "top_k": 3,
    }


@pytest.fixture
def ranked_matches() -> list:
    """Five matches in descending score order."""
    return [
        RetrievedMatch(id=f"doc{i}", score=score, source_name=f"source_{i}.pdf",
                       text=f"Excerpt number {i} about stroke care.")
        for i, score in enumerate([0.95, 0.88, 0.88, 0.61, 0.40], 1)
    ]
