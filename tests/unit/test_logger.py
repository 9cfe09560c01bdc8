"""Tests for loguru sink setup."""

import json
import sys

import pytest
from loguru import logger

from knowledge_assistant.utils import config as config_module
from knowledge_assistant.utils.logger import setup_logger


@pytest.fixture(autouse=True)
def restore_default_sink():
    yield
    logger.remove()
    logger.add(sys.stderr)


class TestSetupLogger:
    """Test cases for setup_logger()."""

    def test_json_file_sink(self, tmp_path, monkeypatch, settings_factory):
        log_file = tmp_path / "logs" / "assistant.log"
        monkeypatch.setattr(config_module, "_settings",
                            settings_factory(log_file_path=str(log_file), log_format="json"))

        setup_logger()
        logger.info("Answered in 0.42s")
        logger.remove()

        records = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert any(r["record"]["message"] == "Answered in 0.42s" for r in records)

    def test_text_file_sink(self, tmp_path, monkeypatch, settings_factory):
        log_file = tmp_path / "assistant.log"
        monkeypatch.setattr(config_module, "_settings",
                            settings_factory(log_file_path=str(log_file), log_level="WARNING"))

        setup_logger()
        logger.info("hidden")
        logger.warning("No documents found for question")
        logger.remove()

        text = log_file.read_text()
        assert "WARNING  | " in text
        assert "No documents found for question" in text
        assert "hidden" not in text

    def test_console_only(self, tmp_path, monkeypatch, settings_factory):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(config_module, "_settings", settings_factory(log_file_path=""))

        setup_logger()

        assert list(tmp_path.iterdir()) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
