"""Tests for log file configuration."""

import logging

from notes2rag.config import settings
from notes2rag.utils.logging_setup import setup_logging


def test_json_only_creates_json_log(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "log_dir", tmp_path / "logs")
    monkeypatch.setattr(settings, "log_format", "json")
    root_logger = logging.getLogger()
    saved_handlers = root_logger.handlers[:]
    saved_level = root_logger.level

    try:
        setup_logging()
        file_handlers = [h for h in root_logger.handlers if isinstance(h, logging.FileHandler)]

        assert len(file_handlers) == 1
        assert file_handlers[0].baseFilename.endswith(".json")
        assert "notes2rag_" in file_handlers[0].baseFilename
        assert (tmp_path / "logs" / "json").is_dir()
        assert not (tmp_path / "logs" / "text").exists()
        assert logging.getLogger("openai").level == logging.WARNING
    finally:
        for handler in root_logger.handlers:
            handler.close()
        root_logger.handlers[:] = saved_handlers
        root_logger.setLevel(saved_level)
