# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the structured JSON logger.

We verify:
  - output is valid JSON
  - all mandatory fields are present (ts, level, module, msg)
  - log levels filter correctly
  - extra context fields (step, path, ...) get merged into the JSON
  - apply_log_level retunes loggers created earlier
"""

import json
import logging
from pathlib import Path

import pytest

from goose_release.logging.logger import apply_log_level, get_logger


@pytest.fixture(autouse=True)
def _reset_loggers() -> None:
    """
    Clear all logger handlers between tests so get_logger's handler-stacking
    guard doesn't interfere with test isolation.
    """
    yield  # type: ignore[misc]
    for name in list(logging.Logger.manager.loggerDict):
        if name.startswith("goose_release.test"):
            logger = logging.getLogger(name)
            for handler in logger.handlers:
                handler.close()
            logger.handlers.clear()


class TestJsonOutput:
    def test_output_is_valid_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = get_logger("goose_release.test.json", log_level="INFO")
        logger.info("hello")
        captured = capsys.readouterr()

        parsed = json.loads(captured.out.strip())
        assert isinstance(parsed, dict)

    def test_mandatory_fields_are_present(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = get_logger("goose_release.test.fields", log_level="INFO")
        logger.info("test message")
        captured = capsys.readouterr()

        parsed = json.loads(captured.out.strip())
        assert parsed["level"] == "INFO"
        assert parsed["module"] == "goose_release.test.fields"
        assert parsed["msg"] == "test message"
        assert "ts" in parsed

    def test_extra_fields_are_included(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = get_logger("goose_release.test.extra", log_level="DEBUG")
        logger.info(
            "step done",
            extra={"step": "building_primary", "path": Path("/tmp/goose"), "exit_code": 0},
        )
        captured = capsys.readouterr()

        parsed = json.loads(captured.out.strip())
        assert parsed["step"] == "building_primary"
        assert parsed["path"] == "/tmp/goose"
        assert parsed["exit_code"] == 0

    def test_exception_text_is_attached(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = get_logger("goose_release.test.exc", log_level="INFO")
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            logger.error("failed", exc_info=True)
        parsed = json.loads(capsys.readouterr().out.strip())
        assert "RuntimeError: boom" in parsed["exc"]


class TestLogLevelFiltering:
    def test_debug_messages_hidden_at_info_level(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        logger = get_logger("goose_release.test.level_filter", log_level="INFO")
        logger.debug("this should not appear")
        captured = capsys.readouterr()
        assert captured.out.strip() == ""

    def test_apply_log_level_retunes_existing_loggers(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        logger = get_logger("goose_release.test.retune", log_level="INFO")
        apply_log_level("DEBUG")
        logger.debug("now visible")
        assert "now visible" in capsys.readouterr().out

        apply_log_level("ERROR")
        logger.warning("now hidden")
        assert capsys.readouterr().out.strip() == ""
        apply_log_level("INFO")


class TestFileOutput:
    def test_logs_are_written_to_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "release.log"
        logger = get_logger("goose_release.test.file_output", log_level="INFO", log_file=log_file)
        logger.info("file log test")

        content = log_file.read_text(encoding="utf-8")
        parsed = json.loads(content.strip())
        assert parsed["msg"] == "file log test"


class TestInvalidLogLevel:
    def test_invalid_level_raises_value_error(self) -> None:
        with pytest.raises(ValueError, match="Invalid log level"):
            get_logger("goose_release.test.invalid", log_level="INVALID")
