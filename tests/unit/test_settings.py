# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Unit tests for settings and logger setup."""

from __future__ import annotations

import logging

from collections.abc import Iterator
from pathlib import Path

import pytest

from pydantic import ValidationError
from rich.logging import RichHandler

from treant._logging import setup_logger
from treant.settings import TreantSettings, get_settings


pytestmark = [pytest.mark.unit]


@pytest.fixture(autouse=True)
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate settings from the environment and any `.env` file."""
    monkeypatch.chdir(tmp_path)
    for var in ("LOG_LEVEL", "RICH_LOGGING", "OUTPUT_DIR", "CLEAN_OUTPUT"):
        monkeypatch.delenv(f"TREANT_{var}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for `TreantSettings`."""

    def test_defaults(self) -> None:
        """Defaults apply when nothing is configured."""
        settings = TreantSettings()
        assert settings.log_level == "WARNING"
        assert settings.rich_logging is True
        assert settings.output_dir == Path("sdk")
        assert settings.clean_output is False

    def test_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """TREANT_ environment variables override defaults."""
        monkeypatch.setenv("TREANT_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("TREANT_CLEAN_OUTPUT", "true")
        monkeypatch.setenv("TREANT_OUTPUT_DIR", "out/sdk")
        settings = TreantSettings()
        assert settings.log_level == "DEBUG"
        assert settings.clean_output is True
        assert settings.output_dir == Path("out/sdk")

    def test_env_file(self, tmp_path: Path) -> None:
        """A `.env` file in the working directory is read."""
        (tmp_path / ".env").write_text("TREANT_RICH_LOGGING=false\n", encoding="utf-8")
        assert TreantSettings().rich_logging is False

    def test_invalid_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Unknown log levels are rejected."""
        monkeypatch.setenv("TREANT_LOG_LEVEL", "LOUD")
        with pytest.raises(ValidationError):
            TreantSettings()

    def test_get_settings_is_cached(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Settings are read once until the cache is cleared."""
        first = get_settings()
        monkeypatch.setenv("TREANT_LOG_LEVEL", "ERROR")
        assert get_settings() is first
        get_settings.cache_clear()
        assert get_settings().log_level == "ERROR"


class TestSetupLogger:
    """Tests for `setup_logger`."""

    def test_rich_handler(self) -> None:
        """Rich logging installs a single RichHandler, even when called twice."""
        setup_logger("treant.test_rich", level="DEBUG")
        logger = setup_logger("treant.test_rich", level="DEBUG")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)

    def test_plain_logging(self) -> None:
        """Plain logging only sets the level."""
        logger = setup_logger("treant.test_plain", level="info", rich=False)
        assert logger.level == logging.INFO
        assert not any(isinstance(h, RichHandler) for h in logger.handlers)

    def test_unknown_level_name(self) -> None:
        """Unknown level names fall back to WARNING."""
        logger = setup_logger("treant.test_unknown", level="chatty", rich=False)
        assert logger.level == logging.WARNING
