# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""
Runtime settings for the Treant command line.

Generation itself takes explicit arguments only; these settings configure the
shell around it (logging and where SDKs are written).

Environment Variables:
    TREANT_LOG_LEVEL: Logging level name (default: WARNING)
    TREANT_RICH_LOGGING: Use rich formatted log output (default: true)
    TREANT_OUTPUT_DIR: Default output directory for generated SDKs (default: ./sdk)
    TREANT_CLEAN_OUTPUT: Remove the output directory before writing (default: false)
"""

from __future__ import annotations

from functools import cache
from pathlib import Path
from typing import Annotated, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


type LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class TreantSettings(BaseSettings):
    """Treant command line settings."""

    model_config = SettingsConfigDict(
        env_prefix="TREANT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: Annotated[
        LogLevelName,
        Field(default="WARNING", description="Logging level for the treant logger hierarchy."),
    ]

    rich_logging: Annotated[
        bool,
        Field(default=True, description="Format log output with rich instead of plain logging."),
    ]

    output_dir: Annotated[
        Path,
        Field(
            default=Path("sdk"),
            description="Directory generated SDKs are written to when no --output is given.",
        ),
    ]

    clean_output: Annotated[
        bool,
        Field(
            default=False,
            description="Remove the output directory before writing a freshly generated SDK.",
        ),
    ]


@cache
def get_settings() -> TreantSettings:
    """Get cached settings instance."""
    return TreantSettings()


__all__ = ("LogLevelName", "TreantSettings", "get_settings")
