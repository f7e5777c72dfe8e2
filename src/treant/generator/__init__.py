# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Typed SDK generation from a grammar and its node-type catalogue."""

from __future__ import annotations

from treant.generator.context import GenerationContext
from treant.generator.generator import (
    ARTIFACTS_DIR,
    GeneratedArtifact,
    GeneratorOutput,
    generate,
    generate_sdk,
)


__all__ = (
    "ARTIFACTS_DIR",
    "GeneratedArtifact",
    "GenerationContext",
    "GeneratorOutput",
    "generate",
    "generate_sdk",
)
