# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Version information for Treant."""

from __future__ import annotations


__version__ = "0.1.0"

__all__ = ("__version__",)
