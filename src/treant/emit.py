# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Write a generated SDK to disk."""

from __future__ import annotations

import logging
import shutil

from pathlib import Path

from treant.exceptions import OutputError
from treant.generator.generator import ARTIFACTS_DIR, GeneratorOutput


logger = logging.getLogger(__name__)


def _is_generated_sdk(directory: Path) -> bool:
    return (directory / ARTIFACTS_DIR).is_dir() and (directory / "__init__.py").is_file()


def clean_output(directory: Path) -> None:
    """Remove a previously generated SDK.

    Only directories that look like a generated SDK (an `__init__.py` next to
    an `__artifacts__` directory) are removed.

    Raises:
        OutputError: If the directory exists but is not a generated SDK.
    """
    if not directory.exists():
        return
    if not _is_generated_sdk(directory):
        raise OutputError(
            f"Refusing to clean {directory}: it does not look like a generated SDK",
            details={"path": str(directory)},
            suggestions=["Choose an empty or new output directory, or remove it yourself."],
        )
    logger.info("Removing previous SDK at %s", directory)
    shutil.rmtree(directory)


def write_output(
    output: GeneratorOutput, directory: Path | str, *, clean: bool = False
) -> list[Path]:
    """Write every artifact under `directory`, creating parent directories.

    Text artifacts are written as UTF-8 with `\\n` line endings; binary
    artifacts are written as is.

    Args:
        output: The generated SDK
        directory: Root directory of the SDK package
        clean: Remove a previously generated SDK at `directory` first

    Returns:
        The written file paths, in artifact order.

    Raises:
        OutputError: If a file cannot be written, or `clean` would remove a
            directory that is not a generated SDK.
    """
    directory = Path(directory)
    if clean:
        clean_output(directory)
    written: list[Path] = []
    for artifact in output.artifacts:
        target = directory.joinpath(*artifact.path.split("/"))
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(artifact.content, bytes):
                target.write_bytes(artifact.content)
            else:
                target.write_text(artifact.content, encoding="utf-8", newline="\n")
        except OSError as e:
            raise OutputError(
                f"Could not write {target}: {e}", details={"path": str(target)}
            ) from e
        written.append(target)
        logger.debug("Wrote %s", target)
    logger.info(
        "Wrote %d files for namespace %r to %s", len(written), output.namespace, directory
    )
    return written


__all__ = ("clean_output", "write_output")
