# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Unit tests for writing generated SDKs to disk."""

from __future__ import annotations

from pathlib import Path

import pytest

from treant.emit import clean_output, write_output
from treant.exceptions import OutputError
from treant.generator import GeneratorOutput, generate


pytestmark = [pytest.mark.unit]

WASM = b"\x00asm\x01\x00\x00\x00"


@pytest.fixture
def hello_output(hello_sources: tuple[str, str]) -> GeneratorOutput:
    """The hello SDK, with a parser binary."""
    return generate(*hello_sources, parser_binary=WASM)


class TestWriteOutput:
    """Tests for `write_output`."""

    def test_writes_every_artifact(self, hello_output: GeneratorOutput, tmp_path: Path) -> None:
        """Every artifact lands at its relative path, in artifact order."""
        target = tmp_path / "hello_sdk"
        written = write_output(hello_output, target)
        assert written == [target / path for path in hello_output.paths]
        assert (target / "nodes" / "anonymous" / "hello.py").is_file()
        assert (target / "__init__.py").read_text("utf-8") == hello_output["__init__.py"]

    def test_binary_and_text_content(
        self, hello_output: GeneratorOutput, hello_sources: tuple[str, str], tmp_path: Path
    ) -> None:
        """Binary artifacts are written as bytes and JSON text unchanged."""
        write_output(hello_output, tmp_path)
        assert (tmp_path / "__artifacts__" / "parser.wasm").read_bytes() == WASM
        assert (tmp_path / "__artifacts__" / "grammar.json").read_bytes() == hello_sources[
            0
        ].encode("utf-8")

    def test_accepts_string_paths(self, hello_output: GeneratorOutput, tmp_path: Path) -> None:
        """The target directory may be given as a string."""
        write_output(hello_output, str(tmp_path / "sdk"))
        assert (tmp_path / "sdk" / "py.typed").exists()

    def test_unwritable_target(self, hello_output: GeneratorOutput, tmp_path: Path) -> None:
        """A target that is a file fails with OutputError."""
        blocker = tmp_path / "sdk"
        blocker.write_text("not a directory", encoding="utf-8")
        with pytest.raises(OutputError, match="Could not write"):
            write_output(hello_output, blocker)


class TestCleanOutput:
    """Tests for removing a previous SDK."""

    def test_clean_replaces_previous_sdk(
        self, hello_output: GeneratorOutput, tmp_path: Path
    ) -> None:
        """Cleaning removes stale files from a previous generation."""
        target = tmp_path / "sdk"
        write_output(hello_output, target)
        stale = target / "nodes" / "removed_node.py"
        stale.write_text("", encoding="utf-8")
        write_output(hello_output, target, clean=True)
        assert not stale.exists()
        assert (target / "__init__.py").is_file()

    def test_without_clean_files_are_kept(
        self, hello_output: GeneratorOutput, tmp_path: Path
    ) -> None:
        """Without cleaning, unrelated files survive."""
        target = tmp_path / "sdk"
        target.mkdir()
        keep = target / "notes.txt"
        keep.write_text("keep me", encoding="utf-8")
        write_output(hello_output, target)
        assert keep.read_text("utf-8") == "keep me"

    def test_refuses_other_directories(self, tmp_path: Path) -> None:
        """A directory that is not a generated SDK is never removed."""
        project = tmp_path / "project"
        project.mkdir()
        (project / "main.py").write_text("print('hi')\n", encoding="utf-8")
        with pytest.raises(OutputError, match="Refusing to clean"):
            clean_output(project)
        assert (project / "main.py").exists()

    def test_missing_directory_is_fine(self, tmp_path: Path) -> None:
        """Cleaning a directory that does not exist does nothing."""
        clean_output(tmp_path / "absent")
        assert not (tmp_path / "absent").exists()
