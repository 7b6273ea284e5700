"""A runner for data-driven tests.

A test file holds directives, each followed by its expected output::

    <command> [arg | arg=val | arg=(val1, val2, ...)]... \\
    <more args>
    <input lines>
    ----
    <expected results>
    <blank line>

Expected results that contain blank lines are enclosed in a double
separator::

    ----
    ----
    <expected results>

    <more expected results>
    ----
    ----

In rewrite mode the expected results are replaced by the actual ones.
"""

from __future__ import annotations

import difflib
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, Union

from .line_parser import CmdArg, DirectiveError, parse_line

_log = logging.getLogger(__name__)

_BLANK_LINE = re.compile(r"^[\t ]*\n", re.MULTILINE)
_SEPARATOR = "----"

PathLike = Union[str, "os.PathLike[str]"]


@dataclass
class TestData:
    """One test case read from a data-driven test file."""

    __test__ = False  # not a pytest test class

    pos: str = ""
    cmd: str = ""
    cmd_args: list[CmdArg] = field(default_factory=list)
    input: str = ""
    expected: str = ""

    def contains_key(self, key: str) -> bool:
        """Whether any argument has the given key."""
        return any(arg.key == key for arg in self.cmd_args)


class DataDrivenMismatch(AssertionError):
    """The actual output of a test case differs from the expected output."""

    def __init__(self, pos: str, expected: str, actual: str) -> None:
        self.pos = pos
        self.expected = expected
        self.actual = actual
        diff = "".join(
            difflib.unified_diff(
                expected.splitlines(keepends=True),
                actual.splitlines(keepends=True),
                fromfile="expected",
                tofile="actual",
            )
        )
        super().__init__(f"{pos}: output mismatch\n{diff}")


def has_blank_line(text: str) -> bool:
    """Whether the text holds a line that is empty or only spaces and tabs."""
    return _BLANK_LINE.search(text) is not None


def _split_lines(content: str) -> list[str]:
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class _Reader:
    """Reads test cases from file content, optionally recording a rewrite."""

    def __init__(self, source_name: PathLike, content: str, rewrite: bool) -> None:
        self._source_name = str(Path(source_name))
        self._lines = enumerate(_split_lines(content))
        self._buffer: list[str] | None = [] if rewrite else None

    @property
    def rewriting(self) -> bool:
        return self._buffer is not None

    def emit(self, text: str) -> None:
        """Append a line to the rewrite output."""
        if self._buffer is not None:
            self._buffer.append(text + "\n")

    def emit_raw(self, text: str) -> None:
        """Append text as is to the rewrite output."""
        if self._buffer is not None:
            self._buffer.append(text)

    def rewritten(self) -> str | None:
        if self._buffer is None:
            return None
        data = "".join(self._buffer)
        if data.endswith("\n\n"):
            data = data[:-1]
        return data

    def _next_line(self) -> tuple[int, str] | None:
        return next(self._lines, None)

    def _require_line(self) -> str:
        item = self._next_line()
        if item is None:
            raise DirectiveError(
                "unexpected end of input inside double ---- separator section"
            )
        return item[1]

    def directives(self) -> Iterator[TestData]:
        """Yield each test case in turn."""
        while (item := self._next_line()) is not None:
            pos, raw = item
            self.emit(raw)
            line = raw.strip()
            if not line or line.startswith("#"):
                continue

            while line.endswith("\\"):
                line = line[:-1]
                cont = self._next_line()
                if cont is None:
                    raise DirectiveError("expect argument ends without '\\'")
                self.emit(cont[1])
                piece = cont[1].strip()
                if piece:
                    line = f"{line} {piece}"
                pos += 1

            _log.debug("argument after cleanup: %s", line)
            cmd, cmd_args = parse_line(line)
            if not cmd:
                raise DirectiveError("cmd must not be empty")

            data = TestData(
                pos=f"{self._source_name} : L{pos + 1}", cmd=cmd, cmd_args=cmd_args
            )

            input_lines: list[str] = []
            separator = False
            while (item := self._next_line()) is not None:
                text = item[1]
                if text == _SEPARATOR:
                    separator = True
                    break
                self.emit(text)
                input_lines.append(text + "\n")
            data.input = "".join(input_lines).strip()

            if separator:
                data.expected = self._read_expected()
            yield data

    def _read_expected(self) -> str:
        first = self._next_line()
        line = "" if first is None else first[1]
        if line == _SEPARATOR:
            return self._read_double_separated()

        out: list[str] = []
        while line.strip():
            out.append(line + "\n")
            item = self._next_line()
            if item is None:
                break
            line = item[1]
        return "".join(out)

    def _read_double_separated(self) -> str:
        out: list[str] = []
        while True:
            line = self._require_line()
            if line == _SEPARATOR:
                line2 = self._require_line()
                if line2 == _SEPARATOR:
                    trailing = self._next_line()
                    if trailing is not None and trailing[1]:
                        raise DirectiveError(
                            "non-blank line after end of double ---- separator section"
                        )
                    return "".join(out)
                out.append(line + "\n")
                out.append(line2 + "\n")
                continue
            out.append(line + "\n")


def _run_directive(
    reader: _Reader, data: TestData, func: Callable[[TestData], str]
) -> None:
    actual = func(data)
    if actual and not actual.endswith("\n"):
        actual += "\n"

    if not reader.rewriting:
        if actual != data.expected:
            raise DataDrivenMismatch(data.pos, data.expected, actual)
        return

    reader.emit(_SEPARATOR)
    if has_blank_line(actual):
        reader.emit(_SEPARATOR)
        reader.emit_raw(actual)
        reader.emit(_SEPARATOR)
        reader.emit(_SEPARATOR)
        reader.emit("")
    else:
        # actual already ends in a newline, so this adds a blank line.
        reader.emit(actual)


def run_content(
    source_name: PathLike,
    content: str,
    func: Callable[[TestData], str],
    rewrite: bool = False,
) -> str | None:
    """Run every test case in ``content``.

    Returns the rewritten content in rewrite mode and None otherwise.
    Raises DataDrivenMismatch when an output differs from the expected one.
    """
    reader = _Reader(source_name, content, rewrite)
    for data in reader.directives():
        _run_directive(reader, data, func)
    result = reader.rewritten()
    _log.debug("rewrite buffer: %r", result)
    return result


def get_dirs_or_file(path: PathLike) -> list[Path]:
    """The entries of a directory, or the path itself if it is not one."""
    try:
        return sorted(Path(path).iterdir())
    except OSError:
        return [Path(path)]


def run_test(
    path: PathLike, func: Callable[[TestData], str], rewrite: bool = False
) -> None:
    """Run the test cases in a file, or in every file of a directory.

    In rewrite mode each file is overwritten with the actual outputs.
    """
    for file in get_dirs_or_file(path):
        with open(file, encoding="utf-8", newline="") as handle:
            content = handle.read()
        rewritten = run_content(file, content, func, rewrite)
        if rewritten is not None:
            with open(file, "w", encoding="utf-8", newline="") as handle:
                handle.write(rewritten)


def walk(path: PathLike, func: Callable[[Path], object]) -> None:
    """Call ``func`` on the path itself or on each entry of the directory."""
    for file in get_dirs_or_file(path):
        func(file)