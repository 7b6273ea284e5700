"""Parsing of directive lines in data-driven test files."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

_log = logging.getLogger(__name__)

# One directive token: a key, optionally followed by "=value" or "=(v1,v2,...)",
# terminated by a single space or the end of the line.
_DIRECTIVE = re.compile(
    r" *[-a-zA-Z0-9/_,.]+(|=[-a-zA-Z0-9_@=+/,.]*|=\([^)]*\))( |\Z)"
)


class DirectiveError(ValueError):
    """A directive line or test file could not be parsed."""


@dataclass(repr=False)
class CmdArg:
    """An argument on a directive line.

    The accepted forms are ``key``, ``key=``, ``key=()``, ``key=a``,
    ``key=a,b,c`` (a single value) and ``key=(a,b,c)`` (several values).
    """

    key: str
    vals: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        if not self.vals:
            return self.key
        if len(self.vals) == 1:
            return f"{self.key}={self.vals[0]}"
        return f"{self.key}=({','.join(self.vals)})"

    __repr__ = __str__


def split_directives(line: str) -> list[str]:
    """Split a directive line into its space-separated tokens."""
    fields: list[str] = []
    rest = line
    while rest:
        match = _DIRECTIVE.match(rest)
        if match is None:
            column = len(line.encode("utf-8")) - len(rest.encode("utf-8")) + 1
            raise DirectiveError(f"cannot parse directive at column {column}: {line}")
        fields.append(match.group(0).strip())
        rest = rest[match.end():]
    return fields


def parse_line(line: str) -> tuple[str, list[CmdArg]]:
    """Parse a directive line into its command and arguments.

    An empty line gives an empty command and no arguments.
    """
    _log.debug("line passed to split_directives: %r", line)
    fields = split_directives(line)
    if not fields:
        return "", []
    _log.debug("arguments after split: %r", fields)

    cmd, *raw_args = fields
    cmd_args: list[CmdArg] = []
    for arg in raw_args:
        key, sep, val = arg.partition("=")
        if not sep:
            cmd_args.append(CmdArg(key))
        elif val.startswith("(") and val.endswith(")"):
            vals = [v.strip() for v in val[1:-1].split(",")]
            cmd_args.append(CmdArg(key, vals))
        else:
            cmd_args.append(CmdArg(key, [val]))
    return cmd, cmd_args