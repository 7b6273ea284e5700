"""Helpers for building, parsing and comparing configuration changes."""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from .eraftpb import ConfChangeSingle, ConfChangeType, ConfState

_ASCII_WHITESPACE = re.compile(r"[ \t\n\x0c\r]+")
_U64_MAX = 2**64 - 1

_TYPE_BY_CHAR = {
    "v": ConfChangeType.ADD_NODE,
    "l": ConfChangeType.ADD_LEARNER_NODE,
    "r": ConfChangeType.REMOVE_NODE,
}
_CHAR_BY_TYPE = {kind: char for char, kind in _TYPE_BY_CHAR.items()}


def new_conf_change_single(node_id: int, change_type: ConfChangeType) -> ConfChangeSingle:
    """Create a ConfChangeSingle."""
    return ConfChangeSingle(change_type=change_type, node_id=node_id)


def _parse_node_id(text: str) -> int:
    digits = text[1:] if text.startswith("+") else text
    if not text:
        raise ValueError("cannot parse integer from empty string")
    if not digits or not digits.isascii() or not digits.isdigit():
        raise ValueError("invalid digit found in string")
    value = int(digits)
    if value > _U64_MAX:
        raise ValueError("number too large to fit in target type")
    return value


def parse_conf_change(text: str) -> list[ConfChangeSingle]:
    """Parse a space-delimited sequence of operations.

    ``vN`` makes N a voter, ``lN`` makes N a learner and ``rN`` removes N.
    Raises ValueError on a malformed token.
    """
    text = text.strip()
    if not text:
        return []
    ccs = []
    for tok in filter(None, _ASCII_WHITESPACE.split(text)):
        if len(tok.encode("utf-8")) < 2:
            raise ValueError(f"unknown token {tok}")
        change_type = _TYPE_BY_CHAR.get(tok[0])
        if change_type is None:
            raise ValueError(f"unknown token {tok}")
        try:
            node_id = _parse_node_id(tok[1:])
        except ValueError as exc:
            raise ValueError(f"parse token {tok} fail: {exc}") from None
        ccs.append(ConfChangeSingle(change_type=change_type, node_id=node_id))
    return ccs


def stringify_conf_change(ccs: Iterable[ConfChangeSingle]) -> str:
    """The inverse of parse_conf_change."""
    return " ".join(f"{_CHAR_BY_TYPE[cc.change_type]}{cc.node_id}" for cc in ccs)


def _eq_without_order(lhs: Sequence[int], rhs: Sequence[int]) -> bool:
    return set(lhs) == set(rhs)


def conf_state_eq(lhs: ConfState, rhs: ConfState) -> bool:
    """Whether two states describe the same configuration, ignoring order."""
    if (
        lhs.voters == rhs.voters
        and lhs.learners == rhs.learners
        and lhs.voters_outgoing == rhs.voters_outgoing
        and lhs.learners_next == rhs.learners_next
        and lhs.auto_leave == rhs.auto_leave
    ):
        return True
    return (
        _eq_without_order(lhs.voters, rhs.voters)
        and _eq_without_order(lhs.learners, rhs.learners)
        and _eq_without_order(lhs.voters_outgoing, rhs.voters_outgoing)
        and _eq_without_order(lhs.learners_next, rhs.learners_next)
        and lhs.auto_leave == rhs.auto_leave
    )