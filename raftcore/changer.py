"""Validated membership changes, simple and through joint consensus."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Container, Iterable

from .eraftpb import ConfChangeSingle, ConfChangeType
from .errors import ConfChangeError


class MapChangeType(enum.Enum):
    """Whether a node's progress is added to or removed from the progress map."""

    ADD = "add"
    REMOVE = "remove"


MapChange = list[tuple[int, MapChangeType]]


@dataclass
class Configuration:
    """The voter and learner sets of a raft group.

    ``incoming`` is the majority config that takes decisions; ``outgoing`` is
    non-empty only while the group is in a joint configuration.
    """

    incoming: set[int] = field(default_factory=set)
    outgoing: set[int] = field(default_factory=set)
    learners: set[int] = field(default_factory=set)
    learners_next: set[int] = field(default_factory=set)
    auto_leave: bool = False

    def is_joint(self) -> bool:
        """Whether there is an outgoing majority config."""
        return bool(self.outgoing)

    def voter_ids(self) -> set[int]:
        """Every voter in either majority config."""
        return self.incoming | self.outgoing

    def copy(self) -> Configuration:
        """An independent copy of this configuration."""
        return Configuration(
            incoming=set(self.incoming),
            outgoing=set(self.outgoing),
            learners=set(self.learners),
            learners_next=set(self.learners_next),
            auto_leave=self.auto_leave,
        )


class _IncrChangeMap:
    """Records progress additions and removals on top of a base set of ids."""

    def __init__(self, base: Container[int]) -> None:
        self.base = base
        self.changes: MapChange = []

    def __contains__(self, node_id: int) -> bool:
        for changed_id, kind in reversed(self.changes):
            if changed_id == node_id:
                return kind is MapChangeType.ADD
        return node_id in self.base


def _check_invariants(cfg: Configuration, prs: _IncrChangeMap) -> None:
    """Raise ConfChangeError if the config and progress are incompatible."""
    for node_id in sorted(cfg.voter_ids()):
        if node_id not in prs:
            raise ConfChangeError(f"no progress for voter {node_id}")
    for node_id in sorted(cfg.learners):
        if node_id not in prs:
            raise ConfChangeError(f"no progress for learner {node_id}")
        if node_id in cfg.outgoing:
            raise ConfChangeError(f"{node_id} is in learners and outgoing voters")
        if node_id in cfg.incoming:
            raise ConfChangeError(f"{node_id} is in learners and incoming voters")
    for node_id in sorted(cfg.learners_next):
        if node_id not in prs:
            raise ConfChangeError(f"no progress for learner(next) {node_id}")
        # A staged learner must still be an outgoing voter.
        if node_id not in cfg.outgoing:
            raise ConfChangeError(
                f"{node_id} is in learners_next and outgoing voters"
            )
    if not cfg.is_joint():
        if cfg.learners_next:
            raise ConfChangeError("learners_next must be empty when not joint")
        if cfg.auto_leave:
            raise ConfChangeError("auto_leave must be false when not joint")


class Changer:
    """Computes configuration changes, refusing invalid ones.

    ``conf`` is the active configuration and ``progress`` holds the ids of
    the nodes whose progress is tracked. Neither is modified; each method
    returns the new configuration and the progress changes to apply.
    """

    def __init__(self, conf: Configuration, progress: Container[int]) -> None:
        self.conf = conf
        self.progress = progress

    def enter_joint(
        self, auto_leave: bool, ccs: Iterable[ConfChangeSingle]
    ) -> tuple[Configuration, MapChange]:
        """Copy incoming voters to outgoing, then apply ``ccs`` to incoming."""
        if self.conf.is_joint():
            raise ConfChangeError("config is already joint")
        cfg, prs = self._check_and_copy()
        if not cfg.incoming:
            raise ConfChangeError("can't make a zero-voter config joint")
        cfg.outgoing.update(cfg.incoming)
        self._apply(cfg, prs, ccs)
        cfg.auto_leave = auto_leave
        _check_invariants(cfg, prs)
        return cfg, prs.changes

    def leave_joint(self) -> tuple[Configuration, MapChange]:
        """Drop the outgoing config and promote staged learners."""
        if not self.conf.is_joint():
            raise ConfChangeError("can't leave a non-joint config")
        cfg, prs = self._check_and_copy()
        if not cfg.outgoing:
            raise ConfChangeError(f"configuration is not joint: {cfg!r}")
        cfg.learners.update(cfg.learners_next)
        cfg.learners_next.clear()
        for node_id in sorted(cfg.outgoing):
            if node_id not in cfg.incoming and node_id not in cfg.learners:
                prs.changes.append((node_id, MapChangeType.REMOVE))
        cfg.outgoing.clear()
        cfg.auto_leave = False
        _check_invariants(cfg, prs)
        return cfg, prs.changes

    def simple(self, ccs: Iterable[ConfChangeSingle]) -> tuple[Configuration, MapChange]:
        """Apply changes that alter the incoming voters by at most one."""
        if self.conf.is_joint():
            raise ConfChangeError("can't apply simple config change in joint config")
        cfg, prs = self._check_and_copy()
        self._apply(cfg, prs, ccs)
        if len(cfg.incoming ^ self.conf.incoming) > 1:
            raise ConfChangeError(
                "more than one voter changed without entering joint config"
            )
        _check_invariants(cfg, prs)
        return cfg, prs.changes

    def _apply(
        self,
        cfg: Configuration,
        prs: _IncrChangeMap,
        ccs: Iterable[ConfChangeSingle],
    ) -> None:
        for cc in ccs:
            if cc.node_id == 0:
                # A zeroed node id marks a change that is not to be applied.
                continue
            if cc.change_type is ConfChangeType.ADD_NODE:
                self._make_voter(cfg, prs, cc.node_id)
            elif cc.change_type is ConfChangeType.ADD_LEARNER_NODE:
                self._make_learner(cfg, prs, cc.node_id)
            else:
                self._remove(cfg, prs, cc.node_id)
        if not cfg.incoming:
            raise ConfChangeError("removed all voters")

    @staticmethod
    def _make_voter(cfg: Configuration, prs: _IncrChangeMap, node_id: int) -> None:
        if node_id not in prs:
            cfg.incoming.add(node_id)
            prs.changes.append((node_id, MapChangeType.ADD))
            return
        cfg.incoming.add(node_id)
        cfg.learners.discard(node_id)
        cfg.learners_next.discard(node_id)

    @staticmethod
    def _make_learner(cfg: Configuration, prs: _IncrChangeMap, node_id: int) -> None:
        if node_id not in prs:
            cfg.learners.add(node_id)
            prs.changes.append((node_id, MapChangeType.ADD))
            return
        if node_id in cfg.learners:
            return
        cfg.incoming.discard(node_id)
        cfg.learners.discard(node_id)
        cfg.learners_next.discard(node_id)
        # An outgoing voter can only become a learner once the joint state is left.
        if node_id in cfg.outgoing:
            cfg.learners_next.add(node_id)
        else:
            cfg.learners.add(node_id)

    @staticmethod
    def _remove(cfg: Configuration, prs: _IncrChangeMap, node_id: int) -> None:
        if node_id not in prs:
            return
        cfg.incoming.discard(node_id)
        cfg.learners.discard(node_id)
        cfg.learners_next.discard(node_id)
        # An outgoing voter keeps its progress.
        if node_id not in cfg.outgoing:
            prs.changes.append((node_id, MapChangeType.REMOVE))

    def _check_and_copy(self) -> tuple[Configuration, _IncrChangeMap]:
        prs = _IncrChangeMap(self.progress)
        _check_invariants(self.conf, prs)
        return self.conf.copy(), prs