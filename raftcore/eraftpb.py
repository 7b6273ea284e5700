"""Message types describing membership, configuration changes and snapshots."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterable


class ConfChangeType(enum.IntEnum):
    """Kind of a single membership change."""

    ADD_NODE = 0
    REMOVE_NODE = 1
    ADD_LEARNER_NODE = 2


class ConfChangeTransition(enum.IntEnum):
    """How a configuration change enters and leaves a joint configuration."""

    AUTO = 0
    IMPLICIT = 1
    EXPLICIT = 2


@dataclass
class ConfChangeSingle:
    """One membership change applied to one node."""

    change_type: ConfChangeType = ConfChangeType.ADD_NODE
    node_id: int = 0


@dataclass
class ConfChange:
    """A legacy configuration change affecting a single node."""

    id: int = 0
    change_type: ConfChangeType = ConfChangeType.ADD_NODE
    node_id: int = 0
    context: bytes = b""

    def into_v2(self) -> ConfChangeV2:
        """Return the equivalent ConfChangeV2."""
        return ConfChangeV2(
            changes=[ConfChangeSingle(self.change_type, self.node_id)],
            context=self.context,
        )

    def as_v1(self) -> ConfChange | None:
        """Return this change as a legacy change."""
        return self


@dataclass
class ConfChangeV2:
    """A configuration change made of any number of single changes."""

    transition: ConfChangeTransition = ConfChangeTransition.AUTO
    changes: list[ConfChangeSingle] = field(default_factory=list)
    context: bytes = b""

    def into_v2(self) -> ConfChangeV2:
        """Return this change unchanged."""
        return self

    def as_v1(self) -> ConfChange | None:
        """A ConfChangeV2 has no legacy form, so this is always None."""
        return None

    def enter_joint(self) -> bool | None:
        """Whether this change uses joint consensus.

        Returns None when it does not; otherwise whether the joint state
        will be left automatically.
        """
        if self.transition is not ConfChangeTransition.AUTO or len(self.changes) > 1:
            return self.transition is not ConfChangeTransition.EXPLICIT
        return None

    def leave_joint(self) -> bool:
        """Whether this change leaves a joint configuration (it is empty)."""
        return self.transition is ConfChangeTransition.AUTO and not self.changes


@dataclass
class ConfState:
    """The membership of a raft group."""

    voters: list[int] = field(default_factory=list)
    learners: list[int] = field(default_factory=list)
    voters_outgoing: list[int] = field(default_factory=list)
    learners_next: list[int] = field(default_factory=list)
    auto_leave: bool = False

    @classmethod
    def from_members(cls, voters: Iterable[int], learners: Iterable[int]) -> ConfState:
        """Build a non-joint state from voters and learners."""
        return cls(voters=list(voters), learners=list(learners))


@dataclass
class SnapshotMetadata:
    """Where a snapshot sits in the log and which membership it holds."""

    conf_state: ConfState = field(default_factory=ConfState)
    index: int = 0
    term: int = 0


@dataclass
class Snapshot:
    """A snapshot of the state machine."""

    data: bytes = b""
    metadata: SnapshotMetadata = field(default_factory=SnapshotMetadata)

    def is_empty(self) -> bool:
        """A snapshot is empty when its index is 0."""
        return self.metadata.index == 0