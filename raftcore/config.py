"""Parameters used to start a raft node."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from .errors import ConfigInvalidError

NO_LIMIT = 2**64 - 1
INVALID_ID = 0
_HEARTBEAT_TICK = 2


class ReadOnlyOption(enum.Enum):
    """How read-only requests are served."""

    SAFE = "safe"
    LEASE_BASED = "lease_based"


@dataclass
class Config:
    """Parameters to start a raft.

    ``min_election_tick`` and ``max_election_tick`` of 0 mean
    ``election_tick`` and ``2 * election_tick`` respectively.
    """

    id: int = 0
    election_tick: int = _HEARTBEAT_TICK * 10
    heartbeat_tick: int = _HEARTBEAT_TICK
    applied: int = 0
    max_size_per_msg: int = 0
    max_inflight_msgs: int = 256
    check_quorum: bool = False
    pre_vote: bool = False
    min_election_tick: int = 0
    max_election_tick: int = 0
    read_only_option: ReadOnlyOption = ReadOnlyOption.SAFE
    skip_bcast_commit: bool = False
    batch_append: bool = False
    priority: int = 0
    max_uncommitted_size: int = NO_LIMIT
    max_committed_size_per_ready: int = NO_LIMIT

    def resolved_min_election_tick(self) -> int:
        """The minimum number of ticks before an election."""
        return self.min_election_tick or self.election_tick

    def resolved_max_election_tick(self) -> int:
        """The maximum number of ticks before an election."""
        return self.max_election_tick or 2 * self.election_tick

    def validate(self) -> None:
        """Raise ConfigInvalidError if the configuration is unusable."""
        if self.id == INVALID_ID:
            raise ConfigInvalidError("invalid node id")
        if self.heartbeat_tick == 0:
            raise ConfigInvalidError("heartbeat tick must greater than 0")
        if self.election_tick <= self.heartbeat_tick:
            raise ConfigInvalidError("election tick must be greater than heartbeat tick")

        min_timeout = self.resolved_min_election_tick()
        max_timeout = self.resolved_max_election_tick()
        if min_timeout < self.election_tick:
            raise ConfigInvalidError(
                f"min election tick {min_timeout} must not be less than "
                f"election_tick {self.election_tick}"
            )
        if min_timeout >= max_timeout:
            raise ConfigInvalidError(
                f"min election tick {min_timeout} should be less than "
                f"max election tick {max_timeout}"
            )
        if self.max_inflight_msgs == 0:
            raise ConfigInvalidError("max inflight messages must be greater than 0")
        if self.read_only_option is ReadOnlyOption.LEASE_BASED and not self.check_quorum:
            raise ConfigInvalidError(
                "read_only_option == LeaseBased requires check_quorum == true"
            )
        if self.max_uncommitted_size < self.max_size_per_msg:
            raise ConfigInvalidError(
                "max uncommitted size should greater than max_size_per_msg"
            )