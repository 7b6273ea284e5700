"""Error types raised by the raft core."""

from __future__ import annotations

from typing import Any, Hashable

_NO_KEY = object()


class _KeyedEquality:
    """Equality by type plus an equality key.

    Errors whose key is ``_NO_KEY`` only compare equal to themselves.
    """

    def _equality_key(self) -> Any:
        return _NO_KEY

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        key = self._equality_key()
        if key is _NO_KEY:
            return self is other
        return key == other._equality_key()  # type: ignore[attr-defined]

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return True
        return not result

    def __hash__(self) -> int:
        key = self._equality_key()
        if key is _NO_KEY:
            return id(self)
        return hash((type(self), key))


# ---------------------------------------------------------------------------
# Storage errors
# ---------------------------------------------------------------------------


class StorageError(_KeyedEquality, Exception):
    """An error raised by a raft storage."""

    message = "storage error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.message)

    def _equality_key(self) -> Any:
        return ()

    def __str__(self) -> str:
        return str(self.args[0])


class CompactedError(StorageError):
    """The storage was compacted and is not accessible."""

    message = "log compacted"


class UnavailableError(StorageError):
    """The log is not available."""

    message = "log unavailable"


class LogTemporarilyUnavailableError(StorageError):
    """The log is being fetched."""

    message = "log is temporarily unavailable"


class SnapshotOutOfDateError(StorageError):
    """The snapshot is out of date."""

    message = "snapshot out of date"


class SnapshotTemporarilyUnavailableError(StorageError):
    """The snapshot is being created."""

    message = "snapshot is temporarily unavailable"


class OtherStorageError(StorageError):
    """Some other storage failure, wrapping its cause."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"unknown error {cause}")

    def _equality_key(self) -> Any:
        return _NO_KEY


# ---------------------------------------------------------------------------
# Raft errors
# ---------------------------------------------------------------------------


class RaftError(_KeyedEquality, Exception):
    """Base class of every raft error."""

    message = "raft error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.message)

    def _equality_key(self) -> Any:
        return _NO_KEY

    def __str__(self) -> str:
        return str(self.args[0])


class IoError(RaftError):
    """An I/O error occurred; errors of the same kind compare equal."""

    def __init__(self, kind: Hashable, message: str = "") -> None:
        self.kind = kind
        super().__init__(message)

    def _equality_key(self) -> Any:
        return self.kind


class StoreError(RaftError):
    """A storage error occurred."""

    def __init__(self, error: StorageError) -> None:
        self.error = error
        super().__init__(str(error))

    def _equality_key(self) -> Any:
        return self.error


class StepLocalMsgError(RaftError):
    """Raft cannot step the local message."""

    message = "raft: cannot step raft local message"

    def _equality_key(self) -> Any:
        return ()


class StepPeerNotFoundError(RaftError):
    """The raft peer is not found and thus cannot step."""

    message = "raft: cannot step as peer not found"

    def _equality_key(self) -> Any:
        return ()


class ProposalDroppedError(RaftError):
    """The proposal of changes was dropped."""

    message = "raft: proposal dropped"

    def _equality_key(self) -> Any:
        return ()


class ConfigInvalidError(RaftError):
    """The configuration is invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(message)

    def _equality_key(self) -> Any:
        return self.args[0]


class CodecError(RaftError):
    """A message codec failed."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"protobuf codec error {cause!r}")


class ExistsError(RaftError):
    """The node exists, but should not."""

    def __init__(self, node_id: int, set_name: str) -> None:
        self.node_id = node_id
        self.set_name = set_name
        super().__init__(f"The node {node_id} already exists in the {set_name} set.")


class NotExistsError(RaftError):
    """The node does not exist, but should."""

    def __init__(self, node_id: int, set_name: str) -> None:
        self.node_id = node_id
        self.set_name = set_name
        super().__init__(f"The node {node_id} is not in the {set_name} set.")


class ConfChangeError(RaftError):
    """A configuration change proposal is invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(message)

    def _equality_key(self) -> Any:
        return self.args[0]


class RequestSnapshotDroppedError(RaftError):
    """The snapshot request was dropped."""

    message = "raft: request snapshot dropped"

    def _equality_key(self) -> Any:
        return ()