# raftcore

Building blocks for the Raft consensus algorithm. The package has no dependencies outside the standard library.

- `raftcore.config`: `Config` holds the parameters a Raft node starts from. `Config.validate()` raises `ConfigInvalidError` when a setting is unusable. `ReadOnlyOption` selects between `SAFE` and `LEASE_BASED` reads.
- `raftcore.errors`: the exceptions. `RaftError` is the base of the raft errors, for example `ConfigInvalidError`, `ConfChangeError`, `StoreError` and `IoError`. `StorageError` is the base of the storage errors, for example `CompactedError` and `UnavailableError`. Errors of the same class that carry the same message or kind compare equal.
- `raftcore.eraftpb`: dataclasses for membership messages. These are `ConfChangeSingle`, `ConfChange`, `ConfChangeV2`, `ConfState`, `SnapshotMetadata` and `Snapshot`, with the enums `ConfChangeType` and `ConfChangeTransition`.
- `raftcore.confchange`: helpers for change lists.
  - `new_conf_change_single` builds one change.
  - `parse_conf_change` and `stringify_conf_change` read and write compact change strings such as `"v1 v2 l3 r4"`.
  - `conf_state_eq` compares two `ConfState`s while ignoring member order.
- `raftcore.changer`: `Changer` validates and computes membership changes. It handles simple changes and joint consensus. `Configuration` is the set of voters and learners it works on, and `MapChangeType` marks each progress addition or removal.
- `raftcore.line_parser`: parses directive lines. It provides `parse_line`, `split_directives` and `CmdArg`, and raises `DirectiveError`.
- `raftcore.datadriven`: a runner for data-driven tests whose cases live in plain text files. It provides `run_test`, `run_content`, `walk`, `TestData` and `DataDrivenMismatch`.

## Installation

```
pip install .
pip install ".[test]"   # adds pytest for the test suite
```

## Configuration

```python
from raftcore.config import Config, ReadOnlyOption
from raftcore.errors import ConfigInvalidError

cfg = Config(id=1, election_tick=10, heartbeat_tick=3)
cfg.validate()
cfg.resolved_min_election_tick()   # 10 (min_election_tick 0 means election_tick)
cfg.resolved_max_election_tick()   # 20 (max_election_tick 0 means 2 * election_tick)

bad = Config(id=1, read_only_option=ReadOnlyOption.LEASE_BASED)
try:
    bad.validate()
except ConfigInvalidError as exc:
    print(exc)   # read_only_option == LeaseBased requires check_quorum == true
```

## Membership changes

```python
from raftcore.confchange import parse_conf_change, stringify_conf_change

ccs = parse_conf_change("v1 v2 l3")
stringify_conf_change(ccs)   # "v1 v2 l3"
parse_conf_change("x1")      # raises ValueError: unknown token x1
```

`Changer` takes two arguments: the current `Configuration`, and a container with the ids of the nodes whose progress is tracked. It modifies neither of them. Each method returns a new `Configuration` together with a list of `(node_id, MapChangeType)` pairs. The caller applies those pairs to its own progress records.

```python
from raftcore.changer import Changer, Configuration
from raftcore.confchange import parse_conf_change

conf = Configuration(incoming={1})
cfg, changes = Changer(conf, {1}).simple(parse_conf_change("v2"))
# cfg.incoming == {1, 2}; changes == [(2, MapChangeType.ADD)]

joint, changes = Changer(cfg, {1, 2}).enter_joint(False, parse_conf_change("v3 l1"))
# joint.incoming == {2, 3}, joint.outgoing == {1, 2}, joint.learners_next == {1}

final, changes = Changer(joint, {1, 2, 3}).leave_joint()
# final.incoming == {2, 3}, final.learners == {1}, final.is_joint() is False
```

- `simple(ccs)` changes the incoming voters by at most one.
- `enter_joint(auto_leave, ccs)` copies the incoming voters to the outgoing set and then applies the changes.
- `leave_joint()` drops the outgoing voters and promotes the staged learners.

Any change that is not allowed raises `ConfChangeError`.

## Data-driven tests

A test file holds directives, each followed by the output it should produce:

```
sum a=1 b=(2,3)
----
a=1
b=5
```

```python
from raftcore.datadriven import run_test

def handler(d):
    return "\n".join(f"{arg.key}={sum(int(v) for v in arg.vals)}" for arg in d.cmd_args)

run_test("testdata/sum.txt", handler)
```

- The path may name a single file or a directory. The entries of a directory are run in sorted order.
- A result that differs from the expected one raises `DataDrivenMismatch`, an `AssertionError` that carries a unified diff.
- With `rewrite=True` each file is overwritten with the actual outputs.
- `run_content(source_name, content, func, rewrite)` runs a string instead of a file. In rewrite mode it returns the rewritten text.
- Expected outputs that contain blank lines are enclosed in a double `----` separator.

## What this package does not do

The package contains no Raft node. It has no log storage, no progress tracker, no elections or replication, and no message transport. `Changer` only computes configurations and progress changes. Storing and applying them is left to the caller.

## Running the tests

```
pytest
```