import pytest

from raftcore.confchange import (
    conf_state_eq,
    new_conf_change_single,
    parse_conf_change,
    stringify_conf_change,
)
from raftcore.eraftpb import ConfChangeSingle, ConfChangeType, ConfState


def test_new_conf_change_single():
    single = new_conf_change_single(7, ConfChangeType.REMOVE_NODE)
    assert single == ConfChangeSingle(change_type=ConfChangeType.REMOVE_NODE, node_id=7)


@pytest.mark.parametrize("text", ["", "   ", "\t\n"])
def test_parse_empty_input(text):
    assert parse_conf_change(text) == []


def test_parse_all_operations():
    assert parse_conf_change(" v1 l2  r3 ") == [
        ConfChangeSingle(ConfChangeType.ADD_NODE, 1),
        ConfChangeSingle(ConfChangeType.ADD_LEARNER_NODE, 2),
        ConfChangeSingle(ConfChangeType.REMOVE_NODE, 3),
    ]


def test_parse_multiline_input():
    ccs = parse_conf_change("v1\nv2\nl3")
    assert [cc.node_id for cc in ccs] == [1, 2, 3]


@pytest.mark.parametrize("text", ["v1 l2 r3", "v10", "r1 r2 v4 l4"])
def test_round_trip(text):
    assert stringify_conf_change(parse_conf_change(text)) == text


def test_stringify_empty():
    assert stringify_conf_change([]) == ""


def test_round_trip_from_singles():
    ccs = [
        new_conf_change_single(3, ConfChangeType.ADD_LEARNER_NODE),
        new_conf_change_single(1, ConfChangeType.ADD_NODE),
    ]
    assert parse_conf_change(stringify_conf_change(ccs)) == ccs


@pytest.mark.parametrize("tok", ["v", "x1", "q12"])
def test_unknown_token(tok):
    with pytest.raises(ValueError) as info:
        parse_conf_change(f"v1 {tok}")
    assert str(info.value) == f"unknown token {tok}"


@pytest.mark.parametrize("tok", ["vx", "l1a", "r-2", "v99999999999999999999999"])
def test_bad_node_id(tok):
    with pytest.raises(ValueError) as info:
        parse_conf_change(tok)
    assert str(info.value).startswith(f"parse token {tok} fail: ")


def test_conf_state_eq_identical():
    a = ConfState(voters=[1, 2], learners=[3], auto_leave=True)
    b = ConfState(voters=[1, 2], learners=[3], auto_leave=True)
    assert conf_state_eq(a, b) is True


def test_conf_state_eq_ignores_order():
    a = ConfState(voters=[1, 2, 3], learners=[4, 5], voters_outgoing=[1, 6], learners_next=[6])
    b = ConfState(voters=[3, 1, 2], learners=[5, 4], voters_outgoing=[6, 1], learners_next=[6])
    assert conf_state_eq(a, b) is True
    assert conf_state_eq(b, a) is True


def test_conf_state_eq_detects_member_difference():
    a = ConfState(voters=[1, 2, 3])
    b = ConfState(voters=[1, 2])
    assert conf_state_eq(a, b) is False
    assert conf_state_eq(b, a) is False


def test_conf_state_eq_detects_role_difference():
    a = ConfState(voters=[1, 2], learners=[3])
    b = ConfState(voters=[1, 2, 3])
    assert conf_state_eq(a, b) is False


def test_conf_state_eq_detects_auto_leave_difference():
    a = ConfState(voters=[1], voters_outgoing=[1, 2], auto_leave=True)
    b = ConfState(voters=[1], voters_outgoing=[2, 1], auto_leave=False)
    assert conf_state_eq(a, b) is False


def test_conf_state_eq_from_members():
    a = ConfState.from_members([2, 1], [])
    b = ConfState.from_members([1, 2], [])
    assert conf_state_eq(a, b) is True