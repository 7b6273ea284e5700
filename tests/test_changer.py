import pytest

from raftcore.changer import Changer, Configuration, MapChangeType
from raftcore.confchange import parse_conf_change
from raftcore.errors import ConfChangeError


def _apply_changes(progress, changes):
    result = set(progress)
    for node_id, kind in changes:
        if kind is MapChangeType.ADD:
            result.add(node_id)
        else:
            result.discard(node_id)
    return result


def _run(conf, progress, method, *args):
    cfg, changes = getattr(Changer(conf, progress), method)(*args)
    return cfg, _apply_changes(progress, changes)


def _three_voters():
    conf, progress = Configuration(), set()
    for tok in ("v1", "v2", "v3"):
        conf, progress = _run(conf, progress, "simple", parse_conf_change(tok))
    return conf, progress


def test_simple_add_first_voter():
    cfg, changes = Changer(Configuration(), set()).simple(parse_conf_change("v1"))
    assert cfg.incoming == {1}
    assert changes == [(1, MapChangeType.ADD)]
    assert not cfg.is_joint()


def test_simple_build_up_voters():
    conf, progress = _three_voters()
    assert conf.incoming == {1, 2, 3}
    assert progress == {1, 2, 3}


def test_simple_rejects_two_voter_changes():
    with pytest.raises(ConfChangeError) as exc:
        Changer(Configuration(), set()).simple(parse_conf_change("v1 v2"))
    assert str(exc.value) == "more than one voter changed without entering joint config"


def test_simple_removing_all_voters():
    conf, progress = _run(Configuration(), set(), "simple", parse_conf_change("v1"))
    with pytest.raises(ConfChangeError) as exc:
        Changer(conf, progress).simple(parse_conf_change("r1"))
    assert str(exc.value) == "removed all voters"


def test_simple_ignores_zero_node_id():
    conf, progress = _three_voters()
    cfg, changes = Changer(conf, progress).simple(parse_conf_change("v0"))
    assert cfg == conf
    assert changes == []


def test_simple_does_not_mutate_input():
    conf, progress = _three_voters()
    snapshot = conf.copy()
    Changer(conf, progress).simple(parse_conf_change("l4"))
    assert conf == snapshot


def test_demote_voter_to_learner():
    conf, progress = _three_voters()
    cfg, changes = Changer(conf, progress).simple(parse_conf_change("l3"))
    assert cfg.incoming == {1, 2}
    assert cfg.learners == {3}
    assert changes == []


def test_enter_joint_from_empty_fails():
    with pytest.raises(ConfChangeError) as exc:
        Changer(Configuration(), set()).enter_joint(False, parse_conf_change("v1"))
    assert str(exc.value) == "can't make a zero-voter config joint"


def test_enter_and_leave_joint_round_trip():
    conf, progress = _three_voters()
    joint, progress = _run(
        conf, progress, "enter_joint", True, parse_conf_change("v4 r2 l1")
    )
    assert joint.is_joint()
    assert joint.outgoing == {1, 2, 3}
    assert joint.incoming == {3, 4}
    assert joint.learners_next == {1}
    assert joint.auto_leave is True
    assert 2 in progress  # still an outgoing voter

    final, progress = _run(joint, progress, "leave_joint")
    assert not final.is_joint()
    assert final.incoming == {3, 4}
    assert final.learners == {1}
    assert final.learners_next == set()
    assert final.auto_leave is False
    assert progress == {1, 3, 4}


def test_enter_joint_when_already_joint():
    conf, progress = _three_voters()
    joint, progress = _run(conf, progress, "enter_joint", False, parse_conf_change("v4"))
    with pytest.raises(ConfChangeError) as exc:
        Changer(joint, progress).enter_joint(False, parse_conf_change("v5"))
    assert str(exc.value) == "config is already joint"


def test_simple_in_joint_fails():
    conf, progress = _three_voters()
    joint, progress = _run(conf, progress, "enter_joint", False, parse_conf_change("v4"))
    with pytest.raises(ConfChangeError) as exc:
        Changer(joint, progress).simple(parse_conf_change("v5"))
    assert str(exc.value) == "can't apply simple config change in joint config"


def test_leave_non_joint_fails():
    conf, progress = _three_voters()
    with pytest.raises(ConfChangeError) as exc:
        Changer(conf, progress).leave_joint()
    assert str(exc.value) == "can't leave a non-joint config"


def test_invariant_missing_voter_progress():
    conf = Configuration(incoming={1, 5})
    with pytest.raises(ConfChangeError) as exc:
        Changer(conf, {1}).simple([])
    assert str(exc.value) == "no progress for voter 5"


def test_invariant_learner_also_voter():
    conf = Configuration(incoming={1}, learners={1})
    with pytest.raises(ConfChangeError) as exc:
        Changer(conf, {1}).simple([])
    assert str(exc.value) == "1 is in learners and incoming voters"


def test_invariant_auto_leave_without_joint():
    conf = Configuration(incoming={1}, auto_leave=True)
    with pytest.raises(ConfChangeError) as exc:
        Changer(conf, {1}).simple([])
    assert str(exc.value) == "auto_leave must be false when not joint"


def test_invariant_learners_next_without_joint():
    conf = Configuration(incoming={1}, learners_next={1})
    with pytest.raises(ConfChangeError):
        Changer(conf, {1}).simple([])


def test_remove_then_readd_voter_in_one_change():
    conf, progress = _three_voters()
    cfg, changes = Changer(conf, progress).simple(parse_conf_change("r3 v3"))
    assert cfg.incoming == {1, 2, 3}
    assert _apply_changes(progress, changes) == {1, 2, 3}