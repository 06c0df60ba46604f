import pytest

from gridmdp.rl.gridworld import (
    DELTA,
    Action,
    CellKindError,
    Normal,
    Prohibited,
    Special,
    Start,
    Terminal,
    left_of,
    payload_change,
    reverse_of,
    right_of,
)

U, D, L, R = Action.UP, Action.DOWN, Action.LEFT, Action.RIGHT


def test_left_of():
    assert left_of(U) == L
    assert left_of(L) == D
    assert left_of(D) == R
    assert left_of(R) == U


def test_right_of():
    assert right_of(U) == R
    assert right_of(R) == D
    assert right_of(D) == L
    assert right_of(L) == U


def test_reverse_of():
    assert reverse_of(R) == L
    assert reverse_of(U) == D
    assert reverse_of(D) == U
    assert reverse_of(L) == R


def test_rotation_group_relations():
    for a in Action:
        assert left_of(left_of(left_of(left_of(a)))) == a
        assert reverse_of(reverse_of(a)) == a
        assert left_of(reverse_of(a)) == right_of(a)
        assert right_of(left_of(a)) == a


def test_offsets_use_top_left_origin():
    assert DELTA[U] == (0, -1)
    assert DELTA[D] == (0, 1)
    assert DELTA[L] == (-1, 0)
    assert DELTA[R] == (1, 0)
    for a in Action:
        dx, dy = DELTA[a]
        rx, ry = DELTA[reverse_of(a)]
        assert (dx + rx, dy + ry) == (0, 0)


def test_action_arrows():
    assert [str(a) for a in (U, D, L, R)] == ["^", "v", "<", ">"]


def test_cell_rendering():
    assert str(Prohibited()) == "F"
    assert str(Start(0.7053082)) == "S(0.705)"
    assert str(Terminal(-1.0)) == "T(-1.000)"
    assert str(Special(0.25, move_cost=-0.5)) == "B(0.250)"
    assert str(Normal(0.8115582)) == "N(0.812)"


def test_prohibited_has_no_reward():
    with pytest.raises(CellKindError):
        Prohibited().reward


def test_with_value_keeps_kind():
    assert Normal(1.0).with_value(2.0) == Normal(2.0)
    assert Start(0.0).with_value(0.5) == Start(0.5)
    assert Terminal(1.0).with_value(3.0) == Terminal(3.0)
    assert Special(0.0, move_cost=-0.5).with_value(1.5) == Special(1.5, move_cost=-0.5)
    assert Prohibited().with_value(4.0) == Prohibited()


def test_kinds_are_distinct():
    assert Normal(0.0) != Start(0.0)
    assert Terminal(1.0) != Normal(1.0)
    assert not Normal(0.0).same_kind(Start(0.0))
    assert Normal(0.0).kind == "normal"
    assert Prohibited().kind == "prohibited"


def test_mutability_by_kind():
    assert Normal().mutable and Start().mutable and Special().mutable
    assert not Terminal().mutable
    assert not Prohibited().mutable


def test_payload_change():
    assert payload_change(Normal(1.0), Normal(0.25)) == pytest.approx(0.75)
    assert payload_change(Special(0.0, -1.0), Special(-1.0, -1.0)) == pytest.approx(1.0)
    assert payload_change(Prohibited(), Prohibited()) == 0.0


def test_payload_change_rejects_kind_change():
    with pytest.raises(CellKindError):
        payload_change(Normal(0.0), Terminal(0.0))
    with pytest.raises(CellKindError):
        payload_change(Prohibited(), Normal(0.0))
