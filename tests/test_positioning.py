from __future__ import annotations

import pytest

from engine.config import Pitch
from engine.match import MatchEngine
from engine.positioning import (
    assign_marking, attacking_defender_target, defender_targets, ensure_marking, forward_target,
    goalkeeper_target, idle_target, separate, step_for,
)
from engine.utils import distance, move_towards
from models.player import Player, Stats


def _p(pid: str, role: str, team: str, x: float, y: float, index: int = 0, spd: int = 60) -> Player:
    return Player(id=pid, name=pid, role=role, team=team, index=index, stats=Stats(50, 50, spd),
                  x=x, y=y, base_x=x, base_y=y)


def test_move_towards_snaps_without_overshoot():
    assert move_towards((0.0, 0.0), (3.0, 4.0), 5.0) == (3.0, 4.0)
    assert move_towards((0.0, 0.0), (3.0, 4.0), 10.0) == (3.0, 4.0)
    x, y = move_towards((0.0, 0.0), (30.0, 40.0), 5.0)
    assert x == pytest.approx(3.0) and y == pytest.approx(4.0)


def test_step_for_uses_base_plus_speed_ratio():
    p = _p('a', 'FW', 'A', 0, 0, spd=60)
    assert step_for(p, 60) == pytest.approx(2.5)
    assert step_for(p, 50, fast=True) == pytest.approx(2.5 + 1.2)


def test_idle_target_is_clocked_by_match_time():
    p = _p('a', 'DF', 'A', 100, 480)
    ball = (200.0, 300.0)
    assert idle_target(p, ball, 10) == idle_target(p, ball, 10)
    x, y = idle_target(p, ball, 10)
    # wobble ±8 + 0.15 przyciągania do piłki
    assert abs(x - (100 + (200 - 100) * 0.15)) <= 8.0 + 1e-9
    assert abs(y - (480 + (300 - 480) * 0.15)) <= 8.0 + 1e-9


def test_forward_target_attacking_third_and_retreat():
    pitch = Pitch()
    fw = _p('A-fw-0', 'FW', 'A', 100, 380)
    _, y_own = forward_target(fw, (200.0, 300.0), 'A', 0)
    assert y_own == pytest.approx(pitch.HEIGHT * 0.35)
    _, y_opp = forward_target(fw, (200.0, 300.0), 'B', 0)
    assert y_opp == pytest.approx(pitch.HEIGHT * 0.65)

    fw_b = _p('B-fw-0', 'FW', 'B', 100, 220)
    _, y_b = forward_target(fw_b, (200.0, 300.0), 'B', 0)
    assert y_b == pytest.approx(pitch.HEIGHT * 0.65)


def test_goalkeeper_stays_in_goal_mouth():
    gk = _p('A-gk', 'GK', 'A', 200, 560)
    assert goalkeeper_target(gk, (10.0, 300.0)) == (150.0, 560.0)
    assert goalkeeper_target(gk, (220.0, 300.0)) == (220.0, 560.0)


def test_attacking_defender_stops_at_midline():
    df = _p('A-df-0', 'DF', 'A', 100, 340)
    assert attacking_defender_target(df) == (100, 300.0)
    df_b = _p('B-df-0', 'DF', 'B', 100, 120)
    assert attacking_defender_target(df_b) == (100, 200)


def test_assign_marking_is_index_matched_by_lateral_position():
    defenders = [_p('B-df-1', 'DF', 'B', 300, 120), _p('B-df-0', 'DF', 'B', 100, 120), _p('B-df-2', 'DF', 'B', 200, 120)]
    forwards = [_p('A-fw-1', 'FW', 'A', 266, 380), _p('A-fw-0', 'FW', 'A', 133, 380)]
    marking = assign_marking(defenders, forwards)
    assert marking == {'B-df-0': 'A-fw-0', 'B-df-2': 'A-fw-1', 'B-df-1': 'A-fw-0'}
    assert assign_marking(defenders, []) == {}


def test_marking_cache_recomputed_when_forward_count_changes():
    engine = MatchEngine('3-3', '3-3', seed=1)
    s = engine.snapshot()
    first = ensure_marking(s, 'B')
    assert len(first) == 3 and len(set(first.values())) == 3
    assert ensure_marking(s, 'B') is first

    removed = s.forwards('A')[0].id
    s.players = [p for p in s.players if p.id != removed]
    second = ensure_marking(s, 'B')
    assert removed not in second.values()
    assert s.marking_sizes['B'] == 2


def test_committing_defender_blends_towards_holder():
    holder = _p('A-fw-0', 'FW', 'A', 200, 200)
    holder.has_ball = True
    near = _p('B-df-0', 'DF', 'B', 200, 120)
    far = _p('B-df-1', 'DF', 'B', 350, 120)
    targets = defender_targets([near, far], holder, {}, [holder])
    assert targets['B-df-0'] == pytest.approx((200.0, 200 * 0.7 + 120 * 0.3))
    # bez przypisania krycia – pozycja wyjściowa
    assert targets['B-df-1'] == pytest.approx((350.0, 120.0))


def test_separation_enforces_minimum_gap():
    pts = separate({'a': (200.0, 300.0), 'b': (200.0, 300.0), 'c': (210.0, 300.0)}, 40.0, passes=30)
    ids = sorted(pts)
    for i, a in enumerate(ids):
        for b in ids[i + 1:]:
            assert distance(pts[a], pts[b]) >= 40.0 - 1e-3
