"""Testy symulacji seryjnej (Monte-Carlo)."""
from __future__ import annotations

import pytest

from engine.batch import (
    BatchResult, SimConfig, TurnOutcome, run_batch, run_simulation, simulate_turn, split_batches,
)
from engine.utils import make_rng
from models.team import Formation, create_team, resolve_stats


class _Const:
    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


def _teams(rng, stats_a=None, stats_b=None):
    a = create_team('A', Formation.parse('3-3'), rng, overrides=stats_a)
    b = create_team('B', Formation.parse('3-3'), rng, overrides=stats_b)
    return a, b


@pytest.mark.parametrize("n", [1, 7, 25])
def test_totals_add_up(n):
    r = run_batch(SimConfig(num_matches=n, turns_per_match=5), seed=1, clamp=False)
    assert r.total_matches == n
    assert r.wins_a + r.wins_b + r.draws == n
    assert r.goals_a + r.goals_b <= 5 * n


def test_merge_is_fieldwise_and_associative():
    x = BatchResult(1, 2, 3, 4, 5, 6)
    y = BatchResult(10, 0, 1, 7, 2, 11)
    z = BatchResult(0, 5, 0, 1, 9, 5)
    assert (x + y) + z == x + (y + z)
    assert BatchResult() + x == x
    assert (x + y).goals_a == 11


def test_result_dict_uses_camel_case_keys():
    r = BatchResult()
    r.record(2, 1)
    r.record(0, 0)
    d = r.as_dict()
    assert d == {"winsA": 1, "winsB": 0, "draws": 1, "goalsA": 2, "goalsB": 1, "totalMatches": 2}
    assert BatchResult.from_dict(d) == r


def test_minimal_rng_gives_scoreless_draw():
    r = run_batch(SimConfig('3-3', '3-3', num_matches=1, turns_per_match=10), rng=_Const(0.0), clamp=False)
    assert r == BatchResult(wins_a=0, wins_b=0, draws=1, goals_a=0, goals_b=0, total_matches=1)


def test_config_is_clamped():
    cfg = SimConfig(
        formation_a='5-1', formation_b='42',
        num_matches=5, turns_per_match=99,
        stats_a={'FW': {'atk': 120, 'luck': 3}, 'DF0': {'def': 10}},
    ).clamped()
    assert cfg.num_matches == 100
    assert cfg.turns_per_match == 50
    assert cfg.formation_a == '3-3'
    assert cfg.formation_b == '4-2'
    assert cfg.stats_a == {'FW': {'atk': 99}, 'DF0': {'def': 40}}
    assert cfg.stats_b is None

    big = SimConfig(num_matches=10 ** 7, turns_per_match=1).clamped()
    assert big.num_matches == 100000 and big.turns_per_match == 5


def test_split_batches():
    assert split_batches(1000) == [100] * 10
    assert split_batches(250) == [100, 100, 50]
    assert split_batches(5000) == [500] * 10
    assert split_batches(7, 3) == [3, 3, 1]
    assert split_batches(0) == []


def test_run_simulation_reproducible_and_reports_progress():
    cfg = SimConfig(num_matches=300, turns_per_match=5)
    calls = []
    first = run_simulation(cfg, seed=9, on_progress=lambda done, total, part: calls.append((done, total)))
    second = run_simulation(cfg, seed=9)
    assert first == second
    assert first.total_matches == 300
    assert calls == [(100, 300), (200, 300), (300, 300)]


def test_parallel_matches_sequential():
    cfg = SimConfig('4-2', '2-4', num_matches=400, turns_per_match=5)
    seq = run_simulation(cfg, seed=21, workers=1)
    par = run_simulation(cfg, seed=21, workers=2)
    assert seq == par


def test_turn_adds_rage_to_everyone():
    a, b = _teams(make_rng(1))
    simulate_turn(a, b, 'A', make_rng(2))
    assert all(p.rage == pytest.approx(10.0) for p in a.players + b.players)


def test_turn_rejects_unknown_side():
    a, b = _teams(make_rng(1))
    with pytest.raises(ValueError):
        simulate_turn(a, b, 'C', make_rng(2))


def test_turn_with_interception_hands_next_turn_to_defenders():
    a, b = _teams(_Const(0.0))
    # rozpoczęcie dla B, przechwyt → atakuje A, odbiór przy pierwszym obrońcy
    assert simulate_turn(a, b, 'B', _Const(0.0)) == TurnOutcome(scoring_team=None, next_attacking='B')


def test_dominant_attack_scores():
    a, b = _teams(_Const(0.99), stats_a={'FW': {'atk': 99}},
                  stats_b={'DF': {'def': 40}, 'GK': {'def': 40}})
    assert simulate_turn(a, b, 'B', _Const(0.99)) == TurnOutcome(scoring_team='A', next_attacking='B')


def test_index_override_beats_role_override():
    overrides = {'DF': {'atk': 50}, 'DF0': {'atk': 90, 'spd': 200}}
    rng = make_rng(3)
    assert resolve_stats('DF', 0, overrides, rng).attack == 90
    assert resolve_stats('DF', 0, overrides, rng).speed == 99
    assert resolve_stats('DF', 1, overrides, rng).attack == 50
