from __future__ import annotations

import pytest

from engine.batch import BatchResult, SimConfig
from engine.commentary import Commentary
from engine.events import MatchLog
from engine.telemetry import collect_distribution_snapshot
from engine.utils import make_rng, pick
from models.player import Player, Skill, Stats
from models.state import MatchState
from models.team import Formation, base_position, create_team


def test_formation_parse_and_fallback():
    assert Formation.parse('4-2') == Formation(4, 2)
    assert Formation.parse('24') == Formation(2, 4)
    assert Formation.parse('nonsense') == Formation(3, 3)
    assert Formation(2, 4).label == '2-4'


def test_create_team_layout_and_ids():
    team = create_team('B', Formation(4, 2), make_rng(5))
    assert [p.id for p in team.players] == ['B-gk', 'B-df-0', 'B-df-1', 'B-df-2', 'B-df-3', 'B-fw-0', 'B-fw-1']
    names = [p.name for p in team.players]
    assert len(set(names)) == len(names)
    assert all(40 <= s <= 99 for p in team.players for s in (p.stats.attack, p.stats.defense, p.stats.speed))
    assert team.get_goalkeeper().base == (200.0, 40.0)
    with pytest.raises(ValueError):
        create_team('C', Formation(3, 3), make_rng(5))


def test_base_positions_mirror_between_sides():
    f = Formation(3, 3)
    ax, ay = base_position('A', 'DF', 0, f)
    bx, by = base_position('B', 'DF', 0, f)
    assert ax == bx == pytest.approx(100.0)
    assert ay + by == pytest.approx(600.0)


def test_rage_activates_and_consumes_skill():
    p = Player(id='x', name='x', role='FW', team='A', stats=Stats(), skill=Skill('S', '✨', 'attack'))
    p.add_rage(150)
    assert p.rage == 100.0 and p.skill_active
    p.consume_skill()
    assert p.rage == 0.0 and not p.skill_active


def test_match_log_is_bounded_ring():
    log = MatchLog(capacity=50)
    for i in range(60):
        log.add(f"wpis {i}", 'action', i)
    assert len(log) == 50
    assert log.entries()[0].message == 'wpis 10'
    assert log.entries()[-1].id == 'log-60'
    assert log.add('?', 'weird').type == 'info'


def test_state_possession_helpers():
    team = create_team('A', Formation(3, 3), make_rng(1))
    s = MatchState(players=team.players, formations={'A': team.formation, 'B': team.formation})
    assert s.possession_consistent()
    s.give_ball('A-fw-0')
    assert s.ball_holder().id == 'A-fw-0' and s.possession_consistent()
    s.give_ball('nobody')
    assert s.ball.owner_id is None and s.possession_consistent()


def test_pick_handles_empty_and_edges():
    class _Rng:
        def random(self):
            return 0.9999999

    assert pick(_Rng(), []) is None
    assert pick(_Rng(), ['a', 'b', 'c']) == 'c'


def test_commentary_messages_use_names():
    p = Player(id='A-fw-0', name='Luna', role='FW', team='A', skill=Skill('Fireball Shot', '🔥', 'attack'))
    gk = Player(id='B-gk', name='Rex', role='GK', team='B')
    assert 'Luna' in Commentary.goal(p, 'A')
    assert 'Rex' in Commentary.save(gk)
    assert Commentary.skill_used(p).startswith('⚡')
    assert 'A 2 : 1 B' in Commentary.final_whistle({'A': 2, 'B': 1})


def test_distribution_snapshot():
    r = BatchResult(wins_a=6, wins_b=3, draws=1, goals_a=12, goals_b=7, total_matches=10)
    snap = collect_distribution_snapshot(r, SimConfig('4-2', '2-4'))
    assert snap['win_rate_a'] == pytest.approx(0.6)
    assert snap['goals_per_match'] == pytest.approx(1.9)
    assert snap['formation_a'] == '4-2'
    assert snap['result']['goalsB'] == 7
