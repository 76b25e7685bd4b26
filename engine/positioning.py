"""
Heurystyki ustawiania zawodników (tylko silnik czasu rzeczywistego).

Każda funkcja zwraca punkt docelowy; samo przesunięcie robi ``advance_player``
z limitem kroku ``BASE + spd / DIV``. Stan taktyczny (przypisania krycia)
siedzi w MatchState, nie w module.
"""
from __future__ import annotations

import math
from typing import Dict, List, Optional

from engine.config import Pitch, Positioning, Speeds, Timing
from engine.utils import Point, clamp, distance, move_towards, nearest
from models.player import Player

_PITCH = Pitch()
_POS = Positioning()
_SPEEDS = Speeds()
_TIMING = Timing()


def attack_direction(team: str) -> int:
    """-1: drużyna A atakuje w górę (y maleje), +1: drużyna B w dół."""
    return -1 if team == 'A' else 1


def goal_y(team: str, pitch: Pitch = _PITCH) -> float:
    """Linia bramkowa, na którą atakuje ``team``."""
    return pitch.GOAL_MARGIN if team == 'A' else pitch.HEIGHT - pitch.GOAL_MARGIN


def own_goal_y(team: str, pitch: Pitch = _PITCH) -> float:
    return pitch.HEIGHT - pitch.EDGE_MARGIN if team == 'A' else pitch.EDGE_MARGIN


def penalty_line(team: str, pitch: Pitch = _PITCH) -> float:
    """Linia pola karnego rywala z perspektywy atakującego ``team``."""
    return pitch.PENALTY_DEPTH if team == 'A' else pitch.HEIGHT - pitch.PENALTY_DEPTH


def in_penalty_area(player: Player, team: str, margin: float = 0.0, pitch: Pitch = _PITCH) -> bool:
    line = penalty_line(team, pitch)
    if team == 'A':
        return player.y < line + margin
    return player.y > line - margin


def in_approach_zone(player: Player, team: str, pitch: Pitch = _PITCH) -> bool:
    """Strefa przed polem karnym, w której obrońcy wchodzą w kontakt."""
    return in_penalty_area(player, team, pitch.APPROACH_ZONE, pitch)


def step_for(player: Player, div: float, speeds: Speeds = _SPEEDS, fast: bool = False) -> float:
    base = speeds.FAST if fast else speeds.BASE
    return base + player.stats.speed / div


def advance_player(player: Player, target: Point, max_step: float) -> None:
    player.x, player.y = move_towards(player.pos, target, max_step)


# ————— cele ruchu —————

def idle_target(player: Player, ball: Point, match_time: int, pitch: Pitch = _PITCH,
                pos: Positioning = _POS, timing: Timing = _TIMING) -> Point:
    """Lekkie falowanie wokół pozycji wyjściowej + przyciąganie do piłki (zegar meczu, nie ścienny)."""
    t = match_time * timing.TICK_SECONDS
    wobble_x = math.sin(t * pos.WOBBLE_FREQ_X + player.x) * pos.WOBBLE
    wobble_y = math.cos(t * pos.WOBBLE_FREQ_Y + player.y) * pos.WOBBLE
    to_ball_x = (ball[0] - player.base_x) * pos.BALL_PULL
    to_ball_y = (ball[1] - player.base_y) * pos.BALL_PULL
    m = pitch.EDGE_MARGIN
    return (
        clamp(player.base_x + wobble_x + to_ball_x, m, pitch.WIDTH - m),
        clamp(player.base_y + wobble_y + to_ball_y, m, pitch.HEIGHT - m),
    )


def forward_target(player: Player, ball: Point, holder_team: Optional[str], match_time: int,
                   pitch: Pitch = _PITCH, pos: Positioning = _POS, timing: Timing = _TIMING) -> Point:
    """
    Napastnik:
    - własna drużyna przy piłce → wejście w tercję ataku z rozrzutem bocznym,
    - rywal przy piłce → powrót na własną połowę, lekki dryf za piłką,
    - piłka bez właściciela → jak idle.
    """
    if holder_team is None:
        return idle_target(player, ball, match_time, pitch, pos, timing)
    side = pos.FORWARD_SIDE_MARGIN
    if holder_team == player.team:
        if player.team == 'A':
            y = min(player.y, pitch.HEIGHT * pos.ATTACK_LINE)
        else:
            y = max(player.y, pitch.HEIGHT * (1 - pos.ATTACK_LINE))
        t = match_time * timing.TICK_SECONDS
        spread = math.sin(t * pos.WOBBLE_FREQ_X + player.index) * pos.LATERAL_SPREAD
        return (clamp(player.base_x + spread, side, pitch.WIDTH - side), y)
    retreat = pitch.HEIGHT * (pos.RETREAT_LINE if player.team == 'A' else 1 - pos.RETREAT_LINE)
    x = player.base_x + (ball[0] - pitch.WIDTH / 2) * pos.BALL_DRIFT
    return (clamp(x, side, pitch.WIDTH - side), retreat)


def forward_ready(player: Player, pitch: Pitch = _PITCH, pos: Positioning = _POS) -> bool:
    if player.team == 'A':
        return player.y < pitch.HEIGHT * pos.READY_LINE
    return player.y > pitch.HEIGHT * (1 - pos.READY_LINE)


def goalkeeper_target(keeper: Player, ball: Point, pitch: Pitch = _PITCH) -> Point:
    """Bramkarz śledzi x piłki w obrębie światła bramki, y bez zmian."""
    centre = pitch.WIDTH / 2
    return (clamp(ball[0], centre - pitch.GOAL_HALF_WIDTH, centre + pitch.GOAL_HALF_WIDTH), keeper.base_y)


def attacking_defender_target(defender: Player, pitch: Pitch = _PITCH, pos: Positioning = _POS) -> Point:
    """Obrońcy drużyny atakującej podchodzą, ale najwyżej do linii środkowej."""
    midline = pitch.HEIGHT / 2
    if defender.team == 'A':
        return (defender.base_x, max(defender.base_y - pos.ATTACKING_DF_PUSH, midline))
    return (defender.base_x, min(defender.base_y + pos.ATTACKING_DF_PUSH, midline))


# ————— krycie —————

def assign_marking(defenders: List[Player], forwards: List[Player]) -> Dict[str, str]:
    """
    Przypisania krycia dopasowane indeksami: obrońcy i napastnicy rywala
    posortowani po bocznej pozycji wyjściowej, i-ty obrońca kryje i-tego
    napastnika (z zawinięciem, gdy obrońców jest więcej).
    """
    if not defenders or not forwards:
        return {}
    ds = sorted(defenders, key=lambda p: (p.base_x, p.id))
    fs = sorted(forwards, key=lambda p: (p.base_x, p.id))
    return {d.id: fs[i % len(fs)].id for i, d in enumerate(ds)}


def ensure_marking(state, defending_team: str) -> Dict[str, str]:
    """Cache przypisań w stanie; przeliczany, gdy zmieni się liczba napastników rywala."""
    attackers = state.forwards('B' if defending_team == 'A' else 'A')
    if state.marking_sizes.get(defending_team) != len(attackers) or defending_team not in state.marking:
        state.marking[defending_team] = assign_marking(state.defenders(defending_team), attackers)
        state.marking_sizes[defending_team] = len(attackers)
    return state.marking[defending_team]


def separate(targets: Dict[str, Point], min_gap: float, passes: int = 3, pitch: Pitch = _PITCH) -> Dict[str, Point]:
    """Odpychanie parami: cele obrońców nie bliżej niż ``min_gap``."""
    pts = dict(targets)
    ids = sorted(pts)
    m = pitch.EDGE_MARGIN
    for _ in range(max(1, passes)):
        moved = False
        for i, a in enumerate(ids):
            for b in ids[i + 1:]:
                ax, ay = pts[a]
                bx, by = pts[b]
                d = distance((ax, ay), (bx, by))
                if d >= min_gap:
                    continue
                if d == 0.0:
                    ux, uy = 1.0, 0.0
                else:
                    ux, uy = (bx - ax) / d, (by - ay) / d
                push = (min_gap - d) / 2
                pts[a] = (clamp(ax - ux * push, m, pitch.WIDTH - m), clamp(ay - uy * push, m, pitch.HEIGHT - m))
                pts[b] = (clamp(bx + ux * push, m, pitch.WIDTH - m), clamp(by + uy * push, m, pitch.HEIGHT - m))
                moved = True
        if not moved:
            break
    return pts


def defender_targets(defenders: List[Player], holder: Optional[Player], marking: Dict[str, str],
                     opponents: List[Player], pitch: Pitch = _PITCH, pos: Positioning = _POS) -> Dict[str, Point]:
    """
    Cele obrońców drużyny broniącej.

    Najbliższy obrońca do napastnika rywala z piłką atakuje go (0.7 nosiciel /
    0.3 pozycja wyjściowa); reszta staje między krytym napastnikiem a własną
    bramką. Na końcu wymuszamy minimalny odstęp między obrońcami.
    """
    if not defenders:
        return {}
    by_id = {p.id: p for p in opponents}
    committer = None
    if holder is not None and holder.is_forward() and holder.team != defenders[0].team:
        committer = nearest(holder.pos, defenders)
    targets: Dict[str, Point] = {}
    side = pos.MARK_SIDE_MARGIN
    for d in defenders:
        if committer is not None and d.id == committer.id:
            blend = pos.COMMIT_BLEND
            targets[d.id] = (holder.x * blend + d.base_x * (1 - blend),
                             holder.y * blend + d.base_y * (1 - blend))
            continue
        marked = by_id.get(marking.get(d.id, ''))
        if marked is None or (holder is not None and marked.id == holder.id):
            targets[d.id] = d.base
            continue
        block_y = (marked.y + own_goal_y(d.team, pitch)) / 2
        targets[d.id] = (clamp(marked.x, side, pitch.WIDTH - side), clamp(block_y, side, pitch.HEIGHT - side))
    return separate(targets, pitch.MIN_DEFENDER_GAP, pos.SEPARATION_PASSES, pitch)


__all__ = [
    "attack_direction", "goal_y", "own_goal_y", "penalty_line", "in_penalty_area", "in_approach_zone",
    "step_for", "advance_player", "idle_target", "forward_target", "forward_ready", "goalkeeper_target",
    "attacking_defender_target", "assign_marking", "ensure_marking", "separate", "defender_targets",
]
