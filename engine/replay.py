"""
Odtwarzanie meczu z logu zdarzeń.

Stan liczymy czystym foldem po zdarzeniach (``apply_event`` nie zmienia
wejścia). Pozycje zawodników nie są stanem pierwotnym – po każdej zmianie
posiadania wyliczamy je z (rola, indeks, formacja, kto ma piłkę).
"""
from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass, field
from functools import reduce
from typing import Dict, List, Optional, Tuple

from engine.config import EngineConfig, ReplayTiming, get_config
from engine.eventlog import ParsedMatch, SimEvent, parse_formation, parse_meter
from engine.utils import clamp
from models.team import Formation, tactical_position

logger = logging.getLogger(__name__)

POSSESSION_EVENTS = {
    'wonKickoff': 0,
    'passBall': 1,
    'lostBall': 1,
    'shotFailed': 1,
    'fwDfDuelSuccess': 0,
    'fwDfDuelFailed': 1,
}
INSTANT_EVENTS = ('decrementStamina', 'incrementRage')

# T1 gra od dołu (jak drużyna A silnika), T2 od góry
_SIDE = {'T1': 'A', 'T2': 'B'}
_ROLE = {'G': 'GK', 'D': 'DF', 'F': 'FW'}


@dataclass
class ReplayPlayer:
    id: str
    team: str
    role: str
    index: int
    x: float = 0.0
    y: float = 0.0
    stamina: float = 100.0
    max_stamina: float = 100.0
    rage: float = 0.0
    max_rage: float = 100.0
    has_ball: bool = False


@dataclass
class ReplayState:
    formation_a: str
    formation_b: str
    half: int = 1
    turn: int = 0
    score: Dict[str, int] = field(default_factory=lambda: {'T1': 0, 'T2': 0})
    players: List[ReplayPlayer] = field(default_factory=list)
    ball_owner_id: Optional[str] = None
    ended: bool = False

    def find(self, player_id: Optional[str]) -> Optional[ReplayPlayer]:
        if player_id is None:
            return None
        return next((p for p in self.players if p.id == player_id), None)

    def holder(self) -> Optional[ReplayPlayer]:
        return self.find(self.ball_owner_id)

    def ball_position(self, config: Optional[EngineConfig] = None) -> Tuple[float, float]:
        holder = self.holder()
        if holder is not None:
            return (holder.x, holder.y)
        pitch = (config or get_config()).pitch
        return (pitch.WIDTH / 2, pitch.HEIGHT / 2)

    def possession_consistent(self) -> bool:
        holders = [p.id for p in self.players if p.has_ball]
        if not holders:
            return self.ball_owner_id is None
        return len(holders) == 1 and holders[0] == self.ball_owner_id


def _formation(token: str) -> Formation:
    defenders, forwards = parse_formation(token)
    return Formation(defenders, forwards)


def _place_players(state: ReplayState) -> None:
    """Pozycje taktyczne wg tego, która drużyna ma piłkę."""
    formations = {'T1': _formation(state.formation_a), 'T2': _formation(state.formation_b)}
    holder = state.holder()
    possession = _SIDE[holder.team] if holder is not None else None
    pitch = get_config().pitch
    for p in state.players:
        index0 = max(0, p.index - 1) if p.role != 'G' else 0
        p.x, p.y = tactical_position(_SIDE[p.team], _ROLE[p.role], index0, formations[p.team], possession, pitch)


def initial_state(parsed: ParsedMatch) -> ReplayState:
    state = ReplayState(formation_a=parsed.formation_a, formation_b=parsed.formation_b)
    for team, token in (('T1', parsed.formation_a), ('T2', parsed.formation_b)):
        defenders, forwards = parse_formation(token)
        state.players.append(ReplayPlayer(id=f"{team}-G", team=team, role='G', index=0))
        for i in range(1, defenders + 1):
            state.players.append(ReplayPlayer(id=f"{team}-D{i}", team=team, role='D', index=i))
        for i in range(1, forwards + 1):
            state.players.append(ReplayPlayer(id=f"{team}-F{i}", team=team, role='F', index=i))
    _place_players(state)
    return state


def _give_ball(state: ReplayState, player_id: Optional[str]) -> None:
    for p in state.players:
        p.has_ball = False
    state.ball_owner_id = None
    player = state.find(player_id)
    if player is None:
        if player_id is not None:
            logger.debug("Nieznany zawodnik %r – piłka bez właściciela", player_id)
        return
    player.has_ball = True
    state.ball_owner_id = player.id


def _int_param(event: SimEvent, fallback: int) -> int:
    try:
        return int(event.param(0) or '') or fallback
    except ValueError:
        return fallback


def apply_event(state: ReplayState, event: SimEvent) -> ReplayState:
    """Nowy stan po zdarzeniu; ``state`` pozostaje nietknięty."""
    new = copy.deepcopy(state)
    kind = event.type

    if kind in POSSESSION_EVENTS:
        _give_ball(new, event.param(POSSESSION_EVENTS[kind]))
        _place_players(new)
    elif kind == 'shotGoal':
        scorer = new.find(event.param(0))
        if scorer is not None:
            # gol zapisujemy na polu drużyny, której bramkę atakowano
            conceding = 'T2' if scorer.team == 'T1' else 'T1'
            new.score[conceding] += 1
        else:
            logger.debug("Linia %d: shotGoal bez znanego strzelca", event.line_no)
        _give_ball(new, None)
        _place_players(new)
    elif kind == 'startHalf':
        new.half = _int_param(event, 1)
    elif kind == 'startTurn':
        new.turn = _int_param(event, 0)
    elif kind == 'endMatch':
        new.ended = True
    elif kind in INSTANT_EVENTS:
        player = new.find(event.param(0))
        meter = parse_meter(event.param(1) or '')
        if player is None or meter is None:
            return new
        if not math.isfinite(meter.current):
            logger.debug("Linia %d: nieprawidłowa wartość miernika %r", event.line_no, meter.current)
        elif kind == 'decrementStamina':
            player.stamina = clamp(meter.current, 0.0, player.max_stamina)
        else:
            player.rage = clamp(meter.current, 0.0, player.max_rage)
    return new


def replay(parsed: ParsedMatch) -> ReplayState:
    """Pełne odtworzenie – lewy fold ``apply_event`` po zdarzeniach."""
    return reduce(apply_event, parsed.events, initial_state(parsed))


def event_timing(event: SimEvent) -> str:
    if event.type in INSTANT_EVENTS:
        return 'instant'
    if event.type == 'shotGoal':
        return 'terminal_goal'
    if event.type == 'shotFailed':
        # bramkarz z piłką – wszyscy wracają do formacji
        return 'terminal_keeper'
    return 'positional'


def timing_delay(category: str, playback_ms: int, timing: Optional[ReplayTiming] = None) -> int:
    timing = timing or ReplayTiming()
    if category == 'instant':
        return 0
    if category == 'terminal_goal':
        return playback_ms * timing.GOAL_FACTOR
    if category == 'terminal_keeper':
        return playback_ms * timing.KEEPER_FACTOR
    return playback_ms


class ReplayController:
    """
    Krokowe odtwarzanie z oknami opóźnień.

    ``step()`` przy otwartym oknie jest odrzucany (False). ``advance(ms)``
    przesuwa zegar kontrolera i – gdy trwa odtwarzanie – wykonuje kolejne
    kroki po zamknięciu okien. ``pause()`` wyłącza tylko auto-krok.
    """

    def __init__(self, parsed: ParsedMatch, playback_ms: Optional[int] = None,
                 config: Optional[EngineConfig] = None) -> None:
        self.parsed = parsed
        self.timing = (config or get_config()).replay
        self.playback_ms = self.timing.PLAYBACK_MS
        self.set_playback_speed(self.timing.PLAYBACK_MS if playback_ms is None else playback_ms)
        self.reset()

    def reset(self) -> ReplayState:
        self.state = initial_state(self.parsed)
        self.index = 0
        self.clock_ms = 0
        self.ready_at = 0
        self.playing = False
        self.displayed: List[str] = []
        return self.state

    def set_playback_speed(self, ms: int) -> int:
        low, high = self.timing.PLAYBACK_RANGE
        self.playback_ms = int(clamp(int(ms), low, high))
        return self.playback_ms

    @property
    def total_events(self) -> int:
        return len(self.parsed.events)

    @property
    def done(self) -> bool:
        return self.index >= self.total_events

    @property
    def window_open(self) -> bool:
        return self.clock_ms < self.ready_at

    @property
    def remaining_ms(self) -> int:
        return max(0, self.ready_at - self.clock_ms)

    def _apply_next(self) -> SimEvent:
        event = self.parsed.events[self.index]
        self.state = apply_event(self.state, event)
        self.index += 1
        self.displayed.append(event.raw)
        return event

    def step(self) -> bool:
        if self.window_open or self.done:
            return False
        event = self._apply_next()
        delay = timing_delay(event_timing(event), self.playback_ms, self.timing)
        # zdarzenia natychmiastowe idą jedną paczką z poprzednim
        while not self.done and event_timing(self.parsed.events[self.index]) == 'instant':
            self._apply_next()
        self.ready_at = self.clock_ms + delay
        if self.done or self.state.ended:
            self.playing = False
        return True

    def play(self) -> None:
        if not self.done and not self.state.ended:
            self.playing = True

    def pause(self) -> None:
        self.playing = False

    def advance(self, ms: int) -> int:
        """Przesuwa zegar o ``ms``; zwraca liczbę wykonanych auto-kroków."""
        target = self.clock_ms + max(0, int(ms))
        steps = 0
        while self.playing and self.ready_at <= target:
            self.clock_ms = max(self.clock_ms, self.ready_at)
            if not self.step():
                break
            steps += 1
        self.clock_ms = target
        return steps


__all__ = [
    "ReplayPlayer", "ReplayState", "ReplayController", "initial_state", "apply_event", "replay",
    "event_timing", "timing_delay", "POSSESSION_EVENTS",
]
