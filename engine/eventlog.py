"""
engine/eventlog.py

Parser tekstowego logu zdarzeń meczu (zewnętrzny symulator).

Format:
    42 vs 24                 # opcjonalna pierwsza linia: formacje T1 / T2
    startMatch
    wonKickoff T1-F2
    decrementStamina T1-D1 4.0|96.0
    ...

Nieznane zdarzenia i uszkodzone linie pomijamy (DEBUG w logu) – parser
nigdy nie rzuca wyjątku na złym wejściu.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

EVENT_TYPES = (
    'startMatch', 'endMatch', 'startHalf', 'endHalf', 'startTurn', 'endTurn',
    'wonKickoff', 'passBall', 'lostBall', 'shotGoal', 'shotFailed',
    'fwDfDuelSuccess', 'fwDfDuelFailed', 'decrementStamina', 'incrementRage',
)

LOG_FALLBACK_FORMATION = '42'

_HEADER_RE = re.compile(r"^\s*(\S+)\s+vs\s+(\S+)\s*$", re.IGNORECASE)
_FORMATION_RE = re.compile(r"^(\d)-?(\d)$")
_PLAYER_RE = re.compile(r"^(T[12])-([GDF])(\d*)$")


@dataclass(frozen=True)
class SimEvent:
    type: str
    params: Tuple[str, ...] = ()
    raw: str = ''
    line_no: int = 0

    def param(self, i: int) -> Optional[str]:
        return self.params[i] if 0 <= i < len(self.params) else None


@dataclass(frozen=True)
class ParsedMatch:
    formation_a: str = LOG_FALLBACK_FORMATION
    formation_b: str = LOG_FALLBACK_FORMATION
    events: List[SimEvent] = field(default_factory=list)


@dataclass(frozen=True)
class PlayerRef:
    team: str     # 'T1' | 'T2'
    role: str     # 'G' | 'D' | 'F'
    index: int    # 0 gdy pominięty (bramkarz)

    @property
    def id(self) -> str:
        if self.role == 'G':
            return f"{self.team}-G"
        return f"{self.team}-{self.role}{self.index}"


@dataclass(frozen=True)
class Meter:
    delta: float
    current: float


def parse_formation(token: str) -> Tuple[int, int]:
    """'42' → (4, 2); także '4-2'. Inne → 4-2."""
    m = _FORMATION_RE.match(str(token or '').strip())
    if not m:
        logger.debug("Nieczytelna formacja %r – przyjmuję %s", token, LOG_FALLBACK_FORMATION)
        return int(LOG_FALLBACK_FORMATION[0]), int(LOG_FALLBACK_FORMATION[1])
    return int(m.group(1)), int(m.group(2))


def parse_player_id(token: str) -> Optional[PlayerRef]:
    m = _PLAYER_RE.match(str(token or '').strip())
    if not m:
        return None
    return PlayerRef(team=m.group(1), role=m.group(2), index=int(m.group(3)) if m.group(3) else 0)


def parse_meter(token: str) -> Optional[Meter]:
    """'4.0|96.0' → Meter(delta=4.0, current=96.0); zły format → None."""
    parts = str(token or '').split('|')
    if len(parts) != 2:
        return None
    try:
        return Meter(delta=float(parts[0]), current=float(parts[1]))
    except ValueError:
        return None


def parse_line(line: str, line_no: int = 0) -> Optional[SimEvent]:
    parts = line.split()
    if not parts:
        return None
    if parts[0] not in EVENT_TYPES:
        logger.debug("Linia %d: nieznane zdarzenie %r – pomijam", line_no, parts[0])
        return None
    return SimEvent(type=parts[0], params=tuple(parts[1:]), raw=line, line_no=line_no)


def parse_log(text: str) -> ParsedMatch:
    """
    Parsuje cały log. Pierwsza niepusta linia może być nagłówkiem formacji;
    bez nagłówka obie drużyny dostają 4-2.
    """
    formation_a = formation_b = LOG_FALLBACK_FORMATION
    events: List[SimEvent] = []
    first = True
    for line_no, raw in enumerate((text or '').splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        if first:
            first = False
            m = _HEADER_RE.match(line)
            if m:
                formation_a = "%d%d" % parse_formation(m.group(1))
                formation_b = "%d%d" % parse_formation(m.group(2))
                continue
        event = parse_line(line, line_no)
        if event is not None:
            events.append(event)
    logger.debug("Wczytano %d zdarzeń (%s vs %s)", len(events), formation_a, formation_b)
    return ParsedMatch(formation_a=formation_a, formation_b=formation_b, events=events)


def load_log(path) -> ParsedMatch:
    with open(path, 'r', encoding='utf-8') as f:
        return parse_log(f.read())


__all__ = [
    "EVENT_TYPES", "SimEvent", "ParsedMatch", "PlayerRef", "Meter",
    "parse_formation", "parse_player_id", "parse_meter", "parse_line", "parse_log", "load_log",
]
