"""Model drużyny: formacja, pozycje wyjściowe i fabryka składu."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from engine.config import Limits, Pitch
from engine.utils import RandomSource, clamp
from models.player import Player, Stats, random_name, random_stat, skill_for_role

logger = logging.getLogger(__name__)

FORMATIONS = ('2-4', '3-3', '4-2')
DEFAULT_FORMATION = '3-3'

StatOverrides = Mapping[str, Mapping[str, float]]

_FORMATION_RE = re.compile(r"^\s*(\d)\s*-?\s*(\d)\s*$")


@dataclass(frozen=True)
class Formation:
    """Podział obrońcy/napastnicy; bramkarz jest zawsze jeden."""
    defenders: int
    forwards: int

    @property
    def label(self) -> str:
        return f"{self.defenders}-{self.forwards}"

    @classmethod
    def parse(cls, value: str, fallback: str = DEFAULT_FORMATION) -> 'Formation':
        """
        Parsuje '3-3' albo '33'. Nieznane ustawienie → fallback (z ostrzeżeniem).
        """
        if isinstance(value, Formation):
            return value
        m = _FORMATION_RE.match(str(value or ''))
        if m:
            return cls(int(m.group(1)), int(m.group(2)))
        logger.warning("Nieznana formacja %r – używam %s", value, fallback)
        fm = _FORMATION_RE.match(fallback)
        return cls(int(fm.group(1)), int(fm.group(2)))


def _attack_sign(team: str) -> int:
    # A gra od dołu do góry (y maleje), B odwrotnie
    return -1 if team == 'A' else 1


def base_position(team: str, role: str, index: int, formation: Formation,
                  pitch: Optional[Pitch] = None) -> Tuple[float, float]:
    """
    Pozycja wyjściowa zawodnika wynikająca z formacji.

    Args:
        team: 'A' (dół) lub 'B' (góra)
        role: 'GK' / 'DF' / 'FW'
        index: numer w obrębie pozycji, od 0
    """
    pitch = pitch or Pitch()
    w, h = pitch.WIDTH, pitch.HEIGHT
    bottom = team == 'A'
    if role == 'GK':
        return (w / 2, h - 40 if bottom else 40.0)
    count = formation.defenders if role == 'DF' else formation.forwards
    spacing = w / (max(1, count) + 1)
    x = spacing * (index + 1)
    if role == 'DF':
        return (x, h - 120 if bottom else 120.0)
    return (x, h / 2 + 80 if bottom else h / 2 - 80)


def tactical_position(team: str, role: str, index: int, formation: Formation,
                      possession_team: Optional[str], pitch: Optional[Pitch] = None) -> Tuple[float, float]:
    """
    Pozycja taktyczna zależna od tego, kto ma piłkę: przy własnym
    posiadaniu linie podchodzą wyżej, przy posiadaniu rywala – cofają się.
    """
    pitch = pitch or Pitch()
    x, y = base_position(team, role, index, formation, pitch)
    if role == 'GK' or possession_team is None:
        return (x, y)
    toward_goal = _attack_sign(team)
    if possession_team == team:
        shift = 60.0 if role == 'DF' else 140.0
    else:
        shift = -20.0 if role == 'DF' else -40.0
    y = clamp(y + toward_goal * shift, pitch.EDGE_MARGIN, pitch.HEIGHT - pitch.EDGE_MARGIN)
    return (x, y)


def resolve_stats(role: str, index: int, overrides: Optional[StatOverrides], rng: RandomSource,
                  limits: Optional[Limits] = None) -> Stats:
    """
    Statystyki zawodnika: nadpisanie 'DF1' ma pierwszeństwo przed 'DF',
    brakujące pola losujemy. Wartości spoza zakresu są obcinane.
    """
    limits = limits or Limits()
    low, high = limits.STAT
    chosen: Dict[str, float] = {}
    if overrides:
        chosen.update(overrides.get(role, {}) or {})
        chosen.update(overrides.get(f"{role}{index}", {}) or {})

    def value(key: str) -> int:
        if key in chosen and chosen[key] is not None:
            return int(round(clamp(float(chosen[key]), low, high)))
        return random_stat(rng)

    return Stats(attack=value('atk'), defense=value('def'), speed=value('spd'))


@dataclass
class Team:
    """
    Skład jednej drużyny.

    Attributes:
        name: 'A' lub 'B'
        formation: Podział obrońców i napastników
        players: Bramkarz, obrońcy, napastnicy (w tej kolejności)
    """
    name: str
    formation: Formation
    players: List[Player] = field(default_factory=list)

    def get_goalkeeper(self) -> Optional[Player]:
        """Zwraca bramkarza drużyny."""
        return next((p for p in self.players if p.is_goalkeeper()), None)

    def get_defenders(self) -> List[Player]:
        return [p for p in self.players if p.is_defender()]

    def get_forwards(self) -> List[Player]:
        return [p for p in self.players if p.is_forward()]


def create_team(name: str, formation: Formation, rng: RandomSource, *,
                overrides: Optional[StatOverrides] = None,
                pitch: Optional[Pitch] = None, limits: Optional[Limits] = None) -> Team:
    """
    Buduje drużynę wg formacji: bramkarz + obrońcy + napastnicy.

    Returns:
        Team z zawodnikami ustawionymi na pozycjach wyjściowych
    """
    if name not in ('A', 'B'):
        raise ValueError(f"Nieznana drużyna: {name!r}")
    used: List[str] = []
    players: List[Player] = []

    def make(pid: str, role: str, index: int) -> Player:
        x, y = base_position(name, role, index, formation, pitch)
        pname = random_name(used, rng)
        used.append(pname)
        return Player(
            id=pid, name=pname, role=role, team=name, index=index,
            stats=resolve_stats(role, index, overrides, rng, limits),
            x=x, y=y, base_x=x, base_y=y,
            skill=skill_for_role(role, rng),
        )

    players.append(make(f"{name}-gk", 'GK', 0))
    for i in range(formation.defenders):
        players.append(make(f"{name}-df-{i}", 'DF', i))
    for i in range(formation.forwards):
        players.append(make(f"{name}-fw-{i}", 'FW', i))
    return Team(name=name, formation=formation, players=players)
