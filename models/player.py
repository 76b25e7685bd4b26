"""Model zawodnika."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from engine.utils import RandomSource, pick

ROSTER_JSON = Path(__file__).resolve().parents[1] / "data" / "roster.json"

ROLES = ('GK', 'DF', 'FW')
TEAMS = ('A', 'B')
SKILL_TYPES = ('attack', 'defense', 'gk')


@dataclass(frozen=True)
class Skill:
    """
    Umiejętność specjalna aktywowana pełnym paskiem furii.

    Attributes:
        name: Nazwa umiejętności
        emoji: Ikona do narracji
        type: 'attack' | 'defense' | 'gk'
        effect: Opis efektu (tekst dla UI)
    """
    name: str
    emoji: str
    type: str
    effect: str = ''


@dataclass
class Stats:
    attack: int = 50
    defense: int = 50
    speed: int = 50


@dataclass
class Player:
    """
    Reprezentuje zawodnika na boisku.

    Attributes:
        id: Unikalny identyfikator (np. 'A-df-1')
        name: Imię zawodnika
        role: Pozycja (GK/DF/FW)
        team: Drużyna ('A' – dół boiska, 'B' – góra)
        index: Numer w obrębie pozycji (od 0)
        stats: Atak / obrona / szybkość (40-99)
        x, y: Bieżąca pozycja
        base_x, base_y: Pozycja wyjściowa z formacji
        rage: Pasek furii (0..max_rage); pełny aktywuje umiejętność
    """
    id: str
    name: str
    role: str
    team: str
    index: int = 0
    stats: Stats = field(default_factory=Stats)
    x: float = 0.0
    y: float = 0.0
    base_x: float = 0.0
    base_y: float = 0.0
    hp: float = 100.0
    max_hp: float = 100.0
    stamina: float = 100.0
    max_stamina: float = 100.0
    rage: float = 0.0
    max_rage: float = 100.0
    has_ball: bool = False
    skill: Optional[Skill] = None
    skill_active: bool = False
    dashing: bool = False

    @property
    def pos(self):
        return (self.x, self.y)

    @property
    def base(self):
        return (self.base_x, self.base_y)

    def is_goalkeeper(self) -> bool:
        return self.role == 'GK'

    def is_defender(self) -> bool:
        return self.role == 'DF'

    def is_forward(self) -> bool:
        return self.role == 'FW'

    def add_rage(self, amount: float) -> None:
        """Dolicza furię (z obcięciem do max) i ewentualnie aktywuje umiejętność."""
        self.rage = max(0.0, min(self.max_rage, self.rage + amount))
        if self.rage >= self.max_rage:
            self.skill_active = True

    def consume_skill(self) -> None:
        """Efekt zużyty – furia od zera."""
        self.rage = 0.0
        self.skill_active = False


@lru_cache(maxsize=1)
def load_roster() -> Dict[str, object]:
    return json.loads(ROSTER_JSON.read_text(encoding="utf-8"))


def skill_catalogue() -> Dict[str, List[Skill]]:
    raw = load_roster().get("skills", {})
    return {
        kind: [Skill(name=s["name"], emoji=s.get("emoji", ""), type=kind, effect=s.get("effect", ""))
               for s in raw.get(kind, [])]
        for kind in SKILL_TYPES
    }


def skill_for_role(role: str, rng: RandomSource) -> Skill:
    kind = 'gk' if role == 'GK' else ('attack' if role == 'FW' else 'defense')
    chosen = pick(rng, skill_catalogue()[kind])
    return chosen or Skill(name='Fury', emoji='✨', type=kind)


def random_name(used: List[str], rng: RandomSource) -> str:
    available = [n for n in load_roster().get("names", []) if n not in used]
    chosen = pick(rng, available)
    if chosen is None:
        # pula imion wyczerpana
        return f"Pet{len(used) + 1}"
    return chosen


def random_stat(rng: RandomSource) -> int:
    """Statystyka całkowita z przedziału [40, 99]."""
    return min(99, int(rng.random() * 60) + 40)
