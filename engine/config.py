"""
Konfiguracja silnika – stałe fazowe, prędkości, prawdopodobieństwa.

Wartości domyślne trzymamy w zamrożonych dataclassach (po jednej na
obszar). Plik ``engine_config.yml`` – jeśli istnieje – nadpisuje je sekcja
po sekcji, np.::

    timing:
      BUILDUP_TIMEOUT: 150
    resolution:
      INTERCEPTION: 0.10
"""
from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pitch:
    WIDTH: float = 400.0
    HEIGHT: float = 600.0
    GOAL_MARGIN: float = 10.0        # linia bramkowa celu ataku (y=10 / y=H-10)
    PENALTY_DEPTH: float = 100.0     # głębokość pola karnego
    APPROACH_ZONE: float = 80.0      # strefa przed polem karnym, w której dochodzi do starć
    TACKLE_DISTANCE: float = 30.0
    KICKOFF_RADIUS: float = 20.0
    MIDLINE_OFFSET: float = 20.0
    MIDLINE_TOLERANCE: float = 60.0
    SETTLE_RADIUS: float = 10.0
    MIN_DEFENDER_GAP: float = 40.0
    EDGE_MARGIN: float = 30.0
    DASH_DISTANCE: float = 40.0
    GOAL_HALF_WIDTH: float = 50.0    # bramkarz porusza się w obrębie światła bramki
    BREAKTHROUGH_MARGIN: float = 20.0


@dataclass(frozen=True)
class Positioning:
    WOBBLE: float = 8.0
    WOBBLE_FREQ_X: float = 0.5
    WOBBLE_FREQ_Y: float = 0.4
    BALL_PULL: float = 0.15
    ATTACK_LINE: float = 0.35        # napastnicy A przy własnym posiadaniu: y <= 0.35*H
    RETREAT_LINE: float = 0.65       # napastnicy A bez piłki wracają na 0.65*H
    READY_LINE: float = 0.40         # napastnik "gotowy" do podania od obrońcy
    BALL_DRIFT: float = 0.2
    LATERAL_SPREAD: float = 20.0
    FORWARD_SIDE_MARGIN: float = 60.0
    COMMIT_BLEND: float = 0.7        # udział pozycji nosiciela w celu obrońcy atakującego
    MARK_SIDE_MARGIN: float = 50.0
    ATTACKING_DF_PUSH: float = 80.0
    SEPARATION_PASSES: int = 3


@dataclass(frozen=True)
class Speeds:
    BASE: float = 1.5
    FAST: float = 2.5
    # dzielniki statystyki szybkości: krok = BASE + spd / DIV
    CARRIER_DIV: float = 60.0
    BUILDUP_DIV: float = 80.0
    SUPPORT_DIV: float = 100.0
    BREAKTHROUGH_DIV: float = 50.0


@dataclass(frozen=True)
class Timing:
    TICK_SECONDS: float = 0.05
    KICKOFF_TIMEOUT: int = 150
    BUILDUP_TIMEOUT: int = 120
    ATTACK_TIMEOUT: int = 240
    BREAKTHROUGH_TIMEOUT: int = 40
    SAVE_HOLD: int = 40
    CELEBRATION: int = 60
    RESET_TIMEOUT: int = 80


@dataclass(frozen=True)
class Resolution:
    DUEL_SKILL_BONUS: float = 30.0
    DUEL_ROLL: float = 40.0
    SHOT_SKILL_BONUS: float = 50.0
    SHOT_ROLL: float = 50.0
    SAVE_ROLL: float = 30.0
    BONUS_SCALE: float = 100.0
    KICKOFF_ROLL: float = 50.0
    BASE_TACKLE: float = 0.5
    TACKLE_PER_DEFENDER: float = 0.13
    TACKLE_CAP: float = 0.85
    BREAK_PER_FORWARD: float = 0.10
    TACKLE_FLOOR: float = 0.25
    INTERCEPTION: float = 0.12
    PASS_ATTEMPT: float = 0.4
    PASS_SUCCESS: float = 0.8
    PASS_GOAL_BONUS: float = 0.05
    RAGE_PER_TICK: float = 0.2
    RAGE_PER_TURN: float = 10.0


@dataclass(frozen=True)
class Limits:
    MATCHES: tuple = (100, 100000)
    TURNS: tuple = (5, 50)
    STAT: tuple = (40, 99)
    DEFAULT_MATCHES: int = 1000
    DEFAULT_TURNS: int = 10


@dataclass(frozen=True)
class ReplayTiming:
    PLAYBACK_MS: int = 500
    PLAYBACK_RANGE: tuple = (100, 1000)
    GOAL_FACTOR: int = 3
    KEEPER_FACTOR: int = 4


@dataclass(frozen=True)
class Narrative:
    CAPACITY: int = 50


@dataclass(frozen=True)
class EngineConfig:
    pitch: Pitch = field(default_factory=Pitch)
    speeds: Speeds = field(default_factory=Speeds)
    positioning: Positioning = field(default_factory=Positioning)
    timing: Timing = field(default_factory=Timing)
    resolution: Resolution = field(default_factory=Resolution)
    limits: Limits = field(default_factory=Limits)
    replay: ReplayTiming = field(default_factory=ReplayTiming)
    narrative: Narrative = field(default_factory=Narrative)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _merge_section(name: str, section: Any, overrides: Dict[str, Any]) -> Any:
    known = {f.name for f in fields(section)}
    changes: Dict[str, Any] = {}
    for key, value in (overrides or {}).items():
        attr = str(key).upper()
        if attr not in known:
            logger.warning("Nieznany klucz konfiguracji: %s.%s – pomijam", name, key)
            continue
        if isinstance(getattr(section, attr), tuple):
            value = tuple(value)
        changes[attr] = value
    return replace(section, **changes)


def merge_config(base: EngineConfig, overrides: Dict[str, Any]) -> EngineConfig:
    """Nakłada słownik nadpisań (sekcja -> klucz -> wartość) na konfigurację."""
    sections: Dict[str, Any] = {}
    for key, value in (overrides or {}).items():
        name = str(key).lower()
        if not hasattr(base, name) or not isinstance(value, dict):
            logger.warning("Nieznana sekcja konfiguracji: %s – pomijam", key)
            continue
        sections[name] = _merge_section(name, getattr(base, name), value)
    return replace(base, **sections)


_GLOBAL_CONFIG: Optional[EngineConfig] = None


def load_config(path: str = 'engine_config.yml') -> EngineConfig:
    global _GLOBAL_CONFIG
    cfg = EngineConfig()
    if os.path.exists(path):
        with open(path, 'r', encoding='utf-8') as f:
            loaded = yaml.safe_load(f) or {}
        cfg = merge_config(cfg, loaded)
        logger.debug("Wczytano konfigurację z %s", path)
    _GLOBAL_CONFIG = cfg
    return cfg


def get_config() -> EngineConfig:
    global _GLOBAL_CONFIG
    if _GLOBAL_CONFIG is None:
        _GLOBAL_CONFIG = load_config()
    return _GLOBAL_CONFIG
