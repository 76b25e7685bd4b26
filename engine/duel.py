from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from engine.config import Resolution
from engine.utils import RandomSource, roll

_RES = Resolution()


def _stat(p: Any, name: str, default: float = 50.0) -> float:
    stats = p.get("stats") if isinstance(p, dict) else getattr(p, "stats", None)
    if isinstance(stats, dict):
        return float(stats.get(name, default))
    return float(getattr(stats, name, default))


def _skill_on(p: Any, kind: Optional[str]) -> bool:
    """Aktywna umiejętność; kind=None → dowolnego typu (bramkarz)."""
    if not getattr(p, "skill_active", False):
        return False
    if kind is None:
        return True
    skill = getattr(p, "skill", None)
    return getattr(skill, "type", None) == kind


@dataclass(frozen=True)
class DuelOutcome:
    attacker_wins: bool
    attacker_score: float
    defender_score: float
    attacker_skill: bool = False
    defender_skill: bool = False

    @property
    def winner(self) -> str:
        return "attacker" if self.attacker_wins else "defender"


@dataclass(frozen=True)
class ShotOutcome:
    goal: bool
    shooter_score: float
    keeper_score: float
    shooter_skill: bool = False
    keeper_skill: bool = False


def resolve_duel(attacker: Any, defender: Any, rng: RandomSource, res: Resolution = _RES) -> DuelOutcome:
    """Pojedynek napastnik–obrońca: atak vs obrona, każdy z rzutem U(0, 40)."""
    att_skill = _skill_on(attacker, "attack")
    def_skill = _skill_on(defender, "defense")
    att_score = _stat(attacker, "attack") + (res.DUEL_SKILL_BONUS if att_skill else 0.0) + roll(rng, 0.0, res.DUEL_ROLL)
    def_score = _stat(defender, "defense") + (res.DUEL_SKILL_BONUS if def_skill else 0.0) + roll(rng, 0.0, res.DUEL_ROLL)
    return DuelOutcome(att_score > def_score, att_score, def_score, att_skill, def_skill)


def resolve_shot(shooter: Any, goalkeeper: Any, rng: RandomSource, bonus: float = 0.0,
                 res: Resolution = _RES) -> ShotOutcome:
    """
    Strzał vs interwencja bramkarza.

    ``bonus`` to premia za wcześniejsze podania (0.05 za każde), skalowana x100.
    """
    sh_skill = _skill_on(shooter, "attack")
    gk_skill = _skill_on(goalkeeper, None)
    sh_score = (_stat(shooter, "attack") + (res.SHOT_SKILL_BONUS if sh_skill else 0.0)
                + roll(rng, 0.0, res.SHOT_ROLL) + bonus * res.BONUS_SCALE)
    gk_score = _stat(goalkeeper, "defense") + (res.SHOT_SKILL_BONUS if gk_skill else 0.0) + roll(rng, 0.0, res.SAVE_ROLL)
    return ShotOutcome(sh_score > gk_score, sh_score, gk_score, sh_skill, gk_skill)


def tackle_chance(defenders: float, forwards: float, res: Resolution = _RES) -> float:
    """
    Szansa odbioru zależna od przewagi liczebnej.

    +0.13 za każdego obrońcę ponad liczbę napastników (max 0.85),
    -0.10 za każdego napastnika ponad liczbę obrońców (min 0.25).
    """
    diff = defenders - forwards
    if diff > 0:
        return min(res.TACKLE_CAP, res.BASE_TACKLE + diff * res.TACKLE_PER_DEFENDER)
    if diff < 0:
        return max(res.TACKLE_FLOOR, res.BASE_TACKLE - abs(diff) * res.BREAK_PER_FORWARD)
    return res.BASE_TACKLE


def kickoff_contest(forward_a: Any, forward_b: Any, rng: RandomSource, res: Resolution = _RES) -> str:
    """Walka o piłkę na środku: atak + szybkość + U(0, 50). Zwraca 'A' albo 'B'."""
    roll_a = _stat(forward_a, "attack") + _stat(forward_a, "speed") + roll(rng, 0.0, res.KICKOFF_ROLL)
    roll_b = _stat(forward_b, "attack") + _stat(forward_b, "speed") + roll(rng, 0.0, res.KICKOFF_ROLL)
    return "A" if roll_a > roll_b else "B"


class DuelSystem:
    """Model rozstrzygnięć wspólny dla silnika czasu rzeczywistego i symulacji seryjnej."""

    def __init__(self, res: Optional[Resolution] = None) -> None:
        self.res = res or _RES

    def duel(self, attacker: Any, defender: Any, rng: RandomSource) -> DuelOutcome:
        return resolve_duel(attacker, defender, rng, self.res)

    def shot(self, shooter: Any, goalkeeper: Any, rng: RandomSource, bonus: float = 0.0) -> ShotOutcome:
        return resolve_shot(shooter, goalkeeper, rng, bonus, self.res)

    def tackle_chance(self, defenders: float, forwards: float) -> float:
        return tackle_chance(defenders, forwards, self.res)

    def kickoff(self, forward_a: Any, forward_b: Any, rng: RandomSource) -> str:
        return kickoff_contest(forward_a, forward_b, rng, self.res)


__all__ = ["resolve_duel", "resolve_shot", "tackle_chance", "kickoff_contest",
           "DuelSystem", "DuelOutcome", "ShotOutcome"]
