"""
Symulacja seryjna (Monte-Carlo).

Zamiast pełnej maszyny faz – jedna funkcja na turę: rozpoczęcie 50/50 →
przechwyt → kolejne starcia z obrońcami (odbiór / podanie / pojedynek) →
strzał. Mecze są niezależne, więc paczki mogą iść równolegle
(``multiprocessing.Pool``), a wyniki sumujemy pole po polu.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from multiprocessing import Pool, cpu_count
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from engine.config import Limits, Resolution, get_config
from engine.duel import resolve_duel, resolve_shot, tackle_chance
from engine.utils import RandomSource, chance, clamp, make_rng, pick
from models.state import opponent
from models.team import DEFAULT_FORMATION, FORMATIONS, Formation, Team, create_team

logger = logging.getLogger(__name__)

StatsOverride = Mapping[str, Mapping[str, float]]
ProgressCallback = Callable[[int, int, 'BatchResult'], None]


@dataclass(frozen=True)
class SimConfig:
    formation_a: str = DEFAULT_FORMATION
    formation_b: str = DEFAULT_FORMATION
    num_matches: int = 1000
    turns_per_match: int = 10
    stats_a: Optional[Dict[str, Dict[str, float]]] = None
    stats_b: Optional[Dict[str, Dict[str, float]]] = None

    def clamped(self, limits: Optional[Limits] = None) -> 'SimConfig':
        """Wartości spoza zakresu przycinamy (nie zgłaszamy błędu)."""
        limits = limits or Limits()
        lo_m, hi_m = limits.MATCHES
        lo_t, hi_t = limits.TURNS
        return replace(
            self,
            formation_a=_known_formation(self.formation_a),
            formation_b=_known_formation(self.formation_b),
            num_matches=int(clamp(int(self.num_matches), lo_m, hi_m)),
            turns_per_match=int(clamp(int(self.turns_per_match), lo_t, hi_t)),
            stats_a=_clamp_stats(self.stats_a, limits),
            stats_b=_clamp_stats(self.stats_b, limits),
        )


def _known_formation(value: str) -> str:
    label = Formation.parse(value).label
    if label not in FORMATIONS:
        logger.warning("Formacja %s poza listą %s – używam %s", label, FORMATIONS, DEFAULT_FORMATION)
        return DEFAULT_FORMATION
    return label


def _clamp_stats(stats: Optional[StatsOverride], limits: Limits) -> Optional[Dict[str, Dict[str, float]]]:
    if not stats:
        return None
    low, high = limits.STAT
    out: Dict[str, Dict[str, float]] = {}
    for key, values in stats.items():
        out[str(key)] = {k: int(round(clamp(float(v), low, high)))
                         for k, v in (values or {}).items() if k in ('atk', 'def', 'spd') and v is not None}
    return out


@dataclass
class BatchResult:
    wins_a: int = 0
    wins_b: int = 0
    draws: int = 0
    goals_a: int = 0
    goals_b: int = 0
    total_matches: int = 0

    def __add__(self, other: 'BatchResult') -> 'BatchResult':
        if not isinstance(other, BatchResult):
            return NotImplemented
        return BatchResult(
            wins_a=self.wins_a + other.wins_a,
            wins_b=self.wins_b + other.wins_b,
            draws=self.draws + other.draws,
            goals_a=self.goals_a + other.goals_a,
            goals_b=self.goals_b + other.goals_b,
            total_matches=self.total_matches + other.total_matches,
        )

    def record(self, goals_a: int, goals_b: int) -> None:
        self.goals_a += goals_a
        self.goals_b += goals_b
        self.total_matches += 1
        if goals_a > goals_b:
            self.wins_a += 1
        elif goals_b > goals_a:
            self.wins_b += 1
        else:
            self.draws += 1

    def as_dict(self) -> Dict[str, int]:
        return {
            "winsA": self.wins_a,
            "winsB": self.wins_b,
            "draws": self.draws,
            "goalsA": self.goals_a,
            "goalsB": self.goals_b,
            "totalMatches": self.total_matches,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, int]) -> 'BatchResult':
        return cls(
            wins_a=int(data.get("winsA", 0)),
            wins_b=int(data.get("winsB", 0)),
            draws=int(data.get("draws", 0)),
            goals_a=int(data.get("goalsA", 0)),
            goals_b=int(data.get("goalsB", 0)),
            total_matches=int(data.get("totalMatches", 0)),
        )


@dataclass(frozen=True)
class TurnOutcome:
    scoring_team: Optional[str]
    next_attacking: str


# ————— jedna tura —————

def _attack(attackers: Team, defenders: Team, rng: RandomSource, res: Resolution) -> bool:
    """
    Akcja drużyny ``attackers`` od rozegrania obrońców do strzału.
    True → gol. Przegrane starcie/obroniony strzał → False.
    """
    forwards = attackers.get_forwards()
    p_tackle = tackle_chance(len(defenders.get_defenders()), len(forwards), res)
    bonus = 0.0
    for defender in defenders.get_defenders():
        if chance(rng, p_tackle):
            return False
        if len(forwards) > 1 and chance(rng, res.PASS_ATTEMPT):
            if chance(rng, res.PASS_SUCCESS):
                bonus += res.PASS_GOAL_BONUS
                continue
            return False
        attacker = pick(rng, forwards)
        if attacker is None:
            return False
        outcome = resolve_duel(attacker, defender, rng, res)
        if outcome.attacker_skill:
            attacker.consume_skill()
        if outcome.defender_skill:
            defender.consume_skill()
        if not outcome.attacker_wins:
            return False

    shooter = pick(rng, forwards)
    keeper = defenders.get_goalkeeper()
    if shooter is None or keeper is None:
        return False
    outcome = resolve_shot(shooter, keeper, rng, bonus, res)
    if outcome.shooter_skill:
        shooter.consume_skill()
    if outcome.keeper_skill:
        keeper.consume_skill()
    return outcome.goal


def simulate_turn(team_a: Team, team_b: Team, attacking_team: str, rng: RandomSource,
                  res: Optional[Resolution] = None) -> TurnOutcome:
    """
    Jedna tura trybu seryjnego. Zmienia wyłącznie przekazanych zawodników
    (furia, zużycie umiejętności); poza parametrami nie trzyma stanu.
    """
    if attacking_team not in ('A', 'B'):
        raise ValueError(f"Nieznana drużyna: {attacking_team!r}")
    res = res or Resolution()
    teams = {'A': team_a, 'B': team_b}
    for p in team_a.players + team_b.players:
        p.add_rage(res.RAGE_PER_TURN)

    # rozpoczęcie 50/50 nadpisuje przekazaną stronę
    attacking = 'A' if rng.random() > 0.5 else 'B'

    if chance(rng, res.INTERCEPTION):
        # przechwyt: akcja od rozegrania po drugiej stronie, bez drugiego przechwytu
        attacking = opponent(attacking)

    defending = opponent(attacking)
    if _attack(teams[attacking], teams[defending], rng, res):
        return TurnOutcome(scoring_team=attacking, next_attacking=defending)
    return TurnOutcome(scoring_team=None, next_attacking=defending)


def simulate_match(config: SimConfig, rng: RandomSource, res: Optional[Resolution] = None) -> Tuple[int, int]:
    """Pełny mecz seryjny. Zwraca (gole A, gole B)."""
    res = res or Resolution()
    team_a = create_team('A', Formation.parse(config.formation_a), rng, overrides=config.stats_a)
    team_b = create_team('B', Formation.parse(config.formation_b), rng, overrides=config.stats_b)
    goals = {'A': 0, 'B': 0}
    attacking = 'A' if rng.random() > 0.5 else 'B'
    for _ in range(max(0, int(config.turns_per_match))):
        outcome = simulate_turn(team_a, team_b, attacking, rng, res)
        if outcome.scoring_team is not None:
            goals[outcome.scoring_team] += 1
        attacking = outcome.next_attacking
    return goals['A'], goals['B']


def run_batch(config: SimConfig, rng: Optional[RandomSource] = None, *, seed: Optional[int] = None,
              clamp: bool = True, res: Optional[Resolution] = None) -> BatchResult:
    """
    Seria meczów w jednym procesie.

    ``clamp=False`` pozwala na mniejsze serie (np. 1 mecz w testach).
    """
    cfg = config.clamped() if clamp else config
    rng = rng if rng is not None else make_rng(seed)
    res = res or get_config().resolution
    result = BatchResult()
    for _ in range(max(0, int(cfg.num_matches))):
        goals_a, goals_b = simulate_match(cfg, rng, res)
        result.record(goals_a, goals_b)
    return result


def split_batches(n: int, size: Optional[int] = None) -> List[int]:
    """Podział n meczów na paczki (domyślnie max(100, n // 10)); suma = n."""
    n = max(0, int(n))
    if n == 0:
        return []
    size = max(1, int(size)) if size else max(100, n // 10)
    full, rest = divmod(n, size)
    return [size] * full + ([rest] if rest else [])


def _run_chunk(job: Tuple[SimConfig, int, Resolution]) -> BatchResult:
    cfg, seed, res = job
    return run_batch(cfg, make_rng(seed), clamp=False, res=res)


def run_simulation(config: SimConfig, *, seed: Optional[int] = None, workers: int = 1,
                   batch_size: Optional[int] = None, on_progress: Optional[ProgressCallback] = None,
                   clamp: bool = True, res: Optional[Resolution] = None) -> BatchResult:
    """
    Seria meczów w paczkach, opcjonalnie na wielu procesach.

    Każda paczka dostaje własny seed wyprowadzony z ``seed``, więc wynik nie
    zależy od liczby procesów. ``on_progress(done, total, partial)`` woła się
    po scaleniu każdej paczki.
    """
    cfg = config.clamped() if clamp else config
    res = res or get_config().resolution
    sizes = split_batches(cfg.num_matches, batch_size)
    seeder = make_rng(seed)
    jobs = [(replace(cfg, num_matches=n), seeder.getrandbits(32), res) for n in sizes]

    total = BatchResult()
    done = 0
    workers = max(1, int(workers or 1))
    logger.info("Symulacja %s vs %s: %d meczów w %d paczkach (procesy: %d)",
                cfg.formation_a, cfg.formation_b, cfg.num_matches, len(jobs), workers)

    def merge(part: BatchResult) -> None:
        nonlocal total, done
        total = total + part
        done += part.total_matches
        if on_progress is not None:
            on_progress(done, cfg.num_matches, total)

    if workers > 1 and len(jobs) > 1:
        with Pool(processes=min(workers, cpu_count() or workers, len(jobs))) as pool:
            for part in pool.imap_unordered(_run_chunk, jobs):
                merge(part)
    else:
        for job in jobs:
            merge(_run_chunk(job))
    return total


__all__ = [
    "SimConfig", "BatchResult", "TurnOutcome", "simulate_turn", "simulate_match",
    "run_batch", "split_batches", "run_simulation",
]
