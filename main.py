from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from engine.batch import BatchResult, SimConfig, run_simulation
from engine.config import load_config
from engine.eventlog import load_log
from engine.match import MatchEngine
from engine.replay import ReplayController, ReplayState, replay
from engine.telemetry import collect_distribution_snapshot, write_snapshot
from models.state import MatchState
from models.team import FORMATIONS

logger = logging.getLogger(__name__)


def _force_utf8() -> None:
    # Wymuś wyjście UTF-8 w konsoli (zapobiega krzaczeniu polskich znaków)
    for stream in (sys.stdout, sys.stderr):
        if hasattr(stream, "reconfigure"):
            stream.reconfigure(encoding="utf-8")


def _pct(part: int, total: int) -> str:
    return f"{100.0 * part / max(1, total):.1f}%"


def print_live_report(state: MatchState, lines: List[str]) -> None:
    print("\n" + "=" * 70)
    print(f"⚽ MECZ NA ŻYWO: {state.formations['A'].label} vs {state.formations['B'].label}")
    print("=" * 70 + "\n")
    print(f"📊 WYNIK KOŃCOWY: A {state.score['A']} - {state.score['B']} B")
    print(f"   Tury: {state.turn}/{state.max_turns} | Tiki: {state.match_time} | Faza: {state.phase}\n")

    print("👥 SKŁADY:")
    for team in ('A', 'B'):
        print(f"   Drużyna {team}:")
        for p in state.team_players(team):
            skill = f"{p.skill.emoji} {p.skill.name}" if p.skill else "-"
            print(f"      {p.role:<2} {p.name:<12} ATK {p.stats.attack:>2} DEF {p.stats.defense:>2} "
                  f"SPD {p.stats.speed:>2} | {skill}")
    if lines:
        print("\nCHRONOLOGIA (ostatnie wpisy):")
        for line in lines:
            print(f"   {line}")
    print("\n" + "=" * 70 + "\n")


def print_batch_report(result: BatchResult, config: SimConfig) -> None:
    n = result.total_matches
    print("\n" + "=" * 70)
    print(f"🎲 SYMULACJA SERYJNA: {config.formation_a} vs {config.formation_b}")
    print(f"   Mecze: {n} | Tury na mecz: {config.turns_per_match}")
    print("=" * 70 + "\n")
    print(f"   Wygrane A: {result.wins_a:>7} ({_pct(result.wins_a, n)})")
    print(f"   Wygrane B: {result.wins_b:>7} ({_pct(result.wins_b, n)})")
    print(f"   Remisy:    {result.draws:>7} ({_pct(result.draws, n)})")
    print(f"\n   Gole A: {result.goals_a} ({result.goals_a / max(1, n):.2f}/mecz)")
    print(f"   Gole B: {result.goals_b} ({result.goals_b / max(1, n):.2f}/mecz)")
    print("\n" + "=" * 70 + "\n")


def print_replay_state(state: ReplayState, *, header: Optional[str] = None) -> None:
    if header:
        print(header)
    owner = state.ball_owner_id or "-"
    end = " | KONIEC" if state.ended else ""
    print(f"   Połowa {state.half} | Tura {state.turn} | T1 {state.score['T1']} - {state.score['T2']} T2 "
          f"| Piłka: {owner}{end}")


def _load_stats(path: Optional[str]) -> Dict[str, Dict]:
    if not path:
        return {}
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: oczekiwano obiektu JSON z kluczami 'A' / 'B'")
    return data


def cmd_live(args: argparse.Namespace) -> int:
    engine = MatchEngine(args.formation_a, args.formation_b, max_turns=args.turns, seed=args.seed)
    state = engine.run(max_ticks=args.max_ticks)
    print_live_report(state, engine.log_lines())
    return 0


def cmd_batch(args: argparse.Namespace) -> int:
    stats = _load_stats(args.stats_json)
    config = SimConfig(
        formation_a=args.formation_a,
        formation_b=args.formation_b,
        num_matches=args.matches,
        turns_per_match=args.turns,
        stats_a=stats.get("A"),
        stats_b=stats.get("B"),
    ).clamped()

    def progress(done: int, total: int, _partial: BatchResult) -> None:
        logger.info("Postęp: %d/%d (%s)", done, total, _pct(done, total))

    result = run_simulation(config, seed=args.seed, workers=args.workers, on_progress=progress)
    print_batch_report(result, config)
    if args.snapshot_dir:
        path = write_snapshot(collect_distribution_snapshot(result, config), args.snapshot_dir)
        print(f"Zapisano migawkę rozkładu: {path}")
    return 0


def cmd_replay(args: argparse.Namespace) -> int:
    parsed = load_log(args.log)
    print(f"\n🎬 ODTWARZANIE: {parsed.formation_a} vs {parsed.formation_b} ({len(parsed.events)} zdarzeń)")
    if args.steps:
        ctl = ReplayController(parsed, playback_ms=args.speed)
        while not ctl.done:
            if not ctl.step():
                ctl.advance(ctl.remaining_ms)
                continue
            print_replay_state(ctl.state, header=f"-> {ctl.displayed[-1]}")
        final = ctl.state
    else:
        final = replay(parsed)
    print_replay_state(final, header="\n📊 STAN KOŃCOWY:")
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Silnik meczu 3 na 3 – na żywo, seryjnie, odtwarzanie logu")
    p.add_argument("--config", type=str, default="engine_config.yml", help="Plik YAML z nadpisaniami")
    p.add_argument("--log-level", type=str, default="WARNING",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Poziom logowania diagnostycznego")
    sub = p.add_subparsers(dest="command", required=True)

    live = sub.add_parser("live", help="Jeden mecz w czasie rzeczywistym (bez UI)")
    live.add_argument("--formation-a", type=str, default="3-3", choices=FORMATIONS)
    live.add_argument("--formation-b", type=str, default="3-3", choices=FORMATIONS)
    live.add_argument("--turns", type=int, default=10)
    live.add_argument("--seed", type=int)
    live.add_argument("--max-ticks", type=int, default=20000, help="Twardy limit tików")
    live.set_defaults(func=cmd_live)

    batch = sub.add_parser("batch", help="Symulacja Monte-Carlo wielu meczów")
    batch.add_argument("--formation-a", type=str, default="3-3", choices=FORMATIONS)
    batch.add_argument("--formation-b", type=str, default="3-3", choices=FORMATIONS)
    batch.add_argument("--matches", type=int, default=1000, help="Liczba meczów (100–100000)")
    batch.add_argument("--turns", type=int, default=10, help="Tury na mecz (5–50)")
    batch.add_argument("--workers", type=int, default=1, help="Liczba procesów")
    batch.add_argument("--seed", type=int)
    batch.add_argument("--stats-json", type=str, help="Plik JSON z nadpisaniami statystyk {A: {...}, B: {...}}")
    batch.add_argument("--snapshot-dir", type=str, help="Katalog na migawkę rozkładu (JSON)")
    batch.set_defaults(func=cmd_batch)

    rep = sub.add_parser("replay", help="Odtworzenie meczu z logu zdarzeń")
    rep.add_argument("log", type=str, help="Plik z logiem zdarzeń")
    rep.add_argument("--steps", action="store_true", help="Wypisz stan po każdym kroku")
    rep.add_argument("--speed", type=int, default=500, help="Tempo odtwarzania w ms (100–1000)")
    rep.set_defaults(func=cmd_replay)
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    _force_utf8()
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")
    load_config(args.config)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
