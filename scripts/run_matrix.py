from __future__ import annotations
import argparse
import csv
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

# Ensure repo root on path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from engine.batch import SimConfig, run_simulation
from models.team import FORMATIONS

FIELDNAMES = [
    "formation_a", "formation_b", "games", "win_a", "win_b", "draw",
    "goals_a", "goals_b", "win_rate_a", "win_rate_b", "draw_rate",
]


def simulate_pair(formation_a: str, formation_b: str, games: int = 1000, *, turns: int = 10,
                  seed: Optional[int] = None, workers: int = 1) -> Dict:
    config = SimConfig(formation_a=formation_a, formation_b=formation_b, num_matches=games, turns_per_match=turns)
    r = run_simulation(config, seed=seed, workers=workers)
    n = max(1, r.total_matches)
    return {
        "formation_a": formation_a,
        "formation_b": formation_b,
        "games": r.total_matches,
        "win_a": r.wins_a,
        "win_b": r.wins_b,
        "draw": r.draws,
        "goals_a": r.goals_a,
        "goals_b": r.goals_b,
        "win_rate_a": round(r.wins_a / n, 4),
        "win_rate_b": round(r.wins_b / n, 4),
        "draw_rate": round(r.draws / n, 4),
    }


def build_matrix(games: int = 1000, *, turns: int = 10, seed: Optional[int] = None, workers: int = 1) -> List[Dict]:
    rows: List[Dict] = []
    for a in FORMATIONS:
        for b in FORMATIONS:
            rows.append(simulate_pair(a, b, games, turns=turns, seed=seed, workers=workers))
    return rows


def write_csv(rows: List[Dict], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=FIELDNAMES)
        w.writeheader()
        for r in rows:
            w.writerow(r)


def main(argv: Optional[List[str]] = None) -> None:
    p = argparse.ArgumentParser(description="Macierz formacja vs formacja (CSV)")
    p.add_argument("--games", type=int, default=1000)
    p.add_argument("--turns", type=int, default=10)
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--workers", type=int, default=1)
    p.add_argument("--out", type=str, default=str(ROOT / "reports" / "matrix.csv"))
    args = p.parse_args(argv)
    logging.basicConfig(level=logging.WARNING)

    rows = build_matrix(args.games, turns=args.turns, seed=args.seed, workers=args.workers)
    out = Path(args.out)
    write_csv(rows, out)
    print(f"Wrote matrix to {out} ({len(rows)} rows)")


if __name__ == "__main__":
    main()
