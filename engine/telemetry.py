from __future__ import annotations
from typing import Any, Dict, Optional
from pathlib import Path
import json, logging, time

from engine.batch import BatchResult, SimConfig

logger = logging.getLogger(__name__)


def collect_distribution_snapshot(result: BatchResult, config: Optional[SimConfig] = None) -> Dict[str, Any]:
    """Rozkład wyników serii: odsetki W/R/P i gole na mecz."""
    n = max(1, result.total_matches)
    snap: Dict[str, Any] = {
        'total_matches': result.total_matches,
        'win_rate_a': result.wins_a / n,
        'win_rate_b': result.wins_b / n,
        'draw_rate': result.draws / n,
        'goals_per_match': (result.goals_a + result.goals_b) / n,
        'goals_a_per_match': result.goals_a / n,
        'goals_b_per_match': result.goals_b / n,
        'result': result.as_dict(),
    }
    if config is not None:
        snap['formation_a'] = config.formation_a
        snap['formation_b'] = config.formation_b
        snap['turns_per_match'] = config.turns_per_match
    return snap


def write_snapshot(snapshot: Dict[str, Any], out_dir: str = 'out', prefix: str = 'distribution') -> str:
    """Zapis migawki do ``<out_dir>/<prefix>_<unix ts>.json``; zwraca ścieżkę."""
    target = Path(out_dir)
    target.mkdir(parents=True, exist_ok=True)
    path = target / f"{prefix}_{int(time.time())}.json"
    path.write_text(json.dumps(snapshot, ensure_ascii=False, indent=2), encoding='utf-8')
    logger.info("Migawka rozkładu zapisana: %s", path)
    return str(path)
