from __future__ import annotations

import csv
import importlib.util
import json
from pathlib import Path

import pytest

import engine.config as config_mod
import main

ROOT = Path(__file__).resolve().parents[1]

LOG = """33 vs 24
startMatch
startHalf 1
startTurn 1
wonKickoff T1-F2
incrementRage T1-F2 10.0|10.0
passBall T1-F2 T1-F3
shotGoal T1-F3
endMatch
"""


@pytest.fixture(autouse=True)
def _fresh_global(monkeypatch):
    monkeypatch.setattr(config_mod, '_GLOBAL_CONFIG', None)


def _no_config(tmp_path) -> list:
    return ['--config', str(tmp_path / 'none.yml')]


def test_batch_command_prints_report_and_snapshot(tmp_path, capsys):
    out_dir = tmp_path / 'snap'
    rc = main.main(_no_config(tmp_path) + [
        'batch', '--formation-a', '4-2', '--matches', '100', '--turns', '5', '--seed', '1',
        '--snapshot-dir', str(out_dir),
    ])
    assert rc == 0
    out = capsys.readouterr().out
    assert "SYMULACJA SERYJNA: 4-2 vs 3-3" in out
    assert "Mecze: 100" in out
    files = list(out_dir.glob('distribution_*.json'))
    assert len(files) == 1
    snap = json.loads(files[0].read_text(encoding='utf-8'))
    assert snap['total_matches'] == 100
    assert snap['result']['totalMatches'] == 100
    assert snap['win_rate_a'] + snap['win_rate_b'] + snap['draw_rate'] == pytest.approx(1.0)


def test_batch_command_reads_stats_json(tmp_path, capsys):
    stats = tmp_path / 'stats.json'
    stats.write_text(json.dumps({'A': {'FW': {'atk': 99}}, 'B': {'GK': {'def': 40}}}), encoding='utf-8')
    rc = main.main(_no_config(tmp_path) + [
        'batch', '--matches', '100', '--turns', '5', '--seed', '2', '--stats-json', str(stats),
    ])
    assert rc == 0
    assert "Wygrane A" in capsys.readouterr().out


def test_live_command(tmp_path, capsys):
    rc = main.main(_no_config(tmp_path) + ['live', '--turns', '2', '--seed', '1'])
    assert rc == 0
    out = capsys.readouterr().out
    assert "WYNIK KOŃCOWY" in out
    # liczba tur obcięta do dolnej granicy
    assert "Tury: 5/5" in out


def test_replay_command_steps_through_log(tmp_path, capsys):
    path = tmp_path / 'match.log'
    path.write_text(LOG, encoding='utf-8')
    rc = main.main(_no_config(tmp_path) + ['replay', str(path), '--steps', '--speed', '100'])
    assert rc == 0
    out = capsys.readouterr().out
    assert "ODTWARZANIE: 33 vs 24" in out
    assert "-> shotGoal T1-F3" in out
    assert "T1 0 - 1 T2" in out
    assert "KONIEC" in out


def test_unknown_formation_rejected_by_parser(tmp_path):
    with pytest.raises(SystemExit):
        main.main(_no_config(tmp_path) + ['batch', '--formation-a', '5-1'])


def _load_matrix_script():
    spec = importlib.util.spec_from_file_location('run_matrix', ROOT / 'scripts' / 'run_matrix.py')
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_matrix_script_writes_csv(tmp_path):
    matrix = _load_matrix_script()
    row = matrix.simulate_pair('2-4', '4-2', 100, turns=5, seed=3)
    assert row['games'] == 100
    assert row['win_a'] + row['win_b'] + row['draw'] == 100
    out = tmp_path / 'matrix.csv'
    matrix.write_csv([row], out)
    with out.open(encoding='utf-8', newline='') as f:
        rows = list(csv.DictReader(f))
    assert rows[0]['formation_a'] == '2-4'
    assert list(rows[0]) == matrix.FIELDNAMES
