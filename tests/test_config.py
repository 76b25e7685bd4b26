from __future__ import annotations

import logging

import pytest

import engine.config as config_mod
from engine.config import EngineConfig, get_config, load_config, merge_config


@pytest.fixture(autouse=True)
def _fresh_global(monkeypatch):
    monkeypatch.setattr(config_mod, '_GLOBAL_CONFIG', None)


def test_defaults_without_file(tmp_path):
    cfg = load_config(str(tmp_path / 'missing.yml'))
    assert cfg == EngineConfig()
    assert cfg.timing.KICKOFF_TIMEOUT == 150
    assert cfg.resolution.INTERCEPTION == pytest.approx(0.12)
    assert cfg.replay.PLAYBACK_MS == 500


def test_yaml_overrides_sections(tmp_path):
    path = tmp_path / 'engine_config.yml'
    path.write_text(
        "timing:\n  BUILDUP_TIMEOUT: 150\n"
        "resolution:\n  interception: 0.2\n"
        "limits:\n  MATCHES: [10, 20]\n",
        encoding='utf-8',
    )
    cfg = load_config(str(path))
    assert cfg.timing.BUILDUP_TIMEOUT == 150
    assert cfg.timing.KICKOFF_TIMEOUT == 150
    assert cfg.resolution.INTERCEPTION == pytest.approx(0.2)
    assert cfg.limits.MATCHES == (10, 20)
    assert get_config() is cfg


def test_unknown_keys_are_ignored_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger='engine.config'):
        cfg = merge_config(EngineConfig(), {'timing': {'NOPE': 1}, 'gravity': {'G': 9.8}, 'pitch': 5})
    assert cfg == EngineConfig()
    assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 3


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / 'empty.yml'
    path.write_text("", encoding='utf-8')
    assert load_config(str(path)) == EngineConfig()


def test_config_is_frozen():
    cfg = EngineConfig()
    with pytest.raises(AttributeError):
        cfg.timing.SAVE_HOLD = 1
