# engine package initializer
# Nie importujemy nic "na siłę" – models/ korzysta z engine.utils i engine.config,
# a engine.match z models/, więc eksporty trzymamy leniwie.
# Konsument używa: `from engine.match import MatchEngine`, `from engine.batch import run_simulation`

__all__ = [
    "config",
    "utils",
    "duel",
    "positioning",
    "commentary",
    "events",
    "match",
    "batch",
    "eventlog",
    "replay",
    "telemetry",
]
