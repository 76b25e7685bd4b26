from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterator, List

LOG_TYPES = ('info', 'action', 'goal', 'skill', 'duel', 'pass')


@dataclass(frozen=True)
class LogEntry:
    id: str
    time: int
    message: str
    type: str


class MatchLog:
    """
    Kronika meczu dla warstwy narracji.
    - Wpisy: LogEntry(id, time, message, type), type z LOG_TYPES
    - Bufor kołowy o stałej pojemności (domyślnie 50): najstarsze wypadają
    - Dopisujemy tylko na koniec; konsument czyta migawkę listą
    """

    def __init__(self, capacity: int = 50) -> None:
        self.capacity = max(1, int(capacity))
        self._entries: Deque[LogEntry] = deque(maxlen=self.capacity)
        self._seq = 0

    # ————— public API używane przez match.py —————

    def add(self, message: str, kind: str = 'info', time: int = 0) -> LogEntry:
        """Ogólny rejestrator wpisu; nieznany typ traktujemy jak 'info'."""
        if kind not in LOG_TYPES:
            kind = 'info'
        self._seq += 1
        entry = LogEntry(id=f"log-{self._seq}", time=int(time), message=message, type=kind)
        self._entries.append(entry)
        return entry

    def entries(self) -> List[LogEntry]:
        """Pełna lista wpisów w kolejności dodawania."""
        return list(self._entries)

    def messages(self) -> List[str]:
        return [e.message for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(list(self._entries))
