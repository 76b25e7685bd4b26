"""Stan meczu czasu rzeczywistego – piłka, zawodnicy, wynik, liczniki faz."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from engine.events import MatchLog
from models.player import Player
from models.team import Formation


def opponent(team: str) -> str:
    return 'B' if team == 'A' else 'A'


@dataclass
class Ball:
    x: float = 0.0
    y: float = 0.0
    owner_id: Optional[str] = None
    in_goal: bool = False


@dataclass
class MatchState:
    """
    Pełny stan meczu. Silnik podmienia go w całości co tik, a przy
    resecie/nowym meczu buduje od zera – nigdy nie rozbiera częściowo.

    Pola ``marking``, ``engaged``, ``duel_defender_id`` i ``pass_bonus``
    to trackery taktyczne przenoszone między tikami razem ze stanem.
    """
    players: List[Player]
    formations: Dict[str, Formation]
    ball: Ball = field(default_factory=Ball)
    phase: str = 'idle'
    score: Dict[str, int] = field(default_factory=lambda: {'A': 0, 'B': 0})
    log: MatchLog = field(default_factory=MatchLog)
    attacking_team: str = 'A'
    phase_timer: int = 0
    turn: int = 0
    max_turns: int = 10
    match_time: int = 0
    is_running: bool = False
    last_scoring_team: Optional[str] = None
    # przypisania krycia: drużyna broniąca -> {id obrońcy: id napastnika}
    marking: Dict[str, Dict[str, str]] = field(default_factory=dict)
    # liczba napastników rywala, dla której liczono przypisania
    marking_sizes: Dict[str, int] = field(default_factory=dict)
    # obrońcy, z którymi nosiciel piłki już się zmierzył w bieżącej akcji
    engaged: List[str] = field(default_factory=list)
    duel_defender_id: Optional[str] = None
    pass_bonus: float = 0.0

    @property
    def is_finished(self) -> bool:
        return self.phase == 'finished'

    # ————— wyszukiwanie —————

    def find(self, player_id: Optional[str]) -> Optional[Player]:
        if player_id is None:
            return None
        return next((p for p in self.players if p.id == player_id), None)

    def team_players(self, team: str) -> List[Player]:
        return [p for p in self.players if p.team == team]

    def goalkeeper(self, team: str) -> Optional[Player]:
        return next((p for p in self.players if p.team == team and p.is_goalkeeper()), None)

    def defenders(self, team: str) -> List[Player]:
        return [p for p in self.players if p.team == team and p.is_defender()]

    def forwards(self, team: str) -> List[Player]:
        return [p for p in self.players if p.team == team and p.is_forward()]

    def ball_holder(self) -> Optional[Player]:
        return self.find(self.ball.owner_id)

    # ————— posiadanie piłki —————

    def clear_ball(self) -> None:
        for p in self.players:
            p.has_ball = False
        self.ball.owner_id = None

    def give_ball(self, player_id: Optional[str]) -> Optional[Player]:
        """Przekazuje piłkę; nieznany id zostawia piłkę bez właściciela."""
        self.clear_ball()
        holder = self.find(player_id)
        if holder is not None:
            holder.has_ball = True
            self.ball.owner_id = holder.id
            self.ball.x, self.ball.y = holder.x, holder.y
            self.ball.in_goal = False
        return holder

    def possession_consistent(self) -> bool:
        holders = [p.id for p in self.players if p.has_ball]
        if not holders:
            return self.ball.owner_id is None
        return len(holders) == 1 and holders[0] == self.ball.owner_id
