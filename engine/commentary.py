from __future__ import annotations

from typing import Mapping, Optional

from models.player import Player


def _name(p: Optional[Player]) -> str:
    return getattr(p, 'name', None) or 'Zawodnik'


def _team_label(team: str) -> str:
    return f"Drużyna {team}"


class Commentary:
    """
    Narracja meczu na żywo:
    - Każda metoda zwraca pojedynczy string (z emoji) do MatchLog
    - Typ wpisu (info/action/goal/skill/duel/pass) nadaje silnik
    """

    # ────────────────────────────── NAGŁÓWKI / META ──────────────────────────────
    @staticmethod
    def kickoff() -> str:
        return "🏟️ Mecz się zaczyna! Piłka na środku boiska!"

    @staticmethod
    def restart(team: str) -> str:
        return f"🏟️ Gramy dalej! {_team_label(team)} wznawia grę!"

    @staticmethod
    def final_whistle(score: Mapping[str, int]) -> str:
        return f"🔚 Koniec meczu! A {score.get('A', 0)} : {score.get('B', 0)} B"

    @staticmethod
    def recovery(player: Player) -> str:
        return f"🔧 Piłka wraca do {_name(player)} – gramy od obrony."

    # ───────────────────────────────  POSIADANIE  ────────────────────────────────
    @staticmethod
    def kickoff_won(winner: Player) -> str:
        return f"⚡ {_name(winner)} ({winner.team}) zdobywa piłkę!"

    @staticmethod
    def pass_back(passer: Player, receiver: Player) -> str:
        return f"📤 {_name(passer)} podaje do tyłu do {_name(receiver)}"

    @staticmethod
    def pass_forward(passer: Player, receiver: Player) -> str:
        return f"📤 {_name(passer)} zagrywa do {_name(receiver)}"

    @staticmethod
    def interception(interceptor: Player) -> str:
        return f"🔄 {_name(interceptor)} przecina podanie!"

    @staticmethod
    def tackle(defender: Player, carrier: Player) -> str:
        return f"🛑 {_name(defender)} odbiera piłkę {_name(carrier)}!"

    @staticmethod
    def one_two(passer: Player, receiver: Player) -> str:
        return f"🔁 {_name(passer)} wymienia podanie z {_name(receiver)}"

    @staticmethod
    def pass_cut(passer: Player, defender: Player) -> str:
        return f"❌ Podanie {_name(passer)} przejmuje {_name(defender)}!"

    @staticmethod
    def keeper_distributes(keeper: Player, receiver: Player) -> str:
        return f"📤 {_name(keeper)} wyprowadza piłkę do {_name(receiver)}"

    # ───────────────────────────────  POJEDYNKI  ─────────────────────────────────
    @staticmethod
    def duel_start(attacker: Player, defender: Player) -> str:
        return f"⚔️ {_name(attacker)} kontra {_name(defender)}!"

    @staticmethod
    def duel_won(attacker: Player, defender: Player) -> str:
        return f"🏃 {_name(attacker)} mija {_name(defender)}!"

    @staticmethod
    def duel_lost(attacker: Player, defender: Player) -> str:
        return f"💪 {_name(defender)} zatrzymuje {_name(attacker)}!"

    @staticmethod
    def skill_used(player: Player) -> str:
        skill = player.skill
        icon = {'attack': '⚡', 'defense': '🛡️', 'gk': '🧤'}.get(getattr(skill, 'type', ''), '✨')
        label = f"{getattr(skill, 'emoji', '')} {getattr(skill, 'name', 'umiejętność')}".strip()
        return f"{icon} {_name(player)} używa {label}!"

    # ───────────────────────────────  STRZAŁY  ───────────────────────────────────
    @staticmethod
    def shot(shooter: Player) -> str:
        return f"⚽ {_name(shooter)} uderza!"

    @staticmethod
    def goal(shooter: Player, team: str) -> str:
        return f"🎉 GOL! {_name(shooter)} trafia dla drużyny {team}!"

    @staticmethod
    def save(keeper: Player) -> str:
        return f"🧤 {_name(keeper)} broni strzał!"
