from __future__ import annotations

import copy
import logging
from typing import Dict, List, Optional

from engine.commentary import Commentary
from engine.config import EngineConfig, get_config
from engine.duel import DuelSystem
from engine.events import MatchLog
from engine.positioning import (
    advance_player, attack_direction, attacking_defender_target, defender_targets, ensure_marking,
    forward_ready, forward_target, goal_y, goalkeeper_target, idle_target, in_approach_zone,
    in_penalty_area, step_for,
)
from engine.utils import RandomSource, chance, clamp, distance, make_rng, nearest, pick
from models.player import Player
from models.state import Ball, MatchState, opponent
from models.team import Formation, StatOverrides, create_team

logger = logging.getLogger(__name__)

PHASES = (
    'idle',
    'kickoff_contest',
    'df_buildup',
    'df_passing',
    'fw_attacking',
    'duel',
    'fw_breakthrough',
    'shooting',
    'save',
    'goal_celebration',
    'reset_to_center',
    'finished',
)

# fazy, w których obrońcy drużyny atakującej podchodzą pod linię środkową
_ATTACK_PHASES = ('fw_attacking', 'duel', 'fw_breakthrough', 'shooting')


class MatchEngine:
    """
    Silnik meczu w czasie rzeczywistym – maszyna faz krokowana tikami.

    Każdy tik: kopia stanu → przekształcenie → podmiana (nikt z zewnątrz nie
    widzi stanu w połowie aktualizacji). Host (pętla renderująca, test, CLI)
    woła ``step()`` lub ``advance(n)``; silnik sam nie ma zegara.
    """

    def __init__(self, formation_a='3-3', formation_b='3-3', *, max_turns: Optional[int] = None,
                 rng: Optional[RandomSource] = None, seed: Optional[int] = None,
                 config: Optional[EngineConfig] = None,
                 stat_overrides: Optional[Dict[str, StatOverrides]] = None) -> None:
        self.config = config or get_config()
        self.formations: Dict[str, Formation] = {
            'A': Formation.parse(formation_a),
            'B': Formation.parse(formation_b),
        }
        turns = self.config.limits.DEFAULT_TURNS if max_turns is None else max_turns
        self.max_turns = int(clamp(int(turns), *self.config.limits.TURNS))
        self._rng = rng if rng is not None else make_rng(seed)
        self.stat_overrides = stat_overrides or {}
        self.duels = DuelSystem(self.config.resolution)
        self.state = self._new_state(phase='idle', running=False)

    # ————— komendy —————

    def start(self) -> MatchState:
        """Nowy mecz od rozpoczęcia; poprzedni stan jest odrzucany w całości."""
        self.state = self._new_state(phase='kickoff_contest', running=True)
        self._log(self.state, Commentary.kickoff(), 'info')
        logger.info("Start meczu %s vs %s (tury: %d)",
                    self.formations['A'].label, self.formations['B'].label, self.max_turns)
        return self.snapshot()

    def stop(self) -> None:
        state = copy.deepcopy(self.state)
        state.is_running = False
        self.state = state

    def resume(self) -> None:
        if self.state.phase in ('idle', 'finished'):
            return
        state = copy.deepcopy(self.state)
        state.is_running = True
        self.state = state

    def reset(self) -> MatchState:
        self.state = self._new_state(phase='idle', running=False)
        return self.snapshot()

    def step(self) -> str:
        """Dokładnie jeden tik (także przy zatrzymanym zegarze). Zwraca fazę po tiku."""
        self._tick()
        return self.state.phase

    def advance(self, ticks: int = 1) -> int:
        """Do ``ticks`` tików, tylko dopóki mecz trwa. Zwraca liczbę wykonanych."""
        done = 0
        for _ in range(max(0, int(ticks))):
            if not self.state.is_running:
                break
            self._tick()
            done += 1
        return done

    def run(self, max_ticks: int = 20000) -> MatchState:
        """Tryb bezgłowy: start (jeśli trzeba) i tiki aż do końca meczu lub limitu."""
        if self.state.phase == 'idle':
            self.start()
        self.advance(max_ticks)
        if not self.state.is_finished:
            logger.warning("Limit %d tików osiągnięty w fazie %s", max_ticks, self.state.phase)
        return self.snapshot()

    # ————— odczyt —————

    def snapshot(self) -> MatchState:
        return copy.deepcopy(self.state)

    def log_lines(self) -> List[str]:
        return self.state.log.messages()

    # ————— budowa stanu —————

    def _new_state(self, *, phase: str, running: bool) -> MatchState:
        pitch, limits = self.config.pitch, self.config.limits
        players: List[Player] = []
        for side in ('A', 'B'):
            team = create_team(side, self.formations[side], self._rng,
                               overrides=self.stat_overrides.get(side), pitch=pitch, limits=limits)
            players.extend(team.players)
        return MatchState(
            players=players,
            formations=dict(self.formations),
            ball=Ball(x=pitch.WIDTH / 2, y=pitch.HEIGHT / 2),
            phase=phase,
            log=MatchLog(self.config.narrative.CAPACITY),
            max_turns=self.max_turns,
            is_running=running,
        )

    # ————— pętla tiku —————

    def _tick(self) -> None:
        prev = self.state
        if prev.phase in ('idle', 'finished'):
            return
        s = copy.deepcopy(prev)
        s.match_time += 1
        s.phase_timer += 1
        for p in s.players:
            p.add_rage(self.config.resolution.RAGE_PER_TICK)

        handler = getattr(self, f"_phase_{s.phase}", None)
        if handler is None:
            logger.error("Nieznana faza %r – odzyskiwanie", s.phase)
            self._recover(s, f"unknown phase {s.phase}")
        else:
            handler(s)

        holder = s.ball_holder()
        if holder is not None:
            s.ball.x, s.ball.y = holder.x, holder.y
        self.state = s

    # ————— pomocnicze —————

    def _log(self, s: MatchState, message: str, kind: str) -> None:
        s.log.add(message, kind, s.match_time)

    def _enter(self, s: MatchState, phase: str) -> None:
        if phase != s.phase:
            logger.debug("t=%d faza %s -> %s", s.match_time, s.phase, phase)
        s.phase = phase
        s.phase_timer = 0

    def _finish(self, s: MatchState) -> None:
        self._enter(s, 'finished')
        s.is_running = False
        s.engaged = []
        s.duel_defender_id = None
        for p in s.players:
            p.dashing = False
        self._log(s, Commentary.final_whistle(s.score), 'info')
        logger.info("Koniec meczu: A %d - %d B (tury %d)", s.score['A'], s.score['B'], s.turn)

    def _end_turn(self, s: MatchState) -> bool:
        """Tura kończy się golem albo zatrzymaniem akcji. True → mecz skończony."""
        s.turn += 1
        s.pass_bonus = 0.0
        s.engaged = []
        s.duel_defender_id = None
        if s.turn >= s.max_turns:
            self._finish(s)
            return True
        return False

    def _turnover(self, s: MatchState, new_holder: Player) -> None:
        """Zatrzymanie akcji: piłka do broniących, zmiana stron, koniec tury."""
        s.give_ball(new_holder.id)
        s.attacking_team = new_holder.team
        if not self._end_turn(s):
            self._enter(s, 'df_buildup')

    def _designated_forward(self, s: MatchState, team: str) -> Optional[Player]:
        forwards = sorted(s.forwards(team), key=lambda p: p.index)
        if not forwards:
            return None
        return forwards[len(forwards) // 2]

    def _nearest_defender(self, s: MatchState, team: str, point) -> Optional[Player]:
        return nearest(point, s.defenders(team))

    def _lay_off(self, s: MatchState, passer: Player) -> Player:
        """Podanie do najbliższego obrońcy własnej drużyny (o ile jest)."""
        receiver = self._nearest_defender(s, passer.team, passer.pos)
        if receiver is None or receiver.id == passer.id:
            s.give_ball(passer.id)
            return passer
        if passer.is_goalkeeper():
            self._log(s, Commentary.keeper_distributes(passer, receiver), 'pass')
        else:
            self._log(s, Commentary.pass_back(passer, receiver), 'pass')
        s.give_ball(receiver.id)
        return receiver

    def _recover(self, s: MatchState, reason: str) -> None:
        """
        Brak wymaganego aktora (nosiciel piłki / bramkarz): piłka do obrońcy
        drużyny atakującej najbliższego piłce (bramkarz, gdy nie ma obrońców),
        dalej df_buildup.
        """
        team = s.attacking_team
        ball = (s.ball.x, s.ball.y)
        receiver = self._nearest_defender(s, team, ball) or s.goalkeeper(team)
        logger.warning("Odzyskiwanie w fazie %s (t=%d): %s", s.phase, s.match_time, reason)
        if receiver is None:
            logger.error("Drużyna %s nie ma obrońcy ani bramkarza – kończę mecz", team)
            self._finish(s)
            return
        s.give_ball(receiver.id)
        s.engaged = []
        s.duel_defender_id = None
        for p in s.players:
            p.dashing = False
        self._log(s, Commentary.recovery(receiver), 'info')
        self._enter(s, 'df_buildup')

    def _attacking_holder(self, s: MatchState) -> Optional[Player]:
        holder = s.ball_holder()
        if holder is None or holder.team != s.attacking_team:
            return None
        return holder

    def _consume_if(self, s: MatchState, player: Player, applied: bool) -> None:
        if applied:
            self._log(s, Commentary.skill_used(player), 'skill')
            player.consume_skill()

    # ————— ruch pozostałych zawodników —————

    def _reposition(self, s: MatchState, holder: Optional[Player], skip: tuple = ()) -> None:
        pitch, speeds, pos, timing = self.config.pitch, self.config.speeds, self.config.positioning, self.config.timing
        ball = (s.ball.x, s.ball.y)
        holder_team = holder.team if holder is not None else None
        skip_ids = set(skip)
        if holder is not None:
            skip_ids.add(holder.id)

        for team in ('A', 'B'):
            defenders = s.defenders(team)
            if holder is not None and holder_team != team:
                marking = ensure_marking(s, team)
                targets = defender_targets(defenders, holder, marking, s.forwards(opponent(team)), pitch, pos)
                for d in defenders:
                    if d.id not in skip_ids:
                        advance_player(d, targets[d.id], step_for(d, speeds.BUILDUP_DIV, speeds))
            else:
                for d in defenders:
                    if d.id in skip_ids:
                        continue
                    if holder_team == team and s.phase in _ATTACK_PHASES:
                        target = attacking_defender_target(d, pitch, pos)
                    else:
                        target = idle_target(d, ball, s.match_time, pitch, pos, timing)
                    advance_player(d, target, step_for(d, speeds.SUPPORT_DIV, speeds))

        for p in s.players:
            if p.id in skip_ids:
                continue
            if p.is_forward():
                target = forward_target(p, ball, holder_team, s.match_time, pitch, pos, timing)
                advance_player(p, target, step_for(p, speeds.SUPPORT_DIV, speeds))
            elif p.is_goalkeeper():
                advance_player(p, goalkeeper_target(p, ball, pitch), step_for(p, speeds.SUPPORT_DIV, speeds))

    def _carry(self, s: MatchState, holder: Player, div: float, fast: bool = False) -> None:
        pitch = self.config.pitch
        target = (pitch.WIDTH / 2, goal_y(holder.team, pitch))
        advance_player(holder, target, step_for(holder, div, self.config.speeds, fast))

    # ————— fazy —————

    def _phase_kickoff_contest(self, s: MatchState) -> None:
        pitch, speeds = self.config.pitch, self.config.speeds
        centre = (pitch.WIDTH / 2, pitch.HEIGHT / 2)
        s.clear_ball()
        s.ball.x, s.ball.y = centre
        fw_a = self._designated_forward(s, 'A')
        fw_b = self._designated_forward(s, 'B')
        if fw_a is None and fw_b is None:
            self._recover(s, "no forwards for the kickoff contest")
            return
        racers = [p for p in (fw_a, fw_b) if p is not None]
        for fw in racers:
            advance_player(fw, centre, step_for(fw, speeds.CARRIER_DIV, speeds))
        self._reposition(s, None, skip=tuple(p.id for p in racers))

        arrived = any(distance(p.pos, centre) <= pitch.KICKOFF_RADIUS for p in racers)
        if not arrived and s.phase_timer < self.config.timing.KICKOFF_TIMEOUT:
            return
        if fw_a is not None and fw_b is not None:
            winning_team = self.duels.kickoff(fw_a, fw_b, self._rng)
        else:
            winning_team = racers[0].team
        winner = fw_a if winning_team == 'A' else fw_b
        self._log(s, Commentary.kickoff_won(winner), 'action')
        s.give_ball(winner.id)
        self._lay_off(s, winner)
        s.attacking_team = winning_team
        s.engaged = []
        s.pass_bonus = 0.0
        self._enter(s, 'df_buildup')

    def _phase_df_buildup(self, s: MatchState) -> None:
        holder = self._attacking_holder(s)
        if holder is None:
            self._recover(s, "no ball holder in buildup")
            return
        pitch = self.config.pitch
        offset = pitch.MIDLINE_OFFSET * attack_direction(holder.team)
        target_y = pitch.HEIGHT / 2 + offset
        advance_player(holder, (holder.x, target_y), step_for(holder, self.config.speeds.BUILDUP_DIV, self.config.speeds))
        s.ball.x, s.ball.y = holder.x, holder.y
        self._reposition(s, holder)

        near_midline = abs(holder.y - pitch.HEIGHT / 2) < pitch.MIDLINE_TOLERANCE
        ready = any(forward_ready(fw, pitch, self.config.positioning) for fw in s.forwards(holder.team))
        if (near_midline and ready) or s.phase_timer >= self.config.timing.BUILDUP_TIMEOUT:
            self._enter(s, 'df_passing')

    def _phase_df_passing(self, s: MatchState) -> None:
        holder = self._attacking_holder(s)
        if holder is None:
            self._recover(s, "no ball holder when passing")
            return
        res = self.config.resolution
        attacking = s.attacking_team
        target = pick(self._rng, s.forwards(attacking))
        if chance(self._rng, res.INTERCEPTION):
            interceptor = pick(self._rng, s.forwards(opponent(attacking)))
            if interceptor is not None:
                self._log(s, Commentary.interception(interceptor), 'action')
                s.give_ball(interceptor.id)
                receiver = self._lay_off(s, interceptor)
                self._turnover(s, receiver)
                return
        s.engaged = []
        s.pass_bonus = 0.0
        if target is not None and target.id != holder.id:
            self._log(s, Commentary.pass_forward(holder, target), 'pass')
            s.give_ball(target.id)
        self._enter(s, 'fw_attacking')

    def _phase_fw_attacking(self, s: MatchState) -> None:
        holder = self._attacking_holder(s)
        if holder is None:
            self._recover(s, "no ball carrier in attack")
            return
        pitch = self.config.pitch
        self._carry(s, holder, self.config.speeds.CARRIER_DIV)
        s.ball.x, s.ball.y = holder.x, holder.y
        self._reposition(s, holder)

        defending = opponent(holder.team)
        if in_approach_zone(holder, holder.team, pitch):
            candidates = sorted(
                (d for d in s.defenders(defending) if d.id not in s.engaged),
                key=lambda d: distance(holder.pos, d.pos),
            )
            defender = candidates[0] if candidates else None
            if defender is not None and distance(holder.pos, defender.pos) <= pitch.TACKLE_DISTANCE:
                s.engaged.append(defender.id)
                self._encounter(s, holder, defender)
                return

        if in_penalty_area(holder, holder.team, 0.0, pitch) or s.phase_timer >= self.config.timing.ATTACK_TIMEOUT:
            self._enter(s, 'shooting')

    def _encounter(self, s: MatchState, carrier: Player, defender: Player) -> None:
        """Kontakt z obrońcą: odbiór, ewentualnie podanie, w przeciwnym razie pojedynek."""
        res = self.config.resolution
        p_tackle = self.duels.tackle_chance(len(s.defenders(defender.team)), len(s.forwards(carrier.team)))
        if chance(self._rng, p_tackle):
            self._log(s, Commentary.tackle(defender, carrier), 'action')
            self._turnover(s, defender)
            return
        mates = [p for p in s.forwards(carrier.team) if p.id != carrier.id]
        if mates and chance(self._rng, res.PASS_ATTEMPT):
            if chance(self._rng, res.PASS_SUCCESS):
                receiver = pick(self._rng, mates)
                self._log(s, Commentary.one_two(carrier, receiver), 'pass')
                s.give_ball(receiver.id)
                s.pass_bonus += res.PASS_GOAL_BONUS
                return
            self._log(s, Commentary.pass_cut(carrier, defender), 'action')
            self._turnover(s, defender)
            return
        s.duel_defender_id = defender.id
        self._log(s, Commentary.duel_start(carrier, defender), 'duel')
        self._enter(s, 'duel')

    def _phase_duel(self, s: MatchState) -> None:
        attacker = self._attacking_holder(s)
        if attacker is None:
            self._recover(s, "no ball carrier for the duel")
            return
        defending = opponent(attacker.team)
        defender = s.find(s.duel_defender_id)
        if defender is None or defender.team != defending:
            defender = self._nearest_defender(s, defending, attacker.pos)
        s.duel_defender_id = None
        if defender is None:
            logger.debug("Brak obrońcy do pojedynku – przebieg bez kontaktu")
            self._enter(s, 'fw_breakthrough')
            return

        outcome = self.duels.duel(attacker, defender, self._rng)
        self._consume_if(s, attacker, outcome.attacker_skill)
        self._consume_if(s, defender, outcome.defender_skill)
        if outcome.attacker_wins:
            pitch = self.config.pitch
            self._log(s, Commentary.duel_won(attacker, defender), 'duel')
            dash = attack_direction(attacker.team) * pitch.DASH_DISTANCE
            attacker.y = clamp(attacker.y + dash, pitch.EDGE_MARGIN, pitch.HEIGHT - pitch.EDGE_MARGIN)
            attacker.dashing = True
            s.ball.x, s.ball.y = attacker.x, attacker.y
            self._enter(s, 'fw_breakthrough')
        else:
            self._log(s, Commentary.duel_lost(attacker, defender), 'duel')
            self._turnover(s, defender)

    def _phase_fw_breakthrough(self, s: MatchState) -> None:
        holder = self._attacking_holder(s)
        if holder is None:
            self._recover(s, "no ball carrier in breakthrough")
            return
        pitch = self.config.pitch
        self._carry(s, holder, self.config.speeds.BREAKTHROUGH_DIV, fast=True)
        holder.dashing = False
        s.ball.x, s.ball.y = holder.x, holder.y
        self._reposition(s, holder)
        if (in_penalty_area(holder, holder.team, pitch.BREAKTHROUGH_MARGIN, pitch)
                or s.phase_timer >= self.config.timing.BREAKTHROUGH_TIMEOUT):
            self._enter(s, 'shooting')

    def _phase_shooting(self, s: MatchState) -> None:
        shooter = self._attacking_holder(s)
        keeper = s.goalkeeper(opponent(s.attacking_team))
        if shooter is None:
            self._recover(s, "no shooter")
            return
        if keeper is None:
            self._recover(s, "no opposing goalkeeper")
            return

        outcome = self.duels.shot(shooter, keeper, self._rng, s.pass_bonus)
        self._consume_if(s, shooter, outcome.shooter_skill)
        self._consume_if(s, keeper, outcome.keeper_skill)
        self._log(s, Commentary.shot(shooter), 'action')
        if outcome.goal:
            pitch = self.config.pitch
            team = s.attacking_team
            s.score[team] += 1
            s.last_scoring_team = team
            s.clear_ball()
            s.ball.x, s.ball.y = pitch.WIDTH / 2, goal_y(team, pitch)
            s.ball.in_goal = True
            for p in s.players:
                p.dashing = False
            self._log(s, Commentary.goal(shooter, team), 'goal')
            logger.debug("Gol drużyny %s (%s), wynik %s", team, shooter.id, s.score)
            if not self._end_turn(s):
                self._enter(s, 'goal_celebration')
            return

        self._log(s, Commentary.save(keeper), 'action')
        for p in s.players:
            p.dashing = False
        s.give_ball(keeper.id)
        if not self._end_turn(s):
            self._enter(s, 'save')

    def _phase_save(self, s: MatchState) -> None:
        keeper = s.ball_holder()
        if keeper is None or not keeper.is_goalkeeper():
            self._recover(s, "keeper lost the ball during save")
            return
        self._reposition(s, keeper)
        if s.phase_timer < self.config.timing.SAVE_HOLD:
            return
        self._lay_off(s, keeper)
        s.attacking_team = keeper.team
        s.engaged = []
        self._enter(s, 'df_buildup')

    def _phase_goal_celebration(self, s: MatchState) -> None:
        if s.phase_timer >= self.config.timing.CELEBRATION:
            s.ball.in_goal = False
            self._enter(s, 'reset_to_center')

    def _phase_reset_to_center(self, s: MatchState) -> None:
        pitch = self.config.pitch
        centre = (pitch.WIDTH / 2, pitch.HEIGHT / 2)
        conceding = opponent(s.last_scoring_team) if s.last_scoring_team else s.attacking_team
        restart = self._designated_forward(s, conceding)
        s.clear_ball()
        s.ball.x, s.ball.y = centre
        s.ball.in_goal = False

        settled = True
        for p in s.players:
            p.dashing = False
            target = centre if restart is not None and p.id == restart.id else p.base
            advance_player(p, target, self.config.speeds.FAST)
            if distance(p.pos, target) > pitch.SETTLE_RADIUS:
                settled = False

        if not settled and s.phase_timer < self.config.timing.RESET_TIMEOUT:
            return
        s.attacking_team = conceding
        self._log(s, Commentary.restart(conceding), 'info')
        if restart is None:
            self._recover(s, "no restart forward")
            return
        s.give_ball(restart.id)
        self._lay_off(s, restart)
        s.engaged = []
        s.pass_bonus = 0.0
        self._enter(s, 'df_buildup')


__all__ = ["MatchEngine", "PHASES"]
