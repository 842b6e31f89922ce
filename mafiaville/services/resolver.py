"""Effect resolver.

Applies one night's collected actions in fixed role priority, in a single
pass. Every mutation of life/death during the night goes through here.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Optional

from ..game import GameState
from ..models import ActionKind, DeathCause, EventLogEntry, NightResult, Participant, RoundAction
from ..roles import MAFIA_SUCCESSION, RESOLUTION_ORDER, Alignment, Role
from .notifier import Notifier

logger = logging.getLogger(__name__)

JAILED_TEXT = "⛓ Your target was in jail tonight, so your action failed."


async def notify_succession(game: GameState, notifier: Notifier, dead: Participant) -> None:
    """Tell the Mafia who leads now that ``dead`` is gone."""
    if dead.role not in MAFIA_SUCCESSION:
        return
    leader = game.get_player(game.active_leader())
    if leader is None or leader.role == Role.GODFATHER:
        return
    if MAFIA_SUCCESSION.index(dead.role) > MAFIA_SUCCESSION.index(leader.role):
        return
    logger.info("%s succeeds %s as Mafia leader", leader.name, dead.name)
    await notifier.dm(
        leader.id,
        f"🔴 The {dead.role.value} has died. You are now the acting Godfather "
        "and will choose who the Mafia kills.",
    )
    for member in game.get_alive_by_alignment(Alignment.MAFIA):
        if member.id != leader.id:
            await notifier.dm(member.id, f"🔴 {leader.name} now leads the Mafia.")


class EffectResolver:
    """Applies a night's actions to the game state."""

    def __init__(self, game: GameState, notifier: Notifier):
        self.game = game
        self.notifier = notifier
        self.killed_id: Optional[int] = None
        self._actions: dict[Role, RoundAction] = {}
        self._handlers: dict[ActionKind, Callable[[RoundAction, Participant], Awaitable[None]]] = {
            ActionKind.DISTRACT: self._distract,
            ActionKind.EXECUTE: self._execute,
            ActionKind.FRAME: self._frame,
            ActionKind.SILENCE: self._silence,
            ActionKind.KILL: self._kill,
            ActionKind.KILL_VIGIL: self._kill_vigil,
            ActionKind.CHECK: self._check,
            ActionKind.PI_CHECK: self._pi_check,
            ActionKind.SPY_CHECK: self._spy_check,
            ActionKind.HEAL: self._heal,
            ActionKind.MAYOR_REVEAL: self._mayor_reveal,
            ActionKind.DOUSE: self._douse,
            ActionKind.IGNITE: self._ignite,
            ActionKind.BAITED: self._baited,
        }

    async def resolve(self, actions: dict[Role, RoundAction]) -> NightResult:
        """Apply every collected action in resolution order.

        Args:
        ----
            actions: Role -> action collected tonight

        Returns:
        -------
            NightResult with the event log and the ids who died

        """
        game = self.game
        self.killed_id = None
        self._actions = actions
        alive_before = list(game.players_alive)

        for role in RESOLUTION_ORDER:
            action = actions.get(role)
            if action is None:
                continue
            actor = game.get_player(action.actor_id)
            if actor is None:
                continue
            if actor.distracted:
                actor.distracted = False
                logger.info("%s was distracted, %s skipped", actor.name, action.kind.value)
                await self.notifier.dm(actor.id, "🥴 You were distracted tonight and couldn't act.")
                continue
            # A Doctor killed earlier tonight may still save themselves.
            if not actor.alive and role != Role.DOCTOR:
                continue
            logger.debug("Resolving %r", action)
            await self._handlers[action.kind](action, actor)

        for player in game.players.values():
            player.distracted = False

        game.last_round_actions = dict(actions)
        deaths = [pid for pid in alive_before if pid not in game.players_alive]
        return NightResult(
            round_number=game.round_number,
            actions=dict(actions),
            events=list(game.dead_this_round),
            deaths=deaths,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _log(self, subject_id: int, cause: DeathCause, **extra) -> None:
        self.game.dead_this_round.append(EventLogEntry(subject_id=subject_id, cause=cause, extra=extra))

    async def _kill_player(self, player: Participant) -> bool:
        if not self.game.kill(player.id):
            return False
        await notify_succession(self.game, self.notifier, player)
        return True

    def _target(self, action: RoundAction) -> Optional[Participant]:
        return self.game.get_player(action.target)

    def _apparent_side(self, player: Participant) -> Optional[Alignment]:
        return Alignment.MAFIA if player.was_framed else player.alignment

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _distract(self, action: RoundAction, actor: Participant) -> None:
        target = self._target(action)
        if target is None:
            return
        if self.game.is_jailed(target.id):
            await self.notifier.dm(actor.id, JAILED_TEXT)
            return
        target.distracted = True

    async def _execute(self, action: RoundAction, actor: Participant) -> None:
        prisoner = self._target(action)
        if prisoner is None or not prisoner.alive:
            return
        await self.notifier.dm(prisoner.id, "⚖️ You were executed by the Jailer.")
        await self._kill_player(prisoner)
        self._log(prisoner.id, DeathCause.JAILER)
        if prisoner.alignment == Alignment.VILLAGE:
            self.game.role_state.jailer.kills_left = 0
            await self.notifier.dm(
                actor.id,
                f"⚖️ {prisoner.name} was a member of the Village. "
                "You can no longer execute your prisoners.",
            )

    async def _frame(self, action: RoundAction, actor: Participant) -> None:
        target = self._target(action)
        if target is None:
            return
        if self.game.is_jailed(target.id):
            await self.notifier.dm(actor.id, JAILED_TEXT)
            return
        target.was_framed = True

    async def _silence(self, action: RoundAction, actor: Participant) -> None:
        target = self._target(action)
        if target is None:
            return
        if self.game.is_jailed(target.id):
            await self.notifier.dm(actor.id, JAILED_TEXT)
            return
        target.silenced_this_round = True
        self._log(target.id, DeathCause.SILENCER)
        await self.notifier.dm(
            target.id,
            "🤫 You have been silenced. You can't speak or vote at tomorrow's meeting.",
        )

    async def _kill(self, action: RoundAction, actor: Participant) -> None:
        target = self._target(action)
        if target is None:
            return
        mafioso = self.game.player_with_role(Role.MAFIOSO)
        if self.game.is_jailed(target.id):
            await self.notifier.dm(actor.id, JAILED_TEXT)
            if mafioso and mafioso.alive and mafioso.id != actor.id:
                await self.notifier.dm(mafioso.id, JAILED_TEXT)
            return
        if not target.alive:
            return

        await self._kill_player(target)
        self.killed_id = target.id
        self._log(target.id, DeathCause.MAFIA)
        if mafioso and mafioso.alive and mafioso.id != actor.id:
            await self.notifier.dm(mafioso.id, f"🔪 On your leader's orders, you killed {target.name}.")
        await self.notifier.dm(target.id, "🔪 You were attacked by the Mafia tonight.")

    async def _kill_vigil(self, action: RoundAction, actor: Participant) -> None:
        target = self._target(action)
        if target is None:
            return
        if not target.alive:
            await self.notifier.dm(actor.id, f"🔫 {target.name} was already dead when you arrived.")
            return
        if self.game.is_jailed(target.id):
            await self.notifier.dm(actor.id, JAILED_TEXT)
            return

        await self._kill_player(target)
        self._log(target.id, DeathCause.VIGILANTE, vigil_id=actor.id)
        await self.notifier.dm(target.id, "🔫 You were shot by the Vigilante.")
        if target.alignment == Alignment.VILLAGE:
            await self._kill_player(actor)
            self._log(actor.id, DeathCause.VIGILANTE_GUILT)
            await self.notifier.dm(
                actor.id, f"🔫 {target.name} was a villager. You died of guilt."
            )
        else:
            await self.notifier.dm(
                actor.id, f"🔫 {target.name} was a member of the {target.alignment.value}."
            )

    async def _check(self, action: RoundAction, actor: Participant) -> None:
        target = self._target(action)
        if target is None:
            return
        if self.game.is_jailed(target.id):
            await self.notifier.dm(actor.id, JAILED_TEXT)
            return
        verdict = "suspicious" if target.looks_suspicious() else "not suspicious"
        await self.notifier.dm(actor.id, f"🔍 {target.name} is {verdict}.")

    async def _pi_check(self, action: RoundAction, actor: Participant) -> None:
        if len(action.targets) != 2:
            return
        first, second = (self.game.get_player(pid) for pid in action.targets)
        if first is None or second is None:
            return
        if self.game.is_jailed(first.id) or self.game.is_jailed(second.id):
            await self.notifier.dm(actor.id, JAILED_TEXT)
            return
        same = self._apparent_side(first) == self._apparent_side(second)
        relation = "on the same side" if same else "on different sides"
        await self.notifier.dm(actor.id, f"🔍 {first.name} and {second.name} are {relation}.")

    async def _spy_check(self, action: RoundAction, actor: Participant) -> None:
        watched = self._target(action)
        if watched is None:
            return
        if self.game.is_jailed(watched.id):
            await self.notifier.dm(actor.id, JAILED_TEXT)
            return

        visited: Optional[int] = None
        godfather_action = self._actions.get(Role.GODFATHER)
        if watched.role == Role.MAFIOSO and godfather_action is not None:
            # The Mafioso carries out the Godfather's order.
            visited = godfather_action.target
        else:
            watched_action = self._actions.get(watched.role)
            if watched_action is not None and watched_action.actor_id == watched.id:
                if watched_action.targets:
                    visited = watched_action.targets[0]
                elif watched_action.target != watched.id:
                    visited = watched_action.target

        if visited is None:
            report = f"👁 {watched.name} stayed home last night."
        elif visited == actor.id:
            report = f"👁 {watched.name} visited you last night."
        else:
            report = f"👁 {watched.name} visited {self.game.players[visited].name} last night."
        await self.notifier.dm(actor.id, report)

    async def _heal(self, action: RoundAction, actor: Participant) -> None:
        target = self._target(action)
        if target is None:
            self.killed_id = None
            return
        if self.game.is_jailed(target.id):
            await self.notifier.dm(actor.id, JAILED_TEXT)
        elif target.id == actor.id and not actor.alive:
            self.game.revive(actor.id)
            self._log(actor.id, DeathCause.DOCTOR)
            await self.notifier.dm(actor.id, "💊 You were attacked, but you healed yourself!")
        elif target.id == self.killed_id and actor.alive:
            self.game.revive(target.id)
            self._log(target.id, DeathCause.DOCTOR)
            await self.notifier.dm(target.id, "💊 You were attacked, but the Doctor saved you!")
            await self.notifier.dm(actor.id, f"💊 You saved {target.name} from an attack!")
        elif self.killed_id is not None:
            await self.notifier.dm(self.killed_id, "💊 The Doctor was too late to save you.")
        self.killed_id = None

    async def _mayor_reveal(self, action: RoundAction, actor: Participant) -> None:
        state = self.game.role_state.mayor
        if not actor.silenced_this_round:
            self._log(actor.id, DeathCause.MAYOR)
            return
        state.revealed = False
        state.mayor_id = None
        await self.notifier.dm(actor.id, "🤫 You were silenced, so you couldn't reveal yourself.")

    async def _douse(self, action: RoundAction, actor: Participant) -> None:
        # Recorded when the Arsonist chose; nothing left to do.
        return

    async def _ignite(self, action: RoundAction, actor: Participant) -> None:
        state = self.game.role_state.arsonist
        killed = []
        for pid in list(state.doused):
            victim = self.game.get_player(pid)
            if victim is None or not victim.alive or self.game.is_jailed(pid):
                continue
            await self._kill_player(victim)
            killed.append(pid)
            await self.notifier.dm(pid, "🔥 You were burned to death by the Arsonist.")
        prisoner = self.game.role_state.jailer.last_selection
        state.doused = [pid for pid in state.doused if pid != prisoner]
        self._log(actor.id, DeathCause.ARSONIST, killed=killed)

    async def _baited(self, action: RoundAction, actor: Participant) -> None:
        state = self.game.role_state.baiter
        state.baited_count += 1
        self._log(actor.id, DeathCause.BAITER)
        await self._kill_player(actor)
        if state.baiter_id is not None:
            await self.notifier.dm(state.baiter_id, f"💥 {actor.name} visited your house and was blown up!")
