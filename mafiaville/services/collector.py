"""Night action collection.

One prompt per eligible actor, each with its own timeout. A prompt
settles either from the actor's button press or from its timer, never
both; see ``PendingActionTable``.
"""

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from typing import Optional

from ..errors import ActionRejected, DeliveryError
from ..game import GameState
from ..models import ActionKind, Participant, RoundAction
from ..protocols import PromptOption, Transport
from ..roles import Alignment, Role
from .notifier import Notifier
from .pending_actions import (
    JAILER_DAY,
    JAILER_EXECUTE,
    MAYOR_REVEAL,
    NIGHT_ACTION,
    PI_FIRST_STEP,
    SKIP,
    PendingActionTable,
    SingleResolution,
    make_key,
)

logger = logging.getLogger(__name__)

LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
IGNITE = "ignite"
YES = "yes"
NO = "no"

BAITED_TEXT = "💥 You visited the Baiter's house and were blown up!"


class ActionCollector:
    """Prompts actors for their night (and Jailer day) choices."""

    def __init__(
        self,
        game: GameState,
        transport: Transport,
        table: PendingActionTable,
        notifier: Notifier,
        time_scale: float = 1.0,
    ):
        self.game = game
        self.transport = transport
        self.table = table
        self.notifier = notifier
        self.time_scale = time_scale
        self._offered: dict[str, set[str]] = {}
        self._collectors: dict[Role, Callable[[Participant], Awaitable[Optional[RoundAction]]]] = {
            Role.GODFATHER: self.collect_kill,
            Role.FRAMER: self.collect_frame,
            Role.SILENCER: self.collect_silence,
            Role.DOCTOR: self.collect_heal,
            Role.DETECTIVE: self.collect_check,
            Role.VIGILANTE: self.collect_shoot,
            Role.MAYOR: self.collect_reveal,
            Role.JAILER: self.collect_jailer_execute,
            Role.DISTRACTOR: self.collect_distract,
            Role.PI: self.collect_pi,
            Role.SPY: self.collect_spy,
            Role.ARSONIST: self.collect_arsonist,
        }

    # ------------------------------------------------------------------
    # Prompt protocol
    # ------------------------------------------------------------------

    def check_response(self, key: str, value: str) -> None:
        """Reject a value that was never offered on the prompt behind ``key``."""
        offered = self._offered.get(key)
        if offered is not None and value not in offered:
            raise ActionRejected("That choice is not available.")

    async def send_selection_prompt(
        self,
        actor_id: int,
        text: str,
        options: list[PromptOption],
        prefix: str,
        timeout: float,
    ) -> Optional[str]:
        """Prompt one actor and wait for a press or the timeout.

        Args:
        ----
            actor_id: Who is being asked
            text: Prompt text
            options: Buttons; a value of ``"skip"`` resolves as no action
            prefix: Session key prefix
            timeout: Seconds before the prompt resolves with no action

        Returns:
        -------
            The pressed option value, or None

        """
        key = make_key(prefix, self.game.round_number, actor_id)
        resolution: SingleResolution[str] = SingleResolution()

        def on_response(value: str) -> None:
            resolution.settle(None if value == SKIP else value)

        # Register before sending so a fast press cannot miss the table.
        self.table.register(key, on_response)
        self._offered[key] = {opt.value for opt in options}
        try:
            handle = await self.transport.send_prompt(actor_id, text, options, key)
        except Exception as e:
            if isinstance(e, DeliveryError):
                logger.warning("Prompt %s not delivered: %s", key, e.reason)
            else:
                logger.exception("Prompt %s failed to send", key)
            self.table.deregister(key)
            self._offered.pop(key, None)
            return None

        settled, value = await resolution.wait(timeout * self.time_scale)
        self._offered.pop(key, None)
        if settled:
            return value

        self.table.deregister(key)
        logger.info("Prompt %s timed out", key)
        try:
            await self.transport.edit_prompt_options(handle, [])
        except DeliveryError as e:
            logger.debug("Could not disable prompt %s: %s", key, e.reason)
        await self.notifier.dm(actor_id, "⏰ Time's up! No action taken.")
        return None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def night_timeout(self) -> int:
        return self.game.settings.night_time

    def targets_for(
        self,
        actor_id: int,
        include_self: bool = False,
        exclude_alignment: Optional[Alignment] = None,
        exclude: tuple[int, ...] = (),
    ) -> list[int]:
        """Living, non-jailed participants the actor may pick."""
        targets = []
        for player in self.game.get_alive_players():
            if player.id == actor_id and not include_self:
                continue
            if self.game.is_jailed(player.id):
                continue
            if exclude_alignment is not None and player.alignment == exclude_alignment:
                continue
            if player.id in exclude:
                continue
            targets.append(player.id)
        return targets

    def player_options(self, target_ids: list[int], skip_label: str = "⏭ No action tonight") -> list[PromptOption]:
        options = [
            PromptOption(label=f"{LETTERS[i % len(LETTERS)]} {self.game.players[pid].name}", value=str(pid))
            for i, pid in enumerate(target_ids)
        ]
        options.append(PromptOption(label=skip_label, value=SKIP))
        return options

    async def _select(
        self,
        actor: Participant,
        target_ids: list[int],
        text: str,
        prefix: str = NIGHT_ACTION,
        timeout: Optional[float] = None,
    ) -> Optional[int]:
        selection = await self.send_selection_prompt(
            actor.id,
            text,
            self.player_options(target_ids),
            prefix=prefix,
            timeout=self.night_timeout if timeout is None else timeout,
        )
        if selection is None:
            return None
        return int(selection)

    async def _baited(self, actor: Participant, target_id: int) -> Optional[RoundAction]:
        """Turn a visit to the Baiter into an ambush."""
        target = self.game.get_player(target_id)
        if target is None or target.role != Role.BAITER:
            return None
        await self.notifier.dm(actor.id, BAITED_TEXT)
        return RoundAction(actor_id=actor.id, kind=ActionKind.BAITED, target=actor.id)

    def _name(self, player_id: int) -> str:
        player = self.game.get_player(player_id)
        return player.name if player else "?"

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def collect_night_action(self, actor_id: int) -> Optional[RoundAction]:
        """Prompt one participant for tonight's action, if their role has one."""
        actor = self.game.get_player(actor_id)
        if actor is None or not actor.alive or actor.role is None:
            return None

        if self.game.active_leader() == actor_id and actor.role != Role.GODFATHER:
            await self.notifier.dm(actor_id, "🔴 As the acting Godfather, you must order tonight's kill.")
            return await self.collect_kill(actor)

        collector = self._collectors.get(actor.role)
        if collector is None:
            return None
        return await collector(actor)

    async def collect_round(self) -> dict[Role, RoundAction]:
        """Collect every living, non-jailed participant's action concurrently."""
        actions: dict[Role, RoundAction] = {}
        pending = []
        for player in list(self.game.get_alive_players()):
            if self.game.is_jailed(player.id):
                logger.info("%s is jailed tonight, no action", player.name)
                await self.notifier.dm(
                    player.id,
                    "⛓ You were jailed tonight. You cannot perform your night action.",
                )
                continue
            logger.info("Sending action prompt to %s (%s)", player.name, player.role.value)
            pending.append(self._collect_into(player, actions))

        logger.info("Waiting for %d player(s) to act", len(pending))
        await asyncio.gather(*pending)
        return actions

    async def _collect_into(self, player: Participant, actions: dict[Role, RoundAction]) -> None:
        try:
            action = await self.collect_night_action(player.id)
        except Exception as e:
            logger.error("Error collecting action from %s: %s", player.name, e)
            action = None
        logger.info("%s %s", player.name, "submitted their action" if action else "took no action")
        if action is not None:
            actions[player.role] = action

    # ------------------------------------------------------------------
    # Mafia
    # ------------------------------------------------------------------

    async def collect_kill(self, actor: Participant) -> Optional[RoundAction]:
        targets = self.targets_for(actor.id, exclude_alignment=Alignment.MAFIA)
        if not targets:
            return None
        target_id = await self._select(
            actor, targets, f"🔴 Night {self.game.round_number}: choose your kill target."
        )
        if target_id is None:
            await self.notifier.dm(actor.id, "You chose not to kill anyone tonight.")
            return None
        baited = await self._baited(actor, target_id)
        if baited:
            return baited
        await self.notifier.dm(actor.id, f"🔪 You chose to kill {self._name(target_id)} tonight.")
        return RoundAction(actor_id=actor.id, kind=ActionKind.KILL, target=target_id)

    async def collect_frame(self, actor: Participant) -> Optional[RoundAction]:
        targets = self.targets_for(actor.id, exclude_alignment=Alignment.MAFIA)
        if not targets:
            return None
        target_id = await self._select(
            actor,
            targets,
            f"🔴 Night {self.game.round_number}: choose a player to frame. "
            "They will look like Mafia to investigators tonight.",
        )
        if target_id is None:
            await self.notifier.dm(actor.id, "You chose not to frame anyone tonight.")
            return None
        baited = await self._baited(actor, target_id)
        if baited:
            return baited
        await self.notifier.dm(actor.id, f"🖼 You chose to frame {self._name(target_id)} tonight.")
        return RoundAction(actor_id=actor.id, kind=ActionKind.FRAME, target=target_id)

    async def collect_silence(self, actor: Participant) -> Optional[RoundAction]:
        state = self.game.role_state.silencer
        if state.worked_last_night:
            state.worked_last_night = False
            await self.notifier.dm(actor.id, "😴 You're too tired to silence anyone tonight.")
            return None

        targets = self.targets_for(actor.id, exclude=tuple(state.silenced_so_far))
        if not targets:
            await self.notifier.dm(actor.id, "No eligible targets to silence tonight.")
            return None
        target_id = await self._select(
            actor,
            targets,
            f"🔴 Night {self.game.round_number}: choose a player to silence at tomorrow's meeting.",
        )
        if target_id is None:
            await self.notifier.dm(actor.id, "You chose not to silence anyone tonight.")
            return None
        baited = await self._baited(actor, target_id)
        if baited:
            return baited
        state.worked_last_night = True
        state.silenced_so_far.append(target_id)
        await self.notifier.dm(actor.id, f"🤫 You chose to silence {self._name(target_id)} tonight.")
        return RoundAction(actor_id=actor.id, kind=ActionKind.SILENCE, target=target_id)

    # ------------------------------------------------------------------
    # Village
    # ------------------------------------------------------------------

    async def collect_heal(self, actor: Participant) -> Optional[RoundAction]:
        state = self.game.role_state.doctor
        exclude = (state.last_choice,) if state.last_choice is not None else ()
        targets = self.targets_for(actor.id, include_self=True, exclude=exclude)
        if not targets:
            return None
        target_id = await self._select(
            actor, targets, f"🟢 Night {self.game.round_number}: choose who to protect tonight."
        )
        if target_id is None:
            await self.notifier.dm(actor.id, "You chose not to save anyone tonight.")
            return None
        state.last_choice = target_id
        baited = await self._baited(actor, target_id)
        if baited:
            return baited
        await self.notifier.dm(actor.id, f"💊 You chose to protect {self._name(target_id)} tonight.")
        return RoundAction(actor_id=actor.id, kind=ActionKind.HEAL, target=target_id)

    async def collect_check(self, actor: Participant) -> Optional[RoundAction]:
        targets = self.targets_for(actor.id)
        if not targets:
            return None
        target_id = await self._select(
            actor, targets, f"🟢 Night {self.game.round_number}: choose who to investigate."
        )
        if target_id is None:
            await self.notifier.dm(actor.id, "You chose not to investigate anyone tonight.")
            return None
        baited = await self._baited(actor, target_id)
        if baited:
            return baited
        await self.notifier.dm(actor.id, f"🔍 You chose to investigate {self._name(target_id)} tonight.")
        return RoundAction(actor_id=actor.id, kind=ActionKind.CHECK, target=target_id)

    async def collect_shoot(self, actor: Participant) -> Optional[RoundAction]:
        targets = self.targets_for(actor.id)
        if not targets:
            return None
        target_id = await self._select(
            actor, targets, f"🟢 Night {self.game.round_number}: choose who to shoot."
        )
        if target_id is None:
            await self.notifier.dm(actor.id, "You chose not to shoot anyone tonight.")
            return None
        baited = await self._baited(actor, target_id)
        if baited:
            return baited
        await self.notifier.dm(actor.id, f"🔫 You chose to shoot {self._name(target_id)} tonight.")
        return RoundAction(actor_id=actor.id, kind=ActionKind.KILL_VIGIL, target=target_id)

    async def collect_reveal(self, actor: Participant) -> Optional[RoundAction]:
        state = self.game.role_state.mayor
        if state.revealed:
            return None

        selection = await self.send_selection_prompt(
            actor.id,
            f"🟢 Night {self.game.round_number}: reveal yourself as the Mayor at tomorrow's meeting? "
            "Revealing doubles your vote but makes you a target.",
            [
                PromptOption(label="✅ Yes, reveal myself tomorrow", value=YES),
                PromptOption(label="❌ No, stay hidden", value=NO),
            ],
            prefix=MAYOR_REVEAL,
            timeout=self.night_timeout,
        )
        if selection != YES:
            await self.notifier.dm(actor.id, "🏛 You chose to remain hidden tomorrow.")
            return None

        state.revealed = True
        state.mayor_id = actor.id
        await self.notifier.dm(actor.id, "🏛 You will reveal yourself as the Mayor at tomorrow's meeting!")
        return RoundAction(actor_id=actor.id, kind=ActionKind.MAYOR_REVEAL)

    async def collect_jailer_execute(self, actor: Participant) -> Optional[RoundAction]:
        state = self.game.role_state.jailer
        if state.kills_left == 0 or state.last_selection is None:
            return None
        prisoner = self.game.get_player(state.last_selection)
        if prisoner is None or not prisoner.alive:
            return None

        selection = await self.send_selection_prompt(
            actor.id,
            f"⛓ Night {self.game.round_number}: your prisoner is {prisoner.name}. Execute them tonight?",
            [
                PromptOption(label=f"⚖️ Yes, execute {prisoner.name}", value=YES),
                PromptOption(label="🔓 No, release them", value=NO),
            ],
            prefix=JAILER_EXECUTE,
            timeout=self.night_timeout,
        )
        if selection != YES:
            await self.notifier.dm(actor.id, f"🔓 You chose not to execute {prisoner.name}.")
            return None
        await self.notifier.dm(actor.id, f"⚖️ You chose to execute {prisoner.name} tonight.")
        return RoundAction(actor_id=actor.id, kind=ActionKind.EXECUTE, target=prisoner.id)

    async def collect_distract(self, actor: Participant) -> Optional[RoundAction]:
        state = self.game.role_state.distractor
        if state.worked_last_night:
            state.worked_last_night = False
            await self.notifier.dm(actor.id, "😴 You're too tired to distract anyone tonight.")
            return None

        targets = self.targets_for(actor.id)
        if not targets:
            return None
        target_id = await self._select(
            actor,
            targets,
            f"🟢 Night {self.game.round_number}: choose who to distract. Their action will fail tonight.",
        )
        if target_id is None:
            await self.notifier.dm(actor.id, "You chose not to distract anyone tonight.")
            return None
        baited = await self._baited(actor, target_id)
        if baited:
            return baited
        state.worked_last_night = True
        await self.notifier.dm(actor.id, f"🥴 You chose to distract {self._name(target_id)} tonight.")
        return RoundAction(actor_id=actor.id, kind=ActionKind.DISTRACT, target=target_id)

    async def collect_pi(self, actor: Participant) -> Optional[RoundAction]:
        eligible = self.targets_for(actor.id)
        if len(eligible) < 2:
            await self.notifier.dm(actor.id, "Not enough players to compare tonight.")
            return None

        first = await self._select(
            actor,
            eligible,
            f"🟢 Night {self.game.round_number}: PI investigation (1/2). Select the first player.",
            prefix=PI_FIRST_STEP,
        )
        if first is None:
            await self.notifier.dm(actor.id, "You chose not to investigate tonight.")
            return None
        baited = await self._baited(actor, first)
        if baited:
            return baited

        second_pool = [pid for pid in eligible if pid != first]
        second = await self._select(
            actor,
            second_pool,
            f"🟢 Night {self.game.round_number}: PI investigation (2/2). "
            f"Comparing against {self._name(first)}. Select the second player.",
            timeout=math.ceil(self.night_timeout / 2),
        )
        if second is None:
            await self.notifier.dm(actor.id, "Investigation incomplete: no second target selected.")
            return None
        baited = await self._baited(actor, second)
        if baited:
            return baited

        await self.notifier.dm(
            actor.id, f"🔍 You chose to compare {self._name(first)} and {self._name(second)}."
        )
        return RoundAction(actor_id=actor.id, kind=ActionKind.PI_CHECK, targets=(first, second))

    async def collect_spy(self, actor: Participant) -> Optional[RoundAction]:
        targets = self.targets_for(actor.id)
        if not targets:
            return None
        target_id = await self._select(
            actor, targets, f"🟢 Night {self.game.round_number}: choose who to follow tonight."
        )
        if target_id is None:
            await self.notifier.dm(actor.id, "You chose not to follow anyone tonight.")
            return None
        baited = await self._baited(actor, target_id)
        if baited:
            return baited
        await self.notifier.dm(actor.id, f"👁 You chose to watch {self._name(target_id)} tonight.")
        return RoundAction(actor_id=actor.id, kind=ActionKind.SPY_CHECK, target=target_id)

    # ------------------------------------------------------------------
    # Neutral
    # ------------------------------------------------------------------

    async def collect_arsonist(self, actor: Participant) -> Optional[RoundAction]:
        state = self.game.role_state.arsonist
        dousable = self.targets_for(actor.id, exclude=tuple(state.doused))
        doused_names = ", ".join(self._name(pid) for pid in state.doused) or "none"

        options = [PromptOption(label=f"🔥 IGNITE all doused players ({len(state.doused)})", value=IGNITE)]
        options.extend(
            PromptOption(label=f"{LETTERS[(i + 1) % len(LETTERS)]} Douse {self._name(pid)}", value=str(pid))
            for i, pid in enumerate(dousable)
        )
        options.append(PromptOption(label="⏭ No action tonight", value=SKIP))

        selection = await self.send_selection_prompt(
            actor.id,
            f"🔵 Night {self.game.round_number}: currently doused: {doused_names}. Choose your action.",
            options,
            prefix=NIGHT_ACTION,
            timeout=self.night_timeout,
        )
        if selection is None:
            await self.notifier.dm(actor.id, "You chose not to act tonight.")
            return None

        if selection == IGNITE:
            if not state.doused:
                await self.notifier.dm(actor.id, "⚠️ No doused players to ignite!")
                return None
            await self.notifier.dm(actor.id, f"🔥 You ignite all {len(state.doused)} doused player(s) tonight!")
            return RoundAction(actor_id=actor.id, kind=ActionKind.IGNITE, target=actor.id)

        target_id = int(selection)
        baited = await self._baited(actor, target_id)
        if baited:
            return baited
        # Doused at prompt time so the list is current for tomorrow's prompt.
        state.doused.append(target_id)
        await self.notifier.dm(actor.id, f"💧 You doused {self._name(target_id)} tonight.")
        return RoundAction(actor_id=actor.id, kind=ActionKind.DOUSE, target=target_id)

    # ------------------------------------------------------------------
    # Day
    # ------------------------------------------------------------------

    async def collect_jailer_day(self, jailer_id: int) -> None:
        """Ask the Jailer who to lock up tonight (or stand them down)."""
        state = self.game.role_state.jailer
        jailer = self.game.get_player(jailer_id)
        if jailer is None or not jailer.alive:
            return

        if not state.can_jail:
            state.can_jail = True
            state.previous_selection = state.last_selection
            state.last_selection = None
            await self.notifier.dm(
                jailer_id,
                "⛓ You jailed someone last night, so you're off duty today. "
                "You can select a new prisoner tomorrow.",
            )
            return

        targets = [p.id for p in self.game.get_alive_players() if p.id != jailer_id]
        if not targets:
            return

        selection = await self.send_selection_prompt(
            jailer_id,
            f"⛓ Day {self.game.round_number}: choose your prisoner for tonight. They won't be able to "
            "act tonight and nobody can visit them. Executing a villager costs you that power.",
            self.player_options(targets, skip_label="⏭ No prisoner tonight"),
            prefix=JAILER_DAY,
            timeout=self.game.settings.day_time,
        )

        state.previous_selection = state.last_selection
        if selection is None:
            state.can_jail = True
            state.last_selection = None
            await self.notifier.dm(jailer_id, "🔓 You chose not to jail anyone tonight.")
            return

        state.can_jail = False
        state.last_selection = int(selection)
        await self.notifier.dm(
            jailer_id,
            f"⛓ {self._name(state.last_selection)} will be jailed tonight. "
            "You can choose whether to execute them during the night.",
        )
