"""Phase management - orchestrates night and day phases.

- night.py: action collection and resolution
- day.py: announcements, nomination and trial

``PhaseManager`` is the engine's public face: the command layer starts
games and forces them to end, the transport reports button presses.
"""

import asyncio
import logging
import random
from collections.abc import Iterable
from typing import Optional

from ..config import GameSettings
from ..errors import FatalRoundError, InvariantViolation, MalformedPayload, StaleInteraction, VoteRejected
from ..game import GameSnapshot, GameState, Phase
from ..logging_setup import clear_game_context
from ..models import ExecutionVote, NominationVote, PromptResponse, parse_interaction
from ..protocols import Transport
from ..services.announcement_service import Announcer
from ..services.collector import ActionCollector
from ..services.lobby_service import LobbyService
from ..services.notifier import Notifier
from ..services.pending_actions import PendingActionTable
from ..services.resolver import EffectResolver
from ..services.vote_service import SessionStatus, VotingEngine
from ..services.win_service import WinEvaluator, WinResult
from .day import DayPhaseHandler
from .night import NightPhaseHandler

logger = logging.getLogger(__name__)

STALE_TEXT = "⌛ This action is no longer valid."


class PhaseManager:
    """Runs one table's game loop and routes every interaction into it."""

    def __init__(
        self,
        transport: Transport,
        group_id: int = 0,
        settings: Optional[GameSettings] = None,
        admin_ids: Iterable[int] = (),
        time_scale: float = 1.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Initialize the phase manager.

        Args:
        ----
            transport: Chat layer used for prompts and messages
            group_id: Transport id of the group chat
            settings: Phase timers
            admin_ids: Participants who may always run host commands
            time_scale: Multiplier applied to every timer
            rng: Random source for role dealing and tie-breaks

        """
        self.rng = rng or random.Random()
        self.time_scale = time_scale
        self.game = GameState(settings=settings or GameSettings(), group_id=group_id)
        self.table = PendingActionTable()
        self.notifier = Notifier(transport, group_id)
        self.collector = ActionCollector(self.game, transport, self.table, self.notifier, time_scale)
        self.resolver = EffectResolver(self.game, self.notifier)
        self.voting = VotingEngine(self.game, transport, self.notifier, time_scale)
        self.win = WinEvaluator(self.game, self.notifier)
        self.announcer = Announcer(self.game, self.notifier, self.rng)
        self.lobby = LobbyService(self.game, self.notifier, self.announcer, admin_ids, self.rng)
        self.night_handler = NightPhaseHandler(
            self.game, self.collector, self.resolver, self.table, self.notifier
        )
        self.day_handler = DayPhaseHandler(
            self.game, self.collector, self.voting, self.win, self.announcer, self.notifier, time_scale
        )
        self._task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Read-only views for access control and lobby commands
    # ------------------------------------------------------------------

    @property
    def host_id(self) -> Optional[int]:
        return self.game.host_id

    @property
    def leader_id(self) -> Optional[int]:
        """Acting Mafia leader, while a game is running."""
        return self.game.active_leader() if self.game.is_game_active else None

    def snapshot(self) -> GameSnapshot:
        return self.game.snapshot()

    # ------------------------------------------------------------------
    # Game loop
    # ------------------------------------------------------------------

    async def start_game(self, issuer_id: int) -> asyncio.Task:
        """Deal roles and run the game in the background.

        Raises
        ------
            LobbyError: if the issuer can't start a game right now

        """
        await self.lobby.setup(issuer_id)
        self._task = asyncio.create_task(self.run_game())
        return self._task

    async def run_game(self) -> Optional[WinResult]:
        """Alternate nights and days until somebody wins."""
        while True:
            try:
                win = await self.start_round()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                await self._abort(FatalRoundError(self.game.round_number, e))
                return None
            if win.game_over:
                await self.end_game(win)
                return win

    async def start_round(self) -> WinResult:
        """Run one night followed by one day."""
        self.game.round_number += 1
        night = await self.night_handler.run_night_phase()
        return await self.day_handler.run_day_phase(night)

    async def end_game(self, win: WinResult) -> None:
        """Announce the winners and return everyone to the lobby."""
        game = self.game
        game.phase = Phase.ENDED
        self.table.clear()
        self.voting.clear_active_sessions()
        await self.announcer.game_over(win)
        game.reset(carry_over=game.players)
        clear_game_context()

    async def force_end(self) -> None:
        """Stop the current game immediately and return to the lobby.

        Pending prompts and ballots are closed before the state is reset, so
        nothing still in flight can touch the next game.
        """
        logger.info("Game force-ended in phase %s", self.game.phase.value)
        self._shutdown()
        task = self._task
        self._task = None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.game.reset(carry_over=self.game.players)
        clear_game_context()
        await self.notifier.group("🛑 The game has been ended.")

    def _shutdown(self) -> None:
        self.table.clear()
        self.voting.clear_active_sessions()

    async def _abort(self, error: FatalRoundError) -> None:
        logger.error("Fatal error, resetting the table: %s", error, exc_info=error.cause)
        self._shutdown()
        self.game.reset(carry_over=self.game.players)
        clear_game_context()
        await self.notifier.group(
            "⚠️ Something went wrong and the game had to be stopped. Everyone is back in the lobby."
        )

    # ------------------------------------------------------------------
    # Interactions
    # ------------------------------------------------------------------

    def submit_vote(self, voter_id: int, choice: str) -> bool:
        """Route a vote to whichever ballot is open.

        Returns
        -------
            False if no ballot is open

        Raises
        ------
            VoteRejected: if the vote breaks a voting rule

        """
        execution = self.voting.execution
        if execution.status == SessionStatus.OPEN:
            return self.voting.receive_execution_vote(voter_id, execution.session.nominee_id, choice)
        if self.voting.nomination.status == SessionStatus.OPEN:
            try:
                target_id = int(choice)
            except (TypeError, ValueError) as e:
                raise VoteRejected("Pick a player to nominate.") from e
            return self.voting.receive_nomination_vote(voter_id, target_id)
        logger.debug("Vote from %s ignored: no ballot open", voter_id)
        return False

    async def on_response(self, session_key: str, value: str) -> bool:
        """Deliver a prompt response.

        Returns
        -------
            True if the prompt was still live

        Raises
        ------
            ActionRejected: if ``value`` was not one of the prompt's options

        """
        if not self.table.has(session_key):
            logger.debug("Stale response for %s", session_key)
            actor = session_key.rsplit(":", 1)[-1]
            if actor.lstrip("-").isdigit():
                await self.notifier.dm(int(actor), STALE_TEXT)
            return False
        self.collector.check_response(session_key, value)
        return self.table.resolve(session_key, value)

    async def handle_interaction(self, sender_id: int, raw: str) -> bool:
        """Parse and route a raw button press.

        Malformed payloads and rejected votes or actions are answered with a
        notice to the sender; no state changes.
        """
        try:
            interaction = parse_interaction(raw)
            if isinstance(interaction, PromptResponse):
                return await self.on_response(interaction.session_key, interaction.value)
            if interaction.round_number != self.game.round_number:
                raise StaleInteraction(raw)
            if isinstance(interaction, NominationVote):
                return self.voting.receive_nomination_vote(sender_id, interaction.target_id)
            if isinstance(interaction, ExecutionVote):
                return self.voting.receive_execution_vote(
                    sender_id, interaction.nominee_id, interaction.choice
                )
        except StaleInteraction as e:
            logger.debug("%s", e)
            await self.notifier.dm(sender_id, STALE_TEXT)
        except MalformedPayload as e:
            logger.warning("%s", e)
            await self.notifier.dm(sender_id, "❓ That button isn't recognized.")
        except InvariantViolation as e:
            logger.info("Rejected interaction from %s: %s", sender_id, e.reason)
            await self.notifier.dm(sender_id, f"🚫 {e.reason}")
        return False


__all__ = ["PhaseManager", "NightPhaseHandler", "DayPhaseHandler"]
