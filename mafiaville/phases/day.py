"""Day phase logic - announcements, nomination and trial."""

import asyncio
import logging
from typing import Optional

from ..game import GameState, Phase
from ..logging_setup import set_game_context
from ..models import DayResult, NightResult
from ..roles import Alignment, Role
from ..services.announcement_service import Announcer
from ..services.collector import ActionCollector
from ..services.notifier import Notifier
from ..services.resolver import notify_succession
from ..services.vote_service import VotingEngine
from ..services.win_service import WinEvaluator, WinResult

logger = logging.getLogger(__name__)


class DayPhaseHandler:
    """Handles all day phase logic."""

    def __init__(
        self,
        game: GameState,
        collector: ActionCollector,
        voting: VotingEngine,
        win: WinEvaluator,
        announcer: Announcer,
        notifier: Notifier,
        time_scale: float = 1.0,
    ):
        self.game = game
        self.collector = collector
        self.voting = voting
        self.win = win
        self.announcer = announcer
        self.notifier = notifier
        self.time_scale = time_scale
        self.last_result: Optional[DayResult] = None

    def start_day(self) -> None:
        """Enter the day and roll the per-round flags over."""
        game = self.game
        game.phase = Phase.DAY
        set_game_context(phase=Phase.DAY.value, round_number=game.round_number)
        for player in game.players.values():
            player.was_framed = False
            player.silenced_last_round = False
            if player.silenced_this_round:
                player.silenced_this_round = False
                player.silenced_last_round = True

    async def run_day_phase(self, night: NightResult) -> WinResult:
        """Execute the day: results, attendance, nomination, trial.

        Args:
        ----
            night: What the preceding night produced

        Returns:
        -------
            The last win check of the day

        """
        game = self.game
        self.start_day()
        self.last_result = DayResult(round_number=game.round_number)

        await self.announcer.night_results(night)
        win = await self.win.check_win(None, False)
        if win.game_over:
            return win

        jailer_task = self._start_jailer_prompt()
        try:
            await self.announcer.attendance()
            executed_id = await self._hold_vote()
            if executed_id is not None:
                win = await self.win.check_win(executed_id, True)
            if jailer_task is not None and not win.game_over:
                await jailer_task
        finally:
            if jailer_task is not None and not jailer_task.done():
                jailer_task.cancel()

        if not win.game_over and not game.players_alive:
            logger.info("Nobody is left alive, the Village wins by default")
            win = WinResult(winner=Alignment.VILLAGE.value, game_over=True, co_winners=win.co_winners)
        return win

    def _start_jailer_prompt(self) -> Optional[asyncio.Task]:
        jailer = self.game.player_with_role(Role.JAILER)
        if jailer is None or not jailer.alive:
            self.game.role_state.jailer.release()
            return None
        return asyncio.create_task(self.collector.collect_jailer_day(jailer.id))

    async def _hold_vote(self) -> Optional[int]:
        """Nomination, defence and trial. Returns who was executed, if anyone."""
        game = self.game
        nominee_id = await self.voting.run_nomination()
        self.last_result.nominee = nominee_id
        await self.announcer.nomination_result(nominee_id)
        if nominee_id is None:
            return None

        await asyncio.sleep(game.settings.voting_time * self.time_scale)
        result = await self.voting.run_execution(nominee_id)
        if result is None:
            return None

        self.last_result.executed = result.executed
        self.last_result.guilty_voters = list(result.guilty_voters)
        self.last_result.innocent_voters = list(result.innocent_voters)
        nominee = game.players[nominee_id]
        if result.executed and game.kill(nominee_id):
            logger.info("%s executed by the town", nominee.name)
            await notify_succession(game, self.notifier, nominee)
        await self.announcer.execution_result(result)
        return nominee_id if result.executed else None
