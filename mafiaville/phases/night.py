"""Night phase logic - collection then resolution."""

import logging

from ..formatting import night_header
from ..game import GameState, Phase
from ..logging_setup import set_game_context
from ..models import NightResult
from ..services.collector import ActionCollector
from ..services.notifier import Notifier
from ..services.pending_actions import PendingActionTable
from ..services.resolver import EffectResolver

logger = logging.getLogger(__name__)


class NightPhaseHandler:
    """Handles all night phase logic."""

    def __init__(
        self,
        game: GameState,
        collector: ActionCollector,
        resolver: EffectResolver,
        table: PendingActionTable,
        notifier: Notifier,
    ):
        self.game = game
        self.collector = collector
        self.resolver = resolver
        self.table = table
        self.notifier = notifier

    async def run_night_phase(self) -> NightResult:
        """Prompt every actor, wait for all of them, then resolve once."""
        game = self.game
        game.phase = Phase.NIGHT
        set_game_context(phase=Phase.NIGHT.value, round_number=game.round_number)
        game.dead_this_round = []
        self.table.clear()

        logger.info("Night %d begins with %d alive", game.round_number, len(game.players_alive))
        await self.notifier.group(night_header(game.round_number))

        actions = await self.collector.collect_round()
        logger.info("Collected %d action(s): %s", len(actions), list(actions.values()))
        result = await self.resolver.resolve(actions)
        logger.info("Night %d resolved, %d death(s)", game.round_number, len(result.deaths))
        return result
