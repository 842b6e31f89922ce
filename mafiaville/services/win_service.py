"""Win condition evaluation."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..game import GameState
from ..roles import Alignment, Role
from .notifier import Notifier

logger = logging.getLogger(__name__)


@dataclass
class WinResult:
    """Outcome of a win check."""

    winner: Optional[str] = None  # "Mafia", "Village" or a neutral role name
    game_over: bool = False
    exclusive_role: Optional[Role] = None
    co_winners: list[int] = field(default_factory=list)

    @classmethod
    def exclusive(cls, role: Role, co_winners: list[int]) -> "WinResult":
        return cls(winner=role.value, game_over=True, exclusive_role=role, co_winners=co_winners)


class WinEvaluator:
    """Checks neutral and faction win conditions after each death window."""

    def __init__(self, game: GameState, notifier: Notifier):
        self.game = game
        self.notifier = notifier

    async def check_win(self, dead_id: Optional[int], after_vote: bool) -> WinResult:
        """Evaluate every win condition.

        Args:
        ----
            dead_id: Who the town just executed, if anyone
            after_vote: True when called right after the day's trial

        Returns:
        -------
            WinResult; ``game_over`` is False while nobody has won

        """
        game = self.game
        co_winners = self._co_winners()
        lynched = dead_id if after_vote else None

        jester_id = game.role_state.jester.jester_id
        if lynched is not None and lynched == jester_id:
            logger.info("Jester lynched")
            return WinResult.exclusive(Role.JESTER, co_winners)

        executioner_win = await self._check_executioner(lynched, after_vote)
        if executioner_win:
            return WinResult.exclusive(Role.EXECUTIONER, co_winners)

        arsonist_id = game.role_state.arsonist.arsonist_id
        alive = game.get_alive_players()
        if arsonist_id is not None and len(alive) == 1 and alive[0].id == arsonist_id:
            logger.info("Arsonist is the last one standing")
            return WinResult.exclusive(Role.ARSONIST, co_winners)

        mafia = len(game.get_alive_by_alignment(Alignment.MAFIA))
        others = len(alive) - mafia
        if mafia >= others:
            return WinResult(winner=Alignment.MAFIA.value, game_over=True, co_winners=co_winners)
        if mafia == 0:
            return WinResult(winner=Alignment.VILLAGE.value, game_over=True, co_winners=co_winners)
        return WinResult(co_winners=co_winners)

    def _co_winners(self) -> list[int]:
        state = self.game.role_state.baiter
        if state.baiter_id is not None and state.baited_count >= 3 and self.game.is_alive(state.baiter_id):
            return [state.baiter_id]
        return []

    async def _check_executioner(self, lynched: Optional[int], after_vote: bool) -> bool:
        state = self.game.role_state.executioner
        if state.executioner_id is None:
            return False

        if not state.is_jester:
            if state.target is not None and not after_vote and not self.game.is_alive(state.target):
                state.is_jester = True
                logger.info("Executioner's target died at night, executioner becomes a jester")
                await self.notifier.dm(
                    state.executioner_id,
                    "🎭 Your target died without being executed. You are now a Jester: "
                    "get yourself executed to win!",
                )
                return False
            return lynched is not None and lynched == state.target

        return lynched is not None and lynched == state.executioner_id
