"""Vote service for the day's nomination and trial."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from ..errors import DeliveryError, InvariantViolation, VoteRejected
from ..game import GameState
from ..models import ExecutionResult, ExecutionTally, NominationTally
from ..models.voting import GUILTY, INNOCENT, nomination_threshold
from ..protocols import PromptHandle, PromptOption, Transport
from .notifier import Notifier
from .pending_actions import SingleResolution

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    IDLE = "idle"
    OPEN = "open"


class VotingSession:
    """A ballot that ends exactly once."""

    def __init__(self, round_number: int):
        self.round_number = round_number
        self.resolution: SingleResolution = SingleResolution()
        self.ended = False
        self.handle: Optional[PromptHandle] = None

    def end(self, value=None) -> bool:
        """Close the ballot. Returns False if it was already closed."""
        if self.ended:
            return False
        self.ended = True
        self.resolution.settle(value)
        return True


class NominationSession(VotingSession):
    def __init__(self, round_number: int, threshold: int):
        super().__init__(round_number)
        self.tally = NominationTally(threshold=threshold)

    @property
    def session_key(self) -> str:
        return f"vote_nom:{self.round_number}"


class ExecutionSession(VotingSession):
    def __init__(self, round_number: int, nominee_id: int):
        super().__init__(round_number)
        self.tally = ExecutionTally(nominee_id=nominee_id)

    @property
    def nominee_id(self) -> int:
        return self.tally.nominee_id

    @property
    def session_key(self) -> str:
        return f"vote_exec:{self.round_number}:{self.nominee_id}"


S = TypeVar("S", bound=VotingSession)


@dataclass
class SessionSlot(Generic[S]):
    """Holds at most one open session of a kind."""

    session: Optional[S] = None

    @property
    def status(self) -> SessionStatus:
        return SessionStatus.OPEN if self.session is not None else SessionStatus.IDLE

    def open(self, session: S) -> S:
        if self.session is not None:
            raise InvariantViolation("A vote of this kind is already open.")
        self.session = session
        return session

    def close(self, session: S) -> None:
        if self.session is session:
            self.session = None


class VotingEngine:
    """Runs the day's ballots and validates every vote."""

    def __init__(self, game: GameState, transport: Transport, notifier: Notifier, time_scale: float = 1.0):
        self.game = game
        self.transport = transport
        self.notifier = notifier
        self.time_scale = time_scale
        self.nomination: SessionSlot[NominationSession] = SessionSlot()
        self.execution: SessionSlot[ExecutionSession] = SessionSlot()

    @property
    def timeout(self) -> float:
        return self.game.settings.day_time * self.time_scale

    async def _send_ballot(self, session: VotingSession, text: str, options: list[PromptOption]) -> None:
        try:
            session.handle = await self.transport.send_prompt(
                self.game.group_id, text, options, session.session_key
            )
        except DeliveryError as e:
            logger.error("Ballot %s not delivered: %s", session.session_key, e.reason)

    async def _close_ballot(self, session: VotingSession) -> None:
        if session.handle is None:
            return
        try:
            await self.transport.edit_prompt_options(session.handle, [])
        except DeliveryError as e:
            logger.debug("Could not close ballot %s: %s", session.session_key, e.reason)

    def _check_voter(self, voter_id: int) -> None:
        voter = self.game.get_player(voter_id)
        if voter is None or not voter.alive:
            raise VoteRejected("Only living players can vote.")
        if voter.silenced_last_round:
            raise VoteRejected("You were silenced and can't vote today.")

    # ------------------------------------------------------------------
    # Nomination
    # ------------------------------------------------------------------

    async def run_nomination(self) -> Optional[int]:
        """Open the nomination ballot and wait for a nominee.

        Returns
        -------
            The nominee's id, or None if nobody reached the threshold

        """
        game = self.game
        alive = game.get_alive_players()
        threshold = nomination_threshold(len(alive))
        session = self.nomination.open(NominationSession(game.round_number, threshold))
        logger.info("Nomination open, threshold %d of %d alive", threshold, len(alive))

        options = [PromptOption(label=p.name, value=str(p.id)) for p in alive]
        await self._send_ballot(
            session,
            f"🗳 Who should stand trial? {threshold} vote(s) needed to nominate.",
            options,
        )
        try:
            settled, nominee = await session.resolution.wait(self.timeout)
            if not settled and session.end():
                nominee = session.tally.leader(game.vote_weights())
        finally:
            self.nomination.close(session)
            await self._close_ballot(session)

        game.history.add_nomination(game.round_number, nominee)
        logger.info("Nomination closed: %s", game.get_player(nominee) if nominee else "nobody")
        return nominee

    def receive_nomination_vote(self, voter_id: int, target_id: int) -> bool:
        """Record a nomination vote.

        Returns
        -------
            False if no nomination is open (the vote is ignored)

        Raises
        ------
            VoteRejected: if the voter or target is not eligible

        """
        session = self.nomination.session
        if session is None or session.ended:
            logger.debug("Ignoring nomination vote from %s: no open ballot", voter_id)
            return False
        self._check_voter(voter_id)
        if not self.game.is_alive(target_id):
            raise VoteRejected("You can only nominate a living player.")

        session.tally.cast(voter_id, target_id)
        logger.info("%s votes to nominate %s", voter_id, target_id)
        leader = session.tally.leader(self.game.vote_weights())
        if leader is not None:
            session.end(leader)
        return True

    # ------------------------------------------------------------------
    # Trial
    # ------------------------------------------------------------------

    async def run_execution(self, nominee_id: int) -> Optional[ExecutionResult]:
        """Hold the guilty/innocent vote on ``nominee_id`` until the timer ends.

        Returns
        -------
            The tallied result, or None if the ballot was cancelled

        """
        game = self.game
        session = self.execution.open(ExecutionSession(game.round_number, nominee_id))
        nominee = game.get_player(nominee_id)
        await self._send_ballot(
            session,
            f"⚖️ Is {nominee.name if nominee else nominee_id} guilty?",
            [
                PromptOption(label="⚖️ Guilty", value=GUILTY),
                PromptOption(label="🕊 Innocent", value=INNOCENT),
            ],
        )
        result: Optional[ExecutionResult] = None
        try:
            settled, _ = await session.resolution.wait(self.timeout)
            if not settled and session.end():
                result = session.tally.result(game.vote_weights())
        finally:
            self.execution.close(session)
            await self._close_ballot(session)

        if result is not None:
            game.history.add_trial(game.round_number, result)
            logger.info("Trial closed: %r", result)
        return result

    def receive_execution_vote(self, voter_id: int, nominee_id: int, choice: str) -> bool:
        """Record a guilty/innocent vote; the latest vote from a voter wins.

        Raises
        ------
            VoteRejected: if the voter is not eligible

        """
        session = self.execution.session
        if session is None or session.ended or session.nominee_id != nominee_id:
            logger.debug("Ignoring trial vote from %s: no open ballot", voter_id)
            return False
        if choice not in (GUILTY, INNOCENT):
            raise VoteRejected("Vote guilty or innocent.")
        self._check_voter(voter_id)
        if voter_id == nominee_id:
            raise VoteRejected("You can't vote in your own trial.")

        session.tally.cast(voter_id, choice)
        logger.info("%s votes %s", voter_id, choice)
        return True

    def clear_active_sessions(self) -> None:
        """End any open ballot with no result."""
        for slot in (self.nomination, self.execution):
            if slot.session is not None:
                logger.debug("Cancelling %s", slot.session.session_key)
                slot.session.end(None)
