"""Tests for participants, tallies and interaction payloads."""

import pytest

from mafiaville.errors import MalformedPayload, WillError
from mafiaville.models import (
    ExecutionTally,
    ExecutionVote,
    NominationTally,
    NominationVote,
    Participant,
    PromptResponse,
    VoteWeights,
    VotingHistory,
    parse_interaction,
)
from mafiaville.models.voting import GUILTY, INNOCENT, nomination_threshold
from mafiaville.roles import Alignment, Role


class TestParticipant:
    """Test participant flags and the last will."""

    def test_assign(self):
        player = Participant(id=1, name="Alice")
        player.assign(Role.FRAMER)
        assert player.alignment == Alignment.MAFIA

    def test_looks_suspicious(self):
        """Mafia and framed players look suspicious."""
        mafia = Participant(id=1, name="Alice", role=Role.GODFATHER, alignment=Alignment.MAFIA)
        village = Participant(id=2, name="Bob", role=Role.DOCTOR, alignment=Alignment.VILLAGE)
        assert mafia.looks_suspicious()
        assert not village.looks_suspicious()
        village.was_framed = True
        assert village.looks_suspicious()

    def test_will_lines(self):
        player = Participant(id=1, name="Alice")
        player.write_will("  I checked Bob  ")
        player.write_will("Bob is clean")
        assert player.will == ["I checked Bob", "Bob is clean"]
        assert player.erase_will(1) == "I checked Bob"
        assert player.will == ["Bob is clean"]

    def test_will_limits(self):
        player = Participant(id=1, name="Alice")
        with pytest.raises(WillError):
            player.write_will("   ")
        with pytest.raises(WillError, match="300"):
            player.write_will("x" * 301)
        for i in range(20):
            player.write_will(f"line {i}")
        with pytest.raises(WillError, match="20 lines"):
            player.write_will("one too many")

    def test_erase_out_of_range(self):
        player = Participant(id=1, name="Alice")
        with pytest.raises(WillError, match="empty"):
            player.erase_will(1)
        player.write_will("only line")
        with pytest.raises(WillError, match="doesn't exist"):
            player.erase_will(2)

    def test_return_to_lobby(self):
        player = Participant(id=1, name="Alice", is_host=True)
        player.assign(Role.SPY)
        player.alive = False
        player.silenced_last_round = True
        player.write_will("bye")
        player.return_to_lobby()
        assert player.role is None and player.alive and player.is_host
        assert not player.silenced_last_round
        assert player.will == []


class TestNominationTally:
    """Test thresholds and weighted leaders."""

    @pytest.mark.parametrize("alive, needed", [(5, 3), (7, 3), (9, 4), (10, 5), (2, 1)])
    def test_threshold(self, alive, needed):
        assert nomination_threshold(alive) == needed

    def test_latest_vote_wins(self):
        tally = NominationTally(threshold=2)
        assert tally.cast(1, 5) is False
        assert tally.cast(1, 6) is True
        assert tally.counts(VoteWeights()) == {6: 1}

    def test_leader_needs_threshold(self):
        tally = NominationTally(threshold=3)
        tally.cast(1, 5)
        tally.cast(2, 5)
        assert tally.leader(VoteWeights()) is None
        tally.cast(3, 5)
        assert tally.leader(VoteWeights()) == 5

    def test_tie_has_no_leader(self):
        tally = NominationTally(threshold=2)
        for voter, target in [(1, 5), (2, 5), (3, 6), (4, 6)]:
            tally.cast(voter, target)
        assert tally.leader(VoteWeights()) is None

    def test_mayor_counts_double(self):
        """A revealed Mayor's vote alone can break a tie."""
        tally = NominationTally(threshold=2)
        tally.cast(1, 5)
        tally.cast(9, 6)
        assert tally.leader(VoteWeights(mayor_id=9)) == 6


class TestExecutionTally:
    """Test trial results."""

    def test_guilty_majority(self):
        tally = ExecutionTally(nominee_id=5)
        tally.cast(1, GUILTY)
        tally.cast(2, GUILTY)
        tally.cast(3, INNOCENT)
        result = tally.result(VoteWeights())
        assert result.executed
        assert (result.guilty, result.innocent) == (2, 1)
        assert result.guilty_voters == [1, 2]

    def test_tie_acquits(self):
        tally = ExecutionTally(nominee_id=5)
        tally.cast(1, GUILTY)
        tally.cast(2, INNOCENT)
        assert not tally.result(VoteWeights()).executed

    def test_mayor_weight(self):
        tally = ExecutionTally(nominee_id=5)
        tally.cast(1, GUILTY)
        tally.cast(2, INNOCENT)
        result = tally.result(VoteWeights(mayor_id=2))
        assert result.innocent == 2
        assert not result.executed

    def test_history(self):
        history = VotingHistory()
        first = ExecutionTally(nominee_id=5)
        first.cast(1, GUILTY)
        history.add_trial(2, first.result(VoteWeights()))
        history.add_trial(1, ExecutionTally(nominee_id=3).result(VoteWeights()))
        assert history.executed_players() == [5]


class TestPayloads:
    """Test raw interaction parsing."""

    def test_prompt_response(self):
        parsed = parse_interaction("na_pi1:3:42:17")
        assert isinstance(parsed, PromptResponse)
        assert parsed.session_key == "na_pi1:3:42"
        assert parsed.value == "17"

    def test_nomination(self):
        parsed = parse_interaction("vote_nom:2:7")
        assert isinstance(parsed, NominationVote)
        assert (parsed.round_number, parsed.target_id) == (2, 7)

    def test_execution(self):
        parsed = parse_interaction("vote_exec:2:7:guilty")
        assert isinstance(parsed, ExecutionVote)
        assert parsed.choice == "guilty"

    @pytest.mark.parametrize(
        "raw",
        ["", "vote_nom:x:7", "vote_exec:2:7:maybe", "bogus:1:2:3", "na:1", "na:-1:2:3"],
    )
    def test_malformed(self, raw):
        with pytest.raises(MalformedPayload):
            parse_interaction(raw)
