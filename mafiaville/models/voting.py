"""Vote tallies, results and history."""

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Literal, Optional

GUILTY = "guilty"
INNOCENT = "innocent"

ExecutionChoice = Literal["guilty", "innocent"]

NOMINATION_DIVISOR = 2.4


def nomination_threshold(alive_count: int) -> int:
    """Votes a target needs to be nominated."""
    return math.ceil(alive_count / NOMINATION_DIVISOR)


@dataclass
class VoteWeights:
    """Who counts double in today's tallies."""

    mayor_id: Optional[int] = None

    def weight_of(self, voter_id: int) -> int:
        return 2 if self.mayor_id is not None and voter_id == self.mayor_id else 1


@dataclass
class NominationTally:
    """Voter -> target map for the nomination vote (latest vote wins)."""

    threshold: int
    votes: dict[int, int] = field(default_factory=dict)

    def cast(self, voter_id: int, target_id: int) -> bool:
        """Record a vote. Returns True if it replaced an earlier one."""
        changed = voter_id in self.votes
        self.votes[voter_id] = target_id
        return changed

    def counts(self, weights: VoteWeights) -> Counter:
        counts: Counter = Counter()
        for voter_id, target_id in self.votes.items():
            counts[target_id] += weights.weight_of(voter_id)
        return counts

    def leader(self, weights: VoteWeights) -> Optional[int]:
        """The unique top target at or above the threshold, if any."""
        counts = self.counts(weights)
        if not counts:
            return None
        top = max(counts.values())
        leaders = [target for target, count in counts.items() if count == top]
        if len(leaders) > 1 or top < self.threshold:
            return None
        return leaders[0]


@dataclass
class ExecutionResult:
    """Result of a guilty/innocent vote."""

    nominee_id: int
    executed: bool = False
    guilty: int = 0
    innocent: int = 0
    guilty_voters: list[int] = field(default_factory=list)
    innocent_voters: list[int] = field(default_factory=list)

    def __repr__(self) -> str:
        verdict = "executed" if self.executed else "acquitted"
        return f"ExecutionResult({self.nominee_id} {verdict}, {self.guilty}-{self.innocent})"


@dataclass
class ExecutionTally:
    """Voter -> guilty/innocent map for the trial of one nominee."""

    nominee_id: int
    votes: dict[int, str] = field(default_factory=dict)

    def cast(self, voter_id: int, choice: str) -> None:
        self.votes[voter_id] = choice

    def result(self, weights: VoteWeights) -> ExecutionResult:
        """Tally the trial. Ties acquit."""
        result = ExecutionResult(nominee_id=self.nominee_id)
        for voter_id, choice in self.votes.items():
            weight = weights.weight_of(voter_id)
            if choice == GUILTY:
                result.guilty += weight
                result.guilty_voters.append(voter_id)
            else:
                result.innocent += weight
                result.innocent_voters.append(voter_id)
        result.executed = result.guilty > result.innocent
        return result


class VotingHistory:
    """Track day results across the game."""

    def __init__(self):
        self.nominations: dict[int, Optional[int]] = {}
        self.trials: dict[int, ExecutionResult] = {}

    def add_nomination(self, round_number: int, nominee_id: Optional[int]):
        self.nominations[round_number] = nominee_id

    def add_trial(self, round_number: int, result: ExecutionResult):
        self.trials[round_number] = result

    def executed_players(self) -> list[int]:
        """Ids of everyone the town has executed, in order."""
        return [r.nominee_id for _, r in sorted(self.trials.items()) if r.executed]

    def clear(self):
        self.nominations.clear()
        self.trials.clear()
