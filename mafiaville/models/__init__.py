"""Data models for participants, role memory, actions and votes."""

from .actions import ActionKind, DayResult, DeathCause, EventLogEntry, NightResult, RoundAction
from .participant import MAX_WILL_LINE_LENGTH, MAX_WILL_LINES, Participant
from .payloads import ExecutionVote, NominationVote, PromptResponse, parse_interaction
from .role_state import RoleStateArena
from .voting import ExecutionResult, ExecutionTally, NominationTally, VoteWeights, VotingHistory

__all__ = [
    "ActionKind",
    "DeathCause",
    "RoundAction",
    "EventLogEntry",
    "NightResult",
    "DayResult",
    "Participant",
    "MAX_WILL_LINES",
    "MAX_WILL_LINE_LENGTH",
    "RoleStateArena",
    "PromptResponse",
    "NominationVote",
    "ExecutionVote",
    "parse_interaction",
    "NominationTally",
    "ExecutionTally",
    "ExecutionResult",
    "VoteWeights",
    "VotingHistory",
]
