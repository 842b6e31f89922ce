"""Service layer for game logic and state management."""

from .announcement_service import Announcer
from .collector import ActionCollector
from .lobby_service import LobbyService
from .notifier import Notifier
from .pending_actions import PendingActionTable, SingleResolution, make_key
from .resolver import EffectResolver, notify_succession
from .vote_service import ExecutionSession, NominationSession, SessionSlot, SessionStatus, VotingEngine
from .win_service import WinEvaluator, WinResult

__all__ = [
    "ActionCollector",
    "Announcer",
    "EffectResolver",
    "ExecutionSession",
    "LobbyService",
    "NominationSession",
    "Notifier",
    "PendingActionTable",
    "SessionSlot",
    "SessionStatus",
    "SingleResolution",
    "VotingEngine",
    "WinEvaluator",
    "WinResult",
    "make_key",
    "notify_succession",
]
