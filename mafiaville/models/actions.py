"""Night action and event log models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ActionKind(str, Enum):
    """What a collected night action does."""

    DISTRACT = "distract"
    EXECUTE = "execute"
    FRAME = "frame"
    SILENCE = "silence"
    KILL = "kill"
    KILL_VIGIL = "kill-vigil"
    CHECK = "check"
    PI_CHECK = "pi-check"
    SPY_CHECK = "spy-check"
    HEAL = "heal"
    MAYOR_REVEAL = "mayor-reveal"
    DOUSE = "douse"
    IGNITE = "ignite"
    BAITED = "baited"


class DeathCause(str, Enum):
    """Cause tag of an event log entry."""

    MAFIA = "Mafia"
    SILENCER = "Silencer"
    DOCTOR = "Doctor"
    VIGILANTE = "Vigilante"
    VIGILANTE_GUILT = "Vigilante-guilt"
    MAYOR = "Mayor"
    ARSONIST = "Arsonist"
    BAITER = "Baiter"
    JAILER = "Jailer"


@dataclass
class RoundAction:
    """One participant's action for a night."""

    actor_id: int
    kind: ActionKind
    target: Optional[int] = None
    targets: tuple[int, ...] = ()  # paired investigations

    def __repr__(self) -> str:
        aim = self.targets or self.target
        return f"RoundAction({self.kind.value} by {self.actor_id} on {aim})"


@dataclass
class EventLogEntry:
    """Something that happened tonight, for the morning announcements."""

    subject_id: int
    cause: DeathCause
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class NightResult:
    """What a resolved night produced."""

    round_number: int
    actions: dict = field(default_factory=dict)  # Role -> RoundAction
    events: list[EventLogEntry] = field(default_factory=list)
    deaths: list[int] = field(default_factory=list)


@dataclass
class DayResult:
    """Outcome of a day's voting."""

    round_number: int
    nominee: Optional[int] = None
    executed: bool = False
    guilty_voters: list[int] = field(default_factory=list)
    innocent_voters: list[int] = field(default_factory=list)
