"""Multi-round memory for stateful roles.

Each record lives in the ``RoleStateArena`` owned by the game state, so
nothing role specific hangs off a participant that can change hands
through succession or a reset.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class SilencerState:
    worked_last_night: bool = False
    silenced_so_far: list[int] = field(default_factory=list)
    silencer_id: Optional[int] = None


@dataclass
class DistractorState:
    worked_last_night: bool = False
    distractor_id: Optional[int] = None


@dataclass
class DoctorState:
    last_choice: Optional[int] = None
    doctor_id: Optional[int] = None


@dataclass
class JailerState:
    can_jail: bool = True
    kills_left: int = 1
    last_selection: Optional[int] = None  # tonight's prisoner
    previous_selection: Optional[int] = None
    jailer_id: Optional[int] = None

    def release(self) -> None:
        """Let the current prisoner go."""
        self.last_selection = None


@dataclass
class MayorState:
    revealed: bool = False
    mayor_id: Optional[int] = None


@dataclass
class ExecutionerState:
    target: Optional[int] = None
    is_jester: bool = False
    executioner_id: Optional[int] = None


@dataclass
class BaiterState:
    baited_count: int = 0
    baiter_id: Optional[int] = None


@dataclass
class ArsonistState:
    doused: list[int] = field(default_factory=list)
    arsonist_id: Optional[int] = None


@dataclass
class JesterState:
    jester_id: Optional[int] = None


@dataclass
class RoleStateArena:
    """All role records for one game."""

    silencer: SilencerState = field(default_factory=SilencerState)
    distractor: DistractorState = field(default_factory=DistractorState)
    doctor: DoctorState = field(default_factory=DoctorState)
    jailer: JailerState = field(default_factory=JailerState)
    mayor: MayorState = field(default_factory=MayorState)
    executioner: ExecutionerState = field(default_factory=ExecutionerState)
    baiter: BaiterState = field(default_factory=BaiterState)
    arsonist: ArsonistState = field(default_factory=ArsonistState)
    jester: JesterState = field(default_factory=JesterState)
