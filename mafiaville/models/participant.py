"""Participant model."""

from dataclasses import dataclass, field
from typing import Optional

from ..errors import WillError
from ..roles import Alignment, Role

MAX_WILL_LINES = 20
MAX_WILL_LINE_LENGTH = 300


@dataclass
class Participant:
    """A seated player and their per-round flags."""

    id: int
    name: str
    role: Optional[Role] = None
    alignment: Optional[Alignment] = None
    alive: bool = True
    is_host: bool = False
    will: list[str] = field(default_factory=list)

    # Transient flags, owned by the resolver and the day phase
    silenced_this_round: bool = False
    silenced_last_round: bool = False
    distracted: bool = False
    was_framed: bool = False

    def assign(self, role: Role) -> None:
        """Deal a role to this participant."""
        self.role = role
        self.alignment = role.alignment

    def looks_suspicious(self) -> bool:
        """How the participant appears to investigators tonight."""
        return self.alignment == Alignment.MAFIA or self.was_framed

    def write_will(self, text: str) -> list[str]:
        """Append a line to the last will and return the whole will."""
        text = text.strip()
        if not text:
            raise WillError("Your will line is empty.")
        if len(text) > MAX_WILL_LINE_LENGTH:
            raise WillError(
                f"Keep each line under {MAX_WILL_LINE_LENGTH} characters. "
                f"Your line was {len(text)} characters."
            )
        if len(self.will) >= MAX_WILL_LINES:
            raise WillError(
                f"Your will already has {MAX_WILL_LINES} lines. Erase a line first."
            )
        self.will.append(text)
        return list(self.will)

    def erase_will(self, line_number: int) -> str:
        """Remove a 1-based line from the will and return it."""
        if not self.will:
            raise WillError("Your last will is already empty.")
        if line_number < 1 or line_number > len(self.will):
            raise WillError(
                f"Line {line_number} doesn't exist. Your will has {len(self.will)} line(s)."
            )
        return self.will.pop(line_number - 1)

    def clear_round_flags(self) -> None:
        """Drop every transient per-round flag."""
        self.silenced_this_round = False
        self.silenced_last_round = False
        self.distracted = False
        self.was_framed = False

    def return_to_lobby(self) -> None:
        """Keep identity and host badge; forget everything game related."""
        self.role = None
        self.alignment = None
        self.alive = True
        self.clear_round_flags()
        self.will.clear()

    def __repr__(self) -> str:
        status = "alive" if self.alive else "dead"
        role = self.role.value if self.role else "no role"
        return f"Participant({self.name}, {role}, {status})"
