"""Exception hierarchy for the game engine.

The engine recovers locally from delivery failures, stale interactions,
malformed payloads and rejected votes or actions. Only a
``FatalRoundError`` is surfaced to the operator and the group.
"""


class MafiavilleError(Exception):
    """Base class for all game errors."""


class DeliveryError(MafiavilleError):
    """The transport could not reach a participant."""

    def __init__(self, recipient: int, reason: str = "unreachable"):
        super().__init__(f"Could not deliver to {recipient}: {reason}")
        self.recipient = recipient
        self.reason = reason


class StaleInteraction(MafiavilleError):
    """A response arrived for a prompt that is no longer live."""

    def __init__(self, key: str):
        super().__init__(f"No pending action for key {key!r}")
        self.key = key


class MalformedPayload(MafiavilleError):
    """A raw interaction payload failed validation."""


class InvariantViolation(MafiavilleError):
    """An interaction would break a game rule and was rejected."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class VoteRejected(InvariantViolation):
    """A vote was refused (dead or silenced voter, ineligible target...)."""


class ActionRejected(InvariantViolation):
    """A night action response was refused."""


class LobbyError(MafiavilleError):
    """A lobby command was refused."""


class WillError(LobbyError):
    """A last-will edit was refused."""


class SetupError(LobbyError):
    """Dealing roles failed and the setup was rolled back."""


class FatalRoundError(MafiavilleError):
    """An uncaught exception aborted a round."""

    def __init__(self, round_number: int, cause: BaseException):
        super().__init__(f"Round {round_number} aborted: {cause!r}")
        self.round_number = round_number
        self.cause = cause
