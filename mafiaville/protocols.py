"""Protocol definitions for the chat transport."""

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class PromptOption:
    """One button on a prompt."""

    label: str
    value: str


@dataclass(frozen=True)
class PromptHandle:
    """Opaque reference to a delivered prompt, used to edit its buttons."""

    recipient: int
    message_id: Any


class Transport(Protocol):
    """What the engine needs from the chat layer.

    Implementations raise ``DeliveryError`` when a participant cannot be
    reached. ``notify`` failures are logged by the caller and never fatal.
    """

    async def send_prompt(
        self,
        recipient: int,
        text: str,
        options: list[PromptOption],
        session_key: str,
    ) -> PromptHandle:
        """Deliver a prompt with buttons.

        Args:
        ----
            recipient: Participant or group id
            text: Prompt text
            options: Buttons to render; pressing one must call back into the
                engine with ``session_key`` and the option's value
            session_key: Key the transport reports responses under

        Returns:
        -------
            A handle that can later be passed to ``edit_prompt_options``

        """
        ...

    async def edit_prompt_options(self, handle: PromptHandle, options: list[PromptOption]) -> None:
        """Replace the buttons on a delivered prompt (empty list disables it)."""
        ...

    async def notify(self, recipient: int, text: str) -> None:
        """Send plain text to a participant or to the group."""
        ...
