"""Pytest configuration and fixtures."""

import asyncio
import random

import pytest

from mafiaville.config import GameSettings
from mafiaville.errors import DeliveryError
from mafiaville.game import create_game
from mafiaville.protocols import PromptHandle
from mafiaville.services.notifier import Notifier
from mafiaville.services.pending_actions import PendingActionTable

GROUP = 0
FAST = 0.001


class RecordingTransport:
    """Fake transport that records everything and can answer prompts.

    ``answers`` maps a recipient to a list of values; each prompt sent to
    that recipient pops the next value and presses it on the next loop tick.
    """

    def __init__(self, table=None):
        self.table = table
        self.answers: dict[int, list[str]] = {}
        self.unreachable: set[int] = set()
        self.prompts: list[tuple[int, str, list, str]] = []
        self.edits: list[tuple[PromptHandle, list]] = []
        self.messages: list[tuple[int, str]] = []

    async def send_prompt(self, recipient, text, options, session_key):
        if recipient in self.unreachable:
            raise DeliveryError(recipient, "blocked")
        self.prompts.append((recipient, text, options, session_key))
        queue = self.answers.get(recipient)
        if self.table is not None and queue:
            value = queue.pop(0)
            asyncio.get_running_loop().call_soon(self.table.resolve, session_key, value)
        return PromptHandle(recipient=recipient, message_id=len(self.prompts))

    async def edit_prompt_options(self, handle, options):
        self.edits.append((handle, options))

    async def notify(self, recipient, text):
        if recipient in self.unreachable:
            raise DeliveryError(recipient, "blocked")
        self.messages.append((recipient, text))

    def messages_to(self, recipient) -> list[str]:
        return [text for rid, text in self.messages if rid == recipient]

    def prompts_to(self, recipient) -> list[tuple[int, str, list, str]]:
        return [p for p in self.prompts if p[0] == recipient]

    def option_values(self, recipient, index=-1) -> list[str]:
        return [opt.value for opt in self.prompts_to(recipient)[index][2]]


def run(coro):
    """Drive a coroutine to completion."""
    return asyncio.run(coro)


# Nine seats covering most of the interesting roles.
CLASSIC_TABLE = [
    (1, "Alice", "Godfather"),
    (2, "Bob", "Mafioso"),
    (3, "Carol", "Doctor"),
    (4, "David", "Detective"),
    (5, "Eve", "Vigilante"),
    (6, "Frank", "Mayor"),
    (7, "Grace", "Distractor"),
    (8, "Henry", "Jester"),
    (9, "Iris", "Spy"),
]


@pytest.fixture
def settings():
    return GameSettings()


@pytest.fixture
def make_game(settings):
    """Factory: seat a table with the given (id, name, role) triples."""

    def _make(seats=CLASSIC_TABLE):
        configs = [{"id": pid, "name": name, "role": role} for pid, name, role in seats]
        return create_game(configs, settings=settings, group_id=GROUP, rng=random.Random(0))

    return _make


@pytest.fixture
def game(make_game):
    return make_game()


@pytest.fixture
def table():
    return PendingActionTable()


@pytest.fixture
def transport(table):
    return RecordingTransport(table)


@pytest.fixture
def notifier(transport):
    return Notifier(transport, GROUP)
