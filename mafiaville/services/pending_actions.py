"""Pending action table and the single-resolution primitive.

Every outstanding prompt registers a one-shot callback under a session
key. Whichever comes first, the participant's response or the prompt's
timeout, wins; the loser becomes a no-op. This is what makes late button
presses and presses after a reset harmless.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

SKIP = "skip"

# Session key prefixes
NIGHT_ACTION = "na"
PI_FIRST_STEP = "na_pi1"
MAYOR_REVEAL = "na_mayor"
JAILER_EXECUTE = "na_jailer"
JAILER_DAY = "na_jailer_day"


def make_key(prefix: str, round_number: int, actor_id: int) -> str:
    """Build the session key for one actor's prompt."""
    return f"{prefix}:{round_number}:{actor_id}"


class PendingActionTable:
    """Registry of session key -> one-shot resolver."""

    def __init__(self) -> None:
        self._registry: dict[str, Callable[[Any], Any]] = {}

    def register(self, key: str, resolver: Callable[[Any], Any]) -> None:
        """Store a resolver; a second registration under the same key replaces it."""
        self._registry[key] = resolver

    def resolve(self, key: str, value: Any) -> bool:
        """Pop the resolver for ``key`` and call it with ``value``.

        Returns
        -------
            True if a resolver was found, False if the key is stale

        """
        resolver = self._registry.pop(key, None)
        if resolver is None:
            logger.debug("Stale resolution for %s", key)
            return False
        resolver(value)
        return True

    def deregister(self, key: str) -> None:
        """Drop a resolver without calling it."""
        self._registry.pop(key, None)

    def has(self, key: str) -> bool:
        return key in self._registry

    def clear(self) -> None:
        """Forget every pending resolver."""
        if self._registry:
            logger.debug("Clearing %d pending action(s)", len(self._registry))
        self._registry.clear()

    def __len__(self) -> int:
        return len(self._registry)


class SingleResolution(Generic[T]):
    """A future that settles at most once.

    ``settle`` returns False once the value is set or the wait has expired,
    so the side that loses a resolve-vs-timeout race can tell it lost.
    """

    def __init__(self) -> None:
        self._future: asyncio.Future = asyncio.get_running_loop().create_future()

    @property
    def settled(self) -> bool:
        return self._future.done()

    def settle(self, value: Optional[T]) -> bool:
        """Set the value unless already settled or expired."""
        if self._future.done():
            return False
        self._future.set_result(value)
        return True

    def expire(self) -> bool:
        """Close the resolution without a value."""
        if self._future.done():
            return False
        self._future.cancel()
        return True

    async def wait(self, timeout: Optional[float]) -> tuple[bool, Optional[T]]:
        """Wait for the value or the deadline.

        Returns
        -------
            ``(True, value)`` when settled in time, ``(False, None)`` when the
            deadline passed or the resolution was expired

        """
        try:
            value = await asyncio.wait_for(asyncio.shield(self._future), timeout)
        except asyncio.TimeoutError:
            if not self.expire() and not self._future.cancelled():
                # Settled between the deadline firing and this task resuming.
                return True, self._future.result()
            return False, None
        except asyncio.CancelledError:
            if self._future.cancelled():
                return False, None
            raise
        return True, value
