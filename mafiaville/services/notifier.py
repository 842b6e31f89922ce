"""Best-effort message delivery."""

import logging

from ..errors import DeliveryError
from ..protocols import Transport

logger = logging.getLogger(__name__)


class Notifier:
    """Sends plain messages; an unreachable participant is logged, never fatal."""

    def __init__(self, transport: Transport, group_id: int = 0):
        self.transport = transport
        self.group_id = group_id

    async def dm(self, recipient: int, text: str) -> bool:
        """Message one participant. Returns False if delivery failed."""
        try:
            await self.transport.notify(recipient, text)
        except DeliveryError as e:
            logger.warning("Could not message %s: %s", recipient, e.reason)
            return False
        return True

    async def group(self, text: str) -> bool:
        """Message the whole table."""
        try:
            await self.transport.notify(self.group_id, text)
        except DeliveryError as e:
            logger.error("Failed to send to group chat: %s (%s)", text[:80], e.reason)
            return False
        return True
