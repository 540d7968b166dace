"""
Realtime notifier interface.
Broadcasts are best effort: callers must not depend on delivery.
"""

from abc import ABC, abstractmethod

from app.core.logging import get_logger

logger = get_logger(__name__)

INVENTORY_CHANGED = "inventory-changed"
CATALOG_CHANGED = "catalog-changed"
STATS_CHANGED = "stats-changed"


def inventory_changed_message(event_id: int, available_seats: int) -> dict:
    return {
        "type": INVENTORY_CHANGED,
        "event_id": event_id,
        "available_seats": available_seats,
        "sold_out": available_seats <= 0,
    }


def catalog_changed_message() -> dict:
    return {"type": CATALOG_CHANGED}


def stats_changed_message() -> dict:
    return {"type": STATS_CHANGED}


class Notifier(ABC):
    """
    Interface for pushing changes to connected clients.

    Implementations:
    - ConnectionManager: fan-out to WebSockets held by this process
    - RealtimeNotifier: Redis pub/sub across processes, local fallback

    The named helpers (inventory_changed, catalog_changed, stats_changed)
    never raise: a failed publish is logged and dropped, so callers that
    have already committed are not turned into errors.
    """

    @abstractmethod
    async def publish(self, message: dict) -> None:
        """Send a message to every connected client."""
        pass

    async def _deliver(self, message: dict) -> None:
        try:
            await self.publish(message)
        except Exception as e:
            logger.warning(
                "notify_failed",
                message_type=message["type"],
                error=str(e),
                error_type=type(e).__name__,
            )

    async def inventory_changed(self, event_id: int, available_seats: int) -> None:
        await self._deliver(inventory_changed_message(event_id, available_seats))

    async def catalog_changed(self) -> None:
        await self._deliver(catalog_changed_message())

    async def stats_changed(self) -> None:
        """Admin dashboards re-fetch their totals."""
        await self._deliver(stats_changed_message())
