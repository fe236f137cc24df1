"""
Balance notifier — pushes a wallet's new balance to live subscribers.

Subscribers are keyed by wallet id. In production they are WebSocket
connections opened on /ws/balance; anything with an async
`send_json(message)` method works, which is what the tests rely on.

Delivery is fire-and-forget:
  publish() never awaits a subscriber. It schedules a background task and
  returns immediately, so a slow or dead socket can't hold up the
  transfer that triggered it. A subscriber whose send fails is logged and
  dropped. Nothing is retried and nothing is queued for subscribers that
  connect later; a client reads /wallet/balance when it (re)connects.
"""

import asyncio
import logging
import uuid
from decimal import Decimal
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class BalanceSubscriber(Protocol):
    async def send_json(self, data: Any) -> None: ...


class BalanceNotifier:
    def __init__(self) -> None:
        self._subscribers: dict[uuid.UUID, set[BalanceSubscriber]] = {}
        self._tasks: set[asyncio.Task] = set()

    def subscribe(self, wallet_id: uuid.UUID, subscriber: BalanceSubscriber) -> None:
        self._subscribers.setdefault(wallet_id, set()).add(subscriber)
        logger.debug("Subscriber added for wallet %s", wallet_id)

    def unsubscribe(self, wallet_id: uuid.UUID, subscriber: BalanceSubscriber) -> None:
        subscribers = self._subscribers.get(wallet_id)
        if not subscribers:
            return
        subscribers.discard(subscriber)
        if not subscribers:
            del self._subscribers[wallet_id]
        logger.debug("Subscriber removed for wallet %s", wallet_id)

    def subscriber_count(self, wallet_id: uuid.UUID) -> int:
        return len(self._subscribers.get(wallet_id, ()))

    def publish(self, wallet_id: uuid.UUID, balance: Decimal) -> None:
        """
        Broadcast `balance` to every subscriber of `wallet_id`.

        Returns immediately. Safe to call with no subscribers or outside a
        running event loop (both are no-ops).
        """
        subscribers = list(self._subscribers.get(wallet_id, ()))
        if not subscribers:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; balance update for wallet %s dropped", wallet_id)
            return

        message = {
            "type": "balance",
            "wallet_id": str(wallet_id),
            "balance": str(balance),
        }
        task = loop.create_task(self._deliver(wallet_id, subscribers, message))
        # Keep a strong reference until the task finishes, otherwise the
        # event loop may garbage-collect it mid-flight.
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(
        self,
        wallet_id: uuid.UUID,
        subscribers: list[BalanceSubscriber],
        message: dict,
    ) -> None:
        for subscriber in subscribers:
            try:
                await subscriber.send_json(message)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Failed to push balance to a subscriber of wallet %s", wallet_id)
                self.unsubscribe(wallet_id, subscriber)

    async def wait_idle(self) -> None:
        """Wait for all in-flight deliveries (used on shutdown and in tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


# Process-wide notifier used by the HTTP layer
balance_notifier = BalanceNotifier()
