"""
Tests for the BalanceNotifier (live balance pushes).

Subscribers here are plain objects with an async send_json(), the same
interface a Starlette WebSocket exposes.
"""

import uuid
from decimal import Decimal

from wallet_service.notifier import BalanceNotifier


class FakeSocket:
    def __init__(self) -> None:
        self.messages: list[dict] = []

    async def send_json(self, data) -> None:
        self.messages.append(data)


class DeadSocket:
    async def send_json(self, data) -> None:
        raise ConnectionError("socket closed")


class TestBalanceNotifier:

    async def test_publish_reaches_subscribers_of_that_wallet(self):
        notifier = BalanceNotifier()
        wallet_id, other_id = uuid.uuid4(), uuid.uuid4()
        first, second, bystander = FakeSocket(), FakeSocket(), FakeSocket()
        notifier.subscribe(wallet_id, first)
        notifier.subscribe(wallet_id, second)
        notifier.subscribe(other_id, bystander)

        notifier.publish(wallet_id, Decimal("800.00"))
        await notifier.wait_idle()

        expected = {"type": "balance", "wallet_id": str(wallet_id), "balance": "800.00"}
        assert first.messages == [expected]
        assert second.messages == [expected]
        assert bystander.messages == []

    async def test_failing_subscriber_is_dropped(self, caplog):
        notifier = BalanceNotifier()
        wallet_id = uuid.uuid4()
        alive, dead = FakeSocket(), DeadSocket()
        notifier.subscribe(wallet_id, dead)
        notifier.subscribe(wallet_id, alive)

        notifier.publish(wallet_id, Decimal("1.00"))
        await notifier.wait_idle()

        assert len(alive.messages) == 1
        assert notifier.subscriber_count(wallet_id) == 1
        assert "Failed to push balance" in caplog.text

    async def test_publish_without_subscribers_is_noop(self):
        notifier = BalanceNotifier()
        notifier.publish(uuid.uuid4(), Decimal("5.00"))
        await notifier.wait_idle()

    def test_publish_outside_event_loop_is_noop(self):
        notifier = BalanceNotifier()
        wallet_id = uuid.uuid4()
        socket = FakeSocket()
        notifier.subscribe(wallet_id, socket)

        notifier.publish(wallet_id, Decimal("5.00"))

        assert socket.messages == []

    async def test_unsubscribe(self):
        notifier = BalanceNotifier()
        wallet_id = uuid.uuid4()
        socket = FakeSocket()
        notifier.subscribe(wallet_id, socket)
        notifier.unsubscribe(wallet_id, socket)
        # Unsubscribing twice is harmless
        notifier.unsubscribe(wallet_id, socket)

        notifier.publish(wallet_id, Decimal("5.00"))
        await notifier.wait_idle()

        assert socket.messages == []
        assert notifier.subscriber_count(wallet_id) == 0

    async def test_successful_transfer_pushes_both_balances(
        self, client, register_user, notifier,
    ):
        alice = await register_user("alice@example.com", "1000.00")
        bob = await register_user("bob@example.com", "1000.00")
        alice_socket, bob_socket = FakeSocket(), FakeSocket()
        notifier.subscribe(uuid.UUID(alice["wallet_id"]), alice_socket)
        notifier.subscribe(uuid.UUID(bob["wallet_id"]), bob_socket)

        response = await client.post(
            "/wallet/transfer",
            json={"to_wallet_id": bob["wallet_id"], "amount": "42.00"},
            headers=alice["headers"],
        )
        assert response.status_code == 201
        await notifier.wait_idle()

        assert alice_socket.messages == [
            {"type": "balance", "wallet_id": alice["wallet_id"], "balance": "958.00"}
        ]
        assert bob_socket.messages == [
            {"type": "balance", "wallet_id": bob["wallet_id"], "balance": "1042.00"}
        ]

    async def test_rejected_transfer_pushes_nothing(self, client, register_user, notifier):
        alice = await register_user("alice@example.com", "1000.00")
        bob = await register_user("bob@example.com", "1000.00")
        alice_socket = FakeSocket()
        notifier.subscribe(uuid.UUID(alice["wallet_id"]), alice_socket)

        response = await client.post(
            "/wallet/transfer",
            json={"to_wallet_id": bob["wallet_id"], "amount": "1000.01"},
            headers=alice["headers"],
        )
        assert response.status_code == 422
        await notifier.wait_idle()

        assert alice_socket.messages == []
