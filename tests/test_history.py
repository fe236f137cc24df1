"""
Tests for transaction history (GET /wallet/transactions).

These tests verify:
  - Each party sees the same transfer, labelled from their own side
  - Entries come back newest first
  - limit/offset pagination
  - Users never see transfers they weren't part of
"""

from decimal import Decimal


async def send(client, sender, recipient, amount: str):
    response = await client.post(
        "/wallet/transfer",
        json={"to_wallet_id": recipient["wallet_id"], "amount": amount},
        headers=sender["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestHistory:
    """Tests for GET /wallet/transactions."""

    async def test_debit_and_credit_labels(self, client, register_user):
        alice = await register_user("alice@example.com")
        bob = await register_user("bob@example.com")
        txn = await send(client, alice, bob, "75.50")

        alice_history = (await client.get("/wallet/transactions", headers=alice["headers"])).json()
        bob_history = (await client.get("/wallet/transactions", headers=bob["headers"])).json()

        assert len(alice_history) == 1
        assert len(bob_history) == 1
        assert alice_history[0]["id"] == txn["id"] == bob_history[0]["id"]
        assert alice_history[0]["type"] == "DEBIT"
        assert bob_history[0]["type"] == "CREDIT"
        assert alice_history[0]["amount"] == "75.50"
        assert alice_history[0]["from_wallet_id"] == alice["wallet_id"]
        assert alice_history[0]["to_wallet_id"] == bob["wallet_id"]

    async def test_empty_history(self, client, register_user):
        alice = await register_user("alice@example.com")
        response = await client.get("/wallet/transactions", headers=alice["headers"])
        assert response.status_code == 200
        assert response.json() == []

    async def test_newest_first(self, client, register_user):
        alice = await register_user("alice@example.com")
        bob = await register_user("bob@example.com")
        await send(client, alice, bob, "1.00")
        await send(client, bob, alice, "2.00")
        await send(client, alice, bob, "3.00")

        history = (await client.get("/wallet/transactions", headers=alice["headers"])).json()
        assert [Decimal(item["amount"]) for item in history] == [
            Decimal("3.00"), Decimal("2.00"), Decimal("1.00"),
        ]
        assert [item["type"] for item in history] == ["DEBIT", "CREDIT", "DEBIT"]

    async def test_pagination(self, client, register_user):
        alice = await register_user("alice@example.com")
        bob = await register_user("bob@example.com")
        for amount in ("1.00", "2.00", "3.00", "4.00"):
            await send(client, alice, bob, amount)

        page = await client.get(
            "/wallet/transactions", params={"limit": 2, "offset": 1}, headers=alice["headers"]
        )
        assert page.status_code == 200
        assert [item["amount"] for item in page.json()] == ["3.00", "2.00"]

    async def test_invalid_limit_rejected(self, client, register_user):
        alice = await register_user("alice@example.com")
        response = await client.get(
            "/wallet/transactions", params={"limit": 0}, headers=alice["headers"]
        )
        assert response.status_code == 422

    async def test_unrelated_transfers_hidden(self, client, register_user):
        alice = await register_user("alice@example.com")
        bob = await register_user("bob@example.com")
        carol = await register_user("carol@example.com")
        await send(client, bob, carol, "10.00")

        history = (await client.get("/wallet/transactions", headers=alice["headers"])).json()
        assert history == []

    async def test_failed_transfer_not_in_history(self, client, register_user):
        alice = await register_user("alice@example.com")
        bob = await register_user("bob@example.com")
        await client.post(
            "/wallet/transfer",
            json={"to_wallet_id": bob["wallet_id"], "amount": "99999.00"},
            headers=alice["headers"],
        )

        history = (await client.get("/wallet/transactions", headers=alice["headers"])).json()
        assert history == []

    async def test_history_requires_token(self, client):
        response = await client.get("/wallet/transactions")
        assert response.status_code == 401
