"""
Test fixtures for the Wallet Service test suite.

This module provides shared fixtures used across all test files:

  - db_engine / session_factory / db_session: a fresh SQLite database per test
  - audit_logger: AuditLogger writing to the test database
  - notifier: BalanceNotifier that records every publish() call
  - locks: a fresh WalletLockRegistry
  - client: Async HTTP test client with all of the above injected
  - register_user: registers a user over HTTP and logs them in
  - audit_entries: reads the audit trail straight from the database

Key design decisions:
  - The database is a file in tmp_path, not an in-memory SQLite. Audit
    entries are written through their own sessions, and only a file-backed
    database gives every session its own connection — the isolation we
    want to test.
  - We override FastAPI's dependencies to inject the test session and the
    test collaborators, so the application code runs exactly as it does in
    production.
"""

import os

# Settings() requires SECRET_KEY; set it before anything imports the app.
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

import uuid
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from wallet_service.database import Base, get_db
from wallet_service.dependencies import get_audit_logger, get_balance_notifier, get_wallet_locks
from wallet_service.locks import WalletLockRegistry
from wallet_service.main import app
from wallet_service.models.audit_log import AuditLog
from wallet_service.models.wallet import Wallet
from wallet_service.money import to_cents
from wallet_service.notifier import BalanceNotifier
from wallet_service.services.audit_service import AuditLogger


class RecordingNotifier(BalanceNotifier):
    """BalanceNotifier that remembers every publish() call."""

    def __init__(self) -> None:
        super().__init__()
        self.published: list[tuple[uuid.UUID, Decimal]] = []

    def publish(self, wallet_id: uuid.UUID, balance: Decimal) -> None:
        self.published.append((wallet_id, balance))
        super().publish(wallet_id, balance)


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Create a fresh async engine with all tables for each test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'wallet_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Provide an async session bound to the test engine."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def audit_logger(session_factory):
    return AuditLogger(session_factory)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def locks():
    return WalletLockRegistry()


@pytest_asyncio.fixture
async def client(session_factory, audit_logger, notifier, locks):
    """
    Async HTTP test client with the test database and collaborators injected.
    """

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_audit_logger] = lambda: audit_logger
    app.dependency_overrides[get_balance_notifier] = lambda: notifier
    app.dependency_overrides[get_wallet_locks] = lambda: locks

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def register_user(client):
    """
    Register a user over HTTP and log them in.

    Returns an async function:
        user = await register_user("alice@example.com", "1000.00")
        user["headers"], user["wallet_id"], user["user_id"]
    """

    async def _register(email: str, initial_balance: str = "1000.00", password: str = "SecurePass123!"):
        response = await client.post(
            "/auth/register",
            json={
                "name": email.split("@")[0].title(),
                "email": email,
                "password": password,
                "initial_balance": initial_balance,
            },
        )
        assert response.status_code == 201, f"Register failed: {response.text}"
        data = response.json()

        login = await client.post("/auth/login", json={"email": email, "password": password})
        assert login.status_code == 200, f"Login failed: {login.text}"

        return {
            "user_id": data["user_id"],
            "wallet_id": data["wallet_id"],
            "headers": {"Authorization": f"Bearer {login.json()['token']}"},
        }

    return _register


@pytest.fixture
def set_balance(session_factory):
    """
    Overwrite a wallet's balance directly in the database.

    Registration enforces a minimum opening balance, so scenarios that
    need a poorer wallet set it up here, the way an operator would.
    """

    async def _set(wallet_id, balance: str) -> None:
        async with session_factory() as session:
            await session.execute(
                update(Wallet)
                .where(Wallet.id == uuid.UUID(str(wallet_id)))
                .values(balance_cents=to_cents(Decimal(balance)))
            )
            await session.commit()

    return _set


@pytest.fixture
def audit_entries(session_factory):
    """Read audit entries straight from the database, oldest first."""

    async def _entries(action: str | None = None, status: str | None = None) -> list[AuditLog]:
        query = select(AuditLog).order_by(AuditLog.created_at)
        if action:
            query = query.where(AuditLog.action_type == action)
        if status:
            query = query.where(AuditLog.status == status)
        async with session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    return _entries


@pytest.fixture
def wallet_balance(session_factory):
    """Read a wallet's balance straight from the database."""

    async def _balance(wallet_id) -> Decimal:
        async with session_factory() as session:
            wallet = await session.get(Wallet, uuid.UUID(str(wallet_id)))
            return wallet.balance

    return _balance
