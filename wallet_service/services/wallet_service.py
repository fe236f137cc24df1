"""
Wallet service — the transfer engine.

THIS IS THE MOST CRITICAL FILE IN THE PROJECT. It handles:
  - Transfers between two wallets (validation, atomic mutation, recording)
  - Balance reads
  - Per-user transaction history with DEBIT/CREDIT labelling

Atomicity:
  The debit, the credit and the Transaction row are written in the
  caller's session and committed together: both wallets change or
  neither does.

Lost updates:
  Balances are never assigned from Python. The debit is a guarded
  `UPDATE ... SET balance_cents = balance_cents - :amount
  WHERE id = :source AND balance_cents >= :amount`; if it matches no row,
  somebody else spent the money first and the transfer is rejected. On top
  of that, transfers touching the same wallet are serialized in-process by
  the WalletLockRegistry, and the wallet rows are read FOR UPDATE (a no-op
  on SQLite, a row lock on PostgreSQL).

Deadlock prevention:
  Both the in-process locks and the FOR UPDATE reads are taken in sorted
  wallet-id order, so A->B and B->A transfers can't wait on each other.

Audit and notification:
  Audit entries are written by the AuditLogger in its own session:
    - success: after commit, one SUCCESS entry per wallet side;
    - rejection: after rolling back, exactly one FAILURE entry for the
      actor, then the error is re-raised.
  New balances are published to the BalanceNotifier after commit. Neither
  side channel can fail a transfer.
"""

import enum
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wallet_service.exceptions import (
    InsufficientBalanceError,
    InvalidRequestError,
    NotFoundError,
    SelfTransferError,
    WalletServiceError,
)
from wallet_service.locks import WalletLockRegistry
from wallet_service.models.audit_log import AuditAction, AuditStatus
from wallet_service.models.transaction import Transaction
from wallet_service.models.user import User
from wallet_service.models.wallet import Wallet
from wallet_service.money import from_cents, to_cents
from wallet_service.notifier import BalanceNotifier
from wallet_service.services.audit_service import AuditActor, AuditLogger

logger = logging.getLogger(__name__)


class TransactionDirection(str, enum.Enum):
    """Direction of a transaction from one user's point of view."""
    DEBIT = "DEBIT"     # money left the user's wallet
    CREDIT = "CREDIT"   # money arrived in the user's wallet


@dataclass(slots=True)
class TransactionView:
    id: uuid.UUID
    from_wallet_id: uuid.UUID
    to_wallet_id: uuid.UUID
    amount: Decimal
    timestamp: datetime
    type: TransactionDirection


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

async def find_wallet_by_user_id(db: AsyncSession, user_id: uuid.UUID) -> Wallet | None:
    result = await db.execute(select(Wallet).where(Wallet.user_id == user_id))
    return result.scalar_one_or_none()


async def _require_own_wallet(db: AsyncSession, actor: User) -> Wallet:
    wallet = await find_wallet_by_user_id(db, actor.id)
    if wallet is None:
        raise NotFoundError(f"No wallet found for user {actor.id}")
    return wallet


async def _lock_wallets(
    db: AsyncSession,
    source_id: uuid.UUID,
    dest_id: uuid.UUID,
) -> tuple[Wallet, Wallet]:
    """
    Re-read both wallets FOR UPDATE, in sorted id order.

    populate_existing makes the query overwrite any copy already sitting in
    the session's identity map. The actor's wallet was loaded before the
    locks were taken and its balance may be stale.
    """
    locked: dict[uuid.UUID, Wallet] = {}
    for wallet_id in sorted([source_id, dest_id]):
        result = await db.execute(
            select(Wallet)
            .where(Wallet.id == wallet_id)
            .with_for_update()  # No-op on SQLite, locks row on PostgreSQL
            .execution_options(populate_existing=True)
        )
        wallet = result.scalar_one_or_none()
        if wallet is None:
            raise NotFoundError(f"Wallet {wallet_id} not found")
        locked[wallet_id] = wallet
    return locked[source_id], locked[dest_id]


# ---------------------------------------------------------------------------
# Transfer
# ---------------------------------------------------------------------------

def _parse_amount(amount: Decimal) -> int:
    amount_cents = to_cents(amount)
    if amount_cents <= 0:
        raise InvalidRequestError("Transfer amount must be greater than zero")
    return amount_cents


@dataclass(slots=True)
class AppliedTransfer:
    """Everything the post-commit steps need, gathered before the commit."""
    txn: Transaction
    source: Wallet
    dest: Wallet
    source_before: int
    dest_before: int
    recipient: AuditActor


async def _apply_transfer(
    db: AsyncSession,
    source_id: uuid.UUID,
    dest_id: uuid.UUID,
    amount_cents: int,
) -> AppliedTransfer:
    """
    Debit, credit and record one transfer inside the caller's transaction.

    Must be called with both wallet locks held. Does not commit.

    The recipient is resolved here as well, so nothing after the commit
    has to read from the store: once the money has moved, the request
    must not fail.
    """
    source, dest = await _lock_wallets(db, source_id, dest_id)
    source_before = source.balance_cents
    dest_before = dest.balance_cents

    if source_before < amount_cents:
        raise InsufficientBalanceError(
            wallet_id=source_id,
            requested=from_cents(amount_cents),
            available=from_cents(source_before),
        )

    debited = await db.execute(
        update(Wallet)
        .where(Wallet.id == source_id)
        .where(Wallet.balance_cents >= amount_cents)
        .values(balance_cents=Wallet.balance_cents - amount_cents)
        .execution_options(synchronize_session=False)
    )
    if debited.rowcount != 1:
        # Another process spent the money between our read and our update
        raise InsufficientBalanceError(
            wallet_id=source_id,
            requested=from_cents(amount_cents),
            available=from_cents(source_before),
        )

    await db.execute(
        update(Wallet)
        .where(Wallet.id == dest_id)
        .values(balance_cents=Wallet.balance_cents + amount_cents)
        .execution_options(synchronize_session=False)
    )

    txn = Transaction(
        from_wallet_id=source_id,
        to_wallet_id=dest_id,
        amount_cents=amount_cents,
    )
    db.add(txn)
    await db.flush()

    recipient = await db.execute(select(User.id, User.email).where(User.id == dest.user_id))
    recipient_id, recipient_email = recipient.one()

    await db.refresh(source)
    await db.refresh(dest)
    return AppliedTransfer(
        txn=txn,
        source=source,
        dest=dest,
        source_before=source_before,
        dest_before=dest_before,
        recipient=AuditActor(id=recipient_id, email=recipient_email),
    )


def _publish(notifier: BalanceNotifier, wallet_id: uuid.UUID, balance: Decimal) -> None:
    try:
        notifier.publish(wallet_id, balance)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Balance notification for wallet %s failed", wallet_id)


async def transfer(
    db: AsyncSession,
    actor: User,
    to_wallet_id: uuid.UUID,
    amount: Decimal,
    *,
    audit: AuditLogger,
    notifier: BalanceNotifier,
    locks: WalletLockRegistry,
) -> Transaction:
    """
    Move `amount` from the actor's wallet to `to_wallet_id`.

    Commits the caller's session on success. On any rejection the session
    is rolled back, one FAILURE audit entry is written for the actor, and
    the error propagates.

    Args:
        db: The request's database session.
        actor: The authenticated user sending the money.
        to_wallet_id: The receiving wallet.
        amount: Positive amount with at most two decimal places.
        audit: Where audit entries go (its own sessions, never `db`).
        notifier: Receives each wallet's new balance after commit.
        locks: In-process per-wallet locks.

    Returns:
        The created Transaction.

    Raises:
        InvalidRequestError: If the amount is zero, negative or sub-cent.
        NotFoundError: If the actor has no wallet or the destination doesn't exist.
        SelfTransferError: If the destination is the actor's own wallet.
        InsufficientBalanceError: If the actor's balance is below `amount`.
    """
    who = AuditActor.of(actor)
    observed_balance: Decimal | None = None

    try:
        amount_cents = _parse_amount(amount)

        own = await _require_own_wallet(db, actor)
        observed_balance = own.balance
        if own.id == to_wallet_id:
            raise SelfTransferError(own.id)

        async with locks.acquire(own.id, to_wallet_id):
            try:
                applied = await _apply_transfer(db, own.id, to_wallet_id, amount_cents)
                await db.commit()
            except Exception:
                # Release the database write lock before the wallet locks
                await db.rollback()
                raise

    except WalletServiceError as exc:
        await db.rollback()
        if isinstance(exc, InsufficientBalanceError):
            observed_balance = exc.available
        logger.warning(
            "Transfer rejected: user=%s to_wallet=%s amount=%s reason=%s",
            who.id, to_wallet_id, amount, exc.detail,
        )
        await audit.log(who, AuditAction.TRANSFER, AuditStatus.FAILURE, old_balance=observed_balance)
        raise

    txn, source, dest = applied.txn, applied.source, applied.dest
    logger.info(
        "Transfer %s: %s from wallet %s to wallet %s",
        txn.id, txn.amount, source.id, dest.id,
    )

    await audit.log(
        who, AuditAction.TRANSFER, AuditStatus.SUCCESS,
        old_balance=from_cents(applied.source_before), new_balance=source.balance,
    )
    await audit.log(
        applied.recipient, AuditAction.TRANSFER, AuditStatus.SUCCESS,
        old_balance=from_cents(applied.dest_before), new_balance=dest.balance,
    )

    _publish(notifier, source.id, source.balance)
    _publish(notifier, dest.id, dest.balance)

    return txn


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_balance(db: AsyncSession, actor: User) -> Wallet:
    """
    Return the actor's wallet (id + current balance).

    Raises:
        NotFoundError: If the actor has no wallet.
    """
    return await _require_own_wallet(db, actor)


async def get_history(
    db: AsyncSession,
    actor: User,
    limit: int | None = None,
    offset: int = 0,
) -> list[TransactionView]:
    """
    List every transfer the actor's wallet took part in, newest first.

    Each entry is labelled from the actor's point of view: DEBIT when the
    actor's wallet is the source, CREDIT when it is the destination.

    Raises:
        NotFoundError: If the actor has no wallet.
    """
    wallet = await _require_own_wallet(db, actor)

    query = (
        select(Transaction)
        .where(
            (Transaction.from_wallet_id == wallet.id)
            | (Transaction.to_wallet_id == wallet.id)
        )
        .order_by(Transaction.created_at.desc())
        .offset(offset)
    )
    if limit is not None:
        query = query.limit(limit)

    result = await db.execute(query)
    return [
        TransactionView(
            id=txn.id,
            from_wallet_id=txn.from_wallet_id,
            to_wallet_id=txn.to_wallet_id,
            amount=txn.amount,
            timestamp=txn.created_at,
            type=(
                TransactionDirection.DEBIT
                if txn.from_wallet_id == wallet.id
                else TransactionDirection.CREDIT
            ),
        )
        for txn in result.scalars().all()
    ]
