"""
Audit service — best-effort, isolated append to the audit trail.

Isolation:
  AuditLogger never touches the caller's session. Every log() call opens a
  fresh session from its own session factory, inserts one row and commits
  it. That gives two guarantees in both directions:
    - an audit write that fails can't roll back a transfer that already
      committed;
    - a transfer that fails can't take its audit entry down with it. The
      FAILURE row is committed even though the request session rolls back.

Best effort:
  Any exception while writing (database down, constraint violation, bad
  input) is logged for operators and swallowed. log() returns None in that
  case so tests can tell, but callers never need to check.
"""

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wallet_service.database import AsyncSessionLocal
from wallet_service.models.audit_log import AuditLog, AuditAction, AuditStatus, UNKNOWN_USERNAME
from wallet_service.models.user import User
from wallet_service.money import to_cents

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AuditActor:
    """
    Detached copy of the fields an audit entry needs from a User.

    Rolling back a session expires every ORM object in it, and an expired
    attribute can't be lazy-loaded in async code. Callers that log after a
    rollback take this snapshot first.
    """
    id: uuid.UUID
    email: str

    @classmethod
    def of(cls, user: User) -> "AuditActor":
        return cls(id=user.id, email=user.email)


class AuditLogger:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def log(
        self,
        user: User | AuditActor | None,
        action: AuditAction,
        status: AuditStatus,
        old_balance: Decimal | None = None,
        new_balance: Decimal | None = None,
    ) -> AuditLog | None:
        """
        Append one audit entry in its own transaction.

        Args:
            user: The actor, or None when it couldn't be resolved (the
                  entry is then recorded as "Unknown").
            action: What was attempted.
            status: SUCCESS or FAILURE.
            old_balance: Balance before the event, if it touched one.
            new_balance: Balance after the event, if it changed one.

        Returns:
            The persisted entry, or None if the write failed.
        """
        try:
            entry = AuditLog(
                user_id=user.id if user is not None else None,
                username=user.email if user is not None else UNKNOWN_USERNAME,
                action_type=AuditAction(action).value,
                status=AuditStatus(status).value,
                old_balance_cents=to_cents(old_balance) if old_balance is not None else None,
                new_balance_cents=to_cents(new_balance) if new_balance is not None else None,
            )
            async with self.session_factory() as session:
                async with session.begin():
                    session.add(entry)
            return entry
        except Exception:  # pylint: disable=broad-except
            logger.exception(
                "Failed to write audit log (action=%s, status=%s)", action, status
            )
            return None


async def list_for_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    limit: int = 50,
    offset: int = 0,
) -> list[AuditLog]:
    """List a user's audit entries, newest first."""
    result = await db.execute(
        select(AuditLog)
        .where(AuditLog.user_id == user_id)
        .order_by(AuditLog.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


# Process-wide logger bound to the application's database
audit_logger = AuditLogger(AsyncSessionLocal)
