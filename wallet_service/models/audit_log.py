"""
AuditLog model — append-only record of an action's outcome.

One row per logged event: registrations, logins (successful or not) and
both sides of every transfer, plus one row per rejected transfer.

Why user_id is not a foreign key:
  Audit rows are written from their own session, independent of the
  request's unit of work, and may describe actors that don't exist at all
  (a login attempt with an unknown email has user_id NULL and username
  "Unknown"). The trail must never be blocked by the state of the users
  table.

Balances are integer cents like everywhere else; both columns are NULL
for events that don't touch a balance (logins).
"""

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import BigInteger, String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from wallet_service.database import Base
from wallet_service.money import from_cents


class AuditAction(str, enum.Enum):
    """What the actor tried to do."""
    REGISTER = "REGISTER"
    LOGIN = "LOGIN"
    TRANSFER = "TRANSFER"


class AuditStatus(str, enum.Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


UNKNOWN_USERNAME = "Unknown"


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID | None] = mapped_column(
        nullable=True,
        index=True,
    )

    # The actor's email at the time of the event, or "Unknown"
    username: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default=UNKNOWN_USERNAME,
    )

    action_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
    )

    old_balance_cents: Mapped[int | None] = mapped_column(
        BigInteger,
        nullable=True,
    )

    new_balance_cents: Mapped[int | None] = mapped_column(
        BigInteger,
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    @property
    def old_balance(self) -> Decimal | None:
        if self.old_balance_cents is None:
            return None
        return from_cents(self.old_balance_cents)

    @property
    def new_balance(self) -> Decimal | None:
        if self.new_balance_cents is None:
            return None
        return from_cents(self.new_balance_cents)
