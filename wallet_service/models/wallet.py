"""
Wallet model — the balance-holding account owned by exactly one User.

Balance management:
  `balance_cents` stores the balance as an integer number of cents
  ($10.50 = 1050). The transfer engine changes it only through atomic
  SQL updates (`balance_cents = balance_cents - :amount`), never by
  assigning a value computed in Python, so two concurrent transfers can't
  both read the same stale balance and overwrite each other.

  A CHECK constraint enforces that the balance can never go negative;
  the final safety net behind the engine's own guard.

The `balance` property exposes the value as a two-place Decimal, which is
what every API and service signature works with.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wallet_service.database import Base
from wallet_service.money import from_cents


class Wallet(Base):
    __tablename__ = "wallets"

    __table_args__ = (
        CheckConstraint(
            "balance_cents >= 0",
            name="ck_wallets_non_negative_balance",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Owner; UNIQUE enforces one wallet per user
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        unique=True,
        nullable=False,
        index=True,
    )

    balance_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # --- Relationships ---
    user: Mapped["User"] = relationship(
        back_populates="wallet",
    )

    @property
    def balance(self) -> Decimal:
        return from_cents(self.balance_cents)
