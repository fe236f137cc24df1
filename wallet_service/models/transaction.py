"""
Transaction model — the immutable record of one completed transfer.

A transfer moves `amount_cents` from `from_wallet_id` to `to_wallet_id`.
Exactly one row is written per successful transfer, in the same database
transaction as the two balance updates; rejected transfers write none
(they are recorded in the audit log instead).

Direction is relative: the same row is a DEBIT in the sender's history and
a CREDIT in the recipient's. See wallet_service.services.wallet_service.get_history.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from wallet_service.database import Base
from wallet_service.money import from_cents


class Transaction(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_transactions_positive_amount"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    from_wallet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("wallets.id"),
        nullable=False,
        index=True,
    )

    to_wallet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("wallets.id"),
        nullable=False,
        index=True,
    )

    amount_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    # Indexed for the newest-first history query
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    @property
    def amount(self) -> Decimal:
        return from_cents(self.amount_cents)

    @property
    def timestamp(self) -> datetime:
        return self.created_at
