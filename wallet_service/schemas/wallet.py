"""
Pydantic schemas for wallet endpoints: balance, transfer and history.

All amounts are exact decimals with two fraction digits.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class BalanceResponse(BaseModel):
    """Response body for GET /wallet/balance."""
    wallet_id: uuid.UUID
    balance: Decimal


class TransferRequest(BaseModel):
    """Request body for POST /wallet/transfer."""
    to_wallet_id: uuid.UUID
    # Sign and precision are checked by the transfer engine so that a bad
    # amount is rejected (400) and audited like any other refused transfer.
    amount: Decimal = Field(
        max_digits=17,
        description="Amount to send (positive, at most two decimal places)",
    )


class TransactionResponse(BaseModel):
    """A completed transfer."""
    id: uuid.UUID
    from_wallet_id: uuid.UUID
    to_wallet_id: uuid.UUID
    amount: Decimal
    timestamp: datetime

    model_config = {"from_attributes": True}


class TransactionHistoryItem(TransactionResponse):
    """A transfer as seen by one user: DEBIT if they sent it, CREDIT if they received it."""
    type: Literal["DEBIT", "CREDIT"]
