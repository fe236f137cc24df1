"""Pydantic schemas for audit trail responses."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class AuditLogResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID | None
    username: str
    action_type: str
    status: str
    old_balance: Decimal | None
    new_balance: Decimal | None
    created_at: datetime

    model_config = {"from_attributes": True}
