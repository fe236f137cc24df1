"""
Pydantic schemas for authentication endpoints (register and login).

Monetary fields are Decimals and serialize to JSON as strings ("1000.00")
so no precision is lost on the way to the client.
"""

import uuid
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register."""
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr                                # Validates email format
    password: str = Field(min_length=8)            # Minimum 8 characters
    # The minimum opening balance and the two-decimal-place rule are
    # business rules enforced by the service (400), not schema constraints.
    initial_balance: Decimal = Field(max_digits=17)


class RegisterResponse(BaseModel):
    """Response body for successful registration."""
    user_id: uuid.UUID
    name: str
    email: str
    wallet_id: uuid.UUID
    balance: Decimal


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""
    email: EmailStr
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    """Response body for successful login — contains the JWT."""
    token: str
    token_type: str = "bearer"
