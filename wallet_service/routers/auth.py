"""
Authentication router — registration and login endpoints.

These are the only public (unauthenticated) HTTP endpoints in the API.
Everything else requires a valid JWT token.

Endpoints:
  POST /auth/register — Register a new user with an opening wallet balance
  POST /auth/login    — Authenticate and get a token

Plaintext passwords exist only in memory during request processing; they
are hashed before any database operation and never logged.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from wallet_service.database import get_db
from wallet_service.dependencies import get_audit_logger
from wallet_service.schemas.auth import (
    RegisterRequest,
    RegisterResponse,
    LoginRequest,
    TokenResponse,
)
from wallet_service.services import auth_service
from wallet_service.services.audit_service import AuditLogger

router = APIRouter()


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
):
    """
    Register a new user and open their wallet.

    - **name**: Display name, 1-100 characters
    - **email**: Must be a valid email format and not already registered
    - **password**: Minimum 8 characters
    - **initial_balance**: Opening balance, at least 1000 by default
    """
    user, wallet = await auth_service.create_user(
        db=db,
        name=request.name,
        email=request.email,
        password=request.password,
        initial_balance=request.initial_balance,
        audit=audit,
    )

    return RegisterResponse(
        user_id=user.id,
        name=user.name,
        email=user.email,
        wallet_id=wallet.id,
        balance=wallet.balance,
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate and get a token",
)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
):
    """
    Authenticate with email and password.

    Returns a JWT bearer token that must be included in the Authorization
    header for all subsequent requests:

        Authorization: Bearer <token>
    """
    _, token = await auth_service.login(
        db=db,
        email=request.email,
        password=request.password,
        audit=audit,
    )

    return TokenResponse(token=token)
