"""
FastAPI dependencies for authentication and the transfer engine's collaborators.

  get_current_user      JWT -> User (the "actor" every wallet operation runs as)
  get_audit_logger      AuditLogger writing through its own sessions
  get_balance_notifier  process-wide BalanceNotifier
  get_wallet_locks      process-wide WalletLockRegistry

The collaborator dependencies exist so tests can swap them through
app.dependency_overrides — e.g. an AuditLogger bound to the test database,
or a notifier that records what was published.
"""

import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wallet_service.database import get_db
from wallet_service.locks import WalletLockRegistry, wallet_locks
from wallet_service.models.user import User
from wallet_service.notifier import BalanceNotifier, balance_notifier
from wallet_service.security import decode_access_token
from wallet_service.services.audit_service import AuditLogger, audit_logger


# OAuth2PasswordBearer tells FastAPI where to look for the token:
# the "Authorization: Bearer <token>" header.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


async def resolve_user_from_token(db: AsyncSession, token: str) -> User | None:
    """
    Decode a JWT and load its user.

    Returns None instead of raising so both the HTTP dependency and the
    WebSocket endpoint can reject in their own way.
    """
    try:
        payload = decode_access_token(token)
        user_id_str: str | None = payload.get("sub")
        if user_id_str is None:
            return None
        user_id = uuid.UUID(user_id_str)
    except (JWTError, ValueError):
        return None

    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Extract and validate the JWT token, then return the corresponding User.

    If the token is missing, expired, or tampered with, the request is
    rejected with 401 before the route handler runs.

    Raises:
        HTTPException 401: If the token is invalid or the user doesn't exist.
    """
    user = await resolve_user_from_token(db, token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_audit_logger() -> AuditLogger:
    return audit_logger


def get_balance_notifier() -> BalanceNotifier:
    return balance_notifier


def get_wallet_locks() -> WalletLockRegistry:
    return wallet_locks
