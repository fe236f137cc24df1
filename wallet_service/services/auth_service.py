"""
Authentication service — registration and login business logic.

Registration flow:
  1. Validate the initial balance (two decimal places, >= MIN_INITIAL_BALANCE)
  2. Check if email is already registered
  3. Create User + Wallet in a single database transaction and commit it
  4. Record one REGISTER audit entry carrying the opening balance

Login flow:
  1. Look up user by email
  2. Verify password against stored hash
  3. Record a LOGIN audit entry (SUCCESS or FAILURE) and return a JWT

Security notes:
  - Passwords are hashed before storage (never stored in plaintext)
  - Login returns the same error for "wrong password" and "email not found"
    to prevent user enumeration attacks; only the audit trail tells them
    apart (an unknown email is recorded with username "Unknown")
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wallet_service.config import settings
from wallet_service.exceptions import DuplicateEmailError, InvalidCredentialsError, InvalidRequestError
from wallet_service.models.audit_log import AuditAction, AuditStatus
from wallet_service.models.user import User
from wallet_service.models.wallet import Wallet
from wallet_service.money import to_cents
from wallet_service.security import hash_password, verify_password, create_access_token
from wallet_service.services.audit_service import AuditLogger

logger = logging.getLogger(__name__)


async def find_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    name: str,
    email: str,
    password: str,
    initial_balance: Decimal,
    *,
    audit: AuditLogger,
) -> tuple[User, Wallet]:
    """
    Register a new user together with their wallet.

    Both records are committed in one transaction; if either fails,
    neither is persisted.

    Args:
        db: Database session.
        name: Display name.
        email: Login email (must be unique).
        password: Plaintext password (hashed before storage).
        initial_balance: Opening wallet balance, at least MIN_INITIAL_BALANCE.
        audit: Receives the REGISTER entry.

    Returns:
        Tuple of (User, Wallet).

    Raises:
        DuplicateEmailError: If the email is already registered.
        InvalidRequestError: If the initial balance is below the minimum or
            has more than two decimal places.
    """
    existing_user = await find_user_by_email(db, email)
    if existing_user:
        raise DuplicateEmailError(email)

    balance_cents = to_cents(initial_balance)
    if balance_cents < to_cents(settings.MIN_INITIAL_BALANCE):
        raise InvalidRequestError(
            f"Initial balance must be at least {settings.MIN_INITIAL_BALANCE}"
        )

    user = User(
        name=name,
        email=email,
        hashed_password=hash_password(password),
    )
    try:
        db.add(user)
        # Flush to get the user.id assigned (needed for the FK below)
        await db.flush()

        wallet = Wallet(user_id=user.id, balance_cents=balance_cents)
        db.add(wallet)
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same email
        await db.rollback()
        raise DuplicateEmailError(email)

    logger.info("Registered user %s with wallet %s", user.id, wallet.id)
    await audit.log(
        user, AuditAction.REGISTER, AuditStatus.SUCCESS,
        new_balance=wallet.balance,
    )
    return user, wallet


async def login(
    db: AsyncSession,
    email: str,
    password: str,
    *,
    audit: AuditLogger,
) -> tuple[User, str]:
    """
    Authenticate a user and return a JWT token.

    Raises:
        InvalidCredentialsError: If the email doesn't exist or the password
            is wrong. A FAILURE audit entry is written first in both cases.
    """
    user = await find_user_by_email(db, email)

    if user is None:
        logger.warning("Login failed: unknown email")
        await audit.log(None, AuditAction.LOGIN, AuditStatus.FAILURE)
        raise InvalidCredentialsError()

    if not verify_password(password, user.hashed_password):
        logger.warning("Login failed: wrong password for user %s", user.id)
        await audit.log(user, AuditAction.LOGIN, AuditStatus.FAILURE)
        raise InvalidCredentialsError()

    token = create_access_token(data={"sub": str(user.id)})
    await audit.log(user, AuditAction.LOGIN, AuditStatus.SUCCESS)
    return user, token
