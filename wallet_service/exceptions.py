"""
Custom exception classes and FastAPI exception handlers.

The service layer raises domain-specific errors without importing HTTP
concepts. The handlers registered here translate them into HTTP responses
with a consistent body: {"detail": "...", "error_type": "..."}.

Exception hierarchy:
    WalletServiceError (base)
    ├── NotFoundError              — referenced user or wallet doesn't exist
    ├── InsufficientBalanceError   — debit would drive a balance negative
    └── InvalidRequestError        — malformed registration/login/transfer input
        ├── DuplicateEmailError    — email already registered
        ├── InvalidCredentialsError — unknown email or wrong password
        └── SelfTransferError      — source and destination wallet are the same
"""

import uuid
from decimal import Decimal

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class WalletServiceError(Exception):
    """Base exception for all Wallet Service domain errors."""

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class NotFoundError(WalletServiceError):
    """Raised when a referenced user or wallet does not exist."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(detail)


class InsufficientBalanceError(WalletServiceError):
    """
    Raised when a transfer would cause a negative balance.

    Attributes:
        wallet_id: The wallet that lacks sufficient funds.
        requested: The amount the user tried to send.
        available: The wallet's balance at the time of the check.
    """

    def __init__(self, wallet_id: uuid.UUID, requested: Decimal, available: Decimal):
        self.wallet_id = wallet_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient balance: requested {requested}, available {available}"
        )


class InvalidRequestError(WalletServiceError):
    """Raised when a request breaks a business rule (bad amount, low balance, ...)."""

    def __init__(self, detail: str = "Invalid request"):
        super().__init__(detail)


class DuplicateEmailError(InvalidRequestError):
    """Raised when attempting to register with an email that's already in use."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email {email} is already registered")


class InvalidCredentialsError(InvalidRequestError):
    """Raised when login credentials are incorrect."""

    def __init__(self):
        super().__init__("Invalid email or password")


class SelfTransferError(InvalidRequestError):
    """Raised when a user tries to send money to their own wallet."""

    def __init__(self, wallet_id: uuid.UUID):
        self.wallet_id = wallet_id
        super().__init__("Cannot transfer to your own wallet")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Starlette resolves handlers by walking the exception's MRO, so the
    InvalidRequestError subclasses get their own status codes while any
    other InvalidRequestError falls back to 400.
    """

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"detail": exc.detail, "error_type": "not_found"},
        )

    @app.exception_handler(InsufficientBalanceError)
    async def insufficient_balance_handler(
        request: Request, exc: InsufficientBalanceError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,  # the request was valid but business rules reject it
            content={
                "detail": exc.detail,
                "error_type": "insufficient_balance",
                "requested": str(exc.requested),
                "available": str(exc.available),
            },
        )

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_handler(
        request: Request, exc: InvalidRequestError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": exc.detail, "error_type": "invalid_request"},
        )

    @app.exception_handler(SelfTransferError)
    async def self_transfer_handler(
        request: Request, exc: SelfTransferError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": exc.detail, "error_type": "self_transfer"},
        )

    @app.exception_handler(DuplicateEmailError)
    async def duplicate_email_handler(
        request: Request, exc: DuplicateEmailError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=409,  # Conflict: the resource already exists
            content={"detail": exc.detail, "error_type": "duplicate_email"},
        )

    @app.exception_handler(InvalidCredentialsError)
    async def invalid_credentials_handler(
        request: Request, exc: InvalidCredentialsError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content={"detail": exc.detail, "error_type": "invalid_credentials"},
        )
