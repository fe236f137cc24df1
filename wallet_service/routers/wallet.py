"""
Wallet router — balance, transfers and history for the authenticated user.

Endpoints:
  GET  /wallet/balance      — The caller's wallet id and balance
  POST /wallet/transfer     — Send money from the caller's wallet to another wallet
  GET  /wallet/transactions — The caller's transfers, newest first, DEBIT/CREDIT labelled

The source wallet is always the caller's own: there is no way to name a
source wallet in the request, so nobody can spend from someone else's wallet.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from wallet_service.database import get_db
from wallet_service.dependencies import (
    get_audit_logger,
    get_balance_notifier,
    get_current_user,
    get_wallet_locks,
)
from wallet_service.locks import WalletLockRegistry
from wallet_service.models.user import User
from wallet_service.notifier import BalanceNotifier
from wallet_service.schemas.wallet import (
    BalanceResponse,
    TransactionHistoryItem,
    TransactionResponse,
    TransferRequest,
)
from wallet_service.services import wallet_service
from wallet_service.services.audit_service import AuditLogger

router = APIRouter()


@router.get(
    "/balance",
    response_model=BalanceResponse,
    summary="Get my balance",
)
async def get_balance(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    wallet = await wallet_service.get_balance(db, user)
    return BalanceResponse(wallet_id=wallet.id, balance=wallet.balance)


@router.post(
    "/transfer",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Transfer money to another wallet",
)
async def transfer(
    request: TransferRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
    notifier: BalanceNotifier = Depends(get_balance_notifier),
    locks: WalletLockRegistry = Depends(get_wallet_locks),
):
    """
    Transfer money from your wallet to another wallet.

    Atomic — both balances change or neither does. Rejected transfers
    (insufficient balance, unknown wallet, your own wallet) leave both
    balances untouched and are recorded in the audit trail.

    - **to_wallet_id**: The receiving wallet (any user's, except your own)
    - **amount**: Positive, at most two decimal places
    """
    txn = await wallet_service.transfer(
        db,
        user,
        request.to_wallet_id,
        request.amount,
        audit=audit,
        notifier=notifier,
        locks=locks,
    )
    return TransactionResponse.model_validate(txn)


@router.get(
    "/transactions",
    response_model=list[TransactionHistoryItem],
    summary="List my transactions",
)
async def get_transactions(
    limit: int | None = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    views = await wallet_service.get_history(db, user, limit=limit, offset=offset)
    return [
        TransactionHistoryItem(
            id=view.id,
            from_wallet_id=view.from_wallet_id,
            to_wallet_id=view.to_wallet_id,
            amount=view.amount,
            timestamp=view.timestamp,
            type=view.type.value,
        )
        for view in views
    ]
