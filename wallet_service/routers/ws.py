"""
Live balance WebSocket.

  WS /ws/balance?token=<jwt>

Browsers can't set an Authorization header on a WebSocket handshake, so the
JWT travels as a query parameter. On connect the server sends the current
balance once, then a message every time a transfer changes it:

    {"type": "balance", "wallet_id": "...", "balance": "800.00"}

Incoming messages are ignored; the read loop only exists to notice the
client going away.
"""

import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from wallet_service.database import get_db
from wallet_service.dependencies import get_balance_notifier, resolve_user_from_token
from wallet_service.notifier import BalanceNotifier
from wallet_service.services.wallet_service import find_wallet_by_user_id

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/balance")
async def balance_socket(
    websocket: WebSocket,
    token: str = Query(...),
    db: AsyncSession = Depends(get_db),
    notifier: BalanceNotifier = Depends(get_balance_notifier),
):
    user = await resolve_user_from_token(db, token)
    wallet = await find_wallet_by_user_id(db, user.id) if user is not None else None
    # Don't hold a pooled connection for the lifetime of the socket
    await db.close()

    if wallet is None:
        logger.warning("Balance socket rejected: invalid token or no wallet")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    await websocket.send_json(
        {"type": "balance", "wallet_id": str(wallet.id), "balance": str(wallet.balance)}
    )
    notifier.subscribe(wallet.id, websocket)
    logger.info("Balance socket opened for wallet %s", wallet.id)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Balance socket closed for wallet %s", wallet.id)
    finally:
        notifier.unsubscribe(wallet.id, websocket)
