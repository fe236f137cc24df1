"""
Audit router — lets a user read their own audit trail.

Endpoints:
  GET /audit-logs/me — The caller's audit entries, newest first

Entries for login attempts with an unknown email have no user id and are
therefore visible to nobody through this endpoint.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wallet_service.database import get_db
from wallet_service.dependencies import get_current_user
from wallet_service.models.user import User
from wallet_service.schemas.audit import AuditLogResponse
from wallet_service.services import audit_service

router = APIRouter()


@router.get(
    "/me",
    response_model=list[AuditLogResponse],
    summary="List my audit entries",
)
async def list_my_audit_logs(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    entries = await audit_service.list_for_user(db, user.id, limit=limit, offset=offset)
    return [AuditLogResponse.model_validate(entry) for entry in entries]
