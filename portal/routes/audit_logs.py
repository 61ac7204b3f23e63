"""
portal/routes/audit_logs.py
Read-only audit trail
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from portal.database import get_db
from portal.schemas.communication_schemas import AuditLogResponse
from portal.services.audit_service import DEFAULT_LIMIT, list_audit_logs

router = APIRouter(prefix="/api/audit-logs", tags=["Audit Log"])


@router.get("", response_model=List[AuditLogResponse])
async def get_audit_logs(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=500),
    action_type: Optional[str] = Query(None),
    username: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    entries = await list_audit_logs(db, limit=limit, action_type=action_type, username=username)
    return [AuditLogResponse.model_validate(e) for e in entries]
