"""Audit trail endpoints for staff."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.security import get_current_user
from app.db.session import get_db
from app.models import RoleAccessAudit, User
from app.schemas.audit import AuditEntryRead
from app.services.audit_service import list_audit_entries
from app.services.security_guards import STAFF_ROLES, ensure_role

router: APIRouter = APIRouter()


@router.get("", response_model=list[AuditEntryRead])
def get_audit_entries(
    user_id: int | None = Query(default=None),
    organization_id: int | None = Query(default=None),
    access_granted: bool | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[RoleAccessAudit]:
    ensure_role(current_user, STAFF_ROLES)
    return list_audit_entries(
        db,
        user_id=user_id,
        organization_id=organization_id,
        access_granted=access_granted,
        limit=limit,
        offset=offset,
    )
