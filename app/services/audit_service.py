"""Audit log helpers."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import RoleAccessAudit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditRecord:
    """One privileged operation attempt, captured before it is written."""

    user_id: int | None
    user_role: str
    resource: str
    http_method: str
    access_granted: bool
    organization_id: int | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    details: str | None = None
    timestamp: datetime | None = None


class AuditRecorder:
    """Writes audit rows in their own transaction; never raises."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def record(self, entry: AuditRecord) -> bool:
        try:
            with self._session_factory() as db:
                db.add(
                    RoleAccessAudit(
                        timestamp=entry.timestamp or datetime.now(timezone.utc),
                        user_id=entry.user_id,
                        user_role=entry.user_role,
                        resource=entry.resource,
                        http_method=entry.http_method,
                        access_granted=entry.access_granted,
                        organization_id=entry.organization_id,
                        ip_address=entry.ip_address,
                        user_agent=entry.user_agent,
                        details=(entry.details or "")[:2000] or None,
                    )
                )
                db.commit()
        except Exception:
            logger.exception("[AUDIT] Failed to log audit entry for user %s: %s", entry.user_id, entry.resource)
            return False

        logger.info(
            "[AUDIT] Audit entry logged for user %s: %s - %s",
            entry.user_id,
            entry.resource,
            "GRANTED" if entry.access_granted else "DENIED",
        )
        return True


def list_audit_entries(
    db: Session,
    *,
    user_id: int | None = None,
    organization_id: int | None = None,
    access_granted: bool | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[RoleAccessAudit]:
    """Return audit rows newest first."""
    query = select(RoleAccessAudit)
    if user_id is not None:
        query = query.where(RoleAccessAudit.user_id == user_id)
    if organization_id is not None:
        query = query.where(RoleAccessAudit.organization_id == organization_id)
    if access_granted is not None:
        query = query.where(RoleAccessAudit.access_granted.is_(access_granted))
    query = query.order_by(RoleAccessAudit.timestamp.desc(), RoleAccessAudit.id.desc()).offset(offset).limit(limit)
    return list(db.scalars(query).all())
