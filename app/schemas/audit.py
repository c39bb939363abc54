"""Audit log schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AuditEntryRead(BaseModel):
    id: int
    timestamp: datetime
    user_id: int | None
    user_role: str
    resource: str
    http_method: str
    access_granted: bool
    organization_id: int | None
    ip_address: str | None
    user_agent: str | None
    details: str | None

    model_config = ConfigDict(from_attributes=True)
