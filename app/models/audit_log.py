"""Audit trail of privileged operation attempts."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class RoleAccessAudit(Base):
    """Stores an immutable record of one privileged operation attempt."""

    __tablename__ = "role_access_audits"

    id: Mapped[int] = mapped_column(primary_key=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    user_role: Mapped[str] = mapped_column(String(32), nullable=False)
    resource: Mapped[str] = mapped_column(String(500), nullable=False)
    http_method: Mapped[str] = mapped_column(String(10), nullable=False)
    access_granted: Mapped[bool] = mapped_column(Boolean, nullable=False)
    organization_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    details: Mapped[str | None] = mapped_column(String(2000), nullable=True)
