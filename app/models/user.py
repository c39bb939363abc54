"""User ORM model."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

USER_ROLES = ("ADMIN", "STAFF", "DIRECTOR", "FINANCE")
LEGACY_ROLE_ALIASES: dict[str, str] = {
    "COLORGARBSTAFF": "STAFF",
    "COLORGARB_STAFF": "STAFF",
    "SUPERADMIN": "ADMIN",
}


def normalize_user_role(role: str | None) -> str:
    """Return canonical upper-case role or raise ValueError for unknown values."""
    value = str(role or "").strip().upper()
    value = LEGACY_ROLE_ALIASES.get(value, value)
    if value not in USER_ROLES:
        raise ValueError(f"Unknown role: {role}")
    return value


class User(Base):
    """Account of a staff member or an organization member."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(Enum(*USER_ROLES, name="user_role"), nullable=False)
    organization_id: Mapped[int | None] = mapped_column(ForeignKey("organizations.id"), nullable=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    organization: Mapped["Organization | None"] = relationship(back_populates="users")
