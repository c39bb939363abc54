"""Caller identity and role guards for order operations."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import HTTPException

from app.models import User

PRIVILEGED_ROLES: set[str] = {"ADMIN"}
ALL_ORGANIZATION_ROLES: set[str] = {"ADMIN", "STAFF"}
LIFECYCLE_ROLES: set[str] = {"ADMIN", "STAFF", "DIRECTOR"}
STAFF_ROLES: set[str] = {"ADMIN", "STAFF"}


@dataclass(frozen=True)
class Actor:
    """Already-authenticated caller of a lifecycle operation."""

    user_id: int | None
    role: str
    organization_id: int | None
    display_name: str
    ip_address: str | None = None
    user_agent: str | None = None

    @property
    def can_bypass_validation(self) -> bool:
        return self.role in PRIVILEGED_ROLES

    @property
    def sees_all_organizations(self) -> bool:
        return self.role in ALL_ORGANIZATION_ROLES

    @property
    def organization_scope(self) -> int | None:
        """Organization filter to apply, or None for unrestricted callers."""
        if self.sees_all_organizations:
            return None
        return self.organization_id

    @classmethod
    def from_user(cls, user: User, ip_address: str | None = None, user_agent: str | None = None) -> "Actor":
        return cls(
            user_id=user.id,
            role=user.role,
            organization_id=user.organization_id,
            display_name=user.name or user.email,
            ip_address=ip_address,
            user_agent=user_agent,
        )


def ensure_role(user: User, allowed_roles: set[str]) -> None:
    """Ensure user role is one of allowed roles."""
    if user.role not in allowed_roles:
        raise HTTPException(status_code=403, detail="Forbidden")


def ensure_organization_member(user: User) -> None:
    """Organization-scoped roles need an organization to see anything."""
    if user.role not in ALL_ORGANIZATION_ROLES and user.organization_id is None:
        raise HTTPException(status_code=403, detail="Access denied: No organization association")
