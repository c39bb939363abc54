"""User service operations."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.user import User, normalize_user_role


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalar(select(User).where(User.email == email.strip().lower()).limit(1))


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def create_user(
    db: Session,
    email: str,
    hashed_password: str,
    role: str,
    name: str | None = None,
    organization_id: int | None = None,
) -> User:
    canonical_role = normalize_user_role(role)
    normalized_email = email.strip().lower()
    user = User(
        email=normalized_email,
        name=name or normalized_email.split("@")[0],
        password_hash=hashed_password,
        role=canonical_role,
        organization_id=organization_id,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def list_active_user_ids(db: Session, organization_id: int) -> list[int]:
    """Return ids of active members of an organization."""
    return list(
        db.scalars(
            select(User.id)
            .where(User.organization_id == organization_id, User.is_active.is_(True))
            .order_by(User.id)
        ).all()
    )
