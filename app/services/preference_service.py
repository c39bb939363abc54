"""Notification preference lookups and updates."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import NotificationPreference
from app.services.stage_catalog import MILESTONE_CATEGORIES, ORDER_STAGES, SHIP_DATE_CHANGE_MILESTONE, milestone_category


def available_milestones() -> list[str]:
    """Return every milestone type a user can toggle."""
    categories = sorted(set(MILESTONE_CATEGORIES.values()))
    return [*ORDER_STAGES, SHIP_DATE_CHANGE_MILESTONE, *categories]


def is_known_milestone(milestone_type: str) -> bool:
    return milestone_type in available_milestones()


def _find(db: Session, user_id: int, milestone_type: str) -> NotificationPreference | None:
    return db.scalar(
        select(NotificationPreference)
        .where(NotificationPreference.user_id == user_id, NotificationPreference.milestone_type == milestone_type)
        .limit(1)
    )


def get_milestone_preference(db: Session, user_id: int, milestone_type: str) -> bool:
    """Return whether a user wants notifications for a milestone.

    An explicit row for the milestone wins, then the row for the stage's
    category. Users without a stored preference get everything.
    """
    preference = _find(db, user_id, milestone_type)
    if preference is not None:
        return preference.enabled
    category = milestone_category(milestone_type)
    if category is not None:
        category_preference = _find(db, user_id, category)
        if category_preference is not None:
            return category_preference.enabled
    return True


def set_milestone_preference(
    db: Session,
    *,
    user_id: int,
    milestone_type: str,
    enabled: bool,
    email_enabled: bool = True,
    sms_enabled: bool = False,
) -> NotificationPreference:
    if not is_known_milestone(milestone_type):
        raise ValueError(f"Unknown milestone type: {milestone_type}")
    preference = _find(db, user_id, milestone_type)
    if preference is None:
        preference = NotificationPreference(user_id=user_id, milestone_type=milestone_type)
        db.add(preference)
    preference.enabled = enabled
    preference.email_enabled = email_enabled
    preference.sms_enabled = sms_enabled
    preference.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(preference)
    return preference


def list_preferences(db: Session, user_id: int) -> list[NotificationPreference]:
    return list(
        db.scalars(
            select(NotificationPreference)
            .where(NotificationPreference.user_id == user_id)
            .order_by(NotificationPreference.milestone_type)
        ).all()
    )
