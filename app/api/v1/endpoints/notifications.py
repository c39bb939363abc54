"""Notification preference endpoints for the current user."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.security import get_current_user
from app.db.session import get_db
from app.models import User
from app.schemas.notification import PreferenceRead, PreferencesResponse, PreferenceUpdate
from app.services.preference_service import available_milestones, list_preferences, set_milestone_preference

router: APIRouter = APIRouter()


@router.get("/milestones", response_model=list[str])
def get_available_milestones(current_user: User = Depends(get_current_user)) -> list[str]:
    return available_milestones()


@router.get("/preferences", response_model=PreferencesResponse)
def get_preferences(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PreferencesResponse:
    preferences = list_preferences(db, current_user.id)
    return PreferencesResponse(
        preferences=[PreferenceRead.model_validate(item) for item in preferences],
        available_milestones=available_milestones(),
    )


@router.put("/preferences", response_model=PreferenceRead)
def update_preference(
    payload: PreferenceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PreferenceRead:
    try:
        preference = set_milestone_preference(
            db,
            user_id=current_user.id,
            milestone_type=payload.milestone_type,
            enabled=payload.enabled,
            email_enabled=payload.email_enabled,
            sms_enabled=payload.sms_enabled,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return PreferenceRead.model_validate(preference)
