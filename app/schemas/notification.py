"""Notification preference schemas."""

from pydantic import BaseModel, ConfigDict


class PreferenceUpdate(BaseModel):
    milestone_type: str
    enabled: bool
    email_enabled: bool = True
    sms_enabled: bool = False


class PreferenceRead(BaseModel):
    milestone_type: str
    enabled: bool
    email_enabled: bool
    sms_enabled: bool

    model_config = ConfigDict(from_attributes=True)


class PreferencesResponse(BaseModel):
    preferences: list[PreferenceRead]
    available_milestones: list[str]
