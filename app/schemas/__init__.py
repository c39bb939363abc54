"""Schema exports."""

from app.schemas.audit import AuditEntryRead
from app.schemas.auth import AuthUserResponse, LoginRequest, TokenResponse
from app.schemas.notification import PreferenceRead, PreferencesResponse, PreferenceUpdate
from app.schemas.order import (
    BulkLifecycleUpdateRequest,
    BulkUpdateFailureRead,
    BulkUpdateResponse,
    LifecycleUpdateRequest,
    OrderCreate,
    OrderRead,
    StageHistoryRead,
)

__all__ = [
    "AuditEntryRead",
    "AuthUserResponse",
    "LoginRequest",
    "TokenResponse",
    "PreferenceRead",
    "PreferencesResponse",
    "PreferenceUpdate",
    "BulkLifecycleUpdateRequest",
    "BulkUpdateFailureRead",
    "BulkUpdateResponse",
    "LifecycleUpdateRequest",
    "OrderCreate",
    "OrderRead",
    "StageHistoryRead",
]
