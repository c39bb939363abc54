"""Application models package."""

from app.models.audit_log import RoleAccessAudit
from app.models.notification_preference import NotificationPreference
from app.models.order import Order
from app.models.organization import Organization
from app.models.stage_history import OrderStageHistory
from app.models.user import User

__all__ = [
    "Organization", "User", "Order", "OrderStageHistory", "NotificationPreference", "RoleAccessAudit",
]
