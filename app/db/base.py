"""Shared SQLAlchemy base declarative class and model imports."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for ORM models."""


# Import model modules so metadata is populated before create_all.
from app.models import audit_log as _audit_log  # noqa: E402,F401
from app.models import notification_preference as _notification_preference  # noqa: E402,F401
from app.models import order as _order  # noqa: E402,F401
from app.models import organization as _organization  # noqa: E402,F401
from app.models import stage_history as _stage_history  # noqa: E402,F401
from app.models import user as _user  # noqa: E402,F401
