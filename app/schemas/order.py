"""Order API schemas."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class OrderCreate(BaseModel):
    """Create a new costume order."""

    organization_id: int
    description: str = Field(min_length=1, max_length=500)
    ship_date: date
    total_amount: Decimal = Decimal("0.00")
    notes: str | None = None


class LifecycleUpdateRequest(BaseModel):
    """Stage and/or ship date change with the reason for it."""

    stage: str | None = None
    ship_date: date | None = None
    reason: str | None = None


class BulkLifecycleUpdateRequest(LifecycleUpdateRequest):
    """Same lifecycle update applied to several orders."""

    order_ids: list[int]


class OrderRead(BaseModel):
    """Serialized order."""

    id: int
    order_number: str
    organization_id: int
    description: str
    current_stage: str
    original_ship_date: date
    current_ship_date: date
    is_active: bool
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StageHistoryRead(BaseModel):
    """Serialized ledger entry."""

    id: int
    stage: str
    entered_at: datetime
    updated_by: str
    notes: str | None = None
    previous_ship_date: date | None = None
    new_ship_date: date | None = None
    change_reason: str | None = None

    model_config = ConfigDict(from_attributes=True)


class BulkUpdateFailureRead(BaseModel):
    order_id: int
    error: str
    message: str

    model_config = ConfigDict(from_attributes=True)


class BulkUpdateResponse(BaseModel):
    """Partitioned bulk update result."""

    succeeded: list[int]
    failed: list[BulkUpdateFailureRead]

    model_config = ConfigDict(from_attributes=True)
