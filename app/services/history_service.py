"""Append-only order history ledger."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import OrderStageHistory


def append_stage_entry(
    db: Session,
    *,
    order_id: int,
    stage: str,
    entered_at: datetime,
    updated_by: str,
    notes: str | None = None,
    previous_ship_date: date | None = None,
    new_ship_date: date | None = None,
    change_reason: str | None = None,
) -> OrderStageHistory:
    """Add a stage entry to the caller's transaction without committing."""
    entry = OrderStageHistory(
        order_id=order_id,
        stage=stage,
        entered_at=entered_at,
        updated_by=updated_by,
        notes=notes,
        previous_ship_date=previous_ship_date,
        new_ship_date=new_ship_date,
        change_reason=change_reason,
    )
    db.add(entry)
    db.flush()
    return entry


def append_ship_date_entry(
    db: Session,
    *,
    order_id: int,
    stage: str,
    entered_at: datetime,
    updated_by: str,
    previous_ship_date: date,
    new_ship_date: date,
    reason: str,
) -> OrderStageHistory:
    """Add a ship-date revision that leaves the stage unchanged."""
    return append_stage_entry(
        db,
        order_id=order_id,
        stage=stage,
        entered_at=entered_at,
        updated_by=updated_by,
        notes=f"Ship date updated: {previous_ship_date.isoformat()} -> {new_ship_date.isoformat()}",
        previous_ship_date=previous_ship_date,
        new_ship_date=new_ship_date,
        change_reason=reason,
    )


def get_timeline(db: Session, order_id: int) -> list[OrderStageHistory]:
    """Return an order's ledger oldest first."""
    return list(
        db.scalars(
            select(OrderStageHistory)
            .where(OrderStageHistory.order_id == order_id)
            .order_by(OrderStageHistory.entered_at.asc(), OrderStageHistory.id.asc())
        ).all()
    )


def get_ship_date_revisions(db: Session, order_id: int) -> list[OrderStageHistory]:
    return [entry for entry in get_timeline(db, order_id) if entry.new_ship_date is not None]
