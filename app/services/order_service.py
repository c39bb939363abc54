"""Order creation and scoped read access."""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models import Order, Organization
from app.services.history_service import append_stage_entry
from app.services.order_numbers import next_order_number
from app.services.stage_catalog import INITIAL_STAGE, TERMINAL_STAGES

logger = logging.getLogger(__name__)

ORDER_STATUS_FILTERS: set[str] = {"ACTIVE", "INACTIVE", "COMPLETED", "CANCELLED", "ALL"}
_numbering_lock = threading.Lock()


class OrganizationNotFoundError(Exception):
    """Raised when an order is created for an unknown organization."""


def create_order(
    db: Session,
    *,
    organization_id: int,
    description: str,
    ship_date: date,
    created_by: str,
    total_amount: Decimal = Decimal("0.00"),
    notes: str | None = None,
    now: datetime | None = None,
) -> Order:
    """Create an order at the initial stage and record its first ledger entry."""
    organization = db.get(Organization, organization_id)
    if organization is None:
        raise OrganizationNotFoundError

    created_at = now or datetime.now(timezone.utc)
    with _numbering_lock:
        seq, order_number = next_order_number(db, created_at.year)
        order = Order(
            order_number=order_number,
            order_year=created_at.year,
            order_seq=seq,
            organization_id=organization_id,
            description=description,
            current_stage=INITIAL_STAGE,
            original_ship_date=ship_date,
            current_ship_date=ship_date,
            total_amount=total_amount,
            notes=notes,
            is_active=True,
            created_at=created_at,
            updated_at=created_at,
        )
        db.add(order)
        try:
            db.flush()
            append_stage_entry(
                db,
                order_id=order.id,
                stage=INITIAL_STAGE,
                entered_at=created_at,
                updated_by=created_by,
                notes="Order created",
            )
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.exception("[ORDERS] Order number collision for %s", order_number)
            raise

    db.refresh(order)
    logger.info("[ORDERS] Created order %s for organization_id=%s", order.order_number, organization_id)
    return order


def get_order_for_scope(db: Session, order_id: int, organization_id: int | None) -> Order | None:
    """Return an order, restricted to one organization unless scope is None."""
    query = select(Order).where(Order.id == order_id)
    if organization_id is not None:
        query = query.where(Order.organization_id == organization_id)
    return db.scalar(query.limit(1))


def list_orders(
    db: Session,
    *,
    organization_id: int | None,
    status: str | None = None,
    stage: str | None = None,
) -> list[Order]:
    """List orders newest first; defaults to active orders only."""
    query = select(Order)
    if organization_id is not None:
        query = query.where(Order.organization_id == organization_id)

    normalized_status = (status or "ACTIVE").strip().upper()
    if normalized_status == "ACTIVE":
        query = query.where(Order.is_active.is_(True))
    elif normalized_status == "INACTIVE":
        query = query.where(Order.is_active.is_(False))
    elif normalized_status == "COMPLETED":
        query = query.where(Order.is_active.is_(False), Order.current_stage.in_(TERMINAL_STAGES))
    elif normalized_status == "CANCELLED":
        query = query.where(Order.is_active.is_(False), Order.current_stage.not_in(TERMINAL_STAGES))

    if stage:
        query = query.where(func.lower(Order.current_stage) == stage.strip().lower())

    return list(db.scalars(query.order_by(Order.created_at.desc(), Order.id.desc())).all())
