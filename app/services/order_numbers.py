"""Human-readable order number allocation."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models import Order


def format_order_number(year: int, seq: int) -> str:
    """Return ``CG-<year>-<seq>`` with the sequence zero-padded to three digits."""
    return f"{settings.order_number_prefix}-{year}-{seq:03d}"


def next_order_number(db: Session, year: int) -> tuple[int, str]:
    """Return the next (sequence, order number) pair for the given year.

    Sequences are per year, so the first order of a new year starts at 001.
    """
    current_max = db.scalar(select(func.max(Order.order_seq)).where(Order.order_year == year))
    seq = int(current_max or 0) + 1
    return seq, format_order_number(year, seq)
