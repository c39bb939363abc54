"""Order creation and numbering tests."""

from datetime import date, datetime, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker

from app.db.base import Base
from app.models import Order, OrderStageHistory, Organization
from app.services.order_numbers import format_order_number, next_order_number
from app.services.order_service import OrganizationNotFoundError, create_order


def _prepare_db(tmp_path: Path) -> sessionmaker:
    engine = create_engine(f"sqlite:///{tmp_path / 'order_numbers.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def _create(db: Session, organization_id: int, when: datetime) -> Order:
    return create_order(
        db,
        organization_id=organization_id,
        description="Marching band uniforms",
        ship_date=date(when.year, 12, 1),
        created_by="Staff",
        now=when,
    )


def test_format_pads_sequence_to_three_digits() -> None:
    assert format_order_number(2025, 7) == "CG-2025-007"
    assert format_order_number(2025, 123) == "CG-2025-123"


def test_sequence_increments_within_a_year_and_resets_for_a_new_year(tmp_path: Path) -> None:
    session_local = _prepare_db(tmp_path)
    with session_local() as db:
        organization = Organization(name="Lincoln High Band")
        db.add(organization)
        db.commit()

        first = _create(db, organization.id, datetime(2025, 3, 1, tzinfo=timezone.utc))
        second = _create(db, organization.id, datetime(2025, 11, 2, tzinfo=timezone.utc))
        assert first.order_number == "CG-2025-001"
        assert second.order_number == "CG-2025-002"

        # Jump the sequence so the reset is visible.
        db.add(
            Order(
                order_number="CG-2025-087",
                order_year=2025,
                order_seq=87,
                organization_id=organization.id,
                description="Late order",
                current_stage="Delivery",
                original_ship_date=date(2025, 12, 20),
                current_ship_date=date(2025, 12, 20),
            )
        )
        db.commit()
        assert next_order_number(db, 2025) == (88, "CG-2025-088")

        new_year = _create(db, organization.id, datetime(2026, 1, 2, tzinfo=timezone.utc))
        assert new_year.order_number == "CG-2026-001"


def test_new_order_starts_at_initial_stage_with_one_ledger_entry(tmp_path: Path) -> None:
    session_local = _prepare_db(tmp_path)
    with session_local() as db:
        organization = Organization(name="Riverside Theater")
        db.add(organization)
        db.commit()

        order = _create(db, organization.id, datetime(2025, 5, 5, tzinfo=timezone.utc))
        assert order.current_stage == "Initial Consultation"
        assert order.original_ship_date == order.current_ship_date == date(2025, 12, 1)
        assert order.is_active is True
        assert order.status == "Active"

        entries = db.scalars(select(OrderStageHistory).where(OrderStageHistory.order_id == order.id)).all()
        assert [entry.stage for entry in entries] == ["Initial Consultation"]


def test_create_order_rejects_unknown_organization(tmp_path: Path) -> None:
    session_local = _prepare_db(tmp_path)
    with session_local() as db:
        with pytest.raises(OrganizationNotFoundError):
            _create(db, 999, datetime(2025, 5, 5, tzinfo=timezone.utc))
