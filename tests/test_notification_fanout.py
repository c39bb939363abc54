"""Notification fan-out and preference tests."""

from datetime import date
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.db.base import Base
from app.models import Organization, User
from app.services.notification_service import LifecycleEvent, NotificationFanout
from app.services.preference_service import available_milestones, get_milestone_preference, set_milestone_preference


class RecordingDispatcher:
    def __init__(self, fail_for: set[int] | None = None, decline_for: set[int] | None = None) -> None:
        self.calls: list[tuple[int, int, str]] = []
        self.fail_for = fail_for or set()
        self.decline_for = decline_for or set()

    def send_milestone_notification(self, user_id: int, order_id: int, milestone_type: str) -> bool:
        if user_id in self.fail_for:
            raise RuntimeError("SMTP connection refused")
        self.calls.append((user_id, order_id, milestone_type))
        return user_id not in self.decline_for


def _prepare_db(tmp_path: Path) -> sessionmaker:
    engine = create_engine(f"sqlite:///{tmp_path / 'fanout.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def _seed_members(session_local, count: int) -> tuple[int, list[int]]:
    with session_local() as db:
        organization = Organization(name="Westfield Color Guard")
        db.add(organization)
        db.flush()
        users = [
            User(
                email=f"member{index}@westfield.example.com",
                name=f"Member {index}",
                password_hash="x",
                role="DIRECTOR",
                organization_id=organization.id,
            )
            for index in range(count)
        ]
        db.add_all(users)
        db.commit()
        return organization.id, [user.id for user in users]


def _event(organization_id: int, *, stage_after: str = "Sewing", ship_date_after: date | None = None) -> LifecycleEvent:
    return LifecycleEvent(
        order_id=42,
        organization_id=organization_id,
        order_label="CG-2026-001",
        stage_before="Cutting",
        stage_after=stage_after,
        ship_date_before=date(2026, 5, 1),
        ship_date_after=ship_date_after,
        reason="Progress",
    )


def test_disabled_preferences_are_skipped(tmp_path: Path) -> None:
    session_local = _prepare_db(tmp_path)
    organization_id, user_ids = _seed_members(session_local, 4)
    with session_local() as db:
        set_milestone_preference(db, user_id=user_ids[1], milestone_type="Sewing", enabled=False)
        set_milestone_preference(db, user_id=user_ids[3], milestone_type="Sewing", enabled=False)
    dispatcher = RecordingDispatcher()

    report = NotificationFanout(session_local, dispatcher).notify_lifecycle_change(_event(organization_id))

    assert report.recipients == 4
    assert (report.sent, report.skipped, report.failed) == (2, 2, 0)
    assert [call[0] for call in dispatcher.calls] == [user_ids[0], user_ids[2]]


def test_delivery_errors_do_not_stop_other_recipients(tmp_path: Path) -> None:
    session_local = _prepare_db(tmp_path)
    organization_id, user_ids = _seed_members(session_local, 3)
    dispatcher = RecordingDispatcher(fail_for={user_ids[0]}, decline_for={user_ids[1]})

    report = NotificationFanout(session_local, dispatcher).notify_lifecycle_change(_event(organization_id))

    assert (report.sent, report.skipped, report.failed) == (1, 0, 2)
    assert [call[0] for call in dispatcher.calls] == [user_ids[1], user_ids[2]]


def test_ship_date_change_uses_its_own_milestone(tmp_path: Path) -> None:
    session_local = _prepare_db(tmp_path)
    organization_id, user_ids = _seed_members(session_local, 2)
    with session_local() as db:
        set_milestone_preference(db, user_id=user_ids[0], milestone_type="Ship Date Change", enabled=False)
    dispatcher = RecordingDispatcher()

    report = NotificationFanout(session_local, dispatcher).notify_lifecycle_change(
        _event(organization_id, stage_after="Cutting", ship_date_after=date(2026, 5, 20))
    )

    assert [tally.milestone_type for tally in report.milestones] == ["Ship Date Change"]
    assert dispatcher.calls == [(user_ids[1], 42, "Ship Date Change")]


def test_stage_and_ship_date_change_notify_both_milestones(tmp_path: Path) -> None:
    session_local = _prepare_db(tmp_path)
    organization_id, _ = _seed_members(session_local, 2)
    dispatcher = RecordingDispatcher()

    report = NotificationFanout(session_local, dispatcher).notify_lifecycle_change(
        _event(organization_id, ship_date_after=date(2026, 5, 20))
    )

    assert [tally.milestone_type for tally in report.milestones] == ["Sewing", "Ship Date Change"]
    assert report.sent == 4


def test_inactive_members_and_other_organizations_are_not_notified(tmp_path: Path) -> None:
    session_local = _prepare_db(tmp_path)
    organization_id, user_ids = _seed_members(session_local, 2)
    other = Organization(name="Other Band")
    with session_local() as db:
        db.add(other)
        db.flush()
        db.add(User(email="outsider@example.com", name="Outsider", password_hash="x", role="DIRECTOR", organization_id=other.id))
        db.get(User, user_ids[1]).is_active = False
        db.commit()
    dispatcher = RecordingDispatcher()

    report = NotificationFanout(session_local, dispatcher).notify_lifecycle_change(_event(organization_id))

    assert report.recipients == 1
    assert dispatcher.calls == [(user_ids[0], 42, "Sewing")]


def test_unchanged_event_sends_nothing(tmp_path: Path) -> None:
    session_local = _prepare_db(tmp_path)
    organization_id, _ = _seed_members(session_local, 2)
    dispatcher = RecordingDispatcher()

    report = NotificationFanout(session_local, dispatcher).notify_lifecycle_change(
        _event(organization_id, stage_after="Cutting", ship_date_after=date(2026, 5, 1))
    )

    assert report.milestones == []
    assert dispatcher.calls == []


def test_category_preference_applies_to_its_stages(tmp_path: Path) -> None:
    session_local = _prepare_db(tmp_path)
    _, user_ids = _seed_members(session_local, 1)
    with session_local() as db:
        set_milestone_preference(db, user_id=user_ids[0], milestone_type="Shipping", enabled=False)
        assert get_milestone_preference(db, user_ids[0], "Ship Order") is False
        assert get_milestone_preference(db, user_ids[0], "Shipping Preparation") is False
        assert get_milestone_preference(db, user_ids[0], "Sewing") is True

        set_milestone_preference(db, user_id=user_ids[0], milestone_type="Ship Order", enabled=True)
        assert get_milestone_preference(db, user_ids[0], "Ship Order") is True


def test_unknown_milestone_cannot_be_stored(tmp_path: Path) -> None:
    session_local = _prepare_db(tmp_path)
    _, user_ids = _seed_members(session_local, 1)
    assert "Ship Date Change" in available_milestones()

    with session_local() as db:
        with pytest.raises(ValueError):
            set_milestone_preference(db, user_id=user_ids[0], milestone_type="Birthday", enabled=False)
