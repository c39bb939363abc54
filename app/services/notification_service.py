"""Milestone notification fan-out to organization members."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol

from sqlalchemy.orm import Session

from app.services.preference_service import get_milestone_preference
from app.services.stage_catalog import SHIP_DATE_CHANGE_MILESTONE
from app.services.user_service import list_active_user_ids

logger = logging.getLogger(__name__)


class DeliveryDispatcher(Protocol):
    def send_milestone_notification(self, user_id: int, order_id: int, milestone_type: str) -> bool:
        """Deliver one notification; False or an exception means it failed."""


class LoggingDeliveryDispatcher:
    """Dispatcher that only logs; stands in until an email/SMS channel is wired."""

    def send_milestone_notification(self, user_id: int, order_id: int, milestone_type: str) -> bool:
        logger.info("[FANOUT] Notify user_id=%s order_id=%s milestone=%s", user_id, order_id, milestone_type)
        return True


@dataclass(frozen=True)
class LifecycleEvent:
    """Before/after snapshot of one committed lifecycle update."""

    order_id: int
    organization_id: int
    order_label: str
    stage_before: str
    stage_after: str
    ship_date_before: date
    ship_date_after: date | None
    reason: str | None = None

    @property
    def stage_changed(self) -> bool:
        return self.stage_before != self.stage_after

    @property
    def ship_date_changed(self) -> bool:
        return self.ship_date_after is not None and self.ship_date_after != self.ship_date_before


@dataclass
class MilestoneTally:
    milestone_type: str
    sent: int = 0
    skipped: int = 0
    failed: int = 0


@dataclass
class FanoutReport:
    order_id: int
    recipients: int = 0
    milestones: list[MilestoneTally] = field(default_factory=list)

    @property
    def sent(self) -> int:
        return sum(tally.sent for tally in self.milestones)

    @property
    def skipped(self) -> int:
        return sum(tally.skipped for tally in self.milestones)

    @property
    def failed(self) -> int:
        return sum(tally.failed for tally in self.milestones)


class NotificationFanout:
    """Notifies every active organization member about a lifecycle change.

    Each recipient is handled on its own: a disabled preference is a skip, a
    dispatcher error or a False return is a failure, and neither stops the
    remaining recipients. Nothing is retried.
    """

    def __init__(self, session_factory: Callable[[], Session], dispatcher: DeliveryDispatcher) -> None:
        self._session_factory = session_factory
        self._dispatcher = dispatcher

    def notify_lifecycle_change(self, event: LifecycleEvent) -> FanoutReport:
        report = FanoutReport(order_id=event.order_id)
        if not event.stage_changed and not event.ship_date_changed:
            return report

        try:
            with self._session_factory() as db:
                user_ids = list_active_user_ids(db, event.organization_id)
                report.recipients = len(user_ids)
                if event.stage_changed:
                    report.milestones.append(self._fan_out(db, event, user_ids, event.stage_after))
                if event.ship_date_changed:
                    report.milestones.append(self._fan_out(db, event, user_ids, SHIP_DATE_CHANGE_MILESTONE))
        except Exception:
            logger.exception("[FANOUT] Notification fan-out aborted for order %s", event.order_label)
            return report

        for tally in report.milestones:
            logger.info(
                "[FANOUT] %s milestone=%s sent=%s skipped=%s failed=%s",
                event.order_label,
                tally.milestone_type,
                tally.sent,
                tally.skipped,
                tally.failed,
            )
        return report

    def _fan_out(self, db: Session, event: LifecycleEvent, user_ids: list[int], milestone_type: str) -> MilestoneTally:
        tally = MilestoneTally(milestone_type=milestone_type)
        for user_id in user_ids:
            try:
                if not get_milestone_preference(db, user_id, milestone_type):
                    tally.skipped += 1
                    continue
                delivered = self._dispatcher.send_milestone_notification(user_id, event.order_id, milestone_type)
            except Exception:
                logger.exception(
                    "[FANOUT] Delivery failed for user_id=%s order %s milestone=%s",
                    user_id,
                    event.order_label,
                    milestone_type,
                )
                tally.failed += 1
                continue
            if delivered:
                tally.sent += 1
            else:
                logger.warning("[FANOUT] Dispatcher declined user_id=%s order %s milestone=%s", user_id, event.order_label, milestone_type)
                tally.failed += 1
        return tally
