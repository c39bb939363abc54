"""Order lifecycle updates: stage moves, ship-date revisions and their side effects.

The synchronous part of an update (load, validate, mutate, append history,
commit) runs under a per-order lock and is bounded by
``settings.lifecycle_timeout_seconds``. Notification fan-out and audit writes
are handed to a ``BackgroundWorker`` once the commit has succeeded, so their
outcome never changes what the caller gets back.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import settings
from app.models import Order
from app.services.audit_service import AuditRecord, AuditRecorder
from app.services.background import BackgroundWorker
from app.services.history_service import append_ship_date_entry, append_stage_entry
from app.services.notification_service import LifecycleEvent, NotificationFanout
from app.services.order_service import get_order_for_scope
from app.services.security_guards import Actor
from app.services.stage_catalog import classify_order, is_known_stage, is_valid_transition

logger = logging.getLogger(__name__)


class LifecycleError(Exception):
    """Base class for errors that abort a lifecycle update."""

    code: str = "LifecycleError"

    def __init__(self, message: str, organization_id: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.organization_id = organization_id


class OrderNotFoundError(LifecycleError):
    code = "NotFound"


class InvalidTransitionError(LifecycleError):
    code = "InvalidTransition"


class LifecycleValidationError(LifecycleError):
    code = "ValidationFailure"


class PersistenceFailureError(LifecycleError):
    code = "PersistenceFailure"


@dataclass(frozen=True)
class OrderSnapshot:
    """Detached copy of an order as committed by a lifecycle update."""

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

    @classmethod
    def from_order(cls, order: Order) -> "OrderSnapshot":
        return cls(
            id=order.id,
            order_number=order.order_number,
            organization_id=order.organization_id,
            description=order.description,
            current_stage=order.current_stage,
            original_ship_date=order.original_ship_date,
            current_ship_date=order.current_ship_date,
            is_active=order.is_active,
            status=classify_order(order.is_active, order.current_stage),
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


@dataclass(frozen=True)
class BulkUpdateFailure:
    order_id: int
    error: str
    message: str


@dataclass
class BulkUpdateResult:
    succeeded: list[int] = field(default_factory=list)
    failed: list[BulkUpdateFailure] = field(default_factory=list)


class OrderLockRegistry:
    """Hands out one lock per order id and forgets it when nobody holds it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[int, list] = {}

    @contextmanager
    def hold(self, order_id: int, timeout: float) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(order_id, [threading.Lock(), 0])
            entry[1] += 1
        lock: threading.Lock = entry[0]
        acquired = lock.acquire(timeout=max(timeout, 0.0))
        try:
            if not acquired:
                raise PersistenceFailureError(f"Timed out waiting for order {order_id}")
            yield
        finally:
            if acquired:
                lock.release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    self._locks.pop(order_id, None)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LifecycleEngine:
    """Applies lifecycle updates to orders.

    ``bypass_validation`` only takes effect for actors allowed to bypass the
    stage ordering rule; everyone else is validated against the catalog.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        worker: BackgroundWorker,
        fanout: NotificationFanout,
        audit: AuditRecorder,
        *,
        timeout_seconds: float | None = None,
        max_retries: int | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._worker = worker
        self._fanout = fanout
        self._audit = audit
        self._timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.lifecycle_timeout_seconds
        self._max_retries = max(1, max_retries if max_retries is not None else settings.lifecycle_max_retries)
        self._clock = clock
        self._locks = OrderLockRegistry()

    def apply_lifecycle_update(
        self,
        order_id: int,
        requested_stage: str | None,
        requested_ship_date: date | None,
        reason: str | None,
        actor: Actor,
        bypass_validation: bool = False,
        *,
        resource: str | None = None,
        http_method: str = "PATCH",
    ) -> OrderSnapshot:
        """Apply one lifecycle update and return the committed order.

        Raises OrderNotFoundError, InvalidTransitionError,
        LifecycleValidationError or PersistenceFailureError; every attempt is
        audited either way.
        """
        resource = resource or f"PATCH /api/v1/orders/{order_id}/stage"
        validate = True
        if bypass_validation:
            if actor.can_bypass_validation:
                validate = False
            else:
                logger.warning("[LIFECYCLE] user_id=%s (%s) may not bypass stage validation", actor.user_id, actor.role)

        try:
            self._check_request(requested_stage, requested_ship_date, reason)
            snapshot, event = self._apply_serialized(order_id, requested_stage, requested_ship_date, reason, actor, validate)
        except LifecycleError as exc:
            logger.warning("[LIFECYCLE] Update of order_id=%s failed (%s): %s", order_id, exc.code, exc.message)
            self.submit_audit(actor, resource, http_method, False, exc.organization_id, exc.message)
            raise

        self.submit_audit(actor, resource, http_method, True, snapshot.organization_id, self._describe(snapshot, event))
        if event.stage_changed or event.ship_date_changed:
            self._worker.submit(self._fanout.notify_lifecycle_change, event)

        logger.info(
            "[LIFECYCLE] Updated order %s: stage %s -> %s by user_id=%s",
            snapshot.order_number,
            event.stage_before,
            event.stage_after,
            actor.user_id,
        )
        return snapshot

    def apply_lifecycle_update_bulk(
        self,
        order_ids: Sequence[int],
        requested_stage: str | None,
        requested_ship_date: date | None,
        reason: str | None,
        actor: Actor,
        bypass_validation: bool = False,
    ) -> BulkUpdateResult:
        """Apply the same update to each order independently."""
        try:
            if not order_ids:
                raise LifecycleValidationError("At least one order ID is required")
            self._check_request(requested_stage, requested_ship_date, reason)
        except LifecycleValidationError as exc:
            logger.warning("[LIFECYCLE] Bulk update by user_id=%s rejected: %s", actor.user_id, exc.message)
            self.submit_audit(actor, "POST /api/v1/orders/bulk-update", "POST", False, actor.organization_id, exc.message)
            raise

        result = BulkUpdateResult()
        for order_id in order_ids:
            try:
                self.apply_lifecycle_update(
                    order_id,
                    requested_stage,
                    requested_ship_date,
                    reason,
                    actor,
                    bypass_validation,
                    resource="POST /api/v1/orders/bulk-update",
                    http_method="POST",
                )
            except LifecycleError as exc:
                result.failed.append(BulkUpdateFailure(order_id=order_id, error=exc.code, message=exc.message))
            else:
                result.succeeded.append(order_id)

        logger.info(
            "[LIFECYCLE] Bulk update by user_id=%s: %s successful, %s failed",
            actor.user_id,
            len(result.succeeded),
            len(result.failed),
        )
        return result

    @staticmethod
    def _check_request(requested_stage: str | None, requested_ship_date: date | None, reason: str | None) -> None:
        if not reason or not reason.strip():
            raise LifecycleValidationError("A reason is required for lifecycle updates")
        if requested_stage is None and requested_ship_date is None:
            raise LifecycleValidationError("Provide a stage or a ship date")

    def _apply_serialized(
        self,
        order_id: int,
        requested_stage: str | None,
        requested_ship_date: date | None,
        reason: str,
        actor: Actor,
        validate: bool,
    ) -> tuple[OrderSnapshot, LifecycleEvent]:
        deadline = time.monotonic() + self._timeout_seconds
        with self._locks.hold(order_id, self._timeout_seconds):
            for attempt in range(1, self._max_retries + 1):
                if time.monotonic() > deadline:
                    raise PersistenceFailureError(f"Timed out updating order {order_id}")
                try:
                    return self._apply_once(order_id, requested_stage, requested_ship_date, reason, actor, validate)
                except StaleDataError:
                    logger.warning("[LIFECYCLE] Concurrent write on order_id=%s (attempt %s)", order_id, attempt)
        raise PersistenceFailureError(f"Order {order_id} kept changing concurrently; giving up")

    def _apply_once(
        self,
        order_id: int,
        requested_stage: str | None,
        requested_ship_date: date | None,
        reason: str,
        actor: Actor,
        validate: bool,
    ) -> tuple[OrderSnapshot, LifecycleEvent]:
        with self._session_factory() as db:
            try:
                order = get_order_for_scope(db, order_id, actor.organization_scope)
                if order is None:
                    raise OrderNotFoundError("Order not found")

                original_stage = order.current_stage
                original_ship_date = order.current_ship_date
                new_stage = requested_stage or original_stage
                if not validate and not is_known_stage(new_stage):
                    raise LifecycleValidationError(f"Unknown stage: {new_stage}", organization_id=order.organization_id)
                if validate and not is_valid_transition(original_stage, new_stage):
                    raise InvalidTransitionError(
                        f"Invalid stage transition from {original_stage} to {new_stage}",
                        organization_id=order.organization_id,
                    )

                stage_changed = new_stage != original_stage
                ship_date_changed = requested_ship_date is not None and requested_ship_date != original_ship_date
                if stage_changed or ship_date_changed:
                    now = self._clock()
                    order.current_stage = new_stage
                    if ship_date_changed:
                        order.current_ship_date = requested_ship_date
                    order.updated_at = now
                    if stage_changed:
                        append_stage_entry(
                            db,
                            order_id=order.id,
                            stage=new_stage,
                            entered_at=now,
                            updated_by=actor.display_name,
                            notes=reason,
                        )
                    if ship_date_changed:
                        append_ship_date_entry(
                            db,
                            order_id=order.id,
                            stage=new_stage,
                            entered_at=now,
                            updated_by=actor.display_name,
                            previous_ship_date=original_ship_date,
                            new_ship_date=requested_ship_date,
                            reason=reason,
                        )
                    db.commit()

                snapshot = OrderSnapshot.from_order(order)
            except (LifecycleError, StaleDataError):
                db.rollback()
                raise
            except SQLAlchemyError as exc:
                db.rollback()
                logger.exception("[LIFECYCLE] Storage failure while updating order_id=%s", order_id)
                raise PersistenceFailureError("An error occurred while updating the order") from exc

        event = LifecycleEvent(
            order_id=snapshot.id,
            organization_id=snapshot.organization_id,
            order_label=snapshot.order_number,
            stage_before=original_stage,
            stage_after=snapshot.current_stage,
            ship_date_before=original_ship_date,
            ship_date_after=requested_ship_date,
            reason=reason,
        )
        return snapshot, event

    @staticmethod
    def _describe(snapshot: OrderSnapshot, event: LifecycleEvent) -> str:
        return (
            f"Updated order {snapshot.order_number}: stage {event.stage_before} -> {event.stage_after}, "
            f"ship date {event.ship_date_before:%Y-%m-%d} -> {snapshot.current_ship_date:%Y-%m-%d}, reason: {event.reason}"
        )

    def submit_audit(
        self,
        actor: Actor,
        resource: str,
        http_method: str,
        success: bool,
        organization_id: int | None,
        details: str,
    ) -> None:
        record = AuditRecord(
            user_id=actor.user_id,
            user_role=actor.role,
            resource=resource,
            http_method=http_method,
            access_granted=success,
            organization_id=organization_id,
            ip_address=actor.ip_address,
            user_agent=actor.user_agent,
            details=details,
            timestamp=self._clock(),
        )
        try:
            self._worker.submit(self._audit.record, record)
        except Exception:
            logger.exception("[AUDIT] Could not queue audit entry for %s", resource)
