"""Order endpoints: scoped reads, creation and lifecycle updates."""

import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.security import get_current_user
from app.db.session import get_db
from app.models import Order, User
from app.schemas.order import (
    BulkLifecycleUpdateRequest,
    BulkUpdateResponse,
    LifecycleUpdateRequest,
    OrderCreate,
    OrderRead,
    StageHistoryRead,
)
from app.services.history_service import get_timeline
from app.services.lifecycle_service import (
    InvalidTransitionError,
    LifecycleEngine,
    LifecycleError,
    LifecycleValidationError,
    OrderNotFoundError,
)
from app.services.order_service import (
    ORDER_STATUS_FILTERS,
    OrganizationNotFoundError,
    create_order,
    get_order_for_scope,
    list_orders,
)
from app.services.security_guards import (
    LIFECYCLE_ROLES,
    STAFF_ROLES,
    Actor,
    ensure_organization_member,
    ensure_role,
)

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)


def get_lifecycle_engine(request: Request) -> LifecycleEngine:
    engine: LifecycleEngine | None = getattr(request.app.state, "lifecycle_engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Lifecycle engine is not running")
    return engine


def _actor(request: Request, user: User) -> Actor:
    client_host = request.client.host if request.client else None
    return Actor.from_user(user, ip_address=client_host, user_agent=request.headers.get("user-agent"))


def _authorize(
    engine: LifecycleEngine,
    actor: Actor,
    user: User,
    allowed_roles: set[str],
    resource: str,
    http_method: str,
) -> None:
    """Role checks for mutating routes; denials are audited before the 403."""
    try:
        ensure_role(user, allowed_roles)
        ensure_organization_member(user)
    except HTTPException:
        logger.warning("[AUTH] %s %s denied for user_id=%s (%s)", http_method, resource, user.id, user.role)
        engine.submit_audit(actor, resource, http_method, False, user.organization_id, "Insufficient role privileges")
        raise


def _raise_lifecycle_error(exc: LifecycleError) -> NoReturn:
    if isinstance(exc, OrderNotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, (InvalidTransitionError, LifecycleValidationError)):
        status_code = status.HTTP_400_BAD_REQUEST
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    raise HTTPException(status_code=status_code, detail={"error": exc.code, "message": exc.message}) from exc


def _load_scoped_order(db: Session, order_id: int, user: User) -> Order:
    ensure_organization_member(user)
    scope = None if user.role in STAFF_ROLES else user.organization_id
    order = get_order_for_scope(db, order_id, scope)
    if order is None:
        logger.warning("Order not found or access denied: %s for user_id=%s", order_id, user.id)
        raise HTTPException(status_code=404, detail="Order not found or access denied")
    return order


@router.get("", response_model=list[OrderRead])
def list_visible_orders(
    status_filter: str | None = Query(default=None, alias="status"),
    stage: str | None = Query(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[Order]:
    """List orders visible to the caller; active orders unless a status is given."""
    ensure_organization_member(current_user)
    if status_filter is not None and status_filter.strip().upper() not in ORDER_STATUS_FILTERS:
        raise HTTPException(status_code=400, detail=f"Unknown status filter: {status_filter}")
    scope = None if current_user.role in STAFF_ROLES else current_user.organization_id
    return list_orders(db, organization_id=scope, status=status_filter, stage=stage)


@router.post("", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
def create_new_order(
    payload: OrderCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
) -> Order:
    actor = _actor(request, current_user)
    _authorize(engine, actor, current_user, STAFF_ROLES, "POST /api/v1/orders", "POST")
    try:
        order = create_order(
            db,
            organization_id=payload.organization_id,
            description=payload.description,
            ship_date=payload.ship_date,
            created_by=actor.display_name,
            total_amount=payload.total_amount,
            notes=payload.notes,
        )
    except OrganizationNotFoundError as exc:
        engine.submit_audit(actor, "POST /api/v1/orders", "POST", False, payload.organization_id, "Organization not found")
        raise HTTPException(status_code=404, detail="Organization not found") from exc
    except IntegrityError as exc:
        raise HTTPException(status_code=409, detail="Order number already taken, retry") from exc

    engine.submit_audit(actor, "POST /api/v1/orders", "POST", True, order.organization_id, f"Created order {order.order_number}")
    return order


@router.post("/bulk-update", response_model=BulkUpdateResponse)
def bulk_update_orders(
    payload: BulkLifecycleUpdateRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
) -> BulkUpdateResponse:
    """Apply one stage/ship-date change to many orders; failures are reported per id."""
    actor = _actor(request, current_user)
    _authorize(engine, actor, current_user, STAFF_ROLES, "POST /api/v1/orders/bulk-update", "POST")
    try:
        result = engine.apply_lifecycle_update_bulk(
            payload.order_ids,
            payload.stage,
            payload.ship_date,
            payload.reason,
            actor,
            bypass_validation=actor.can_bypass_validation,
        )
    except LifecycleError as exc:
        _raise_lifecycle_error(exc)
    return BulkUpdateResponse.model_validate(result)


@router.get("/{order_id}", response_model=OrderRead)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Order:
    return _load_scoped_order(db, order_id, current_user)


@router.get("/{order_id}/history", response_model=list[StageHistoryRead])
def get_order_history(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list:
    """Return the order's stage and ship-date timeline, oldest first."""
    order = _load_scoped_order(db, order_id, current_user)
    return get_timeline(db, order.id)


@router.patch("/{order_id}/stage", response_model=OrderRead)
def update_order_stage(
    order_id: int,
    payload: LifecycleUpdateRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
) -> OrderRead:
    actor = _actor(request, current_user)
    _authorize(engine, actor, current_user, LIFECYCLE_ROLES, f"PATCH /api/v1/orders/{order_id}/stage", "PATCH")
    try:
        snapshot = engine.apply_lifecycle_update(
            order_id,
            payload.stage,
            payload.ship_date,
            payload.reason,
            actor,
            bypass_validation=actor.can_bypass_validation,
        )
    except LifecycleError as exc:
        _raise_lifecycle_error(exc)
    return OrderRead.model_validate(snapshot)
