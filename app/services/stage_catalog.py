"""Manufacturing stage catalog and transition rules."""

from __future__ import annotations

ORDER_STAGES: list[str] = [
    "Initial Consultation",
    "Design Proposal",
    "Proof Approval",
    "Measurements",
    "Production Planning",
    "Cutting",
    "Sewing",
    "Quality Control",
    "Finishing",
    "Final Inspection",
    "Packaging",
    "Shipping Preparation",
    "Ship Order",
    "Delivery",
]
INITIAL_STAGE: str = ORDER_STAGES[0]
TERMINAL_STAGES: tuple[str, ...] = ("Ship Order", "Delivery")

SHIP_DATE_CHANGE_MILESTONE: str = "Ship Date Change"

MILESTONE_CATEGORIES: dict[str, str] = {
    "Measurements": "MeasurementsDue",
    "Proof Approval": "ProofApproval",
    "Production Planning": "ProductionStart",
    "Shipping Preparation": "Shipping",
    "Ship Order": "Shipping",
    "Delivery": "Delivery",
}

_STAGE_INDEX: dict[str, int] = {stage: index for index, stage in enumerate(ORDER_STAGES)}


def index_of(stage: str | None) -> int | None:
    """Return the position of a stage in the pipeline or None when unknown."""
    if stage is None:
        return None
    return _STAGE_INDEX.get(stage)


def is_known_stage(stage: str | None) -> bool:
    return index_of(stage) is not None


def is_valid_transition(current: str, new: str) -> bool:
    """Return whether an order can move from current to new stage.

    Staying put and moving backwards are always allowed; moving forward is
    limited to the next stage.
    """
    current_index = index_of(current)
    new_index = index_of(new)
    if current_index is None or new_index is None:
        return False
    return new_index <= current_index + 1


def milestone_category(stage: str) -> str | None:
    """Return the preference category a stage notification belongs to."""
    return MILESTONE_CATEGORIES.get(stage)


def classify_order(is_active: bool, stage: str) -> str:
    """Derive Active/Completed/Cancelled from the active flag and stage."""
    if is_active:
        return "Active"
    if stage in TERMINAL_STAGES:
        return "Completed"
    return "Cancelled"
