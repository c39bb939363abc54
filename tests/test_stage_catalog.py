"""Stage catalog transition rule tests."""

import pytest

from app.services.stage_catalog import (
    ORDER_STAGES,
    classify_order,
    index_of,
    is_valid_transition,
    milestone_category,
)


def test_catalog_has_fourteen_ordered_stages() -> None:
    assert len(ORDER_STAGES) == 14
    assert ORDER_STAGES[0] == "Initial Consultation"
    assert ORDER_STAGES[-1] == "Delivery"
    assert index_of("Cutting") == 5
    assert index_of("Embroidery") is None


@pytest.mark.parametrize("stage", ORDER_STAGES)
def test_staying_on_the_same_stage_is_always_valid(stage: str) -> None:
    assert is_valid_transition(stage, stage) is True


def test_one_step_forward_and_any_step_back_are_valid() -> None:
    assert is_valid_transition("Cutting", "Sewing") is True
    assert is_valid_transition("Cutting", "Quality Control") is False
    assert is_valid_transition("Cutting", "Design Proposal") is True
    assert is_valid_transition("Delivery", "Initial Consultation") is True
    assert is_valid_transition("Initial Consultation", "Delivery") is False


def test_transition_matches_index_rule_for_every_pair() -> None:
    for current_index, current in enumerate(ORDER_STAGES):
        for new_index, new in enumerate(ORDER_STAGES):
            assert is_valid_transition(current, new) is (new_index <= current_index + 1)


def test_unknown_stages_are_never_valid() -> None:
    assert is_valid_transition("Unknown", "Cutting") is False
    assert is_valid_transition("Cutting", "Unknown") is False
    assert is_valid_transition("Unknown", "Unknown") is False


def test_milestone_categories_and_order_classification() -> None:
    assert milestone_category("Proof Approval") == "ProofApproval"
    assert milestone_category("Sewing") is None
    assert classify_order(True, "Delivery") == "Active"
    assert classify_order(False, "Delivery") == "Completed"
    assert classify_order(False, "Ship Order") == "Completed"
    assert classify_order(False, "Sewing") == "Cancelled"
