"""
Pure lifecycle rule tests (no database).

Verifies:
- Guarded transitions and the state machine graph
- Defaults for approved quantity and quantity returned
- Return completeness, overdue predicate and compliance rate
- Submission normalisation
"""

from datetime import date, datetime

import pytest

from slms.services import request_lifecycle as lc
from slms.services.request_lifecycle import (
    Actor,
    LifecycleError,
    RequestSnapshot,
    RequestValidationError,
)


TODAY = date(2026, 10, 17)
NOW = datetime(2026, 10, 17, 9, 30)
ACTOR = Actor(staff_id=7, name="Ama Mensah")


def snapshot(status, requested=3, approved=None):
    return RequestSnapshot(status=status, quantity_requested=requested, approved_quantity=approved)


# =============================================================================
# STATE MACHINE
# =============================================================================


class TestStateMachine:

    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            ("Pending", "Approved"),
            ("Pending", "Declined"),
            ("Approved", "Issued"),
            ("Issued", "Returned"),
        ],
    )
    def test_allowed_edges(self, from_status, to_status):
        assert lc.can_transition(from_status, to_status)

    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            ("Approved", "Pending"),
            ("Issued", "Approved"),
            ("Returned", "Issued"),
            ("Approved", "Declined"),
            ("Issued", "Declined"),
            ("Declined", "Approved"),
            ("Pending", "Issued"),
            ("Pending", "Pending"),
        ],
    )
    def test_rejected_edges(self, from_status, to_status):
        assert not lc.can_transition(from_status, to_status)

    def test_unknown_status_is_rejected(self):
        with pytest.raises(LifecycleError):
            lc.can_transition("Lost", "Returned")

    def test_terminal_statuses_have_no_transitions(self):
        assert lc.allowed_transitions("Declined") == []
        assert lc.allowed_transitions("Returned") == []
        assert set(lc.allowed_transitions("Pending")) == {"approve", "decline"}

    def test_guard_message_names_both_statuses(self):
        with pytest.raises(LifecycleError) as exc:
            lc.ensure_transition("decline", "Issued")
        assert "'Issued'" in str(exc.value)
        assert "'Pending'" in str(exc.value)


# =============================================================================
# APPROVE / DECLINE
# =============================================================================


class TestApprove:

    def test_defaults_to_requested_quantity(self):
        patch = lc.plan_approve(snapshot("Pending", requested=4), actor=ACTOR, as_of=TODAY)
        assert patch["approved_quantity"] == 4
        assert patch["status"] == "Approved"
        assert patch["approval_date"] == TODAY
        assert patch["approved_by"] == "Ama Mensah"
        assert patch["approved_by_staff_id"] == 7

    def test_may_cut_quantity(self):
        patch = lc.plan_approve(snapshot("Pending", requested=4), actor=ACTOR, as_of=TODAY, approved_quantity="2")
        assert patch["approved_quantity"] == 2

    def test_may_raise_quantity(self):
        patch = lc.plan_approve(snapshot("Pending", requested=2), actor=ACTOR, as_of=TODAY, approved_quantity=5)
        assert patch["approved_quantity"] == 5

    @pytest.mark.parametrize("qty", [0, -1, "1.5", "abc", True])
    def test_rejects_invalid_quantity(self, qty):
        with pytest.raises(RequestValidationError):
            lc.plan_approve(snapshot("Pending", requested=4), actor=ACTOR, as_of=TODAY, approved_quantity=qty)

    def test_only_from_pending(self):
        with pytest.raises(LifecycleError):
            lc.plan_approve(snapshot("Approved", approved=3), actor=ACTOR, as_of=TODAY)

    def test_patch_touches_only_approval_fields(self):
        patch = lc.plan_approve(snapshot("Pending"), actor=ACTOR, as_of=TODAY)
        assert set(patch) == {"status", "approved_quantity", "approval_date", "approved_by", "approved_by_staff_id"}


class TestDecline:

    def test_records_reason_and_actor(self):
        patch = lc.plan_decline(snapshot("Pending"), actor=ACTOR, at=NOW, reason="  out of budget ")
        assert patch == {
            "status": "Declined",
            "declined_at": NOW,
            "declined_by_staff_id": 7,
            "decline_reason": "out of budget",
        }

    def test_reason_is_optional(self):
        patch = lc.plan_decline(snapshot("Pending"), actor=ACTOR, at=NOW)
        assert patch["decline_reason"] is None

    @pytest.mark.parametrize("status", ["Approved", "Issued", "Returned", "Declined"])
    def test_only_from_pending(self, status):
        with pytest.raises(LifecycleError):
            lc.plan_decline(snapshot(status, approved=3), actor=ACTOR, at=NOW)


# =============================================================================
# ISSUE / RETURN
# =============================================================================


class TestIssue:

    def test_past_expected_return_date_is_accepted(self):
        patch = lc.plan_issue(
            snapshot("Approved", approved=1),
            actor=ACTOR,
            as_of=TODAY,
            expected_return_date="2024-06-01",
            condition_on_supply="Good",
        )
        assert patch["status"] == "Issued"
        assert patch["expected_return_date"] == date(2024, 6, 1)
        assert patch["condition_on_supply"] == "Good"
        assert patch["date_issued"] == TODAY
        assert patch["supplied_by_staff_id"] == 7

    def test_defaults(self):
        patch = lc.plan_issue(snapshot("Approved", approved=1), actor=ACTOR, as_of=TODAY)
        assert patch["condition_on_supply"] == "New"
        assert patch["expected_return_date"] is None
        assert patch["store_source"] is None

    def test_rejects_unknown_condition(self):
        with pytest.raises(RequestValidationError):
            lc.plan_issue(snapshot("Approved", approved=1), actor=ACTOR, as_of=TODAY, condition_on_supply="Shiny")

    def test_rejects_bad_date(self):
        with pytest.raises(RequestValidationError):
            lc.plan_issue(snapshot("Approved", approved=1), actor=ACTOR, as_of=TODAY, expected_return_date="next week")

    def test_only_from_approved(self):
        with pytest.raises(LifecycleError):
            lc.plan_issue(snapshot("Pending"), actor=ACTOR, as_of=TODAY)


class TestReturn:

    def test_defaults_to_approved_quantity_and_completed(self):
        patch = lc.plan_return(snapshot("Issued", requested=5, approved=3), actor=ACTOR, as_of=TODAY)
        assert patch["quantity_returned"] == 3
        assert patch["return_status"] == "Completed"
        assert patch["condition_on_return"] == "Good"
        assert patch["status"] == "Returned"
        assert patch["received_by"] == "Ama Mensah"

    def test_short_return_is_partial(self):
        patch = lc.plan_return(
            snapshot("Issued", approved=3),
            actor=ACTOR,
            as_of=TODAY,
            quantity_returned=1,
            condition_on_return="Lost",
            loss_description="two left on the bus",
        )
        assert patch["return_status"] == "Partial"
        assert patch["loss_description"] == "two left on the bus"

    def test_over_return_is_completed(self):
        patch = lc.plan_return(snapshot("Issued", requested=2, approved=2), actor=ACTOR, as_of=TODAY, quantity_returned=3)
        assert patch["quantity_returned"] == 3
        assert patch["return_status"] == "Completed"

    def test_zero_returned_is_allowed(self):
        patch = lc.plan_return(snapshot("Issued", approved=2), actor=ACTOR, as_of=TODAY, quantity_returned=0)
        assert patch["quantity_returned"] == 0
        assert patch["return_status"] == "Partial"

    @pytest.mark.parametrize("qty", [-1, "x"])
    def test_rejects_invalid_quantity(self, qty):
        with pytest.raises(RequestValidationError):
            lc.plan_return(snapshot("Issued", approved=3), actor=ACTOR, as_of=TODAY, quantity_returned=qty)

    def test_never_writes_overdue(self):
        patch = lc.plan_return(snapshot("Issued", approved=1), actor=ACTOR, as_of=TODAY)
        assert patch["return_status"] != lc.RETURN_STATUS_OVERDUE

    def test_only_from_issued(self):
        with pytest.raises(LifecycleError):
            lc.plan_return(snapshot("Approved", approved=1), actor=ACTOR, as_of=TODAY)


class TestPlanTransition:

    def test_dispatches_fields(self):
        patch = lc.plan_transition(
            "approve",
            snapshot("Pending", requested=2),
            {"approved_quantity": 1},
            actor=ACTOR,
            as_of=TODAY,
            at=NOW,
        )
        assert patch["approved_quantity"] == 1

    def test_unknown_transition(self):
        with pytest.raises(LifecycleError):
            lc.plan_transition("cancel", snapshot("Pending"), {}, actor=ACTOR, as_of=TODAY, at=NOW)


# =============================================================================
# DERIVED VALUES
# =============================================================================


class TestDerived:

    def test_overdue_requires_issued_and_past_date(self):
        assert lc.is_overdue("Issued", date(2026, 10, 16), TODAY)
        assert not lc.is_overdue("Issued", TODAY, TODAY)
        assert not lc.is_overdue("Issued", None, TODAY)
        assert not lc.is_overdue("Returned", date(2024, 6, 1), TODAY)

    def test_compliance_rate(self):
        assert lc.compliance_rate(0, 0) == 100
        assert lc.compliance_rate(3, 1) == 33
        assert lc.compliance_rate(3, 2) == 67
        assert lc.compliance_rate(4, 4) == 100
        assert lc.compliance_rate(8, 1) == 13
        assert lc.compliance_rate(8, 5) == 63
        assert lc.compliance_rate(200, 1) == 1

    def test_derive_return_status(self):
        assert lc.derive_return_status(2, 2) == "Completed"
        assert lc.derive_return_status(1, 2) == "Partial"
        assert lc.derive_return_status(3, 2) == "Completed"


# =============================================================================
# SUBMISSION
# =============================================================================


class TestSubmission:

    def test_defaults(self):
        facts = lc.validate_submission({"item_name": " Projector ", "quantity_requested": 1}, as_of=TODAY)
        assert facts["item_name"] == "Projector"
        assert facts["category"] == "Teaching Aid"
        assert facts["purpose"] == "Teaching"
        assert facts["usage_duration"] == "Temporary"
        assert facts["priority"] == "Medium"
        assert facts["date_requested"] == TODAY
        assert facts["date_required"] == TODAY
        assert facts["status"] == "Pending"

    @pytest.mark.parametrize(
        "payload",
        [
            {"quantity_requested": 1},
            {"item_name": "   ", "quantity_requested": 1},
            {"item_name": "Projector"},
            {"item_name": "Projector", "quantity_requested": 0},
            {"item_name": "Projector", "quantity_requested": "1e3"},
            {"item_name": "Projector", "quantity_requested": 1, "category": "Food"},
            {"item_name": "Projector", "quantity_requested": 1, "date_required": "17/10/2026"},
        ],
    )
    def test_rejects_invalid(self, payload):
        with pytest.raises(RequestValidationError):
            lc.validate_submission(payload, as_of=TODAY)

    def test_rejects_non_object(self):
        with pytest.raises(RequestValidationError):
            lc.validate_submission(["Projector"], as_of=TODAY)
