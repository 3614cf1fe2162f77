# Overview: Pure lifecycle rules for material requests; no database access.

"""
SLMS Material Request Lifecycle

================================================================================
PURPOSE: Decide whether a request may move to its next phase and what it
         looks like afterwards
================================================================================

STATE MACHINE:
    Pending -> Approved -> Issued -> Returned
    Pending -> Declined

    Pending:  Submitted by a staff member, awaiting a decision
    Approved: Quantity agreed, waiting for the store to issue it
    Declined: Refused (terminal)
    Issued:   Handed over; may carry an expected return date
    Returned: Handed back and checked in (terminal)

RULES:
1. A transition applies only from its one source status. Anything else
   raises LifecycleError and changes nothing.
2. Status never moves backwards.
3. Each transition fills in only its own phase fields.
4. "Overdue" is computed on read from the expected return date; it is
   never written to the record.

Every plan_* function here is pure: it takes a snapshot of the current
record plus operator input and returns the complete set of column updates.
Callers apply the patch only after planning succeeded, so a rejected
transition leaves no partial writes behind.
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Literal

from ..validation import ValidationError, parse_int, parse_date, parse_choice, clean_text


STATUS_PENDING = "Pending"
STATUS_APPROVED = "Approved"
STATUS_DECLINED = "Declined"
STATUS_ISSUED = "Issued"
STATUS_RETURNED = "Returned"

VALID_STATUSES = {STATUS_PENDING, STATUS_APPROVED, STATUS_DECLINED, STATUS_ISSUED, STATUS_RETURNED}
TERMINAL_STATUSES = {STATUS_DECLINED, STATUS_RETURNED}
RequestStatus = Literal["Pending", "Approved", "Declined", "Issued", "Returned"]

# Enum labels; each DEFAULT_* is the value a blank form field falls back to
CATEGORIES = ("Teaching Aid", "Stationery", "ICT", "Equipment", "Other")
PURPOSES = ("Teaching", "Assessment", "Support", "Other")
USAGE_DURATIONS = ("Temporary", "Permanent")
PRIORITIES = ("Low", "Medium", "High")
SUPPLY_CONDITIONS = ("New", "Good", "Fair", "Poor")
RETURN_CONDITIONS = ("Good", "Damaged", "Lost")

DEFAULT_CATEGORY = "Teaching Aid"
DEFAULT_PURPOSE = "Teaching"
DEFAULT_USAGE_DURATION = "Temporary"
DEFAULT_PRIORITY = "Medium"
DEFAULT_SUPPLY_CONDITION = "New"
DEFAULT_RETURN_CONDITION = "Good"

RETURN_STATUS_COMPLETED = "Completed"
RETURN_STATUS_PARTIAL = "Partial"
# Valid label, but plan_return never writes it: overdue is derived on read
RETURN_STATUS_OVERDUE = "Overdue"
RETURN_STATUSES = (RETURN_STATUS_COMPLETED, RETURN_STATUS_PARTIAL, RETURN_STATUS_OVERDUE)

TRANSITION_APPROVE = "approve"
TRANSITION_DECLINE = "decline"
TRANSITION_ISSUE = "issue"
TRANSITION_RETURN = "return"

# transition -> (required current status, resulting status)
TRANSITIONS: dict[str, tuple[str, str]] = {
    TRANSITION_APPROVE: (STATUS_PENDING, STATUS_APPROVED),
    TRANSITION_DECLINE: (STATUS_PENDING, STATUS_DECLINED),
    TRANSITION_ISSUE: (STATUS_APPROVED, STATUS_ISSUED),
    TRANSITION_RETURN: (STATUS_ISSUED, STATUS_RETURNED),
}

MAX_ITEM_NAME_LENGTH = 255
MAX_NOTE_LENGTH = 255


class LifecycleError(ValueError):
    """
    Raised when a transition is attempted from the wrong status.

    This is a domain error, not a technical error: the caller acted on a
    record that has already moved on (or never got there).
    """
    pass


class RequestValidationError(ValidationError):
    """Missing or invalid operator input for a submission or transition."""
    pass


@dataclass(frozen=True)
class Actor:
    """The staff member performing a transition."""
    staff_id: int
    name: str


@dataclass(frozen=True)
class RequestSnapshot:
    """The parts of a stored request that guards and defaults depend on."""
    status: str
    quantity_requested: int
    approved_quantity: int | None = None

    @classmethod
    def of(cls, request) -> "RequestSnapshot":
        return cls(
            status=request.status,
            quantity_requested=request.quantity_requested,
            approved_quantity=request.approved_quantity,
        )


def validate_status(status: str) -> None:
    if status not in VALID_STATUSES:
        raise LifecycleError(
            f"Invalid status '{status}'. Must be one of: {', '.join(sorted(VALID_STATUSES))}"
        )


def can_transition(from_status: str, to_status: str) -> bool:
    """
    Check a (from, to) pair against the state machine.

    Same-status pairs are not transitions and return False.
    """
    validate_status(from_status)
    validate_status(to_status)
    return (from_status, to_status) in set(TRANSITIONS.values())


def allowed_transitions(status: str) -> list[str]:
    """Transition names applicable to a record in the given status."""
    validate_status(status)
    return [name for name, (source, _) in TRANSITIONS.items() if source == status]


def ensure_transition(transition: str, current_status: str) -> str:
    """
    Guard for a named transition. Returns the resulting status.

    Raises:
        LifecycleError: unknown transition, or current status is not the
            transition's source status
    """
    if transition not in TRANSITIONS:
        raise LifecycleError(f"Unknown transition '{transition}'")
    source, target = TRANSITIONS[transition]
    if current_status != source:
        raise LifecycleError(
            f"Cannot {transition} request: current status is '{current_status}', must be '{source}'"
        )
    return target


def derive_return_status(quantity_returned: int, approved_quantity: int | None) -> str:
    """Partial when fewer items came back than were approved, else Completed."""
    if quantity_returned < (approved_quantity or 0):
        return RETURN_STATUS_PARTIAL
    return RETURN_STATUS_COMPLETED


def is_overdue(status: str, expected_return_date: date | None, as_of: date) -> bool:
    """An issued item whose expected return date is strictly before as_of."""
    return (
        status == STATUS_ISSUED
        and expected_return_date is not None
        and expected_return_date < as_of
    )


def compliance_rate(total: int, returned: int) -> int:
    """Whole-percent share of requests that reached Returned; 100 for none."""
    if total <= 0:
        return 100
    # Halves round up
    return int(returned * 100 / total + 0.5)


# ================================================================================
# SUBMISSION
# ================================================================================

def validate_submission(payload: dict, *, as_of: date) -> dict:
    """
    Normalise a submission payload into request-fact columns.

    Item name and a positive quantity are mandatory; every enum falls back
    to its form default and both dates default to as_of.

    Raises:
        RequestValidationError: on any missing or invalid field
    """
    if payload is None or not isinstance(payload, dict):
        raise RequestValidationError("Invalid JSON payload")

    try:
        item_name = clean_text("item_name", payload.get("item_name"), max_length=MAX_ITEM_NAME_LENGTH, required=True)

        raw_qty = payload.get("quantity_requested")
        if raw_qty is None or raw_qty == "":
            raise RequestValidationError("quantity_requested is required")
        quantity = parse_int("quantity_requested", raw_qty)
        if quantity < 1:
            raise RequestValidationError("quantity_requested must be at least 1")

        date_requested = parse_date("date_requested", payload.get("date_requested")) or as_of
        date_required = parse_date("date_required", payload.get("date_required")) or as_of

        return {
            "item_name": item_name,
            "category": parse_choice("category", payload.get("category"), CATEGORIES, default=DEFAULT_CATEGORY),
            "purpose": parse_choice("purpose", payload.get("purpose"), PURPOSES, default=DEFAULT_PURPOSE),
            "quantity_requested": quantity,
            "date_requested": date_requested,
            "date_required": date_required,
            "usage_duration": parse_choice(
                "usage_duration", payload.get("usage_duration"), USAGE_DURATIONS, default=DEFAULT_USAGE_DURATION
            ),
            "priority": parse_choice("priority", payload.get("priority"), PRIORITIES, default=DEFAULT_PRIORITY),
            "remarks": clean_text("remarks", payload.get("remarks")),
            "status": STATUS_PENDING,
        }
    except RequestValidationError:
        raise
    except ValidationError as e:
        raise RequestValidationError(str(e)) from e


# ================================================================================
# TRANSITIONS
# ================================================================================

def plan_approve(
    snapshot: RequestSnapshot,
    *,
    actor: Actor,
    as_of: date,
    approved_quantity: Any = None,
) -> dict:
    """
    Pending -> Approved.

    approved_quantity defaults to the requested quantity; the approver may
    set any positive quantity.
    """
    target = ensure_transition(TRANSITION_APPROVE, snapshot.status)

    if approved_quantity is None or approved_quantity == "":
        qty = snapshot.quantity_requested
    else:
        qty = _parse_quantity("approved_quantity", approved_quantity, minimum=1)

    return {
        "status": target,
        "approved_quantity": qty,
        "approval_date": as_of,
        "approved_by": actor.name,
        "approved_by_staff_id": actor.staff_id,
    }


def plan_decline(
    snapshot: RequestSnapshot,
    *,
    actor: Actor,
    at: datetime,
    reason: Any = None,
) -> dict:
    """Pending -> Declined (terminal)."""
    target = ensure_transition(TRANSITION_DECLINE, snapshot.status)
    return {
        "status": target,
        "declined_at": at,
        "declined_by_staff_id": actor.staff_id,
        "decline_reason": _clean_note("reason", reason),
    }


def plan_issue(
    snapshot: RequestSnapshot,
    *,
    actor: Actor,
    as_of: date,
    expected_return_date: Any = None,
    condition_on_supply: Any = None,
    store_source: Any = None,
) -> dict:
    """Approved -> Issued."""
    target = ensure_transition(TRANSITION_ISSUE, snapshot.status)

    try:
        expected = parse_date("expected_return_date", expected_return_date)
        condition = parse_choice(
            "condition_on_supply", condition_on_supply, SUPPLY_CONDITIONS, default=DEFAULT_SUPPLY_CONDITION
        )
    except ValidationError as e:
        raise RequestValidationError(str(e)) from e

    return {
        "status": target,
        "date_issued": as_of,
        "supplied_by": actor.name,
        "supplied_by_staff_id": actor.staff_id,
        "store_source": _clean_note("store_source", store_source),
        "condition_on_supply": condition,
        "expected_return_date": expected,
    }


def plan_return(
    snapshot: RequestSnapshot,
    *,
    actor: Actor,
    as_of: date,
    quantity_returned: Any = None,
    condition_on_return: Any = None,
    loss_description: Any = None,
) -> dict:
    """
    Issued -> Returned (terminal).

    quantity_returned defaults to the approved quantity; return_status is
    derived from the two, so returning at least the approved quantity
    is Completed.
    """
    target = ensure_transition(TRANSITION_RETURN, snapshot.status)

    approved = snapshot.approved_quantity or 0
    if quantity_returned is None or quantity_returned == "":
        qty = approved
    else:
        qty = _parse_quantity("quantity_returned", quantity_returned, minimum=0)

    try:
        condition = parse_choice(
            "condition_on_return", condition_on_return, RETURN_CONDITIONS, default=DEFAULT_RETURN_CONDITION
        )
    except ValidationError as e:
        raise RequestValidationError(str(e)) from e

    return {
        "status": target,
        "date_returned": as_of,
        "quantity_returned": qty,
        "condition_on_return": condition,
        "loss_description": _clean_note("loss_description", loss_description),
        "received_by": actor.name,
        "received_by_staff_id": actor.staff_id,
        "return_status": derive_return_status(qty, snapshot.approved_quantity),
    }


def plan_transition(
    transition: str,
    snapshot: RequestSnapshot,
    fields: dict | None,
    *,
    actor: Actor,
    as_of: date,
    at: datetime,
) -> dict:
    """Dispatch a named transition with operator-supplied fields."""
    fields = fields or {}
    if transition == TRANSITION_APPROVE:
        return plan_approve(snapshot, actor=actor, as_of=as_of, approved_quantity=fields.get("approved_quantity"))
    if transition == TRANSITION_DECLINE:
        return plan_decline(snapshot, actor=actor, at=at, reason=fields.get("reason"))
    if transition == TRANSITION_ISSUE:
        return plan_issue(
            snapshot,
            actor=actor,
            as_of=as_of,
            expected_return_date=fields.get("expected_return_date"),
            condition_on_supply=fields.get("condition_on_supply"),
            store_source=fields.get("store_source"),
        )
    if transition == TRANSITION_RETURN:
        return plan_return(
            snapshot,
            actor=actor,
            as_of=as_of,
            quantity_returned=fields.get("quantity_returned"),
            condition_on_return=fields.get("condition_on_return"),
            loss_description=fields.get("loss_description"),
        )
    raise LifecycleError(f"Unknown transition '{transition}'")


def _parse_quantity(key: str, value: Any, *, minimum: int) -> int:
    try:
        qty = parse_int(key, value)
    except ValidationError as e:
        raise RequestValidationError(str(e)) from e
    if qty < minimum:
        raise RequestValidationError(f"{key} must be at least {minimum}")
    return qty


def _clean_note(key: str, value: Any) -> str | None:
    try:
        return clean_text(key, value, max_length=MAX_NOTE_LENGTH)
    except ValidationError as e:
        raise RequestValidationError(str(e)) from e
