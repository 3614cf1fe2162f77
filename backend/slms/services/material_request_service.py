# backend/slms/services/material_request_service.py
"""
Material request service.

Applies the lifecycle rules from request_lifecycle to stored records.
Every write follows the same shape:

1. Resolve the acting staff member (must be Active)
2. Load the request under a row lock
3. Check the caller's expected_version, if given
4. Plan the transition (pure; raises before anything is written)
5. Apply the patch, flush, append an audit event

Services only flush. The caller (route or CLI) commits, so a rejected
operation rolls back as a unit and leaves the record untouched.
"""
from __future__ import annotations

import logging
from datetime import date, datetime

from slms.extensions import db
from slms.models import MaterialRequest, MaterialRequestEvent
from slms.services import reference_service
from slms.services.concurrency import lock_for_update, run_with_retry
from slms.services.request_lifecycle import (
    STATUS_ISSUED,
    TRANSITION_APPROVE,
    TRANSITION_DECLINE,
    TRANSITION_ISSUE,
    TRANSITION_RETURN,
    RequestSnapshot,
    RequestValidationError,
    plan_transition,
    validate_submission,
)
from slms.services.staff_service import actor_for, get_active_staff
from slms.time_utils import today, utcnow
from slms.validation import ConflictError, NotFoundError, ValidationError, parse_int


logger = logging.getLogger(__name__)

EVENT_TYPES = {
    TRANSITION_APPROVE: "request.approved",
    TRANSITION_DECLINE: "request.declined",
    TRANSITION_ISSUE: "request.issued",
    TRANSITION_RETURN: "request.returned",
}
EVENT_SUBMITTED = "request.submitted"


class RequestNotFoundError(NotFoundError):
    """Raised when a material request id does not resolve."""
    pass


class StaleRequestError(ConflictError):
    """Raised when the caller's expected_version no longer matches the record."""
    pass


def _append_event(
    request: MaterialRequest,
    *,
    event_type: str,
    from_status: str | None,
    actor_staff_id: int | None,
    occurred_at: datetime,
    note: str | None = None,
) -> MaterialRequestEvent:
    event = MaterialRequestEvent(
        request_id=request.id,
        event_type=event_type,
        from_status=from_status,
        to_status=request.status,
        actor_staff_id=actor_staff_id,
        occurred_at=occurred_at,
        note=note,
    )
    db.session.add(event)
    db.session.flush()
    return event


def submit_request(*, staff_id: int, payload: dict, as_of: date | None = None) -> MaterialRequest:
    """
    Create a Pending request for an active staff member.

    Args:
        staff_id: Requester (must exist and be Active)
        payload: Request facts (item_name, quantity_requested, category, ...)
        as_of: Business date; defaults to today

    Raises:
        StaffError: unknown or inactive requester
        RequestValidationError: missing or invalid request facts
    """
    as_of = as_of or today()

    def _op():
        staff = get_active_staff(staff_id)
        facts = validate_submission(payload, as_of=as_of)

        reference = reference_service.allocate(reference_service.MATERIAL_REQUEST, year=as_of.year)

        request = MaterialRequest(
            reference=reference,
            staff_id=staff.id,
            staff_name=staff.name,
            **facts,
        )
        db.session.add(request)
        db.session.flush()  # Get ID

        _append_event(
            request,
            event_type=EVENT_SUBMITTED,
            from_status=None,
            actor_staff_id=staff.id,
            occurred_at=utcnow(),
            note=f"{request.quantity_requested} x {request.item_name}",
        )

        logger.info("Material request %s submitted by staff %s", request.reference, staff.id)
        return request

    return run_with_retry(_op)


def get_request(request_id: int) -> MaterialRequest:
    request = db.session.get(MaterialRequest, request_id)
    if not request:
        raise RequestNotFoundError(f"Material request {request_id} not found")
    return request


def list_requests(
    *,
    status: str | None = None,
    staff_id: int | None = None,
    category: str | None = None,
    overdue: bool = False,
    as_of: date | None = None,
) -> list[MaterialRequest]:
    """Requests matching the filters, newest first."""
    query = db.session.query(MaterialRequest)
    if status:
        query = query.filter(MaterialRequest.status == status)
    if staff_id is not None:
        query = query.filter(MaterialRequest.staff_id == staff_id)
    if category:
        query = query.filter(MaterialRequest.category == category)
    if overdue:
        query = query.filter(*overdue_criteria(as_of or today()))
    return query.order_by(MaterialRequest.id.desc()).all()


def overdue_criteria(as_of: date) -> tuple:
    """SQL form of request_lifecycle.is_overdue."""
    return (
        MaterialRequest.status == STATUS_ISSUED,
        MaterialRequest.expected_return_date.isnot(None),
        MaterialRequest.expected_return_date < as_of,
    )


def list_events(request_id: int) -> list[MaterialRequestEvent]:
    get_request(request_id)
    return (
        db.session.query(MaterialRequestEvent)
        .filter_by(request_id=request_id)
        .order_by(MaterialRequestEvent.id.asc())
        .all()
    )


def _check_version(request: MaterialRequest, expected_version) -> None:
    if expected_version is None or expected_version == "":
        return
    try:
        expected = parse_int("expected_version", expected_version)
    except ValidationError as e:
        raise RequestValidationError(str(e)) from e
    if expected != request.version_id:
        raise StaleRequestError(
            f"Material request {request.id} is at version {request.version_id}, "
            f"not {expected}; reload it and try again"
        )


def _event_note(transition: str, request: MaterialRequest) -> str | None:
    if transition == TRANSITION_APPROVE:
        return f"approved {request.approved_quantity} of {request.quantity_requested}"
    if transition == TRANSITION_DECLINE:
        return request.decline_reason
    if transition == TRANSITION_ISSUE:
        if request.expected_return_date:
            return f"due back {request.expected_return_date.isoformat()}"
        return None
    if transition == TRANSITION_RETURN:
        return f"{request.return_status}: {request.quantity_returned} of {request.approved_quantity} returned"
    return None


def transition_request(
    transition: str,
    request_id: int,
    *,
    actor_staff_id: int,
    fields: dict | None = None,
    expected_version=None,
    as_of: date | None = None,
) -> MaterialRequest:
    """
    Move a request through one lifecycle transition.

    Raises:
        StaffError: unknown or inactive actor
        RequestNotFoundError: unknown request id
        StaleRequestError: expected_version does not match
        LifecycleError: current status is not the transition's source
        RequestValidationError: invalid operator input
    """
    as_of = as_of or today()

    def _op():
        actor = actor_for(get_active_staff(actor_staff_id))

        request = lock_for_update(
            db.session.query(MaterialRequest).filter_by(id=request_id)
        ).first()
        if not request:
            raise RequestNotFoundError(f"Material request {request_id} not found")

        _check_version(request, expected_version)

        from_status = request.status
        at = utcnow()
        patch = plan_transition(
            transition,
            RequestSnapshot.of(request),
            fields,
            actor=actor,
            as_of=as_of,
            at=at,
        )

        for key, value in patch.items():
            setattr(request, key, value)
        db.session.flush()

        _append_event(
            request,
            event_type=EVENT_TYPES[transition],
            from_status=from_status,
            actor_staff_id=actor.staff_id,
            occurred_at=at,
            note=_event_note(transition, request),
        )

        logger.info(
            "Material request %s %s -> %s by staff %s",
            request.reference, from_status, request.status, actor.staff_id,
        )
        return request

    return run_with_retry(_op)


def approve_request(
    request_id: int,
    *,
    actor_staff_id: int,
    approved_quantity=None,
    expected_version=None,
    as_of: date | None = None,
) -> MaterialRequest:
    """Pending -> Approved. approved_quantity defaults to the requested quantity."""
    return transition_request(
        TRANSITION_APPROVE,
        request_id,
        actor_staff_id=actor_staff_id,
        fields={"approved_quantity": approved_quantity},
        expected_version=expected_version,
        as_of=as_of,
    )


def decline_request(
    request_id: int,
    *,
    actor_staff_id: int,
    reason: str | None = None,
    expected_version=None,
) -> MaterialRequest:
    """Pending -> Declined (terminal)."""
    return transition_request(
        TRANSITION_DECLINE,
        request_id,
        actor_staff_id=actor_staff_id,
        fields={"reason": reason},
        expected_version=expected_version,
    )


def issue_request(
    request_id: int,
    *,
    actor_staff_id: int,
    expected_return_date=None,
    condition_on_supply: str | None = None,
    store_source: str | None = None,
    expected_version=None,
    as_of: date | None = None,
) -> MaterialRequest:
    """Approved -> Issued."""
    return transition_request(
        TRANSITION_ISSUE,
        request_id,
        actor_staff_id=actor_staff_id,
        fields={
            "expected_return_date": expected_return_date,
            "condition_on_supply": condition_on_supply,
            "store_source": store_source,
        },
        expected_version=expected_version,
        as_of=as_of,
    )


def return_request(
    request_id: int,
    *,
    actor_staff_id: int,
    quantity_returned=None,
    condition_on_return: str | None = None,
    loss_description: str | None = None,
    expected_version=None,
    as_of: date | None = None,
) -> MaterialRequest:
    """Issued -> Returned (terminal). quantity_returned defaults to the approved quantity."""
    return transition_request(
        TRANSITION_RETURN,
        request_id,
        actor_staff_id=actor_staff_id,
        fields={
            "quantity_returned": quantity_returned,
            "condition_on_return": condition_on_return,
            "loss_description": loss_description,
        },
        expected_version=expected_version,
        as_of=as_of,
    )

