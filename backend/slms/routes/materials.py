# Overview: Flask API routes for material requests; parses input and returns JSON responses.

# backend/slms/routes/materials.py
"""
Material request API routes.

Lifecycle:
    POST /requests               -> Pending
    POST /requests/<id>/approve  Pending  -> Approved
    POST /requests/<id>/decline  Pending  -> Declined
    POST /requests/<id>/issue    Approved -> Issued
    POST /requests/<id>/return   Issued   -> Returned

Every transition accepts an optional "expected_version"; a mismatch is 409.
"""
from flask import Blueprint, current_app, g, jsonify, request

from slms.decorators import require_permission, require_staff
from slms.extensions import db
from slms.services import material_request_service, reporting_service
from slms.services.concurrency import commit_session
from slms.services.material_request_service import RequestNotFoundError
from slms.services.request_lifecycle import (
    CATEGORIES,
    TRANSITION_APPROVE,
    TRANSITION_DECLINE,
    TRANSITION_ISSUE,
    TRANSITION_RETURN,
    VALID_STATUSES,
    LifecycleError,
)
from slms.services.staff_service import StaffError
from slms.validation import ConflictError, ValidationError


materials_bp = Blueprint("materials", __name__, url_prefix="/api/materials")

TRANSITION_FIELDS = {
    TRANSITION_APPROVE: ("approved_quantity",),
    TRANSITION_DECLINE: ("reason",),
    TRANSITION_ISSUE: ("expected_return_date", "condition_on_supply", "store_source"),
    TRANSITION_RETURN: ("quantity_returned", "condition_on_return", "loss_description"),
}


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes"}


@materials_bp.get("/requests")
@require_staff
@require_permission("VIEW_LOGISTICS")
def list_requests_route():
    """
    List material requests, newest first.

    Query params: status, staff_id, category, overdue=true
    """
    status = request.args.get("status") or None
    category = request.args.get("category") or None
    staff_id = request.args.get("staff_id")

    if status and status not in VALID_STATUSES:
        return jsonify({"error": f"status must be one of: {', '.join(sorted(VALID_STATUSES))}"}), 400
    if category and category not in CATEGORIES:
        return jsonify({"error": f"category must be one of: {', '.join(CATEGORIES)}"}), 400
    if staff_id is not None and staff_id != "":
        if not staff_id.isdigit():
            return jsonify({"error": "staff_id must be an integer"}), 400
        staff_id = int(staff_id)
    else:
        staff_id = None

    requests_ = material_request_service.list_requests(
        status=status,
        staff_id=staff_id,
        category=category,
        overdue=_truthy(request.args.get("overdue")),
    )
    return jsonify({
        "requests": [r.to_dict() for r in requests_],
        "count": len(requests_),
    }), 200


@materials_bp.post("/requests")
@require_staff
@require_permission("SUBMIT_MATERIAL_REQUEST")
def submit_request_route():
    """
    Submit a material request on behalf of the acting staff member.

    Request body:
    {
        "item_name": str,
        "quantity_requested": int,
        "category": str (optional), "purpose": str (optional),
        "date_requested": "YYYY-MM-DD" (optional), "date_required": "YYYY-MM-DD" (optional),
        "usage_duration": str (optional), "priority": str (optional),
        "remarks": str (optional)
    }

    Returns:
        201: Request created (status Pending)
        400: Invalid request
    """
    data = request.get_json(silent=True) or {}

    try:
        created = material_request_service.submit_request(
            staff_id=g.current_staff.id,
            payload=data,
        )
        commit_session()
        return jsonify({"request": created.to_dict()}), 201

    except (ValidationError, StaffError) as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 409
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to submit material request")
        return jsonify({"error": "Internal server error"}), 500


@materials_bp.get("/requests/<int:request_id>")
@require_staff
@require_permission("VIEW_LOGISTICS")
def get_request_route(request_id: int):
    """Fetch one request with its audit trail."""
    try:
        record = material_request_service.get_request(request_id)
        events = material_request_service.list_events(request_id)
        return jsonify({
            "request": record.to_dict(),
            "events": [e.to_dict() for e in events],
        }), 200
    except RequestNotFoundError as e:
        return jsonify({"error": str(e)}), 404


def _run_transition(transition: str, request_id: int):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    try:
        fields = {key: data.get(key) for key in TRANSITION_FIELDS[transition]}
        record = material_request_service.transition_request(
            transition,
            request_id,
            actor_staff_id=g.current_staff.id,
            fields=fields,
            expected_version=data.get("expected_version"),
        )
        commit_session()
        return jsonify({"request": record.to_dict()}), 200

    except RequestNotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 409
    except (LifecycleError, ValidationError, StaffError) as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to %s material request", transition)
        return jsonify({"error": "Internal server error"}), 500


@materials_bp.post("/requests/<int:request_id>/approve")
@require_staff
@require_permission("APPROVE_MATERIAL_REQUEST")
def approve_request_route(request_id: int):
    """
    Approve a pending request.

    Request body: {"approved_quantity": int (optional), "expected_version": int (optional)}
    """
    return _run_transition(TRANSITION_APPROVE, request_id)


@materials_bp.post("/requests/<int:request_id>/decline")
@require_staff
@require_permission("APPROVE_MATERIAL_REQUEST")
def decline_request_route(request_id: int):
    """Request body: {"reason": str (optional), "expected_version": int (optional)}"""
    return _run_transition(TRANSITION_DECLINE, request_id)


@materials_bp.post("/requests/<int:request_id>/issue")
@require_staff
@require_permission("ISSUE_MATERIALS")
def issue_request_route(request_id: int):
    """
    Issue approved materials.

    Request body:
    {
        "expected_return_date": "YYYY-MM-DD" (optional),
        "condition_on_supply": "New" | "Good" | "Fair" | "Poor" (optional),
        "store_source": str (optional),
        "expected_version": int (optional)
    }
    """
    return _run_transition(TRANSITION_ISSUE, request_id)


@materials_bp.post("/requests/<int:request_id>/return")
@require_staff
@require_permission("RECEIVE_RETURNS")
def return_request_route(request_id: int):
    """
    Check issued materials back in.

    Request body:
    {
        "quantity_returned": int (optional, defaults to approved quantity),
        "condition_on_return": "Good" | "Damaged" | "Lost" (optional),
        "loss_description": str (optional),
        "expected_version": int (optional)
    }
    """
    return _run_transition(TRANSITION_RETURN, request_id)


@materials_bp.get("/summary")
@require_staff
@require_permission("VIEW_LOGISTICS")
def summary_route():
    return jsonify(reporting_service.logistics_summary()), 200


@materials_bp.get("/overdue")
@require_staff
@require_permission("VIEW_LOGISTICS")
def overdue_route():
    rows = reporting_service.overdue_report()
    return jsonify({"overdue": rows, "count": len(rows)}), 200
