# Overview: Flask API routes for the staff directory.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_permission, require_staff
from ..extensions import db
from ..services import staff_service
from ..services.concurrency import commit_session
from ..services.staff_service import StaffError, StaffNotFoundError


staff_bp = Blueprint("staff", __name__, url_prefix="/api/staff")


@staff_bp.get("")
@require_staff
@require_permission("VIEW_LOGISTICS")
def list_staff_route():
    """List staff members. ?active=true limits the list to Active staff."""
    active_only = (request.args.get("active") or "").lower() in {"1", "true", "yes"}
    staff = staff_service.list_staff(active_only=active_only)
    return jsonify({"staff": [s.to_dict() for s in staff]}), 200


@staff_bp.post("")
@require_staff
@require_permission("MANAGE_STAFF")
def create_staff_route():
    """
    Create a staff member.

    Request body:
    {
        "staff_code": str,
        "name": str,
        "role": str,
        "department": str (optional),
        "contact": str (optional),
        "email": str (optional)
    }
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    try:
        staff = staff_service.create_staff(
            staff_code=data.get("staff_code"),
            name=data.get("name"),
            role=data.get("role"),
            department=data.get("department"),
            contact=data.get("contact"),
            email=data.get("email"),
        )
        commit_session()
        return jsonify({"staff": staff.to_dict()}), 201

    except StaffError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create staff member")
        return jsonify({"error": "Internal server error"}), 500


@staff_bp.get("/<int:staff_id>")
@require_staff
@require_permission("VIEW_LOGISTICS")
def get_staff_route(staff_id: int):
    try:
        staff = staff_service.get_staff(staff_id)
    except StaffNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"staff": staff.to_dict()}), 200


@staff_bp.post("/<int:staff_id>/deactivate")
@require_staff
@require_permission("MANAGE_STAFF")
def deactivate_staff_route(staff_id: int):
    try:
        staff = staff_service.deactivate_staff(staff_id)
        commit_session()
        return jsonify({"staff": staff.to_dict()}), 200

    except StaffNotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except StaffError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to deactivate staff member")
        return jsonify({"error": "Internal server error"}), 500
