# Overview: Flask API routes for classroom inventories and safety inspections.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_permission, require_staff
from ..extensions import db
from ..services import classroom_inventory_service, safety_service
from ..services.classroom_inventory_service import FacilitiesError, FacilitiesNotFoundError
from ..services.concurrency import commit_session


facilities_bp = Blueprint("facilities", __name__, url_prefix="/api/facilities")


# =============================================================================
# CLASSROOM INVENTORY
# =============================================================================

@facilities_bp.get("/inventories")
@require_staff
@require_permission("VIEW_LOGISTICS")
def list_inventories_route():
    inventories = classroom_inventory_service.list_inventories()
    return jsonify({"inventories": [i.to_dict() for i in inventories]}), 200


@facilities_bp.get("/inventories/<school_class>")
@require_staff
@require_permission("VIEW_LOGISTICS")
def get_inventory_route(school_class: str):
    """
    Fetch a class audit with its summary.

    The first fetch for a class creates its default audit record.
    """
    try:
        inventory = classroom_inventory_service.get_or_create_inventory(school_class)
        commit_session()
        summary = classroom_inventory_service.inventory_summary(school_class)
        return jsonify({"inventory": inventory.to_dict(), "summary": summary}), 200

    except FacilitiesError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to load classroom inventory")
        return jsonify({"error": "Internal server error"}), 500


@facilities_bp.patch("/inventories/<school_class>")
@require_staff
@require_permission("MANAGE_FACILITIES")
def update_inventory_route(school_class: str):
    """
    Partially update a class audit.

    Request body:
    {
        "block": str, "room_number": str, "inspection_date": "YYYY-MM-DD",
        "priority": "Low" | "Medium" | "High" | "Emergency",
        "damaged_missing_notes": str, "comments": str,
        "items": {"<item name>": {"status": str, "condition": str}}
    }
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400
    data = dict(data)
    items = data.pop("items", None)

    try:
        inventory = classroom_inventory_service.update_inventory(
            school_class,
            fields=data,
            items=items,
            actor_staff_id=g.current_staff.id,
        )
        commit_session()
        summary = classroom_inventory_service.inventory_summary(school_class)
        return jsonify({"inventory": inventory.to_dict(), "summary": summary}), 200

    except FacilitiesError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update classroom inventory")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# SAFETY INSPECTIONS
# =============================================================================

@facilities_bp.get("/safety")
@require_staff
@require_permission("VIEW_LOGISTICS")
def list_inspections_route():
    inspections = safety_service.list_inspections()
    return jsonify({"inspections": [i.to_dict() for i in inspections]}), 200


@facilities_bp.post("/safety")
@require_staff
@require_permission("MANAGE_FACILITIES")
def create_inspection_route():
    """Request body: {"inspector_name": str (optional), "inspection_date": "YYYY-MM-DD" (optional)}"""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    try:
        inspection = safety_service.create_inspection(
            inspector_name=data.get("inspector_name"),
            inspection_date=data.get("inspection_date"),
            actor_staff_id=g.current_staff.id,
        )
        commit_session()
        return jsonify({"inspection": inspection.to_dict()}), 201

    except FacilitiesError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create safety inspection")
        return jsonify({"error": "Internal server error"}), 500


@facilities_bp.get("/safety/current")
@require_staff
@require_permission("VIEW_LOGISTICS")
def current_inspection_route():
    inspection = safety_service.current_inspection()
    if inspection is None:
        return jsonify({"error": "No safety inspection recorded"}), 404
    return jsonify({
        "inspection": inspection.to_dict(),
        "summary": safety_service.inspection_summary(inspection.id),
    }), 200


@facilities_bp.get("/safety/<int:inspection_id>")
@require_staff
@require_permission("VIEW_LOGISTICS")
def get_inspection_route(inspection_id: int):
    try:
        inspection = safety_service.get_inspection(inspection_id)
    except FacilitiesNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({
        "inspection": inspection.to_dict(),
        "summary": safety_service.inspection_summary(inspection.id),
    }), 200


@facilities_bp.patch("/safety/<int:inspection_id>")
@require_staff
@require_permission("MANAGE_FACILITIES")
def update_inspection_route(inspection_id: int):
    """
    Partially update an inspection.

    Request body:
    {
        "inspector_name": str, "inspection_date": "YYYY-MM-DD",
        "hazards_identified": str, "actions_required": str,
        "status": "Pending" | "In Progress" | "Completed",
        "checks": {"<check name>": {"status": str, "risk": str}}
    }
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400
    data = dict(data)
    checks = data.pop("checks", None)

    try:
        inspection = safety_service.update_inspection(inspection_id, fields=data, checks=checks)
        commit_session()
        return jsonify({
            "inspection": inspection.to_dict(),
            "summary": safety_service.inspection_summary(inspection.id),
        }), 200

    except FacilitiesNotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except FacilitiesError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update safety inspection")
        return jsonify({"error": "Internal server error"}), 500
