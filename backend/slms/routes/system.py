# backend/slms/routes/system.py
"""
System health and permission listing endpoints.
"""

import time
from flask import Blueprint, current_app, jsonify

from ..decorators import require_permission, require_staff
from ..extensions import db
from ..models import MaterialRequest, StaffMember
from ..permissions import list_permissions
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    """
    Check database connectivity with two cheap counts.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        staff_count = db.session.query(StaffMember).count()
        request_count = db.session.query(MaterialRequest).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "staff": staff_count,
                "material_requests": request_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: Database reachable
    - 503: Database unhealthy
    """
    database_health = check_database_health()
    http_status = 503 if database_health["status"] == "unhealthy" else 200

    return {
        "status": database_health["status"],
        "timestamp": utcnow().isoformat() + "Z",
        "checks": {
            "database": database_health,
        }
    }, http_status


@system_bp.get("/permissions")
@require_staff
@require_permission("VIEW_LOGISTICS")
def permissions_route():
    return jsonify({"permissions": list_permissions()}), 200
