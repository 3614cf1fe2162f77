# Overview: Staff identity and permission decorators for API routes.

from functools import wraps
from flask import current_app, request, jsonify, g

from .permissions import role_has_permission
from .services import staff_service
from .services.staff_service import StaffError


def _is_identified() -> bool:
    return hasattr(g, 'current_staff')


def require_staff(f):
    """
    Require an acting staff member.

    Sets g.current_staff to the StaffMember named by the X-Staff-Id header
    (configurable via STAFF_ID_HEADER).

    Returns 401 if:
    - The header is missing or not an integer
    - No staff member has that id
    - The staff member is inactive
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        header = current_app.config.get("STAFF_ID_HEADER", "X-Staff-Id")
        raw = (request.headers.get(header) or "").strip()

        if not raw:
            return jsonify({"error": "Staff identification required"}), 401
        if not raw.isdigit():
            return jsonify({"error": f"{header} must be a staff id"}), 401

        try:
            staff = staff_service.get_active_staff(int(raw))
        except StaffError as e:
            return jsonify({"error": str(e)}), 401

        g.current_staff = staff
        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require the acting staff member's role to grant a permission."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_staff was called first
            if not _is_identified():
                return jsonify({"error": "Staff identification required"}), 401

            staff = g.current_staff
            if not role_has_permission(staff.role, permission_code):
                current_app.logger.warning(
                    "Permission %s denied for staff %s (role=%s) on %s",
                    permission_code, staff.id, staff.role, request.path,
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "message": f"Role '{staff.role}' does not grant {permission_code}",
                }), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator
