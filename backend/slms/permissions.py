"""
SLMS Permission Constants and Role Mapping

All permission codes and the role labels that hold them are defined here.

DESIGN PRINCIPLES:
- One permission per guarded action family
- Role labels are matched case-insensitively against StaffMember.role
- Administrator holds every permission
- Every active staff member may view logistics and submit requests
"""

# =============================================================================
# PERMISSION CATEGORIES
# =============================================================================

class PermissionCategory:
    """Permission categories for listing."""
    MATERIALS = "MATERIALS"
    FACILITIES = "FACILITIES"
    STAFF = "STAFF"


# =============================================================================
# PERMISSION DEFINITIONS
# =============================================================================

# Each permission is defined as: (code, name, description, category)
PERMISSION_DEFINITIONS = [
    (
        "VIEW_LOGISTICS",
        "View Logistics",
        "View material requests, inventories, inspections and reports",
        PermissionCategory.MATERIALS,
    ),
    (
        "SUBMIT_MATERIAL_REQUEST",
        "Submit Material Request",
        "Raise a new material request",
        PermissionCategory.MATERIALS,
    ),
    (
        "APPROVE_MATERIAL_REQUEST",
        "Approve Material Request",
        "Approve or decline pending material requests",
        PermissionCategory.MATERIALS,
    ),
    (
        "ISSUE_MATERIALS",
        "Issue Materials",
        "Hand approved materials over to the requester",
        PermissionCategory.MATERIALS,
    ),
    (
        "RECEIVE_RETURNS",
        "Receive Returns",
        "Check issued materials back in",
        PermissionCategory.MATERIALS,
    ),
    (
        "MANAGE_FACILITIES",
        "Manage Facilities",
        "Edit classroom inventories and safety inspections",
        PermissionCategory.FACILITIES,
    ),
    (
        "MANAGE_STAFF",
        "Manage Staff",
        "Create and deactivate staff members",
        PermissionCategory.STAFF,
    ),
]

PERMISSION_CODES = {code for code, _, _, _ in PERMISSION_DEFINITIONS}

# Granted to any active staff member regardless of role
BASELINE_PERMISSIONS = {"VIEW_LOGISTICS", "SUBMIT_MATERIAL_REQUEST"}


# =============================================================================
# ROLE MAPPINGS
# =============================================================================

# Keys are lower-cased role labels
DEFAULT_ROLE_PERMISSIONS = {
    "administrator": sorted(PERMISSION_CODES),
    "head teacher": [
        "APPROVE_MATERIAL_REQUEST",
        "MANAGE_FACILITIES",
        "MANAGE_STAFF",
    ],
    "logistics manager": [
        "APPROVE_MATERIAL_REQUEST",
        "ISSUE_MATERIALS",
        "RECEIVE_RETURNS",
        "MANAGE_FACILITIES",
    ],
    "store keeper": [
        "ISSUE_MATERIALS",
        "RECEIVE_RETURNS",
    ],
    "admin desk": [
        "RECEIVE_RETURNS",
    ],
    "safety officer": [
        "MANAGE_FACILITIES",
    ],
}


def permissions_for_role(role: str | None) -> set[str]:
    """Effective permission codes for a role label."""
    key = (role or "").strip().lower()
    return BASELINE_PERMISSIONS | set(DEFAULT_ROLE_PERMISSIONS.get(key, []))


def role_has_permission(role: str | None, permission_code: str) -> bool:
    return permission_code in permissions_for_role(role)


def list_permissions() -> list[dict]:
    return [
        {"code": code, "name": name, "description": description, "category": category}
        for code, name, description, category in PERMISSION_DEFINITIONS
    ]
