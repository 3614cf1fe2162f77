# Overview: Service-layer operations for school safety inspections.

from __future__ import annotations

import logging

from slms.extensions import db
from slms.models import SafetyCheck, SafetyInspection
from slms.services import reference_service
from slms.services.classroom_inventory_service import FacilitiesError, FacilitiesNotFoundError
from slms.time_utils import today, utcnow
from slms.validation import ModelValidationPolicy, ValidationError, clean_text, parse_choice, parse_date, validate_payload


logger = logging.getLogger(__name__)

STANDARD_CHECKS = (
    "School Fence & Gates",
    "Classroom Safety (Floors/Walls)",
    "Fire Safety Equipment",
    "Emergency Exits & Signage",
    "Electrical Safety (Wiring)",
    "Water & Sanitation",
    "Playground Equipment",
    "Lab / Workshop Safety",
    "Storage Room Security",
    "First Aid Kit Completeness",
)

CHECK_STATUSES = ("Safe", "Unsafe", "Maintenance Required", "N/A")
RISK_LEVELS = ("Low", "Medium", "High")

INSPECTION_STATUS_PENDING = "Pending"
INSPECTION_STATUS_IN_PROGRESS = "In Progress"
INSPECTION_STATUS_COMPLETED = "Completed"
INSPECTION_STATUSES = (INSPECTION_STATUS_PENDING, INSPECTION_STATUS_IN_PROGRESS, INSPECTION_STATUS_COMPLETED)

DEFAULT_INSPECTOR = "Safety Officer"

INSPECTION_POLICY = ModelValidationPolicy(
    writable_fields={
        "inspector_name",
        "inspection_date",
        "hazards_identified",
        "actions_required",
        "status",
    },
    choices={"status": INSPECTION_STATUSES},
)


def create_inspection(
    *,
    inspector_name: str | None = None,
    inspection_date=None,
    actor_staff_id: int | None = None,
) -> SafetyInspection:
    """New Pending inspection seeded with the standard checks, all Safe / Low."""
    try:
        name = clean_text("inspector_name", inspector_name, max_length=128) or DEFAULT_INSPECTOR
        when = parse_date("inspection_date", inspection_date) or today()
    except ValidationError as e:
        raise FacilitiesError(str(e)) from e

    inspection = SafetyInspection(
        reference=reference_service.allocate(reference_service.SAFETY_INSPECTION, year=when.year),
        inspector_name=name,
        inspection_date=when,
        status=INSPECTION_STATUS_PENDING,
        created_by_staff_id=actor_staff_id,
    )
    inspection.checks = [
        SafetyCheck(check_name=check, status="Safe", risk="Low")
        for check in STANDARD_CHECKS
    ]
    db.session.add(inspection)
    db.session.flush()

    logger.info("Safety inspection %s created", inspection.reference)
    return inspection


def get_inspection(inspection_id: int) -> SafetyInspection:
    inspection = db.session.get(SafetyInspection, inspection_id)
    if not inspection:
        raise FacilitiesNotFoundError(f"Safety inspection {inspection_id} not found")
    return inspection


def current_inspection() -> SafetyInspection | None:
    """The most recently created inspection, if any."""
    return db.session.query(SafetyInspection).order_by(SafetyInspection.id.desc()).first()


def list_inspections() -> list[SafetyInspection]:
    return db.session.query(SafetyInspection).order_by(SafetyInspection.id.desc()).all()


def update_inspection(
    inspection_id: int,
    *,
    fields: dict | None = None,
    checks: dict | None = None,
) -> SafetyInspection:
    """
    Partially update an inspection and its checks.

    Status moves freely between Pending, In Progress and Completed.
    completed_at is stamped on entering Completed and cleared on leaving it.
    """
    try:
        patch = validate_payload(
            model=SafetyInspection,
            payload=fields or {},
            policy=INSPECTION_POLICY,
            partial=True,
        )
    except ValidationError as e:
        raise FacilitiesError(str(e)) from e

    check_updates = _validate_check_updates(checks)
    inspection = get_inspection(inspection_id)

    previous_status = inspection.status
    for key, value in patch.items():
        setattr(inspection, key, value)

    by_name = {check.check_name: check for check in inspection.checks}
    for name, changes in check_updates.items():
        check = by_name.get(name)
        if check is None:
            raise FacilitiesError(f"Unknown safety check: {name}")
        for key, value in changes.items():
            setattr(check, key, value)

    if inspection.status == INSPECTION_STATUS_COMPLETED:
        if previous_status != INSPECTION_STATUS_COMPLETED or inspection.completed_at is None:
            inspection.completed_at = utcnow()
    else:
        inspection.completed_at = None

    db.session.flush()
    logger.info("Safety inspection %s updated (status=%s)", inspection.reference, inspection.status)
    return inspection


def _validate_check_updates(checks: dict | None) -> dict[str, dict]:
    if checks is None:
        return {}
    if not isinstance(checks, dict):
        raise FacilitiesError("checks must be an object keyed by check name")

    cleaned: dict[str, dict] = {}
    for name, changes in checks.items():
        if not isinstance(changes, dict):
            raise FacilitiesError(f"checks[{name}] must be an object")
        unknown = set(changes) - {"status", "risk"}
        if unknown:
            raise FacilitiesError(f"Field not allowed on checks[{name}]: {', '.join(sorted(unknown))}")
        entry = {}
        try:
            if "status" in changes:
                entry["status"] = parse_choice(f"checks[{name}].status", changes["status"], CHECK_STATUSES)
            if "risk" in changes:
                entry["risk"] = parse_choice(f"checks[{name}].risk", changes["risk"], RISK_LEVELS)
        except ValidationError as e:
            raise FacilitiesError(str(e)) from e
        cleaned[name] = entry
    return cleaned


def inspection_summary(inspection_id: int) -> dict:
    inspection = get_inspection(inspection_id)
    checks = inspection.checks
    return {
        "id": inspection.id,
        "reference": inspection.reference,
        "status": inspection.status,
        "total_checks": len(checks),
        "safe": sum(1 for c in checks if c.status == "Safe"),
        "unsafe": sum(1 for c in checks if c.status == "Unsafe"),
        "maintenance_required": sum(1 for c in checks if c.status == "Maintenance Required"),
        "high_risk": sum(1 for c in checks if c.risk == "High"),
    }
