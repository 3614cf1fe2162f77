# Overview: Service-layer operations for the staff directory.

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from slms.extensions import db
from slms.models import StaffMember
from slms.models.staff import STAFF_STATUS_ACTIVE, STAFF_STATUS_INACTIVE
from slms.services.request_lifecycle import Actor
from slms.validation import ValidationError, clean_text


logger = logging.getLogger(__name__)


class StaffError(Exception):
    """Raised when staff directory operations fail."""
    pass


class StaffNotFoundError(LookupError):
    """Raised when a staff id does not resolve."""
    pass


def create_staff(
    *,
    staff_code: str,
    name: str,
    role: str,
    department: str | None = None,
    contact: str | None = None,
    email: str | None = None,
) -> StaffMember:
    """
    Add a staff member to the directory (status: Active).

    Raises:
        StaffError: blank code/name/role or duplicate staff code
    """
    try:
        code = clean_text("staff_code", staff_code, max_length=32, required=True)
        clean_name = clean_text("name", name, max_length=128, required=True)
        clean_role = clean_text("role", role, max_length=64, required=True)
        department = clean_text("department", department, max_length=64)
        contact = clean_text("contact", contact, max_length=64)
        email = clean_text("email", email, max_length=255)
    except ValidationError as e:
        raise StaffError(str(e)) from e

    if db.session.query(StaffMember.id).filter_by(staff_code=code).first():
        raise StaffError(f"Staff code {code} already exists")

    staff = StaffMember(
        staff_code=code,
        name=clean_name,
        role=clean_role,
        status=STAFF_STATUS_ACTIVE,
        department=department,
        contact=contact,
        email=email,
    )
    db.session.add(staff)
    try:
        db.session.flush()
    except IntegrityError as e:
        db.session.rollback()
        raise StaffError(f"Staff code {code} already exists") from e

    logger.info("Staff member %s created (role=%s)", staff.staff_code, staff.role)
    return staff


def get_staff(staff_id: int) -> StaffMember:
    staff = db.session.get(StaffMember, staff_id)
    if not staff:
        raise StaffNotFoundError(f"Staff member {staff_id} not found")
    return staff


def list_staff(*, active_only: bool = False) -> list[StaffMember]:
    query = db.session.query(StaffMember)
    if active_only:
        query = query.filter(StaffMember.status == STAFF_STATUS_ACTIVE)
    return query.order_by(StaffMember.name.asc(), StaffMember.id.asc()).all()


def deactivate_staff(staff_id: int) -> StaffMember:
    """Mark a staff member Inactive. Their past records keep pointing at them."""
    staff = get_staff(staff_id)
    if staff.status == STAFF_STATUS_INACTIVE:
        raise StaffError(f"Staff member {staff_id} is already inactive")
    staff.status = STAFF_STATUS_INACTIVE
    db.session.flush()
    logger.info("Staff member %s deactivated", staff.staff_code)
    return staff


def get_active_staff(staff_id: int) -> StaffMember:
    """
    Resolve a staff id to an Active staff member.

    Raises:
        StaffError: unknown or inactive staff member
    """
    staff = db.session.get(StaffMember, staff_id) if staff_id is not None else None
    if not staff:
        raise StaffError(f"Staff member {staff_id} not found")
    if not staff.is_active:
        raise StaffError(f"Staff member {staff_id} is inactive")
    return staff


def actor_for(staff: StaffMember) -> Actor:
    return Actor(staff_id=staff.id, name=staff.name)


# Seed directory used by `flask system init`
DEFAULT_STAFF = [
    {"staff_code": "ADM-001", "name": "School Administrator", "role": "Administrator"},
    {"staff_code": "HT-001", "name": "Head Teacher", "role": "Head Teacher"},
    {"staff_code": "LOG-001", "name": "Logistics Manager", "role": "Logistics Manager"},
    {"staff_code": "STK-001", "name": "Store Keeper", "role": "Store Keeper"},
    {"staff_code": "DSK-001", "name": "Admin Desk", "role": "Admin Desk"},
]


def seed_default_staff() -> list[StaffMember]:
    """Create any missing default staff members; existing codes are left alone."""
    created = []
    for entry in DEFAULT_STAFF:
        if db.session.query(StaffMember.id).filter_by(staff_code=entry["staff_code"]).first():
            continue
        created.append(create_staff(**entry))
    return created
