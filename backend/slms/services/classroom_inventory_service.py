# Overview: Service-layer operations for classroom inventory audits.

"""
Classroom Inventory Audits

One record per school class, listing the state of the standard classroom
fixtures. The first read or write for a class creates the default audit
(Main Block / Room 01, every item Available and Good); later audits
update it in place.
"""

from __future__ import annotations

import logging
from datetime import date

from slms.extensions import db
from slms.models import ClassroomInventory, ClassroomInventoryItem
from slms.services import reference_service
from slms.time_utils import today
from slms.validation import ModelValidationPolicy, NotFoundError, ValidationError, parse_choice, validate_payload


logger = logging.getLogger(__name__)

STANDARD_ITEMS = (
    "Desks & Chairs (Pupils)",
    "Teacher's Table & Chair",
    "Chalkboard / Whiteboard",
    "Markers / Chalk / Erasers",
    "Functional Lighting",
    "Ventilation / Windows",
    "Doors & Locks",
    "Power Sockets & Switches",
    "ICT Equipment (Projector/Laptop)",
    "Teaching Aids & Posters",
)

ITEM_STATUSES = ("Available", "Missing", "Damaged")
ITEM_CONDITIONS = ("Good", "Fair", "Poor", "N/A")
INVENTORY_PRIORITIES = ("Low", "Medium", "High", "Emergency")

DEFAULT_BLOCK = "Main Block"
DEFAULT_ROOM = "Room 01"

INVENTORY_POLICY = ModelValidationPolicy(
    writable_fields={
        "block",
        "room_number",
        "inspection_date",
        "priority",
        "damaged_missing_notes",
        "comments",
    },
    choices={"priority": INVENTORY_PRIORITIES},
)


class FacilitiesError(ValidationError):
    """Raised when a facilities record update is invalid."""
    pass


class FacilitiesNotFoundError(NotFoundError):
    """Raised when a facilities record does not exist."""
    pass


def _clean_class(school_class: str | None) -> str:
    value = (school_class or "").strip()
    if not value:
        raise FacilitiesError("school_class is required")
    if len(value) > 64:
        raise FacilitiesError("school_class exceeds max length 64")
    return value


def find_inventory(school_class: str) -> ClassroomInventory | None:
    return db.session.query(ClassroomInventory).filter_by(school_class=_clean_class(school_class)).first()


def get_or_create_inventory(school_class: str, *, as_of: date | None = None) -> ClassroomInventory:
    """Return the audit for a class, creating the default one when absent."""
    school_class = _clean_class(school_class)
    inventory = db.session.query(ClassroomInventory).filter_by(school_class=school_class).first()
    if inventory:
        return inventory

    as_of = as_of or today()
    inventory = ClassroomInventory(
        reference=reference_service.allocate(reference_service.CLASSROOM_INVENTORY, year=as_of.year),
        block=DEFAULT_BLOCK,
        room_number=DEFAULT_ROOM,
        school_class=school_class,
        inspection_date=as_of,
        priority="Low",
    )
    inventory.items = [
        ClassroomInventoryItem(item_name=name, status="Available", condition="Good")
        for name in STANDARD_ITEMS
    ]
    db.session.add(inventory)
    db.session.flush()

    logger.info("Classroom inventory %s created for %s", inventory.reference, school_class)
    return inventory


def list_inventories() -> list[ClassroomInventory]:
    return db.session.query(ClassroomInventory).order_by(ClassroomInventory.school_class.asc()).all()


def update_inventory(
    school_class: str,
    *,
    fields: dict | None = None,
    items: dict | None = None,
    actor_staff_id: int | None = None,
) -> ClassroomInventory:
    """
    Partially update a class audit.

    Args:
        fields: header columns (block, room_number, inspection_date, priority,
            damaged_missing_notes, comments)
        items: {item_name: {"status": ..., "condition": ...}}; only the keys
            present are changed

    Raises:
        FacilitiesError: unknown field or item, or an invalid enum value
    """
    try:
        patch = validate_payload(
            model=ClassroomInventory,
            payload=fields or {},
            policy=INVENTORY_POLICY,
            partial=True,
        )
    except ValidationError as e:
        raise FacilitiesError(str(e)) from e

    item_updates = _validate_item_updates(items)

    inventory = get_or_create_inventory(school_class)

    for key, value in patch.items():
        setattr(inventory, key, value)

    by_name = {item.item_name: item for item in inventory.items}
    for name, changes in item_updates.items():
        item = by_name.get(name)
        if item is None:
            raise FacilitiesError(f"Unknown inventory item: {name}")
        for key, value in changes.items():
            setattr(item, key, value)

    if actor_staff_id is not None:
        inventory.inspected_by_staff_id = actor_staff_id

    db.session.flush()
    logger.info("Classroom inventory %s updated", inventory.reference)
    return inventory


def _validate_item_updates(items: dict | None) -> dict[str, dict]:
    if items is None:
        return {}
    if not isinstance(items, dict):
        raise FacilitiesError("items must be an object keyed by item name")

    cleaned: dict[str, dict] = {}
    for name, changes in items.items():
        if not isinstance(changes, dict):
            raise FacilitiesError(f"items[{name}] must be an object")
        unknown = set(changes) - {"status", "condition"}
        if unknown:
            raise FacilitiesError(f"Field not allowed on items[{name}]: {', '.join(sorted(unknown))}")
        entry = {}
        try:
            if "status" in changes:
                entry["status"] = parse_choice(f"items[{name}].status", changes["status"], ITEM_STATUSES)
            if "condition" in changes:
                entry["condition"] = parse_choice(f"items[{name}].condition", changes["condition"], ITEM_CONDITIONS)
        except ValidationError as e:
            raise FacilitiesError(str(e)) from e
        cleaned[name] = entry
    return cleaned


def inventory_summary(school_class: str) -> dict:
    inventory = find_inventory(school_class)
    if not inventory:
        raise FacilitiesNotFoundError(f"No inventory recorded for {school_class}")

    items = inventory.items
    return {
        "school_class": inventory.school_class,
        "reference": inventory.reference,
        "total_items": len(items),
        "available": sum(1 for i in items if i.status == "Available"),
        "missing": sum(1 for i in items if i.status == "Missing"),
        "damaged": sum(1 for i in items if i.status == "Damaged"),
        "poor_condition": sum(1 for i in items if i.condition == "Poor"),
        "priority": inventory.priority,
    }
