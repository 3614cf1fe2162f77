from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, to_iso_date


class ClassroomInventory(db.Model):
    """
    Fixture audit for one class's room. Exactly one record per class;
    re-inspections update it in place.
    """
    __tablename__ = "classroom_inventories"
    __table_args__ = (
        db.UniqueConstraint("school_class", name="uq_classroom_inventories_class"),
        db.UniqueConstraint("reference", name="uq_classroom_inventories_reference"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    reference = db.Column(db.String(32), nullable=False)

    block = db.Column(db.String(64), nullable=False)
    room_number = db.Column(db.String(32), nullable=False)
    school_class = db.Column(db.String(64), nullable=False)
    inspection_date = db.Column(db.Date, nullable=False)

    priority = db.Column(db.String(16), nullable=False, default="Low")
    damaged_missing_notes = db.Column(db.Text, nullable=True)
    comments = db.Column(db.Text, nullable=True)

    inspected_by_staff_id = db.Column(db.Integer, db.ForeignKey("staff_members.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    items = db.relationship(
        "ClassroomInventoryItem",
        backref="inventory",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="ClassroomInventoryItem.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "reference": self.reference,
            "block": self.block,
            "room_number": self.room_number,
            "school_class": self.school_class,
            "inspection_date": to_iso_date(self.inspection_date),
            "priority": self.priority,
            "damaged_missing_notes": self.damaged_missing_notes,
            "comments": self.comments,
            "inspected_by_staff_id": self.inspected_by_staff_id,
            "items": [item.to_dict() for item in self.items],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ClassroomInventoryItem(db.Model):
    __tablename__ = "classroom_inventory_items"
    __table_args__ = (
        db.UniqueConstraint("inventory_id", "item_name", name="uq_classroom_inventory_items_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    inventory_id = db.Column(db.Integer, db.ForeignKey("classroom_inventories.id"), nullable=False, index=True)

    item_name = db.Column(db.String(128), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="Available")  # Available | Missing | Damaged
    condition = db.Column(db.String(16), nullable=False, default="Good")  # Good | Fair | Poor | N/A

    def to_dict(self) -> dict:
        return {
            "item_name": self.item_name,
            "status": self.status,
            "condition": self.condition,
        }


class SafetyInspection(db.Model):
    """
    School-wide safety checklist. Each inspection is its own record; the
    latest one is the "current" audit.
    """
    __tablename__ = "safety_inspections"
    __table_args__ = (
        db.UniqueConstraint("reference", name="uq_safety_inspections_reference"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    reference = db.Column(db.String(32), nullable=False)

    inspector_name = db.Column(db.String(128), nullable=False)
    inspection_date = db.Column(db.Date, nullable=False)

    hazards_identified = db.Column(db.Text, nullable=True)
    actions_required = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="Pending", index=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_by_staff_id = db.Column(db.Integer, db.ForeignKey("staff_members.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    checks = db.relationship(
        "SafetyCheck",
        backref="inspection",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="SafetyCheck.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "reference": self.reference,
            "inspector_name": self.inspector_name,
            "inspection_date": to_iso_date(self.inspection_date),
            "hazards_identified": self.hazards_identified,
            "actions_required": self.actions_required,
            "status": self.status,
            "completed_at": to_utc_z(self.completed_at),
            "created_by_staff_id": self.created_by_staff_id,
            "checks": [check.to_dict() for check in self.checks],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class SafetyCheck(db.Model):
    __tablename__ = "safety_checks"
    __table_args__ = (
        db.UniqueConstraint("inspection_id", "check_name", name="uq_safety_checks_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    inspection_id = db.Column(db.Integer, db.ForeignKey("safety_inspections.id"), nullable=False, index=True)

    check_name = db.Column(db.String(128), nullable=False)
    status = db.Column(db.String(32), nullable=False, default="Safe")  # Safe | Unsafe | Maintenance Required | N/A
    risk = db.Column(db.String(16), nullable=False, default="Low")  # Low | Medium | High

    def to_dict(self) -> dict:
        return {
            "check_name": self.check_name,
            "status": self.status,
            "risk": self.risk,
        }
