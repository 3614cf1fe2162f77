from __future__ import annotations

from datetime import date

from ..extensions import db
from ..time_utils import to_utc_z, to_iso_date, today
from ..services.request_lifecycle import is_overdue


class MaterialRequest(db.Model):
    """
    A staff member's request for teaching material or equipment.

    LIFECYCLE (see services/request_lifecycle.py):
        Pending -> Approved -> Issued -> Returned
        Pending -> Declined

    Request facts are written once at submission. Each later phase writes
    only its own block of columns, so a Pending row never carries approval
    data and only a Returned row carries return data.

    version_id is SQLAlchemy's optimistic lock: a flush against a row that
    another writer has already bumped raises StaleDataError.
    """
    __tablename__ = "material_requests"
    __table_args__ = (
        db.UniqueConstraint("reference", name="uq_material_requests_reference"),
        db.Index("ix_material_requests_status_expected", "status", "expected_return_date"),
        db.Index("ix_material_requests_staff_status", "staff_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    reference = db.Column(db.String(32), nullable=False)

    # Requester (name cached at submission)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff_members.id"), nullable=False, index=True)
    staff_name = db.Column(db.String(128), nullable=False)

    # Request facts
    item_name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(32), nullable=False)
    purpose = db.Column(db.String(32), nullable=False)
    quantity_requested = db.Column(db.Integer, nullable=False)
    date_requested = db.Column(db.Date, nullable=False)
    date_required = db.Column(db.Date, nullable=False)
    usage_duration = db.Column(db.String(16), nullable=False)
    priority = db.Column(db.String(16), nullable=False)
    remarks = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="Pending", index=True)

    # Approval phase
    approved_quantity = db.Column(db.Integer, nullable=True)
    approval_date = db.Column(db.Date, nullable=True)
    approved_by = db.Column(db.String(128), nullable=True)
    approved_by_staff_id = db.Column(db.Integer, db.ForeignKey("staff_members.id"), nullable=True)

    # Decline branch
    declined_at = db.Column(db.DateTime(timezone=True), nullable=True)
    declined_by_staff_id = db.Column(db.Integer, db.ForeignKey("staff_members.id"), nullable=True)
    decline_reason = db.Column(db.String(255), nullable=True)

    # Issuance phase
    date_issued = db.Column(db.Date, nullable=True)
    supplied_by = db.Column(db.String(128), nullable=True)
    supplied_by_staff_id = db.Column(db.Integer, db.ForeignKey("staff_members.id"), nullable=True)
    store_source = db.Column(db.String(128), nullable=True)
    condition_on_supply = db.Column(db.String(16), nullable=True)
    expected_return_date = db.Column(db.Date, nullable=True)

    # Return phase
    date_returned = db.Column(db.Date, nullable=True)
    quantity_returned = db.Column(db.Integer, nullable=True)
    condition_on_return = db.Column(db.String(16), nullable=True)
    loss_description = db.Column(db.String(255), nullable=True)
    received_by = db.Column(db.String(128), nullable=True)
    received_by_staff_id = db.Column(db.Integer, db.ForeignKey("staff_members.id"), nullable=True)
    return_status = db.Column(db.String(16), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    requester = db.relationship("StaffMember", foreign_keys=[staff_id])
    events = db.relationship(
        "MaterialRequestEvent",
        backref="request",
        lazy=True,
        order_by="MaterialRequestEvent.id",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<MaterialRequest id={self.id} ref={self.reference!r} status={self.status!r}>"

    def is_overdue(self, as_of: date | None = None) -> bool:
        return is_overdue(self.status, self.expected_return_date, as_of or today())

    def to_dict(self, *, as_of: date | None = None) -> dict:
        return {
            "id": self.id,
            "reference": self.reference,
            "staff_id": self.staff_id,
            "staff_name": self.staff_name,
            "item_name": self.item_name,
            "category": self.category,
            "purpose": self.purpose,
            "quantity_requested": self.quantity_requested,
            "date_requested": to_iso_date(self.date_requested),
            "date_required": to_iso_date(self.date_required),
            "usage_duration": self.usage_duration,
            "priority": self.priority,
            "remarks": self.remarks,
            "status": self.status,
            "approved_quantity": self.approved_quantity,
            "approval_date": to_iso_date(self.approval_date),
            "approved_by": self.approved_by,
            "approved_by_staff_id": self.approved_by_staff_id,
            "declined_at": to_utc_z(self.declined_at),
            "declined_by_staff_id": self.declined_by_staff_id,
            "decline_reason": self.decline_reason,
            "date_issued": to_iso_date(self.date_issued),
            "supplied_by": self.supplied_by,
            "supplied_by_staff_id": self.supplied_by_staff_id,
            "store_source": self.store_source,
            "condition_on_supply": self.condition_on_supply,
            "expected_return_date": to_iso_date(self.expected_return_date),
            "date_returned": to_iso_date(self.date_returned),
            "quantity_returned": self.quantity_returned,
            "condition_on_return": self.condition_on_return,
            "loss_description": self.loss_description,
            "received_by": self.received_by,
            "received_by_staff_id": self.received_by_staff_id,
            "return_status": self.return_status,
            "is_overdue": self.is_overdue(as_of),
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class MaterialRequestEvent(db.Model):
    """
    Append-only audit trail of material request transitions.

    One row per submission or transition, written in the same transaction
    as the change it records. Rows are never updated or deleted.
    """
    __tablename__ = "material_request_events"
    __table_args__ = (
        db.Index("ix_material_request_events_request_occurred", "request_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.Integer, db.ForeignKey("material_requests.id"), nullable=False, index=True)

    event_type = db.Column(db.String(64), nullable=False, index=True)  # e.g., request.submitted, request.issued
    from_status = db.Column(db.String(16), nullable=True)
    to_status = db.Column(db.String(16), nullable=False)

    actor_staff_id = db.Column(db.Integer, db.ForeignKey("staff_members.id"), nullable=True, index=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    note = db.Column(db.String(255), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "request_id": self.request_id,
            "event_type": self.event_type,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "actor_staff_id": self.actor_staff_id,
            "occurred_at": to_utc_z(self.occurred_at),
            "note": self.note,
        }
