from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


STAFF_STATUS_ACTIVE = "Active"
STAFF_STATUS_INACTIVE = "Inactive"


class StaffMember(db.Model):
    """
    School staff directory entry.

    Staff members are the requesters of materials and the actors of every
    approval, issue and return. The cached display name on a request is
    taken from here at submission time.

    Staff are never deleted; deactivation keeps the audit trail resolvable.
    """
    __tablename__ = "staff_members"
    __table_args__ = (
        db.UniqueConstraint("staff_code", name="uq_staff_members_code"),
        db.Index("ix_staff_members_role_status", "role", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    staff_code = db.Column(db.String(32), nullable=False)
    name = db.Column(db.String(128), nullable=False)

    # Free-text role label ("Facilitator", "Logistics Manager", "Store Keeper", ...)
    role = db.Column(db.String(64), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=STAFF_STATUS_ACTIVE)

    department = db.Column(db.String(64), nullable=True)
    contact = db.Column(db.String(64), nullable=True)
    email = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @property
    def is_active(self) -> bool:
        return self.status == STAFF_STATUS_ACTIVE

    def __repr__(self) -> str:
        return f"<StaffMember id={self.id} code={self.staff_code!r} role={self.role!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "staff_code": self.staff_code,
            "name": self.name,
            "role": self.role,
            "status": self.status,
            "department": self.department,
            "contact": self.contact,
            "email": self.email,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
