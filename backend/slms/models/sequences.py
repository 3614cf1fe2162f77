from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class ReferenceSequence(db.Model):
    """
    Atomic per-year reference sequences.

    One row per (document_type, year); next_number is incremented in a single
    UPDATE so two concurrent submissions never receive the same reference.
    """
    __tablename__ = "reference_sequences"
    __table_args__ = (
        db.UniqueConstraint("document_type", "year", name="uq_reference_sequences_type_year"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(32), nullable=False, index=True)
    year = db.Column(db.Integer, nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_type": self.document_type,
            "year": self.year,
            "next_number": self.next_number,
            "updated_at": to_utc_z(self.updated_at),
        }
