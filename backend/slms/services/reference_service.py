# Overview: Allocates human-readable document references (MR-2026-0001 style).

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from slms.extensions import db
from slms.models import ReferenceSequence
from slms.services.concurrency import run_with_retry


MATERIAL_REQUEST = ("MATERIAL_REQUEST", "MR")
CLASSROOM_INVENTORY = ("CLASSROOM_INVENTORY", "CI")
SAFETY_INSPECTION = ("SAFETY_INSPECTION", "SI")


class ReferenceSequenceError(Exception):
    """Raised when reference sequence operations fail."""
    pass


def next_reference(
    *,
    document_type: str,
    prefix: str,
    year: int,
    pad: int = 4,
) -> str:
    """
    Atomically allocate the next reference for a document type and year.

    The increment is a single UPDATE on the (document_type, year) row, so
    concurrent callers serialize on that row. The first call of a year
    inserts the row; losing that insert race falls back to the UPDATE.
    """
    def _op() -> str:
        if not document_type:
            raise ReferenceSequenceError("document_type is required")
        if not year:
            raise ReferenceSequenceError("year is required")

        stmt = (
            update(ReferenceSequence)
            .where(
                ReferenceSequence.document_type == document_type,
                ReferenceSequence.year == year,
            )
            .values(next_number=ReferenceSequence.next_number + 1)
        )

        result = db.session.execute(stmt)
        if result.rowcount:
            db.session.flush()
            current = (
                db.session.query(ReferenceSequence.next_number)
                .filter_by(document_type=document_type, year=year)
                .scalar()
            )
            next_num = current - 1
        else:
            seq = ReferenceSequence(document_type=document_type, year=year, next_number=2)
            db.session.add(seq)
            try:
                with db.session.begin_nested():
                    db.session.flush()
                next_num = 1
            except IntegrityError:
                result = db.session.execute(stmt)
                if not result.rowcount:
                    raise
                db.session.flush()
                current = (
                    db.session.query(ReferenceSequence.next_number)
                    .filter_by(document_type=document_type, year=year)
                    .scalar()
                )
                next_num = current - 1

        return f"{prefix}-{year}-{next_num:0{pad}d}"

    return run_with_retry(_op)


def allocate(kind: tuple[str, str], *, year: int) -> str:
    """Shorthand for next_reference with one of the module-level kinds."""
    document_type, prefix = kind
    return next_reference(document_type=document_type, prefix=prefix, year=year)
