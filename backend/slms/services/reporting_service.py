# Overview: Service-layer operations for logistics reporting.

from __future__ import annotations

from datetime import date

from sqlalchemy import func

from slms.extensions import db
from slms.models import MaterialRequest
from slms.services.material_request_service import overdue_criteria
from slms.services.request_lifecycle import (
    STATUS_APPROVED,
    STATUS_DECLINED,
    STATUS_ISSUED,
    STATUS_PENDING,
    STATUS_RETURNED,
    compliance_rate,
)
from slms.time_utils import today, to_iso_date


def logistics_summary(*, as_of: date | None = None) -> dict:
    """
    Headline figures for the logistics dashboard.

    unreturned counts every Issued request; overdue is the subset whose
    expected return date has passed. compliance_rate is the whole-percent
    share of all requests that reached Returned (100 when there are none).
    """
    as_of = as_of or today()

    rows = (
        db.session.query(MaterialRequest.status, func.count(MaterialRequest.id))
        .group_by(MaterialRequest.status)
        .all()
    )
    by_status = {
        STATUS_PENDING: 0,
        STATUS_APPROVED: 0,
        STATUS_DECLINED: 0,
        STATUS_ISSUED: 0,
        STATUS_RETURNED: 0,
    }
    for status, count in rows:
        by_status[status] = int(count)

    total = sum(by_status.values())
    overdue = (
        db.session.query(func.count(MaterialRequest.id))
        .filter(*overdue_criteria(as_of))
        .scalar()
    ) or 0

    return {
        "as_of": to_iso_date(as_of),
        "total_requests": total,
        "unreturned": by_status[STATUS_ISSUED],
        "overdue": int(overdue),
        "returned": by_status[STATUS_RETURNED],
        "compliance_rate": compliance_rate(total, by_status[STATUS_RETURNED]),
        "by_status": by_status,
    }


def overdue_report(*, as_of: date | None = None) -> list[dict]:
    """Issued requests past their expected return date, oldest due date first."""
    as_of = as_of or today()
    requests = (
        db.session.query(MaterialRequest)
        .filter(*overdue_criteria(as_of))
        .order_by(MaterialRequest.expected_return_date.asc(), MaterialRequest.id.asc())
        .all()
    )
    return [
        {
            "id": r.id,
            "reference": r.reference,
            "staff_id": r.staff_id,
            "staff_name": r.staff_name,
            "item_name": r.item_name,
            "approved_quantity": r.approved_quantity,
            "date_issued": to_iso_date(r.date_issued),
            "expected_return_date": to_iso_date(r.expected_return_date),
            "days_overdue": (as_of - r.expected_return_date).days,
        }
        for r in requests
    ]
