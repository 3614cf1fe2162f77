"""
Classroom inventory and safety inspection tests.
"""

from datetime import date

import pytest

from conftest import staff_headers
from slms.services import classroom_inventory_service as cis
from slms.services import safety_service
from slms.services.classroom_inventory_service import FacilitiesError, FacilitiesNotFoundError


class TestClassroomInventory:

    def test_default_inventory(self, db_session):
        inventory = cis.get_or_create_inventory("Basic 4", as_of=date(2026, 10, 17))
        db_session.commit()

        assert inventory.block == "Main Block"
        assert inventory.room_number == "Room 01"
        assert inventory.priority == "Low"
        assert inventory.inspection_date == date(2026, 10, 17)
        assert inventory.reference == "CI-2026-0001"
        assert [i.item_name for i in inventory.items] == list(cis.STANDARD_ITEMS)
        assert all(i.status == "Available" and i.condition == "Good" for i in inventory.items)

    def test_one_record_per_class(self, db_session):
        first = cis.get_or_create_inventory("Basic 4")
        second = cis.get_or_create_inventory(" Basic 4 ")
        assert first.id == second.id
        assert len(cis.list_inventories()) == 1

    def test_update_and_summary(self, db_session, logistics_manager):
        cis.update_inventory(
            "Basic 4",
            fields={"priority": "Emergency", "damaged_missing_notes": "Projector cable missing"},
            items={
                "ICT Equipment (Projector/Laptop)": {"status": "Missing"},
                "Doors & Locks": {"status": "Damaged", "condition": "Poor"},
            },
            actor_staff_id=logistics_manager.id,
        )
        db_session.commit()

        summary = cis.inventory_summary("Basic 4")
        assert summary["total_items"] == 10
        assert summary["available"] == 8
        assert summary["missing"] == 1
        assert summary["damaged"] == 1
        assert summary["poor_condition"] == 1
        assert summary["priority"] == "Emergency"
        assert cis.find_inventory("Basic 4").inspected_by_staff_id == logistics_manager.id

    @pytest.mark.parametrize(
        "fields,items",
        [
            ({"priority": "Urgent"}, None),
            ({"school_class": "Basic 5"}, None),
            ({"inspection_date": "tomorrow"}, None),
            ({}, {"Swimming Pool": {"status": "Missing"}}),
            ({}, {"Doors & Locks": {"status": "Stolen"}}),
            ({}, {"Doors & Locks": {"colour": "Blue"}}),
        ],
    )
    def test_invalid_updates(self, db_session, fields, items):
        with pytest.raises(FacilitiesError):
            cis.update_inventory("Basic 4", fields=fields, items=items)
        db_session.rollback()

    def test_summary_of_unknown_class(self, db_session):
        with pytest.raises(FacilitiesNotFoundError):
            cis.inventory_summary("Basic 9")


class TestSafetyInspections:

    def test_new_inspection_defaults(self, db_session):
        inspection = safety_service.create_inspection(inspection_date="2026-10-17")
        db_session.commit()

        assert inspection.status == "Pending"
        assert inspection.inspector_name == "Safety Officer"
        assert inspection.reference == "SI-2026-0001"
        assert len(inspection.checks) == 10
        assert all(c.status == "Safe" and c.risk == "Low" for c in inspection.checks)

    def test_current_is_latest(self, db_session):
        assert safety_service.current_inspection() is None
        safety_service.create_inspection()
        latest = safety_service.create_inspection(inspector_name="Mr. Tetteh")
        db_session.commit()
        assert safety_service.current_inspection().id == latest.id

    def test_completion_stamp(self, db_session):
        inspection = safety_service.create_inspection()
        safety_service.update_inspection(inspection.id, fields={"status": "Completed"})
        db_session.commit()
        assert inspection.completed_at is not None

        safety_service.update_inspection(inspection.id, fields={"status": "In Progress"})
        db_session.commit()
        assert inspection.completed_at is None

    def test_check_updates_and_summary(self, db_session):
        inspection = safety_service.create_inspection()
        safety_service.update_inspection(
            inspection.id,
            fields={"hazards_identified": "Exposed wiring in block B"},
            checks={
                "Electrical Safety (Wiring)": {"status": "Unsafe", "risk": "High"},
                "Playground Equipment": {"status": "Maintenance Required"},
            },
        )
        db_session.commit()

        summary = safety_service.inspection_summary(inspection.id)
        assert summary["unsafe"] == 1
        assert summary["maintenance_required"] == 1
        assert summary["high_risk"] == 1
        assert summary["safe"] == 8

    def test_invalid_status(self, db_session):
        inspection = safety_service.create_inspection()
        with pytest.raises(FacilitiesError):
            safety_service.update_inspection(inspection.id, fields={"status": "Done"})
        db_session.rollback()

    def test_unknown_inspection(self, db_session):
        with pytest.raises(FacilitiesNotFoundError):
            safety_service.update_inspection(404, fields={})


class TestFacilitiesApi:

    def test_inventory_endpoints(self, client, facilitator, logistics_manager):
        resp = client.get("/api/facilities/inventories/Basic%204", headers=staff_headers(facilitator))
        assert resp.status_code == 200
        assert resp.get_json()["summary"]["available"] == 10

        resp = client.patch(
            "/api/facilities/inventories/Basic%204",
            json={"items": {"Functional Lighting": {"status": "Damaged"}}},
            headers=staff_headers(facilitator),
        )
        assert resp.status_code == 403

        resp = client.patch(
            "/api/facilities/inventories/Basic%204",
            json={"comments": "Re-audited", "items": {"Functional Lighting": {"status": "Damaged"}}},
            headers=staff_headers(logistics_manager),
        )
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["inventory"]["comments"] == "Re-audited"
        assert body["summary"]["damaged"] == 1

        resp = client.patch(
            "/api/facilities/inventories/Basic%204",
            json={"priority": "Whenever"},
            headers=staff_headers(logistics_manager),
        )
        assert resp.status_code == 400

    def test_safety_endpoints(self, client, facilitator, head_teacher):
        resp = client.get("/api/facilities/safety/current", headers=staff_headers(facilitator))
        assert resp.status_code == 404

        resp = client.post("/api/facilities/safety", json={}, headers=staff_headers(head_teacher))
        assert resp.status_code == 201
        inspection_id = resp.get_json()["inspection"]["id"]

        resp = client.patch(
            f"/api/facilities/safety/{inspection_id}",
            json={"status": "Completed", "checks": {"Fire Safety Equipment": {"risk": "Medium"}}},
            headers=staff_headers(head_teacher),
        )
        assert resp.status_code == 200
        assert resp.get_json()["inspection"]["completed_at"] is not None

        resp = client.get("/api/facilities/safety/current", headers=staff_headers(facilitator))
        assert resp.get_json()["inspection"]["id"] == inspection_id

        resp = client.patch("/api/facilities/safety/999", json={}, headers=staff_headers(head_teacher))
        assert resp.status_code == 404

    def test_non_object_bodies_are_400(self, client, logistics_manager, head_teacher):
        resp = client.patch(
            "/api/facilities/inventories/Basic%204",
            json=[{"status": "Damaged"}],
            headers=staff_headers(logistics_manager),
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Request body must be a JSON object"

        resp = client.post("/api/facilities/safety", json=["Fire"], headers=staff_headers(head_teacher))
        assert resp.status_code == 400

        resp = client.post("/api/facilities/safety", json={}, headers=staff_headers(head_teacher))
        inspection_id = resp.get_json()["inspection"]["id"]
        resp = client.patch(f"/api/facilities/safety/{inspection_id}", json=[1], headers=staff_headers(head_teacher))
        assert resp.status_code == 400
