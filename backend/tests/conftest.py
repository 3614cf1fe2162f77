"""
Pytest fixtures for SLMS backend tests.

Provides the application with an in-memory database, a test client, a
clean database per test and staff members for each role.
"""

import pytest

from slms import create_app
from slms.config import TestConfig
from slms.extensions import db
from slms.services import staff_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def _make_staff(db_session, code: str, name: str, role: str):
    staff = staff_service.create_staff(staff_code=code, name=name, role=role)
    db_session.commit()
    return staff


@pytest.fixture(scope='function')
def facilitator(db_session):
    return _make_staff(db_session, "FAC-001", "Kofi Asante", "Facilitator")


@pytest.fixture(scope='function')
def logistics_manager(db_session):
    return _make_staff(db_session, "LOG-001", "Ama Mensah", "Logistics Manager")


@pytest.fixture(scope='function')
def store_keeper(db_session):
    return _make_staff(db_session, "STK-001", "Yaw Boateng", "Store Keeper")


@pytest.fixture(scope='function')
def admin_desk(db_session):
    return _make_staff(db_session, "DSK-001", "Efua Owusu", "Admin Desk")


@pytest.fixture(scope='function')
def head_teacher(db_session):
    return _make_staff(db_session, "HT-001", "Abena Darko", "Head Teacher")


@pytest.fixture(scope='function')
def administrator(db_session):
    return _make_staff(db_session, "ADM-001", "School Administrator", "ADMINISTRATOR")


def staff_headers(staff) -> dict:
    """Helper to create the acting-staff header for a staff member."""
    return {'X-Staff-Id': str(staff.id)}
