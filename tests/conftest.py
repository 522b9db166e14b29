"""
Shared pytest fixtures for the SAP Migration Readiness test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - project / pitch / work_package: Pre-created Shape Up entities via the API
"""

import pytest

from app import create_app
from app.models import db as _db


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def project(client):
    """Create and return a greenfield Project via the API."""
    res = client.post(
        "/api/v1/projects",
        json={"name": "S/4 Greenfield", "strategy": "greenfield", "user_id": "u-1"},
    )
    assert res.status_code == 201
    return res.get_json()


@pytest.fixture()
def pitch(client, project):
    """Create and return a shaped Pitch under ``project``."""
    res = client.post(
        f"/api/v1/projects/{project['id']}/pitches",
        json={
            "title": "Finance master data",
            "problem": "Duplicate vendors across company codes",
            "solution": "Business partner consolidation",
            "business_value": "Single vendor view",
            "appetite": 6,
        },
    )
    assert res.status_code == 201
    return res.get_json()


@pytest.fixture()
def work_package(client, pitch):
    """Create and return a WorkPackage at the default start position."""
    res = client.post(
        f"/api/v1/pitches/{pitch['id']}/work-packages",
        json={"name": "Vendor mapping"},
    )
    assert res.status_code == 201
    return res.get_json()
