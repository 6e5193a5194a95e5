"""
Pytest configuration and fixtures for the fleet booking backend.

Every test gets its own application built by the factory on top of a fresh
in-memory SQLite database, so nothing leaks between tests.
"""

import pytest
from fastapi.testclient import TestClient

from fleet.core.config import Settings
from fleet.core.security import create_access_token, hash_password
from fleet.main import create_app
from fleet.models.user import User


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL="sqlite://",
        SECRET_KEY="test-secret",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def session_factory(app):
    return app.state.session_factory


@pytest.fixture
def make_user(session_factory):
    """Insert a user straight into the database and return it."""
    counter = {"n": 0}

    def _make(role="dispatcher", phone=None, password="secret123", **extra):
        counter["n"] += 1
        with session_factory() as db:
            user = User(
                name=f"{role.title()} {counter['n']}",
                email=f"{role}{counter['n']}@example.com",
                phone=phone,
                hashed_password=hash_password(password),
                role=role,
                **extra,
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            return user

    return _make


@pytest.fixture
def headers_for(settings):
    def _headers(user):
        token = create_access_token(
            data={"sub": str(user.id), "role": user.role},
            settings=settings,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin_headers(make_user, headers_for):
    return headers_for(make_user("admin"))


@pytest.fixture
def dispatcher_headers(make_user, headers_for):
    return headers_for(make_user("dispatcher"))


@pytest.fixture
def accountant_headers(make_user, headers_for):
    return headers_for(make_user("accountant"))


@pytest.fixture
def driver_record(client, admin_headers):
    response = client.post(
        "/api/drivers",
        json={"name": "Ravi", "phone": "9876543210", "license_number": "KA01-2020-001"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def vehicle_record(client, admin_headers):
    response = client.post(
        "/api/vehicles",
        json={"registration_number": "KA01AB1234", "category": "sedan", "mileage": 12},
        headers=admin_headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def company_record(client, admin_headers):
    response = client.post(
        "/api/companies",
        json={"name": "Acme Corp", "type": "company"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def customer_record(client, admin_headers):
    response = client.post(
        "/api/customers",
        json={"name": "Meena", "phone": "9123456780"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    return response.json()


def _booking_payload(**overrides):
    payload = {
        "customer_name": "Anil Kumar",
        "customer_phone": "9000000001",
        "booking_source": "individual",
        "journey_type": "outstation",
        "pickup_location": "Bengaluru",
        "drop_location": "Mysuru",
        "start_date": "2024-03-01T08:00:00",
        "end_date": "2024-03-02T20:00:00",
        "total_amount": 10000,
        "advance_received": 2000,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def booking_payload():
    return _booking_payload


@pytest.fixture
def create_booking(client, admin_headers):
    def _create(**overrides):
        response = client.post(
            "/api/bookings",
            json=_booking_payload(**overrides),
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create
