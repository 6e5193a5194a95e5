import pytest


@pytest.fixture
def driven_booking(create_booking, driver_record, vehicle_record):
    return create_booking(driver_id=driver_record["id"], vehicle_id=vehicle_record["id"])


def _payments_url(booking):
    return f"/api/bookings/{booking['id']}/driver-payments"


def test_fuel_basis_derives_quantity_and_amount(client, accountant_headers, driven_booking):
    response = client.post(
        _payments_url(driven_booking),
        json={"mode": "fuel-basis", "distance_km": 100, "mileage": 10, "fuel_rate": 90},
        headers=accountant_headers,
    )

    assert response.status_code == 201
    payment = response.json()
    assert payment["fuel_quantity"] == 10.00
    assert payment["amount"] == 900.00
    assert payment["driver_id"] == driven_booking["driver_id"]
    assert payment["settled"] is False


def test_fuel_basis_without_rate_is_rejected(client, accountant_headers, driven_booking):
    response = client.post(
        _payments_url(driven_booking),
        json={"mode": "fuel-basis", "distance_km": 100, "mileage": 10},
        headers=accountant_headers,
    )
    assert response.status_code == 400


def test_per_trip_payment_needs_positive_amount(client, accountant_headers, driven_booking):
    response = client.post(
        _payments_url(driven_booking),
        json={"mode": "per-trip", "amount": 0},
        headers=accountant_headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid payment amount"


def test_non_fuel_payment_drops_fuel_fields(client, accountant_headers, driven_booking):
    response = client.post(
        _payments_url(driven_booking),
        json={"mode": "daily", "amount": 800, "fuel_rate": 90},
        headers=accountant_headers,
    )

    assert response.status_code == 201
    assert response.json()["fuel_rate"] is None
    assert response.json()["amount"] == 800


def test_booking_without_driver_rejects_payment(client, accountant_headers, create_booking):
    booking = create_booking()

    response = client.post(
        _payments_url(booking),
        json={"mode": "per-trip", "amount": 500},
        headers=accountant_headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Booking has no driver assigned"


def test_driver_role_cannot_manage_driver_payments(
    client, make_user, headers_for, driven_booking, driver_record
):
    headers = headers_for(make_user("driver", driver_id=driver_record["id"]))
    assert client.get(_payments_url(driven_booking), headers=headers).status_code == 403


def test_update_settles_payment(client, accountant_headers, driven_booking):
    created = client.post(
        _payments_url(driven_booking),
        json={"mode": "per-trip", "amount": 400},
        headers=accountant_headers,
    ).json()

    response = client.put(
        f"{_payments_url(driven_booking)}/{created['id']}",
        json={"settle": True},
        headers=accountant_headers,
    )

    assert response.status_code == 200
    assert response.json()["settled"] is True
    assert response.json()["settled_at"] is not None
    assert response.json()["amount"] == 400


def test_typed_quantity_replaces_distance_derivation(client, accountant_headers, driven_booking):
    created = client.post(
        _payments_url(driven_booking),
        json={"mode": "fuel-basis", "distance_km": 100, "mileage": 10, "fuel_rate": 90},
        headers=accountant_headers,
    ).json()

    response = client.put(
        f"{_payments_url(driven_booking)}/{created['id']}",
        json={"fuel_quantity": 5},
        headers=accountant_headers,
    )

    payment = response.json()
    assert payment["fuel_quantity"] == 5
    assert payment["amount"] == 450
    assert payment["distance_km"] is None
    assert payment["mileage"] is None


def test_list_and_delete_driver_payments(client, accountant_headers, driven_booking):
    url = _payments_url(driven_booking)
    first = client.post(url, json={"amount": 300}, headers=accountant_headers).json()
    client.post(url, json={"amount": 200}, headers=accountant_headers)

    assert len(client.get(url, headers=accountant_headers).json()) == 2

    assert client.delete(f"{url}/{first['id']}", headers=accountant_headers).status_code == 204
    assert [p["amount"] for p in client.get(url, headers=accountant_headers).json()] == [200]


def test_driver_payments_listed_per_driver(client, admin_headers, driven_booking, driver_record):
    client.post(_payments_url(driven_booking), json={"amount": 300}, headers=admin_headers)

    response = client.get(f"/api/drivers/{driver_record['id']}/payments", headers=admin_headers)

    assert response.status_code == 200
    assert [p["booking_id"] for p in response.json()] == [driven_booking["id"]]
    assert client.get("/api/drivers/999/payments", headers=admin_headers).status_code == 404


# ---------------- SETTLEMENT ----------------

def test_settle_booking_records_final_payment(client, admin_headers, driven_booking):
    booking_id = driven_booking["id"]
    client.post(
        f"/api/bookings/{booking_id}/expenses",
        json={"type": "toll", "amount": 500},
        headers=admin_headers,
    )
    client.post(_payments_url(driven_booking), json={"amount": 300}, headers=admin_headers)

    response = client.put(f"/api/bookings/{booking_id}/settle", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["final_paid"] == 800

    payments = client.get(_payments_url(driven_booking), headers=admin_headers).json()
    final = payments[-1]
    assert final["description"] == "Final payment for booking Bengaluru to Mysuru"
    assert final["settled"] is True
    assert final["amount"] == 800

    ledger = client.get(f"/api/bookings/{booking_id}/ledger", headers=admin_headers).json()
    assert ledger["total_oil_amount"] == 300
    assert ledger["amount_payable"] == 800
    assert ledger["display_payable"] == 0


def test_settle_booking_with_explicit_amount(client, admin_headers, driven_booking):
    booking_id = driven_booking["id"]
    client.post(
        f"/api/bookings/{booking_id}/expenses",
        json={"type": "food", "amount": 500},
        headers=admin_headers,
    )

    response = client.put(
        f"/api/bookings/{booking_id}/settle",
        json={"amount": 450},
        headers=admin_headers,
    )

    assert response.json()["final_paid"] == 450
    ledger = client.get(f"/api/bookings/{booking_id}/ledger", headers=admin_headers).json()
    assert ledger["display_payable"] == -50


def test_settle_twice_is_rejected(client, admin_headers, driven_booking):
    booking_id = driven_booking["id"]
    client.post(
        f"/api/bookings/{booking_id}/expenses",
        json={"type": "toll", "amount": 200},
        headers=admin_headers,
    )
    client.put(f"/api/bookings/{booking_id}/settle", headers=admin_headers)

    response = client.put(f"/api/bookings/{booking_id}/settle", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Booking already settled"


def test_settle_with_nothing_payable_is_rejected(client, admin_headers, driven_booking):
    response = client.put(f"/api/bookings/{driven_booking['id']}/settle", headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.parametrize("field", ["mode", "amount"])
def test_update_cannot_null_required_fields(client, accountant_headers, driven_booking, field):
    created = client.post(
        _payments_url(driven_booking),
        json={"mode": "per-trip", "amount": 400},
        headers=accountant_headers,
    ).json()

    response = client.put(
        f"{_payments_url(driven_booking)}/{created['id']}",
        json={field: None},
        headers=accountant_headers,
    )

    assert response.status_code == 422
    listed = client.get(_payments_url(driven_booking), headers=accountant_headers).json()
    assert listed[0]["mode"] == "per-trip"
    assert listed[0]["amount"] == 400
