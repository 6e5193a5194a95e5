import os

import pytest


# ---------------- CREATE / READ ----------------

def test_create_booking_sets_balance_and_initial_history(create_booking):
    booking = create_booking()

    assert booking["balance"] == 8000
    assert booking["status"] == "booked"
    assert booking["billed"] is False
    assert [h["status"] for h in booking["status_history"]] == ["booked"]


def test_create_booking_rejects_end_before_start(client, admin_headers, booking_payload):
    response = client.post(
        "/api/bookings",
        json=booking_payload(start_date="2024-03-02T08:00:00", end_date="2024-03-01T08:00:00"),
        headers=admin_headers,
    )
    assert response.status_code == 422


def test_create_booking_rejects_unknown_driver(client, admin_headers, booking_payload):
    response = client.post(
        "/api/bookings",
        json=booking_payload(driver_id=999),
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid driver_id: 999"


def test_individual_booking_drops_company(create_booking, company_record):
    booking = create_booking(booking_source="individual", company_id=company_record["id"])
    assert booking["company_id"] is None


def test_company_booking_keeps_company(create_booking, company_record):
    booking = create_booking(booking_source="company", company_id=company_record["id"])
    assert booking["company_id"] == company_record["id"]


def test_accountant_cannot_create_bookings(client, accountant_headers, booking_payload):
    response = client.post("/api/bookings", json=booking_payload(), headers=accountant_headers)
    assert response.status_code == 403


def test_list_bookings_filters_and_paginates(client, admin_headers, create_booking):
    create_booking(start_date="2024-03-01T08:00:00", end_date="2024-03-01T20:00:00")
    create_booking(start_date="2024-03-05T08:00:00", end_date="2024-03-05T20:00:00")
    latest = create_booking(start_date="2024-03-09T08:00:00", end_date="2024-03-09T20:00:00")

    response = client.get("/api/bookings", params={"limit": 2}, headers=admin_headers)
    body = response.json()

    assert body["total"] == 3
    assert len(body["bookings"]) == 2
    assert body["bookings"][0]["id"] == latest["id"]

    ranged = client.get(
        "/api/bookings",
        params={"start_date": "2024-03-04T00:00:00", "end_date": "2024-03-06T00:00:00"},
        headers=admin_headers,
    )
    assert ranged.json()["total"] == 1


def test_list_bookings_rejects_oversized_page(client, admin_headers):
    response = client.get("/api/bookings", params={"limit": 101}, headers=admin_headers)
    assert response.status_code == 422


def test_list_bookings_filters_by_status(client, admin_headers, create_booking):
    first = create_booking()
    create_booking()
    client.put(f"/api/bookings/{first['id']}/status", json={"status": "ongoing"}, headers=admin_headers)

    response = client.get("/api/bookings", params={"status": "ongoing"}, headers=admin_headers)

    assert [b["id"] for b in response.json()["bookings"]] == [first["id"]]


# ---------------- UPDATE ----------------

def test_partial_update_of_advance_uses_stored_total(client, admin_headers, create_booking):
    booking = create_booking()

    response = client.put(
        f"/api/bookings/{booking['id']}",
        json={"advance_received": 3500},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["balance"] == 6500


def test_partial_update_of_total_uses_stored_advance(client, admin_headers, create_booking):
    booking = create_booking()
    client.put(f"/api/bookings/{booking['id']}", json={"advance_received": 3000}, headers=admin_headers)

    response = client.put(
        f"/api/bookings/{booking['id']}",
        json={"total_amount": 12000},
        headers=admin_headers,
    )

    assert response.json()["balance"] == 9000


def test_update_without_amounts_keeps_balance(client, admin_headers, create_booking):
    booking = create_booking()

    response = client.put(
        f"/api/bookings/{booking['id']}",
        json={"city_of_work": "Mysuru"},
        headers=admin_headers,
    )

    assert response.json()["balance"] == 8000
    assert response.json()["city_of_work"] == "Mysuru"


def test_update_with_status_appends_history(client, admin_headers, create_booking):
    booking = create_booking()

    response = client.put(
        f"/api/bookings/{booking['id']}",
        json={"status": "completed"},
        headers=admin_headers,
    )

    history = response.json()["status_history"]
    assert len(history) == 2
    assert history[-1]["status"] == "completed"


def test_status_update_appends_exactly_one_entry(client, admin_headers, create_booking):
    booking = create_booking()

    response = client.put(
        f"/api/bookings/{booking['id']}/status",
        json={"status": "ongoing"},
        headers=admin_headers,
    )

    body = response.json()
    assert body["status"] == "ongoing"
    assert len(body["status_history"]) == len(booking["status_history"]) + 1
    assert body["status_history"][-1]["status"] == "ongoing"
    assert body["status_history"][-1]["changed_by"] == "Admin 1"


def test_status_update_rejects_unknown_status(client, admin_headers, create_booking):
    booking = create_booking()
    response = client.put(
        f"/api/bookings/{booking['id']}/status",
        json={"status": "lost"},
        headers=admin_headers,
    )
    assert response.status_code == 422


def test_delete_booking(client, admin_headers, create_booking):
    booking = create_booking()

    assert client.delete(f"/api/bookings/{booking['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/bookings/{booking['id']}", headers=admin_headers).status_code == 404


# ---------------- ROLE SCOPING ----------------

def test_unlinked_driver_sees_empty_list(client, make_user, headers_for, create_booking):
    create_booking()
    headers = headers_for(make_user("driver"))

    response = client.get("/api/bookings", headers=headers)

    assert response.status_code == 200
    assert response.json() == {"bookings": [], "total": 0}


def test_unlinked_driver_cannot_read_single_booking(client, make_user, headers_for, create_booking):
    booking = create_booking()
    headers = headers_for(make_user("driver"))

    assert client.get(f"/api/bookings/{booking['id']}", headers=headers).status_code == 404


def test_linked_driver_sees_only_own_bookings(
    client, make_user, headers_for, create_booking, driver_record, admin_headers
):
    other = client.post(
        "/api/drivers",
        json={"name": "Suresh", "phone": "9000011111"},
        headers=admin_headers,
    ).json()
    own = create_booking(driver_id=driver_record["id"])
    create_booking(driver_id=other["id"])

    headers = headers_for(make_user("driver", driver_id=driver_record["id"]))

    response = client.get("/api/bookings", headers=headers)
    assert [b["id"] for b in response.json()["bookings"]] == [own["id"]]

    widened = client.get("/api/bookings", params={"driver_id": other["id"]}, headers=headers)
    assert [b["id"] for b in widened.json()["bookings"]] == [own["id"]]


def test_driver_updates_status_of_own_booking_only(
    client, make_user, headers_for, create_booking, driver_record
):
    own = create_booking(driver_id=driver_record["id"])
    foreign = create_booking()
    headers = headers_for(make_user("driver", driver_id=driver_record["id"]))

    ok = client.put(f"/api/bookings/{own['id']}/status", json={"status": "ongoing"}, headers=headers)
    denied = client.put(f"/api/bookings/{foreign['id']}/status", json={"status": "ongoing"}, headers=headers)

    assert ok.status_code == 200
    assert denied.status_code == 404


def test_customer_sees_only_linked_bookings(
    client, make_user, headers_for, create_booking, customer_record
):
    own = create_booking(customer_id=customer_record["id"])
    create_booking()
    headers = headers_for(make_user("customer", customer_id=customer_record["id"]))

    response = client.get("/api/bookings", headers=headers)

    assert response.json()["total"] == 1
    assert response.json()["bookings"][0]["id"] == own["id"]


def test_driver_cannot_edit_bookings(client, make_user, headers_for, create_booking, driver_record):
    booking = create_booking(driver_id=driver_record["id"])
    headers = headers_for(make_user("driver", driver_id=driver_record["id"]))

    response = client.put(f"/api/bookings/{booking['id']}", json={"total_amount": 1}, headers=headers)

    assert response.status_code == 403


# ---------------- EXPENSES ----------------

def test_expense_lifecycle(client, admin_headers, create_booking):
    booking = create_booking()
    url = f"/api/bookings/{booking['id']}/expenses"

    added = client.post(url, json={"type": "toll", "amount": 250}, headers=admin_headers)
    assert added.status_code == 200
    expense = added.json()["expenses"][0]
    assert expense["type"] == "toll"

    updated = client.put(f"{url}/{expense['id']}", json={"amount": 300}, headers=admin_headers)
    assert updated.json()["expenses"][0]["amount"] == 300

    removed = client.delete(f"{url}/{expense['id']}", headers=admin_headers)
    assert removed.json()["expenses"] == []


def test_expense_of_another_booking_is_not_found(client, admin_headers, create_booking):
    first = create_booking()
    second = create_booking()
    added = client.post(
        f"/api/bookings/{first['id']}/expenses",
        json={"type": "parking", "amount": 50},
        headers=admin_headers,
    ).json()
    expense_id = added["expenses"][0]["id"]

    response = client.delete(f"/api/bookings/{second['id']}/expenses/{expense_id}", headers=admin_headers)

    assert response.status_code == 404


# ---------------- CUSTOMER PAYMENTS ----------------

def test_payment_lifecycle(client, accountant_headers, create_booking):
    booking = create_booking()
    url = f"/api/bookings/{booking['id']}/payments"

    added = client.post(url, json={"amount": 500, "collected_by": "Ravi"}, headers=accountant_headers)
    assert added.status_code == 200
    payment = added.json()["payments"][0]
    assert payment["paid_on"] is not None

    listed = client.get(url, headers=accountant_headers)
    assert [p["amount"] for p in listed.json()] == [500]

    updated = client.put(f"{url}/{payment['id']}", json={"amount": 650}, headers=accountant_headers)
    assert updated.json()["payments"][0]["amount"] == 650

    removed = client.delete(f"{url}/{payment['id']}", headers=accountant_headers)
    assert removed.json()["payments"] == []


def test_payment_must_be_positive(client, admin_headers, create_booking):
    booking = create_booking()
    response = client.post(
        f"/api/bookings/{booking['id']}/payments",
        json={"amount": 0},
        headers=admin_headers,
    )
    assert response.status_code == 422


def test_customer_lists_payments_of_own_booking(
    client, admin_headers, make_user, headers_for, create_booking, customer_record
):
    own = create_booking(customer_id=customer_record["id"])
    foreign = create_booking()
    client.post(f"/api/bookings/{own['id']}/payments", json={"amount": 100}, headers=admin_headers)
    headers = headers_for(make_user("customer", customer_id=customer_record["id"]))

    assert client.get(f"/api/bookings/{own['id']}/payments", headers=headers).status_code == 200
    assert client.get(f"/api/bookings/{foreign['id']}/payments", headers=headers).status_code == 404


# ---------------- LEDGER ----------------

def test_ledger_for_fully_covered_expenses(client, admin_headers, create_booking):
    booking = create_booking(total_amount=10000, advance_received=2000)
    client.post(
        f"/api/bookings/{booking['id']}/expenses",
        json={"type": "toll", "amount": 500},
        headers=admin_headers,
    )
    client.post(f"/api/bookings/{booking['id']}/payments", json={"amount": 500}, headers=admin_headers)

    response = client.get(f"/api/bookings/{booking['id']}/ledger", headers=admin_headers)

    ledger = response.json()
    assert ledger["base_driver_expenses"] == 500
    assert ledger["on_duty_paid"] == 500
    assert ledger["amount_payable"] == 0
    assert ledger["balance"] == 8000


# ---------------- DUTY SLIPS ----------------

def test_upload_and_remove_duty_slips(client, admin_headers, create_booking, settings):
    booking = create_booking()
    url = f"/api/bookings/{booking['id']}/duty-slips"

    response = client.post(
        url,
        files=[
            ("files", ("slip-1.png", b"\x89PNG fake", "image/png")),
            ("files", ("slip-2.pdf", b"%PDF-1.4 fake", "application/pdf")),
        ],
        headers=admin_headers,
    )

    assert response.status_code == 200
    slips = response.json()["duty_slips"]
    assert len(slips) == 2
    assert all(s["path"].startswith("duty-slips/") for s in slips)
    assert os.path.exists(os.path.join(settings.UPLOAD_DIR, slips[0]["path"]))

    served = client.get(f"/uploads/{slips[0]['path']}")
    assert served.status_code == 200

    removed = client.put(
        f"/api/bookings/{booking['id']}/remove-duty-slip",
        json={"path": slips[0]["path"]},
        headers=admin_headers,
    )
    assert [s["path"] for s in removed.json()["duty_slips"]] == [slips[1]["path"]]


def test_upload_rejects_unsupported_files(client, admin_headers, create_booking):
    booking = create_booking()

    response = client.post(
        f"/api/bookings/{booking['id']}/duty-slips",
        files=[("files", ("notes.exe", b"MZ", "application/octet-stream"))],
        headers=admin_headers,
    )

    assert response.status_code == 400


def test_upload_to_missing_booking(client, admin_headers):
    response = client.post(
        "/api/bookings/999/duty-slips",
        files=[("files", ("slip.png", b"\x89PNG", "image/png"))],
        headers=admin_headers,
    )
    assert response.status_code == 404


# ---------------- UPDATE VALIDATION ----------------

def test_booking_list_rejects_page_zero(client, admin_headers):
    response = client.get("/api/bookings", params={"page": 0}, headers=admin_headers)

    assert response.status_code == 422
    assert response.json()["detail"][0]["loc"] == ["page"]


@pytest.mark.parametrize("field", ["advance_received", "total_amount", "customer_name", "start_date"])
def test_update_cannot_null_required_fields(client, admin_headers, create_booking, field):
    booking = create_booking()

    response = client.put(
        f"/api/bookings/{booking['id']}",
        json={field: None},
        headers=admin_headers,
    )

    assert response.status_code == 422
    stored = client.get(f"/api/bookings/{booking['id']}", headers=admin_headers).json()
    assert stored[field] == booking[field]
    assert stored["balance"] == 8000


def test_update_rejects_end_before_stored_start(client, admin_headers, create_booking):
    booking = create_booking(start_date="2024-03-05T08:00:00", end_date="2024-03-06T08:00:00")

    response = client.put(
        f"/api/bookings/{booking['id']}",
        json={"end_date": "2024-03-04T08:00:00"},
        headers=admin_headers,
    )

    assert response.status_code == 422
    stored = client.get(f"/api/bookings/{booking['id']}", headers=admin_headers).json()
    assert stored["end_date"].startswith("2024-03-06")


def test_update_rejects_end_before_start_in_same_payload(client, admin_headers, create_booking):
    booking = create_booking()

    response = client.put(
        f"/api/bookings/{booking['id']}",
        json={"start_date": "2024-04-02T08:00:00", "end_date": "2024-04-01T08:00:00"},
        headers=admin_headers,
    )

    assert response.status_code == 422


def test_switching_to_individual_drops_company(client, admin_headers, create_booking, company_record):
    booking = create_booking(booking_source="company", company_id=company_record["id"])

    response = client.put(
        f"/api/bookings/{booking['id']}",
        json={"booking_source": "individual"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["booking_source"] == "individual"
    assert response.json()["company_id"] is None


def test_rejected_upload_batch_writes_nothing(client, admin_headers, create_booking, settings):
    booking = create_booking()

    response = client.post(
        f"/api/bookings/{booking['id']}/duty-slips",
        files=[
            ("files", ("slip.png", b"\x89PNG fake", "image/png")),
            ("files", ("notes.exe", b"MZ", "application/octet-stream")),
        ],
        headers=admin_headers,
    )

    assert response.status_code == 400
    slip_dir = os.path.join(settings.UPLOAD_DIR, "duty-slips")
    assert not os.path.isdir(slip_dir) or os.listdir(slip_dir) == []
    stored = client.get(f"/api/bookings/{booking['id']}", headers=admin_headers).json()
    assert stored["duty_slips"] == []
