from uuid import uuid4

import pytest

from conftest import MONDAY, TUESDAY


@pytest.fixture
def salon(seed):
    business = seed.business(accept_appointments_automatically=True)
    service = seed.service(business, duration=30, buffer_after=15, name="Beard trim")
    employee = seed.employee(business, "Mara", services=[service])
    customer = seed.customer(business, email="ada@example.com")
    return business, service, employee, customer


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"

    detailed = client.get("/health/detailed").json()
    assert detailed["database"] == "healthy"
    assert detailed["redis"] == "not used"
    assert detailed["overall"] == "healthy"


def test_correlation_id_is_echoed(client):
    response = client.get("/health", headers={"X-Correlation-ID": "abc-123"})
    assert response.headers["X-Correlation-ID"] == "abc-123"


def test_availability_returns_local_offsets(client, salon):
    business, service, employee, _ = salon

    response = client.get(
        f"/api/v1/businesses/{business.id}/availability",
        params={"service_id": str(service.id), "date": MONDAY.isoformat()},
    )

    assert response.status_code == 200
    slots = response.json()
    assert slots[0]["start_time"] == "2030-06-03T09:00:00+02:00"
    assert slots[0]["end_time"] == "2030-06-03T09:30:00+02:00"
    assert slots[0]["employee_id"] == str(employee.id)
    assert slots[0]["available_employee_count"] == 1
    # 16:15 + 30 + 15 = 17:00
    assert slots[-1]["start_time"] == "2030-06-03T16:15:00+02:00"


def test_availability_display_interval(client, salon):
    business, service, _, _ = salon
    response = client.get(
        f"/api/v1/businesses/{business.id}/availability",
        params={"service_id": str(service.id), "date": MONDAY.isoformat(), "display_interval": 60},
    )
    assert [s["start_time"][11:16] for s in response.json()][:3] == ["09:00", "10:00", "11:00"]


def test_booking_then_conflict(client, salon):
    business, service, employee, customer = salon
    payload = {
        "service_id": str(service.id),
        "employee_id": str(employee.id),
        "start_time": "2030-06-03T10:00:00+02:00",
        "customer_id": str(customer.id),
    }

    created = client.post(f"/api/v1/businesses/{business.id}/appointments", json=payload)
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "confirmed"
    assert body["start_time"] == "2030-06-03T10:00:00+02:00"
    assert body["end_time"] == "2030-06-03T10:45:00+02:00"

    clash = client.post(
        f"/api/v1/businesses/{business.id}/appointments",
        json={**payload, "start_time": "2030-06-03T08:30:00Z"},
    )
    assert clash.status_code == 409
    assert clash.json()["conflicting_appointment_ids"] == [body["id"]]

    check = client.get(
        f"/api/v1/businesses/{business.id}/availability/check",
        params={"employee_id": str(employee.id), "service_id": str(service.id), "start_time": "2030-06-03T10:45:00"},
    )
    assert check.json() == {"available": True}


def test_self_booking_and_cancel(client, salon):
    business, service, employee, _ = salon

    booked = client.post(f"/api/v1/businesses/{business.id}/bookings", json={
        "service_id": str(service.id),
        "start_time": "2030-06-03T11:00:00",
        "customer": {"name": "Lea", "email": "lea@example.com"},
    })
    assert booked.status_code == 201
    appointment = booked.json()
    assert appointment["employee_id"] == str(employee.id)

    cancelled = client.post(
        f"/api/v1/businesses/{business.id}/appointments/{appointment['id']}/cancel",
        json={"reason": "Changed plans"},
    )
    assert cancelled.json()["status"] == "cancelled"
    assert cancelled.json()["cancellation_reason"] == "Changed plans"

    listed = client.get(f"/api/v1/businesses/{business.id}/appointments", params={"status": "cancelled"})
    assert listed.json()["total_appointments"] == 1


def test_reschedule_via_patch(client, salon):
    business, service, employee, customer = salon
    created = client.post(f"/api/v1/businesses/{business.id}/appointments", json={
        "service_id": str(service.id),
        "employee_id": str(employee.id),
        "start_time": "2030-06-03T10:00:00",
        "customer_id": str(customer.id),
    }).json()

    moved = client.patch(
        f"/api/v1/businesses/{business.id}/appointments/{created['id']}",
        json={"start_time": "2030-06-03T10:15:00"},
    )
    assert moved.status_code == 200
    assert moved.json()["start_time"] == "2030-06-03T10:15:00+02:00"


def test_unknown_resources_are_404(client, salon):
    business, service, _, _ = salon
    missing = client.get(
        f"/api/v1/businesses/{uuid4()}/availability",
        params={"service_id": str(service.id), "date": MONDAY.isoformat()},
    )
    assert missing.status_code == 404

    assert client.get(f"/api/v1/businesses/{business.id}/appointments/{uuid4()}").status_code == 404


def test_invalid_request_is_422(client, salon):
    business, service, _, _ = salon
    response = client.get(
        f"/api/v1/businesses/{business.id}/availability",
        params={"service_id": str(service.id), "date": "not-a-date"},
    )
    assert response.status_code == 422


def test_schedule_exception_endpoints(client, salon):
    business, _, employee, _ = salon
    base = f"/api/v1/businesses/{business.id}/schedule-exceptions"
    payload = {"employee_id": str(employee.id), "date": MONDAY.isoformat(), "type": "holiday", "reason": "Pentecost"}

    created = client.post(base, json=payload)
    assert created.status_code == 201
    assert client.post(base, json=payload).status_code == 409

    assert len(client.get(base, params={"month": "2030-06"}).json()) == 1
    assert client.get(f"{base}/holidays", params={"year": 2030}).json()[0]["reason"] == "Pentecost"
    assert client.get(f"{base}/consolidated").json()[0]["employee_names"] == ["Mara"]

    blocks = client.get(
        f"/api/v1/businesses/{business.id}/calendar/working-blocks",
        params={"date": MONDAY.isoformat(), "employee_id": str(employee.id)},
    ).json()
    assert blocks[0]["blocks"] == []

    assert client.delete(f"{base}/{created.json()['id']}").status_code == 204
    assert client.get(base).json() == []


def test_schedule_exception_bad_input_is_422(client, salon):
    business, _, employee, _ = salon
    base = f"/api/v1/businesses/{business.id}/schedule-exceptions"

    late = client.post(base, json={
        "employee_id": str(employee.id), "date": MONDAY.isoformat(),
        "type": "modified_hours", "start_time": "10:00", "end_time": "99:99",
    })
    assert late.status_code == 422
    assert client.get(base).json() == []

    created = client.post(base, json={"employee_id": str(employee.id), "date": MONDAY.isoformat(), "type": "unavailable"})
    exception_url = f"{base}/{created.json()['id']}"
    assert client.patch(exception_url, json={"date": None}).status_code == 422
    assert client.patch(exception_url, json={"type": None}).status_code == 422
    assert client.patch(exception_url, json={"reason": "Dentist"}).json()["date"] == MONDAY.isoformat()

    assert client.get(base, params={"month": "2030-13"}).status_code == 422
    assert client.get(f"{base}/consolidated", params={"month": "2030-00"}).status_code == 422


def test_employee_working_blocks_cover_the_whole_range(client, salon):
    business, _, employee, _ = salon

    response = client.get(
        f"/api/v1/businesses/{business.id}/calendar/working-blocks",
        params={"date": MONDAY.isoformat(), "end_date": TUESDAY.isoformat(), "employee_id": str(employee.id)},
    )

    assert response.status_code == 200
    assert [day["date"] for day in response.json()] == [MONDAY.isoformat(), TUESDAY.isoformat()]
    assert all(day["blocks"] for day in response.json())
