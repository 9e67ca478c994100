from datetime import date
import uuid

import pytest

from backoffice.models import LeaveBalance, LeaveRequest, LeaveType
from backoffice.services.leaves import count_leave_days

API = "/api/v1/hr/leaves"


def test_count_leave_days():
    assert count_leave_days(date(2024, 7, 1), date(2024, 7, 5)) == 5
    assert count_leave_days(date(2024, 7, 1), date(2024, 7, 1), start_half_day=True) == 0.5
    assert count_leave_days(date(2024, 7, 1), date(2024, 7, 2), True, True) == 1


def test_count_leave_days_rejects_reversed_range():
    with pytest.raises(ValueError):
        count_leave_days(date(2024, 7, 5), date(2024, 7, 1))


@pytest.fixture
def paid_leave(db):
    leave_type = LeaveType(code="CP", name="Congé payé", default_days=18, approval_workflow="n1_n2")
    db.add(leave_type)
    db.commit()
    db.refresh(leave_type)
    return leave_type


@pytest.fixture
def team(make_role, make_profile, make_employee, assign_managers):
    staff = make_role("employee", ["hr.leaves.create", "hr.leaves.view_page"])
    people = {}
    for username, first_name in (("worker", "Salma"), ("n1", "Adil"), ("n2", "Hind")):
        profile = make_profile(username, staff)
        people[username] = (profile, make_employee(first_name, "Test", profile=profile))
    assign_managers(people["worker"][1], people["n1"][1], people["n2"][1])
    return people


def request_leave(client, headers, leave_type, start="2024-07-01", end="2024-07-05", **extra):
    return client.post(
        f"{API}/requests",
        headers=headers,
        json={"leave_type_id": str(leave_type.id), "start_date": start, "end_date": end, **extra},
    )


def test_two_level_leave_approval_books_days(client, db, headers_for, paid_leave, team):
    worker, worker_employee = team["worker"]
    n1, _ = team["n1"]
    n2, _ = team["n2"]

    created = request_leave(client, headers_for(worker), paid_leave)
    assert created.status_code == 201
    request = created.json()["request"]
    assert request["days_requested"] == 5
    assert request["approval_levels"] == 2
    url = f"{API}/requests/{request['id']}"

    assert client.get(f"{API}/pending", headers=headers_for(n2)).json()["requests"] == []
    assert client.put(f"{url}/approve", headers=headers_for(n2), json={}).status_code == 403

    first = client.put(f"{url}/approve", headers=headers_for(n1), json={"comment": "OK N1"})
    assert first.json()["final"] is False
    assert first.json()["request"]["status"] == "approved_n1"

    pending = client.get(f"{API}/pending", headers=headers_for(n2)).json()["requests"]
    assert [r["id"] for r in pending] == [request["id"]]

    second = client.put(f"{url}/approve", headers=headers_for(n2), json={"comment": "OK N2"})
    assert second.json()["final"] is True
    assert second.json()["request"]["status"] == "approved"

    balance = db.query(LeaveBalance).filter(LeaveBalance.employee_id == worker_employee.id).one()
    assert balance.taken == 5
    assert balance.remaining == 13


def test_insufficient_balance_is_rejected(client, headers_for, paid_leave, team):
    worker, _ = team["worker"]
    response = request_leave(client, headers_for(worker), paid_leave, end="2024-07-31")
    assert response.status_code == 400
    assert response.json()["remaining"] == 18


def test_reject_requires_a_comment(client, headers_for, paid_leave, team):
    worker, _ = team["worker"]
    n1, _ = team["n1"]
    request_id = request_leave(client, headers_for(worker), paid_leave).json()["request"]["id"]
    url = f"{API}/requests/{request_id}/reject"

    assert client.put(url, headers=headers_for(n1), json={}).status_code == 400
    response = client.put(url, headers=headers_for(n1), json={"comment": "Période chargée"})
    assert response.status_code == 200
    assert response.json()["request"]["status"] == "rejected"
    assert response.json()["request"]["rejection_comment"] == "Période chargée"


def test_employee_cannot_request_for_someone_else(client, headers_for, paid_leave, team):
    worker, _ = team["worker"]
    _, colleague = team["n1"]
    response = request_leave(
        client, headers_for(worker), paid_leave, employee_id=str(colleague.id)
    )
    assert response.status_code == 403


def test_owner_can_cancel_open_request(client, headers_for, paid_leave, team):
    worker, _ = team["worker"]
    request_id = request_leave(client, headers_for(worker), paid_leave).json()["request"]["id"]
    url = f"{API}/requests/{request_id}/cancel"

    response = client.put(url, headers=headers_for(worker))
    assert response.json()["request"]["status"] == "cancelled"
    assert client.put(url, headers=headers_for(worker)).status_code == 400


def test_balances_default_then_initialize_and_adjust(client, admin_headers, paid_leave, make_employee):
    employee = make_employee()
    url = f"{API}/balances/{employee.id}?year=2024"

    balances = client.get(url, headers=admin_headers).json()["balances"]
    assert balances[0]["id"] is None
    assert balances[0]["remaining"] == 18

    initialized = client.post(
        f"{API}/balances/{employee.id}/initialize?year=2024", headers=admin_headers
    ).json()["balances"]
    balance_id = initialized[0]["id"]

    adjusted = client.put(
        f"{API}/balances/{balance_id}/adjust",
        headers=admin_headers,
        json={"adjustment": 2, "reason": "Ancienneté"},
    )
    assert adjusted.status_code == 200
    assert adjusted.json()["balance"]["remaining"] == 20


def test_open_requests_count_against_the_balance(client, headers_for, paid_leave, team):
    worker, _ = team["worker"]
    first = request_leave(client, headers_for(worker), paid_leave, start="2024-07-01", end="2024-07-10")
    assert first.status_code == 201

    second = request_leave(client, headers_for(worker), paid_leave, start="2024-08-01", end="2024-08-10")
    assert second.status_code == 400
    body = second.json()
    assert body["code"] == "INSUFFICIENT_BALANCE"
    assert (body["pending"], body["remaining"]) == (10, 8)


def test_final_approval_rechecks_the_balance(
    client, db, admin_headers, headers_for, paid_leave, team
):
    worker, worker_employee = team["worker"]
    n1, _ = team["n1"]
    n2, _ = team["n2"]
    request_id = request_leave(client, headers_for(worker), paid_leave).json()["request"]["id"]

    balance_id = client.post(
        f"{API}/balances/{worker_employee.id}/initialize?year=2024", headers=admin_headers
    ).json()["balances"][0]["id"]
    client.put(
        f"{API}/balances/{balance_id}/adjust",
        headers=admin_headers,
        json={"adjustment": -15, "reason": "Reliquat utilisé"},
    )

    url = f"{API}/requests/{request_id}/approve"
    assert client.put(url, headers=headers_for(n1), json={}).status_code == 200
    refused = client.put(url, headers=headers_for(n2), json={})
    assert refused.status_code == 400
    assert refused.json()["code"] == "INSUFFICIENT_BALANCE"

    db.expire_all()
    assert db.get(LeaveRequest, uuid.UUID(request_id)).status == "approved_n1"
    assert db.get(LeaveBalance, uuid.UUID(balance_id)).taken == 0


def test_calendar_lists_approved_leave_in_period(client, headers_for, paid_leave, team):
    worker, _ = team["worker"]
    n1, _ = team["n1"]
    approved = request_leave(client, headers_for(worker), paid_leave).json()["request"]
    client.put(f"{API}/requests/{approved['id']}/approve", headers=headers_for(n1), json={})
    request_leave(client, headers_for(worker), paid_leave, start="2024-07-15", end="2024-07-16")

    response = client.get(
        f"{API}/calendar",
        headers=headers_for(worker),
        params={"start_date": "2024-07-01", "end_date": "2024-07-31"},
    )
    events = response.json()["events"]
    assert [(e["id"], e["status"]) for e in events] == [(approved["id"], "approved_n1")]
    assert events[0]["employee_name"] == "Salma Test"
    assert events[0]["leave_type"] == "Congé payé"

    outside = client.get(
        f"{API}/calendar",
        headers=headers_for(worker),
        params={"start_date": "2024-08-01", "end_date": "2024-08-31"},
    )
    assert outside.json()["events"] == []

    missing = client.get(f"{API}/calendar", headers=headers_for(worker), params={"start_date": "2024-07-01"})
    assert missing.status_code == 400
