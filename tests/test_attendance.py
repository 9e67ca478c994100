from datetime import date, datetime

import pytest

from backoffice.api.v1 import hr_clocking
from backoffice.models import AttendanceRecord, PublicHoliday, WorkSchedule
from backoffice.services.attendance import (
    calculate_worked_minutes,
    detect_absences,
    early_leave_minutes,
    late_minutes,
    validate_time_format,
)

API = "/api/v1"
MONDAY = date(2024, 3, 4)


def test_worked_minutes():
    assert calculate_worked_minutes("09:00", "17:00", 60) == 420
    assert calculate_worked_minutes("09:00", None, 60) is None
    assert calculate_worked_minutes("09:00", "09:30", 60) == 0


def test_late_and_early_respect_tolerance():
    assert late_minutes("09:10", "09:00", 15) == 0
    assert late_minutes("09:20", "09:00", 15) == 20
    assert late_minutes("09:20", None, 15) == 0
    assert early_leave_minutes("17:30", "18:00", 10) == 30
    assert early_leave_minutes("17:55", "18:00", 10) == 0


@pytest.mark.parametrize("value,valid", [("08:30", True), ("23:59", True), ("24:00", False), ("8:30", False)])
def test_time_format(value, valid):
    assert validate_time_format(value) is valid


def test_detect_absences_creates_anomaly_rows(db, make_employee):
    present = make_employee("Present", "One")
    absent = make_employee("Absent", "Two")
    make_employee("Exempt", "Three", requires_clocking=False)
    db.add(AttendanceRecord(employee_id=present.id, attendance_date=MONDAY, check_in_time="09:00"))
    db.commit()

    result = detect_absences(db, MONDAY)
    assert result["created"] == 1
    row = db.query(AttendanceRecord).filter(AttendanceRecord.employee_id == absent.id).one()
    assert row.status == "absent"
    assert row.is_anomaly is True


def test_detect_absences_skips_recurring_holidays(db, make_employee):
    make_employee()
    db.add(PublicHoliday(holiday_date=date(2020, 1, 1), name="Nouvel an", is_recurring=True))
    db.commit()

    result = detect_absences(db, date(2024, 1, 1))
    assert result["skipped"] is True
    assert result["created"] == 0


def test_admin_declare_then_edit(client, admin_headers, make_employee):
    employee = make_employee()
    url = f"{API}/hr/attendance/admin/edit"
    base = {"employee_id": str(employee.id), "date": MONDAY.isoformat()}

    short = client.put(url, headers=admin_headers, json={**base, "action": "declare", "notes": "x"})
    assert short.status_code == 400

    declared = client.put(
        url,
        headers=admin_headers,
        json={**base, "action": "declare", "notes": "Oubli de badge", "check_in": "09:00", "check_out": "17:00"},
    )
    assert declared.status_code == 200
    assert declared.json()["record"]["worked_minutes"] == 480

    again = client.put(url, headers=admin_headers, json={**base, "action": "declare", "notes": "Encore une fois"})
    assert again.status_code == 409

    too_short = client.put(
        url, headers=admin_headers, json={**base, "action": "edit", "correction_reason": "oups"}
    )
    assert too_short.status_code == 400

    edited = client.put(
        url,
        headers=admin_headers,
        json={
            **base,
            "action": "edit",
            "check_in": "08:30",
            "check_out": "17:00",
            "correction_reason": "Heure d'arrivée corrigée",
        },
    )
    assert edited.status_code == 200
    record = edited.json()["record"]
    assert record["original_check_in"] == "09:00"
    assert record["check_in_time"] == "08:30"
    assert record["worked_minutes"] == 510


def test_admin_edit_resets_lateness_and_anomaly(client, db, admin_headers, make_employee):
    employee = make_employee()
    db.add(
        WorkSchedule(
            name="Standard",
            monday_start="09:00",
            monday_end="18:00",
            break_duration_minutes=60,
            is_default=True,
        )
    )
    db.add(
        AttendanceRecord(
            employee_id=employee.id,
            attendance_date=MONDAY,
            check_in_time="10:00",
            check_out_time="18:00",
            status="late",
            late_minutes=60,
            is_anomaly=True,
            notes="Retard",
        )
    )
    db.commit()

    response = client.put(
        f"{API}/hr/attendance/admin/edit",
        headers=admin_headers,
        json={
            "employee_id": str(employee.id),
            "date": MONDAY.isoformat(),
            "action": "edit",
            "check_in": "09:00",
            "check_out": "18:00",
            "notes": "Badge défectueux",
            "correction_reason": "Arrivée confirmée par le responsable",
        },
    )
    assert response.status_code == 200
    record = response.json()["record"]
    assert record["status"] == "present"
    assert (record["late_minutes"], record["early_leave_minutes"]) == (0, 0)
    assert record["worked_minutes"] == 480
    assert record["notes"] == "Badge défectueux"
    assert record["is_anomaly"] is False


def test_declared_absence_has_no_worked_minutes(client, admin_headers, make_employee):
    employee = make_employee()
    response = client.put(
        f"{API}/hr/attendance/admin/edit",
        headers=admin_headers,
        json={
            "employee_id": str(employee.id),
            "date": MONDAY.isoformat(),
            "action": "declare",
            "absence_status": "absent",
            "notes": "Absence non justifiée",
            "check_in": "09:00",
            "check_out": "17:00",
        },
    )
    assert response.status_code == 200
    assert response.json()["record"]["status"] == "absent"
    assert response.json()["record"]["worked_minutes"] == 0


def test_admin_edit_rejects_reversed_times(client, admin_headers, make_employee):
    employee = make_employee()
    response = client.put(
        f"{API}/hr/attendance/admin/edit",
        headers=admin_headers,
        json={
            "employee_id": str(employee.id),
            "date": MONDAY.isoformat(),
            "action": "declare",
            "notes": "Saisie manuelle",
            "check_in": "17:00",
            "check_out": "09:00",
        },
    )
    assert response.status_code == 400


@pytest.fixture
def clocker(make_role, make_profile, make_employee):
    role = make_role("employee", ["hr.employee_portal.clock_in_out"])
    profile = make_profile("clocker", role)
    return profile, make_employee("Imane", "Saidi", profile=profile)


def clock_at(monkeypatch, hour, minute):
    monkeypatch.setattr(
        hr_clocking, "current_time", lambda: datetime(2024, 3, 4, hour, minute)
    )


def test_check_in_and_out(client, headers_for, clocker, monkeypatch):
    profile, _ = clocker
    headers = headers_for(profile)

    clock_at(monkeypatch, 9, 5)
    response = client.post(f"{API}/hr/clocking/check-in", headers=headers)
    assert response.status_code == 200
    assert response.json()["record"]["status"] == "check_in"

    assert client.post(f"{API}/hr/clocking/check-in", headers=headers).status_code == 400

    clock_at(monkeypatch, 17, 35)
    response = client.post(f"{API}/hr/clocking/check-out", headers=headers)
    assert response.status_code == 200
    assert response.json()["worked_minutes_today"] == 450
    assert response.json()["record"]["status"] == "present"

    assert client.post(f"{API}/hr/clocking/check-in", headers=headers).status_code == 400


def test_late_check_in_against_default_schedule(client, db, headers_for, clocker, monkeypatch):
    db.add(
        WorkSchedule(
            name="Standard",
            monday_start="09:00",
            monday_end="18:00",
            tolerance_late_minutes=15,
            is_default=True,
        )
    )
    db.commit()
    profile, _ = clocker

    clock_at(monkeypatch, 9, 20)
    response = client.post(f"{API}/hr/clocking/check-in", headers=headers_for(profile))
    assert response.json()["late_minutes"] == 20
    assert response.json()["record"]["status"] == "late"


def test_clocking_disabled_employee_is_forbidden(client, db, headers_for, clocker):
    profile, employee = clocker
    employee.requires_clocking = False
    db.commit()
    response = client.post(f"{API}/hr/clocking/check-in", headers=headers_for(profile))
    assert response.status_code == 403


def test_clocking_without_employee_record(client, make_role, make_profile, headers_for):
    profile = make_profile("ghost", make_role("employee", ["hr.employee_portal.clock_in_out"]))
    response = client.post(f"{API}/hr/clocking/check-in", headers=headers_for(profile))
    assert response.status_code == 404


def test_correction_request_is_applied_on_final_approval(
    client, headers_for, make_role, make_profile, make_employee, assign_managers
):
    role = make_role("staff")
    employee_profile = make_profile("worker", role)
    manager_profile = make_profile("boss", role)
    employee = make_employee("Worker", "One", profile=employee_profile)
    manager = make_employee("Boss", "Two", profile=manager_profile)
    assign_managers(employee, manager)

    created = client.post(
        f"{API}/hr/attendance/corrections",
        headers=headers_for(employee_profile),
        json={
            "request_date": MONDAY.isoformat(),
            "requested_check_in": "09:00",
            "requested_check_out": "17:00",
            "reason": "Badgeuse en panne",
        },
    )
    assert created.status_code == 201
    request_id = created.json()["request"]["id"]

    pending = client.get(f"{API}/hr/attendance/corrections/pending", headers=headers_for(manager_profile))
    assert [r["id"] for r in pending.json()["requests"]] == [request_id]

    forbidden = client.put(
        f"{API}/hr/attendance/corrections/{request_id}/approve",
        headers=headers_for(employee_profile),
        json={},
    )
    assert forbidden.status_code == 403

    approved = client.put(
        f"{API}/hr/attendance/corrections/{request_id}/approve",
        headers=headers_for(manager_profile),
        json={"comment": "OK"},
    )
    assert approved.status_code == 200
    assert approved.json()["final"] is True
    assert approved.json()["request"]["status"] == "approved"
