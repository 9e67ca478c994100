from datetime import date

import pytest

from backoffice.models import AttendanceRecord, Contract
from backoffice.services.payroll import compute_payslip

API = "/api/v1/hr/payroll"


def test_compute_payslip_with_absences():
    amounts = compute_payslip(5200, 2)
    assert amounts["absence_deduction"] == pytest.approx(400)
    assert amounts["gross_salary"] == pytest.approx(4800)
    assert amounts["cnss_deduction"] == pytest.approx(215.04)
    assert amounts["amo_deduction"] == pytest.approx(108.48)
    assert amounts["net_salary"] == pytest.approx(4476.48)
    assert amounts["worked_days"] == 24


def test_cnss_is_capped_at_the_ceiling():
    amounts = compute_payslip(10000)
    assert amounts["cnss_deduction"] == pytest.approx(6000 * 0.0448)
    assert amounts["amo_deduction"] == pytest.approx(226)


def test_absences_never_exceed_working_days():
    amounts = compute_payslip(2600, absent_days=40)
    assert amounts["absent_days"] == 26
    assert amounts["net_salary"] == 0


@pytest.fixture
def salaried(db, make_employee):
    employee = make_employee("Younes", "Amrani")
    db.add(Contract(employee_id=employee.id, contract_type="cdi", start_date=date(2024, 1, 1), base_salary=5200))
    for day in (4, 5):
        db.add(AttendanceRecord(employee_id=employee.id, attendance_date=date(2024, 3, day), status="absent"))
    db.commit()
    return employee


def test_period_lifecycle(client, admin_headers, salaried):
    created = client.post(f"{API}/periods", headers=admin_headers, json={"year": 2024, "month": 3})
    assert created.status_code == 201
    period = created.json()["period"]
    assert period["name"] == "03/2024"

    duplicate = client.post(f"{API}/periods", headers=admin_headers, json={"year": 2024, "month": 3})
    assert duplicate.status_code == 409

    url = f"{API}/periods/{period['id']}"
    early_close = client.put(f"{url}/close", headers=admin_headers)
    assert early_close.status_code == 400

    calculated = client.post(f"{url}/calculate", headers=admin_headers)
    assert calculated.status_code == 200
    assert calculated.json()["payslip_count"] == 1
    assert calculated.json()["total_net"] == pytest.approx(4476.48)

    payslips = client.get(f"{url}/payslips", headers=admin_headers).json()["payslips"]
    assert payslips[0]["employee_name"] == "Younes Amrani"
    assert payslips[0]["absent_days"] == 2

    # Recalculating replaces the payslips
    client.post(f"{url}/calculate", headers=admin_headers)
    assert len(client.get(f"{url}/payslips", headers=admin_headers).json()["payslips"]) == 1

    closed = client.put(f"{url}/close", headers=admin_headers)
    assert closed.json()["period"]["status"] == "closed"
    assert client.post(f"{url}/calculate", headers=admin_headers).status_code == 400


def test_month_is_validated(client, admin_headers):
    response = client.post(f"{API}/periods", headers=admin_headers, json={"year": 2024, "month": 13})
    assert response.status_code == 400
