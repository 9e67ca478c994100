from types import SimpleNamespace
import uuid

import pytest
from sqlalchemy.orm import Session

from backoffice.models import Employee, EmployeeManager
from backoffice.services.approvals import HR_LEVEL, ApprovalChain

API = "/api/v1"


def open_request(employee, levels):
    return SimpleNamespace(
        id=uuid.uuid4(),
        employee_id=employee.id,
        status="pending",
        current_level=0,
        approval_levels=levels,
        rejection_comment=None,
    )


def test_create_employee_and_reject_duplicates(client, admin_headers):
    payload = {
        "employee_number": "EMP100",
        "first_name": "Karim",
        "last_name": "Bennani",
        "cin": " bk123 ",
    }
    response = client.post(f"{API}/hr/employees", headers=admin_headers, json=payload)
    assert response.status_code == 201
    assert response.json()["employee"]["cin"] == "BK123"
    assert response.json()["employee"]["full_name"] == "Karim Bennani"

    duplicate = client.post(f"{API}/hr/employees", headers=admin_headers, json=payload)
    assert duplicate.status_code == 400


def test_create_employee_requires_names(client, admin_headers):
    response = client.post(
        f"{API}/hr/employees", headers=admin_headers, json={"employee_number": "EMP1"}
    )
    assert response.status_code == 400


def test_search_employees(client, admin_headers, make_employee):
    make_employee("Sara", "Alami")
    make_employee("Hamza", "Chraibi")
    response = client.get(f"{API}/hr/employees?search=chra", headers=admin_headers)
    assert [e["last_name"] for e in response.json()["employees"]] == ["Chraibi"]


@pytest.mark.parametrize(
    "ranks,detail",
    [
        ([1], "A rank 0 (N1) manager is required"),
        ([0, 0], "Manager ranks must be unique"),
    ],
)
def test_manager_rank_rules(client, admin_headers, make_employee, ranks, detail):
    employee = make_employee()
    managers = [make_employee(f"Boss{i}", "Chef") for i in range(len(ranks))]
    response = client.put(
        f"{API}/hr/employees/{employee.id}/managers",
        headers=admin_headers,
        json={
            "managers": [
                {"manager_id": str(m.id), "rank": rank} for m, rank in zip(managers, ranks)
            ]
        },
    )
    assert response.status_code == 400
    assert response.json()["error"] == detail


def test_employee_cannot_manage_themselves(client, admin_headers, make_employee):
    employee = make_employee()
    response = client.put(
        f"{API}/hr/employees/{employee.id}/managers",
        headers=admin_headers,
        json={"managers": [{"manager_id": str(employee.id), "rank": 0}]},
    )
    assert response.status_code == 400


def test_replace_managers_builds_the_chain(client, admin_headers, make_employee):
    employee = make_employee()
    n1 = make_employee("Nabil", "Filali")
    n2 = make_employee("Rita", "Kettani")
    url = f"{API}/hr/employees/{employee.id}"

    response = client.put(
        f"{url}/managers",
        headers=admin_headers,
        json={
            "managers": [
                {"manager_id": str(n2.id), "rank": 1},
                {"manager_id": str(n1.id), "rank": 0},
            ]
        },
    )
    assert response.status_code == 200
    assert [(m["level"], m["manager_name"]) for m in response.json()["managers"]] == [
        ("n1", "Nabil Filali"),
        ("n2", "Rita Kettani"),
    ]

    detail = client.get(url, headers=admin_headers).json()
    assert detail["employee"]["manager_id"] == str(n1.id)

    response = client.put(f"{url}/managers", headers=admin_headers, json={"managers": []})
    assert response.status_code == 200
    chain = client.get(f"{url}/approval-chain", headers=admin_headers).json()
    assert chain["approval_levels"] == 0


def test_chain_without_managers_goes_to_hr(db, make_employee):
    employee = make_employee()
    chain = ApprovalChain(db, employee.id, "n1_n2")
    assert chain.levels == [HR_LEVEL]


def test_chain_depth_follows_workflow(db, make_employee, assign_managers):
    employee = make_employee()
    n1, n2 = make_employee("A", "One"), make_employee("B", "Two")
    assign_managers(employee, n1, n2)

    assert len(ApprovalChain(db, employee.id, "n1")) == 1
    assert [m.id for m in ApprovalChain(db, employee.id, "n1_n2").levels] == [n1.id, n2.id]
    assert ApprovalChain(db, employee.id, "hr").levels == [HR_LEVEL]


def test_two_level_approval(db, make_role, make_profile, make_employee, assign_managers):
    role = make_role("staff")
    n1_profile, n2_profile = make_profile("n1", role), make_profile("n2", role)
    employee = make_employee()
    n1 = make_employee("A", "One", profile=n1_profile)
    n2 = make_employee("B", "Two", profile=n2_profile)
    assign_managers(employee, n1, n2)

    chain = ApprovalChain(db, employee.id, "n1_n2")
    request = open_request(employee, len(chain))

    with pytest.raises(PermissionError):
        chain.approve(request, n2_profile)

    assert chain.approve(request, n1_profile, "ok") is False
    assert request.status == "approved_n1"
    assert request.current_level == 1
    assert request.n1_approver_id == n1_profile.id

    assert chain.approve(request, n2_profile) is True
    assert request.status == "approved"

    with pytest.raises(ValueError):
        chain.reject(request, n2_profile, "too late")


def test_hr_level_needs_approve_all(db, make_role, make_profile, make_employee):
    employee = make_employee()
    chain = ApprovalChain(db, employee.id, "n1")
    clerk = make_profile("clerk", make_role("clerk"))
    hr = make_profile("hr", make_role("hr", ["hr.leaves.approve_all"]))

    assert chain.can_act(clerk, 0) is False
    assert chain.can_act(hr, 0) is True

    request = open_request(employee, 1)
    chain.reject(request, hr, "Période chargée")
    assert request.status == "rejected"
    assert request.rejection_comment == "Période chargée"


def test_failed_manager_replacement_keeps_the_old_chain(
    client, db, admin_headers, make_employee, assign_managers, monkeypatch
):
    employee = make_employee()
    n1 = make_employee("Nabil", "Filali")
    replacement = make_employee("Rita", "Kettani")
    assign_managers(employee, n1)

    def broken_commit(self):
        raise RuntimeError("connection lost")

    monkeypatch.setattr(Session, "commit", broken_commit)
    response = client.put(
        f"{API}/hr/employees/{employee.id}/managers",
        headers=admin_headers,
        json={"managers": [{"manager_id": str(replacement.id), "rank": 0}]},
    )
    monkeypatch.undo()
    assert response.status_code == 500

    db.expire_all()
    links = db.query(EmployeeManager).filter(EmployeeManager.employee_id == employee.id).all()
    assert [(link.manager_id, link.is_active) for link in links] == [(n1.id, True)]
    assert db.get(Employee, employee.id).manager_id == n1.id


def test_hr_level_approval_fills_the_hr_slot(db, make_role, make_profile, make_employee):
    employee = make_employee()
    chain = ApprovalChain(db, employee.id, "n1")
    hr = make_profile("hr", make_role("hr", ["hr.leaves.approve_all"]))

    request = open_request(employee, 1)
    assert chain.approve(request, hr, "Validé RH") is True
    assert request.hr_approver_id == hr.id
    assert request.hr_comment == "Validé RH"
    assert not hasattr(request, "n1_approver_id")
