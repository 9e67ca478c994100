from datetime import datetime, timezone
from typing import Optional
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy import or_
from sqlalchemy.orm import Session

from backoffice.api.deps import PermissionChecker
from backoffice.core.database import get_db
from backoffice.models.auth import Profile
from backoffice.models.hr import (
    Contract,
    DisciplinaryAction,
    DisciplinaryType,
    Employee,
    EmployeeDocument,
    EmployeeManager,
    EmployeeSchedule,
    EmploymentStatus,
)
from backoffice.schemas.hr import (
    ContractCreate,
    ContractResponse,
    ContractUpdate,
    DisciplinaryCreate,
    DisciplinaryResponse,
    DocumentCreate,
    DocumentResponse,
    EmployeeCreate,
    EmployeeDetail,
    EmployeeResponse,
    EmployeeScheduleResponse,
    EmployeeUpdate,
    ManagerEntry,
    ManagersUpdate,
)
from backoffice.services.approvals import active_managers, level_name

logger = logging.getLogger(__name__)

router = APIRouter()

EMPLOYMENT_STATUSES = {s.value for s in EmploymentStatus}
DISCIPLINARY_TYPES = {t.value for t in DisciplinaryType}


def get_employee_or_404(db: Session, employee_id: uuid.UUID) -> Employee:
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee


def manager_rows(db: Session, employee_id: uuid.UUID) -> list:
    return [
        {
            "manager_id": link.manager_id,
            "rank": link.rank,
            "manager_name": link.manager.full_name if link.manager else None,
            "level": level_name(link.rank),
        }
        for link in active_managers(db, employee_id)
    ]


def check_unique(db: Session, employee_number=None, cin=None, exclude_id=None) -> None:
    filters = []
    if employee_number:
        filters.append(Employee.employee_number == employee_number)
    if cin:
        filters.append(Employee.cin == cin)
    if not filters:
        return
    query = db.query(Employee).filter(or_(*filters))
    if exclude_id:
        query = query.filter(Employee.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=400, detail="An employee with this number or CIN already exists"
        )


# --- Employees ---


@router.get("/employees")
def list_employees(
    search: Optional[str] = None,
    employment_status: Optional[str] = Query(None, alias="status"),
    department: Optional[str] = None,
    segment_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("hr.employees.view_page")),
):
    query = db.query(Employee)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Employee.first_name.ilike(pattern),
                Employee.last_name.ilike(pattern),
                Employee.employee_number.ilike(pattern),
                Employee.cin.ilike(pattern),
                Employee.email.ilike(pattern),
            )
        )
    if employment_status:
        query = query.filter(Employee.employment_status == employment_status)
    if department:
        query = query.filter(Employee.department == department)
    if segment_id:
        query = query.filter(Employee.segment_id == segment_id)

    employees = query.order_by(Employee.last_name, Employee.first_name).all()
    return {
        "success": True,
        "employees": [EmployeeResponse.model_validate(e) for e in employees],
    }


@router.get("/employees/meta/departments")
def list_departments(
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("hr.employees.view_page")),
):
    rows = (
        db.query(Employee.department)
        .filter(Employee.department.isnot(None), Employee.department != "")
        .distinct()
        .order_by(Employee.department)
        .all()
    )
    return {"success": True, "departments": [d for (d,) in rows]}


@router.get("/employees/{employee_id}")
def get_employee(
    employee_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("hr.employees.view_page")),
):
    employee = get_employee_or_404(db, employee_id)
    return {
        "success": True,
        "employee": EmployeeDetail.model_validate(employee),
        "managers": manager_rows(db, employee.id),
    }


@router.post("/employees", status_code=status.HTTP_201_CREATED)
def create_employee(
    employee_in: EmployeeCreate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("hr.employees.create")),
):
    if not employee_in.first_name or not employee_in.last_name or not employee_in.employee_number:
        raise HTTPException(
            status_code=400,
            detail="first_name, last_name and employee_number are required",
        )
    data = employee_in.model_dump(exclude_unset=True)
    if data.get("cin"):
        data["cin"] = data["cin"].strip().upper()
    if data.get("employment_status", EmploymentStatus.active.value) not in EMPLOYMENT_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid employment status")
    check_unique(db, data["employee_number"], data.get("cin"))

    data = {k: v for k, v in data.items() if v is not None}
    employee = Employee(**data)
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return {"success": True, "employee": EmployeeResponse.model_validate(employee)}


@router.put("/employees/{employee_id}")
def update_employee(
    employee_id: uuid.UUID,
    employee_in: EmployeeUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("hr.employees.update")),
):
    employee = get_employee_or_404(db, employee_id)
    data = employee_in.model_dump(exclude_unset=True)
    for field in ("first_name", "last_name", "employee_number"):
        if field in data and not data[field]:
            raise HTTPException(status_code=400, detail=f"{field} cannot be empty")
    if data.get("cin"):
        data["cin"] = data["cin"].strip().upper()
    if "employment_status" in data and data["employment_status"] not in EMPLOYMENT_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid employment status")
    check_unique(db, data.get("employee_number"), data.get("cin"), exclude_id=employee.id)

    for key, value in data.items():
        setattr(employee, key, value)
    db.commit()
    db.refresh(employee)
    return {"success": True, "employee": EmployeeResponse.model_validate(employee)}


@router.delete("/employees/{employee_id}")
def delete_employee(
    employee_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("hr.employees.delete")),
):
    employee = get_employee_or_404(db, employee_id)
    try:
        db.query(EmployeeManager).filter(
            or_(EmployeeManager.employee_id == employee.id, EmployeeManager.manager_id == employee.id)
        ).delete(synchronize_session=False)
        db.query(Employee).filter(Employee.manager_id == employee.id).update(
            {Employee.manager_id: None}, synchronize_session=False
        )
        db.delete(employee)
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to delete employee: {str(e)}")
    return {"success": True, "message": "Employee deleted"}


# --- Contracts ---


@router.get("/employees/{employee_id}/contracts")
def list_contracts(
    employee_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("hr.employees.view_page")),
):
    employee = get_employee_or_404(db, employee_id)
    contracts = sorted(employee.contracts, key=lambda c: c.start_date, reverse=True)
    return {"success": True, "contracts": [ContractResponse.model_validate(c) for c in contracts]}


@router.post("/employees/{employee_id}/contracts", status_code=status.HTTP_201_CREATED)
def create_contract(
    employee_id: uuid.UUID,
    contract_in: ContractCreate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("hr.contracts.manage")),
):
    employee = get_employee_or_404(db, employee_id)
    if not contract_in.contract_type or not contract_in.start_date:
        raise HTTPException(status_code=400, detail="contract_type and start_date are required")
    if contract_in.end_date and contract_in.end_date < contract_in.start_date:
        raise HTTPException(status_code=400, detail="end_date must be after start_date")

    data = {k: v for k, v in contract_in.model_dump().items() if v is not None}
    contract = Contract(employee_id=employee.id, **data)
    db.add(contract)
    db.commit()
    db.refresh(contract)
    return {"success": True, "contract": ContractResponse.model_validate(contract)}


@router.put("/contracts/{contract_id}")
def update_contract(
    contract_id: uuid.UUID,
    contract_in: ContractUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("hr.contracts.manage")),
):
    contract = db.query(Contract).filter(Contract.id == contract_id).first()
    if not contract:
        raise HTTPException(status_code=404, detail="Contract not found")
    for key, value in contract_in.model_dump(exclude_unset=True).items():
        setattr(contract, key, value)
    if contract.end_date and contract.end_date < contract.start_date:
        db.rollback()
        raise HTTPException(status_code=400, detail="end_date must be after start_date")
    db.commit()
    db.refresh(contract)
    return {"success": True, "contract": ContractResponse.model_validate(contract)}


# --- Documents ---


@router.get("/employees/{employee_id}/documents")
def list_documents(
    employee_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("hr.employees.view_page")),
):
    employee = get_employee_or_404(db, employee_id)
    return {
        "success": True,
        "documents": [DocumentResponse.model_validate(d) for d in employee.documents],
    }


@router.post("/employees/{employee_id}/documents", status_code=status.HTTP_201_CREATED)
def create_document(
    employee_id: uuid.UUID,
    document_in: DocumentCreate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("hr.documents.manage")),
):
    employee = get_employee_or_404(db, employee_id)
    if not document_in.document_type or not document_in.title:
        raise HTTPException(status_code=400, detail="document_type and title are required")
    document = EmployeeDocument(employee_id=employee.id, **document_in.model_dump())
    db.add(document)
    db.commit()
    db.refresh(document)
    return {"success": True, "document": DocumentResponse.model_validate(document)}


@router.put("/documents/{document_id}/verify")
def verify_document(
    document_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(PermissionChecker("hr.documents.manage")),
):
    document = db.query(EmployeeDocument).filter(EmployeeDocument.id == document_id).first()
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    document.is_verified = True
    document.verified_by = current_user.id
    document.verified_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(document)
    return {"success": True, "document": DocumentResponse.model_validate(document)}


# --- Discipline ---


@router.get("/employees/{employee_id}/disciplinary")
def list_disciplinary(
    employee_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("hr.employees.view_page")),
):
    employee = get_employee_or_404(db, employee_id)
    actions = sorted(employee.disciplinary_actions, key=lambda a: a.action_date, reverse=True)
    return {
        "success": True,
        "actions": [DisciplinaryResponse.model_validate(a) for a in actions],
    }


@router.post("/employees/{employee_id}/disciplinary", status_code=status.HTTP_201_CREATED)
def create_disciplinary(
    employee_id: uuid.UUID,
    action_in: DisciplinaryCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(PermissionChecker("hr.discipline.manage")),
):
    employee = get_employee_or_404(db, employee_id)
    if not action_in.action_type or not action_in.action_date or not action_in.reason:
        raise HTTPException(
            status_code=400, detail="action_type, action_date and reason are required"
        )
    if action_in.action_type not in DISCIPLINARY_TYPES:
        raise HTTPException(status_code=400, detail="Invalid disciplinary action type")

    action = DisciplinaryAction(
        employee_id=employee.id, issued_by=current_user.id, **action_in.model_dump()
    )
    db.add(action)
    db.commit()
    db.refresh(action)
    return {"success": True, "action": DisciplinaryResponse.model_validate(action)}


# --- Managers ---


@router.get("/employees/{employee_id}/managers")
def get_managers(
    employee_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("hr.employees.view_page")),
):
    get_employee_or_404(db, employee_id)
    return {"success": True, "managers": manager_rows(db, employee_id)}


@router.put("/employees/{employee_id}/managers")
def replace_managers(
    employee_id: uuid.UUID,
    payload: ManagersUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("hr.employees.update")),
):
    if not isinstance(payload.managers, list):
        raise HTTPException(status_code=400, detail="managers must be a list")
    try:
        entries = [ManagerEntry.model_validate(m) for m in payload.managers]
    except ValidationError:
        raise HTTPException(
            status_code=400, detail="Each manager needs a manager_id and a rank >= 0"
        )

    ranks = [e.rank for e in entries]
    if entries and 0 not in ranks:
        raise HTTPException(status_code=400, detail="A rank 0 (N1) manager is required")
    if len(set(ranks)) != len(ranks):
        raise HTTPException(status_code=400, detail="Manager ranks must be unique")
    if any(e.manager_id == employee_id for e in entries):
        raise HTTPException(status_code=400, detail="An employee cannot be their own manager")
    if len({e.manager_id for e in entries}) != len(entries):
        raise HTTPException(status_code=400, detail="A manager can only appear once")

    employee = get_employee_or_404(db, employee_id)
    for entry in entries:
        if not db.query(Employee).filter(Employee.id == entry.manager_id).first():
            raise HTTPException(status_code=404, detail=f"Manager {entry.manager_id} not found")

    try:
        db.query(EmployeeManager).filter(EmployeeManager.employee_id == employee.id).update(
            {EmployeeManager.is_active: False}, synchronize_session=False
        )
        for entry in entries:
            link = (
                db.query(EmployeeManager)
                .filter(
                    EmployeeManager.employee_id == employee.id,
                    EmployeeManager.manager_id == entry.manager_id,
                )
                .first()
            )
            if link:
                link.rank = entry.rank
                link.is_active = True
            else:
                db.add(
                    EmployeeManager(
                        employee_id=employee.id,
                        manager_id=entry.manager_id,
                        rank=entry.rank,
                        is_active=True,
                    )
                )
        primary = next((e.manager_id for e in entries if e.rank == 0), None)
        employee.manager_id = primary
        db.commit()
    except Exception as e:
        db.rollback()
        logger.exception("Manager replacement failed for employee %s", employee_id)
        raise HTTPException(status_code=500, detail=f"Failed to update managers: {str(e)}")

    db.expire_all()
    logger.info("Managers of employee %s replaced (%d link(s))", employee_id, len(entries))
    return {"success": True, "managers": manager_rows(db, employee_id)}


@router.get("/employees/{employee_id}/approval-chain")
def get_approval_chain(
    employee_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("hr.employees.view_page")),
):
    get_employee_or_404(db, employee_id)
    chain = manager_rows(db, employee_id)
    return {"success": True, "chain": chain, "approval_levels": len(chain)}


@router.get("/employees/{employee_id}/schedules")
def list_employee_schedules(
    employee_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("hr.employees.view_page", "hr.settings.view_page")),
):
    get_employee_or_404(db, employee_id)
    assignments = (
        db.query(EmployeeSchedule)
        .filter(EmployeeSchedule.employee_id == employee_id)
        .order_by(EmployeeSchedule.start_date.desc())
        .all()
    )
    return {
        "success": True,
        "schedules": [EmployeeScheduleResponse.model_validate(a) for a in assignments],
    }
