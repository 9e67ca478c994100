from datetime import date, datetime
from typing import Optional
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import extract
from sqlalchemy.orm import Session

from backoffice.api.deps import PermissionChecker, get_current_user
from backoffice.core.database import get_db
from backoffice.models.auth import Profile
from backoffice.models.hr import Employee, LeaveType
from backoffice.models.leaves import LeaveBalance, LeaveRequest, LeaveStatus
from backoffice.schemas.hr import LeaveTypeResponse
from backoffice.schemas.leaves import (
    BalanceAdjust,
    LeaveBalanceResponse,
    LeaveDecision,
    LeaveRequestCreate,
    LeaveRequestResponse,
)
from backoffice.services import approvals
from backoffice.services.leaves import (
    available_days,
    count_leave_days,
    find_balance,
    get_or_create_balance,
    open_request_days,
)
from backoffice.services.permissions import has_permission

logger = logging.getLogger(__name__)

router = APIRouter()

CALENDAR_STATUSES = (
    LeaveStatus.approved.value,
    LeaveStatus.approved_n1.value,
    LeaveStatus.approved_n2.value,
)


def get_request_or_404(db: Session, request_id: uuid.UUID) -> LeaveRequest:
    request = db.query(LeaveRequest).filter(LeaveRequest.id == request_id).first()
    if not request:
        raise HTTPException(status_code=404, detail="Leave request not found")
    return request


def book_days(db: Session, request: LeaveRequest) -> None:
    """Count an approved request against the balance of its start year."""
    leave_type = request.leave_type
    if not leave_type.deducts_from_balance:
        return
    balance = get_or_create_balance(db, request.employee_id, leave_type, request.start_date.year)
    if request.days_requested > balance.remaining:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "Insufficient leave balance",
                "code": "INSUFFICIENT_BALANCE",
                "requested": request.days_requested,
                "remaining": balance.remaining,
            },
        )
    balance.taken = (balance.taken or 0) + request.days_requested


def workflow_of(request: LeaveRequest) -> str:
    return request.leave_type.approval_workflow


@router.get("/types")
def list_active_types(
    db: Session = Depends(get_db),
    _: Profile = Depends(get_current_user),
):
    types = (
        db.query(LeaveType)
        .filter(LeaveType.is_active.is_(True))
        .order_by(LeaveType.sort_order, LeaveType.name)
        .all()
    )
    return {"success": True, "leave_types": [LeaveTypeResponse.model_validate(t) for t in types]}


@router.get("/requests")
def list_requests(
    employee_id: Optional[uuid.UUID] = None,
    leave_type_id: Optional[uuid.UUID] = None,
    request_status: Optional[str] = Query(None, alias="status"),
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("hr.leaves.view_page")),
):
    query = db.query(LeaveRequest)
    if employee_id:
        query = query.filter(LeaveRequest.employee_id == employee_id)
    if leave_type_id:
        query = query.filter(LeaveRequest.leave_type_id == leave_type_id)
    if request_status:
        query = query.filter(LeaveRequest.status == request_status)
    if year:
        query = query.filter(extract("year", LeaveRequest.start_date) == year)
    requests = query.order_by(LeaveRequest.created_at.desc()).all()
    return {"success": True, "requests": [LeaveRequestResponse.model_validate(r) for r in requests]}


@router.post("/requests", status_code=status.HTTP_201_CREATED)
def create_request(
    payload: LeaveRequestCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(PermissionChecker("hr.leaves.create")),
):
    if not payload.leave_type_id or not payload.start_date or not payload.end_date:
        raise HTTPException(
            status_code=400, detail="leave_type_id, start_date and end_date are required"
        )

    own = db.query(Employee).filter(Employee.profile_id == current_user.id).first()
    employee_id = payload.employee_id or (own.id if own else None)
    if not employee_id:
        raise HTTPException(status_code=404, detail="No employee record for this user")
    if (own is None or employee_id != own.id) and not has_permission(
        db, current_user, approvals.APPROVE_ALL
    ):
        raise HTTPException(
            status_code=403, detail="You can only request leave for yourself"
        )
    if not db.query(Employee).filter(Employee.id == employee_id).first():
        raise HTTPException(status_code=404, detail="Employee not found")

    leave_type = (
        db.query(LeaveType)
        .filter(LeaveType.id == payload.leave_type_id, LeaveType.is_active.is_(True))
        .first()
    )
    if not leave_type:
        raise HTTPException(status_code=404, detail="Leave type not found or inactive")

    try:
        days = count_leave_days(
            payload.start_date, payload.end_date, payload.start_half_day, payload.end_half_day
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if days <= 0:
        raise HTTPException(status_code=400, detail="The request must cover at least half a day")
    if leave_type.max_days_per_request and days > leave_type.max_days_per_request:
        raise HTTPException(
            status_code=400,
            detail=f"{leave_type.name} is limited to {leave_type.max_days_per_request:g} day(s) per request",
        )
    if leave_type.deducts_from_balance:
        year = payload.start_date.year
        held = open_request_days(db, employee_id, leave_type.id, year)
        remaining = available_days(db, employee_id, leave_type, year) - held
        if days > remaining:
            raise HTTPException(
                status_code=400,
                detail={
                    "error": "Insufficient leave balance",
                    "code": "INSUFFICIENT_BALANCE",
                    "pending": held,
                    "requested": days,
                    "remaining": remaining,
                },
            )

    chain = approvals.ApprovalChain(db, employee_id, leave_type.approval_workflow)
    request = LeaveRequest(
        employee_id=employee_id,
        leave_type_id=leave_type.id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        start_half_day=payload.start_half_day,
        end_half_day=payload.end_half_day,
        days_requested=days,
        reason=payload.reason,
        contact_during_leave=payload.contact_during_leave,
        handover_notes=payload.handover_notes,
        current_level=0,
        approval_levels=len(chain),
        created_by=current_user.id,
    )
    db.add(request)
    db.flush()
    if not leave_type.requires_approval:
        request.status = LeaveStatus.approved.value
        book_days(db, request)
    db.commit()
    db.refresh(request)
    return {"success": True, "request": LeaveRequestResponse.model_validate(request)}


@router.get("/calendar")
def leave_calendar(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    _: Profile = Depends(get_current_user),
):
    """Approved or partly approved leave overlapping the period."""
    if not start_date or not end_date:
        raise HTTPException(status_code=400, detail="start_date and end_date are required")
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must be on or after start_date")
    requests = (
        db.query(LeaveRequest)
        .filter(
            LeaveRequest.start_date <= end_date,
            LeaveRequest.end_date >= start_date,
            LeaveRequest.status.in_(CALENDAR_STATUSES),
        )
        .order_by(LeaveRequest.start_date)
        .all()
    )
    return {
        "success": True,
        "events": [
            {
                "id": r.id,
                "employee_id": r.employee_id,
                "employee_name": r.employee.full_name,
                "start_date": r.start_date,
                "end_date": r.end_date,
                "status": r.status,
                "leave_type": r.leave_type.name,
                "color": r.leave_type.color,
            }
            for r in requests
        ],
    }


@router.get("/pending")
def pending_for_me(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    open_requests = (
        db.query(LeaveRequest)
        .filter(LeaveRequest.status.in_(approvals.OPEN_STATUSES))
        .order_by(LeaveRequest.start_date)
        .all()
    )
    mine = approvals.awaiting(db, current_user, open_requests, workflow_of)
    return {"success": True, "requests": [LeaveRequestResponse.model_validate(r) for r in mine]}


@router.put("/requests/{request_id}/approve")
def approve_request(
    request_id: uuid.UUID,
    payload: LeaveDecision,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    request = get_request_or_404(db, request_id)
    chain = approvals.ApprovalChain(db, request.employee_id, workflow_of(request))
    try:
        final = chain.approve(request, current_user, payload.comment)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if final:
        book_days(db, request)
    db.commit()
    db.refresh(request)
    return {
        "success": True,
        "request": LeaveRequestResponse.model_validate(request),
        "final": final,
    }


@router.put("/requests/{request_id}/reject")
def reject_request(
    request_id: uuid.UUID,
    payload: LeaveDecision,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    if not payload.comment or not payload.comment.strip():
        raise HTTPException(status_code=400, detail="A comment is required to reject")
    request = get_request_or_404(db, request_id)
    chain = approvals.ApprovalChain(db, request.employee_id, workflow_of(request))
    try:
        chain.reject(request, current_user, payload.comment.strip())
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    db.refresh(request)
    return {"success": True, "request": LeaveRequestResponse.model_validate(request)}


@router.put("/requests/{request_id}/cancel")
def cancel_request(
    request_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    request = get_request_or_404(db, request_id)
    if request.status not in approvals.OPEN_STATUSES:
        raise HTTPException(status_code=400, detail=f"Request is already {request.status}")
    owner = request.employee.profile_id == current_user.id
    if not owner and not has_permission(db, current_user, approvals.APPROVE_ALL):
        raise HTTPException(status_code=403, detail="You cannot cancel this request")
    request.status = LeaveStatus.cancelled.value
    db.commit()
    db.refresh(request)
    return {"success": True, "request": LeaveRequestResponse.model_validate(request)}


# --- Balances ---


@router.get("/balances/{employee_id}")
def get_balances(
    employee_id: uuid.UUID,
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    if employee.profile_id != current_user.id and not has_permission(
        db, current_user, "hr.leaves.view_page"
    ):
        raise HTTPException(status_code=403, detail="Insufficient permissions")

    year = year or datetime.now().year
    types = (
        db.query(LeaveType)
        .filter(LeaveType.is_active.is_(True), LeaveType.deducts_from_balance.is_(True))
        .order_by(LeaveType.sort_order, LeaveType.name)
        .all()
    )
    balances = []
    for leave_type in types:
        balance = find_balance(db, employee_id, leave_type.id, year)
        if balance:
            row = LeaveBalanceResponse.model_validate(balance).model_dump()
        else:
            initial = float(leave_type.default_days or 0)
            row = LeaveBalanceResponse(
                employee_id=employee_id,
                leave_type_id=leave_type.id,
                year=year,
                initial=initial,
                taken=0,
                adjusted=0,
                remaining=initial,
            ).model_dump()
        row["leave_type_name"] = leave_type.name
        row["leave_type_code"] = leave_type.code
        balances.append(row)
    return {"success": True, "year": year, "balances": balances}


@router.put("/balances/{balance_id}/adjust")
def adjust_balance(
    balance_id: uuid.UUID,
    payload: BalanceAdjust,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(PermissionChecker("hr.leaves.manage_balances")),
):
    if payload.adjustment is None or not payload.reason or not payload.reason.strip():
        raise HTTPException(status_code=400, detail="adjustment and reason are required")
    balance = db.query(LeaveBalance).filter(LeaveBalance.id == balance_id).first()
    if not balance:
        raise HTTPException(status_code=404, detail="Balance not found")
    balance.adjusted = (balance.adjusted or 0) + payload.adjustment
    balance.adjustment_reason = payload.reason.strip()
    db.commit()
    db.refresh(balance)
    logger.info(
        "Balance %s adjusted by %s (%s) by %s",
        balance_id,
        payload.adjustment,
        balance.adjustment_reason,
        current_user.username,
    )
    return {"success": True, "balance": LeaveBalanceResponse.model_validate(balance)}


@router.post("/balances/{employee_id}/initialize")
def initialize_balances(
    employee_id: uuid.UUID,
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("hr.leaves.manage_balances")),
):
    """Create the year's missing balances from each type's default days."""
    if not db.query(Employee).filter(Employee.id == employee_id).first():
        raise HTTPException(status_code=404, detail="Employee not found")
    year = year or datetime.now().year
    types = (
        db.query(LeaveType)
        .filter(LeaveType.is_active.is_(True), LeaveType.deducts_from_balance.is_(True))
        .all()
    )
    balances = [get_or_create_balance(db, employee_id, t, year) for t in types]
    db.commit()
    return {
        "success": True,
        "year": year,
        "balances": [LeaveBalanceResponse.model_validate(b) for b in balances],
    }
