from datetime import date
from typing import Optional
import uuid

from sqlalchemy import func
from sqlalchemy.orm import Session

from backoffice.models.hr import LeaveType
from backoffice.models.leaves import LeaveBalance, LeaveRequest
from backoffice.services.approvals import OPEN_STATUSES


def count_leave_days(
    start: date, end: date, start_half_day: bool = False, end_half_day: bool = False
) -> float:
    """Calendar days between the two dates inclusive, minus half a day per half-day flag."""
    if end < start:
        raise ValueError("end_date must be on or after start_date")
    days = (end - start).days + 1
    if start_half_day:
        days -= 0.5
    if end_half_day:
        days -= 0.5
    return days


def find_balance(db: Session, employee_id: uuid.UUID, leave_type_id: uuid.UUID, year: int):
    return (
        db.query(LeaveBalance)
        .filter(
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.leave_type_id == leave_type_id,
            LeaveBalance.year == year,
        )
        .first()
    )


def get_or_create_balance(
    db: Session, employee_id: uuid.UUID, leave_type: LeaveType, year: int
) -> LeaveBalance:
    balance = find_balance(db, employee_id, leave_type.id, year)
    if balance is None:
        balance = LeaveBalance(
            employee_id=employee_id,
            leave_type_id=leave_type.id,
            year=year,
            initial=leave_type.default_days or 0,
            taken=0,
            adjusted=0,
        )
        db.add(balance)
        db.flush()
    return balance


def available_days(db: Session, employee_id: uuid.UUID, leave_type: LeaveType, year: int) -> float:
    balance = find_balance(db, employee_id, leave_type.id, year)
    if balance is None:
        return float(leave_type.default_days or 0)
    return float(balance.remaining)


def open_request_days(
    db: Session,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
    exclude_id: Optional[uuid.UUID] = None,
) -> float:
    """Days held by requests of the year that are still going through approval."""
    query = db.query(func.coalesce(func.sum(LeaveRequest.days_requested), 0)).filter(
        LeaveRequest.employee_id == employee_id,
        LeaveRequest.leave_type_id == leave_type_id,
        LeaveRequest.status.in_(OPEN_STATUSES),
        LeaveRequest.start_date >= date(year, 1, 1),
        LeaveRequest.start_date <= date(year, 12, 31),
    )
    if exclude_id is not None:
        query = query.filter(LeaveRequest.id != exclude_id)
    return float(query.scalar() or 0)
