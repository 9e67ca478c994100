"""Self-service clocking for the logged-in employee."""
from datetime import date, datetime, timezone
from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from backoffice.api.deps import PermissionChecker, get_current_employee
from backoffice.core.database import get_db
from backoffice.models.attendance import AttendanceRecord, AttendanceStatus
from backoffice.models.auth import Profile
from backoffice.models.hr import Employee
from backoffice.schemas.attendance import AttendanceResponse
from backoffice.services.attendance import (
    calculate_worked_minutes,
    early_leave_minutes,
    late_minutes,
)
from backoffice.services.hr_settings import get_break_rules, get_effective_schedule

logger = logging.getLogger(__name__)

router = APIRouter()

clock_permission = PermissionChecker("hr.employee_portal.clock_in_out")


def current_time() -> datetime:
    return datetime.now()


def clocking_employee(
    employee: Employee = Depends(get_current_employee),
    _: Profile = Depends(clock_permission),
) -> Employee:
    if not employee.requires_clocking:
        raise HTTPException(status_code=403, detail="Clocking is not enabled for this employee")
    return employee


def today_record(db: Session, employee: Employee, today: date) -> Optional[AttendanceRecord]:
    return (
        db.query(AttendanceRecord)
        .filter(
            AttendanceRecord.employee_id == employee.id,
            AttendanceRecord.attendance_date == today,
        )
        .first()
    )


@router.post("/check-in")
def check_in(
    db: Session = Depends(get_db),
    employee: Employee = Depends(clocking_employee),
):
    now = current_time()
    today = now.date()
    record = today_record(db, employee, today)
    if record and record.check_in_time and not record.check_out_time:
        raise HTTPException(status_code=400, detail="You are already checked in")
    if record and record.check_out_time:
        raise HTTPException(status_code=400, detail="Your working day is already completed")

    clock = now.strftime("%H:%M")
    schedule = get_effective_schedule(db, employee.id, today)
    late = 0
    if schedule:
        start, _ = schedule.hours_for(today)
        late = late_minutes(clock, start, schedule.tolerance_late_minutes)

    if not record:
        record = AttendanceRecord(employee_id=employee.id, attendance_date=today)
        db.add(record)
    elif record.is_anomaly and not record.anomaly_resolved:
        record.anomaly_resolved = True
        record.anomaly_resolved_at = datetime.now(timezone.utc)
        record.anomaly_resolution_note = "Employee checked in"
    record.check_in_time = clock
    record.late_minutes = late
    record.status = AttendanceStatus.late.value if late else AttendanceStatus.check_in.value
    record.source = "self_service"
    db.commit()
    db.refresh(record)

    logger.info("Employee %s checked in at %s", employee.employee_number, clock)
    return {
        "success": True,
        "record": AttendanceResponse.model_validate(record),
        "late_minutes": late,
    }


@router.post("/check-out")
def check_out(
    db: Session = Depends(get_db),
    employee: Employee = Depends(clocking_employee),
):
    now = current_time()
    today = now.date()
    record = today_record(db, employee, today)
    if not record or not record.check_in_time:
        raise HTTPException(status_code=400, detail="You have not checked in today")
    if record.check_out_time:
        raise HTTPException(status_code=400, detail="You have already checked out")

    clock = now.strftime("%H:%M")
    rules = get_break_rules(db)
    break_minutes = rules["default_break_minutes"] if rules["deduct_break_automatically"] else 0
    schedule = get_effective_schedule(db, employee.id, today)
    early = 0
    if schedule:
        _, end = schedule.hours_for(today)
        early = early_leave_minutes(clock, end, schedule.tolerance_early_leave_minutes)

    record.check_out_time = clock
    record.break_minutes = break_minutes
    record.worked_minutes = calculate_worked_minutes(record.check_in_time, clock, break_minutes)
    record.early_leave_minutes = early
    if record.status != AttendanceStatus.late.value:
        record.status = AttendanceStatus.present.value
    db.commit()
    db.refresh(record)

    return {
        "success": True,
        "record": AttendanceResponse.model_validate(record),
        "worked_minutes_today": record.worked_minutes,
    }


@router.get("/my-today")
def my_today(
    db: Session = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
):
    today = current_time().date()
    record = today_record(db, employee, today)
    schedule = get_effective_schedule(db, employee.id, today)
    start, end = schedule.hours_for(today) if schedule else (None, None)
    return {
        "success": True,
        "date": today,
        "requires_clocking": employee.requires_clocking,
        "record": AttendanceResponse.model_validate(record) if record else None,
        "checked_in": bool(record and record.check_in_time),
        "checked_out": bool(record and record.check_out_time),
        "schedule": {"start": start, "end": end},
    }


@router.get("/my-records")
def my_records(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
):
    query = db.query(AttendanceRecord).filter(AttendanceRecord.employee_id == employee.id)
    if start_date:
        query = query.filter(AttendanceRecord.attendance_date >= start_date)
    if end_date:
        query = query.filter(AttendanceRecord.attendance_date <= end_date)
    records = query.order_by(AttendanceRecord.attendance_date.desc()).limit(62).all()
    return {
        "success": True,
        "records": [AttendanceResponse.model_validate(r) for r in records],
        "total_worked_minutes": sum(r.worked_minutes or 0 for r in records),
    }
