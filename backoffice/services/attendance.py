"""Attendance arithmetic, corrections and absence detection.

Times are ``HH:MM`` strings on a single day; worked minutes never go
negative.
"""
from datetime import date, datetime, timezone
from typing import Optional
import logging
import re
import uuid

from sqlalchemy.orm import Session

from backoffice.models.attendance import (
    AttendanceRecord,
    AttendanceStatus,
    CorrectionRequest,
    CorrectionStatus,
    OPEN_CORRECTION_STATUSES,
)
from backoffice.models.hr import Employee, EmploymentStatus
from backoffice.services.hr_settings import (
    get_default_schedule,
    get_effective_schedule,
    get_public_holiday,
)

logger = logging.getLogger(__name__)

TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_time_format(value: Optional[str]) -> bool:
    if not value:
        return True
    return bool(TIME_RE.match(value))


def to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def calculate_worked_minutes(
    check_in: Optional[str], check_out: Optional[str], break_minutes: int = 0
) -> Optional[int]:
    if not check_in or not check_out:
        return None
    return max(0, to_minutes(check_out) - to_minutes(check_in) - (break_minutes or 0))


def late_minutes(check_in: str, scheduled_start: Optional[str], tolerance: int = 0) -> int:
    """Minutes after the scheduled start, or 0 within the tolerance."""
    if not scheduled_start:
        return 0
    late = to_minutes(check_in) - to_minutes(scheduled_start)
    return late if late > (tolerance or 0) else 0


def early_leave_minutes(check_out: str, scheduled_end: Optional[str], tolerance: int = 0) -> int:
    if not scheduled_end:
        return 0
    early = to_minutes(scheduled_end) - to_minutes(check_out)
    return early if early > (tolerance or 0) else 0


def get_employee_break_duration(db: Session, employee_id: uuid.UUID, day: date) -> int:
    schedule = get_effective_schedule(db, employee_id, day)
    if not schedule:
        return 0
    return schedule.break_duration_minutes or 0


def schedule_deviation(
    db: Session,
    employee_id: uuid.UUID,
    day: date,
    check_in: Optional[str],
    check_out: Optional[str],
) -> tuple:
    """(late, early leave) minutes against the employee's schedule for ``day``."""
    schedule = get_effective_schedule(db, employee_id, day)
    if not schedule:
        return 0, 0
    start, end = schedule.hours_for(day)
    late = late_minutes(check_in, start, schedule.tolerance_late_minutes) if check_in else 0
    early = (
        early_leave_minutes(check_out, end, schedule.tolerance_early_leave_minutes)
        if check_out
        else 0
    )
    return late, early


def pending_correction_request(
    db: Session, employee_id: uuid.UUID, day: date
) -> Optional[CorrectionRequest]:
    return (
        db.query(CorrectionRequest)
        .filter(
            CorrectionRequest.employee_id == employee_id,
            CorrectionRequest.request_date == day,
            CorrectionRequest.status.in_(OPEN_CORRECTION_STATUSES),
        )
        .order_by(CorrectionRequest.created_at.desc())
        .first()
    )


def cancel_pending_correction_requests(
    db: Session,
    employee_id: uuid.UUID,
    day: date,
    admin_id: uuid.UUID,
    reason: str = "Superseded by an administrator edit",
) -> int:
    requests = (
        db.query(CorrectionRequest)
        .filter(
            CorrectionRequest.employee_id == employee_id,
            CorrectionRequest.request_date == day,
            CorrectionRequest.status.in_(OPEN_CORRECTION_STATUSES),
        )
        .all()
    )
    now = datetime.now(timezone.utc)
    for request in requests:
        request.status = CorrectionStatus.cancelled.value
        request.admin_cancelled_by = admin_id
        request.admin_cancelled_at = now
        request.admin_cancellation_reason = reason
    return len(requests)


def detect_absences(db: Session, day: date) -> dict:
    """Insert an ``absent`` anomaly row for each clocking employee with no record on ``day``."""
    holiday = get_public_holiday(db, day)
    if holiday:
        return {"date": day, "skipped": True, "reason": f"Public holiday: {holiday.name}", "created": 0}

    default_schedule = get_default_schedule(db)
    if default_schedule and default_schedule.hours_for(day)[0] is None:
        return {"date": day, "skipped": True, "reason": "Non-working day", "created": 0}

    recorded = {
        employee_id
        for (employee_id,) in db.query(AttendanceRecord.employee_id)
        .filter(AttendanceRecord.attendance_date == day)
        .all()
    }
    employees = (
        db.query(Employee)
        .filter(
            Employee.employment_status == EmploymentStatus.active.value,
            Employee.requires_clocking.is_(True),
        )
        .all()
    )

    created = 0
    for employee in employees:
        if employee.id in recorded:
            continue
        db.add(
            AttendanceRecord(
                employee_id=employee.id,
                attendance_date=day,
                status=AttendanceStatus.absent.value,
                source="system",
                is_anomaly=True,
                anomaly_type="missing_record",
                notes="Absence detected automatically",
            )
        )
        created += 1
    db.commit()

    logger.info("Absence detection for %s: %d record(s) created", day, created)
    return {"date": day, "skipped": False, "reason": None, "created": created}
