from calendar import monthrange
from datetime import date, datetime, timezone
from typing import Optional
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backoffice.api.deps import PermissionChecker, get_current_employee, get_current_user
from backoffice.core.database import get_db
from backoffice.models.attendance import (
    AttendanceRecord,
    AttendanceStatus,
    CorrectionRequest,
    OPEN_CORRECTION_STATUSES,
)
from backoffice.models.auth import Profile
from backoffice.models.hr import Employee, EmploymentStatus, WorkSchedule
from backoffice.schemas.attendance import (
    AdminEdit,
    AnomalyResolve,
    AttendanceCorrect,
    AttendanceRecordCreate,
    AttendanceResponse,
    CorrectionCreate,
    CorrectionResponse,
    Decision,
    DetectAbsences,
)
from backoffice.schemas.hr import EmployeeResponse, HolidayResponse, ScheduleResponse
from backoffice.services import approvals
from backoffice.services.attendance import (
    calculate_worked_minutes,
    cancel_pending_correction_requests,
    detect_absences,
    get_employee_break_duration,
    pending_correction_request,
    schedule_deviation,
    to_minutes,
    validate_time_format,
)
from backoffice.services.hr_settings import get_hr_setting, get_public_holiday

logger = logging.getLogger(__name__)

router = APIRouter()

ATTENDANCE_STATUSES = {s.value for s in AttendanceStatus}
PRESENT_STATUSES = (
    AttendanceStatus.present.value,
    AttendanceStatus.late.value,
    AttendanceStatus.half_day.value,
)
WORKED_STATUSES = (AttendanceStatus.present.value, AttendanceStatus.late.value)

view_attendance = PermissionChecker("hr.attendance.view_page")
create_attendance = PermissionChecker("hr.attendance.create")
edit_attendance = PermissionChecker("hr.attendance.edit")


def check_time_pair(check_in: Optional[str], check_out: Optional[str]) -> None:
    if not validate_time_format(check_in) or not validate_time_format(check_out):
        raise HTTPException(status_code=400, detail="Times must use the HH:MM format")
    if check_in and check_out and to_minutes(check_out) <= to_minutes(check_in):
        raise HTTPException(status_code=400, detail="Check-out must be after check-in")


def get_record_or_404(db: Session, record_id: uuid.UUID) -> AttendanceRecord:
    record = db.query(AttendanceRecord).filter(AttendanceRecord.id == record_id).first()
    if not record:
        raise HTTPException(status_code=404, detail="Attendance record not found")
    return record


def day_record(db: Session, employee_id: uuid.UUID, day: date) -> Optional[AttendanceRecord]:
    return (
        db.query(AttendanceRecord)
        .filter(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.attendance_date == day,
        )
        .first()
    )


def correction_workflow(db: Session) -> str:
    return get_hr_setting(db, "correction_workflow", "n1")


# --- Records ---


@router.get("/")
def list_attendance(
    employee_id: Optional[uuid.UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    record_status: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    _: Profile = Depends(view_attendance),
):
    query = db.query(AttendanceRecord)
    if employee_id:
        query = query.filter(AttendanceRecord.employee_id == employee_id)
    if start_date:
        query = query.filter(AttendanceRecord.attendance_date >= start_date)
    if end_date:
        query = query.filter(AttendanceRecord.attendance_date <= end_date)
    if record_status:
        query = query.filter(AttendanceRecord.status == record_status)
    records = query.order_by(AttendanceRecord.attendance_date.desc()).all()
    return {"success": True, "records": [AttendanceResponse.model_validate(r) for r in records]}


@router.post("/record", status_code=status.HTTP_201_CREATED)
def record_attendance(
    record_in: AttendanceRecordCreate,
    db: Session = Depends(get_db),
    _: Profile = Depends(create_attendance),
):
    check_time_pair(record_in.check_in_time, record_in.check_out_time)
    if record_in.status and record_in.status not in ATTENDANCE_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid attendance status")
    if not db.query(Employee).filter(Employee.id == record_in.employee_id).first():
        raise HTTPException(status_code=404, detail="Employee not found")

    break_minutes = record_in.break_minutes
    if break_minutes is None:
        break_minutes = get_employee_break_duration(
            db, record_in.employee_id, record_in.attendance_date
        )

    record = day_record(db, record_in.employee_id, record_in.attendance_date)
    if not record:
        record = AttendanceRecord(
            employee_id=record_in.employee_id,
            attendance_date=record_in.attendance_date,
            source="manual",
        )
        db.add(record)
    record.check_in_time = record_in.check_in_time
    record.check_out_time = record_in.check_out_time
    record.break_minutes = break_minutes
    record.worked_minutes = calculate_worked_minutes(
        record_in.check_in_time, record_in.check_out_time, break_minutes
    )
    record.status = record_in.status or AttendanceStatus.present.value
    record.notes = record_in.notes
    record.is_manual_entry = True

    db.commit()
    db.refresh(record)
    return {"success": True, "record": AttendanceResponse.model_validate(record)}


@router.get("/by-date")
def attendance_by_date(
    employee_id: Optional[uuid.UUID] = None,
    day: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    _: Profile = Depends(view_attendance),
):
    if not employee_id or not day:
        raise HTTPException(status_code=400, detail="employee_id and date are required")
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")

    records = (
        db.query(AttendanceRecord)
        .filter(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.attendance_date == day,
        )
        .all()
    )
    pending = pending_correction_request(db, employee_id, day)
    holiday = get_public_holiday(db, day)
    return {
        "success": True,
        "employee": EmployeeResponse.model_validate(employee),
        "records": [AttendanceResponse.model_validate(r) for r in records],
        "has_records": bool(records),
        "pending_correction_request": CorrectionResponse.model_validate(pending) if pending else None,
        "public_holiday": HolidayResponse.model_validate(holiday) if holiday else None,
    }


@router.put("/admin/edit")
def admin_edit(
    payload: AdminEdit,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(edit_attendance),
):
    if payload.action not in ("edit", "declare"):
        raise HTTPException(status_code=400, detail='action must be "edit" or "declare"')
    if not payload.employee_id or not payload.day:
        raise HTTPException(status_code=400, detail="employee_id and date are required")
    check_time_pair(payload.check_in, payload.check_out)
    if not db.query(Employee).filter(Employee.id == payload.employee_id).first():
        raise HTTPException(status_code=404, detail="Employee not found")

    now = datetime.now(timezone.utc)
    record = day_record(db, payload.employee_id, payload.day)

    if payload.action == "edit":
        if not payload.correction_reason or len(payload.correction_reason.strip()) < 10:
            raise HTTPException(
                status_code=400,
                detail="correction_reason must be at least 10 characters",
            )
        if not record:
            raise HTTPException(status_code=404, detail="No attendance record on this date")
        if payload.status and payload.status not in ATTENDANCE_STATUSES:
            raise HTTPException(status_code=400, detail="Invalid attendance status")

        break_minutes = get_employee_break_duration(db, payload.employee_id, payload.day)
        record.original_check_in = record.original_check_in or record.check_in_time
        record.original_check_out = record.original_check_out or record.check_out_time
        record.check_in_time = payload.check_in
        record.check_out_time = payload.check_out
        record.break_minutes = break_minutes
        record.worked_minutes = calculate_worked_minutes(
            payload.check_in, payload.check_out, break_minutes
        )
        record.late_minutes, record.early_leave_minutes = schedule_deviation(
            db, payload.employee_id, payload.day, payload.check_in, payload.check_out
        )
        record.status = payload.status or AttendanceStatus.present.value
        record.notes = payload.notes.strip() if payload.notes else None
        record.correction_reason = payload.correction_reason.strip()
        record.corrected_by = current_user.id
        record.corrected_at = now
        record.is_manual_entry = True
        if record.is_anomaly:
            record.anomaly_resolved = True
            record.anomaly_resolved_by = current_user.id
            record.anomaly_resolved_at = now
            record.anomaly_resolution_note = record.correction_reason
        record.is_anomaly = False
    else:
        if not payload.notes or len(payload.notes.strip()) < 5:
            raise HTTPException(status_code=400, detail="notes must be at least 5 characters")
        if record:
            raise HTTPException(
                status_code=409,
                detail="Records already exist on this date; use the edit action",
            )
        record_status = payload.absence_status or payload.status or AttendanceStatus.present.value
        if record_status not in ATTENDANCE_STATUSES:
            raise HTTPException(status_code=400, detail="Invalid attendance status")

        # Only worked days carry hours
        worked = record_status in WORKED_STATUSES
        break_minutes = 0
        if worked and payload.check_in and payload.check_out:
            break_minutes = get_employee_break_duration(db, payload.employee_id, payload.day)
        late, early = 0, 0
        if worked:
            late, early = schedule_deviation(
                db, payload.employee_id, payload.day, payload.check_in, payload.check_out
            )
        worked_minutes = 0
        if worked:
            worked_minutes = calculate_worked_minutes(
                payload.check_in, payload.check_out, break_minutes
            )
        record = AttendanceRecord(
            employee_id=payload.employee_id,
            attendance_date=payload.day,
            check_in_time=payload.check_in,
            check_out_time=payload.check_out,
            break_minutes=break_minutes,
            worked_minutes=worked_minutes,
            late_minutes=late,
            early_leave_minutes=early,
            status=record_status,
            notes=payload.notes.strip(),
            source="manual",
            is_manual_entry=True,
            corrected_by=current_user.id,
            corrected_at=now,
        )
        db.add(record)

    cancelled = cancel_pending_correction_requests(
        db, payload.employee_id, payload.day, current_user.id
    )
    db.commit()
    db.refresh(record)
    logger.info(
        "Attendance %s by %s for employee %s on %s (%d request(s) cancelled)",
        payload.action,
        current_user.username,
        payload.employee_id,
        payload.day,
        cancelled,
    )
    return {
        "success": True,
        "record": AttendanceResponse.model_validate(record),
        "cancelled_requests": cancelled,
    }


@router.put("/{record_id}/correct")
def correct_record(
    record_id: uuid.UUID,
    payload: AttendanceCorrect,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(edit_attendance),
):
    record = get_record_or_404(db, record_id)
    check_in = payload.check_in_time if payload.check_in_time is not None else record.check_in_time
    check_out = payload.check_out_time if payload.check_out_time is not None else record.check_out_time
    check_time_pair(check_in, check_out)
    if payload.status and payload.status not in ATTENDANCE_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid attendance status")

    record.original_check_in = record.original_check_in or record.check_in_time
    record.original_check_out = record.original_check_out or record.check_out_time
    record.check_in_time = check_in
    record.check_out_time = check_out
    record.worked_minutes = calculate_worked_minutes(check_in, check_out, record.break_minutes or 0)
    if payload.status:
        record.status = payload.status
    record.correction_reason = payload.correction_reason
    record.corrected_by = current_user.id
    record.corrected_at = datetime.now(timezone.utc)
    record.is_manual_entry = True
    db.commit()
    db.refresh(record)
    return {"success": True, "record": AttendanceResponse.model_validate(record)}


# --- Anomalies ---


@router.get("/anomalies")
def list_anomalies(
    db: Session = Depends(get_db),
    _: Profile = Depends(view_attendance),
):
    records = (
        db.query(AttendanceRecord)
        .filter(
            AttendanceRecord.is_anomaly.is_(True),
            AttendanceRecord.anomaly_resolved.is_(False),
        )
        .order_by(AttendanceRecord.attendance_date.desc())
        .all()
    )
    return {"success": True, "anomalies": [AttendanceResponse.model_validate(r) for r in records]}


@router.put("/anomalies/{record_id}/resolve")
def resolve_anomaly(
    record_id: uuid.UUID,
    payload: AnomalyResolve,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(edit_attendance),
):
    record = get_record_or_404(db, record_id)
    record.anomaly_resolved = True
    record.anomaly_resolved_by = current_user.id
    record.anomaly_resolved_at = datetime.now(timezone.utc)
    record.anomaly_resolution_note = payload.resolution_note
    db.commit()
    db.refresh(record)
    return {"success": True, "record": AttendanceResponse.model_validate(record)}


@router.get("/schedules")
def active_schedules(
    db: Session = Depends(get_db),
    _: Profile = Depends(view_attendance),
):
    schedules = (
        db.query(WorkSchedule)
        .filter(WorkSchedule.is_active.is_(True))
        .order_by(WorkSchedule.is_default.desc(), WorkSchedule.name)
        .all()
    )
    return {"success": True, "schedules": [ScheduleResponse.model_validate(s) for s in schedules]}


@router.get("/summary/{year}/{month}")
def monthly_summary(
    year: int,
    month: int,
    db: Session = Depends(get_db),
    _: Profile = Depends(view_attendance),
):
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="month must be between 1 and 12")
    first = date(year, month, 1)
    last = date(year, month, monthrange(year, month)[1])

    employees = (
        db.query(Employee)
        .filter(Employee.employment_status == EmploymentStatus.active.value)
        .order_by(Employee.last_name, Employee.first_name)
        .all()
    )
    records = (
        db.query(AttendanceRecord)
        .filter(AttendanceRecord.attendance_date.between(first, last))
        .all()
    )
    by_employee = {}
    for record in records:
        by_employee.setdefault(record.employee_id, []).append(record)

    summary = []
    for employee in employees:
        rows = by_employee.get(employee.id, [])
        summary.append(
            {
                "employee_id": employee.id,
                "employee_name": employee.full_name,
                "days_present": sum(1 for r in rows if r.status in PRESENT_STATUSES),
                "days_absent": sum(1 for r in rows if r.status == AttendanceStatus.absent.value),
                "days_late": sum(1 for r in rows if r.status == AttendanceStatus.late.value),
                "days_leave": sum(1 for r in rows if r.status == AttendanceStatus.leave.value),
                "total_hours": round(sum(r.worked_minutes or 0 for r in rows) / 60, 2),
                "total_late_minutes": sum(r.late_minutes or 0 for r in rows),
            }
        )
    return {"success": True, "year": year, "month": month, "summary": summary}


@router.post("/detect-absences")
def run_absence_detection(
    payload: DetectAbsences,
    db: Session = Depends(get_db),
    _: Profile = Depends(edit_attendance),
):
    result = detect_absences(db, payload.day or date.today())
    return {"success": True, **result}


# --- Correction requests ---


@router.post("/corrections", status_code=status.HTTP_201_CREATED)
def create_correction_request(
    payload: CorrectionCreate,
    db: Session = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
    current_user: Profile = Depends(get_current_user),
):
    if not payload.request_date or not payload.reason or not payload.reason.strip():
        raise HTTPException(status_code=400, detail="request_date and reason are required")
    if not payload.requested_check_in and not payload.requested_check_out:
        raise HTTPException(status_code=400, detail="At least one requested time is required")
    check_time_pair(payload.requested_check_in, payload.requested_check_out)
    if payload.request_date > date.today():
        raise HTTPException(status_code=400, detail="Cannot request a correction for a future date")
    if pending_correction_request(db, employee.id, payload.request_date):
        raise HTTPException(
            status_code=409, detail="A correction request is already open for this date"
        )

    chain = approvals.ApprovalChain(db, employee.id, correction_workflow(db))
    request = CorrectionRequest(
        employee_id=employee.id,
        request_date=payload.request_date,
        requested_check_in=payload.requested_check_in,
        requested_check_out=payload.requested_check_out,
        reason=payload.reason.strip(),
        current_level=0,
        approval_levels=len(chain),
        created_by=current_user.id,
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    return {"success": True, "request": CorrectionResponse.model_validate(request)}


@router.get("/corrections")
def list_correction_requests(
    employee_id: Optional[uuid.UUID] = None,
    request_status: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    _: Profile = Depends(view_attendance),
):
    query = db.query(CorrectionRequest)
    if employee_id:
        query = query.filter(CorrectionRequest.employee_id == employee_id)
    if request_status:
        query = query.filter(CorrectionRequest.status == request_status)
    requests = query.order_by(CorrectionRequest.created_at.desc()).all()
    return {"success": True, "requests": [CorrectionResponse.model_validate(r) for r in requests]}


@router.get("/corrections/pending")
def pending_correction_requests(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    open_requests = (
        db.query(CorrectionRequest)
        .filter(CorrectionRequest.status.in_(OPEN_CORRECTION_STATUSES))
        .order_by(CorrectionRequest.created_at)
        .all()
    )
    workflow = correction_workflow(db)
    mine = approvals.awaiting(db, current_user, open_requests, lambda r: workflow)
    return {"success": True, "requests": [CorrectionResponse.model_validate(r) for r in mine]}


def get_correction_or_404(db: Session, request_id: uuid.UUID) -> CorrectionRequest:
    request = db.query(CorrectionRequest).filter(CorrectionRequest.id == request_id).first()
    if not request:
        raise HTTPException(status_code=404, detail="Correction request not found")
    return request


def apply_correction(db: Session, request: CorrectionRequest, approver: Profile) -> AttendanceRecord:
    record = day_record(db, request.employee_id, request.request_date)
    if not record:
        record = AttendanceRecord(
            employee_id=request.employee_id,
            attendance_date=request.request_date,
            source="manual",
        )
        db.add(record)
    record.original_check_in = record.original_check_in or record.check_in_time
    record.original_check_out = record.original_check_out or record.check_out_time
    if request.requested_check_in:
        record.check_in_time = request.requested_check_in
    if request.requested_check_out:
        record.check_out_time = request.requested_check_out
    break_minutes = get_employee_break_duration(db, request.employee_id, request.request_date)
    record.break_minutes = break_minutes
    record.worked_minutes = calculate_worked_minutes(
        record.check_in_time, record.check_out_time, break_minutes
    )
    if record.status in (None, AttendanceStatus.absent.value, AttendanceStatus.check_in.value):
        record.status = AttendanceStatus.present.value
    record.correction_reason = request.reason
    record.corrected_by = approver.id
    record.corrected_at = datetime.now(timezone.utc)
    if record.is_anomaly and not record.anomaly_resolved:
        record.anomaly_resolved = True
        record.anomaly_resolved_by = approver.id
        record.anomaly_resolved_at = record.corrected_at
        record.anomaly_resolution_note = "Correction request approved"
    return record


@router.put("/corrections/{request_id}/approve")
def approve_correction_request(
    request_id: uuid.UUID,
    payload: Decision,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    request = get_correction_or_404(db, request_id)
    chain = approvals.ApprovalChain(db, request.employee_id, correction_workflow(db))
    try:
        final = chain.approve(request, current_user, payload.comment)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if final:
        apply_correction(db, request, current_user)
    db.commit()
    db.refresh(request)
    return {
        "success": True,
        "request": CorrectionResponse.model_validate(request),
        "final": final,
    }


@router.put("/corrections/{request_id}/reject")
def reject_correction_request(
    request_id: uuid.UUID,
    payload: Decision,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    if not payload.comment or not payload.comment.strip():
        raise HTTPException(status_code=400, detail="A comment is required to reject")
    request = get_correction_or_404(db, request_id)
    chain = approvals.ApprovalChain(db, request.employee_id, correction_workflow(db))
    try:
        chain.reject(request, current_user, payload.comment.strip())
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    db.refresh(request)
    return {"success": True, "request": CorrectionResponse.model_validate(request)}
