from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from uuid import UUID


class AttendanceRecordCreate(BaseModel):
    employee_id: UUID
    attendance_date: date
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    break_minutes: Optional[int] = None
    status: Optional[str] = None
    notes: Optional[str] = None


class AttendanceCorrect(BaseModel):
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    correction_reason: Optional[str] = None
    status: Optional[str] = None


class AdminEdit(BaseModel):
    employee_id: Optional[UUID] = None
    day: Optional[date] = Field(default=None, alias="date")
    action: Optional[str] = None
    check_in: Optional[str] = None
    check_out: Optional[str] = None
    correction_reason: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[str] = None
    absence_status: Optional[str] = None


class AnomalyResolve(BaseModel):
    resolution_note: Optional[str] = None


class DetectAbsences(BaseModel):
    day: Optional[date] = Field(default=None, alias="date")


class AttendanceResponse(BaseModel):
    id: UUID
    employee_id: UUID
    employee_name: Optional[str] = None
    attendance_date: date
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    break_minutes: Optional[int] = None
    worked_minutes: Optional[int] = None
    late_minutes: Optional[int] = None
    early_leave_minutes: Optional[int] = None
    status: str
    notes: Optional[str] = None
    source: str
    is_manual_entry: bool
    original_check_in: Optional[str] = None
    original_check_out: Optional[str] = None
    corrected_by: Optional[UUID] = None
    correction_reason: Optional[str] = None
    corrected_at: Optional[datetime] = None
    is_anomaly: bool
    anomaly_type: Optional[str] = None
    anomaly_resolved: bool
    anomaly_resolution_note: Optional[str] = None

    class Config:
        from_attributes = True


class CorrectionCreate(BaseModel):
    request_date: Optional[date] = None
    requested_check_in: Optional[str] = None
    requested_check_out: Optional[str] = None
    reason: Optional[str] = None


class Decision(BaseModel):
    comment: Optional[str] = None


class CorrectionResponse(BaseModel):
    id: UUID
    employee_id: UUID
    request_date: date
    requested_check_in: Optional[str] = None
    requested_check_out: Optional[str] = None
    reason: str
    status: str
    current_level: int
    approval_levels: int
    n1_comment: Optional[str] = None
    n2_comment: Optional[str] = None
    hr_approver_id: Optional[UUID] = None
    hr_comment: Optional[str] = None
    rejection_comment: Optional[str] = None
    admin_cancellation_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
