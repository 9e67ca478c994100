from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime
from uuid import UUID


class LeaveRequestCreate(BaseModel):
    employee_id: Optional[UUID] = None
    leave_type_id: Optional[UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_half_day: bool = False
    end_half_day: bool = False
    reason: Optional[str] = None
    contact_during_leave: Optional[str] = None
    handover_notes: Optional[str] = None


class LeaveDecision(BaseModel):
    comment: Optional[str] = None


class LeaveRequestResponse(BaseModel):
    id: UUID
    employee_id: UUID
    leave_type_id: UUID
    start_date: date
    end_date: date
    start_half_day: bool
    end_half_day: bool
    days_requested: float
    reason: Optional[str] = None
    status: str
    current_level: int
    approval_levels: int
    n1_approver_id: Optional[UUID] = None
    n1_comment: Optional[str] = None
    n1_action_at: Optional[datetime] = None
    n2_approver_id: Optional[UUID] = None
    n2_comment: Optional[str] = None
    n2_action_at: Optional[datetime] = None
    hr_approver_id: Optional[UUID] = None
    hr_comment: Optional[str] = None
    hr_action_at: Optional[datetime] = None
    rejection_comment: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BalanceAdjust(BaseModel):
    adjustment: Optional[float] = None
    reason: Optional[str] = None


class LeaveBalanceResponse(BaseModel):
    id: Optional[UUID] = None
    employee_id: UUID
    leave_type_id: UUID
    year: int
    initial: float
    taken: float
    adjusted: float
    remaining: float
    adjustment_reason: Optional[str] = None

    class Config:
        from_attributes = True
