from pydantic import BaseModel, Field
from typing import Any, List, Optional
from datetime import date, datetime
from uuid import UUID


# --- Employees ---


class EmployeeCreate(BaseModel):
    employee_number: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    cin: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    segment_id: Optional[UUID] = None
    hire_date: Optional[date] = None
    employment_status: Optional[str] = None
    requires_clocking: Optional[bool] = None
    profile_id: Optional[UUID] = None


class EmployeeUpdate(EmployeeCreate):
    pass


class EmployeeResponse(BaseModel):
    id: UUID
    employee_number: str
    first_name: str
    last_name: str
    full_name: str
    cin: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    segment_id: Optional[UUID] = None
    hire_date: Optional[date] = None
    employment_status: str
    requires_clocking: bool
    profile_id: Optional[UUID] = None
    manager_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# --- Contracts, documents, discipline ---


class ContractCreate(BaseModel):
    contract_type: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    base_salary: Optional[float] = Field(default=None, ge=0)
    salary_currency: Optional[str] = None
    payment_frequency: Optional[str] = None
    working_hours_per_week: Optional[int] = None
    trial_period_end: Optional[date] = None
    status: Optional[str] = None
    notes: Optional[str] = None


class ContractUpdate(ContractCreate):
    pass


class ContractResponse(BaseModel):
    id: UUID
    employee_id: UUID
    contract_type: str
    start_date: date
    end_date: Optional[date] = None
    base_salary: float
    salary_currency: str
    payment_frequency: str
    working_hours_per_week: int
    trial_period_end: Optional[date] = None
    status: str
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class DocumentCreate(BaseModel):
    document_type: Optional[str] = None
    title: Optional[str] = None
    file_url: Optional[str] = None
    expiry_date: Optional[date] = None


class DocumentResponse(BaseModel):
    id: UUID
    employee_id: UUID
    document_type: str
    title: str
    file_url: Optional[str] = None
    expiry_date: Optional[date] = None
    is_verified: bool
    verified_by: Optional[UUID] = None
    verified_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DisciplinaryCreate(BaseModel):
    action_type: Optional[str] = None
    action_date: Optional[date] = None
    reason: Optional[str] = None
    description: Optional[str] = None
    duration_days: Optional[int] = None


class DisciplinaryResponse(BaseModel):
    id: UUID
    employee_id: UUID
    action_type: str
    action_date: date
    reason: str
    description: Optional[str] = None
    duration_days: Optional[int] = None
    issued_by: Optional[UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# --- Managers ---


class ManagerEntry(BaseModel):
    manager_id: UUID
    rank: int = Field(ge=0)


class ManagersUpdate(BaseModel):
    managers: Any = None


class ManagerResponse(BaseModel):
    manager_id: UUID
    rank: int
    manager_name: Optional[str] = None
    level: str


# --- Settings ---


class LeaveTypeCreate(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    default_days: Optional[float] = Field(default=None, ge=0)
    requires_approval: Optional[bool] = None
    approval_workflow: Optional[str] = None
    deducts_from_balance: Optional[bool] = None
    max_days_per_request: Optional[float] = Field(default=None, gt=0)
    color: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class LeaveTypeUpdate(LeaveTypeCreate):
    pass


class LeaveTypeResponse(BaseModel):
    id: UUID
    code: str
    name: str
    description: Optional[str] = None
    default_days: float
    requires_approval: bool
    approval_workflow: str
    deducts_from_balance: bool
    max_days_per_request: Optional[float] = None
    color: str
    sort_order: int
    is_active: bool

    class Config:
        from_attributes = True


class ScheduleCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    monday_start: Optional[str] = None
    monday_end: Optional[str] = None
    tuesday_start: Optional[str] = None
    tuesday_end: Optional[str] = None
    wednesday_start: Optional[str] = None
    wednesday_end: Optional[str] = None
    thursday_start: Optional[str] = None
    thursday_end: Optional[str] = None
    friday_start: Optional[str] = None
    friday_end: Optional[str] = None
    saturday_start: Optional[str] = None
    saturday_end: Optional[str] = None
    sunday_start: Optional[str] = None
    sunday_end: Optional[str] = None
    break_duration_minutes: Optional[int] = Field(default=None, ge=0)
    weekly_hours: Optional[float] = None
    tolerance_late_minutes: Optional[int] = Field(default=None, ge=0)
    tolerance_early_leave_minutes: Optional[int] = Field(default=None, ge=0)
    min_hours_for_half_day: Optional[float] = None
    is_default: Optional[bool] = None
    is_active: Optional[bool] = None


class ScheduleUpdate(ScheduleCreate):
    pass


class ScheduleResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    monday_start: Optional[str] = None
    monday_end: Optional[str] = None
    tuesday_start: Optional[str] = None
    tuesday_end: Optional[str] = None
    wednesday_start: Optional[str] = None
    wednesday_end: Optional[str] = None
    thursday_start: Optional[str] = None
    thursday_end: Optional[str] = None
    friday_start: Optional[str] = None
    friday_end: Optional[str] = None
    saturday_start: Optional[str] = None
    saturday_end: Optional[str] = None
    sunday_start: Optional[str] = None
    sunday_end: Optional[str] = None
    break_duration_minutes: int
    weekly_hours: float
    tolerance_late_minutes: int
    tolerance_early_leave_minutes: int
    min_hours_for_half_day: float
    is_default: bool
    is_active: bool

    class Config:
        from_attributes = True


class ScheduleAssign(BaseModel):
    employee_id: Optional[UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class EmployeeScheduleResponse(BaseModel):
    id: UUID
    employee_id: UUID
    schedule_id: UUID
    start_date: date
    end_date: Optional[date] = None
    schedule: Optional[ScheduleResponse] = None

    class Config:
        from_attributes = True


class HolidayCreate(BaseModel):
    holiday_date: Optional[date] = None
    name: Optional[str] = None
    is_recurring: bool = False


class HolidayUpdate(BaseModel):
    holiday_date: Optional[date] = None
    name: Optional[str] = None
    is_recurring: Optional[bool] = None


class HolidayResponse(BaseModel):
    id: UUID
    holiday_date: date
    name: str
    is_recurring: bool

    class Config:
        from_attributes = True


class SettingUpdate(BaseModel):
    setting_value: Any = None
    description: Optional[str] = None


class SettingResponse(BaseModel):
    setting_key: str
    setting_value: Any
    description: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EmployeeDetail(EmployeeResponse):
    contracts: List[ContractResponse] = []
    documents: List[DocumentResponse] = []
    disciplinary_actions: List[DisciplinaryResponse] = []
