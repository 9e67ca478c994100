from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from uuid import UUID


class PeriodCreate(BaseModel):
    year: int = Field(ge=2000, le=2100)
    month: int = Field(ge=1, le=12)


class PeriodResponse(BaseModel):
    id: UUID
    year: int
    month: int
    name: str
    status: str
    calculated_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PayslipResponse(BaseModel):
    id: UUID
    period_id: UUID
    employee_id: UUID
    employee_name: Optional[str] = None
    base_salary: float
    worked_days: int
    absent_days: int
    absence_deduction: float
    gross_salary: float
    cnss_deduction: float
    amo_deduction: float
    total_deductions: float
    net_salary: float
    currency: str
    lines: List[dict] = []

    class Config:
        from_attributes = True
