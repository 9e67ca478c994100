"""Monthly payroll.

Daily rate is the base salary over the working-day divisor; absences are
deducted at that rate. CNSS applies to the gross up to its ceiling, AMO to
the whole gross.
"""
from calendar import monthrange
from datetime import date, datetime, timezone
from typing import List, Optional
import logging
import uuid

from sqlalchemy import or_
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.models.attendance import AttendanceRecord, AttendanceStatus
from backoffice.models.hr import Contract, Employee, EmploymentStatus
from backoffice.models.payroll import PayrollPeriod, PeriodStatus, Payslip
from backoffice.services.hr_settings import get_hr_setting

logger = logging.getLogger(__name__)

DEFAULT_RATES = {
    "cnss_rate": 0.0448,
    "cnss_ceiling": 6000,
    "amo_rate": 0.0226,
}


def money(value) -> float:
    return round(float(value or 0), 2)


def payroll_rates(db: Session) -> dict:
    rates = dict(DEFAULT_RATES)
    stored = get_hr_setting(db, "payroll_rates")
    if isinstance(stored, dict):
        rates.update({k: v for k, v in stored.items() if k in DEFAULT_RATES})
    return rates


def compute_payslip(
    base_salary: float,
    absent_days: int = 0,
    rates: Optional[dict] = None,
    working_days: Optional[int] = None,
) -> dict:
    rates = rates or DEFAULT_RATES
    working_days = working_days or settings.PAYROLL_WORKING_DAYS
    base = money(base_salary)
    absent_days = min(absent_days, working_days)

    daily_rate = base / working_days
    absence_deduction = money(daily_rate * absent_days)
    gross = money(base - absence_deduction)
    cnss = money(min(gross, rates["cnss_ceiling"]) * rates["cnss_rate"])
    amo = money(gross * rates["amo_rate"])
    total_deductions = money(cnss + amo)

    lines = [
        {"label": "Salaire de base", "type": "gain", "amount": base},
        {"label": f"Absences ({absent_days} j)", "type": "deduction", "amount": absence_deduction},
        {"label": "CNSS", "type": "deduction", "amount": cnss},
        {"label": "AMO", "type": "deduction", "amount": amo},
    ]
    return {
        "base_salary": base,
        "worked_days": working_days - absent_days,
        "absent_days": absent_days,
        "absence_deduction": absence_deduction,
        "gross_salary": gross,
        "cnss_deduction": cnss,
        "amo_deduction": amo,
        "total_deductions": total_deductions,
        "net_salary": money(gross - total_deductions),
        "lines": lines,
    }


def active_contract(db: Session, employee_id: uuid.UUID, first: date, last: date) -> Optional[Contract]:
    return (
        db.query(Contract)
        .filter(
            Contract.employee_id == employee_id,
            Contract.status == "active",
            Contract.start_date <= last,
            or_(Contract.end_date.is_(None), Contract.end_date >= first),
        )
        .order_by(Contract.start_date.desc())
        .first()
    )


def count_absent_days(db: Session, employee_id: uuid.UUID, first: date, last: date) -> int:
    return (
        db.query(AttendanceRecord)
        .filter(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.attendance_date.between(first, last),
            AttendanceRecord.status == AttendanceStatus.absent.value,
        )
        .count()
    )


def calculate_period(db: Session, period: PayrollPeriod) -> List[Payslip]:
    """Replace the period's payslips. Raises ValueError on a closed period."""
    if period.status == PeriodStatus.closed.value:
        raise ValueError("This payroll period is closed")

    first = date(period.year, period.month, 1)
    last = date(period.year, period.month, monthrange(period.year, period.month)[1])
    rates = payroll_rates(db)

    db.query(Payslip).filter(Payslip.period_id == period.id).delete(synchronize_session=False)

    payslips = []
    employees = (
        db.query(Employee)
        .filter(Employee.employment_status == EmploymentStatus.active.value)
        .all()
    )
    for employee in employees:
        contract = active_contract(db, employee.id, first, last)
        if not contract:
            continue
        amounts = compute_payslip(
            contract.base_salary,
            count_absent_days(db, employee.id, first, last),
            rates,
        )
        payslip = Payslip(
            period_id=period.id,
            employee_id=employee.id,
            currency=contract.salary_currency or "MAD",
            **amounts,
        )
        db.add(payslip)
        payslips.append(payslip)

    period.status = PeriodStatus.calculated.value
    period.calculated_at = datetime.now(timezone.utc)
    db.flush()
    logger.info("Payroll %s calculated: %d payslip(s)", period.name, len(payslips))
    return payslips
