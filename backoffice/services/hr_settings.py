from datetime import date
from typing import Any, Optional
import uuid

from sqlalchemy import or_
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.models.hr import EmployeeSchedule, HRSetting, PublicHoliday, WorkSchedule


def get_hr_setting(db: Session, key: str, default: Any = None) -> Any:
    row = db.query(HRSetting).filter(HRSetting.setting_key == key).first()
    if row is None or row.setting_value is None:
        return default
    return row.setting_value


def get_break_rules(db: Session) -> dict:
    rules = {
        "default_break_minutes": settings.DEFAULT_BREAK_MINUTES,
        "deduct_break_automatically": True,
    }
    stored = get_hr_setting(db, "break_rules")
    if isinstance(stored, dict):
        rules.update(stored)
    return rules


def get_default_schedule(db: Session) -> Optional[WorkSchedule]:
    return (
        db.query(WorkSchedule)
        .filter(WorkSchedule.is_default.is_(True), WorkSchedule.is_active.is_(True))
        .first()
    )


def get_effective_schedule(
    db: Session, employee_id: uuid.UUID, day: date
) -> Optional[WorkSchedule]:
    """Assignment active on ``day`` with the latest start, else the default schedule."""
    assignment = (
        db.query(EmployeeSchedule)
        .join(WorkSchedule, WorkSchedule.id == EmployeeSchedule.schedule_id)
        .filter(
            EmployeeSchedule.employee_id == employee_id,
            EmployeeSchedule.start_date <= day,
            or_(EmployeeSchedule.end_date.is_(None), EmployeeSchedule.end_date >= day),
            WorkSchedule.is_active.is_(True),
        )
        .order_by(EmployeeSchedule.start_date.desc())
        .first()
    )
    if assignment:
        return assignment.schedule
    return get_default_schedule(db)


def get_public_holiday(db: Session, day: date) -> Optional[PublicHoliday]:
    holiday = db.query(PublicHoliday).filter(PublicHoliday.holiday_date == day).first()
    if holiday:
        return holiday
    # Recurring holidays match on month and day of any year
    for recurring in db.query(PublicHoliday).filter(PublicHoliday.is_recurring.is_(True)):
        if (recurring.holiday_date.month, recurring.holiday_date.day) == (day.month, day.day):
            return recurring
    return None
