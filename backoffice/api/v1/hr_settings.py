from typing import Optional
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from backoffice.api.deps import PermissionChecker
from backoffice.core.database import get_db
from backoffice.models.auth import Profile
from backoffice.models.hr import (
    Employee,
    EmployeeSchedule,
    HRSetting,
    LeaveType,
    PublicHoliday,
    WEEKDAYS,
    WorkSchedule,
)
from backoffice.models.leaves import LeaveRequest
from backoffice.schemas.hr import (
    EmployeeScheduleResponse,
    HolidayCreate,
    HolidayResponse,
    HolidayUpdate,
    LeaveTypeCreate,
    LeaveTypeResponse,
    LeaveTypeUpdate,
    ScheduleAssign,
    ScheduleCreate,
    ScheduleResponse,
    ScheduleUpdate,
    SettingResponse,
    SettingUpdate,
)
from backoffice.services.attendance import validate_time_format

logger = logging.getLogger(__name__)

router = APIRouter()

APPROVAL_WORKFLOWS = ("n1", "n1_n2", "hr")
TIME_FIELDS = [f"{day}_{edge}" for day in WEEKDAYS for edge in ("start", "end")]

view_settings = PermissionChecker("hr.settings.view_page")
manage_settings = PermissionChecker("hr.settings.manage")


# --- Leave types ---


@router.get("/leave-types")
def list_leave_types(
    db: Session = Depends(get_db),
    _: Profile = Depends(view_settings),
):
    types = db.query(LeaveType).order_by(LeaveType.sort_order, LeaveType.name).all()
    return {"success": True, "leave_types": [LeaveTypeResponse.model_validate(t) for t in types]}


@router.post("/leave-types", status_code=status.HTTP_201_CREATED)
def create_leave_type(
    type_in: LeaveTypeCreate,
    db: Session = Depends(get_db),
    _: Profile = Depends(manage_settings),
):
    if not type_in.code or not type_in.name:
        raise HTTPException(status_code=400, detail="code and name are required")
    code = type_in.code.strip().upper()
    if db.query(LeaveType).filter(func.upper(LeaveType.code) == code).first():
        raise HTTPException(status_code=400, detail=f"Leave type code {code} already exists")
    if type_in.approval_workflow and type_in.approval_workflow not in APPROVAL_WORKFLOWS:
        raise HTTPException(status_code=400, detail="approval_workflow must be n1, n1_n2 or hr")

    data = {k: v for k, v in type_in.model_dump().items() if v is not None}
    data["code"] = code
    leave_type = LeaveType(**data)
    db.add(leave_type)
    db.commit()
    db.refresh(leave_type)
    return {"success": True, "leave_type": LeaveTypeResponse.model_validate(leave_type)}


@router.put("/leave-types/{type_id}")
def update_leave_type(
    type_id: uuid.UUID,
    type_in: LeaveTypeUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(manage_settings),
):
    leave_type = db.query(LeaveType).filter(LeaveType.id == type_id).first()
    if not leave_type:
        raise HTTPException(status_code=404, detail="Leave type not found")
    data = type_in.model_dump(exclude_unset=True)
    if "code" in data:
        if not data["code"]:
            raise HTTPException(status_code=400, detail="code cannot be empty")
        data["code"] = data["code"].strip().upper()
        clash = (
            db.query(LeaveType)
            .filter(func.upper(LeaveType.code) == data["code"], LeaveType.id != type_id)
            .first()
        )
        if clash:
            raise HTTPException(status_code=400, detail=f"Leave type code {data['code']} already exists")
    if "approval_workflow" in data and data["approval_workflow"] not in APPROVAL_WORKFLOWS:
        raise HTTPException(status_code=400, detail="approval_workflow must be n1, n1_n2 or hr")

    for key, value in data.items():
        setattr(leave_type, key, value)
    db.commit()
    db.refresh(leave_type)
    return {"success": True, "leave_type": LeaveTypeResponse.model_validate(leave_type)}


@router.delete("/leave-types/{type_id}")
def delete_leave_type(
    type_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(manage_settings),
):
    leave_type = db.query(LeaveType).filter(LeaveType.id == type_id).first()
    if not leave_type:
        raise HTTPException(status_code=404, detail="Leave type not found")
    in_use = db.query(LeaveRequest).filter(LeaveRequest.leave_type_id == type_id).count()
    if in_use:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "This leave type is used by leave requests; deactivate it instead",
                "usage_count": in_use,
            },
        )
    db.delete(leave_type)
    db.commit()
    return {"success": True, "message": "Leave type deleted"}


# --- Work schedules ---


def check_times(data: dict) -> None:
    for field in TIME_FIELDS:
        if not validate_time_format(data.get(field)):
            raise HTTPException(status_code=400, detail=f"{field} must use the HH:MM format")


def clear_other_defaults(db: Session, schedule_id: uuid.UUID) -> None:
    db.query(WorkSchedule).filter(WorkSchedule.id != schedule_id).update(
        {WorkSchedule.is_default: False}, synchronize_session="fetch"
    )


@router.get("/schedules")
def list_schedules(
    db: Session = Depends(get_db),
    _: Profile = Depends(view_settings),
):
    schedules = db.query(WorkSchedule).order_by(WorkSchedule.is_default.desc(), WorkSchedule.name).all()
    return {"success": True, "schedules": [ScheduleResponse.model_validate(s) for s in schedules]}


@router.post("/schedules", status_code=status.HTTP_201_CREATED)
def create_schedule(
    schedule_in: ScheduleCreate,
    db: Session = Depends(get_db),
    _: Profile = Depends(manage_settings),
):
    if not schedule_in.name or not schedule_in.name.strip():
        raise HTTPException(status_code=400, detail="Schedule name is required")
    data = schedule_in.model_dump()
    check_times(data)

    schedule = WorkSchedule(**{k: v for k, v in data.items() if v is not None})
    db.add(schedule)
    db.flush()
    if schedule.is_default:
        clear_other_defaults(db, schedule.id)
    db.commit()
    db.refresh(schedule)
    return {"success": True, "schedule": ScheduleResponse.model_validate(schedule)}


@router.put("/schedules/{schedule_id}")
def update_schedule(
    schedule_id: uuid.UUID,
    schedule_in: ScheduleUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(manage_settings),
):
    schedule = db.query(WorkSchedule).filter(WorkSchedule.id == schedule_id).first()
    if not schedule:
        raise HTTPException(status_code=404, detail="Schedule not found")
    data = schedule_in.model_dump(exclude_unset=True)
    if "name" in data and not (data["name"] or "").strip():
        raise HTTPException(status_code=400, detail="Schedule name is required")
    check_times(data)

    for key, value in data.items():
        setattr(schedule, key, value)
    if data.get("is_default"):
        clear_other_defaults(db, schedule.id)
    db.commit()
    db.refresh(schedule)
    return {"success": True, "schedule": ScheduleResponse.model_validate(schedule)}


@router.delete("/schedules/{schedule_id}")
def delete_schedule(
    schedule_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(manage_settings),
):
    schedule = db.query(WorkSchedule).filter(WorkSchedule.id == schedule_id).first()
    if not schedule:
        raise HTTPException(status_code=404, detail="Schedule not found")
    assigned = (
        db.query(EmployeeSchedule).filter(EmployeeSchedule.schedule_id == schedule_id).count()
    )
    if assigned:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "This schedule is assigned to employees",
                "usage_count": assigned,
            },
        )
    db.delete(schedule)
    db.commit()
    return {"success": True, "message": "Schedule deleted"}


@router.post("/schedules/{schedule_id}/assign", status_code=status.HTTP_201_CREATED)
def assign_schedule(
    schedule_id: uuid.UUID,
    payload: ScheduleAssign,
    db: Session = Depends(get_db),
    _: Profile = Depends(manage_settings),
):
    if not payload.employee_id or not payload.start_date:
        raise HTTPException(status_code=400, detail="employee_id and start_date are required")
    if payload.end_date and payload.end_date < payload.start_date:
        raise HTTPException(status_code=400, detail="end_date must be after start_date")
    if not db.query(WorkSchedule).filter(WorkSchedule.id == schedule_id).first():
        raise HTTPException(status_code=404, detail="Schedule not found")
    if not db.query(Employee).filter(Employee.id == payload.employee_id).first():
        raise HTTPException(status_code=404, detail="Employee not found")

    assignment = EmployeeSchedule(
        employee_id=payload.employee_id,
        schedule_id=schedule_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    return {"success": True, "assignment": EmployeeScheduleResponse.model_validate(assignment)}


# --- Public holidays ---


@router.get("/holidays")
def list_holidays(
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    _: Profile = Depends(view_settings),
):
    holidays = db.query(PublicHoliday).order_by(PublicHoliday.holiday_date).all()
    if year:
        holidays = [h for h in holidays if h.is_recurring or h.holiday_date.year == year]
    return {"success": True, "holidays": [HolidayResponse.model_validate(h) for h in holidays]}


@router.post("/holidays", status_code=status.HTTP_201_CREATED)
def create_holiday(
    holiday_in: HolidayCreate,
    db: Session = Depends(get_db),
    _: Profile = Depends(manage_settings),
):
    if not holiday_in.holiday_date or not holiday_in.name:
        raise HTTPException(status_code=400, detail="holiday_date and name are required")
    if db.query(PublicHoliday).filter(PublicHoliday.holiday_date == holiday_in.holiday_date).first():
        raise HTTPException(status_code=409, detail="A holiday already exists on this date")
    holiday = PublicHoliday(**holiday_in.model_dump())
    db.add(holiday)
    db.commit()
    db.refresh(holiday)
    return {"success": True, "holiday": HolidayResponse.model_validate(holiday)}


@router.put("/holidays/{holiday_id}")
def update_holiday(
    holiday_id: uuid.UUID,
    holiday_in: HolidayUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(manage_settings),
):
    holiday = db.query(PublicHoliday).filter(PublicHoliday.id == holiday_id).first()
    if not holiday:
        raise HTTPException(status_code=404, detail="Holiday not found")
    data = holiday_in.model_dump(exclude_unset=True)
    if data.get("holiday_date"):
        clash = (
            db.query(PublicHoliday)
            .filter(PublicHoliday.holiday_date == data["holiday_date"], PublicHoliday.id != holiday_id)
            .first()
        )
        if clash:
            raise HTTPException(status_code=409, detail="A holiday already exists on this date")
    for key, value in data.items():
        if value is not None:
            setattr(holiday, key, value)
    db.commit()
    db.refresh(holiday)
    return {"success": True, "holiday": HolidayResponse.model_validate(holiday)}


@router.delete("/holidays/{holiday_id}")
def delete_holiday(
    holiday_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(manage_settings),
):
    holiday = db.query(PublicHoliday).filter(PublicHoliday.id == holiday_id).first()
    if not holiday:
        raise HTTPException(status_code=404, detail="Holiday not found")
    db.delete(holiday)
    db.commit()
    return {"success": True, "message": "Holiday deleted"}


# --- Key/value settings ---


@router.get("/")
def list_settings(
    db: Session = Depends(get_db),
    _: Profile = Depends(view_settings),
):
    rows = db.query(HRSetting).order_by(HRSetting.setting_key).all()
    return {"success": True, "settings": [SettingResponse.model_validate(r) for r in rows]}


@router.get("/{key}")
def get_setting(
    key: str,
    db: Session = Depends(get_db),
    _: Profile = Depends(view_settings),
):
    row = db.query(HRSetting).filter(HRSetting.setting_key == key).first()
    if not row:
        raise HTTPException(status_code=404, detail=f"Setting {key} not found")
    return {"success": True, "setting": SettingResponse.model_validate(row)}


@router.put("/{key}")
def put_setting(
    key: str,
    payload: SettingUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(manage_settings),
):
    if payload.setting_value is None:
        raise HTTPException(status_code=400, detail="setting_value is required")
    row = db.query(HRSetting).filter(HRSetting.setting_key == key).first()
    if row:
        row.setting_value = payload.setting_value
        if payload.description is not None:
            row.description = payload.description
    else:
        row = HRSetting(
            setting_key=key,
            setting_value=payload.setting_value,
            description=payload.description,
        )
        db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("HR setting %s updated", key)
    return {"success": True, "setting": SettingResponse.model_validate(row)}
