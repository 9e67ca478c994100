from datetime import datetime, timezone
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backoffice.api.deps import PermissionChecker
from backoffice.core.database import get_db
from backoffice.models.auth import Profile
from backoffice.models.payroll import PayrollPeriod, PeriodStatus, Payslip
from backoffice.schemas.payroll import PayslipResponse, PeriodCreate, PeriodResponse
from backoffice.services.payroll import calculate_period

logger = logging.getLogger(__name__)

router = APIRouter()

view_payroll = PermissionChecker("hr.payroll.view_page")
manage_payroll = PermissionChecker("hr.payroll.manage")


def get_period_or_404(db: Session, period_id: uuid.UUID) -> PayrollPeriod:
    period = db.query(PayrollPeriod).filter(PayrollPeriod.id == period_id).first()
    if not period:
        raise HTTPException(status_code=404, detail="Payroll period not found")
    return period


@router.get("/periods")
def list_periods(
    db: Session = Depends(get_db),
    _: Profile = Depends(view_payroll),
):
    periods = (
        db.query(PayrollPeriod)
        .order_by(PayrollPeriod.year.desc(), PayrollPeriod.month.desc())
        .all()
    )
    return {"success": True, "periods": [PeriodResponse.model_validate(p) for p in periods]}


@router.post("/periods", status_code=status.HTTP_201_CREATED)
def create_period(
    period_in: PeriodCreate,
    db: Session = Depends(get_db),
    _: Profile = Depends(manage_payroll),
):
    existing = (
        db.query(PayrollPeriod)
        .filter(PayrollPeriod.year == period_in.year, PayrollPeriod.month == period_in.month)
        .first()
    )
    if existing:
        raise HTTPException(status_code=409, detail="This payroll period already exists")
    period = PayrollPeriod(year=period_in.year, month=period_in.month)
    db.add(period)
    db.commit()
    db.refresh(period)
    return {"success": True, "period": PeriodResponse.model_validate(period)}


@router.post("/periods/{period_id}/calculate")
def calculate(
    period_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(manage_payroll),
):
    period = get_period_or_404(db, period_id)
    try:
        payslips = calculate_period(db, period)
        db.commit()
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        db.rollback()
        logger.exception("Payroll calculation failed for period %s", period_id)
        raise HTTPException(status_code=500, detail=f"Payroll calculation failed: {str(e)}")

    return {
        "success": True,
        "period": PeriodResponse.model_validate(period),
        "payslip_count": len(payslips),
        "total_net": round(sum(p.net_salary for p in payslips), 2),
    }


@router.put("/periods/{period_id}/close")
def close_period(
    period_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(manage_payroll),
):
    period = get_period_or_404(db, period_id)
    if period.status == PeriodStatus.closed.value:
        raise HTTPException(status_code=400, detail="This payroll period is already closed")
    if period.status != PeriodStatus.calculated.value:
        raise HTTPException(status_code=400, detail="Calculate the period before closing it")
    period.status = PeriodStatus.closed.value
    period.closed_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(period)
    logger.info("Payroll period %s closed", period.name)
    return {"success": True, "period": PeriodResponse.model_validate(period)}


@router.get("/periods/{period_id}/payslips")
def list_payslips(
    period_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(view_payroll),
):
    get_period_or_404(db, period_id)
    payslips = db.query(Payslip).filter(Payslip.period_id == period_id).all()
    payslips.sort(key=lambda p: p.employee_name or "")
    return {"success": True, "payslips": [PayslipResponse.model_validate(p) for p in payslips]}
