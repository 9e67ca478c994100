from sqlalchemy import (
    Column,
    String,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum
from backoffice.core.database import Base


class PeriodStatus(str, enum.Enum):
    open = "open"
    calculated = "calculated"
    closed = "closed"


class PayrollPeriod(Base):
    __tablename__ = "hr_payroll_periods"
    __table_args__ = (UniqueConstraint("year", "month"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    status = Column(String, default=PeriodStatus.open.value, nullable=False)
    calculated_at = Column(DateTime(timezone=True))
    closed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    payslips = relationship(
        "Payslip", back_populates="period", cascade="all, delete-orphan"
    )

    @property
    def name(self):
        return f"{self.month:02d}/{self.year}"


class Payslip(Base):
    __tablename__ = "hr_payslips"
    __table_args__ = (UniqueConstraint("period_id", "employee_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    period_id = Column(
        UUID(as_uuid=True),
        ForeignKey("hr_payroll_periods.id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id = Column(
        UUID(as_uuid=True), ForeignKey("hr_employees.id"), nullable=False
    )
    base_salary = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    worked_days = Column(Integer, default=0, nullable=False)
    absent_days = Column(Integer, default=0, nullable=False)
    absence_deduction = Column(Numeric(12, 2, asdecimal=False), default=0)
    gross_salary = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    cnss_deduction = Column(Numeric(12, 2, asdecimal=False), default=0)
    amo_deduction = Column(Numeric(12, 2, asdecimal=False), default=0)
    total_deductions = Column(Numeric(12, 2, asdecimal=False), default=0)
    net_salary = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    currency = Column(String, default="MAD", nullable=False)
    lines = Column(JSON, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    period = relationship("PayrollPeriod", back_populates="payslips")
    employee = relationship("backoffice.models.hr.Employee")

    @property
    def employee_name(self):
        return self.employee.full_name if self.employee else None
