from sqlalchemy import (
    Column,
    String,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum
from backoffice.core.database import Base


class EmploymentStatus(str, enum.Enum):
    active = "active"
    on_leave = "on_leave"
    suspended = "suspended"
    terminated = "terminated"


class DisciplinaryType(str, enum.Enum):
    verbal_warning = "verbal_warning"
    written_warning = "written_warning"
    suspension = "suspension"
    dismissal = "dismissal"


WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class Employee(Base):
    __tablename__ = "hr_employees"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_number = Column(String, unique=True, nullable=False, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    cin = Column(String, unique=True, nullable=True)
    email = Column(String)
    phone = Column(String)
    position = Column(String)
    department = Column(String)
    segment_id = Column(UUID(as_uuid=True), ForeignKey("segments.id"), nullable=True)
    hire_date = Column(Date)
    employment_status = Column(
        String, default=EmploymentStatus.active.value, nullable=False
    )
    requires_clocking = Column(Boolean, default=True, nullable=False)
    profile_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    # Rank-0 manager, kept in sync with hr_employee_managers
    manager_id = Column(UUID(as_uuid=True), ForeignKey("hr_employees.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    contracts = relationship(
        "Contract", back_populates="employee", cascade="all, delete-orphan"
    )
    documents = relationship(
        "EmployeeDocument", back_populates="employee", cascade="all, delete-orphan"
    )
    disciplinary_actions = relationship(
        "DisciplinaryAction", back_populates="employee", cascade="all, delete-orphan"
    )

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()


class EmployeeManager(Base):
    __tablename__ = "hr_employee_managers"
    __table_args__ = (UniqueConstraint("employee_id", "manager_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_id = Column(
        UUID(as_uuid=True),
        ForeignKey("hr_employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    manager_id = Column(
        UUID(as_uuid=True),
        ForeignKey("hr_employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    rank = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    manager = relationship("Employee", foreign_keys=[manager_id])


class Contract(Base):
    __tablename__ = "hr_contracts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_id = Column(
        UUID(as_uuid=True),
        ForeignKey("hr_employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    contract_type = Column(String, nullable=False)  # cdi, cdd, stage, freelance
    start_date = Column(Date, nullable=False)
    end_date = Column(Date)
    base_salary = Column(Numeric(12, 2, asdecimal=False), default=0)
    salary_currency = Column(String, default="MAD", nullable=False)
    payment_frequency = Column(String, default="monthly", nullable=False)
    working_hours_per_week = Column(Integer, default=44, nullable=False)
    trial_period_end = Column(Date)
    status = Column(String, default="active", nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    employee = relationship("Employee", back_populates="contracts")


class EmployeeDocument(Base):
    __tablename__ = "hr_employee_documents"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_id = Column(
        UUID(as_uuid=True),
        ForeignKey("hr_employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    document_type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    file_url = Column(String)
    expiry_date = Column(Date)
    is_verified = Column(Boolean, default=False, nullable=False)
    verified_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    verified_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    employee = relationship("Employee", back_populates="documents")


class DisciplinaryAction(Base):
    __tablename__ = "hr_disciplinary_actions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_id = Column(
        UUID(as_uuid=True),
        ForeignKey("hr_employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    action_type = Column(String, nullable=False)
    action_date = Column(Date, nullable=False)
    reason = Column(String, nullable=False)
    description = Column(Text)
    duration_days = Column(Integer)
    issued_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    employee = relationship("Employee", back_populates="disciplinary_actions")


class LeaveType(Base):
    __tablename__ = "hr_leave_types"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text)
    default_days = Column(Numeric(5, 1, asdecimal=False), default=0, nullable=False)
    requires_approval = Column(Boolean, default=True, nullable=False)
    approval_workflow = Column(String, default="n1", nullable=False)  # n1 | n1_n2 | hr
    deducts_from_balance = Column(Boolean, default=True, nullable=False)
    max_days_per_request = Column(Numeric(5, 1, asdecimal=False))
    color = Column(String, default="#3B82F6", nullable=False)
    sort_order = Column(Integer, default=99, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class WorkSchedule(Base):
    __tablename__ = "hr_work_schedules"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    description = Column(Text)

    monday_start = Column(String(5))
    monday_end = Column(String(5))
    tuesday_start = Column(String(5))
    tuesday_end = Column(String(5))
    wednesday_start = Column(String(5))
    wednesday_end = Column(String(5))
    thursday_start = Column(String(5))
    thursday_end = Column(String(5))
    friday_start = Column(String(5))
    friday_end = Column(String(5))
    saturday_start = Column(String(5))
    saturday_end = Column(String(5))
    sunday_start = Column(String(5))
    sunday_end = Column(String(5))

    break_duration_minutes = Column(Integer, default=60, nullable=False)
    weekly_hours = Column(Numeric(5, 2, asdecimal=False), default=44, nullable=False)
    tolerance_late_minutes = Column(Integer, default=15, nullable=False)
    tolerance_early_leave_minutes = Column(Integer, default=10, nullable=False)
    min_hours_for_half_day = Column(Numeric(4, 2, asdecimal=False), default=4, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def hours_for(self, day):
        """(start, end) for a date, or (None, None) on a non-working day."""
        name = WEEKDAYS[day.weekday()]
        return getattr(self, f"{name}_start"), getattr(self, f"{name}_end")


class EmployeeSchedule(Base):
    __tablename__ = "hr_employee_schedules"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_id = Column(
        UUID(as_uuid=True),
        ForeignKey("hr_employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    schedule_id = Column(
        UUID(as_uuid=True), ForeignKey("hr_work_schedules.id"), nullable=False
    )
    start_date = Column(Date, nullable=False)
    end_date = Column(Date)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    schedule = relationship("WorkSchedule")


class PublicHoliday(Base):
    __tablename__ = "hr_public_holidays"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    holiday_date = Column(Date, unique=True, nullable=False)
    name = Column(String, nullable=False)
    is_recurring = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class HRSetting(Base):
    __tablename__ = "hr_settings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    setting_key = Column(String, unique=True, nullable=False)
    setting_value = Column(JSON, nullable=False)
    description = Column(Text)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
