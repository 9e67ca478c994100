from sqlalchemy import (
    Column,
    String,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
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


class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved_n1 = "approved_n1"
    approved_n2 = "approved_n2"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


class LeaveRequest(Base):
    __tablename__ = "hr_leave_requests"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_id = Column(
        UUID(as_uuid=True),
        ForeignKey("hr_employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    leave_type_id = Column(
        UUID(as_uuid=True), ForeignKey("hr_leave_types.id"), nullable=False
    )
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    start_half_day = Column(Boolean, default=False, nullable=False)
    end_half_day = Column(Boolean, default=False, nullable=False)
    days_requested = Column(Numeric(5, 1, asdecimal=False), nullable=False)
    reason = Column(Text)
    contact_during_leave = Column(String)
    handover_notes = Column(Text)

    status = Column(String, default=LeaveStatus.pending.value, nullable=False)
    current_level = Column(Integer, default=0, nullable=False)
    approval_levels = Column(Integer, default=1, nullable=False)

    n1_approver_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    n1_comment = Column(Text)
    n1_action_at = Column(DateTime(timezone=True))
    n2_approver_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    n2_comment = Column(Text)
    n2_action_at = Column(DateTime(timezone=True))
    hr_approver_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    hr_comment = Column(Text)
    hr_action_at = Column(DateTime(timezone=True))
    rejection_comment = Column(Text)

    created_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    employee = relationship("backoffice.models.hr.Employee")
    leave_type = relationship("backoffice.models.hr.LeaveType")


class LeaveBalance(Base):
    __tablename__ = "hr_leave_balances"
    __table_args__ = (UniqueConstraint("employee_id", "leave_type_id", "year"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_id = Column(
        UUID(as_uuid=True),
        ForeignKey("hr_employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    leave_type_id = Column(
        UUID(as_uuid=True), ForeignKey("hr_leave_types.id"), nullable=False
    )
    year = Column(Integer, nullable=False)
    initial = Column(Numeric(5, 1, asdecimal=False), default=0, nullable=False)
    taken = Column(Numeric(5, 1, asdecimal=False), default=0, nullable=False)
    adjusted = Column(Numeric(5, 1, asdecimal=False), default=0, nullable=False)
    adjustment_reason = Column(Text)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    leave_type = relationship("backoffice.models.hr.LeaveType")

    @property
    def remaining(self):
        return (self.initial or 0) + (self.adjusted or 0) - (self.taken or 0)
