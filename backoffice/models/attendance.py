from sqlalchemy import (
    Column,
    String,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum
from backoffice.core.database import Base


class AttendanceStatus(str, enum.Enum):
    present = "present"
    absent = "absent"
    late = "late"
    leave = "leave"
    holiday = "holiday"
    half_day = "half_day"
    weekend = "weekend"
    check_in = "check_in"


class CorrectionStatus(str, enum.Enum):
    pending = "pending"
    approved_n1 = "approved_n1"
    approved_n2 = "approved_n2"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


OPEN_CORRECTION_STATUSES = (
    CorrectionStatus.pending.value,
    CorrectionStatus.approved_n1.value,
    CorrectionStatus.approved_n2.value,
)


class AttendanceRecord(Base):
    __tablename__ = "hr_attendance_records"
    __table_args__ = (UniqueConstraint("employee_id", "attendance_date"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_id = Column(
        UUID(as_uuid=True),
        ForeignKey("hr_employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    attendance_date = Column(Date, nullable=False, index=True)
    check_in_time = Column(String(5))  # HH:MM
    check_out_time = Column(String(5))
    break_minutes = Column(Integer, default=0)
    worked_minutes = Column(Integer)
    late_minutes = Column(Integer, default=0)
    early_leave_minutes = Column(Integer, default=0)
    status = Column(String, default=AttendanceStatus.present.value, nullable=False)
    notes = Column(Text)
    source = Column(String, default="manual", nullable=False)  # manual | self_service | system

    is_manual_entry = Column(Boolean, default=False, nullable=False)
    original_check_in = Column(String(5))
    original_check_out = Column(String(5))
    corrected_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    correction_reason = Column(Text)
    corrected_at = Column(DateTime(timezone=True))

    is_anomaly = Column(Boolean, default=False, nullable=False)
    anomaly_type = Column(String)
    anomaly_resolved = Column(Boolean, default=False, nullable=False)
    anomaly_resolved_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    anomaly_resolved_at = Column(DateTime(timezone=True))
    anomaly_resolution_note = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    employee = relationship("backoffice.models.hr.Employee")

    @property
    def employee_name(self):
        return self.employee.full_name if self.employee else None


class CorrectionRequest(Base):
    __tablename__ = "hr_attendance_correction_requests"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_id = Column(
        UUID(as_uuid=True),
        ForeignKey("hr_employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    request_date = Column(Date, nullable=False)
    requested_check_in = Column(String(5))
    requested_check_out = Column(String(5))
    reason = Column(Text, nullable=False)
    status = Column(String, default=CorrectionStatus.pending.value, nullable=False)
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

    admin_cancelled_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    admin_cancelled_at = Column(DateTime(timezone=True))
    admin_cancellation_reason = Column(Text)

    created_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    employee = relationship("backoffice.models.hr.Employee")
