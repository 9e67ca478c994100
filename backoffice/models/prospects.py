from sqlalchemy import (
    Column,
    String,
    DateTime,
    ForeignKey,
    Integer,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from backoffice.core.database import Base


class Segment(Base):
    __tablename__ = "segments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, unique=True, nullable=False)
    color = Column(String, default="#3B82F6")
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Prospect(Base):
    __tablename__ = "prospects"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    phone_raw = Column(String)
    phone_international = Column(String, nullable=False, index=True)
    country_code = Column(String)
    country = Column(String)
    nom = Column(String)
    prenom = Column(String)
    cin = Column(String)
    segment_id = Column(UUID(as_uuid=True), ForeignKey("segments.id"), nullable=False)
    ville = Column(String)
    statut_contact = Column(String, default="non contacté", nullable=False)
    date_injection = Column(DateTime(timezone=True))
    date_rdv = Column(DateTime(timezone=True))
    decision_nettoyage = Column(String)
    commentaire = Column(Text)
    assigned_to = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    segment = relationship("Segment")
    calls = relationship(
        "ProspectCallHistory",
        back_populates="prospect",
        cascade="all, delete-orphan",
        order_by="ProspectCallHistory.created_at",
    )

    @property
    def segment_name(self):
        return self.segment.name if self.segment else None


class ProspectCallHistory(Base):
    __tablename__ = "prospect_call_history"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    prospect_id = Column(
        UUID(as_uuid=True),
        ForeignKey("prospects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    call_start = Column(DateTime(timezone=True))
    call_end = Column(DateTime(timezone=True))
    duration_seconds = Column(Integer)
    status_before = Column(String)
    status_after = Column(String)
    commentaire = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    prospect = relationship("Prospect", back_populates="calls")
