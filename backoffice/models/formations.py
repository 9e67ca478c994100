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


class SessionStatus(str, enum.Enum):
    planifiee = "planifiee"
    en_cours = "en_cours"
    terminee = "terminee"
    annulee = "annulee"


class PaymentStatus(str, enum.Enum):
    impaye = "impaye"
    partiellement_paye = "partiellement_paye"
    paye = "paye"


class StudentStatus(str, enum.Enum):
    inscrit = "inscrit"
    valide = "valide"
    abandonne = "abandonne"


class PaymentMethod(str, enum.Enum):
    especes = "especes"
    virement = "virement"
    cheque = "cheque"
    carte = "carte"
    autre = "autre"


class CorpsFormation(Base):
    __tablename__ = "corps_formation"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False, unique=True)
    description = Column(Text)
    color = Column(String, default="#3B82F6")
    icon = Column(String)
    order_index = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    formations = relationship("Formation", back_populates="corps")


class Formation(Base):
    __tablename__ = "formations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False)
    description = Column(Text)
    price = Column(Numeric(12, 2, asdecimal=False), default=0)
    duration_hours = Column(Integer)
    level = Column(String)
    corps_formation_id = Column(
        UUID(as_uuid=True), ForeignKey("corps_formation.id"), nullable=True
    )
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    corps = relationship("CorpsFormation", back_populates="formations")
    template_links = relationship(
        "backoffice.models.certificates.FormationTemplate",
        back_populates="formation",
        order_by="FormationTemplate.position",
        cascade="all, delete-orphan",
    )


class Student(Base):
    __tablename__ = "students"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    cin = Column(String, unique=True, index=True)
    email = Column(String)
    phone = Column(String)
    city = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()


class SessionFormation(Base):
    __tablename__ = "sessions_formation"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    titre = Column(String, nullable=False)
    description = Column(Text)
    date_debut = Column(Date)
    date_fin = Column(Date)
    ville = Column(String)
    segment_id = Column(UUID(as_uuid=True), ForeignKey("segments.id"), nullable=True)
    corps_formation_id = Column(
        UUID(as_uuid=True), ForeignKey("corps_formation.id"), nullable=True
    )
    statut = Column(String, default=SessionStatus.planifiee.value, nullable=False)
    prix_total = Column(Numeric(12, 2, asdecimal=False), default=0)
    nombre_places = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    corps = relationship("CorpsFormation")
    etudiants = relationship(
        "SessionEtudiant", back_populates="session", cascade="all, delete-orphan"
    )


class SessionEtudiant(Base):
    __tablename__ = "session_etudiants"
    __table_args__ = (UniqueConstraint("session_id", "student_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    session_id = Column(
        UUID(as_uuid=True),
        ForeignKey("sessions_formation.id", ondelete="CASCADE"),
        nullable=False,
    )
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id"), nullable=False)
    formation_id = Column(UUID(as_uuid=True), ForeignKey("formations.id"), nullable=False)

    statut_paiement = Column(String, default=PaymentStatus.impaye.value, nullable=False)
    student_status = Column(String, default=StudentStatus.inscrit.value, nullable=False)

    formation_original_price = Column(Numeric(12, 2, asdecimal=False), default=0)
    discount_percentage = Column(Numeric(5, 2, asdecimal=False), default=0)
    discount_amount = Column(Numeric(12, 2, asdecimal=False), default=0)
    discount_reason = Column(Text)
    montant_total = Column(Numeric(12, 2, asdecimal=False), default=0)
    montant_paye = Column(Numeric(12, 2, asdecimal=False), default=0)
    montant_du = Column(Numeric(12, 2, asdecimal=False), default=0)

    numero_bon = Column(String)
    date_inscription = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    session = relationship("SessionFormation", back_populates="etudiants")
    student = relationship("Student")
    formation = relationship("Formation")
    payments = relationship(
        "StudentPayment",
        back_populates="enrollment",
        cascade="all, delete-orphan",
    )


class StudentPayment(Base):
    __tablename__ = "student_payments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    session_etudiant_id = Column(
        UUID(as_uuid=True),
        ForeignKey("session_etudiants.id", ondelete="CASCADE"),
        nullable=False,
    )
    amount = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_method = Column(String, nullable=False)
    reference_number = Column(String)
    note = Column(Text)
    recorded_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    enrollment = relationship("SessionEtudiant", back_populates="payments")
