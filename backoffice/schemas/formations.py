from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from uuid import UUID


# --- Corps de formation ---


class CorpsFormationBase(BaseModel):
    name: str
    description: Optional[str] = None
    color: Optional[str] = "#3B82F6"
    icon: Optional[str] = None
    order_index: Optional[int] = 0


class CorpsFormationUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    order_index: Optional[int] = None


class CorpsFormationResponse(CorpsFormationBase):
    id: UUID
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# --- Formations ---


class FormationBase(BaseModel):
    title: str
    description: Optional[str] = None
    price: float = Field(default=0, ge=0)
    duration_hours: Optional[int] = None
    level: Optional[str] = None
    corps_formation_id: Optional[UUID] = None
    is_active: bool = True


class FormationUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    duration_hours: Optional[int] = None
    level: Optional[str] = None
    corps_formation_id: Optional[UUID] = None
    is_active: Optional[bool] = None


class FormationResponse(FormationBase):
    id: UUID
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FormationTemplateLink(BaseModel):
    template_id: UUID
    document_type: str = "certificat"
    is_default: bool = False


class FormationTemplateResponse(BaseModel):
    id: UUID
    formation_id: UUID
    template_id: UUID
    template_name: Optional[str] = None
    document_type: str
    is_default: bool
    position: int

    class Config:
        from_attributes = True


# --- Students ---


class StudentCreate(BaseModel):
    first_name: str
    last_name: str
    cin: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None


class StudentUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    cin: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None


class StudentResponse(StudentCreate):
    id: UUID
    full_name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# --- Sessions ---


class SessionBase(BaseModel):
    titre: Optional[str] = None
    description: Optional[str] = None
    date_debut: Optional[date] = None
    date_fin: Optional[date] = None
    ville: Optional[str] = None
    segment_id: Optional[UUID] = None
    corps_formation_id: Optional[UUID] = None
    statut: Optional[str] = None
    prix_total: Optional[float] = None
    nombre_places: Optional[int] = None


class SessionResponse(BaseModel):
    id: UUID
    titre: str
    description: Optional[str] = None
    date_debut: Optional[date] = None
    date_fin: Optional[date] = None
    ville: Optional[str] = None
    segment_id: Optional[UUID] = None
    corps_formation_id: Optional[UUID] = None
    statut: str
    prix_total: float
    nombre_places: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SessionSummary(SessionResponse):
    nombre_etudiants: int = 0
    total_paye: float = 0
    total_du: float = 0


class EnrollmentCreate(BaseModel):
    student_id: Optional[UUID] = None
    formation_id: Optional[UUID] = None
    montant_total: Optional[float] = None
    montant_paye: float = 0
    discount_percentage: float = Field(default=0, ge=0, le=100)
    numero_bon: Optional[str] = None


class EnrollmentUpdate(BaseModel):
    statut_paiement: Optional[str] = None
    montant_paye: Optional[float] = Field(default=None, ge=0)
    discount_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    discount_reason: Optional[str] = None


class EnrollmentResponse(BaseModel):
    id: UUID
    session_id: UUID
    student_id: UUID
    formation_id: UUID
    statut_paiement: str
    student_status: str
    formation_original_price: Optional[float] = None
    discount_percentage: float
    discount_amount: float
    discount_reason: Optional[str] = None
    montant_total: float
    montant_paye: float
    montant_du: float
    numero_bon: Optional[str] = None
    date_inscription: Optional[datetime] = None

    class Config:
        from_attributes = True


class BulkStatusUpdate(BaseModel):
    student_ids: Optional[List[UUID]] = None
    status: Optional[str] = None


class PaymentCreate(BaseModel):
    amount: Optional[float] = None
    payment_date: Optional[date] = None
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    note: Optional[str] = None


class PaymentResponse(BaseModel):
    id: UUID
    session_etudiant_id: UUID
    amount: float
    payment_date: date
    payment_method: str
    reference_number: Optional[str] = None
    note: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
