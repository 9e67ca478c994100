from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from uuid import UUID


class ProspectCreate(BaseModel):
    phone: Optional[str] = None
    segment_id: Optional[UUID] = None
    nom: Optional[str] = None
    prenom: Optional[str] = None
    cin: Optional[str] = None
    ville: Optional[str] = None
    commentaire: Optional[str] = None
    assigned_to: Optional[UUID] = None


class ProspectUpdate(BaseModel):
    nom: Optional[str] = None
    prenom: Optional[str] = None
    cin: Optional[str] = None
    ville: Optional[str] = None
    statut_contact: Optional[str] = None
    date_rdv: Optional[datetime] = None
    commentaire: Optional[str] = None
    assigned_to: Optional[UUID] = None
    segment_id: Optional[UUID] = None


class EndCall(BaseModel):
    call_id: Optional[UUID] = None
    statut_contact: Optional[str] = None
    commentaire: Optional[str] = None
    date_rdv: Optional[datetime] = None
    ville: Optional[str] = None


class ProspectResponse(BaseModel):
    id: UUID
    phone_raw: Optional[str] = None
    phone_international: str
    country_code: Optional[str] = None
    country: Optional[str] = None
    nom: Optional[str] = None
    prenom: Optional[str] = None
    cin: Optional[str] = None
    segment_id: UUID
    segment_name: Optional[str] = None
    ville: Optional[str] = None
    statut_contact: str
    date_injection: Optional[datetime] = None
    date_rdv: Optional[datetime] = None
    decision_nettoyage: Optional[str] = None
    commentaire: Optional[str] = None
    assigned_to: Optional[UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CallResponse(BaseModel):
    id: UUID
    prospect_id: UUID
    user_id: Optional[UUID] = None
    call_start: Optional[datetime] = None
    call_end: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    status_before: Optional[str] = None
    status_after: Optional[str] = None
    commentaire: Optional[str] = None

    class Config:
        from_attributes = True


class SegmentBase(BaseModel):
    name: Optional[str] = None
    color: Optional[str] = None


class SegmentResponse(BaseModel):
    id: UUID
    name: str
    color: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
