from datetime import datetime
from typing import Optional
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backoffice.api.deps import PermissionChecker
from backoffice.core.database import get_db
from backoffice.models.auth import Profile
from backoffice.models.certificates import Certificate, CertificateTemplate
from backoffice.models.formations import Formation, Student
from backoffice.schemas.certificates import (
    CertificateGenerate,
    CertificateMetadata,
    CertificateResponse,
)
from backoffice.services.templates import get_default_link

logger = logging.getLogger(__name__)

router = APIRouter()


def generate_certificate_number(db: Session) -> str:
    while True:
        number = f"CERT-{datetime.now():%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"
        if not db.query(Certificate).filter(Certificate.certificate_number == number).first():
            return number


def certificate_payload(certificate: Certificate) -> dict:
    data = CertificateResponse.model_validate(certificate).model_dump()
    data["student_name"] = certificate.student.full_name if certificate.student else None
    data["formation_title"] = certificate.formation.title if certificate.formation else None
    data["template_name"] = certificate.template.name if certificate.template else None
    return data


@router.post("/generate", status_code=status.HTTP_201_CREATED)
def generate_certificate(
    payload: CertificateGenerate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.certificates.generate")),
):
    if not payload.student_id or not payload.formation_id or not payload.completion_date:
        raise HTTPException(
            status_code=400,
            detail="student_id, formation_id and completion_date are required",
        )
    if not db.query(Student).filter(Student.id == payload.student_id).first():
        raise HTTPException(status_code=404, detail="Student not found")
    if not db.query(Formation).filter(Formation.id == payload.formation_id).first():
        raise HTTPException(status_code=404, detail="Formation not found")

    existing = (
        db.query(Certificate)
        .filter(
            Certificate.student_id == payload.student_id,
            Certificate.formation_id == payload.formation_id,
        )
        .first()
    )
    if existing:
        raise HTTPException(
            status_code=409,
            detail={
                "error": "A certificate already exists for this student and formation",
                "certificate_id": str(existing.id),
            },
        )

    template_id = payload.template_id
    if template_id:
        if not db.query(CertificateTemplate).filter(CertificateTemplate.id == template_id).first():
            raise HTTPException(status_code=404, detail="Template not found")
    else:
        link = get_default_link(db, payload.formation_id)
        if not link:
            raise HTTPException(
                status_code=400,
                detail="No template specified and the formation has no default template",
            )
        template_id = link.template_id

    try:
        certificate = Certificate(
            student_id=payload.student_id,
            formation_id=payload.formation_id,
            template_id=template_id,
            certificate_number=generate_certificate_number(db),
            completion_date=payload.completion_date,
            grade=payload.grade,
            metadata_=payload.metadata or {},
        )
        db.add(certificate)
        db.commit()
        db.refresh(certificate)
    except Exception as e:
        db.rollback()
        logger.exception("Certificate generation failed")
        raise HTTPException(status_code=500, detail=f"Failed to generate certificate: {str(e)}")

    logger.info("Certificate %s issued", certificate.certificate_number)
    return {"success": True, "certificate": certificate_payload(certificate)}


@router.get("/")
def list_certificates(
    formation_id: Optional[uuid.UUID] = None,
    student_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.certificates.view_page")),
):
    query = db.query(Certificate)
    if formation_id:
        query = query.filter(Certificate.formation_id == formation_id)
    if student_id:
        query = query.filter(Certificate.student_id == student_id)
    certificates = query.order_by(Certificate.issued_at.desc()).all()
    return {"success": True, "certificates": [certificate_payload(c) for c in certificates]}


@router.get("/student/{student_id}")
def list_student_certificates(
    student_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.certificates.view_page")),
):
    if not db.query(Student).filter(Student.id == student_id).first():
        raise HTTPException(status_code=404, detail="Student not found")
    certificates = (
        db.query(Certificate)
        .filter(Certificate.student_id == student_id)
        .order_by(Certificate.issued_at.desc())
        .all()
    )
    return {"success": True, "certificates": [certificate_payload(c) for c in certificates]}


# Public: no token required
@router.get("/verify/{certificate_number}")
def verify_certificate(certificate_number: str, db: Session = Depends(get_db)):
    certificate = (
        db.query(Certificate)
        .filter(Certificate.certificate_number == certificate_number)
        .first()
    )
    if not certificate:
        raise HTTPException(
            status_code=404, detail={"error": "Certificate not found", "valid": False}
        )
    return {
        "success": True,
        "valid": True,
        "certificate": {
            "certificate_number": certificate.certificate_number,
            "student_name": certificate.student.full_name,
            "formation_title": certificate.formation.title,
            "completion_date": certificate.completion_date,
            "grade": certificate.grade,
            "issued_at": certificate.issued_at,
        },
    }


@router.get("/{certificate_id}")
def get_certificate(
    certificate_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.certificates.view_page")),
):
    certificate = db.query(Certificate).filter(Certificate.id == certificate_id).first()
    if not certificate:
        raise HTTPException(status_code=404, detail="Certificate not found")
    return {"success": True, "certificate": certificate_payload(certificate)}


@router.delete("/{certificate_id}")
def delete_certificate(
    certificate_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.certificates.delete")),
):
    certificate = db.query(Certificate).filter(Certificate.id == certificate_id).first()
    if not certificate:
        raise HTTPException(status_code=404, detail="Certificate not found")
    db.delete(certificate)
    db.commit()
    return {"success": True, "message": "Certificate deleted"}


@router.patch("/{certificate_id}/metadata")
def update_certificate_metadata(
    certificate_id: uuid.UUID,
    payload: CertificateMetadata,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.certificates.update")),
):
    if payload.metadata is None:
        raise HTTPException(status_code=400, detail="metadata is required")
    certificate = db.query(Certificate).filter(Certificate.id == certificate_id).first()
    if not certificate:
        raise HTTPException(status_code=404, detail="Certificate not found")
    certificate.metadata_ = payload.metadata
    db.commit()
    db.refresh(certificate)
    return {"success": True, "certificate": certificate_payload(certificate)}
