from datetime import date
from typing import Optional
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import extract, func
from sqlalchemy.orm import Session

from backoffice.api.deps import PermissionChecker
from backoffice.core.database import get_db
from backoffice.models.auth import Profile
from backoffice.models.formations import (
    Formation,
    PaymentMethod,
    SessionEtudiant,
    SessionFormation,
    SessionStatus,
    Student,
    StudentPayment,
    StudentStatus,
)
from backoffice.schemas.formations import (
    BulkStatusUpdate,
    EnrollmentCreate,
    EnrollmentResponse,
    EnrollmentUpdate,
    PaymentCreate,
    PaymentResponse,
    SessionBase,
    SessionResponse,
    SessionSummary,
    StudentResponse,
)
from backoffice.services import enrollments as pricing

logger = logging.getLogger(__name__)

router = APIRouter()

SESSION_STATUSES = {s.value for s in SessionStatus}
BULK_STATUSES = (StudentStatus.valide.value, StudentStatus.abandonne.value)
PAYMENT_METHODS = {m.value for m in PaymentMethod}


def get_session_or_404(db: Session, session_id: uuid.UUID) -> SessionFormation:
    session = db.query(SessionFormation).filter(SessionFormation.id == session_id).first()
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def get_enrollment_or_404(
    db: Session, session_id: uuid.UUID, student_id: uuid.UUID, detail: str = "Inscription not found"
) -> SessionEtudiant:
    enrollment = (
        db.query(SessionEtudiant)
        .filter(
            SessionEtudiant.session_id == session_id,
            SessionEtudiant.student_id == student_id,
        )
        .first()
    )
    if not enrollment:
        raise HTTPException(status_code=404, detail=detail)
    return enrollment


def summarize(session: SessionFormation) -> SessionSummary:
    summary = SessionSummary.model_validate(session)
    summary.nombre_etudiants = len(session.etudiants)
    summary.total_paye = pricing.money(sum(pricing.money(e.montant_paye) for e in session.etudiants))
    summary.total_du = pricing.money(sum(pricing.money(e.montant_du) for e in session.etudiants))
    return summary


# --- Sessions ---


@router.get("/")
def list_sessions(
    corps_formation_id: Optional[uuid.UUID] = None,
    segment_id: Optional[uuid.UUID] = None,
    statut: Optional[str] = None,
    annee: Optional[int] = None,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.sessions.view_page")),
):
    query = db.query(SessionFormation)
    if corps_formation_id:
        query = query.filter(SessionFormation.corps_formation_id == corps_formation_id)
    if segment_id:
        query = query.filter(SessionFormation.segment_id == segment_id)
    if statut:
        query = query.filter(SessionFormation.statut == statut)
    if annee:
        query = query.filter(extract("year", SessionFormation.date_debut) == annee)

    sessions = query.order_by(
        SessionFormation.date_debut.desc().nulls_last(), SessionFormation.created_at.desc()
    ).all()
    return {"success": True, "sessions": [summarize(s) for s in sessions]}


@router.get("/{session_id}")
def get_session(
    session_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.sessions.view_page")),
):
    session = get_session_or_404(db, session_id)
    etudiants = []
    for enrollment in session.etudiants:
        row = EnrollmentResponse.model_validate(enrollment).model_dump()
        row["student"] = StudentResponse.model_validate(enrollment.student)
        row["formation_title"] = enrollment.formation.title if enrollment.formation else None
        etudiants.append(row)

    by_status = {}
    for enrollment in session.etudiants:
        by_status[enrollment.statut_paiement] = by_status.get(enrollment.statut_paiement, 0) + 1

    return {
        "success": True,
        "session": summarize(session),
        "etudiants": etudiants,
        "stats": {
            "places_restantes": max(0, (session.nombre_places or 0) - len(session.etudiants))
            if session.nombre_places
            else None,
            "par_statut_paiement": by_status,
        },
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_session(
    session_in: SessionBase,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.sessions.create")),
):
    if not session_in.titre or not session_in.titre.strip():
        raise HTTPException(status_code=400, detail="Le titre est obligatoire")
    data = session_in.model_dump()
    data["titre"] = data["titre"].strip()
    data["statut"] = data["statut"] or SessionStatus.planifiee.value
    if data["statut"] not in SESSION_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid session status")
    data["prix_total"] = data["prix_total"] or 0
    data["nombre_places"] = data["nombre_places"] or 0
    if data["date_debut"] and data["date_fin"] and data["date_fin"] < data["date_debut"]:
        raise HTTPException(status_code=400, detail="date_fin must be after date_debut")

    session = SessionFormation(**data)
    db.add(session)
    db.commit()
    db.refresh(session)
    return {
        "success": True,
        "session": SessionResponse.model_validate(session),
        "message": "Session created",
    }


@router.put("/{session_id}")
def update_session(
    session_id: uuid.UUID,
    session_in: SessionBase,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.sessions.update")),
):
    session = get_session_or_404(db, session_id)
    data = session_in.model_dump(exclude_unset=True)
    if "titre" in data and not (data["titre"] or "").strip():
        raise HTTPException(status_code=400, detail="Le titre est obligatoire")
    if "statut" in data and data["statut"] not in SESSION_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid session status")
    for key, value in data.items():
        setattr(session, key, value)
    db.commit()
    db.refresh(session)
    return {"success": True, "session": SessionResponse.model_validate(session)}


@router.delete("/{session_id}")
def delete_session(
    session_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.sessions.delete")),
):
    session = get_session_or_404(db, session_id)
    db.delete(session)
    db.commit()
    return {"success": True, "message": "Session deleted"}


# --- Enrollments ---


@router.post("/{session_id}/etudiants", status_code=status.HTTP_201_CREATED)
def enroll_student(
    session_id: uuid.UUID,
    enrollment_in: EnrollmentCreate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.sessions.add_student")),
):
    if not enrollment_in.student_id:
        raise HTTPException(status_code=400, detail="student_id is required")
    if not enrollment_in.formation_id:
        raise HTTPException(status_code=400, detail="formation_id is required")

    session = get_session_or_404(db, session_id)
    if not db.query(Student).filter(Student.id == enrollment_in.student_id).first():
        raise HTTPException(status_code=404, detail="Student not found")

    formation = db.query(Formation).filter(Formation.id == enrollment_in.formation_id).first()
    if not formation:
        raise HTTPException(status_code=404, detail="Formation not found")
    if session.corps_formation_id and formation.corps_formation_id != session.corps_formation_id:
        raise HTTPException(
            status_code=400,
            detail="The selected formation does not belong to this session's corps de formation",
        )

    existing = (
        db.query(SessionEtudiant)
        .filter(
            SessionEtudiant.session_id == session.id,
            SessionEtudiant.student_id == enrollment_in.student_id,
        )
        .first()
    )
    if existing:
        raise HTTPException(
            status_code=409, detail="The student is already enrolled in this session"
        )

    amounts = pricing.price_enrollment(
        enrollment_in.montant_total or formation.price,
        enrollment_in.discount_percentage,
        enrollment_in.montant_paye,
    )
    try:
        enrollment = SessionEtudiant(
            session_id=session.id,
            student_id=enrollment_in.student_id,
            formation_id=formation.id,
            numero_bon=enrollment_in.numero_bon,
            statut_paiement=pricing.payment_status(
                amounts["montant_paye"], amounts["montant_total"]
            )
            if amounts["montant_paye"]
            else "impaye",
            **amounts,
        )
        db.add(enrollment)
        db.commit()
        db.refresh(enrollment)
    except Exception as e:
        db.rollback()
        logger.exception("Enrollment failed in session %s", session_id)
        raise HTTPException(status_code=500, detail=f"Failed to enroll student: {str(e)}")

    return {
        "success": True,
        "inscription": EnrollmentResponse.model_validate(enrollment),
        "message": "Student added to the session",
    }


@router.put("/{session_id}/etudiants/bulk-status")
def bulk_update_status(
    session_id: uuid.UUID,
    payload: BulkStatusUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.sessions.update_student")),
):
    if not payload.student_ids:
        raise HTTPException(status_code=400, detail="student_ids must be a non-empty list")
    if payload.status not in BULK_STATUSES:
        raise HTTPException(status_code=400, detail='status must be "valide" or "abandonne"')
    get_session_or_404(db, session_id)

    enrollments = (
        db.query(SessionEtudiant)
        .filter(
            SessionEtudiant.session_id == session_id,
            SessionEtudiant.student_id.in_(payload.student_ids),
        )
        .all()
    )
    for enrollment in enrollments:
        enrollment.student_status = payload.status
    db.commit()

    return {
        "success": True,
        "updated_count": len(enrollments),
        "updated_ids": [e.student_id for e in enrollments],
        "message": f'{len(enrollments)} student(s) set to "{payload.status}"',
    }


@router.put("/{session_id}/etudiants/{student_id}")
def update_enrollment(
    session_id: uuid.UUID,
    student_id: uuid.UUID,
    payload: EnrollmentUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.sessions.update_student")),
):
    enrollment = get_enrollment_or_404(db, session_id, student_id)

    pricing.reprice_enrollment(
        enrollment,
        discount_percentage=payload.discount_percentage,
        montant_paye=payload.montant_paye,
    )
    if (
        payload.statut_paiement
        and payload.discount_percentage is None
        and payload.montant_paye is None
    ):
        enrollment.statut_paiement = payload.statut_paiement
    if payload.discount_reason is not None:
        enrollment.discount_reason = payload.discount_reason

    db.commit()
    db.refresh(enrollment)
    return {
        "success": True,
        "inscription": EnrollmentResponse.model_validate(enrollment),
        "message": "Inscription updated",
    }


@router.delete("/{session_id}/etudiants/{student_id}")
def remove_student(
    session_id: uuid.UUID,
    student_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.sessions.remove_student")),
):
    enrollment = get_enrollment_or_404(db, session_id, student_id)
    db.delete(enrollment)
    db.commit()
    return {"success": True, "message": "Student removed from the session"}


# --- Payments ---


@router.post(
    "/{session_id}/etudiants/{student_id}/paiements",
    status_code=status.HTTP_201_CREATED,
)
def record_payment(
    session_id: uuid.UUID,
    student_id: uuid.UUID,
    payment_in: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(PermissionChecker("formation.sessions.record_payment")),
):
    if payment_in.amount is None or payment_in.amount <= 0:
        raise HTTPException(status_code=400, detail="Payment amount must be greater than zero")
    if payment_in.payment_method not in PAYMENT_METHODS:
        raise HTTPException(status_code=400, detail="Invalid payment method")

    enrollment = get_enrollment_or_404(
        db, session_id, student_id, detail="Student not found in this session"
    )
    remaining = pricing.money(enrollment.montant_du)
    amount = pricing.money(payment_in.amount)
    if amount > remaining:
        raise HTTPException(
            status_code=400,
            detail=f"Payment amount ({amount:.2f} DH) exceeds the remaining balance ({remaining:.2f} DH)",
        )

    try:
        payment = StudentPayment(
            session_etudiant_id=enrollment.id,
            amount=amount,
            payment_date=payment_in.payment_date or date.today(),
            payment_method=payment_in.payment_method,
            reference_number=payment_in.reference_number,
            note=payment_in.note,
            recorded_by=current_user.id,
        )
        db.add(payment)
        pricing.apply_payment(enrollment, amount)
        db.commit()
        db.refresh(payment)
        db.refresh(enrollment)
    except Exception as e:
        db.rollback()
        logger.exception("Payment failed in session %s", session_id)
        raise HTTPException(status_code=500, detail=f"Failed to record payment: {str(e)}")

    logger.info("Payment of %.2f recorded on enrollment %s", amount, enrollment.id)
    return {
        "success": True,
        "payment": PaymentResponse.model_validate(payment),
        "updated_totals": pricing.totals(enrollment),
    }


@router.get("/{session_id}/etudiants/{student_id}/paiements")
def list_payments(
    session_id: uuid.UUID,
    student_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.sessions.view_page")),
):
    enrollment = get_enrollment_or_404(
        db, session_id, student_id, detail="Student not found in this session"
    )
    payments = (
        db.query(StudentPayment)
        .filter(StudentPayment.session_etudiant_id == enrollment.id)
        .order_by(StudentPayment.payment_date.desc(), StudentPayment.created_at.desc())
        .all()
    )
    return {
        "success": True,
        "payments": [PaymentResponse.model_validate(p) for p in payments],
        "totals": pricing.totals(enrollment),
    }


@router.delete("/{session_id}/etudiants/{student_id}/paiements/{payment_id}")
def delete_payment(
    session_id: uuid.UUID,
    student_id: uuid.UUID,
    payment_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.sessions.delete_payment")),
):
    enrollment = get_enrollment_or_404(
        db, session_id, student_id, detail="Student not found in this session"
    )
    payment = (
        db.query(StudentPayment)
        .filter(
            StudentPayment.id == payment_id,
            StudentPayment.session_etudiant_id == enrollment.id,
        )
        .first()
    )
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")

    amount = pricing.money(payment.amount)
    db.delete(payment)
    pricing.apply_payment(enrollment, -amount)
    db.commit()
    db.refresh(enrollment)
    return {
        "success": True,
        "message": "Payment cancelled",
        "updated_totals": pricing.totals(enrollment),
    }
