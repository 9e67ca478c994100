from datetime import datetime, timezone
from typing import Optional
import io
import logging
import math
import uuid

import pandas as pd
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from backoffice.api.deps import PermissionChecker, get_current_user
from backoffice.core.database import get_db
from backoffice.models.auth import Profile
from backoffice.models.prospects import Prospect, ProspectCallHistory, Segment
from backoffice.schemas.prospects import (
    CallResponse,
    EndCall,
    ProspectCreate,
    ProspectResponse,
    ProspectUpdate,
)
from backoffice.services import prospects as leads

logger = logging.getLogger(__name__)

router = APIRouter()

IMPORT_COLUMNS = ("nom", "prenom", "cin", "ville")


def get_prospect_or_404(db: Session, prospect_id: uuid.UUID) -> Prospect:
    prospect = db.query(Prospect).filter(Prospect.id == prospect_id).first()
    if not prospect:
        raise HTTPException(status_code=404, detail="Prospect not found")
    return prospect


def get_segment_or_404(db: Session, segment_id: uuid.UUID) -> Segment:
    segment = db.query(Segment).filter(Segment.id == segment_id).first()
    if not segment:
        raise HTTPException(status_code=404, detail="Segment not found")
    return segment


@router.get("/country-codes")
def list_country_codes(_: Profile = Depends(get_current_user)):
    return {
        "success": True,
        "countries": [
            {"country_code": code, "country": country}
            for code, country in sorted(leads.COUNTRY_CODES.items(), key=lambda item: item[1])
        ],
    }


# --- Cleaning ---


@router.get("/cleaning/stats")
def get_cleaning_stats(
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("commercialisation.prospects.clean")),
):
    return {"success": True, **leads.cleaning_stats(db)}


@router.get("/cleaning/to-delete")
def list_prospects_to_delete(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("commercialisation.prospects.clean")),
):
    """Prospects the last cleaning analysis flagged for deletion."""
    query = db.query(Prospect).filter(Prospect.decision_nettoyage == "supprimer")
    total = query.count()
    prospects = query.order_by(Prospect.created_at).offset(offset).limit(limit).all()
    return {
        "success": True,
        "total": total,
        "prospects": [ProspectResponse.model_validate(p) for p in prospects],
    }


@router.post("/batch-clean")
def batch_clean(
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("commercialisation.prospects.clean")),
):
    stats = leads.run_cleaning_batch(db)
    return {
        "success": True,
        "message": "Analysis complete; prospects are never deleted automatically",
        "clean_stats": stats,
        "deleted": 0,
    }


# --- Import ---


@router.post("/import")
async def import_prospects(
    file: UploadFile = File(...),
    segment_id: uuid.UUID = Form(...),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(PermissionChecker("commercialisation.prospects.import")),
):
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files allowed")
    get_segment_or_404(db, segment_id)

    content = await file.read()
    try:
        df = pd.read_csv(io.BytesIO(content), dtype=str)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=400, detail=f"Unreadable CSV file: {str(e)}")
    df.columns = [str(c).strip().lower() for c in df.columns]
    if "phone" not in df.columns:
        raise HTTPException(status_code=400, detail='The CSV file needs a "phone" column')
    df = df.where(pd.notnull(df), None)

    report = {"created": 0, "reinjected": 0, "duplicates": 0, "errors": []}
    seen = set()
    for index, row in df.iterrows():
        line = index + 2
        try:
            phone = leads.normalize_phone(row.get("phone"))
        except ValueError as e:
            report["errors"].append({"line": line, "phone": row.get("phone"), "error": str(e)})
            continue
        if phone["phone_international"] in seen:
            report["duplicates"] += 1
            continue
        seen.add(phone["phone_international"])

        data = {c: (row.get(c) or "").strip() or None for c in IMPORT_COLUMNS}
        action, _ = leads.handle_duplicate_or_reinject(
            db, phone["phone_international"], segment_id, current_user.id, data
        )
        if action == "duplicate":
            report["duplicates"] += 1
            continue
        if action == "reinjected":
            report["reinjected"] += 1
            continue
        db.add(
            Prospect(
                phone_raw=str(row.get("phone")),
                segment_id=segment_id,
                date_injection=datetime.now(timezone.utc),
                created_by=current_user.id,
                **phone,
                **data,
            )
        )
        report["created"] += 1

    db.commit()
    logger.info(
        "Prospect import: %d created, %d reinjected, %d duplicate(s), %d error(s)",
        report["created"],
        report["reinjected"],
        report["duplicates"],
        len(report["errors"]),
    )
    return {"success": True, **report}


# --- Prospects ---


@router.get("/")
def list_prospects(
    segment_id: Optional[uuid.UUID] = None,
    statut_contact: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("commercialisation.prospects.view_page")),
):
    query = db.query(Prospect)
    if segment_id:
        query = query.filter(Prospect.segment_id == segment_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Prospect.nom.ilike(pattern),
                Prospect.prenom.ilike(pattern),
                Prospect.phone_international.ilike(pattern),
                Prospect.cin.ilike(pattern),
            )
        )

    by_status = dict(
        query.with_entities(Prospect.statut_contact, func.count(Prospect.id))
        .group_by(Prospect.statut_contact)
        .all()
    )
    if statut_contact:
        query = query.filter(Prospect.statut_contact == statut_contact)

    total = query.count()
    prospects = (
        query.order_by(Prospect.date_injection.desc().nulls_last(), Prospect.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "success": True,
        "prospects": [ProspectResponse.model_validate(p) for p in prospects],
        "stats": {"total": sum(by_status.values()), "by_status": by_status},
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if total else 0,
        },
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_prospect(
    prospect_in: ProspectCreate,
    response: Response,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(PermissionChecker("commercialisation.prospects.create")),
):
    if not prospect_in.segment_id:
        raise HTTPException(status_code=400, detail="segment_id is required")
    try:
        phone = leads.normalize_phone(prospect_in.phone)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    get_segment_or_404(db, prospect_in.segment_id)

    data = prospect_in.model_dump(exclude={"phone", "segment_id"})
    action, existing = leads.handle_duplicate_or_reinject(
        db, phone["phone_international"], prospect_in.segment_id, current_user.id, data
    )
    if action == "duplicate":
        raise HTTPException(
            status_code=409,
            detail={
                "error": "This prospect already exists in the segment",
                "prospect": ProspectResponse.model_validate(existing).model_dump(),
            },
        )
    if action == "reinjected":
        db.commit()
        db.refresh(existing)
        response.status_code = status.HTTP_200_OK
        return {
            "success": True,
            "reinjected": True,
            "message": "Existing prospect reinjected",
            "prospect": ProspectResponse.model_validate(existing),
        }

    prospect = Prospect(
        phone_raw=prospect_in.phone,
        segment_id=prospect_in.segment_id,
        date_injection=datetime.now(timezone.utc),
        created_by=current_user.id,
        **phone,
        **{k: v for k, v in data.items() if v is not None},
    )
    db.add(prospect)
    db.commit()
    db.refresh(prospect)
    return {
        "success": True,
        "reinjected": False,
        "prospect": ProspectResponse.model_validate(prospect),
    }


@router.get("/{prospect_id}")
def get_prospect(
    prospect_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("commercialisation.prospects.view_page")),
):
    prospect = get_prospect_or_404(db, prospect_id)
    return {
        "success": True,
        "prospect": ProspectResponse.model_validate(prospect),
        "calls": [CallResponse.model_validate(c) for c in reversed(prospect.calls)],
    }


@router.put("/{prospect_id}")
def update_prospect(
    prospect_id: uuid.UUID,
    prospect_in: ProspectUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("commercialisation.prospects.update")),
):
    prospect = get_prospect_or_404(db, prospect_id)
    data = prospect_in.model_dump(exclude_unset=True)
    if "statut_contact" in data and not data["statut_contact"]:
        raise HTTPException(status_code=400, detail="statut_contact cannot be empty")
    if data.get("segment_id"):
        get_segment_or_404(db, data["segment_id"])
    for key, value in data.items():
        setattr(prospect, key, value)
    db.commit()
    db.refresh(prospect)
    return {"success": True, "prospect": ProspectResponse.model_validate(prospect)}


@router.delete("/{prospect_id}")
def delete_prospect(
    prospect_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("commercialisation.prospects.delete")),
):
    prospect = get_prospect_or_404(db, prospect_id)
    db.delete(prospect)
    db.commit()
    return {"success": True, "message": "Prospect deleted"}


# --- Calls ---


@router.post("/{prospect_id}/start-call", status_code=status.HTTP_201_CREATED)
def start_call(
    prospect_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(PermissionChecker("commercialisation.prospects.call")),
):
    prospect = get_prospect_or_404(db, prospect_id)
    call = ProspectCallHistory(
        prospect_id=prospect.id,
        user_id=current_user.id,
        call_start=datetime.now(timezone.utc),
        status_before=prospect.statut_contact,
    )
    db.add(call)
    db.commit()
    db.refresh(call)
    return {"success": True, "call_id": call.id, "call": CallResponse.model_validate(call)}


@router.post("/{prospect_id}/end-call")
def end_call(
    prospect_id: uuid.UUID,
    payload: EndCall,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(PermissionChecker("commercialisation.prospects.call")),
):
    if not payload.statut_contact:
        raise HTTPException(status_code=400, detail="statut_contact is required")
    prospect = get_prospect_or_404(db, prospect_id)

    query = db.query(ProspectCallHistory).filter(ProspectCallHistory.prospect_id == prospect.id)
    if payload.call_id:
        query = query.filter(ProspectCallHistory.id == payload.call_id)
    else:
        query = query.filter(ProspectCallHistory.call_end.is_(None))
    call = query.order_by(ProspectCallHistory.call_start.desc()).first()
    if not call:
        raise HTTPException(status_code=404, detail="Call not found")

    now = datetime.now(timezone.utc)
    duration = int((now - leads.as_utc(call.call_start)).total_seconds()) if call.call_start else 0
    call.call_end = now
    call.duration_seconds = max(0, duration)
    call.status_after = payload.statut_contact
    call.commentaire = payload.commentaire

    notes = []
    if payload.ville and payload.ville != prospect.ville:
        if prospect.ville:
            notes.append(f"Ville: {prospect.ville} -> {payload.ville}")
        prospect.ville = payload.ville
    if payload.date_rdv and prospect.date_rdv:
        notes.append(f"Ancien RDV: {leads.as_utc(prospect.date_rdv):%d/%m/%Y %H:%M}")
    prospect.date_rdv = payload.date_rdv
    prospect.statut_contact = payload.statut_contact
    # Earlier call notes are kept; each call appends below them
    lines = [prospect.commentaire, payload.commentaire] + notes
    prospect.commentaire = "\n".join(line for line in lines if line) or None

    db.commit()
    db.refresh(prospect)
    return {
        "success": True,
        "message": "Call ended",
        "duration_seconds": call.duration_seconds,
        "prospect": ProspectResponse.model_validate(prospect),
    }


@router.post("/{prospect_id}/reinject")
def reinject_prospect(
    prospect_id: uuid.UUID,
    force: bool = False,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(PermissionChecker("commercialisation.prospects.reinject")),
):
    prospect = get_prospect_or_404(db, prospect_id)
    if not force and not leads.should_reinject(prospect):
        raise HTTPException(
            status_code=400,
            detail="This prospect is not eligible for reinjection (use force to override)",
        )
    leads.reinject(db, prospect, current_user.id)
    db.commit()
    db.refresh(prospect)
    return {
        "success": True,
        "message": "Prospect reinjected",
        "prospect": ProspectResponse.model_validate(prospect),
    }
