from typing import Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from backoffice.api.deps import PermissionChecker
from backoffice.core.database import get_db
from backoffice.models.auth import Profile
from backoffice.models.certificates import Certificate, CertificateTemplate, FormationTemplate
from backoffice.models.formations import CorpsFormation, Formation, SessionEtudiant
from backoffice.schemas.formations import (
    CorpsFormationBase,
    CorpsFormationResponse,
    CorpsFormationUpdate,
    FormationBase,
    FormationResponse,
    FormationTemplateLink,
    FormationTemplateResponse,
    FormationUpdate,
)
from backoffice.services import templates as template_links

router = APIRouter()
corps_router = APIRouter()


def get_formation_or_404(db: Session, formation_id: uuid.UUID) -> Formation:
    formation = db.query(Formation).filter(Formation.id == formation_id).first()
    if not formation:
        raise HTTPException(status_code=404, detail="Formation not found")
    return formation


# --- Corps de formation ---


@corps_router.get("/")
def list_corps(
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.corps.view_page")),
):
    counts = dict(
        db.query(Formation.corps_formation_id, func.count(Formation.id))
        .group_by(Formation.corps_formation_id)
        .all()
    )
    corps = db.query(CorpsFormation).order_by(CorpsFormation.order_index, CorpsFormation.name)
    return {
        "success": True,
        "corps": [
            dict(
                CorpsFormationResponse.model_validate(c).model_dump(),
                formations_count=counts.get(c.id, 0),
            )
            for c in corps
        ],
    }


@corps_router.get("/{corps_id}")
def get_corps(
    corps_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.corps.view_page")),
):
    corps = db.query(CorpsFormation).filter(CorpsFormation.id == corps_id).first()
    if not corps:
        raise HTTPException(status_code=404, detail="Corps de formation not found")
    return {
        "success": True,
        "corps": CorpsFormationResponse.model_validate(corps),
        "formations": [FormationResponse.model_validate(f) for f in corps.formations],
    }


@corps_router.post("/", status_code=status.HTTP_201_CREATED)
def create_corps(
    corps_in: CorpsFormationBase,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.corps.create")),
):
    name = corps_in.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Corps name is required")
    existing = (
        db.query(CorpsFormation)
        .filter(func.lower(CorpsFormation.name) == name.lower())
        .first()
    )
    if existing:
        raise HTTPException(
            status_code=409, detail="A corps de formation with this name already exists"
        )

    data = corps_in.model_dump()
    data["name"] = name
    corps = CorpsFormation(**data)
    db.add(corps)
    db.commit()
    db.refresh(corps)
    return {"success": True, "corps": CorpsFormationResponse.model_validate(corps)}


@corps_router.put("/{corps_id}")
def update_corps(
    corps_id: uuid.UUID,
    corps_in: CorpsFormationUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.corps.update")),
):
    corps = db.query(CorpsFormation).filter(CorpsFormation.id == corps_id).first()
    if not corps:
        raise HTTPException(status_code=404, detail="Corps de formation not found")

    data = corps_in.model_dump(exclude_unset=True)
    if "name" in data:
        name = (data["name"] or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="Corps name is required")
        duplicate = (
            db.query(CorpsFormation)
            .filter(
                func.lower(CorpsFormation.name) == name.lower(),
                CorpsFormation.id != corps.id,
            )
            .first()
        )
        if duplicate:
            raise HTTPException(
                status_code=409,
                detail="A corps de formation with this name already exists",
            )
        data["name"] = name
    for key, value in data.items():
        setattr(corps, key, value)
    db.commit()
    db.refresh(corps)
    return {"success": True, "corps": CorpsFormationResponse.model_validate(corps)}


@corps_router.delete("/{corps_id}")
def delete_corps(
    corps_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.corps.delete")),
):
    corps = db.query(CorpsFormation).filter(CorpsFormation.id == corps_id).first()
    if not corps:
        raise HTTPException(status_code=404, detail="Corps de formation not found")
    count = db.query(Formation).filter(Formation.corps_formation_id == corps.id).count()
    if count:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete: {count} formation(s) belong to this corps",
        )
    db.delete(corps)
    db.commit()
    return {"success": True, "message": "Corps de formation deleted"}


# --- Formations ---


@router.get("/")
def list_formations(
    corps_formation_id: Optional[uuid.UUID] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.formations.view_page")),
):
    query = db.query(Formation)
    if corps_formation_id:
        query = query.filter(Formation.corps_formation_id == corps_formation_id)
    if is_active is not None:
        query = query.filter(Formation.is_active.is_(is_active))
    formations = query.order_by(Formation.title).all()
    return {
        "success": True,
        "formations": [FormationResponse.model_validate(f) for f in formations],
    }


@router.get("/{formation_id}")
def get_formation(
    formation_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.formations.view_page")),
):
    formation = get_formation_or_404(db, formation_id)
    return {
        "success": True,
        "formation": FormationResponse.model_validate(formation),
        "templates": [
            FormationTemplateResponse.model_validate(link)
            for link in template_links.formation_links(db, formation.id)
        ],
    }


def _check_corps(db: Session, corps_id: Optional[uuid.UUID]) -> None:
    if corps_id and not db.query(CorpsFormation).filter(CorpsFormation.id == corps_id).first():
        raise HTTPException(status_code=404, detail="Corps de formation not found")


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_formation(
    formation_in: FormationBase,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.formations.create")),
):
    if not formation_in.title.strip():
        raise HTTPException(status_code=400, detail="Title is required")
    _check_corps(db, formation_in.corps_formation_id)
    formation = Formation(**formation_in.model_dump())
    db.add(formation)
    db.commit()
    db.refresh(formation)
    return {"success": True, "formation": FormationResponse.model_validate(formation)}


@router.put("/{formation_id}")
def update_formation(
    formation_id: uuid.UUID,
    formation_in: FormationUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.formations.update")),
):
    formation = get_formation_or_404(db, formation_id)
    data = formation_in.model_dump(exclude_unset=True)
    if "title" in data and not (data["title"] or "").strip():
        raise HTTPException(status_code=400, detail="Title is required")
    if "corps_formation_id" in data:
        _check_corps(db, data["corps_formation_id"])
    for key, value in data.items():
        setattr(formation, key, value)
    db.commit()
    db.refresh(formation)
    return {"success": True, "formation": FormationResponse.model_validate(formation)}


@router.delete("/{formation_id}")
def delete_formation(
    formation_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.formations.delete")),
):
    formation = get_formation_or_404(db, formation_id)
    enrollments = (
        db.query(SessionEtudiant).filter(SessionEtudiant.formation_id == formation.id).count()
    )
    certificates = (
        db.query(Certificate).filter(Certificate.formation_id == formation.id).count()
    )
    if enrollments or certificates:
        raise HTTPException(
            status_code=409,
            detail={
                "error": "Formation is still in use and cannot be deleted",
                "enrollments": enrollments,
                "certificates": certificates,
            },
        )
    db.delete(formation)
    db.commit()
    return {"success": True, "message": "Formation deleted"}


# --- Certificate templates attached to a formation ---


@router.get("/{formation_id}/templates")
def list_formation_templates(
    formation_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.formations.view_page")),
):
    get_formation_or_404(db, formation_id)
    return {
        "success": True,
        "templates": [
            FormationTemplateResponse.model_validate(link)
            for link in template_links.formation_links(db, formation_id)
        ],
    }


@router.post("/{formation_id}/templates", status_code=status.HTTP_201_CREATED)
def link_template(
    formation_id: uuid.UUID,
    payload: FormationTemplateLink,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.formations.update")),
):
    get_formation_or_404(db, formation_id)
    template = (
        db.query(CertificateTemplate)
        .filter(CertificateTemplate.id == payload.template_id)
        .first()
    )
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    existing = (
        db.query(FormationTemplate)
        .filter(
            FormationTemplate.formation_id == formation_id,
            FormationTemplate.template_id == payload.template_id,
        )
        .first()
    )
    if existing:
        raise HTTPException(
            status_code=409, detail="Template already linked to this formation"
        )

    link = template_links.add_link(
        db,
        formation_id,
        payload.template_id,
        document_type=payload.document_type,
        make_default=payload.is_default,
    )
    db.commit()
    db.refresh(link)
    return {"success": True, "link": FormationTemplateResponse.model_validate(link)}


def _get_link_or_404(db: Session, formation_id: uuid.UUID, template_id: uuid.UUID):
    link = (
        db.query(FormationTemplate)
        .filter(
            FormationTemplate.formation_id == formation_id,
            FormationTemplate.template_id == template_id,
        )
        .first()
    )
    if not link:
        raise HTTPException(status_code=404, detail="Template not linked to this formation")
    return link


@router.patch("/{formation_id}/templates/{template_id}/default")
def set_default_template(
    formation_id: uuid.UUID,
    template_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.formations.update")),
):
    link = _get_link_or_404(db, formation_id, template_id)
    template_links.set_default(db, link)
    db.commit()
    db.refresh(link)
    return {"success": True, "link": FormationTemplateResponse.model_validate(link)}


@router.delete("/{formation_id}/templates/{template_id}")
def unlink_template(
    formation_id: uuid.UUID,
    template_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.formations.update")),
):
    link = _get_link_or_404(db, formation_id, template_id)
    promoted = template_links.remove_link(db, link)
    db.commit()
    return {
        "success": True,
        "message": "Template unlinked",
        "new_default_template_id": promoted.template_id if promoted else None,
    }
