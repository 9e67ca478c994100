"""Prospect segments (commercial campaigns a prospect is injected into)."""
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from backoffice.api.deps import PermissionChecker
from backoffice.core.database import get_db
from backoffice.models.auth import Profile
from backoffice.models.prospects import Prospect, Segment
from backoffice.schemas.prospects import SegmentBase, SegmentResponse

router = APIRouter()

DEFAULT_COLOR = "#3B82F6"


def get_segment_or_404(db: Session, segment_id: uuid.UUID) -> Segment:
    segment = db.query(Segment).filter(Segment.id == segment_id).first()
    if not segment:
        raise HTTPException(status_code=404, detail="Segment not found")
    return segment


def check_unique_name(db: Session, name: str, exclude_id=None) -> None:
    query = db.query(Segment).filter(func.lower(Segment.name) == name.lower())
    if exclude_id:
        query = query.filter(Segment.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=409, detail="A segment with this name already exists")


@router.get("/")
def list_segments(
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("commercialisation.segments.view_page")),
):
    counts = dict(
        db.query(Prospect.segment_id, func.count(Prospect.id)).group_by(Prospect.segment_id).all()
    )
    segments = db.query(Segment).order_by(Segment.name).all()
    return {
        "success": True,
        "segments": [
            dict(
                SegmentResponse.model_validate(s).model_dump(),
                prospects_count=counts.get(s.id, 0),
            )
            for s in segments
        ],
    }


@router.get("/{segment_id}")
def get_segment(
    segment_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("commercialisation.segments.view_page")),
):
    segment = get_segment_or_404(db, segment_id)
    return {"success": True, "segment": SegmentResponse.model_validate(segment)}


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_segment(
    segment_in: SegmentBase,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("commercialisation.segments.create")),
):
    name = (segment_in.name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Segment name is required")
    check_unique_name(db, name)

    segment = Segment(name=name, color=segment_in.color or DEFAULT_COLOR)
    db.add(segment)
    db.commit()
    db.refresh(segment)
    return {"success": True, "segment": SegmentResponse.model_validate(segment)}


@router.put("/{segment_id}")
def update_segment(
    segment_id: uuid.UUID,
    segment_in: SegmentBase,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("commercialisation.segments.update")),
):
    segment = get_segment_or_404(db, segment_id)
    data = segment_in.model_dump(exclude_unset=True)
    if "name" in data:
        name = (data["name"] or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="Segment name is required")
        check_unique_name(db, name, exclude_id=segment.id)
        segment.name = name
    if data.get("color"):
        segment.color = data["color"]
    db.commit()
    db.refresh(segment)
    return {"success": True, "segment": SegmentResponse.model_validate(segment)}


@router.delete("/{segment_id}")
def delete_segment(
    segment_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("commercialisation.segments.delete")),
):
    segment = get_segment_or_404(db, segment_id)
    count = db.query(Prospect).filter(Prospect.segment_id == segment.id).count()
    if count:
        raise HTTPException(
            status_code=400,
            detail={
                "error": f"Cannot delete: {count} prospect(s) belong to this segment",
                "prospect_count": count,
            },
        )
    db.delete(segment)
    db.commit()
    return {"success": True, "message": "Segment deleted"}
