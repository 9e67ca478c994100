"""Formation <-> certificate template links.

A formation with at least one linked template has exactly one default
link. Removing the default promotes the remaining link with the lowest
position.
"""
import logging
import uuid
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from backoffice.models.certificates import FormationTemplate

logger = logging.getLogger(__name__)


def formation_links(db: Session, formation_id: uuid.UUID) -> List[FormationTemplate]:
    return (
        db.query(FormationTemplate)
        .filter(FormationTemplate.formation_id == formation_id)
        .order_by(FormationTemplate.position, FormationTemplate.created_at)
        .all()
    )


def get_default_link(db: Session, formation_id: uuid.UUID) -> Optional[FormationTemplate]:
    return (
        db.query(FormationTemplate)
        .filter(
            FormationTemplate.formation_id == formation_id,
            FormationTemplate.is_default.is_(True),
        )
        .first()
    )


def set_default(db: Session, link: FormationTemplate) -> None:
    db.query(FormationTemplate).filter(
        FormationTemplate.formation_id == link.formation_id,
        FormationTemplate.id != link.id,
    ).update({FormationTemplate.is_default: False}, synchronize_session="fetch")
    link.is_default = True


def add_link(
    db: Session,
    formation_id: uuid.UUID,
    template_id: uuid.UUID,
    document_type: str = "certificat",
    make_default: bool = False,
) -> FormationTemplate:
    last_position = (
        db.query(func.max(FormationTemplate.position))
        .filter(FormationTemplate.formation_id == formation_id)
        .scalar()
    )
    link = FormationTemplate(
        formation_id=formation_id,
        template_id=template_id,
        document_type=document_type,
        position=0 if last_position is None else last_position + 1,
        is_default=False,
    )
    db.add(link)
    db.flush()
    if make_default or last_position is None:
        set_default(db, link)
    return link


def promote_next_default(db: Session, formation_id: uuid.UUID) -> Optional[FormationTemplate]:
    """Make the first remaining link the default if the formation has none."""
    if get_default_link(db, formation_id):
        return None
    remaining = formation_links(db, formation_id)
    if not remaining:
        return None
    remaining[0].is_default = True
    logger.info(
        "Template %s promoted to default for formation %s",
        remaining[0].template_id,
        formation_id,
    )
    return remaining[0]


def remove_link(db: Session, link: FormationTemplate) -> Optional[FormationTemplate]:
    formation_id = link.formation_id
    db.delete(link)
    db.flush()
    return promote_next_default(db, formation_id)


def detach_template(db: Session, template_id: uuid.UUID) -> int:
    """Remove every link to a template, promoting defaults where needed."""
    links = (
        db.query(FormationTemplate)
        .filter(FormationTemplate.template_id == template_id)
        .all()
    )
    for link in links:
        remove_link(db, link)
    return len(links)
