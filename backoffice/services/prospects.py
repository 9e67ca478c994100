"""Phone normalization, reinjection and cleaning of prospects.

A phone number may appear once per segment. Re-submitting a number that
already exists in the segment either reinjects the old lead (when it is
worn out) or is rejected as a duplicate.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
import re
import uuid

from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.models.prospects import Prospect, ProspectCallHistory

logger = logging.getLogger(__name__)

NOT_CONTACTED = "non contacté"
REINJECTION = "réinjection"
STALE_STATUSES = {
    "contacté sans rdv",
    "contacté sans reponse",
    "contacté sans réponse",
    "boîte vocale",
    "boite vocale",
    "à recontacter",
    "a recontacter",
}
NOT_INTERESTED = "non intéressé"
NOT_INTERESTED_CLEAN_DAYS = 30

MOROCCO_CODE = "212"
COUNTRY_CODES = {
    "212": "Maroc",
    "213": "Algérie",
    "216": "Tunisie",
    "33": "France",
    "34": "Espagne",
    "32": "Belgique",
    "39": "Italie",
    "49": "Allemagne",
    "44": "Royaume-Uni",
    "1": "USA/Canada",
}
SEPARATORS = re.compile(r"[\s\-\.\(\)/]")


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def normalize_phone(raw: Optional[str]) -> dict:
    """Return ``phone_international``, ``country_code`` and ``country``.

    Raises ValueError with the reason when the number cannot be used.
    """
    if not raw or not str(raw).strip():
        raise ValueError("Phone number is required")
    phone = SEPARATORS.sub("", str(raw).strip())
    if phone.startswith("00"):
        phone = "+" + phone[2:]

    if phone.startswith("+"):
        digits = phone[1:]
        if not digits.isdigit():
            raise ValueError(f"Invalid characters in phone number: {raw}")
        if digits.startswith(MOROCCO_CODE):
            national = digits[len(MOROCCO_CODE):]
            if national.startswith("0"):
                national = national[1:]
            if len(national) != 9:
                raise ValueError("A Moroccan number must have 9 digits after +212")
            return {
                "phone_international": f"+{MOROCCO_CODE}{national}",
                "country_code": MOROCCO_CODE,
                "country": COUNTRY_CODES[MOROCCO_CODE],
            }
        if not 8 <= len(digits) <= 15:
            raise ValueError("An international number must have between 8 and 15 digits")
        code = next(
            (c for c in sorted(COUNTRY_CODES, key=len, reverse=True) if digits.startswith(c)),
            None,
        )
        return {
            "phone_international": f"+{digits}",
            "country_code": code,
            "country": COUNTRY_CODES.get(code),
        }

    if not phone.isdigit():
        raise ValueError(f"Invalid characters in phone number: {raw}")
    if len(phone) == 10 and phone.startswith("0"):
        return {
            "phone_international": f"+{MOROCCO_CODE}{phone[1:]}",
            "country_code": MOROCCO_CODE,
            "country": COUNTRY_CODES[MOROCCO_CODE],
        }
    if len(phone) == 12 and phone.startswith(MOROCCO_CODE):
        return {
            "phone_international": f"+{phone}",
            "country_code": MOROCCO_CODE,
            "country": COUNTRY_CODES[MOROCCO_CODE],
        }
    raise ValueError("Unrecognized phone format; use 0XXXXXXXXX or an international prefix")


def should_reinject(prospect: Optional[Prospect], now: Optional[datetime] = None) -> bool:
    if prospect is None:
        return False
    now = as_utc(now) or datetime.now(timezone.utc)
    if (prospect.statut_contact or "").lower() in STALE_STATUSES:
        return True
    date_rdv = as_utc(prospect.date_rdv)
    if date_rdv and date_rdv < now - timedelta(days=settings.REINJECT_RDV_DAYS):
        return True
    date_injection = as_utc(prospect.date_injection)
    if date_injection and date_injection < now - timedelta(days=settings.REINJECT_INJECTION_DAYS):
        return True
    return False


def reinject(db: Session, prospect: Prospect, user_id: Optional[uuid.UUID]) -> Prospect:
    now = datetime.now(timezone.utc)
    prospect.date_injection = now
    prospect.date_rdv = None
    prospect.statut_contact = NOT_CONTACTED
    prospect.decision_nettoyage = "laisser"
    db.add(
        ProspectCallHistory(
            prospect_id=prospect.id,
            user_id=user_id,
            call_start=now,
            call_end=now,
            duration_seconds=0,
            status_before=REINJECTION,
            status_after=NOT_CONTACTED,
            commentaire="Prospect réinjecté",
        )
    )
    logger.info("Prospect %s reinjected by %s", prospect.id, user_id)
    return prospect


def handle_duplicate_or_reinject(
    db: Session,
    phone_international: str,
    segment_id: uuid.UUID,
    user_id: Optional[uuid.UUID],
    data: Optional[dict] = None,
):
    """Returns ``(action, prospect)`` with action in created / reinjected / duplicate."""
    existing = (
        db.query(Prospect)
        .filter(
            Prospect.phone_international == phone_international,
            Prospect.segment_id == segment_id,
        )
        .first()
    )
    if existing is None:
        return "created", None
    if not should_reinject(existing):
        return "duplicate", existing

    reinject(db, existing, user_id)
    for field in ("nom", "prenom", "cin", "ville"):
        if data and data.get(field):
            setattr(existing, field, data[field])
    return "reinjected", existing


def cleaning_decision(prospect: Prospect, now: Optional[datetime] = None) -> str:
    now = as_utc(now) or datetime.now(timezone.utc)
    try:
        normalize_phone(prospect.phone_international or prospect.phone_raw)
    except ValueError:
        return "supprimer"
    injected = as_utc(prospect.date_injection) or as_utc(prospect.created_at)
    if (
        (prospect.statut_contact or "").lower() == NOT_INTERESTED
        and injected
        and injected < now - timedelta(days=NOT_INTERESTED_CLEAN_DAYS)
    ):
        return "supprimer"
    return "laisser"


def run_cleaning_batch(db: Session) -> dict:
    """Recompute ``decision_nettoyage`` for every prospect. Nothing is deleted."""
    counts = {"laisser": 0, "supprimer": 0}
    now = datetime.now(timezone.utc)
    for prospect in db.query(Prospect).all():
        decision = cleaning_decision(prospect, now)
        prospect.decision_nettoyage = decision
        counts[decision] += 1
    db.commit()
    logger.info("Cleaning analysis: %s", counts)
    return {"total": sum(counts.values()), **counts}


def cleaning_stats(db: Session) -> dict:
    by_decision = {}
    by_status = {}
    for decision, statut in db.query(Prospect.decision_nettoyage, Prospect.statut_contact).all():
        key = decision or "non_analysé"
        by_decision[key] = by_decision.get(key, 0) + 1
        by_status[statut] = by_status.get(statut, 0) + 1
    return {
        "total": sum(by_decision.values()),
        "by_decision": by_decision,
        "by_status": by_status,
    }
