import logging
import re
from typing import Iterable

from sqlalchemy.orm import Session

from footcare_admin.db.models import Clinic

logger = logging.getLogger(__name__)

BRAND_WORDS = ["footcare", "foot care", "clinic", "clinics"]


def normalize_clinic_text(value: str | None) -> str:
    t = (value or "").lower()
    t = re.sub(r"[^a-z0-9 ]+", " ", t)
    for word in BRAND_WORDS:
        t = re.sub(rf"\b{word}\b", " ", t)
    return " ".join(t.split())


def match_clinic(raw: str, clinics: Iterable[Clinic]) -> Clinic | None:
    clinics = list(clinics)
    value = (raw or "").strip()
    if not value:
        return None

    if value.isdigit():
        for clinic in clinics:
            if clinic.id == int(value):
                return clinic

    wanted = normalize_clinic_text(value)
    if not wanted:
        return None

    names = [(clinic, normalize_clinic_text(clinic.name)) for clinic in clinics]
    cities = [(clinic, normalize_clinic_text(clinic.city)) for clinic in clinics]

    # Exact beats containment, and names beat cities (several clinics share a city).
    for keyed in (names, cities):
        for clinic, key in keyed:
            if key and key == wanted:
                return clinic
    for keyed in (names, cities):
        for clinic, key in keyed:
            if key and (key in wanted or (len(wanted) >= 3 and wanted in key)):
                return clinic
    return None


def resolve_clinic_location(db: Session, raw) -> str | None:
    """Map a free-text clinic choice from the chatbot onto a clinic id.

    Returns the clinic id as text when a clinic matches, the trimmed
    original value when nothing matches, and None for blank input.
    """
    if raw is None:
        return None
    value = str(raw).strip()
    if not value:
        return None
    clinics = (
        db.query(Clinic)
        .filter(Clinic.is_active.isnot(False))
        .order_by(Clinic.id.asc())
        .all()
    )
    clinic = match_clinic(value, clinics)
    if clinic is None:
        logger.info("No clinic matched %r, storing as given", value)
        return value
    return str(clinic.id)
