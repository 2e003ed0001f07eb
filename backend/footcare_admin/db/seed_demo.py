from __future__ import annotations

import logging
import random
from datetime import timedelta

from sqlalchemy.orm import Session

from footcare_admin.chatbot.ingest import ingest_chat
from footcare_admin.db.init_db import init_db
from footcare_admin.db.models import Clinic, Communication, FollowUp, Patient, utcnow
from footcare_admin.db.session import SessionLocal

logger = logging.getLogger(__name__)

DEMO_CLINICS = [
    {"name": "FootCare Clinic Donnybrook", "address": "12 Donnybrook Road", "city": "Dublin",
     "zip_code": "D04", "latitude": "53.3210", "longitude": "-6.2360", "phone": "01 269 1234"},
    {"name": "FootCare Clinic Palmerstown", "address": "Palmerstown Shopping Centre", "city": "Dublin",
     "zip_code": "D20", "latitude": "53.3560", "longitude": "-6.3720", "phone": "01 626 5678"},
    {"name": "FootCare Clinic Baldoyle", "address": "3 Main Street", "city": "Baldoyle",
     "zip_code": "D13", "latitude": "53.3990", "longitude": "-6.1270", "phone": "01 832 4321"},
    {"name": "FootCare Clinic Cork", "address": "45 Patrick Street", "city": "Cork",
     "zip_code": "T12", "latitude": "51.8985", "longitude": "-8.4756", "phone": "021 427 8765"},
]

DEMO_NAMES = [
    "Aoife Murphy", "Cian Kelly", "Siobhan Byrne", "Darragh Walsh", "Niamh O'Brien",
    "Eoin Ryan", "Grainne Doyle", "Padraig McCarthy", "Orla Kennedy", "Ciara Lynch",
]

# (issue_type, specifics field, specifics answers, symptom descriptions)
DEMO_ISSUES = [
    ("Nail problems", "nail_issue_details",
     ["Ingrown toenail", "Thickened nail", "Fungal nail"],
     ["Mild discomfort when wearing shoes", "Moderate pain around the nail edge", "Redness and swelling near the nail"]),
    ("Pain", "pain_presence",
     ["Heel pain", "Ball of foot pain", "Arch pain"],
     ["Sharp pain first thing in the morning", "Severe pain after walking", "Concerning ache that keeps coming back"]),
    ("Skin issues", "skin_issue_general",
     ["Corns", "Cracked heels", "Verruca"],
     ["Hard skin on the heel", "Painful corn on the little toe", "Small verruca on the sole"]),
    ("Structural issues", "structural_issue_general",
     ["Bunions", "Flat feet", "Hammer toes"],
     ["Bunion rubbing on shoes", "Moderate ache in the arch", "Toe bending upwards"]),
]


def _seed_clinics(db: Session) -> list[Clinic]:
    clinics = db.query(Clinic).order_by(Clinic.id.asc()).all()
    if clinics:
        return clinics
    for row in DEMO_CLINICS:
        db.add(Clinic(**row, is_active=True))
    db.commit()
    return db.query(Clinic).order_by(Clinic.id.asc()).all()


def _chat_payload(idx: int, clinic: Clinic, rng: random.Random) -> dict:
    name = DEMO_NAMES[idx % len(DEMO_NAMES)]
    issue_type, specifics_field, specifics, symptoms = rng.choice(DEMO_ISSUES)
    email = name.lower().replace("'", "").replace(" ", ".") + "@example.ie"
    return {
        "interaction_start": "Yes",
        "patient_name": name,
        "email": email,
        "phone": f"08{rng.randint(3, 9)}{rng.randint(1000000, 9999999)}",
        "clinic_location": rng.choice([clinic.name, clinic.city, str(clinic.id)]),
        "issue_type": issue_type,
        specifics_field: rng.choice(specifics),
        "symptom_description": rng.choice(symptoms),
        "treatment_history": rng.choice(["None", "Tried over-the-counter cream", "Saw a GP last year"]),
        "booking_date_requested": rng.choice(["Yes", "No"]),
        "survey_rating": rng.choice(["😀", "🙂", "😐"]),
    }


def seed_demo_data(assessments: int = 20, days: int = 14, seed: int = 42) -> dict:
    rng = random.Random(seed)
    init_db()
    db = SessionLocal()
    try:
        if db.query(Patient).first():
            return {"ok": True, "skipped": True}

        clinics = _seed_clinics(db)
        now = utcnow()
        created = 0
        for idx in range(assessments):
            payload = _chat_payload(idx, rng.choice(clinics), rng)
            result = ingest_chat(db, payload, default_risk="low", source="seed_demo")
            result.assessment.completed_at = now - timedelta(
                days=rng.randint(0, days), hours=rng.randint(0, 23)
            )
            created += 1
        db.commit()

        patients = db.query(Patient).order_by(Patient.id.asc()).all()
        for patient in patients[:4]:
            db.add(Communication(
                patient_id=patient.id,
                type=rng.choice(["email", "sms", "call"]),
                subject="Appointment reminder",
                message=f"Hi {patient.name.split()[0]}, a reminder about your upcoming appointment.",
                sent_by="Reception",
                status="sent",
            ))
            db.add(FollowUp(
                patient_id=patient.id,
                type=rng.choice(["appointment", "call", "check_in"]),
                title="Review foot assessment",
                description="Follow up on chatbot assessment",
                scheduled_for=now + timedelta(days=rng.randint(1, 10)),
                status="scheduled",
                created_by="Demo Admin",
            ))
        db.commit()

        logger.info("Seeded %d clinics, %d patients, %d assessments", len(clinics), len(patients), created)
        return {"ok": True, "skipped": False, "clinics": len(clinics), "patients": len(patients), "assessments": created}
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    result = seed_demo_data()
    print(result)
