import re
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import Field, field_validator
from sqlalchemy import func
from sqlalchemy.orm import Session

from footcare_admin.api.auth import get_current_session
from footcare_admin.api.serializers import CamelModel, assessment_out, pagination, patient_out
from footcare_admin.chatbot.extracter import normalize_phone_input
from footcare_admin.db import queries
from footcare_admin.db.models import Assessment, Patient, naive_utc
from footcare_admin.db.session import SessionLocal

router = APIRouter(prefix="/api/patients")

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _check_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not EMAIL_RE.match(value):
        raise ValueError("Invalid email address.")
    return value.lower()


def _check_phone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = normalize_phone_input(value)
    if not value:
        return None
    if len(value.lstrip("+")) < 10:
        raise ValueError("Phone number must be at least 10 digits.")
    if len(value.lstrip("+")) > 15:
        raise ValueError("Phone number cannot exceed 15 digits.")
    return value


class PatientCreate(CamelModel):
    name: str = Field(min_length=2)
    email: Optional[str] = None
    phone: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0, le=130)
    gender: Optional[str] = None
    insurance_type: Optional[str] = None
    date_of_birth: Optional[datetime] = None

    check_email = field_validator("email")(_check_email)
    check_phone = field_validator("phone")(_check_phone)


class PatientUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=2)
    email: Optional[str] = None
    phone: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0, le=130)
    gender: Optional[str] = None
    insurance_type: Optional[str] = None
    date_of_birth: Optional[datetime] = None

    check_email = field_validator("email")(_check_email)
    check_phone = field_validator("phone")(_check_phone)


def _email_taken(db: Session, email: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Patient).filter(func.lower(Patient.email) == email.lower())
    if exclude_id is not None:
        query = query.filter(Patient.id != exclude_id)
    return query.first() is not None


@router.get("")
def list_patients(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=500),
    search: Optional[str] = None,
    condition: Optional[str] = None,
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    query = queries.assessments_query(
        db,
        search=search,
        condition=condition,
        start_date=start_date,
        end_date=end_date,
    )
    rows, total = queries.page_of(query, page, limit)
    return {
        "assessments": [assessment_out(a) for a in rows],
        "pagination": pagination(total, page, limit),
    }


@router.get("/{patient_id}")
def get_patient(patient_id: int, db: Session = Depends(get_db), principal=Depends(get_current_session)):
    patient = db.query(Patient).filter(Patient.id == patient_id).first()
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    assessments = (
        db.query(Assessment)
        .filter(Assessment.patient_id == patient_id)
        .order_by(Assessment.completed_at.desc(), Assessment.id.desc())
        .all()
    )
    return {
        "patient": patient_out(patient),
        "assessments": [assessment_out(a, include_patient=False) for a in assessments],
    }


@router.post("", status_code=201)
def create_patient(payload: PatientCreate, db: Session = Depends(get_db), principal=Depends(get_current_session)):
    if payload.email and _email_taken(db, payload.email):
        raise HTTPException(status_code=400, detail="A patient with this email already exists")
    patient = Patient(
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        age=payload.age,
        gender=payload.gender,
        insurance_type=payload.insurance_type,
        date_of_birth=naive_utc(payload.date_of_birth),
    )
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient_out(patient)


@router.patch("/{patient_id}")
def update_patient(
    patient_id: int,
    payload: PatientUpdate,
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    patient = db.query(Patient).filter(Patient.id == patient_id).first()
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("email") and _email_taken(db, changes["email"], exclude_id=patient_id):
        raise HTTPException(status_code=400, detail="A patient with this email already exists")
    if "name" in changes and changes["name"] is None:
        raise HTTPException(status_code=400, detail="Name cannot be empty")
    if "date_of_birth" in changes:
        changes["date_of_birth"] = naive_utc(changes["date_of_birth"])

    for key, value in changes.items():
        setattr(patient, key, value)
    db.commit()
    db.refresh(patient)
    return patient_out(patient)
