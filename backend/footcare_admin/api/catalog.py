from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from footcare_admin.api.auth import get_current_session
from footcare_admin.api.serializers import CamelModel, clinic_out, condition_out, question_out
from footcare_admin.db import queries
from footcare_admin.db.models import Clinic, Condition, Question
from footcare_admin.db.session import SessionLocal

router = APIRouter(prefix="/api")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class QuestionCreate(CamelModel):
    text: str = Field(min_length=1)
    category: Optional[str] = None
    order: Optional[int] = None


class ConditionCreate(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None


class ClinicCreate(CamelModel):
    name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: Optional[str] = None
    zip_code: Optional[str] = None
    latitude: str
    longitude: str
    phone: Optional[str] = None
    email: Optional[str] = None
    is_active: bool = True


class ClinicUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    address: Optional[str] = Field(default=None, min_length=1)
    city: Optional[str] = Field(default=None, min_length=1)
    state: Optional[str] = None
    zip_code: Optional[str] = None
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    is_active: Optional[bool] = None


# Questions

@router.get("/questions")
def list_questions(db: Session = Depends(get_db), principal=Depends(get_current_session)):
    rows = db.query(Question).order_by(Question.order.asc(), Question.id.asc()).all()
    return [question_out(q) for q in rows]


@router.post("/questions", status_code=201)
def create_question(payload: QuestionCreate, db: Session = Depends(get_db), principal=Depends(get_current_session)):
    text = payload.text
    if db.query(Question).filter(Question.text == text).first():
        raise HTTPException(status_code=400, detail="Question already exists")
    question = Question(text=text, category=payload.category, order=payload.order)
    db.add(question)
    db.commit()
    db.refresh(question)
    return question_out(question)


# Conditions

@router.get("/conditions")
def list_conditions(db: Session = Depends(get_db), principal=Depends(get_current_session)):
    rows = db.query(Condition).order_by(Condition.name.asc()).all()
    return [condition_out(c) for c in rows]


@router.post("/conditions", status_code=201)
def create_condition(payload: ConditionCreate, db: Session = Depends(get_db), principal=Depends(get_current_session)):
    name = payload.name
    if db.query(Condition).filter(func.lower(Condition.name) == name.lower()).first():
        raise HTTPException(status_code=400, detail="Condition already exists")
    condition = Condition(name=name, description=payload.description)
    db.add(condition)
    db.commit()
    db.refresh(condition)
    return condition_out(condition)


# Clinics

@router.get("/clinics")
def list_clinics(db: Session = Depends(get_db)):
    rows = db.query(Clinic).order_by(Clinic.name.asc()).all()
    return [clinic_out(c) for c in rows]


@router.get("/clinics/assessment-counts")
def clinic_assessment_counts(db: Session = Depends(get_db)):
    out = []
    for clinic, count in queries.clinic_assessment_counts(db):
        item = clinic_out(clinic)
        item["assessmentCount"] = count
        out.append(item)
    return out


@router.get("/clinics/{clinic_id}")
def get_clinic(clinic_id: int, db: Session = Depends(get_db), principal=Depends(get_current_session)):
    clinic = db.query(Clinic).filter(Clinic.id == clinic_id).first()
    if not clinic:
        raise HTTPException(status_code=404, detail="Clinic not found")
    return clinic_out(clinic)


@router.post("/clinics", status_code=201)
def create_clinic(payload: ClinicCreate, db: Session = Depends(get_db), principal=Depends(get_current_session)):
    clinic = Clinic(**payload.model_dump())
    db.add(clinic)
    db.commit()
    db.refresh(clinic)
    return clinic_out(clinic)


@router.patch("/clinics/{clinic_id}")
def update_clinic(
    clinic_id: int,
    payload: ClinicUpdate,
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    clinic = db.query(Clinic).filter(Clinic.id == clinic_id).first()
    if not clinic:
        raise HTTPException(status_code=404, detail="Clinic not found")
    changes = payload.model_dump(exclude_unset=True)
    for key in ("name", "address", "city", "latitude", "longitude"):
        if key in changes and changes[key] is None:
            raise HTTPException(status_code=400, detail=f"{key} cannot be empty")
    for key, value in changes.items():
        setattr(clinic, key, value)
    db.commit()
    db.refresh(clinic)
    return clinic_out(clinic)
