from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import Field
from sqlalchemy.orm import Session, joinedload

from footcare_admin.api.auth import get_current_session
from footcare_admin.api.serializers import (
    CamelModel,
    assessment_out,
    condition_out,
    pagination,
    response_out,
)
from footcare_admin.chatbot.ingest import flag_response
from footcare_admin.db import queries
from footcare_admin.db.models import (
    Assessment,
    AssessmentCondition,
    Condition,
    Question,
    Response,
)
from footcare_admin.db.session import SessionLocal

router = APIRouter(prefix="/api")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class AssessmentUpdate(CamelModel):
    status: Optional[Literal["in_progress", "completed", "flagged", "in_review"]] = None
    risk_level: Optional[Literal["low", "medium", "high"]] = None
    primary_concern: Optional[str] = None
    score: Optional[int] = Field(default=None, ge=0, le=100)


class ResponseUpdate(CamelModel):
    flagged: Optional[bool] = None
    answer: Optional[str] = None


def _responses_for(db: Session, assessment_id: int) -> list[Response]:
    return (
        db.query(Response)
        .join(Question, Response.question_id == Question.id)
        .options(joinedload(Response.question))
        .filter(Response.assessment_id == assessment_id)
        .order_by(Question.order.asc(), Response.id.asc())
        .all()
    )


def _get_assessment(db: Session, assessment_id: int) -> Assessment:
    assessment = (
        db.query(Assessment)
        .options(joinedload(Assessment.patient))
        .filter(Assessment.id == assessment_id)
        .first()
    )
    if not assessment:
        raise HTTPException(status_code=404, detail="Assessment not found")
    return assessment


@router.get("/assessments")
def list_assessments(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=500),
    status: Optional[str] = None,
    risk_level: Optional[str] = Query(default=None, alias="riskLevel"),
    clinic_location: Optional[str] = Query(default=None, alias="clinicLocation"),
    patient_id: Optional[int] = Query(default=None, alias="patientId"),
    search: Optional[str] = None,
    condition: Optional[str] = None,
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    query = queries.assessments_query(
        db,
        patient_id=patient_id,
        status=status,
        risk_level=risk_level,
        clinic_location=clinic_location,
        start_date=start_date,
        end_date=end_date,
        search=search,
        condition=condition,
    )
    rows, total = queries.page_of(query, page, limit)
    return {
        "assessments": [assessment_out(a) for a in rows],
        "pagination": pagination(total, page, limit),
    }


@router.get("/assessments/recent")
def recent_assessments(
    limit: int = Query(default=5, ge=1, le=100),
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    rows, _ = queries.page_of(queries.assessments_query(db), 1, limit)
    return [assessment_out(a) for a in rows]


@router.get("/assessments/{assessment_id}")
def get_assessment(assessment_id: int, db: Session = Depends(get_db), principal=Depends(get_current_session)):
    assessment = _get_assessment(db, assessment_id)
    conditions = (
        db.query(Condition)
        .join(AssessmentCondition, AssessmentCondition.condition_id == Condition.id)
        .filter(AssessmentCondition.assessment_id == assessment_id)
        .order_by(Condition.name.asc())
        .all()
    )
    out = assessment_out(assessment)
    out["responses"] = [response_out(r) for r in _responses_for(db, assessment_id)]
    out["conditions"] = [condition_out(c) for c in conditions]
    return out


@router.get("/assessments/{assessment_id}/responses")
def get_assessment_responses(
    assessment_id: int,
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    _get_assessment(db, assessment_id)
    return [response_out(r) for r in _responses_for(db, assessment_id)]


@router.patch("/assessments/{assessment_id}")
def update_assessment(
    assessment_id: int,
    payload: AssessmentUpdate,
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    assessment = _get_assessment(db, assessment_id)
    changes = payload.model_dump(exclude_unset=True)
    for key in ("status", "risk_level"):
        if key in changes and changes[key] is None:
            raise HTTPException(status_code=400, detail=f"{key} cannot be null")
    for key, value in changes.items():
        setattr(assessment, key, value)
    db.commit()
    db.refresh(assessment)
    return assessment_out(assessment)


@router.get("/responses/flagged")
def flagged_responses(
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    rows = (
        db.query(Response)
        .options(joinedload(Response.question), joinedload(Response.assessment).joinedload(Assessment.patient))
        .filter(Response.flagged.is_(True))
        .order_by(Response.created_at.desc(), Response.id.desc())
        .limit(limit)
        .all()
    )
    out = []
    for r in rows:
        item = response_out(r)
        item["assessment"] = assessment_out(r.assessment)
        out.append(item)
    return out


@router.patch("/responses/{response_id}")
def update_response(
    response_id: int,
    payload: ResponseUpdate,
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    response = db.query(Response).filter(Response.id == response_id).first()
    if not response:
        raise HTTPException(status_code=404, detail="Response not found")

    changes = payload.model_dump(exclude_unset=True)
    if "answer" in changes:
        response.answer = changes["answer"]
        if "flagged" not in changes:
            flag_response(response)
    if changes.get("flagged") is not None:
        response.flagged = changes["flagged"]
    db.commit()
    db.refresh(response)
    return response_out(response)
