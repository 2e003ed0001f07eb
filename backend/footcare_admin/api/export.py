import logging
from typing import Literal

import pandas as pd
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response as HTTPResponse
from sqlalchemy.orm import Session, joinedload

from footcare_admin.api.auth import get_current_session
from footcare_admin.api.serializers import (
    assessment_out,
    communication_out,
    follow_up_out,
    patient_out,
    response_out,
)
from footcare_admin.db import queries
from footcare_admin.db.models import Assessment, Communication, FollowUp, Patient, Response, utcnow
from footcare_admin.db.session import SessionLocal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/export")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def analytics_report(db: Session, days: int = 30) -> dict:
    return {
        "generatedAt": utcnow().isoformat(),
        "stats": queries.dashboard_stats(db),
        "trends": queries.assessments_trend(db, days=days),
        "conditions": queries.top_conditions(db, limit=50),
        "riskDistribution": queries.risk_distribution(db),
    }


def analytics_frame(report: dict) -> pd.DataFrame:
    """Flatten the analytics report into one long table: section, label, value."""
    frames = [
        pd.DataFrame(
            [(name, value) for name, value in report["stats"].items()],
            columns=["label", "value"],
        ).assign(section="stats"),
        pd.DataFrame(report["trends"], columns=["date", "count"])
        .rename(columns={"date": "label", "count": "value"})
        .assign(section="trend"),
        pd.DataFrame(report["conditions"], columns=["condition", "count"])
        .rename(columns={"condition": "label", "count": "value"})
        .assign(section="condition"),
        pd.DataFrame(
            [(level, count) for level, count in report["riskDistribution"].items()],
            columns=["label", "value"],
        ).assign(section="risk_level"),
    ]
    df = pd.concat(frames, ignore_index=True)
    df["value"] = df["value"].astype(int)
    return df[["section", "label", "value"]]


@router.get("/all")
def export_all(db: Session = Depends(get_db), principal=Depends(get_current_session)):
    patients = db.query(Patient).order_by(Patient.id.asc()).all()
    assessments = (
        db.query(Assessment)
        .options(joinedload(Assessment.patient))
        .order_by(Assessment.id.asc())
        .all()
    )
    communications = db.query(Communication).order_by(Communication.id.asc()).all()
    follow_ups = db.query(FollowUp).order_by(FollowUp.id.asc()).all()
    logger.info(
        "Full export: %d patients, %d assessments, %d communications, %d follow-ups",
        len(patients), len(assessments), len(communications), len(follow_ups),
    )
    return {
        "exportedAt": utcnow().isoformat(),
        "patients": [patient_out(p) for p in patients],
        "assessments": [assessment_out(a, include_patient=False) for a in assessments],
        "communications": [communication_out(c, include_patient=False) for c in communications],
        "followUps": [follow_up_out(f, include_patient=False) for f in follow_ups],
    }


@router.get("/analytics")
def export_analytics(
    format: Literal["json", "csv"] = "json",
    days: int = Query(default=30, ge=1, le=365),
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    report = analytics_report(db, days=days)
    if format == "json":
        return report

    csv_text = analytics_frame(report).to_csv(index=False)
    filename = f"footcare-analytics-{utcnow().strftime('%Y%m%d')}.csv"
    return HTTPResponse(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/patient/{patient_id}")
def export_patient(patient_id: int, db: Session = Depends(get_db), principal=Depends(get_current_session)):
    patient = db.query(Patient).filter(Patient.id == patient_id).first()
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")

    assessments = (
        db.query(Assessment)
        .filter(Assessment.patient_id == patient_id)
        .order_by(Assessment.completed_at.desc(), Assessment.id.desc())
        .all()
    )
    out_assessments = []
    for a in assessments:
        item = assessment_out(a, include_patient=False)
        responses = (
            db.query(Response)
            .options(joinedload(Response.question))
            .filter(Response.assessment_id == a.id)
            .order_by(Response.id.asc())
            .all()
        )
        item["responses"] = [response_out(r) for r in responses]
        out_assessments.append(item)

    communications = (
        db.query(Communication)
        .filter(Communication.patient_id == patient_id)
        .order_by(Communication.created_at.desc(), Communication.id.desc())
        .all()
    )
    follow_ups = (
        db.query(FollowUp)
        .filter(FollowUp.patient_id == patient_id)
        .order_by(FollowUp.scheduled_for.desc(), FollowUp.id.desc())
        .all()
    )
    return {
        "exportedAt": utcnow().isoformat(),
        "patient": patient_out(patient),
        "assessments": out_assessments,
        "communications": [communication_out(c, include_patient=False) for c in communications],
        "followUps": [follow_up_out(f, include_patient=False) for f in follow_ups],
    }
