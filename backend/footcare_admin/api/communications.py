import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import Field
from sqlalchemy.orm import Session, joinedload

from footcare_admin.api.auth import get_current_session
from footcare_admin.api.serializers import CamelModel, communication_out, follow_up_out
from footcare_admin.db.models import Assessment, Communication, FollowUp, Patient, naive_utc
from footcare_admin.db.session import SessionLocal
from footcare_admin.notify import twilio_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

CommunicationType = Literal["email", "sms", "message", "portal", "call"]
CommunicationStatus = Literal["sent", "delivered", "read", "failed"]
FollowUpType = Literal["appointment", "call", "check_in"]
FollowUpStatus = Literal["pending", "scheduled", "completed", "cancelled"]


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class CommunicationCreate(CamelModel):
    patient_id: int
    type: CommunicationType
    subject: str = Field(min_length=1)
    message: str = Field(min_length=1)
    sent_by: str = Field(min_length=1)


class CommunicationUpdate(CamelModel):
    status: CommunicationStatus


class FollowUpCreate(CamelModel):
    patient_id: int
    assessment_id: Optional[int] = None
    type: FollowUpType
    title: str = Field(min_length=1)
    description: Optional[str] = None
    scheduled_for: datetime
    assigned_to: Optional[str] = None
    created_by: str = Field(min_length=1)


class FollowUpUpdate(CamelModel):
    status: Optional[FollowUpStatus] = None
    scheduled_for: Optional[datetime] = None
    assigned_to: Optional[str] = None
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None


def _require_patient(db: Session, patient_id: int) -> Patient:
    patient = db.query(Patient).filter(Patient.id == patient_id).first()
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    return patient


def deliver_sms(patient: Patient, message: str) -> str:
    """Send the message to the patient's phone; returns the resulting communication status."""
    if not twilio_client.sms_configured():
        logger.info("Twilio not configured, recording SMS for patient %s without delivery", patient.id)
        return "sent"
    if not patient.phone:
        logger.warning("Patient %s has no phone number, SMS not delivered", patient.id)
        return "failed"
    result = twilio_client.send_sms(patient.phone, message)
    if result is None:
        return "failed"
    logger.info("SMS sent to patient %s (sid=%s)", patient.id, getattr(result, "sid", None))
    return "sent"


# Communications

@router.get("/communications")
def list_communications(
    patient_id: Optional[int] = Query(default=None, alias="patientId"),
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    query = db.query(Communication).options(joinedload(Communication.patient))
    if patient_id:
        query = query.filter(Communication.patient_id == patient_id)
    rows = query.order_by(Communication.created_at.desc(), Communication.id.desc()).all()
    return [communication_out(c) for c in rows]


@router.post("/communications", status_code=201)
def create_communication(
    payload: CommunicationCreate,
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    patient = _require_patient(db, payload.patient_id)

    status = "sent"
    if payload.type == "sms":
        status = deliver_sms(patient, payload.message)

    communication = Communication(
        patient_id=patient.id,
        type=payload.type,
        subject=payload.subject,
        message=payload.message,
        sent_by=payload.sent_by,
        status=status,
    )
    db.add(communication)
    db.commit()
    db.refresh(communication)
    return communication_out(communication)


@router.patch("/communications/{communication_id}")
def update_communication(
    communication_id: int,
    payload: CommunicationUpdate,
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    communication = db.query(Communication).filter(Communication.id == communication_id).first()
    if not communication:
        raise HTTPException(status_code=404, detail="Communication not found")
    communication.status = payload.status
    db.commit()
    db.refresh(communication)
    return communication_out(communication)


# Follow-ups

@router.get("/followups")
def list_follow_ups(
    patient_id: Optional[int] = Query(default=None, alias="patientId"),
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    query = db.query(FollowUp).options(joinedload(FollowUp.patient))
    if patient_id:
        query = query.filter(FollowUp.patient_id == patient_id)
    if status:
        query = query.filter(FollowUp.status == status)
    rows = query.order_by(FollowUp.scheduled_for.desc(), FollowUp.id.desc()).all()
    return [follow_up_out(f) for f in rows]


@router.post("/followups", status_code=201)
def create_follow_up(payload: FollowUpCreate, db: Session = Depends(get_db), principal=Depends(get_current_session)):
    patient = _require_patient(db, payload.patient_id)
    if payload.assessment_id is not None:
        exists = db.query(Assessment.id).filter(Assessment.id == payload.assessment_id).first()
        if not exists:
            raise HTTPException(status_code=400, detail="Assessment not found")

    follow_up = FollowUp(
        patient_id=patient.id,
        assessment_id=payload.assessment_id,
        type=payload.type,
        title=payload.title,
        description=payload.description,
        scheduled_for=naive_utc(payload.scheduled_for),
        status="scheduled",
        assigned_to=payload.assigned_to,
        created_by=payload.created_by,
    )
    db.add(follow_up)
    db.commit()
    db.refresh(follow_up)
    return follow_up_out(follow_up)


@router.patch("/followups/{follow_up_id}")
def update_follow_up(
    follow_up_id: int,
    payload: FollowUpUpdate,
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    follow_up = db.query(FollowUp).filter(FollowUp.id == follow_up_id).first()
    if not follow_up:
        raise HTTPException(status_code=404, detail="Follow-up not found")

    changes = payload.model_dump(exclude_unset=True)
    for key in ("status", "scheduled_for", "title"):
        if key in changes and changes[key] is None:
            raise HTTPException(status_code=400, detail=f"{key} cannot be null")
    if "scheduled_for" in changes:
        changes["scheduled_for"] = naive_utc(changes["scheduled_for"])
    for key, value in changes.items():
        setattr(follow_up, key, value)
    db.commit()
    db.refresh(follow_up)
    return follow_up_out(follow_up)
