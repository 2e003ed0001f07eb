import logging

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from footcare_admin.api.auth import get_current_session
from footcare_admin.api.serializers import consultation_out
from footcare_admin.chatbot.ingest import IngestResult, ingest_chat, store_consultation
from footcare_admin.chatbot.processor import DEFAULT_CONCERN, consultation_to_fields
from footcare_admin.db.models import Consultation
from footcare_admin.db.session import SessionLocal
from footcare_admin.realtime.broadcast import event, manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ingestion_events(result: IngestResult) -> list[dict]:
    patient = result.patient
    assessment = result.assessment
    events = [event(
        "new_assessment",
        assessmentId=assessment.id,
        patientId=patient.id,
        patientName=patient.name,
        riskLevel=assessment.risk_level,
        primaryConcern=assessment.primary_concern,
        clinicLocation=assessment.clinic_location,
    )]
    for row, item in result.flagged:
        events.append(event(
            "flagged_response",
            responseId=row.id,
            assessmentId=assessment.id,
            patientId=patient.id,
            patientName=patient.name,
            question=item.question,
            answer=item.answer,
            concerns=item.concerns,
        ))
    return events


async def publish(events: list[dict]):
    for message in events:
        await manager.broadcast(message)


def _failure(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"success": False, "message": message})


def _ingest(db: Session, fields: dict, **kwargs) -> IngestResult | None:
    try:
        result = ingest_chat(db, fields, **kwargs)
        db.commit()
        return result
    except Exception:
        db.rollback()
        logger.exception("Chatbot ingestion failed")
        return None


@router.post("/webhook/consultation")
def consultation_webhook(
    background_tasks: BackgroundTasks,
    payload: dict = Body(...),
    db: Session = Depends(get_db)
):
    logger.info("Consultation webhook received keys: %s", sorted(payload.keys()))
    try:
        consultation = store_consultation(db, payload)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Could not store consultation payload")
        return _failure("Failed to process consultation data")

    result = _ingest(
        db,
        consultation_to_fields(payload),
        default_risk="medium",
        default_concern=DEFAULT_CONCERN,
        source="consultation_webhook",
    )
    if result is None:
        return _failure("Failed to process consultation data")

    events = [event(
        "new_consultation",
        consultationId=consultation.id,
        name=consultation.name,
        issueCategory=consultation.issue_category,
        preferredClinic=consultation.preferred_clinic,
    )]
    events.extend(ingestion_events(result))
    background_tasks.add_task(publish, events)

    return {
        "success": True,
        "message": "Consultation received and processed",
        "consultationId": consultation.id,
        "patientId": result.patient.id,
        "assessmentId": result.assessment.id,
    }


@router.post("/webhook/chatbot")
def chatbot_webhook(
    background_tasks: BackgroundTasks,
    payload: dict = Body(...),
    db: Session = Depends(get_db)
):
    logger.info("Chatbot webhook received keys: %s", sorted(payload.keys()))
    result = _ingest(db, payload, default_risk="low", source="chatbot_webhook")
    if result is None:
        return _failure("Failed to process chatbot data")

    background_tasks.add_task(publish, ingestion_events(result))
    return {
        "success": True,
        "message": "Chatbot data processed successfully",
        "patientId": result.patient.id,
        "assessmentId": result.assessment.id,
        "flaggedResponses": len(result.flagged),
    }


@router.get("/consultations")
def list_consultations(
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    rows = (
        db.query(Consultation)
        .order_by(Consultation.created_at.desc(), Consultation.id.desc())
        .limit(limit)
        .all()
    )
    return [consultation_out(c) for c in rows]
