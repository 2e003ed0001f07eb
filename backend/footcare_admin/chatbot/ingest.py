"""
Write chatbot conversations into the portal's patient/assessment/response tables.

Callers own the transaction: these helpers add and flush, the webhook
endpoint commits or rolls back.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from footcare_admin.chatbot.clinics import resolve_clinic_location
from footcare_admin.chatbot.extracter import normalize_phone_input
from footcare_admin.chatbot.processor import (
    DEFAULT_PATIENT_NAME,
    ChatResponse,
    ProcessedChat,
    consultation_record,
    process_chatbot_data,
)
from footcare_admin.chatbot.red_flags import concern_matches
from footcare_admin.db.models import (
    Assessment,
    AssessmentCondition,
    AuditEvent,
    Condition,
    Consultation,
    Patient,
    Question,
    Response,
    naive_utc,
    utcnow,
)

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    patient: Patient
    assessment: Assessment
    processed: ProcessedChat
    flagged: List[Tuple[Response, ChatResponse]] = field(default_factory=list)


def find_or_create_patient(db: Session, name: str | None, email: str | None, phone: str | None) -> Patient:
    phone = normalize_phone_input(phone) or None
    patient = None
    if email:
        patient = db.query(Patient).filter(func.lower(Patient.email) == email.lower()).first()
    if patient is None and phone:
        patient = db.query(Patient).filter(Patient.phone == phone).first()

    if patient is None:
        patient = Patient(name=name or DEFAULT_PATIENT_NAME, email=email, phone=phone)
        db.add(patient)
        db.flush()
        logger.info("Created patient %s from chatbot data", patient.id)
        return patient

    if not patient.phone and phone:
        patient.phone = phone
    if not patient.email and email:
        taken = db.query(Patient).filter(func.lower(Patient.email) == email.lower()).first()
        if not taken:
            patient.email = email
    if patient.name == DEFAULT_PATIENT_NAME and name:
        patient.name = name
    logger.info("Matched existing patient %s", patient.id)
    return patient


def get_or_create_question(db: Session, text: str, category: str | None, order: int | None) -> Question:
    question = db.query(Question).filter(Question.text == text).first()
    if question:
        return question
    question = Question(text=text, category=category, order=order)
    db.add(question)
    db.flush()
    return question


def get_or_create_condition(db: Session, name: str, description: str | None = None) -> Condition:
    condition = db.query(Condition).filter(func.lower(Condition.name) == name.lower()).first()
    if condition:
        return condition
    condition = Condition(name=name, description=description or "")
    db.add(condition)
    db.flush()
    return condition


def ingest_chat(
    db: Session,
    fields: dict,
    default_risk: str = "low",
    default_concern: str | None = None,
    source: str = "chatbot",
) -> IngestResult:
    processed = process_chatbot_data(fields, default_risk=default_risk)

    patient = find_or_create_patient(
        db,
        processed.patient.get("name"),
        processed.patient.get("email"),
        processed.patient.get("phone"),
    )

    info = processed.assessment
    assessment = Assessment(
        patient_id=patient.id,
        status=info["status"],
        risk_level=info["risk_level"],
        primary_concern=info["primary_concern"] or default_concern,
        image_url=info["image_url"],
        image_analysis=info["image_analysis"],
        clinic_location=resolve_clinic_location(db, processed.clinic_location),
        completed_at=utcnow(),
    )
    db.add(assessment)
    db.flush()

    flagged = []
    for item in processed.responses:
        question = get_or_create_question(db, item.question, item.category, item.order)
        row = Response(
            assessment_id=assessment.id,
            question_id=question.id,
            answer=item.answer,
            flagged=item.flagged,
        )
        db.add(row)
        if item.flagged:
            flagged.append((row, item))
    db.flush()

    issue = fields.get("issue_type")
    if isinstance(issue, str) and issue.strip():
        description = (
            fields.get("nail_issue_details")
            or fields.get("pain_presence")
            or fields.get("skin_issue_general")
            or fields.get("structural_issue_general")
        )
        condition = get_or_create_condition(db, issue.strip(), description if isinstance(description, str) else None)
        db.add(AssessmentCondition(assessment_id=assessment.id, condition_id=condition.id))

    db.add(AuditEvent(
        actor=source,
        action="assessment_ingested",
        meta={
            "patient_id": patient.id,
            "assessment_id": assessment.id,
            "risk_level": assessment.risk_level,
            "flagged_responses": len(flagged),
            "concerns": sorted({c for _, item in flagged for c in item.concerns}),
        },
    ))
    db.flush()

    logger.info(
        "Ingested %s assessment %s for patient %s (risk=%s, responses=%d, flagged=%d)",
        source, assessment.id, patient.id, assessment.risk_level, len(processed.responses), len(flagged),
    )
    return IngestResult(
        patient=patient,
        assessment=assessment,
        processed=processed,
        flagged=flagged,
    )


def store_consultation(db: Session, payload: dict) -> Consultation:
    values = consultation_record(payload)
    created_at = naive_utc(values.pop("created_at")) or utcnow()
    consultation = Consultation(created_at=created_at, **values)
    db.add(consultation)
    db.flush()
    logger.info("Stored consultation %s for %s", consultation.id, consultation.name)
    return consultation


def flag_response(response: Response) -> bool:
    """Re-run concern detection on an edited answer and update the flag."""
    response.flagged = bool(concern_matches(response.answer))
    return response.flagged
