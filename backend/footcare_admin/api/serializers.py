"""Row -> JSON dict builders shared by the routers. Keys are camelCase for the dashboard client."""
import math
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from footcare_admin.db.models import (
    Assessment,
    ChatbotSettings,
    Clinic,
    Communication,
    Condition,
    Consultation,
    FollowUp,
    Patient,
    Question,
    Response,
)


class CamelModel(BaseModel):
    """Request body accepting both camelCase (client) and snake_case keys.

    Strings are stripped before length constraints are checked.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


def iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def patient_out(p: Patient | None) -> dict | None:
    if p is None:
        return None
    return {
        "id": p.id,
        "name": p.name,
        "email": p.email,
        "phone": p.phone,
        "age": p.age,
        "gender": p.gender,
        "insuranceType": p.insurance_type,
        "dateOfBirth": iso(p.date_of_birth),
        "createdAt": iso(p.created_at),
        "updatedAt": iso(p.updated_at),
    }


def assessment_out(a: Assessment, patient: Patient | None = None, include_patient: bool = True) -> dict:
    out = {
        "id": a.id,
        "patientId": a.patient_id,
        "completedAt": iso(a.completed_at),
        "status": a.status,
        "riskLevel": a.risk_level,
        "primaryConcern": a.primary_concern,
        "score": a.score,
        "clinicLocation": a.clinic_location,
        "imageUrl": a.image_url,
        "imageAnalysis": a.image_analysis,
        "createdAt": iso(a.created_at),
        "updatedAt": iso(a.updated_at),
    }
    if include_patient:
        out["patient"] = patient_out(patient if patient is not None else a.patient)
    return out


def question_out(q: Question | None) -> dict | None:
    if q is None:
        return None
    return {
        "id": q.id,
        "text": q.text,
        "category": q.category,
        "order": q.order,
        "createdAt": iso(q.created_at),
    }


def response_out(r: Response, question: Question | None = None) -> dict:
    return {
        "id": r.id,
        "assessmentId": r.assessment_id,
        "questionId": r.question_id,
        "answer": r.answer,
        "flagged": bool(r.flagged),
        "createdAt": iso(r.created_at),
        "question": question_out(question if question is not None else r.question),
    }


def condition_out(c: Condition) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "description": c.description,
        "createdAt": iso(c.created_at),
    }


def clinic_out(c: Clinic) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "address": c.address,
        "city": c.city,
        "state": c.state,
        "zipCode": c.zip_code,
        "latitude": c.latitude,
        "longitude": c.longitude,
        "phone": c.phone,
        "email": c.email,
        "isActive": c.is_active,
        "createdAt": iso(c.created_at),
        "updatedAt": iso(c.updated_at),
    }


def communication_out(c: Communication, include_patient: bool = True) -> dict:
    out = {
        "id": c.id,
        "patientId": c.patient_id,
        "type": c.type,
        "subject": c.subject,
        "message": c.message,
        "sentBy": c.sent_by,
        "status": c.status,
        "createdAt": iso(c.created_at),
        "updatedAt": iso(c.updated_at),
    }
    if include_patient:
        out["patient"] = patient_out(c.patient)
    return out


def follow_up_out(f: FollowUp, include_patient: bool = True) -> dict:
    out = {
        "id": f.id,
        "patientId": f.patient_id,
        "assessmentId": f.assessment_id,
        "type": f.type,
        "title": f.title,
        "description": f.description,
        "scheduledFor": iso(f.scheduled_for),
        "status": f.status,
        "assignedTo": f.assigned_to,
        "createdBy": f.created_by,
        "createdAt": iso(f.created_at),
        "updatedAt": iso(f.updated_at),
    }
    if include_patient:
        out["patient"] = patient_out(f.patient)
    return out


def consultation_out(c: Consultation) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "email": c.email,
        "phone": c.phone,
        "preferred_clinic": c.preferred_clinic,
        "issue_category": c.issue_category,
        "issue_specifics": c.issue_specifics,
        "symptom_description": c.symptom_description,
        "previous_treatment": c.previous_treatment,
        "has_image": c.has_image,
        "image_path": c.image_path,
        "image_analysis": c.image_analysis,
        "calendar_booking": c.calendar_booking,
        "booking_confirmation": c.booking_confirmation,
        "final_question": c.final_question,
        "additional_help": c.additional_help,
        "emoji_survey": c.emoji_survey,
        "survey_response": c.survey_response,
        "conversation_log": c.conversation_log or [],
        "completed_steps": c.completed_steps or [],
        "createdAt": iso(c.created_at),
    }


def settings_out(s: ChatbotSettings) -> dict:
    return {
        "id": s.id,
        "welcomeMessage": s.welcome_message,
        "botDisplayName": s.bot_display_name,
        "ctaButtonLabel": s.cta_button_label,
        "chatbotTone": s.chatbot_tone,
        "createdAt": iso(s.created_at),
        "updatedAt": iso(s.updated_at),
    }


def pagination(total: int, page: int, limit: int) -> dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }
