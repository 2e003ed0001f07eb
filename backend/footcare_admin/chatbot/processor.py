from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from footcare_admin.chatbot.extracter import as_list, as_text, first_present, is_present
from footcare_admin.chatbot.red_flags import concern_matches, determine_risk_level
from footcare_admin.chatbot.steps import STEP_ORDER, STEPS, field_for_step, step_order

DEFAULT_PATIENT_NAME = "Unknown Patient"
DEFAULT_CONCERN = "General consultation"

# Identity answers are recorded but never scanned for concern words.
UNSCANNED_STEPS = {"name", "clinic_location"}

# canonical field -> consultation payload keys, most specific first
CONSULTATION_FIELD_KEYS = {
    "patient_name": ["name", "patientName", "patient_name"],
    "clinic_location": ["preferredClinic", "preferred_clinic", "clinicLocation", "clinic_location"],
    "issue_type": ["issueCategory", "issue_category", "issue_type"],
    "pain_presence": ["painSpecifics", "pain_specifics", "pain_presence"],
    "nail_issue_details": ["nailSpecifics", "nail_specifics", "nail_issue_details"],
    "skin_issue_general": ["skinSpecifics", "skin_specifics", "skin_issue_general"],
    "structural_issue_general": ["structuralSpecifics", "structural_specifics", "structural_issue_general"],
    "symptom_description": ["symptomDescription", "symptom_description"],
    "treatment_history": ["previousTreatment", "previous_treatment", "treatment_history"],
    "image_file_url": ["imagePath", "image_path", "image_file_url"],
    "image_analysis_text": ["imageAnalysis", "image_analysis", "image_analysis_text"],
    "booking_date_requested": ["calendarBooking", "calendar_booking", "booking_date_requested"],
    "booking_confirmed_at": ["bookingConfirmation", "booking_confirmation", "booking_confirmed_at"],
    "final_question_prompted": ["finalQuestion", "final_question", "final_question_prompted"],
    "asked_for_more_help": ["additionalHelp", "additional_help", "asked_for_more_help"],
    "survey_prompted": ["emojiSurvey", "emoji_survey", "survey_prompted"],
    "survey_rating": ["surveyResponse", "survey_response", "survey_rating"],
}

SPECIFICS_KEYS = [
    "nailSpecifics", "painSpecifics", "skinSpecifics", "structuralSpecifics",
    "nail_specifics", "pain_specifics", "skin_specifics", "structural_specifics",
]


@dataclass
class ChatResponse:
    step: str
    field_name: str
    question: str
    answer: str
    category: str
    order: int
    flagged: bool = False
    concerns: List[str] = field(default_factory=list)


@dataclass
class ProcessedChat:
    patient: Dict[str, Optional[str]]
    responses: List[ChatResponse]
    clinic_location: Optional[str]
    assessment: Dict[str, Any]

    @property
    def flagged_responses(self) -> List[ChatResponse]:
        return [r for r in self.responses if r.flagged]


def extract_patient(payload: dict) -> dict:
    return {
        "name": as_text(first_present(payload, "patient_name", "name", "patientName")),
        "email": as_text(first_present(payload, "email", "patient_email", "patientEmail")),
        "phone": as_text(first_present(payload, "phone", "patient_phone", "patientPhone")),
    }


def build_responses(payload: dict) -> List[ChatResponse]:
    responses = []
    for step in STEP_ORDER:
        meta = STEPS[step]
        answer = as_text(payload.get(meta["field"]))
        if answer is None:
            continue
        concerns = [] if step in UNSCANNED_STEPS else concern_matches(answer)
        responses.append(ChatResponse(
            step=step,
            field_name=meta["field"],
            question=meta["question"],
            answer=answer,
            category=meta["category"],
            order=step_order(step),
            flagged=bool(concerns),
            concerns=concerns,
        ))
    return responses


def process_chatbot_data(payload: dict, default_risk: str = "low") -> ProcessedChat:
    """Turn a flat chatbot payload (canonical field names) into records to write."""
    responses = build_responses(payload)
    clinic = payload.get(field_for_step("clinic_location"))
    flagged = any(r.flagged for r in responses)
    assessment = {
        "status": "completed",
        "risk_level": determine_risk_level(payload, flagged=flagged, default=default_risk),
        "primary_concern": as_text(first_present(payload, "issue_type", "symptom_description")),
        "image_url": as_text(payload.get("image_file_url")),
        "image_analysis": as_text(payload.get("image_analysis_text")),
    }
    return ProcessedChat(
        patient=extract_patient(payload),
        responses=responses,
        clinic_location=as_text(clinic),
        assessment=assessment,
    )


def consultation_to_fields(payload: dict) -> dict:
    fields = {}
    for field_name, keys in CONSULTATION_FIELD_KEYS.items():
        value = first_present(payload, *keys)
        if is_present(value):
            fields[field_name] = value
    fields["email"] = first_present(payload, "email", "patientEmail", "patient_email")
    fields["phone"] = first_present(payload, "phone", "patientPhone", "patient_phone")
    return fields


def _parse_created_at(value) -> datetime | None:
    if not is_present(value) or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def consultation_record(payload: dict) -> dict:
    """Column values for the verbatim consultation row."""
    return {
        "name": as_text(first_present(payload, "name", "patientName", "patient_name", default=DEFAULT_PATIENT_NAME)),
        "email": as_text(first_present(payload, "email", "patientEmail", "patient_email")),
        "phone": as_text(first_present(payload, "phone", "patientPhone", "patient_phone")),
        "preferred_clinic": as_text(first_present(payload, *CONSULTATION_FIELD_KEYS["clinic_location"])),
        "issue_category": as_text(first_present(payload, *CONSULTATION_FIELD_KEYS["issue_type"], default=DEFAULT_CONCERN)),
        "issue_specifics": as_text(first_present(payload, *SPECIFICS_KEYS)),
        "symptom_description": as_text(first_present(payload, "symptomDescription", "symptom_description")),
        "previous_treatment": as_text(first_present(payload, "previousTreatment", "previous_treatment")),
        "has_image": as_text(first_present(payload, "hasImage", "has_image", default="No")),
        "image_path": as_text(first_present(payload, "imagePath", "image_path")),
        "image_analysis": as_text(first_present(payload, "imageAnalysis", "image_analysis")),
        "calendar_booking": as_text(first_present(payload, "calendarBooking", "calendar_booking")),
        "booking_confirmation": as_text(first_present(payload, "bookingConfirmation", "booking_confirmation")),
        "final_question": as_text(first_present(payload, "finalQuestion", "final_question")),
        "additional_help": as_text(first_present(payload, "additionalHelp", "additional_help")),
        "emoji_survey": as_text(first_present(payload, "emojiSurvey", "emoji_survey")),
        "survey_response": as_text(first_present(payload, "surveyResponse", "survey_response")),
        "conversation_log": as_list(first_present(payload, "conversationLog", "conversation_log")),
        "completed_steps": as_list(first_present(payload, "completedSteps", "completed_steps")),
        "created_at": _parse_created_at(first_present(payload, "createdAt", "created_at")),
    }
