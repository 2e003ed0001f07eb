from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Boolean, JSON, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy import Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from footcare_admin.db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def naive_utc(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


ASSESSMENT_STATUSES = ("in_progress", "completed", "flagged", "in_review")
RISK_LEVELS = ("low", "medium", "high")
COMMUNICATION_TYPES = ("email", "sms", "message", "portal", "call")
COMMUNICATION_STATUSES = ("sent", "delivered", "read", "failed")
FOLLOW_UP_TYPES = ("appointment", "call", "check_in")
FOLLOW_UP_STATUSES = ("pending", "scheduled", "completed", "cancelled")
CHATBOT_TONES = ("Friendly", "Professional", "Clinical", "Casual")


class Patient(Base):
    __tablename__ = "patients"
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=True)
    phone = Column(String)
    age = Column(Integer)
    gender = Column(String)
    insurance_type = Column(String)  # HSE Public, Private Insurance, Self-Pay, DPS Medical Card
    date_of_birth = Column(DateTime)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    assessments = relationship("Assessment", back_populates="patient")

    __table_args__ = (
        Index("idx_patient_phone", "phone"),
        Index("idx_patient_created", "created_at"),
    )


class Assessment(Base):
    __tablename__ = "assessments"
    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    completed_at = Column(DateTime)
    status = Column(String, nullable=False, default="in_progress")
    risk_level = Column(String)
    primary_concern = Column(String)
    score = Column(Integer)
    clinic_location = Column(String)  # clinic id as text when resolved, raw chatbot text otherwise
    image_url = Column(Text)
    image_analysis = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    patient = relationship("Patient", back_populates="assessments")
    responses = relationship("Response", back_populates="assessment")

    __table_args__ = (
        CheckConstraint(
            "status IN ('in_progress', 'completed', 'flagged', 'in_review')",
            name="check_assessment_status",
        ),
        CheckConstraint(
            "risk_level IS NULL OR risk_level IN ('low', 'medium', 'high')",
            name="check_assessment_risk_level",
        ),
        Index("idx_assessment_patient", "patient_id", "completed_at"),
        Index("idx_assessment_status", "status", "completed_at"),
        Index("idx_assessment_clinic", "clinic_location"),
    )


class Question(Base):
    __tablename__ = "questions"
    id = Column(Integer, primary_key=True)
    text = Column(Text, nullable=False, unique=True)
    category = Column(String)
    order = Column(Integer)
    created_at = Column(DateTime, server_default=func.now())


class Response(Base):
    __tablename__ = "responses"
    id = Column(Integer, primary_key=True)
    assessment_id = Column(Integer, ForeignKey("assessments.id"), nullable=False)
    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False)
    answer = Column(Text)
    flagged = Column(Boolean, default=False)
    created_at = Column(DateTime, server_default=func.now())

    assessment = relationship("Assessment", back_populates="responses")
    question = relationship("Question")

    __table_args__ = (
        Index("idx_response_assessment", "assessment_id"),
        Index("idx_response_flagged", "flagged", "created_at"),
    )


class Condition(Base):
    __tablename__ = "conditions"
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False, unique=True)
    description = Column(Text)
    created_at = Column(DateTime, server_default=func.now())


class AssessmentCondition(Base):
    __tablename__ = "assessment_conditions"
    assessment_id = Column(Integer, ForeignKey("assessments.id"), primary_key=True)
    condition_id = Column(Integer, ForeignKey("conditions.id"), primary_key=True)


class Clinic(Base):
    __tablename__ = "clinics"
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=False)
    city = Column(String, nullable=False)
    state = Column(String)
    zip_code = Column(String)
    latitude = Column(String, nullable=False)
    longitude = Column(String, nullable=False)
    phone = Column(String)
    email = Column(String)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Communication(Base):
    __tablename__ = "communications"
    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    type = Column(String(50), nullable=False)
    subject = Column(String(255))
    message = Column(Text, nullable=False)
    sent_by = Column(String(100), nullable=False)
    status = Column(String(50), default="sent")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    patient = relationship("Patient")

    __table_args__ = (
        Index("idx_communication_patient", "patient_id", "created_at"),
    )


class FollowUp(Base):
    __tablename__ = "follow_ups"
    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    assessment_id = Column(Integer, ForeignKey("assessments.id"), nullable=True)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    scheduled_for = Column(DateTime, nullable=False)
    status = Column(String(50), default="pending")
    assigned_to = Column(String(100))
    created_by = Column(String(100), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    patient = relationship("Patient")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'scheduled', 'completed', 'cancelled')",
            name="check_follow_up_status",
        ),
        Index("idx_follow_up_scheduled", "scheduled_for"),
        Index("idx_follow_up_patient", "patient_id"),
    )


class Consultation(Base):
    """Chatbot payload stored as received, before conversion to patient/assessment rows"""
    __tablename__ = "consultations"

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    email = Column(Text)
    phone = Column(Text)
    preferred_clinic = Column(Text)
    issue_category = Column(Text)
    issue_specifics = Column(Text)
    symptom_description = Column(Text)
    previous_treatment = Column(Text)
    has_image = Column(Text)
    image_path = Column(Text)
    image_analysis = Column(Text)
    calendar_booking = Column(Text)
    booking_confirmation = Column(Text)
    final_question = Column(Text)
    additional_help = Column(Text)
    emoji_survey = Column(Text)
    survey_response = Column(Text)
    conversation_log = Column(JSON)
    completed_steps = Column(JSON)
    created_at = Column(DateTime, server_default=func.now())


class ChatbotSettings(Base):
    __tablename__ = "chatbot_settings"
    id = Column(Integer, primary_key=True)
    welcome_message = Column(Text, default="Hello! How can I help you with your foot care needs today?")
    bot_display_name = Column(String, default="Fiona - FootCare Assistant")
    cta_button_label = Column(String, default="Ask Fiona")
    chatbot_tone = Column(String, default="Friendly")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "chatbot_tone IN ('Friendly', 'Professional', 'Clinical', 'Casual')",
            name="check_chatbot_tone",
        ),
    )


class SessionToken(Base):
    __tablename__ = "session_tokens"
    id = Column(Integer, primary_key=True)
    token = Column(String, nullable=False, unique=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class AuditEvent(Base):
    __tablename__ = "audit_events"
    id = Column(Integer, primary_key=True)
    actor = Column(String, nullable=False, default="system")
    action = Column(String, nullable=False)
    meta = Column(JSON)
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        Index("idx_audit_action", "action", "created_at"),
    )
