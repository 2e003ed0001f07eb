from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlalchemy.orm import Session

from footcare_admin.api.auth import get_current_session
from footcare_admin.api.serializers import CamelModel, settings_out
from footcare_admin.db.models import ChatbotSettings
from footcare_admin.db.session import SessionLocal

router = APIRouter(prefix="/api/chatbot-settings")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class ChatbotSettingsUpdate(CamelModel):
    welcome_message: Optional[str] = Field(default=None, min_length=10)
    bot_display_name: Optional[str] = Field(default=None, min_length=3)
    cta_button_label: Optional[str] = Field(default=None, min_length=3)
    chatbot_tone: Optional[Literal["Friendly", "Professional", "Clinical", "Casual"]] = None


def get_or_create_settings(db: Session) -> ChatbotSettings:
    settings = db.query(ChatbotSettings).order_by(ChatbotSettings.id.asc()).first()
    if settings is None:
        settings = ChatbotSettings()
        db.add(settings)
        db.commit()
        db.refresh(settings)
    return settings


@router.get("")
def get_settings(db: Session = Depends(get_db), principal=Depends(get_current_session)):
    return settings_out(get_or_create_settings(db))


@router.patch("")
def update_settings(
    payload: ChatbotSettingsUpdate,
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    settings = get_or_create_settings(db)
    changes = payload.model_dump(exclude_unset=True)
    if any(value is None for value in changes.values()):
        raise HTTPException(status_code=400, detail="Settings fields cannot be null")
    for key, value in changes.items():
        setattr(settings, key, value)
    db.commit()
    db.refresh(settings)
    return settings_out(settings)
