import logging

from footcare_admin.chatbot.steps import STEP_ORDER, STEPS, step_order
from footcare_admin.db.base import Base
from footcare_admin.db import models  # noqa: F401  registers tables on Base.metadata
from footcare_admin.db.models import ChatbotSettings, Question
from footcare_admin.db.session import SessionLocal, engine

logger = logging.getLogger(__name__)


def seed_question_catalogue(db) -> int:
    existing = {text for (text,) in db.query(Question.text).all()}
    added = 0
    for step in STEP_ORDER:
        meta = STEPS[step]
        if meta["question"] in existing:
            continue
        db.add(Question(text=meta["question"], category=meta["category"], order=step_order(step)))
        existing.add(meta["question"])
        added += 1
    return added


def init_db():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if db.query(ChatbotSettings).first() is None:
            db.add(ChatbotSettings())
        added = seed_question_catalogue(db)
        db.commit()
    finally:
        db.close()
    logger.info("Database tables created successfully (%d catalogue questions added).", added)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
