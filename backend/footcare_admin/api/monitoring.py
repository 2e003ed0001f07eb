"""
Health check for load balancers and uptime probes.
"""
from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.orm import Session

from footcare_admin.config import APP_VERSION
from footcare_admin.db.models import Assessment, Patient
from footcare_admin.db.session import SessionLocal
from footcare_admin.notify.twilio_client import sms_configured
from footcare_admin.realtime.broadcast import manager

router = APIRouter()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class HealthCheck(BaseModel):
    status: str  # healthy, degraded, unhealthy
    timestamp: str
    version: str
    checks: Dict[str, str]
    websocketClients: int


@router.get("/health", response_model=HealthCheck)
def health_check(db: Session = Depends(get_db)):
    checks = {}
    overall_status = "healthy"

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        checks["database"] = f"unhealthy: {str(e)}"
        overall_status = "unhealthy"

    try:
        db.query(Patient).first()
        db.query(Assessment).first()
        checks["tables"] = "healthy"
    except Exception as e:
        checks["tables"] = f"unhealthy: {str(e)}"
        overall_status = "unhealthy"

    # SMS is optional; missing credentials never fail the check
    checks["twilio"] = "configured" if sms_configured() else "not_configured"

    return HealthCheck(
        status=overall_status,
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=APP_VERSION,
        checks=checks,
        websocketClients=manager.count,
    )
