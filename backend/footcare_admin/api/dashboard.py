from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from footcare_admin.api.auth import get_current_session
from footcare_admin.db import queries
from footcare_admin.db.session import SessionLocal

router = APIRouter(prefix="/api/dashboard")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@router.get("/stats")
def dashboard_stats(db: Session = Depends(get_db), principal=Depends(get_current_session)):
    return queries.dashboard_stats(db)


@router.get("/trends")
def dashboard_trends(
    days: int = Query(default=7, ge=1, le=365),
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    return queries.assessments_trend(db, days=days)


@router.get("/conditions")
def dashboard_conditions(
    limit: int = Query(default=5, ge=1, le=50),
    db: Session = Depends(get_db),
    principal=Depends(get_current_session)
):
    return queries.top_conditions(db, limit=limit)


@router.get("/risk-distribution")
def dashboard_risk_distribution(db: Session = Depends(get_db), principal=Depends(get_current_session)):
    return queries.risk_distribution(db)
