from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import String, cast, func, or_
from sqlalchemy.orm import Query, Session, joinedload

from footcare_admin.db.models import (
    Assessment,
    AssessmentCondition,
    Clinic,
    Condition,
    Patient,
    Response,
    naive_utc,
    utcnow,
)


def assessments_query(
    db: Session,
    patient_id: Optional[int] = None,
    status: Optional[str] = None,
    risk_level: Optional[str] = None,
    clinic_location: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    search: Optional[str] = None,
    condition: Optional[str] = None,
) -> Query:
    query = (
        db.query(Assessment)
        .join(Patient, Assessment.patient_id == Patient.id)
        .options(joinedload(Assessment.patient))
    )
    if patient_id:
        query = query.filter(Assessment.patient_id == patient_id)
    if status:
        query = query.filter(Assessment.status == status)
    if risk_level:
        query = query.filter(Assessment.risk_level == risk_level)
    if clinic_location:
        query = query.filter(Assessment.clinic_location == clinic_location)
    if start_date:
        query = query.filter(Assessment.completed_at >= naive_utc(start_date))
    if end_date:
        query = query.filter(Assessment.completed_at <= naive_utc(end_date))
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(or_(
            Patient.name.ilike(term),
            Patient.email.ilike(term),
            Patient.phone.ilike(term),
        ))
    if condition:
        query = query.filter(Assessment.primary_concern.ilike(f"%{condition.strip()}%"))
    return query


def page_of(query: Query, page: int, limit: int) -> tuple[list, int]:
    total = query.order_by(None).count()
    rows = (
        query.order_by(Assessment.completed_at.desc(), Assessment.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def completed_assessments_count(db: Session) -> int:
    return db.query(func.count(Assessment.id)).filter(Assessment.status == "completed").scalar() or 0


def weekly_assessments_count(db: Session, now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    week_ago = now - timedelta(days=7)
    return (
        db.query(func.count(Assessment.id))
        .filter(Assessment.completed_at >= week_ago, Assessment.completed_at <= now)
        .scalar()
        or 0
    )


def flagged_responses_count(db: Session) -> int:
    return db.query(func.count(Response.id)).filter(Response.flagged.is_(True)).scalar() or 0


def patients_count(db: Session) -> int:
    return db.query(func.count(Patient.id)).scalar() or 0


def dashboard_stats(db: Session) -> dict:
    return {
        "completedAssessments": completed_assessments_count(db),
        "weeklyAssessments": weekly_assessments_count(db),
        "flaggedResponses": flagged_responses_count(db),
        "totalPatients": patients_count(db),
    }


def _as_day(value) -> str:
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return str(value)[:10]


def assessments_trend(db: Session, days: int = 7, today: Optional[date] = None) -> list[dict]:
    """Completed assessments per day from `days` days ago through today, zero-filled."""
    today = today or utcnow().date()
    start_day = today - timedelta(days=days)
    start = datetime.combine(start_day, datetime.min.time())

    day_col = func.date(Assessment.completed_at)
    rows = (
        db.query(day_col, func.count(Assessment.id))
        .filter(Assessment.completed_at >= start)
        .group_by(day_col)
        .all()
    )
    counts = {_as_day(day): count for day, count in rows if day is not None}

    trend = []
    for offset in range(days + 1):
        day = (start_day + timedelta(days=offset)).isoformat()
        trend.append({"date": day, "count": counts.get(day, 0)})
    return trend


def top_conditions(db: Session, limit: int = 5) -> list[dict]:
    count_col = func.count(AssessmentCondition.assessment_id)
    rows = (
        db.query(Condition.name, count_col)
        .join(AssessmentCondition, AssessmentCondition.condition_id == Condition.id)
        .group_by(Condition.name)
        .order_by(count_col.desc(), Condition.name.asc())
        .limit(limit)
        .all()
    )
    return [{"condition": name, "count": count} for name, count in rows]


def risk_distribution(db: Session) -> dict:
    rows = (
        db.query(Assessment.risk_level, func.count(Assessment.id))
        .group_by(Assessment.risk_level)
        .all()
    )
    dist = {"low": 0, "medium": 0, "high": 0, "unknown": 0}
    for level, count in rows:
        dist[level if level in dist else "unknown"] += count
    return dist


def clinic_assessment_counts(db: Session) -> list[tuple[Clinic, int]]:
    count_col = func.count(Assessment.id)
    return (
        db.query(Clinic, count_col)
        .outerjoin(Assessment, cast(Clinic.id, String) == Assessment.clinic_location)
        .group_by(Clinic.id)
        .order_by(count_col.desc(), Clinic.name.asc())
        .all()
    )
