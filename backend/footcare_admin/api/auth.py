import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Cookie, Depends, Header, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from footcare_admin import config
from footcare_admin.auth.security import new_token, token_expiry, verify_password
from footcare_admin.db.models import AuditEvent, SessionToken, utcnow
from footcare_admin.db.session import SessionLocal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

COOKIE_NAME = "auth_token"
ADMIN_PRINCIPAL = {"id": "admin", "role": "admin", "authenticated": True}


class LoginRequest(BaseModel):
    password: str = ""


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _token_from(authorization: str, auth_token: str | None) -> str:
    if authorization.startswith("Bearer "):
        return authorization.replace("Bearer ", "").strip()
    if auth_token:
        return auth_token.strip()
    return ""


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


def get_current_session(
    authorization: str = Header(default=""),
    auth_token: str | None = Cookie(default=None),
    db: Session = Depends(get_db)
) -> dict:
    if config.AUTH_DISABLED:
        return ADMIN_PRINCIPAL

    token = _token_from(authorization, auth_token)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")
    session = db.query(SessionToken).filter(SessionToken.token == token).first()
    if not session:
        raise HTTPException(status_code=401, detail="Unauthorized")
    if session.expires_at < utcnow():
        db.delete(session)
        db.commit()
        raise HTTPException(status_code=401, detail="Session expired")
    return ADMIN_PRINCIPAL


@router.post("/login")
def login(payload: LoginRequest, request: Request, response: Response, db: Session = Depends(get_db)):
    if not verify_password(payload.password):
        db.add(AuditEvent(
            actor="admin",
            action="failed_login",
            meta={"ip": _client_ip(request), "reason": "incorrect_password"}
        ))
        db.commit()
        logger.warning("Failed login attempt from %s", _client_ip(request))
        return JSONResponse(
            status_code=401,
            content={"success": False, "message": "Invalid password"},
        )

    token = new_token()
    session = SessionToken(token=token, expires_at=token_expiry())
    db.add(session)
    db.add(AuditEvent(actor="admin", action="user_login", meta={"ip": _client_ip(request)}))
    db.commit()

    max_age = int((session.expires_at - utcnow()).total_seconds())
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        secure=False,
        samesite="lax",
        max_age=max_age if max_age > 0 else None
    )
    return {"success": True, "message": "Login successful", "token": token}


@router.post("/logout")
def logout(
    response: Response,
    authorization: str = Header(default=""),
    auth_token: str | None = Cookie(default=None),
    db: Session = Depends(get_db)
):
    token = _token_from(authorization, auth_token)
    if token:
        deleted = db.query(SessionToken).filter(SessionToken.token == token).delete()
        if deleted:
            db.add(AuditEvent(actor="admin", action="user_logout", meta={}))
        db.commit()
    response.delete_cookie(COOKIE_NAME)
    return {"success": True}


@router.get("/auth/user")
def auth_user(principal: dict = Depends(get_current_session)):
    return principal


@router.get("/auth/audit")
def list_auth_audit(
    limit: int = 100,
    db: Session = Depends(get_db),
    principal: dict = Depends(get_current_session)
):
    rows = (
        db.query(AuditEvent)
        .order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc())
        .limit(max(1, min(limit, 500)))
        .all()
    )
    return [
        {
            "id": row.id,
            "actor": row.actor,
            "action": row.action,
            "meta": row.meta,
            "createdAt": row.created_at.isoformat() if row.created_at else None
        }
        for row in rows
    ]


def purge_expired_sessions(db: Session) -> int:
    removed = db.query(SessionToken).filter(SessionToken.expires_at < utcnow()).delete()
    db.commit()
    if removed:
        logger.info("Removed %d expired sessions at %s", removed, datetime.now(timezone.utc).isoformat())
    return removed
