import logging

from fastapi import FastAPI, Request, WebSocket
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from footcare_admin.config import APP_VERSION, CORS_ORIGINS, LOG_LEVEL
from footcare_admin.api.auth import router as auth_router, purge_expired_sessions
from footcare_admin.api.assessments import router as assessments_router
from footcare_admin.api.catalog import router as catalog_router
from footcare_admin.api.communications import router as communications_router
from footcare_admin.api.dashboard import router as dashboard_router
from footcare_admin.api.export import router as export_router
from footcare_admin.api.monitoring import router as monitoring_router
from footcare_admin.api.patients import router as patients_router
from footcare_admin.api.settings import router as settings_router
from footcare_admin.api.webhooks import router as webhooks_router
from footcare_admin.db.init_db import init_db
from footcare_admin.db.session import SessionLocal
from footcare_admin.realtime.broadcast import admin_socket

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="FootCare Admin Portal", version=APP_VERSION)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Validation error: %s for request %s", exc.errors(), request.url)
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors()), "body": jsonable_encoder(exc.body)},
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    logger.info("%s %s -> %s", request.method, request.url, response.status_code)
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(auth_router)
app.include_router(webhooks_router)
app.include_router(patients_router)
app.include_router(assessments_router)
app.include_router(catalog_router)
app.include_router(dashboard_router)
app.include_router(communications_router)
app.include_router(settings_router)
app.include_router(export_router)
app.include_router(monitoring_router)


@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await admin_socket(ws)


@app.on_event("startup")
def on_startup():
    init_db()
    db = SessionLocal()
    try:
        purge_expired_sessions(db)
    finally:
        db.close()
    logger.info("FootCare admin portal started")
