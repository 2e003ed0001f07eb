from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path
from typing import Callable

import pytest

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

# The engine is built at import time, so the database must be chosen first.
_DB_DIR = tempfile.mkdtemp(prefix="footcare-test-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_DB_DIR) / 'footcare-test.sqlite'}"
os.environ["ADMIN_PASSWORD"] = "test-password"
os.environ["AUTH_DISABLED"] = "false"
for _name in ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_FROM_NUMBER"):
    os.environ[_name] = ""

from fastapi.testclient import TestClient  # noqa: E402

from footcare_admin import config  # noqa: E402
from footcare_admin.db.base import Base  # noqa: E402
from footcare_admin.db.models import Clinic  # noqa: E402
from footcare_admin.db.session import SessionLocal, engine  # noqa: E402
from footcare_admin.main import app  # noqa: E402
from footcare_admin.realtime.broadcast import manager  # noqa: E402

ADMIN_PASSWORD = "test-password"


@pytest.fixture(autouse=True)
def fresh_schema(monkeypatch):
    monkeypatch.setattr(config, "AUTH_DISABLED", False)
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    manager._clients.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client) -> dict[str, str]:
    res = client.post("/api/login", json={"password": ADMIN_PASSWORD})
    assert res.status_code == 200, res.text
    # Tests authenticate explicitly through the header.
    client.cookies.clear()
    return {"Authorization": f"Bearer {res.json()['token']}"}


@pytest.fixture
def make_clinic(db) -> Callable[..., Clinic]:
    def _make(name: str, city: str, **extra) -> Clinic:
        clinic = Clinic(
            name=name,
            address=extra.pop("address", "1 Main Street"),
            city=city,
            latitude=extra.pop("latitude", "53.35"),
            longitude=extra.pop("longitude", "-6.26"),
            **extra,
        )
        db.add(clinic)
        db.commit()
        db.refresh(clinic)
        return clinic

    return _make


@pytest.fixture
def chatbot_payload() -> Callable[..., dict]:
    def _make(**overrides) -> dict:
        payload = {
            "patient_name": "Aoife Murphy",
            "email": "aoife@example.ie",
            "phone": "0871234567",
            "clinic_location": "Donnybrook",
            "issue_type": "Nail problems",
            "nail_issue_details": "Ingrown toenail",
            "symptom_description": "Mild discomfort when wearing shoes",
            "treatment_history": "None",
        }
        payload.update(overrides)
        return payload

    return _make
