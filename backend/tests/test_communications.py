from types import SimpleNamespace

import pytest

from footcare_admin.notify import twilio_client


@pytest.fixture
def patient(client, auth_headers):
    res = client.post(
        "/api/patients",
        headers=auth_headers,
        json={"name": "Niamh O'Brien", "email": "niamh@example.ie", "phone": "0871112233"},
    )
    return res.json()


def _message(patient_id, **overrides):
    body = {
        "patientId": patient_id,
        "type": "email",
        "subject": "Appointment reminder",
        "message": "See you on Tuesday at 10am.",
        "sentBy": "Reception",
    }
    body.update(overrides)
    return body


def test_create_and_list_communications(client, auth_headers, patient):
    res = client.post("/api/communications", headers=auth_headers, json=_message(patient["id"]))
    assert res.status_code == 201, res.text
    assert res.json()["status"] == "sent"
    client.post("/api/communications", headers=auth_headers, json=_message(patient["id"], subject="Results"))

    rows = client.get("/api/communications", headers=auth_headers).json()
    assert [r["subject"] for r in rows] == ["Results", "Appointment reminder"]
    assert rows[0]["patient"]["name"] == "Niamh O'Brien"


@pytest.mark.parametrize("overrides, status", [
    ({"type": "fax"}, 422),
    ({"subject": ""}, 422),
    ({"sentBy": ""}, 422),
    ({"subject": "  "}, 422),
    ({"sentBy": "   "}, 422),
    ({"patientId": 999}, 404),
])
def test_create_communication_validation(client, auth_headers, patient, overrides, status):
    res = client.post("/api/communications", headers=auth_headers, json=_message(patient["id"], **overrides))
    assert res.status_code == status


def test_sms_delivered_through_twilio(client, auth_headers, patient, monkeypatch):
    sent = []
    monkeypatch.setattr(twilio_client, "sms_configured", lambda: True)
    monkeypatch.setattr(
        twilio_client, "send_sms",
        lambda phone, body: sent.append((phone, body)) or SimpleNamespace(sid="SM123"),
    )

    res = client.post("/api/communications", headers=auth_headers, json=_message(patient["id"], type="sms"))
    assert res.json()["status"] == "sent"
    assert sent == [("0871112233", "See you on Tuesday at 10am.")]


def test_sms_failure_marks_communication_failed(client, auth_headers, patient, monkeypatch):
    monkeypatch.setattr(twilio_client, "sms_configured", lambda: True)
    monkeypatch.setattr(twilio_client, "send_sms", lambda phone, body: None)

    res = client.post("/api/communications", headers=auth_headers, json=_message(patient["id"], type="sms"))
    assert res.json()["status"] == "failed"


def test_sms_without_twilio_is_recorded_as_sent(client, auth_headers, patient):
    res = client.post("/api/communications", headers=auth_headers, json=_message(patient["id"], type="sms"))
    assert res.json()["status"] == "sent"


def test_normalize_phone_adds_country_code():
    assert twilio_client.normalize_phone("087 111 2233") == "+353871112233"
    assert twilio_client.normalize_phone("+447700900123") == "+447700900123"


def test_update_communication_status(client, auth_headers, patient):
    comm = client.post("/api/communications", headers=auth_headers, json=_message(patient["id"])).json()
    res = client.patch(f"/api/communications/{comm['id']}", headers=auth_headers, json={"status": "read"})
    assert res.json()["status"] == "read"
    bad = client.patch(f"/api/communications/{comm['id']}", headers=auth_headers, json={"status": "lost"})
    assert bad.status_code == 422


def test_follow_up_lifecycle(client, auth_headers, patient, chatbot_payload):
    assessment = client.post("/api/webhook/chatbot", json=chatbot_payload()).json()
    body = {
        "patientId": patient["id"],
        "assessmentId": assessment["assessmentId"],
        "type": "appointment",
        "title": "Review ingrown toenail",
        "scheduledFor": "2026-11-02T10:00:00Z",
        "createdBy": "Dr Walsh",
    }
    res = client.post("/api/followups", headers=auth_headers, json=body)
    assert res.status_code == 201, res.text
    follow_up = res.json()
    assert follow_up["status"] == "scheduled"
    assert follow_up["scheduledFor"] == "2026-11-02T10:00:00"

    later = dict(body, title="Second review", scheduledFor="2026-12-01T09:00:00")
    client.post("/api/followups", headers=auth_headers, json=later)
    rows = client.get("/api/followups", headers=auth_headers).json()
    assert [r["title"] for r in rows] == ["Second review", "Review ingrown toenail"]

    res = client.patch(
        f"/api/followups/{follow_up['id']}",
        headers=auth_headers,
        json={"status": "completed", "assignedTo": "Nurse Byrne"},
    )
    assert res.json()["status"] == "completed"
    assert res.json()["assignedTo"] == "Nurse Byrne"


@pytest.mark.parametrize("overrides, status", [
    ({"type": "visit"}, 422),
    ({"title": ""}, 422),
    ({"createdBy": ""}, 422),
    ({"title": "   "}, 422),
    ({"createdBy": "  "}, 422),
    ({"scheduledFor": None}, 422),
    ({"assessmentId": 999}, 400),
    ({"patientId": 999}, 404),
])
def test_follow_up_validation(client, auth_headers, patient, overrides, status):
    body = {
        "patientId": patient["id"],
        "type": "call",
        "title": "Check in",
        "scheduledFor": "2026-11-02T10:00:00",
        "createdBy": "Reception",
    }
    body.update(overrides)
    assert client.post("/api/followups", headers=auth_headers, json=body).status_code == status
