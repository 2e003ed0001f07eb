from footcare_admin.api import webhooks
from footcare_admin.chatbot.ingest import ingest_chat
from footcare_admin.db.models import (
    Assessment,
    AssessmentCondition,
    AuditEvent,
    Condition,
    Consultation,
    Patient,
    Response,
)


def test_chatbot_webhook_creates_patient_assessment_and_responses(client, db, make_clinic, chatbot_payload):
    clinic = make_clinic("FootCare Clinic Donnybrook", "Dublin")

    res = client.post("/api/webhook/chatbot", json=chatbot_payload())
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["success"] is True
    assert body["flaggedResponses"] == 0

    patient = db.get(Patient, body["patientId"])
    assert patient.name == "Aoife Murphy"
    assert patient.email == "aoife@example.ie"

    assessment = db.get(Assessment, body["assessmentId"])
    assert assessment.status == "completed"
    assert assessment.risk_level == "low"
    assert assessment.primary_concern == "Nail problems"
    assert assessment.clinic_location == str(clinic.id)
    assert assessment.completed_at is not None

    responses = db.query(Response).filter(Response.assessment_id == assessment.id).all()
    assert len(responses) == 6
    assert not any(r.flagged for r in responses)

    condition = db.query(Condition).filter(Condition.name == "Nail problems").one()
    link = db.query(AssessmentCondition).filter(AssessmentCondition.assessment_id == assessment.id).one()
    assert link.condition_id == condition.id

    audit = db.query(AuditEvent).filter(AuditEvent.action == "assessment_ingested").one()
    assert audit.meta["assessment_id"] == assessment.id


def test_chatbot_webhook_reuses_patient_by_email_then_phone(client, db, chatbot_payload):
    first = client.post("/api/webhook/chatbot", json=chatbot_payload()).json()
    second = client.post("/api/webhook/chatbot", json=chatbot_payload(email="AOIFE@example.ie")).json()
    third = client.post("/api/webhook/chatbot", json=chatbot_payload(email="", patient_name="A. Murphy")).json()

    assert first["patientId"] == second["patientId"] == third["patientId"]
    assert first["assessmentId"] != second["assessmentId"]
    assert db.query(Patient).count() == 1


def test_chatbot_webhook_matches_phone_in_any_format(client, db, auth_headers, chatbot_payload):
    created = client.post(
        "/api/patients",
        headers=auth_headers,
        json={"name": "Aoife Murphy", "phone": "0871234567"},
    ).json()

    body = client.post("/api/webhook/chatbot", json=chatbot_payload(email="", phone="087 123 4567")).json()

    assert body["patientId"] == created["id"]
    assert db.query(Patient).count() == 1
    assert db.get(Patient, created["id"]).phone == "0871234567"


def test_chatbot_webhook_stores_normalized_phone(client, db, chatbot_payload):
    body = client.post("/api/webhook/chatbot", json=chatbot_payload(email="", phone="(087) 123-4567")).json()
    assert db.get(Patient, body["patientId"]).phone == "0871234567"


def test_chatbot_webhook_does_not_flag_patient_name(client, db, chatbot_payload):
    body = client.post("/api/webhook/chatbot", json=chatbot_payload(patient_name="Sarah Black")).json()

    assert body["flaggedResponses"] == 0
    assert db.get(Assessment, body["assessmentId"]).risk_level == "low"
    assert db.query(Response).filter(Response.flagged.is_(True)).count() == 0
    assert db.query(Patient).count() == 1


def test_chatbot_webhook_defaults_unknown_patient_and_raw_clinic(client, db):
    res = client.post("/api/webhook/chatbot", json={"clinic_location": "  Galway  ", "issue_type": "Pain"})
    assert res.status_code == 200
    body = res.json()
    assert db.get(Patient, body["patientId"]).name == "Unknown Patient"
    assert db.get(Assessment, body["assessmentId"]).clinic_location == "Galway"


def test_chatbot_webhook_flags_concerning_answers(client, db, chatbot_payload):
    payload = chatbot_payload(
        pain_presence="Yes",
        symptom_description="Severe pain and swelling around the nail",
    )
    body = client.post("/api/webhook/chatbot", json=payload).json()

    assert body["flaggedResponses"] == 1
    assessment = db.get(Assessment, body["assessmentId"])
    assert assessment.risk_level == "high"
    flagged = db.query(Response).filter(Response.flagged.is_(True)).all()
    assert [r.answer for r in flagged] == ["Severe pain and swelling around the nail"]


def test_consultation_webhook_stores_payload_and_ingests(client, db, make_clinic):
    clinic = make_clinic("FootCare Clinic Cork", "Cork")
    payload = {
        "name": "Eoin Ryan",
        "email": "eoin@example.ie",
        "phone": "0851234567",
        "preferredClinic": "Cork",
        "issueCategory": "Skin issues",
        "skinSpecifics": "Corns",
        "symptomDescription": "Hard skin on the little toe",
        "previousTreatment": "None",
        "hasImage": "No",
        "conversationLog": [{"step": "name", "answer": "Eoin Ryan"}],
        "completedSteps": ["welcome", "name"],
    }
    res = client.post("/api/webhook/consultation", json=payload)
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["success"] is True

    consultation = db.get(Consultation, body["consultationId"])
    assert consultation.name == "Eoin Ryan"
    assert consultation.preferred_clinic == "Cork"
    assert consultation.issue_specifics == "Corns"
    assert consultation.conversation_log == [{"step": "name", "answer": "Eoin Ryan"}]
    assert consultation.completed_steps == ["welcome", "name"]

    assessment = db.get(Assessment, body["assessmentId"])
    assert assessment.patient_id == body["patientId"]
    assert assessment.risk_level == "medium"
    assert assessment.primary_concern == "Skin issues"
    assert assessment.clinic_location == str(clinic.id)
    assert db.query(Condition).filter(Condition.name == "Skin issues").count() == 1


def test_consultation_webhook_defaults_concern(client, db):
    body = client.post("/api/webhook/consultation", json={"name": "Orla Kennedy"}).json()
    assessment = db.get(Assessment, body["assessmentId"])
    assert assessment.primary_concern == "General consultation"
    assert db.get(Consultation, body["consultationId"]).issue_category == "General consultation"


def test_webhook_rejects_non_object_body(client):
    res = client.post("/api/webhook/chatbot", json=["not", "an", "object"])
    assert res.status_code == 422


def test_failed_ingestion_rolls_back_but_keeps_consultation(client, db, monkeypatch):
    def broken_ingest(session, fields, **kwargs):
        ingest_chat(session, fields, **kwargs)
        raise RuntimeError("disk full")

    monkeypatch.setattr(webhooks, "ingest_chat", broken_ingest)
    res = client.post("/api/webhook/consultation", json={"name": "Ciara Lynch", "email": "ciara@example.ie"})

    assert res.status_code == 500
    assert res.json() == {"success": False, "message": "Failed to process consultation data"}
    assert db.query(Consultation).count() == 1
    assert db.query(Patient).count() == 0
    assert db.query(Assessment).count() == 0


def test_webhooks_broadcast_to_websocket_clients(client, chatbot_payload):
    with client.websocket_connect("/ws") as ws:
        payload = chatbot_payload(symptom_description="Bleeding from the toe")
        body = client.post("/api/webhook/chatbot", json=payload).json()

        new_assessment = ws.receive_json()
        assert new_assessment["type"] == "new_assessment"
        assert new_assessment["data"]["assessmentId"] == body["assessmentId"]
        assert new_assessment["data"]["patientId"] == body["patientId"]
        assert "timestamp" in new_assessment["data"]

        flagged = ws.receive_json()
        assert flagged["type"] == "flagged_response"
        assert flagged["data"]["answer"] == "Bleeding from the toe"
        assert "bleeding" in flagged["data"]["concerns"]


def test_consultation_webhook_broadcasts_new_consultation_first(client):
    with client.websocket_connect("/ws") as ws:
        body = client.post("/api/webhook/consultation", json={"name": "Grainne Doyle"}).json()
        first = ws.receive_json()
        second = ws.receive_json()

    assert first["type"] == "new_consultation"
    assert first["data"]["consultationId"] == body["consultationId"]
    assert second["type"] == "new_assessment"


def test_list_consultations_requires_auth(client, auth_headers):
    client.post("/api/webhook/consultation", json={"name": "Padraig McCarthy"})
    client.post("/api/webhook/consultation", json={"name": "Niamh O'Brien"})

    assert client.get("/api/consultations").status_code == 401
    rows = client.get("/api/consultations", headers=auth_headers).json()
    assert [r["name"] for r in rows] == ["Niamh O'Brien", "Padraig McCarthy"]
