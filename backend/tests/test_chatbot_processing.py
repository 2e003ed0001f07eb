from footcare_admin.chatbot.clinics import match_clinic, normalize_clinic_text, resolve_clinic_location
from footcare_admin.chatbot.extracter import as_text, first_present
from footcare_admin.chatbot.processor import (
    consultation_record,
    consultation_to_fields,
    process_chatbot_data,
)
from footcare_admin.chatbot.red_flags import concern_matches, determine_risk_level
from footcare_admin.chatbot.steps import STEP_ORDER, STEPS, field_for_step, step_order
from footcare_admin.db.models import Clinic


def _clinic(id, name, city):
    return Clinic(id=id, name=name, city=city, address="x", latitude="0", longitude="0")


def test_step_catalogue_covers_flow_in_order():
    assert STEP_ORDER[0] == "welcome"
    assert STEP_ORDER[-1] == "thanks"
    assert field_for_step("name") == "patient_name"
    assert field_for_step("issue_category") == "issue_type"
    assert field_for_step("pain_specifics") == "pain_presence"
    assert field_for_step("previous_treatment") == "treatment_history"
    assert step_order("name") < step_order("symptom_description")
    assert step_order("not-a-step") == len(STEP_ORDER) + 1
    for meta in STEPS.values():
        assert meta["question"]
        assert meta["category"]


def test_first_present_skips_blank_values():
    payload = {"preferredClinic": "   ", "preferred_clinic": "", "clinic_location": " Cork "}
    assert first_present(payload, "preferredClinic", "preferred_clinic", "clinic_location") == "Cork"
    assert first_present(payload, "missing", default="fallback") == "fallback"


def test_as_text_stringifies_non_strings():
    assert as_text(True) == "yes"
    assert as_text(["heel", "arch"]) == '["heel", "arch"]'
    assert as_text(4) == "4"
    assert as_text("  ") is None


def test_process_chatbot_data_builds_ordered_responses():
    payload = {
        "symptom_description": "Aching heel",
        "patient_name": "Cian Kelly",
        "issue_type": "Pain",
        "treatment_history": "",
        "asked_for_more_help": False,
    }
    processed = process_chatbot_data(payload)

    fields = [r.field_name for r in processed.responses]
    assert fields == ["patient_name", "issue_type", "symptom_description"]
    assert [r.order for r in processed.responses] == sorted(r.order for r in processed.responses)
    assert processed.responses[0].question == STEPS["name"]["question"]
    assert processed.responses[0].step == "name"


def test_process_chatbot_data_patient_and_assessment():
    payload = {
        "name": "Siobhan Byrne",
        "patient_email": "siobhan@example.ie",
        "phone": "",
        "patient_phone": "0861112222",
        "clinic_location": "Baldoyle",
        "symptom_description": "Hard skin on heel",
        "image_file_url": "https://img.example/1.png",
        "image_analysis_text": "Callus detected",
    }
    processed = process_chatbot_data(payload)

    assert processed.patient == {
        "name": "Siobhan Byrne",
        "email": "siobhan@example.ie",
        "phone": "0861112222",
    }
    assert processed.clinic_location == "Baldoyle"
    assert processed.assessment["status"] == "completed"
    assert processed.assessment["primary_concern"] == "Hard skin on heel"
    assert processed.assessment["image_url"] == "https://img.example/1.png"
    assert processed.assessment["image_analysis"] == "Callus detected"
    assert processed.assessment["risk_level"] == "low"


def test_risk_level_keywords_require_reported_pain():
    assert determine_risk_level({"pain_presence": "Yes", "symptom_description": "Severe throbbing"}) == "high"
    assert determine_risk_level({"pain_presence": "Heel", "symptom_description": "moderate ache"}) == "medium"
    assert determine_risk_level({"pain_presence": "No", "symptom_description": "severe"}) == "low"
    assert determine_risk_level({"symptom_description": "unbearable"}) == "low"
    assert determine_risk_level({"pain_presence": "Yes"}, default="medium") == "medium"


def test_flagged_response_raises_low_risk_to_medium():
    processed = process_chatbot_data({"symptom_description": "Redness and swelling on the toe"})
    assert processed.flagged_responses
    assert processed.assessment["risk_level"] == "medium"
    assert determine_risk_level({}, flagged=True, default="medium") == "medium"


def test_concern_matches_short_words_as_whole_words():
    assert "pus" in concern_matches("There is pus around the nail")
    assert concern_matches("I push through the pain") == []
    assert "numb" in concern_matches("My toes feel numb")
    assert concern_matches("numbered list") == []
    assert "can't walk" in concern_matches("I can’t walk properly")
    assert "diabetic" in concern_matches("I am Diabetic")
    assert concern_matches(None) == []


def test_normalize_clinic_text_drops_brand_words():
    assert normalize_clinic_text("FootCare Clinic - Donnybrook!") == "donnybrook"
    assert normalize_clinic_text("Foot Care Clinics, Cork") == "cork"


def test_match_clinic_prefers_id_then_exact_then_containment():
    clinics = [
        _clinic(1, "FootCare Clinic Donnybrook", "Dublin"),
        _clinic(2, "FootCare Clinic Palmerstown", "Dublin"),
        _clinic(3, "FootCare Clinic Cork", "Cork"),
    ]
    assert match_clinic("2", clinics).id == 2
    assert match_clinic("donnybrook", clinics).id == 1
    assert match_clinic("Cork", clinics).id == 3
    assert match_clinic("Palmers", clinics).id == 2
    assert match_clinic("Dublin", clinics).id == 1
    assert match_clinic("Galway", clinics) is None
    assert match_clinic("   ", clinics) is None


def test_resolve_clinic_location_stores_id_or_raw_text(db, make_clinic):
    clinic = make_clinic("FootCare Clinic Baldoyle", "Baldoyle")
    assert resolve_clinic_location(db, "Baldoyle Clinic") == str(clinic.id)
    assert resolve_clinic_location(db, "  Somewhere Else ") == "Somewhere Else"
    assert resolve_clinic_location(db, "") is None
    assert resolve_clinic_location(db, None) is None


def test_consultation_to_fields_maps_camel_case_keys():
    payload = {
        "name": "Eoin Ryan",
        "email": "eoin@example.ie",
        "preferredClinic": "Cork",
        "issueCategory": "Skin issues",
        "skinSpecifics": "Corns",
        "symptomDescription": "Hard skin",
        "previousTreatment": "None",
    }
    fields = consultation_to_fields(payload)
    assert fields["patient_name"] == "Eoin Ryan"
    assert fields["clinic_location"] == "Cork"
    assert fields["issue_type"] == "Skin issues"
    assert fields["skin_issue_general"] == "Corns"
    assert fields["symptom_description"] == "Hard skin"
    assert fields["treatment_history"] == "None"
    assert fields["email"] == "eoin@example.ie"


def test_consultation_record_defaults_and_specifics():
    record = consultation_record({
        "painSpecifics": "Heel",
        "conversationLog": [{"step": "name", "answer": "x"}],
        "completedSteps": '["welcome", "name"]',
    })
    assert record["name"] == "Unknown Patient"
    assert record["issue_category"] == "General consultation"
    assert record["issue_specifics"] == "Heel"
    assert record["has_image"] == "No"
    assert record["conversation_log"] == [{"step": "name", "answer": "x"}]
    assert record["completed_steps"] == ["welcome", "name"]
    assert record["created_at"] is None


def test_concern_matches_black_only_in_symptom_phrases():
    assert "black toe" in concern_matches("I have a black toenail")
    assert "turning black" in concern_matches("The skin is turning black")
    assert concern_matches("Sarah Black") == []
    assert concern_matches("Blackrock") == []


def test_identity_answers_are_never_flagged():
    processed = process_chatbot_data({
        "patient_name": "Sarah Black",
        "clinic_location": "Swelling Road Clinic",
        "symptom_description": "Dry skin on the heel",
    })

    assert [r.field_name for r in processed.responses] == ["patient_name", "clinic_location", "symptom_description"]
    assert processed.flagged_responses == []
    assert processed.assessment["risk_level"] == "low"
