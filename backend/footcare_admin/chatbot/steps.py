STEPS = {
    # Welcome & basic info
    "welcome": {
        "field": "interaction_start",
        "category": "welcome",
        "question": "Welcome to FootCare Clinic",
    },
    "name": {
        "field": "patient_name",
        "category": "welcome",
        "question": "What is your name?",
    },
    "clinic_location": {
        "field": "clinic_location",
        "category": "welcome",
        "question": "Which clinic location would you prefer?",
    },
    "clinic_info_confirm": {
        "field": "clinic_info_confirmed",
        "category": "welcome",
        "question": "Is this clinic location correct?",
    },

    # Image upload & analysis
    "upload_prompt": {
        "field": "image_upload_prompted",
        "category": "image",
        "question": "Would you like to upload an image of your foot concern?",
    },
    "image_upload": {
        "field": "image_file_url",
        "category": "image",
        "question": "Please upload your image",
    },
    "image_analysis": {
        "field": "image_analysis_requested",
        "category": "image",
        "question": "Would you like AI analysis of your image?",
    },
    "image_analysis_results": {
        "field": "image_analysis_text",
        "category": "image",
        "question": "Image analysis results",
    },

    # Issue classification
    "issue_category": {
        "field": "issue_type",
        "category": "issue",
        "question": "What type of foot issue are you experiencing?",
    },

    # Pain
    "pain_specifics": {
        "field": "pain_presence",
        "category": "pain",
        "question": "Are you experiencing pain?",
    },
    "heel_pain_type": {
        "field": "pain_heel_type",
        "category": "pain",
        "question": "What type of heel pain?",
    },
    "arch_pain_type": {
        "field": "pain_arch_type",
        "category": "pain",
        "question": "What type of arch pain?",
    },
    "ball_foot_pain_type": {
        "field": "pain_ball_type",
        "category": "pain",
        "question": "What type of ball of foot pain?",
    },
    "toe_pain_type": {
        "field": "pain_toe_type",
        "category": "pain",
        "question": "What type of toe pain?",
    },
    "ankle_pain_type": {
        "field": "pain_ankle_type",
        "category": "pain",
        "question": "What type of ankle pain?",
    },
    "entire_foot_pain_type": {
        "field": "pain_whole_foot_type",
        "category": "pain",
        "question": "What type of whole foot pain?",
    },

    # Nails
    "nail_specifics": {
        "field": "nail_issue_details",
        "category": "nail",
        "question": "Please describe your nail condition",
    },

    # Skin
    "skin_specifics": {
        "field": "skin_issue_general",
        "category": "skin",
        "question": "What type of skin condition?",
    },
    "calluses_details": {
        "field": "calluses_info",
        "category": "skin",
        "question": "Tell us about your calluses",
    },
    "dry_skin_details": {
        "field": "dry_skin_info",
        "category": "skin",
        "question": "Describe your dry skin condition",
    },
    "rash_details": {
        "field": "rash_info",
        "category": "skin",
        "question": "Tell us about the rash",
    },
    "warts_details": {
        "field": "warts_info",
        "category": "skin",
        "question": "Describe the warts",
    },
    "athletes_foot_details": {
        "field": "athletes_foot_info",
        "category": "skin",
        "question": "Tell us about the athlete's foot symptoms",
    },

    # Structural
    "structural_specifics": {
        "field": "structural_issue_general",
        "category": "structural",
        "question": "What structural issue are you experiencing?",
    },
    "bunions_details": {
        "field": "bunions_info",
        "category": "structural",
        "question": "Tell us about your bunions",
    },
    "hammer_toes_details": {
        "field": "hammer_toes_info",
        "category": "structural",
        "question": "Describe your hammer toes",
    },
    "flat_feet_details": {
        "field": "flat_feet_info",
        "category": "structural",
        "question": "Tell us about your flat feet",
    },
    "high_arches_details": {
        "field": "high_arches_info",
        "category": "structural",
        "question": "Describe your high arches",
    },
    "claw_toes_details": {
        "field": "claw_toes_info",
        "category": "structural",
        "question": "Tell us about your claw toes",
    },

    # Symptom detail
    "symptom_description_prompt": {
        "field": "symptom_description_prompted",
        "category": "symptoms",
        "question": "Please describe your symptoms in detail",
    },
    "symptom_description": {
        "field": "symptom_description",
        "category": "symptoms",
        "question": "Detailed symptom description",
    },
    "previous_treatment": {
        "field": "treatment_history",
        "category": "symptoms",
        "question": "Have you had any previous treatment?",
    },

    # Booking
    "calendar_booking": {
        "field": "booking_date_requested",
        "category": "booking",
        "question": "Would you like to book an appointment?",
    },
    "booking_confirmation": {
        "field": "booking_confirmed_at",
        "category": "booking",
        "question": "Appointment booking confirmation",
    },

    # Final question & feedback
    "final_question": {
        "field": "final_question_prompted",
        "category": "feedback",
        "question": "Is there anything else we can help with?",
    },
    "additional_help": {
        "field": "asked_for_more_help",
        "category": "feedback",
        "question": "Additional help requested",
    },
    "emoji_survey": {
        "field": "survey_prompted",
        "category": "feedback",
        "question": "How was your experience? (Rate with emoji)",
    },
    "survey_response": {
        "field": "survey_rating",
        "category": "feedback",
        "question": "Experience rating",
    },

    # Wrap-up
    "thanks": {
        "field": "conversation_end",
        "category": "wrap_up",
        "question": "Thank you for using FootCare Clinic chatbot",
    },
}

STEP_ORDER = list(STEPS.keys())


def step_order(step: str) -> int:
    try:
        return STEP_ORDER.index(step) + 1
    except ValueError:
        return len(STEP_ORDER) + 1


def field_for_step(step: str) -> str | None:
    return STEPS.get(step, {}).get("field")
