import re

HIGH_RISK_TERMS = ["severe", "unbearable", "emergency"]
MEDIUM_RISK_TERMS = ["moderate", "concerning"]

CONCERN_PHRASES = [
    "severe",
    "unbearable",
    "emergency",
    "bleeding",
    "infection",
    "infected",
    "swelling",
    "swollen",
    "numbness",
    "tingling",
    "ulcer",
    "diabetic",
    "diabetes",
    "fever",
    "spreading",
    "discoloured",
    "discolored",
    "red streak",
    "can't walk",
    "cannot walk",
    "unable to walk",
    "can't bear weight",
    "black toe",
    "turning black",
]

# Matched as whole words so "push" or "numbered" do not trip them.
CONCERN_WORDS = ["pus", "numb", "gangrene"]

NEGATIVE_ANSWERS = {"no", "n", "none", "false", "no pain", "nope", "not really"}


def concern_matches(text: str | None) -> list[str]:
    t = (text or "").lower().replace("’", "'")
    if not t.strip():
        return []
    found = [p for p in CONCERN_PHRASES if p in t]
    words = set(re.findall(r"[a-z0-9']+", t))
    found.extend(w for w in CONCERN_WORDS if w in words)
    return found


def pain_reported(value) -> bool:
    if value is None or value is False:
        return False
    t = str(value).strip().lower()
    if not t:
        return False
    return t not in NEGATIVE_ANSWERS


def determine_risk_level(fields: dict, flagged: bool = False, default: str = "low") -> str:
    symptoms = (fields.get("symptom_description") or "")
    if isinstance(symptoms, str) and symptoms and pain_reported(fields.get("pain_presence")):
        t = symptoms.lower()
        if any(k in t for k in HIGH_RISK_TERMS):
            return "high"
        if any(k in t for k in MEDIUM_RISK_TERMS):
            return "medium"
    if flagged and default == "low":
        return "medium"
    return default
