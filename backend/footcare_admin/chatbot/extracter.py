import json
import re
from typing import Any


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, dict)):
        return bool(value)
    if isinstance(value, bool):
        return value
    return True


def first_present(payload: dict, *keys: str, default: Any = None) -> Any:
    """Return the first usable value among several candidate keys.

    Chatbot payloads name the same thing differently depending on the
    flow version (``preferredClinic`` / ``preferred_clinic`` /
    ``clinic_location``), and empty strings are common for skipped steps.
    """
    for key in keys:
        value = payload.get(key)
        if is_present(value):
            return value.strip() if isinstance(value, str) else value
    return default


def as_text(value: Any) -> str | None:
    if not is_present(value):
        return None
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (list, dict)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return [value] if value.strip() else []
        return parsed if isinstance(parsed, list) else [parsed]
    return [value]


def normalize_phone_input(value: str | None) -> str:
    """Strip spaces, dashes, dots and brackets, keeping a leading +."""
    value = (value or "").strip()
    digits = re.sub(r"\D", "", value)
    return f"+{digits}" if value.startswith("+") and digits else digits
