import logging

from twilio.rest import Client

from footcare_admin.config import TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_FROM_NUMBER, DEFAULT_COUNTRY_CODE

logger = logging.getLogger(__name__)


def sms_configured() -> bool:
    return bool(TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN and TWILIO_FROM_NUMBER)


def normalize_phone(phone: str | None) -> str:
    p = (phone or "").strip().replace(" ", "").replace("-", "")
    if p.startswith("+"):
        return p
    if p.startswith("0") and p[1:].isdigit() and len(p) == 10:
        return f"{DEFAULT_COUNTRY_CODE}{p[1:]}"
    if p.isdigit() and len(p) == 10:
        return f"{DEFAULT_COUNTRY_CODE}{p}"
    return p


def send_sms(phone_number: str, body: str):
    if not sms_configured():
        logger.warning("Twilio config missing. Set TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_FROM_NUMBER in .env.")
        return None
    client = Client(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN)
    try:
        return client.messages.create(
            to=normalize_phone(phone_number),
            from_=TWILIO_FROM_NUMBER,
            body=body,
        )
    except Exception as e:
        logger.error("Twilio SMS failed: %s", e)
        return None
