"""
PII masking for customer contact details before they reach the logs.
"""
import re
from typing import Any

PHONE_RE = re.compile(r'^[\d\s\+\-\(\)]+$')

PII_FIELDS = {"email", "phone", "name", "customer_name", "customer_phone", "customer_email"}


def mask_email(email: str) -> str:
    """Mask email address: ``ja***@example.com``."""
    if "@" not in email:
        return mask_name(email)
    local, domain = email.split("@", 1)
    if len(local) <= 2:
        masked = "**"
    else:
        masked = local[:2] + "*" * (len(local) - 2)
    return f"{masked}@{domain}"


def mask_phone(phone: str) -> str:
    """Keep the first two and last two digits."""
    if len(phone) <= 4:
        return "*" * len(phone)
    return phone[:2] + "*" * (len(phone) - 4) + phone[-2:]


def mask_name(name: str) -> str:
    if len(name) <= 2:
        return "**"
    return name[0] + "*" * (len(name) - 2) + name[-1]


def mask_value(value: str) -> str:
    if "@" in value:
        return mask_email(value)
    if PHONE_RE.match(value):
        return mask_phone(value)
    return mask_name(value)


def mask_pii_in_dict(data: dict) -> dict:
    """Mask contact fields in a (possibly nested) dict; other keys pass through."""
    masked: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            masked[key] = mask_pii_in_dict(value)
        elif isinstance(value, list):
            masked[key] = [mask_pii_in_dict(item) if isinstance(item, dict) else item for item in value]
        elif key.lower() in PII_FIELDS and isinstance(value, str) and value:
            masked[key] = mask_value(value)
        else:
            masked[key] = value
    return masked
