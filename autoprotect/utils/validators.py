import re
from typing import List, Optional

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
USERNAME_RE = re.compile(r"^[^\s:]{3,64}$")


def is_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value or ""))


def normalize_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    if not value:
        return None
    if not is_email(value):
        raise ValueError("Invalid email address")
    return value


def optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def split_recipients(value: str) -> List[str]:
    recipients = [entry.strip() for entry in (value or "").split(",") if entry.strip()]
    if not recipients:
        raise ValueError("Recipient is required")
    if not all(is_email(r) for r in recipients):
        raise ValueError("Invalid email address")
    return recipients


def split_tags(value) -> List[str]:
    if isinstance(value, str):
        parts = value.split(",")
    else:
        parts = list(value or [])
    tags: List[str] = []
    for part in parts:
        tag = str(part).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags
