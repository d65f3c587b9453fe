import base64
import binascii
import os
import re
import secrets
from typing import Optional, Tuple
from autoprotect.core.config import settings

DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(;[\w-]+=[\w-]+)*;base64,(?P<data>.*)$", re.DOTALL)

DOCUMENT_TYPES = {
    "image/jpeg": (".jpg", ".jpeg"),
    "image/png": (".png",),
    "image/heic": (".heic",),
    "image/heif": (".heif",),
    "application/pdf": (".pdf",),
}


class InvalidUpload(ValueError):
    pass


def sanitize_file_name(value: str) -> str:
    return re.sub(r"[^a-zA-Z0-9._-]", "_", os.path.basename(value or "")).strip("._") or "document"


def decode_base64_payload(payload: str, declared_type: Optional[str] = None) -> Tuple[bytes, Optional[str], str]:
    """Return ``(content, mime, base64_text)`` from raw base64 or a data URL."""
    mime = declared_type
    data = (payload or "").strip()
    match = DATA_URL_RE.match(data)
    if match:
        mime = match.group("mime") or mime
        data = match.group("data")
    data = re.sub(r"\s+", "", data)
    try:
        content = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidUpload("File data must be base64 encoded")
    if not content:
        raise InvalidUpload("File is empty")
    return content, mime, data


def guess_document_type(file_name: str, mime: Optional[str]) -> Optional[str]:
    """A declared type must be allowed; the extension is only used without one."""
    if mime:
        mime = mime.lower()
        if mime == "image/jpg":
            mime = "image/jpeg"
        return mime if mime in DOCUMENT_TYPES else None
    ext = os.path.splitext(file_name or "")[1].lower()
    for known, extensions in DOCUMENT_TYPES.items():
        if ext in extensions:
            return known
    return None


def is_pdf(content: bytes) -> bool:
    return content[:5] == b"%PDF-"


def to_data_url(mime: Optional[str], base64_text: str) -> str:
    return f"data:{mime or 'application/octet-stream'};base64,{base64_text}"


def save_policy_file(policy_id: int, file_name: str, content: bytes) -> Tuple[str, str]:
    """Write an upload under ``UPLOAD_DIR/policies/<id>``; returns (stored name, path)."""
    directory = os.path.join(settings.UPLOAD_DIR, "policies", str(policy_id))
    os.makedirs(directory, exist_ok=True)
    stored_name = f"{secrets.token_hex(8)}_{sanitize_file_name(file_name)}"
    path = os.path.join(directory, stored_name)
    with open(path, "wb") as f:
        f.write(content)
    return stored_name, path
