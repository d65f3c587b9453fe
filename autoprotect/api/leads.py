"""Public lead intake: site form, third-party feed and claim submission"""
import hmac
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from autoprotect.core.auth_utils import check_not_found
from autoprotect.core.config import settings
from autoprotect.core.errors import error_response
from autoprotect.core.rate_limit import check_lead_rate_limit
from autoprotect.core.response_builders import build_lead_response
from autoprotect.db.session import get_db
from autoprotect.models.claim import Claim
from autoprotect.models.policy import Policy
from autoprotect.schemas.claim import ClaimCreate, ClaimOut
from autoprotect.schemas.common import DataResponse
from autoprotect.schemas.lead import LeadIntake, LeadOut
from autoprotect.services import leads as lead_service
from autoprotect.services import tasks
from autoprotect.utils.idempotency import get_idempotent, set_idempotent
from autoprotect.utils.validators import is_email, optional_text

logger = logging.getLogger(__name__)
router = APIRouter(tags=["leads"])

TRUTHY = {"true", "yes", "1", "on", "y"}
PAYLOAD_SECRET_KEYS = {"recaptcha_token", "recaptchaToken", "card_number", "cvv"}


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def normalize_flag(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY
    return False


def sanitized_payload(body: dict) -> dict:
    return {k: v for k, v in body.items() if k not in PAYLOAD_SECRET_KEYS}


def _first(body: dict, *keys):
    for key in keys:
        value = body.get(key)
        if value is not None and value != "":
            return value
    return None


def _as_int(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).replace(",", "").strip())
    except ValueError:
        return None


@router.post("/api/leads", status_code=201, response_model=DataResponse[LeadOut])
async def submit_lead(
    request: Request,
    idempotency_key: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
):
    ip = client_ip(request)
    await check_lead_rate_limit(ip)

    if idempotency_key:
        prev = await get_idempotent(idempotency_key)
        if prev:
            return prev

    try:
        body = await request.json()
        payload = LeadIntake.model_validate(body)
    except ValidationError as e:
        return error_response(400, "Invalid lead data", e.errors())
    except ValueError:
        return error_response(400, "Invalid lead data")

    lead = await lead_service.create_lead(
        db,
        payload.lead.model_dump(),
        payload.vehicle.model_dump(),
        source=payload.lead.source or "web",
        consent_ip=ip,
        consent_user_agent=request.headers.get("user-agent"),
        raw_payload=sanitized_payload(body),
    )
    tasks.queue_new_lead_notification(lead.id)

    out = {"data": build_lead_response(lead).model_dump(mode="json"), "message": "Lead created successfully"}
    await set_idempotent(idempotency_key, out)
    return out


@router.post("/webhooks/leads", status_code=201)
async def lead_webhook(
    request: Request,
    x_lead_secret: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
):
    """Loose third-party lead feed authenticated by a shared secret."""
    if not settings.LEAD_WEBHOOK_SECRET:
        raise HTTPException(status_code=503, detail="Lead webhook is not configured")
    if not x_lead_secret or not hmac.compare_digest(x_lead_secret, settings.LEAD_WEBHOOK_SECRET):
        raise HTTPException(status_code=401, detail="Invalid webhook secret")

    ip = client_ip(request)
    await check_lead_rate_limit(ip)

    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Invalid lead payload")

    email = optional_text(_first(body, "email", "email_address"))
    phone = optional_text(_first(body, "phone", "phone_number", "phoneNumber"))
    if email:
        email = email.lower()
        if not is_email(email):
            email = None
    if not email and not phone:
        raise HTTPException(status_code=400, detail="Email or phone is required")

    state = optional_text(_first(body, "state", "region"))
    lead_fields = {
        "first_name": optional_text(_first(body, "first_name", "firstName", "fname")),
        "last_name": optional_text(_first(body, "last_name", "lastName", "lname")),
        "email": email,
        "phone": phone,
        "zip": optional_text(str(_first(body, "zip", "zipcode", "zip_code", "postal_code") or "")),
        "state": state.upper() if state else None,
        "consent_tcpa": normalize_flag(_first(body, "consent_tcpa", "consentTCPA", "tcpa", "tcpa_consent", "consent")),
        "source": optional_text(_first(body, "source", "lead_source", "leadSource")) or "webhook",
        "utm_source": optional_text(_first(body, "utm_source", "utmSource")),
        "utm_medium": optional_text(_first(body, "utm_medium", "utmMedium")),
        "utm_campaign": optional_text(_first(body, "utm_campaign", "utmCampaign")),
    }

    vehicle_fields = None
    year = _as_int(_first(body, "year", "vehicle_year"))
    make = optional_text(_first(body, "make", "vehicle_make"))
    model = optional_text(_first(body, "model", "vehicle_model"))
    if year and make and model:
        vehicle_fields = {
            "year": year,
            "make": make,
            "model": model,
            "odometer": _as_int(_first(body, "mileage", "odometer")) or 0,
        }

    lead = await lead_service.create_lead(
        db,
        lead_fields,
        vehicle_fields,
        source=lead_fields["source"],
        consent_ip=optional_text(_first(body, "ip", "ip_address")) or ip,
        consent_user_agent=optional_text(_first(body, "user_agent", "userAgent")),
        raw_payload=sanitized_payload(body),
    )
    tasks.queue_new_lead_notification(lead.id)
    return {"ok": True, "id": lead.id}


@router.post("/api/claims", status_code=201, response_model=DataResponse[ClaimOut])
async def submit_claim(payload: ClaimCreate, request: Request, db: AsyncSession = Depends(get_db)):
    await check_lead_rate_limit(client_ip(request))

    if payload.policy_id is not None:
        check_not_found(await db.get(Policy, payload.policy_id), "Policy", payload.policy_id)

    claim = Claim(**payload.model_dump())
    db.add(claim)
    await db.commit()
    logger.info(f"Claim {claim.id} submitted")
    return {"data": ClaimOut.model_validate(claim), "message": "Claim submitted successfully"}
