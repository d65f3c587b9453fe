import logging
from datetime import timedelta
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from autoprotect.core.audit_decorator import audit_log
from autoprotect.core.auth_utils import check_not_found
from autoprotect.core.clock import current_year, utc_now
from autoprotect.core.config import settings
from autoprotect.core.enums import AuditAction, ContractStatus, LeadStatus, PlanType, QuoteStatus
from autoprotect.core.rate_limit import check_rate_limit
from autoprotect.core.response_builders import build_lead_detail, build_lead_summary
from autoprotect.core.security import get_current_user
from autoprotect.db.session import get_db
from autoprotect.models.contract import LeadContract
from autoprotect.models.lead import Lead
from autoprotect.models.note import Note
from autoprotect.models.quote import Quote
from autoprotect.schemas.common import DataResponse
from autoprotect.schemas.contract import ContractCreate, ContractOut
from autoprotect.schemas.detail import LeadDetail
from autoprotect.schemas.lead import (
    AdminLeadCreate,
    AdminLeadUpdate,
    LeadMetaUpdate,
    LeadStats,
    LeadSummary,
    NoteCreate,
    NoteOut,
)
from autoprotect.schemas.policy import LeadConvert
from autoprotect.schemas.quote import (
    CoverageAssign,
    CoverageSelection,
    LocationFacts,
    PricingEstimate,
    QuoteOut,
    VehicleFacts,
)
from autoprotect.services import customers as customer_service
from autoprotect.services import leads as lead_service
from autoprotect.services.email_content import contract_invite_email, policy_activation_email, quote_email
from autoprotect.services.lead_status import transition_lead
from autoprotect.services.mail import MailDeliveryError, send_mail
from autoprotect.services.policies import apply_policy_terms
from autoprotect.services.pricing import calculate_quote, plan_features, round_half_up
from autoprotect.utils.files import decode_base64_payload, is_pdf, sanitize_file_name
from autoprotect.utils.validators import split_tags

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["admin-leads"])


async def _load_lead(db: AsyncSession, lead_id: int) -> Lead:
    lead = await lead_service.get_lead(db, lead_id, detail=True)
    check_not_found(lead, "Lead", lead_id)
    return lead


def _to_int(value) -> Optional[int]:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


@router.post("/leads", status_code=201, response_model=DataResponse[LeadDetail])
@audit_log(AuditAction.CREATE_LEAD)
async def create_lead(
    payload: AdminLeadCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    await check_rate_limit(int(current_user.id))

    lead = await lead_service.create_lead(
        db,
        payload.lead.model_dump(exclude_unset=True),
        payload.vehicle.model_dump() if payload.vehicle else None,
        source="admin",
        created_by=int(current_user.id),
    )
    lead = await _load_lead(db, lead.id)
    return {"data": build_lead_detail(lead), "message": "Lead created successfully"}


@router.get("/leads", response_model=DataResponse[List[LeadSummary]])
async def list_leads(
    status: Optional[LeadStatus] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    quote_count = (
        select(func.count(Quote.id))
        .where(Quote.lead_id == Lead.id)
        .correlate(Lead)
        .scalar_subquery()
    )
    q = select(Lead, quote_count).options(selectinload(Lead.vehicle))
    if status:
        q = q.where(Lead.status == status)
    q = q.order_by(Lead.created_at.desc(), Lead.id.desc()).limit(limit).offset(offset)

    res = await db.execute(q)
    summaries = [build_lead_summary(lead, count or 0) for lead, count in res.all()]
    return {"data": summaries, "message": "Leads retrieved successfully"}


@router.get("/leads/{lead_id}", response_model=DataResponse[LeadDetail])
async def get_lead(
    lead_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    lead = await _load_lead(db, lead_id)
    return {"data": build_lead_detail(lead), "message": "Lead retrieved successfully"}


@router.patch("/leads/{lead_id}", response_model=DataResponse[LeadDetail])
@audit_log(AuditAction.UPDATE_LEAD)
async def update_lead(
    lead_id: int,
    payload: AdminLeadUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    """Update lead fields, move its status, upsert its vehicle or edit its policy."""
    await check_rate_limit(int(current_user.id))

    lead = await _load_lead(db, lead_id)

    if payload.lead is not None:
        changes = payload.lead.model_dump(exclude_unset=True)
        status = changes.pop("status", None)
        if status is not None:
            await transition_lead(db, lead, status)
        for field, value in changes.items():
            setattr(lead, field, value)

    if payload.vehicle is not None:
        try:
            await lead_service.upsert_vehicle(db, lead, payload.vehicle.model_dump(exclude_unset=True))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    if payload.policy is not None:
        check_not_found(lead.policy, "Policy")
        for field, value in payload.policy.model_dump(exclude_unset=True).items():
            setattr(lead.policy, field, value)

    db.add(lead)
    await db.commit()

    lead = await _load_lead(db, lead_id)
    return {"data": build_lead_detail(lead), "message": "Lead updated successfully"}


@router.delete("/leads/{lead_id}")
@audit_log(AuditAction.DELETE_LEAD)
async def delete_lead(
    lead_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    await check_rate_limit(int(current_user.id))

    lead = await db.get(Lead, lead_id)
    check_not_found(lead, "Lead", lead_id)

    await db.delete(lead)
    await db.commit()
    return {"message": "Lead deleted successfully"}


@router.post("/leads/{lead_id}/notes", status_code=201, response_model=DataResponse[NoteOut])
async def add_note(
    lead_id: int,
    payload: NoteCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    lead = await db.get(Lead, lead_id)
    check_not_found(lead, "Lead", lead_id)

    note = Note(lead_id=lead_id, content=payload.content)
    db.add(note)
    await db.commit()
    return {"data": NoteOut.model_validate(note), "message": "Note added successfully"}


@router.post("/leads/{lead_id}/meta", response_model=DataResponse[LeadDetail])
async def update_lead_meta(
    lead_id: int,
    payload: LeadMetaUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    lead = await _load_lead(db, lead_id)
    lead.tags = split_tags(payload.tags)
    db.add(lead)
    await db.commit()

    lead = await _load_lead(db, lead_id)
    return {"data": build_lead_detail(lead), "message": "Lead updated successfully"}


@router.post("/leads/{lead_id}/coverage", status_code=201, response_model=DataResponse[QuoteOut])
@audit_log(AuditAction.SEND_QUOTE)
async def assign_coverage(
    lead_id: int,
    payload: CoverageAssign,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    """Create a sent quote for one plan and email it to the lead.

    The quote is kept even when the email cannot be delivered.
    """
    await check_rate_limit(int(current_user.id))

    lead = await _load_lead(db, lead_id)
    if not lead.email:
        raise HTTPException(status_code=400, detail="Lead does not have an email address")

    await transition_lead(db, lead, LeadStatus.QUOTED, force=True)

    monthly_cents = round_half_up(payload.price_monthly * 100)
    quote = Quote(
        lead_id=lead.id,
        plan=payload.plan,
        deductible=payload.deductible,
        term_months=payload.term_months,
        price_monthly_cents=monthly_cents,
        price_total_cents=monthly_cents * payload.term_months,
        status=QuoteStatus.SENT,
        breakdown={
            "expiration_miles": payload.expiration_miles,
            "payment_option": payload.payment_option,
            "features": plan_features(payload.plan),
        },
        valid_until=utc_now() + timedelta(days=settings.QUOTE_VALID_DAYS),
        created_by=int(current_user.id),
    )
    if current_user.email:
        lead.salesperson_email = current_user.email
    db.add(quote)
    db.add(lead)
    await db.commit()

    await send_mail(
        quote_email(
            lead,
            lead.vehicle,
            quote,
            salesperson=current_user,
            expiration_miles=payload.expiration_miles,
            payment_option=payload.payment_option,
        )
    )
    return {"data": QuoteOut.model_validate(quote), "message": "Quote sent successfully"}


@router.post("/leads/{lead_id}/estimate", response_model=DataResponse[PricingEstimate])
async def estimate_for_lead(
    lead_id: int,
    plan: PlanType = Query(PlanType.GOLD),
    deductible: int = Query(500, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    lead = await lead_service.get_lead(db, lead_id)
    check_not_found(lead, "Lead", lead_id)
    check_not_found(lead.vehicle, "Vehicle")

    vehicle = lead.vehicle
    estimate = calculate_quote(
        VehicleFacts(year=vehicle.year, make=vehicle.make, model=vehicle.model, odometer=vehicle.odometer),
        CoverageSelection(plan=plan, deductible=deductible),
        LocationFacts(zip=lead.zip or "", state=lead.state or ""),
        current_year=current_year(),
    )
    return {"data": estimate, "message": "Quote calculated successfully"}


@router.post("/leads/{lead_id}/contracts", status_code=201, response_model=DataResponse[ContractOut])
@audit_log(AuditAction.SEND_CONTRACT)
async def create_contract(
    lead_id: int,
    payload: ContractCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    await check_rate_limit(int(current_user.id))

    lead = await _load_lead(db, lead_id)
    quote = next((q for q in lead.quotes if q.id == payload.quote_id), None)
    check_not_found(quote, "Quote", payload.quote_id)

    content, mime, data = decode_base64_payload(payload.file_data, payload.file_type)
    if len(content) > settings.MAX_CONTRACT_FILE_SIZE:
        raise HTTPException(status_code=400, detail="Contract file must be 5MB or smaller")
    if (mime and mime.lower() != "application/pdf") or not is_pdf(content):
        raise HTTPException(status_code=400, detail="Only PDF contracts are supported")

    contract = LeadContract(
        lead_id=lead.id,
        quote_id=quote.id,
        uploaded_by=int(current_user.id),
        file_name=sanitize_file_name(payload.file_name),
        file_type="application/pdf",
        file_size=len(content),
        file_data=data,
        status=ContractStatus.SENT,
    )
    db.add(contract)
    await db.commit()

    if payload.send_email and lead.email:
        await send_mail(contract_invite_email(lead, lead.vehicle, quote, contract))
    return {"data": ContractOut.model_validate(contract), "message": "Contract sent successfully"}


@router.post("/leads/{lead_id}/convert", status_code=201, response_model=DataResponse[LeadDetail])
@audit_log(AuditAction.CONVERT_LEAD)
async def convert_lead(
    lead_id: int,
    payload: LeadConvert,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    """Turn a lead into a policy holder.

    Links (or creates) the customer account for the lead's email and copies
    the stored card summary into the customer's payment profile.
    """
    await check_rate_limit(int(current_user.id))

    lead = await _load_lead(db, lead_id)
    if lead.policy is not None:
        raise HTTPException(status_code=409, detail="Policy already exists for this lead")

    quote = None
    if payload.quote_id is not None:
        quote = next((q for q in lead.quotes if q.id == payload.quote_id), None)
        check_not_found(quote, "Quote", payload.quote_id)
    elif lead.quotes:
        quote = lead.quotes[-1]

    await transition_lead(db, lead, LeadStatus.SOLD, force=True)
    overrides = payload.model_dump(exclude={"quote_id", "send_email"}, exclude_none=True)
    policy, _ = await apply_policy_terms(db, lead, quote, overrides)
    if quote is not None:
        quote.status = QuoteStatus.ACCEPTED
        db.add(quote)

    if lead.email:
        customer, _ = await customer_service.ensure_customer_account(db, lead.email, lead.full_name or None)
        await customer_service.link_customer_policy(db, customer.id, policy.id)
        if lead.card_last_four:
            await customer_service.sync_payment_profile(
                db,
                customer.id,
                policy.id,
                payment_method="card",
                card_last_four=lead.card_last_four,
                card_expiry_month=_to_int(lead.card_expiry_month),
                card_expiry_year=_to_int(lead.card_expiry_year),
                billing_zip=lead.billing_zip,
            )
    await db.commit()

    if payload.send_email and lead.email:
        try:
            await send_mail(policy_activation_email(lead, lead.vehicle, policy))
        except MailDeliveryError as e:
            logger.warning(f"Activation email for policy {policy.id} not sent: {e}")

    lead = await _load_lead(db, lead_id)
    return {"data": build_lead_detail(lead), "message": "Lead converted to policy"}


@router.get("/stats", response_model=DataResponse[LeadStats])
async def stats(db: AsyncSession = Depends(get_db), current_user=Depends(get_current_user)):
    return {"data": await lead_service.lead_stats(db), "message": "Stats retrieved successfully"}
