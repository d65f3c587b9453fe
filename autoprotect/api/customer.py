"""Customer portal: policy holders manage coverage, claims, billing and contracts"""
import logging
from typing import List, Set
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from autoprotect.api.leads import client_ip
from autoprotect.core.auth_utils import check_lead_email, check_not_found, get_customer_policy
from autoprotect.core.clock import utc_now
from autoprotect.core.config import settings
from autoprotect.core.enums import ContractStatus, DocumentRequestStatus, LeadStatus, QuoteStatus
from autoprotect.core.response_builders import (
    build_contract_document,
    build_list,
    build_policy_summary,
    build_vehicle_response,
)
from autoprotect.core.security import create_customer_token, get_current_customer, verify_password
from autoprotect.db.session import get_db
from autoprotect.models.charge import PolicyCharge
from autoprotect.models.claim import Claim
from autoprotect.models.contract import LeadContract
from autoprotect.models.customer import CustomerAccount, CustomerPaymentProfile, CustomerPolicy
from autoprotect.models.document import CustomerDocumentRequest, CustomerDocumentUpload
from autoprotect.models.lead import Lead
from autoprotect.models.note import Note
from autoprotect.models.policy import Policy
from autoprotect.schemas.claim import ClaimOut, CustomerClaimCreate
from autoprotect.schemas.common import DataResponse
from autoprotect.schemas.contract import ContractDocument, ContractOut, ContractSign
from autoprotect.schemas.customer import (
    CustomerLogin,
    CustomerOut,
    CustomerRegister,
    CustomerSession,
    CustomerTokenOut,
    PolicyRequest,
)
from autoprotect.schemas.detail import CustomerContract, PolicySummary
from autoprotect.schemas.document import (
    DocumentRequestWithUploads,
    DocumentUploadContent,
    DocumentUploadIn,
    DocumentUploadOut,
)
from autoprotect.schemas.lead import LeadOut
from autoprotect.schemas.policy import ChargeOut, PaymentProfileOut, PaymentProfileUpdate
from autoprotect.schemas.quote import QuoteOut
from autoprotect.services import customers as customer_service
from autoprotect.services import leads as lead_service
from autoprotect.services import tasks
from autoprotect.services.email_content import contract_signed_email, policy_activation_email
from autoprotect.services.lead_status import transition_lead
from autoprotect.services.mail import MailDeliveryError, send_mail
from autoprotect.services.policies import apply_policy_terms
from autoprotect.utils.files import decode_base64_payload, guess_document_type, sanitize_file_name, to_data_url

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/customer", tags=["customer"])

CLOSED_REQUEST_STATUSES = {DocumentRequestStatus.CANCELLED, DocumentRequestStatus.COMPLETED}


async def _token_response(db: AsyncSession, customer: CustomerAccount) -> dict:
    policy_ids = await customer_service.customer_policy_ids(db, customer.id)
    return {
        "access_token": create_customer_token(customer.id, customer.email),
        "customer": CustomerOut.model_validate(customer),
        "policy_ids": policy_ids,
    }


async def _customer_lead_ids(db: AsyncSession, customer: CustomerAccount) -> Set[int]:
    linked = select(Policy.lead_id).join(CustomerPolicy, CustomerPolicy.policy_id == Policy.id).where(
        CustomerPolicy.customer_id == customer.id
    )
    res = await db.execute(select(Lead.id).where(or_(Lead.email == customer.email, Lead.id.in_(linked))))
    return set(res.scalars().all())


async def _customer_contract(db: AsyncSession, customer: CustomerAccount, contract_id: int) -> LeadContract:
    contract = await db.get(LeadContract, contract_id)
    if contract is None or contract.lead_id not in await _customer_lead_ids(db, customer):
        raise HTTPException(status_code=404, detail="Contract not found")
    return contract


@router.post("/register", status_code=201, response_model=DataResponse[CustomerTokenOut])
async def register(payload: CustomerRegister, db: AsyncSession = Depends(get_db)):
    policy = await lead_service.get_policy(db, payload.policy_id)
    check_not_found(policy, "Policy", payload.policy_id)
    check_lead_email(policy.lead, payload.email)

    existing = await customer_service.find_customer_by_email(db, payload.email)
    if existing:
        await customer_service.link_customer_policy(db, existing.id, policy.id)
        await db.commit()
        raise HTTPException(status_code=409, detail="Account already exists. Please log in.")

    customer, _ = await customer_service.ensure_customer_account(
        db, payload.email, payload.display_name or policy.lead.full_name or None, password=payload.password
    )
    await customer_service.link_customer_policy(db, customer.id, policy.id)
    customer.last_login_at = utc_now()
    await db.commit()
    return {"data": await _token_response(db, customer), "message": "Account created successfully"}


@router.post("/login", response_model=DataResponse[CustomerTokenOut])
async def login(payload: CustomerLogin, db: AsyncSession = Depends(get_db)):
    """Log in with email plus policy number, lead number or password.

    Policy and lead logins create the account on first use.
    """
    invalid = HTTPException(status_code=401, detail="Invalid credentials")

    if payload.policy_id is not None:
        policy = await lead_service.get_policy(db, payload.policy_id)
        if policy is None or (policy.lead.email or "").lower() != payload.email:
            raise invalid
        customer, _ = await customer_service.ensure_customer_account(db, payload.email, policy.lead.full_name or None)
        await customer_service.link_customer_policy(db, customer.id, policy.id)
    elif payload.lead_id is not None:
        lead = await lead_service.get_lead(db, payload.lead_id, detail=True)
        if lead is None or (lead.email or "").lower() != payload.email:
            raise invalid
        if not lead.contracts:
            raise HTTPException(status_code=404, detail="No contracts found for this lead")
        customer, _ = await customer_service.ensure_customer_account(db, payload.email, lead.full_name or None)
        if lead.policy is not None:
            await customer_service.link_customer_policy(db, customer.id, lead.policy.id)
    else:
        customer = await customer_service.find_customer_by_email(db, payload.email)
        if customer is None or not verify_password(payload.password, customer.password_hash):
            raise invalid

    customer.last_login_at = utc_now()
    db.add(customer)
    await db.commit()
    return {"data": await _token_response(db, customer), "message": "Login successful"}


@router.get("/session", response_model=DataResponse[CustomerSession])
async def session(db: AsyncSession = Depends(get_db), customer=Depends(get_current_customer)):
    return {
        "data": CustomerSession(
            customer=CustomerOut.model_validate(customer),
            policy_ids=await customer_service.customer_policy_ids(db, customer.id),
        ),
        "message": "Session active",
    }


@router.get("/policies", response_model=DataResponse[List[PolicySummary]])
async def my_policies(db: AsyncSession = Depends(get_db), customer=Depends(get_current_customer)):
    res = await db.execute(
        select(Policy)
        .join(CustomerPolicy, CustomerPolicy.policy_id == Policy.id)
        .where(CustomerPolicy.customer_id == customer.id)
        .options(selectinload(Policy.lead).selectinload(Lead.vehicle))
        .order_by(Policy.id)
    )
    policies = res.scalars().all()
    return {"data": [build_policy_summary(p) for p in policies], "message": "Policies retrieved successfully"}


@router.get("/claims", response_model=DataResponse[List[ClaimOut]])
async def my_claims(db: AsyncSession = Depends(get_db), customer=Depends(get_current_customer)):
    policy_ids = await customer_service.customer_policy_ids(db, customer.id)
    res = await db.execute(
        select(Claim).where(Claim.policy_id.in_(policy_ids)).order_by(Claim.created_at.desc())
    )
    return {"data": build_list(ClaimOut, res.scalars().all()), "message": "Claims retrieved successfully"}


@router.post("/claims", status_code=201, response_model=DataResponse[ClaimOut])
async def file_claim(
    payload: CustomerClaimCreate,
    db: AsyncSession = Depends(get_db),
    customer=Depends(get_current_customer),
):
    policy = await get_customer_policy(db, customer, payload.policy_id)
    lead, vehicle = policy.lead, policy.lead.vehicle

    claim = Claim(
        policy_id=policy.id,
        first_name=lead.first_name or customer.display_name or "",
        last_name=lead.last_name or "",
        email=customer.email,
        phone=payload.phone,
        year=vehicle.year if vehicle else None,
        make=vehicle.make if vehicle else None,
        model=vehicle.model if vehicle else None,
        trim=vehicle.trim if vehicle else None,
        vin=vehicle.vin if vehicle else None,
        odometer=vehicle.odometer if vehicle else None,
        current_odometer=payload.current_odometer,
        claim_reason=payload.claim_reason,
        message=payload.message,
    )
    db.add(claim)
    await db.commit()
    logger.info(f"Customer {customer.id} filed claim {claim.id} on policy {policy.id}")
    return {"data": ClaimOut.model_validate(claim), "message": "Claim submitted successfully"}


@router.get("/payment-profiles", response_model=DataResponse[List[PaymentProfileOut]])
async def my_payment_profiles(db: AsyncSession = Depends(get_db), customer=Depends(get_current_customer)):
    res = await db.execute(
        select(CustomerPaymentProfile)
        .where(CustomerPaymentProfile.customer_id == customer.id)
        .order_by(CustomerPaymentProfile.policy_id)
    )
    return {"data": build_list(PaymentProfileOut, res.scalars().all()), "message": "Payment profiles retrieved"}


@router.get("/policies/{policy_id}/payment-profile", response_model=DataResponse[PaymentProfileOut])
async def get_payment_profile(
    policy_id: int,
    db: AsyncSession = Depends(get_db),
    customer=Depends(get_current_customer),
):
    await get_customer_policy(db, customer, policy_id)
    profile = await customer_service.get_payment_profile(db, customer.id, policy_id)
    check_not_found(profile, "Payment profile")
    return {"data": PaymentProfileOut.model_validate(profile), "message": "Payment profile retrieved"}


@router.put("/policies/{policy_id}/payment-profile", response_model=DataResponse[PaymentProfileOut])
async def update_payment_profile(
    policy_id: int,
    payload: PaymentProfileUpdate,
    db: AsyncSession = Depends(get_db),
    customer=Depends(get_current_customer),
):
    await get_customer_policy(db, customer, policy_id)

    fields = payload.model_dump(exclude_unset=True)
    card_number = fields.pop("card_number", None)
    if card_number:
        fields["card_last_four"] = card_number[-4:]
    profile = await customer_service.sync_payment_profile(db, customer.id, policy_id, **fields)
    await db.commit()
    return {"data": PaymentProfileOut.model_validate(profile), "message": "Payment profile updated"}


@router.get("/payment-charges", response_model=DataResponse[List[ChargeOut]])
async def my_charges(db: AsyncSession = Depends(get_db), customer=Depends(get_current_customer)):
    policy_ids = await customer_service.customer_policy_ids(db, customer.id)
    res = await db.execute(
        select(PolicyCharge).where(PolicyCharge.policy_id.in_(policy_ids)).order_by(PolicyCharge.charged_at.desc())
    )
    return {"data": build_list(ChargeOut, res.scalars().all()), "message": "Charges retrieved successfully"}


@router.get("/policies/{policy_id}/charges", response_model=DataResponse[List[ChargeOut]])
async def policy_charges(
    policy_id: int,
    db: AsyncSession = Depends(get_db),
    customer=Depends(get_current_customer),
):
    await get_customer_policy(db, customer, policy_id)
    res = await db.execute(
        select(PolicyCharge).where(PolicyCharge.policy_id == policy_id).order_by(PolicyCharge.charged_at.desc())
    )
    return {"data": build_list(ChargeOut, res.scalars().all()), "message": "Charges retrieved successfully"}


@router.post("/policies/request", status_code=201, response_model=DataResponse[LeadOut])
async def request_policy(
    payload: PolicyRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    customer=Depends(get_current_customer),
):
    """Ask for coverage on another vehicle; lands in the lead queue."""
    lead_fields = payload.model_dump(exclude={"vehicle", "notes"})
    lead_fields.update(email=customer.email, source="customer-portal", consent_tcpa=True)
    lead = await lead_service.create_lead(
        db,
        lead_fields,
        payload.vehicle.model_dump() if payload.vehicle else None,
        source="customer-portal",
        consent_ip=client_ip(request),
        consent_user_agent=request.headers.get("user-agent"),
        raw_payload=payload.model_dump(mode="json"),
    )

    note = f"Coverage requested from customer portal by {customer.email}."
    if payload.notes:
        note = f"{note}\n\n{payload.notes}"
    db.add(Note(lead_id=lead.id, content=note))
    await db.commit()

    tasks.queue_new_lead_notification(lead.id)
    return {"data": LeadOut.model_validate(lead), "message": "Policy request submitted"}


@router.get("/document-requests", response_model=DataResponse[List[DocumentRequestWithUploads]])
async def my_document_requests(db: AsyncSession = Depends(get_db), customer=Depends(get_current_customer)):
    res = await db.execute(
        select(CustomerDocumentRequest)
        .where(CustomerDocumentRequest.customer_id == customer.id)
        .options(selectinload(CustomerDocumentRequest.uploads))
        .order_by(CustomerDocumentRequest.created_at.desc())
    )
    return {
        "data": build_list(DocumentRequestWithUploads, res.scalars().all()),
        "message": "Document requests retrieved successfully",
    }


@router.post(
    "/document-requests/{request_id}/upload",
    status_code=201,
    response_model=DataResponse[DocumentUploadOut],
)
async def upload_document(
    request_id: int,
    payload: DocumentUploadIn,
    db: AsyncSession = Depends(get_db),
    customer=Depends(get_current_customer),
):
    doc_request = await db.get(CustomerDocumentRequest, request_id)
    if doc_request is None or doc_request.customer_id != customer.id:
        raise HTTPException(status_code=404, detail="Document request not found")
    if doc_request.status in CLOSED_REQUEST_STATUSES:
        raise HTTPException(status_code=400, detail="This document request is closed")

    content, mime, data = decode_base64_payload(payload.file_data, payload.file_type)
    if len(content) > settings.MAX_DOCUMENT_UPLOAD_SIZE:
        raise HTTPException(status_code=400, detail="File must be 5MB or smaller")
    file_type = guess_document_type(payload.file_name, mime)
    if file_type is None:
        raise HTTPException(status_code=400, detail="Only JPG, PNG, HEIC or PDF files are accepted")

    upload = CustomerDocumentUpload(
        request_id=doc_request.id,
        customer_id=customer.id,
        policy_id=doc_request.policy_id,
        file_name=sanitize_file_name(payload.file_name),
        file_type=file_type,
        file_size=len(content),
        file_data=data,
    )
    doc_request.status = DocumentRequestStatus.SUBMITTED
    db.add(upload)
    db.add(doc_request)
    await db.commit()
    return {"data": DocumentUploadOut.model_validate(upload), "message": "Document uploaded successfully"}


@router.get("/document-uploads/{upload_id}", response_model=DataResponse[DocumentUploadContent])
async def get_document_upload(
    upload_id: int,
    db: AsyncSession = Depends(get_db),
    customer=Depends(get_current_customer),
):
    upload = await db.get(CustomerDocumentUpload, upload_id)
    if upload is None or upload.customer_id != customer.id:
        raise HTTPException(status_code=404, detail="Document upload not found")
    out = DocumentUploadOut.model_validate(upload)
    return {
        "data": DocumentUploadContent(**out.model_dump(), data_url=to_data_url(upload.file_type, upload.file_data)),
        "message": "Document retrieved successfully",
    }


@router.get("/contracts", response_model=DataResponse[List[CustomerContract]])
async def my_contracts(db: AsyncSession = Depends(get_db), customer=Depends(get_current_customer)):
    lead_ids = await _customer_lead_ids(db, customer)
    res = await db.execute(
        select(LeadContract)
        .where(
            LeadContract.lead_id.in_(lead_ids),
            LeadContract.status.in_([ContractStatus.SENT, ContractStatus.SIGNED]),
        )
        .options(selectinload(LeadContract.quote), selectinload(LeadContract.lead).selectinload(Lead.vehicle))
        .order_by(LeadContract.created_at.desc(), LeadContract.id.desc())
    )
    contracts = [
        CustomerContract(
            contract=ContractOut.model_validate(c),
            quote=QuoteOut.model_validate(c.quote) if c.quote is not None else None,
            vehicle=build_vehicle_response(c.lead.vehicle),
        )
        for c in res.scalars().all()
    ]
    return {"data": contracts, "message": "Contracts retrieved successfully"}


@router.get("/contracts/{contract_id}", response_model=DataResponse[ContractDocument])
async def get_contract(
    contract_id: int,
    db: AsyncSession = Depends(get_db),
    customer=Depends(get_current_customer),
):
    contract = await _customer_contract(db, customer, contract_id)
    return {"data": build_contract_document(contract), "message": "Contract retrieved successfully"}


@router.post("/contracts/{contract_id}/sign", response_model=DataResponse[ContractOut])
async def sign_contract(
    contract_id: int,
    payload: ContractSign,
    request: Request,
    db: AsyncSession = Depends(get_db),
    customer=Depends(get_current_customer),
):
    """Sign a sent contract and activate coverage.

    Only the last four card digits and the expiry are stored. The lead is
    marked sold and its policy is created or refreshed from the quote.
    """
    contract = await _customer_contract(db, customer, contract_id)
    if contract.status == ContractStatus.SIGNED:
        raise HTTPException(status_code=409, detail="Contract already signed")
    if contract.status != ContractStatus.SENT:
        raise HTTPException(status_code=400, detail="Contract is not available for signing")

    lead = await lead_service.get_lead(db, contract.lead_id, detail=True)
    quote = next((q for q in lead.quotes if q.id == contract.quote_id), None)
    billing = payload.billing
    shipping = billing if payload.shipping_same_as_billing else payload.shipping
    last_four = payload.card_number[-4:]

    await transition_lead(db, lead, LeadStatus.SOLD, force=True)

    contract.status = ContractStatus.SIGNED
    contract.signature_name = payload.full_name
    contract.signature_email = (payload.email or customer.email).lower()
    contract.signature_ip = client_ip(request)
    contract.signature_user_agent = request.headers.get("user-agent")
    contract.signature_consent = True
    contract.signed_at = utc_now()
    contract.payment_method = payload.payment_method
    contract.payment_last_four = last_four
    contract.payment_exp_month = payload.card_exp_month
    contract.payment_exp_year = payload.card_exp_year
    contract.payment_notes = payload.payment_notes
    for prefix, address in (("billing", billing), ("shipping", shipping)):
        setattr(contract, f"{prefix}_address_line1", address.line1)
        setattr(contract, f"{prefix}_address_line2", address.line2)
        setattr(contract, f"{prefix}_city", address.city)
        setattr(contract, f"{prefix}_state", address.state)
        setattr(contract, f"{prefix}_postal_code", address.postal_code)
        setattr(contract, f"{prefix}_country", address.country)
    db.add(contract)

    lead.card_last_four = last_four
    lead.card_expiry_month = f"{payload.card_exp_month:02d}"
    lead.card_expiry_year = str(payload.card_exp_year)
    lead.billing_address = " ".join(p for p in (billing.line1, billing.line2) if p)
    lead.billing_city, lead.billing_state, lead.billing_zip = billing.city, billing.state, billing.postal_code
    lead.shipping_address = " ".join(p for p in (shipping.line1, shipping.line2) if p)
    lead.shipping_city, lead.shipping_state, lead.shipping_zip = shipping.city, shipping.state, shipping.postal_code
    lead.shipping_same_as_billing = payload.shipping_same_as_billing
    db.add(lead)

    policy, created = await apply_policy_terms(db, lead, quote)
    if quote is not None:
        quote.status = QuoteStatus.ACCEPTED
        db.add(quote)

    await customer_service.link_customer_policy(db, customer.id, policy.id)
    await customer_service.sync_payment_profile(
        db,
        customer.id,
        policy.id,
        payment_method=payload.payment_method,
        account_name=payload.full_name,
        card_last_four=last_four,
        card_expiry_month=payload.card_exp_month,
        card_expiry_year=payload.card_exp_year,
        billing_zip=billing.postal_code,
    )
    await db.commit()
    logger.info(f"Contract {contract.id} signed by customer {customer.id}, policy {policy.id}")

    notify_to = lead.salesperson_email or settings.SALES_ALERT_EMAIL
    if notify_to:
        try:
            await send_mail(contract_signed_email(notify_to, lead, lead.vehicle, quote, contract))
        except MailDeliveryError as e:
            logger.warning(f"Signed contract notification for {contract.id} not sent: {e}")
    if created and lead.email:
        try:
            await send_mail(policy_activation_email(lead, lead.vehicle, policy))
        except MailDeliveryError as e:
            logger.warning(f"Activation email for policy {policy.id} not sent: {e}")

    return {"data": ContractOut.model_validate(contract), "message": "Contract signed successfully"}
