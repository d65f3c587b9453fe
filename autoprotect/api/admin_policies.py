import logging
import os
from typing import List
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from autoprotect.core.audit_decorator import audit_log
from autoprotect.core.auth_utils import check_not_found
from autoprotect.core.clock import utc_now
from autoprotect.core.config import settings
from autoprotect.core.enums import AuditAction
from autoprotect.core.rate_limit import check_rate_limit
from autoprotect.core.response_builders import build_list, build_policy_detail, build_policy_summary
from autoprotect.core.security import get_current_user, require_admin
from autoprotect.db.session import get_db
from autoprotect.models.charge import PolicyCharge
from autoprotect.models.customer import CustomerAccount, CustomerPaymentProfile, CustomerPolicy
from autoprotect.models.document import CustomerDocumentRequest, CustomerDocumentUpload
from autoprotect.models.lead import Lead
from autoprotect.models.note import PolicyNote
from autoprotect.models.policy import Policy, PolicyFile
from autoprotect.schemas.common import DataResponse, MessageResponse
from autoprotect.schemas.detail import PolicyDetail, PolicySummary, PolicyUpdate
from autoprotect.schemas.document import (
    DocumentRequestCreate,
    DocumentRequestOut,
    DocumentRequestStatusUpdate,
    DocumentRequestWithUploads,
    DocumentUploadContent,
    DocumentUploadOut,
)
from autoprotect.schemas.lead import NoteCreate, NoteOut
from autoprotect.schemas.policy import (
    ChargeCreate,
    ChargeOut,
    PaymentProfileOut,
    PolicyEmail,
    PolicyFileOut,
)
from autoprotect.services import leads as lead_service
from autoprotect.services.email_content import document_request_email, policy_message_email
from autoprotect.services.mail import MailDeliveryError, send_mail
from autoprotect.utils.files import save_policy_file, to_data_url
from autoprotect.utils.validators import split_recipients

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["admin-policies"])


async def _load_policy(db: AsyncSession, policy_id: int, detail: bool = False) -> Policy:
    policy = await lead_service.get_policy(db, policy_id, detail=detail)
    check_not_found(policy, "Policy", policy_id)
    return policy


@router.get("/policies", response_model=DataResponse[List[PolicySummary]])
async def list_policies(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    res = await db.execute(
        select(Policy)
        .options(selectinload(Policy.lead).selectinload(Lead.vehicle))
        .order_by(Policy.created_at.desc(), Policy.id.desc())
        .limit(limit)
        .offset(offset)
    )
    policies = res.scalars().all()
    return {"data": [build_policy_summary(p) for p in policies], "message": "Policies retrieved successfully"}


@router.get("/policies/{policy_id}", response_model=DataResponse[PolicyDetail])
async def get_policy(
    policy_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    policy = await _load_policy(db, policy_id, detail=True)
    return {"data": build_policy_detail(policy), "message": "Policy retrieved successfully"}


@router.put("/policies/{policy_id}", response_model=DataResponse[PolicyDetail])
@audit_log(AuditAction.UPDATE_POLICY)
async def update_policy(
    policy_id: int,
    payload: PolicyUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin),
):
    await check_rate_limit(int(current_user.id))

    policy = await _load_policy(db, policy_id, detail=True)
    changes = payload.model_dump(exclude_unset=True, exclude={"lead", "vehicle"})
    for field, value in changes.items():
        setattr(policy, field, value)

    lead = policy.lead
    if payload.lead is not None:
        lead_changes = payload.lead.model_dump(exclude_unset=True)
        if "status" in lead_changes:
            raise HTTPException(status_code=400, detail="Lead status cannot be changed here")
        for field, value in lead_changes.items():
            setattr(lead, field, value)
        db.add(lead)

    if payload.vehicle is not None:
        try:
            await lead_service.upsert_vehicle(db, lead, payload.vehicle.model_dump(exclude_unset=True))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    db.add(policy)
    await db.commit()

    policy = await _load_policy(db, policy_id, detail=True)
    return {"data": build_policy_detail(policy), "message": "Policy updated successfully"}


@router.delete("/policies/{policy_id}", response_model=MessageResponse)
@audit_log(AuditAction.DELETE_POLICY)
async def delete_policy(
    policy_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin),
):
    await check_rate_limit(int(current_user.id))

    policy = await db.get(Policy, policy_id)
    check_not_found(policy, "Policy", policy_id)
    await db.delete(policy)
    await db.commit()
    return {"message": "Policy deleted successfully"}


@router.post("/policies/{policy_id}/notes", status_code=201, response_model=DataResponse[NoteOut])
async def add_policy_note(
    policy_id: int,
    payload: NoteCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    check_not_found(await db.get(Policy, policy_id), "Policy", policy_id)
    note = PolicyNote(policy_id=policy_id, content=payload.content)
    db.add(note)
    await db.commit()
    return {"data": NoteOut.model_validate(note), "message": "Note added successfully"}


@router.post("/policies/{policy_id}/files", status_code=201, response_model=DataResponse[PolicyFileOut])
@audit_log(AuditAction.UPLOAD_POLICY_FILE)
async def upload_policy_file(
    policy_id: int,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    await check_rate_limit(int(current_user.id))
    check_not_found(await db.get(Policy, policy_id), "Policy", policy_id)

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="File is empty")
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size: {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB"
        )

    stored_name, path = save_policy_file(policy_id, file.filename, content)
    policy_file = PolicyFile(
        policy_id=policy_id,
        file_name=file.filename or stored_name,
        file_path=path,
        content_type=file.content_type,
        size=len(content),
    )
    db.add(policy_file)
    await db.commit()
    return {"data": PolicyFileOut.model_validate(policy_file), "message": "File uploaded successfully"}


@router.get("/policies/{policy_id}/files/{file_id}")
async def download_policy_file(
    policy_id: int,
    file_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    policy_file = await db.get(PolicyFile, file_id)
    if policy_file is None or policy_file.policy_id != policy_id or not os.path.exists(policy_file.file_path):
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(
        policy_file.file_path,
        media_type=policy_file.content_type or "application/octet-stream",
        filename=policy_file.file_name,
    )


@router.get("/policies/{policy_id}/charges", response_model=DataResponse[List[ChargeOut]])
async def list_charges(
    policy_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    check_not_found(await db.get(Policy, policy_id), "Policy", policy_id)
    res = await db.execute(
        select(PolicyCharge).where(PolicyCharge.policy_id == policy_id).order_by(PolicyCharge.charged_at.desc())
    )
    return {"data": build_list(ChargeOut, res.scalars().all()), "message": "Charges retrieved successfully"}


@router.post("/policies/{policy_id}/charges", status_code=201, response_model=DataResponse[ChargeOut])
@audit_log(AuditAction.RECORD_CHARGE)
async def record_charge(
    policy_id: int,
    payload: ChargeCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    await check_rate_limit(int(current_user.id))
    check_not_found(await db.get(Policy, policy_id), "Policy", policy_id)

    res = await db.execute(
        select(CustomerPolicy.customer_id).where(CustomerPolicy.policy_id == policy_id).order_by(CustomerPolicy.id)
    )
    customer_id = res.scalars().first()

    data = payload.model_dump()
    data["charged_at"] = data["charged_at"] or utc_now()
    charge = PolicyCharge(policy_id=policy_id, customer_id=customer_id, **data)
    db.add(charge)
    await db.commit()
    return {"data": ChargeOut.model_validate(charge), "message": "Charge recorded successfully"}


@router.get("/policies/{policy_id}/payment-profiles", response_model=DataResponse[List[PaymentProfileOut]])
async def list_payment_profiles(
    policy_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    check_not_found(await db.get(Policy, policy_id), "Policy", policy_id)
    res = await db.execute(
        select(CustomerPaymentProfile).where(CustomerPaymentProfile.policy_id == policy_id)
    )
    return {
        "data": build_list(PaymentProfileOut, res.scalars().all()),
        "message": "Payment profiles retrieved successfully",
    }


@router.get("/policies/{policy_id}/document-requests", response_model=DataResponse[List[DocumentRequestWithUploads]])
async def list_document_requests(
    policy_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    check_not_found(await db.get(Policy, policy_id), "Policy", policy_id)
    res = await db.execute(
        select(CustomerDocumentRequest)
        .where(CustomerDocumentRequest.policy_id == policy_id)
        .options(selectinload(CustomerDocumentRequest.uploads))
        .order_by(CustomerDocumentRequest.created_at.desc())
    )
    return {
        "data": build_list(DocumentRequestWithUploads, res.scalars().all()),
        "message": "Document requests retrieved successfully",
    }


@router.post(
    "/policies/{policy_id}/document-requests",
    status_code=201,
    response_model=DataResponse[DocumentRequestOut],
)
@audit_log(AuditAction.REQUEST_DOCUMENT)
async def create_document_request(
    policy_id: int,
    payload: DocumentRequestCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin),
):
    await check_rate_limit(int(current_user.id))
    check_not_found(await db.get(Policy, policy_id), "Policy", policy_id)

    res = await db.execute(
        select(CustomerAccount)
        .join(CustomerPolicy, CustomerPolicy.customer_id == CustomerAccount.id)
        .where(CustomerPolicy.policy_id == policy_id, CustomerAccount.id == payload.customer_id)
    )
    customer = res.scalars().first()
    if customer is None:
        raise HTTPException(status_code=400, detail="Customer is not linked to this policy")

    request = CustomerDocumentRequest(
        policy_id=policy_id,
        customer_id=customer.id,
        requested_by=int(current_user.id),
        **payload.model_dump(exclude={"customer_id", "send_email"}),
    )
    db.add(request)
    await db.commit()

    if payload.send_email:
        try:
            await send_mail(document_request_email(customer.email, customer.display_name, request))
        except MailDeliveryError as e:
            logger.warning(f"Document request {request.id} email not sent: {e}")

    return {"data": DocumentRequestOut.model_validate(request), "message": "Document request created"}


@router.post("/document-requests/{request_id}/status", response_model=DataResponse[DocumentRequestOut])
async def update_document_request_status(
    request_id: int,
    payload: DocumentRequestStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin),
):
    request = await db.get(CustomerDocumentRequest, request_id)
    check_not_found(request, "Document request", request_id)
    request.status = payload.status
    db.add(request)
    await db.commit()
    return {"data": DocumentRequestOut.model_validate(request), "message": "Document request updated"}


@router.get("/document-uploads/{upload_id}", response_model=DataResponse[DocumentUploadContent])
async def get_document_upload(
    upload_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    upload = await db.get(CustomerDocumentUpload, upload_id)
    check_not_found(upload, "Document upload", upload_id)
    out = DocumentUploadOut.model_validate(upload)
    return {
        "data": DocumentUploadContent(**out.model_dump(), data_url=to_data_url(upload.file_type, upload.file_data)),
        "message": "Document retrieved successfully",
    }


@router.post("/policies/{policy_id}/email", response_model=MessageResponse)
async def email_policy_holder(
    policy_id: int,
    payload: PolicyEmail,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    check_not_found(await db.get(Policy, policy_id), "Policy", policy_id)
    recipients = split_recipients(payload.to)
    await send_mail(policy_message_email(recipients, payload.subject, payload.body_html))
    return {"message": "Email sent successfully"}
