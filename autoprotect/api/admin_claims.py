from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from autoprotect.core.auth_utils import check_not_found
from autoprotect.core.enums import ClaimStatus
from autoprotect.core.rate_limit import check_rate_limit
from autoprotect.core.response_builders import build_list
from autoprotect.core.security import get_current_user
from autoprotect.db.session import get_db
from autoprotect.models.claim import Claim
from autoprotect.models.policy import Policy
from autoprotect.schemas.claim import ClaimCreate, ClaimOut, ClaimUpdate
from autoprotect.schemas.common import DataResponse

router = APIRouter(prefix="/api/admin/claims", tags=["admin-claims"])


@router.post("", status_code=201, response_model=DataResponse[ClaimOut])
async def create_claim(
    payload: ClaimCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    await check_rate_limit(int(current_user.id))
    if payload.policy_id is not None:
        check_not_found(await db.get(Policy, payload.policy_id), "Policy", payload.policy_id)

    claim = Claim(**payload.model_dump())
    db.add(claim)
    await db.commit()
    return {"data": ClaimOut.model_validate(claim), "message": "Claim created successfully"}


@router.get("", response_model=DataResponse[List[ClaimOut]])
async def list_claims(
    status: Optional[ClaimStatus] = Query(None),
    policy_id: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    q = select(Claim)
    if status:
        q = q.where(Claim.status == status)
    if policy_id is not None:
        q = q.where(Claim.policy_id == policy_id)
    q = q.order_by(Claim.created_at.desc(), Claim.id.desc()).limit(limit).offset(offset)
    res = await db.execute(q)
    return {"data": build_list(ClaimOut, res.scalars().all()), "message": "Claims retrieved successfully"}


@router.get("/{claim_id}", response_model=DataResponse[ClaimOut])
async def get_claim(
    claim_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    claim = await db.get(Claim, claim_id)
    check_not_found(claim, "Claim", claim_id)
    return {"data": ClaimOut.model_validate(claim), "message": "Claim retrieved successfully"}


@router.patch("/{claim_id}", response_model=DataResponse[ClaimOut])
async def update_claim(
    claim_id: int,
    payload: ClaimUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    await check_rate_limit(int(current_user.id))

    claim = await db.get(Claim, claim_id)
    check_not_found(claim, "Claim", claim_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(claim, field, value)
    db.add(claim)
    await db.commit()
    return {"data": ClaimOut.model_validate(claim), "message": "Claim updated successfully"}
