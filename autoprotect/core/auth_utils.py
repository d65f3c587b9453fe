"""Authentication and authorization utilities"""
from fastapi import HTTPException
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from autoprotect.models.customer import CustomerPolicy
from autoprotect.models.lead import Lead
from autoprotect.models.policy import Policy


def check_not_found(item, resource_name: str = "Resource", resource_id: Optional[int] = None) -> None:

    if not item:
        raise HTTPException(status_code=404, detail=f"{resource_name} not found")


async def get_customer_policy(db: AsyncSession, customer, policy_id: int) -> Policy:
    """Load a policy linked to ``customer`` or raise 404.

    Unlinked policies look missing so policy numbers cannot be guessed.
    """
    res = await db.execute(
        select(Policy)
        .join(CustomerPolicy, CustomerPolicy.policy_id == Policy.id)
        .where(Policy.id == policy_id, CustomerPolicy.customer_id == int(customer.id))
        .options(selectinload(Policy.lead).selectinload(Lead.vehicle))
    )
    policy = res.scalars().first()
    check_not_found(policy, "Policy", policy_id)
    return policy


def check_lead_email(lead: Lead, email: str) -> None:
    if not lead.email or lead.email.lower() != email.lower():
        raise HTTPException(status_code=403, detail="Email does not match our records")
