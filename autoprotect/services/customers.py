import logging
import secrets
from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from autoprotect.core.security import hash_password
from autoprotect.models.customer import CustomerAccount, CustomerPaymentProfile, CustomerPolicy

logger = logging.getLogger(__name__)


async def find_customer_by_email(db: AsyncSession, email: str) -> Optional[CustomerAccount]:
    res = await db.execute(select(CustomerAccount).where(CustomerAccount.email == email.lower()))
    return res.scalars().first()


async def ensure_customer_account(
    db: AsyncSession,
    email: str,
    display_name: Optional[str] = None,
    password: Optional[str] = None,
) -> Tuple[CustomerAccount, bool]:
    """Return the account for ``email``, creating it when missing.

    Accounts created without a password get a random one; those customers
    log in with their policy or lead number.
    """
    customer = await find_customer_by_email(db, email)
    if customer:
        return customer, False
    customer = CustomerAccount(
        email=email.lower(),
        password_hash=hash_password(password or secrets.token_urlsafe(32)),
        display_name=display_name,
    )
    db.add(customer)
    await db.flush()
    logger.info(f"Created customer account {customer.id}")
    return customer, True


async def link_customer_policy(db: AsyncSession, customer_id: int, policy_id: int) -> bool:
    res = await db.execute(
        select(CustomerPolicy).where(
            CustomerPolicy.customer_id == customer_id,
            CustomerPolicy.policy_id == policy_id,
        )
    )
    if res.scalars().first():
        return False
    db.add(CustomerPolicy(customer_id=customer_id, policy_id=policy_id))
    await db.flush()
    return True


async def customer_policy_ids(db: AsyncSession, customer_id: int) -> List[int]:
    res = await db.execute(
        select(CustomerPolicy.policy_id)
        .where(CustomerPolicy.customer_id == customer_id)
        .order_by(CustomerPolicy.policy_id)
    )
    return list(res.scalars().all())


async def get_payment_profile(db: AsyncSession, customer_id: int, policy_id: int) -> Optional[CustomerPaymentProfile]:
    res = await db.execute(
        select(CustomerPaymentProfile).where(
            CustomerPaymentProfile.customer_id == customer_id,
            CustomerPaymentProfile.policy_id == policy_id,
        )
    )
    return res.scalars().first()


async def sync_payment_profile(db: AsyncSession, customer_id: int, policy_id: int, **fields) -> CustomerPaymentProfile:
    """Upsert the profile; ``None`` values leave existing data untouched."""
    profile = await get_payment_profile(db, customer_id, policy_id)
    if profile is None:
        profile = CustomerPaymentProfile(customer_id=customer_id, policy_id=policy_id)
    for field, value in fields.items():
        if value is not None:
            setattr(profile, field, value)
    db.add(profile)
    await db.flush()
    return profile
