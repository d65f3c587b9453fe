import logging
from typing import Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from autoprotect.core.clock import utc_now
from autoprotect.core.enums import PolicyStatus
from autoprotect.models.lead import Lead
from autoprotect.models.policy import Policy
from autoprotect.models.quote import Quote

logger = logging.getLogger(__name__)


def policy_terms_from_quote(quote: Optional[Quote]) -> dict:
    if quote is None:
        return {}
    terms = {
        "package": str(quote.plan),
        "deductible": quote.deductible,
        "total_premium_cents": quote.price_total_cents,
        "monthly_payment_cents": quote.price_monthly_cents,
        "down_payment_cents": quote.price_monthly_cents,
        "total_payments": quote.term_months,
    }
    expiration_miles = (quote.breakdown or {}).get("expiration_miles")
    if expiration_miles is not None:
        terms["expiration_miles"] = expiration_miles
    return terms


async def apply_policy_terms(
    db: AsyncSession,
    lead: Lead,
    quote: Optional[Quote] = None,
    overrides: Optional[dict] = None,
) -> Tuple[Policy, bool]:
    """Create or update the lead's policy from a quote plus explicit fields.

    ``lead.policy`` must already be loaded. Returns ``(policy, created)``.
    """
    terms = policy_terms_from_quote(quote)
    terms.update({k: v for k, v in (overrides or {}).items() if v is not None})

    policy = lead.policy
    created = policy is None
    if created:
        # Policy numbers reuse the lead id
        policy = Policy(id=lead.id, lead_id=lead.id, status=PolicyStatus.ACTIVE)
        terms.setdefault("policy_start_date", utc_now())
        lead.policy = policy
    for field, value in terms.items():
        setattr(policy, field, value)
    db.add(policy)
    await db.flush()
    logger.info(f"{'Created' if created else 'Updated'} policy {policy.id} for lead {lead.id}")
    return policy, created
