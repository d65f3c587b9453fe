import logging
from datetime import timedelta
from typing import Optional
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from autoprotect.core.clock import utc_now
from autoprotect.core.enums import LeadStatus
from autoprotect.core.metrics import leads_created
from autoprotect.models.lead import Lead
from autoprotect.models.customer import CustomerPolicy
from autoprotect.models.policy import Policy
from autoprotect.models.quote import Quote
from autoprotect.models.vehicle import Vehicle
from autoprotect.schemas.lead import LeadStats
from autoprotect.services.pricing import round_half_up

logger = logging.getLogger(__name__)

LEAD_DETAIL_OPTIONS = (
    selectinload(Lead.vehicle),
    selectinload(Lead.quotes),
    selectinload(Lead.notes),
    selectinload(Lead.policy),
    selectinload(Lead.contracts),
)


async def get_lead(db: AsyncSession, lead_id: int, detail: bool = False) -> Optional[Lead]:
    q = select(Lead).where(Lead.id == lead_id)
    q = q.options(*LEAD_DETAIL_OPTIONS) if detail else q.options(selectinload(Lead.vehicle))
    res = await db.execute(q.execution_options(populate_existing=True))
    return res.scalars().first()


async def create_lead(
    db: AsyncSession,
    lead_fields: dict,
    vehicle_fields: Optional[dict] = None,
    *,
    source: str = "web",
    consent_ip: Optional[str] = None,
    consent_user_agent: Optional[str] = None,
    raw_payload: Optional[dict] = None,
    created_by: Optional[int] = None,
) -> Lead:
    """Persist a lead and, when given, its vehicle in one commit."""
    lead_fields = {k: v for k, v in lead_fields.items() if v is not None}
    status = LeadStatus(lead_fields.pop("status", LeadStatus.NEW))
    lead_fields.setdefault("source", source)
    consent = bool(lead_fields.get("consent_tcpa"))

    lead = Lead(
        **lead_fields,
        status=status,
        tags=[],
        consent_timestamp=utc_now() if consent else None,
        consent_ip=consent_ip if consent else None,
        consent_user_agent=consent_user_agent if consent else None,
        raw_payload=raw_payload,
        created_by=created_by,
    )
    if vehicle_fields:
        lead.vehicle = Vehicle(**vehicle_fields)
    db.add(lead)
    await db.commit()

    leads_created.labels(source=lead.source or source).inc()
    logger.info(f"Created lead {lead.id} from {lead.source}")
    return await get_lead(db, lead.id)


async def upsert_vehicle(db: AsyncSession, lead: Lead, fields: dict) -> Vehicle:
    vehicle = lead.vehicle
    if vehicle is None:
        missing = [k for k in ("year", "make", "model", "odometer") if fields.get(k) is None]
        if missing:
            raise ValueError(f"Vehicle {', '.join(missing)} required")
        vehicle = Vehicle(lead_id=lead.id, **fields)
        lead.vehicle = vehicle
    else:
        for field, value in fields.items():
            setattr(vehicle, field, value)
    db.add(vehicle)
    return vehicle


async def lead_stats(db: AsyncSession) -> LeadStats:
    res = await db.execute(select(Lead.status, func.count(Lead.id)).group_by(Lead.status))
    by_status = {str(status): count for status, count in res.all()}
    total = sum(by_status.values())

    cutoff = utc_now() - timedelta(days=30)
    new_leads = (
        await db.execute(select(func.count(Lead.id)).where(Lead.created_at >= cutoff))
    ).scalar_one()

    # Any lead that was ever quoted, whatever its status now
    quoted = (
        await db.execute(select(func.count(func.distinct(Quote.lead_id))))
    ).scalar_one()
    sold = by_status.get(str(LeadStatus.SOLD), 0)
    rate = round_half_up(sold / total * 100) if total else 0
    return LeadStats(
        total_leads=total,
        new_leads=new_leads,
        quoted_leads=quoted,
        sold_leads=sold,
        conversion_rate=rate,
        by_status={str(s): by_status.get(str(s), 0) for s in LeadStatus},
    )


async def get_policy(db: AsyncSession, policy_id: int, detail: bool = False) -> Optional[Policy]:
    q = select(Policy).where(Policy.id == policy_id)
    if detail:
        q = q.options(
            selectinload(Policy.lead).selectinload(Lead.vehicle),
            selectinload(Policy.notes),
            selectinload(Policy.files),
            selectinload(Policy.customer_links).selectinload(CustomerPolicy.customer),
        )
    else:
        q = q.options(selectinload(Policy.lead).selectinload(Lead.vehicle))
    res = await db.execute(q.execution_options(populate_existing=True))
    return res.scalars().first()
