import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, selectinload
from sqlalchemy.future import select
from autoprotect.core.config import settings
from autoprotect.models.lead import Lead
from autoprotect.services.email_content import new_lead_email
from autoprotect.services.mail import MailDeliveryError, send_mail

logger = logging.getLogger(__name__)


async def notify_new_lead_async(lead_id: int) -> bool:
    """Email the sales inbox about a new lead; failures are logged, not retried."""
    if not settings.SALES_ALERT_EMAIL:
        logger.info(f"SALES_ALERT_EMAIL not set, no notification for lead {lead_id}")
        return False

    engine_worker = create_async_engine(settings.DATABASE_URL, future=True, echo=False)
    AsyncSessionWorker = sessionmaker(engine_worker, class_=AsyncSession, expire_on_commit=False)
    try:
        async with AsyncSessionWorker() as db:
            res = await db.execute(
                select(Lead).where(Lead.id == lead_id).options(selectinload(Lead.vehicle))
            )
            lead = res.scalars().first()
            if not lead:
                logger.warning(f"Lead {lead_id} disappeared before notification")
                return False

            message = new_lead_email(settings.SALES_ALERT_EMAIL, lead, lead.vehicle)
        return await send_mail(message)
    except MailDeliveryError as e:
        logger.error(f"New lead notification failed for lead {lead_id}: {e}")
        return False
    finally:
        await engine_worker.dispose()
