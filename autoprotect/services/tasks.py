import logging
from celery import Celery
from autoprotect.core.config import settings

logger = logging.getLogger(__name__)

celery_app = Celery(
    "autoprotect",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_BACKEND,
)
celery_app.conf.task_routes = {
    "autoprotect.services.tasks.send_new_lead_notification": {"queue": "notifications"},
}
celery_app.conf.task_always_eager = settings.CELERY_TASK_ALWAYS_EAGER


@celery_app.task(max_retries=0)
def send_new_lead_notification(lead_id: int):
    import asyncio
    from autoprotect.services.tasks_internal import notify_new_lead_async

    asyncio.run(notify_new_lead_async(lead_id))


def queue_new_lead_notification(lead_id: int) -> None:
    try:
        send_new_lead_notification.delay(lead_id)
    except Exception as e:
        logger.error(f"Could not queue new lead notification for lead {lead_id}: {e}")
