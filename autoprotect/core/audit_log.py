"""Audit trail helpers for staff mutations"""
import logging
from typing import Any, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from autoprotect.models.audit import Audit
from autoprotect.core.enums import AuditAction
from autoprotect.core.metrics import audit_logs_created
from autoprotect.utils.hashing import payload_hash

logger = logging.getLogger(__name__)


async def log_audit(
    db: AsyncSession,
    user_id: int,
    action: AuditAction,
    payload: Optional[Any] = None
) -> None:
    """Write one audit row; never raises."""
    try:
        audit_record = Audit(
            user_id=int(user_id),
            action=str(action),
            payload_hash=payload_hash(payload or {}),
        )

        db.add(audit_record)
        await db.commit()
        audit_logs_created.labels(action=str(action)).inc()

    except Exception as e:
        logger.error(f"Audit logging failed for action {action}: {e}", exc_info=True)
        await db.rollback()


async def log_login(
    db: AsyncSession,
    user_id: int,
    username: str
) -> None:
    await log_audit(db, user_id, AuditAction.LOGIN, {"username": username})
