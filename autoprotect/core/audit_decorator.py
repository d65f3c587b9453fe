import logging
from functools import wraps
from typing import Callable
from sqlalchemy.ext.asyncio import AsyncSession
from autoprotect.core.audit_log import log_audit

logger = logging.getLogger(__name__)

PAYLOAD_KWARGS = ("payload", "data", "body")


def audit_log(action) -> Callable:
    """Record an audit row after the wrapped staff endpoint succeeds.

    The endpoint must take ``db`` and ``current_user`` as keyword arguments,
    which FastAPI always passes for dependencies.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            result = await func(*args, **kwargs)

            db: AsyncSession = kwargs.get("db")
            current_user = kwargs.get("current_user")

            if not db or not current_user:
                return result

            payload = {}
            for key in PAYLOAD_KWARGS:
                if key in kwargs:
                    payload = kwargs[key]
                    break
            else:
                payload = {k: v for k, v in kwargs.items() if k.endswith("_id")}

            await log_audit(db, int(current_user.id), action, payload)
            return result

        return wrapper
    return decorator
