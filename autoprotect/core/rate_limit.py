import logging
from typing import Optional
from fastapi import HTTPException
from autoprotect.core.redis import get_redis
from autoprotect.core.config import settings
from autoprotect.core.metrics import rate_limit_exceeded

logger = logging.getLogger(__name__)


async def check_rate_limit(
    identity,
    scope: str = "user",
    limit: Optional[int] = None,
    window: Optional[int] = None,
):
    """Fixed window counter keyed by ``rl:<scope>:<identity>``."""
    limit = limit or settings.RATE_LIMIT
    window = window or settings.RATE_LIMIT_WINDOW

    redis = get_redis()
    if redis is None:
        logger.warning(f"Rate limiting skipped for {scope}:{identity}, Redis unavailable")
        return

    key = f"rl:{scope}:{identity}"
    current = await redis.get(key)
    if current is None:
        await redis.set(key, "1", ex=window)
        return
    count = int(current)
    if count >= limit:
        rate_limit_exceeded.labels(scope=scope).inc()
        raise HTTPException(status_code=429, detail="Too many requests")
    await redis.incr(key)


async def check_lead_rate_limit(client_ip: str):
    await check_rate_limit(
        client_ip or "unknown",
        scope="lead",
        limit=settings.LEAD_RATE_LIMIT,
        window=settings.LEAD_RATE_LIMIT_WINDOW,
    )
