import json
import logging
from typing import Optional
from autoprotect.core.redis import get_redis
from autoprotect.core.config import settings

logger = logging.getLogger(__name__)


async def get_idempotent(key: Optional[str]):
    if not key:
        return None
    redis = get_redis()
    if redis is None:
        logger.warning("Idempotency lookup skipped, Redis unavailable")
        return None
    v = await redis.get(f"idemp:{key}")
    return json.loads(v) if v else None

async def set_idempotent(key: Optional[str], value: dict):
    if not key:
        return
    redis = get_redis()
    if redis is None:
        return
    await redis.set(f"idemp:{key}", json.dumps(value, default=str), ex=settings.IDEMPOTENCY_TTL)
