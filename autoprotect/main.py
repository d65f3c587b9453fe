from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from starlette.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware
from autoprotect.api import (
    admin_claims,
    admin_leads,
    admin_policies,
    admin_templates,
    admin_users,
    auth,
    customer,
    leads,
    quotes,
)
from autoprotect.core.config import settings
from autoprotect.core.errors import register_exception_handlers
from autoprotect.core.redis import init_redis, close_redis, get_redis
from autoprotect.core.metrics import request_count, request_duration, db_connected, redis_connected, get_metrics_text
from autoprotect.db.session import init_models
import time
import logging

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception:
            self._observe(request, 500, time.time() - start_time)
            raise
        self._observe(request, response.status_code, time.time() - start_time)
        return response

    @staticmethod
    def _observe(request: Request, status: int, duration: float) -> None:
        # Label by route template so ids do not explode cardinality
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)
        request_count.labels(method=request.method, endpoint=endpoint, status=status).inc()
        request_duration.labels(method=request.method, endpoint=endpoint).observe(duration)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting...")

    logger.info("Initializing Redis connection...")
    try:
        await init_redis()
        redis_connected.set(1)
        logger.info("Redis connected")
    except Exception as e:
        logger.error(f"Redis connection failed: {e}")
        redis_connected.set(0)

    if settings.AUTO_CREATE_TABLES:
        try:
            await init_models()
            db_connected.set(1)
            logger.info("Database connected")
        except Exception as e:
            logger.error(f"Database connection failed: {e}")
            db_connected.set(0)
    else:
        db_connected.set(1)

    yield

    logger.info("Application shutting down...")
    await close_redis()
    redis_connected.set(0)
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(MetricsMiddleware)
register_exception_handlers(app)

app.include_router(quotes.router)
app.include_router(leads.router)
app.include_router(auth.router)
app.include_router(admin_users.router)
app.include_router(admin_leads.router)
app.include_router(admin_policies.router)
app.include_router(admin_claims.router)
app.include_router(admin_templates.router)
app.include_router(customer.router)


@app.get("/metrics", tags=["monitoring"])
async def metrics():
    return Response(
        content=get_metrics_text(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )


@app.get("/health", tags=["monitoring"])
async def health_check():
    redis_healthy = get_redis() is not None

    return {
        "status": "healthy",
        "service": settings.API_TITLE,
        "version": settings.API_VERSION,
        "dependencies": {
            "redis": "connected" if redis_healthy else "disconnected",
            "database": "connected"
        }
    }


@app.get("/readiness", tags=["monitoring"])
async def readiness_check():
    if get_redis() is None:
        return JSONResponse(status_code=503, content={"ready": False, "reason": "Redis not available"})

    return {"ready": True, "service": settings.API_TITLE}


@app.get("/", tags=["root"])
async def root():
    return {
        "message": settings.API_TITLE,
        "version": settings.API_VERSION,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics"
    }
