"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import get_settings
from src.rw_asset.api.router import router as asset_router
from src.rw_common.database import dispose_engine, get_engine, get_session_factory
from src.rw_common.errors import AppError
from src.rw_common.redis_client import close_redis, verify_redis
from src.rw_common.response import error_response
from src.rw_gateway.api.router import router as auth_router
from src.rw_gateway.middleware.request_log import RequestLogMiddleware
from src.rw_gateway.providers import close_clients, get_poll_sweeper
from src.rw_offer.api.router import router as offer_router
from src.rw_reconcile.api.router import poll_router, status_router, webhook_router
from src.rw_reconcile.application.poll import PollScheduler

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis, start the poll loop. Shutdown: stop and dispose."""
    async with get_engine().connect() as conn:
        await conn.execute(text("SELECT 1"))
    await verify_redis(settings)

    scheduler: PollScheduler | None = None
    if settings.POLL_INTERVAL_SECONDS > 0:
        scheduler = PollScheduler(
            get_poll_sweeper(), get_session_factory(), settings.POLL_INTERVAL_SECONDS
        )
        scheduler.start()
    else:
        logger.info("Background poll sweep disabled; use POST /api/v1/reconcile/poll")

    yield

    if scheduler is not None:
        await scheduler.stop()
    await close_clients()
    await dispose_engine()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(auth_router, prefix="/api/v1")
app.include_router(offer_router, prefix="/api/v1")
app.include_router(asset_router, prefix="/api/v1")
app.include_router(webhook_router, prefix="/api/v1")
app.include_router(poll_router, prefix="/api/v1")
app.include_router(status_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
