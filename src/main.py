"""FastAPI application entry point.

Run with: uvicorn src.main:app --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.bt_common.errors import AppError
from src.bt_common.middleware.request_log import RequestLogMiddleware
from src.bt_common.response import error_response
from src.bt_ledger.application.service import BalanceLedger
from src.bt_query.api.router import router as balances_router
from src.bt_sampler.infrastructure.economy_client import EconomyClient
from src.runtime import TrackerRuntime

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB, warm cache, start periodic tasks. Shutdown: reverse."""
    runtime = TrackerRuntime(ledger=BalanceLedger(), economy=EconomyClient())
    try:
        await runtime.start()
    except Exception as exc:
        message = exc.message if isinstance(exc, AppError) else repr(exc)
        logger.critical("Failed to start balance tracker: %s", message)
        await runtime.stop()
        raise
    app.state.runtime = runtime
    app.state.query_service = runtime.query_service
    yield
    await runtime.stop()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    resp = error_response(exc.code, exc.message, getattr(request.state, "request_id", None))
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(balances_router, prefix="/api/v1")


@app.get("/health")
async def health(request: Request) -> dict[str, Any]:
    body: dict[str, Any] = {"status": "ok", "version": "0.1.0"}
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is not None:
        body["tasks"] = {task.name: task.run_count for task in runtime.tasks}
    return body
