"""
HTTP entry point for SmartBudget

Exposes the action contract the budgeting front end talks to:

    GET  /?action=sendOTP&email=...        read-style actions, query params
    POST /  {"action": "saveMonth", ...}   write-style actions, JSON body

Every response is HTTP 200 with the JSON envelope; success or failure is
signalled only by its "success" field.

The expired-code sweep runs once at startup and then on a fixed interval.

Run with:
    uvicorn --factory app.main:create_app
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi_utilities import repeat_every

from src import __version__
from src.auth import OTPManager
from src.config import get_settings
from src.log import configure_logging
from src.router import ActionRouter, create_app_components


logger = structlog.get_logger(__name__)


def create_app(
    router: Optional[ActionRouter] = None,
    otp_manager: Optional[OTPManager] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Components are created from settings unless given; tests pass their own.
    """
    settings = get_settings()
    configure_logging(settings.app.log_level)

    if router is None or otp_manager is None:
        router, otp_manager = create_app_components()

    @repeat_every(seconds=settings.otp.cleanup_interval_seconds)
    async def sweep_expired_otps() -> None:
        try:
            await otp_manager.sweep_expired()
        except Exception:
            logger.exception("otp_sweep_failed")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("app_starting", environment=settings.app.app_environment)
        # repeat_every schedules its loop without returning it; keep the task
        running = asyncio.all_tasks()
        await sweep_expired_otps()  # initial sweep, then every interval
        app.state.sweep_tasks = asyncio.all_tasks() - running
        yield
        for task in app.state.sweep_tasks:
            task.cancel()
        await asyncio.gather(*app.state.sweep_tasks, return_exceptions=True)
        logger.info("app_stopped")

    app = FastAPI(
        title="SmartBudget API",
        description="OTP login and per-user budget storage for SmartBudget Pro",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_origins_list,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.state.router = router
    app.state.otp_manager = otp_manager

    @app.get("/", summary="Run a read-style action")
    async def handle_get(request: Request) -> JSONResponse:
        return JSONResponse(await router.handle_get(request.query_params))

    @app.post("/", summary="Run a write-style action")
    async def handle_post(request: Request) -> JSONResponse:
        return JSONResponse(await router.handle_post(await request.body()))

    return app

