"""
FastAPI application for the Auto-Sender service.
Exposes the management surface used by the dashboard.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, status
from fastapi.responses import JSONResponse

import structlog

from auto_sender.core.config import settings
from auto_sender.api.middleware import add_middleware
from auto_sender.api.schemas.common import HealthCheckResponse
from auto_sender.api.routes import auto_senders
from auto_sender.services.auto_sender_service import AutoSenderService


logger = structlog.get_logger(__name__)


def create_app(service: Optional[AutoSenderService] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        service: Pre-built service to serve; a default one is created at
            startup when omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Auto-Sender API server", version=settings.app_version)
        app.state.auto_sender_service = service or AutoSenderService()
        await app.state.auto_sender_service.start()

        yield

        logger.info("Shutting down Auto-Sender API server")
        try:
            await app.state.auto_sender_service.close()
        except Exception as e:
            logger.error("Error during shutdown", error=str(e))

    app = FastAPI(
        title=settings.app_name,
        description="Sweeps wallet balances above a reserve to a destination address.",
        version=settings.app_version,
        lifespan=lifespan,
    )

    add_middleware(app)

    @app.get(
        "/health",
        response_model=HealthCheckResponse,
        tags=["System"],
        summary="Health Check",
        description="Check API server, scheduler and RPC status"
    )
    async def health_check():
        auto_sender_service: AutoSenderService = app.state.auto_sender_service
        try:
            health = await auto_sender_service.health_check()
            return HealthCheckResponse(
                status="healthy" if health["healthy"] else "degraded",
                version=settings.app_version,
                rpc="healthy" if health["rpc_healthy"] else "unhealthy",
                scheduler=health["scheduler"]["status"],
                active_configs=auto_sender_service.registry.active_count,
                stored_secrets=health["stored_secrets"],
            )
        except Exception as e:
            logger.error("Health check failed", error=str(e))
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "unhealthy", "error": str(e)}
            )

    app.include_router(
        auto_senders.router,
        prefix=f"{settings.api_v1_prefix}/auto-senders",
        tags=["Auto-Senders"]
    )

    return app
