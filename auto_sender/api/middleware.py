"""
Custom middleware and exception handlers for the FastAPI application.
"""

import time
from datetime import datetime
from typing import Callable

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

import structlog

from auto_sender.api.schemas.common import create_error_response
from auto_sender.core.config import settings
from auto_sender.core.exceptions import AutoSenderException, NotFoundError, ValidationError


logger = structlog.get_logger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request/response logging."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.perf_counter() - start_time
            logger.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                process_time=process_time,
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "success": False,
                    "error_code": "INTERNAL_SERVER_ERROR",
                    "message": "An internal server error occurred",
                    "timestamp": datetime.utcnow().isoformat()
                }
            )

        process_time = time.perf_counter() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        # Request bodies may carry signing secrets; only method and path are logged
        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time=process_time,
        )
        return response


async def auto_sender_exception_handler(request: Request, exc: AutoSenderException) -> JSONResponse:
    """Map domain exceptions to consistent error responses."""
    if isinstance(exc, ValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        logger.error("Unhandled service error", error=exc.message, error_code=exc.code)

    body = create_error_response(message=exc.message, error_code=exc.code, details=exc.details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def add_middleware(app: FastAPI) -> None:
    """Add all middleware and exception handlers to the FastAPI app."""
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_middleware(LoggingMiddleware)
    app.add_exception_handler(AutoSenderException, auto_sender_exception_handler)
