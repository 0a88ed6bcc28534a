"""
Response envelopes shared by all endpoints.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class SuccessResponse(BaseModel):
    """Envelope for every successful management call."""
    success: bool = True
    message: Optional[str] = None
    data: Optional[Any] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class ErrorResponse(BaseModel):
    """Envelope produced by the domain exception handler."""
    success: bool = False
    error_code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class HealthCheckResponse(BaseModel):
    """Liveness of the RPC endpoint and the sweep scheduler."""
    status: str = "healthy"
    version: str
    rpc: str
    scheduler: str
    active_configs: int = 0
    stored_secrets: int = 0
    timestamp: datetime = Field(default_factory=datetime.utcnow)


def create_success_response(data: Any = None, message: Optional[str] = None) -> SuccessResponse:
    return SuccessResponse(data=data, message=message)


def create_error_response(
    message: str,
    error_code: str,
    details: Optional[Dict[str, Any]] = None
) -> ErrorResponse:
    return ErrorResponse(message=message, error_code=error_code, details=details or {})
