"""
API dependencies for FastAPI endpoints.
"""

from fastapi import HTTPException, Request, status

from auto_sender.services.auto_sender_service import AutoSenderService


def get_auto_sender_service(request: Request) -> AutoSenderService:
    """The service instance created in the application lifespan."""
    service = getattr(request.app.state, "auto_sender_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "SERVICE_UNAVAILABLE",
                "message": "Auto-sender service is not initialized"
            }
        )
    return service
