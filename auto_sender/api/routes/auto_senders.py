"""
Auto-sender routes.
Management surface for sweep configs and the process-wide price threshold.
"""

from fastapi import APIRouter, Depends

import structlog

from auto_sender.api.dependencies import get_auto_sender_service
from auto_sender.api.schemas.auto_sender import (
    AutoSenderCreate,
    RateUpdate,
    SigningSecretUpdate,
    ThresholdUpdate,
)
from auto_sender.api.schemas.common import SuccessResponse, create_success_response
from auto_sender.core.exceptions import AutoSenderNotFoundError
from auto_sender.services.auto_sender_service import AutoSenderService


logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get(
    "/status",
    response_model=SuccessResponse,
    summary="Get Auto-Sender Status",
    description="Scheduler state, policy threshold and all configs (secrets redacted)"
)
async def get_status(service: AutoSenderService = Depends(get_auto_sender_service)):
    return create_success_response(data=service.get_status())


@router.put(
    "/settings/rate",
    response_model=SuccessResponse,
    summary="Update SOL/USD Rate"
)
async def update_rate(
    body: RateUpdate,
    service: AutoSenderService = Depends(get_auto_sender_service)
):
    service.update_sol_rate(body.sol_to_usd_rate)
    return create_success_response(
        data={"sol_to_usd_rate": service.threshold.sol_to_usd_rate},
        message="SOL rate updated"
    )


@router.put(
    "/settings/threshold",
    response_model=SuccessResponse,
    summary="Update Minimum USD Threshold"
)
async def update_threshold(
    body: ThresholdUpdate,
    service: AutoSenderService = Depends(get_auto_sender_service)
):
    service.update_usd_threshold(body.min_usd_threshold)
    return create_success_response(
        data={"min_usd_threshold": service.threshold.min_usd_threshold},
        message="USD threshold updated"
    )


@router.get(
    "/",
    response_model=SuccessResponse,
    summary="List Auto-Senders"
)
async def list_auto_senders(service: AutoSenderService = Depends(get_auto_sender_service)):
    return create_success_response(data=service.get_configs())


@router.post(
    "/",
    response_model=SuccessResponse,
    status_code=201,
    summary="Add Auto-Sender",
    description="Register a new sweeper. It starts active."
)
async def add_auto_sender(
    body: AutoSenderCreate,
    service: AutoSenderService = Depends(get_auto_sender_service)
):
    config = await service.add_auto_sender(
        source_address=body.source_address,
        destination_address=body.destination_address,
        signing_secret=body.signing_secret.get_secret_value(),
        reserve_amount=body.reserve_amount,
        name=body.name,
    )
    return create_success_response(data=config.to_dict(), message="Auto-sender added")


@router.get(
    "/{config_id}",
    response_model=SuccessResponse,
    summary="Get Auto-Sender"
)
async def get_auto_sender(
    config_id: str,
    service: AutoSenderService = Depends(get_auto_sender_service)
):
    return create_success_response(data=service.get_config(config_id))


@router.delete(
    "/{config_id}",
    response_model=SuccessResponse,
    summary="Remove Auto-Sender",
    description="Remove the config and purge its signing secret"
)
async def remove_auto_sender(
    config_id: str,
    service: AutoSenderService = Depends(get_auto_sender_service)
):
    if not await service.remove_auto_sender(config_id):
        raise AutoSenderNotFoundError(config_id)
    return create_success_response(data={"id": config_id}, message="Auto-sender removed")


@router.post(
    "/{config_id}/toggle",
    response_model=SuccessResponse,
    summary="Toggle Auto-Sender"
)
async def toggle_auto_sender(
    config_id: str,
    service: AutoSenderService = Depends(get_auto_sender_service)
):
    if not await service.toggle_auto_sender(config_id):
        raise AutoSenderNotFoundError(config_id)
    return create_success_response(data=service.get_config(config_id))


@router.post(
    "/{config_id}/secret",
    response_model=SuccessResponse,
    summary="Refresh Signing Secret",
    description="Re-arm an expired signing secret and clear the last error"
)
async def refresh_secret(
    config_id: str,
    body: SigningSecretUpdate,
    service: AutoSenderService = Depends(get_auto_sender_service)
):
    if not await service.refresh_secret(config_id, body.signing_secret.get_secret_value()):
        raise AutoSenderNotFoundError(config_id)
    return create_success_response(data=service.get_config(config_id), message="Signing secret refreshed")


@router.post(
    "/{config_id}/evaluate",
    response_model=SuccessResponse,
    summary="Evaluate Auto-Sender Now",
    description="Run one evaluation immediately instead of waiting for the next tick"
)
async def evaluate_auto_sender(
    config_id: str,
    service: AutoSenderService = Depends(get_auto_sender_service)
):
    outcome = await service.evaluate_now(config_id)
    logger.info("Manual evaluation finished", config_id=config_id, status=outcome.status.value)
    return create_success_response(data=outcome.to_dict())
