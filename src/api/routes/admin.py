"""
Admin API Routes - Operator Endpoints

Fraud review, stale intent sweep and provisioning retries.
Authentication is via Admin API Key, not intent tokens.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from src.api.error import to_http_error
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.admin import (
    BlockSignupIntentResponse,
    BlockSignupIntentUseCase,
    ExpireStaleIntentsResponse,
    ExpireStaleIntentsUseCase,
    ReprocessProvisioningJobResponse,
    ReprocessProvisioningJobUseCase,
)
from src.app.use_cases.signup import SignupSettings
from src.api.utils.admin_auth import verify_admin_api_key
from src.depends import get_payment_gateway, get_signup_settings, get_unit_of_work

router = APIRouter(prefix="/admin", tags=["Admin"])


class BlockIntentRequest(BaseModel):
    reason: Optional[str] = Field("manual", max_length=255)


@router.post(
    "/signup-intents/{intent_id}/block",
    status_code=status.HTTP_200_OK,
    response_model=BlockSignupIntentResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def block_signup_intent(
    intent_id: UUID,
    request: Optional[BlockIntentRequest] = None,
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Block Signup Intent

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 404 Not Found: INTENT_NOT_FOUND
        - 409 Conflict: INVALID_STATE (converted or expired intent)
    """
    reason = request.reason if request and request.reason else "manual"

    use_case = BlockSignupIntentUseCase(uow)
    result = await use_case.execute(intent_id, reason)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post(
    "/signup-intents/expire",
    status_code=status.HTTP_200_OK,
    response_model=ExpireStaleIntentsResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def expire_stale_intents(
    uow: UnitOfWork = Depends(get_unit_of_work),
    settings: SignupSettings = Depends(get_signup_settings),
):
    """
    Expire Stale Intents

    Entry point for the periodic sweep (cron / scheduler).

    Requires: X-Admin-API-Key header
    """
    use_case = ExpireStaleIntentsUseCase(uow, ttl_days=settings.intent_ttl_days)
    result = await use_case.execute()

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post(
    "/provisioning-jobs/{job_id}/reprocess",
    status_code=status.HTTP_200_OK,
    response_model=ReprocessProvisioningJobResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def reprocess_provisioning_job(
    job_id: UUID,
    uow: UnitOfWork = Depends(get_unit_of_work),
    payment_gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Reprocess Provisioning Job

    Requires: X-Admin-API-Key header

    Raises:
        - 404 Not Found: JOB_NOT_FOUND
        - 409 Conflict: INVALID_STATE (no stored payload)
        - 500 Internal Server Error: PROVISIONING_FAILED
    """
    use_case = ReprocessProvisioningJobUseCase(uow, payment_gateway)
    result = await use_case.execute(job_id)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value
