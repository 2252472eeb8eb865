import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Request, status
from pydantic import BaseModel, Field

from config import ApplicationConfig
from libs.result import Error
from src.api.error import ClientError, to_http_error
from src.api.utils.rate_limit import enforce_rate_limit, get_client_ip
from src.app.services.payment_gateway import PaymentGateway, WebhookSignatureError
from src.app.services.rate_limiter import RateLimiter
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.billing import (
    BillingPortalResponse,
    CheckoutSessionResponse,
    CreateBillingPortalSessionUseCase,
    CreateCheckoutSessionUseCase,
)
from src.app.use_cases.provisioning import (
    ProcessPaymentEventResponse,
    ProcessPaymentEventUseCase,
)
from src.app.use_cases.signup import SignupSettings
from src.depends import (
    get_intent_claims,
    get_payment_gateway,
    get_rate_limiter,
    get_signup_settings,
    get_unit_of_work,
)
from src.domain.plans import PlanKey

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["Billing"])


def _intent_id_from_claims(claims: dict) -> UUID:
    try:
        return UUID(claims.get("intent_id", ""))
    except ValueError:
        raise ClientError(
            Error("UNAUTHORIZED", "Invalid token"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class CheckoutRequest(BaseModel):
    plan: PlanKey = Field(..., description="trial, monthly, quarterly, semiannual or annual")


@router.post(
    "/checkout", status_code=status.HTTP_200_OK, response_model=CheckoutSessionResponse
)
async def create_checkout_session(
    request: CheckoutRequest,
    http_request: Request,
    claims: dict = Depends(get_intent_claims),
    uow: UnitOfWork = Depends(get_unit_of_work),
    settings: SignupSettings = Depends(get_signup_settings),
    payment_gateway: PaymentGateway = Depends(get_payment_gateway),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    """
    Start Checkout

    Creates (or reuses) the hosted checkout session for the bearer's intent.

    Raises:
        - 400: INVALID_PLAN
        - 409: INVALID_STATE, INTENT_UNAVAILABLE
        - 429: RATE_LIMITED
        - 502: PAYMENT_PROVIDER_ERROR
    """
    await enforce_rate_limit(
        limiter, "checkout", get_client_ip(http_request), ApplicationConfig.RATE_LIMIT_CHECKOUT
    )

    use_case = CreateCheckoutSessionUseCase(uow, settings, payment_gateway)
    result = await use_case.execute(_intent_id_from_claims(claims), request.plan.value)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post("/portal", status_code=status.HTTP_200_OK, response_model=BillingPortalResponse)
async def create_billing_portal_session(
    claims: dict = Depends(get_intent_claims),
    uow: UnitOfWork = Depends(get_unit_of_work),
    settings: SignupSettings = Depends(get_signup_settings),
    payment_gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """Billing Portal for the clinic created from the bearer's intent"""
    use_case = CreateBillingPortalSessionUseCase(uow, settings, payment_gateway)
    result = await use_case.execute(_intent_id_from_claims(claims))

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post(
    "/webhook", status_code=status.HTTP_200_OK, response_model=ProcessPaymentEventResponse
)
async def payment_webhook(
    request: Request,
    stripe_signature: str = Header(None, alias="Stripe-Signature"),
    uow: UnitOfWork = Depends(get_unit_of_work),
    payment_gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Payment Provider Webhook

    Signature is verified before anything else. Duplicate deliveries answer
    200 with status=duplicate; provisioning failures answer 500 so the
    provider retries.
    """
    payload = await request.body()
    try:
        event = payment_gateway.construct_event(payload, stripe_signature or "")
    except WebhookSignatureError:
        raise ClientError(
            Error("INVALID_SIGNATURE", "Invalid webhook signature"),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    logger.info(f"Webhook received: event_id={event.id} type={event.type}")

    use_case = ProcessPaymentEventUseCase(uow, payment_gateway)
    result = await use_case.execute(event)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value
