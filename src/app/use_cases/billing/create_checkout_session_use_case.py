"""
Create Checkout Session Use Case

Bridges a verified signup intent to the payment provider's hosted checkout.
"""

import logging
from datetime import datetime
from typing import Callable
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.payment_gateway import (
    CheckoutSession,
    PaymentGateway,
    PaymentGatewayError,
)
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.signup.settings import SignupSettings
from src.app.use_cases.signup.state import advance_status, load_active_intent, record_audit
from src.domain.base import utc_now
from src.domain.entities import SignupIntentStatus
from src.domain.plans import TRIAL_PERIOD_DAYS, PlanKey

from .dtos import CheckoutSessionResponse

logger = logging.getLogger(__name__)

CHECKOUT_STATUSES = (SignupIntentStatus.VERIFIED, SignupIntentStatus.CHECKOUT_STARTED)


class CreateCheckoutSessionUseCase:
    """
    Business Rules:
    - Intent must be VERIFIED (or CHECKOUT_STARTED when retrying)
    - An open session for the same plan and price is reused
    - A completed session answers with the success URL, nothing new is created
    - New sessions carry intent_id / plan / price_id / user_id metadata and an
      idempotency key derived from the intent, plan, price and previous session
    - Trial plan adds the trial period to the subscription
    """

    def __init__(
        self,
        uow: UnitOfWork,
        settings: SignupSettings,
        payment_gateway: PaymentGateway,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.settings = settings
        self.payment_gateway = payment_gateway
        self.clock = clock

    def _success_url(self, intent_id: UUID) -> str:
        return (
            f"{self.settings.app_url}/signup/sucesso"
            f"?session_id={{CHECKOUT_SESSION_ID}}&intent_id={intent_id}"
        )

    def _cancel_url(self, intent_id: UUID) -> str:
        return f"{self.settings.app_url}/signup/checkout?intent_id={intent_id}"

    async def execute(self, intent_id: UUID, plan: str) -> Result[CheckoutSessionResponse]:
        try:
            plan_key = PlanKey(plan)
        except ValueError:
            return Return.err(Error("INVALID_PLAN", "Plano inválido."))

        price_id = self.settings.prices.get(plan_key.value)
        if not price_id:
            return Return.err(Error("INVALID_PLAN", "Plano indisponível no momento."))

        async with self.uow:
            intent, error = await load_active_intent(self.uow, intent_id)
            if error:
                return Return.err(error)

            if intent.status not in CHECKOUT_STATUSES:
                return Return.err(
                    Error(
                        "INVALID_STATE",
                        "Conclua as verificações antes de escolher o plano.",
                    )
                )

            previous_session_id = intent.checkout_session_id
            if previous_session_id:
                try:
                    existing = await self.payment_gateway.retrieve_checkout_session(
                        previous_session_id
                    )
                except PaymentGatewayError:
                    existing = None

                if existing is not None and existing.is_complete:
                    return Return.ok(
                        CheckoutSessionResponse(
                            session_id=existing.id,
                            url=self._success_url(intent.id).replace(
                                "{CHECKOUT_SESSION_ID}", existing.id
                            ),
                            plan=existing.metadata.get("plan", plan_key.value),
                            reused=True,
                            completed=True,
                        )
                    )

                if (
                    existing is not None
                    and existing.is_open
                    and existing.metadata.get("plan") == plan_key.value
                    and existing.metadata.get("price_id") == price_id
                ):
                    return Return.ok(
                        CheckoutSessionResponse(
                            session_id=existing.id,
                            url=existing.url,
                            plan=plan_key.value,
                            reused=True,
                        )
                    )

            metadata = {
                "intent_id": str(intent.id),
                "plan": plan_key.value,
                "price_id": price_id,
                "user_id": str(intent.user_id) if intent.user_id else "",
            }
            idempotency_key = (
                f"signup_checkout:{intent.id}:{plan_key.value}:{price_id}"
                f":{previous_session_id or 'first'}"
            )
            try:
                session: CheckoutSession = await self.payment_gateway.create_checkout_session(
                    price_id=price_id,
                    customer_email=intent.email,
                    success_url=self._success_url(intent.id),
                    cancel_url=self._cancel_url(intent.id),
                    metadata=metadata,
                    client_reference_id=str(intent.id),
                    idempotency_key=idempotency_key,
                    trial_period_days=TRIAL_PERIOD_DAYS if plan_key == PlanKey.trial else None,
                )
            except PaymentGatewayError:
                return Return.err(
                    Error(
                        "PAYMENT_PROVIDER_ERROR",
                        "Não foi possível iniciar o pagamento. Tente novamente.",
                    )
                )

            now = self.clock()
            intent.checkout_session_id = session.id
            intent.plan = plan_key.value
            intent.updated_at = now
            advance_status(intent, SignupIntentStatus.CHECKOUT_STARTED, now)
            await self.uow.signup_intents.update(intent)

            await record_audit(
                self.uow,
                "signup.checkout.started",
                intent=intent,
                plan=plan_key.value,
                checkout_session_id=session.id,
            )

            await self.uow.commit()

            return Return.ok(
                CheckoutSessionResponse(
                    session_id=session.id,
                    url=session.url,
                    plan=plan_key.value,
                    reused=False,
                )
            )
