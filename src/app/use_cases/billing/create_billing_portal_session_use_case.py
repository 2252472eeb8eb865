"""
Create Billing Portal Session Use Case

Opens the payment provider's self-service portal for a converted signup.
"""

from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.payment_gateway import PaymentGateway, PaymentGatewayError
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.signup.settings import SignupSettings
from src.app.use_cases.signup.state import INTENT_NOT_FOUND

from .dtos import BillingPortalResponse


class CreateBillingPortalSessionUseCase:
    def __init__(
        self, uow: UnitOfWork, settings: SignupSettings, payment_gateway: PaymentGateway
    ):
        self.uow = uow
        self.settings = settings
        self.payment_gateway = payment_gateway

    async def execute(self, intent_id: UUID) -> Result[BillingPortalResponse]:
        async with self.uow:
            intent = await self.uow.signup_intents.get_by_id(intent_id)
            if intent is None:
                return Return.err(INTENT_NOT_FOUND)

            profile = (
                await self.uow.profiles.get_by_user_id(intent.user_id)
                if intent.user_id
                else None
            )
            customer_id = profile.payment_customer_id if profile else None
            if not customer_id and intent.clinic_id:
                subscription = await self.uow.subscriptions.get_by_clinic_id(intent.clinic_id)
                customer_id = subscription.external_customer_id if subscription else None

        if not customer_id:
            return Return.err(
                Error("INVALID_STATE", "Nenhuma assinatura encontrada para este cadastro.")
            )

        try:
            url = await self.payment_gateway.create_billing_portal_session(
                customer_id, f"{self.settings.app_url}/configuracoes/assinatura"
            )
        except PaymentGatewayError:
            return Return.err(
                Error(
                    "PAYMENT_PROVIDER_ERROR",
                    "Não foi possível abrir o portal de pagamento. Tente novamente.",
                )
            )

        return Return.ok(BillingPortalResponse(url=url))
