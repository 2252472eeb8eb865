"""
Process Payment Event Use Case

Consumes authenticated payment-provider webhook events.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, Tuple
from uuid import UUID

from libs.result import Result, Return
from src.app.services.payment_gateway import CheckoutSession, PaymentEvent, PaymentGateway
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.signup.state import advance_status, record_audit
from src.domain.base import utc_now
from src.domain.entities import Payment, ProcessedEvent, SignupIntentStatus, Subscription
from src.domain.errors import ProvisioningFailure
from src.domain.plans import PlanKey, normalize_plan

from .dtos import ProcessPaymentEventResponse
from .tenant_provisioner import (
    TenantProvisioner,
    from_timestamp,
    object_id,
    parse_uuid,
    subscription_period_end,
)

logger = logging.getLogger(__name__)

PROVISIONING_EVENTS = (
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
)
CHECKOUT_FAILURE_EVENTS = (
    "checkout.session.expired",
    "checkout.session.async_payment_failed",
)
SUBSCRIPTION_EVENTS = (
    "customer.subscription.updated",
    "customer.subscription.deleted",
)
INVOICE_PAID_EVENTS = ("invoice.paid",)
INVOICE_FAILED_EVENTS = ("invoice.payment_failed",)
FRAUD_EVENTS = ("radar.early_fraud_warning.created",)


def _invoice_subscription_id(invoice: dict) -> Optional[str]:
    subscription_id = object_id(invoice.get("subscription"))
    if subscription_id:
        return subscription_id
    details = (invoice.get("parent") or {}).get("subscription_details") or {}
    return object_id(details.get("subscription"))


class ProcessPaymentEventUseCase:
    """
    Webhook / provisioning engine.

    Business Rules:
    - The ProcessedEvent insert is the first write; a unique violation means
      a duplicate delivery and the call is a successful no-op
    - ProcessedEvent and every provisioning write commit together; on
      failure all of it rolls back so the redelivery runs again
    - After a failed provisioning the job is marked failed in a separate
      transaction and ProvisioningFailure is raised
    - Subscription state is upserted per clinic; the clinic is located by
      subscription id, metadata, then customer id
    - Unknown event types are recorded and ignored
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_gateway: PaymentGateway,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.payment_gateway = payment_gateway
        self.clock = clock
        self.provisioner = TenantProvisioner(uow, payment_gateway)

    async def execute(self, event: PaymentEvent) -> Result[ProcessPaymentEventResponse]:
        now = self.clock()
        checkout_session = None
        if event.type in PROVISIONING_EVENTS:
            checkout_session = CheckoutSession.from_payload(event.data)

        try:
            async with self.uow:
                recorded = await self.uow.processed_events.add(
                    ProcessedEvent(event_id=event.id, event_type=event.type, processed_at=now)
                )
                if not recorded:
                    logger.info(f"Duplicate payment event {event.id} ({event.type}) skipped")
                    return Return.ok(
                        ProcessPaymentEventResponse(
                            status="duplicate", event_id=event.id, event_type=event.type
                        )
                    )

                status, job_id = await self._dispatch(event, checkout_session, now)
                await self.uow.commit()
        except Exception as e:
            logger.error(f"Payment event {event.id} ({event.type}) failed: {e}")
            job_id = None
            if checkout_session is not None:
                job_id = await self._record_failure(checkout_session, event.id, str(e))
            if isinstance(e, ProvisioningFailure):
                e.job_id = e.job_id or job_id
                raise
            raise ProvisioningFailure(
                "Payment event processing failed", event_id=event.id, job_id=job_id
            ) from e

        return Return.ok(
            ProcessPaymentEventResponse(
                status=status, event_id=event.id, event_type=event.type, job_id=job_id
            )
        )

    async def _record_failure(
        self, session: CheckoutSession, event_id: str, message: str
    ) -> Optional[str]:
        try:
            async with self.uow:
                job = await self.provisioner.mark_failed(session, event_id, message, self.clock())
                await self.uow.commit()
                return str(job.id)
        except Exception as e:
            logger.error(f"Could not mark provisioning job failed for session {session.id}: {e}")
            return None

    async def _dispatch(
        self, event: PaymentEvent, session: Optional[CheckoutSession], now: datetime
    ) -> Tuple[str, Optional[str]]:
        if session is not None:
            job = await self.provisioner.provision(session, event.id, now)
            return "processed", str(job.id)

        if event.type in CHECKOUT_FAILURE_EVENTS:
            return await self._handle_checkout_failure(event, now), None

        if event.type in SUBSCRIPTION_EVENTS:
            return await self._handle_subscription_change(event, now), None

        if event.type in INVOICE_PAID_EVENTS:
            return await self._handle_invoice_paid(event, now), None

        if event.type in INVOICE_FAILED_EVENTS:
            return await self._handle_invoice_payment_failed(event, now), None

        if event.type in FRAUD_EVENTS:
            return await self._handle_fraud_warning(event, now), None

        logger.info(f"Ignoring payment event type {event.type}")
        return "ignored", None

    async def _handle_checkout_failure(self, event: PaymentEvent, now: datetime) -> str:
        session = CheckoutSession.from_payload(event.data)
        intent_id = parse_uuid(session.metadata.get("intent_id")) or parse_uuid(
            session.client_reference_id
        )
        intent = await self.uow.signup_intents.get_by_id(intent_id) if intent_id else None
        if intent is None:
            intent = await self.uow.signup_intents.get_by_checkout_session_id(session.id)

        if (
            intent is None
            or intent.status != SignupIntentStatus.CHECKOUT_STARTED
            or intent.checkout_session_id != session.id
        ):
            logger.info(f"Checkout failure {event.type} for session {session.id} ignored")
            return "ignored"

        # Recoverable: back to plan selection
        intent.status = SignupIntentStatus.VERIFIED
        intent.checkout_session_id = None
        intent.updated_at = now
        await self.uow.signup_intents.update(intent)
        await record_audit(
            self.uow,
            "signup.checkout.failed",
            intent=intent,
            event_type=event.type,
            checkout_session_id=session.id,
        )
        return "processed"

    async def _resolve_clinic_id(
        self, metadata: dict, customer_id: Optional[str]
    ) -> Optional[UUID]:
        clinic_id = parse_uuid(metadata.get("clinic_id"))
        if clinic_id is not None and await self.uow.clinics.get_by_id(clinic_id) is not None:
            return clinic_id

        intent_id = parse_uuid(metadata.get("intent_id"))
        if intent_id is not None:
            intent = await self.uow.signup_intents.get_by_id(intent_id)
            if intent is not None and intent.clinic_id is not None:
                return intent.clinic_id

        if not customer_id:
            return None
        subscription = await self.uow.subscriptions.get_by_external_customer_id(customer_id)
        if subscription is not None:
            return subscription.clinic_id
        profile = await self.uow.profiles.get_by_payment_customer_id(customer_id)
        if profile is not None:
            return profile.clinic_id
        return None

    async def _sync_subscription(
        self, data: dict, now: datetime, status: Optional[str] = None
    ) -> Optional[Subscription]:
        """
        Upsert the clinic subscription from a provider subscription object.

        Returns None when no clinic can be matched.
        """
        external_id = data.get("id")
        customer_id = object_id(data.get("customer"))
        metadata = data.get("metadata") or {}

        subscription = None
        is_new = False
        if external_id:
            subscription = await self.uow.subscriptions.get_by_external_subscription_id(
                external_id
            )
        if subscription is None:
            clinic_id = await self._resolve_clinic_id(metadata, customer_id)
            if clinic_id is None:
                logger.warning(
                    f"Unable to match subscription {external_id} (customer {customer_id}) to a clinic"
                )
                return None
            subscription = await self.uow.subscriptions.get_by_clinic_id(clinic_id)
            if subscription is None:
                subscription = Subscription(
                    clinic_id=clinic_id,
                    plan=normalize_plan(metadata.get("plan")).value,
                    status=status or data.get("status") or "incomplete",
                    created_at=now,
                )
                is_new = True

        subscription.status = status or data.get("status") or subscription.status
        subscription.external_subscription_id = external_id or subscription.external_subscription_id
        subscription.external_customer_id = customer_id or subscription.external_customer_id

        plan = metadata.get("plan")
        if plan in {p.value for p in PlanKey}:
            subscription.plan = plan

        period_end = subscription_period_end(data)
        if period_end is not None:
            subscription.current_period_end = period_end
        subscription.updated_at = now
        if is_new:
            subscription = await self.uow.subscriptions.create(subscription)
        else:
            subscription = await self.uow.subscriptions.update(subscription)

        clinic = await self.uow.clinics.get_by_id(subscription.clinic_id)
        if clinic is not None:
            clinic.subscription_status = subscription.status
            clinic.current_period_end = subscription.current_period_end
            await self.uow.clinics.update(clinic)
        return subscription

    async def _handle_subscription_change(self, event: PaymentEvent, now: datetime) -> str:
        status = "canceled" if event.type == "customer.subscription.deleted" else None
        subscription = await self._sync_subscription(event.data, now, status=status)
        if subscription is None:
            return "ignored"

        await record_audit(
            self.uow,
            "billing.subscription.updated",
            clinic_id=subscription.clinic_id,
            status=subscription.status,
            event_type=event.type,
        )
        return "processed"

    async def _handle_invoice_paid(self, event: PaymentEvent, now: datetime) -> str:
        invoice = event.data
        subscription_id = _invoice_subscription_id(invoice)
        customer_id = object_id(invoice.get("customer"))

        subscription = None
        if subscription_id:
            remote = await self.payment_gateway.retrieve_subscription(subscription_id)
            if remote:
                subscription = await self._sync_subscription(remote, now)

        clinic_id = subscription.clinic_id if subscription else None
        if clinic_id is None:
            clinic_id = await self._resolve_clinic_id(invoice.get("metadata") or {}, customer_id)
        if clinic_id is None:
            logger.warning(f"Invoice {invoice.get('id')} paid without clinic mapping")
            return "ignored"

        invoice_id = invoice.get("id")
        if invoice_id and await self.uow.payments.get_by_external_invoice_id(invoice_id) is None:
            paid_at = from_timestamp((invoice.get("status_transitions") or {}).get("paid_at"))
            await self.uow.payments.create(
                Payment(
                    clinic_id=clinic_id,
                    external_invoice_id=invoice_id,
                    external_subscription_id=subscription_id,
                    amount_cents=int(invoice.get("amount_paid") or 0),
                    currency=invoice.get("currency"),
                    paid_at=paid_at or now,
                    created_at=now,
                )
            )

        await record_audit(
            self.uow,
            "billing.invoice.paid",
            clinic_id=clinic_id,
            invoice_id=invoice_id,
            subscription_id=subscription_id,
            amount_paid=invoice.get("amount_paid"),
        )
        return "processed"

    async def _handle_invoice_payment_failed(self, event: PaymentEvent, now: datetime) -> str:
        """A failed renewal ends the subscription; the clinic re-subscribes via the portal"""
        invoice = event.data
        subscription_id = _invoice_subscription_id(invoice)
        if not subscription_id:
            logger.info(f"Invoice {invoice.get('id')} failed without a subscription")
            return "ignored"

        current = await self.payment_gateway.retrieve_subscription(subscription_id)
        if current is None:
            logger.warning(f"Subscription {subscription_id} of failed invoice {invoice.get('id')} not found")
            return "ignored"
        if current.get("status") != "canceled":
            current = await self.payment_gateway.cancel_subscription(subscription_id)

        subscription = await self._sync_subscription(current, now)
        if subscription is None:
            return "ignored"

        await record_audit(
            self.uow,
            "billing.invoice.payment_failed",
            clinic_id=subscription.clinic_id,
            invoice_id=invoice.get("id"),
            subscription_id=subscription_id,
            status=subscription.status,
        )
        return "processed"

    async def _handle_fraud_warning(self, event: PaymentEvent, now: datetime) -> str:
        """
        Block the signup intent named by the warning.

        The intent id is read from the warning metadata or from an expanded
        charge or payment intent; warnings that only carry ids are logged.
        """
        data = event.data
        sources = [data] + [
            data[key] for key in ("charge", "payment_intent") if isinstance(data.get(key), dict)
        ]
        intent_id = None
        for source in sources:
            intent_id = parse_uuid((source.get("metadata") or {}).get("intent_id"))
            if intent_id is not None:
                break

        intent = await self.uow.signup_intents.get_by_id(intent_id) if intent_id else None
        if intent is None or not advance_status(intent, SignupIntentStatus.BLOCKED, now):
            logger.warning(
                f"Fraud warning {event.id} (charge {object_id(data.get('charge'))}, "
                f"payment intent {object_id(data.get('payment_intent'))}) does not reference an active intent"
            )
            return "ignored"

        intent.blocked_reason = "fraud_warning"
        await self.uow.signup_intents.update(intent)
        await record_audit(
            self.uow, "signup.intent.blocked", intent=intent, reason="fraud_warning"
        )
        logger.warning(f"Intent {intent.id} blocked by fraud warning {event.id}")
        return "processed"
