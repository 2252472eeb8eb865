"""
Stripe implementation of PaymentGateway.

The stripe client is blocking; every call runs through asyncio.to_thread.
"""

import asyncio
import logging
from typing import Optional

import stripe

from src.app.services.payment_gateway import (
    CheckoutSession,
    PaymentEvent,
    PaymentGateway,
    PaymentGatewayError,
    WebhookSignatureError,
)

logger = logging.getLogger(__name__)


def _to_dict(obj) -> dict:
    if obj is None:
        return {}
    if hasattr(obj, "to_dict_recursive"):
        return obj.to_dict_recursive()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


class StripePaymentGateway(PaymentGateway):
    def __init__(self, secret_key: str, webhook_secret: str):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        stripe.api_key = secret_key

    async def create_checkout_session(
        self,
        *,
        price_id: str,
        customer_email: str,
        success_url: str,
        cancel_url: str,
        metadata: dict,
        client_reference_id: str,
        idempotency_key: str,
        trial_period_days: Optional[int] = None,
    ) -> CheckoutSession:
        subscription_data = {"metadata": dict(metadata)}
        if trial_period_days:
            subscription_data["trial_period_days"] = trial_period_days

        params = {
            "mode": "subscription",
            "line_items": [{"price": price_id, "quantity": 1}],
            "customer_email": customer_email,
            "client_reference_id": client_reference_id,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": dict(metadata),
            "subscription_data": subscription_data,
        }
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.create, idempotency_key=idempotency_key, **params
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout error for intent {client_reference_id}: {e}")
            raise PaymentGatewayError("Failed to create checkout session") from e

        logger.info(f"Checkout session created for intent {client_reference_id}: {session.id}")
        return CheckoutSession.from_payload(_to_dict(session))

    async def retrieve_checkout_session(self, session_id: str) -> Optional[CheckoutSession]:
        try:
            session = await asyncio.to_thread(stripe.checkout.Session.retrieve, session_id)
        except stripe.InvalidRequestError:
            return None
        except stripe.StripeError as e:
            logger.error(f"Stripe retrieve error for session {session_id}: {e}")
            raise PaymentGatewayError("Failed to retrieve checkout session") from e
        return CheckoutSession.from_payload(_to_dict(session))

    async def create_billing_portal_session(self, customer_id: str, return_url: str) -> str:
        try:
            portal_session = await asyncio.to_thread(
                stripe.billing_portal.Session.create,
                customer=customer_id,
                return_url=return_url,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe portal error for customer {customer_id}: {e}")
            raise PaymentGatewayError("Failed to create billing portal session") from e
        return portal_session.url

    async def retrieve_subscription(self, subscription_id: str) -> Optional[dict]:
        try:
            subscription = await asyncio.to_thread(stripe.Subscription.retrieve, subscription_id)
        except stripe.InvalidRequestError:
            return None
        except stripe.StripeError as e:
            logger.error(f"Stripe retrieve error for subscription {subscription_id}: {e}")
            raise PaymentGatewayError("Failed to retrieve subscription") from e
        return _to_dict(subscription)

    async def cancel_subscription(self, subscription_id: str) -> dict:
        try:
            subscription = await asyncio.to_thread(stripe.Subscription.cancel, subscription_id)
        except stripe.StripeError as e:
            logger.error(f"Stripe cancel error for subscription {subscription_id}: {e}")
            raise PaymentGatewayError("Failed to cancel subscription") from e
        logger.info(f"Subscription {subscription_id} canceled")
        return _to_dict(subscription)

    def construct_event(self, payload: bytes, signature: str) -> PaymentEvent:
        if not self.webhook_secret:
            raise WebhookSignatureError("Webhook secret not configured")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning(f"Webhook signature verification failed: {e}")
            raise WebhookSignatureError("Invalid webhook signature") from e

        event_dict = _to_dict(event)
        data_object = (event_dict.get("data") or {}).get("object") or {}
        return PaymentEvent(id=event_dict["id"], type=event_dict["type"], data=data_object)
