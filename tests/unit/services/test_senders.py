"""
Unit tests for the outbound senders and the Stripe gateway adapter
"""
import hashlib
import hmac
import json
import time
from unittest.mock import MagicMock

import httpx
import pytest
import stripe
from twilio.base.exceptions import TwilioException

from src.adapter.services.email_sender import LoggingEmailSender, MailgunEmailSender
from src.adapter.services.message_sender import LoggingMessageSender, TwilioMessageSender
from src.adapter.services.payment_gateway import StripePaymentGateway
from src.app.services.email_sender import EmailDeliveryError
from src.app.services.message_sender import MessageDeliveryError
from src.app.services.payment_gateway import (
    CheckoutSession,
    PaymentGatewayError,
    WebhookSignatureError,
)

WEBHOOK_SECRET = "whsec_unit_test"


def _stripe_signature(payload: str, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


# ============================================================================
# MailgunEmailSender
# ============================================================================


@pytest.mark.asyncio
async def test_mailgun_posts_message(monkeypatch):
    captured = {}

    async def fake_post(self, url, auth=None, data=None):
        captured.update(url=url, auth=auth, data=data)
        return httpx.Response(200, request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post)
    sender = MailgunEmailSender(
        api_key="key-123", domain=" MG.Sorriso.com ", from_email="noreply@sorriso.com"
    )

    await sender.send_verification_email("owner@sorriso.com", "https://app/verify?token=t")

    assert captured["url"] == "https://api.mailgun.net/v3/mg.sorriso.com/messages"
    assert captured["auth"] == ("api", "key-123")
    assert captured["data"]["to"] == "owner@sorriso.com"
    assert "https://app/verify?token=t" in captured["data"]["text"]


@pytest.mark.asyncio
async def test_mailgun_rejection_raises(monkeypatch):
    async def fake_post(self, url, auth=None, data=None):
        return httpx.Response(401, text="Forbidden", request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post)
    sender = MailgunEmailSender(api_key="bad", domain="mg.sorriso.com", from_email="a@b.com")

    with pytest.raises(EmailDeliveryError):
        await sender.send_verification_email("owner@sorriso.com", "https://app/verify")


@pytest.mark.asyncio
async def test_mailgun_network_error_raises(monkeypatch):
    async def fake_post(self, url, auth=None, data=None):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post)
    sender = MailgunEmailSender(api_key="k", domain="mg.sorriso.com", from_email="a@b.com")

    with pytest.raises(EmailDeliveryError):
        await sender.send_verification_email("owner@sorriso.com", "https://app/verify")


# ============================================================================
# TwilioMessageSender
# ============================================================================


@pytest.mark.asyncio
async def test_twilio_sends_from_configured_number():
    sender = TwilioMessageSender("AC123", "token", "+5511900000000")
    sender.client = MagicMock()

    await sender.send_message("+5511987654321", "Seu código é 123456.")

    sender.client.messages.create.assert_called_once_with(
        body="Seu código é 123456.", from_="+5511900000000", to="+5511987654321"
    )
    assert sender.is_configured is True


@pytest.mark.asyncio
async def test_twilio_failure_raises_delivery_error():
    sender = TwilioMessageSender("AC123", "token", "+5511900000000")
    sender.client = MagicMock()
    sender.client.messages.create.side_effect = TwilioException("invalid number")

    with pytest.raises(MessageDeliveryError):
        await sender.send_message("+5511987654321", "body")


def test_logging_sender_is_not_configured():
    assert LoggingMessageSender().is_configured is False


@pytest.mark.asyncio
async def test_logging_sender_withholds_body_by_default(caplog):
    caplog.set_level("INFO")

    await LoggingMessageSender().send_message("+5511987654321", "Seu código é 118286.")

    assert "118286" not in caplog.text
    assert "withheld" in caplog.text


@pytest.mark.asyncio
async def test_logging_sender_reveals_body_in_development(caplog):
    caplog.set_level("INFO")

    sender = LoggingMessageSender(reveal_content=True)
    await sender.send_message("+5511987654321", "Seu código é 118286.")

    assert "118286" in caplog.text


@pytest.mark.asyncio
async def test_logging_email_sender_withholds_link(caplog):
    caplog.set_level("INFO")

    await LoggingEmailSender().send_verification_email(
        "owner@sorriso.com", "https://app.sorriso.com/verify?token=secret-token"
    )

    assert "secret-token" not in caplog.text
    assert "owner@sorriso.com" not in caplog.text


# ============================================================================
# StripePaymentGateway
# ============================================================================


def test_construct_event_accepts_valid_signature():
    gateway = StripePaymentGateway(secret_key="sk_test", webhook_secret=WEBHOOK_SECRET)
    payload = json.dumps(
        {
            "id": "evt_1",
            "object": "event",
            "type": "checkout.session.completed",
            "data": {"object": {"id": "cs_1", "object": "checkout.session"}},
        }
    )

    event = gateway.construct_event(payload.encode("utf-8"), _stripe_signature(payload))

    assert event.id == "evt_1"
    assert event.type == "checkout.session.completed"
    assert event.data["id"] == "cs_1"


def test_construct_event_rejects_bad_signature():
    gateway = StripePaymentGateway(secret_key="sk_test", webhook_secret=WEBHOOK_SECRET)
    payload = json.dumps({"id": "evt_1", "object": "event", "type": "x", "data": {"object": {}}})

    with pytest.raises(WebhookSignatureError):
        gateway.construct_event(payload.encode("utf-8"), _stripe_signature(payload, "whsec_other"))


def test_construct_event_without_secret_rejects():
    gateway = StripePaymentGateway(secret_key="sk_test", webhook_secret="")

    with pytest.raises(WebhookSignatureError):
        gateway.construct_event(b"{}", "t=1,v1=abc")


def test_checkout_session_from_expanded_payload():
    session = CheckoutSession.from_payload(
        {
            "id": "cs_1",
            "status": "complete",
            "payment_status": "paid",
            "customer": {"id": "cus_1"},
            "subscription": {"id": "sub_1"},
            "customer_details": {"email": "owner@sorriso.com"},
            "metadata": {"plan": "annual"},
        }
    )

    assert session.is_complete
    assert session.customer_id == "cus_1"
    assert session.subscription_id == "sub_1"
    assert session.customer_email == "owner@sorriso.com"
    assert session.to_payload()["customer"] == "cus_1"


@pytest.mark.asyncio
async def test_retrieve_subscription_returns_object(monkeypatch):
    gateway = StripePaymentGateway(secret_key="sk_test", webhook_secret=WEBHOOK_SECRET)
    monkeypatch.setattr(
        stripe.Subscription, "retrieve", lambda subscription_id: {"id": subscription_id, "status": "active"}
    )

    subscription = await gateway.retrieve_subscription("sub_1")

    assert subscription == {"id": "sub_1", "status": "active"}


@pytest.mark.asyncio
async def test_retrieve_unknown_subscription_returns_none(monkeypatch):
    gateway = StripePaymentGateway(secret_key="sk_test", webhook_secret=WEBHOOK_SECRET)

    def fake_retrieve(subscription_id):
        raise stripe.InvalidRequestError("No such subscription", "id")

    monkeypatch.setattr(stripe.Subscription, "retrieve", fake_retrieve)

    assert await gateway.retrieve_subscription("sub_404") is None


@pytest.mark.asyncio
async def test_cancel_subscription_error_raises(monkeypatch):
    gateway = StripePaymentGateway(secret_key="sk_test", webhook_secret=WEBHOOK_SECRET)

    def fake_cancel(subscription_id):
        raise stripe.APIConnectionError("network down")

    monkeypatch.setattr(stripe.Subscription, "cancel", fake_cancel)

    with pytest.raises(PaymentGatewayError):
        await gateway.cancel_subscription("sub_1")
