import json
import re
from urllib.parse import parse_qs, urlparse

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.services.rate_limiter import InMemoryRateLimiter
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.email_sender import EmailSender
from src.app.services.message_sender import MessageSender
from src.app.services.payment_gateway import (
    CheckoutSession,
    PaymentEvent,
    PaymentGateway,
    WebhookSignatureError,
)
from src.app.use_cases.signup import SignupSettings
from src.depends import (
    get_email_sender,
    get_message_sender,
    get_payment_gateway,
    get_rate_limiter,
    get_signup_settings,
    get_unit_of_work,
)

WEBHOOK_SIGNATURE = "t=1,v1=test-signature"
ADMIN_HEADERS = {"X-Admin-API-Key": ApplicationConfig.ADMIN_API_KEY}

SIGNUP_PAYLOAD = {
    "email": "owner@sorriso.com",
    "password": "Sorriso@2025",
    "clinic_name": "Clínica Sorriso",
    "admin_name": "Ana Souza",
    "document_type": "cpf",
    "document_number": "529.982.247-25",
    "phone": "(11) 98765-4321",
}


class RecordingEmailSender(EmailSender):
    def __init__(self):
        self.sent = []

    async def send_verification_email(self, to: str, link: str) -> None:
        self.sent.append((to, link))

    def last_token(self) -> str:
        _, link = self.sent[-1]
        return parse_qs(urlparse(link).query)["token"][0]


class RecordingMessageSender(MessageSender):
    def __init__(self):
        self.sent = []

    async def send_message(self, to: str, body: str) -> None:
        self.sent.append((to, body))

    def last_code(self) -> str:
        _, body = self.sent[-1]
        return re.search(r"\b(\d{6})\b", body).group(1)


class FakePaymentGateway(PaymentGateway):
    """Keeps checkout sessions in memory and accepts one fixed webhook signature"""

    def __init__(self):
        self.sessions = {}
        self.subscriptions = {}
        self.portal_customers = []

    async def create_checkout_session(
        self,
        *,
        price_id,
        customer_email,
        success_url,
        cancel_url,
        metadata,
        client_reference_id,
        idempotency_key,
        trial_period_days=None,
    ) -> CheckoutSession:
        session_id = f"cs_test_{len(self.sessions) + 1}"
        session = CheckoutSession(
            id=session_id,
            url=f"https://checkout.stripe.test/{session_id}",
            status="open",
            client_reference_id=client_reference_id,
            customer_email=customer_email,
            metadata=dict(metadata),
        )
        self.sessions[session_id] = session
        return session

    async def retrieve_checkout_session(self, session_id):
        return self.sessions.get(session_id)

    async def create_billing_portal_session(self, customer_id, return_url) -> str:
        self.portal_customers.append(customer_id)
        return f"https://billing.stripe.test/{customer_id}"

    async def retrieve_subscription(self, subscription_id):
        subscription = self.subscriptions.get(subscription_id)
        return dict(subscription) if subscription else None

    async def cancel_subscription(self, subscription_id):
        self.subscriptions[subscription_id]["status"] = "canceled"
        return dict(self.subscriptions[subscription_id])

    def construct_event(self, payload: bytes, signature: str) -> PaymentEvent:
        if signature != WEBHOOK_SIGNATURE:
            raise WebhookSignatureError("bad signature")
        body = json.loads(payload)
        return PaymentEvent(id=body["id"], type=body["type"], data=body["data"]["object"])

    def complete(self, session_id: str, payment_status: str = "paid") -> dict:
        """Mark a session paid and return its checkout.session.completed payload"""
        session = self.sessions[session_id]
        session.status = "complete"
        session.payment_status = payment_status
        session.customer_id = "cus_test_1"
        session.subscription_id = "sub_test_1"
        if session.metadata.get("plan") == "trial":
            status = "trialing"
        else:
            status = "active" if payment_status == "paid" else "incomplete"
        self.subscriptions["sub_test_1"] = {
            "id": "sub_test_1",
            "customer": "cus_test_1",
            "status": status,
            "metadata": dict(session.metadata),
        }
        return session.to_payload()


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def message_sender():
    return RecordingMessageSender()


@pytest.fixture
def payment_gateway():
    return FakePaymentGateway()


@pytest.fixture
def signup_settings():
    return SignupSettings(
        encryption_key=ApplicationConfig.SIGNUP_ENCRYPTION_KEY,
        hmac_secret=ApplicationConfig.SIGNUP_HMAC_SECRET,
        app_url="https://app.sorriso.com",
        prices={"trial": "price_trial", "monthly": "price_monthly", "annual": "price_annual"},
    )


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session, email_sender, message_sender, payment_gateway, signup_settings):
    from src.api.app import create_app

    app = create_app(ApplicationConfig)
    rate_limiter = InMemoryRateLimiter()

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_signup_settings] = lambda: signup_settings
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_message_sender] = lambda: message_sender
    app.dependency_overrides[get_payment_gateway] = lambda: payment_gateway

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def post_webhook(client):
    async def _post(event_id: str, event_type: str, data: dict, signature=WEBHOOK_SIGNATURE):
        body = json.dumps({"id": event_id, "type": event_type, "data": {"object": data}})
        return await client.post(
            "/billing/webhook",
            content=body,
            headers={"Stripe-Signature": signature, "Content-Type": "application/json"},
        )

    return _post


@pytest.fixture
def verified_intent(client, email_sender, message_sender):
    """Drive a signup through email and phone verification"""

    async def _create(**overrides):
        payload = {**SIGNUP_PAYLOAD, **overrides}
        response = await client.post("/signup/intents", json=payload)
        assert response.status_code == 201, response.text
        data = response.json()
        headers = {"Authorization": f"Bearer {data['intent_token']}"}
        intent_id = data["intent_id"]

        verify = await client.get(
            "/signup/verify-email", params={"token": email_sender.last_token()}
        )
        assert verify.status_code == 200, verify.text

        otp = await client.post(f"/signup/intents/{intent_id}/phone/otp", headers=headers)
        assert otp.status_code == 200, otp.text

        phone = await client.post(
            f"/signup/intents/{intent_id}/phone/verify",
            json={"otp": message_sender.last_code()},
            headers=headers,
        )
        assert phone.status_code == 200, phone.text
        assert phone.json()["status"] == "VERIFIED"
        return intent_id, headers

    return _create
