import pytest
from httpx import AsyncClient
from sqlmodel import select

from src.domain.entities import (
    AuditEvent,
    Clinic,
    Membership,
    ProcessedEvent,
    Profile,
    ProvisioningJob,
    SignupIntent,
    Subscription,
    User,
)


@pytest.mark.asyncio
async def test_signup_to_provisioned_clinic(
    client: AsyncClient, db_session, payment_gateway, verified_intent, post_webhook
):
    """Full signup: verifications, checkout, paid webhook, tenant ready

    Given a clinic owner verified email and phone
    When they pick a plan and the payment provider confirms the checkout
    Then clinic, profile, membership and subscription exist
    And the intent is CONVERTED and the status query reports ready
    """
    intent_id, headers = await verified_intent()

    checkout = await client.post("/billing/checkout", json={"plan": "monthly"}, headers=headers)
    assert checkout.status_code == 200, checkout.text
    session_id = checkout.json()["session_id"]
    assert checkout.json()["url"] == f"https://checkout.stripe.test/{session_id}"
    assert checkout.json()["reused"] is False

    pending = await client.get("/signup/provisioning-status", params={"intent_id": intent_id})
    assert pending.status_code == 200
    assert pending.json()["ready"] is False

    response = await post_webhook(
        "evt_paid_1", "checkout.session.completed", payment_gateway.complete(session_id)
    )
    assert response.status_code == 200, response.text
    assert response.json()["status"] == "processed"

    status_response = await client.get(
        "/signup/provisioning-status", params={"session_id": session_id}
    )
    body = status_response.json()
    assert body["ready"] is True
    assert body["job"]["status"] == "done"
    assert body["subscription"]["status"] == "active"
    assert body["subscription"]["plan"] == "monthly"

    user = (await db_session.exec(select(User).where(User.email == "owner@sorriso.com"))).one()
    clinic = (await db_session.exec(select(Clinic).where(Clinic.owner_user_id == user.id))).one()
    assert body["clinic_id"] == str(clinic.id)
    assert clinic.name == "Clínica Sorriso"
    assert clinic.subscription_status == "active"

    profile = (await db_session.exec(select(Profile).where(Profile.user_id == user.id))).one()
    assert profile.clinic_id == clinic.id
    assert profile.payment_customer_id == "cus_test_1"

    membership = (
        await db_session.exec(select(Membership).where(Membership.user_id == user.id))
    ).one()
    assert membership.role.value == "admin"

    subscription = (
        await db_session.exec(select(Subscription).where(Subscription.clinic_id == clinic.id))
    ).one()
    assert subscription.external_subscription_id == "sub_test_1"

    intent = (await db_session.exec(select(SignupIntent))).one()
    assert intent.status.value == "CONVERTED"
    assert intent.clinic_id == clinic.id
    # PII never stored in clear
    assert "52998224725" not in intent.document_number
    assert "5511987654321" not in intent.phone

    actions = {e.action for e in (await db_session.exec(select(AuditEvent))).all()}
    assert {
        "signup.intent.created",
        "signup.email.verified",
        "signup.otp.sent",
        "signup.phone.verified",
        "signup.checkout.started",
        "billing.provisioning.completed",
    } <= actions

    portal = await client.post("/billing/portal", headers=headers)
    assert portal.status_code == 200
    assert portal.json()["url"] == "https://billing.stripe.test/cus_test_1"


@pytest.mark.asyncio
async def test_duplicate_webhook_is_acknowledged_once(
    client: AsyncClient, db_session, payment_gateway, verified_intent, post_webhook
):
    """Redelivered event: 200 duplicate, no second set of tenant rows"""
    _, headers = await verified_intent()
    checkout = await client.post("/billing/checkout", json={"plan": "trial"}, headers=headers)
    session_id = checkout.json()["session_id"]
    payload = payment_gateway.complete(session_id, payment_status="no_payment_required")

    first = await post_webhook("evt_dup_1", "checkout.session.completed", payload)
    second = await post_webhook("evt_dup_1", "checkout.session.completed", payload)

    assert first.status_code == 200
    assert first.json()["status"] == "processed"
    assert second.status_code == 200
    assert second.json()["status"] == "duplicate"

    assert len((await db_session.exec(select(Clinic))).all()) == 1
    assert len((await db_session.exec(select(Membership))).all()) == 1
    assert len((await db_session.exec(select(ProcessedEvent))).all()) == 1
    subscription = (await db_session.exec(select(Subscription))).one()
    assert subscription.status == "trialing"


@pytest.mark.asyncio
async def test_second_event_for_same_session_converges(
    client: AsyncClient, db_session, payment_gateway, verified_intent, post_webhook
):
    """completed then async_payment_succeeded: one tenant, job stays done"""
    _, headers = await verified_intent()
    checkout = await client.post("/billing/checkout", json={"plan": "annual"}, headers=headers)
    session_id = checkout.json()["session_id"]
    payload = payment_gateway.complete(session_id)

    await post_webhook("evt_a", "checkout.session.completed", payload)
    response = await post_webhook("evt_b", "checkout.session.async_payment_succeeded", payload)

    assert response.status_code == 200
    assert response.json()["status"] == "processed"
    assert len((await db_session.exec(select(Clinic))).all()) == 1
    job = (await db_session.exec(select(ProvisioningJob))).one()
    assert job.status.value == "done"
    assert len((await db_session.exec(select(ProcessedEvent))).all()) == 2


@pytest.mark.asyncio
async def test_checkout_reuses_open_session(client: AsyncClient, verified_intent):
    _, headers = await verified_intent()

    first = await client.post("/billing/checkout", json={"plan": "monthly"}, headers=headers)
    second = await client.post("/billing/checkout", json={"plan": "monthly"}, headers=headers)

    assert second.status_code == 200
    assert second.json()["session_id"] == first.json()["session_id"]
    assert second.json()["reused"] is True


@pytest.mark.asyncio
async def test_expired_checkout_allows_new_plan(
    client: AsyncClient, db_session, verified_intent, post_webhook
):
    _, headers = await verified_intent()
    checkout = await client.post("/billing/checkout", json={"plan": "monthly"}, headers=headers)
    session_id = checkout.json()["session_id"]

    response = await post_webhook(
        "evt_exp_1", "checkout.session.expired", {"id": session_id, "status": "expired"}
    )
    assert response.json()["status"] == "processed"

    intent = (await db_session.exec(select(SignupIntent))).one()
    assert intent.status.value == "VERIFIED"
    assert intent.checkout_session_id is None

    retry = await client.post("/billing/checkout", json={"plan": "annual"}, headers=headers)
    assert retry.status_code == 200
    assert retry.json()["session_id"] != session_id
