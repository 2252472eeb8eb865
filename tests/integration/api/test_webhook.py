import pytest
from httpx import AsyncClient
from sqlmodel import select

from src.domain.entities import (
    Payment,
    ProcessedEvent,
    ProvisioningJob,
    SignupIntent,
    Subscription,
)


@pytest.mark.asyncio
async def test_invalid_signature_rejected(client: AsyncClient, db_session, post_webhook):
    response = await post_webhook(
        "evt_forged", "checkout.session.completed", {"id": "cs_x"}, signature="t=1,v1=forged"
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_SIGNATURE"
    assert (await db_session.exec(select(ProcessedEvent))).first() is None


@pytest.mark.asyncio
async def test_unprovisionable_session_fails_and_is_retried(
    client: AsyncClient, db_session, post_webhook
):
    """Failure answers 500, records the job as failed and leaves the event unprocessed"""
    payload = {
        "id": "cs_orphan",
        "status": "complete",
        "payment_status": "paid",
        "customer": "cus_orphan",
        "metadata": {"intent_id": "7a0c9a8e-0000-4000-8000-000000000000"},
    }

    first = await post_webhook("evt_orphan", "checkout.session.completed", payload)

    assert first.status_code == 500
    assert first.json()["error"]["code"] == "PROVISIONING_FAILED"
    job = (await db_session.exec(select(ProvisioningJob))).one()
    assert job.status.value == "failed"
    assert job.error_message == "Signup intent not found for checkout session"
    assert (await db_session.exec(select(ProcessedEvent))).first() is None

    # Redelivery runs again instead of being swallowed as a duplicate
    second = await post_webhook("evt_orphan", "checkout.session.completed", payload)
    assert second.status_code == 500


@pytest.mark.asyncio
async def test_subscription_lifecycle_events(
    client: AsyncClient, db_session, payment_gateway, verified_intent, post_webhook
):
    _, headers = await verified_intent()
    checkout = await client.post("/billing/checkout", json={"plan": "monthly"}, headers=headers)
    session_id = checkout.json()["session_id"]
    await post_webhook("evt_1", "checkout.session.completed", payment_gateway.complete(session_id))

    updated = await post_webhook(
        "evt_2",
        "customer.subscription.updated",
        {"id": "sub_test_1", "status": "past_due", "current_period_end": 1767225600},
    )
    assert updated.json()["status"] == "processed"
    subscription = (await db_session.exec(select(Subscription))).one()
    assert subscription.status == "past_due"

    deleted = await post_webhook(
        "evt_3", "customer.subscription.deleted", {"id": "sub_test_1", "status": "canceled"}
    )
    assert deleted.json()["status"] == "processed"
    await db_session.refresh(subscription)
    assert subscription.status == "canceled"

    status_response = await client.get(
        "/signup/provisioning-status", params={"session_id": session_id}
    )
    # Job done still reports ready; access control lives with the clinic app
    assert status_response.json()["ready"] is True
    assert status_response.json()["subscription"]["status"] == "canceled"


@pytest.mark.asyncio
async def test_unknown_event_ignored(client: AsyncClient, db_session, post_webhook):
    response = await post_webhook("evt_cus", "customer.created", {"id": "cus_9"})

    assert response.status_code == 200
    assert response.json()["status"] == "ignored"
    assert (await db_session.exec(select(ProcessedEvent))).one().event_id == "evt_cus"


@pytest.mark.asyncio
async def test_fraud_warning_blocks_intent(
    client: AsyncClient, db_session, verified_intent, post_webhook
):
    intent_id, headers = await verified_intent()

    response = await post_webhook(
        "evt_fraud",
        "radar.early_fraud_warning.created",
        {"id": "issfr_1", "metadata": {"intent_id": intent_id}},
    )

    assert response.json()["status"] == "processed"
    intent = (await db_session.exec(select(SignupIntent))).one()
    assert intent.status.value == "BLOCKED"
    assert intent.blocked_reason == "fraud_warning"

    checkout = await client.post("/billing/checkout", json={"plan": "monthly"}, headers=headers)
    assert checkout.status_code == 409
    assert checkout.json()["error"]["code"] == "INTENT_UNAVAILABLE"


async def _start_checkout(client, verified_intent, plan="monthly"):
    _, headers = await verified_intent()
    checkout = await client.post("/billing/checkout", json={"plan": plan}, headers=headers)
    assert checkout.status_code == 200, checkout.text
    return checkout.json()["session_id"]


@pytest.mark.asyncio
async def test_async_payment_activates_after_unpaid_completion(
    client: AsyncClient, db_session, payment_gateway, verified_intent, post_webhook
):
    """Boleto-style checkout: provisioned incomplete, activated when the payment settles"""
    session_id = await _start_checkout(client, verified_intent)

    completed = await post_webhook(
        "evt_unpaid",
        "checkout.session.completed",
        payment_gateway.complete(session_id, payment_status="unpaid"),
    )
    assert completed.status_code == 200
    subscription = (await db_session.exec(select(Subscription))).one()
    assert subscription.status == "incomplete"

    settled = await post_webhook(
        "evt_settled",
        "checkout.session.async_payment_succeeded",
        payment_gateway.complete(session_id, payment_status="paid"),
    )

    assert settled.status_code == 200
    assert settled.json()["status"] == "processed"
    subscription = (await db_session.exec(select(Subscription))).one()
    assert subscription.status == "active"

    status_response = await client.get(
        "/signup/provisioning-status", params={"session_id": session_id}
    )
    assert status_response.json()["subscription"]["status"] == "active"


@pytest.mark.asyncio
async def test_subscription_event_before_checkout_converges(
    client: AsyncClient, db_session, payment_gateway, verified_intent, post_webhook
):
    """An update delivered before provisioning is picked up from the provider at checkout"""
    session_id = await _start_checkout(client, verified_intent)
    payload = payment_gateway.complete(session_id)
    payment_gateway.subscriptions["sub_test_1"]["status"] = "past_due"

    early = await post_webhook(
        "evt_early",
        "customer.subscription.updated",
        {"id": "sub_test_1", "customer": "cus_test_1", "status": "past_due"},
    )
    assert early.status_code == 200
    assert early.json()["status"] == "ignored"
    assert (await db_session.exec(select(Subscription))).first() is None

    await post_webhook("evt_late", "checkout.session.completed", payload)

    subscription = (await db_session.exec(select(Subscription))).one()
    assert subscription.status == "past_due"
    assert subscription.external_subscription_id == "sub_test_1"


@pytest.mark.asyncio
async def test_subscription_event_matched_by_customer(
    client: AsyncClient, db_session, payment_gateway, verified_intent, post_webhook
):
    """A subscription stored without provider id is found through the customer"""
    session_id = await _start_checkout(client, verified_intent)
    payload = payment_gateway.complete(session_id)
    payload["subscription"] = None
    await post_webhook("evt_paid", "checkout.session.completed", payload)
    subscription = (await db_session.exec(select(Subscription))).one()
    assert subscription.external_subscription_id is None

    updated = await post_webhook(
        "evt_upd",
        "customer.subscription.updated",
        {"id": "sub_test_1", "customer": "cus_test_1", "status": "past_due"},
    )

    assert updated.json()["status"] == "processed"
    subscription = (await db_session.exec(select(Subscription))).one()
    assert subscription.external_subscription_id == "sub_test_1"
    assert subscription.status == "past_due"


@pytest.mark.asyncio
async def test_invoice_events(
    client: AsyncClient, db_session, payment_gateway, verified_intent, post_webhook
):
    session_id = await _start_checkout(client, verified_intent)
    await post_webhook("evt_paid", "checkout.session.completed", payment_gateway.complete(session_id))
    invoice = {
        "id": "in_1",
        "customer": "cus_test_1",
        "subscription": "sub_test_1",
        "amount_paid": 19900,
        "currency": "brl",
        "status_transitions": {"paid_at": 1767225600},
    }

    paid = await post_webhook("evt_in_paid", "invoice.paid", invoice)
    replay = await post_webhook("evt_in_paid_2", "invoice.paid", invoice)

    assert paid.json()["status"] == "processed"
    assert replay.json()["status"] == "processed"
    payment = (await db_session.exec(select(Payment))).one()
    assert payment.external_invoice_id == "in_1"
    assert payment.amount_cents == 19900

    failed = await post_webhook("evt_in_failed", "invoice.payment_failed", invoice)

    assert failed.json()["status"] == "processed"
    assert payment_gateway.subscriptions["sub_test_1"]["status"] == "canceled"
    subscription = (await db_session.exec(select(Subscription))).one()
    assert subscription.status == "canceled"
