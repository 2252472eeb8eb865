"""
Tenant Provisioner

Creates the clinic tenant for a paid checkout session. Every step is an
insert-if-absent keyed on a unique column, so running it again for the same
session converges on the same rows. The caller owns the transaction.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from uuid import UUID

from src.app.services.payment_gateway import CheckoutSession, PaymentGateway
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.signup.state import advance_status, record_audit
from src.domain.entities import (
    ACTIVE_SUBSCRIPTION_STATUSES,
    Clinic,
    Membership,
    MembershipRole,
    MembershipStatus,
    Profile,
    ProvisioningJob,
    ProvisioningJobStatus,
    SignupIntent,
    SignupIntentStatus,
    Subscription,
    User,
)
from src.domain.errors import ProvisioningFailure
from src.domain.plans import PLAN_DAYS, PlanKey, normalize_plan

logger = logging.getLogger(__name__)

PAID_STATUSES = ("paid", "no_payment_required")


def parse_uuid(value) -> Optional[UUID]:
    if not value:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None


def object_id(value) -> Optional[str]:
    """Provider reference that may arrive expanded"""
    if isinstance(value, dict):
        return value.get("id")
    return value or None


def from_timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc).replace(tzinfo=None)


def subscription_period_end(data: dict) -> Optional[datetime]:
    if data.get("current_period_end"):
        return from_timestamp(data["current_period_end"])
    items = (data.get("items") or {}).get("data") or []
    ends = [item.get("current_period_end") for item in items if item.get("current_period_end")]
    return from_timestamp(max(ends)) if ends else None


def subscription_status_for(session: CheckoutSession, plan: PlanKey) -> str:
    """Initial subscription status derived from the checkout session"""
    if plan == PlanKey.trial:
        return "trialing"
    if session.payment_status in PAID_STATUSES:
        return "active"
    return "incomplete"


class TenantProvisioner:
    def __init__(self, uow: UnitOfWork, payment_gateway: Optional[PaymentGateway] = None):
        self.uow = uow
        self.payment_gateway = payment_gateway

    async def _subscription_state(
        self, session: CheckoutSession, plan: PlanKey, now: datetime
    ) -> Tuple[str, datetime, PlanKey]:
        """
        Status, period end and plan for the clinic subscription.

        The provider's subscription object wins when it can be fetched, so
        subscription events delivered before the checkout converge here.
        """
        fallback_end = now + timedelta(days=PLAN_DAYS[plan])
        remote = None
        if self.payment_gateway is not None and session.subscription_id:
            remote = await self.payment_gateway.retrieve_subscription(session.subscription_id)
        if not remote or not remote.get("status"):
            return subscription_status_for(session, plan), fallback_end, plan

        remote_plan = (remote.get("metadata") or {}).get("plan")
        if remote_plan:
            plan = normalize_plan(remote_plan, plan)
        return remote["status"], subscription_period_end(remote) or fallback_end, plan

    async def _activate_paid_subscription(
        self, job: ProvisioningJob, session: CheckoutSession, now: datetime
    ) -> None:
        """Upgrade a provisioned subscription once a delayed payment settles"""
        if session.payment_status not in PAID_STATUSES or job.clinic_id is None:
            return
        subscription = await self.uow.subscriptions.get_by_clinic_id(job.clinic_id)
        if subscription is None or subscription.status in ACTIVE_SUBSCRIPTION_STATUSES:
            return

        plan = normalize_plan(subscription.plan)
        status, period_end, plan = await self._subscription_state(session, plan, now)
        if status not in ACTIVE_SUBSCRIPTION_STATUSES:
            return

        subscription.status = status
        subscription.plan = plan.value
        subscription.current_period_end = period_end
        subscription.updated_at = now
        subscription = await self.uow.subscriptions.update(subscription)

        clinic = await self.uow.clinics.get_by_id(job.clinic_id)
        if clinic is not None:
            clinic.subscription_status = subscription.status
            clinic.current_period_end = subscription.current_period_end
            await self.uow.clinics.update(clinic)

        await record_audit(
            self.uow,
            "billing.subscription.activated",
            clinic_id=job.clinic_id,
            checkout_session_id=session.id,
            status=subscription.status,
        )
        logger.info(f"Subscription of clinic {job.clinic_id} activated by session {session.id}")

    async def ensure_job(
        self, session: CheckoutSession, event_id: Optional[str], now: datetime
    ) -> ProvisioningJob:
        job = await self.uow.provisioning_jobs.get_by_checkout_session_id(session.id)
        if job is None:
            return await self.uow.provisioning_jobs.create(
                ProvisioningJob(
                    checkout_session_id=session.id,
                    event_id=event_id,
                    status=ProvisioningJobStatus.received,
                    payload=session.to_payload(),
                    created_at=now,
                    updated_at=now,
                )
            )
        if job.status != ProvisioningJobStatus.done:
            job.event_id = event_id or job.event_id
            job.payload = session.to_payload()
            job.status = ProvisioningJobStatus.received
            job.error_message = None
            job.updated_at = now
            job = await self.uow.provisioning_jobs.update(job)
        return job

    async def _step(self, job: ProvisioningJob, status: ProvisioningJobStatus, now: datetime):
        job.status = status
        job.updated_at = now
        return await self.uow.provisioning_jobs.update(job)

    async def _resolve_intent(self, session: CheckoutSession) -> Optional[SignupIntent]:
        intent_id = parse_uuid(session.metadata.get("intent_id")) or parse_uuid(
            session.client_reference_id
        )
        if intent_id is not None:
            intent = await self.uow.signup_intents.get_by_id(intent_id)
            if intent is not None:
                return intent
        return await self.uow.signup_intents.get_by_checkout_session_id(session.id)

    async def _resolve_user(
        self, intent: SignupIntent, session: CheckoutSession
    ) -> Optional[User]:
        user_id = intent.user_id or parse_uuid(session.metadata.get("user_id"))
        if user_id is not None:
            user = await self.uow.users.get_by_id(user_id)
            if user is not None:
                return user
        return await self.uow.users.get_by_email(intent.email)

    async def provision(
        self, session: CheckoutSession, event_id: Optional[str], now: datetime
    ) -> ProvisioningJob:
        """
        Provision the tenant for `session`.

        Raises:
            ProvisioningFailure: intent or user cannot be resolved
        """
        job = await self.ensure_job(session, event_id, now)
        if job.status == ProvisioningJobStatus.done:
            logger.info(f"Provisioning job {job.id} already done for session {session.id}")
            await self._activate_paid_subscription(job, session, now)
            return job

        intent = await self._resolve_intent(session)
        if intent is None:
            raise ProvisioningFailure(
                "Signup intent not found for checkout session",
                event_id=event_id,
                job_id=str(job.id),
            )
        if intent.status in (SignupIntentStatus.BLOCKED, SignupIntentStatus.EXPIRED):
            # Paid anyway: provision, the block is reviewed by an operator
            logger.warning(f"Provisioning paid session {session.id} for {intent.status.value} intent {intent.id}")

        user = await self._resolve_user(intent, session)
        if user is None:
            raise ProvisioningFailure(
                "User not found for signup intent",
                event_id=event_id,
                job_id=str(job.id),
            )
        job.intent_id = intent.id
        job.user_id = user.id
        job.external_customer_id = session.customer_id
        job.external_subscription_id = session.subscription_id
        job = await self._step(job, ProvisioningJobStatus.user_ok, now)

        clinic = await self.uow.clinics.get_by_owner_user_id(user.id)
        if clinic is None:
            clinic = await self.uow.clinics.create(
                Clinic(
                    name=intent.clinic_name,
                    owner_user_id=user.id,
                    whatsapp_number=intent.phone,
                    created_at=now,
                )
            )
        job.clinic_id = clinic.id
        job = await self._step(job, ProvisioningJobStatus.clinic_ok, now)

        profile = await self.uow.profiles.get_by_user_id(user.id)
        if profile is None:
            await self.uow.profiles.create(
                Profile(
                    user_id=user.id,
                    clinic_id=clinic.id,
                    full_name=intent.admin_name,
                    role=MembershipRole.admin,
                    document_hash=intent.document_hash,
                    phone=intent.phone,
                    phone_verified_at=intent.phone_verified_at,
                    payment_customer_id=session.customer_id,
                    created_at=now,
                )
            )
        elif session.customer_id and not profile.payment_customer_id:
            profile.payment_customer_id = session.customer_id
            await self.uow.profiles.update(profile)
        job = await self._step(job, ProvisioningJobStatus.profile_ok, now)

        membership = await self.uow.memberships.get_by_user_and_clinic(user.id, clinic.id)
        if membership is None:
            await self.uow.memberships.create(
                Membership(
                    user_id=user.id,
                    clinic_id=clinic.id,
                    role=MembershipRole.admin,
                    status=MembershipStatus.active,
                    created_at=now,
                )
            )
        job = await self._step(job, ProvisioningJobStatus.membership_ok, now)

        plan = normalize_plan(session.metadata.get("plan") or intent.plan)
        status, period_end, plan = await self._subscription_state(session, plan, now)

        subscription = await self.uow.subscriptions.get_by_clinic_id(clinic.id)
        if subscription is None:
            subscription = await self.uow.subscriptions.create(
                Subscription(
                    clinic_id=clinic.id,
                    external_customer_id=session.customer_id,
                    external_subscription_id=session.subscription_id,
                    plan=plan.value,
                    status=status,
                    current_period_end=period_end,
                    created_at=now,
                    updated_at=now,
                )
            )
        else:
            subscription.external_customer_id = (
                subscription.external_customer_id or session.customer_id
            )
            subscription.external_subscription_id = (
                subscription.external_subscription_id or session.subscription_id
            )
            if (
                status in ACTIVE_SUBSCRIPTION_STATUSES
                and subscription.status not in ACTIVE_SUBSCRIPTION_STATUSES
            ):
                subscription.status = status
                subscription.current_period_end = (
                    subscription.current_period_end or period_end
                )
            subscription.updated_at = now
            subscription = await self.uow.subscriptions.update(subscription)

        clinic.subscription_status = subscription.status
        clinic.current_period_end = subscription.current_period_end
        await self.uow.clinics.update(clinic)
        job = await self._step(job, ProvisioningJobStatus.subscription_ok, now)

        intent.user_id = user.id
        intent.clinic_id = clinic.id
        intent.updated_at = now
        advance_status(intent, SignupIntentStatus.CONVERTED, now)
        await self.uow.signup_intents.update(intent)

        job = await self._step(job, ProvisioningJobStatus.done, now)

        await record_audit(
            self.uow,
            "billing.provisioning.completed",
            intent=intent,
            user_id=user.id,
            clinic_id=clinic.id,
            checkout_session_id=session.id,
            event_id=event_id,
            plan=plan.value,
        )
        logger.info(f"Provisioned clinic {clinic.id} for intent {intent.id} (job {job.id})")
        return job

    async def mark_failed(
        self,
        session: CheckoutSession,
        event_id: Optional[str],
        message: str,
        now: datetime,
    ) -> ProvisioningJob:
        """Record a failed attempt; runs in its own transaction after rollback"""
        job = await self.uow.provisioning_jobs.get_by_checkout_session_id(session.id)
        if job is None:
            job = ProvisioningJob(
                checkout_session_id=session.id,
                event_id=event_id,
                payload=session.to_payload(),
                created_at=now,
            )
            job.status = ProvisioningJobStatus.failed
            job.error_message = message[:1000]
            job.updated_at = now
            return await self.uow.provisioning_jobs.create(job)
        job.status = ProvisioningJobStatus.failed
        job.error_message = message[:1000]
        job.updated_at = now
        return await self.uow.provisioning_jobs.update(job)
