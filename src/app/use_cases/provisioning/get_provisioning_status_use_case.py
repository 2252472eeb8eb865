"""
Get Provisioning Status Use Case

Read-only projection polled by the signup success page.
"""

from typing import Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import ACTIVE_SUBSCRIPTION_STATUSES, ProvisioningJobStatus

from .dtos import ProvisioningJobInfo, ProvisioningStatusResponse, SubscriptionInfo


class GetProvisioningStatusUseCase:
    """
    Business Rules:
    - At least one of intent_id / session_id is required
    - Unknown ids answer ready=False, never an error
    - ready when the job is done, or the subscription is active/trialing
      and the clinic is linked
    - Never writes
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, intent_id: Optional[UUID] = None, session_id: Optional[str] = None
    ) -> Result[ProvisioningStatusResponse]:
        if intent_id is None and not session_id:
            return Return.err(
                Error("VALIDATION_ERROR", "Informe intent_id ou session_id.")
            )

        async with self.uow:
            job = None
            if session_id:
                job = await self.uow.provisioning_jobs.get_by_checkout_session_id(session_id)
            if job is None and intent_id is not None:
                job = await self.uow.provisioning_jobs.get_latest_by_intent_id(intent_id)

            intent = None
            if intent_id is not None:
                intent = await self.uow.signup_intents.get_by_id(intent_id)
            elif session_id:
                intent = await self.uow.signup_intents.get_by_checkout_session_id(session_id)
            if intent is None and job is not None and job.intent_id is not None:
                intent = await self.uow.signup_intents.get_by_id(job.intent_id)

            clinic_id = (intent.clinic_id if intent else None) or (
                job.clinic_id if job else None
            )
            subscription = (
                await self.uow.subscriptions.get_by_clinic_id(clinic_id) if clinic_id else None
            )

            return Return.ok(self._project(job, clinic_id, subscription))

    def _project(self, job, clinic_id, subscription) -> ProvisioningStatusResponse:
        job_done = job is not None and job.status == ProvisioningJobStatus.done
        subscription_live = (
            subscription is not None
            and subscription.status in ACTIVE_SUBSCRIPTION_STATUSES
            and clinic_id is not None
        )

        return ProvisioningStatusResponse(
            ready=job_done or subscription_live,
            clinic_id=str(clinic_id) if clinic_id else None,
            job=ProvisioningJobInfo(
                job_id=str(job.id),
                status=job.status.value,
                error_message=job.error_message,
                updated_at=job.updated_at,
            )
            if job
            else None,
            subscription=SubscriptionInfo(
                status=subscription.status,
                plan=subscription.plan,
                current_period_end=subscription.current_period_end,
            )
            if subscription
            else None,
        )
