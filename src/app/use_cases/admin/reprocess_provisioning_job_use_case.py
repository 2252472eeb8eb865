"""
Use Case: Reprocess Provisioning Job

Operator retry of a failed provisioning from the job's stored checkout
session payload, without waiting for the provider to redeliver.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from pydantic import BaseModel

from libs.result import Error, Result, Return
from src.app.services.payment_gateway import CheckoutSession, PaymentGateway
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.provisioning.tenant_provisioner import TenantProvisioner
from src.domain.base import utc_now
from src.domain.entities import ProvisioningJobStatus

logger = logging.getLogger(__name__)


class ReprocessProvisioningJobResponse(BaseModel):
    """Response DTO for ReprocessProvisioningJobUseCase"""

    job_id: str
    status: str
    clinic_id: Optional[str]


class ReprocessProvisioningJobUseCase:
    """
    Re-drive provisioning for one job.

    A done job is returned as is. Failure leaves the job failed with the
    new error message and answers PROVISIONING_FAILED.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_gateway: Optional[PaymentGateway] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.clock = clock
        self.provisioner = TenantProvisioner(uow, payment_gateway)

    async def execute(self, job_id: UUID) -> Result[ReprocessProvisioningJobResponse]:
        async with self.uow:
            job = await self.uow.provisioning_jobs.get_by_id(job_id)
            if job is None:
                return Return.err(Error("JOB_NOT_FOUND", "Provisioning job not found"))

            if job.status == ProvisioningJobStatus.done:
                return Return.ok(
                    ReprocessProvisioningJobResponse(
                        job_id=str(job.id),
                        status=job.status.value,
                        clinic_id=str(job.clinic_id) if job.clinic_id else None,
                    )
                )

            if not job.payload:
                return Return.err(
                    Error("INVALID_STATE", "Provisioning job has no stored payload")
                )
            session = CheckoutSession.from_payload(job.payload)
            event_id = job.event_id

        try:
            async with self.uow:
                job = await self.provisioner.provision(session, event_id, self.clock())
                await self.uow.commit()
                response = ReprocessProvisioningJobResponse(
                    job_id=str(job.id),
                    status=job.status.value,
                    clinic_id=str(job.clinic_id) if job.clinic_id else None,
                )
        except Exception as e:
            logger.error(f"Reprocessing job {job_id} failed: {e}")
            async with self.uow:
                await self.provisioner.mark_failed(session, event_id, str(e), self.clock())
                await self.uow.commit()
            return Return.err(
                Error("PROVISIONING_FAILED", "Provisioning failed, see job error message")
            )

        return Return.ok(response)
