"""Admin use cases for signup operations."""

from .block_signup_intent_use_case import (
    BlockSignupIntentUseCase,
    BlockSignupIntentResponse,
)
from .expire_stale_intents_use_case import (
    ExpireStaleIntentsUseCase,
    ExpireStaleIntentsResponse,
)
from .reprocess_provisioning_job_use_case import (
    ReprocessProvisioningJobUseCase,
    ReprocessProvisioningJobResponse,
)

__all__ = [
    "BlockSignupIntentUseCase",
    "BlockSignupIntentResponse",
    "ExpireStaleIntentsUseCase",
    "ExpireStaleIntentsResponse",
    "ReprocessProvisioningJobUseCase",
    "ReprocessProvisioningJobResponse",
]
