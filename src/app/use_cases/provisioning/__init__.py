"""
Provisioning Use Cases

Payment webhook processing and the provisioning status projection.
"""

from .process_payment_event_use_case import ProcessPaymentEventUseCase
from .get_provisioning_status_use_case import GetProvisioningStatusUseCase
from .tenant_provisioner import TenantProvisioner
from .dtos import (
    ProcessPaymentEventResponse,
    ProvisioningJobInfo,
    ProvisioningStatusResponse,
    SubscriptionInfo,
)

__all__ = [
    # Use Cases
    "ProcessPaymentEventUseCase",
    "GetProvisioningStatusUseCase",
    "TenantProvisioner",
    # DTOs - Responses
    "ProcessPaymentEventResponse",
    "ProvisioningStatusResponse",
    "ProvisioningJobInfo",
    "SubscriptionInfo",
]
