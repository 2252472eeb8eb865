"""
Domain Exceptions

Failures that must never be folded into an ordinary validation error.
Expected business failures travel as libs.result.Error instead.
"""

from typing import Optional


class DecryptionFailure(Exception):
    """Ciphertext could not be authenticated: wrong key or tampered blob."""


class ProvisioningFailure(Exception):
    """
    Tenant provisioning did not complete.

    Raised after the provisioning transaction is rolled back so the webhook
    responder answers with a failure and the payment provider redelivers.
    """

    def __init__(
        self,
        message: str,
        event_id: Optional[str] = None,
        job_id: Optional[str] = None,
    ):
        self.event_id = event_id
        self.job_id = job_id
        super().__init__(message)
