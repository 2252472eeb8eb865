from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


class PaymentGatewayError(Exception):
    """The payment provider call failed."""


class WebhookSignatureError(Exception):
    """A webhook payload could not be authenticated."""


@dataclass
class CheckoutSession:
    id: str
    url: Optional[str] = None
    status: Optional[str] = None  # open | complete | expired
    payment_status: Optional[str] = None  # paid | unpaid | no_payment_required
    customer_id: Optional[str] = None
    subscription_id: Optional[str] = None
    client_reference_id: Optional[str] = None
    customer_email: Optional[str] = None
    metadata: dict = field(default_factory=dict)

    @property
    def is_open(self) -> bool:
        return self.status == "open"

    @property
    def is_complete(self) -> bool:
        return self.status == "complete"

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "status": self.status,
            "payment_status": self.payment_status,
            "customer": self.customer_id,
            "subscription": self.subscription_id,
            "client_reference_id": self.client_reference_id,
            "customer_email": self.customer_email,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_payload(cls, payload: dict) -> "CheckoutSession":
        customer = payload.get("customer")
        subscription = payload.get("subscription")
        if isinstance(customer, dict):
            customer = customer.get("id")
        if isinstance(subscription, dict):
            subscription = subscription.get("id")
        details = payload.get("customer_details") or {}
        return cls(
            id=payload["id"],
            url=payload.get("url"),
            status=payload.get("status"),
            payment_status=payload.get("payment_status"),
            customer_id=customer,
            subscription_id=subscription,
            client_reference_id=payload.get("client_reference_id"),
            customer_email=payload.get("customer_email") or details.get("email"),
            metadata=dict(payload.get("metadata") or {}),
        )


@dataclass
class PaymentEvent:
    id: str
    type: str
    data: dict = field(default_factory=dict)  # the event's data.object


class PaymentGateway(ABC):
    """Payment provider operations used by signup and provisioning"""

    @abstractmethod
    async def create_checkout_session(
        self,
        *,
        price_id: str,
        customer_email: str,
        success_url: str,
        cancel_url: str,
        metadata: dict,
        client_reference_id: str,
        idempotency_key: str,
        trial_period_days: Optional[int] = None,
    ) -> CheckoutSession:
        pass

    @abstractmethod
    async def retrieve_checkout_session(self, session_id: str) -> Optional[CheckoutSession]:
        """None when the provider does not know the session"""
        pass

    @abstractmethod
    async def create_billing_portal_session(self, customer_id: str, return_url: str) -> str:
        """Returns the portal URL"""
        pass

    @abstractmethod
    async def retrieve_subscription(self, subscription_id: str) -> Optional[dict]:
        """Provider subscription object, None when unknown"""
        pass

    @abstractmethod
    async def cancel_subscription(self, subscription_id: str) -> dict:
        """Cancel immediately; returns the canceled subscription object"""
        pass

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str) -> PaymentEvent:
        """Authenticate a webhook body. Raises WebhookSignatureError."""
        pass
