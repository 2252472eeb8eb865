from abc import ABC, abstractmethod

from src.app.repositories.audit_event_repository import IAuditEventRepository
from src.app.repositories.clinic_repository import IClinicRepository
from src.app.repositories.membership_repository import IMembershipRepository
from src.app.repositories.payment_repository import IPaymentRepository
from src.app.repositories.processed_event_repository import IProcessedEventRepository
from src.app.repositories.profile_repository import IProfileRepository
from src.app.repositories.provisioning_job_repository import IProvisioningJobRepository
from src.app.repositories.signup_intent_repository import ISignupIntentRepository
from src.app.repositories.subscription_repository import ISubscriptionRepository
from src.app.repositories.user_repository import IUserRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    users: IUserRepository
    clinics: IClinicRepository
    profiles: IProfileRepository
    memberships: IMembershipRepository
    subscriptions: ISubscriptionRepository
    payments: IPaymentRepository
    signup_intents: ISignupIntentRepository
    processed_events: IProcessedEventRepository
    provisioning_jobs: IProvisioningJobRepository
    audit_events: IAuditEventRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
