from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.audit_event_repository import AuditEventRepository
from src.adapter.repositories.clinic_repository import ClinicRepository
from src.adapter.repositories.membership_repository import MembershipRepository
from src.adapter.repositories.payment_repository import PaymentRepository
from src.adapter.repositories.processed_event_repository import ProcessedEventRepository
from src.adapter.repositories.profile_repository import ProfileRepository
from src.adapter.repositories.provisioning_job_repository import ProvisioningJobRepository
from src.adapter.repositories.signup_intent_repository import SignupIntentRepository
from src.adapter.repositories.subscription_repository import SubscriptionRepository
from src.adapter.repositories.user_repository import UserRepository
from src.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        # Initialize all repositories with the session
        self.users = UserRepository(self.session)
        self.clinics = ClinicRepository(self.session)
        self.profiles = ProfileRepository(self.session)
        self.memberships = MembershipRepository(self.session)
        self.subscriptions = SubscriptionRepository(self.session)
        self.payments = PaymentRepository(self.session)
        self.signup_intents = SignupIntentRepository(self.session)
        self.processed_events = ProcessedEventRepository(self.session)
        self.provisioning_jobs = ProvisioningJobRepository(self.session)
        self.audit_events = AuditEventRepository(self.session)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
