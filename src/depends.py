from functools import lru_cache
from uuid import UUID

from fastapi import Depends, HTTPException, Path, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.services.email_sender import LoggingEmailSender, MailgunEmailSender
from src.adapter.services.message_sender import LoggingMessageSender, TwilioMessageSender
from src.adapter.services.payment_gateway import StripePaymentGateway
from src.adapter.services.rate_limiter import InMemoryRateLimiter, RedisRateLimiter
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.utils.jwt import INTENT_TOKEN_SCOPE, verify_jwt
from src.app.services.email_sender import EmailSender
from src.app.services.message_sender import MessageSender
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.rate_limiter import RateLimiter
from src.app.use_cases.signup.settings import SignupSettings

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer()


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


@lru_cache
def get_signup_settings() -> SignupSettings:
    return SignupSettings.from_config(ApplicationConfig)


@lru_cache
def get_rate_limiter() -> RateLimiter:
    if ApplicationConfig.CACHE_BACKEND == "redis":
        return RedisRateLimiter(Redis.from_url(ApplicationConfig.REDIS_URL))
    return InMemoryRateLimiter()


@lru_cache
def get_email_sender() -> EmailSender:
    if ApplicationConfig.MAILGUN_API_KEY and ApplicationConfig.MAILGUN_DOMAIN:
        return MailgunEmailSender(
            api_key=ApplicationConfig.MAILGUN_API_KEY,
            domain=ApplicationConfig.MAILGUN_DOMAIN,
            from_email=ApplicationConfig.MAILGUN_FROM_EMAIL,
            base_url=ApplicationConfig.MAILGUN_BASE_URL,
        )
    return LoggingEmailSender(reveal_content=ApplicationConfig.APP_ENV != "production")


@lru_cache
def get_message_sender() -> MessageSender:
    if (
        ApplicationConfig.TWILIO_ACCOUNT_SID
        and ApplicationConfig.TWILIO_AUTH_TOKEN
        and ApplicationConfig.TWILIO_FROM_NUMBER
    ):
        return TwilioMessageSender(
            account_sid=ApplicationConfig.TWILIO_ACCOUNT_SID,
            auth_token=ApplicationConfig.TWILIO_AUTH_TOKEN,
            from_number=ApplicationConfig.TWILIO_FROM_NUMBER,
        )
    return LoggingMessageSender(reveal_content=ApplicationConfig.APP_ENV != "production")


@lru_cache
def get_payment_gateway() -> PaymentGateway:
    return StripePaymentGateway(
        secret_key=ApplicationConfig.STRIPE_SECRET_KEY,
        webhook_secret=ApplicationConfig.STRIPE_WEBHOOK_SECRET,
    )


async def get_intent_claims(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """
    Dependency to extract and verify the intent access token.

    Returns:
        Decoded JWT payload containing intent_id

    Raises:
        HTTPException: 401 if token is invalid, expired or not an intent token
    """
    payload = verify_jwt(credentials.credentials)

    if payload is None or payload.get("scope") != INTENT_TOKEN_SCOPE:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    return payload


async def get_authorized_intent_id(
    intent_id: UUID = Path(...),
    claims: dict = Depends(get_intent_claims),
) -> UUID:
    """Path intent id, checked against the bearer token's intent"""
    if claims.get("intent_id") != str(intent_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token does not grant access to this intent",
        )
    return intent_id
