from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, EmailStr, Field

from config import ApplicationConfig
from src.api.error import to_http_error
from src.api.utils.jwt import generate_intent_token
from src.api.utils.rate_limit import enforce_rate_limit, get_client_ip
from src.app.services.email_sender import EmailSender
from src.app.services.message_sender import MessageSender
from src.app.services.rate_limiter import RateLimiter
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.provisioning import (
    GetProvisioningStatusUseCase,
    ProvisioningStatusResponse,
)
from src.app.use_cases.signup import (
    CaptchaResponse,
    CreateSignupIntentCommand,
    CreateSignupIntentResponse,
    CreateSignupIntentUseCase,
    IntentStatusResponse,
    RefreshEmailVerificationUseCase,
    ResendVerificationEmailUseCase,
    ResendVerificationResponse,
    SendPhoneOtpResponse,
    SendPhoneOtpUseCase,
    SignupSettings,
    VerifyEmailResponse,
    VerifyEmailUseCase,
    VerifyPhoneOtpResponse,
    VerifyPhoneOtpUseCase,
)
from src.depends import (
    get_authorized_intent_id,
    get_email_sender,
    get_message_sender,
    get_rate_limiter,
    get_signup_settings,
    get_unit_of_work,
)
from src.domain.security import create_captcha
from src.domain.validation import DocumentType

router = APIRouter(prefix="/signup", tags=["Signup"])


@router.get("/captcha", status_code=status.HTTP_200_OK, response_model=CaptchaResponse)
async def get_captcha(settings: SignupSettings = Depends(get_signup_settings)):
    """
    Signed arithmetic captcha

    The client shows "a + b" and sends a, b, token and the answer back with
    the signup form.
    """
    captcha = create_captcha(settings.hmac_secret)
    return CaptchaResponse(a=captcha.a, b=captcha.b, token=captcha.token)


class CreateSignupIntentRequest(BaseModel):
    """
    Signup HTTP request payload

    Validates incoming HTTP request before converting to CreateSignupIntentCommand.
    """

    email: EmailStr = Field(..., description="Admin email address")
    password: str = Field(..., min_length=8, max_length=128)
    clinic_name: str = Field(..., min_length=1, max_length=255)
    admin_name: str = Field(..., min_length=1, max_length=255)
    document_type: DocumentType = Field(DocumentType.cpf, description="cpf or cnpj")
    document_number: str = Field(..., min_length=11, max_length=32)
    phone: str = Field(..., min_length=8, max_length=32)

    captcha_a: Optional[int] = None
    captcha_b: Optional[int] = None
    captcha_token: Optional[str] = None
    captcha_answer: Optional[str] = None


@router.post(
    "/intents",
    status_code=status.HTTP_201_CREATED,
    response_model=CreateSignupIntentResponse,
)
async def create_signup_intent(
    request: CreateSignupIntentRequest,
    http_request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    settings: SignupSettings = Depends(get_signup_settings),
    email_sender: EmailSender = Depends(get_email_sender),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    """
    Create Signup Intent

    Validates the form, stores the intent and sends the email confirmation
    link. Returns the intent access token used by the other signup endpoints.

    Raises:
        - 400: VALIDATION_ERROR, INVALID_DOCUMENT, INVALID_PHONE, WEAK_PASSWORD,
          INVALID_CAPTCHA
        - 409: DUPLICATE_SIGNUP
        - 429: RATE_LIMITED
    """
    client_ip = get_client_ip(http_request)
    await enforce_rate_limit(
        limiter, "signup", client_ip, ApplicationConfig.RATE_LIMIT_SIGNUP
    )

    command = CreateSignupIntentCommand(
        **request.model_dump(),
        ip=client_ip,
        user_agent=http_request.headers.get("user-agent"),
    )

    use_case = CreateSignupIntentUseCase(uow, settings, email_sender)
    result = await use_case.execute(command)

    if result.is_err():
        raise to_http_error(result.error)

    response = result.value
    response.intent_token = generate_intent_token(UUID(response.intent_id))
    return response


@router.post(
    "/intents/{intent_id}/email/refresh",
    status_code=status.HTTP_200_OK,
    response_model=IntentStatusResponse,
)
async def refresh_email_verification(
    http_request: Request,
    intent_id: UUID = Depends(get_authorized_intent_id),
    uow: UnitOfWork = Depends(get_unit_of_work),
    settings: SignupSettings = Depends(get_signup_settings),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    """
    Refresh Email Verification

    Polled by the client after the user clicks the confirmation link.
    """
    await enforce_rate_limit(
        limiter,
        "email_check",
        get_client_ip(http_request),
        ApplicationConfig.RATE_LIMIT_EMAIL_CHECK,
    )

    use_case = RefreshEmailVerificationUseCase(uow, settings)
    result = await use_case.execute(intent_id)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post(
    "/intents/{intent_id}/email/resend",
    status_code=status.HTTP_200_OK,
    response_model=ResendVerificationResponse,
)
async def resend_verification_email(
    http_request: Request,
    intent_id: UUID = Depends(get_authorized_intent_id),
    uow: UnitOfWork = Depends(get_unit_of_work),
    settings: SignupSettings = Depends(get_signup_settings),
    email_sender: EmailSender = Depends(get_email_sender),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    """Resend Verification Email"""
    await enforce_rate_limit(
        limiter,
        "email_resend",
        get_client_ip(http_request),
        ApplicationConfig.RATE_LIMIT_EMAIL_RESEND,
    )

    use_case = ResendVerificationEmailUseCase(uow, settings, email_sender)
    result = await use_case.execute(intent_id)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.get(
    "/verify-email", status_code=status.HTTP_200_OK, response_model=VerifyEmailResponse
)
async def verify_email(
    token: str = Query(..., min_length=1),
    uow: UnitOfWork = Depends(get_unit_of_work),
    settings: SignupSettings = Depends(get_signup_settings),
):
    """
    Verify Email

    Target of the confirmation link.

    Raises:
        - 400: INVALID_TOKEN, TOKEN_EXPIRED
    """
    use_case = VerifyEmailUseCase(uow, settings)
    result = await use_case.execute(token)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post(
    "/intents/{intent_id}/phone/otp",
    status_code=status.HTTP_200_OK,
    response_model=SendPhoneOtpResponse,
    response_model_exclude_none=True,
)
async def send_phone_otp(
    http_request: Request,
    intent_id: UUID = Depends(get_authorized_intent_id),
    uow: UnitOfWork = Depends(get_unit_of_work),
    settings: SignupSettings = Depends(get_signup_settings),
    message_sender: MessageSender = Depends(get_message_sender),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    """
    Send Phone OTP

    Raises:
        - 404: INTENT_NOT_FOUND
        - 409: INTENT_UNAVAILABLE, PHONE_ALREADY_VERIFIED
        - 429: RATE_LIMITED, OTP_LOCKED, OTP_COOLDOWN, OTP_SEND_LIMIT
        - 502: MESSAGE_DELIVERY_FAILED
    """
    client_ip = get_client_ip(http_request)
    await enforce_rate_limit(
        limiter, "otp_send", client_ip, ApplicationConfig.RATE_LIMIT_OTP_SEND
    )

    use_case = SendPhoneOtpUseCase(uow, settings, message_sender)
    result = await use_case.execute(
        intent_id, ip=client_ip, user_agent=http_request.headers.get("user-agent")
    )

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


class VerifyPhoneOtpRequest(BaseModel):
    otp: str = Field(..., min_length=4, max_length=10)


@router.post(
    "/intents/{intent_id}/phone/verify",
    status_code=status.HTTP_200_OK,
    response_model=VerifyPhoneOtpResponse,
)
async def verify_phone_otp(
    request: VerifyPhoneOtpRequest,
    http_request: Request,
    intent_id: UUID = Depends(get_authorized_intent_id),
    uow: UnitOfWork = Depends(get_unit_of_work),
    settings: SignupSettings = Depends(get_signup_settings),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    """
    Verify Phone OTP

    Raises:
        - 400: OTP_INVALID, OTP_EXPIRED
        - 409: INTENT_UNAVAILABLE, PHONE_ALREADY_VERIFIED
        - 429: RATE_LIMITED, OTP_LOCKED
    """
    client_ip = get_client_ip(http_request)
    await enforce_rate_limit(
        limiter, "otp_verify", client_ip, ApplicationConfig.RATE_LIMIT_OTP_VERIFY
    )

    use_case = VerifyPhoneOtpUseCase(uow, settings)
    result = await use_case.execute(
        intent_id,
        request.otp,
        ip=client_ip,
        user_agent=http_request.headers.get("user-agent"),
    )

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.get(
    "/provisioning-status",
    status_code=status.HTTP_200_OK,
    response_model=ProvisioningStatusResponse,
)
async def get_provisioning_status(
    intent_id: Optional[UUID] = Query(None),
    session_id: Optional[str] = Query(None, max_length=255),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Provisioning Status

    Polled by the checkout success page until ready is true.
    """
    use_case = GetProvisioningStatusUseCase(uow)
    result = await use_case.execute(intent_id=intent_id, session_id=session_id)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value
