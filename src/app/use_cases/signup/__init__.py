"""
Signup Use Cases

Signup intent creation and verification (email, phone OTP).
"""

from .create_signup_intent_use_case import CreateSignupIntentUseCase
from .refresh_email_verification_use_case import RefreshEmailVerificationUseCase
from .verify_email_use_case import VerifyEmailUseCase
from .resend_verification_email_use_case import ResendVerificationEmailUseCase
from .send_phone_otp_use_case import SendPhoneOtpUseCase
from .verify_phone_otp_use_case import VerifyPhoneOtpUseCase
from .settings import SignupSettings
from .dtos import (
    CaptchaResponse,
    CreateSignupIntentCommand,
    CreateSignupIntentResponse,
    IntentStatusResponse,
    ResendVerificationResponse,
    SendPhoneOtpResponse,
    VerifyEmailResponse,
    VerifyPhoneOtpResponse,
)

__all__ = [
    # Use Cases
    "CreateSignupIntentUseCase",
    "RefreshEmailVerificationUseCase",
    "VerifyEmailUseCase",
    "ResendVerificationEmailUseCase",
    "SendPhoneOtpUseCase",
    "VerifyPhoneOtpUseCase",
    # Settings
    "SignupSettings",
    # DTOs - Commands
    "CreateSignupIntentCommand",
    # DTOs - Responses
    "CaptchaResponse",
    "CreateSignupIntentResponse",
    "IntentStatusResponse",
    "ResendVerificationResponse",
    "SendPhoneOtpResponse",
    "VerifyEmailResponse",
    "VerifyPhoneOtpResponse",
]
