"""
Signup Use Case DTOs (Data Transfer Objects)

All Command and Response classes for the signup domain.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr

from src.domain.validation import DocumentType


# ============================================================================
# Command DTOs
# ============================================================================


class CreateSignupIntentCommand(BaseModel):
    """Validated business intent for a new clinic signup"""

    email: EmailStr
    password: str
    clinic_name: str
    admin_name: str
    document_type: DocumentType
    document_number: str
    phone: str

    captcha_a: Optional[int] = None
    captcha_b: Optional[int] = None
    captcha_token: Optional[str] = None
    captcha_answer: Optional[str] = None

    ip: Optional[str] = None
    user_agent: Optional[str] = None


# ============================================================================
# Response DTOs
# ============================================================================


class CaptchaResponse(BaseModel):
    a: int
    b: int
    token: str


class CreateSignupIntentResponse(BaseModel):
    """Response for intent creation; intent_token is set by the API layer"""

    intent_id: str
    status: str
    email_verification_sent: bool
    phone_verification_required: bool
    intent_token: Optional[str] = None


class IntentStatusResponse(BaseModel):
    intent_id: str
    status: str
    email_verified: bool
    phone_verified: bool


class VerifyEmailResponse(BaseModel):
    """Response for email verification use case"""

    status: str
    message: str


class ResendVerificationResponse(BaseModel):
    """Response for resend verification email use case"""

    status: str
    message: str


class SendPhoneOtpResponse(BaseModel):
    status: str
    expires_at: datetime
    resend_available_at: datetime
    dev_otp: Optional[str] = None


class VerifyPhoneOtpResponse(BaseModel):
    intent_id: str
    status: str
    phone_verified: bool
    email_verified: bool
