"""
Create Signup Intent Use Case

Entry point of the clinic signup flow: validates the form, protects PII,
binds an unverified user and sends the email confirmation link.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

import bcrypt

from libs.result import Error, Result, Return
from src.app.services.email_sender import EmailDeliveryError, EmailSender
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.entities import SignupIntent, SignupIntentStatus, User
from src.domain.security import encrypt, hmac_sha256, verify_captcha
from src.domain.validation import (
    is_strong_password,
    normalize_document,
    normalize_phone_to_e164,
    validate_document,
)

from .dtos import CreateSignupIntentCommand, CreateSignupIntentResponse
from .settings import SignupSettings
from .state import record_audit, sync_verification_status

logger = logging.getLogger(__name__)

DUPLICATE_SIGNUP = Error(
    "DUPLICATE_SIGNUP",
    "Já existe um cadastro em andamento com estes dados. Verifique seu e-mail ou faça login.",
)


class CreateSignupIntentUseCase:
    """
    Create a signup intent.

    Business Rules:
    - Captcha (when enabled), password strength, document checksum and phone
      format are checked before anything is stored
    - Document and phone are stored AES-GCM encrypted, with HMAC lookup hashes
    - At most one active intent per email, document or phone
    - An email that already belongs to a clinic member cannot sign up again;
      an unverified user without memberships is reused
    - User password hashed with bcrypt cost factor 12
    - Verification email failure does not fail the signup (resend is available)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        settings: SignupSettings,
        email_sender: EmailSender,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.settings = settings
        self.email_sender = email_sender
        self.clock = clock

    def _validate(self, command: CreateSignupIntentCommand) -> Optional[Error]:
        if self.settings.captcha_enabled:
            if command.captcha_a is None or command.captcha_b is None or not verify_captcha(
                self.settings.hmac_secret,
                command.captcha_a,
                command.captcha_b,
                command.captcha_token or "",
                command.captcha_answer or "",
            ):
                return Error("INVALID_CAPTCHA", "Resposta de verificação incorreta.")

        if not command.clinic_name.strip() or not command.admin_name.strip():
            return Error("VALIDATION_ERROR", "Preencha o nome da clínica e do responsável.")

        if not is_strong_password(command.password):
            return Error(
                "WEAK_PASSWORD",
                "A senha deve ter ao menos 8 caracteres, com letras maiúsculas, minúsculas e um símbolo.",
            )

        if not validate_document(command.document_number, command.document_type):
            return Error("INVALID_DOCUMENT", "Documento inválido.")

        if normalize_phone_to_e164(command.phone) is None:
            return Error("INVALID_PHONE", "Telefone inválido.")

        return None

    async def execute(
        self, command: CreateSignupIntentCommand
    ) -> Result[CreateSignupIntentResponse]:
        """
        Execute create signup intent use case.

        Returns:
            Result[CreateSignupIntentResponse], or Error (INVALID_CAPTCHA,
            VALIDATION_ERROR, WEAK_PASSWORD, INVALID_DOCUMENT, INVALID_PHONE,
            DUPLICATE_SIGNUP)
        """
        error = self._validate(command)
        if error:
            return Return.err(error)

        now = self.clock()
        email = str(command.email).strip().lower()
        document = normalize_document(command.document_number)
        phone = normalize_phone_to_e164(command.phone)
        document_hash = hmac_sha256(self.settings.hmac_secret, document)
        phone_hash = hmac_sha256(self.settings.hmac_secret, phone)

        async with self.uow:
            # Active intents for any of the three keys
            if (
                await self.uow.signup_intents.find_active_by_email(email)
                or await self.uow.signup_intents.find_active_by_document_hash(document_hash)
                or await self.uow.signup_intents.find_active_by_phone_hash(phone_hash)
            ):
                return Return.err(DUPLICATE_SIGNUP)

            password_hash = bcrypt.hashpw(
                command.password.encode("utf-8"), bcrypt.gensalt(12)
            ).decode("utf-8")
            verification_token = secrets.token_urlsafe(32)
            verification_expires_at = now + timedelta(
                hours=self.settings.email_verification_ttl_hours
            )

            user = await self.uow.users.get_by_email(email)
            if user is not None:
                memberships = await self.uow.memberships.get_by_user_id(user.id)
                if memberships:
                    return Return.err(DUPLICATE_SIGNUP)

                # Abandoned earlier signup: take the identity over
                user.password_hash = password_hash
                if not user.email_verified:
                    user.email_verification_token = verification_token
                    user.email_verification_expires_at = verification_expires_at
                user = await self.uow.users.update(user)
            else:
                user = await self.uow.users.create(
                    User(
                        email=email,
                        password_hash=password_hash,
                        email_verified=False,
                        email_verification_token=verification_token,
                        email_verification_expires_at=verification_expires_at,
                    )
                )

            intent = SignupIntent(
                email=email,
                clinic_name=command.clinic_name.strip(),
                admin_name=command.admin_name.strip(),
                document_type=command.document_type,
                document_number=encrypt(self.settings.encryption_key, document),
                document_hash=document_hash,
                phone=encrypt(self.settings.encryption_key, phone),
                phone_hash=phone_hash,
                email_verified=user.email_verified,
                document_validated_at=now,
                phone_verified_at=None if self.settings.require_phone_verification else now,
                status=SignupIntentStatus.PENDING,
                user_id=user.id,
                created_at=now,
                updated_at=now,
            )
            sync_verification_status(
                intent, now, self.settings.require_phone_verification
            )
            intent = await self.uow.signup_intents.create(intent)

            await record_audit(
                self.uow,
                "signup.intent.created",
                intent=intent,
                ip=command.ip,
                user_agent=command.user_agent,
                document_type=command.document_type.value,
            )

            await self.uow.commit()

            send_token = None if user.email_verified else user.email_verification_token
            intent_id = str(intent.id)
            status = intent.status.value

        email_sent = False
        if send_token:
            try:
                await self.email_sender.send_verification_email(
                    email, self.settings.verification_link(send_token)
                )
                email_sent = True
            except EmailDeliveryError:
                logger.warning(f"Verification email not sent for intent {intent_id}")

        return Return.ok(
            CreateSignupIntentResponse(
                intent_id=intent_id,
                status=status,
                email_verification_sent=email_sent,
                phone_verification_required=self.settings.require_phone_verification,
            )
        )
