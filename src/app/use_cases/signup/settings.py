"""
Signup Settings

Tunables shared by the signup and billing use cases, built from
ApplicationConfig at the API edge so use cases stay config-free in tests.
"""

from dataclasses import dataclass, field
from typing import Dict


@dataclass
class SignupSettings:
    encryption_key: str
    hmac_secret: str
    app_url: str = "http://localhost:3000"
    app_env: str = "development"

    otp_length: int = 6
    otp_expiry_minutes: int = 10
    otp_resend_cooldown_seconds: int = 60
    otp_max_attempts: int = 5
    otp_lockout_minutes: int = 15
    otp_max_send_per_window: int = 5
    otp_send_window_hours: int = 24
    otp_lockouts_before_block: int = 3

    require_phone_verification: bool = True
    captcha_enabled: bool = False
    intent_ttl_days: int = 7
    email_verification_ttl_hours: int = 24

    prices: Dict[str, str] = field(default_factory=dict)

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    def verification_link(self, token: str) -> str:
        return f"{self.app_url}/signup/verify-email?token={token}"

    @classmethod
    def from_config(cls, config) -> "SignupSettings":
        return cls(
            encryption_key=config.SIGNUP_ENCRYPTION_KEY,
            hmac_secret=config.SIGNUP_HMAC_SECRET,
            app_url=config.APP_URL.rstrip("/"),
            app_env=config.APP_ENV,
            otp_length=config.OTP_LENGTH,
            otp_expiry_minutes=config.OTP_EXPIRY_MINUTES,
            otp_resend_cooldown_seconds=config.OTP_RESEND_COOLDOWN_SECONDS,
            otp_max_attempts=config.OTP_MAX_ATTEMPTS,
            otp_lockout_minutes=config.OTP_LOCKOUT_MINUTES,
            otp_max_send_per_window=config.OTP_MAX_SEND_PER_WINDOW,
            otp_send_window_hours=config.OTP_SEND_WINDOW_HOURS,
            otp_lockouts_before_block=config.OTP_LOCKOUTS_BEFORE_BLOCK,
            require_phone_verification=config.SIGNUP_REQUIRE_PHONE_VERIFICATION,
            captcha_enabled=config.SIGNUP_CAPTCHA_ENABLED,
            intent_ttl_days=config.SIGNUP_INTENT_TTL_DAYS,
            email_verification_ttl_hours=config.EMAIL_VERIFICATION_TTL_HOURS,
            prices={k: v for k, v in config.STRIPE_PRICES.items() if v},
        )
