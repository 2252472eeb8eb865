import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./test.db")
    AUTO_CREATE_TABLES = bool(data.get("AUTO_CREATE_TABLES", True))
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    APP_ENV = data.get("APP_ENV", "development")
    APP_URL = data.get("APP_URL", "http://localhost:3000")

    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    INTENT_TOKEN_TTL_MINUTES = int(data.get("INTENT_TOKEN_TTL_MINUTES", 24 * 60))
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")

    CACHE_BACKEND = data.get("CACHE_BACKEND", "memory")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")

    # AES-256-GCM key, 64 hex chars
    SIGNUP_ENCRYPTION_KEY = data.get(
        "SIGNUP_ENCRYPTION_KEY",
        "8f3a5c1e9b7d2f4a6c8e0b1d3f5a7c9e1b3d5f7a9c1e3b5d7f9a1c3e5b7d9f1a",
    )
    SIGNUP_HMAC_SECRET = data.get("SIGNUP_HMAC_SECRET") or SIGNUP_ENCRYPTION_KEY

    OTP_LENGTH = int(data.get("OTP_LENGTH", 6))
    OTP_EXPIRY_MINUTES = int(data.get("OTP_EXPIRY_MINUTES", 10))
    OTP_RESEND_COOLDOWN_SECONDS = int(data.get("OTP_RESEND_COOLDOWN_SECONDS", 60))
    OTP_MAX_ATTEMPTS = int(data.get("OTP_MAX_ATTEMPTS", 5))
    OTP_LOCKOUT_MINUTES = int(data.get("OTP_LOCKOUT_MINUTES", 15))
    OTP_MAX_SEND_PER_WINDOW = int(data.get("OTP_MAX_SEND_PER_WINDOW", 5))
    OTP_SEND_WINDOW_HOURS = int(data.get("OTP_SEND_WINDOW_HOURS", 24))
    OTP_LOCKOUTS_BEFORE_BLOCK = int(data.get("OTP_LOCKOUTS_BEFORE_BLOCK", 3))

    SIGNUP_REQUIRE_PHONE_VERIFICATION = bool(
        data.get("SIGNUP_REQUIRE_PHONE_VERIFICATION", True)
    )
    SIGNUP_CAPTCHA_ENABLED = bool(data.get("SIGNUP_CAPTCHA_ENABLED", False))
    SIGNUP_INTENT_TTL_DAYS = int(data.get("SIGNUP_INTENT_TTL_DAYS", 7))
    EMAIL_VERIFICATION_TTL_HOURS = int(data.get("EMAIL_VERIFICATION_TTL_HOURS", 24))

    # (max requests, window seconds) per client IP
    RATE_LIMIT_SIGNUP = tuple(data.get("RATE_LIMIT_SIGNUP", (5, 60)))
    RATE_LIMIT_OTP_SEND = tuple(data.get("RATE_LIMIT_OTP_SEND", (5, 60)))
    RATE_LIMIT_OTP_VERIFY = tuple(data.get("RATE_LIMIT_OTP_VERIFY", (10, 60)))
    RATE_LIMIT_EMAIL_CHECK = tuple(data.get("RATE_LIMIT_EMAIL_CHECK", (10, 60)))
    RATE_LIMIT_EMAIL_RESEND = tuple(data.get("RATE_LIMIT_EMAIL_RESEND", (5, 60)))
    RATE_LIMIT_CHECKOUT = tuple(data.get("RATE_LIMIT_CHECKOUT", (5, 60)))

    STRIPE_SECRET_KEY = data.get("STRIPE_SECRET_KEY", "")
    STRIPE_WEBHOOK_SECRET = data.get("STRIPE_WEBHOOK_SECRET", "")
    STRIPE_PRICES = {
        "trial": data.get("STRIPE_PRICE_TRIAL", ""),
        "monthly": data.get("STRIPE_PRICE_MONTHLY", ""),
        "quarterly": data.get("STRIPE_PRICE_QUARTERLY", ""),
        "semiannual": data.get("STRIPE_PRICE_SEMIANNUAL", ""),
        "annual": data.get("STRIPE_PRICE_ANNUAL", ""),
    }

    MAILGUN_API_KEY = data.get("MAILGUN_API_KEY", "")
    MAILGUN_DOMAIN = data.get("MAILGUN_DOMAIN", "")
    MAILGUN_BASE_URL = data.get("MAILGUN_BASE_URL", "https://api.mailgun.net")
    MAILGUN_FROM_EMAIL = data.get("MAILGUN_FROM_EMAIL", "noreply@clinica.app")

    TWILIO_ACCOUNT_SID = data.get("TWILIO_ACCOUNT_SID", "")
    TWILIO_AUTH_TOKEN = data.get("TWILIO_AUTH_TOKEN", "")
    TWILIO_FROM_NUMBER = data.get("TWILIO_FROM_NUMBER", "")
