from fastapi import status
from libs.result import Error


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


# Use case error code -> HTTP status; anything else is a server error
CLIENT_ERROR_STATUS = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "INVALID_DOCUMENT": status.HTTP_400_BAD_REQUEST,
    "INVALID_PHONE": status.HTTP_400_BAD_REQUEST,
    "WEAK_PASSWORD": status.HTTP_400_BAD_REQUEST,
    "INVALID_CAPTCHA": status.HTTP_400_BAD_REQUEST,
    "INVALID_PLAN": status.HTTP_400_BAD_REQUEST,
    "INVALID_TOKEN": status.HTTP_400_BAD_REQUEST,
    "TOKEN_EXPIRED": status.HTTP_400_BAD_REQUEST,
    "OTP_EXPIRED": status.HTTP_400_BAD_REQUEST,
    "OTP_INVALID": status.HTTP_400_BAD_REQUEST,
    "DUPLICATE_SIGNUP": status.HTTP_409_CONFLICT,
    "INTENT_UNAVAILABLE": status.HTTP_409_CONFLICT,
    "INVALID_STATE": status.HTTP_409_CONFLICT,
    "PHONE_ALREADY_VERIFIED": status.HTTP_409_CONFLICT,
    "INTENT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "JOB_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "RATE_LIMITED": status.HTTP_429_TOO_MANY_REQUESTS,
    "OTP_LOCKED": status.HTTP_429_TOO_MANY_REQUESTS,
    "OTP_COOLDOWN": status.HTTP_429_TOO_MANY_REQUESTS,
    "OTP_SEND_LIMIT": status.HTTP_429_TOO_MANY_REQUESTS,
    "MESSAGE_DELIVERY_FAILED": status.HTTP_502_BAD_GATEWAY,
    "PAYMENT_PROVIDER_ERROR": status.HTTP_502_BAD_GATEWAY,
}


def to_http_error(error: Error) -> Exception:
    """Map a use case Error to the exception the app handlers render"""
    status_code = CLIENT_ERROR_STATUS.get(error.code)
    if status_code is None:
        return ServerError(error)
    return ClientError(error, status_code=status_code)
