"""
Email senders.

MailgunEmailSender posts to the Mailgun messages API; LoggingEmailSender is
used when Mailgun is not configured (development and tests).
"""

import logging

import httpx

from src.app.services.email_sender import EmailDeliveryError, EmailSender

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = "Confirme seu e-mail"


def _verification_text(link: str) -> str:
    return (
        "Olá!\n\n"
        "Para continuar o cadastro da sua clínica, confirme seu e-mail "
        f"acessando o link abaixo:\n\n{link}\n\n"
        "Se você não solicitou este cadastro, ignore esta mensagem."
    )


class MailgunEmailSender(EmailSender):
    def __init__(
        self,
        api_key: str,
        domain: str,
        from_email: str,
        base_url: str = "https://api.mailgun.net",
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.domain = domain.strip().lower()
        self.from_email = from_email
        self.base_url = base_url.strip().rstrip("/")
        self.timeout = timeout

    async def send_verification_email(self, to: str, link: str) -> None:
        url = f"{self.base_url}/v3/{self.domain}/messages"
        data = {
            "from": self.from_email,
            "to": to,
            "subject": VERIFICATION_SUBJECT,
            "text": _verification_text(link),
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, auth=("api", self.api_key), data=data)
        except httpx.HTTPError as e:
            logger.error(f"Mailgun request failed: {e}")
            raise EmailDeliveryError("Mailgun request failed") from e

        if response.status_code >= 400:
            logger.error(
                f"Mailgun rejected message: status={response.status_code} body={response.text[:200]}"
            )
            raise EmailDeliveryError(f"Mailgun returned {response.status_code}")


class LoggingEmailSender(EmailSender):
    """Development sender; the link is a credential and is logged only with reveal_content"""

    def __init__(self, reveal_content: bool = False):
        self.reveal_content = reveal_content

    async def send_verification_email(self, to: str, link: str) -> None:
        if self.reveal_content:
            logger.info(f"[dev email] verification link for {to}: {link}")
        else:
            logger.info(f"[dev email] verification link for {to[:3]}*** withheld")
