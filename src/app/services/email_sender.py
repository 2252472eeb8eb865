from abc import ABC, abstractmethod


class EmailDeliveryError(Exception):
    """The email provider rejected or could not accept the message."""


class EmailSender(ABC):
    """Outbound transactional email"""

    @abstractmethod
    async def send_verification_email(self, to: str, link: str) -> None:
        """Send the email confirmation link. Raises EmailDeliveryError."""
        pass
