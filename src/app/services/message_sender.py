from abc import ABC, abstractmethod


class MessageDeliveryError(Exception):
    """The SMS/WhatsApp provider rejected or could not accept the message."""


class MessageSender(ABC):
    """Outbound SMS / WhatsApp text messages"""

    @property
    def is_configured(self) -> bool:
        """False for development senders that only log the message"""
        return True

    @abstractmethod
    async def send_message(self, to: str, body: str) -> None:
        """Send `body` to an E.164 number. Raises MessageDeliveryError."""
        pass
