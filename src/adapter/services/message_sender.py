"""
SMS / WhatsApp senders.

TwilioMessageSender uses the Twilio REST client; the client is blocking, so
calls run in a worker thread.
"""

import asyncio
import logging

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from src.app.services.message_sender import MessageDeliveryError, MessageSender

logger = logging.getLogger(__name__)


class TwilioMessageSender(MessageSender):
    def __init__(self, account_sid: str, auth_token: str, from_number: str):
        self.client = Client(account_sid, auth_token)
        self.from_number = from_number

    async def send_message(self, to: str, body: str) -> None:
        try:
            await asyncio.to_thread(
                self.client.messages.create, body=body, from_=self.from_number, to=to
            )
        except TwilioException as e:
            logger.error(f"Twilio send failed: {e}")
            raise MessageDeliveryError("Twilio send failed") from e


class LoggingMessageSender(MessageSender):
    """
    Development sender: logs instead of sending.

    The body carries one-time codes and is only logged when reveal_content
    is set (never in production).
    """

    def __init__(self, reveal_content: bool = False):
        self.reveal_content = reveal_content

    @property
    def is_configured(self) -> bool:
        return False

    async def send_message(self, to: str, body: str) -> None:
        if self.reveal_content:
            logger.info(f"[dev sms] message to {to[:4]}***: {body}")
        else:
            logger.info(f"[dev sms] message to {to[:4]}*** withheld ({len(body)} chars)")
