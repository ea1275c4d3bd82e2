"""
SMS Sender - Sends SMS from the system account via Twilio.
SMS is unencrypted: never include anything but one-time credentials and notices.
"""
import asyncio
import logging
import os
from typing import List, Optional

from dotenv import load_dotenv
from twilio.rest import Client

load_dotenv()

logger = logging.getLogger("onboarding.engagement.sms")

# SMS Configuration
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER")  # System phone number


class SMSDeliveryError(Exception):
    pass


class SMSSender:
    """
    Sends SMS from the system account.
    """

    def __init__(self, client: Optional[Client] = None, from_number: Optional[str] = None):
        self.from_number = from_number or TWILIO_PHONE_NUMBER
        self._client = client

        if not self._client and not (TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN and self.from_number):
            logger.warning("SMS credentials not configured (TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_PHONE_NUMBER). SMS sending will fail.")

    @property
    def client(self) -> Client:
        if self._client is None:
            if not TWILIO_ACCOUNT_SID or not TWILIO_AUTH_TOKEN:
                raise SMSDeliveryError("SMS credentials not configured. Cannot send SMS from system account.")
            self._client = Client(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN)
        return self._client

    def _send_one(self, to: str, body: str) -> str:
        message = self.client.messages.create(body=body, from_=self.from_number, to=to)
        return message.sid

    async def send_sms(self, recipients: List[str], body: str) -> List[str]:
        """
        Sends `body` to every recipient. Stops at the first failure.

        Returns:
            Provider message IDs, one per recipient
        """
        message_ids = []
        for to in recipients:
            try:
                sid = await asyncio.to_thread(self._send_one, to, body)
            except Exception as e:
                logger.error(f"[SMSSender.send_sms] Failed to send SMS to {to}: {e}")
                raise SMSDeliveryError(f"Failed to send SMS: {e}") from e
            logger.info(f"[SMSSender.send_sms] SMS sent to {to}, message_sid: {sid}")
            message_ids.append(sid)
        return message_ids
