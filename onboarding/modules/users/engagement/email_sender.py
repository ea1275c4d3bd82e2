"""
Email Sender - Sends emails from the system account via SMTP.
"""
import asyncio
import logging
import os
import smtplib
import uuid
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger("onboarding.engagement.email")

# System email configuration
SYSTEM_EMAIL = os.getenv("SYSTEM_EMAIL", "no-reply@bewell.co.ke")
SMTP_SERVER = os.getenv("SMTP_SERVER", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))


class EmailDeliveryError(Exception):
    pass


class EmailSender:
    """
    Sends emails from the system account via SMTP.
    """

    def __init__(self, smtp_server: Optional[str] = None, smtp_port: Optional[int] = None):
        self.email_password = os.getenv("EMAIL_PASSWORD") or os.getenv("EMAIL_APP_PASSWORD")
        self.system_email = SYSTEM_EMAIL
        self.smtp_server = smtp_server or SMTP_SERVER
        self.smtp_port = smtp_port or SMTP_PORT

        if not self.email_password:
            logger.warning("System email password not configured (EMAIL_PASSWORD or EMAIL_APP_PASSWORD). Email sending will fail.")

    def _send(self, to: str, subject: str, body: str, subtype: str) -> str:
        if not self.email_password:
            raise EmailDeliveryError("System email password not configured. Cannot send email.")

        message_id = f"EMAIL_{uuid.uuid4().hex[:8]}"
        msg = MIMEMultipart()
        msg["From"] = self.system_email
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(body, subtype))

        with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
            server.starttls()
            server.login(self.system_email, self.email_password)
            server.send_message(msg, to_addrs=[to])
        return message_id

    async def send_email(self, address: str, body: str, subject: str, subtype: str = "html") -> str:
        """
        Sends an email to a single address.

        Returns:
            Local message ID
        """
        try:
            message_id = await asyncio.to_thread(self._send, address, subject, body, subtype)
        except EmailDeliveryError:
            raise
        except Exception as e:
            logger.error(f"[EmailSender.send_email] Failed to send email to {address}: {e}")
            raise EmailDeliveryError(f"Failed to send email: {e}") from e
        logger.info(f"[EmailSender.send_email] Email sent to {address}, message_id: {message_id}")
        return message_id
