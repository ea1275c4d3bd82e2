"""
Notification Service

Single entry point the user services use for outbound SMS and email.
"""
import logging
from typing import List, Optional

from jinja2 import Environment, select_autoescape

from onboarding.modules.users import constants
from onboarding.modules.users.engagement.email_sender import EmailSender
from onboarding.modules.users.engagement.sms_sender import SMSSender

logger = logging.getLogger("onboarding.engagement.notifications")

_jinja_env = Environment(autoescape=select_autoescape(default_for_string=True))


def render_admin_welcome_email(name: str, pin: str) -> str:
    template = _jinja_env.from_string(constants.ADMIN_WELCOME_EMAIL_TEMPLATE)
    return template.render(
        name=name,
        pin=pin,
        welcome_message=constants.ADMIN_WELCOME_MESSAGE,
        app_name=constants.APP_NAME,
        support_phone=constants.SUPPORT_PHONE,
    )


class NotificationService:
    """Composes the SMS and email senders."""

    def __init__(self, sms_sender: Optional[SMSSender] = None, email_sender: Optional[EmailSender] = None):
        self.sms_sender = sms_sender or SMSSender()
        self.email_sender = email_sender or EmailSender()

    async def send_sms(self, recipients: List[str], body: str) -> List[str]:
        logger.debug(f"[NotificationService.send_sms] recipients={len(recipients)}")
        return await self.sms_sender.send_sms(recipients, body)

    async def send_email(self, address: str, body: str, subject: str) -> str:
        logger.debug(f"[NotificationService.send_email] address={address}, subject={subject}")
        return await self.email_sender.send_email(address, body, subject)
