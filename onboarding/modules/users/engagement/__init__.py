"""
Engagement Adapters

Outbound integrations: OTP service, SMS and email.
"""

from .otp_client import OTPClient, OTPServiceError
from .sms_sender import SMSSender, SMSDeliveryError
from .email_sender import EmailSender, EmailDeliveryError
from .notification_service import NotificationService, render_admin_welcome_email

__all__ = [
    "OTPClient",
    "OTPServiceError",
    "SMSSender",
    "SMSDeliveryError",
    "EmailSender",
    "EmailDeliveryError",
    "NotificationService",
    "render_admin_welcome_email",
]
