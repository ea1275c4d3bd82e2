"""
User Module Constants

Policy values and message texts. Anything deployment specific can be
overridden from the environment.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# PIN policy
PIN_MIN_LENGTH = int(os.getenv("PIN_MIN_LENGTH", "4"))
PIN_MAX_LENGTH = int(os.getenv("PIN_MAX_LENGTH", "6"))

# Phone numbers without an international prefix are assumed to be local to this country
DEFAULT_COUNTRY_CODE = os.getenv("DEFAULT_COUNTRY_CODE", "254")

# Organization that internal staff (admins) are attached to
ORGANIZATION_NAME = os.getenv("ORGANIZATION_NAME", "Savannah Informatics")
ORGANIZATION_CODE = os.getenv("ORGANIZATION_CODE", "1")

SUPPORT_PHONE = os.getenv("SUPPORT_PHONE", "0790360360")
APP_NAME = os.getenv("APP_NAME", "Bewell")

# Minimum accepted push token length
MIN_PUSH_TOKEN_LENGTH = 5

# Consumer welcome SMS: str.format fields {name} (first name) and {pin} (temporary PIN)
WELCOME_MESSAGE = (
    "Dear {name}, welcome to " + APP_NAME + ". "
    "Please use this One Time PIN: {pin} to log in with your phone number. "
    "You will be prompted to change the PIN on login."
)

ADMIN_WELCOME_MESSAGE = (
    "You have been successfully registered as an admin. "
    "We look forward to working with you."
)
ADMIN_WELCOME_EMAIL_SUBJECT = "Successfully registered as an admin"

ADMIN_WELCOME_SMS = (
    ADMIN_WELCOME_MESSAGE
    + " Please use this One Time PIN: {pin} to log onto "
    + APP_NAME
    + " with your phone number. For enquiries call us on "
    + SUPPORT_PHONE
)

ADMIN_WELCOME_EMAIL_TEMPLATE = """
<html>
  <body>
    <p>Dear {{ name }},</p>
    <p>{{ welcome_message }}</p>
    <p>Please use this One Time PIN: <strong>{{ pin }}</strong> to log onto {{ app_name }} with your phone number.</p>
    <p>You will be prompted to change the PIN on first login.</p>
    <p>For enquiries call us on {{ support_phone }}.</p>
  </body>
</html>
"""
