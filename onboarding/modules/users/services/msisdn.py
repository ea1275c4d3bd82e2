"""
Phone number helpers.
"""
import re
from typing import List

from onboarding.modules.users.constants import DEFAULT_COUNTRY_CODE
from onboarding.modules.users.exceptions import PhoneNormalizationError

_SEPARATORS = re.compile(r"[\s\-().]")
_E164_DIGITS = re.compile(r"^[1-9]\d{7,14}$")

# Subscriber number length for numbers in the default country
LOCAL_SUBSCRIBER_LENGTH = 9


def normalize_msisdn(msisdn: str) -> str:
    """
    Returns the number in international form, e.g. "0712 345 678" -> "+254712345678".

    Raises PhoneNormalizationError for anything that is not a dialable number.
    """
    if not msisdn or not msisdn.strip():
        raise PhoneNormalizationError("phone number is required")

    cleaned = _SEPARATORS.sub("", msisdn.strip())
    if cleaned.startswith("00"):
        cleaned = "+" + cleaned[2:]

    if cleaned.startswith("+"):
        digits = cleaned[1:]
    elif cleaned.startswith("0"):
        digits = DEFAULT_COUNTRY_CODE + cleaned[1:]
    elif cleaned.startswith(DEFAULT_COUNTRY_CODE):
        digits = cleaned
    elif len(cleaned) == LOCAL_SUBSCRIBER_LENGTH:
        digits = DEFAULT_COUNTRY_CODE + cleaned
    else:
        digits = cleaned

    if not _E164_DIGITS.match(digits):
        raise PhoneNormalizationError(f"invalid phone number: {msisdn}")
    if digits.startswith(DEFAULT_COUNTRY_CODE) and len(digits) != len(DEFAULT_COUNTRY_CODE) + LOCAL_SUBSCRIBER_LENGTH:
        raise PhoneNormalizationError(f"invalid phone number: {msisdn}")

    return "+" + digits


def mask_phone_numbers(phones: List[str]) -> List[str]:
    """"+254789874267" -> "+254789***267"."""
    masked = []
    for phone in phones:
        if len(phone) <= 6:
            masked.append("***")
            continue
        masked.append(phone[:-6] + "***" + phone[-3:])
    return masked
