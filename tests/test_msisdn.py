"""
Tests for phone number normalization and masking.
"""
import pytest

from onboarding.modules.users.exceptions import ErrorKind, PhoneNormalizationError
from onboarding.modules.users.services.msisdn import mask_phone_numbers, normalize_msisdn


@pytest.mark.parametrize("raw", [
    "+254700000000",
    "254700000000",
    "0700000000",
    "0700 000 000",
    "0700-000-000",
    "700000000",
    "00254700000000",
    "(0700) 000000",
])
def test_normalize_local_forms(raw):
    assert normalize_msisdn(raw) == "+254700000000"


def test_normalize_keeps_foreign_numbers():
    assert normalize_msisdn("+14155552671") == "+14155552671"


@pytest.mark.parametrize("raw", [
    "",
    "   ",
    "abc",
    "+2547000",
    "07000000001234",
    "+25470000000",
    "+2547000000000",
    "+0123456789",
])
def test_normalize_rejects_malformed_numbers(raw):
    with pytest.raises(PhoneNormalizationError) as exc_info:
        normalize_msisdn(raw)
    assert exc_info.value.kind == ErrorKind.INVALID_INPUT


def test_mask_phone_numbers():
    assert mask_phone_numbers(["+254789874267", "+254711223344"]) == ["+254789***267", "+254711***344"]
    assert mask_phone_numbers([]) == []
