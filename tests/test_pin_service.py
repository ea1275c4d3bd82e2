"""
Tests for the PIN lifecycle: set, temporary PIN, reset and change.
"""
import asyncio

import pytest

from onboarding.modules import crypto
from onboarding.modules.users.exceptions import (
    ErrorKind,
    InvalidPINFormatError,
    NoExistingCredentialError,
    OTPDispatchFailedError,
    OTPVerificationFailedError,
    PermissionDeniedError,
    PersistenceError,
    PINAlreadySetError,
    PhoneNormalizationError,
    ProfileNotFoundError,
    ProfileSuspendedError,
    RecordNotFoundError,
    SavePINError,
)

from conftest import OTHER_PHONE, PHONE, make_profile

INVALID_PINS = ["123", "1234567", "12a4", "", "12 4", "١٢٣٤"]


@pytest.fixture
def profile(profile_repo):
    return profile_repo.add(make_profile(PHONE))


@pytest.mark.asyncio
async def test_set_pin_stores_salted_hash(pin_service, pin_repo, profile):
    assert await pin_service.set_user_pin("1234", PHONE) is True

    [record] = pin_repo.rows
    assert record.profile_id == profile.id
    assert record.salt
    assert record.pin_hash and record.pin_hash != "1234"
    assert record.is_otp is False
    assert crypto.compare_pin("1234", record.salt, record.pin_hash)


@pytest.mark.asyncio
async def test_set_pin_accepts_profile_and_local_number(pin_service, pin_repo, profile_repo, profile):
    other = profile_repo.add(make_profile(OTHER_PHONE))
    assert await pin_service.set_user_pin("123456", profile) is True
    assert await pin_service.set_user_pin("4321", "0711111111") is True
    assert [r.profile_id for r in pin_repo.rows] == [profile.id, other.id]


@pytest.mark.asyncio
async def test_set_pin_never_replaces_an_existing_pin(pin_service, pin_repo, otp_client, profile):
    existing = pin_repo.seed(profile.id, "1111")

    with pytest.raises(PINAlreadySetError) as exc_info:
        await pin_service.set_user_pin("9999", PHONE)

    assert exc_info.value.kind == ErrorKind.INVALID_INPUT
    assert pin_repo.active(profile.id) == [existing]
    assert "create" not in pin_repo.calls
    otp_client.verify.assert_not_called()


@pytest.mark.asyncio
async def test_set_pin_for_another_users_phone(pin_service, pin_repo, profile):
    with pytest.raises(PermissionDeniedError):
        await pin_service.set_user_pin("1234", PHONE, uid="someone-else")
    assert pin_repo.rows == []

    assert await pin_service.set_user_pin("1234", PHONE, uid=profile.uid) is True


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_pin", INVALID_PINS)
async def test_invalid_pins_never_reach_the_store(pin_service, pin_repo, otp_client, profile, bad_pin):
    with pytest.raises(InvalidPINFormatError) as exc_info:
        await pin_service.set_user_pin(bad_pin, PHONE)
    assert exc_info.value.kind == ErrorKind.INVALID_INPUT

    pin_repo.seed(profile.id, "1111")
    with pytest.raises(InvalidPINFormatError):
        await pin_service.reset_user_pin(PHONE, bad_pin, "654321")
    with pytest.raises(InvalidPINFormatError):
        await pin_service.change_user_pin(PHONE, bad_pin)

    assert len(pin_repo.rows) == 1
    assert "create" not in pin_repo.calls
    assert "update" not in pin_repo.calls
    otp_client.verify.assert_not_called()


@pytest.mark.asyncio
async def test_set_pin_unknown_phone(pin_service):
    with pytest.raises(ProfileNotFoundError):
        await pin_service.set_user_pin("1234", PHONE)


@pytest.mark.asyncio
async def test_set_pin_malformed_phone(pin_service):
    with pytest.raises(PhoneNormalizationError):
        await pin_service.set_user_pin("1234", "not-a-phone")


@pytest.mark.asyncio
async def test_set_pin_store_failure(pin_service, pin_repo, profile):
    pin_repo.fail_on.add("create")
    with pytest.raises(SavePINError) as exc_info:
        await pin_service.set_user_pin("1234", PHONE)
    assert exc_info.value.kind == ErrorKind.PERSISTENCE_FAILURE
    assert exc_info.value.cause is not None


@pytest.mark.asyncio
async def test_temp_pin_is_flagged_one_time(pin_service, pin_repo, profile):
    temp_pin = await pin_service.set_user_temp_pin(profile.id)

    assert len(temp_pin) == crypto.TEMP_PIN_LENGTH and temp_pin.isdigit()
    [record] = pin_repo.rows
    assert record.is_otp is True
    assert crypto.compare_pin(temp_pin, record.salt, record.pin_hash)


@pytest.mark.asyncio
async def test_request_reset_without_pin_skips_otp(pin_service, otp_client, profile):
    with pytest.raises(NoExistingCredentialError):
        await pin_service.request_pin_reset(PHONE)
    otp_client.generate_and_send.assert_not_called()


@pytest.mark.asyncio
async def test_request_reset_sends_otp(pin_service, pin_repo, otp_client, profile):
    pin_repo.seed(profile.id, "1111")
    result = await pin_service.request_pin_reset("0700000000", app_id="bewell")
    assert result == {"otp": "654321"}
    otp_client.generate_and_send.assert_awaited_once_with(PHONE, "bewell")


@pytest.mark.asyncio
async def test_request_reset_otp_failure(pin_service, pin_repo, otp_client, profile):
    pin_repo.seed(profile.id, "1111")
    otp_client.generate_and_send.side_effect = ConnectionError("otp service down")
    with pytest.raises(OTPDispatchFailedError) as exc_info:
        await pin_service.request_pin_reset(PHONE)
    assert exc_info.value.retryable


@pytest.mark.asyncio
async def test_request_reset_unknown_phone(pin_service):
    with pytest.raises(ProfileNotFoundError):
        await pin_service.request_pin_reset(PHONE)


@pytest.mark.asyncio
async def test_suspended_profile_cannot_manage_its_pin(pin_service, pin_repo, profile_repo, otp_client):
    profile = profile_repo.add(make_profile(PHONE, suspended=True))
    pin_repo.seed(profile.id, "1111")

    with pytest.raises(ProfileSuspendedError) as exc_info:
        await pin_service.request_pin_reset(PHONE)
    assert exc_info.value.kind == ErrorKind.UNAUTHORIZED
    with pytest.raises(ProfileSuspendedError):
        await pin_service.reset_user_pin(PHONE, "2222", "654321")
    with pytest.raises(ProfileSuspendedError):
        await pin_service.change_user_pin(PHONE, "2222", uid=profile.uid)

    otp_client.generate_and_send.assert_not_called()
    assert len(pin_repo.rows) == 1
    assert "update" not in pin_repo.calls


@pytest.mark.asyncio
async def test_reset_with_rejected_otp_writes_nothing(pin_service, pin_repo, otp_client, profile):
    pin_repo.seed(profile.id, "1111")
    otp_client.verify.return_value = False

    with pytest.raises(OTPVerificationFailedError) as exc_info:
        await pin_service.reset_user_pin(PHONE, "2222", "000000")
    assert not exc_info.value.retryable
    assert len(pin_repo.rows) == 1
    assert "update" not in pin_repo.calls


@pytest.mark.asyncio
async def test_reset_with_otp_adapter_error(pin_service, pin_repo, otp_client, profile):
    pin_repo.seed(profile.id, "1111")
    otp_client.verify.side_effect = ConnectionError("otp service down")

    with pytest.raises(OTPVerificationFailedError) as exc_info:
        await pin_service.reset_user_pin(PHONE, "2222", "654321")
    assert exc_info.value.retryable
    assert "update" not in pin_repo.calls


@pytest.mark.asyncio
async def test_reset_supersedes_previous_pin(pin_service, pin_repo, otp_client, profile):
    old = pin_repo.seed(profile.id, "1111", is_otp=True)

    result = await pin_service.reset_user_pin(PHONE, "2222", "654321")

    otp_client.verify.assert_awaited_once_with(PHONE, "654321")
    [active] = pin_repo.active(profile.id)
    assert active.id != old.id
    assert active.salt != old.salt
    assert active.is_otp is False
    assert result.profile_id == profile.id
    assert result.pin_hash == active.pin_hash != "2222"
    assert crypto.compare_pin("2222", active.salt, active.pin_hash)


@pytest.mark.asyncio
async def test_reset_requires_existing_credential(pin_service, pin_repo, profile):
    with pytest.raises(NoExistingCredentialError):
        await pin_service.reset_user_pin(PHONE, "2222", "654321")
    assert pin_repo.rows == []


@pytest.mark.asyncio
async def test_change_pin(pin_service, pin_repo, otp_client, profile):
    pin_repo.seed(profile.id, "1111")
    result = await pin_service.change_user_pin(PHONE, "3333", uid=profile.uid)

    [active] = pin_repo.active(profile.id)
    assert result.pin_hash == active.pin_hash
    assert crypto.compare_pin("3333", active.salt, active.pin_hash)
    otp_client.verify.assert_not_called()


@pytest.mark.asyncio
async def test_change_pin_requires_existing_credential(pin_service, profile):
    with pytest.raises(NoExistingCredentialError):
        await pin_service.change_user_pin(PHONE, "3333")


@pytest.mark.asyncio
async def test_change_pin_of_another_user_is_denied(pin_service, pin_repo, profile):
    pin_repo.seed(profile.id, "1111")
    with pytest.raises(PermissionDeniedError):
        await pin_service.change_user_pin(PHONE, "3333", uid="someone-else")
    assert len(pin_repo.active(profile.id)) == 1


@pytest.mark.asyncio
async def test_latest_write_wins(pin_service, pin_repo, profile):
    pin_repo.seed(profile.id, "1111")
    await pin_service.change_user_pin(PHONE, "2222")
    await pin_service.change_user_pin(PHONE, "3333")

    [active] = pin_repo.active(profile.id)
    assert crypto.compare_pin("3333", active.salt, active.pin_hash)
    assert len(pin_repo.rows) == 3


@pytest.mark.asyncio
async def test_check_has_pin_treats_not_found_as_false(pin_service, pin_repo, profile):
    assert await pin_service.check_has_pin(profile.id) is False

    async def raise_not_found(profile_id):
        raise RecordNotFoundError(profile_id)

    pin_repo.get_by_profile_id = raise_not_found
    assert await pin_service.check_has_pin(profile.id) is False


@pytest.mark.asyncio
async def test_check_has_pin_store_failure(pin_service, pin_repo, profile):
    pin_repo.fail_on.add("get_by_profile_id")
    with pytest.raises(PersistenceError):
        await pin_service.check_has_pin(profile.id)


@pytest.mark.asyncio
async def test_cancellation_abandons_reset(pin_service, pin_repo, otp_client, tracer, profile):
    pin_repo.seed(profile.id, "1111")
    otp_client.verify.side_effect = asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await pin_service.reset_user_pin(PHONE, "2222", "654321")
    assert "update" not in pin_repo.calls
    assert "ResetUserPIN" in tracer.names()


@pytest.mark.asyncio
async def test_operations_are_traced(pin_service, tracer, profile):
    await pin_service.set_user_pin("1234", PHONE)
    assert "SetUserPIN" in tracer.names()
