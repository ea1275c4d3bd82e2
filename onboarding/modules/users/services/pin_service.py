"""
User PIN Service

Owns the PIN credential lifecycle: first PIN, temporary PIN, OTP-gated reset
and authenticated change. Raw PINs are only ever held in memory; the store sees
the salt and the derived hash.

Reset is split into request and completion so the OTP round trip can cross a
client interaction without this service holding session state.
"""
import asyncio
import logging
from typing import Any, Dict, Optional, Union
from uuid import uuid4

from onboarding.modules import crypto
from onboarding.modules.users.constants import PIN_MAX_LENGTH, PIN_MIN_LENGTH
from onboarding.modules.users.domain.pin import PIN, PINUpdateResult
from onboarding.modules.users.domain.profile import UserProfile
from onboarding.modules.users.engagement.otp_client import OTPClient
from onboarding.modules.users.exceptions import (
    InvalidPINFormatError,
    NoExistingCredentialError,
    OTPDispatchFailedError,
    OTPVerificationFailedError,
    PermissionDeniedError,
    PersistenceError,
    PINAlreadySetError,
    ProfileNotFoundError,
    ProfileSuspendedError,
    RecordNotFoundError,
    SavePINError,
)
from onboarding.modules.users.repositories.pin_repository import PINRepository
from onboarding.modules.users.repositories.profile_repository import ProfileRepository
from onboarding.modules.users.services.msisdn import normalize_msisdn
from onboarding.modules.users.tracing import Tracer, default_tracer

logger = logging.getLogger("onboarding.users.pin")


def validate_pin(pin: str) -> None:
    """Raises InvalidPINFormatError unless `pin` is all digits within the length policy."""
    if pin is None or len(pin) < PIN_MIN_LENGTH or len(pin) > PIN_MAX_LENGTH:
        raise InvalidPINFormatError.length(PIN_MIN_LENGTH, PIN_MAX_LENGTH)
    if not (pin.isascii() and pin.isdigit()):
        raise InvalidPINFormatError.digits()


class UserPinService:
    """Service for PIN business logic."""

    def __init__(
        self,
        profile_repository: Optional[ProfileRepository] = None,
        pin_repository: Optional[PINRepository] = None,
        otp_client: Optional[OTPClient] = None,
        tracer: Optional[Tracer] = None,
    ):
        self.profile_repository = profile_repository or ProfileRepository()
        self.pin_repository = pin_repository or PINRepository()
        self.otp_client = otp_client or OTPClient()
        self.tracer = tracer or default_tracer

    @staticmethod
    async def _build_pin(raw_pin: str, profile_id: str, is_otp: bool = False) -> PIN:
        # PBKDF2 is CPU-bound; keep it off the event loop
        salt, pin_hash = await asyncio.to_thread(crypto.encrypt_pin, raw_pin)
        return PIN(
            id=str(uuid4()),
            profile_id=profile_id,
            pin_hash=pin_hash,
            salt=salt,
            is_otp=is_otp,
        )

    async def _get_profile_by_phone(self, phone: str) -> UserProfile:
        msisdn = normalize_msisdn(phone)
        try:
            profile = await self.profile_repository.get_by_primary_phone(msisdn)
        except RecordNotFoundError:
            profile = None
        except Exception as e:
            raise PersistenceError(cause=e)
        if profile is None:
            raise ProfileNotFoundError(f"no profile for phone number {msisdn}")
        if profile.suspended:
            raise ProfileSuspendedError()
        return profile

    @staticmethod
    def _check_owner(profile: UserProfile, uid: Optional[str]) -> None:
        if uid is not None and profile.uid != uid:
            raise PermissionDeniedError("phone number does not belong to the authenticated user")

    async def _verify_otp(self, phone: str, otp: str) -> None:
        try:
            verified = await self.otp_client.verify(phone, otp)
        except Exception as e:
            raise OTPVerificationFailedError(cause=e)
        if not verified:
            raise OTPVerificationFailedError()

    async def _require_existing_pin(self, profile_id: str) -> None:
        if not await self.check_has_pin(profile_id):
            raise NoExistingCredentialError()

    async def _replace_pin(self, profile: UserProfile, raw_pin: str) -> PINUpdateResult:
        new_pin = await self._build_pin(raw_pin, profile.id)
        try:
            saved = await self.pin_repository.update(profile.id, new_pin)
        except Exception as e:
            raise SavePINError(cause=e)
        return PINUpdateResult(profile_id=saved.profile_id, pin_hash=saved.pin_hash)

    async def set_user_pin(self, pin: str, target: Union[str, UserProfile], uid: Optional[str] = None) -> bool:
        """
        Create the first PIN for a profile. A profile that already has a PIN
        is rejected; renewing a credential goes through reset or change.

        Args:
            pin: Raw PIN
            target: The owning profile, or its phone number
            uid: When given, the profile must belong to this user
        """
        with self.tracer.span("SetUserPIN"):
            validate_pin(pin)
            profile = target if isinstance(target, UserProfile) else await self._get_profile_by_phone(target)
            self._check_owner(profile, uid)
            logger.debug(f"[UserPinService.set_user_pin] profile_id={profile.id}")

            if await self.check_has_pin(profile.id):
                raise PINAlreadySetError()

            record = await self._build_pin(pin, profile.id)
            try:
                await self.pin_repository.create(record)
            except Exception as e:
                logger.error(f"[UserPinService.set_user_pin] ERROR: {e}", exc_info=True)
                raise SavePINError(cause=e)

            logger.info(f"[UserPinService.set_user_pin] PIN set for profile {profile.id}")
            return True

    async def set_user_temp_pin(self, profile_id: str) -> str:
        """
        Issue a system-generated one-time PIN that the user must change on first login.

        Returns:
            The raw temporary PIN, for delivery to the user
        """
        with self.tracer.span("SetUserTempPIN", profile_id=profile_id):
            temp_pin = crypto.generate_temp_pin()
            record = await self._build_pin(temp_pin, profile_id, is_otp=True)
            try:
                await self.pin_repository.create(record)
            except Exception as e:
                logger.error(f"[UserPinService.set_user_temp_pin] ERROR: {e}", exc_info=True)
                raise SavePINError(cause=e)

            logger.info(f"[UserPinService.set_user_temp_pin] temporary PIN issued for profile {profile_id}")
            return temp_pin

    async def request_pin_reset(self, phone: str, app_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Send a reset OTP to an existing user's phone.

        Only renews a credential: a profile without a PIN is rejected before
        the OTP service is contacted.
        """
        with self.tracer.span("RequestPINReset"):
            profile = await self._get_profile_by_phone(phone)
            await self._require_existing_pin(profile.id)

            try:
                otp_response = await self.otp_client.generate_and_send(profile.primary_phone, app_id)
            except Exception as e:
                logger.error(f"[UserPinService.request_pin_reset] OTP dispatch failed: {e}")
                raise OTPDispatchFailedError(cause=e)

            logger.info(f"[UserPinService.request_pin_reset] reset OTP sent for profile {profile.id}")
            return otp_response

    async def reset_user_pin(self, phone: str, pin: str, otp: str) -> PINUpdateResult:
        """Complete a reset: verify the OTP, then supersede the current PIN."""
        with self.tracer.span("ResetUserPIN"):
            validate_pin(pin)
            msisdn = normalize_msisdn(phone)
            await self._verify_otp(msisdn, otp)

            # The credential may have been removed since the reset was requested
            profile = await self._get_profile_by_phone(msisdn)
            await self._require_existing_pin(profile.id)

            result = await self._replace_pin(profile, pin)
            logger.info(f"[UserPinService.reset_user_pin] PIN reset for profile {profile.id}")
            return result

    async def change_user_pin(self, phone: str, pin: str, uid: Optional[str] = None) -> PINUpdateResult:
        """
        Replace the PIN of an already-authenticated user. The caller is
        responsible for having authenticated the user; when `uid` is given the
        phone number must belong to that user.
        """
        with self.tracer.span("ChangeUserPIN"):
            validate_pin(pin)
            profile = await self._get_profile_by_phone(phone)
            self._check_owner(profile, uid)
            await self._require_existing_pin(profile.id)

            result = await self._replace_pin(profile, pin)
            logger.info(f"[UserPinService.change_user_pin] PIN changed for profile {profile.id}")
            return result

    async def get_pin(self, profile_id: str) -> Optional[PIN]:
        """Active PIN for a profile, or None. Not-found never raises."""
        try:
            return await self.pin_repository.get_by_profile_id(profile_id)
        except RecordNotFoundError:
            return None
        except Exception as e:
            raise PersistenceError(cause=e)

    async def check_has_pin(self, profile_id: str) -> bool:
        with self.tracer.span("CheckHasPIN", profile_id=profile_id):
            return await self.get_pin(profile_id) is not None
