"""
Login Service

PIN based login, session resumption and token refresh.
"""
import asyncio
import logging
from typing import Optional

from onboarding.modules import crypto
from onboarding.modules.users.domain.profile import AuthCredentials, UserProfile, UserResponse
from onboarding.modules.users.domain.roles import get_user_permissions
from onboarding.modules.users.exceptions import (
    InvalidRefreshTokenError,
    PINMismatchError,
    PINNotFoundError,
    PersistenceError,
    ProfileNotFoundError,
    ProfileSuspendedError,
    RecordNotFoundError,
)
from onboarding.modules.users.repositories.identity_repository import IdentityRepository
from onboarding.modules.users.repositories.profile_repository import ProfileRepository
from onboarding.modules.users.repositories.role_repository import RoleRepository
from onboarding.modules.users.services.msisdn import normalize_msisdn
from onboarding.modules.users.services.navigation import get_user_navigation_actions
from onboarding.modules.users.services.pin_service import UserPinService
from onboarding.modules.users.tracing import Tracer, default_tracer

logger = logging.getLogger("onboarding.users.login")


class LoginService:
    """Service for login business logic."""

    def __init__(
        self,
        profile_repository: Optional[ProfileRepository] = None,
        identity_repository: Optional[IdentityRepository] = None,
        role_repository: Optional[RoleRepository] = None,
        pin_service: Optional[UserPinService] = None,
        tracer: Optional[Tracer] = None,
    ):
        self.profile_repository = profile_repository or ProfileRepository()
        self.identity_repository = identity_repository or IdentityRepository()
        self.role_repository = role_repository or RoleRepository()
        self.tracer = tracer or default_tracer
        self.pin_service = pin_service or UserPinService(
            profile_repository=self.profile_repository,
            tracer=self.tracer,
        )

    async def _lookup(self, coro) -> Optional[UserProfile]:
        try:
            profile = await coro
        except RecordNotFoundError:
            return None
        except Exception as e:
            raise PersistenceError(cause=e)
        if profile is not None and profile.suspended:
            logger.info(f"[LoginService._lookup] rejected suspended profile {profile.id}")
            raise ProfileSuspendedError()
        return profile

    async def _pin_matches(self, profile_id: str, raw_pin: str):
        pin = await self.pin_service.get_pin(profile_id)
        if pin is None:
            raise PINNotFoundError()
        matched = await asyncio.to_thread(crypto.compare_pin, raw_pin, pin.salt, pin.pin_hash)
        return matched, pin

    async def login_by_phone(self, phone: str, pin: str) -> UserResponse:
        """
        Authenticate with phone number and PIN.

        When the active PIN is a temporary one the returned credentials carry
        change_pin=True and the client must prompt for a new PIN.
        """
        with self.tracer.span("LoginByPhone"):
            msisdn = normalize_msisdn(phone)
            profile = await self._lookup(self.profile_repository.get_by_primary_phone(msisdn))
            if profile is None:
                raise ProfileNotFoundError(f"no profile for phone number {msisdn}")

            matched, pin_record = await self._pin_matches(profile.id, pin)
            if not matched:
                logger.info(f"[LoginService.login_by_phone] PIN mismatch for profile {profile.id}")
                raise PINMismatchError()

            try:
                auth = await self.identity_repository.generate_auth_credentials(msisdn, profile)
                settings = await self.profile_repository.get_communication_settings(profile.id)
                roles = await self.role_repository.get_by_ids(profile.roles)
            except Exception as e:
                logger.error(f"[LoginService.login_by_phone] ERROR: {e}", exc_info=True)
                raise PersistenceError(cause=e)

            auth.change_pin = pin_record.is_otp
            auth.scopes = get_user_permissions(roles)

            logger.info(f"[LoginService.login_by_phone] profile {profile.id} logged in")
            return UserResponse(
                profile=profile,
                communication_settings=settings,
                auth=auth,
                nav_actions=get_user_navigation_actions(profile, roles),
            )

    async def resume_with_pin(self, uid: str, pin: str) -> bool:
        """Re-check the PIN of an already-authenticated user. A mismatch is False, not an error."""
        with self.tracer.span("ResumeWithPin"):
            profile = await self._lookup(self.profile_repository.get_by_uid(uid))
            if profile is None:
                raise ProfileNotFoundError(f"no profile for user {uid}")
            matched, _ = await self._pin_matches(profile.id, pin)
            return matched

    async def refresh_token(self, token: str) -> AuthCredentials:
        """Exchange a refresh token. A suspended profile cannot extend its session."""
        with self.tracer.span("RefreshToken"):
            try:
                credentials = await self.identity_repository.exchange_refresh_token(token)
            except Exception as e:
                raise PersistenceError(cause=e)
            if credentials is None:
                raise InvalidRefreshTokenError()
            await self._lookup(self.profile_repository.get_by_uid(credentials.uid))
            return credentials
