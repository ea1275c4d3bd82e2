"""
Sign Up Service

Turns a verified phone number into a usable account and manages the
self-service parts of a profile afterwards.

Account creation is an ordered saga, not a transaction: once the OTP gate
has passed, each step is persisted as it completes and a later failure
leaves the earlier steps in place. Identity creation is idempotent, so a
failed signup can simply be retried.
"""
import logging
from string import Formatter
from typing import Any, Dict, List, Optional
from uuid import uuid4

from onboarding.modules.users.constants import MIN_PUSH_TOKEN_LENGTH, WELCOME_MESSAGE
from onboarding.modules.users.domain.navigation import ALL_NAVIGATION_ACTIONS
from onboarding.modules.users.domain.profile import (
    AccountRecoveryPhones,
    BioData,
    RegisterUserInput,
    UserProfile,
    UserResponse,
)
from onboarding.modules.users.domain.roles import RoleType, get_user_permissions
from onboarding.modules.users.engagement.notification_service import NotificationService
from onboarding.modules.users.engagement.otp_client import OTPClient
from onboarding.modules.users.exceptions import (
    InvalidNavActionError,
    InvalidPushTokenError,
    InvalidWelcomeMessageError,
    NotificationDeliveryFailedError,
    OTPDispatchFailedError,
    OTPVerificationFailedError,
    PersistenceError,
    PhoneNumberInUseError,
    ProfileCreationFailedError,
    ProfileNotFoundError,
    ProfileSuspendedError,
    RecordNotFoundError,
    UserNotFoundError,
    ensure_onboarding_error,
)
from onboarding.modules.users.repositories.identity_repository import IdentityRepository
from onboarding.modules.users.repositories.profile_repository import ProfileRepository
from onboarding.modules.users.repositories.role_repository import RoleRepository
from onboarding.modules.users.services.msisdn import mask_phone_numbers, normalize_msisdn
from onboarding.modules.users.services.navigation import get_user_navigation_actions
from onboarding.modules.users.services.pin_service import UserPinService, validate_pin
from onboarding.modules.users.tracing import Tracer, default_tracer

logger = logging.getLogger("onboarding.users.signup")

WELCOME_MESSAGE_FIELDS = {"name", "pin"}


def validate_welcome_message(template: str) -> None:
    """Raises InvalidWelcomeMessageError unless `template` formats with {pin} and optionally {name}."""
    try:
        fields = {field for _, field, _, _ in Formatter().parse(template) if field is not None}
        template.format(name="", pin="")
    except (KeyError, IndexError, ValueError) as e:
        raise InvalidWelcomeMessageError(cause=e)
    if "pin" not in fields or not fields <= WELCOME_MESSAGE_FIELDS:
        raise InvalidWelcomeMessageError()


class SignUpService:
    """Service for signup and self-service profile logic."""

    def __init__(
        self,
        profile_repository: Optional[ProfileRepository] = None,
        identity_repository: Optional[IdentityRepository] = None,
        role_repository: Optional[RoleRepository] = None,
        pin_service: Optional[UserPinService] = None,
        otp_client: Optional[OTPClient] = None,
        notification_service: Optional[NotificationService] = None,
        tracer: Optional[Tracer] = None,
    ):
        self.profile_repository = profile_repository or ProfileRepository()
        self.identity_repository = identity_repository or IdentityRepository()
        self.role_repository = role_repository or RoleRepository()
        self.otp_client = otp_client or OTPClient()
        self.tracer = tracer or default_tracer
        self.pin_service = pin_service or UserPinService(
            profile_repository=self.profile_repository,
            otp_client=self.otp_client,
            tracer=self.tracer,
        )
        self.notification_service = notification_service or NotificationService()

    async def _get_profile_by_uid(self, uid: str) -> UserProfile:
        try:
            profile = await self.profile_repository.get_by_uid(uid)
        except RecordNotFoundError:
            profile = None
        except Exception as e:
            raise PersistenceError(cause=e)
        if profile is None:
            raise ProfileNotFoundError(f"no profile for user {uid}")
        if profile.suspended:
            raise ProfileSuspendedError()
        return profile

    async def _ensure_phone_available(self, msisdn: str) -> None:
        try:
            exists = await self.profile_repository.check_phone_exists(msisdn)
        except Exception as e:
            raise PersistenceError(cause=e)
        if exists:
            raise PhoneNumberInUseError()

    async def verify_phone_number(self, phone: str, app_id: Optional[str] = None) -> Dict[str, Any]:
        """Send a signup OTP to a phone number that is not yet registered."""
        with self.tracer.span("VerifyPhoneNumber"):
            msisdn = normalize_msisdn(phone)
            await self._ensure_phone_available(msisdn)

            try:
                otp_response = await self.otp_client.generate_and_send(msisdn, app_id)
            except Exception as e:
                logger.error(f"[SignUpService.verify_phone_number] OTP dispatch failed: {e}")
                raise OTPDispatchFailedError(cause=e)

            logger.info("[SignUpService.verify_phone_number] signup OTP sent")
            return otp_response

    async def create_account(
        self,
        phone: str,
        pin: str,
        otp: str,
        bio_data: Optional[BioData] = None,
        role_ids: Optional[List[str]] = None,
    ) -> UserResponse:
        """
        Create a consumer account for a phone number whose OTP the caller supplies.

        Nothing is written unless the OTP verifies. After that, each step is
        persisted independently and any failure is surfaced as an
        OnboardingError without undoing earlier steps.
        """
        with self.tracer.span("CreateAccount"):
            msisdn = normalize_msisdn(phone)
            validate_pin(pin)
            await self._ensure_phone_available(msisdn)

            try:
                verified = await self.otp_client.verify(msisdn, otp)
            except Exception as e:
                raise OTPVerificationFailedError(cause=e)
            if not verified:
                raise OTPVerificationFailedError()

            role_ids = list(role_ids or [])
            try:
                identity = await self.identity_repository.get_or_create_phone_user(msisdn)

                try:
                    profile = await self.profile_repository.create(UserProfile(
                        id=str(uuid4()),
                        uid=identity.uid,
                        primary_phone=msisdn,
                        bio_data=bio_data or BioData(),
                        role=RoleType.CONSUMER.value,
                        roles=role_ids,
                    ))
                except Exception as e:
                    logger.error(f"[SignUpService.create_account] profile creation failed: {e}", exc_info=True)
                    raise ProfileCreationFailedError(cause=e)

                auth = await self.identity_repository.generate_auth_credentials(msisdn, profile)
                await self.pin_service.set_user_pin(pin, profile)
                settings = await self.profile_repository.set_communication_settings(
                    profile.id,
                    allow_whatsapp=True,
                    allow_text_sms=True,
                    allow_push=True,
                    allow_email=True,
                )

                roles = await self.role_repository.get_by_ids(role_ids)
                auth.scopes = get_user_permissions(roles)
                nav_actions = get_user_navigation_actions(profile, roles)
            except Exception as e:
                err = ensure_onboarding_error(e)
                logger.error(f"[SignUpService.create_account] ERROR: {err.message}")
                raise err

            logger.info(f"[SignUpService.create_account] created profile {profile.id}")
            return UserResponse(
                profile=profile,
                communication_settings=settings,
                auth=auth,
                nav_actions=nav_actions,
            )

    async def register_user(self, acting_uid: str, registration: RegisterUserInput) -> UserProfile:
        """
        Register a consumer on their behalf. The user receives a temporary PIN
        by SMS and must change it on first login.

        A custom welcome message is a str.format template with a {pin} field
        and optionally {name}; it is checked before anything is written.
        """
        with self.tracer.span("RegisterUser"):
            if not acting_uid:
                raise UserNotFoundError()
            template = registration.welcome_message or WELCOME_MESSAGE
            validate_welcome_message(template)

            # CreatedByID is only stamped when the acting user has a profile
            created_by_id = None
            try:
                creator = await self.profile_repository.get_by_uid(acting_uid)
                if creator:
                    created_by_id = creator.id
            except RecordNotFoundError:
                pass
            except Exception as e:
                raise PersistenceError(cause=e)

            msisdn = normalize_msisdn(registration.phone_number)

            try:
                identity = await self.identity_repository.get_or_create_phone_user(msisdn)
                try:
                    profile = await self.profile_repository.create(UserProfile(
                        id=str(uuid4()),
                        uid=identity.uid,
                        primary_phone=msisdn,
                        primary_email=registration.email,
                        bio_data=registration.bio_data(),
                        role=RoleType.CONSUMER.value,
                        roles=list(registration.role_ids),
                        created_by_id=created_by_id,
                    ))
                except Exception as e:
                    raise ProfileCreationFailedError(cause=e)

                await self.profile_repository.set_communication_settings(
                    profile.id,
                    allow_whatsapp=True,
                    allow_text_sms=True,
                    allow_push=True,
                    allow_email=True,
                )
                temp_pin = await self.pin_service.set_user_temp_pin(profile.id)
                message = template.format(name=registration.first_name, pin=temp_pin)

                try:
                    await self.notification_service.send_sms([msisdn], message)
                except Exception as e:
                    raise NotificationDeliveryFailedError("unable to send consumer registration message", cause=e)
            except Exception as e:
                err = ensure_onboarding_error(e)
                logger.error(f"[SignUpService.register_user] ERROR: {err.message}")
                raise err

            logger.info(f"[SignUpService.register_user] registered profile {profile.id}")
            return profile

    async def update_user_profile(self, uid: str, bio_data: BioData) -> UserProfile:
        """Merge the supplied bio data fields into the user's profile."""
        with self.tracer.span("UpdateUserProfile"):
            profile = await self._get_profile_by_uid(uid)
            profile.bio_data = profile.bio_data.merged(bio_data)
            try:
                await self.profile_repository.update_bio_data(profile.id, profile.bio_data)
            except Exception as e:
                raise PersistenceError(cause=e)
            return profile

    async def register_push_token(self, uid: str, token: str) -> bool:
        with self.tracer.span("RegisterPushToken"):
            if not token or len(token) < MIN_PUSH_TOKEN_LENGTH:
                raise InvalidPushTokenError()
            profile = await self._get_profile_by_uid(uid)
            if token in profile.push_tokens:
                return True
            try:
                return await self.profile_repository.update_push_tokens(profile.id, profile.push_tokens + [token])
            except Exception as e:
                raise PersistenceError(cause=e)

    async def retire_push_token(self, uid: str, token: str) -> bool:
        with self.tracer.span("RetirePushToken"):
            if not token or len(token) < MIN_PUSH_TOKEN_LENGTH:
                raise InvalidPushTokenError()
            profile = await self._get_profile_by_uid(uid)
            if token not in profile.push_tokens:
                return True
            remaining = [t for t in profile.push_tokens if t != token]
            try:
                return await self.profile_repository.update_push_tokens(profile.id, remaining)
            except Exception as e:
                raise PersistenceError(cause=e)

    async def save_favorite_nav_action(self, uid: str, title: str) -> bool:
        """Mark a navigation action as a favourite. Titles must name a known action."""
        with self.tracer.span("SaveFavoriteNavAction"):
            if title not in {action.title for action in ALL_NAVIGATION_ACTIONS}:
                raise InvalidNavActionError(f"unknown navigation action {title!r}")
            profile = await self._get_profile_by_uid(uid)
            if title in profile.fav_nav_actions:
                return True
            try:
                return await self.profile_repository.update_fav_nav_actions(
                    profile.id, profile.fav_nav_actions + [title]
                )
            except Exception as e:
                raise PersistenceError(cause=e)

    async def delete_favorite_nav_action(self, uid: str, title: str) -> bool:
        with self.tracer.span("DeleteFavoriteNavAction"):
            profile = await self._get_profile_by_uid(uid)
            if title not in profile.fav_nav_actions:
                return True
            remaining = [t for t in profile.fav_nav_actions if t != title]
            try:
                return await self.profile_repository.update_fav_nav_actions(profile.id, remaining)
            except Exception as e:
                raise PersistenceError(cause=e)

    async def get_user_recovery_phone_numbers(self, phone: str) -> AccountRecoveryPhones:
        """Phone numbers on the account that owns `phone`, masked and unmasked."""
        with self.tracer.span("GetUserRecoveryPhoneNumbers"):
            msisdn = normalize_msisdn(phone)
            try:
                profile = await self.profile_repository.get_by_phone_number(msisdn)
            except RecordNotFoundError:
                profile = None
            except Exception as e:
                raise PersistenceError(cause=e)
            if profile is None:
                raise ProfileNotFoundError(f"no profile for phone number {msisdn}")
            if profile.suspended:
                raise ProfileSuspendedError()

            phones =[profile.primary_phone] + [p for p in profile.secondary_phone_numbers if p != profile.primary_phone]
            return AccountRecoveryPhones(
                masked_phone_numbers=mask_phone_numbers(phones),
                unmasked_phone_numbers=phones,
            )

    async def remove_user_by_phone_number(self, phone: str) -> bool:
        """Hard delete an account. Intended for cleaning up test accounts."""
        with self.tracer.span("RemoveUserByPhoneNumber"):
            msisdn = normalize_msisdn(phone)
            try:
                removed = await self.profile_repository.purge_by_phone(msisdn)
            except Exception as e:
                raise PersistenceError(cause=e)
            if not removed:
                raise ProfileNotFoundError(f"no profile for phone number {msisdn}")
            logger.info("[SignUpService.remove_user_by_phone_number] removed account")
            return True
