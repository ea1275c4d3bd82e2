"""
Admin Service

Registration, listing and activation of administrator (staff) accounts.
"""
import logging
from typing import List, Optional
from uuid import uuid4

from onboarding.modules.users import constants
from onboarding.modules.users.domain.profile import Admin, RegisterAdminInput, SupplierProfile, UserProfile
from onboarding.modules.users.domain.roles import CAN_REMOVE_EMPLOYEE, RoleType
from onboarding.modules.users.engagement.notification_service import (
    NotificationService,
    render_admin_welcome_email,
)
from onboarding.modules.users.exceptions import (
    InternalServerError,
    NotificationDeliveryFailedError,
    PermissionDeniedError,
    PersistenceError,
    ProfileCreationFailedError,
    ProfileNotFoundError,
    ProfileSuspendedError,
    RecordNotFoundError,
    UserNotFoundError,
    ensure_onboarding_error,
)
from onboarding.modules.users.repositories.identity_repository import IdentityRepository
from onboarding.modules.users.repositories.profile_repository import ProfileRepository
from onboarding.modules.users.repositories.supplier_repository import SupplierRepository
from onboarding.modules.users.services.msisdn import normalize_msisdn
from onboarding.modules.users.services.pin_service import UserPinService
from onboarding.modules.users.tracing import Tracer, default_tracer

logger = logging.getLogger("onboarding.users.admin")


class AdminService:
    """Service for administrator business logic."""

    def __init__(
        self,
        profile_repository: Optional[ProfileRepository] = None,
        identity_repository: Optional[IdentityRepository] = None,
        supplier_repository: Optional[SupplierRepository] = None,
        pin_service: Optional[UserPinService] = None,
        notification_service: Optional[NotificationService] = None,
        tracer: Optional[Tracer] = None,
    ):
        self.profile_repository = profile_repository or ProfileRepository()
        self.identity_repository = identity_repository or IdentityRepository()
        self.supplier_repository = supplier_repository or SupplierRepository()
        self.tracer = tracer or default_tracer
        self.pin_service = pin_service or UserPinService(
            profile_repository=self.profile_repository,
            tracer=self.tracer,
        )
        self.notification_service = notification_service or NotificationService()

    async def _get_acting_profile(self, acting_uid: str) -> UserProfile:
        if not acting_uid:
            raise UserNotFoundError()
        try:
            profile = await self.profile_repository.get_by_uid(acting_uid)
        except RecordNotFoundError:
            profile = None
        except Exception as e:
            raise PersistenceError(cause=e)
        if profile is None:
            raise UserNotFoundError(f"no profile for user {acting_uid}")
        if profile.suspended:
            raise ProfileSuspendedError()
        return profile

    async def _notify_new_admin(self, name: str, phone: str, emails: List[str], pin: str) -> None:
        try:
            await self.notification_service.send_sms([phone], constants.ADMIN_WELCOME_SMS.format(pin=pin))
        except Exception as e:
            logger.error(f"[AdminService._notify_new_admin] SMS failed: {e}")
            raise NotificationDeliveryFailedError("unable to send admin registration message", cause=e)

        if not emails:
            return
        body = render_admin_welcome_email(name, pin)
        for email in emails:
            try:
                await self.notification_service.send_email(email, body, constants.ADMIN_WELCOME_EMAIL_SUBJECT)
            except Exception as e:
                logger.error(f"[AdminService._notify_new_admin] email to {email} failed: {e}")
                raise NotificationDeliveryFailedError("unable to send admin registration email", cause=e)

    async def register_admin(self, acting_uid: str, registration: RegisterAdminInput) -> UserProfile:
        """
        Register a staff account.

        The acting user only has to exist and not be suspended; they are
        recorded as the creator.
        The new admin gets a temporary PIN by SMS (and email when an address
        is given). A failed notification fails the call but does not undo
        the account, which stays in place with its temporary PIN.
        """
        with self.tracer.span("RegisterAdmin"):
            msisdn = normalize_msisdn(registration.phone_number)
            creator = await self._get_acting_profile(acting_uid)
            logger.debug(f"[AdminService.register_admin] created_by={creator.id}")

            try:
                identity = await self.identity_repository.get_or_create_phone_user(msisdn)
                try:
                    profile = await self.profile_repository.create(UserProfile(
                        id=str(uuid4()),
                        uid=identity.uid,
                        primary_phone=msisdn,
                        primary_email=registration.email,
                        bio_data=registration.bio_data(),
                        role=RoleType.EMPLOYEE.value,
                        permissions=RoleType.EMPLOYEE.permissions(),
                        roles=list(registration.role_ids),
                        created_by_id=creator.id,
                    ))
                except Exception as e:
                    raise ProfileCreationFailedError(cause=e)

                try:
                    await self.profile_repository.create_empty_customer_profile(profile.id)
                    # Staff organizations skip partner verification
                    await self.supplier_repository.create(SupplierProfile(
                        id=str(uuid4()),
                        profile_id=profile.id,
                        organization_name=constants.ORGANIZATION_NAME,
                        organization_code=constants.ORGANIZATION_CODE,
                        is_organization_verified=True,
                        kyc_submitted=True,
                        partner_setup_complete=True,
                    ))
                except Exception as e:
                    raise InternalServerError(cause=e)

                await self.profile_repository.set_communication_settings(
                    profile.id,
                    allow_whatsapp=True,
                    allow_text_sms=True,
                    allow_push=True,
                    allow_email=True,
                )
                temp_pin = await self.pin_service.set_user_temp_pin(profile.id)

                emails = [registration.email] if registration.email else []
                await self._notify_new_admin(registration.first_name, msisdn, emails, temp_pin)
            except Exception as e:
                err = ensure_onboarding_error(e)
                logger.error(f"[AdminService.register_admin] ERROR: {err.message}")
                raise err

            logger.info(f"[AdminService.register_admin] registered admin {profile.id}")
            return profile

    async def fetch_admins(self) -> List[Admin]:
        """
        All staff profiles, each flagged with whether its PIN is still the
        temporary one. Any failed lookup fails the whole listing.
        """
        with self.tracer.span("FetchAdmins"):
            try:
                profiles = await self.profile_repository.list_by_role(RoleType.EMPLOYEE.value)
            except Exception as e:
                logger.error(f"[AdminService.fetch_admins] ERROR: {e}", exc_info=True)
                raise PersistenceError(cause=e)

            admins = []
            for profile in profiles:
                pin = await self.pin_service.get_pin(profile.id)
                admins.append(Admin.from_profile(profile, resend_pin=bool(pin and pin.is_otp)))
            return admins

    async def _set_suspended(self, acting_uid: str, profile_id: str, suspended: bool) -> bool:
        try:
            allowed = await self.profile_repository.check_permission(acting_uid, CAN_REMOVE_EMPLOYEE)
        except Exception as e:
            raise PersistenceError(cause=e)
        if not allowed:
            raise PermissionDeniedError()

        try:
            profile = await self.profile_repository.get_by_id(profile_id)
        except RecordNotFoundError:
            profile = None
        except Exception as e:
            raise PersistenceError(cause=e)
        if profile is None:
            raise ProfileNotFoundError(f"no profile with id {profile_id}")

        try:
            updated = await self.profile_repository.update_suspended(profile.id, suspended)
        except Exception as e:
            raise PersistenceError(cause=e)
        logger.info(f"[AdminService._set_suspended] profile={profile.id}, suspended={suspended}")
        return updated

    async def activate_admin(self, acting_uid: str, profile_id: str) -> bool:
        with self.tracer.span("ActivateAdmin", profile_id=profile_id):
            return await self._set_suspended(acting_uid, profile_id, False)

    async def deactivate_admin(self, acting_uid: str, profile_id: str) -> bool:
        with self.tracer.span("DeactivateAdmin", profile_id=profile_id):
            return await self._set_suspended(acting_uid, profile_id, True)
