"""
Role Service

Creation and listing of roles, and assigning roles to or revoking them from
user profiles. Every operation is gated on a permission scope held by the
acting user.
"""
import logging
from typing import List, Optional
from uuid import uuid4

from onboarding.modules.users.domain.profile import UserProfile
from onboarding.modules.users.domain.roles import (
    CAN_ASSIGN_ROLE,
    CAN_CREATE_ROLE,
    CAN_VIEW_ROLE,
    Role,
)
from onboarding.modules.users.exceptions import (
    InvalidInputError,
    PermissionDeniedError,
    PersistenceError,
    ProfileNotFoundError,
    RecordNotFoundError,
    RoleNameInUseError,
    RoleNotFoundError,
)
from onboarding.modules.users.repositories.profile_repository import ProfileRepository
from onboarding.modules.users.repositories.role_repository import RoleRepository
from onboarding.modules.users.tracing import Tracer, default_tracer

logger = logging.getLogger("onboarding.users.roles")


class RoleService:
    """Service for role management logic."""

    def __init__(
        self,
        profile_repository: Optional[ProfileRepository] = None,
        role_repository: Optional[RoleRepository] = None,
        tracer: Optional[Tracer] = None,
    ):
        self.role_repository = role_repository or RoleRepository()
        self.profile_repository = profile_repository or ProfileRepository(role_repository=self.role_repository)
        self.tracer = tracer or default_tracer

    async def _require(self, acting_uid: str, permission: str) -> None:
        try:
            allowed = await self.profile_repository.check_permission(acting_uid, permission)
        except Exception as e:
            raise PersistenceError(cause=e)
        if not allowed:
            logger.info(f"[RoleService._require] uid={acting_uid} lacks {permission}")
            raise PermissionDeniedError()

    async def _get_role(self, role_id: str) -> Role:
        try:
            role = await self.role_repository.get_by_id(role_id)
        except RecordNotFoundError:
            role = None
        except Exception as e:
            raise PersistenceError(cause=e)
        if role is None:
            raise RoleNotFoundError(f"role not found: {role_id}")
        return role

    async def _get_profile(self, profile_id: str) -> UserProfile:
        try:
            profile = await self.profile_repository.get_by_id(profile_id)
        except RecordNotFoundError:
            profile = None
        except Exception as e:
            raise PersistenceError(cause=e)
        if profile is None:
            raise ProfileNotFoundError(f"no profile with id {profile_id}")
        return profile

    async def _save_roles(self, profile: UserProfile, role_ids: List[str]) -> bool:
        try:
            return await self.profile_repository.update_roles(profile.id, role_ids)
        except Exception as e:
            raise PersistenceError(cause=e)

    async def create_role(
        self,
        acting_uid: str,
        name: str,
        scopes: List[str],
        description: str = "",
    ) -> Role:
        """Create an active role. Names are unique regardless of case."""
        with self.tracer.span("CreateRole"):
            await self._require(acting_uid, CAN_CREATE_ROLE)
            name = (name or "").strip()
            if not name:
                raise InvalidInputError("role name is required")

            try:
                exists = await self.role_repository.check_name_exists(name)
            except Exception as e:
                raise PersistenceError(cause=e)
            if exists:
                raise RoleNameInUseError(f"role with similar name exists: {name}")

            try:
                creator = await self.profile_repository.get_by_uid(acting_uid)
            except Exception as e:
                raise PersistenceError(cause=e)
            role = Role(
                id=str(uuid4()),
                name=name,
                scopes=list(dict.fromkeys(scopes)),
                description=description or "",
                created_by=creator.id if creator else None,
            )
            try:
                return await self.role_repository.create(role)
            except Exception as e:
                logger.error(f"[RoleService.create_role] ERROR: {e}", exc_info=True)
                raise PersistenceError(cause=e)

    async def get_all_roles(self, acting_uid: str) -> List[Role]:
        with self.tracer.span("GetAllRoles"):
            await self._require(acting_uid, CAN_VIEW_ROLE)
            try:
                return await self.role_repository.get_all()
            except Exception as e:
                raise PersistenceError(cause=e)

    async def assign_role(self, acting_uid: str, profile_id: str, role_id: str) -> bool:
        """Add a role to a profile. Assigning a role the profile already has is a no-op."""
        with self.tracer.span("AssignRole", profile_id=profile_id, role_id=role_id):
            await self._require(acting_uid, CAN_ASSIGN_ROLE)
            await self._get_role(role_id)
            profile = await self._get_profile(profile_id)
            if role_id in profile.roles:
                return True

            updated = await self._save_roles(profile, profile.roles + [role_id])
            logger.info(f"[RoleService.assign_role] role {role_id} assigned to profile {profile.id}")
            return updated

    async def revoke_role(
        self,
        acting_uid: str,
        profile_id: str,
        role_id: str,
        reason: Optional[str] = None,
    ) -> bool:
        with self.tracer.span("RevokeRole", profile_id=profile_id, role_id=role_id):
            await self._require(acting_uid, CAN_ASSIGN_ROLE)
            profile = await self._get_profile(profile_id)
            if role_id not in profile.roles:
                return True

            updated = await self._save_roles(profile, [r for r in profile.roles if r != role_id])
            logger.info(
                f"[RoleService.revoke_role] role {role_id} revoked from profile {profile.id}, reason={reason!r}"
            )
            return updated
