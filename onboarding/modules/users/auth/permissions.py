"""
Permission Utilities

Scope checks for the calling user.
"""
import logging
from fastapi import HTTPException, Depends
from onboarding.modules.users.repositories.profile_repository import ProfileRepository
from onboarding.modules.users.auth.middleware import get_current_uid

logger = logging.getLogger("onboarding.users.permissions")

_profile_repository = ProfileRepository()


async def check_permission(uid: str, permission: str) -> bool:
    """
    Check if the user behind `uid` holds a permission scope, either directly
    on the profile or through an active role.
    """
    return await _profile_repository.check_permission(uid, permission)


def require_permission(permission: str):
    """
    FastAPI dependency factory to require a specific permission scope.

    Usage:
        @router.get("/admins")
        async def list_admins(uid: str = Depends(require_permission(CAN_VIEW_EMPLOYEES))):
            ...
    """
    async def permission_checker(uid: str = Depends(get_current_uid)) -> str:
        if not await check_permission(uid, permission):
            logger.info(f"[permissions.require_permission] uid={uid} lacks {permission}")
            raise HTTPException(
                status_code=403,
                detail=f"Permission '{permission}' required"
            )
        return uid

    return permission_checker
