"""
Admin API Endpoints

Registration, listing and activation of staff accounts.
"""
import logging
from fastapi import APIRouter, Depends
from onboarding.modules.users.domain.profile import RegisterAdminInput
from onboarding.modules.users.domain.roles import CAN_VIEW_EMPLOYEES
from onboarding.modules.users.services.admin_service import AdminService
from onboarding.modules.users.auth.middleware import get_current_uid
from onboarding.modules.users.auth.permissions import require_permission
from onboarding.modules.users.api.errors import to_http_exception
from onboarding.modules.users.api.schemas import RegistrationRequest

logger = logging.getLogger("onboarding.users.api.admin")

router = APIRouter(prefix="/api/onboarding/admin", tags=["admin"])

# Service instance
_admin_service = AdminService()


@router.post("/register")
async def register_admin(
    request: RegistrationRequest,
    uid: str = Depends(get_current_uid)
):
    """
    Register a staff account.

    The new admin receives a temporary PIN by SMS and, if an email is given,
    by email.
    """
    try:
        profile = await _admin_service.register_admin(uid, RegisterAdminInput(
            phone_number=request.phone_number,
            first_name=request.first_name,
            last_name=request.last_name,
            gender=request.gender,
            date_of_birth=request.date_of_birth,
            email=request.email,
            role_ids=request.role_ids,
        ))
        return profile.to_dict()
    except Exception as e:
        logger.error(f"[admin_endpoints.register_admin] ERROR: {e}")
        raise to_http_exception(e)


@router.get("")
async def list_admins(uid: str = Depends(require_permission(CAN_VIEW_EMPLOYEES))):
    """List staff accounts with their pending-PIN flag."""
    logger.debug(f"[admin_endpoints.list_admins] uid={uid}")
    try:
        admins = await _admin_service.fetch_admins()
        return {
            "admins": [admin.to_dict() for admin in admins],
            "count": len(admins),
        }
    except Exception as e:
        logger.error(f"[admin_endpoints.list_admins] ERROR: {e}")
        raise to_http_exception(e)


@router.post("/{profile_id}/activate")
async def activate_admin(profile_id: str, uid: str = Depends(get_current_uid)):
    try:
        success = await _admin_service.activate_admin(uid, profile_id)
        return {"success": success}
    except Exception as e:
        logger.error(f"[admin_endpoints.activate_admin] ERROR: {e}")
        raise to_http_exception(e)


@router.post("/{profile_id}/deactivate")
async def deactivate_admin(profile_id: str, uid: str = Depends(get_current_uid)):
    try:
        success = await _admin_service.deactivate_admin(uid, profile_id)
        return {"success": success}
    except Exception as e:
        logger.error(f"[admin_endpoints.deactivate_admin] ERROR: {e}")
        raise to_http_exception(e)
