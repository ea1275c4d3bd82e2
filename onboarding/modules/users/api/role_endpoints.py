"""
Role API Endpoints

Role creation, listing, assignment and revocation. Permission scopes are
checked by the role service against the calling user.
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from onboarding.modules.users.services.role_service import RoleService
from onboarding.modules.users.auth.middleware import get_current_uid
from onboarding.modules.users.api.errors import to_http_exception

logger = logging.getLogger("onboarding.users.api.roles")

router = APIRouter(prefix="/api/onboarding/roles", tags=["roles"])


# Request Models
class CreateRoleRequest(BaseModel):
    name: str
    scopes: List[str] = []
    description: str = ""


class AssignRoleRequest(BaseModel):
    profile_id: str
    role_id: str


class RevokeRoleRequest(AssignRoleRequest):
    reason: Optional[str] = None


# Service instance
_role_service = RoleService()


@router.post("")
async def create_role(
    request: CreateRoleRequest,
    uid: str = Depends(get_current_uid)
):
    try:
        role = await _role_service.create_role(uid, request.name, request.scopes, request.description)
        return role.to_dict()
    except Exception as e:
        logger.error(f"[role_endpoints.create_role] ERROR: {e}")
        raise to_http_exception(e)


@router.get("")
async def list_roles(uid: str = Depends(get_current_uid)):
    try:
        roles = await _role_service.get_all_roles(uid)
        return {
            "roles": [role.to_dict() for role in roles],
            "count": len(roles),
        }
    except Exception as e:
        logger.error(f"[role_endpoints.list_roles] ERROR: {e}")
        raise to_http_exception(e)


@router.post("/assign")
async def assign_role(
    request: AssignRoleRequest,
    uid: str = Depends(get_current_uid)
):
    try:
        success = await _role_service.assign_role(uid, request.profile_id, request.role_id)
        return {"success": success}
    except Exception as e:
        logger.error(f"[role_endpoints.assign_role] ERROR: {e}")
        raise to_http_exception(e)


@router.post("/revoke")
async def revoke_role(
    request: RevokeRoleRequest,
    uid: str = Depends(get_current_uid)
):
    try:
        success = await _role_service.revoke_role(uid, request.profile_id, request.role_id, request.reason)
        return {"success": success}
    except Exception as e:
        logger.error(f"[role_endpoints.revoke_role] ERROR: {e}")
        raise to_http_exception(e)
