"""
PIN API Endpoints

Set, reset and change a user's PIN.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from onboarding.modules.users.services.pin_service import UserPinService
from onboarding.modules.users.auth.middleware import get_current_uid
from onboarding.modules.users.api.errors import to_http_exception

logger = logging.getLogger("onboarding.users.api.pin")

router = APIRouter(prefix="/api/onboarding/pin", tags=["pin"])


# Request Models
class SetPINRequest(BaseModel):
    phone: str
    pin: str


class RequestPINResetRequest(BaseModel):
    phone: str
    app_id: Optional[str] = None


class ResetPINRequest(BaseModel):
    phone: str
    pin: str
    otp: str


class ChangePINRequest(BaseModel):
    phone: str
    pin: str


# Service instance
_pin_service = UserPinService()


@router.post("/set")
async def set_pin(
    request: SetPINRequest,
    uid: str = Depends(get_current_uid)
):
    """Create the first PIN for the caller's own profile. Existing PINs are never replaced here."""
    try:
        success = await _pin_service.set_user_pin(request.pin, request.phone, uid=uid)
        return {"success": success}
    except Exception as e:
        logger.error(f"[pin_endpoints.set_pin] ERROR: {e}")
        raise to_http_exception(e)


@router.post("/request-reset")
async def request_pin_reset(request: RequestPINResetRequest):
    """Send a PIN reset OTP to a registered phone number."""
    try:
        await _pin_service.request_pin_reset(request.phone, request.app_id)
        return {"success": True}
    except Exception as e:
        logger.error(f"[pin_endpoints.request_pin_reset] ERROR: {e}")
        raise to_http_exception(e)


@router.post("/reset")
async def reset_pin(request: ResetPINRequest):
    try:
        result = await _pin_service.reset_user_pin(request.phone, request.pin, request.otp)
        return {"success": True, "profile_id": result.profile_id}
    except Exception as e:
        logger.error(f"[pin_endpoints.reset_pin] ERROR: {e}")
        raise to_http_exception(e)


@router.post("/change")
async def change_pin(
    request: ChangePINRequest,
    uid: str = Depends(get_current_uid)
):
    """Change the PIN of an authenticated user."""
    logger.debug(f"[pin_endpoints.change_pin] uid={uid}")
    try:
        result = await _pin_service.change_user_pin(request.phone, request.pin, uid=uid)
        return {"success": True, "profile_id": result.profile_id}
    except Exception as e:
        logger.error(f"[pin_endpoints.change_pin] ERROR: {e}")
        raise to_http_exception(e)
