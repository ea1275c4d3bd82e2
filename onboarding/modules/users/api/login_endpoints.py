"""
Login API Endpoints
"""
import logging
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from onboarding.modules.users.services.login_service import LoginService
from onboarding.modules.users.auth.middleware import get_current_uid
from onboarding.modules.users.api.errors import to_http_exception

logger = logging.getLogger("onboarding.users.api.login")

router = APIRouter(prefix="/api/onboarding/login", tags=["login"])


class PhoneLoginRequest(BaseModel):
    phone: str
    pin: str


class ResumeRequest(BaseModel):
    pin: str


class RefreshRequest(BaseModel):
    refresh_token: str


# Service instance
_login_service = LoginService()


@router.post("/phone")
async def login_by_phone(request: PhoneLoginRequest):
    try:
        response = await _login_service.login_by_phone(request.phone, request.pin)
        return response.to_dict()
    except Exception as e:
        logger.error(f"[login_endpoints.login_by_phone] ERROR: {e}")
        raise to_http_exception(e)


@router.post("/resume")
async def resume_with_pin(request: ResumeRequest, uid: str = Depends(get_current_uid)):
    """Confirm the PIN of an already signed-in user. A wrong PIN yields matched=false."""
    try:
        matched = await _login_service.resume_with_pin(uid, request.pin)
        return {"matched": matched}
    except Exception as e:
        logger.error(f"[login_endpoints.resume_with_pin] ERROR: {e}")
        raise to_http_exception(e)


@router.post("/refresh")
async def refresh_token(request: RefreshRequest):
    try:
        credentials = await _login_service.refresh_token(request.refresh_token)
        return credentials.to_dict()
    except Exception as e:
        logger.error(f"[login_endpoints.refresh_token] ERROR: {e}")
        raise to_http_exception(e)
