"""
Sign Up API Endpoints

Phone verification, account creation and self-service profile updates.
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from onboarding.modules.users.domain.profile import RegisterUserInput
from onboarding.modules.users.domain.roles import CAN_REMOVE_USER
from onboarding.modules.users.services.signup_service import SignUpService
from onboarding.modules.users.auth.middleware import get_current_uid
from onboarding.modules.users.auth.permissions import require_permission
from onboarding.modules.users.api.errors import to_http_exception
from onboarding.modules.users.api.schemas import BioDataRequest, RegistrationRequest

logger = logging.getLogger("onboarding.users.api.signup")

router = APIRouter(prefix="/api/onboarding/signup", tags=["signup"])


# Request Models
class VerifyPhoneRequest(BaseModel):
    phone: str
    app_id: Optional[str] = None


class CreateAccountRequest(BaseModel):
    phone: str
    pin: str
    otp: str
    bio_data: Optional[BioDataRequest] = None
    role_ids: List[str] = []


class RegisterUserRequest(RegistrationRequest):
    welcome_message: Optional[str] = None


class PhoneRequest(BaseModel):
    phone: str


class PushTokenRequest(BaseModel):
    token: str


class NavActionRequest(BaseModel):
    title: str


# Service instance
_signup_service = SignUpService()


@router.post("/verify-phone")
async def verify_phone(request: VerifyPhoneRequest):
    """Send a signup OTP to a phone number that is not registered yet."""
    try:
        await _signup_service.verify_phone_number(request.phone, request.app_id)
        return {"success": True}
    except Exception as e:
        logger.error(f"[signup_endpoints.verify_phone] ERROR: {e}")
        raise to_http_exception(e)


@router.post("/create-account")
async def create_account(request: CreateAccountRequest):
    """
    Create an account for a verified phone number.

    Returns the profile, communication settings, session credentials and
    navigation actions.
    """
    try:
        response = await _signup_service.create_account(
            phone=request.phone,
            pin=request.pin,
            otp=request.otp,
            bio_data=request.bio_data.to_domain() if request.bio_data else None,
            role_ids=request.role_ids,
        )
        return response.to_dict()
    except Exception as e:
        logger.error(f"[signup_endpoints.create_account] ERROR: {e}")
        raise to_http_exception(e)


@router.post("/register-user")
async def register_user(
    request: RegisterUserRequest,
    uid: str = Depends(get_current_uid)
):
    """Register a consumer on their behalf; they receive a temporary PIN by SMS."""
    try:
        profile = await _signup_service.register_user(uid, RegisterUserInput(
            phone_number=request.phone_number,
            first_name=request.first_name,
            last_name=request.last_name,
            gender=request.gender,
            date_of_birth=request.date_of_birth,
            email=request.email,
            role_ids=request.role_ids,
            welcome_message=request.welcome_message,
        ))
        return profile.to_dict()
    except Exception as e:
        logger.error(f"[signup_endpoints.register_user] ERROR: {e}")
        raise to_http_exception(e)


@router.post("/recovery-phones")
async def recovery_phones(request: PhoneRequest):
    try:
        phones = await _signup_service.get_user_recovery_phone_numbers(request.phone)
        return {
            "masked_phone_numbers": phones.masked_phone_numbers,
            "unmasked_phone_numbers": phones.unmasked_phone_numbers,
        }
    except Exception as e:
        logger.error(f"[signup_endpoints.recovery_phones] ERROR: {e}")
        raise to_http_exception(e)


@router.post("/update-profile")
async def update_profile(
    request: BioDataRequest,
    uid: str = Depends(get_current_uid)
):
    """Update the caller's bio data. Fields left out are kept."""
    try:
        profile = await _signup_service.update_user_profile(uid, request.to_domain())
        return profile.to_dict()
    except Exception as e:
        logger.error(f"[signup_endpoints.update_profile] ERROR: {e}")
        raise to_http_exception(e)


@router.post("/push-tokens")
async def register_push_token(
    request: PushTokenRequest,
    uid: str = Depends(get_current_uid)
):
    try:
        success = await _signup_service.register_push_token(uid, request.token)
        return {"success": success}
    except Exception as e:
        logger.error(f"[signup_endpoints.register_push_token] ERROR: {e}")
        raise to_http_exception(e)


@router.post("/push-tokens/retire")
async def retire_push_token(
    request: PushTokenRequest,
    uid: str = Depends(get_current_uid)
):
    try:
        success = await _signup_service.retire_push_token(uid, request.token)
        return {"success": success}
    except Exception as e:
        logger.error(f"[signup_endpoints.retire_push_token] ERROR: {e}")
        raise to_http_exception(e)


@router.post("/favorite-nav-actions")
async def save_favorite_nav_action(
    request: NavActionRequest,
    uid: str = Depends(get_current_uid)
):
    try:
        success = await _signup_service.save_favorite_nav_action(uid, request.title)
        return {"success": success}
    except Exception as e:
        logger.error(f"[signup_endpoints.save_favorite_nav_action] ERROR: {e}")
        raise to_http_exception(e)


@router.post("/favorite-nav-actions/remove")
async def delete_favorite_nav_action(
    request: NavActionRequest,
    uid: str = Depends(get_current_uid)
):
    try:
        success = await _signup_service.delete_favorite_nav_action(uid, request.title)
        return {"success": success}
    except Exception as e:
        logger.error(f"[signup_endpoints.delete_favorite_nav_action] ERROR: {e}")
        raise to_http_exception(e)


@router.post("/remove-user")
async def remove_user(
    request: PhoneRequest,
    uid: str = Depends(require_permission(CAN_REMOVE_USER))
):
    """
    Hard delete an account. Meant for test environments: the user.remove
    scope is not part of any default role and has to be granted explicitly.
    """
    logger.info(f"[signup_endpoints.remove_user] requested by uid={uid}")
    try:
        success = await _signup_service.remove_user_by_phone_number(request.phone)
        return {"success": success}
    except Exception as e:
        logger.error(f"[signup_endpoints.remove_user] ERROR: {e}")
        raise to_http_exception(e)
