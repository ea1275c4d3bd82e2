"""
Authentication Middleware

FastAPI dependencies that identify the calling user.
"""
import logging
from typing import Optional
from fastapi import HTTPException, Header, Depends
from onboarding.modules.users.repositories.identity_repository import IdentityRepository

logger = logging.getLogger("onboarding.users.auth")


# Singleton instance
_identity_repository = IdentityRepository()


async def get_uid_from_header(
    x_user_id: Optional[str] = Header(None, alias="X-User-ID")
) -> Optional[str]:
    """Extract the caller's uid from the X-User-ID header (set by the gateway)."""
    return x_user_id


async def get_bearer_token(
    authorization: Optional[str] = Header(None)
) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


async def get_optional_uid(
    header_uid: Optional[str] = Depends(get_uid_from_header),
    token: Optional[str] = Depends(get_bearer_token),
) -> Optional[str]:
    """
    Caller uid if identified, None otherwise.

    A bearer session token issued at login is verified against the session
    store and is authoritative whenever it is sent: an unknown or expired
    token identifies nobody, whatever X-User-ID says. X-User-ID is only read
    when no token is sent, and is trusted as-is; deployments must have the
    gateway strip it from client traffic.
    """
    if token:
        uid = await _identity_repository.get_uid_by_access_token(token)
        if not uid:
            logger.debug("[auth.get_optional_uid] unknown or expired session token")
            return None
        if header_uid and header_uid != uid:
            logger.warning(f"[auth.get_optional_uid] X-User-ID {header_uid} ignored for session uid {uid}")
        return uid
    return header_uid


async def get_current_uid(
    uid: Optional[str] = Depends(get_optional_uid)
) -> str:
    """FastAPI dependency requiring an identified caller."""
    if not uid:
        raise HTTPException(
            status_code=401,
            detail="Authentication required. Missing X-User-ID header or session token."
        )
    return uid
