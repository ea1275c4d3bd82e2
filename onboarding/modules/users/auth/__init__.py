"""
Authentication and Authorization Module

Provides:
- Caller identification (X-User-ID header or bearer session token)
- Permission checks against profile and role scopes
"""

from .middleware import get_current_uid, get_optional_uid
from .permissions import check_permission, require_permission

__all__ = [
    "get_current_uid",
    "get_optional_uid",
    "check_permission",
    "require_permission",
]
