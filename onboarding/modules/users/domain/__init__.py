"""
Domain Models

Pure data models representing profile, credential and role entities.
"""

from .profile import (
    Gender,
    BioData,
    UserProfile,
    CommunicationSettings,
    SupplierProfile,
    CustomerProfile,
    AuthIdentity,
    AuthCredentials,
    UserResponse,
    Admin,
    AccountRecoveryPhones,
    RegisterUserInput,
    RegisterAdminInput,
)
from .pin import PIN, PINUpdateResult
from .roles import Role, RoleType, has_permission, get_user_permissions
from .navigation import NavigationAction, ALL_NAVIGATION_ACTIONS

__all__ = [
    "Gender",
    "BioData",
    "UserProfile",
    "CommunicationSettings",
    "SupplierProfile",
    "CustomerProfile",
    "AuthIdentity",
    "AuthCredentials",
    "UserResponse",
    "Admin",
    "AccountRecoveryPhones",
    "RegisterUserInput",
    "RegisterAdminInput",
    "PIN",
    "PINUpdateResult",
    "Role",
    "RoleType",
    "has_permission",
    "get_user_permissions",
    "NavigationAction",
    "ALL_NAVIGATION_ACTIONS",
]
