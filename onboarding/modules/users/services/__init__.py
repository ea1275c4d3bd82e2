"""
Business Logic Services

Services contain business logic and orchestrate repository and adapter calls.
"""

from .pin_service import UserPinService, validate_pin
from .signup_service import SignUpService
from .admin_service import AdminService
from .login_service import LoginService
from .role_service import RoleService

__all__ = [
    "UserPinService",
    "validate_pin",
    "SignUpService",
    "AdminService",
    "LoginService",
    "RoleService",
]
