"""
REST API Endpoints

Thin API layer that delegates to services.
"""

from .pin_endpoints import router as pin_router
from .signup_endpoints import router as signup_router
from .admin_endpoints import router as admin_router
from .login_endpoints import router as login_router
from .role_endpoints import router as role_router

__all__ = [
    "pin_router",
    "signup_router",
    "admin_router",
    "login_router",
    "role_router",
]
