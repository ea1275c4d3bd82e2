"""
Data Access Layer (Repositories)

Repositories handle all database interactions.
"""

from .profile_repository import ProfileRepository
from .pin_repository import PINRepository
from .supplier_repository import SupplierRepository
from .role_repository import RoleRepository
from .identity_repository import IdentityRepository

__all__ = [
    "ProfileRepository",
    "PINRepository",
    "SupplierRepository",
    "RoleRepository",
    "IdentityRepository",
]
