"""
Supplier Repository

Handles all database operations for supplier_profiles table.
"""
import logging
from typing import Optional
from databases import Database
from onboarding.modules.database import database
from onboarding.modules.users.domain.profile import SupplierProfile

logger = logging.getLogger("onboarding.users.supplier_repository")

SUPPLIER_COLUMNS = """
    id, profile_id, organization_name, organization_code,
    is_organization_verified, kyc_submitted, partner_setup_complete
"""


class SupplierRepository:
    """Repository for supplier data access."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db or database

    async def create(self, supplier: SupplierProfile) -> SupplierProfile:
        query = f"""
            INSERT INTO supplier_profiles (
                id, profile_id, organization_name, organization_code,
                is_organization_verified, kyc_submitted, partner_setup_complete
            )
            VALUES (
                :id, :profile_id, :organization_name, :organization_code,
                :is_organization_verified, :kyc_submitted, :partner_setup_complete
            )
            RETURNING {SUPPLIER_COLUMNS}
        """
        row = await self.db.fetch_one(query, {
            "id": supplier.id,
            "profile_id": supplier.profile_id,
            "organization_name": supplier.organization_name,
            "organization_code": supplier.organization_code,
            "is_organization_verified": supplier.is_organization_verified,
            "kyc_submitted": supplier.kyc_submitted,
            "partner_setup_complete": supplier.partner_setup_complete,
        })
        return SupplierProfile.from_dict(dict(row))
