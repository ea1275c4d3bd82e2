"""
Role Repository

Handles all database operations for roles table.
"""
import logging
import json
from datetime import datetime, timezone
from typing import Optional, List
from databases import Database
from onboarding.modules.database import database
from onboarding.modules.users.domain.roles import Role

logger = logging.getLogger("onboarding.users.role_repository")

ROLE_COLUMNS = "id, name, description, scopes, active, created_by"


class RoleRepository:
    """Repository for role data access."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db or database

    @staticmethod
    def _to_role(row) -> Role:
        data = dict(row)
        if isinstance(data.get("scopes"), str):
            data["scopes"] = json.loads(data["scopes"])
        return Role.from_dict(data)

    async def create(self, role: Role) -> Role:
        """Insert a role. Fails on a duplicate name."""
        query = f"""
            INSERT INTO roles (id, name, description, scopes, active, created_by, created_at)
            VALUES (:id, :name, :description, :scopes, :active, :created_by, :created_at)
            RETURNING {ROLE_COLUMNS}
        """
        row = await self.db.fetch_one(query, {
            "id": role.id,
            "name": role.name,
            "description": role.description,
            "scopes": json.dumps(role.scopes),
            "active": role.active,
            "created_by": role.created_by,
            "created_at": datetime.now(timezone.utc),
        })
        logger.info(f"[RoleRepository.create] created role {role.id} ({role.name})")
        return self._to_role(row)

    async def get_by_id(self, role_id: str) -> Optional[Role]:
        query = f"SELECT {ROLE_COLUMNS} FROM roles WHERE id = :id"
        row = await self.db.fetch_one(query, {"id": role_id})
        return self._to_role(row) if row else None

    async def check_name_exists(self, name: str) -> bool:
        """Case-insensitive, so "Manager" and "manager" count as the same role."""
        query = "SELECT 1 FROM roles WHERE LOWER(name) = LOWER(:name)"
        row = await self.db.fetch_one(query, {"name": name})
        return row is not None

    async def get_all(self) -> List[Role]:
        query = f"SELECT {ROLE_COLUMNS} FROM roles ORDER BY created_at"
        rows = await self.db.fetch_all(query)
        return [self._to_role(row) for row in rows]

    async def get_by_ids(self, role_ids: List[str]) -> List[Role]:
        """Get roles by ID. Unknown IDs are skipped."""
        if not role_ids:
            return []
        query = f"""
            SELECT {ROLE_COLUMNS}
            FROM roles
            WHERE id = ANY(:role_ids)
        """
        rows = await self.db.fetch_all(query, {"role_ids": list(role_ids)})
        return [self._to_role(row) for row in rows]
