"""
PIN Repository

Handles all database operations for user_pins table. Rows are append-only:
an update deactivates the previous rows and inserts a new one.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from databases import Database
from onboarding.modules.database import database
from onboarding.modules.users.domain.pin import PIN

logger = logging.getLogger("onboarding.users.pin_repository")

PIN_COLUMNS = "id, profile_id, pin_hash, salt, is_otp, active, created_at"


class PINRepository:
    """Repository for PIN data access."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db or database

    async def _insert(self, pin: PIN) -> PIN:
        query = f"""
            INSERT INTO user_pins (id, profile_id, pin_hash, salt, is_otp, active, created_at)
            VALUES (:id, :profile_id, :pin_hash, :salt, :is_otp, TRUE, :created_at)
            RETURNING {PIN_COLUMNS}
        """
        row = await self.db.fetch_one(query, {
            "id": pin.id,
            "profile_id": pin.profile_id,
            "pin_hash": pin.pin_hash,
            "salt": pin.salt,
            "is_otp": pin.is_otp,
            "created_at": pin.created_at or datetime.now(timezone.utc),
        })
        return PIN.from_dict(dict(row))

    async def create(self, pin: PIN) -> PIN:
        """Save a PIN record."""
        return await self._insert(pin)

    async def get_by_profile_id(self, profile_id: str) -> Optional[PIN]:
        """Get the active (latest) PIN for a profile."""
        query = f"""
            SELECT {PIN_COLUMNS}
            FROM user_pins
            WHERE profile_id = :profile_id AND active = TRUE
            ORDER BY created_at DESC
            LIMIT 1
        """
        row = await self.db.fetch_one(query, {"profile_id": profile_id})
        if not row:
            return None
        return PIN.from_dict(dict(row))

    async def update(self, profile_id: str, pin: PIN) -> PIN:
        """Supersede the profile's current PIN with a new record."""
        async with self.db.transaction():
            await self.db.execute(
                "UPDATE user_pins SET active = FALSE WHERE profile_id = :profile_id AND active = TRUE",
                {"profile_id": profile_id},
            )
            saved = await self._insert(pin)
        logger.debug(f"[PINRepository.update] superseded PIN for profile {profile_id}")
        return saved
