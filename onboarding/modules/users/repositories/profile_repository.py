"""
Profile Repository

Handles all database operations for user_profiles and the per-profile
side tables (communication settings, customer shells).
"""
import logging
import json
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
from uuid import uuid4
from databases import Database
from onboarding.modules.database import database
from onboarding.modules.users.domain.profile import (
    BioData,
    CommunicationSettings,
    CustomerProfile,
    UserProfile,
)
from onboarding.modules.users.domain.roles import has_permission, get_user_permissions
from onboarding.modules.users.repositories.role_repository import RoleRepository

logger = logging.getLogger("onboarding.users.profile_repository")

PROFILE_COLUMNS = """
    id, uid, primary_phone, primary_email, secondary_phone_numbers,
    first_name, last_name, gender, date_of_birth, role, permissions, roles,
    fav_nav_actions, push_tokens, suspended, created_by_id, created_at
"""

JSONB_FIELDS = ("secondary_phone_numbers", "permissions", "roles", "fav_nav_actions", "push_tokens")


class ProfileRepository:
    """Repository for profile data access."""

    def __init__(self, db: Optional[Database] = None, role_repository: Optional[RoleRepository] = None):
        self.db = db or database
        self.role_repository = role_repository or RoleRepository(self.db)
        self._parse_jsonb = self._create_jsonb_parser()

    @staticmethod
    def _create_jsonb_parser():
        """Create JSONB parser function."""
        def parse_jsonb(value: Any) -> Any:
            """Parse JSONB list value from database."""
            if isinstance(value, str):
                try:
                    return json.loads(value)
                except (json.JSONDecodeError, TypeError):
                    return []
            elif value is None:
                return []
            return value
        return parse_jsonb

    def _to_profile(self, row) -> Optional[UserProfile]:
        if not row:
            return None
        data = dict(row)
        for key in JSONB_FIELDS:
            data[key] = self._parse_jsonb(data.get(key))
        return UserProfile.from_dict(data)

    async def _fetch_profile(self, where: str, values: Dict[str, Any]) -> Optional[UserProfile]:
        query = f"SELECT {PROFILE_COLUMNS} FROM user_profiles WHERE {where}"
        row = await self.db.fetch_one(query, values)
        return self._to_profile(row)

    async def get_by_primary_phone(self, phone: str) -> Optional[UserProfile]:
        """Get profile by (normalized) primary phone number."""
        return await self._fetch_profile("primary_phone = :phone", {"phone": phone})

    async def get_by_phone_number(self, phone: str) -> Optional[UserProfile]:
        """Get profile where the number is either the primary or a secondary phone."""
        return await self._fetch_profile(
            "primary_phone = :phone OR secondary_phone_numbers @> jsonb_build_array(CAST(:phone AS TEXT))",
            {"phone": phone},
        )

    async def get_by_id(self, profile_id: str) -> Optional[UserProfile]:
        return await self._fetch_profile("id = :id", {"id": profile_id})

    async def get_by_uid(self, uid: str) -> Optional[UserProfile]:
        return await self._fetch_profile("uid = :uid", {"uid": uid})

    async def check_phone_exists(self, phone: str) -> bool:
        query = "SELECT 1 FROM user_profiles WHERE primary_phone = :phone"
        row = await self.db.fetch_one(query, {"phone": phone})
        return row is not None

    async def create(self, profile: UserProfile) -> UserProfile:
        """Insert a profile. Fails on a duplicate primary phone."""
        query = f"""
            INSERT INTO user_profiles (
                id, uid, primary_phone, primary_email, secondary_phone_numbers,
                first_name, last_name, gender, date_of_birth, role, permissions, roles,
                fav_nav_actions, push_tokens, suspended, created_by_id, created_at
            )
            VALUES (
                :id, :uid, :primary_phone, :primary_email, :secondary_phone_numbers,
                :first_name, :last_name, :gender, :date_of_birth, :role, :permissions, :roles,
                :fav_nav_actions, :push_tokens, :suspended, :created_by_id, :created_at
            )
            RETURNING {PROFILE_COLUMNS}
        """
        row = await self.db.fetch_one(query, {
            "id": profile.id or str(uuid4()),
            "uid": profile.uid,
            "primary_phone": profile.primary_phone,
            "primary_email": profile.primary_email,
            "secondary_phone_numbers": json.dumps(profile.secondary_phone_numbers),
            "first_name": profile.bio_data.first_name,
            "last_name": profile.bio_data.last_name,
            "gender": profile.bio_data.gender.value,
            "date_of_birth": profile.bio_data.date_of_birth,
            "role": profile.role,
            "permissions": json.dumps(profile.permissions),
            "roles": json.dumps(profile.roles),
            "fav_nav_actions": json.dumps(profile.fav_nav_actions),
            "push_tokens": json.dumps(profile.push_tokens),
            "suspended": profile.suspended,
            "created_by_id": profile.created_by_id,
            "created_at": profile.created_at or datetime.now(timezone.utc),
        })
        return self._to_profile(row)

    async def update_suspended(self, profile_id: str, suspended: bool) -> bool:
        query = """
            UPDATE user_profiles
            SET suspended = :suspended, updated_at = CURRENT_TIMESTAMP
            WHERE id = :id
            RETURNING id
        """
        updated = await self.db.fetch_val(query, {"id": profile_id, "suspended": suspended})
        return updated is not None

    async def update_bio_data(self, profile_id: str, bio_data: BioData) -> bool:
        query = """
            UPDATE user_profiles
            SET first_name = :first_name, last_name = :last_name, gender = :gender,
                date_of_birth = :date_of_birth, updated_at = CURRENT_TIMESTAMP
            WHERE id = :id
            RETURNING id
        """
        updated = await self.db.fetch_val(query, {
            "id": profile_id,
            "first_name": bio_data.first_name,
            "last_name": bio_data.last_name,
            "gender": bio_data.gender.value,
            "date_of_birth": bio_data.date_of_birth,
        })
        return updated is not None

    async def update_push_tokens(self, profile_id: str, push_tokens: List[str]) -> bool:
        query = """
            UPDATE user_profiles
            SET push_tokens = :push_tokens, updated_at = CURRENT_TIMESTAMP
            WHERE id = :id
            RETURNING id
        """
        updated = await self.db.fetch_val(query, {"id": profile_id, "push_tokens": json.dumps(push_tokens)})
        return updated is not None

    async def update_roles(self, profile_id: str, role_ids: List[str]) -> bool:
        query = """
            UPDATE user_profiles
            SET roles = :roles, updated_at = CURRENT_TIMESTAMP
            WHERE id = :id
            RETURNING id
        """
        updated = await self.db.fetch_val(query, {"id": profile_id, "roles": json.dumps(role_ids)})
        return updated is not None

    async def update_fav_nav_actions(self, profile_id: str, titles: List[str]) -> bool:
        query = """
            UPDATE user_profiles
            SET fav_nav_actions = :fav_nav_actions, updated_at = CURRENT_TIMESTAMP
            WHERE id = :id
            RETURNING id
        """
        updated = await self.db.fetch_val(query, {"id": profile_id, "fav_nav_actions": json.dumps(titles)})
        return updated is not None

    async def list_by_role(self, role: str) -> List[UserProfile]:
        query = f"""
            SELECT {PROFILE_COLUMNS}
            FROM user_profiles
            WHERE role = :role
            ORDER BY created_at DESC
        """
        rows = await self.db.fetch_all(query, {"role": role})
        return [self._to_profile(row) for row in rows]

    # Communication settings
    async def set_communication_settings(
        self,
        profile_id: str,
        allow_whatsapp: bool,
        allow_text_sms: bool,
        allow_push: bool,
        allow_email: bool,
    ) -> CommunicationSettings:
        query = """
            INSERT INTO communication_settings
                (profile_id, allow_whatsapp, allow_text_sms, allow_push, allow_email, updated_at)
            VALUES (:profile_id, :allow_whatsapp, :allow_text_sms, :allow_push, :allow_email, CURRENT_TIMESTAMP)
            ON CONFLICT (profile_id)
            DO UPDATE SET
                allow_whatsapp = :allow_whatsapp,
                allow_text_sms = :allow_text_sms,
                allow_push = :allow_push,
                allow_email = :allow_email,
                updated_at = CURRENT_TIMESTAMP
        """
        values = {
            "profile_id": profile_id,
            "allow_whatsapp": allow_whatsapp,
            "allow_text_sms": allow_text_sms,
            "allow_push": allow_push,
            "allow_email": allow_email,
        }
        await self.db.execute(query, values)
        return CommunicationSettings.from_dict(values)

    async def get_communication_settings(self, profile_id: str) -> Optional[CommunicationSettings]:
        query = """
            SELECT profile_id, allow_whatsapp, allow_text_sms, allow_push, allow_email
            FROM communication_settings
            WHERE profile_id = :profile_id
        """
        row = await self.db.fetch_one(query, {"profile_id": profile_id})
        if not row:
            return None
        return CommunicationSettings.from_dict(dict(row))

    async def create_empty_customer_profile(self, profile_id: str) -> CustomerProfile:
        query = """
            INSERT INTO customer_profiles (id, profile_id)
            VALUES (:id, :profile_id)
            ON CONFLICT (profile_id) DO NOTHING
        """
        customer = CustomerProfile(id=str(uuid4()), profile_id=profile_id)
        await self.db.execute(query, {"id": customer.id, "profile_id": profile_id})
        return customer

    async def check_permission(self, uid: str, permission: str) -> bool:
        """
        Resolves the profile behind `uid` and checks the permission against
        its own permission list plus the scopes of its active roles. A
        suspended profile holds no permissions.
        """
        profile = await self.get_by_uid(uid)
        if not profile or profile.suspended:
            return False
        roles = await self.role_repository.get_by_ids(profile.roles) if profile.roles else []
        scopes = set(profile.permissions) | set(get_user_permissions(roles))
        return has_permission(scopes, permission)

    async def purge_by_phone(self, phone: str) -> bool:
        """Hard delete a profile and everything hanging off it. Test environments only."""
        async with self.db.transaction():
            profile = await self.get_by_primary_phone(phone)
            if not profile:
                return False
            await self.db.execute("DELETE FROM user_profiles WHERE id = :id", {"id": profile.id})
            await self.db.execute(
                "DELETE FROM auth_identities WHERE phone_number = :phone", {"phone": phone}
            )
        logger.info(f"[ProfileRepository.purge_by_phone] purged profile {profile.id}")
        return True
