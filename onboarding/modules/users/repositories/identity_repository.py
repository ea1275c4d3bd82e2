"""
Identity Repository

Phone-backed authentication identities and the session tokens issued to them.
"""
import logging
import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4
from databases import Database
from dotenv import load_dotenv
from onboarding.modules.database import database
from onboarding.modules.users.domain.profile import AuthCredentials, AuthIdentity, UserProfile
from onboarding.modules.users.domain.roles import RoleType

load_dotenv()

logger = logging.getLogger("onboarding.users.identity_repository")

SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "3600"))


class IdentityRepository:
    """Repository for auth identities and sessions."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db or database

    @staticmethod
    def generate_token() -> str:
        return secrets.token_urlsafe(32)

    async def get_or_create_phone_user(self, phone: str) -> AuthIdentity:
        """Idempotent: the same phone always maps to the same uid."""
        insert_query = """
            INSERT INTO auth_identities (uid, phone_number)
            VALUES (:uid, :phone)
            ON CONFLICT (phone_number) DO NOTHING
        """
        await self.db.execute(insert_query, {"uid": str(uuid4()), "phone": phone})

        query = "SELECT uid, phone_number, is_anonymous FROM auth_identities WHERE phone_number = :phone"
        row = await self.db.fetch_one(query, {"phone": phone})
        return AuthIdentity(
            uid=row["uid"],
            phone_number=row["phone_number"],
            is_anonymous=bool(row["is_anonymous"]),
        )

    async def _create_session(self, uid: str) -> tuple:
        access_token = self.generate_token()
        refresh_token = self.generate_token()
        query = """
            INSERT INTO auth_sessions (refresh_token, access_token, uid, expires_at)
            VALUES (:refresh_token, :access_token, :uid, :expires_at)
        """
        await self.db.execute(query, {
            "refresh_token": refresh_token,
            "access_token": access_token,
            "uid": uid,
            "expires_at": datetime.now(timezone.utc) + timedelta(seconds=SESSION_TTL_SECONDS),
        })
        return access_token, refresh_token

    async def generate_auth_credentials(self, phone: str, profile: UserProfile) -> AuthCredentials:
        """Issue a session for the identity that owns `phone`."""
        identity = await self.get_or_create_phone_user(phone)
        access_token, refresh_token = await self._create_session(identity.uid)
        return AuthCredentials(
            uid=identity.uid,
            id_token=access_token,
            refresh_token=refresh_token,
            expires_in=SESSION_TTL_SECONDS,
            is_admin=profile.role == RoleType.EMPLOYEE.value,
            is_anonymous=identity.is_anonymous,
        )

    async def exchange_refresh_token(self, refresh_token: str) -> Optional[AuthCredentials]:
        """Rotate a refresh token. Returns None when the token is unknown."""
        async with self.db.transaction():
            row = await self.db.fetch_one(
                "DELETE FROM auth_sessions WHERE refresh_token = :token RETURNING uid",
                {"token": refresh_token},
            )
            if not row:
                return None
            access_token, new_refresh_token = await self._create_session(row["uid"])
        return AuthCredentials(
            uid=row["uid"],
            id_token=access_token,
            refresh_token=new_refresh_token,
            expires_in=SESSION_TTL_SECONDS,
        )

    async def get_uid_by_access_token(self, access_token: str) -> Optional[str]:
        query = """
            SELECT uid FROM auth_sessions
            WHERE access_token = :token AND expires_at > :now
        """
        return await self.db.fetch_val(query, {"token": access_token, "now": datetime.now(timezone.utc)})
