from databases import Database
import logging
import os
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger("onboarding.database")

DATABASE_URL = os.getenv("DATABASE_URL", "postgresql://localhost:5432/onboarding")

# Create the database instance
database = Database(DATABASE_URL)

async def connect_to_db():
    await database.connect()

async def disconnect_from_db():
    await database.disconnect()

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS auth_identities (
        uid TEXT PRIMARY KEY,
        phone_number TEXT UNIQUE NOT NULL,
        is_anonymous BOOLEAN DEFAULT FALSE,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_profiles (
        id TEXT PRIMARY KEY,
        uid TEXT,
        primary_phone TEXT UNIQUE NOT NULL,
        primary_email TEXT,
        secondary_phone_numbers JSONB DEFAULT '[]',
        first_name TEXT,
        last_name TEXT,
        gender TEXT,
        date_of_birth DATE,
        role TEXT,
        permissions JSONB DEFAULT '[]',
        roles JSONB DEFAULT '[]',
        fav_nav_actions JSONB DEFAULT '[]',
        push_tokens JSONB DEFAULT '[]',
        suspended BOOLEAN DEFAULT FALSE,
        created_by_id TEXT,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_pins (
        id TEXT PRIMARY KEY,
        profile_id TEXT NOT NULL REFERENCES user_profiles(id) ON DELETE CASCADE,
        pin_hash TEXT NOT NULL,
        salt TEXT NOT NULL,
        is_otp BOOLEAN DEFAULT FALSE,
        active BOOLEAN DEFAULT TRUE,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_user_pins_profile ON user_pins (profile_id, created_at DESC)",
    """
    CREATE TABLE IF NOT EXISTS communication_settings (
        profile_id TEXT PRIMARY KEY REFERENCES user_profiles(id) ON DELETE CASCADE,
        allow_whatsapp BOOLEAN DEFAULT TRUE,
        allow_text_sms BOOLEAN DEFAULT TRUE,
        allow_push BOOLEAN DEFAULT TRUE,
        allow_email BOOLEAN DEFAULT TRUE,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS customer_profiles (
        id TEXT PRIMARY KEY,
        profile_id TEXT UNIQUE NOT NULL REFERENCES user_profiles(id) ON DELETE CASCADE,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS supplier_profiles (
        id TEXT PRIMARY KEY,
        profile_id TEXT UNIQUE NOT NULL REFERENCES user_profiles(id) ON DELETE CASCADE,
        organization_name TEXT,
        organization_code TEXT,
        is_organization_verified BOOLEAN DEFAULT FALSE,
        kyc_submitted BOOLEAN DEFAULT FALSE,
        partner_setup_complete BOOLEAN DEFAULT FALSE,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS roles (
        id TEXT PRIMARY KEY,
        name TEXT UNIQUE NOT NULL,
        description TEXT,
        scopes JSONB DEFAULT '[]',
        active BOOLEAN DEFAULT TRUE,
        created_by TEXT,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS auth_sessions (
        refresh_token TEXT PRIMARY KEY,
        access_token TEXT UNIQUE NOT NULL,
        uid TEXT NOT NULL REFERENCES auth_identities(uid) ON DELETE CASCADE,
        expires_at TIMESTAMPTZ NOT NULL,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    )
    """,
]

async def init_db():
    for stmt in SCHEMA_STATEMENTS:
        await database.execute(query=stmt)
    logger.info(f"Onboarding schema ready ({len(SCHEMA_STATEMENTS)} statements applied)")
