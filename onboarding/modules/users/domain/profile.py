"""
Profile Domain Models

Pure data models representing user profile entities.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Dict, Any, List


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"


@dataclass
class BioData:
    """Personal details attached to a profile."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Gender = Gender.UNKNOWN
    date_of_birth: Optional[date] = None

    def __post_init__(self):
        if isinstance(self.gender, str) and not isinstance(self.gender, Gender):
            self.gender = Gender(self.gender.lower())

    def merged(self, other: "BioData") -> "BioData":
        """Returns a copy where fields set on `other` replace ours."""
        return BioData(
            first_name=other.first_name if other.first_name is not None else self.first_name,
            last_name=other.last_name if other.last_name is not None else self.last_name,
            gender=other.gender if other.gender != Gender.UNKNOWN else self.gender,
            date_of_birth=other.date_of_birth if other.date_of_birth is not None else self.date_of_birth,
        )

    def to_dict(self) -> dict:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "gender": self.gender.value,
            "date_of_birth": self.date_of_birth.isoformat() if self.date_of_birth else None,
        }


@dataclass
class UserProfile:
    """Identity record for a user or an administrator."""
    id: str
    primary_phone: str
    uid: Optional[str] = None
    primary_email: Optional[str] = None
    secondary_phone_numbers: List[str] = field(default_factory=list)
    bio_data: BioData = field(default_factory=BioData)
    role: Optional[str] = None
    permissions: List[str] = field(default_factory=list)
    roles: List[str] = field(default_factory=list)
    fav_nav_actions: List[str] = field(default_factory=list)
    push_tokens: List[str] = field(default_factory=list)
    suspended: bool = False
    created_by_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: dict) -> "UserProfile":
        """Create UserProfile from dictionary (e.g., from database row)."""
        dob = data.get("date_of_birth")
        if isinstance(dob, str):
            dob = date.fromisoformat(dob)
        return cls(
            id=data["id"],
            primary_phone=data["primary_phone"],
            uid=data.get("uid"),
            primary_email=data.get("primary_email"),
            secondary_phone_numbers=list(data.get("secondary_phone_numbers") or []),
            bio_data=BioData(
                first_name=data.get("first_name"),
                last_name=data.get("last_name"),
                gender=data.get("gender") or Gender.UNKNOWN,
                date_of_birth=dob,
            ),
            role=data.get("role"),
            permissions=list(data.get("permissions") or []),
            roles=list(data.get("roles") or []),
            fav_nav_actions=list(data.get("fav_nav_actions") or []),
            push_tokens=list(data.get("push_tokens") or []),
            suspended=bool(data.get("suspended", False)),
            created_by_id=data.get("created_by_id"),
            created_at=data.get("created_at"),
        )

    def to_dict(self) -> dict:
        """Convert UserProfile to dictionary."""
        return {
            "id": self.id,
            "uid": self.uid,
            "primary_phone": self.primary_phone,
            "primary_email": self.primary_email,
            "secondary_phone_numbers": list(self.secondary_phone_numbers),
            "bio_data": self.bio_data.to_dict(),
            "role": self.role,
            "permissions": list(self.permissions),
            "roles": list(self.roles),
            "suspended": self.suspended,
            "created_by_id": self.created_by_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class CommunicationSettings:
    """Per-profile channel preferences. All channels default to enabled."""
    profile_id: str
    allow_whatsapp: bool = True
    allow_text_sms: bool = True
    allow_push: bool = True
    allow_email: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "CommunicationSettings":
        return cls(
            profile_id=data["profile_id"],
            allow_whatsapp=bool(data.get("allow_whatsapp", True)),
            allow_text_sms=bool(data.get("allow_text_sms", True)),
            allow_push=bool(data.get("allow_push", True)),
            allow_email=bool(data.get("allow_email", True)),
        )

    def to_dict(self) -> dict:
        return {
            "profile_id": self.profile_id,
            "allow_whatsapp": self.allow_whatsapp,
            "allow_text_sms": self.allow_text_sms,
            "allow_push": self.allow_push,
            "allow_email": self.allow_email,
        }


@dataclass
class SupplierProfile:
    """Organizational record attached to an admin profile."""
    id: str
    profile_id: str
    organization_name: Optional[str] = None
    organization_code: Optional[str] = None
    is_organization_verified: bool = False
    kyc_submitted: bool = False
    partner_setup_complete: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "SupplierProfile":
        return cls(
            id=data["id"],
            profile_id=data["profile_id"],
            organization_name=data.get("organization_name"),
            organization_code=data.get("organization_code"),
            is_organization_verified=bool(data.get("is_organization_verified", False)),
            kyc_submitted=bool(data.get("kyc_submitted", False)),
            partner_setup_complete=bool(data.get("partner_setup_complete", False)),
        )


@dataclass
class CustomerProfile:
    """Empty customer-facing shell created alongside staff accounts."""
    id: str
    profile_id: str


@dataclass
class AuthIdentity:
    """Phone-backed authentication identity."""
    uid: str
    phone_number: str
    is_anonymous: bool = False


@dataclass
class AuthCredentials:
    uid: str
    id_token: str
    refresh_token: str
    expires_in: int
    is_admin: bool = False
    is_anonymous: bool = False
    change_pin: bool = False
    scopes: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "uid": self.uid,
            "id_token": self.id_token,
            "refresh_token": self.refresh_token,
            "expires_in": self.expires_in,
            "is_admin": self.is_admin,
            "is_anonymous": self.is_anonymous,
            "change_pin": self.change_pin,
            "scopes": list(self.scopes),
        }


@dataclass
class UserResponse:
    """Aggregate returned by account creation and login."""
    profile: UserProfile
    communication_settings: Optional[CommunicationSettings]
    auth: AuthCredentials
    nav_actions: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "profile": self.profile.to_dict(),
            "communication_settings": self.communication_settings.to_dict() if self.communication_settings else None,
            "auth": self.auth.to_dict(),
            "nav_actions": self.nav_actions,
        }


@dataclass
class Admin:
    """Admin listing row."""
    id: str
    primary_phone: str
    primary_email: Optional[str]
    bio_data: BioData
    secondary_phone_numbers: List[str]
    suspended: bool
    resend_pin: bool

    @classmethod
    def from_profile(cls, profile: UserProfile, resend_pin: bool) -> "Admin":
        return cls(
            id=profile.id,
            primary_phone=profile.primary_phone,
            primary_email=profile.primary_email,
            bio_data=profile.bio_data,
            secondary_phone_numbers=list(profile.secondary_phone_numbers),
            suspended=profile.suspended,
            resend_pin=resend_pin,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "primary_phone": self.primary_phone,
            "primary_email": self.primary_email,
            "bio_data": self.bio_data.to_dict(),
            "secondary_phone_numbers": list(self.secondary_phone_numbers),
            "suspended": self.suspended,
            "resend_pin": self.resend_pin,
        }


@dataclass
class AccountRecoveryPhones:
    masked_phone_numbers: List[str]
    unmasked_phone_numbers: List[str]


@dataclass
class RegisterUserInput:
    """Consumer registration performed on a user's behalf by staff."""
    phone_number: str
    first_name: str
    last_name: str
    gender: Gender = Gender.UNKNOWN
    date_of_birth: Optional[date] = None
    email: Optional[str] = None
    role_ids: List[str] = field(default_factory=list)
    # %-format string taking (first_name, temporary_pin)
    welcome_message: Optional[str] = None

    def bio_data(self) -> BioData:
        return BioData(
            first_name=self.first_name,
            last_name=self.last_name,
            gender=self.gender,
            date_of_birth=self.date_of_birth,
        )


@dataclass
class RegisterAdminInput:
    phone_number: str
    first_name: str
    last_name: str
    gender: Gender = Gender.UNKNOWN
    date_of_birth: Optional[date] = None
    email: Optional[str] = None
    role_ids: List[str] = field(default_factory=list)

    def bio_data(self) -> BioData:
        return BioData(
            first_name=self.first_name,
            last_name=self.last_name,
            gender=self.gender,
            date_of_birth=self.date_of_birth,
        )
