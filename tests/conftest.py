"""
Shared fixtures: in-memory stand-ins for the repositories plus mocked
OTP and notification adapters, so services run without PostgreSQL or
network access.
"""
import copy
from datetime import datetime, timezone
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from onboarding.modules import crypto
from onboarding.modules.users.domain.pin import PIN
from onboarding.modules.users.domain.profile import (
    AuthCredentials,
    AuthIdentity,
    BioData,
    CommunicationSettings,
    CustomerProfile,
    SupplierProfile,
    UserProfile,
)
from onboarding.modules.users.domain.roles import Role, RoleType, get_user_permissions
from onboarding.modules.users.services.admin_service import AdminService
from onboarding.modules.users.services.login_service import LoginService
from onboarding.modules.users.services.pin_service import UserPinService
from onboarding.modules.users.services.role_service import RoleService
from onboarding.modules.users.services.signup_service import SignUpService
from onboarding.modules.users.tracing import RecordingTracer

PHONE = "+254700000000"
OTHER_PHONE = "+254711111111"


class StoreFailure(Exception):
    """Raised by a fake repository method listed in `fail_on`."""
    pass


class _FailingRepository:
    def __init__(self):
        self.fail_on = set()
        self.calls: List[str] = []

    def _call(self, name: str):
        self.calls.append(name)
        if name in self.fail_on:
            raise StoreFailure(f"{name} failed")


class FakeProfileRepository(_FailingRepository):
    def __init__(self):
        super().__init__()
        self.profiles: Dict[str, UserProfile] = {}
        self.settings: Dict[str, CommunicationSettings] = {}
        self.customer_profiles: List[CustomerProfile] = []
        self.role_repository: Optional["FakeRoleRepository"] = None

    def add(self, profile: UserProfile) -> UserProfile:
        self.profiles[profile.id] = copy.deepcopy(profile)
        return profile

    def _find(self, predicate) -> Optional[UserProfile]:
        for profile in self.profiles.values():
            if predicate(profile):
                return copy.deepcopy(profile)
        return None

    async def get_by_primary_phone(self, phone: str) -> Optional[UserProfile]:
        self._call("get_by_primary_phone")
        return self._find(lambda p: p.primary_phone == phone)

    async def get_by_phone_number(self, phone: str) -> Optional[UserProfile]:
        self._call("get_by_phone_number")
        return self._find(lambda p: p.primary_phone == phone or phone in p.secondary_phone_numbers)

    async def get_by_id(self, profile_id: str) -> Optional[UserProfile]:
        self._call("get_by_id")
        return self._find(lambda p: p.id == profile_id)

    async def get_by_uid(self, uid: str) -> Optional[UserProfile]:
        self._call("get_by_uid")
        return self._find(lambda p: p.uid == uid)

    async def check_phone_exists(self, phone: str) -> bool:
        self._call("check_phone_exists")
        return any(p.primary_phone == phone for p in self.profiles.values())

    async def create(self, profile: UserProfile) -> UserProfile:
        self._call("create")
        if any(p.primary_phone == profile.primary_phone for p in self.profiles.values()):
            raise StoreFailure("duplicate primary phone")
        profile = copy.deepcopy(profile)
        profile.created_at = profile.created_at or datetime.now(timezone.utc)
        self.profiles[profile.id] = profile
        return copy.deepcopy(profile)

    async def update_suspended(self, profile_id: str, suspended: bool) -> bool:
        self._call("update_suspended")
        if profile_id not in self.profiles:
            return False
        self.profiles[profile_id].suspended = suspended
        return True

    async def update_bio_data(self, profile_id: str, bio_data: BioData) -> bool:
        self._call("update_bio_data")
        if profile_id not in self.profiles:
            return False
        self.profiles[profile_id].bio_data = copy.deepcopy(bio_data)
        return True

    async def update_push_tokens(self, profile_id: str, push_tokens: List[str]) -> bool:
        self._call("update_push_tokens")
        if profile_id not in self.profiles:
            return False
        self.profiles[profile_id].push_tokens = list(push_tokens)
        return True

    async def update_roles(self, profile_id: str, role_ids: List[str]) -> bool:
        self._call("update_roles")
        if profile_id not in self.profiles:
            return False
        self.profiles[profile_id].roles = list(role_ids)
        return True

    async def update_fav_nav_actions(self, profile_id: str, titles: List[str]) -> bool:
        self._call("update_fav_nav_actions")
        if profile_id not in self.profiles:
            return False
        self.profiles[profile_id].fav_nav_actions = list(titles)
        return True

    async def list_by_role(self, role: str) -> List[UserProfile]:
        self._call("list_by_role")
        return [copy.deepcopy(p) for p in self.profiles.values() if p.role == role]

    async def set_communication_settings(
        self, profile_id, allow_whatsapp, allow_text_sms, allow_push, allow_email
    ) -> CommunicationSettings:
        self._call("set_communication_settings")
        settings = CommunicationSettings(
            profile_id=profile_id,
            allow_whatsapp=allow_whatsapp,
            allow_text_sms=allow_text_sms,
            allow_push=allow_push,
            allow_email=allow_email,
        )
        self.settings[profile_id] = settings
        return settings

    async def get_communication_settings(self, profile_id: str) -> Optional[CommunicationSettings]:
        self._call("get_communication_settings")
        return self.settings.get(profile_id)

    async def create_empty_customer_profile(self, profile_id: str) -> CustomerProfile:
        self._call("create_empty_customer_profile")
        customer = CustomerProfile(id=str(uuid4()), profile_id=profile_id)
        self.customer_profiles.append(customer)
        return customer

    async def check_permission(self, uid: str, permission: str) -> bool:
        self._call("check_permission")
        profile = self._find(lambda p: p.uid == uid)
        if not profile or profile.suspended:
            return False
        roles = self.role_repository.roles if self.role_repository else {}
        role_scopes = get_user_permissions(roles[r] for r in profile.roles if r in roles)
        return permission in profile.permissions or permission in role_scopes

    async def purge_by_phone(self, phone: str) -> bool:
        self._call("purge_by_phone")
        profile = self._find(lambda p: p.primary_phone == phone)
        if not profile:
            return False
        del self.profiles[profile.id]
        return True


class FakePINRepository(_FailingRepository):
    def __init__(self):
        super().__init__()
        self.rows: List[PIN] = []

    def active(self, profile_id: str) -> List[PIN]:
        return [r for r in self.rows if r.profile_id == profile_id and r.active]

    def seed(self, profile_id: str, raw_pin: str, is_otp: bool = False) -> PIN:
        salt, pin_hash = crypto.encrypt_pin(raw_pin)
        record = PIN(id=str(uuid4()), profile_id=profile_id, pin_hash=pin_hash, salt=salt, is_otp=is_otp)
        self.rows.append(record)
        return record

    async def create(self, pin: PIN) -> PIN:
        self._call("create")
        self.rows.append(copy.deepcopy(pin))
        return pin

    async def get_by_profile_id(self, profile_id: str) -> Optional[PIN]:
        self._call("get_by_profile_id")
        active = self.active(profile_id)
        return copy.deepcopy(active[-1]) if active else None

    async def update(self, profile_id: str, pin: PIN) -> PIN:
        self._call("update")
        for row in self.active(profile_id):
            row.active = False
        self.rows.append(copy.deepcopy(pin))
        return pin


class FakeIdentityRepository(_FailingRepository):
    def __init__(self):
        super().__init__()
        self.identities: Dict[str, AuthIdentity] = {}
        self.sessions: Dict[str, str] = {}
        self.access_tokens: Dict[str, str] = {}

    def _issue(self, uid: str, **kwargs) -> AuthCredentials:
        access_token, refresh_token = uuid4().hex, uuid4().hex
        self.sessions[refresh_token] = uid
        self.access_tokens[access_token] = uid
        return AuthCredentials(uid=uid, id_token=access_token, refresh_token=refresh_token, expires_in=3600, **kwargs)

    async def get_or_create_phone_user(self, phone: str) -> AuthIdentity:
        self._call("get_or_create_phone_user")
        if phone not in self.identities:
            self.identities[phone] = AuthIdentity(uid=str(uuid4()), phone_number=phone)
        return self.identities[phone]

    async def generate_auth_credentials(self, phone: str, profile: UserProfile) -> AuthCredentials:
        self._call("generate_auth_credentials")
        identity = await self.get_or_create_phone_user(phone)
        return self._issue(identity.uid, is_admin=profile.role == RoleType.EMPLOYEE.value)

    async def exchange_refresh_token(self, refresh_token: str) -> Optional[AuthCredentials]:
        self._call("exchange_refresh_token")
        uid = self.sessions.pop(refresh_token, None)
        if uid is None:
            return None
        return self._issue(uid)

    async def get_uid_by_access_token(self, access_token: str) -> Optional[str]:
        return self.access_tokens.get(access_token)


class FakeRoleRepository(_FailingRepository):
    def __init__(self):
        super().__init__()
        self.roles: Dict[str, Role] = {}

    def add(self, role: Role) -> Role:
        self.roles[role.id] = role
        return role

    async def create(self, role: Role) -> Role:
        self._call("create")
        if any(r.name.lower() == role.name.lower() for r in self.roles.values()):
            raise StoreFailure("duplicate role name")
        self.roles[role.id] = copy.deepcopy(role)
        return role

    async def get_by_id(self, role_id: str) -> Optional[Role]:
        self._call("get_by_id")
        return self.roles.get(role_id)

    async def check_name_exists(self, name: str) -> bool:
        self._call("check_name_exists")
        return any(r.name.lower() == name.lower() for r in self.roles.values())

    async def get_all(self) -> List[Role]:
        self._call("get_all")
        return list(self.roles.values())

    async def get_by_ids(self, role_ids: List[str]) -> List[Role]:
        self._call("get_by_ids")
        return [self.roles[r] for r in role_ids if r in self.roles]


class FakeSupplierRepository(_FailingRepository):
    def __init__(self):
        super().__init__()
        self.suppliers: List[SupplierProfile] = []

    async def create(self, supplier: SupplierProfile) -> SupplierProfile:
        self._call("create")
        self.suppliers.append(supplier)
        return supplier


def make_profile(phone: str = PHONE, role: Optional[str] = RoleType.CONSUMER.value, **kwargs) -> UserProfile:
    kwargs.setdefault("id", str(uuid4()))
    kwargs.setdefault("uid", str(uuid4()))
    kwargs.setdefault("bio_data", BioData(first_name="Jane", last_name="Doe"))
    return UserProfile(primary_phone=phone, role=role, **kwargs)


@pytest.fixture
def profile_repo(role_repo):
    repo = FakeProfileRepository()
    repo.role_repository = role_repo
    return repo


@pytest.fixture
def pin_repo():
    return FakePINRepository()


@pytest.fixture
def identity_repo():
    return FakeIdentityRepository()


@pytest.fixture
def role_repo():
    return FakeRoleRepository()


@pytest.fixture
def supplier_repo():
    return FakeSupplierRepository()


@pytest.fixture
def otp_client():
    client = MagicMock()
    client.generate_and_send = AsyncMock(return_value={"otp": "654321"})
    client.verify = AsyncMock(return_value=True)
    return client


@pytest.fixture
def notification_service():
    service = MagicMock()
    service.send_sms = AsyncMock(return_value=["SM123"])
    service.send_email = AsyncMock(return_value="EMAIL_1")
    return service


@pytest.fixture
def tracer():
    return RecordingTracer()


@pytest.fixture
def pin_service(profile_repo, pin_repo, otp_client, tracer):
    return UserPinService(
        profile_repository=profile_repo,
        pin_repository=pin_repo,
        otp_client=otp_client,
        tracer=tracer,
    )


@pytest.fixture
def signup_service(profile_repo, identity_repo, role_repo, pin_service, otp_client, notification_service, tracer):
    return SignUpService(
        profile_repository=profile_repo,
        identity_repository=identity_repo,
        role_repository=role_repo,
        pin_service=pin_service,
        otp_client=otp_client,
        notification_service=notification_service,
        tracer=tracer,
    )


@pytest.fixture
def admin_service(profile_repo, identity_repo, supplier_repo, pin_service, notification_service, tracer):
    return AdminService(
        profile_repository=profile_repo,
        identity_repository=identity_repo,
        supplier_repository=supplier_repo,
        pin_service=pin_service,
        notification_service=notification_service,
        tracer=tracer,
    )


@pytest.fixture
def role_service(profile_repo, role_repo, tracer):
    return RoleService(
        profile_repository=profile_repo,
        role_repository=role_repo,
        tracer=tracer,
    )


@pytest.fixture
def login_service(profile_repo, identity_repo, role_repo, pin_service, tracer):
    return LoginService(
        profile_repository=profile_repo,
        identity_repository=identity_repo,
        role_repository=role_repo,
        pin_service=pin_service,
        tracer=tracer,
    )


@pytest.fixture
def acting_admin(profile_repo):
    return profile_repo.add(make_profile(
        OTHER_PHONE,
        role=RoleType.EMPLOYEE.value,
        permissions=RoleType.EMPLOYEE.permissions(),
    ))
