"""
Tests for role creation, listing, assignment and revocation.
"""
import pytest

from onboarding.modules.users.domain.roles import CAN_ASSIGN_ROLE, CAN_REGISTER_PATIENT, Role, RoleType
from onboarding.modules.users.exceptions import (
    ErrorKind,
    InvalidInputError,
    PermissionDeniedError,
    PersistenceError,
    ProfileNotFoundError,
    RoleNameInUseError,
    RoleNotFoundError,
)

from conftest import PHONE, make_profile


@pytest.fixture
def consumer(profile_repo):
    return profile_repo.add(make_profile(PHONE))


@pytest.mark.asyncio
async def test_create_role(role_service, role_repo, acting_admin):
    role = await role_service.create_role(
        acting_admin.uid, " Agents ", [CAN_REGISTER_PATIENT, CAN_REGISTER_PATIENT], "Field agents",
    )

    assert role.name == "Agents"
    assert role.scopes == [CAN_REGISTER_PATIENT]
    assert role.active is True
    assert role.created_by == acting_admin.id
    assert role_repo.roles[role.id].description == "Field agents"


@pytest.mark.asyncio
async def test_create_role_name_is_unique_ignoring_case(role_service, role_repo, acting_admin):
    role_repo.add(Role(id="r1", name="Agents"))

    with pytest.raises(RoleNameInUseError) as exc_info:
        await role_service.create_role(acting_admin.uid, "agents", [])

    assert exc_info.value.kind == ErrorKind.INVALID_INPUT
    assert "create" not in role_repo.calls


@pytest.mark.asyncio
async def test_create_role_requires_name(role_service, acting_admin):
    with pytest.raises(InvalidInputError):
        await role_service.create_role(acting_admin.uid, "   ", [])


@pytest.mark.asyncio
async def test_create_role_requires_permission(role_service, role_repo, consumer):
    with pytest.raises(PermissionDeniedError):
        await role_service.create_role(consumer.uid, "Agents", [])
    assert role_repo.roles == {}


@pytest.mark.asyncio
async def test_create_role_store_failure(role_service, role_repo, acting_admin):
    role_repo.fail_on.add("create")
    with pytest.raises(PersistenceError):
        await role_service.create_role(acting_admin.uid, "Agents", [])


@pytest.mark.asyncio
async def test_get_all_roles(role_service, role_repo, acting_admin, consumer):
    role_repo.add(Role(id="r1", name="Agents"))
    role_repo.add(Role(id="r2", name="Clerks", active=False))

    roles = await role_service.get_all_roles(acting_admin.uid)
    assert [r.id for r in roles] == ["r1", "r2"]

    with pytest.raises(PermissionDeniedError):
        await role_service.get_all_roles(consumer.uid)


@pytest.mark.asyncio
async def test_assign_and_revoke_role(role_service, role_repo, profile_repo, acting_admin, consumer):
    role_repo.add(Role(id="r1", name="Agents", scopes=[CAN_REGISTER_PATIENT]))

    assert await role_service.assign_role(acting_admin.uid, consumer.id, "r1") is True
    assert await role_service.assign_role(acting_admin.uid, consumer.id, "r1") is True
    assert profile_repo.profiles[consumer.id].roles == ["r1"]
    assert await profile_repo.check_permission(consumer.uid, CAN_REGISTER_PATIENT) is True

    assert await role_service.revoke_role(acting_admin.uid, consumer.id, "r1", reason="left") is True
    assert profile_repo.profiles[consumer.id].roles == []
    assert await profile_repo.check_permission(consumer.uid, CAN_REGISTER_PATIENT) is False

    # Revoking a role the profile does not have is a no-op
    assert await role_service.revoke_role(acting_admin.uid, consumer.id, "r1") is True
    assert profile_repo.calls.count("update_roles") == 2


@pytest.mark.asyncio
async def test_assign_unknown_role(role_service, profile_repo, acting_admin, consumer):
    with pytest.raises(RoleNotFoundError):
        await role_service.assign_role(acting_admin.uid, consumer.id, "missing")
    assert "update_roles" not in profile_repo.calls


@pytest.mark.asyncio
async def test_assign_role_to_unknown_profile(role_service, role_repo, acting_admin):
    role_repo.add(Role(id="r1", name="Agents"))
    with pytest.raises(ProfileNotFoundError):
        await role_service.assign_role(acting_admin.uid, "missing", "r1")


@pytest.mark.asyncio
async def test_assign_role_granted_through_a_role(role_service, role_repo, profile_repo, consumer):
    role_repo.add(Role(id="assigner", name="Assigner", scopes=[CAN_ASSIGN_ROLE]))
    role_repo.add(Role(id="r1", name="Agents"))
    manager = profile_repo.add(make_profile("+254722222222", role=RoleType.AGENT.value, roles=["assigner"]))

    assert await role_service.assign_role(manager.uid, consumer.id, "r1") is True


@pytest.mark.asyncio
async def test_assign_and_revoke_require_permission(role_service, role_repo, profile_repo, consumer):
    role_repo.add(Role(id="r1", name="Agents"))
    profile_repo.profiles[consumer.id].roles = ["r1"]

    with pytest.raises(PermissionDeniedError):
        await role_service.assign_role(consumer.uid, consumer.id, "r1")
    with pytest.raises(PermissionDeniedError):
        await role_service.revoke_role(consumer.uid, consumer.id, "r1")
    assert profile_repo.profiles[consumer.id].roles == ["r1"]


@pytest.mark.asyncio
async def test_suspended_admin_cannot_manage_roles(role_service, role_repo, profile_repo, acting_admin, consumer):
    profile_repo.profiles[acting_admin.id].suspended = True
    role_repo.add(Role(id="r1", name="Agents"))

    with pytest.raises(PermissionDeniedError):
        await role_service.assign_role(acting_admin.uid, consumer.id, "r1")
    with pytest.raises(PermissionDeniedError):
        await role_service.create_role(acting_admin.uid, "Clerks", [])


@pytest.mark.asyncio
async def test_role_operations_are_traced(role_service, tracer, acting_admin):
    await role_service.get_all_roles(acting_admin.uid)
    assert "GetAllRoles" in tracer.names()
