"""
Roles and Permissions

Permissions are open-ended string scopes. A role groups scopes and can be
deactivated without being deleted; only active roles grant anything.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Set


# Permission scopes
CAN_VIEW_ROLE = "role.view"
CAN_CREATE_ROLE = "role.create"
CAN_ASSIGN_ROLE = "role.assign"
CAN_REGISTER_EMPLOYEE = "employee.create"
CAN_REMOVE_EMPLOYEE = "employee.remove"
CAN_VIEW_EMPLOYEES = "employee.view"
CAN_VIEW_CONSUMERS = "consumer.view"
CAN_VIEW_PARTNERS = "partner.view"
CAN_PROCESS_KYC = "kyc.process"
CAN_REGISTER_PATIENT = "patient.create"
CAN_IDENTIFY_PATIENT = "patient.identify"
# Hard delete of accounts; only granted through an explicitly assigned role
CAN_REMOVE_USER = "user.remove"


class RoleType(str, Enum):
    EMPLOYEE = "EMPLOYEE"
    AGENT = "AGENT"
    CONSUMER = "CONSUMER"

    def permissions(self) -> List[str]:
        return list(ROLE_TYPE_PERMISSIONS.get(self, []))


ROLE_TYPE_PERMISSIONS = {
    RoleType.EMPLOYEE: [
        CAN_VIEW_ROLE,
        CAN_CREATE_ROLE,
        CAN_ASSIGN_ROLE,
        CAN_REGISTER_EMPLOYEE,
        CAN_REMOVE_EMPLOYEE,
        CAN_VIEW_EMPLOYEES,
        CAN_VIEW_CONSUMERS,
        CAN_VIEW_PARTNERS,
        CAN_PROCESS_KYC,
        CAN_REGISTER_PATIENT,
        CAN_IDENTIFY_PATIENT,
    ],
    RoleType.AGENT: [
        CAN_REGISTER_PATIENT,
        CAN_IDENTIFY_PATIENT,
    ],
    RoleType.CONSUMER: [],
}


@dataclass
class Role:
    id: str
    name: str
    scopes: List[str] = field(default_factory=list)
    description: str = ""
    active: bool = True
    created_by: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Role":
        return cls(
            id=data["id"],
            name=data["name"],
            scopes=list(data.get("scopes") or []),
            description=data.get("description") or "",
            active=bool(data.get("active", True)),
            created_by=data.get("created_by"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "scopes": list(self.scopes),
            "description": self.description,
            "active": self.active,
            "created_by": self.created_by,
        }


def has_permission(scopes: Iterable[str], required: str) -> bool:
    """Capability check over a set of scopes."""
    return required in set(scopes)


def get_user_permissions(roles: Iterable[Role]) -> List[str]:
    """All scopes granted by active roles, de-duplicated, first-seen order."""
    seen: Set[str] = set()
    scopes: List[str] = []
    for role in roles:
        if not role.active:
            continue
        for scope in role.scopes:
            if scope not in seen:
                seen.add(scope)
                scopes.append(scope)
    return scopes
