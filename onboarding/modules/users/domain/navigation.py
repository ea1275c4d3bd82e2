"""
Navigation Action Domain Model

Client navigation entries and the catalogue they are selected from.
"""
from dataclasses import dataclass, field, replace
from typing import List, Optional

from .roles import (
    CAN_ASSIGN_ROLE,
    CAN_CREATE_ROLE,
    CAN_IDENTIFY_PATIENT,
    CAN_PROCESS_KYC,
    CAN_REGISTER_PATIENT,
    CAN_VIEW_CONSUMERS,
    CAN_VIEW_PARTNERS,
    CAN_VIEW_ROLE,
)

STATIC_BASE = "https://assets.healthcloud.co.ke"


@dataclass
class NavigationAction:
    group: str
    title: str
    sequence_number: int
    on_tap_route: str = ""
    icon: str = ""
    required_permission: Optional[str] = None
    has_parent: bool = False
    favorite: bool = False
    nested: List["NavigationAction"] = field(default_factory=list)

    def copy(self) -> "NavigationAction":
        return replace(self, nested=list(self.nested))

    def to_dict(self) -> dict:
        return {
            "group": self.group,
            "title": self.title,
            "on_tap_route": self.on_tap_route,
            "icon": self.icon,
            "sequence_number": self.sequence_number,
            "favorite": self.favorite,
            "nested": [n.to_dict() for n in self.nested],
        }


# Sequence numbers; the order here is the display order
(
    HOME_SEQUENCE,
    ROLE_SEQUENCE,
    ROLE_CREATION_SEQUENCE,
    ROLE_VIEWING_SEQUENCE,
    ROLE_ASSIGN_SEQUENCE,
    REQUESTS_SEQUENCE,
    PARTNER_SEQUENCE,
    CONSUMER_SEQUENCE,
    PATIENT_SEQUENCE,
    PATIENT_SEARCH_SEQUENCE,
    PATIENT_REGISTRATION_SEQUENCE,
    HELP_SEQUENCE,
) = range(1, 13)


HOME_NAV_ACTION = NavigationAction(
    group="home", title="Home", on_tap_route="/home",
    icon=f"{STATIC_BASE}/actions/home_navaction.png", sequence_number=HOME_SEQUENCE,
)
HELP_NAV_ACTION = NavigationAction(
    group="help", title="Help", on_tap_route="/helpCenter",
    icon=f"{STATIC_BASE}/actions/help_navaction.png", sequence_number=HELP_SEQUENCE,
)
KYC_NAV_ACTION = NavigationAction(
    group="kyc", title="Requests", on_tap_route="/admin",
    icon=f"{STATIC_BASE}/actions/request_navaction.png",
    required_permission=CAN_PROCESS_KYC, sequence_number=REQUESTS_SEQUENCE,
)
PARTNER_NAV_ACTION = NavigationAction(
    group="partner", title="Partners", on_tap_route="/partners",
    icon=f"{STATIC_BASE}/actions/partner_navaction.png",
    required_permission=CAN_VIEW_PARTNERS, sequence_number=PARTNER_SEQUENCE,
)
CONSUMER_NAV_ACTION = NavigationAction(
    group="consumer", title="Consumers", on_tap_route="/consumers",
    icon=f"{STATIC_BASE}/actions/consumer_navaction.png",
    required_permission=CAN_VIEW_CONSUMERS, sequence_number=CONSUMER_SEQUENCE,
)

ROLE_NAV_ACTION = NavigationAction(
    group="role", title="Role Management",
    icon=f"{STATIC_BASE}/actions/roles_navaction.png", sequence_number=ROLE_SEQUENCE,
)
ROLE_CREATION_NAV_ACTION = NavigationAction(
    group="role", title="Create Role", on_tap_route="/createRoleStepOne",
    required_permission=CAN_CREATE_ROLE, has_parent=True, sequence_number=ROLE_CREATION_SEQUENCE,
)
ROLE_VIEWING_NAV_ACTION = NavigationAction(
    group="role", title="View Roles", on_tap_route="/viewCreatedRolesPage",
    required_permission=CAN_VIEW_ROLE, has_parent=True, sequence_number=ROLE_VIEWING_SEQUENCE,
)
ROLE_ASSIGN_NAV_ACTION = NavigationAction(
    group="role", title="Assign Role", on_tap_route="/bewellUserIdentification",
    required_permission=CAN_ASSIGN_ROLE, has_parent=True, sequence_number=ROLE_ASSIGN_SEQUENCE,
)

PATIENT_NAV_ACTION = NavigationAction(
    group="patient", title="Patients",
    icon=f"{STATIC_BASE}/actions/patient_navaction.png", sequence_number=PATIENT_SEQUENCE,
)
PATIENT_SEARCH_NAV_ACTION = NavigationAction(
    group="patient", title="Search Patient", on_tap_route="/patients",
    required_permission=CAN_IDENTIFY_PATIENT, has_parent=True, sequence_number=PATIENT_SEARCH_SEQUENCE,
)
PATIENT_REGISTRATION_NAV_ACTION = NavigationAction(
    group="patient", title="Register Patient", on_tap_route="/addPatient",
    required_permission=CAN_REGISTER_PATIENT, has_parent=True, sequence_number=PATIENT_REGISTRATION_SEQUENCE,
)

ALL_NAVIGATION_ACTIONS = [
    HOME_NAV_ACTION,
    HELP_NAV_ACTION,
    KYC_NAV_ACTION,
    PARTNER_NAV_ACTION,
    CONSUMER_NAV_ACTION,
    ROLE_NAV_ACTION,
    ROLE_CREATION_NAV_ACTION,
    ROLE_VIEWING_NAV_ACTION,
    ROLE_ASSIGN_NAV_ACTION,
    PATIENT_NAV_ACTION,
    PATIENT_SEARCH_NAV_ACTION,
    PATIENT_REGISTRATION_NAV_ACTION,
]
