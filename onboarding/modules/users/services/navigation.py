"""
Navigation Actions

Selects the navigation actions a profile may see and splits them into
primary and secondary groups for the client.
"""
from typing import Dict, List, Optional, Sequence, Tuple

from onboarding.modules.users.domain.navigation import ALL_NAVIGATION_ACTIONS, NavigationAction
from onboarding.modules.users.domain.profile import UserProfile
from onboarding.modules.users.domain.roles import Role, get_user_permissions, has_permission

MAX_PRIMARY_ACTIONS = 4


def group_nested(actions: Sequence[NavigationAction]) -> List[NavigationAction]:
    """
    Attaches child actions to the parent of their group.

    Parents with neither a route nor children are dropped; a parent with a
    single child is replaced by that child, which inherits the parent's icon.
    """
    grouped = []
    for parent in (a for a in actions if not a.has_parent):
        parent = parent.copy()
        parent.nested = [a for a in actions if a.has_parent and a.group == parent.group]

        if not parent.nested and not parent.on_tap_route:
            continue
        if len(parent.nested) == 1:
            child = parent.nested[0].copy()
            child.icon = parent.icon
            grouped.append(child)
        else:
            grouped.append(parent)
    return grouped


def group_priority(actions: Sequence[NavigationAction]) -> Tuple[List[NavigationAction], List[NavigationAction]]:
    """
    Splits actions into (primary, secondary). Only actions without children
    qualify as primary and there are at most four of them.
    """
    ordered = sorted(actions, key=lambda a: a.sequence_number)
    non_nested = [a for a in ordered if not a.nested]
    nested = [a for a in ordered if a.nested]

    primary = non_nested[:MAX_PRIMARY_ACTIONS]
    secondary = non_nested[MAX_PRIMARY_ACTIONS:] + nested

    return (
        sorted(primary, key=lambda a: a.sequence_number),
        sorted(secondary, key=lambda a: a.sequence_number),
    )


def get_user_navigation_actions(
    profile: UserProfile,
    roles: Sequence[Role],
    actions: Optional[Sequence[NavigationAction]] = None,
) -> Dict[str, List[dict]]:
    """Navigation actions for a profile, grouped as {"primary": [...], "secondary": [...]}."""
    actions = ALL_NAVIGATION_ACTIONS if actions is None else actions
    scopes = set(get_user_permissions(roles))

    allowed = []
    for action in actions:
        if action.required_permission is None or has_permission(scopes, action.required_permission):
            action = action.copy()
            action.favorite = action.title in profile.fav_nav_actions
            allowed.append(action)

    primary, secondary = group_priority(group_nested(allowed))
    return {
        "primary": [a.to_dict() for a in primary],
        "secondary": [a.to_dict() for a in secondary],
    }
