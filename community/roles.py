"""
================================================================================
GATORHUB COMMUNITY - ROLE MODEL
================================================================================

@file        roles.py
@description Pure permission rules for site roles and group roles
@version     1.0.0

MODULE PURPOSE
================================================================================
Every permission decision of the platform is made here, from role values
that the caller has already fetched. Nothing in this module touches the
database, so every rule can be exercised with literal integers.

ROLE TIERS
================================================================================
Site roles (total order):   0 Unapproved < 1 Approved < 2 Moderator < 3 Administrator
Group roles (total order):  1 Member < 2 Moderator < 3 Administrator

A missing group role (``None``) means "not a member of that group".

USAGE
================================================================================
    from community.roles import Action, SiteRole, allowed

    allowed(SiteRole.ADMINISTRATOR, None, SiteRole.APPROVED, None,
            Action.APPOINT_MODERATOR)            # True

    denial = check(actor_role, group_role, None, target_group_role,
                   Action.KICK_GROUP_MEMBER)
    if denial:
        return denial                            # Forbidden outcome

================================================================================
"""

import enum
from dataclasses import dataclass
from typing import Optional

from .outcomes import Forbidden


# ============================================================================
# SECTION 1: ROLE ENUMERATIONS
# ============================================================================

class SiteRole(enum.IntEnum):
    UNAPPROVED = 0
    APPROVED = 1
    MODERATOR = 2
    ADMINISTRATOR = 3

    @property
    def label(self):
        return self.name.title()


class GroupRole(enum.IntEnum):
    MEMBER = 1
    MODERATOR = 2
    ADMINISTRATOR = 3

    @property
    def label(self):
        return self.name.title()


class Action(enum.Enum):
    """Every guarded action of the platform."""

    # Site role transitions
    APPROVE_USER = "approve_user"
    REJECT_USER = "reject_user"
    BAN_USER = "ban_user"
    APPOINT_MODERATOR = "appoint_moderator"
    UNAPPOINT_MODERATOR = "unappoint_moderator"
    RESET_PASSWORD = "reset_password"
    VIEW_APPROVAL_REQUESTS = "view_approval_requests"

    # Group role transitions and membership
    PROMOTE_GROUP_MEMBER = "promote_group_member"
    DEMOTE_GROUP_MODERATOR = "demote_group_moderator"
    KICK_GROUP_MEMBER = "kick_group_member"
    LEAVE_GROUP = "leave_group"
    DELETE_GROUP = "delete_group"
    CHANGE_ANNOUNCEMENT = "change_announcement"
    INVITE_TO_GROUP = "invite_to_group"
    VIEW_GROUP = "view_group"

    # Content
    CREATE_CONTENT = "create_content"
    DELETE_LISTING = "delete_listing"
    DELETE_THREAD = "delete_thread"
    DELETE_POST = "delete_post"


@dataclass(frozen=True)
class Actor:
    """
    Identity performing a request.

    Attributes:
        id (int): User primary key
        site_role (SiteRole): Global permission tier
        banned (bool): True once a moderator has banned the user
    """

    id: int
    site_role: SiteRole
    banned: bool = False

    @classmethod
    def from_user(cls, user):
        return cls(
            id=user.pk,
            site_role=SiteRole(user.site_role),
            banned=user.banned_by_id is not None,
        )


# ============================================================================
# SECTION 2: GUARD EVALUATION
# ============================================================================

def _at_least(role, minimum):
    return role is not None and role >= minimum


def check(
    actor_site_role: Optional[int],
    actor_group_role: Optional[int],
    target_site_role: Optional[int],
    target_group_role: Optional[int],
    action: Action,
    *,
    is_creator: bool = False,
) -> Optional[Forbidden]:
    """
    Evaluate a guard and explain a refusal.

    Args:
        actor_site_role: Site role of the acting user
        actor_group_role: Actor's role in the group concerned, ``None`` if not a member
        target_site_role: Site role of the target user, when the action has one
        target_group_role: Target's role in the group, ``None`` if not a member
        action: The action being attempted
        is_creator: Whether the actor created the targeted listing or thread

    Returns:
        Forbidden: with a user-facing reason when the action is refused
        None: when the action is permitted
    """
    site = actor_site_role

    if action is Action.APPROVE_USER or action is Action.REJECT_USER:
        verb = "approve" if action is Action.APPROVE_USER else "reject"
        if not _at_least(site, SiteRole.MODERATOR):
            return Forbidden(f"Only moderators or administrators can {verb} users.")
        if target_site_role != SiteRole.UNAPPROVED:
            return Forbidden(f"You can only {verb} unapproved users.")
        return None

    if action is Action.BAN_USER:
        if not _at_least(site, SiteRole.MODERATOR):
            return Forbidden("Only moderators or administrators can ban users.")
        if target_site_role is None or target_site_role >= SiteRole.MODERATOR:
            return Forbidden("You can only ban unapproved or approved users.")
        return None

    if action is Action.APPOINT_MODERATOR:
        if site != SiteRole.ADMINISTRATOR:
            return Forbidden("Only administrators can appoint moderators.")
        if target_site_role != SiteRole.APPROVED:
            return Forbidden("The provided user ID does not belong to an approved user.")
        return None

    if action is Action.UNAPPOINT_MODERATOR:
        if site != SiteRole.ADMINISTRATOR:
            return Forbidden("Only administrators can unappoint moderators.")
        if target_site_role != SiteRole.MODERATOR:
            return Forbidden("The provided user ID does not belong to a moderator.")
        return None

    if action is Action.RESET_PASSWORD:
        if site != SiteRole.ADMINISTRATOR:
            return Forbidden("Only administrators can change other users' passwords.")
        if target_site_role is None or target_site_role >= SiteRole.ADMINISTRATOR:
            return Forbidden("You cannot change an administrator's password.")
        return None

    if action is Action.VIEW_APPROVAL_REQUESTS:
        if not _at_least(site, SiteRole.MODERATOR):
            return Forbidden("Only moderators or administrators can view approval requests.")
        return None

    if action is Action.PROMOTE_GROUP_MEMBER:
        if actor_group_role != GroupRole.ADMINISTRATOR:
            return Forbidden("Only the group's admin can promote members.")
        if target_group_role != GroupRole.MEMBER:
            return Forbidden("You can only promote group members to group moderators.")
        return None

    if action is Action.DEMOTE_GROUP_MODERATOR:
        if actor_group_role != GroupRole.ADMINISTRATOR:
            return Forbidden("Only the group's admin can demote moderators.")
        if target_group_role != GroupRole.MODERATOR:
            return Forbidden("You can only demote group moderators to group members.")
        return None

    if action is Action.KICK_GROUP_MEMBER:
        if not _at_least(actor_group_role, GroupRole.MODERATOR):
            return Forbidden("Only group moderators and the group's admin can kick members.")
        if target_group_role != GroupRole.MEMBER:
            return Forbidden("You can only kick group members from a group.")
        return None

    if action is Action.LEAVE_GROUP:
        if actor_group_role == GroupRole.ADMINISTRATOR:
            return Forbidden("You cannot leave your group because you are its administrator.")
        return None

    if action is Action.DELETE_GROUP:
        if actor_group_role != GroupRole.ADMINISTRATOR:
            return Forbidden("Only group admins can delete their group.")
        return None

    if action is Action.CHANGE_ANNOUNCEMENT:
        if actor_group_role != GroupRole.ADMINISTRATOR:
            return Forbidden("Only the group's admin can change the group's announcement.")
        return None

    if action is Action.INVITE_TO_GROUP or action is Action.VIEW_GROUP:
        if actor_group_role is None:
            return Forbidden("You are not a member of this group.")
        return None

    if action is Action.CREATE_CONTENT:
        if not _at_least(site, SiteRole.APPROVED):
            return Forbidden("Your account must be approved before you can do that.")
        return None

    if action is Action.DELETE_LISTING:
        if is_creator or _at_least(site, SiteRole.MODERATOR):
            return None
        return Forbidden("Only the seller and moderators can delete listings.")

    if action is Action.DELETE_THREAD:
        if is_creator or _at_least(site, SiteRole.MODERATOR):
            return None
        if _at_least(actor_group_role, GroupRole.MODERATOR):
            return None
        return Forbidden("Only the thread's creator and moderators can delete threads.")

    if action is Action.DELETE_POST:
        if _at_least(site, SiteRole.MODERATOR) or _at_least(actor_group_role, GroupRole.MODERATOR):
            return None
        return Forbidden("Only moderators can delete posts.")

    raise ValueError(f"Unknown action: {action!r}")


def allowed(
    actor_site_role: Optional[int],
    actor_group_role: Optional[int],
    target_site_role: Optional[int],
    target_group_role: Optional[int],
    action: Action,
    *,
    is_creator: bool = False,
) -> bool:
    """Return True when ``action`` is permitted for the given role values."""
    return check(
        actor_site_role,
        actor_group_role,
        target_site_role,
        target_group_role,
        action,
        is_creator=is_creator,
    ) is None


def check_actor(actor: Actor, action: Action, **kwargs) -> Optional[Forbidden]:
    """Guard an action for a session ``Actor``; banned actors are always refused."""
    if actor.banned:
        return Forbidden("Your account has been banned.")
    return check(
        actor.site_role,
        kwargs.pop("actor_group_role", None),
        kwargs.pop("target_site_role", None),
        kwargs.pop("target_group_role", None),
        action,
        **kwargs,
    )
