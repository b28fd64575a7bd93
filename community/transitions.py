"""
================================================================================
GATORHUB COMMUNITY - ROLE TRANSITIONS & MEMBERSHIP
================================================================================

@file        transitions.py
@description Guarded changes to site roles, group roles and memberships
@version     1.0.0

MODULE PURPOSE
================================================================================
Each function fetches the role values involved, asks ``roles.check`` for a
decision and applies the change. All functions return outcomes from
``community.outcomes``; none raise for expected failures.

1. Site moderation
   approve_user, reject_user, ban_user, appoint_moderator,
   unappoint_moderator, reset_password

2. Group membership
   join_group, leave_group, kick_member, promote_member,
   demote_moderator, invite_to_group, change_announcement

3. Posts & messaging
   make_post, send_direct_message, send_chat_message

INVARIANTS
================================================================================
- A group always keeps exactly one Administrator: the Administrator can
  never leave, be kicked, be promoted or be demoted through this module
- A user has at most one membership per group (unique constraint)
- Administrators are never banned and never have their password reset

================================================================================
"""

import logging

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction

from .forms import AnnouncementForm, MessageForm, PasswordResetForm
from .lifecycle import ResourceKind, ResourceLifecycleManager, group_role_of
from .models import ChatMessage, DirectMessage, Group, GroupMembership, User
from .outcomes import Conflict, Forbidden, NotFound, Ok, ServerError, ValidationError
from .pairing import get_or_create_conversation
from .roles import Action, GroupRole, SiteRole, check, check_actor


logger = logging.getLogger(__name__)


def _server_error(message, e):
    logger.error(f"{message} ({type(e).__name__}: {str(e)})", exc_info=True)
    return ServerError(message)


# ============================================================================
# SECTION 1: SITE MODERATION
# ============================================================================

def _set_site_role(actor, target_id, action, from_role, new_role, success_message, already_message):
    target = User.objects.filter(pk=target_id).first()
    if target is None:
        return NotFound(f"There is no user with the id '{target_id}'.")

    if target.site_role == new_role:
        return check_actor(actor, action, target_site_role=from_role) or Conflict(already_message)

    denial = check_actor(actor, action, target_site_role=target.site_role)
    if denial:
        return denial

    try:
        User.objects.filter(pk=target.pk).update(site_role=new_role)
    except DatabaseError as e:
        return _server_error("An error occurred while changing the user's role.", e)

    logger.info(f"User {actor.id} set site role of {target.pk} to {SiteRole(new_role).label}")
    return Ok(message=success_message.format(name=target.full_name, id=target.pk))


def approve_user(actor, target_id):
    return _set_site_role(
        actor, target_id, Action.APPROVE_USER, SiteRole.UNAPPROVED, SiteRole.APPROVED,
        "{name} has been approved.",
        "That user is already approved.",
    )


def appoint_moderator(actor, target_id):
    return _set_site_role(
        actor, target_id, Action.APPOINT_MODERATOR, SiteRole.APPROVED, SiteRole.MODERATOR,
        "{name} is now a moderator.",
        "That user is already a moderator.",
    )


def unappoint_moderator(actor, target_id):
    return _set_site_role(
        actor, target_id, Action.UNAPPOINT_MODERATOR, SiteRole.MODERATOR, SiteRole.APPROVED,
        "{name} is no longer a moderator.",
        "That user is not a moderator.",
    )


def reject_user(actor, target_id, manager=None):
    """Reject an unapproved registration; the account and its ID picture are deleted."""
    manager = manager or ResourceLifecycleManager()
    return manager.destroy(ResourceKind.ACCOUNT, target_id, actor)


def ban_user(actor, target_id):
    target = User.objects.filter(pk=target_id).first()
    if target is None:
        return NotFound(f"There is no user with the id '{target_id}'.")

    denial = check_actor(actor, Action.BAN_USER, target_site_role=target.site_role)
    if denial:
        return denial
    if target.is_banned:
        return Conflict("That user is already banned.")

    try:
        User.objects.filter(pk=target.pk).update(banned_by_id=actor.id)
    except DatabaseError as e:
        return _server_error("An error occurred while banning the user.", e)

    logger.info(f"User {actor.id} banned user {target.pk}")
    return Ok(message=f"Successfully banned the user with ID {target.pk}.")


def reset_password(actor, target_id, new_password):
    form = PasswordResetForm({"new_password": new_password})
    if not form.is_valid():
        return ValidationError.from_form(form)

    target = User.objects.filter(pk=target_id).first()
    if target is None:
        return NotFound(f"There is no user with the id '{target_id}'.")

    denial = check_actor(actor, Action.RESET_PASSWORD, target_site_role=target.site_role)
    if denial:
        return denial

    try:
        target.set_password(form.cleaned_data["new_password"])
        target.save(update_fields=["password"])
    except DatabaseError as e:
        return _server_error("An error occurred while changing the user's password.", e)

    logger.info(f"Administrator {actor.id} reset the password of user {target.pk}")
    return Ok(message=f"The password of {target.full_name} has been changed.")


# ============================================================================
# SECTION 2: GROUP MEMBERSHIP
# ============================================================================

def join_group(actor, group_id, join_code):
    denial = check_actor(actor, Action.CREATE_CONTENT)
    if denial:
        return denial

    group = Group.objects.filter(pk=group_id).first()
    if group is None:
        return NotFound("There is no group with that id.")
    if group_role_of(actor.id, group.pk) is not None:
        return Conflict("You are already a member of this group.")
    if join_code != group.join_code:
        return Forbidden("Invalid join code.")

    try:
        with transaction.atomic():
            GroupMembership.objects.create(group=group, user_id=actor.id, role=GroupRole.MEMBER)
    except IntegrityError:
        return Conflict("You are already a member of this group.")
    except DatabaseError as e:
        return _server_error("An error occurred while joining the group.", e)

    logger.info(f"User {actor.id} joined group {group.pk}")
    return Ok(value=group.pk, message=f"You have joined {group.name}.")


def leave_group(actor, group_id):
    role = group_role_of(actor.id, group_id)
    if role is None:
        return NotFound("You cannot leave a group you are not a member of.")

    denial = check(actor.site_role, role, None, None, Action.LEAVE_GROUP)
    if denial:
        return denial

    try:
        GroupMembership.objects.filter(group_id=group_id, user_id=actor.id).delete()
    except DatabaseError as e:
        return _server_error("An error occurred while leaving the group.", e)

    logger.info(f"User {actor.id} left group {group_id}")
    return Ok(message="You have left the group.")


def _membership_transition(actor, group_id, target_id, action):
    """Fetch both roles in a group and guard ``action``; returns (membership, denial)."""
    target = (
        GroupMembership.objects.select_related("user")
        .filter(group_id=group_id, user_id=target_id)
        .first()
    )
    if target is None:
        return None, NotFound("That user is not a member of this group.")

    denial = check_actor(
        actor, action,
        actor_group_role=group_role_of(actor.id, group_id),
        target_group_role=GroupRole(target.role),
    )
    return target, denial


def kick_member(actor, group_id, target_id):
    membership, denial = _membership_transition(actor, group_id, target_id, Action.KICK_GROUP_MEMBER)
    if denial:
        return denial

    try:
        membership.delete()
    except DatabaseError as e:
        return _server_error("An error occurred while kicking the member.", e)

    logger.info(f"User {actor.id} kicked user {target_id} from group {group_id}")
    return Ok(message=f"{membership.user.full_name} has been kicked from the group.")


def _set_group_role(actor, group_id, target_id, action, from_role, new_role, success_message, already_message):
    membership, denial = _membership_transition(actor, group_id, target_id, action)
    if membership is not None and membership.role == new_role:
        denial = check_actor(
            actor, action,
            actor_group_role=group_role_of(actor.id, group_id),
            target_group_role=from_role,
        )
        return denial or Conflict(already_message.format(name=membership.user.full_name))
    if denial:
        return denial

    try:
        GroupMembership.objects.filter(pk=membership.pk).update(role=new_role)
    except DatabaseError as e:
        return _server_error("An error occurred while changing the member's role.", e)

    logger.info(f"User {actor.id} set role of {target_id} in group {group_id} to {GroupRole(new_role).label}")
    return Ok(message=success_message.format(name=membership.user.full_name))


def promote_member(actor, group_id, target_id):
    return _set_group_role(
        actor, group_id, target_id, Action.PROMOTE_GROUP_MEMBER, GroupRole.MEMBER, GroupRole.MODERATOR,
        "{name} has been promoted to moderator.",
        "{name} is already a group moderator.",
    )


def demote_moderator(actor, group_id, target_id):
    return _set_group_role(
        actor, group_id, target_id, Action.DEMOTE_GROUP_MODERATOR, GroupRole.MODERATOR, GroupRole.MEMBER,
        "{name} has been demoted to member.",
        "{name} is already a group member.",
    )


def invitation_text(group, base_url=None):
    base_url = (base_url or settings.SITE_URL).rstrip("/")
    return (
        f'I am inviting you to our group "{group.name}"! Here is the invitation link:\n'
        f"{base_url}/join-group/{group.pk}/{group.join_code}"
    )


def invite_to_group(actor, group_id, recipient_id, base_url=None):
    """
    Send a group invitation to another user as a direct message.

    The message carries the group's join link, so the recipient can join
    with ``join_group``.
    """
    group = Group.objects.filter(pk=group_id).first()
    if group is None:
        return NotFound("There is no group with that id.")

    denial = check_actor(actor, Action.INVITE_TO_GROUP, actor_group_role=group_role_of(actor.id, group.pk))
    if denial:
        return denial

    if not User.objects.filter(pk=recipient_id).exists():
        return NotFound(f"There is no user with the id '{recipient_id}'.")
    if recipient_id == actor.id:
        return Conflict("You are already a member of this group.")

    return _deliver_direct_message(actor, recipient_id, invitation_text(group, base_url))


def change_announcement(actor, group_id, announcement):
    form = AnnouncementForm({"announcement": announcement})
    if not form.is_valid():
        return ValidationError.from_form(form)

    if not Group.objects.filter(pk=group_id).exists():
        return NotFound("There is no group with that id.")

    denial = check_actor(actor, Action.CHANGE_ANNOUNCEMENT, actor_group_role=group_role_of(actor.id, group_id))
    if denial:
        return denial

    try:
        Group.objects.filter(pk=group_id).update(announcement=form.cleaned_data["announcement"])
    except DatabaseError as e:
        return _server_error("A server error occurred whilst changing your announcement.", e)
    return Ok(message="The announcement has been changed.")


# ============================================================================
# SECTION 3: POSTS & MESSAGING
# ============================================================================

def make_post(actor, thread_id, body, manager=None):
    """Reply in a thread; group threads need membership."""
    manager = manager or ResourceLifecycleManager()
    return manager.create(ResourceKind.POST, actor, {"thread_id": thread_id, "body": body})


def _deliver_direct_message(actor, recipient_id, body):
    opened = get_or_create_conversation(actor.id, recipient_id)
    if not opened.ok:
        return opened

    try:
        message = DirectMessage.objects.create(conversation_id=opened.value, author_id=actor.id, body=body)
    except DatabaseError as e:
        return _server_error("An error occurred while sending your message.", e)
    return Ok(value=message.pk)


def send_direct_message(actor, recipient_id, body):
    denial = check_actor(actor, Action.CREATE_CONTENT)
    if denial:
        return denial

    form = MessageForm({"body": body})
    if not form.is_valid():
        return ValidationError.from_form(form)

    if recipient_id == actor.id:
        return Forbidden("You cannot message yourself.")
    if not User.objects.filter(pk=recipient_id).exists():
        return NotFound(f"There is no user with the id '{recipient_id}'.")

    return _deliver_direct_message(actor, recipient_id, form.cleaned_data["body"])


def send_chat_message(actor, group_id, body):
    """Post to a group chat, or to the site-wide chat when ``group_id`` is None."""
    denial = check_actor(actor, Action.CREATE_CONTENT)
    if denial:
        return denial

    form = MessageForm({"body": body})
    if not form.is_valid():
        return ValidationError.from_form(form)

    if group_id is not None:
        if not Group.objects.filter(pk=group_id).exists():
            return NotFound("There is no group with that id.")
        denial = check(actor.site_role, group_role_of(actor.id, group_id), None, None, Action.VIEW_GROUP)
        if denial:
            return denial

    try:
        message = ChatMessage.objects.create(group_id=group_id, author_id=actor.id, body=form.cleaned_data["body"])
    except DatabaseError as e:
        return _server_error("An error occurred while sending your message.", e)
    return Ok(value=message.pk)
