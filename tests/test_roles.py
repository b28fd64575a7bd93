"""Role Model — tests for pure permission rules over literal role values.

Invariants:
    - Only a site Administrator may appoint or unappoint a site Moderator
    - Administrators are never banned and never have their password reset
    - The Group Administrator can never leave or be kicked
    - Listings and threads are deletable by their creator or a site Moderator+
    - Original posts are never deletable on their own

Tests cover:
    - allowed() truth tables for site transitions
    - group transitions (promote, demote, kick, leave, delete)
    - content deletion rules
    - check() reasons and check_actor() banned handling
"""

import pytest

from community.outcomes import Forbidden
from community.roles import Action, Actor, GroupRole, SiteRole, allowed, check, check_actor


ALL_SITE_ROLES = list(SiteRole)
ALL_GROUP_ROLES = [None] + list(GroupRole)


# ─── site transitions ────────────────────────────────────────────

@pytest.mark.parametrize("role", ALL_SITE_ROLES)
def test_appoint_moderator_allowed_only_for_administrators(role):
    assert allowed(role, None, SiteRole.APPROVED, None, Action.APPOINT_MODERATOR) == (role == SiteRole.ADMINISTRATOR)


@pytest.mark.parametrize("target", [SiteRole.UNAPPROVED, SiteRole.MODERATOR, SiteRole.ADMINISTRATOR])
def test_appoint_moderator_requires_approved_target(target):
    assert not allowed(SiteRole.ADMINISTRATOR, None, target, None, Action.APPOINT_MODERATOR)


@pytest.mark.parametrize("role", ALL_SITE_ROLES)
def test_unappoint_moderator_allowed_only_for_administrators(role):
    assert allowed(role, None, SiteRole.MODERATOR, None, Action.UNAPPOINT_MODERATOR) == (role == SiteRole.ADMINISTRATOR)


@pytest.mark.parametrize("action", [Action.APPROVE_USER, Action.REJECT_USER])
@pytest.mark.parametrize("role", ALL_SITE_ROLES)
def test_approve_and_reject_need_moderator_and_unapproved_target(action, role):
    assert allowed(role, None, SiteRole.UNAPPROVED, None, action) == (role >= SiteRole.MODERATOR)
    assert not allowed(role, None, SiteRole.APPROVED, None, action)


@pytest.mark.parametrize("target", ALL_SITE_ROLES)
def test_ban_only_targets_below_moderator(target):
    assert allowed(SiteRole.ADMINISTRATOR, None, target, None, Action.BAN_USER) == (target < SiteRole.MODERATOR)


def test_approved_user_cannot_ban():
    denial = check(SiteRole.APPROVED, None, SiteRole.UNAPPROVED, None, Action.BAN_USER)
    assert denial == Forbidden("Only moderators or administrators can ban users.")


@pytest.mark.parametrize("target", ALL_SITE_ROLES)
def test_administrator_password_never_reset(target):
    assert allowed(SiteRole.ADMINISTRATOR, None, target, None, Action.RESET_PASSWORD) == (
        target < SiteRole.ADMINISTRATOR
    )


def test_moderator_cannot_reset_passwords():
    assert not allowed(SiteRole.MODERATOR, None, SiteRole.APPROVED, None, Action.RESET_PASSWORD)


@pytest.mark.parametrize("role", ALL_SITE_ROLES)
def test_approval_requests_visible_to_moderators_only(role):
    denial = check(role, None, None, None, Action.VIEW_APPROVAL_REQUESTS)
    if role >= SiteRole.MODERATOR:
        assert denial is None
    else:
        assert denial == Forbidden("Only moderators or administrators can view approval requests.")


# ─── group transitions ───────────────────────────────────────────

@pytest.mark.parametrize("actor_role", ALL_GROUP_ROLES)
def test_only_group_admin_promotes_members(actor_role):
    assert allowed(SiteRole.APPROVED, actor_role, None, GroupRole.MEMBER, Action.PROMOTE_GROUP_MEMBER) == (
        actor_role == GroupRole.ADMINISTRATOR
    )


def test_promote_refuses_non_member_targets():
    denial = check(SiteRole.APPROVED, GroupRole.ADMINISTRATOR, None, GroupRole.MODERATOR, Action.PROMOTE_GROUP_MEMBER)
    assert denial.message == "You can only promote group members to group moderators."


@pytest.mark.parametrize("target", ALL_GROUP_ROLES)
def test_demote_only_applies_to_moderators(target):
    assert allowed(SiteRole.APPROVED, GroupRole.ADMINISTRATOR, None, target, Action.DEMOTE_GROUP_MODERATOR) == (
        target == GroupRole.MODERATOR
    )


@pytest.mark.parametrize("actor_role", ALL_GROUP_ROLES)
@pytest.mark.parametrize("target", list(GroupRole))
def test_kick_needs_group_moderator_and_member_target(actor_role, target):
    expected = actor_role is not None and actor_role >= GroupRole.MODERATOR and target == GroupRole.MEMBER
    assert allowed(SiteRole.APPROVED, actor_role, None, target, Action.KICK_GROUP_MEMBER) == expected


@pytest.mark.parametrize("site_role", ALL_SITE_ROLES)
def test_group_admin_can_never_leave(site_role):
    denial = check(site_role, GroupRole.ADMINISTRATOR, None, None, Action.LEAVE_GROUP)
    assert isinstance(denial, Forbidden)
    assert denial.message == "You cannot leave your group because you are its administrator."


@pytest.mark.parametrize("site_role", ALL_SITE_ROLES)
def test_group_admin_can_never_be_kicked(site_role):
    assert not allowed(site_role, GroupRole.ADMINISTRATOR, None, GroupRole.ADMINISTRATOR, Action.KICK_GROUP_MEMBER)


def test_only_group_admin_deletes_group_even_for_site_admin():
    assert not allowed(SiteRole.ADMINISTRATOR, GroupRole.MODERATOR, None, None, Action.DELETE_GROUP)
    assert allowed(SiteRole.APPROVED, GroupRole.ADMINISTRATOR, None, None, Action.DELETE_GROUP)


def test_invite_requires_membership():
    assert not allowed(SiteRole.APPROVED, None, None, None, Action.INVITE_TO_GROUP)
    assert allowed(SiteRole.APPROVED, GroupRole.MEMBER, None, None, Action.INVITE_TO_GROUP)


# ─── content deletion ────────────────────────────────────────────

@pytest.mark.parametrize("action", [Action.DELETE_LISTING, Action.DELETE_THREAD])
@pytest.mark.parametrize("role", ALL_SITE_ROLES)
def test_listing_and_thread_delete_by_creator_or_site_moderator(action, role):
    assert allowed(role, None, None, None, action, is_creator=True)
    assert allowed(role, None, None, None, action) == (role >= SiteRole.MODERATOR)


def test_group_moderator_may_delete_group_threads():
    assert allowed(SiteRole.APPROVED, GroupRole.MODERATOR, None, None, Action.DELETE_THREAD)
    assert not allowed(SiteRole.APPROVED, GroupRole.MEMBER, None, None, Action.DELETE_THREAD)


def test_post_delete_needs_moderator_in_group_or_site():
    assert allowed(SiteRole.APPROVED, GroupRole.MODERATOR, None, None, Action.DELETE_POST)
    assert allowed(SiteRole.MODERATOR, None, None, None, Action.DELETE_POST)
    assert not allowed(SiteRole.APPROVED, GroupRole.MEMBER, None, None, Action.DELETE_POST)


def test_unapproved_users_cannot_create_content():
    assert not allowed(SiteRole.UNAPPROVED, None, None, None, Action.CREATE_CONTENT)
    assert allowed(SiteRole.APPROVED, None, None, None, Action.CREATE_CONTENT)


# ─── check_actor ─────────────────────────────────────────────────

def test_banned_actor_is_refused_everything():
    actor = Actor(id=1, site_role=SiteRole.ADMINISTRATOR, banned=True)
    assert check_actor(actor, Action.CREATE_CONTENT) == Forbidden("Your account has been banned.")


def test_check_actor_passes_role_keywords_through():
    actor = Actor(id=1, site_role=SiteRole.MODERATOR)
    assert check_actor(actor, Action.BAN_USER, target_site_role=SiteRole.APPROVED) is None
    assert check_actor(actor, Action.BAN_USER, target_site_role=SiteRole.MODERATOR) is not None
