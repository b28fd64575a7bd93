"""Role transitions — tests for moderation, membership and messaging changes.

Invariants:
    - A wrong join code never creates a membership
    - The group Administrator can never leave or be kicked
    - Administrators are never banned and never have their password reset
    - Invitations arrive as a direct message carrying the join link
    - Repeating a role change the target already holds is a Conflict

Tests cover:
    - approve / ban / appoint / unappoint / reset password
    - join, leave, kick, promote, demote
    - invitations and announcements
    - thread replies, direct and chat messages
"""

import pytest

from community import transitions
from community.models import ChatMessage, Conversation, DirectMessage, Group, GroupMembership, Post, User
from community.outcomes import Conflict, Forbidden, NotFound, Ok, ValidationError
from community.roles import GroupRole, SiteRole

from helpers import actor_of, add_member, make_image


# ─── site moderation ─────────────────────────────────────────────

def test_moderator_approves_unapproved_user(make_user):
    moderator = make_user(role=SiteRole.MODERATOR)
    pending = make_user(role=SiteRole.UNAPPROVED, first_name="Pending", last_name="Person")

    outcome = transitions.approve_user(actor_of(moderator), pending.pk)

    assert outcome == Ok(message="Pending Person has been approved.")
    pending.refresh_from_db()
    assert pending.site_role == SiteRole.APPROVED


def test_approve_unknown_user_is_not_found(make_user):
    outcome = transitions.approve_user(actor_of(make_user(role=SiteRole.MODERATOR)), 424242)

    assert outcome == NotFound("There is no user with the id '424242'.")


def test_reject_deletes_pending_account(make_user, manager):
    moderator = make_user(role=SiteRole.MODERATOR)
    pending = make_user(role=SiteRole.UNAPPROVED, sfsu_id_picture_path="private/sfsu_id_pictures/x.png")

    outcome = transitions.reject_user(actor_of(moderator), pending.pk, manager=manager)

    assert outcome.ok
    assert not User.objects.filter(pk=pending.pk).exists()


def test_ban_records_banning_moderator(make_user):
    moderator, user = make_user(role=SiteRole.MODERATOR), make_user()

    outcome = transitions.ban_user(actor_of(moderator), user.pk)

    assert outcome == Ok(message=f"Successfully banned the user with ID {user.pk}.")
    user.refresh_from_db()
    assert user.banned_by_id == moderator.pk
    assert user.is_banned


def test_ban_twice_is_conflict(make_user):
    moderator, user = make_user(role=SiteRole.MODERATOR), make_user()
    transitions.ban_user(actor_of(moderator), user.pk)

    assert transitions.ban_user(actor_of(moderator), user.pk) == Conflict("That user is already banned.")


@pytest.mark.parametrize("target_role", [SiteRole.MODERATOR, SiteRole.ADMINISTRATOR])
def test_moderators_and_administrators_cannot_be_banned(make_user, target_role):
    admin, target = make_user(role=SiteRole.ADMINISTRATOR), make_user(role=target_role)

    outcome = transitions.ban_user(actor_of(admin), target.pk)

    assert outcome == Forbidden("You can only ban unapproved or approved users.")
    target.refresh_from_db()
    assert not target.is_banned


def test_banned_moderator_cannot_act(make_user):
    moderator, user = make_user(role=SiteRole.MODERATOR), make_user()
    admin = make_user(role=SiteRole.ADMINISTRATOR)
    User.objects.filter(pk=moderator.pk).update(banned_by=admin)

    outcome = transitions.ban_user(actor_of(moderator), user.pk)

    assert outcome == Forbidden("Your account has been banned.")


def test_appoint_and_unappoint_moderator(make_user):
    admin, user = make_user(role=SiteRole.ADMINISTRATOR), make_user()

    assert transitions.appoint_moderator(actor_of(admin), user.pk).ok
    user.refresh_from_db()
    assert user.site_role == SiteRole.MODERATOR

    assert transitions.unappoint_moderator(actor_of(admin), user.pk).ok
    user.refresh_from_db()
    assert user.site_role == SiteRole.APPROVED


def test_moderator_cannot_appoint_moderators(make_user):
    moderator, user = make_user(role=SiteRole.MODERATOR), make_user()

    outcome = transitions.appoint_moderator(actor_of(moderator), user.pk)

    assert outcome == Forbidden("Only administrators can appoint moderators.")


def test_appoint_requires_approved_target(make_user):
    admin, pending = make_user(role=SiteRole.ADMINISTRATOR), make_user(role=SiteRole.UNAPPROVED)

    outcome = transitions.appoint_moderator(actor_of(admin), pending.pk)

    assert outcome == Forbidden("The provided user ID does not belong to an approved user.")


def test_approve_approved_user_is_conflict(make_user):
    moderator, user = make_user(role=SiteRole.MODERATOR), make_user()

    outcome = transitions.approve_user(actor_of(moderator), user.pk)

    assert outcome == Conflict("That user is already approved.")


def test_appoint_existing_moderator_is_conflict(make_user):
    admin, moderator = make_user(role=SiteRole.ADMINISTRATOR), make_user(role=SiteRole.MODERATOR)

    outcome = transitions.appoint_moderator(actor_of(admin), moderator.pk)

    assert outcome == Conflict("That user is already a moderator.")


def test_unappoint_approved_user_is_conflict(make_user):
    admin, user = make_user(role=SiteRole.ADMINISTRATOR), make_user()

    assert transitions.unappoint_moderator(actor_of(admin), user.pk) == Conflict("That user is not a moderator.")


def test_repeat_appointment_by_moderator_is_still_forbidden(make_user):
    moderator, other = make_user(role=SiteRole.MODERATOR), make_user(role=SiteRole.MODERATOR)

    outcome = transitions.appoint_moderator(actor_of(moderator), other.pk)

    assert outcome == Forbidden("Only administrators can appoint moderators.")


def test_superuser_is_site_administrator(db, make_user):
    root = User.objects.create_superuser(username="900999999", email="root@mail.sfsu.edu", password="x12345")
    pending = make_user(role=SiteRole.UNAPPROVED)

    assert root.site_role == SiteRole.ADMINISTRATOR
    assert transitions.approve_user(actor_of(root), pending.pk).ok
    assert transitions.ban_user(actor_of(root), make_user().pk).ok


def test_reset_password(make_user):
    admin, user = make_user(role=SiteRole.ADMINISTRATOR), make_user()

    outcome = transitions.reset_password(actor_of(admin), user.pk, "n3w-password")

    assert outcome.ok
    user.refresh_from_db()
    assert user.check_password("n3w-password")


def test_administrator_password_is_never_reset(make_user):
    admin, other_admin = make_user(role=SiteRole.ADMINISTRATOR), make_user(role=SiteRole.ADMINISTRATOR)

    outcome = transitions.reset_password(actor_of(admin), other_admin.pk, "n3w-password")

    assert outcome == Forbidden("You cannot change an administrator's password.")
    other_admin.refresh_from_db()
    assert other_admin.check_password("secret123")


def test_reset_password_validates_length(make_user):
    admin, user = make_user(role=SiteRole.ADMINISTRATOR), make_user()

    outcome = transitions.reset_password(actor_of(admin), user.pk, "x" * 65)

    assert isinstance(outcome, ValidationError)
    assert outcome.message == "The new password must be from 1-64 characters long."


# ─── joining & leaving ───────────────────────────────────────────

def test_wrong_join_code_is_forbidden_and_adds_nothing(make_user, make_group):
    group = make_group(make_user(), join_code="right-code")
    user = make_user()

    outcome = transitions.join_group(actor_of(user), group.pk, "wrong-code")

    assert outcome == Forbidden("Invalid join code.")
    assert not GroupMembership.objects.filter(group=group, user=user).exists()


def test_join_with_correct_code(make_user, make_group):
    group = make_group(make_user(), join_code="right-code")
    user = make_user()

    outcome = transitions.join_group(actor_of(user), group.pk, "right-code")

    assert outcome.ok
    assert outcome.value == group.pk
    assert GroupMembership.objects.get(group=group, user=user).role == GroupRole.MEMBER


def test_join_twice_is_conflict(make_user, make_group):
    group = make_group(make_user(), join_code="right-code")
    user = make_user()
    transitions.join_group(actor_of(user), group.pk, "right-code")

    outcome = transitions.join_group(actor_of(user), group.pk, "right-code")

    assert outcome == Conflict("You are already a member of this group.")
    assert GroupMembership.objects.filter(group=group, user=user).count() == 1


def test_join_missing_group_is_not_found(make_user):
    assert isinstance(transitions.join_group(actor_of(make_user()), 31337, "code"), NotFound)


def test_join_code_from_created_group_works(make_user, manager):
    admin, user = make_user(), make_user()
    group = Group.objects.get(
        pk=manager.create("group", actor_of(admin), {"name": "Photography"}, make_image()).value
    )

    assert transitions.join_group(actor_of(user), group.pk, group.join_code).ok


def test_member_leaves_group(make_user, make_group):
    group = make_group(make_user())
    user = make_user()
    add_member(group, user)

    assert transitions.leave_group(actor_of(user), group.pk).ok
    assert not GroupMembership.objects.filter(group=group, user=user).exists()


def test_administrator_cannot_leave_group(make_user, make_group):
    admin = make_user()
    group = make_group(admin)

    outcome = transitions.leave_group(actor_of(admin), group.pk)

    assert outcome == Forbidden("You cannot leave your group because you are its administrator.")
    assert GroupMembership.objects.filter(group=group, user=admin, role=GroupRole.ADMINISTRATOR).exists()


def test_leave_group_not_a_member(make_user, make_group):
    group = make_group(make_user())

    outcome = transitions.leave_group(actor_of(make_user()), group.pk)

    assert outcome == NotFound("You cannot leave a group you are not a member of.")


# ─── kick / promote / demote ─────────────────────────────────────

def test_moderator_kicks_member(make_user, make_group):
    admin, moderator = make_user(), make_user()
    member = make_user(first_name="Kicked", last_name="Member")
    group = make_group(admin)
    add_member(group, moderator, GroupRole.MODERATOR)
    add_member(group, member)

    outcome = transitions.kick_member(actor_of(moderator), group.pk, member.pk)

    assert outcome == Ok(message="Kicked Member has been kicked from the group.")
    assert not GroupMembership.objects.filter(group=group, user=member).exists()


def test_administrator_cannot_be_kicked(make_user, make_group):
    admin, moderator = make_user(), make_user()
    group = make_group(admin)
    add_member(group, moderator, GroupRole.MODERATOR)

    outcome = transitions.kick_member(actor_of(moderator), group.pk, admin.pk)

    assert outcome == Forbidden("You can only kick group members from a group.")
    assert GroupMembership.objects.filter(group=group, user=admin).exists()


def test_member_cannot_kick(make_user, make_group):
    group = make_group(make_user())
    member, other = make_user(), make_user()
    add_member(group, member)
    add_member(group, other)

    assert isinstance(transitions.kick_member(actor_of(member), group.pk, other.pk), Forbidden)


def test_kick_non_member_is_not_found(make_user, make_group):
    admin = make_user()
    group = make_group(admin)

    outcome = transitions.kick_member(actor_of(admin), group.pk, make_user().pk)

    assert outcome == NotFound("That user is not a member of this group.")


def test_promote_then_demote(make_user, make_group):
    admin, member = make_user(), make_user()
    group = make_group(admin)
    add_member(group, member)

    assert transitions.promote_member(actor_of(admin), group.pk, member.pk).ok
    assert GroupMembership.objects.get(group=group, user=member).role == GroupRole.MODERATOR

    assert transitions.demote_moderator(actor_of(admin), group.pk, member.pk).ok
    assert GroupMembership.objects.get(group=group, user=member).role == GroupRole.MEMBER


def test_promote_existing_moderator_is_conflict(make_user, make_group):
    admin = make_user()
    moderator = make_user(first_name="Mo", last_name="Derator")
    group = make_group(admin)
    add_member(group, moderator, GroupRole.MODERATOR)

    outcome = transitions.promote_member(actor_of(admin), group.pk, moderator.pk)

    assert outcome == Conflict("Mo Derator is already a group moderator.")


def test_demote_member_is_conflict(make_user, make_group):
    admin, member = make_user(), make_user(first_name="Plain", last_name="Member")
    group = make_group(admin)
    add_member(group, member)

    outcome = transitions.demote_moderator(actor_of(admin), group.pk, member.pk)

    assert outcome == Conflict("Plain Member is already a group member.")


def test_repeat_promotion_by_non_admin_is_still_forbidden(make_user, make_group):
    group = make_group(make_user())
    member, moderator = make_user(), make_user()
    add_member(group, member)
    add_member(group, moderator, GroupRole.MODERATOR)

    outcome = transitions.promote_member(actor_of(member), group.pk, moderator.pk)

    assert outcome == Forbidden("Only the group's admin can promote members.")


def test_promote_group_admin_is_forbidden(make_user, make_group):
    admin = make_user()
    group = make_group(admin)

    outcome = transitions.promote_member(actor_of(admin), group.pk, admin.pk)

    assert outcome == Forbidden("You can only promote group members to group moderators.")


def test_moderator_cannot_promote(make_user, make_group):
    group = make_group(make_user())
    moderator, member = make_user(), make_user()
    add_member(group, moderator, GroupRole.MODERATOR)
    add_member(group, member)

    assert isinstance(transitions.promote_member(actor_of(moderator), group.pk, member.pk), Forbidden)


# ─── invitations & announcements ─────────────────────────────────

def test_invitation_text_format(make_user, make_group):
    group = make_group(make_user(), name="Chess Club", join_code="abc123")

    text = transitions.invitation_text(group, "https://example.edu/")

    assert text == (
        'I am inviting you to our group "Chess Club"! Here is the invitation link:\n'
        f"https://example.edu/join-group/{group.pk}/abc123"
    )


def test_invite_sends_direct_message_with_join_link(make_user, make_group):
    admin, friend = make_user(), make_user()
    group = make_group(admin, name="Chess Club", join_code="abc123")

    outcome = transitions.invite_to_group(actor_of(admin), group.pk, friend.pk)

    assert outcome.ok
    message = DirectMessage.objects.get(pk=outcome.value)
    assert message.author_id == admin.pk
    assert message.body.endswith(f"https://gatorhub.test/join-group/{group.pk}/abc123")
    assert Conversation.objects.count() == 1


def test_non_member_cannot_invite(make_user, make_group):
    group = make_group(make_user())

    outcome = transitions.invite_to_group(actor_of(make_user()), group.pk, make_user().pk)

    assert outcome == Forbidden("You are not a member of this group.")
    assert not DirectMessage.objects.exists()


def test_only_admin_changes_announcement(make_user, make_group):
    admin, moderator = make_user(), make_user()
    group = make_group(admin)
    add_member(group, moderator, GroupRole.MODERATOR)

    denied = transitions.change_announcement(actor_of(moderator), group.pk, "Meeting moved")
    changed = transitions.change_announcement(actor_of(admin), group.pk, "Meeting moved")

    assert denied == Forbidden("Only the group's admin can change the group's announcement.")
    assert changed.ok
    group.refresh_from_db()
    assert group.announcement == "Meeting moved"


# ─── posts & messaging ───────────────────────────────────────────

def test_make_post_in_group_thread_needs_membership(make_user, make_group, manager):
    admin, outsider = make_user(), make_user()
    group = make_group(admin)
    thread_id = manager.create(
        "thread", actor_of(admin), {"title": "Agenda", "body": "Items", "category": "General", "group_id": group.pk}
    ).value

    denied = transitions.make_post(actor_of(outsider), thread_id, "Can I join?", manager=manager)
    posted = transitions.make_post(actor_of(admin), thread_id, "Item one", manager=manager)

    assert denied == Forbidden("You are not a member of this group.")
    assert posted.ok
    assert Post.objects.filter(thread_id=thread_id).count() == 2


def test_direct_messages_share_one_conversation(make_user):
    a, b = make_user(), make_user()

    first = transitions.send_direct_message(actor_of(a), b.pk, "Hi!")
    reply = transitions.send_direct_message(actor_of(b), a.pk, "Hello back")

    assert first.ok and reply.ok
    assert Conversation.objects.count() == 1
    assert DirectMessage.objects.filter(conversation=Conversation.objects.get()).count() == 2


def test_cannot_message_yourself(make_user):
    user = make_user()

    assert transitions.send_direct_message(actor_of(user), user.pk, "Hi") == Forbidden("You cannot message yourself.")


def test_empty_message_is_rejected(make_user):
    outcome = transitions.send_direct_message(actor_of(make_user()), make_user().pk, "")

    assert outcome == ValidationError(
        message="Your message must be from 1-5000 characters long.",
        errors={"body": ["Your message must be from 1-5000 characters long."]},
    )


def test_unapproved_user_cannot_message(make_user):
    pending = make_user(role=SiteRole.UNAPPROVED)

    assert isinstance(transitions.send_direct_message(actor_of(pending), make_user().pk, "Hi"), Forbidden)


def test_site_chat_and_group_chat(make_user, make_group):
    admin, outsider = make_user(), make_user()
    group = make_group(admin)

    assert transitions.send_chat_message(actor_of(outsider), None, "Hello everyone").ok
    assert transitions.send_chat_message(actor_of(admin), group.pk, "Hello group").ok
    assert isinstance(transitions.send_chat_message(actor_of(outsider), group.pk, "Let me in"), Forbidden)

    assert ChatMessage.objects.filter(group__isnull=True).count() == 1
    assert ChatMessage.objects.filter(group=group).count() == 1
