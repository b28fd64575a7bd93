"""
================================================================================
GATORHUB COMMUNITY - READ SIDE
================================================================================

@file        reads.py
@description Guarded queries behind the GET endpoints
@version     1.0.0

MODULE PURPOSE
================================================================================
Every page of the platform is filled from one of these functions. Each
returns ``Ok(value=<dict>)`` whose keys are merged into the JSON response,
or a ``Failure`` outcome when the reader is not allowed to see the data.

1. Session & accounts
   session_status, dashboard, profile, approval_requests

2. Messaging
   conversations, direct_messages, group_chats, chat_messages

3. Groups
   user_groups, group_home, group_members

4. Marketplace & forums
   view_thread, list_threads, view_listing, list_listings

ACCESS RULES
================================================================================
- Group pages, group chats and group threads need a membership (VIEW_GROUP)
- A user only ever reads conversations they are one side of
- Approval requests are visible to Moderators and Administrators
- Profiles only list activity from the site forums and marketplace

================================================================================
"""

from operator import itemgetter

from django.conf import settings
from django.core.files.storage import default_storage
from django.db.models import F, Max, Q

from .lifecycle import group_role_of
from .models import ChatMessage, Conversation, Group, GroupMembership, Listing, Post, Thread, User
from .outcomes import Forbidden, NotFound, Ok
from .pairing import find_conversation
from .roles import Action, SiteRole, allowed, check_actor
from .search import THREADS


MAX_MESSAGES = 100
RECENT_ACTIVITIES = 15
DASHBOARD_ROWS = 10


def media_url(path):
    return default_storage.url(path) if path else None


def _timestamp(value):
    return value.isoformat() if value else None


def _role(role):
    return int(role) if role is not None else None


# ============================================================================
# SERIALIZERS
# ============================================================================

def user_json(user):
    return {
        "id": user.pk,
        "full_name": user.full_name,
        "role": user.site_role,
        "picture": media_url(user.profile_picture_thumbnail_path),
    }


def listing_json(listing):
    return {
        "id": listing.pk,
        "title": listing.title,
        "price": str(listing.price),
        "category": listing.category,
        "seller_id": listing.seller_id,
        "thumbnail": media_url(listing.thumbnail_path),
        "created_at": listing.created_at.isoformat(),
    }


def thread_json(thread):
    """Serialize a thread from the ``THREADS`` queryset (needs its post annotations)."""
    return {
        "id": thread.pk,
        "title": thread.title,
        "category": thread.category,
        "group_id": thread.group_id,
        "creator_id": thread.creator_id,
        "post_count": thread.post_count,
        "created_at": thread.created_at.isoformat(),
        "last_post_at": _timestamp(thread.last_post_at),
    }


def group_json(group):
    return {
        "id": group.pk,
        "name": group.name,
        "description": group.description,
        "picture": media_url(group.picture_thumbnail_path),
    }


def message_json(message):
    return {
        "id": message.pk,
        "author": user_json(message.author),
        "body": message.body,
        "created_at": message.created_at.isoformat(),
    }


def _latest_messages(queryset):
    """The newest ``MAX_MESSAGES`` messages, oldest first."""
    newest = queryset.select_related("author").order_by("-created_at", "-id")[:MAX_MESSAGES]
    return [message_json(message) for message in reversed(list(newest))]


def _missing_group(group_id):
    return NotFound(f"There is no group with id '{group_id}'.")


# ============================================================================
# SECTION 1: SESSION & ACCOUNTS
# ============================================================================

def session_status(user):
    if not user.is_authenticated:
        return Ok(value={"is_logged_in": False})
    return Ok(value={
        "is_logged_in": True,
        "user_id": user.pk,
        "first_name": user.first_name,
        "picture": media_url(user.profile_picture_thumbnail_path),
        "role": user.site_role,
    })


def dashboard(actor):
    """Profile picture of the reader plus the newest site threads and listings."""
    user = User.objects.get(pk=actor.id)
    threads = Thread.objects.filter(group__isnull=True).order_by("-created_at", "-id")[:DASHBOARD_ROWS]
    listings = Listing.objects.order_by("-created_at", "-id")[:DASHBOARD_ROWS]
    return Ok(value={
        "profile_picture": media_url(user.profile_picture_path),
        "threads": [{"id": thread.pk, "title": thread.title} for thread in threads],
        "listings": [
            {"id": listing.pk, "title": listing.title, "price": str(listing.price),
             "thumbnail": media_url(listing.thumbnail_path)}
            for listing in listings
        ],
    })


def profile(user_id):
    """
    Public profile with the user's recent activity.

    Activity merges threads started in the site forums, replies posted
    there and marketplace listings, newest first. Group activity is never
    listed.
    """
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        return NotFound(f"The user with id '{user_id}' was not found.")

    threads = Thread.objects.filter(creator=user, group__isnull=True).order_by("-created_at", "-id")
    replies = (
        Post.objects.filter(author=user, is_original_post=False, thread__group__isnull=True)
        .select_related("thread")
        .order_by("-created_at", "-id")
    )
    listings = Listing.objects.filter(seller=user).order_by("-created_at", "-id")

    activities = (
        [{"kind": "thread", "id": t.pk, "title": t.title, "created_at": t.created_at}
         for t in threads[:RECENT_ACTIVITIES]]
        + [{"kind": "post", "id": p.thread_id, "title": p.thread.title, "created_at": p.created_at}
           for p in replies[:RECENT_ACTIVITIES]]
        + [{"kind": "listing", "id": item.pk, "title": item.title, "created_at": item.created_at}
           for item in listings[:RECENT_ACTIVITIES]]
    )
    activities.sort(key=itemgetter("created_at"), reverse=True)
    for activity in activities:
        activity["created_at"] = activity["created_at"].isoformat()

    return Ok(value={
        "user": {
            **user_json(user),
            "profile_picture": media_url(user.profile_picture_path),
            "joined_at": user.created_at.isoformat(),
        },
        "activities": activities[:RECENT_ACTIVITIES],
    })


def approval_requests(actor):
    """Unapproved registrations, oldest first, with their ID pictures."""
    denial = check_actor(actor, Action.VIEW_APPROVAL_REQUESTS)
    if denial:
        return denial

    users = User.objects.filter(site_role=SiteRole.UNAPPROVED).order_by("created_at", "id")
    return Ok(value={
        "unapproved_users": [
            {
                "id": user.pk,
                "full_name": user.full_name,
                "email": user.email,
                "sfsu_id_number": user.sfsu_id_number,
                "sfsu_id_picture": media_url(user.sfsu_id_picture_path),
                "created_at": user.created_at.isoformat(),
            }
            for user in users
        ],
    })


# ============================================================================
# SECTION 2: MESSAGING
# ============================================================================

def conversations(actor):
    """The reader's conversations, most recently active first."""
    rows = (
        Conversation.objects.filter(Q(smaller_user_id=actor.id) | Q(larger_user_id=actor.id))
        .select_related("smaller_user", "larger_user")
        .annotate(last_message_at=Max("messages__created_at"))
        .order_by(F("last_message_at").desc(nulls_last=True), "-id")
    )
    items = []
    for conversation in rows:
        other = conversation.larger_user if conversation.smaller_user_id == actor.id else conversation.smaller_user
        items.append({
            "conversation_id": conversation.pk,
            "user": user_json(other),
            "last_message_at": _timestamp(conversation.last_message_at),
        })
    return Ok(value={"conversations": items})


def direct_messages(actor, other_id):
    """Messages between the reader and ``other_id``; empty before first contact."""
    if other_id == actor.id:
        return Forbidden("You cannot message yourself.")
    other = User.objects.filter(pk=other_id).first()
    if other is None:
        return NotFound(f"There is no user with the id '{other_id}'.")

    conversation = find_conversation(actor.id, other_id)
    return Ok(value={
        "user": user_json(other),
        "conversation_id": conversation.pk if conversation else None,
        "messages": _latest_messages(conversation.messages.all()) if conversation else [],
    })


def group_chats(actor):
    """Groups the reader can chat in, most recently active chat first."""
    groups = (
        Group.objects.filter(memberships__user_id=actor.id)
        .annotate(last_message_at=Max("chat_messages__created_at"))
        .order_by(F("last_message_at").desc(nulls_last=True), "name")
    )
    return Ok(value={
        "groups": [
            {**group_json(group), "last_message_at": _timestamp(group.last_message_at)}
            for group in groups
        ],
    })


def chat_messages(actor, group_id=None):
    """Latest chat messages of a group, or of the site-wide chat when ``group_id`` is None."""
    if group_id is not None:
        if not Group.objects.filter(pk=group_id).exists():
            return _missing_group(group_id)
        denial = check_actor(actor, Action.VIEW_GROUP, actor_group_role=group_role_of(actor.id, group_id))
        if denial:
            return denial

    return Ok(value={
        "group_id": group_id,
        "messages": _latest_messages(ChatMessage.objects.filter(group_id=group_id)),
    })


# ============================================================================
# SECTION 3: GROUPS
# ============================================================================

def user_groups(actor):
    memberships = (
        GroupMembership.objects.filter(user_id=actor.id)
        .select_related("group")
        .order_by("group__name")
    )
    return Ok(value={
        "groups": [{**group_json(m.group), "group_role": m.role} for m in memberships],
    })


def _visible_group(actor, group_id):
    """Fetch a group the reader belongs to; returns (group, role, failure)."""
    group = Group.objects.filter(pk=group_id).first()
    if group is None:
        return None, None, _missing_group(group_id)
    role = group_role_of(actor.id, group_id)
    return group, role, check_actor(actor, Action.VIEW_GROUP, actor_group_role=role)


def group_home(actor, group_id):
    group, role, denial = _visible_group(actor, group_id)
    if denial:
        return denial

    return Ok(value={
        "group": {
            **group_json(group),
            "announcement": group.announcement,
            "picture_full": media_url(group.picture_path),
            "member_count": group.memberships.count(),
            "created_at": group.created_at.isoformat(),
        },
        "group_role": _role(role),
    })


def group_members(actor, group_id):
    group, role, denial = _visible_group(actor, group_id)
    if denial:
        return denial

    memberships = group.memberships.select_related("user")
    return Ok(value={
        "group_name": group.name,
        "group_role": _role(role),
        "users": [{**user_json(m.user), "group_role": m.role} for m in memberships],
    })


# ============================================================================
# SECTION 4: MARKETPLACE & FORUMS
# ============================================================================

def _attachment_json(attachment):
    return {
        "name": attachment.original_name,
        "image": media_url(attachment.image_path),
        "thumbnail": media_url(attachment.thumbnail_path),
    }


def view_thread(actor, thread_id):
    thread = THREADS.queryset().filter(pk=thread_id).first()
    if thread is None:
        return NotFound(f"The thread with id '{thread_id}' was not found.")

    role = None
    if thread.group_id is not None:
        role = group_role_of(actor.id, thread.group_id)
        if not allowed(actor.site_role, role, None, None, Action.VIEW_GROUP):
            return Forbidden("This thread belongs to a group you are not a member of.")

    posts = thread.posts.select_related("author").prefetch_related("attachments")
    return Ok(value={
        "thread": thread_json(thread),
        "group_role": _role(role),
        "posts": [
            {
                "id": post.pk,
                "author": user_json(post.author),
                "body": post.body,
                "is_original_post": post.is_original_post,
                "created_at": post.created_at.isoformat(),
                "attachments": [_attachment_json(a) for a in post.attachments.all()],
            }
            for post in posts
        ],
    })


def list_threads(actor, group_id=None, category=None, sort=None):
    """Threads of the site forums, or of one group's forum when ``group_id`` is given."""
    value = {}
    if group_id is not None:
        group, role, denial = _visible_group(actor, group_id)
        if denial:
            return denial
        value.update(group_name=group.name, group_role=_role(role))

    threads = THREADS.queryset().filter(group_id=group_id)
    if category:
        threads = threads.filter(category=category)
    threads = threads.order_by(*THREADS.order_for(sort))[:settings.SEARCH_LIMITS["threads"]["max_results"]]

    value["threads"] = [thread_json(thread) for thread in threads]
    return Ok(value=value)


def view_listing(listing_id):
    listing = Listing.objects.select_related("seller").filter(pk=listing_id).first()
    if listing is None:
        return NotFound(f"There is no listing with id '{listing_id}'.")

    return Ok(value={
        "listing": {
            **listing_json(listing),
            "description": listing.description,
            "image": media_url(listing.image_path),
            "seller": user_json(listing.seller),
        },
    })


def list_listings(category=None, max_price=None):
    listings = Listing.objects.all()
    if category:
        listings = listings.filter(category=category)
    if max_price is not None:
        listings = listings.filter(price__lte=max_price)
    listings = listings.order_by("-created_at", "-id")[:settings.SEARCH_LIMITS["listings"]["max_results"]]
    return Ok(value={"listings": [listing_json(listing) for listing in listings]})
