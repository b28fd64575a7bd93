"""
================================================================================
GATORHUB COMMUNITY - URL CONFIGURATION
================================================================================

@file        urls.py
@description URL routing for the community JSON endpoints
@version     1.0.0

URL STRUCTURE OVERVIEW
================================================================================
1. Authentication & Accounts (register, login, logout, profile picture)
2. Site Moderation (approve, reject, ban, appoint, unappoint, password)
3. Groups (create, delete, join, leave, member roles, invite, chat)
4. Marketplace & Forums (listings, threads, posts)
5. Messaging (direct messages, site chat)
6. Search (users, listings, threads)
7. Pages (session, dashboard, profiles, inbox, groups, forums, marketplace)

All endpoints answer with JSON: {"status": "success" | "error", ...}
Sections 1-5 accept POST (the join link also answers GET); sections 6-7 accept GET.

NAMING CONVENTIONS
================================================================================
- Resource actions: <action>_<resource> (e.g. 'create_group', 'delete_post')
- Path parameters are integer primary keys, except the join code

================================================================================
"""

from django.conf import settings
from django.conf.urls.static import static
from django.urls import path

from . import views


urlpatterns = [

    # ========================================================================
    # SECTION 1: AUTHENTICATION & ACCOUNTS
    # ========================================================================

    path("register", views.register, name="register"),
    path("login", views.login_view, name="login"),
    path("logout", views.logout_view, name="logout"),
    path(
        "profile/picture",
        views.change_profile_picture,
        name="change_profile_picture"
    ),  # Replace own profile picture

    # ========================================================================
    # SECTION 2: SITE MODERATION
    # ========================================================================

    path("users/<int:user_id>/approve", views.approve_user, name="approve_user"),
    path("users/<int:user_id>/reject", views.reject_user, name="reject_user"),
    path("users/<int:user_id>/ban", views.ban_user, name="ban_user"),
    path("users/<int:user_id>/appoint", views.appoint_moderator, name="appoint_moderator"),
    path("users/<int:user_id>/unappoint", views.unappoint_moderator, name="unappoint_moderator"),
    path(
        "users/<int:user_id>/password",
        views.reset_password,
        name="reset_password"
    ),  # Administrator only

    # ========================================================================
    # SECTION 3: GROUPS
    # ========================================================================

    path("groups/create", views.create_group, name="create_group"),
    path("groups/<int:group_id>/delete", views.delete_group, name="delete_group"),
    path(
        "join-group/<int:group_id>/<str:join_code>",
        views.join_group,
        name="join_group"
    ),  # Link sent in group invitations
    path("groups/<int:group_id>/leave", views.leave_group, name="leave_group"),
    path("groups/<int:group_id>/kick", views.kick_member, name="kick_member"),
    path("groups/<int:group_id>/promote", views.promote_member, name="promote_member"),
    path("groups/<int:group_id>/demote", views.demote_moderator, name="demote_moderator"),
    path("groups/<int:group_id>/invite", views.invite_to_group, name="invite_to_group"),
    path("groups/<int:group_id>/announcement", views.change_announcement, name="change_announcement"),
    path("groups/<int:group_id>/chat", views.send_chat_message, name="group_chat"),

    # ========================================================================
    # SECTION 4: MARKETPLACE & FORUMS
    # ========================================================================

    path("listings/create", views.create_listing, name="create_listing"),
    path("listings/<int:listing_id>/delete", views.delete_listing, name="delete_listing"),
    path("threads/create", views.create_thread, name="create_thread"),
    path("threads/<int:thread_id>/delete", views.delete_thread, name="delete_thread"),
    path("threads/<int:thread_id>/posts", views.make_post, name="make_post"),
    path("posts/<int:post_id>/delete", views.delete_post, name="delete_post"),

    # ========================================================================
    # SECTION 5: MESSAGING
    # ========================================================================

    path("messages/<int:user_id>", views.send_direct_message, name="send_direct_message"),
    path("chat", views.send_chat_message, name="site_chat"),  # Site-wide chat room

    # ========================================================================
    # SECTION 6: SEARCH
    # ========================================================================

    path("search/users", views.search_users, name="search_users"),
    path("search/listings", views.search_listings, name="search_listings"),
    path("search/threads", views.search_threads, name="search_threads"),

    # ========================================================================
    # SECTION 7: PAGES
    # ========================================================================

    path("session", views.session_status, name="session_status"),  # Open to visitors
    path("dashboard", views.dashboard, name="dashboard"),
    path("users/<int:user_id>", views.profile, name="profile"),
    path(
        "approval-requests",
        views.approval_requests,
        name="approval_requests"
    ),  # Moderators and administrators
    path("conversations", views.conversations, name="conversations"),
    path("conversations/<int:user_id>", views.direct_messages, name="direct_messages"),
    path("chats", views.group_chats, name="group_chats"),
    path("chat/messages", views.chat_messages, name="site_chat_messages"),
    path("groups", views.user_groups, name="user_groups"),
    path("groups/<int:group_id>", views.group_home, name="group_home"),
    path("groups/<int:group_id>/members", views.group_members, name="group_members"),
    path("groups/<int:group_id>/chat/messages", views.chat_messages, name="group_chat_messages"),
    path("threads", views.list_threads, name="list_threads"),
    path("threads/<int:thread_id>", views.view_thread, name="view_thread"),
    path("listings", views.list_listings, name="list_listings"),
    path("listings/<int:listing_id>", views.view_listing, name="view_listing"),
]

# Development media serving
if settings.DEBUG and getattr(settings, "MEDIA_URL", None):
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
