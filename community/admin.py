from django.contrib import admin, messages
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.models import Group as AuthGroup
from django.urls import reverse
from django.utils.html import format_html

from . import transitions
from .models import (
    User, Group, GroupMembership, Listing, Thread, Post, Attachment,
    Conversation, DirectMessage, ChatMessage
)
from .roles import Actor


# ==================== ADMIN CLASSES ====================

def _run_for_each(modeladmin, request, queryset, operation):
    """Apply a guarded transition to each selected user as the logged-in admin."""
    actor = Actor.from_user(request.user)
    for user in queryset:
        outcome = operation(actor, user.pk)
        level = messages.SUCCESS if outcome.ok else messages.ERROR
        modeladmin.message_user(request, f"{user}: {outcome.message or 'done'}", level)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'full_name', 'email', 'site_role', 'is_banned', 'created_at')
    list_filter = ('site_role',)
    search_fields = ('username', 'email', 'first_name', 'last_name')
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Community', {'fields': ('site_role', 'banned_by', 'sfsu_id_number', 'sfsu_id_picture_path')}),
    )
    actions = ['approve_users', 'ban_users']

    @admin.display(boolean=True, description='Banned')
    def is_banned(self, obj):
        return obj.is_banned

    def approve_users(self, request, queryset):
        _run_for_each(self, request, queryset, transitions.approve_user)
    approve_users.short_description = "Approve selected users"

    def ban_users(self, request, queryset):
        _run_for_each(self, request, queryset, transitions.ban_user)
    ban_users.short_description = "Ban selected users"


class GroupMembershipInline(admin.TabularInline):
    model = GroupMembership
    extra = 0


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'created_at', 'member_count')
    search_fields = ('name',)
    inlines = [GroupMembershipInline]

    def member_count(self, obj):
        return obj.memberships.count()
    member_count.short_description = 'Members'


@admin.register(Listing)
class ListingAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'seller_link', 'price', 'category', 'created_at')
    list_filter = ('category', 'created_at')
    search_fields = ('title', 'seller__username')

    def seller_link(self, obj):
        url = reverse("admin:community_user_change", args=[obj.seller_id])
        return format_html('<a href="{}">{}</a>', url, obj.seller)
    seller_link.short_description = 'Seller'


@admin.register(Thread)
class ThreadAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'category', 'group', 'creator', 'created_at')
    list_filter = ('category',)
    search_fields = ('title', 'creator__username')


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ('id', 'thread', 'author', 'is_original_post', 'created_at', 'body_short')
    list_filter = ('is_original_post',)

    def body_short(self, obj):
        return obj.body[:80] + '...' if len(obj.body) > 80 else obj.body
    body_short.short_description = 'Body'


@admin.register(Attachment)
class AttachmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'post', 'original_name')


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ('id', 'smaller_user', 'larger_user', 'created_at')


@admin.register(DirectMessage)
class DirectMessageAdmin(admin.ModelAdmin):
    list_display = ('id', 'conversation', 'author', 'created_at')


@admin.register(ChatMessage)
class ChatMessageAdmin(admin.ModelAdmin):
    list_display = ('id', 'group', 'author', 'created_at')
    list_filter = ('group',)


# Unregister Django's default Group
admin.site.unregister(AuthGroup)

# Basic admin site configuration
admin.site.site_header = "GatorHub Admin"
admin.site.site_title = "GatorHub Admin Portal"
admin.site.index_title = "Welcome"
