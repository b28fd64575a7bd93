"""
================================================================================
GATORHUB COMMUNITY - DATABASE MODELS
================================================================================

@file        models.py
@description Django ORM models for members, groups, marketplace, forums and messaging
@version     1.0.0

MODULE PURPOSE
================================================================================
This module defines the relational schema of the community platform:
- User model (extended from AbstractUser) with a site role and ban marker
- Groups and group memberships with per-group roles
- Marketplace listings
- Forum threads, posts and image attachments
- Two-party conversations, direct messages and group chat

DATABASE STRUCTURE
================================================================================
1. Members
   - User (AbstractUser extension)

2. Groups
   - Group
   - GroupMembership (unique per group and user)

3. Content
   - Listing
   - Thread (site forums when group is NULL)
   - Post (exactly one original post per thread)
   - Attachment (image attached to a post)

4. Messaging
   - Conversation (unique canonical pair of users)
   - DirectMessage
   - ChatMessage (site-wide chat when group is NULL)

MODEL RELATIONSHIPS
================================================================================
User (1) ──────> (N) GroupMembership <────── (1) Group
User (1) ──────> (N) Listing
User (1) ──────> (N) Thread ──────> (N) Post ──────> (N) Attachment
Group (1) ─────> (N) Thread, ChatMessage
User (2) ──────> (1) Conversation ──────> (N) DirectMessage

MEDIA HANDLING
================================================================================
Image paths are storage names produced by ``community.media.BlobStore``.
Models keep the names, not file fields, because the lifecycle manager owns
staging, thumbnails and cleanup:
- group_pictures/             : Group pictures and thumbnails
- listing_photos/             : Listing photos and thumbnails
- profile_pictures/           : Profile pictures and thumbnails
- thread_images/              : Thread attachments and thumbnails
- private/sfsu_id_pictures/   : ID pictures submitted at registration

INTEGRITY
================================================================================
- GroupMembership: one row per (group, user)
- Conversation: one row per (smaller_user, larger_user), smaller < larger
- ON DELETE CASCADE removes memberships, posts, attachments and messages

================================================================================
"""

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.contrib.auth.models import UserManager as BaseUserManager
from django.db import models
from django.db.models import F, Q

from .roles import GroupRole, SiteRole


# ============================================================================
# CONSTANTS & CHOICES
# ============================================================================

SITE_ROLE_CHOICES = [(role.value, role.label) for role in SiteRole]
GROUP_ROLE_CHOICES = [(role.value, role.label) for role in GroupRole]


class ListingCategory(models.TextChoices):
    APPAREL = "Apparel"
    BOOKS = "Books"
    ELECTRONICS = "Electronics"
    ENTERTAINMENT = "Entertainment"
    MISCELLANEOUS = "Miscellaneous"
    PERISHABLES = "Perishables"
    SERVICES = "Services"


class ThreadCategory(models.TextChoices):
    DISCUSSION = "Discussion"
    GENERAL = "General"
    HELP = "Help"
    OFF_TOPIC = "Off-Topic"
    PROMOTION = "Promotion"
    SOCIAL = "Social"


class ThreadSort(models.TextChoices):
    LAST_POST_DATE = "Last Post Date"
    CREATION_DATE = "Creation Date"
    NUMBER_OF_POSTS = "Number of Posts"


# ============================================================================
# SECTION 1: MEMBERS
# ============================================================================

class UserManager(BaseUserManager):
    """Superusers are site Administrators, so the admin actions pass the role guards."""

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault('site_role', SiteRole.ADMINISTRATOR)
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    """
    Platform member.

    ``username`` holds the SFSU ID number as a string so the stock
    authentication backend can log members in with it.

    Attributes:
        site_role (IntegerField): 0 Unapproved, 1 Approved, 2 Moderator, 3 Administrator
        banned_by (ForeignKey): Moderator who banned this user, NULL if not banned
        sfsu_id_number (PositiveIntegerField): 9-digit student/staff ID
        sfsu_id_picture_path (CharField): Private storage name of the ID picture
        profile_picture_path (CharField): Storage name of the profile picture
        profile_picture_thumbnail_path (CharField): Storage name of its 60x60 thumbnail
        created_at (DateTimeField): Registration timestamp

    Example:
        user = User.objects.get(sfsu_id_number=912345678)
        if user.is_banned:
            ...
    """

    email = models.EmailField(
        max_length=255,
        unique=True,
        help_text="SFSU email address"
    )
    site_role = models.PositiveSmallIntegerField(
        choices=SITE_ROLE_CHOICES,
        default=SiteRole.UNAPPROVED,
        help_text="Global permission tier"
    )
    banned_by = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='banned_users',
        help_text="Moderator or administrator who banned this user"
    )
    sfsu_id_number = models.PositiveIntegerField(
        unique=True,
        null=True,
        help_text="SFSU ID number used to log in"
    )
    sfsu_id_picture_path = models.CharField(
        max_length=255,
        blank=True,
        help_text="Private storage name of the submitted ID picture"
    )
    profile_picture_path = models.CharField(
        max_length=255,
        default=settings.DEFAULT_PROFILE_PICTURE[0],
        help_text="Storage name of the profile picture"
    )
    profile_picture_thumbnail_path = models.CharField(
        max_length=255,
        default=settings.DEFAULT_PROFILE_PICTURE[1],
        help_text="Storage name of the profile picture thumbnail"
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        help_text="Registration timestamp"
    )

    objects = UserManager()

    class Meta:
        ordering = ['-created_at']

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_banned(self):
        return self.banned_by_id is not None

    def __str__(self):
        return self.full_name or self.username


# ============================================================================
# SECTION 2: GROUPS
# ============================================================================

class Group(models.Model):
    """
    User-created group with its own forum, chat and announcement.

    Attributes:
        name (CharField): Unique display name
        description (TextField): Optional description
        announcement (TextField): Text pinned by the group's admin
        picture_path (CharField): Storage name of the group picture
        picture_thumbnail_path (CharField): Storage name of its 60x60 thumbnail
        join_code (CharField): Secret token included in invitation links
        created_at (DateTimeField): Creation timestamp
    """

    name = models.CharField(
        max_length=255,
        unique=True,
        help_text="Group name, unique across the site"
    )
    description = models.TextField(
        max_length=5000,
        blank=True,
        help_text="What the group is about"
    )
    announcement = models.TextField(
        max_length=5000,
        blank=True,
        help_text="Announcement shown on the group home page"
    )
    picture_path = models.CharField(max_length=255, help_text="Storage name of the group picture")
    picture_thumbnail_path = models.CharField(max_length=255, help_text="Storage name of the thumbnail")
    join_code = models.CharField(
        max_length=64,
        help_text="Token required to join through an invitation link"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class GroupMembership(models.Model):
    """
    Membership of a user in a group.

    Meta:
        unique_together: One membership per user per group
    """

    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name='memberships',
        help_text="Group this membership belongs to"
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='group_memberships',
        help_text="Member"
    )
    role = models.PositiveSmallIntegerField(
        choices=GROUP_ROLE_CHOICES,
        default=GroupRole.MEMBER,
        help_text="1 Member, 2 Moderator, 3 Administrator"
    )
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('group', 'user')
        ordering = ['-role', 'joined_at']

    def __str__(self):
        return f"{self.user} in {self.group}"


# ============================================================================
# SECTION 3: CONTENT (Marketplace & Forums)
# ============================================================================

class Listing(models.Model):
    seller = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='listings',
        help_text="User selling the item"
    )
    title = models.CharField(max_length=255)
    description = models.TextField(max_length=2500)
    price = models.DecimalField(max_digits=8, decimal_places=2)
    category = models.CharField(max_length=32, choices=ListingCategory.choices)
    image_path = models.CharField(max_length=255)
    thumbnail_path = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return self.title


class Thread(models.Model):
    """
    Forum thread. Threads with no group belong to the site forums.

    The thread body lives in its original ``Post``.
    """

    creator = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='threads',
        help_text="User who started the thread"
    )
    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='threads',
        help_text="Owning group, NULL for the site forums"
    )
    title = models.CharField(max_length=255)
    category = models.CharField(max_length=32, choices=ThreadCategory.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return self.title


class Post(models.Model):
    thread = models.ForeignKey(Thread, on_delete=models.CASCADE, related_name='posts')
    author = models.ForeignKey(User, on_delete=models.CASCADE, related_name='posts')
    body = models.TextField(max_length=10000)
    is_original_post = models.BooleanField(
        default=False,
        help_text="True for the post created together with its thread"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"Post #{self.pk} in {self.thread}"


class Attachment(models.Model):
    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name='attachments')
    original_name = models.CharField(
        max_length=255,
        help_text="File name as uploaded by the user"
    )
    image_path = models.CharField(max_length=255)
    thumbnail_path = models.CharField(max_length=255)

    def __str__(self):
        return self.original_name


# ============================================================================
# SECTION 4: MESSAGING
# ============================================================================

class Conversation(models.Model):
    """
    Direct message channel between exactly two users.

    The pair is stored in canonical order (smaller id first), so a pair of
    users maps to one row no matter who started the conversation. Use
    ``community.pairing.get_or_create_conversation`` rather than creating
    rows directly.
    """

    smaller_user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='conversations_as_smaller',
    )
    larger_user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='conversations_as_larger',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['smaller_user', 'larger_user'],
                name='unique_conversation_pair',
            ),
            models.CheckConstraint(
                condition=Q(smaller_user__lt=F('larger_user')),
                name='conversation_pair_ordered',
            ),
        ]

    def __str__(self):
        return f"Conversation {self.smaller_user_id}-{self.larger_user_id}"


class DirectMessage(models.Model):
    conversation = models.ForeignKey(Conversation, on_delete=models.CASCADE, related_name='messages')
    author = models.ForeignKey(User, on_delete=models.CASCADE, related_name='direct_messages')
    body = models.TextField(max_length=5000)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']


class ChatMessage(models.Model):
    """Group chat message. A NULL group is the site-wide chat room."""

    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='chat_messages',
    )
    author = models.ForeignKey(User, on_delete=models.CASCADE, related_name='chat_messages')
    body = models.TextField(max_length=5000)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']
