"""Helpers shared by test modules (imported as a plain module)."""

import io

from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image

from community.models import GroupMembership
from community.roles import Actor, GroupRole


def make_image(name="photo.png", size=(400, 300), fmt="PNG"):
    """A real image upload Pillow can decode."""
    buffer = io.BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(buffer, format=fmt)
    return SimpleUploadedFile(name, buffer.getvalue(), content_type=Image.MIME[fmt])


def actor_of(user):
    user.refresh_from_db()
    return Actor.from_user(user)


def add_member(group, user, role=GroupRole.MEMBER):
    return GroupMembership.objects.create(group=group, user=user, role=role)
