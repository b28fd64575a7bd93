"""Root conftest — shared fixtures for the community test suite."""

import itertools

import pytest
from django.core.files.storage import InMemoryStorage

from community.lifecycle import ResourceLifecycleManager
from community.media import BlobStore
from community.models import Group, GroupMembership, User
from community.roles import GroupRole, SiteRole


_numbers = itertools.count(1)


@pytest.fixture(autouse=True)
def _test_settings(settings):
    """Keep uploads in memory and serve plain HTTP to the test client."""
    settings.STORAGES = {
        "default": {"BACKEND": "django.core.files.storage.InMemoryStorage"},
        "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
    }
    settings.SECURE_SSL_REDIRECT = False
    settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
    settings.SITE_URL = "https://gatorhub.test"


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def blobs(storage):
    return BlobStore(storage)


@pytest.fixture
def manager(blobs):
    return ResourceLifecycleManager(blobs)


@pytest.fixture
def make_user(db):
    def _make(role=SiteRole.APPROVED, first_name="Test", last_name=None, **extra):
        n = next(_numbers)
        sfsu_id_number = 900000000 + n
        return User.objects.create_user(
            username=str(sfsu_id_number),
            email=f"user{n}@mail.sfsu.edu",
            password="secret123",
            first_name=first_name,
            last_name=last_name or f"User{n}",
            sfsu_id_number=sfsu_id_number,
            site_role=role,
            **extra,
        )
    return _make


@pytest.fixture
def make_group(db):
    """Insert a group and its administrator directly, bypassing the pipeline."""
    def _make(admin, name=None, join_code="a1b2c3d4"):
        group = Group.objects.create(
            name=name or f"Group {next(_numbers)}",
            picture_path="group_pictures/existing.png",
            picture_thumbnail_path="group_pictures/tn-existing.png",
            join_code=join_code,
        )
        GroupMembership.objects.create(group=group, user=admin, role=GroupRole.ADMINISTRATOR)
        return group
    return _make
