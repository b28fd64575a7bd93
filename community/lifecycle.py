"""
================================================================================
GATORHUB COMMUNITY - RESOURCE LIFECYCLE MANAGER
================================================================================

@file        lifecycle.py
@description Ordered create/destroy pipelines with blob compensation
@version     1.0.0

MODULE PURPOSE
================================================================================
Accounts, groups, listings, threads and posts are created and destroyed
here. Several of them own image blobs and dependent rows, so each
operation runs as an ordered pipeline:

CREATE
    1. Guard and validate (role, form, unique names)
    2. Stage the uploaded image and its thumbnail in the blob store
    3. Insert the record                      } one transaction.atomic()
    4. Insert dependent rows that need its id }
    5. Return Ok(new id)

    Any failure after step 2 deletes the staged blobs before returning.

DESTROY
    1. Load the record and the blob paths it owns (absent -> NotFound)
    2. Guard
    3. Delete the blobs, best-effort (failures are logged only)
    4. Delete the record; ON DELETE CASCADE removes dependent rows

RESOURCE KINDS
================================================================================
    Kind        Image                  Thumbnail   Dependent rows
    account     SFSU ID picture        none        -
    group       group picture          60 x 60     Administrator membership
    listing     listing photo          150 x 150   -
    thread      optional image         250 x 250   original Post, Attachment
    post        -                      -           -

Profile pictures are replaced rather than created, see
``ResourceLifecycleManager.replace_profile_picture``.

================================================================================
"""

import enum
import logging

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction

from .forms import GroupForm, ListingForm, PostForm, ProfilePictureForm, RegistrationForm, ThreadForm
from .media import (
    GROUP_PICTURES,
    LISTING_PHOTOS,
    PROFILE_PICTURES,
    SFSU_ID_PICTURES,
    THREAD_IMAGES,
    BlobStore,
)
from .models import Attachment, Group, GroupMembership, Listing, Post, Thread, User
from .outcomes import Conflict, Forbidden, NotFound, Ok, ServerError, ValidationError
from .roles import Action, GroupRole, SiteRole, check, check_actor


logger = logging.getLogger(__name__)


class ResourceKind(enum.Enum):
    ACCOUNT = "account"
    GROUP = "group"
    LISTING = "listing"
    THREAD = "thread"
    POST = "post"


def group_role_of(user_id, group_id):
    """Return the user's ``GroupRole`` in a group, or None if not a member."""
    role = (
        GroupMembership.objects.filter(group_id=group_id, user_id=user_id)
        .values_list("role", flat=True)
        .first()
    )
    return GroupRole(role) if role is not None else None


def _files(name, image):
    return {name: image} if image is not None else None


def _is_default_picture(path):
    return path in settings.DEFAULT_PROFILE_PICTURE


class ResourceLifecycleManager:
    """
    Create and destroy resources that own blobs and dependent rows.

    Args:
        blobs: ``BlobStore`` used for staging and cleanup

    Example:
        manager = ResourceLifecycleManager()
        outcome = manager.create(ResourceKind.LISTING, request.actor, request.POST,
                                 request.FILES.get("image"))
        if outcome.ok:
            listing_id = outcome.value
    """

    def __init__(self, blobs=None):
        self.blobs = blobs or BlobStore()

    # ========================================================================
    # CREATE
    # ========================================================================

    def create(self, kind, actor, fields, image=None):
        """
        Run the create pipeline for one resource.

        Args:
            kind (ResourceKind): What to create
            actor (Actor): Acting user, None for account registration
            fields (Mapping): Submitted form fields
            image (UploadedFile): Optional uploaded image

        Returns:
            Ok(new_id) | Forbidden | NotFound | Conflict | ValidationError | ServerError
        """
        handlers = {
            ResourceKind.ACCOUNT: self._create_account,
            ResourceKind.GROUP: self._create_group,
            ResourceKind.LISTING: self._create_listing,
            ResourceKind.THREAD: self._create_thread,
            ResourceKind.POST: self._create_post,
        }
        return handlers[ResourceKind(kind)](actor, fields, image)

    def _stage(self, image, folder, thumbnail_size, failure_message):
        try:
            return self.blobs.stage_image(image, folder, thumbnail_size), None
        except Exception as e:
            logger.error(f"Could not stage upload in {folder}: {str(e)}", exc_info=True)
            return None, ServerError(failure_message)

    def _compensate(self, staged):
        if staged is not None:
            self.blobs.delete_all(staged.paths)

    def _persist(self, staged, persist, failure_message, conflict_message=None):
        """Steps 3-4 in one transaction; staged blobs are removed on any failure."""
        try:
            with transaction.atomic():
                record = persist()
        except Exception as e:
            self._compensate(staged)
            if conflict_message and isinstance(e, IntegrityError):
                logger.warning(f"Unique key violated while persisting: {str(e)}")
                return Conflict(conflict_message)
            logger.error(f"{failure_message} ({type(e).__name__}: {str(e)})", exc_info=True)
            return ServerError(failure_message)
        return Ok(record.pk)

    def _require_existing_actor(self, actor):
        if not User.objects.filter(pk=actor.id).exists():
            return Forbidden("Your user id is invalid. Please log out and try again.")
        return None

    def _create_account(self, actor, fields, image):
        form = RegistrationForm(fields, _files("sfsu_id_picture", image))
        if not form.is_valid():
            return ValidationError.from_form(form)
        data = form.cleaned_data

        if User.objects.filter(email=data["email"]).exists():
            return Conflict(f"The email {data['email']} is already in use.")
        if User.objects.filter(sfsu_id_number=data["sfsu_id_number"]).exists():
            return Conflict(f"The SFSU ID number {data['sfsu_id_number']} is already in use.")

        failure = "An error occurred while registering your account."
        staged, error = self._stage(data["sfsu_id_picture"], SFSU_ID_PICTURES, None, failure)
        if error:
            return error

        first_name, _, last_name = data["full_name"].partition(" ")

        def persist():
            return User.objects.create_user(
                username=str(data["sfsu_id_number"]),
                email=data["email"],
                password=data["password"],
                first_name=first_name,
                last_name=last_name.strip(),
                sfsu_id_number=data["sfsu_id_number"],
                sfsu_id_picture_path=staged.path,
                site_role=SiteRole.UNAPPROVED,
            )

        outcome = self._persist(
            staged, persist, failure,
            conflict_message="That email or SFSU ID number is already in use.",
        )
        if outcome.ok:
            logger.info(f"Registered user {outcome.value}, awaiting approval")
        return outcome

    def _create_group(self, actor, fields, image):
        denial = check_actor(actor, Action.CREATE_CONTENT) or self._require_existing_actor(actor)
        if denial:
            return denial

        form = GroupForm(fields, _files("picture", image))
        if not form.is_valid():
            return ValidationError.from_form(form)
        data = form.cleaned_data

        if Group.objects.filter(name=data["name"]).exists():
            return Conflict(f'The group name "{data["name"]}" is already in use.')

        failure = "An error occurred while creating your group."
        staged, error = self._stage(data["picture"], GROUP_PICTURES, settings.THUMBNAIL_SIZES["group"], failure)
        if error:
            return error

        def persist():
            group = Group.objects.create(
                name=data["name"],
                description=data["description"],
                picture_path=staged.path,
                picture_thumbnail_path=staged.thumbnail_path,
                join_code=staged.token,
            )
            GroupMembership.objects.create(group=group, user_id=actor.id, role=GroupRole.ADMINISTRATOR)
            return group

        outcome = self._persist(
            staged, persist, failure,
            conflict_message=f'The group name "{data["name"]}" is already in use.',
        )
        if outcome.ok:
            logger.info(f"User {actor.id} created group {outcome.value}")
        return outcome

    def _create_listing(self, actor, fields, image):
        denial = check_actor(actor, Action.CREATE_CONTENT) or self._require_existing_actor(actor)
        if denial:
            return denial

        form = ListingForm(fields, _files("image", image))
        if not form.is_valid():
            return ValidationError.from_form(form)
        data = form.cleaned_data

        failure = "An error occurred while creating your listing."
        staged, error = self._stage(data["image"], LISTING_PHOTOS, settings.THUMBNAIL_SIZES["listing"], failure)
        if error:
            return error

        def persist():
            return Listing.objects.create(
                seller_id=actor.id,
                title=data["title"],
                description=data["description"],
                price=data["price"],
                category=data["category"],
                image_path=staged.path,
                thumbnail_path=staged.thumbnail_path,
            )

        return self._persist(staged, persist, failure)

    def _create_thread(self, actor, fields, image):
        denial = check_actor(actor, Action.CREATE_CONTENT) or self._require_existing_actor(actor)
        if denial:
            return denial

        form = ThreadForm(fields, _files("image", image))
        if not form.is_valid():
            return ValidationError.from_form(form)
        data = form.cleaned_data

        group_id = data["group_id"]
        if group_id is not None:
            if not Group.objects.filter(pk=group_id).exists():
                return NotFound("There is no group with that id.")
            denial = check(actor.site_role, group_role_of(actor.id, group_id), None, None, Action.VIEW_GROUP)
            if denial:
                return denial

        failure = "An error occurred while creating your thread."
        staged = None
        if data["image"]:
            staged, error = self._stage(data["image"], THREAD_IMAGES, settings.THUMBNAIL_SIZES["thread"], failure)
            if error:
                return error

        def persist():
            thread = Thread.objects.create(
                creator_id=actor.id,
                group_id=group_id,
                title=data["title"],
                category=data["category"],
            )
            post = Post.objects.create(
                thread=thread,
                author_id=actor.id,
                body=data["body"],
                is_original_post=True,
            )
            if staged is not None:
                Attachment.objects.create(
                    post=post,
                    original_name=staged.original_name,
                    image_path=staged.path,
                    thumbnail_path=staged.thumbnail_path,
                )
            return thread

        return self._persist(staged, persist, failure)

    def _create_post(self, actor, fields, image):
        denial = check_actor(actor, Action.CREATE_CONTENT)
        if denial:
            return denial

        form = PostForm(fields)
        if not form.is_valid():
            return ValidationError.from_form(form)

        thread = Thread.objects.filter(pk=form.cleaned_data["thread_id"]).first()
        if thread is None:
            return NotFound("There is no thread with that id.")
        if thread.group_id is not None:
            denial = check(actor.site_role, group_role_of(actor.id, thread.group_id), None, None, Action.VIEW_GROUP)
            if denial:
                return denial

        def persist():
            return Post.objects.create(thread=thread, author_id=actor.id, body=form.cleaned_data["body"])

        return self._persist(None, persist, "An error occurred while making your post.")

    # ========================================================================
    # MEDIA REPLACEMENT
    # ========================================================================

    def replace_profile_picture(self, actor, image):
        """
        Swap the actor's profile picture.

        The new picture is staged first and the user row updated in a
        transaction; only then are the previous blobs removed, unless they
        are the shared default picture.
        """
        if actor.banned:
            return Forbidden("Your account has been banned.")
        form = ProfilePictureForm(files=_files("picture", image))
        if not form.is_valid():
            return ValidationError.from_form(form)

        user = User.objects.filter(pk=actor.id).first()
        if user is None:
            return Forbidden("Your user id is invalid. Please log out and try again.")
        previous = [user.profile_picture_path, user.profile_picture_thumbnail_path]

        failure = "An error occurred while changing your profile picture."
        staged, error = self._stage(
            form.cleaned_data["picture"], PROFILE_PICTURES, settings.THUMBNAIL_SIZES["profile"], failure
        )
        if error:
            return error

        def persist():
            user.profile_picture_path = staged.path
            user.profile_picture_thumbnail_path = staged.thumbnail_path
            user.save(update_fields=["profile_picture_path", "profile_picture_thumbnail_path"])
            return user

        outcome = self._persist(staged, persist, failure)
        if outcome.ok:
            self.blobs.delete_all(p for p in previous if not _is_default_picture(p))
        return outcome

    # ========================================================================
    # DESTROY
    # ========================================================================

    def destroy(self, kind, resource_id, actor):
        """
        Run the destroy pipeline for one resource.

        Returns:
            Ok | Forbidden | NotFound | ServerError
        """
        kind = ResourceKind(kind)
        loaders = {
            ResourceKind.ACCOUNT: self._load_account,
            ResourceKind.GROUP: self._load_group,
            ResourceKind.LISTING: self._load_listing,
            ResourceKind.THREAD: self._load_thread,
            ResourceKind.POST: self._load_post,
        }
        guards = {
            ResourceKind.ACCOUNT: self._guard_account,
            ResourceKind.GROUP: self._guard_group,
            ResourceKind.LISTING: self._guard_listing,
            ResourceKind.THREAD: self._guard_thread,
            ResourceKind.POST: self._guard_post,
        }

        try:
            loaded = loaders[kind](resource_id)
        except DatabaseError as e:
            logger.error(f"Could not load {kind.value} {resource_id}: {str(e)}", exc_info=True)
            return ServerError(f"An error occurred while deleting the {kind.value}.")
        if loaded is None:
            return NotFound(f"There is no {kind.value} with that id.")
        record, paths = loaded

        denial = guards[kind](record, actor)
        if denial:
            return denial

        if not self.blobs.delete_all(paths):
            logger.warning(f"Some blobs of {kind.value} {resource_id} were left behind")

        try:
            record.delete()
        except DatabaseError as e:
            logger.error(f"Could not delete {kind.value} {resource_id}: {str(e)}", exc_info=True)
            return ServerError(f"An error occurred while deleting the {kind.value}.")

        logger.info(f"User {actor.id} deleted {kind.value} {resource_id}")
        return Ok(message=f"The {kind.value} has been deleted.")

    # --- Loaders: (record, blob paths) or None ---

    def _attachment_paths(self, attachments):
        paths = []
        for image_path, thumbnail_path in attachments.values_list("image_path", "thumbnail_path"):
            paths.extend(p for p in (image_path, thumbnail_path) if p)
        return paths

    def _load_account(self, user_id):
        user = User.objects.filter(pk=user_id).first()
        if user is None:
            return None
        paths = [user.sfsu_id_picture_path]
        paths += [
            p for p in (user.profile_picture_path, user.profile_picture_thumbnail_path)
            if not _is_default_picture(p)
        ]
        return user, [p for p in paths if p]

    def _load_group(self, group_id):
        group = Group.objects.filter(pk=group_id).first()
        if group is None:
            return None
        paths = [group.picture_path, group.picture_thumbnail_path]
        paths += self._attachment_paths(Attachment.objects.filter(post__thread__group=group))
        return group, [p for p in paths if p]

    def _load_listing(self, listing_id):
        listing = Listing.objects.filter(pk=listing_id).first()
        if listing is None:
            return None
        return listing, [p for p in (listing.image_path, listing.thumbnail_path) if p]

    def _load_thread(self, thread_id):
        thread = Thread.objects.filter(pk=thread_id).first()
        if thread is None:
            return None
        return thread, self._attachment_paths(Attachment.objects.filter(post__thread=thread))

    def _load_post(self, post_id):
        post = Post.objects.select_related("thread").filter(pk=post_id).first()
        if post is None:
            return None
        return post, self._attachment_paths(post.attachments.all())

    # --- Guards ---

    def _guard_account(self, user, actor):
        return check_actor(actor, Action.REJECT_USER, target_site_role=user.site_role)

    def _guard_group(self, group, actor):
        return check_actor(actor, Action.DELETE_GROUP, actor_group_role=group_role_of(actor.id, group.pk))

    def _guard_listing(self, listing, actor):
        return check_actor(actor, Action.DELETE_LISTING, is_creator=listing.seller_id == actor.id)

    def _guard_thread(self, thread, actor):
        group_role = group_role_of(actor.id, thread.group_id) if thread.group_id else None
        return check_actor(
            actor, Action.DELETE_THREAD,
            actor_group_role=group_role,
            is_creator=thread.creator_id == actor.id,
        )

    def _guard_post(self, post, actor):
        if post.is_original_post:
            return Forbidden("You cannot delete original posts.")
        group_id = post.thread.group_id
        group_role = group_role_of(actor.id, group_id) if group_id else None
        return check_actor(actor, Action.DELETE_POST, actor_group_role=group_role)
