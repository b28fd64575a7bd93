import logging

from django.contrib.auth import authenticate, login, logout
from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .forms import ListingSearchForm, ThreadSearchForm, UserSearchForm
from .lifecycle import ResourceKind, ResourceLifecycleManager, group_role_of
from .outcomes import Forbidden, ValidationError
from .reads import listing_json, thread_json, user_json
from .roles import Action, check
from .search import LISTINGS, THREADS, USERS, SearchPredicates, run_search
from . import reads, transitions


# Logger
logger = logging.getLogger(__name__)

manager = ResourceLifecycleManager()


def outcome_response(outcome):
    return JsonResponse(outcome.to_payload(), status=outcome.http_status)


def _posted_id(request, name):
    try:
        return int(request.POST.get(name, ""))
    except ValueError:
        return None


def _missing_id(name):
    return outcome_response(ValidationError(message=f"A valid {name} is required.", errors={name: ["Required."]}))


# ============================================================================
# AUTHENTICATION
# ============================================================================

@require_POST
def register(request):
    outcome = manager.create(
        ResourceKind.ACCOUNT, None, request.POST, request.FILES.get("sfsu_id_picture")
    )
    return outcome_response(outcome)


@require_POST
def login_view(request):
    sfsu_id_number = request.POST.get("sfsu_id_number", "").strip()
    password = request.POST.get("password", "")

    user = authenticate(request, username=sfsu_id_number, password=password)
    if user is None:
        return JsonResponse(
            {"status": "error", "message": "Invalid SFSU ID number or password."}, status=401
        )
    if user.is_banned:
        logger.warning(f"Banned user {user.pk} tried to log in")
        return outcome_response(Forbidden("Your account has been banned."))

    login(request, user)
    return JsonResponse({
        "status": "success",
        "user_id": user.pk,
        "full_name": user.full_name,
        "role": user.site_role,
    })


@require_POST
def logout_view(request):
    logout(request)
    return JsonResponse({"status": "success"})


@login_required
@require_POST
def change_profile_picture(request):
    return outcome_response(manager.replace_profile_picture(request.actor, request.FILES.get("picture")))


# ============================================================================
# SITE MODERATION
# ============================================================================

@login_required
@require_POST
def approve_user(request, user_id):
    return outcome_response(transitions.approve_user(request.actor, user_id))


@login_required
@require_POST
def reject_user(request, user_id):
    return outcome_response(transitions.reject_user(request.actor, user_id, manager))


@login_required
@require_POST
def ban_user(request, user_id):
    return outcome_response(transitions.ban_user(request.actor, user_id))


@login_required
@require_POST
def appoint_moderator(request, user_id):
    return outcome_response(transitions.appoint_moderator(request.actor, user_id))


@login_required
@require_POST
def unappoint_moderator(request, user_id):
    return outcome_response(transitions.unappoint_moderator(request.actor, user_id))


@login_required
@require_POST
def reset_password(request, user_id):
    return outcome_response(
        transitions.reset_password(request.actor, user_id, request.POST.get("new_password", ""))
    )


# ============================================================================
# GROUPS
# ============================================================================

@login_required
@require_POST
def create_group(request):
    return outcome_response(
        manager.create(ResourceKind.GROUP, request.actor, request.POST, request.FILES.get("picture"))
    )


@login_required
@require_POST
def delete_group(request, group_id):
    return outcome_response(manager.destroy(ResourceKind.GROUP, group_id, request.actor))


@login_required
@require_http_methods(["GET", "POST"])
def join_group(request, group_id, join_code):
    return outcome_response(transitions.join_group(request.actor, group_id, join_code))


@login_required
@require_POST
def leave_group(request, group_id):
    return outcome_response(transitions.leave_group(request.actor, group_id))


def _member_action(request, group_id, operation):
    user_id = _posted_id(request, "user_id")
    if user_id is None:
        return _missing_id("user_id")
    return outcome_response(operation(request.actor, group_id, user_id))


@login_required
@require_POST
def kick_member(request, group_id):
    return _member_action(request, group_id, transitions.kick_member)


@login_required
@require_POST
def promote_member(request, group_id):
    return _member_action(request, group_id, transitions.promote_member)


@login_required
@require_POST
def demote_moderator(request, group_id):
    return _member_action(request, group_id, transitions.demote_moderator)


@login_required
@require_POST
def invite_to_group(request, group_id):
    recipient_id = _posted_id(request, "recipient_id")
    if recipient_id is None:
        return _missing_id("recipient_id")
    return outcome_response(transitions.invite_to_group(request.actor, group_id, recipient_id))


@login_required
@require_POST
def change_announcement(request, group_id):
    return outcome_response(
        transitions.change_announcement(request.actor, group_id, request.POST.get("announcement", ""))
    )


@login_required
@require_POST
def send_chat_message(request, group_id=None):
    return outcome_response(transitions.send_chat_message(request.actor, group_id, request.POST.get("body", "")))


# ============================================================================
# MARKETPLACE, FORUMS & MESSAGES
# ============================================================================

@login_required
@require_POST
def create_listing(request):
    return outcome_response(
        manager.create(ResourceKind.LISTING, request.actor, request.POST, request.FILES.get("image"))
    )


@login_required
@require_POST
def delete_listing(request, listing_id):
    return outcome_response(manager.destroy(ResourceKind.LISTING, listing_id, request.actor))


@login_required
@require_POST
def create_thread(request):
    return outcome_response(
        manager.create(ResourceKind.THREAD, request.actor, request.POST, request.FILES.get("image"))
    )


@login_required
@require_POST
def delete_thread(request, thread_id):
    return outcome_response(manager.destroy(ResourceKind.THREAD, thread_id, request.actor))


@login_required
@require_POST
def make_post(request, thread_id):
    return outcome_response(
        transitions.make_post(request.actor, thread_id, request.POST.get("body", ""), manager)
    )


@login_required
@require_POST
def delete_post(request, post_id):
    return outcome_response(manager.destroy(ResourceKind.POST, post_id, request.actor))


@login_required
@require_POST
def send_direct_message(request, user_id):
    return outcome_response(transitions.send_direct_message(request.actor, user_id, request.POST.get("body", "")))


# ============================================================================
# SEARCH
# ============================================================================

def _search_response(result, serialize):
    return JsonResponse({
        "status": "success",
        "result": result.tag,
        "count": result.count,
        "items": [serialize(item) for item in result.items],
    })


@login_required
@require_GET
def search_users(request):
    form = UserSearchForm(request.GET)
    if not form.is_valid():
        return outcome_response(ValidationError.from_form(form))
    predicates = SearchPredicates(
        text=form.cleaned_data["search_terms"],
        equals={"site_role": form.cleaned_data["role"]},
    )
    return _search_response(run_search(USERS, predicates), user_json)


@login_required
@require_GET
def search_listings(request):
    form = ListingSearchForm(request.GET)
    if not form.is_valid():
        return outcome_response(ValidationError.from_form(form))
    predicates = SearchPredicates(
        text=form.cleaned_data["search_terms"],
        equals={"category": form.cleaned_data["category"]},
        ceiling=form.cleaned_data["max_price"],
    )
    return _search_response(run_search(LISTINGS, predicates), listing_json)


@login_required
@require_GET
def search_threads(request):
    form = ThreadSearchForm(request.GET)
    if not form.is_valid():
        return outcome_response(ValidationError.from_form(form))
    group_id = form.cleaned_data["group_id"]
    if group_id is not None:
        denial = check(request.actor.site_role, group_role_of(request.actor.id, group_id), None, None, Action.VIEW_GROUP)
        if denial:
            return outcome_response(denial)
    predicates = SearchPredicates(
        text=form.cleaned_data["search_terms"],
        equals={"category": form.cleaned_data["category"]},
        scope={"group_id": group_id},
        sort=form.cleaned_data["sort"] or None,
    )
    return _search_response(run_search(THREADS, predicates), thread_json)


# ============================================================================
# PAGES
# ============================================================================

def read_response(outcome):
    """Merge a read's payload into a success response, or map its failure."""
    if not outcome.ok:
        return outcome_response(outcome)
    return JsonResponse({"status": "success", **outcome.value})


@require_GET
def session_status(request):
    return read_response(reads.session_status(request.user))


@login_required
@require_GET
def dashboard(request):
    return read_response(reads.dashboard(request.actor))


@login_required
@require_GET
def profile(request, user_id):
    return read_response(reads.profile(user_id))


@login_required
@require_GET
def approval_requests(request):
    return read_response(reads.approval_requests(request.actor))


@login_required
@require_GET
def conversations(request):
    return read_response(reads.conversations(request.actor))


@login_required
@require_GET
def direct_messages(request, user_id):
    return read_response(reads.direct_messages(request.actor, user_id))


@login_required
@require_GET
def group_chats(request):
    return read_response(reads.group_chats(request.actor))


@login_required
@require_GET
def chat_messages(request, group_id=None):
    return read_response(reads.chat_messages(request.actor, group_id))


@login_required
@require_GET
def user_groups(request):
    return read_response(reads.user_groups(request.actor))


@login_required
@require_GET
def group_home(request, group_id):
    return read_response(reads.group_home(request.actor, group_id))


@login_required
@require_GET
def group_members(request, group_id):
    return read_response(reads.group_members(request.actor, group_id))


@login_required
@require_GET
def view_thread(request, thread_id):
    return read_response(reads.view_thread(request.actor, thread_id))


@login_required
@require_GET
def list_threads(request):
    form = ThreadSearchForm(request.GET)
    if not form.is_valid():
        return outcome_response(ValidationError.from_form(form))
    return read_response(reads.list_threads(
        request.actor,
        group_id=form.cleaned_data["group_id"],
        category=form.cleaned_data["category"],
        sort=form.cleaned_data["sort"] or None,
    ))


@login_required
@require_GET
def view_listing(request, listing_id):
    return read_response(reads.view_listing(listing_id))


@login_required
@require_GET
def list_listings(request):
    form = ListingSearchForm(request.GET)
    if not form.is_valid():
        return outcome_response(ValidationError.from_form(form))
    return read_response(reads.list_listings(
        category=form.cleaned_data["category"],
        max_price=form.cleaned_data["max_price"],
    ))
