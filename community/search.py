"""
================================================================================
GATORHUB COMMUNITY - SEARCH WITH FALLBACK
================================================================================

@file        search.py
@description One search algorithm for users, listings and threads
@version     1.0.0

MODULE PURPOSE
================================================================================
``run_search`` runs a filtered query for one entity kind. When the filtered
query finds nothing, it runs a filter-free query for the newest entities of
the same kind instead and tags the result, so callers never have to guess
what an item list means:

    Matched(items, count)    the filters found ``count`` rows
    Suggested(items)         nothing matched; these are recommendations

Each kind is described by a ``SearchKind``: its base queryset, the field
used for substring search, the fields accepted as equality filters, an
optional numeric ceiling field and the sort orders it supports. Match caps
and suggestion counts come from ``settings.SEARCH_LIMITS``.

USAGE
================================================================================
    result = run_search(LISTINGS, SearchPredicates(equals={"category": "Books"}))
    if isinstance(result, Suggested):
        ...  # show "no results, you might like" banner

================================================================================
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from django.conf import settings
from django.db.models import Count, Max, Q, Value
from django.db.models.functions import Concat

from .models import Listing, Thread, ThreadSort, User


# ============================================================================
# RESULT TYPES
# ============================================================================

@dataclass(frozen=True)
class Matched:
    items: List[Any]
    count: int

    tag = "matched"


@dataclass(frozen=True)
class Suggested:
    items: List[Any]

    tag = "suggested"

    @property
    def count(self):
        return 0


# ============================================================================
# KIND DESCRIPTORS
# ============================================================================

@dataclass(frozen=True)
class SearchPredicates:
    """
    Optional filters for one search.

    Attributes:
        text: Case-insensitive substring matched against the kind's text field
        equals: Equality filters, keys must be in the kind's ``equality_fields``
        ceiling: Upper bound (inclusive) on the kind's ceiling field; 0 is a real bound
        scope: Filters applied to suggestions too (e.g. which forum a thread lives in)
        sort: One of the kind's ``sort_orders`` keys
    """

    text: Optional[str] = None
    equals: Mapping[str, Any] = field(default_factory=dict)
    ceiling: Optional[Any] = None
    scope: Mapping[str, Any] = field(default_factory=dict)
    sort: Optional[str] = None


@dataclass(frozen=True)
class SearchKind:
    name: str
    queryset: Callable
    text_field: str
    equality_fields: Tuple[str, ...] = ()
    ceiling_field: Optional[str] = None
    sort_orders: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    default_order: Tuple[str, ...] = ("-created_at", "-id")

    def build_filter(self, predicates: SearchPredicates) -> Q:
        condition = Q()
        if predicates.text:
            condition &= Q(**{f"{self.text_field}__icontains": predicates.text})
        for name, value in predicates.equals.items():
            if name not in self.equality_fields:
                raise ValueError(f"{self.name} cannot be filtered by {name}")
            if value is not None and value != "":
                condition &= Q(**{name: value})
        if predicates.ceiling is not None:
            if not self.ceiling_field:
                raise ValueError(f"{self.name} has no ceiling filter")
            condition &= Q(**{f"{self.ceiling_field}__lte": predicates.ceiling})
        return condition

    def order_for(self, sort: Optional[str]) -> Tuple[str, ...]:
        if not sort:
            return self.default_order
        if sort not in self.sort_orders:
            raise ValueError(f"{self.name} cannot be sorted by {sort!r}")
        return self.sort_orders[sort]


def _users():
    return User.objects.annotate(
        search_name=Concat("first_name", Value(" "), "last_name"),
    )


def _listings():
    return Listing.objects.select_related("seller")


def _threads():
    return Thread.objects.select_related("creator", "group").annotate(
        last_post_at=Max("posts__created_at"),
        post_count=Count("posts"),
    )


USERS = SearchKind(
    name="users",
    queryset=_users,
    text_field="search_name",
    equality_fields=("site_role",),
)

LISTINGS = SearchKind(
    name="listings",
    queryset=_listings,
    text_field="title",
    equality_fields=("category",),
    ceiling_field="price",
)

THREADS = SearchKind(
    name="threads",
    queryset=_threads,
    text_field="title",
    equality_fields=("category",),
    sort_orders={
        ThreadSort.LAST_POST_DATE: ("-last_post_at", "-id"),
        ThreadSort.CREATION_DATE: ("-created_at", "-id"),
        ThreadSort.NUMBER_OF_POSTS: ("-post_count", "-created_at", "-id"),
    },
)

SEARCH_KINDS = {kind.name: kind for kind in (USERS, LISTINGS, THREADS)}


# ============================================================================
# ALGORITHM
# ============================================================================

def run_search(kind, predicates=None, max_results=None, suggestion_count=None):
    """
    Search one entity kind, falling back to recommendations.

    Args:
        kind: ``SearchKind`` or its name ("users", "listings", "threads")
        predicates: ``SearchPredicates``; no filters when omitted
        max_results: Cap on matches, defaults to ``SEARCH_LIMITS[kind]["max_results"]``
        suggestion_count: Number of recommendations, defaults to the kind's setting

    Returns:
        Matched | Suggested
    """
    if isinstance(kind, str):
        kind = SEARCH_KINDS[kind]
    predicates = predicates or SearchPredicates()
    limits = settings.SEARCH_LIMITS[kind.name]
    if max_results is None:
        max_results = limits["max_results"]
    if suggestion_count is None:
        suggestion_count = limits["suggestions"]

    base = kind.queryset().filter(**predicates.scope)

    matches = list(
        base.filter(kind.build_filter(predicates)).order_by(*kind.order_for(predicates.sort))[:max_results]
    )
    if matches:
        return Matched(items=matches, count=len(matches))

    suggestions = list(base.order_by(*kind.default_order)[:suggestion_count])
    return Suggested(items=suggestions)
