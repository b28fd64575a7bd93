"""Canonical Pairing — tests for order-independent conversation identity.

Invariants:
    - canonical_pair(a, b) == canonical_pair(b, a) == (min, max)
    - At most one Conversation row per unordered pair of users
    - A lost insert race resolves to the row the other side created

Tests cover:
    - key symmetry and rejection of identical ids
    - get_or_create in both argument orders
    - simulated concurrent first contact
    - store failures surfacing as ServerError
"""

from unittest import mock

import pytest
from django.db import DatabaseError, IntegrityError, transaction

from community import pairing
from community.models import Conversation
from community.outcomes import ServerError
from community.pairing import canonical_pair, get_or_create_conversation


# ─── canonical_pair ──────────────────────────────────────────────

@pytest.mark.parametrize("a,b", [(1, 2), (2, 1), (5, 2), (10, 300), (300, 10)])
def test_canonical_pair_is_symmetric(a, b):
    assert canonical_pair(a, b) == canonical_pair(b, a) == (min(a, b), max(a, b))


def test_canonical_pair_rejects_identical_ids():
    with pytest.raises(ValueError):
        canonical_pair(7, 7)


# ─── get_or_create_conversation ──────────────────────────────────

def test_get_or_create_returns_same_id_in_both_orders(make_user):
    a, b = make_user(), make_user()

    first = get_or_create_conversation(a.pk, b.pk)
    second = get_or_create_conversation(b.pk, a.pk)

    assert first.ok and second.ok
    assert first.value == second.value
    assert Conversation.objects.count() == 1


def test_conversation_stored_in_canonical_order(make_user):
    a, b = make_user(), make_user()

    conversation_id = get_or_create_conversation(b.pk, a.pk).value
    conversation = Conversation.objects.get(pk=conversation_id)

    assert conversation.smaller_user_id == min(a.pk, b.pk)
    assert conversation.larger_user_id == max(a.pk, b.pk)


def test_concurrent_first_contact_yields_one_row(make_user):
    make_user(id=2)
    make_user(id=5)
    # user 2 has already inserted the row when user 5's lookup ran and missed it
    existing = Conversation.objects.create(smaller_user_id=2, larger_user_id=5)

    with mock.patch.object(pairing, "find_conversation", return_value=None):
        outcome = get_or_create_conversation(5, 2)

    assert outcome.ok
    assert outcome.value == existing.pk
    assert Conversation.objects.filter(smaller_user_id=2, larger_user_id=5).count() == 1


def test_duplicate_pair_rejected_by_store(make_user):
    a, b = make_user(), make_user()
    smaller, larger = canonical_pair(a.pk, b.pk)
    Conversation.objects.create(smaller_user_id=smaller, larger_user_id=larger)

    with pytest.raises(IntegrityError), transaction.atomic():
        Conversation.objects.create(smaller_user_id=smaller, larger_user_id=larger)


def test_store_failure_becomes_server_error(make_user):
    a, b = make_user(), make_user()

    with mock.patch.object(pairing, "find_conversation", side_effect=DatabaseError("connection lost")):
        outcome = get_or_create_conversation(a.pk, b.pk)

    assert isinstance(outcome, ServerError)
    assert outcome.message == "An error occurred while opening the conversation."
