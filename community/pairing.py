"""
Canonical pairing for two-party conversations.

A conversation between users ``a`` and ``b`` is stored under the key
``(min(a, b), max(a, b))``. The lookup below is only a fast path: the
``unique_conversation_pair`` constraint on ``Conversation`` is what keeps
two concurrent first contacts from creating two rows.
"""

import logging

from django.db import DatabaseError, IntegrityError, transaction

from .models import Conversation
from .outcomes import Ok, ServerError


logger = logging.getLogger(__name__)


def canonical_pair(a: int, b: int):
    """Return the order-independent key for users ``a`` and ``b``."""
    if a == b:
        raise ValueError("A conversation needs two distinct users.")
    return (a, b) if a < b else (b, a)


def find_conversation(a: int, b: int):
    smaller, larger = canonical_pair(a, b)
    return Conversation.objects.filter(smaller_user_id=smaller, larger_user_id=larger).first()


def get_or_create_conversation(a: int, b: int):
    """
    Return the id of the conversation between two users, creating it if needed.

    Returns:
        Ok: ``value`` is the conversation id
        ServerError: the store failed
    """
    smaller, larger = canonical_pair(a, b)
    try:
        conversation = find_conversation(smaller, larger)
        if conversation is not None:
            return Ok(conversation.pk)

        try:
            with transaction.atomic():
                conversation = Conversation.objects.create(smaller_user_id=smaller, larger_user_id=larger)
            logger.info(f"Created conversation {conversation.pk} for users {smaller} and {larger}")
        except IntegrityError:
            # the other side created it between our lookup and insert
            conversation = Conversation.objects.get(smaller_user_id=smaller, larger_user_id=larger)

        return Ok(conversation.pk)
    except DatabaseError as e:
        logger.error(f"Could not get or create conversation {smaller}-{larger}: {str(e)}", exc_info=True)
        return ServerError("An error occurred while opening the conversation.")
