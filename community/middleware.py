"""
================================================================================
GATORHUB COMMUNITY - CUSTOM MIDDLEWARE
================================================================================

@file        middleware.py
@description Session identity accessor for the community core
@version     1.0.0

MODULE PURPOSE
================================================================================
ActorMiddleware
   - Exposes the current identity as ``request.actor``, an immutable
     ``community.roles.Actor`` (id, site role, banned flag), or None for
     anonymous requests
   - Ends the session of a user who has been banned since logging in

Must be placed after ``AuthenticationMiddleware`` in settings.MIDDLEWARE.

================================================================================
"""

import logging

from django.contrib.auth import logout

from .roles import Actor


logger = logging.getLogger(__name__)


class ActorMiddleware:
    """
    Attach the acting user's role information to every request.

    Views pass ``request.actor`` to the lifecycle manager and transitions
    instead of the full ``User`` object, so guards only ever see the values
    they decide on.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.actor = None
        user = getattr(request, "user", None)

        if user is not None and user.is_authenticated:
            if user.is_banned:
                logger.info(f"Ending session of banned user {user.pk}")
                logout(request)
            else:
                request.actor = Actor.from_user(user)

        return self.get_response(request)
