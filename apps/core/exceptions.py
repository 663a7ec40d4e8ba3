"""
API exception handling.

DRF already turns its own exceptions into ``{"detail": ...}`` responses; this
handler adds the domain errors raised by models and services.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError

from django_fsm import TransitionNotAllowed
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DomainError(ValueError):
    """Business rule violation reported to the client as a 400."""


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view")
    view_name = view.__class__.__name__ if view else "unknown view"

    if isinstance(exc, TransitionNotAllowed):
        logger.warning("Transition not allowed in %s: %s", view_name, exc)
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, DjangoValidationError):
        logger.warning("Validation error in %s: %s", view_name, exc)
        if hasattr(exc, "error_dict"):
            payload = {"detail": "Validation failed", **exc.message_dict}
        else:
            payload = {"detail": " ".join(exc.messages)}
        return Response(payload, status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, DomainError):
        logger.warning("Domain error in %s: %s", view_name, exc)
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    return None
