"""
DRF exception handler for service-layer errors.

Services raise core.exceptions subclasses; this handler renders them as
JSON using BaseApplicationError.to_dict() with a status code picked by
exception type. Everything else falls through to DRF's default handler.

Configured in settings:
    REST_FRAMEWORK = {
        "EXCEPTION_HANDLER": "core.exception_handler.api_exception_handler",
    }
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Checked in order, after an explicit http_status on the exception class.
STATUS_BY_EXCEPTION = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
)


def status_for(exc: BaseApplicationError) -> int:
    """Return the HTTP status code for an application error."""
    if getattr(exc, "http_status", None):
        return exc.http_status
    for exc_class, status_code in STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_class):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def api_exception_handler(exc, context):
    """
    Render application errors as JSON responses.

    Args:
        exc: Exception raised by the view
        context: DRF handler context (view, request, args, kwargs)

    Returns:
        Response, or None to let Django handle the exception
    """
    response = exception_handler(exc, context)
    if response is not None:
        return response

    if not isinstance(exc, BaseApplicationError):
        return None

    status_code = status_for(exc)
    view = context.get("view")
    logger.warning(
        f"{exc.__class__.__name__} in {view.__class__.__name__ if view else 'view'}: {exc}",
        extra={"error_code": exc.error_code, "status_code": status_code},
    )
    return Response(exc.to_dict(), status=status_code)
