import logging

from django.db import DatabaseError
from django_ratelimit.exceptions import Ratelimited
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def _first_message(errors):
    """Pick the first human readable message out of serializer errors."""
    if isinstance(errors, dict):
        for value in errors.values():
            message = _first_message(value)
            if message:
                return message
        return None
    if isinstance(errors, (list, tuple)):
        for value in errors:
            message = _first_message(value)
            if message:
                return message
        return None
    return str(errors) if errors else None


def custom_exception_handler(exc, context):
    """Custom exception handler for consistent API responses"""
    if isinstance(exc, Ratelimited):
        return Response(
            {"message": "Demasiadas solicitudes, intenta más tarde", "errors": []},
            status=status.HTTP_429_TOO_MANY_REQUESTS,
        )

    response = exception_handler(exc, context)

    if response is None:
        if isinstance(exc, DatabaseError):
            view = context.get("view")
            logger.exception("Storage failure in %s", view.__class__.__name__ if view else "unknown view")
            return Response(
                {"message": "Internal server error", "errors": []},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return None

    custom_response = {
        "message": "An error occurred",
        "errors": [],
    }

    if isinstance(response.data, dict):
        if "detail" in response.data:
            custom_response["message"] = str(response.data["detail"])
        else:
            custom_response["message"] = _first_message(response.data) or "Invalid request data"
            custom_response["errors"] = response.data
    elif isinstance(response.data, list):
        custom_response["message"] = _first_message(response.data) or "Invalid request data"
        custom_response["errors"] = response.data
    else:
        custom_response["message"] = str(response.data)

    retry_after = getattr(exc, "retry_after", None)
    if retry_after is not None:
        custom_response["retryAfter"] = retry_after
        response["Retry-After"] = str(retry_after)

    response.data = custom_response
    return response
