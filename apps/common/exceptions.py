import logging

from django.db import DatabaseError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

logger = logging.getLogger(__name__)


class StorageError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Storage operation failed"
    default_code = "storage_error"


def _first_message(value):
    if isinstance(value, dict):
        for item in value.values():
            message = _first_message(item)
            if message:
                return message
        return None
    if isinstance(value, (list, tuple)):
        for item in value:
            message = _first_message(item)
            if message:
                return message
        return None
    return str(value) if value else None


def _view_name(context):
    view = context.get("view")
    return view.__class__.__name__ if view is not None else "unknown view"


def api_exception_handler(exc, context):
    """Render every error as ``{success, error, code, fields}``.

    Database failures become ``StorageError`` (500) carrying the driver message;
    anything DRF does not know about becomes a generic 500.
    """
    if isinstance(exc, DatabaseError):
        logger.error("Storage failure in %s", _view_name(context), exc_info=exc)
        exc = StorageError(str(exc) or None)

    response = exception_handler(exc, context)
    if response is None:
        logger.error("Unhandled error in %s", _view_name(context), exc_info=exc)
        set_rollback()
        return Response(
            {"success": False, "error": "Internal server error", "code": "server_error", "fields": {}},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(response.data, dict):
        detail = response.data.get("detail")
        fields = {k: v for k, v in response.data.items() if k != "detail"}
    else:
        detail = None
        fields = {"non_field_errors": response.data}
    error = str(detail) if detail else _first_message(fields) or "Request failed"

    if isinstance(exc, Http404):
        code = "not_found"
    else:
        code = getattr(exc, "default_code", "error")

    response.data = {
        "success": False,
        "error": error,
        "code": code,
        "fields": fields,
    }
    return response
