"""
REST framework exception handler for HOS engine errors.

Configured through ``REST_FRAMEWORK["EXCEPTION_HANDLER"]``. Engine errors
become ``{"error", "code", "details"}`` responses; everything else falls
through to the REST framework default.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .exceptions import (
    AggregationCancelled,
    AlreadyResolved,
    HOSEngineError,
    InvalidTransition,
    InvalidWindow,
    NoActiveAssignment,
    NotFound,
    OdometerRegression,
    StorageUnavailable,
    UnknownDutyStatus,
)

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 2

ERROR_STATUS_CODES = {
    InvalidTransition: status.HTTP_400_BAD_REQUEST,
    OdometerRegression: status.HTTP_400_BAD_REQUEST,
    InvalidWindow: status.HTTP_400_BAD_REQUEST,
    UnknownDutyStatus: status.HTTP_400_BAD_REQUEST,
    NoActiveAssignment: status.HTTP_409_CONFLICT,
    NotFound: status.HTTP_404_NOT_FOUND,
    AlreadyResolved: status.HTTP_409_CONFLICT,
    StorageUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    AggregationCancelled: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_code_for(exc: HOSEngineError) -> int:
    for klass in type(exc).__mro__:
        if klass in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[klass]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def hos_exception_handler(exc, context):
    """Translate HOS engine errors into API responses."""
    if not isinstance(exc, HOSEngineError):
        return exception_handler(exc, context)

    status_code = status_code_for(exc)
    view = context.get("view")
    logger.warning(
        f"{exc.code} in {view.__class__.__name__ if view else 'unknown view'}: {exc.message}"
    )

    response = Response(exc.to_dict(), status=status_code)
    if exc.retryable:
        response["Retry-After"] = str(RETRY_AFTER_SECONDS)
    return response
