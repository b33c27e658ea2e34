"""
Error taxonomy for the API and the exception handler that renders it.

Every error leaving a view is turned into the standard error body
(``error``, ``message``, ``details``, ``metadata``) with one of these statuses:

    ValidationError      400  validation_error
    AuthenticationError  401  authentication_error
    AuthorizationError   403  permission_error
    NotFoundError        404  not_found
    InternalError        500  server_error
"""

import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status

from .response_utils import error_response

logger = logging.getLogger(__name__)


GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


class ValidationError(exceptions.ValidationError):
    default_message = "Validation failed"

    def __init__(self, detail=None, message=None, code=None):
        super().__init__(detail, code)
        self.message = message or self.default_message


class InvalidPageParameter(ValidationError):
    """Raised for a pagination parameter that is not a positive integer."""

    def __init__(self, parameter, reason):
        self.parameter = parameter
        super().__init__(
            {parameter: [reason]},
            message=f"Invalid pagination parameter '{parameter}': {reason}",
            code="invalid_page_parameter",
        )


class AuthenticationError(exceptions.AuthenticationFailed):
    default_detail = "Authentication credentials are missing or invalid."


class AuthorizationError(exceptions.PermissionDenied):
    default_detail = "Your role does not allow this operation."


class NotFoundError(exceptions.NotFound):
    default_detail = "Resource not found."


class InternalError(exceptions.APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = GENERIC_ERROR_MESSAGE
    default_code = "server_error"


ERROR_TYPES = {
    status.HTTP_400_BAD_REQUEST: "validation_error",
    status.HTTP_401_UNAUTHORIZED: "authentication_error",
    status.HTTP_403_FORBIDDEN: "permission_error",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
    status.HTTP_429_TOO_MANY_REQUESTS: "throttled",
    status.HTTP_500_INTERNAL_SERVER_ERROR: "server_error",
}


def _message_for(exc):
    message = getattr(exc, "message", None)
    if message:
        return message

    if isinstance(exc, exceptions.ValidationError):
        return ValidationError.default_message

    detail = exc.detail
    if isinstance(detail, dict) and "detail" in detail:
        # simplejwt wraps token errors as {"detail": ..., "code": ..., "messages": [...]}
        return str(detail["detail"])

    return str(detail)


def _headers_for(exc):
    headers = {}

    auth_header = getattr(exc, "auth_header", None)
    if auth_header:
        headers["WWW-Authenticate"] = auth_header

    wait = getattr(exc, "wait", None)
    if wait:
        headers["Retry-After"] = "%d" % wait

    return headers


def api_exception_handler(exc, context):
    """
    DRF ``EXCEPTION_HANDLER`` producing the standard error body for every error.
    """

    if isinstance(exc, Http404):
        exc = NotFoundError()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = AuthorizationError()

    view = context.get("view")
    view_name = view.__class__.__name__ if view is not None else "unknown view"

    if not isinstance(exc, exceptions.APIException) or exc.status_code >= 500:
        logger.error(f"Unhandled error in {view_name}: {exc!r}", exc_info=exc)
        # internal detail never reaches the caller
        exc = InternalError()

    details = None
    if isinstance(exc, exceptions.ValidationError):
        details = exc.detail if isinstance(exc.detail, dict) else {"non_field_errors": exc.detail}

    from rest_framework.views import set_rollback

    set_rollback()

    return error_response(
        error_type=ERROR_TYPES.get(exc.status_code, "error"),
        message=_message_for(exc),
        details=details,
        status_code=exc.status_code,
        headers=_headers_for(exc) or None,
    )
