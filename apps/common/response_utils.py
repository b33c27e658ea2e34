"""
Standardized API response utilities shared by the authentication and catalog apps.
"""

from rest_framework.response import Response
from rest_framework import status
from django.utils import timezone
import uuid


def _response_metadata():
    return {
        "timestamp": timezone.now().isoformat(),
        "request_id": str(uuid.uuid4()),
    }


def success_response(message, data=None, status_code=status.HTTP_200_OK, metadata=None):
    """
    Generate a standardized success response.

    Args:
        message: Human-readable success message
        data: Primary response payload (optional)
        status_code: HTTP status code (default: 200)
        metadata: Additional metadata (optional)

    Returns:
        Response object with standardized format
    """

    response_data = {
        "message": message,
    }

    if data is not None:
        response_data["data"] = data

    response_metadata = _response_metadata()

    if metadata:
        response_metadata.update(metadata)

    response_data["metadata"] = response_metadata

    return Response(response_data, status=status_code)


def error_response(error_type, message, details=None, status_code=status.HTTP_400_BAD_REQUEST, headers=None):
    """
    Generate a standardized error response.

    Args:
        error_type: Error type or code
        message: Human-readable error description
        details: Specific error details or validation errors (optional)
        status_code: HTTP status code (default: 400)
        headers: Extra response headers, e.g. WWW-Authenticate (optional)

    Returns:
        Response object with standardized error format
    """

    response_data = {
        "error": error_type,
        "message": message,
        "metadata": _response_metadata(),
    }

    if details:
        response_data["details"] = details

    return Response(response_data, status=status_code, headers=headers)


def validation_error_response(validation_errors, message="Validation failed"):
    """
    Generate a standardized validation error response.

    Args:
        validation_errors: Dictionary of field-specific validation errors
        message: General error message (default: "Validation failed")
    """

    return error_response(
        error_type="validation_error",
        message=message,
        details=validation_errors,
        status_code=status.HTTP_400_BAD_REQUEST,
    )


def authentication_error_response(message="Authentication failed"):
    return error_response(
        error_type="authentication_error",
        message=message,
        status_code=status.HTTP_401_UNAUTHORIZED,
    )
