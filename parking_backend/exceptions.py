import logging

from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ValidationFailed(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request."
    default_code = "validation_failed"


class Conflict(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Resource already exists."
    default_code = "conflict"


class InvalidCredentials(exceptions.APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid email or password"
    default_code = "invalid_credentials"


class NotVerified(exceptions.APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Please verify your email before logging in"
    default_code = "not_verified"


class NotFound(exceptions.APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class InvalidOrExpired(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid or expired token"
    default_code = "invalid_or_expired"


class AlreadyVerified(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Email is already verified"
    default_code = "already_verified"


class OTPNotFound(exceptions.APIException):
    # the verify-otp route reports a missing entry as a bad request
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "No OTP found for this email"
    default_code = "otp_not_found"


class OTPExpired(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "OTP has expired"
    default_code = "otp_expired"


class InvalidOTP(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid OTP"
    default_code = "invalid_otp"


class InvalidIdentifier(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid user ID format"
    default_code = "invalid_identifier"


class Internal(exceptions.APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"
    default_code = "internal"

    def __init__(self, detail=None, code=None, error=None):
        super().__init__(detail, code)
        self.error = error


def _messages(detail):
    if isinstance(detail, dict):
        for value in detail.values():
            yield from _messages(value)
    elif isinstance(detail, (list, tuple)):
        for item in detail:
            yield from _messages(item)
    else:
        yield str(detail)


def _flatten(detail):
    """Turn DRF's nested error detail into a single readable line."""
    unique = []
    for message in _messages(detail):
        if message not in unique:
            unique.append(message)
    return " ".join(unique)


def api_exception_handler(exc, context):
    """
    Render every API error as {"success": false, "message": ..., "error": ...}.

    Anything DRF does not know how to handle is logged and reported as a 500.
    """
    response = exception_handler(exc, context)
    view = context.get("view")
    view_name = view.__class__.__name__ if view else "unknown"

    if response is None:
        logger.exception("Unhandled error in %s", view_name)
        return Response(
            {"success": False, "message": "Internal server error", "error": str(exc)},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, Http404):
        message = "Not found."
    elif isinstance(exc, exceptions.ValidationError):
        message = _flatten(exc.detail)
    else:
        message = _flatten(getattr(exc, "detail", str(exc)))

    error = message
    if isinstance(exc, Internal) and exc.error is not None:
        error = str(exc.error)
        logger.error("%s failed: %s (%s)", view_name, message, error)

    response.data = {"success": False, "message": message, "error": error}
    return response
