"""
Error taxonomy for ELD ingestion.

Every exception here is an ``APIException`` so views can simply let it
propagate to DRF's exception handler.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class AuthenticationError(APIException):
    """Bad or missing webhook signature / sync credentials."""
    # AuthenticationFailed would be downgraded to 403 on views without authenticators
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Invalid signature.'
    default_code = 'authentication_failed'


class ELDValidationError(APIException):
    """Missing required top-level fields; nothing was processed."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request payload.'
    default_code = 'invalid'


class NotFoundError(APIException):
    """Device unknown, inactive, or owned by another company."""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Device not found.'
    default_code = 'not_found'


class PersistenceError(APIException):
    """Store write failure. Detail stays in the server log."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Failed to store ELD data.'
    default_code = 'persistence_error'
