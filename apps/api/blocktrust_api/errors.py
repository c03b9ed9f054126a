"""Error taxonomy shared by the lifecycle, participation and ledger services.

Every error carries the HTTP status it maps to, so routes never translate
exceptions by hand; ``main.py`` installs one handler for the whole hierarchy.
"""

from fastapi import status


class BlockTrustError(Exception):
    """Base class for all domain errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(BlockTrustError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class Forbidden(BlockTrustError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class ValidationError(BlockTrustError):
    """Malformed or out-of-range input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class InvalidTimeRange(ValidationError):
    default_message = "Invalid time range: end time must be after start time"


class InsufficientOptions(ValidationError):
    default_message = "Need at least 2 options"


class InvalidTarget(ValidationError):
    default_message = "Target must be greater than 0"


class InvalidOption(ValidationError):
    default_message = "Invalid option"


class EventClosed(ValidationError):
    default_message = "Event is not open for participation"


class ValueTooLong(ValidationError):
    default_message = "Value is too long"


class InvalidTemplate(ValidationError):
    default_message = "Template cannot be used for this event"


class DuplicateParticipation(BlockTrustError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Already participated in this event"


class NotYetEnded(BlockTrustError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Event has not ended"


class EventNotFound(BlockTrustError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Event not found"


class TemplateNotFound(BlockTrustError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Template not found"


class AlreadyFinalized(BlockTrustError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Event is already finalized"


class InvalidTransition(BlockTrustError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Invalid status transition"


class StorageUnavailable(BlockTrustError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Storage is unavailable"
