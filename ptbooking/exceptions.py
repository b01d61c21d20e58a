"""
Domain exceptions.

Raised by the services layer and translated into HTTP responses by routers.
"""


class BookingError(Exception):
    """Base exception for all booking errors."""
    pass


class ValidationError(BookingError):
    """Malformed settings or booking input, rejected before any external call."""
    pass


class SettingsValidationError(ValidationError):
    """The submitted settings document failed validation; nothing was written."""
    pass


class ResourceBusyError(BookingError):
    """The settings lock is held by another writer."""
    pass


class ConflictError(BookingError):
    """The requested slot was taken between display and submission."""
    pass


class NotFoundError(BookingError):
    """The reservation (calendar event or audit row) does not exist."""
    pass


class ExternalServiceError(BookingError):
    """A calendar, spreadsheet or notification call failed."""
    pass
