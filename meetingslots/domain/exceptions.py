"""
Domain-specific exception hierarchy for the meeting slot suggester.
"""


class SchedulingError(Exception):
    """Base class for all application-level errors."""

    error_type = "scheduling_error"


class ConfigurationError(SchedulingError, ValueError):
    """Raised when a scheduling request or configuration is invalid."""

    error_type = "configuration_error"


class ExternalFetchError(SchedulingError):
    """Raised when busy-time data cannot be fetched from the calendar provider."""

    error_type = "external_fetch_error"


class AuthenticationError(ExternalFetchError):
    """Raised when authentication or token handling fails."""

    error_type = "authentication_error"
