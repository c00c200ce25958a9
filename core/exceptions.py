"""
Centralized exception hierarchy for domain-specific errors.

Internal layers (HTTP clients, record stores, event sources) raise these;
the owning component catches them, logs, and turns them into state
(status strings, absent data). None of them escape the public tracking
operations.
"""


class TrackerError(Exception):
    """Base exception for all application-specific errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ExternalServiceError(TrackerError):
    """Exception raised when service calls fail."""


class PersistenceError(TrackerError):
    """Exception raised when the durable record store cannot be read or written."""


class SourceUnavailableError(TrackerError):
    """Exception raised when a location or motion source cannot be used."""


class AuthorizationError(TrackerError):
    """Exception raised when the platform denies or restricts location access."""


TrackerException = TrackerError
ExternalServiceException = ExternalServiceError
PersistenceException = PersistenceError
SourceUnavailableException = SourceUnavailableError
AuthorizationException = AuthorizationError
