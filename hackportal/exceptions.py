"""Errors raised by the applicant, review and storage services."""


class HackPortalError(Exception):
    """Base class for all service errors."""

    pass


class NotFoundError(HackPortalError):
    """Raised when a lookup by id or alternate key finds nothing."""

    pass


class ValidationError(HackPortalError):
    """Raised when an applicant or review fails field validation."""

    def __init__(self, message: str, violations: list[str] | None = None):
        super().__init__(message)
        self.violations = violations or []


class ConflictError(HackPortalError):
    """Raised when a write would break a uniqueness rule."""

    pass


class StorageError(HackPortalError):
    """Raised when the object store or the database fails."""

    pass


class InvalidTransitionError(HackPortalError):
    """Raised when an applicant's current status does not allow the requested change."""

    pass
