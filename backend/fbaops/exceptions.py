# Overview: Domain error taxonomy shared by services and routes.

"""
Domain errors.

Services raise these; routes translate them into JSON responses using the
status_code carried by each class. Storage failures are re-raised as
StorageError after the session has been rolled back so that callers never
observe a half-applied change.
"""


class FbaOpsError(Exception):
    """Base class for every domain error raised by this package."""
    status_code = 400


class NotAuthenticatedError(FbaOpsError):
    """No valid session."""
    status_code = 401


class PendingApprovalError(FbaOpsError):
    """Authenticated, but no role has been assigned yet."""
    status_code = 403


class ForbiddenError(FbaOpsError):
    """The caller's role does not allow the requested action."""
    status_code = 403


class NotFoundError(FbaOpsError):
    """Entity missing, or owned by another organization."""
    status_code = 404


class ValidationError(FbaOpsError, ValueError):
    """400-level input problem (missing supplier, no valid items, bad numbers)."""
    status_code = 400


class InvalidTransitionError(FbaOpsError):
    """A status change was requested from a state that does not allow it."""
    status_code = 409


class TransitionConflictError(InvalidTransitionError):
    """The row changed status underneath a conditional update."""


class DuplicateReferenceError(FbaOpsError):
    """A generated shipment reference kept colliding with existing rows."""
    status_code = 409


class StorageError(FbaOpsError):
    """The database rejected or failed a write. Message is passed through verbatim."""
    status_code = 503
