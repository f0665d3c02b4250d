"""Exception taxonomy for the scoring engine.

ValidationError and NotFoundError are raised to the caller. TransientStoreError is raised
by storage adapters when a backend call fails; the recompute loop catches it per team.
DataIntegrityWarning is only ever logged.
"""


class ScoringError(Exception):
    """Base class for scoring engine errors."""


class ValidationError(ScoringError, ValueError):
    """A required argument is missing or malformed."""


class NotFoundError(ScoringError, LookupError):
    """A team or user does not exist."""


class TransientStoreError(ScoringError):
    """A document store call failed (network, timeout, rejected write)."""

    def __init__(self, message: str, *, operation: str = "", key: str = "") -> None:
        super().__init__(message)
        self.operation = operation
        self.key = key


class DataIntegrityWarning(UserWarning):
    """Stored data is malformed; the affected item is skipped."""


def require_identifier(value, name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} is required")
    return str(value).strip()
