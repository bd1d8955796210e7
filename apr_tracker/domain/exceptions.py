from __future__ import annotations


class DomainError(Exception):
    """Base for domain errors."""


class SnapshotValidationError(DomainError):
    """Snapshot candidate carries a negative or non-numeric value."""


class InvalidParameterError(DomainError):
    """Request parameter outside the accepted values."""


class UpstreamUnavailableError(DomainError):
    """Pool data source could not return state for a pool."""


class StoreUnavailableError(DomainError):
    """Snapshot store cannot be reached."""
