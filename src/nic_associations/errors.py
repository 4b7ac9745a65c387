"""Error taxonomy for association operations."""

from __future__ import annotations


class AssociationError(Exception):
    """Base class for every failure raised by an association manager."""


class ParseError(AssociationError):
    """Raised when a resource ID is malformed."""


class FormatError(AssociationError):
    """Raised when a composite association ID is not ``{ipConfigurationId}|{poolId}``."""


class NotFoundError(AssociationError):
    """Raised when the interface, IP configuration, or association is absent."""


class StructuralError(AssociationError):
    """Raised when a field the API always returns comes back empty.

    Signals an unexpected or incompatible response shape; never ignored.
    """


class ConflictError(AssociationError):
    """Raised when creating an association that already exists."""


class RequestError(AssociationError):
    """Raised when a call to the networking API fails."""


class OperationError(AssociationError):
    """Raised when a long-running operation finishes in a failed state."""
