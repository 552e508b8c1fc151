"""Catalog exceptions.

Missing data is never an error in this layer: absent records come back as
``None`` and empty scans as ``[]``. The exceptions below cover the two
conditions that should stop a page render: corrupted reference data and
an expired query deadline.
"""

from typing import Any


class CatalogError(Exception):
    """Base class for all catalog exceptions."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize catalog error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class CatalogIntegrityError(CatalogError):
    """Raised when a unique lookup matches more than one record."""

    def __init__(self, entity_type: str, key: str, value: Any) -> None:
        """Initialize integrity error.

        Args:
            entity_type: Record type (e.g. "category").
            key: Field that should have been unique.
            value: Looked-up value.
        """
        super().__init__(
            f"Multiple {entity_type} records share {key}={value!r}",
            details={"entity_type": entity_type, "key": key, "value": value},
        )


class QueryDeadlineExceededError(CatalogError):
    """Raised when a catalog operation runs past its deadline."""

    def __init__(self, operation: str, timeout_seconds: float) -> None:
        """Initialize deadline error.

        Args:
            operation: Name of the operation that timed out.
            timeout_seconds: Budget the operation was given.
        """
        super().__init__(
            f"{operation} exceeded its {timeout_seconds:g}s deadline",
            details={"operation": operation, "timeout_seconds": timeout_seconds},
        )
