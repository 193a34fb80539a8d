"""Exception hierarchy for the fleet package."""

from typing import Dict, Optional


class FleetError(Exception):
    """Base exception for all fleet errors."""


class UnknownCollectionError(FleetError, KeyError):
    """A collection name that the store has no definition for."""

    def __str__(self) -> str:
        return f"Unknown collection: {self.args[0]!r}"


class StoreWriteError(FleetError):
    """A collection could not be serialized or written.

    The stored value is left as it was before the write.
    """

    def __init__(self, collection: str, reason: str) -> None:
        self.collection = collection
        self.reason = reason
        super().__init__(f"Could not save {collection}: {reason}")


class FormError(FleetError, ValueError):
    """Submitted form data failed validation."""

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None) -> None:
        self.errors = errors
        super().__init__(message or "; ".join(errors.values()))


class CodeGenerationError(FleetError, ValueError):
    """A barcode or QR code could not be drawn for the given value."""
