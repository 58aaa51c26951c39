class DomainError(Exception):
    """Base class for errors raised by the capacity engine."""


class StorageUnavailableError(DomainError):
    """A booking or configuration read/write could not be executed.

    Distinct from "nothing configured": absent overrides resolve to defaults and
    never raise. Callers must treat this as a failure, not as free capacity.
    """

    def __init__(self, operation: str, message: str | None = None) -> None:
        self.operation = operation
        super().__init__(message or f"storage unavailable during {operation}")


class InvalidAllocationError(DomainError):
    """Hour percentages do not sum to 100 within tolerance."""

    def __init__(self, total: float) -> None:
        self.total = total
        super().__init__(f"percentages must sum to 100, got {total:g}")


class InvalidPeriodError(DomainError):
    pass


class InvalidTimeError(DomainError):
    pass


class BookingNotFoundError(DomainError):
    pass
