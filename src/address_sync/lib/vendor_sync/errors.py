"""Error types raised by vendor address synchronization."""


class AddressSyncError(Exception):
    """Base class for vendor address sync failures."""


class AddressValidationError(AddressSyncError, ValueError):
    """Raised when sync input is missing or malformed. Nothing is written.

    Args:
        field: Name of the offending input field.
        message: Human-readable error description.
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class AddressPersistenceError(AddressSyncError):
    """Raised when the storage engine fails while creating or updating addresses.

    Records committed before the fault stay committed.
    """
