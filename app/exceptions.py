"""Error taxonomy shared by the inventory services."""


class InventoryError(Exception):
    """Base class for all inventory service errors."""
    pass


class ValidationError(InventoryError):
    """A required field is missing or malformed."""
    pass


class NotFoundError(InventoryError):
    """The requested product doesn't exist."""
    pass


class NoChangeError(InventoryError):
    """A write affected zero rows."""
    pass


class ConflictError(InventoryError):
    """A uniqueness constraint (product name) was violated."""
    pass


class EmptyDatasetError(InventoryError):
    """There is no data to export."""
    pass


class StoreError(InventoryError):
    """A non-transient persistence failure."""
    pass


class TransientIOError(InventoryError):
    """The persistence layer is unreachable."""
    pass


class ImportAbortedError(TransientIOError):
    """
    An import batch was stopped by a transient fault.

    Carries the report accumulated up to the failing row.
    """

    def __init__(self, message: str, report):
        super().__init__(message)
        self.report = report


class ImageUploadError(InventoryError):
    """The external image upload service failed or is not configured."""
    pass
