"""Error taxonomy shared by the ledger, the closing pipeline and the sync API."""

from __future__ import annotations


class TillError(Exception):
    """Base class for every error raised on purpose by this package."""


class ValidationFailure(TillError):
    """A required field is missing; nothing was written."""


class NotFound(TillError):
    """The target row of an update or delete does not exist."""

    entity = "row"

    def __init__(self, entity_id: int) -> None:
        super().__init__(f"{self.entity} {entity_id} not found")
        self.entity_id = entity_id


class OrderNotFound(NotFound):
    entity = "order"


class InventoryItemNotFound(NotFound):
    entity = "inventory item"


class CatalogItemNotFound(NotFound):
    entity = "catalog item"


class TransactionFailure(TillError):
    """A multi-step store operation failed and was rolled back."""


class ExternalServiceFailure(TillError):
    """Printing, mailing or writing a file failed.

    Never rolls back an order that was already persisted.
    """
