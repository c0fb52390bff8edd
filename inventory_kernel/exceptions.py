"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (the desktop UI, an IPC bridge, scripts) translate failures into
localized messages. They must be able to do that without parsing English
error strings, so:
  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, UI-safe)
  3. Exceptions carry structured DATA (entity name, key, offending fields)

Example:
    try:
        ledger.create_movement(...)
    except InvoiceNotFoundError as e:
        show_error(e.code, prefix=e.prefix, number=e.number)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- StoreError
    |   +-- RecordNotFoundError
    |   +-- DuplicateKeyError
    |   |   +-- DuplicateMovementError
    |   +-- ConstraintViolationError
    |
    +-- ReferentialIntegrityError
    |   +-- InvoiceNotFoundError
    |   +-- ItemNotFoundError
    |   +-- ItemReferencedError
    |
    +-- UpdateError
    |   +-- InvalidFieldError
    |   +-- NoFieldsToUpdateError
    |
    +-- ValidationError
    |   +-- InvalidQuantityError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                   | When Raised
-------------|------------------------|--------------------------------------------
Store        | NOT_FOUND              | Update/delete target does not exist
             | DUPLICATE_KEY          | Create with a key that already exists
             | DUPLICATE_MOVEMENT     | Second movement for the same invoice + item
             | CONSTRAINT_VIOLATION   | Row rejected by a CHECK/NOT NULL constraint
-------------|------------------------|--------------------------------------------
Reference    | INVOICE_NOT_FOUND      | Movement references a missing invoice
             | ITEM_NOT_FOUND         | Movement references a missing item
             | ITEM_REFERENCED        | Item still has stock movements
-------------|------------------------|--------------------------------------------
Update       | INVALID_FIELD          | Field outside the entity's update whitelist
             | NO_FIELDS_TO_UPDATE    | Nothing left to update after stripping keys
-------------|------------------------|--------------------------------------------
Validation   | INVALID_QUANTITY       | Amount/price is not a finite decimal string
-------------|------------------------|--------------------------------------------
Config       | CONFIGURATION_ERROR    | Bad config file or environment override

None of these are transient. Retrying the same call yields the same error.
"""


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Store exceptions


class StoreError(InventoryKernelError):
    """Base exception for keyed store failures."""

    code: str = "STORE_ERROR"


class RecordNotFoundError(StoreError):
    """Update or delete target does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, entity: str, key: tuple):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {_format_key(key)}")


class DuplicateKeyError(StoreError):
    """A record with the same key already exists."""

    code: str = "DUPLICATE_KEY"

    def __init__(self, entity: str, key: tuple):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} already exists: {_format_key(key)}")


class DuplicateMovementError(DuplicateKeyError):
    """The invoice already has a movement for this item."""

    code: str = "DUPLICATE_MOVEMENT"

    def __init__(self, invoice_prefix: str, invoice_number: str, item_ean: str):
        self.invoice_prefix = invoice_prefix
        self.invoice_number = invoice_number
        self.item_ean = item_ean
        super().__init__(
            "StockMovement", (invoice_prefix, invoice_number, item_ean)
        )


class ConstraintViolationError(StoreError):
    """Row rejected by a database constraint (CHECK, NOT NULL)."""

    code: str = "CONSTRAINT_VIOLATION"

    def __init__(self, entity: str, key: tuple, detail: str):
        self.entity = entity
        self.key = key
        self.detail = detail
        super().__init__(
            f"{entity} {_format_key(key)} violates a constraint: {detail}"
        )


# Referential integrity exceptions


class ReferentialIntegrityError(InventoryKernelError):
    """Base exception for broken references between entities."""

    code: str = "REFERENTIAL_INTEGRITY"


class InvoiceNotFoundError(ReferentialIntegrityError):
    """A movement references an invoice that does not exist."""

    code: str = "INVOICE_NOT_FOUND"

    def __init__(self, prefix: str, number: str):
        self.prefix = prefix
        self.number = number
        super().__init__(f"Invoice not found: {prefix}/{number}")


class ItemNotFoundError(ReferentialIntegrityError):
    """A movement references an item that does not exist."""

    code: str = "ITEM_NOT_FOUND"

    def __init__(self, ean: str):
        self.ean = ean
        super().__init__(f"Item not found: {ean}")


class ItemReferencedError(ReferentialIntegrityError):
    """Item cannot be deleted while stock movements reference it."""

    code: str = "ITEM_REFERENCED"

    def __init__(self, ean: str, movement_count: int):
        self.ean = ean
        self.movement_count = movement_count
        super().__init__(
            f"Item {ean} is referenced by {movement_count} stock movement(s)"
        )


# Partial update exceptions


class UpdateError(InventoryKernelError):
    """Base exception for rejected partial updates."""

    code: str = "UPDATE_ERROR"


class InvalidFieldError(UpdateError):
    """Update map contains fields outside the entity's whitelist."""

    code: str = "INVALID_FIELD"

    def __init__(self, entity: str, fields: list[str]):
        self.entity = entity
        self.fields = fields
        super().__init__(
            f"Invalid field names for {entity}: {', '.join(fields)}"
        )


class NoFieldsToUpdateError(UpdateError):
    """Update map is empty once key and timestamp fields are stripped."""

    code: str = "NO_FIELDS_TO_UPDATE"

    def __init__(self, entity: str):
        self.entity = entity
        super().__init__(f"No fields to update for {entity}")


# Validation exceptions


class ValidationError(InventoryKernelError):
    """Base exception for malformed input values."""

    code: str = "VALIDATION_ERROR"


class InvalidQuantityError(ValidationError):
    """Amount or price is not a finite decimal string."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(f"Invalid decimal value for {field}: {value!r}")


# Configuration exceptions


class ConfigurationError(InventoryKernelError):
    """Configuration file or environment override is invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, setting: str, reason: str):
        self.setting = setting
        self.reason = reason
        super().__init__(f"Invalid configuration for {setting}: {reason}")


def _format_key(key: tuple) -> str:
    return "/".join(str(part) for part in key)
