"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Point-of-sale callers must tell "out of stock" apart from "not enough stock"
and from "bad input" without parsing message text.  Every error here:

  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA (product id, available, requested, ...)

Example - WRONG way to handle errors:
    try:
        service.validate_stock_or_fail(cart)
    except Exception as e:
        if "habis" in str(e):  # FRAGILE - message is localized
            show_sold_out()

Example - RIGHT way:
    try:
        service.validate_stock_or_fail(cart)
    except OutOfStockError as e:
        show_sold_out(e.product_id)
    except InsufficientStockError as e:
        show_shortage(e.product_id, e.available, e.requested)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- StockValidationError
    |   +-- OutOfStockError
    |   +-- InsufficientStockError
    |   +-- InvalidQuantityError
    |   +-- InvalidMovementTypeError
    |
    +-- NotFoundError
    |   +-- ProductNotFoundError
    |
    +-- ConcurrencyError
    |   +-- JournalNumberConflictError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | OUT_OF_STOCK                | Current stock is exactly zero
                | INSUFFICIENT_STOCK          | Available < requested
                | INVALID_QUANTITY            | Magnitude <= 0, target < 0, non-integer
                | INVALID_MOVEMENT_TYPE       | Unknown type or not allowed here
----------------|-----------------------------|-----------------------------------------
Not found       | PRODUCT_NOT_FOUND           | Unknown product id
----------------|-----------------------------|-----------------------------------------
Concurrency     | JOURNAL_NUMBER_CONFLICT     | Journal number retries exhausted
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Update/delete of ledger or journal row
"""


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Stock validation exceptions


class StockValidationError(InventoryKernelError):
    """Base exception for validation failures raised before any write."""

    code: str = "STOCK_VALIDATION_ERROR"


class OutOfStockError(StockValidationError):
    """The product has no stock at all ("stok habis")."""

    code: str = "OUT_OF_STOCK"

    def __init__(self, product_id: int, product_name: str, requested: int):
        self.product_id = product_id
        self.product_name = product_name
        self.available = 0
        self.requested = requested
        super().__init__(
            f"Stok produk '{product_name}' habis. Tidak dapat melakukan transaksi."
        )


class InsufficientStockError(StockValidationError):
    """Current stock is lower than the requested quantity."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        product_id: int,
        product_name: str,
        available: int,
        requested: int,
    ):
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Stok produk '{product_name}' tidak mencukupi. "
            f"Stok tersedia: {available}, diminta: {requested}"
        )


class InvalidQuantityError(StockValidationError):
    """A quantity argument is outside its allowed range."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: object, reason: str):
        self.quantity = quantity
        self.reason = reason
        super().__init__(f"Invalid quantity {quantity!r}: {reason}")


class InvalidMovementTypeError(StockValidationError):
    """Movement type is unknown or not permitted for the operation."""

    code: str = "INVALID_MOVEMENT_TYPE"

    def __init__(self, movement_type: object, allowed: tuple[str, ...] = ()):
        self.movement_type = movement_type
        self.allowed = list(allowed)
        if allowed:
            msg = (
                f"Movement type {movement_type!r} is not allowed here; "
                f"expected one of: {', '.join(allowed)}"
            )
        else:
            msg = f"Unknown movement type {movement_type!r}"
        super().__init__(msg)


# Not-found exceptions


class NotFoundError(InventoryKernelError):
    """Base exception for lookups of records that do not exist."""

    code: str = "NOT_FOUND"


class ProductNotFoundError(NotFoundError):
    """Product id does not exist in the product directory."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: object):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


# Concurrency exceptions


class ConcurrencyError(InventoryKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class JournalNumberConflictError(ConcurrencyError):
    """
    A unique journal number could not be allocated.

    Transient: the caller may retry the whole operation.
    """

    code: str = "JOURNAL_NUMBER_CONFLICT"

    def __init__(self, journal_number: str, attempts: int):
        self.journal_number = journal_number
        self.attempts = attempts
        super().__init__(
            f"Journal number {journal_number} still conflicting "
            f"after {attempts} attempt(s)"
        )


# Immutability exceptions


class ImmutabilityError(InventoryKernelError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Stock movements are append-only from creation; adjustment journal
    entries only allow their notes to change.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
