"""
Typed Exception Hierarchy for the Relief Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (desktop forms, batch tools, report jobs) must react to failures
without parsing message strings:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, UI-safe)
  3. Exceptions carry structured DATA (item id, available, requested, ...)

Example:
    try:
        distributions.create(draft)
    except InsufficientStockError as e:
        show_warning(f"Only {e.available} {e.item_name} left")
    except ValidationError as e:
        show_warning(str(e))

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ReliefKernelError (base)
    |
    +-- ValidationError
    |   +-- RequiredFieldError
    |   +-- NegativeQuantityError
    |   +-- InvalidQuantityError
    |   +-- InsufficientStockError
    |   +-- EmptyDistributionError
    |   +-- InvalidStatusError
    |   +-- LedgerArithmeticError
    |   +-- TemplateQuantityExceedsStockError
    |   +-- ConflictError
    |       +-- DuplicateItemNameError
    |       +-- DuplicateCalamityNameError
    |       +-- DuplicateTemplateItemError
    |
    +-- NotFoundError
    |   +-- InventoryItemNotFoundError
    |   +-- BeneficiaryNotFoundError
    |   +-- UserNotFoundError
    |   +-- CalamityNotFoundError
    |   +-- UnknownLineItemError        (also a ValidationError)
    |   +-- DistributionNotFoundError   (also a ValidationError)
    |
    +-- PersistenceError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                     | When Raised
--------------|--------------------------|-------------------------------------
Validation    | REQUIRED_FIELD           | Blank name / missing beneficiary
              | NEGATIVE_QUANTITY        | Quantity or threshold below zero
              | INVALID_QUANTITY         | Restock amount or line quantity <= 0
              | INSUFFICIENT_STOCK       | Requested more than on hand
              | EMPTY_DISTRIBUTION       | Distribution without lines
              | INVALID_STATUS           | Calamity status not Active/Inactive
              | LEDGER_ARITHMETIC        | after != before + delta
              | TEMPLATE_EXCEEDS_STOCK   | Template quantity above stock
Conflict      | DUPLICATE_ITEM_NAME      | Inventory name already taken
              | DUPLICATE_CALAMITY_NAME  | Calamity name already taken
              | DUPLICATE_TEMPLATE_ITEM  | Same item twice in a template
Not found     | INVENTORY_ITEM_NOT_FOUND | Item id doesn't exist
              | BENEFICIARY_NOT_FOUND    | Beneficiary id doesn't exist
              | USER_NOT_FOUND           | User id doesn't exist
              | CALAMITY_NOT_FOUND       | Calamity id doesn't exist
              | UNKNOWN_LINE_ITEM        | Distribution line names missing item
              | DISTRIBUTION_NOT_FOUND   | Distribution id doesn't exist
Persistence   | PERSISTENCE_ERROR        | Underlying store failure
Immutability  | IMMUTABILITY_VIOLATION   | Ledger entry update/delete attempt

===============================================================================
"""


class ReliefKernelError(Exception):
    """
    Base exception for all relief kernel errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "RELIEF_KERNEL_ERROR"


# Validation errors


class ValidationError(ReliefKernelError):
    """Bad input shape. Surfaced to the caller verbatim, never retried."""

    code: str = "VALIDATION_ERROR"


class RequiredFieldError(ValidationError):
    """A required field is blank or missing."""

    code: str = "REQUIRED_FIELD"

    def __init__(self, field_name: str, message: str | None = None):
        self.field_name = field_name
        super().__init__(message or f"{field_name} is required")


class NegativeQuantityError(ValidationError):
    """A quantity or threshold that must be >= 0 was negative."""

    code: str = "NEGATIVE_QUANTITY"

    def __init__(self, field_name: str, value: int):
        self.field_name = field_name
        self.value = value
        super().__init__(f"{field_name} cannot be negative: {value}")


class InvalidQuantityError(ValidationError):
    """A quantity that must be strictly positive was zero or negative."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, field_name: str, value: int, message: str | None = None):
        self.field_name = field_name
        self.value = value
        super().__init__(
            message or f"{field_name} must be greater than 0, got {value}"
        )


class InsufficientStockError(ValidationError):
    """Requested quantity exceeds the item's on-hand quantity."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, item_id: int, item_name: str, available: int, requested: int):
        self.item_id = item_id
        self.item_name = item_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {item_name}. "
            f"Available: {available}, Requested: {requested}"
        )


class EmptyDistributionError(ValidationError):
    """A distribution was submitted without any lines."""

    code: str = "EMPTY_DISTRIBUTION"

    def __init__(self):
        super().__init__("At least one item must be distributed")


class InvalidStatusError(ValidationError):
    """Calamity status outside the Active/Inactive domain."""

    code: str = "INVALID_STATUS"

    def __init__(self, status: str, allowed: tuple[str, ...]):
        self.status = status
        self.allowed = allowed
        super().__init__(
            f"Invalid status {status!r}; expected one of {', '.join(allowed)}"
        )


class LedgerArithmeticError(ValidationError):
    """A ledger entry whose after quantity is not before + delta."""

    code: str = "LEDGER_ARITHMETIC"

    def __init__(self, item_id: int, before: int, delta: int, after: int):
        self.item_id = item_id
        self.before = before
        self.delta = delta
        self.after = after
        super().__init__(
            f"Ledger entry for item {item_id} does not balance: "
            f"{before} + ({delta}) != {after}"
        )


class TemplateQuantityExceedsStockError(ValidationError):
    """A calamity template quantity is larger than the item's current stock."""

    code: str = "TEMPLATE_EXCEEDS_STOCK"

    def __init__(self, item_id: int, item_name: str, standard_quantity: int, available: int):
        self.item_id = item_id
        self.item_name = item_name
        self.standard_quantity = standard_quantity
        self.available = available
        super().__init__(
            f"Standard quantity for {item_name} ({standard_quantity}) "
            f"exceeds available stock ({available})"
        )


class ConflictError(ValidationError):
    """A unique key is already taken."""

    code: str = "CONFLICT"


class DuplicateItemNameError(ConflictError):
    """An inventory item with this exact name already exists."""

    code: str = "DUPLICATE_ITEM_NAME"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Inventory item already exists: {name}")


class DuplicateCalamityNameError(ConflictError):
    """A calamity with this exact name already exists."""

    code: str = "DUPLICATE_CALAMITY_NAME"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Calamity already exists: {name}")


class DuplicateTemplateItemError(ConflictError):
    """The same inventory item appears twice in one calamity template."""

    code: str = "DUPLICATE_TEMPLATE_ITEM"

    def __init__(self, item_id: int):
        self.item_id = item_id
        super().__init__(f"Inventory item {item_id} appears more than once in template")


# Not-found errors


class NotFoundError(ReliefKernelError):
    """Referenced entity does not exist. Non-retryable."""

    code: str = "NOT_FOUND"


class InventoryItemNotFoundError(NotFoundError):
    """Inventory item with given ID was not found."""

    code: str = "INVENTORY_ITEM_NOT_FOUND"

    def __init__(self, item_id: int):
        self.item_id = item_id
        super().__init__(f"Inventory item not found: {item_id}")


class BeneficiaryNotFoundError(NotFoundError):
    """Beneficiary with given ID was not found."""

    code: str = "BENEFICIARY_NOT_FOUND"

    def __init__(self, beneficiary_id: int):
        self.beneficiary_id = beneficiary_id
        super().__init__(f"Beneficiary not found: {beneficiary_id}")


class UserNotFoundError(NotFoundError):
    """User with given ID was not found."""

    code: str = "USER_NOT_FOUND"

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class CalamityNotFoundError(NotFoundError):
    """Calamity with given ID was not found."""

    code: str = "CALAMITY_NOT_FOUND"

    def __init__(self, calamity_id: int):
        self.calamity_id = calamity_id
        super().__init__(f"Calamity not found: {calamity_id}")


class UnknownLineItemError(NotFoundError, ValidationError):
    """
    A distribution line references an inventory item that does not exist.

    Raised during validation, before any mutation, so it is both a
    NotFoundError and a ValidationError.
    """

    code: str = "UNKNOWN_LINE_ITEM"

    def __init__(self, item_id: int):
        self.item_id = item_id
        super().__init__(f"Inventory item not found: {item_id}")


class DistributionNotFoundError(NotFoundError, ValidationError):
    """Distribution with given ID was not found (e.g. already voided)."""

    code: str = "DISTRIBUTION_NOT_FOUND"

    def __init__(self, distribution_id: int):
        self.distribution_id = distribution_id
        super().__init__(f"Distribution not found: {distribution_id}")


# Persistence errors


class PersistenceError(ReliefKernelError):
    """
    The underlying store rejected or failed an operation.

    The enclosing unit of work is always rolled back before this is raised.
    The original driver exception is chained as ``__cause__``.
    """

    code: str = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Persistence failure during {operation}: {detail}")


# Immutability errors


class ImmutabilityError(ReliefKernelError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Ledger entries are immutable from creation; distribution lines are
    immutable for their whole life.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
