"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every outcome of the item lifecycle that a caller can act on is a typed
exception with a machine-readable ``code`` and structured attributes.
Callers catch by type, never by message:

    try:
        lifecycle.update_item(item_id, version=3, custom_id="LAP-042")
    except VersionConflictError as e:
        api_response(409, code=e.code, current=e.actual_version)
    except EditRejectedError as e:
        api_response(400, code=e.code, position=e.position, message=e.reason)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- TemplateError
    |   +-- FormatInvalidError
    |
    +-- CustomIdError
    |   +-- EditRejectedError
    |   +-- CustomIdConflictError
    |
    +-- ConcurrencyError
    |   +-- SequenceConflictError
    |   +-- VersionConflictError
    |
    +-- NotFoundError
    |   +-- InventoryNotFoundError
    |   +-- ItemNotFoundError
    |
    +-- FieldValueError
        +-- InvalidFieldValueError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                  | When Raised
-------------|-----------------------|------------------------------------------
Template     | FORMAT_INVALID        | Persisting a template with invalid segments
-------------|-----------------------|------------------------------------------
Custom ID    | EDIT_REJECTED         | Edited ID breaks the template structure
             | CUSTOM_ID_CONFLICT    | Edited ID already used in the inventory
-------------|-----------------------|------------------------------------------
Concurrency  | SEQUENCE_CONFLICT     | Concurrent create collided (retryable)
             | VERSION_CONFLICT      | Item changed since the caller loaded it
-------------|-----------------------|------------------------------------------
Not found    | INVENTORY_NOT_FOUND   | Inventory ID doesn't exist
             | ITEM_NOT_FOUND        | Item ID doesn't exist
-------------|-----------------------|------------------------------------------
Field value  | INVALID_FIELD_VALUE   | Value can't be stored in the field's type

Anything else raised out of the kernel (SQLAlchemy ``OperationalError``
on connection loss, lock timeouts) is an infrastructure failure.  The
transaction is rolled back and the original exception propagates.

===============================================================================
DESIGN DECISIONS
===============================================================================

1. SequenceConflictError is retryable: the caller re-issues the create and
   a fresh sequence value / random draw is made.  The kernel never retries
   on its own.

2. CustomIdConflictError is NOT retryable: the colliding value was typed
   by a user, so a retry would collide again.

3. ConcurrencyError groups both conflicts so middleware can map the whole
   category to HTTP 409.
"""


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.  ``retryable`` tells callers whether re-issuing
    the same request can succeed.
    """

    code: str = "INVENTORY_KERNEL_ERROR"
    retryable: bool = False


# Template-related exceptions


class TemplateError(InventoryKernelError):
    """Base exception for ID template errors."""

    code: str = "TEMPLATE_ERROR"


class FormatInvalidError(TemplateError):
    """
    One or more template segments failed their format grammar.

    Only raised when an invalid template is about to be persisted.  The
    compiler reports the same problems as data and never raises.
    """

    code: str = "FORMAT_INVALID"

    def __init__(self, failures: list[dict]):
        self.failures = failures
        details = "; ".join(
            f"segment {f['index'] + 1} ({f['type']}): {f['message']}"
            for f in failures
        )
        super().__init__(f"Invalid ID format: {details}")


# Custom ID exceptions


class CustomIdError(InventoryKernelError):
    """Base exception for custom ID errors."""

    code: str = "CUSTOM_ID_ERROR"


class EditRejectedError(CustomIdError):
    """A proposed custom ID edit violates the inventory's ID template."""

    code: str = "EDIT_REJECTED"

    def __init__(self, item_id: str, reason: str, position: int | None = None):
        self.item_id = item_id
        self.reason = reason
        self.position = position
        super().__init__(reason)


class CustomIdConflictError(CustomIdError):
    """An edited custom ID collides with another item in the inventory."""

    code: str = "CUSTOM_ID_CONFLICT"

    def __init__(self, inventory_id: str, custom_id: str):
        self.inventory_id = inventory_id
        self.custom_id = custom_id
        super().__init__(
            f"Custom ID {custom_id} already exists within this inventory. "
            "Please edit manually."
        )


# Concurrency exceptions


class ConcurrencyError(InventoryKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class SequenceConflictError(ConcurrencyError):
    """
    A concurrent create collided on the sequence or the generated custom ID.

    Retryable: re-issuing the create allocates a fresh sequence value.
    """

    code: str = "SEQUENCE_CONFLICT"
    retryable: bool = True

    def __init__(self, inventory_id: str, custom_id: str | None = None):
        self.inventory_id = inventory_id
        self.custom_id = custom_id
        super().__init__(
            "A duplicate Custom ID was generated. Please try again."
        )


class VersionConflictError(ConcurrencyError):
    """Optimistic lock failed: the item was modified since it was loaded."""

    code: str = "VERSION_CONFLICT"

    def __init__(
        self,
        item_id: str,
        expected_version: int,
        actual_version: int | None = None,
    ):
        self.item_id = item_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            "This item was modified by another user. "
            "Please refresh and try again."
        )


# Not found exceptions


class NotFoundError(InventoryKernelError):
    """Base exception for missing entities."""

    code: str = "NOT_FOUND"


class InventoryNotFoundError(NotFoundError):
    """Inventory with given ID was not found."""

    code: str = "INVENTORY_NOT_FOUND"

    def __init__(self, inventory_id: str):
        self.inventory_id = inventory_id
        super().__init__(f'Inventory with ID "{inventory_id}" not found.')


class ItemNotFoundError(NotFoundError):
    """Item with given ID was not found."""

    code: str = "ITEM_NOT_FOUND"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f'Item with ID "{item_id}" not found.')


# Field value exceptions


class FieldValueError(InventoryKernelError):
    """Base exception for item field value errors."""

    code: str = "FIELD_VALUE_ERROR"


class InvalidFieldValueError(FieldValueError):
    """A value cannot be stored in its custom field's type."""

    code: str = "INVALID_FIELD_VALUE"

    def __init__(self, field_id: str, field_type: str, value: object):
        self.field_id = field_id
        self.field_type = field_type
        self.value = value
        super().__init__(
            f"Value {value!r} is not a valid {field_type} for field {field_id}"
        )
