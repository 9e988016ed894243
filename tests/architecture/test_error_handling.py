"""
Error taxonomy tests.

Every outcome a caller can act on is a typed exception with a
machine-readable code and structured attributes, and driver exceptions
are classified by SQLSTATE / constraint name rather than by the caller.
"""

import sqlite3

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from inventory_kernel.db.errors import (
    CUSTOM_ID_CONSTRAINT,
    PG_DEADLOCK_DETECTED,
    PG_SERIALIZATION_FAILURE,
    PG_UNIQUE_VIOLATION,
    is_custom_id_violation,
    is_serialization_failure,
)
from inventory_kernel.exceptions import (
    ConcurrencyError,
    CustomIdConflictError,
    CustomIdError,
    EditRejectedError,
    FieldValueError,
    FormatInvalidError,
    InvalidFieldValueError,
    InventoryKernelError,
    InventoryNotFoundError,
    ItemNotFoundError,
    NotFoundError,
    SequenceConflictError,
    TemplateError,
    VersionConflictError,
)


class _Diag:
    def __init__(self, constraint_name):
        self.constraint_name = constraint_name


class _PgError(Exception):
    """Stand-in for a psycopg2 error: carries ``pgcode`` and ``diag``."""

    def __init__(self, message, pgcode, constraint_name=None):
        super().__init__(message)
        self.pgcode = pgcode
        self.diag = _Diag(constraint_name)


def _integrity(orig) -> IntegrityError:
    return IntegrityError("INSERT INTO items ...", {}, orig)


class TestDeterministicErrors:
    """Typed exceptions with machine-readable codes."""

    EXCEPTION_CLASSES = [
        InventoryKernelError,
        TemplateError,
        FormatInvalidError,
        CustomIdError,
        EditRejectedError,
        CustomIdConflictError,
        ConcurrencyError,
        SequenceConflictError,
        VersionConflictError,
        NotFoundError,
        InventoryNotFoundError,
        ItemNotFoundError,
        FieldValueError,
        InvalidFieldValueError,
    ]

    def test_all_exceptions_have_code_attribute(self):
        for exc_class in self.EXCEPTION_CLASSES:
            assert isinstance(exc_class.code, str), (
                f"{exc_class.__name__}.code must be a string"
            )
            assert exc_class.code, f"{exc_class.__name__}.code must not be empty"

    def test_exception_codes_are_uppercase_snake_case(self):
        for exc_class in self.EXCEPTION_CLASSES:
            code = exc_class.code
            assert code == code.upper(), (
                f"{exc_class.__name__}.code '{code}' should be uppercase"
            )
            assert all(c.isalnum() or c == "_" for c in code), (
                f"{exc_class.__name__}.code '{code}' should only contain "
                "alphanumeric characters and underscores"
            )

    def test_exception_codes_are_unique(self):
        codes = [exc_class.code for exc_class in self.EXCEPTION_CLASSES]
        assert len(codes) == len(set(codes))

    def test_exceptions_inherit_from_kernel_error(self):
        for exc_class in self.EXCEPTION_CLASSES:
            assert issubclass(exc_class, InventoryKernelError), (
                f"{exc_class.__name__} must inherit from InventoryKernelError"
            )

    def test_only_sequence_conflict_is_retryable(self):
        retryable = [c for c in self.EXCEPTION_CLASSES if c.retryable]
        assert retryable == [SequenceConflictError]

    def test_conflicts_share_concurrency_category(self):
        assert issubclass(SequenceConflictError, ConcurrencyError)
        assert issubclass(VersionConflictError, ConcurrencyError)
        assert not issubclass(CustomIdConflictError, ConcurrencyError)


class TestTypedAttributes:

    def test_format_invalid(self):
        exc = FormatInvalidError([
            {"index": 1, "type": "sequence", "message": "Invalid format. Use D followed by digits (e.g., D3)"},
        ])
        assert exc.failures[0]["index"] == 1
        assert "segment 2 (sequence)" in str(exc)
        assert exc.code == "FORMAT_INVALID"

    def test_edit_rejected(self):
        exc = EditRejectedError("item-1", "Sequence at position 5 must be a number", position=5)
        assert exc.item_id == "item-1"
        assert exc.position == 5
        assert exc.reason == str(exc)
        assert exc.code == "EDIT_REJECTED"

    def test_custom_id_conflict_message(self):
        exc = CustomIdConflictError("inv-1", "LAP-001")
        assert exc.inventory_id == "inv-1"
        assert exc.custom_id == "LAP-001"
        assert str(exc) == (
            "Custom ID LAP-001 already exists within this inventory. Please edit manually."
        )

    def test_sequence_conflict_message(self):
        exc = SequenceConflictError("inv-1", "LAP-002")
        assert exc.custom_id == "LAP-002"
        assert exc.retryable
        assert str(exc) == "A duplicate Custom ID was generated. Please try again."

    def test_version_conflict_message(self):
        exc = VersionConflictError("item-1", expected_version=3, actual_version=4)
        assert exc.expected_version == 3
        assert exc.actual_version == 4
        assert not exc.retryable
        assert str(exc) == (
            "This item was modified by another user. Please refresh and try again."
        )

    def test_invalid_field_value(self):
        exc = InvalidFieldValueError("field-1", "number", "abc")
        assert exc.field_type == "number"
        assert exc.value == "abc"
        assert exc.code == "INVALID_FIELD_VALUE"

    def test_can_identify_error_by_type(self):
        exc = ItemNotFoundError("item-1")
        assert isinstance(exc, NotFoundError)
        assert isinstance(exc, InventoryKernelError)
        assert exc.code == "ITEM_NOT_FOUND"
        assert exc.item_id == "item-1"


class TestDriverErrorClassification:

    def test_postgres_custom_id_violation(self):
        exc = _integrity(_PgError("duplicate key", PG_UNIQUE_VIOLATION, CUSTOM_ID_CONSTRAINT))
        assert is_custom_id_violation(exc)
        assert not is_serialization_failure(exc)

    def test_postgres_other_unique_violation(self):
        exc = _integrity(_PgError("duplicate key", PG_UNIQUE_VIOLATION, "uq_item_field_value"))
        assert not is_custom_id_violation(exc)

    def test_postgres_constraint_from_message(self):
        orig = _PgError(
            f'duplicate key value violates unique constraint "{CUSTOM_ID_CONSTRAINT}"',
            PG_UNIQUE_VIOLATION,
        )
        assert is_custom_id_violation(_integrity(orig))

    @pytest.mark.parametrize("pgcode", [PG_SERIALIZATION_FAILURE, PG_DEADLOCK_DETECTED])
    def test_postgres_serialization_failure(self, pgcode):
        exc = OperationalError("UPDATE items ...", {}, _PgError("could not serialize", pgcode))
        assert is_serialization_failure(exc)
        assert not is_custom_id_violation(exc)

    def test_sqlite_custom_id_violation(self):
        orig = sqlite3.IntegrityError(
            "UNIQUE constraint failed: items.inventory_id, items.custom_id"
        )
        assert is_custom_id_violation(_integrity(orig))
        assert not is_serialization_failure(_integrity(orig))

    def test_sqlite_other_violation(self):
        orig = sqlite3.IntegrityError("FOREIGN KEY constraint failed")
        assert not is_custom_id_violation(_integrity(orig))

    def test_non_driver_exceptions(self):
        assert not is_custom_id_violation(ValueError("custom_id"))
        assert not is_serialization_failure(RuntimeError("40001"))
