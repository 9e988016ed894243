"""
Module: inventory_kernel.db.errors
Responsibility: Classify driver exceptions raised at flush/commit time so the
    services can map them onto the typed error taxonomy.
Architecture position: Kernel > DB.  Pure inspection of exception objects;
    no I/O.

Invariants enforced:
    - Only the (inventory_id, custom_id) unique constraint is reported as a
      custom ID collision.  Any other integrity error is infrastructure.
    - Serialization failures are recognised by SQLSTATE only (PostgreSQL).
      SQLite never produces them because writers hold the database lock
      for the whole transaction.
"""

from sqlalchemy.exc import DBAPIError

CUSTOM_ID_CONSTRAINT = "uq_item_inventory_custom_id"

PG_UNIQUE_VIOLATION = "23505"
PG_SERIALIZATION_FAILURE = "40001"
PG_DEADLOCK_DETECTED = "40P01"


def _pgcode(exc: DBAPIError) -> str | None:
    return getattr(exc.orig, "pgcode", None)


def is_custom_id_violation(exc: Exception) -> bool:
    """True if ``exc`` is a unique violation on the custom ID constraint."""
    if not isinstance(exc, DBAPIError):
        return False

    pgcode = _pgcode(exc)
    if pgcode is not None:
        if pgcode != PG_UNIQUE_VIOLATION:
            return False
        diag = getattr(exc.orig, "diag", None)
        constraint = getattr(diag, "constraint_name", None)
        if constraint is not None:
            return constraint == CUSTOM_ID_CONSTRAINT
        return CUSTOM_ID_CONSTRAINT in str(exc.orig)

    message = str(exc.orig)
    return "UNIQUE constraint failed" in message and "custom_id" in message


def is_serialization_failure(exc: Exception) -> bool:
    """True if ``exc`` is a serialization failure or deadlock abort."""
    if not isinstance(exc, DBAPIError):
        return False
    return _pgcode(exc) in (PG_SERIALIZATION_FAILURE, PG_DEADLOCK_DETECTED)
