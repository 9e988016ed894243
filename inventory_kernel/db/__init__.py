"""Database engine, declarative base, and driver error classification."""

from inventory_kernel.db.base import Base, JSONDocument, TrackedBase, UUIDString
from inventory_kernel.db.engine import (
    SERIALIZABLE,
    create_tables,
    drop_tables,
    get_engine,
    get_session_factory,
    init_engine_from_settings,
    init_engine_from_url,
    reset_engine,
    transaction_scope,
)
from inventory_kernel.db.errors import is_custom_id_violation, is_serialization_failure

__all__ = [
    "Base",
    "JSONDocument",
    "SERIALIZABLE",
    "TrackedBase",
    "UUIDString",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session_factory",
    "init_engine_from_settings",
    "init_engine_from_url",
    "is_custom_id_violation",
    "is_serialization_failure",
    "reset_engine",
    "transaction_scope",
]
