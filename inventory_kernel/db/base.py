"""
Module: inventory_kernel.db.base
Responsibility: Declarative bases shared by the inventory, custom field,
    item and item field value tables: UUID keys, column type mapping, JSON
    documents for ID templates, and audit columns.
Architecture position: Kernel > DB.  Lowest import target of the ORM layer;
    models import from here, this module imports nothing from the kernel.

Invariants enforced:
    - Every row has a uuid4 primary key stored as a 36-character string,
      so SQLite and PostgreSQL share one schema.
    - ``int`` columns are BigInteger: sequence numbers and versions are
      never narrowed by the backend.
    - Tracked rows record who created them and who last changed them.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import JSON, BigInteger, DateTime, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import String, TypeDecorator


class UUIDString(TypeDecorator):
    """UUID stored as String(36).  Accepts ``UUID`` or its string form on bind."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(value if isinstance(value, UUID) else UUID(str(value)))

    def process_result_value(self, value, dialect):
        return UUID(value) if value is not None else None


# ID templates: JSONB on PostgreSQL, JSON text on SQLite.
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        UUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Abstract base for rows edited by users.

    ``created_at``/``updated_at`` are set by the database.  ``created_by_id``
    is required; ``updated_by_id`` stays NULL until the first change.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )
    created_by_id: Mapped[UUID] = mapped_column(UUIDString())
    updated_by_id: Mapped[UUID | None] = mapped_column(UUIDString())
