"""
Module: inventory_kernel.models.item
Responsibility: ORM persistence for items and their typed custom field values.
Architecture position: Kernel > Models.  May import from db/base.py and
    sibling model modules only.

Invariants enforced:
    - custom_id is unique within an inventory (uq_item_inventory_custom_id).
      This is the last line of defence against sequence races and random
      segment collisions.
    - version is the mapper's version_id_col: every UPDATE is issued as
      ``... WHERE id = :id AND version = :loaded_version``, so a concurrent
      writer that got there first makes the flush fail with StaleDataError.
      The version is never generated by SQLAlchemy; the service bumps it by
      exactly one per successful update.
    - One ItemFieldValue row per (item, field) (uq_item_field_value).

Failure modes:
    - IntegrityError on duplicate (inventory_id, custom_id).
    - StaleDataError on flush when the stored version moved underneath us.
"""

from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import Boolean, Float, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import Base, TrackedBase, UUIDString
from inventory_kernel.models.inventory import CustomField, FieldType

if TYPE_CHECKING:
    from inventory_kernel.models.inventory import Inventory

INITIAL_VERSION = 1


class Item(TrackedBase):
    """
    An item of an inventory, identified to users by its custom ID.

    Guarantees:
        - sequence_number is the counter value allocated at creation, or the
          value re-derived from an edited ID.  Items are numbered even when
          the template has no sequence segment.  The column is nullable
          for rows inserted outside the lifecycle service.
        - version starts at INITIAL_VERSION and grows by one per update.
    """

    __tablename__ = "items"

    __table_args__ = (
        UniqueConstraint("inventory_id", "custom_id", name="uq_item_inventory_custom_id"),
        Index("idx_item_inventory_sequence", "inventory_id", "sequence_number"),
    )

    inventory_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventories.id", ondelete="CASCADE"),
        nullable=False,
    )

    custom_id: Mapped[str] = mapped_column(String(255), nullable=False)

    sequence_number: Mapped[int | None] = mapped_column(nullable=True)

    version: Mapped[int] = mapped_column(nullable=False, default=INITIAL_VERSION)

    inventory: Mapped["Inventory"] = relationship()

    field_values: Mapped[list["ItemFieldValue"]] = relationship(
        back_populates="item",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {
        "version_id_col": version,
        "version_id_generator": False,
    }

    def __repr__(self) -> str:
        return f"<Item {self.custom_id!r} v{self.version}>"


class ItemFieldValue(Base):
    """
    Value of one custom field for one item.

    Only the column matching the field's type is populated.
    """

    __tablename__ = "item_field_values"

    __table_args__ = (
        UniqueConstraint("item_id", "field_id", name="uq_item_field_value"),
    )

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("items.id", ondelete="CASCADE"),
        nullable=False,
    )

    field_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("custom_fields.id", ondelete="CASCADE"),
        nullable=False,
    )

    value_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    value_number: Mapped[float | None] = mapped_column(Float, nullable=True)

    value_boolean: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    item: Mapped["Item"] = relationship(back_populates="field_values")

    field: Mapped["CustomField"] = relationship(back_populates="values")

    @property
    def typed_value(self) -> Any:
        match FieldType(self.field.field_type):
            case FieldType.NUMBER:
                return self.value_number
            case FieldType.BOOLEAN:
                return self.value_boolean
            case FieldType.TEXT | FieldType.TEXTAREA | FieldType.LINK:
                return self.value_text
            case _:
                raise ValueError(f"Unknown field type: {self.field.field_type}")
