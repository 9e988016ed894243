"""
Module: inventory_kernel.models.inventory
Responsibility: ORM persistence for inventories, their ID templates, and
    their custom field definitions.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - id_format is stored as a JSON list of segment dicts (JSONB on
      PostgreSQL).  Validation happens in InventoryService before persist;
      the column itself accepts any list.
    - sequence_watermark only ever grows.  It records the highest sequence
      number of any deleted item, so deleting the top item never lets its
      number be reissued: next = max(MAX(sequence_number), watermark) + 1.

Failure modes:
    - IntegrityError on a duplicate custom field title within an inventory
      (uq_custom_field_inventory_title).
"""

from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import JSONDocument, TrackedBase, UUIDString

if TYPE_CHECKING:
    from inventory_kernel.models.item import ItemFieldValue


class FieldType(str, Enum):
    """Storage type of a custom field.

    Contract: the type picks the ItemFieldValue column holding the value
    (text/textarea/link -> value_text, number -> value_number,
    boolean -> value_boolean).
    """

    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    BOOLEAN = "boolean"
    LINK = "link"


class Inventory(TrackedBase):
    """
    A collection of items sharing one custom ID template.

    Guarantees:
        - id_format is never NULL (an empty list is a valid, empty template).
        - Changing id_format does not rewrite existing item IDs.
    """

    __tablename__ = "inventories"

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Ordered segment list: [{"id": ..., "type": ..., "value"/"format": ...}]
    id_format: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONDocument,
        nullable=False,
        default=list,
    )

    # Highest sequence number of a deleted item; never decreases
    sequence_watermark: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
    )

    custom_fields: Mapped[list["CustomField"]] = relationship(
        back_populates="inventory",
        cascade="all, delete-orphan",
        order_by="CustomField.order_index",
    )

    def __repr__(self) -> str:
        return f"<Inventory {self.title!r}>"


class CustomField(TrackedBase):
    """
    A typed, user-defined field of an inventory.

    Guarantees:
        - field_type is one of FieldType.
        - Titles are unique within an inventory; ItemRecord keys its field
          map by title.
    """

    __tablename__ = "custom_fields"

    __table_args__ = (
        UniqueConstraint("inventory_id", "title", name="uq_custom_field_inventory_title"),
        Index("idx_custom_field_inventory", "inventory_id"),
    )

    inventory_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventories.id", ondelete="CASCADE"),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    field_type: Mapped[FieldType] = mapped_column(String(20), nullable=False)

    show_in_table: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    order_index: Mapped[int] = mapped_column(nullable=False, default=0)

    inventory: Mapped["Inventory"] = relationship(back_populates="custom_fields")

    values: Mapped[list["ItemFieldValue"]] = relationship(
        back_populates="field",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<CustomField {self.title!r} ({self.field_type})>"
