"""
Module: inventory_kernel.selectors.item_selector
Responsibility: Read queries over items used by the lifecycle services:
    sequence high-water mark, row-locked load for update, and custom ID
    lookup.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - max_sequence is evaluated inside the caller's transaction.  It is only
      race-free when that transaction is SERIALIZABLE (PostgreSQL) or holds
      the write lock (SQLite BEGIN IMMEDIATE).
    - find_item_for_update locks the item row (SELECT ... FOR UPDATE) on
      backends that support row locks.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from inventory_kernel.models.inventory import CustomField
from inventory_kernel.models.item import Item, ItemFieldValue
from inventory_kernel.selectors.base import BaseSelector


class ItemSelector(BaseSelector[Item]):
    """Item queries.  Returns ORM rows; the services convert them to DTOs."""

    def max_sequence(self, inventory_id: UUID) -> int | None:
        """Highest sequence_number among the inventory's items, or None."""
        return self.session.scalar(
            select(func.max(Item.sequence_number)).where(
                Item.inventory_id == inventory_id,
            )
        )

    def find_item_for_update(self, item_id: UUID) -> Item | None:
        """Load an item with a row lock held until the transaction ends."""
        return self.session.scalars(
            select(Item)
            .where(Item.id == item_id)
            .with_for_update(of=Item)
        ).first()

    def custom_id_taken(
        self,
        inventory_id: UUID,
        custom_id: str,
        exclude_item_id: UUID | None = None,
    ) -> bool:
        """True if another item of the inventory already uses ``custom_id``."""
        stmt = select(Item.id).where(
            Item.inventory_id == inventory_id,
            Item.custom_id == custom_id,
        )
        if exclude_item_id is not None:
            stmt = stmt.where(Item.id != exclude_item_id)
        return self.session.scalar(stmt.limit(1)) is not None

    def get_item(self, item_id: UUID) -> Item | None:
        """Load an item with its field values (and their field definitions)."""
        return self.session.scalars(
            select(Item)
            .where(Item.id == item_id)
            .options(
                selectinload(Item.field_values).selectinload(ItemFieldValue.field),
            )
        ).first()

    def list_items(self, inventory_id: UUID) -> list[Item]:
        """Items of an inventory in sequence order, unnumbered items last."""
        return list(
            self.session.scalars(
                select(Item)
                .where(Item.inventory_id == inventory_id)
                .options(
                    selectinload(Item.field_values).selectinload(ItemFieldValue.field),
                )
                .order_by(Item.sequence_number.is_(None), Item.sequence_number, Item.created_at)
            )
        )


class CustomFieldSelector(BaseSelector[CustomField]):
    """Custom field definition queries."""

    def fields_by_id(self, inventory_id: UUID) -> dict[UUID, CustomField]:
        return {
            f.id: f
            for f in self.session.scalars(
                select(CustomField).where(CustomField.inventory_id == inventory_id)
            )
        }
