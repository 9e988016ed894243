"""
Module: inventory_kernel.selectors.inventory_selector
Responsibility: Read queries over inventories and their custom fields.
Architecture position: Kernel > Selectors.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from inventory_kernel.models.inventory import Inventory
from inventory_kernel.selectors.base import BaseSelector


class InventorySelector(BaseSelector[Inventory]):
    """Inventory queries."""

    def get_inventory(self, inventory_id: UUID) -> Inventory | None:
        return self.session.scalars(
            select(Inventory)
            .where(Inventory.id == inventory_id)
            .options(selectinload(Inventory.custom_fields))
        ).first()

    def get_inventory_for_update(self, inventory_id: UUID) -> Inventory | None:
        """Load an inventory with its row locked (watermark writes)."""
        return self.session.scalars(
            select(Inventory)
            .where(Inventory.id == inventory_id)
            .with_for_update()
        ).first()
