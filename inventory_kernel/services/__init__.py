"""Kernel services: the imperative shell around the ID domain core."""

from inventory_kernel.services.base import SYSTEM_ACTOR_ID, BaseService
from inventory_kernel.services.field_values import FieldValueWriter
from inventory_kernel.services.inventory_service import InventoryService
from inventory_kernel.services.item_lifecycle import ItemLifecycleService

__all__ = [
    "BaseService",
    "FieldValueWriter",
    "InventoryService",
    "ItemLifecycleService",
    "SYSTEM_ACTOR_ID",
]
