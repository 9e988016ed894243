"""Read-only query selectors."""

from inventory_kernel.selectors.base import BaseSelector
from inventory_kernel.selectors.inventory_selector import InventorySelector
from inventory_kernel.selectors.item_selector import CustomFieldSelector, ItemSelector

__all__ = [
    "BaseSelector",
    "CustomFieldSelector",
    "InventorySelector",
    "ItemSelector",
]
