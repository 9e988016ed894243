"""ORM models for the inventory kernel."""

from inventory_kernel.models.inventory import CustomField, FieldType, Inventory
from inventory_kernel.models.item import INITIAL_VERSION, Item, ItemFieldValue

__all__ = [
    "CustomField",
    "FieldType",
    "INITIAL_VERSION",
    "Inventory",
    "Item",
    "ItemFieldValue",
]
