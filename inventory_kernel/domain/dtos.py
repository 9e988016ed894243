"""
DTOs -- immutable results returned across the service boundary.

Responsibility:
    Services never hand ORM entities to callers.  Loaded rows are
    converted here into frozen dataclasses via ``from_model``.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  ``from_model`` converters are only
    invoked from the service layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping
from uuid import UUID

if TYPE_CHECKING:
    from inventory_kernel.models.inventory import CustomField as CustomFieldModel
    from inventory_kernel.models.inventory import Inventory as InventoryModel
    from inventory_kernel.models.item import Item as ItemModel


@dataclass(frozen=True)
class FieldDefinition:
    """A custom field definition of an inventory."""

    id: UUID
    title: str
    type: str
    description: str | None = None
    show_in_table: bool = False
    order_index: int = 0

    @classmethod
    def from_model(cls, model: CustomFieldModel) -> FieldDefinition:
        return cls(
            id=model.id,
            title=model.title,
            type=model.field_type,
            description=model.description,
            show_in_table=model.show_in_table,
            order_index=model.order_index,
        )


@dataclass(frozen=True)
class InventoryRecord:
    """An inventory and its current ID template (as stored)."""

    id: UUID
    title: str
    id_format: tuple[Mapping[str, Any], ...]
    fields: tuple[FieldDefinition, ...] = ()

    @classmethod
    def from_model(cls, model: InventoryModel) -> InventoryRecord:
        return cls(
            id=model.id,
            title=model.title,
            id_format=tuple(MappingProxyType(dict(s)) for s in model.id_format or ()),
            fields=tuple(
                FieldDefinition.from_model(f)
                for f in sorted(model.custom_fields, key=lambda f: f.order_index)
            ),
        )


@dataclass(frozen=True)
class ItemRecord:
    """
    An item as seen by callers.

    ``fields`` maps custom field title to the typed value.
    """

    id: UUID
    inventory_id: UUID
    custom_id: str
    sequence_number: int | None
    version: int
    fields: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_model(cls, model: ItemModel) -> ItemRecord:
        values = {fv.field.title: fv.typed_value for fv in model.field_values}
        return cls(
            id=model.id,
            inventory_id=model.inventory_id,
            custom_id=model.custom_id,
            sequence_number=model.sequence_number,
            version=model.version,
            fields=MappingProxyType(values),
        )
