"""
FieldValueWriter -- typed storage of an item's custom field values.

Responsibility:
    Writes the ``fields`` map of a create/update request into
    ``ItemFieldValue`` rows: one row per (item, field), the value coerced
    into the column that matches the field's type.  Existing rows are
    updated in place, missing ones inserted.

Architecture position:
    Kernel > Services.  Runs inside the caller's transaction; it only
    mutates the ORM graph and never flushes or commits.

Coercion rules:
    text, textarea, link   str (numbers are converted with ``str``)
    number                 int/float or a numeric string, stored as float
    boolean                True for ``True``, ``"true"`` or ``1``;
                           False for anything else
    None clears the stored value for every type.

Failure modes:
    - InvalidFieldValueError when a value cannot be coerced.
    - Unknown field ids are ignored with a warning, not an error.
"""

import math
from typing import Any, Mapping
from uuid import UUID

from inventory_kernel.exceptions import InvalidFieldValueError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.inventory import CustomField, FieldType
from inventory_kernel.models.item import Item, ItemFieldValue

logger = get_logger("services.field_values")

_TRUE_VALUES = (True, "true", 1)


class FieldValueWriter:
    """Applies a field value map to an item."""

    def __init__(self, fields: Mapping[UUID, CustomField]):
        """
        Args:
            fields: The inventory's custom field definitions by id.
        """
        self._fields = fields

    def write(self, item: Item, values: Mapping[UUID | str, Any] | None) -> int:
        """
        Upsert ``values`` (field id -> raw value) onto ``item``.

        Returns:
            Number of field values written.
        """
        if not values:
            return 0

        existing = {fv.field_id: fv for fv in item.field_values}
        written = 0
        for raw_id, raw_value in values.items():
            field = self._resolve(raw_id)
            if field is None:
                logger.warning(
                    "unknown_custom_field_ignored",
                    extra={"field_id": str(raw_id), "inventory_id": str(item.inventory_id)},
                )
                continue

            row = existing.get(field.id)
            if row is None:
                row = ItemFieldValue(field_id=field.id, field=field)
                item.field_values.append(row)
                existing[field.id] = row
            _store(row, field, raw_value)
            written += 1

        return written

    def _resolve(self, raw_id: UUID | str) -> CustomField | None:
        try:
            field_id = raw_id if isinstance(raw_id, UUID) else UUID(str(raw_id))
        except ValueError:
            return None
        return self._fields.get(field_id)


def _store(row: ItemFieldValue, field: CustomField, value: Any) -> None:
    row.value_text = None
    row.value_number = None
    row.value_boolean = None
    if value is None:
        return

    field_type = FieldType(field.field_type)
    match field_type:
        case FieldType.TEXT | FieldType.TEXTAREA | FieldType.LINK:
            row.value_text = _coerce_text(field, value)
        case FieldType.NUMBER:
            row.value_number = _coerce_number(field, value)
        case FieldType.BOOLEAN:
            row.value_boolean = value in _TRUE_VALUES
        case _:
            raise ValueError(f"Unknown field type: {field.field_type}")


def _coerce_text(field: CustomField, value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise InvalidFieldValueError(str(field.id), field.field_type, value)


def _coerce_number(field: CustomField, value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidFieldValueError(str(field.id), field.field_type, value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidFieldValueError(str(field.id), field.field_type, value) from None
    if not math.isfinite(number):
        raise InvalidFieldValueError(str(field.id), field.field_type, value)
    return number
