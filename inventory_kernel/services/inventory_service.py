"""
InventoryService -- inventories, their ID templates and custom fields.

Responsibility:
    Creates inventories (with the configured default ID template),
    replaces an inventory's template after validating every segment,
    renders the human-readable pattern of the current template, and
    manages custom field definitions.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - Only valid templates are persisted.  The compiler never raises, so
      this service is the point where invalid segments become a
      ``FormatInvalidError``.
    - Replacing a template never rewrites existing item IDs.

Failure modes:
    - FormatInvalidError when a template has invalid segments.
    - InventoryNotFoundError when the inventory does not exist.
    - ValueError for an unknown custom field type.
"""

import random
from typing import Any, Iterable, Mapping
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from inventory_kernel.config import KernelSettings
from inventory_kernel.db.engine import transaction_scope
from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.dtos import FieldDefinition, InventoryRecord
from inventory_kernel.domain.segments import IdSegment, parse_segments, segments_to_json
from inventory_kernel.domain.template import compile_template
from inventory_kernel.exceptions import FormatInvalidError, InventoryNotFoundError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.inventory import CustomField, FieldType, Inventory
from inventory_kernel.selectors.inventory_selector import InventorySelector
from inventory_kernel.services.base import SYSTEM_ACTOR_ID, BaseService, as_uuid

logger = get_logger("services.inventory")

SegmentsLike = Iterable[IdSegment | Mapping[str, Any]]


class InventoryService(BaseService):
    """Inventory and template administration."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        settings: KernelSettings | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ):
        super().__init__(session_factory, clock=clock, rng=rng)
        self._settings = settings or KernelSettings()

    def create_inventory(
        self,
        title: str,
        id_format: SegmentsLike | None = None,
        description: str | None = None,
        actor_id: UUID | None = None,
    ) -> InventoryRecord:
        """
        Create an inventory.

        ``id_format`` defaults to the configured default template
        (``ITEM-`` followed by a three-digit sequence).

        Raises:
            FormatInvalidError: If ``id_format`` has invalid segments.
        """
        actor_id = actor_id or SYSTEM_ACTOR_ID
        segments = _validated_segments(
            self._settings.default_id_format if id_format is None else id_format
        )

        with transaction_scope(self.session_factory) as session:
            inventory = Inventory(
                title=title,
                description=description,
                id_format=segments_to_json(segments),
                sequence_watermark=0,
                created_by_id=actor_id,
            )
            session.add(inventory)
            session.flush()
            record = InventoryRecord.from_model(inventory)

        logger.info(
            "inventory_created",
            extra={"inventory_id": str(record.id), "segments": len(segments)},
        )
        return record

    def get_inventory(self, inventory_id: UUID | str) -> InventoryRecord:
        inventory_id = as_uuid(inventory_id)
        with transaction_scope(self.session_factory) as session:
            return InventoryRecord.from_model(self._require(session, inventory_id))

    def update_id_format(
        self,
        inventory_id: UUID | str,
        segments: SegmentsLike,
        actor_id: UUID | None = None,
    ) -> InventoryRecord:
        """
        Replace the inventory's ID template.

        Existing items keep their custom IDs.  Items whose ID no longer
        fits the new template cannot be edited until it is changed back.

        Raises:
            FormatInvalidError: If any segment is invalid, including a
                second ``sequence`` segment.
            InventoryNotFoundError: If the inventory does not exist.
        """
        inventory_id = as_uuid(inventory_id)
        actor_id = actor_id or SYSTEM_ACTOR_ID

        with LogContext.bind(inventory_id=inventory_id, actor_id=actor_id):
            try:
                parsed = _validated_segments(segments)
            except FormatInvalidError as exc:
                logger.info("id_format_rejected", extra={"failures": exc.failures})
                raise

            with transaction_scope(self.session_factory) as session:
                inventory = self._require(session, inventory_id)
                inventory.id_format = segments_to_json(parsed)
                inventory.updated_by_id = actor_id
                session.flush()
                record = InventoryRecord.from_model(inventory)

            logger.info(
                "id_format_updated",
                extra={"pattern": compile_template(parsed).pattern},
            )
            return record

    def get_id_format_pattern(self, inventory_id: UUID | str) -> str:
        """Human-readable pattern of the current template, e.g. ``ITEM-###``."""
        inventory_id = as_uuid(inventory_id)
        with transaction_scope(self.session_factory) as session:
            inventory = self._require(session, inventory_id)
            return compile_template(inventory.id_format).pattern

    def add_custom_field(
        self,
        inventory_id: UUID | str,
        title: str,
        field_type: FieldType | str,
        description: str | None = None,
        show_in_table: bool = False,
        actor_id: UUID | None = None,
    ) -> FieldDefinition:
        """
        Define a new custom field, appended after the existing ones.

        Raises:
            ValueError: If ``field_type`` is not a known field type.
            InventoryNotFoundError: If the inventory does not exist.
        """
        inventory_id = as_uuid(inventory_id)
        field_type = FieldType(field_type)

        with transaction_scope(self.session_factory) as session:
            inventory = self._require(session, inventory_id)
            field = CustomField(
                title=title,
                description=description,
                field_type=field_type.value,
                show_in_table=show_in_table,
                order_index=len(inventory.custom_fields),
                created_by_id=actor_id or SYSTEM_ACTOR_ID,
            )
            inventory.custom_fields.append(field)
            session.flush()
            definition = FieldDefinition.from_model(field)

        logger.info(
            "custom_field_added",
            extra={
                "inventory_id": str(inventory_id),
                "field_id": str(definition.id),
                "field_type": definition.type,
            },
        )
        return definition

    @staticmethod
    def _require(session: Session, inventory_id: UUID) -> Inventory:
        inventory = InventorySelector(session).get_inventory(inventory_id)
        if inventory is None:
            raise InventoryNotFoundError(str(inventory_id))
        return inventory


def _validated_segments(raw: SegmentsLike) -> tuple[IdSegment, ...]:
    segments = parse_segments(raw)
    template = compile_template(segments)
    if not template.is_valid:
        raise FormatInvalidError([check.to_dict() for check in template.invalid_checks])
    return segments
