"""
ItemLifecycleService -- transactional create/update/delete of items.

Responsibility:
    Owns the item lifecycle: allocates the next sequence number, renders
    the custom ID from the inventory's template, validates custom ID
    edits, enforces optimistic concurrency on updates, and maps every
    storage-level conflict onto the typed error taxonomy.

Architecture position:
    Kernel > Services -- imperative shell.  Calls the pure domain core
    (template compiler, ID generator, edit validator) and the selectors;
    each public method is its own transaction.

Invariants enforced:
    - Sequence allocation: next = max(MAX(sequence_number), watermark) + 1,
      read and inserted in ONE transaction that is SERIALIZABLE on
      PostgreSQL and holds the write lock (BEGIN IMMEDIATE) on SQLite.
      Two concurrent creates can therefore never commit the same number.
    - Deleted sequence numbers are never reissued (inventory watermark).
    - Version check: an update whose ``version`` differs from the stored
      version is rejected before anything is written.  The flush itself is
      a compare-and-set on the version column, so a writer that slips in
      between the check and the flush is also caught.
    - version grows by exactly 1 per successful update.
    - A custom ID edit that changes the sequence body moves the item's
      sequence_number to the edited value.

State machine (update):
    Loaded -> VersionChecked -> {VersionConflict
                                 | IdValidated -> {EditRejected
                                                   | Persisted -> Committed
                                                   | CustomIdConflict}}

Failure modes:
    - InventoryNotFoundError / ItemNotFoundError.
    - SequenceConflictError (retryable) on a custom ID collision or a
      serialization failure during create.  Never retried internally.
    - VersionConflictError on a stale version or serialization failure
      during update.
    - EditRejectedError when an edited custom ID breaks the template.
    - CustomIdConflictError when an edited custom ID is already taken,
      including a serialization failure while the ID was being changed.
    - InvalidFieldValueError when a field value cannot be stored.
    - Any other SQLAlchemy error propagates unchanged after rollback.
"""

from typing import Any, Iterable, Mapping
from uuid import UUID

from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm.exc import StaleDataError

from inventory_kernel.db.engine import SERIALIZABLE, transaction_scope
from inventory_kernel.db.errors import is_custom_id_violation, is_serialization_failure
from inventory_kernel.domain.dtos import ItemRecord
from inventory_kernel.domain.id_generator import generate, preview
from inventory_kernel.domain.id_validator import EditOutcome, validate_edit, validate_format
from inventory_kernel.domain.segments import IdSegment
from inventory_kernel.domain.template import compile_template
from inventory_kernel.exceptions import (
    CustomIdConflictError,
    EditRejectedError,
    InventoryNotFoundError,
    ItemNotFoundError,
    SequenceConflictError,
    VersionConflictError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.item import INITIAL_VERSION, Item
from inventory_kernel.selectors.inventory_selector import InventorySelector
from inventory_kernel.selectors.item_selector import CustomFieldSelector, ItemSelector
from inventory_kernel.services.base import SYSTEM_ACTOR_ID, BaseService, as_uuid
from inventory_kernel.services.field_values import FieldValueWriter

logger = get_logger("services.item_lifecycle")


class ItemLifecycleService(BaseService):
    """
    Create, update, read and delete items of an inventory.

    Contract:
        Every method opens and closes its own transaction and returns DTOs.
        Conflicts are raised as typed ``InventoryKernelError`` subclasses.
    """

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_item(
        self,
        inventory_id: UUID | str,
        fields: Mapping[UUID | str, Any] | None = None,
        actor_id: UUID | None = None,
    ) -> ItemRecord:
        """
        Create an item with the next sequence number and a rendered custom ID.

        Raises:
            InventoryNotFoundError: If the inventory does not exist.
            SequenceConflictError: If a concurrent create collided.  The
                transaction is rolled back; the caller may resubmit.
        """
        inventory_id = as_uuid(inventory_id)
        actor_id = actor_id or SYSTEM_ACTOR_ID
        custom_id: str | None = None

        with LogContext.bind(inventory_id=inventory_id, actor_id=actor_id):
            try:
                with transaction_scope(self.session_factory, isolation_level=SERIALIZABLE) as session:
                    inventory = InventorySelector(session).get_inventory(inventory_id)
                    if inventory is None:
                        raise InventoryNotFoundError(str(inventory_id))

                    items = ItemSelector(session)
                    current_max = items.max_sequence(inventory_id) or 0
                    next_sequence = max(current_max, inventory.sequence_watermark) + 1

                    template = compile_template(inventory.id_format)
                    custom_id = generate(
                        template, next_sequence, clock=self._clock, rng=self._rng,
                    )

                    item = Item(
                        inventory_id=inventory_id,
                        custom_id=custom_id,
                        sequence_number=next_sequence,
                        version=INITIAL_VERSION,
                        created_by_id=actor_id,
                    )
                    session.add(item)

                    writer = FieldValueWriter(CustomFieldSelector(session).fields_by_id(inventory_id))
                    writer.write(item, fields)

                    session.flush()
                    record = ItemRecord.from_model(item)
            except DBAPIError as exc:
                if is_custom_id_violation(exc) or is_serialization_failure(exc):
                    logger.warning(
                        "sequence_conflict",
                        extra={"custom_id": custom_id, "exc_type": type(exc.orig).__name__},
                    )
                    raise SequenceConflictError(str(inventory_id), custom_id) from exc
                raise

            logger.info(
                "item_created",
                extra={
                    "item_id": str(record.id),
                    "custom_id": record.custom_id,
                    "sequence_number": record.sequence_number,
                },
            )
            return record

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_item(
        self,
        item_id: UUID | str,
        version: int,
        fields: Mapping[UUID | str, Any] | None = None,
        custom_id: str | None = None,
        actor_id: UUID | None = None,
    ) -> ItemRecord:
        """
        Update an item's fields and/or custom ID under optimistic locking.

        Args:
            item_id: The item to update.
            version: The version the caller loaded; must equal the stored one.
            fields: Field id -> value map to upsert.  None leaves fields as is.
            custom_id: Edited custom ID.  None, or the current value, leaves
                the ID unchanged.
            actor_id: Who is making the change.

        Raises:
            ItemNotFoundError, VersionConflictError, EditRejectedError,
            CustomIdConflictError, InvalidFieldValueError.
        """
        item_id = as_uuid(item_id)
        actor_id = actor_id or SYSTEM_ACTOR_ID
        inventory_id: UUID | None = None
        editing_custom_id = False

        with LogContext.bind(item_id=item_id, actor_id=actor_id):
            try:
                with transaction_scope(self.session_factory, isolation_level=SERIALIZABLE) as session:
                    items = ItemSelector(session)
                    item = items.find_item_for_update(item_id)
                    if item is None:
                        raise ItemNotFoundError(str(item_id))
                    inventory_id = item.inventory_id

                    if item.version != version:
                        logger.info(
                            "version_conflict",
                            extra={"expected_version": version, "actual_version": item.version},
                        )
                        raise VersionConflictError(str(item_id), version, item.version)

                    if custom_id is not None and custom_id != item.custom_id:
                        editing_custom_id = True
                        self._apply_custom_id_edit(items, item, custom_id)

                    if fields is not None:
                        writer = FieldValueWriter(
                            CustomFieldSelector(session).fields_by_id(item.inventory_id)
                        )
                        writer.write(item, fields)

                    item.version = version + 1
                    item.updated_by_id = actor_id

                    session.flush()
                    record = ItemRecord.from_model(item)
            except StaleDataError as exc:
                logger.info("version_conflict", extra={"expected_version": version})
                raise VersionConflictError(str(item_id), version) from exc
            except DBAPIError as exc:
                if is_custom_id_violation(exc):
                    logger.info("custom_id_conflict", extra={"custom_id": custom_id})
                    raise CustomIdConflictError(str(inventory_id), custom_id) from exc
                if is_serialization_failure(exc):
                    # A concurrent writer took the edited ID before our commit.
                    if editing_custom_id:
                        logger.info("custom_id_conflict", extra={"custom_id": custom_id})
                        raise CustomIdConflictError(str(inventory_id), custom_id) from exc
                    logger.info("version_conflict", extra={"expected_version": version})
                    raise VersionConflictError(str(item_id), version) from exc
                raise

            logger.info(
                "item_updated",
                extra={"custom_id": record.custom_id, "version": record.version},
            )
            return record

    def _apply_custom_id_edit(self, items: ItemSelector, item: Item, custom_id: str) -> None:
        outcome = validate_edit(item.inventory.id_format, item.custom_id, custom_id)
        if not outcome.valid:
            logger.info(
                "custom_id_edit_rejected",
                extra={"custom_id": custom_id, "reason": outcome.message},
            )
            raise EditRejectedError(str(item.id), outcome.message, outcome.position)

        if items.custom_id_taken(item.inventory_id, custom_id, exclude_item_id=item.id):
            logger.info("custom_id_conflict", extra={"custom_id": custom_id})
            raise CustomIdConflictError(str(item.inventory_id), custom_id)

        logger.debug(
            "custom_id_edited",
            extra={
                "old_custom_id": item.custom_id,
                "custom_id": custom_id,
                "new_sequence": outcome.new_sequence,
            },
        )
        item.custom_id = custom_id
        if outcome.new_sequence is not None:
            item.sequence_number = outcome.new_sequence

    # ------------------------------------------------------------------
    # Read / delete
    # ------------------------------------------------------------------

    def get_item(self, item_id: UUID | str) -> ItemRecord:
        item_id = as_uuid(item_id)
        with transaction_scope(self.session_factory) as session:
            item = ItemSelector(session).get_item(item_id)
            if item is None:
                raise ItemNotFoundError(str(item_id))
            return ItemRecord.from_model(item)

    def list_items(self, inventory_id: UUID | str) -> list[ItemRecord]:
        """Items of an inventory in sequence order."""
        inventory_id = as_uuid(inventory_id)
        with transaction_scope(self.session_factory) as session:
            if InventorySelector(session).get_inventory(inventory_id) is None:
                raise InventoryNotFoundError(str(inventory_id))
            return [ItemRecord.from_model(i) for i in ItemSelector(session).list_items(inventory_id)]

    def delete_item(self, item_id: UUID | str, actor_id: UUID | None = None) -> None:
        """
        Delete an item.  Its sequence number is never reissued.

        Raises:
            ItemNotFoundError: If the item does not exist.
        """
        item_id = as_uuid(item_id)
        actor_id = actor_id or SYSTEM_ACTOR_ID

        with LogContext.bind(item_id=item_id, actor_id=actor_id):
            with transaction_scope(self.session_factory, isolation_level=SERIALIZABLE) as session:
                item = ItemSelector(session).find_item_for_update(item_id)
                if item is None:
                    raise ItemNotFoundError(str(item_id))

                inventory = InventorySelector(session).get_inventory_for_update(item.inventory_id)
                if item.sequence_number is not None and item.sequence_number > inventory.sequence_watermark:
                    inventory.sequence_watermark = item.sequence_number
                    inventory.updated_by_id = actor_id

                custom_id, sequence_number = item.custom_id, item.sequence_number
                session.delete(item)

            logger.info(
                "item_deleted",
                extra={"custom_id": custom_id, "sequence_number": sequence_number},
            )

    # ------------------------------------------------------------------
    # Pre-checks and preview
    # ------------------------------------------------------------------

    def validate_custom_id(
        self,
        inventory_id: UUID | str,
        candidate: str,
        item_id: UUID | str | None = None,
    ) -> EditOutcome:
        """
        Check a candidate custom ID against the inventory's template and
        existing IDs, without writing anything.

        Args:
            inventory_id: The inventory the ID would belong to.
            candidate: The proposed custom ID.
            item_id: The item being edited, if any.  Its own current ID does
                not count as taken.

        Returns:
            An ``EditOutcome``; ``to_dict()`` gives ``{valid, message}``.
        """
        inventory_id = as_uuid(inventory_id)
        exclude = as_uuid(item_id) if item_id is not None else None

        with transaction_scope(self.session_factory) as session:
            inventory = InventorySelector(session).get_inventory(inventory_id)
            if inventory is None:
                raise InventoryNotFoundError(str(inventory_id))

            outcome = validate_format(inventory.id_format, candidate)
            if not outcome.valid:
                return outcome

            if ItemSelector(session).custom_id_taken(inventory_id, candidate, exclude_item_id=exclude):
                return EditOutcome(
                    False,
                    f"Custom ID {candidate} already exists within this inventory",
                )
            return outcome

    def preview_id(self, segments: Iterable[IdSegment | Mapping[str, Any]]) -> str:
        """Render a sample ID with sequence 1.  Touches no persisted state."""
        return preview(segments, clock=self._clock, rng=self._rng)

