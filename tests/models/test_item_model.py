"""
Tests for the item ORM model (``inventory_kernel.models.item``).

Covers the schema-level guarantees the lifecycle service relies on:
- The version column is a compare-and-set on UPDATE.
- (inventory_id, custom_id) is unique.
- Deleting an item removes its field values.
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from inventory_kernel.db.errors import is_custom_id_violation
from inventory_kernel.models.item import Item, ItemFieldValue

from tests.conftest import TEST_ACTOR_ID


class TestVersionColumn:

    def test_stale_flush_raises(self, session_factory, lifecycle, laptops):
        created = lifecycle.create_item(laptops.id)

        session = session_factory()
        try:
            stale = session.get(Item, created.id)
            session.commit()

            lifecycle.update_item(created.id, version=created.version)

            stale.custom_id = "LAP-777"
            stale.version = created.version + 1
            with pytest.raises(StaleDataError):
                session.flush()
            session.rollback()
        finally:
            session.close()

        assert lifecycle.get_item(created.id).custom_id == "LAP-001"


class TestCustomIdConstraint:

    def test_duplicate_custom_id_rejected(self, session_factory, laptops):
        session = session_factory()
        try:
            for _ in range(2):
                session.add(Item(
                    inventory_id=laptops.id,
                    custom_id="LAP-001",
                    sequence_number=1,
                    created_by_id=TEST_ACTOR_ID,
                ))
            with pytest.raises(IntegrityError) as exc_info:
                session.flush()
            assert is_custom_id_violation(exc_info.value)
            session.rollback()
        finally:
            session.close()

    def test_same_custom_id_in_other_inventory_allowed(
        self, session_factory, inventory_service, lifecycle, laptops,
    ):
        other = inventory_service.create_inventory(
            "Spare laptops",
            id_format=[{"type": "fixed", "value": "LAP-"}, {"type": "sequence", "format": "D3"}],
        )
        assert lifecycle.create_item(laptops.id).custom_id == "LAP-001"
        assert lifecycle.create_item(other.id).custom_id == "LAP-001"


class TestCascade:

    def test_field_values_deleted_with_item(self, session_factory, inventory_service, lifecycle, laptops):
        field = inventory_service.add_custom_field(laptops.id, "Model", "text")
        item = lifecycle.create_item(laptops.id, fields={field.id: "T14"})

        lifecycle.delete_item(item.id)

        session = session_factory()
        try:
            remaining = session.scalar(select(func.count()).select_from(ItemFieldValue))
        finally:
            session.close()
        assert remaining == 0
