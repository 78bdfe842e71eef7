"""
tests/test_snapshot_metadata.py - Work-order snapshot schema hash and builder
"""

import hashlib
import json
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from hullworks.services.work_orders.snapshot_metadata import (
    WORK_ORDER_SNAPSHOT_FIELDS,
    WORK_ORDER_SNAPSHOT_SCHEMA_HASH,
    WORK_ORDER_SNAPSHOT_SCHEMA_METADATA,
    build_work_order_snapshot,
    compute_schema_hash,
)


def _fake_work_order():
    work_center_id = uuid.uuid4()
    routing = SimpleNamespace(
        model="LX24",
        trim="Sport",
        version=3,
        stages=[
            SimpleNamespace(sequence=2, code="RIG", name="Rigging", enabled=True,
                            work_center_id=work_center_id, standard_stage_seconds=600),
            SimpleNamespace(sequence=1, code="KIT", name="Kitting", enabled=False,
                            work_center_id=work_center_id, standard_stage_seconds=300),
        ],
    )
    return SimpleNamespace(
        number="WO-1",
        hull_id="HULL-77",
        product_sku="LX24-SPORT",
        qty=1,
        status="RELEASED",
        priority=None,
        planned_start_date=datetime(2026, 4, 1, tzinfo=timezone.utc),
        planned_finish_date=None,
        routing_version_id=uuid.uuid4(),
        current_stage_index=0,
        spec_snapshot={"model": "LX24"},
        routing_version=routing,
    )


class TestSchemaHash:

    def test_hash_matches_compact_json_digest(self):
        payload = json.dumps({"version": 1, "fields": list(WORK_ORDER_SNAPSHOT_FIELDS)}, separators=(",", ":"))
        expected = "sha256:" + hashlib.sha256(payload.encode("utf-8")).hexdigest()
        assert WORK_ORDER_SNAPSHOT_SCHEMA_HASH == expected

    def test_hash_is_stable_across_calls(self):
        assert compute_schema_hash(1, WORK_ORDER_SNAPSHOT_FIELDS) == compute_schema_hash(1, list(WORK_ORDER_SNAPSHOT_FIELDS))

    def test_field_order_changes_hash(self):
        reordered = tuple(reversed(WORK_ORDER_SNAPSHOT_FIELDS))
        assert compute_schema_hash(1, reordered) != WORK_ORDER_SNAPSHOT_SCHEMA_HASH

    def test_version_changes_hash(self):
        assert compute_schema_hash(2, WORK_ORDER_SNAPSHOT_FIELDS) != WORK_ORDER_SNAPSHOT_SCHEMA_HASH

    def test_metadata_exposes_version_fields_and_hash(self):
        assert WORK_ORDER_SNAPSHOT_SCHEMA_METADATA["version"] == 1
        assert WORK_ORDER_SNAPSHOT_SCHEMA_METADATA["fields"] == WORK_ORDER_SNAPSHOT_FIELDS
        assert WORK_ORDER_SNAPSHOT_SCHEMA_METADATA["hash"].startswith("sha256:")


class TestBuildSnapshot:

    def test_snapshot_has_exactly_the_schema_fields(self):
        snapshot = build_work_order_snapshot(_fake_work_order())
        assert list(snapshot) == list(WORK_ORDER_SNAPSHOT_FIELDS)

    def test_dates_and_priority_are_normalized(self):
        snapshot = build_work_order_snapshot(_fake_work_order())
        assert snapshot["plannedStartDate"] == "2026-04-01"
        assert snapshot["plannedFinishDate"] is None
        assert snapshot["priority"] == "NORMAL"

    def test_routing_stages_are_sorted_by_sequence(self):
        snapshot = build_work_order_snapshot(_fake_work_order())
        assert [s["code"] for s in snapshot["routingVersion"]["stages"]] == ["KIT", "RIG"]

    def test_override_replaces_field(self):
        snapshot = build_work_order_snapshot(_fake_work_order(), status="CANCELLED")
        assert snapshot["status"] == "CANCELLED"

    def test_unknown_override_raises(self):
        with pytest.raises(KeyError):
            build_work_order_snapshot(_fake_work_order(), colour="red")
