"""HULLWORKS MES — Work-order snapshot schema and builder.

Every WorkOrderVersion row records ``WORK_ORDER_SNAPSHOT_SCHEMA_HASH`` so that
a consumer reading old snapshots can tell which field layout they follow.
Changing the field list changes the hash; bump the version with it.
"""
import hashlib
import json
from typing import Any

from hullworks.services.work_orders.date_utils import format_date_only

WORK_ORDER_SNAPSHOT_FIELDS: tuple[str, ...] = (
    "number",
    "hullId",
    "productSku",
    "qty",
    "status",
    "priority",
    "plannedStartDate",
    "plannedFinishDate",
    "routingVersionId",
    "currentStageIndex",
    "specSnapshot",
    "routingVersion",
)

WORK_ORDER_SNAPSHOT_SCHEMA_VERSION = 1


def compute_schema_hash(version: int, fields: tuple[str, ...] | list[str]) -> str:
    # compact separators give the same bytes as JSON.stringify
    payload = json.dumps({"version": version, "fields": list(fields)}, separators=(",", ":"))
    return "sha256:" + hashlib.sha256(payload.encode("utf-8")).hexdigest()


WORK_ORDER_SNAPSHOT_SCHEMA_HASH = compute_schema_hash(WORK_ORDER_SNAPSHOT_SCHEMA_VERSION, WORK_ORDER_SNAPSHOT_FIELDS)

WORK_ORDER_SNAPSHOT_SCHEMA_METADATA: dict[str, Any] = {
    "version": WORK_ORDER_SNAPSHOT_SCHEMA_VERSION,
    "fields": WORK_ORDER_SNAPSHOT_FIELDS,
    "hash": WORK_ORDER_SNAPSHOT_SCHEMA_HASH,
}


def serialize_routing_version(routing_version) -> dict[str, Any] | None:
    if routing_version is None:
        return None
    stages = sorted(routing_version.stages, key=lambda s: s.sequence)
    return {
        "model": routing_version.model,
        "trim": routing_version.trim,
        "version": routing_version.version,
        "stages": [
            {
                "sequence": s.sequence,
                "code": s.code,
                "name": s.name,
                "enabled": s.enabled,
                "workCenterId": str(s.work_center_id),
                "standardStageSeconds": s.standard_stage_seconds,
            }
            for s in stages
        ],
    }


def build_work_order_snapshot(work_order, **overrides: Any) -> dict[str, Any]:
    """
    Capture the snapshot fields of a work order (routing version must be loaded).
    Keyword overrides replace individual fields, e.g. ``status="CANCELLED"``.
    """
    snapshot = {
        "number": work_order.number,
        "hullId": work_order.hull_id,
        "productSku": work_order.product_sku,
        "qty": work_order.qty,
        "status": work_order.status,
        "priority": work_order.priority or "NORMAL",
        "plannedStartDate": format_date_only(work_order.planned_start_date),
        "plannedFinishDate": format_date_only(work_order.planned_finish_date),
        "routingVersionId": str(work_order.routing_version_id),
        "currentStageIndex": work_order.current_stage_index,
        "specSnapshot": work_order.spec_snapshot,
        "routingVersion": serialize_routing_version(work_order.routing_version),
    }
    for key, value in overrides.items():
        if key not in WORK_ORDER_SNAPSHOT_FIELDS:
            raise KeyError(f"Unknown snapshot field: {key}")
        snapshot[key] = value
    return snapshot
