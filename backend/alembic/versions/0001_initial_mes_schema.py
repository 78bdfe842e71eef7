"""Plant layout, users, routings, work orders, stage logs, metrics, audit log

Revision ID: 0001
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()"))


def _ts(name: str = "created_at") -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False)


def upgrade() -> None:
    # ── 1. Plant layout ────────────────────────────────────────────────────
    op.create_table(
        "departments",
        _id(),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        _ts(),
        _ts("updated_at"),
    )

    op.create_table(
        "work_centers",
        _id(),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("department_id", UUID(as_uuid=True), sa.ForeignKey("departments.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        _ts(),
        _ts("updated_at"),
    )
    op.create_index("ix_work_centers_department_id", "work_centers", ["department_id"])

    # ── 2. Users ───────────────────────────────────────────────────────────
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(50), nullable=False, server_default="OPERATOR"),
        sa.Column("department_id", UUID(as_uuid=True), sa.ForeignKey("departments.id", ondelete="SET NULL"), nullable=True),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=True),
        sa.Column("shift_schedule", JSONB, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        _ts(),
        _ts("updated_at"),
    )
    op.create_index("ix_users_department_id", "users", ["department_id"])

    op.create_table(
        "pay_rate_history",
        _id(),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("old_rate", sa.Numeric(10, 2), nullable=True),
        sa.Column("new_rate", sa.Numeric(10, 2), nullable=True),
        sa.Column("changed_by", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("reason", sa.String(255), nullable=True),
        _ts(),
    )
    op.create_index("ix_pay_rate_history_user_id", "pay_rate_history", ["user_id"])

    # ── 3. Stations and equipment ──────────────────────────────────────────
    op.create_table(
        "stations",
        _id(),
        sa.Column("code", sa.String(50), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("work_center_id", UUID(as_uuid=True), sa.ForeignKey("work_centers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("default_pay_rate", sa.Numeric(10, 2), nullable=True),
        sa.Column("capacity", sa.Integer, nullable=True),
        sa.Column("target_cycle_time_seconds", sa.Integer, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        _ts(),
        _ts("updated_at"),
    )
    op.create_index("ix_stations_work_center_id", "stations", ["work_center_id"])

    op.create_table(
        "station_members",
        _id(),
        sa.Column("station_id", UUID(as_uuid=True), sa.ForeignKey("stations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        _ts(),
        sa.UniqueConstraint("station_id", "user_id", name="uq_station_members_station_user"),
    )
    op.create_index("ix_station_members_station_id", "station_members", ["station_id"])
    op.create_index("ix_station_members_user_id", "station_members", ["user_id"])

    op.create_table(
        "equipment",
        _id(),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        _ts(),
        _ts("updated_at"),
    )

    op.create_table(
        "station_equipment",
        _id(),
        sa.Column("station_id", UUID(as_uuid=True), sa.ForeignKey("stations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("equipment_id", UUID(as_uuid=True), sa.ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False),
        _ts(),
        sa.UniqueConstraint("station_id", "equipment_id", name="uq_station_equipment_station_equipment"),
    )
    op.create_index("ix_station_equipment_station_id", "station_equipment", ["station_id"])
    op.create_index("ix_station_equipment_equipment_id", "station_equipment", ["equipment_id"])

    # ── 4. Routings ────────────────────────────────────────────────────────
    op.create_table(
        "routing_versions",
        _id(),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("trim", sa.String(100), nullable=True),
        sa.Column("features_json", JSONB, nullable=True),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        sa.Column("released_at", sa.DateTime(timezone=True), nullable=True),
        _ts(),
    )
    op.create_index("ix_routing_versions_model", "routing_versions", ["model"])

    op.create_table(
        "routing_stages",
        _id(),
        sa.Column("routing_version_id", UUID(as_uuid=True), sa.ForeignKey("routing_versions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("sequence", sa.Integer, nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("enabled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("work_center_id", UUID(as_uuid=True), sa.ForeignKey("work_centers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("standard_stage_seconds", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_index("ix_routing_stages_routing_version_id", "routing_stages", ["routing_version_id"])
    op.create_index("ix_routing_stages_work_center_id", "routing_stages", ["work_center_id"])

    # ── 5. Work orders ─────────────────────────────────────────────────────
    op.create_table(
        "work_orders",
        _id(),
        sa.Column("number", sa.String(100), nullable=False, unique=True),
        sa.Column("hull_id", sa.String(100), nullable=False),
        sa.Column("product_sku", sa.String(100), nullable=False),
        sa.Column("qty", sa.Integer, nullable=False, server_default="1"),
        sa.Column("status", sa.String(20), nullable=False, server_default="PLANNED"),
        sa.Column("priority", sa.String(20), nullable=False, server_default="NORMAL"),
        sa.Column("planned_start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("planned_finish_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("current_stage_index", sa.Integer, nullable=False, server_default="0"),
        sa.Column("spec_snapshot", JSONB, nullable=True),
        sa.Column("routing_version_id", UUID(as_uuid=True), sa.ForeignKey("routing_versions.id", ondelete="RESTRICT"), nullable=False),
        _ts(),
        _ts("updated_at"),
    )
    op.create_index("ix_work_orders_status", "work_orders", ["status"])
    op.create_index("ix_work_orders_routing_version_id", "work_orders", ["routing_version_id"])

    op.create_table(
        "work_order_versions",
        _id(),
        sa.Column("work_order_id", UUID(as_uuid=True), sa.ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("version_number", sa.Integer, nullable=False),
        sa.Column("snapshot_data", JSONB, nullable=False),
        sa.Column("schema_hash", sa.String(100), nullable=True),
        sa.Column("reason", sa.Text, nullable=True),
        sa.Column("created_by", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        _ts(),
        sa.UniqueConstraint("work_order_id", "version_number", name="uq_work_order_versions_number"),
    )
    op.create_index("ix_work_order_versions_work_order_id", "work_order_versions", ["work_order_id"])

    op.create_table(
        "wo_stage_logs",
        _id(),
        sa.Column("work_order_id", UUID(as_uuid=True), sa.ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("routing_stage_id", UUID(as_uuid=True), sa.ForeignKey("routing_stages.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("station_id", UUID(as_uuid=True), sa.ForeignKey("stations.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("event", sa.String(20), nullable=False),
        sa.Column("good_qty", sa.Integer, nullable=True),
        sa.Column("scrap_qty", sa.Integer, nullable=True),
        sa.Column("note", sa.Text, nullable=True),
        sa.Column("hourly_rate_snapshot", sa.Numeric(10, 2), nullable=True),
        _ts(),
    )
    op.create_index("ix_wo_stage_logs_work_order_id", "wo_stage_logs", ["work_order_id"])
    op.create_index("ix_wo_stage_logs_station_id", "wo_stage_logs", ["station_id"])
    op.create_index("ix_wo_stage_logs_user_id", "wo_stage_logs", ["user_id"])
    op.create_index("ix_wo_stage_logs_created_at", "wo_stage_logs", ["created_at"])

    op.create_table(
        "work_order_notes",
        _id(),
        sa.Column("work_order_id", UUID(as_uuid=True), sa.ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        _ts(),
        _ts("updated_at"),
    )
    op.create_index("ix_work_order_notes_work_order_id", "work_order_notes", ["work_order_id"])

    # ── 6. Metrics and audit ───────────────────────────────────────────────
    op.create_table(
        "station_metrics",
        _id(),
        sa.Column("station_id", UUID(as_uuid=True), sa.ForeignKey("stations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("period_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("weighted_average_rate", sa.Numeric(12, 4), nullable=False, server_default="0"),
        sa.Column("total_hours_worked", sa.Numeric(12, 4), nullable=False, server_default="0"),
        sa.Column("total_labor_cost", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("unique_operator_count", sa.Integer, nullable=False, server_default="0"),
        _ts("calculated_at"),
        sa.UniqueConstraint("station_id", "period_start", name="uq_station_metrics_station_period"),
    )
    op.create_index("ix_station_metrics_station_id", "station_metrics", ["station_id"])

    op.create_table(
        "audit_logs",
        _id(),
        sa.Column("actor_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("model", sa.String(50), nullable=False),
        sa.Column("model_id", UUID(as_uuid=True), nullable=False),
        sa.Column("before", JSONB, nullable=True),
        sa.Column("after", JSONB, nullable=True),
        _ts(),
    )
    op.create_index("ix_audit_logs_model_id", "audit_logs", ["model_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    for table in (
        "audit_logs",
        "station_metrics",
        "work_order_notes",
        "wo_stage_logs",
        "work_order_versions",
        "work_orders",
        "routing_stages",
        "routing_versions",
        "station_equipment",
        "equipment",
        "station_members",
        "stations",
        "pay_rate_history",
        "users",
        "work_centers",
        "departments",
    ):
        op.drop_table(table)
