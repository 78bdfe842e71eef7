"""Product models, trims and the configuration tree

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()"))


def _ts(name: str = "created_at") -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False)


def upgrade() -> None:
    # ── 1. Catalogue ───────────────────────────────────────────────────────
    op.create_table(
        "product_models",
        _id(),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        _ts(),
    )

    op.create_table(
        "product_trims",
        _id(),
        sa.Column("product_model_id", UUID(as_uuid=True), sa.ForeignKey("product_models.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        _ts(),
        sa.UniqueConstraint("product_model_id", "name", name="uq_product_trim_model_name"),
    )
    op.create_index("ix_product_trims_product_model_id", "product_trims", ["product_model_id"])

    # ── 2. Configuration tree ──────────────────────────────────────────────
    op.create_table(
        "configuration_sections",
        _id(),
        sa.Column("product_model_id", UUID(as_uuid=True), sa.ForeignKey("product_models.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_trim_id", UUID(as_uuid=True), sa.ForeignKey("product_trims.id", ondelete="CASCADE"), nullable=True),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_required", sa.Boolean, nullable=False, server_default=sa.false()),
        _ts(),
        _ts("updated_at"),
    )
    op.create_index("ix_configuration_sections_product_model_id", "configuration_sections", ["product_model_id"])
    op.create_index("ix_configuration_sections_product_trim_id", "configuration_sections", ["product_trim_id"])

    op.create_table(
        "configuration_components",
        _id(),
        sa.Column("section_id", UUID(as_uuid=True), sa.ForeignKey("configuration_sections.id", ondelete="CASCADE"), nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("is_required", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("allow_multiple", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("default_option_id", UUID(as_uuid=True), nullable=True),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        sa.UniqueConstraint("section_id", "code", name="uq_configuration_component_code"),
    )
    op.create_index("ix_configuration_components_section_id", "configuration_components", ["section_id"])

    op.create_table(
        "configuration_options",
        _id(),
        sa.Column("component_id", UUID(as_uuid=True), sa.ForeignKey("configuration_components.id", ondelete="CASCADE"), nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("part_number", sa.String(100), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("is_default", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        sa.UniqueConstraint("component_id", "code", name="uq_configuration_option_code"),
    )
    op.create_index("ix_configuration_options_component_id", "configuration_options", ["component_id"])

    op.create_foreign_key(
        "fk_component_default_option",
        "configuration_components",
        "configuration_options",
        ["default_option_id"],
        ["id"],
        ondelete="SET NULL",
    )

    op.create_table(
        "configuration_option_dependencies",
        _id(),
        sa.Column("option_id", UUID(as_uuid=True), sa.ForeignKey("configuration_options.id", ondelete="CASCADE"), nullable=False),
        sa.Column("depends_on_option_id", UUID(as_uuid=True), sa.ForeignKey("configuration_options.id", ondelete="CASCADE"), nullable=False),
        sa.Column("dependency_type", sa.String(20), nullable=False),
        sa.UniqueConstraint("option_id", "depends_on_option_id", "dependency_type", name="uq_option_dependency"),
    )
    op.create_index("ix_configuration_option_dependencies_option_id", "configuration_option_dependencies", ["option_id"])
    op.create_index(
        "ix_configuration_option_dependencies_depends_on_option_id",
        "configuration_option_dependencies",
        ["depends_on_option_id"],
    )


def downgrade() -> None:
    op.drop_constraint("fk_component_default_option", "configuration_components", type_="foreignkey")
    for table in (
        "configuration_option_dependencies",
        "configuration_options",
        "configuration_components",
        "configuration_sections",
        "product_trims",
        "product_models",
    ):
        op.drop_table(table)
