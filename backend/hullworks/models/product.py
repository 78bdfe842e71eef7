"""HULLWORKS MES — Product catalogue and configuration models.

A product model (LX24, LX26) has trims. Configuration is a tree of
sections → components → options, scoped to a model and optionally a trim.
Options can require or exclude other options.
"""
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hullworks.db.base import Base, utcnow


class DependencyType(str, Enum):
    REQUIRES = "REQUIRES"
    EXCLUDES = "EXCLUDES"


class ProductModel(Base):
    __tablename__ = "product_models"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    trims: Mapped[list["ProductTrim"]] = relationship(
        "ProductTrim", back_populates="product_model", order_by="ProductTrim.name", lazy="selectin",
    )


class ProductTrim(Base):
    __tablename__ = "product_trims"
    __table_args__ = (UniqueConstraint("product_model_id", "name", name="uq_product_trim_model_name"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_model_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("product_models.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    product_model: Mapped["ProductModel"] = relationship("ProductModel", back_populates="trims")


class ConfigurationSection(Base):
    __tablename__ = "configuration_sections"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_model_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("product_models.id", ondelete="CASCADE"), nullable=False, index=True)
    product_trim_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("product_trims.id", ondelete="CASCADE"), nullable=True, index=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now())

    product_model: Mapped["ProductModel"] = relationship("ProductModel", lazy="selectin")
    product_trim: Mapped["ProductTrim"] = relationship("ProductTrim", lazy="selectin")
    components: Mapped[list["ConfigurationComponent"]] = relationship(
        "ConfigurationComponent",
        back_populates="section",
        cascade="all",
        order_by="ConfigurationComponent.sort_order",
        lazy="selectin",
    )


class ConfigurationComponent(Base):
    __tablename__ = "configuration_components"
    __table_args__ = (UniqueConstraint("section_id", "code", name="uq_configuration_component_code"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    section_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("configuration_sections.id", ondelete="CASCADE"), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    allow_multiple: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Circular with configuration_options.component_id; added by ALTER on Postgres
    default_option_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("configuration_options.id", ondelete="SET NULL", use_alter=True, name="fk_component_default_option"),
        nullable=True,
    )
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    section: Mapped["ConfigurationSection"] = relationship("ConfigurationSection", back_populates="components")
    options: Mapped[list["ConfigurationOption"]] = relationship(
        "ConfigurationOption",
        back_populates="component",
        foreign_keys="ConfigurationOption.component_id",
        cascade="all",
        order_by="ConfigurationOption.sort_order",
        lazy="selectin",
    )


class ConfigurationOption(Base):
    __tablename__ = "configuration_options"
    __table_args__ = (UniqueConstraint("component_id", "code", name="uq_configuration_option_code"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    component_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("configuration_components.id", ondelete="CASCADE"), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    part_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    component: Mapped["ConfigurationComponent"] = relationship(
        "ConfigurationComponent", back_populates="options", foreign_keys=[component_id],
    )
    dependencies: Mapped[list["OptionDependency"]] = relationship(
        "OptionDependency",
        foreign_keys="OptionDependency.option_id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    dependents: Mapped[list["OptionDependency"]] = relationship(
        "OptionDependency",
        foreign_keys="OptionDependency.depends_on_option_id",
        viewonly=True,
        lazy="selectin",
    )


class OptionDependency(Base):
    __tablename__ = "configuration_option_dependencies"
    __table_args__ = (
        UniqueConstraint("option_id", "depends_on_option_id", "dependency_type", name="uq_option_dependency"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    option_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("configuration_options.id", ondelete="CASCADE"), nullable=False, index=True)
    depends_on_option_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("configuration_options.id", ondelete="CASCADE"), nullable=False, index=True)
    dependency_type: Mapped[str] = mapped_column(String(20), nullable=False)
