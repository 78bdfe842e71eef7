"""HULLWORKS MES — Product catalogue, SKU generation and configuration tree maintenance.

Option writes replace the option's dependency rows and toggle the
component default inside one SAVEPOINT.
"""
import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.db.base import utcnow
from hullworks.models.product import (
    ConfigurationComponent,
    ConfigurationOption,
    ConfigurationSection,
    OptionDependency,
    ProductModel,
    ProductTrim,
)
from hullworks.schemas.product import ComponentUpsert, OptionUpsert, SectionUpsert, SkuGenerateRequest

logger = logging.getLogger(__name__)


def _not_found(label: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")


def _invalid(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ProductCatalogService:

    @staticmethod
    async def get_active_model(db: AsyncSession, model_id: UUID) -> ProductModel:
        model = await db.scalar(
            select(ProductModel).where(ProductModel.id == model_id, ProductModel.is_active == True)  # noqa: E712
        )
        if not model:
            raise _not_found("Product model")
        return model

    @staticmethod
    async def list_models(db: AsyncSession) -> list[ProductModel]:
        result = await db.scalars(
            select(ProductModel)
            .where(ProductModel.is_active == True)  # noqa: E712
            .order_by(ProductModel.name)
            .execution_options(populate_existing=True)
        )
        return list(result.all())

    @staticmethod
    async def list_trims(db: AsyncSession, model_id: UUID) -> list[ProductTrim]:
        await ProductCatalogService.get_active_model(db, model_id)
        result = await db.scalars(
            select(ProductTrim)
            .where(ProductTrim.product_model_id == model_id, ProductTrim.is_active == True)  # noqa: E712
            .order_by(ProductTrim.name)
        )
        return list(result.all())

    @staticmethod
    async def generate_sku(db: AsyncSession, body: SkuGenerateRequest) -> dict:
        """SKU in the form YEAR-MODEL-TRIM; year defaults to the current UTC year."""
        model = await ProductCatalogService.get_active_model(db, body.product_model_id)
        trim = await db.scalar(
            select(ProductTrim).where(ProductTrim.id == body.product_trim_id, ProductTrim.is_active == True)  # noqa: E712
        )
        if not trim:
            raise _not_found("Product trim")
        if trim.product_model_id != model.id:
            raise _invalid("Selected trim does not belong to the selected model")

        year = body.year or utcnow().year
        return {"sku": f"{year}-{model.name}-{trim.name}", "year": year, "model": model.name, "trim": trim.name}


class ProductConfigurationService:

    @staticmethod
    async def list_sections(db: AsyncSession, model_id: UUID, trim_id: UUID | None = None) -> list[ConfigurationSection]:
        """Sections for a model (optionally one trim) with components and options, all in sort order."""
        if not await db.scalar(select(ProductModel.id).where(ProductModel.id == model_id)):
            raise _not_found("Product model")
        query = select(ConfigurationSection).where(ConfigurationSection.product_model_id == model_id)
        if trim_id is not None:
            query = query.where(ConfigurationSection.product_trim_id == trim_id)
        result = await db.scalars(
            query.order_by(ConfigurationSection.sort_order, ConfigurationSection.code)
            .execution_options(populate_existing=True)
        )
        return list(result.all())

    @staticmethod
    async def reload_section(db: AsyncSession, section_id: UUID) -> ConfigurationSection:
        return await db.scalar(
            select(ConfigurationSection)
            .where(ConfigurationSection.id == section_id)
            .execution_options(populate_existing=True)
        )

    @staticmethod
    async def reload_component(db: AsyncSession, component_id: UUID) -> ConfigurationComponent:
        return await db.scalar(
            select(ConfigurationComponent)
            .where(ConfigurationComponent.id == component_id)
            .execution_options(populate_existing=True)
        )

    @staticmethod
    async def reload_option(db: AsyncSession, option_id: UUID) -> ConfigurationOption:
        return await db.scalar(
            select(ConfigurationOption)
            .where(ConfigurationOption.id == option_id)
            .execution_options(populate_existing=True)
        )

    @staticmethod
    async def upsert_section(db: AsyncSession, body: SectionUpsert) -> ConfigurationSection:
        if not await db.scalar(select(ProductModel.id).where(ProductModel.id == body.product_model_id)):
            raise _not_found("Product model")
        if body.product_trim_id is not None:
            trim = await db.scalar(select(ProductTrim).where(ProductTrim.id == body.product_trim_id))
            if not trim:
                raise _not_found("Product trim")
            if trim.product_model_id != body.product_model_id:
                raise _invalid("Selected trim does not belong to the selected model")

        if body.id:
            section = await db.scalar(select(ConfigurationSection).where(ConfigurationSection.id == body.id))
            if not section:
                raise _not_found("Configuration section")
        else:
            section = ConfigurationSection(components=[])
            db.add(section)

        section.product_model_id = body.product_model_id
        section.product_trim_id = body.product_trim_id
        section.code = body.code
        section.name = body.name
        section.description = body.description
        section.sort_order = body.sort_order
        section.is_required = body.is_required
        await db.flush()
        logger.info("Saved configuration section %s (%s)", section.code, section.id)
        return await ProductConfigurationService.reload_section(db, section.id)

    @staticmethod
    async def upsert_component(db: AsyncSession, body: ComponentUpsert) -> ConfigurationComponent:
        if not await db.scalar(select(ConfigurationSection.id).where(ConfigurationSection.id == body.section_id)):
            raise _not_found("Configuration section")

        if body.default_option_id is not None:
            if body.id is None:
                raise _invalid("Component ID is required when setting a default option")
            owner = await db.scalar(
                select(ConfigurationOption.component_id).where(ConfigurationOption.id == body.default_option_id)
            )
            if owner != body.id:
                raise _invalid("Default option does not belong to this component")

        if body.id:
            component = await db.scalar(select(ConfigurationComponent).where(ConfigurationComponent.id == body.id))
            if not component:
                raise _not_found("Configuration component")
        else:
            component = ConfigurationComponent(options=[])
            db.add(component)

        component.section_id = body.section_id
        component.code = body.code
        component.name = body.name
        component.description = body.description
        component.is_required = body.is_required
        component.allow_multiple = body.allow_multiple
        component.default_option_id = body.default_option_id
        component.sort_order = body.sort_order
        await db.flush()
        return await ProductConfigurationService.reload_component(db, component.id)

    @staticmethod
    async def _apply_default_flag(db: AsyncSession, component_id: UUID, option_id: UUID, is_default: bool) -> None:
        """At most one default option per component, mirrored on component.default_option_id."""
        if is_default:
            await db.execute(
                update(ConfigurationOption)
                .where(ConfigurationOption.component_id == component_id, ConfigurationOption.id != option_id)
                .values(is_default=False)
            )
            await db.execute(
                update(ConfigurationComponent)
                .where(ConfigurationComponent.id == component_id)
                .values(default_option_id=option_id)
            )
        else:
            await db.execute(
                update(ConfigurationComponent)
                .where(ConfigurationComponent.id == component_id, ConfigurationComponent.default_option_id == option_id)
                .values(default_option_id=None)
            )

    @staticmethod
    async def upsert_option(db: AsyncSession, body: OptionUpsert) -> ConfigurationOption:
        """
        Create or update an option, replace its dependency list and apply the
        default flag. The three writes share one SAVEPOINT.
        """
        if not await db.scalar(select(ConfigurationComponent.id).where(ConfigurationComponent.id == body.component_id)):
            raise _not_found("Configuration component")

        # Duplicates in the request collapse to one row
        wanted: dict[tuple[UUID, str], None] = {}
        for dependency in body.dependencies:
            wanted[(dependency.depends_on_option_id, dependency.dependency_type.value)] = None
        dependency_ids = {option_id for option_id, _ in wanted}

        if body.id and body.id in dependency_ids:
            raise _invalid("Option cannot depend on itself")
        if dependency_ids:
            found = set((await db.scalars(
                select(ConfigurationOption.id).where(ConfigurationOption.id.in_(dependency_ids))
            )).all())
            missing = dependency_ids - found
            if missing:
                raise _invalid(f"Unknown dependency option IDs: {', '.join(sorted(str(m) for m in missing))}")

        option = None
        if body.id:
            option = await db.scalar(select(ConfigurationOption).where(ConfigurationOption.id == body.id))
            if not option:
                raise _not_found("Configuration option")

        async with db.begin_nested():
            if option is None:
                option = ConfigurationOption(dependencies=[])
                db.add(option)
            else:
                option.dependencies.clear()
                await db.flush()

            option.component_id = body.component_id
            option.code = body.code
            option.part_number = body.part_number
            option.name = body.name
            option.description = body.description
            option.is_active = body.is_active
            option.is_default = body.is_default
            option.sort_order = body.sort_order
            option.dependencies.extend(
                OptionDependency(depends_on_option_id=depends_on, dependency_type=dependency_type)
                for depends_on, dependency_type in wanted
            )
            await db.flush()

            await ProductConfigurationService._apply_default_flag(db, option.component_id, option.id, body.is_default)

        logger.info(
            "Saved configuration option %s with %d dependencies (default=%s)",
            option.code, len(wanted), body.is_default,
        )
        return await ProductConfigurationService.reload_option(db, option.id)
