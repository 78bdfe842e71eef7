"""HULLWORKS MES — Product configuration tree endpoints (sections → components → options)."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.api.deps import CurrentUser, get_db, require_admin, require_product_config_reader
from hullworks.models.product import ConfigurationComponent, ConfigurationOption, ConfigurationSection, OptionDependency
from hullworks.schemas.common import ApiResponse, Meta
from hullworks.schemas.product import (
    ComponentResponse,
    ComponentUpsert,
    DependencyResponse,
    OptionResponse,
    OptionUpsert,
    SectionResponse,
    SectionUpsert,
)
from hullworks.services.product_service import ProductConfigurationService

router = APIRouter()


def _dependency_to_response(dependency: OptionDependency) -> DependencyResponse:
    return DependencyResponse(
        id=dependency.id,
        option_id=dependency.option_id,
        depends_on_option_id=dependency.depends_on_option_id,
        dependency_type=dependency.dependency_type,
    )


def _option_to_response(option: ConfigurationOption) -> OptionResponse:
    return OptionResponse(
        id=option.id,
        component_id=option.component_id,
        code=option.code,
        part_number=option.part_number,
        name=option.name,
        description=option.description,
        is_active=option.is_active,
        is_default=option.is_default,
        sort_order=option.sort_order,
        dependencies=[_dependency_to_response(d) for d in option.dependencies],
        dependents=[_dependency_to_response(d) for d in option.dependents],
    )


def _component_to_response(component: ConfigurationComponent) -> ComponentResponse:
    return ComponentResponse(
        id=component.id,
        section_id=component.section_id,
        code=component.code,
        name=component.name,
        description=component.description,
        is_required=component.is_required,
        allow_multiple=component.allow_multiple,
        default_option_id=component.default_option_id,
        sort_order=component.sort_order,
        options=[_option_to_response(o) for o in sorted(component.options, key=lambda o: o.sort_order)],
    )


def _section_to_response(section: ConfigurationSection) -> SectionResponse:
    return SectionResponse(
        id=section.id,
        product_model_id=section.product_model_id,
        product_model_name=section.product_model.name if section.product_model else None,
        product_trim_id=section.product_trim_id,
        product_trim_name=section.product_trim.name if section.product_trim else None,
        code=section.code,
        name=section.name,
        description=section.description,
        sort_order=section.sort_order,
        is_required=section.is_required,
        components=[_component_to_response(c) for c in sorted(section.components, key=lambda c: c.sort_order)],
    )


@router.get("/{model_id}", response_model=ApiResponse[list[SectionResponse]])
async def list_configuration(
    model_id: UUID,
    trim_id: UUID | None = Query(None, alias="trimId"),
    user: CurrentUser = Depends(require_product_config_reader),
    db: AsyncSession = Depends(get_db),
):
    sections = await ProductConfigurationService.list_sections(db, model_id, trim_id)
    return ApiResponse(
        data=[_section_to_response(s) for s in sections],
        meta=Meta.whole_list(sections),
    )


# Create when the body carries no id, otherwise update; POST and PUT behave the same.
@router.post("/sections", response_model=ApiResponse[SectionResponse])
@router.put("/sections", response_model=ApiResponse[SectionResponse])
async def upsert_section(
    body: SectionUpsert,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    section = await ProductConfigurationService.upsert_section(db, body)
    return ApiResponse(data=_section_to_response(section))


@router.post("/components", response_model=ApiResponse[ComponentResponse])
@router.put("/components", response_model=ApiResponse[ComponentResponse])
async def upsert_component(
    body: ComponentUpsert,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    component = await ProductConfigurationService.upsert_component(db, body)
    return ApiResponse(data=_component_to_response(component))


@router.post("/options", response_model=ApiResponse[OptionResponse])
@router.put("/options", response_model=ApiResponse[OptionResponse])
async def upsert_option(
    body: OptionUpsert,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Replaces the option's dependency list and applies its default flag in one transaction."""
    option = await ProductConfigurationService.upsert_option(db, body)
    return ApiResponse(data=_option_to_response(option))
