"""
tests/test_product_configuration.py - Product catalogue, SKU generation and the configuration tree
"""

import uuid
from types import SimpleNamespace

import pytest
import pytest_asyncio
from fastapi import HTTPException
from sqlalchemy import func, select

from conftest import auth_headers
from hullworks.db.base import utcnow
from hullworks.models import OptionDependency, ProductModel, ProductTrim
from hullworks.schemas.product import (
    ComponentUpsert,
    DependencyIn,
    OptionUpsert,
    SectionUpsert,
    SkuGenerateRequest,
)
from hullworks.services.product_service import ProductCatalogService, ProductConfigurationService


@pytest_asyncio.fixture
async def catalogue(db):
    """LX24 with Sport and Fish trims, LX26 with Base, and an LX24 engine component."""
    lx24 = ProductModel(name="LX24", description="24-foot luxury boat model", trims=[
        ProductTrim(name="Sport"),
        ProductTrim(name="Fish"),
    ])
    lx26 = ProductModel(name="LX26", description="26-foot luxury boat model", trims=[ProductTrim(name="Base")])
    db.add_all([lx24, lx26])
    await db.flush()

    sport = next(t for t in lx24.trims if t.name == "Sport")
    section = await ProductConfigurationService.upsert_section(
        db, SectionUpsert(product_model_id=lx24.id, code="POWER", name="Power", is_required=True),
    )
    engine = await ProductConfigurationService.upsert_component(
        db, ComponentUpsert(section_id=section.id, code="ENGINE", name="Engine", is_required=True, allow_multiple=False),
    )
    return SimpleNamespace(lx24=lx24, lx26=lx26, sport=sport, base=lx26.trims[0], section=section, engine=engine)


async def _option(db, component, code, **fields):
    return await ProductConfigurationService.upsert_option(
        db, OptionUpsert(component_id=component.id, code=code, name=code.title(), **fields),
    )


# =============================================================================
# CATALOGUE AND SKU
# =============================================================================

class TestSkuGeneration:

    @pytest.mark.asyncio
    async def test_year_model_trim(self, db, catalogue):
        result = await ProductCatalogService.generate_sku(
            db, SkuGenerateRequest(product_model_id=catalogue.lx24.id, product_trim_id=catalogue.sport.id, year=2025),
        )
        assert result["sku"] == "2025-LX24-Sport"

    @pytest.mark.asyncio
    async def test_year_defaults_to_current(self, db, catalogue):
        result = await ProductCatalogService.generate_sku(
            db, SkuGenerateRequest(product_model_id=catalogue.lx24.id, product_trim_id=catalogue.sport.id),
        )
        assert result["year"] == utcnow().year
        assert result["sku"].endswith("-LX24-Sport")

    @pytest.mark.asyncio
    async def test_trim_from_another_model_is_400(self, db, catalogue):
        with pytest.raises(HTTPException) as exc:
            await ProductCatalogService.generate_sku(
                db, SkuGenerateRequest(product_model_id=catalogue.lx24.id, product_trim_id=catalogue.base.id),
            )
        assert exc.value.status_code == 400
        assert exc.value.detail == "Selected trim does not belong to the selected model"

    @pytest.mark.asyncio
    async def test_inactive_model_is_404(self, db, catalogue):
        catalogue.lx26.is_active = False
        await db.flush()
        with pytest.raises(HTTPException) as exc:
            await ProductCatalogService.list_trims(db, catalogue.lx26.id)
        assert exc.value.status_code == 404


# =============================================================================
# CONFIGURATION TREE
# =============================================================================

class TestSections:

    @pytest.mark.asyncio
    async def test_trim_must_belong_to_model(self, db, catalogue):
        with pytest.raises(HTTPException) as exc:
            await ProductConfigurationService.upsert_section(
                db,
                SectionUpsert(
                    product_model_id=catalogue.lx24.id, product_trim_id=catalogue.base.id,
                    code="HELM", name="Helm", is_required=False,
                ),
            )
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_update_by_id(self, db, catalogue):
        section = await ProductConfigurationService.upsert_section(
            db,
            SectionUpsert(
                id=catalogue.section.id, product_model_id=catalogue.lx24.id, product_trim_id=catalogue.sport.id,
                code="POWER", name="Power & Fuel", sort_order=5, is_required=True,
            ),
        )
        assert section.id == catalogue.section.id
        assert section.name == "Power & Fuel"
        assert section.product_trim.name == "Sport"

    @pytest.mark.asyncio
    async def test_list_filters_by_trim(self, db, catalogue):
        await ProductConfigurationService.upsert_section(
            db,
            SectionUpsert(
                product_model_id=catalogue.lx24.id, product_trim_id=catalogue.sport.id,
                code="TOWER", name="Tower", sort_order=1, is_required=False,
            ),
        )
        everything = await ProductConfigurationService.list_sections(db, catalogue.lx24.id)
        assert [s.code for s in everything] == ["POWER", "TOWER"]
        sport_only = await ProductConfigurationService.list_sections(db, catalogue.lx24.id, catalogue.sport.id)
        assert [s.code for s in sport_only] == ["TOWER"]


class TestComponents:

    @pytest.mark.asyncio
    async def test_default_option_needs_component_id(self, db, catalogue):
        outboard = await _option(db, catalogue.engine, "OUTBOARD")
        with pytest.raises(HTTPException) as exc:
            await ProductConfigurationService.upsert_component(
                db,
                ComponentUpsert(
                    section_id=catalogue.section.id, code="AUX", name="Aux", is_required=False,
                    allow_multiple=False, default_option_id=outboard.id,
                ),
            )
        assert exc.value.detail == "Component ID is required when setting a default option"

    @pytest.mark.asyncio
    async def test_default_option_must_belong_to_component(self, db, catalogue):
        fuel = await ProductConfigurationService.upsert_component(
            db, ComponentUpsert(section_id=catalogue.section.id, code="FUEL", name="Fuel", is_required=False, allow_multiple=False),
        )
        outboard = await _option(db, catalogue.engine, "OUTBOARD")
        with pytest.raises(HTTPException) as exc:
            await ProductConfigurationService.upsert_component(
                db,
                ComponentUpsert(
                    id=fuel.id, section_id=catalogue.section.id, code="FUEL", name="Fuel", is_required=False,
                    allow_multiple=False, default_option_id=outboard.id,
                ),
            )
        assert exc.value.detail == "Default option does not belong to this component"


class TestOptions:

    @pytest.mark.asyncio
    async def test_update_replaces_dependency_list(self, db, catalogue):
        single = await _option(db, catalogue.engine, "SINGLE")
        twin = await _option(db, catalogue.engine, "TWIN")
        joystick = await _option(
            db, catalogue.engine, "JOYSTICK",
            dependencies=[DependencyIn(depends_on_option_id=twin.id, dependency_type="REQUIRES")],
        )
        assert [(d.depends_on_option_id, d.dependency_type) for d in joystick.dependencies] == [(twin.id, "REQUIRES")]

        joystick = await ProductConfigurationService.upsert_option(
            db,
            OptionUpsert(
                id=joystick.id, component_id=catalogue.engine.id, code="JOYSTICK", name="Joystick",
                dependencies=[DependencyIn(depends_on_option_id=single.id, dependency_type="EXCLUDES")],
            ),
        )
        assert [(d.depends_on_option_id, d.dependency_type) for d in joystick.dependencies] == [(single.id, "EXCLUDES")]
        rows = await db.scalar(
            select(func.count()).select_from(OptionDependency).where(OptionDependency.option_id == joystick.id)
        )
        assert rows == 1

        single = await ProductConfigurationService.reload_option(db, single.id)
        assert [d.option_id for d in single.dependents] == [joystick.id]

    @pytest.mark.asyncio
    async def test_duplicate_dependencies_collapse(self, db, catalogue):
        twin = await _option(db, catalogue.engine, "TWIN")
        dependency = DependencyIn(depends_on_option_id=twin.id, dependency_type="REQUIRES")
        joystick = await _option(db, catalogue.engine, "JOYSTICK", dependencies=[dependency, dependency])
        assert len(joystick.dependencies) == 1

    @pytest.mark.asyncio
    async def test_self_dependency_is_400(self, db, catalogue):
        twin = await _option(db, catalogue.engine, "TWIN")
        with pytest.raises(HTTPException) as exc:
            await ProductConfigurationService.upsert_option(
                db,
                OptionUpsert(
                    id=twin.id, component_id=catalogue.engine.id, code="TWIN", name="Twin",
                    dependencies=[DependencyIn(depends_on_option_id=twin.id, dependency_type="REQUIRES")],
                ),
            )
        assert exc.value.detail == "Option cannot depend on itself"

    @pytest.mark.asyncio
    async def test_unknown_dependency_is_400(self, db, catalogue):
        ghost = uuid.uuid4()
        with pytest.raises(HTTPException) as exc:
            await _option(
                db, catalogue.engine, "JOYSTICK",
                dependencies=[DependencyIn(depends_on_option_id=ghost, dependency_type="REQUIRES")],
            )
        assert exc.value.status_code == 400
        assert exc.value.detail == f"Unknown dependency option IDs: {ghost}"

    @pytest.mark.asyncio
    async def test_default_moves_between_options(self, db, catalogue):
        single = await _option(db, catalogue.engine, "SINGLE", is_default=True)
        engine = await ProductConfigurationService.reload_component(db, catalogue.engine.id)
        assert engine.default_option_id == single.id

        twin = await _option(db, catalogue.engine, "TWIN", is_default=True)
        single = await ProductConfigurationService.reload_option(db, single.id)
        engine = await ProductConfigurationService.reload_component(db, catalogue.engine.id)
        assert twin.is_default is True
        assert single.is_default is False
        assert engine.default_option_id == twin.id

    @pytest.mark.asyncio
    async def test_clearing_default_clears_component(self, db, catalogue):
        single = await _option(db, catalogue.engine, "SINGLE", is_default=True)
        await ProductConfigurationService.upsert_option(
            db, OptionUpsert(id=single.id, component_id=catalogue.engine.id, code="SINGLE", name="Single"),
        )
        engine = await ProductConfigurationService.reload_component(db, catalogue.engine.id)
        assert engine.default_option_id is None


# =============================================================================
# API
# =============================================================================

class TestProductEndpoints:

    @pytest.mark.asyncio
    async def test_models_list_active_trims_by_name(self, client, plant, catalogue):
        resp = await client.get("/api/v1/product-models", headers=auth_headers(plant.kitter))
        assert resp.status_code == 200
        models = resp.json()["data"]
        assert [m["name"] for m in models] == ["LX24", "LX26"]
        assert [t["name"] for t in models[0]["trims"]] == ["Fish", "Sport"]

    @pytest.mark.asyncio
    async def test_trims_for_unknown_model_is_404(self, client, plant, catalogue):
        resp = await client.get(f"/api/v1/product-models/{uuid.uuid4()}/trims", headers=auth_headers(plant.kitter))
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_generate_sku(self, client, plant, catalogue):
        resp = await client.post(
            "/api/v1/sku/generate",
            json={"product_model_id": str(catalogue.lx24.id), "product_trim_id": str(catalogue.sport.id), "year": 2026},
            headers=auth_headers(plant.supervisor),
        )
        assert resp.status_code == 200
        assert resp.json()["data"] == {"sku": "2026-LX24-Sport", "year": 2026, "model": "LX24", "trim": "Sport"}

    @pytest.mark.asyncio
    async def test_generate_sku_with_mismatched_trim(self, client, plant, catalogue):
        resp = await client.post(
            "/api/v1/sku/generate",
            json={"product_model_id": str(catalogue.lx26.id), "product_trim_id": str(catalogue.sport.id)},
            headers=auth_headers(plant.supervisor),
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Selected trim does not belong to the selected model"


class TestConfigurationEndpoints:

    @pytest.mark.asyncio
    async def test_operators_cannot_read(self, client, plant, catalogue):
        resp = await client.get(
            f"/api/v1/product-configurations/{catalogue.lx24.id}", headers=auth_headers(plant.kitter),
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_supervisors_read_but_cannot_write(self, client, plant, catalogue):
        headers = auth_headers(plant.supervisor)
        resp = await client.get(f"/api/v1/product-configurations/{catalogue.lx24.id}", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["meta"]["total_count"] == 1

        resp = await client.post(
            "/api/v1/product-configurations/sections",
            json={"product_model_id": str(catalogue.lx24.id), "code": "HELM", "name": "Helm", "is_required": False},
            headers=headers,
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_builds_tree(self, client, plant, catalogue):
        headers = auth_headers(plant.admin)
        section = (await client.post(
            "/api/v1/product-configurations/sections",
            json={
                "product_model_id": str(catalogue.lx24.id), "product_trim_id": str(catalogue.sport.id),
                "code": "HELM", "name": "Helm", "sort_order": 2, "is_required": False,
            },
            headers=headers,
        )).json()["data"]
        assert section["product_trim_name"] == "Sport"

        component = (await client.post(
            "/api/v1/product-configurations/components",
            json={"section_id": section["id"], "code": "SEAT", "name": "Seat", "is_required": True, "allow_multiple": False},
            headers=headers,
        )).json()["data"]
        bench = (await client.post(
            "/api/v1/product-configurations/options",
            json={"component_id": component["id"], "code": "BENCH", "name": "Bench", "is_default": True},
            headers=headers,
        )).json()["data"]
        resp = await client.put(
            "/api/v1/product-configurations/options",
            json={
                "component_id": component["id"], "code": "BOLSTER", "name": "Bolster", "sort_order": 1,
                "dependencies": [{"depends_on_option_id": bench["id"], "dependency_type": "EXCLUDES"}],
            },
            headers=headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["dependencies"][0]["dependency_type"] == "EXCLUDES"

        resp = await client.get(
            f"/api/v1/product-configurations/{catalogue.lx24.id}",
            params={"trimId": str(catalogue.sport.id)},
            headers=headers,
        )
        sections = resp.json()["data"]
        assert [s["code"] for s in sections] == ["HELM"]
        seat = sections[0]["components"][0]
        assert seat["default_option_id"] == bench["id"]
        assert [o["code"] for o in seat["options"]] == ["BENCH", "BOLSTER"]
        assert seat["options"][0]["dependents"][0]["dependency_type"] == "EXCLUDES"

    @pytest.mark.asyncio
    async def test_bad_dependency_is_rejected_in_envelope(self, client, plant, catalogue):
        resp = await client.post(
            "/api/v1/product-configurations/options",
            json={
                "component_id": str(catalogue.engine.id), "code": "JOYSTICK", "name": "Joystick",
                "dependencies": [{"depends_on_option_id": str(uuid.uuid4()), "dependency_type": "REQUIRES"}],
            },
            headers=auth_headers(plant.admin),
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["data"] is None
        assert body["error"]["message"].startswith("Unknown dependency option IDs")
