"""HULLWORKS MES — Product model, trim and SKU endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.api.deps import CurrentUser, get_db, require_auth
from hullworks.models.product import ProductModel, ProductTrim
from hullworks.schemas.common import ApiResponse
from hullworks.schemas.product import ProductModelResponse, ProductTrimResponse, SkuGenerateRequest, SkuResponse
from hullworks.services.product_service import ProductCatalogService

router = APIRouter()
sku_router = APIRouter()


def _trim_to_response(trim: ProductTrim) -> ProductTrimResponse:
    return ProductTrimResponse(
        id=trim.id,
        product_model_id=trim.product_model_id,
        name=trim.name,
        description=trim.description,
        is_active=trim.is_active,
        created_at=trim.created_at,
    )


def _model_to_response(model: ProductModel) -> ProductModelResponse:
    return ProductModelResponse(
        id=model.id,
        name=model.name,
        description=model.description,
        is_active=model.is_active,
        trims=[_trim_to_response(t) for t in model.trims if t.is_active],
        created_at=model.created_at,
    )


@router.get("", response_model=ApiResponse[list[ProductModelResponse]])
async def list_product_models(
    user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """Active models with their active trims, both by name."""
    models = await ProductCatalogService.list_models(db)
    return ApiResponse(data=[_model_to_response(m) for m in models])


@router.get("/{model_id}/trims", response_model=ApiResponse[list[ProductTrimResponse]])
async def list_product_trims(
    model_id: UUID,
    user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    trims = await ProductCatalogService.list_trims(db, model_id)
    return ApiResponse(data=[_trim_to_response(t) for t in trims])


@sku_router.post("/generate", response_model=ApiResponse[SkuResponse])
async def generate_sku(
    body: SkuGenerateRequest,
    user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """YEAR-MODEL-TRIM, e.g. 2025-LX24-Sport."""
    result = await ProductCatalogService.generate_sku(db, body)
    return ApiResponse(data=SkuResponse(**result))
