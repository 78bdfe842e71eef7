"""HULLWORKS MES — Product catalogue, SKU and configuration schemas."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from hullworks.models.product import DependencyType


# ── Catalogue ───────────────────────────────────────────────────────────────
class ProductTrimResponse(BaseModel):
    id: UUID
    product_model_id: UUID
    name: str
    description: str | None = None
    is_active: bool
    created_at: datetime | None = None


class ProductModelResponse(BaseModel):
    id: UUID
    name: str
    description: str | None = None
    is_active: bool
    trims: list[ProductTrimResponse] = []
    created_at: datetime | None = None


class SkuGenerateRequest(BaseModel):
    product_model_id: UUID
    product_trim_id: UUID
    year: int | None = Field(None, ge=1900, le=9999)


class SkuResponse(BaseModel):
    sku: str
    year: int
    model: str
    trim: str


# ── Configuration tree ──────────────────────────────────────────────────────
class SectionUpsert(BaseModel):
    """Create when ``id`` is omitted, otherwise update that section."""

    id: UUID | None = None
    product_model_id: UUID
    product_trim_id: UUID | None = None
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    sort_order: int = 0
    is_required: bool


class ComponentUpsert(BaseModel):
    id: UUID | None = None
    section_id: UUID
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    is_required: bool
    allow_multiple: bool
    default_option_id: UUID | None = None
    sort_order: int = 0


class DependencyIn(BaseModel):
    depends_on_option_id: UUID
    dependency_type: DependencyType


class OptionUpsert(BaseModel):
    id: UUID | None = None
    component_id: UUID
    code: str = Field(..., min_length=1, max_length=50)
    part_number: str | None = Field(None, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    is_active: bool = True
    is_default: bool = False
    sort_order: int = Field(0, ge=0)
    dependencies: list[DependencyIn] = []


class DependencyResponse(BaseModel):
    id: UUID
    option_id: UUID
    depends_on_option_id: UUID
    dependency_type: str


class OptionResponse(BaseModel):
    id: UUID
    component_id: UUID
    code: str
    part_number: str | None = None
    name: str
    description: str | None = None
    is_active: bool
    is_default: bool
    sort_order: int
    dependencies: list[DependencyResponse] = []
    dependents: list[DependencyResponse] = []


class ComponentResponse(BaseModel):
    id: UUID
    section_id: UUID
    code: str
    name: str
    description: str | None = None
    is_required: bool
    allow_multiple: bool
    default_option_id: UUID | None = None
    sort_order: int
    options: list[OptionResponse] = []


class SectionResponse(BaseModel):
    id: UUID
    product_model_id: UUID
    product_model_name: str | None = None
    product_trim_id: UUID | None = None
    product_trim_name: str | None = None
    code: str
    name: str
    description: str | None = None
    sort_order: int
    is_required: bool
    components: list[ComponentResponse] = []
