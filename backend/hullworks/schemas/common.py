"""HULLWORKS MES — The {data, error, meta} envelope shared by every endpoint."""
from collections.abc import Sized
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class FieldError(BaseModel):
    field: str
    message: str


class ErrorBody(BaseModel):
    """``code`` is machine-readable (NOT_FOUND, VALIDATION_ERROR, ...); ``message`` is for people."""

    code: str
    message: str
    field_errors: list[FieldError] = []


class Meta(BaseModel):
    page: int = 1
    page_size: int = 50
    total_count: int | None = None

    @classmethod
    def whole_list(cls, items: Sized) -> "Meta":
        """Unpaged listing: one page holding everything."""
        return cls(page=1, page_size=len(items), total_count=len(items))


class ApiResponse(BaseModel, Generic[T]):
    data: T | None = None
    error: ErrorBody | None = None
    meta: Meta | None = None
