"""Response envelope models shared by the reporting endpoints."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .pagination import PaginationMeta


class APIModel(BaseModel):
    """Base model serialised with camelCase keys (``total_pages`` -> ``totalPages``)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        protected_namespaces=(),
    )


class Envelope(APIModel):
    success: bool = True
    message: Optional[str] = None


class PaginatedEnvelope(Envelope):
    page: int = Field(..., description="Current page (1-indexed)")
    limit: int = Field(..., description="Effective page size after clamping")
    total: int = Field(..., ge=0, description="Rows matching the filters")
    total_pages: int = Field(..., ge=0)
    has_next: bool
    has_prev: bool
    next: Optional[str] = Field(None, description="URL of the next page, null on the last page")
    prev: Optional[str] = Field(None, description="URL of the previous page, null on the first page")

    @classmethod
    def from_meta(cls, meta: PaginationMeta, **fields):
        return cls(
            page=meta.page,
            limit=meta.limit,
            total=meta.total,
            total_pages=meta.total_pages,
            has_next=meta.has_next,
            has_prev=meta.has_prev,
            next=meta.next,
            prev=meta.prev,
            **fields,
        )


class RowsEnvelope(Envelope):
    count: int
    data: List[Dict[str, Any]]
