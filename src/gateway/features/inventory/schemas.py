from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from ...common.schemas import PaginatedEnvelope


class InventoryFilters(BaseModel):
    ciudad: Optional[str] = Field(None, description="City of the warehouse")
    empresa: Optional[str] = Field(None, description="Company code (CBB, HKA, ...)")
    nom_gru: Optional[str] = Field(None, description="Product group name")


class InventorySummary(BaseModel):
    total_existencia: float = Field(0, description="Units in stock across the filtered rows")
    total_valor: float = Field(0, description="Stock value across the filtered rows")
    total_productos: float = Field(0, description="Distinct item codes")
    total_bodegas: float = Field(0, description="Distinct warehouses")


class InventoryResponse(PaginatedEnvelope):
    filters: InventoryFilters
    summary: InventorySummary
    data: List[Dict[str, Any]]


class BrandStock(BaseModel):
    marca: str
    productos: int
    existencia: float
    valor: float


class BrandInventoryResponse(PaginatedEnvelope):
    filters: InventoryFilters
    summary: InventorySummary
    data: List[BrandStock]
