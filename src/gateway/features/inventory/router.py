"""API routes for the warehouse inventory report."""
from fastapi import APIRouter, Depends, Query, Request
from typing import Annotated, Optional

from ...common.pagination import PageRequest, pagination_params
from ...core.database import Database, get_warehouse_db
from ..auth.security import get_current_user
from . import service
from .schemas import BrandInventoryResponse, InventoryFilters, InventoryResponse

router = APIRouter(
    prefix="/inventario",
    tags=["Inventory"],
    dependencies=[Depends(get_current_user)],
)


def inventory_filters(
    ciudad: Optional[str] = Query(None, description="City, e.g. AGUACHICA"),
    empresa: Optional[str] = Query(None, description="Company, e.g. CBB"),
    nom_gru: Optional[str] = Query(None, description="Product group, e.g. MOTOCICLETAS"),
) -> InventoryFilters:
    return InventoryFilters(ciudad=ciudad, empresa=empresa, nom_gru=nom_gru)


@router.get(
    "",
    response_model=InventoryResponse,
    summary="Paginated inventory with stock summary",
)
async def get_inventory(
    request: Request,
    db: Annotated[Database, Depends(get_warehouse_db)],
    filters: Annotated[InventoryFilters, Depends(inventory_filters)],
    page_request: Annotated[PageRequest, Depends(pagination_params())],
):
    return await service.list_inventory(db, filters, page_request, request)


@router.get(
    "/marcas",
    response_model=BrandInventoryResponse,
    summary="Inventory aggregated by brand",
)
async def get_inventory_by_brand(
    request: Request,
    db: Annotated[Database, Depends(get_warehouse_db)],
    filters: Annotated[InventoryFilters, Depends(inventory_filters)],
    page_request: Annotated[PageRequest, Depends(pagination_params())],
):
    return await service.list_inventory_by_brand(db, filters, page_request, request)
