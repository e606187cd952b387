"""API routes for warehouse products, price lists, the store catalog and predefined queries."""
from fastapi import APIRouter, Depends, Query
from typing import Annotated, Optional

from ...common.schemas import RowsEnvelope
from ...core import config
from ...core.database import Database, Databases, get_databases, get_pos_db, get_store_db
from ...core.errors import BadRequestError
from ..auth.schemas import User
from ..auth.security import get_current_admin_user, get_current_user
from ..sync import service as sync_service
from ..sync.schemas import CompareRequest, SyncReportResponse
from ..sync.store import StoreCatalog
from ..sync.tuples import batch_codes
from . import custom_queries, service
from .schemas import (
    CustomQueryRequest,
    CustomQueryResponse,
    NamedQueriesResponse,
    NamedQueryInfo,
    PricedProductsResponse,
    StoreProductsResponse,
)

router = APIRouter(
    prefix="/productos",
    tags=["Products"],
    dependencies=[Depends(get_current_user)],
)

custom_query_router = APIRouter(prefix="/custom-query", tags=["Products"])


@router.get("/novasoft", response_model=RowsEnvelope, summary="Warehouse stock from the point-of-sale database")
async def get_novasoft_products(
    db: Annotated[Database, Depends(get_pos_db)],
    bodega: str = Query(config.SYNC_BODEGA),
    sucursal: str = Query(config.SYNC_SUCURSAL),
    empresa: str = Query(config.SYNC_EMPRESA),
):
    rows = await service.get_stock(db, bodega, sucursal, empresa)
    return RowsEnvelope(count=len(rows), data=rows)


@router.get("/lista-precios", response_model=RowsEnvelope, summary="Price lists of one branch")
async def get_price_lists(
    db: Annotated[Database, Depends(get_pos_db)],
    lista: str = Query(config.SYNC_BODEGA),
    sucursal: str = Query(config.SYNC_SUCURSAL),
):
    rows = await service.get_price_lists(db, lista, sucursal)
    return RowsEnvelope(count=len(rows), data=rows)


@router.get("/con-precios", response_model=PricedProductsResponse, summary="Stock merged with current and prior prices")
async def get_products_with_prices(
    db: Annotated[Database, Depends(get_pos_db)],
    bodega: str = Query(config.SYNC_BODEGA),
    sucursal: str = Query(config.SYNC_SUCURSAL),
    empresa: str = Query(config.SYNC_EMPRESA),
):
    products = await service.load_priced_products(db, bodega, sucursal, empresa)
    return PricedProductsResponse(
        count=len(products),
        data=products,
        todos_los_cod=service.compact_catalog(products),
    )


@router.get("/virtual-store", response_model=StoreProductsResponse, summary="Store products for the given codes")
async def get_virtual_store_products(
    db: Annotated[Database, Depends(get_store_db)],
    cods: Optional[str] = Query(None, description="Product codes or compact tuples, comma separated"),
):
    codes = batch_codes(cods or "")
    if not codes:
        raise BadRequestError(
            "Product codes are required",
            details=[{"field": "cods", "message": "required", "value": cods}],
        )
    products = await StoreCatalog(db).find_products(codes)
    return StoreProductsResponse(
        count=len(products),
        missing=[code for code in codes if code not in products],
        data=[products[code] for code in codes if code in products],
    )


@router.post("/compare", response_model=SyncReportResponse, summary="Compare catalog tuples with the store")
async def compare_products(
    body: CompareRequest,
    db: Annotated[Database, Depends(get_store_db)],
):
    _, report = await sync_service.reconcile_batch(body.cods, StoreCatalog(db))
    return SyncReportResponse(report=report)


@custom_query_router.get("", response_model=NamedQueriesResponse, summary="List the predefined queries")
async def list_custom_queries(_: Annotated[User, Depends(get_current_admin_user)]):
    return NamedQueriesResponse(
        data=[
            NamedQueryInfo(
                name=query.name,
                database=query.database,
                description=query.description,
                params=[param.param for param in query.params],
            )
            for query in custom_queries.NAMED_QUERIES.values()
        ]
    )


@custom_query_router.post("", response_model=CustomQueryResponse, summary="Run a predefined query by name")
async def run_custom_query(
    body: CustomQueryRequest,
    databases: Annotated[Databases, Depends(get_databases)],
    _: Annotated[User, Depends(get_current_admin_user)],
):
    query, rows = await custom_queries.run_named_query(databases, body.query, body.params, body.database)
    return CustomQueryResponse(query=query.name, database=query.database, count=len(rows), data=rows)
