"""Inventory reports over the V_INV_BIN007_POWER_BI_TOTAL warehouse view."""
import logging

from fastapi import Request

from ...common.aggregate import PagedQuery, coerce_summary, run_paged_query
from ...common.pagination import PageRequest, paginate
from ...common.query import FilterField, Predicate, QueryBuilder, text_value
from ...common.rows import clean_row, clean_value
from ...core.database import Database
from .schemas import (
    BrandInventoryResponse,
    BrandStock,
    InventoryFilters,
    InventoryResponse,
    InventorySummary,
)

logger = logging.getLogger(__name__)

VIEW = "V_INV_BIN007_POWER_BI_TOTAL"

# Group names are CHAR(30) in the view; compare them trimmed
INVENTORY_FILTERS = (
    FilterField("ciudad", "ciudad", parse=text_value),
    FilterField("empresa", "empresa", parse=text_value),
    FilterField("nom_gru", "RTRIM(NOM_GRU)", parse=text_value),
)

SUMMARY_SQL = (
    "SUM(EXISTENCIA) AS total_existencia, "
    "SUM(VALOR) AS total_valor, "
    "COUNT(DISTINCT COD_ITEM) AS total_productos, "
    "COUNT(DISTINCT COD_BOD) AS total_bodegas"
)
SUMMARY_FIELDS = tuple(InventorySummary.model_fields)


def inventory_predicate(db: Database, filters: InventoryFilters) -> Predicate:
    return QueryBuilder(db.dialect).filter_by(INVENTORY_FILTERS, filters.model_dump()).build()


async def list_inventory(
    db: Database,
    filters: InventoryFilters,
    page_request: PageRequest,
    request: Request,
) -> InventoryResponse:
    """
    Lists inventory rows matching the filters, one page at a time.

    Args:
        db: The warehouse database handle.
        filters: Optional city, company and group filters.
        page_request: The clamped page and limit.
        request: The incoming request, used to build the navigation links.

    Returns:
        The page of rows with the summary over every matching row.
    """
    query = PagedQuery(
        select="*",
        source=f"FROM {VIEW}",
        order_by="ciudad, COD_ITEM, COD_BOD",
        summary=SUMMARY_SQL,
    )
    result = await run_paged_query(db, query, inventory_predicate(db, filters), page_request)
    return InventoryResponse.from_meta(
        paginate(page_request, result.total, request),
        filters=filters,
        summary=InventorySummary(**coerce_summary(result.summary, SUMMARY_FIELDS)),
        data=[clean_row(row, null="") for row in result.rows],
    )


async def list_inventory_by_brand(
    db: Database,
    filters: InventoryFilters,
    page_request: PageRequest,
    request: Request,
) -> BrandInventoryResponse:
    """
    Aggregates the filtered inventory by brand.

    Pagination applies to brands; the summary still covers every matching row.
    """
    query = PagedQuery(
        select=(
            "RTRIM(DES_MAR) AS marca, "
            "COUNT(DISTINCT COD_ITEM) AS productos, "
            "SUM(EXISTENCIA) AS existencia, "
            "SUM(VALOR) AS valor"
        ),
        source=f"FROM {VIEW}",
        order_by="marca",
        summary=SUMMARY_SQL,
        group_by="RTRIM(DES_MAR)",
    )
    result = await run_paged_query(db, query, inventory_predicate(db, filters), page_request)
    brands = [
        BrandStock(
            marca=clean_value(row["marca"]) or "",
            productos=int(clean_value(row["productos"]) or 0),
            existencia=clean_value(row["existencia"]) or 0,
            valor=clean_value(row["valor"]) or 0,
        )
        for row in result.rows
    ]
    return BrandInventoryResponse.from_meta(
        paginate(page_request, result.total, request),
        filters=filters,
        summary=InventorySummary(**coerce_summary(result.summary, SUMMARY_FIELDS)),
        data=brands,
    )
