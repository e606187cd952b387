"""Motorcycle catalog: items in stock with their retail price lists."""
import datetime
import logging
from typing import Optional

from fastapi import Request

from ...common.aggregate import PagedQuery, run_paged_query
from ...common.pagination import PageRequest, paginate
from ...common.query import FilterField, QueryBuilder, int_value
from ...common.rows import clean_row
from ...core.database import Database
from .schemas import CatalogItem, CatalogResponse

logger = logging.getLogger(__name__)

CATALOG_PRICE_LISTS = ("11", "29")


def year_text(raw) -> str:
    # ano_acu is a CHAR(4) column
    return str(int_value(raw))


YEAR_FILTER = FilterField("year", "t2.ano_acu", parse=year_text, example="2025")

SELECT_SQL = (
    "t1.cod_item, t1.des_item, t2.ttun12 AS existencia, t1.por_iva, t3.pre_vta, t3.cod_lis, "
    "(t3.pre_vta * (COALESCE(t1.por_iva, 0) / 100.0)) AS valor_iva, "
    "(t3.pre_vta * (1 + (COALESCE(t1.por_iva, 0) / 100.0))) AS precio_final"
)


def source_sql(db: Database) -> str:
    t = db.dialect.table
    return (
        f"FROM {t('inv_items', 't1')} "
        f"INNER JOIN {t('inv_acum', 't2')} ON t1.cod_item = t2.cod_item "
        f"INNER JOIN {t('inv_lispre', 't3')} ON t1.cod_item = t3.cod_item"
    )


async def list_catalog(
    db: Database,
    year: Optional[str],
    page_request: PageRequest,
    request: Request,
) -> CatalogResponse:
    builder = QueryBuilder(db.dialect)
    year_value = builder.require(YEAR_FILTER, year, default=str(datetime.date.today().year))
    builder.where("t2.ttun12", 1, "gte").where_in("t3.cod_lis", CATALOG_PRICE_LISTS)

    query = PagedQuery(select=SELECT_SQL, source=source_sql(db), order_by="t1.cod_item, t3.cod_lis")
    result = await run_paged_query(db, query, builder.build(), page_request)
    items = [CatalogItem.model_validate(clean_row(row)) for row in result.rows]
    return CatalogResponse.from_meta(
        paginate(page_request, result.total, request),
        year=int(year_value),
        count=len(items),
        data=items,
    )
