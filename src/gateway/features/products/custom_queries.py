"""Predefined, parameterised queries callers can run by name.

Only the statements registered here can run; caller input only ever reaches
the database as bound parameters.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ...common.query import FilterField, parse_value, text_value
from ...common.rows import clean_row
from ...core import config
from ...core.database import CATALOG, SALES, STORE, WAREHOUSE, Databases, Dialect
from ...core.errors import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)

# Every query returns at most this many rows
ROW_CAP = 1000


@dataclass(frozen=True)
class NamedQuery:
    name: str
    database: str
    description: str
    build: Callable[[Dialect], str]
    params: Tuple[FilterField, ...] = ()


def _limited(dialect: Dialect, sql: str) -> str:
    if dialect.offset_fetch:
        return f"{sql} OFFSET 0 ROWS FETCH NEXT {ROW_CAP} ROWS ONLY"
    return f"{sql} LIMIT {ROW_CAP}"


NAMED_QUERIES: Dict[str, NamedQuery] = {
    query.name: query
    for query in (
        NamedQuery(
            name="inventory-by-city",
            database=WAREHOUSE,
            description="Stock units and value per city",
            build=lambda d: _limited(
                d,
                "SELECT ciudad, SUM(EXISTENCIA) AS existencia, SUM(VALOR) AS valor "
                "FROM V_INV_BIN007_POWER_BI_TOTAL GROUP BY ciudad ORDER BY ciudad",
            ),
        ),
        NamedQuery(
            name="item-stock",
            database=CATALOG,
            description="Yearly stock accumulators of one item",
            build=lambda d: _limited(
                d,
                f"SELECT cod_item, ano_acu, ttun12 AS existencia FROM {d.table('inv_acum')} "
                f"WHERE cod_item = {d.placeholder} ORDER BY ano_acu",
            ),
            params=(FilterField("cod_item", "cod_item", parse=text_value, example="MOTO01"),),
        ),
        NamedQuery(
            name="item-prices",
            database=CATALOG,
            description="Every price list entry of one item",
            build=lambda d: _limited(
                d,
                f"SELECT cod_item, cod_lis, pre_vta FROM {d.table('inv_lispre')} "
                f"WHERE cod_item = {d.placeholder} ORDER BY cod_lis",
            ),
            params=(FilterField("cod_item", "cod_item", parse=text_value, example="MOTO01"),),
        ),
        NamedQuery(
            name="customer-documents",
            database=SALES,
            description="Sales documents of one customer, newest first",
            build=lambda d: _limited(
                d,
                f"SELECT tip_doc, num_doc, fecha FROM {d.table('inv_cabdoc')} "
                f"WHERE cliente = {d.placeholder} ORDER BY fecha DESC",
            ),
            params=(FilterField("cliente", "cliente", parse=text_value, example="C001"),),
        ),
        NamedQuery(
            name="store-product-meta",
            database=STORE,
            description="Every meta value of one store product",
            build=lambda d: _limited(
                d,
                f"SELECT post_id, meta_key, meta_value FROM {config.WP_TABLE_PREFIX}postmeta "
                f"WHERE post_id = {d.placeholder} ORDER BY meta_key",
            ),
            params=(FilterField("post_id", "post_id", parse=int, example="42"),),
        ),
    )
}


def get_named_query(name: str) -> NamedQuery:
    try:
        return NAMED_QUERIES[name]
    except KeyError:
        raise NotFoundError(
            f"Unknown query '{name}'",
            details={"available": sorted(NAMED_QUERIES)},
        ) from None


def bind_params(query: NamedQuery, raw: Mapping[str, Any]) -> List[Any]:
    values = []
    for param in query.params:
        value = raw.get(param.param)
        if value is None or str(value).strip() == "":
            raise BadRequestError(
                f"Query '{query.name}' requires the '{param.param}' parameter",
                details=[{"field": f"params.{param.param}", "message": "required", "value": value}],
            )
        values.append(parse_value(param, value))
    return values


async def run_named_query(
    databases: Databases,
    name: str,
    params: Mapping[str, Any],
    database: Optional[str] = None,
) -> Tuple[NamedQuery, List[Dict[str, Any]]]:
    query = get_named_query(name)
    if database and database != query.database:
        raise BadRequestError(
            f"Query '{name}' runs on the '{query.database}' database, not '{database}'",
            details=[{"field": "database", "message": "mismatch", "value": database}],
        )
    db = databases.get(query.database)
    rows = await db.fetch_all(query.build(db.dialect), bind_params(query, params))
    logger.info(f"Custom query '{name}' on {query.database} returned {len(rows)} rows")
    return query, [clean_row(row) for row in rows]
