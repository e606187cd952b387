"""Product stock and price lists from the point-of-sale database.

Both sources are stored procedures: ``Consulta_Bodega_existencia`` returns the
stock of one warehouse and ``Consulta_Listas`` the price lists of one branch.
"""
import asyncio
import logging
from typing import Any, Dict, List, Mapping, Sequence

from ...common.rows import clean_row
from ...core import config
from ...core.database import Database
from ..sync.tuples import format_sync_batch, round_half_up
from .schemas import PricedProduct

logger = logging.getLogger(__name__)

STOCK_PROCEDURE = "Consulta_Bodega_existencia"
PRICE_LIST_PROCEDURE = "Consulta_Listas"


async def get_stock(db: Database, bodega: str, sucursal: str, empresa: str) -> List[Dict[str, Any]]:
    rows = await db.call_procedure(STOCK_PROCEDURE, [bodega, sucursal, empresa])
    return [clean_row(row) for row in rows]


async def get_price_lists(db: Database, lista: str, sucursal: str) -> List[Dict[str, Any]]:
    rows = await db.call_procedure(PRICE_LIST_PROCEDURE, [lista, sucursal])
    return [clean_row(row) for row in rows]


def price_maps(price_rows: Sequence[Mapping[str, Any]]) -> tuple[Dict[str, int], Dict[str, int]]:
    """Splits price-list rows into (prior prices, current prices) by product code."""
    before: Dict[str, int] = {}
    now: Dict[str, int] = {}
    for row in price_rows:
        code = str(row.get("cod_item") or "").strip()
        price_list = str(row.get("cod_lis") or "").strip()
        if not code or row.get("precioiva") is None:
            continue
        if price_list == config.PRICE_LIST_BEFORE:
            before[code] = round_half_up(row["precioiva"])
        elif price_list == config.PRICE_LIST_NOW:
            now[code] = round_half_up(row["precioiva"])
    return before, now


def merge_prices(
    stock_rows: Sequence[Mapping[str, Any]],
    price_rows: Sequence[Mapping[str, Any]],
) -> List[PricedProduct]:
    """
    Joins stock with prices.

    Codes containing ``/`` and rows with negative stock are left out; a code
    missing from a price list gets price 0.
    """
    before, now = price_maps(price_rows)
    products = []
    for row in stock_rows:
        code = str(row.get("cod_item") or "").strip()
        stock = round_half_up(row.get("existencia") or 0)
        if not code or "/" in code or stock < 0:
            continue
        products.append(
            PricedProduct(
                codigo=code,
                descripcion=str(row.get("des_item") or "").strip(),
                precio_anterior=before.get(code, 0),
                precio_actual=now.get(code, 0),
                existencia=stock,
            )
        )
    return products


async def load_priced_products(db: Database, bodega: str, sucursal: str, empresa: str) -> List[PricedProduct]:
    stock_rows, price_rows = await asyncio.gather(
        get_stock(db, bodega, sucursal, empresa),
        get_price_lists(db, bodega, sucursal),
    )
    products = merge_prices(stock_rows, price_rows)
    logger.debug(f"{len(products)} priced products for bodega {bodega}/{sucursal}")
    return products


def compact_catalog(products: Sequence[PricedProduct]) -> str:
    return format_sync_batch(product.to_sync_tuple() for product in products)
