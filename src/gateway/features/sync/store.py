"""WooCommerce product lookups and updates over ``wp_posts``/``wp_postmeta``."""
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

from ...core import config
from ...core.database import Database
from .schemas import StoreProduct, SyncTuple

logger = logging.getLogger(__name__)

SKU_KEY = "_sku"
REGULAR_PRICE_KEY = "_regular_price"
SALE_PRICE_KEY = "_sale_price"
PRICE_KEY = "_price"
STOCK_KEY = "_stock"
PRICE_META_KEYS = (REGULAR_PRICE_KEY, SALE_PRICE_KEY, PRICE_KEY, STOCK_KEY)

PRODUCT_TYPES = ("product", "product_variation")
TRASHED = "trash"


class StoreCatalog:
    """Read and write access to the store's product metadata.

    Products are matched by ``_sku`` first and by the alternate identifier
    meta key second; trashed posts are never matched.
    """

    def __init__(
        self,
        db: Database,
        table_prefix: str = config.WP_TABLE_PREFIX,
        alt_sku_key: str = config.WP_ALT_SKU_KEY,
    ):
        self.db = db
        self.posts = f"{table_prefix}posts"
        self.postmeta = f"{table_prefix}postmeta"
        self.alt_sku_key = alt_sku_key

    @property
    def identifier_keys(self) -> tuple:
        return (SKU_KEY, self.alt_sku_key) if self.alt_sku_key else (SKU_KEY,)

    def _match_sql(self, code_count: int) -> str:
        ph = self.db.dialect.placeholder
        placeholders = self.db.dialect.placeholders
        return (
            f"SELECT p.ID AS post_id, p.post_title AS title, m.meta_key AS matched_on, m.meta_value AS code "
            f"FROM {self.posts} p INNER JOIN {self.postmeta} m ON m.post_id = p.ID "
            f"WHERE m.meta_key IN ({placeholders(len(self.identifier_keys))}) "
            f"AND m.meta_value IN ({placeholders(code_count)}) "
            f"AND p.post_type IN ({placeholders(len(PRODUCT_TYPES))}) "
            f"AND p.post_status <> {ph} "
            f"ORDER BY CASE WHEN m.meta_key = {ph} THEN 0 ELSE 1 END, p.ID"
        )

    def _match_params(self, codes: Sequence[str]) -> list:
        return [*self.identifier_keys, *codes, *PRODUCT_TYPES, TRASHED, SKU_KEY]

    async def _load_metas(self, post_ids: Iterable[int]) -> Dict[int, Dict[str, Optional[str]]]:
        post_ids = list(post_ids)
        placeholders = self.db.dialect.placeholders
        rows = await self.db.fetch_all(
            f"SELECT post_id, meta_key, meta_value FROM {self.postmeta} "
            f"WHERE post_id IN ({placeholders(len(post_ids))}) "
            f"AND meta_key IN ({placeholders(len(PRICE_META_KEYS))})",
            [*post_ids, *PRICE_META_KEYS],
        )
        metas: Dict[int, Dict[str, Optional[str]]] = defaultdict(dict)
        for row in rows:
            value = row["meta_value"]
            metas[int(row["post_id"])][row["meta_key"]] = str(value) if value is not None else None
        return metas

    def _build_product(self, match: dict, metas: Dict[str, Optional[str]]) -> StoreProduct:
        return StoreProduct(
            post_id=int(match["post_id"]),
            code=str(match["code"]).strip(),
            title=(match.get("title") or "").strip(),
            matched_on=match["matched_on"],
            regular_price=metas.get(REGULAR_PRICE_KEY),
            sale_price=metas.get(SALE_PRICE_KEY),
            price=metas.get(PRICE_KEY),
            stock=metas.get(STOCK_KEY),
            meta_keys=sorted(metas),
        )

    async def find_product(self, code: str) -> Optional[StoreProduct]:
        products = await self.find_products([code])
        return products.get(code)

    async def find_products(self, codes: Sequence[str]) -> Dict[str, StoreProduct]:
        """
        Looks up several codes with one match query and one meta query.

        The result is keyed by the requested codes. MySQL compares meta values
        case-insensitively, so a match is assigned to every requested code that
        equals its stored value ignoring case.
        """
        codes = [code for code in dict.fromkeys(codes) if code]
        if not codes:
            return {}
        matches = await self.db.fetch_all(self._match_sql(len(codes)), self._match_params(codes))

        requested: Dict[str, List[str]] = defaultdict(list)
        for code in codes:
            requested[code.strip().casefold()].append(code)

        chosen: Dict[str, dict] = {}
        for match in matches:
            # rows are ordered _sku first, then by post id
            for code in requested.get(str(match["code"]).strip().casefold(), ()):
                chosen.setdefault(code, match)
        if not chosen:
            return {}

        metas = await self._load_metas({int(match["post_id"]) for match in chosen.values()})
        return {
            code: self._build_product(match, metas.get(int(match["post_id"]), {}))
            for code, match in chosen.items()
        }

    async def update_product(self, product: StoreProduct, item: SyncTuple) -> List[str]:
        """
        Writes the catalog price and stock into the product's meta rows.

        All keys are written in one transaction. Existing meta rows are updated
        in place, missing ones are inserted.

        Returns:
            The meta keys written.
        """
        values = {
            REGULAR_PRICE_KEY: str(item.price_before),
            SALE_PRICE_KEY: str(item.price_now),
            PRICE_KEY: str(item.price_now),
            STOCK_KEY: str(item.stock),
        }
        ph = self.db.dialect.placeholder
        async with self.db.transaction() as tx:
            for key, value in values.items():
                if key in product.meta_keys:
                    await tx.execute(
                        f"UPDATE {self.postmeta} SET meta_value = {ph} WHERE post_id = {ph} AND meta_key = {ph}",
                        [value, product.post_id, key],
                    )
                else:
                    await tx.execute(
                        f"INSERT INTO {self.postmeta} (post_id, meta_key, meta_value) VALUES ({ph}, {ph}, {ph})",
                        [product.post_id, key, value],
                    )
        logger.info(f"Updated store product {product.post_id} ({item.code}) to {item.compact()}")
        return list(values)
