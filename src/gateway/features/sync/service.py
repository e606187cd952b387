"""Reconciliation of warehouse catalog tuples against the WooCommerce store."""
import asyncio
import datetime
import logging
from typing import List, Optional, Sequence, Union

from ...common.identifiers import generate_ksuid
from ...core import config
from ...core.database import Database
from ...core.errors import BadRequestError, UpstreamDatabaseError
from ..products import service as products_service
from .history import SyncHistory
from .schemas import (
    ABSENT,
    IN_SYNC,
    OUT_OF_SYNC,
    ProductComparison,
    StoreProduct,
    SyncItemError,
    SyncReport,
    SyncRun,
    SyncTuple,
)
from .store import StoreCatalog
from .tuples import parse_sync_batch, round_half_up

logger = logging.getLogger(__name__)


def store_number(value: Optional[str]) -> int:
    """Store meta values are free text; blanks and junk count as 0."""
    if value is None or not str(value).strip():
        return 0
    try:
        return round_half_up(value)
    except ValueError:
        return 0


def compare(item: SyncTuple, product: Optional[StoreProduct]) -> ProductComparison:
    """
    Classifies one catalog tuple against the store product with the same code.

    The store's current price is ``_sale_price`` when set, else ``_price``; its
    prior price is ``_regular_price``. Values are compared as rounded integers.
    """
    if product is None:
        return ProductComparison(
            code=item.code,
            price_now=item.price_now,
            stock=item.stock,
            price_before=item.price_before,
            verdict=ABSENT,
            needs_sync=True,
        )

    current = product.sale_price if product.sale_price and product.sale_price.strip() else product.price
    store_price_now = store_number(current)
    store_stock = store_number(product.stock)
    store_price_before = store_number(product.regular_price)
    matches = (
        store_price_now == item.price_now
        and store_stock == item.stock
        and store_price_before == item.price_before
    )
    return ProductComparison(
        code=item.code,
        price_now=item.price_now,
        stock=item.stock,
        price_before=item.price_before,
        store_post_id=product.post_id,
        store_price_now=store_price_now,
        store_stock=store_stock,
        store_price_before=store_price_before,
        verdict=IN_SYNC if matches else OUT_OF_SYNC,
        needs_sync=not matches,
    )


def build_report(
    checked: Sequence[tuple[SyncTuple, ProductComparison]],
    errors: Sequence[SyncItemError],
) -> SyncReport:
    comparisons = [comparison for _, comparison in checked]
    verdicts = [comparison.verdict for comparison in comparisons]
    return SyncReport(
        total=len(comparisons) + len(errors),
        in_sync=verdicts.count(IN_SYNC),
        out_of_sync=verdicts.count(OUT_OF_SYNC),
        absent_in_secondary=verdicts.count(ABSENT),
        error_count=len(errors),
        sync_payload=",".join(item.compact() for item, comparison in checked if comparison.needs_sync),
        comparisons=list(comparisons),
        errors=list(errors),
    )


async def reconcile(
    tuples: Sequence[SyncTuple],
    catalog: StoreCatalog,
    concurrency: int = config.RECONCILE_CONCURRENCY,
    errors: Optional[Sequence[SyncItemError]] = None,
) -> SyncReport:
    """
    Looks up every tuple in the store and classifies it.

    Lookups run concurrently, at most ``concurrency`` at a time. A failed
    lookup is reported as an error for that tuple only.

    Args:
        tuples: Parsed catalog tuples.
        catalog: The store to compare against.
        concurrency: Maximum number of lookups in flight.
        errors: Errors already collected while parsing the batch.

    Returns:
        The report with comparisons, counts, re-sync payload and errors.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _check(item: SyncTuple) -> Union[ProductComparison, SyncItemError]:
        async with semaphore:
            try:
                product = await catalog.find_product(item.code)
            except UpstreamDatabaseError as exc:
                logger.warning(f"Store lookup for {item.code} failed: {exc.cause!r}")
                return SyncItemError(item=item.compact(), code=item.code, error=exc.message)
        comparison = compare(item, product)
        logger.debug(f"{item.code}: {comparison.verdict}")
        return comparison

    results = await asyncio.gather(*(_check(item) for item in tuples))
    checked = [(item, result) for item, result in zip(tuples, results) if isinstance(result, ProductComparison)]
    lookup_errors = [result for result in results if isinstance(result, SyncItemError)]
    report = build_report(checked, [*(errors or []), *lookup_errors])
    logger.info(
        f"Reconciled {report.total} products: {report.in_sync} in sync, "
        f"{report.out_of_sync} out of sync, {report.absent_in_secondary} absent, {report.error_count} errors"
    )
    return report


async def reconcile_batch(
    raw: Union[str, Sequence[str]],
    catalog: StoreCatalog,
    concurrency: int = config.RECONCILE_CONCURRENCY,
) -> tuple[List[SyncTuple], SyncReport]:
    tuples, errors = parse_sync_batch(raw)
    if not tuples and not errors:
        raise BadRequestError(
            "Product codes are required",
            details=[{"field": "cods", "message": "empty batch", "value": raw}],
        )
    return tuples, await reconcile(tuples, catalog, concurrency, errors)


def make_run(
    trigger: str,
    report: SyncReport,
    started_at: datetime.datetime,
    requested_by: Optional[str] = None,
    applied: int = 0,
) -> SyncRun:
    return SyncRun(
        id=generate_ksuid(),
        trigger=trigger,
        requested_by=requested_by,
        started_at=started_at,
        finished_at=datetime.datetime.now(datetime.timezone.utc),
        total=report.total,
        in_sync=report.in_sync,
        out_of_sync=report.out_of_sync,
        absent_in_secondary=report.absent_in_secondary,
        error_count=report.error_count,
        applied=applied,
    )


async def manual_sync(
    raw: Union[str, Sequence[str]],
    apply: bool,
    catalog: StoreCatalog,
    history: SyncHistory,
    requested_by: Optional[str] = None,
) -> tuple[SyncRun, SyncReport, List[str]]:
    """
    Reconciles a batch and, when ``apply`` is set, updates the out-of-sync store products.

    Products absent from the store are reported but never created. A product
    whose update fails is added to the report's errors and the remaining
    products are still written. The run is recorded in the history either way.
    """
    started_at = datetime.datetime.now(datetime.timezone.utc)
    tuples, report = await reconcile_batch(raw, catalog)

    updated: List[str] = []
    attempted = set()
    try:
        if apply:
            by_code = {item.code: item for item in tuples}
            targets = [c for c in report.comparisons if c.verdict == OUT_OF_SYNC]
            products = await catalog.find_products([c.code for c in targets])
            for comparison in targets:
                product = products.get(comparison.code)
                if product is None or comparison.code in attempted:
                    continue
                attempted.add(comparison.code)
                item = by_code[comparison.code]
                try:
                    await catalog.update_product(product, item)
                except UpstreamDatabaseError as exc:
                    logger.warning(f"Store update for {item.code} failed: {exc.cause!r}")
                    report.errors.append(SyncItemError(item=item.compact(), code=item.code, error=exc.message))
                    report.error_count += 1
                    continue
                updated.append(comparison.code)
    finally:
        run = history.record(make_run("manual", report, started_at, requested_by, applied=len(updated)))
    return run, report, updated


async def sync_status(
    pos_db: Database,
    catalog: StoreCatalog,
    history: SyncHistory,
    requested_by: Optional[str] = None,
) -> tuple[SyncRun, SyncReport]:
    """Reconciles the configured warehouse stock against the store without writing anything."""
    started_at = datetime.datetime.now(datetime.timezone.utc)
    priced = await products_service.load_priced_products(
        pos_db, config.SYNC_BODEGA, config.SYNC_SUCURSAL, config.SYNC_EMPRESA
    )
    report = await reconcile([product.to_sync_tuple() for product in priced], catalog)
    run = history.record(make_run("status", report, started_at, requested_by))
    return run, report
