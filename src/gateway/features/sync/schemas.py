"""Pydantic schemas for product reconciliation between the warehouse catalog and the store."""
import datetime
from pydantic import Field
from typing import Dict, List, Literal, Optional, Union

from ...common.schemas import APIModel, Envelope

SyncVerdict = Literal["in-sync", "out-of-sync", "absent-in-secondary"]

IN_SYNC: SyncVerdict = "in-sync"
OUT_OF_SYNC: SyncVerdict = "out-of-sync"
ABSENT: SyncVerdict = "absent-in-secondary"


class SyncTuple(APIModel):
    """Catalog state of one product, exchanged as ``code:priceNow:stock:priceBefore``."""

    code: str
    price_now: int
    stock: int
    price_before: int = 0

    def compact(self) -> str:
        return f"{self.code}:{self.price_now}:{self.stock}:{self.price_before}"


class StoreProduct(APIModel):
    """A store product and the meta values the reconciliation reads."""

    post_id: int
    code: str
    title: str = ""
    matched_on: str = "_sku"
    regular_price: Optional[str] = None
    sale_price: Optional[str] = None
    price: Optional[str] = None
    stock: Optional[str] = None
    meta_keys: List[str] = Field(default_factory=list)


class ProductComparison(APIModel):
    code: str
    price_now: int
    stock: int
    price_before: int
    store_post_id: Optional[int] = None
    store_price_now: Optional[int] = None
    store_stock: Optional[int] = None
    store_price_before: Optional[int] = None
    verdict: SyncVerdict
    needs_sync: bool


class SyncItemError(APIModel):
    item: str
    code: Optional[str] = None
    error: str


class SyncReport(APIModel):
    total: int
    in_sync: int = 0
    out_of_sync: int = 0
    absent_in_secondary: int = 0
    error_count: int = 0
    sync_payload: str = Field("", description="code:price:stock:priorPrice entries needing re-sync, comma separated")
    comparisons: List[ProductComparison] = Field(default_factory=list)
    errors: List[SyncItemError] = Field(default_factory=list)


class SyncRun(APIModel):
    """One reconciliation run recorded in the in-process history."""

    id: str
    trigger: Literal["manual", "status"]
    requested_by: Optional[str] = None
    started_at: datetime.datetime
    finished_at: datetime.datetime
    total: int
    in_sync: int
    out_of_sync: int
    absent_in_secondary: int
    error_count: int
    applied: int = 0


class CompareRequest(APIModel):
    cods: Union[str, List[str]] = Field(
        ...,
        description="Compact tuples, as one comma-separated string or a list",
        examples=["MOTO01:5000000:3:5200000,CASCO9:180000:10:0"],
    )


class ManualSyncRequest(APIModel):
    product_codes: Union[str, List[str]] = Field(..., description="Compact tuples to reconcile")
    apply: bool = Field(False, description="Write the catalog values into out-of-sync store products")


class SyncReportResponse(Envelope):
    report: SyncReport


class ManualSyncResponse(Envelope):
    run: SyncRun
    report: SyncReport
    updated: List[str] = Field(default_factory=list)


class SyncStatusResponse(Envelope):
    run: SyncRun
    counts: Dict[str, int]
    sync_payload: str


class SyncHistoryResponse(Envelope):
    count: int
    data: List[SyncRun]
