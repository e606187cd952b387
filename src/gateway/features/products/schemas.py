from pydantic import Field
from typing import Any, Dict, List, Optional

from ...common.schemas import APIModel, Envelope, RowsEnvelope
from ..sync.schemas import StoreProduct, SyncTuple


class PricedProduct(APIModel):
    """A warehouse product with its current and prior list prices."""

    codigo: str
    descripcion: str
    precio_anterior: int
    precio_actual: int
    existencia: int

    def to_sync_tuple(self) -> SyncTuple:
        return SyncTuple(
            code=self.codigo,
            price_now=self.precio_actual,
            stock=self.existencia,
            price_before=self.precio_anterior,
        )


class PricedProductsResponse(Envelope):
    count: int
    data: List[PricedProduct]
    todos_los_cod: str = Field(..., description="Every product as code:price:stock:priorPrice, comma separated")


class StoreProductsResponse(Envelope):
    count: int
    missing: List[str]
    data: List[StoreProduct]


class CustomQueryRequest(APIModel):
    query: str = Field(..., description="Name of a predefined query", examples=["item-prices"])
    database: Optional[str] = Field(None, description="Database alias; must match the query's database")
    params: Dict[str, Any] = Field(default_factory=dict)


class CustomQueryResponse(RowsEnvelope):
    query: str
    database: str


class NamedQueryInfo(APIModel):
    name: str
    database: str
    description: str
    params: List[str]


class NamedQueriesResponse(Envelope):
    data: List[NamedQueryInfo]
