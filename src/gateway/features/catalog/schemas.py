from pydantic import BaseModel
from typing import List, Optional

from ...common.schemas import PaginatedEnvelope


class CatalogItem(BaseModel):
    cod_item: str
    des_item: str
    existencia: float
    por_iva: Optional[float] = None
    pre_vta: float
    cod_lis: str
    valor_iva: float
    precio_final: float


class CatalogResponse(PaginatedEnvelope):
    year: int
    count: int
    data: List[CatalogItem]
