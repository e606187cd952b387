from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from ...common.schemas import PaginatedEnvelope


class InvoiceFilters(BaseModel):
    tienda: Optional[str] = None
    ano_doc: Optional[str] = Field(None, description="Document year; defaults to the configured invoice year")
    cod_mar: Optional[str] = None
    cod_grupo: Optional[str] = None
    cod_subgrupo: Optional[str] = None


class InvoiceSummary(BaseModel):
    total_cantidad: float = 0
    total_venta_neta: float = 0
    total_monto_iva: float = 0
    total_descuento: float = 0
    total_valor: float = 0
    total_con_iva: float = 0


class InvoiceResponse(PaginatedEnvelope):
    notice: str
    order_by: str
    year: int
    summary: InvoiceSummary
    data: List[Dict[str, Any]]
