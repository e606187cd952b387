from fastapi import APIRouter, Depends, Query, Request
from typing import Annotated, Optional

from ...common.pagination import PageRequest, pagination_params
from ...core.database import Database, get_warehouse_db
from ..auth.security import get_current_user
from . import service
from .schemas import InvoiceFilters, InvoiceResponse

router = APIRouter(
    prefix="/facturacion",
    tags=["Invoices"],
    dependencies=[Depends(get_current_user)],
)


def invoice_filters(
    tienda: Optional[str] = Query(None),
    ano_doc: Optional[str] = Query(None, description="Document year, e.g. 2025"),
    cod_mar: Optional[str] = Query(None),
    cod_grupo: Optional[str] = Query(None),
    cod_subgrupo: Optional[str] = Query(None),
) -> InvoiceFilters:
    return InvoiceFilters(
        tienda=tienda,
        ano_doc=ano_doc,
        cod_mar=cod_mar,
        cod_grupo=cod_grupo,
        cod_subgrupo=cod_subgrupo,
    )


@router.get("", response_model=InvoiceResponse, summary="Paginated sales invoices with totals")
async def get_invoices(
    request: Request,
    db: Annotated[Database, Depends(get_warehouse_db)],
    filters: Annotated[InvoiceFilters, Depends(invoice_filters)],
    page_request: Annotated[PageRequest, Depends(pagination_params())],
    order_by: Optional[str] = Query(None, alias="orderBy", description="Comma-separated columns, e.g. fecha,num_doc"),
):
    return await service.list_invoices(db, filters, order_by, page_request, request)
