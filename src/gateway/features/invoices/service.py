"""Sales invoice report over the V_INV_BVEN020_POWER_BI_TOTAL warehouse view."""
import datetime
import logging
from typing import Optional

from fastapi import Request

from ...common.aggregate import PagedQuery, coerce_summary, run_paged_query
from ...common.pagination import PageRequest, paginate
from ...common.query import FilterField, QueryBuilder, int_value, order_by_clause, text_value
from ...common.rows import clean_row
from ...core import config
from ...core.database import Database
from .schemas import InvoiceFilters, InvoiceResponse, InvoiceSummary

logger = logging.getLogger(__name__)

VIEW = "V_INV_BVEN020_POWER_BI_TOTAL"

YEAR_FILTER = FilterField("ano_doc", "ano_doc", parse=int_value, example="2025")

INVOICE_FILTERS = (
    FilterField("tienda", "tienda", parse=text_value),
    FilterField("cod_mar", "cod_mar", parse=text_value),
    FilterField("cod_grupo", "cod_grupo", parse=text_value),
    FilterField("cod_subgrupo", "cod_subgrupo", parse=text_value),
)

ORDER_COLUMNS = (
    "tip_doc", "num_doc", "fecha", "ven_net", "mon_iva", "valor",
    "cantidad", "tienda", "nom_ven", "des_mar", "nom_gru",
)
DEFAULT_ORDER = "tip_doc, num_doc"

SUMMARY_SQL = (
    "SUM(cantidad) AS total_cantidad, "
    "SUM(ven_net) AS total_venta_neta, "
    "SUM(mon_iva) AS total_monto_iva, "
    "SUM(val_def) AS total_descuento, "
    "SUM(valor) AS total_valor, "
    "SUM(COALESCE(ven_net, 0) + COALESCE(mon_iva, 0)) AS total_con_iva"
)
SUMMARY_FIELDS = tuple(InvoiceSummary.model_fields)


def default_invoice_year(today: Optional[datetime.date] = None) -> int:
    """The configured invoice year, or the current year when none is pinned."""
    if config.INVOICE_DEFAULT_YEAR.strip():
        return int(config.INVOICE_DEFAULT_YEAR)
    return (today or datetime.date.today()).year


async def list_invoices(
    db: Database,
    filters: InvoiceFilters,
    order_by: Optional[str],
    page_request: PageRequest,
    request: Request,
) -> InvoiceResponse:
    builder = QueryBuilder(db.dialect)
    document_type = config.INVOICE_DOCUMENT_TYPE.strip()
    if document_type:
        builder.where("TIPO", document_type)
    year = builder.require(YEAR_FILTER, filters.ano_doc, default=default_invoice_year())
    builder.filter_by(INVOICE_FILTERS, filters.model_dump())

    safe_order = order_by_clause(order_by, ORDER_COLUMNS, DEFAULT_ORDER)
    query = PagedQuery(select="*", source=f"FROM {VIEW}", order_by=safe_order, summary=SUMMARY_SQL)
    result = await run_paged_query(db, query, builder.build(), page_request)

    conditions = [f"TIPO='{document_type}'"] if document_type else []
    conditions.append(f"ano_doc={year}")
    return InvoiceResponse.from_meta(
        paginate(page_request, result.total, request),
        notice=f"Filter: {', '.join(conditions)} - view {VIEW}",
        order_by=safe_order,
        year=year,
        summary=InvoiceSummary(**coerce_summary(result.summary, SUMMARY_FIELDS)),
        data=[clean_row(row, null="") for row in result.rows],
    )
