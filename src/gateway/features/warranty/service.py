"""Extended-warranty sales report, read from the sales database.

Sale lines of the warranty brand are joined with their document header,
seller, item hierarchy, branch, cost centre, warehouse and customer. The
customer sub-select classifies buyers with more than one sales document as
returning customers.
"""
import logging
from typing import Optional

from fastapi import Request

from ...common.aggregate import PagedQuery, coerce_summary, run_paged_query
from ...common.pagination import PageRequest, paginate
from ...common.query import FilterField, QueryBuilder, int_value
from ...common.rows import DATE, NUMBER, Column, RowMapper
from ...core import config
from ...core.database import Database, Dialect
from .schemas import WarrantyResponse, WarrantyRow, WarrantySummary

logger = logging.getLogger(__name__)

SALES_DOCUMENT_TYPES = ("010", "510", "302")
EXCLUDED_SUBGROUP = "PUBLICIDAD Y MERCADEO"

ROW_MAPPER = RowMapper(
    [
        Column("empresa", "empresa"),
        Column("vendedor_codigo", "vendedor"),
        Column("vendedor_nombre", "nom_ven"),
        Column("item_codigo", "item"),
        Column("item_descripcion", "des_item"),
        Column("marca_codigo", "cod_mar"),
        Column("marca_descripcion", "des_mar"),
        Column("grupo_codigo", "cod_grupo"),
        Column("grupo_nombre", "nom_gru"),
        Column("subgrupo_codigo", "cod_subgrupo"),
        Column("subgrupo_nombre", "nom_sub"),
        Column("sucursal_codigo", "cod_suc"),
        Column("sucursal_nombre", "nom_suc"),
        Column("centro_costo_codigo", "cod_cco"),
        Column("centro_costo_nombre", "nom_cco"),
        Column("fecha", "fecha", DATE),
        Column("hora", "hora"),
        Column("tipo_documento", "tip_doc"),
        Column("numero_documento", "num_doc"),
        Column("cantidad", "cantidad", NUMBER),
        Column("venta_neta", "ven_net", NUMBER),
        Column("monto_iva", "mon_iva", NUMBER),
        Column("valor_definitivo", "val_def", NUMBER),
        Column("forma_pago", "forma_pago"),
        Column("bodega_codigo", "cod_bod"),
        Column("bodega_nombre", "nom_bod"),
        Column("costo_producto", "valor", NUMBER),
        Column("tipo_cliente", "tipo_cliente"),
        Column("cedula", "cedula"),
        Column("cliente_nombre", "nombre"),
        Column("cliente_direccion", "direccion"),
        Column("cliente_telefono", "telefono"),
    ],
    WarrantyRow,
)

# Payment methods, first match wins
PAYMENT_FORMS = (
    ("'13', '41'", "CREDITO H.P.H"),
    ("'37'", "CLIENTES MAYOREO"),
    ("'15'", "CLIENTE INSTITUCIONAL"),
    ("'30'", "CREDIORBE"),
    ("'39'", "SUFI BANCOLOMBIA"),
)

SELECT_SQL = """
    'CBB' AS empresa,
    cab.vendedor, ven.nom_ven,
    cue.item, ite.des_item,
    ite.cod_mar, mar.des_mar,
    ite.cod_grupo, gru.nom_gru,
    ite.cod_subgrupo, sub.nom_sub,
    cab.cod_suc, suc.nom_suc,
    cab.cod_cco, cco.nom_cco,
    cab.fecha, cab.hora, cab.tip_doc, cab.num_doc,
    cue.cantidad, cue.ven_net, cue.mon_iva, cue.val_def,
    {payment_form} AS forma_pago,
    bod.cod_bod, bod.nom_bod,
    ite.cos_pro AS valor,
    temp.tipo_cliente, temp.cedula, temp.nombre, temp.direccion, temp.telefono
"""

SUMMARY_SQL = (
    "SUM(cue.cantidad) AS total_cantidad, "
    "SUM(cue.ven_net) AS total_venta_neta, "
    "SUM(cue.mon_iva) AS total_monto_iva"
)
SUMMARY_FIELDS = tuple(WarrantySummary.model_fields)


def payment_form_sql() -> str:
    branches = "\n".join(
        f"WHEN EXISTS (SELECT 1 FROM ptv_detcuadre_caja caj "
        f"WHERE caj.num_doc = cab.num_doc AND caj.for_pag IN ({codes})) THEN '{label}'"
        for codes, label in PAYMENT_FORMS
    )
    return f"CASE {branches} ELSE 'CONTADO' END"


def source_sql(dialect: Dialect) -> str:
    t = dialect.table
    document_types = ", ".join(f"'{code}'" for code in SALES_DOCUMENT_TYPES)
    return f"""
    FROM {t('inv_cabdoc', 'cab')}
    INNER JOIN {t('inv_cuedoc', 'cue')}
        ON cab.ano_doc = cue.ano_doc AND cab.per_doc = cue.per_doc
        AND cab.tip_doc = cue.tip_doc AND cab.num_doc = cue.num_doc
    INNER JOIN {t('inv_bodegas', 'bod')} ON bod.cod_bod = cue.bodega
    INNER JOIN {t('gen_vendedor', 'ven')} ON cab.vendedor = ven.cod_ven
    INNER JOIN {t('inv_items', 'ite')} ON cue.item = ite.cod_item
    INNER JOIN {t('inv_marca', 'mar')} ON ite.cod_mar = mar.cod_mar
    INNER JOIN {t('inv_grupos', 'gru')} ON ite.cod_grupo = gru.cod_gru
    INNER JOIN {t('inv_subgrupos', 'sub')}
        ON ite.cod_grupo = sub.cod_gru AND ite.cod_subgrupo = sub.cod_sub
    INNER JOIN {t('gen_sucursal', 'suc')} ON cab.cod_suc = suc.cod_suc
    INNER JOIN {t('gen_ccosto', 'cco')} ON cco.cod_cco = cab.cod_cco
    INNER JOIN (
        SELECT
            hdr.cliente,
            cli.nit_cli AS cedula,
            cli.nom_cli AS nombre,
            cli.di1_cli AS direccion,
            cli.te1_cli AS telefono,
            CASE WHEN COUNT(1) > 1 THEN 'CLIENTE ANTIGUO' ELSE 'CLIENTE NUEVO' END AS tipo_cliente
        FROM {t('inv_cabdoc', 'hdr')}
        INNER JOIN cxc_cliente cli ON cli.cod_cli = hdr.cliente
        WHERE hdr.tip_doc IN ({document_types})
        GROUP BY hdr.cliente, cli.nit_cli, cli.nom_cli, cli.di1_cli, cli.te1_cli
    ) temp ON temp.cliente = cab.cliente
    """


async def list_warranty_sales(
    db: Database,
    year: Optional[str],
    page_request: PageRequest,
    request: Request,
) -> WarrantyResponse:
    """
    Lists extended-warranty sale lines for one calendar year.

    Raises:
        BadRequestError: If ``year`` is missing or not numeric.
    """
    dialect = db.dialect
    builder = QueryBuilder(dialect)
    year_value = builder.require(
        FilterField("year", dialect.year("cab.fecha"), parse=int_value, example="2025"),
        year,
    )
    (
        builder.where_in("cab.tip_doc", SALES_DOCUMENT_TYPES)
        .where("cue.cantidad", 0, "gt")
        .where("cue.ven_net", 0, "gt")
        .where("sub.nom_sub", EXCLUDED_SUBGROUP, "ne")
        .where("cab.num_doc", "%<%", "not_like")
        .where("temp.cedula", config.WARRANTY_EXCLUDED_NIT, "ne")
        .where("mar.des_mar", config.WARRANTY_BRAND)
    )

    query = PagedQuery(
        select=SELECT_SQL.format(payment_form=payment_form_sql()),
        source=source_sql(dialect),
        order_by="cab.fecha DESC, cab.num_doc, cue.item",
        summary=SUMMARY_SQL,
    )
    result = await run_paged_query(db, query, builder.build(), page_request)
    return WarrantyResponse.from_meta(
        paginate(page_request, result.total, request),
        year=year_value,
        summary=WarrantySummary(**coerce_summary(result.summary, SUMMARY_FIELDS)),
        data=[ROW_MAPPER(row) for row in result.rows],
    )
