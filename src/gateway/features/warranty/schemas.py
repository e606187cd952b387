from pydantic import BaseModel
from typing import List, Union

from ...common.schemas import APIModel, PaginatedEnvelope

# Absent or NULL source columns surface as ""
Amount = Union[int, float, str]


class WarrantyRow(APIModel):
    """One extended-warranty sale line."""

    empresa: str
    vendedor_codigo: str
    vendedor_nombre: str
    item_codigo: str
    item_descripcion: str
    marca_codigo: str
    marca_descripcion: str
    grupo_codigo: str
    grupo_nombre: str
    subgrupo_codigo: str
    subgrupo_nombre: str
    sucursal_codigo: str
    sucursal_nombre: str
    centro_costo_codigo: str
    centro_costo_nombre: str
    fecha: str
    hora: str
    tipo_documento: str
    numero_documento: str
    cantidad: Amount
    venta_neta: Amount
    monto_iva: Amount
    valor_definitivo: Amount
    forma_pago: str
    bodega_codigo: str
    bodega_nombre: str
    costo_producto: Amount
    tipo_cliente: str
    cedula: str
    cliente_nombre: str
    cliente_direccion: str
    cliente_telefono: str


class WarrantySummary(BaseModel):
    total_cantidad: float = 0
    total_venta_neta: float = 0
    total_monto_iva: float = 0


class WarrantyResponse(PaginatedEnvelope):
    year: int
    summary: WarrantySummary
    data: List[WarrantyRow]
