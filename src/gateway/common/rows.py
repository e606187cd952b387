"""Row shaping between the warehouse and the API.

Warehouse views expose fixed-width CHAR columns padded with spaces and
DECIMAL columns. ``clean_row`` handles untyped ``SELECT *`` rows (report rows
are cleaned with ``null=""`` so NULL columns read as empty text); ``RowMapper``
renames columns of a known view to stable API names and validates the result
against a typed schema.
"""
import datetime
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Generic, Mapping, Optional, Sequence, Type, TypeVar

from fastapi.encoders import decimal_encoder
from pydantic import BaseModel

TEXT = "text"
NUMBER = "number"
DATE = "date"

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def clean_value(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, Decimal):
        return decimal_encoder(value)
    return value


def clean_row(row: Mapping[str, Any], null: Any = None) -> Dict[str, Any]:
    """Trims and converts every column; NULL columns are replaced by ``null``."""
    return {key: null if value is None else clean_value(value) for key, value in row.items()}


@dataclass(frozen=True)
class Column:
    field: str
    source: str
    kind: str = TEXT


def map_value(value: Any, kind: str) -> Any:
    if value is None:
        return ""
    if kind == NUMBER:
        return decimal_encoder(value) if isinstance(value, Decimal) else value
    if kind == DATE:
        if isinstance(value, (datetime.date, datetime.datetime)):
            return value.isoformat()
        return str(value).strip()
    return str(value).strip()


class RowMapper(Generic[SchemaT]):
    """Maps a raw row onto ``schema`` using the declared columns.

    Source columns that are missing or NULL become ``""``.
    """

    def __init__(self, columns: Sequence[Column], schema: Optional[Type[SchemaT]] = None):
        self.columns = tuple(columns)
        self.schema = schema

    def to_dict(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        return {column.field: map_value(row.get(column.source), column.kind) for column in self.columns}

    def __call__(self, row: Mapping[str, Any]):
        mapped = self.to_dict(row)
        if self.schema is None:
            return mapped
        return self.schema.model_validate(mapped)
