"""Filtered WHERE clauses built only from bound parameters.

Each endpoint declares the filters it accepts as ``FilterField`` entries. The
builder turns the caller's values for those fields into predicates whose
values travel as bound parameters; column names and operators only ever come
from the declarations, never from the request.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional, Sequence

from ..core.database import Dialect
from ..core.errors import BadRequestError

OPERATORS = {
    "eq": "=",
    "ne": "<>",
    "lt": "<",
    "lte": "<=",
    "gt": ">",
    "gte": ">=",
    "like": "LIKE",
    "not_like": "NOT LIKE",
}


@dataclass(frozen=True)
class FilterField:
    """One allow-listed filter: query parameter ``param`` applied to ``column``."""

    param: str
    column: str
    operator: str = "eq"
    parse: Callable[[str], Any] = str
    example: str = ""

    def __post_init__(self):
        if self.operator not in OPERATORS:
            raise ValueError(f"Unsupported operator '{self.operator}' for {self.param}")


def text_value(raw: Any) -> str:
    return str(raw).strip()


def int_value(raw: Any) -> int:
    return int(str(raw).strip())


@dataclass
class Predicate:
    sql: str = ""
    params: List[Any] = field(default_factory=list)


class QueryBuilder:
    def __init__(self, dialect: Dialect):
        self.dialect = dialect
        self._clauses: List[str] = []
        self._params: List[Any] = []

    def where(self, column: str, value: Any, operator: str = "eq") -> "QueryBuilder":
        self._clauses.append(f"{column} {OPERATORS[operator]} {self.dialect.placeholder}")
        self._params.append(value)
        return self

    def where_in(self, column: str, values: Sequence[Any]) -> "QueryBuilder":
        if not values:
            # An empty IN list matches nothing
            self._clauses.append("1 = 0")
            return self
        self._clauses.append(f"{column} IN ({self.dialect.placeholders(len(values))})")
        self._params.extend(values)
        return self

    def filter_by(self, fields: Sequence[FilterField], values: Mapping[str, Any]) -> "QueryBuilder":
        """Adds one predicate per declared field that has a non-empty value.

        Keys of ``values`` that are not declared in ``fields`` are ignored.
        """
        for filter_field in fields:
            raw = values.get(filter_field.param)
            if raw is None or str(raw).strip() == "":
                continue
            self.where(filter_field.column, parse_value(filter_field, raw), filter_field.operator)
        return self

    def require(self, filter_field: FilterField, raw: Any, default: Any = None) -> Any:
        """Adds a mandatory predicate and returns the value it was bound to."""
        if raw is None or str(raw).strip() == "":
            if default is None:
                raise BadRequestError(
                    f"The '{filter_field.param}' parameter is required"
                    + (f", e.g. ?{filter_field.param}={filter_field.example}" if filter_field.example else ""),
                    details=[{"field": filter_field.param, "message": "required", "value": raw}],
                )
            value = default
        else:
            value = parse_value(filter_field, raw)
        self.where(filter_field.column, value, filter_field.operator)
        return value

    def build(self) -> Predicate:
        if not self._clauses:
            return Predicate()
        return Predicate("WHERE " + " AND ".join(self._clauses), list(self._params))


def parse_value(filter_field: FilterField, raw: Any) -> Any:
    try:
        return filter_field.parse(raw)
    except (TypeError, ValueError):
        example = f", e.g. ?{filter_field.param}={filter_field.example}" if filter_field.example else ""
        problem = "must be numeric" if filter_field.parse in (int, int_value) else "has an invalid value"
        raise BadRequestError(
            f"The '{filter_field.param}' parameter {problem}{example}",
            details=[{"field": filter_field.param, "message": "invalid value", "value": raw}],
        ) from None


def order_by_clause(requested: Optional[str], allowed: Sequence[str], default: str) -> str:
    """Returns ``requested`` only if every listed column is allow-listed."""
    if not requested:
        return default
    columns = [column.strip() for column in requested.split(",")]
    allowed_lower = {column.lower(): column for column in allowed}
    if not columns or any(column.lower() not in allowed_lower for column in columns):
        return default
    return ", ".join(allowed_lower[column.lower()] for column in columns)
