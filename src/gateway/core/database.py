"""Handles on the external databases.

The gateway owns no schema: Tortoise ORM is only used for its connection
management (one pooled client per database alias). Each client is wrapped in a
``Database`` handle that knows its SQL dialect and converts driver failures
into ``UpstreamDatabaseError``. The handles are created in the application
lifespan, kept on ``app.state.databases`` and handed to routes through the
dependencies at the bottom of this module.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from fastapi import Request
from tortoise import BaseDBAsyncClient, connections
from tortoise.exceptions import BaseORMException
from tortoise.transactions import in_transaction

from . import config
from .errors import UpstreamDatabaseError

logger = logging.getLogger(__name__)

WAREHOUSE = "warehouse"
SALES = "sales"
POS = "pos"
CATALOG = "catalog"
STORE = "store"

SQLSERVER_ALIASES = (WAREHOUSE, SALES, POS, CATALOG)
ALL_ALIASES = SQLSERVER_ALIASES + (STORE,)


@dataclass(frozen=True)
class Dialect:
    """The few pieces of SQL syntax that differ between the backends we talk to."""

    name: str
    placeholder: str
    offset_fetch: bool = False
    nolock: bool = False

    def placeholders(self, count: int) -> str:
        return ", ".join([self.placeholder] * count)

    def paginate(self, offset: int, limit: int) -> tuple[str, list]:
        """Returns the bound pagination clause and its parameters."""
        if self.offset_fetch:
            return (
                f"OFFSET {self.placeholder} ROWS FETCH NEXT {self.placeholder} ROWS ONLY",
                [int(offset), int(limit)],
            )
        return f"LIMIT {self.placeholder} OFFSET {self.placeholder}", [int(limit), int(offset)]

    def year(self, expression: str) -> str:
        if self.name == "sqlite":
            return f"CAST(strftime('%Y', {expression}) AS INTEGER)"
        return f"YEAR({expression})"

    def table(self, name: str, alias: str = "") -> str:
        reference = f"{name} {alias}".strip()
        if self.nolock:
            return f"{reference} WITH (NOLOCK)"
        return reference

    def call_procedure(self, name: str, arg_count: int) -> str:
        if self.name == "mssql":
            return f"EXEC {name} {self.placeholders(arg_count)}".strip()
        if self.name == "mysql":
            return f"CALL {name}({self.placeholders(arg_count)})"
        raise NotImplementedError(f"{self.name} has no stored procedures")


DIALECTS: Dict[str, Dialect] = {
    "mssql": Dialect("mssql", "?", offset_fetch=True, nolock=True),
    "mysql": Dialect("mysql", "%s"),
    "sqlite": Dialect("sqlite", "?"),
}


def get_dialect(name: str) -> Dialect:
    try:
        return DIALECTS[name]
    except KeyError:
        raise ValueError(f"Unsupported SQL dialect: {name}") from None


DRIVER_ERRORS = (BaseORMException, OSError, asyncio.TimeoutError)


class Database:
    def __init__(self, alias: str, client: BaseDBAsyncClient):
        self.alias = alias
        self.client = client
        self.dialect = get_dialect(client.capabilities.dialect)

    def __repr__(self) -> str:
        return f"Database({self.alias!r}, dialect={self.dialect.name!r})"

    async def fetch_all(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        try:
            return await self.client.execute_query_dict(sql, list(params or []))
        except DRIVER_ERRORS as exc:
            logger.error(f"Query on '{self.alias}' failed: {exc!r}")
            raise UpstreamDatabaseError(self.alias, exc) from exc

    async def fetch_one(self, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[Dict[str, Any]]:
        rows = await self.fetch_all(sql, params)
        return rows[0] if rows else None

    async def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        """Runs a statement and returns the number of affected rows."""
        try:
            affected, _ = await self.client.execute_query(sql, list(params or []))
            return affected
        except DRIVER_ERRORS as exc:
            logger.error(f"Statement on '{self.alias}' failed: {exc!r}")
            raise UpstreamDatabaseError(self.alias, exc) from exc

    async def call_procedure(self, name: str, params: Sequence[Any]) -> List[Dict[str, Any]]:
        return await self.fetch_all(self.dialect.call_procedure(name, len(params)), params)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["Database"]:
        """Runs the block in one transaction; it is rolled back if the block raises."""
        try:
            async with in_transaction(self.alias) as conn:
                yield Database(self.alias, conn)
        except DRIVER_ERRORS as exc:
            logger.error(f"Transaction on '{self.alias}' failed: {exc!r}")
            raise UpstreamDatabaseError(self.alias, exc) from exc


@dataclass
class Databases:
    """All database handles of the process, created once by the lifespan."""

    warehouse: Database
    sales: Database
    pos: Database
    catalog: Database
    store: Database

    def get(self, alias: str) -> Database:
        if alias not in ALL_ALIASES:
            raise KeyError(alias)
        return getattr(self, alias)

    @classmethod
    def from_connections(cls) -> "Databases":
        return cls(**{alias: Database(alias, connections.get(alias)) for alias in ALL_ALIASES})


def _sqlserver_connection(database: str) -> dict:
    return {
        "engine": "tortoise.backends.mssql",
        "credentials": {
            "host": config.DB_HOST,
            "port": config.DB_PORT,
            "user": config.DB_USER,
            "password": config.DB_PASSWORD,
            "database": database,
            "driver": config.DB_ODBC_DRIVER,
            "minsize": 1,
            "maxsize": config.DB_POOL_MAX,
        },
    }


def build_tortoise_config() -> dict:
    """Connection-only Tortoise config: one pool per database, no models."""
    return {
        "connections": {
            WAREHOUSE: _sqlserver_connection(config.DB_NAME),
            SALES: _sqlserver_connection(config.DB_SALES_NAME),
            POS: _sqlserver_connection(config.DB_POS_NAME),
            CATALOG: _sqlserver_connection(config.DB_CATALOG_NAME),
            STORE: {
                "engine": "tortoise.backends.mysql",
                "credentials": {
                    "host": config.MYSQL_HOST,
                    "port": config.MYSQL_PORT,
                    "user": config.MYSQL_USER,
                    "password": config.MYSQL_PASSWORD,
                    "database": config.MYSQL_DATABASE,
                    "minsize": 1,
                    "maxsize": config.MYSQL_POOL_MAX,
                    "charset": "utf8mb4",
                },
            },
        },
        "apps": {},
    }


# --- FastAPI dependencies ---

def get_databases(request: Request) -> Databases:
    return request.app.state.databases


def get_warehouse_db(request: Request) -> Database:
    return get_databases(request).warehouse


def get_sales_db(request: Request) -> Database:
    return get_databases(request).sales


def get_pos_db(request: Request) -> Database:
    return get_databases(request).pos


def get_catalog_db(request: Request) -> Database:
    return get_databases(request).catalog


def get_store_db(request: Request) -> Database:
    return get_databases(request).store
