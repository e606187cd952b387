"""
Root conftest for the pytest test suite.

Every test runs against fresh in-memory SQLite databases, one per database
alias, created with the same table and view names the gateway queries in
production. The point-of-sale database only exposes stored procedures, so it is
replaced by ``FakeProcedureDatabase``.

Key Fixtures:
- `initialize_test_db`: (autouse) Creates and seeds the databases for each test.
- `app_for_testing`: The FastAPI app with its production lifespan disabled and
  the test database handles installed on ``app.state``.
- `client`: A non-authenticated httpx AsyncClient.
- `admin_client`, `user_client`, `api_client`: Clients authenticated through
  ``POST /api/auth/login`` as the configured users of each role.
"""

from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any, AsyncGenerator, Dict, Generator, List, Optional, Sequence

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise, connections

from gateway.core.database import (
    CATALOG,
    POS,
    SALES,
    STORE,
    WAREHOUSE,
    Database,
    Databases,
    get_dialect,
)
from gateway.features.sync.history import SyncHistory

# Import the app
from gateway.main import app as actual_app

TEST_DB_CONFIG = {
    "connections": {
        alias: "sqlite://:memory:" for alias in (WAREHOUSE, SALES, POS, CATALOG, STORE)
    },
    "apps": {},
}

TEST_USERS = {
    "admin": ("admin", "admin-dev-password"),
    "user": ("user", "user-dev-password"),
    "api": ("api", "api-dev-password"),
}

WAREHOUSE_SCHEMA = """
CREATE TABLE V_INV_BIN007_POWER_BI_TOTAL (
    empresa TEXT, ciudad TEXT, COD_BOD TEXT, NOM_BOD TEXT, COD_ITEM TEXT,
    DES_ITEM TEXT, DES_MAR TEXT, NOM_GRU TEXT, EXISTENCIA NUMERIC, VALOR NUMERIC
);
CREATE TABLE V_INV_BVEN020_POWER_BI_TOTAL (
    TIPO TEXT, tip_doc TEXT, num_doc TEXT, fecha TEXT, ano_doc INTEGER, tienda TEXT,
    nom_ven TEXT, cod_mar TEXT, des_mar TEXT, cod_grupo TEXT, nom_gru TEXT,
    cod_subgrupo TEXT, cantidad NUMERIC, ven_net NUMERIC, mon_iva NUMERIC,
    val_def NUMERIC, valor NUMERIC
);
"""

SALES_SCHEMA = """
CREATE TABLE inv_cabdoc (
    ano_doc TEXT, per_doc TEXT, tip_doc TEXT, num_doc TEXT, fecha TEXT, hora TEXT,
    vendedor TEXT, cod_suc TEXT, cod_cco TEXT, cliente TEXT
);
CREATE TABLE inv_cuedoc (
    ano_doc TEXT, per_doc TEXT, tip_doc TEXT, num_doc TEXT, item TEXT, bodega TEXT,
    cantidad NUMERIC, ven_net NUMERIC, mon_iva NUMERIC, val_def NUMERIC
);
CREATE TABLE inv_bodegas (cod_bod TEXT, nom_bod TEXT);
CREATE TABLE gen_vendedor (cod_ven TEXT, nom_ven TEXT);
CREATE TABLE inv_items (
    cod_item TEXT, des_item TEXT, cod_mar TEXT, cod_grupo TEXT, cod_subgrupo TEXT, cos_pro NUMERIC
);
CREATE TABLE inv_marca (cod_mar TEXT, des_mar TEXT);
CREATE TABLE inv_grupos (cod_gru TEXT, nom_gru TEXT);
CREATE TABLE inv_subgrupos (cod_gru TEXT, cod_sub TEXT, nom_sub TEXT);
CREATE TABLE gen_sucursal (cod_suc TEXT, nom_suc TEXT);
CREATE TABLE gen_ccosto (cod_cco TEXT, nom_cco TEXT);
CREATE TABLE cxc_cliente (cod_cli TEXT, nit_cli TEXT, nom_cli TEXT, di1_cli TEXT, te1_cli TEXT);
CREATE TABLE ptv_detcuadre_caja (num_doc TEXT, for_pag TEXT);
"""

CATALOG_SCHEMA = """
CREATE TABLE inv_items (cod_item TEXT, des_item TEXT, por_iva NUMERIC);
CREATE TABLE inv_acum (cod_item TEXT, ano_acu TEXT, ttun12 NUMERIC);
CREATE TABLE inv_lispre (cod_item TEXT, cod_lis TEXT, pre_vta NUMERIC);
"""

STORE_SCHEMA = """
CREATE TABLE wp_posts (
    ID INTEGER PRIMARY KEY, post_title TEXT, post_type TEXT, post_status TEXT
);
CREATE TABLE wp_postmeta (
    meta_id INTEGER PRIMARY KEY AUTOINCREMENT, post_id INTEGER, meta_key TEXT, meta_value TEXT
);
"""

# Inventory: fixed-width text columns keep their padding
INVENTORY_ROWS = [
    ("CBB", "AGUACHICA", "001", "BODEGA CENTRO", "M1", "MOTO UNO  ", "HONDA     ", "MOTOCICLETAS  ", 2, 10000000),
    ("CBB", "AGUACHICA", "001", "BODEGA CENTRO", "C9", "CASCO     ", "SHAFT     ", "ACCESORIOS    ", 10, 1800000),
    ("CBB", "OCANA", "002", "BODEGA NORTE", "M1", "MOTO UNO  ", "HONDA     ", "MOTOCICLETAS  ", 1, 5000000),
    ("CBB", "OCANA", "002", "BODEGA NORTE", "M2", "MOTO DOS  ", "YAMAHA    ", "MOTOCICLETAS  ", 3, 12000000),
    ("HKA", "CUCUTA", "080", "BODEGA CUCUTA", "C9", "CASCO     ", "SHAFT     ", "ACCESORIOS    ", 4, 720000),
]

INVOICE_ROWS = [
    ("FACTURA", "010", "F001", "2025-03-10", 2025, "T01", "ANA", "01", "HONDA", "10", "MOTOCICLETAS", "01", 1, 5000000, 950000, 0, 5950000),
    ("FACTURA", "010", "F002", "2025-04-11", 2025, "T02", "LUIS", "02", "YAMAHA", "10", "MOTOCICLETAS", "01", 2, 8000000, 1520000, 100000, 9420000),
    ("FACTURA", "010", "F003", "2025-05-12", 2025, "T01", "ANA", "03", "SHAFT", "20", "ACCESORIOS", "05", 3, 450000, 85500, None, 535500),
    ("NOTA", "020", "N001", "2025-05-13", 2025, "T01", "ANA", "01", "HONDA", "10", "MOTOCICLETAS", "01", 1, 100000, 19000, 0, 119000),
    ("FACTURA", "010", "F900", "2024-12-30", 2024, "T01", "ANA", "01", "HONDA", "10", "MOTOCICLETAS", "01", 1, 4000000, 760000, 0, 4760000),
]

SALES_SEED = {
    "inv_bodegas": [("001", "BODEGA CENTRO")],
    "gen_vendedor": [("V1", "ANA PEREZ  "), ("V2", "LUIS GOMEZ")],
    "inv_items": [
        ("GAR1", "GARANTIA EXTENDIDA 1 ANO  ", "01", "50", "01", 10000),
        ("PUB1", "VOLANTES", "01", "50", "02", 500),
        ("MOT1", "MOTO UNO", "02", "10", "01", 4000000),
    ],
    "inv_marca": [("01", "ZURICH"), ("02", "HONDA")],
    "inv_grupos": [("50", "SERVICIOS"), ("10", "MOTOCICLETAS")],
    "inv_subgrupos": [("50", "01", "GARANTIAS"), ("50", "02", "PUBLICIDAD Y MERCADEO"), ("10", "01", "MOTOS")],
    "gen_sucursal": [("S1", "AGUACHICA")],
    "gen_ccosto": [("CC1", "VENTAS")],
    "cxc_cliente": [
        ("C1", "1001", "CLIENTE UNO  ", "CALLE 1", "3001"),
        ("C2", "1002", "CLIENTE DOS", "CALLE 2", "3002"),
        ("C3", "901634743", "EMPRESA EXCLUIDA", "CALLE 3", "3003"),
    ],
    # (ano_doc, per_doc, tip_doc, num_doc, fecha, hora, vendedor, cod_suc, cod_cco, cliente)
    "inv_cabdoc": [
        ("2025", "03", "010", "F001", "2025-03-10", "10:30", "V1", "S1", "CC1", "C1"),
        ("2025", "05", "010", "F002", "2025-05-02", "11:00", "V2", "S1", "CC1", "C1"),
        ("2025", "07", "510", "F003", "2025-07-15", "09:15", "V1", "S1", "CC1", "C2"),
        ("2025", "08", "010", "F004", "2025-08-01", "16:00", "V1", "S1", "CC1", "C3"),
        ("2025", "08", "010", "F<05", "2025-08-02", "16:30", "V1", "S1", "CC1", "C1"),
        ("2025", "09", "010", "F006", "2025-09-03", "08:00", "V1", "S1", "CC1", "C1"),
        ("2024", "12", "010", "F007", "2024-12-20", "12:00", "V1", "S1", "CC1", "C1"),
        ("2025", "09", "999", "F008", "2025-09-04", "12:00", "V1", "S1", "CC1", "C2"),
        ("2025", "10", "010", "F009", "2025-10-01", "12:00", "V1", "S1", "CC1", "C1"),
    ],
    # (ano_doc, per_doc, tip_doc, num_doc, item, bodega, cantidad, ven_net, mon_iva, val_def)
    "inv_cuedoc": [
        ("2025", "03", "010", "F001", "GAR1", "001", 1, 100000, 19000, 119000),
        ("2025", "05", "010", "F002", "GAR1", "001", 2, 200000, 38000, 238000),
        ("2025", "05", "010", "F002", "MOT1", "001", 1, 4000000, 760000, 4760000),
        ("2025", "07", "510", "F003", "GAR1", "001", 1, 150000, 28500, 178500),
        ("2025", "08", "010", "F004", "GAR1", "001", 1, 100000, 19000, 119000),
        ("2025", "08", "010", "F<05", "GAR1", "001", 1, 100000, 19000, 119000),
        ("2025", "09", "010", "F006", "PUB1", "001", 1, 5000, 950, 5950),
        ("2024", "12", "010", "F007", "GAR1", "001", 1, 90000, 17100, 107100),
        ("2025", "09", "999", "F008", "GAR1", "001", 1, 100000, 19000, 119000),
        ("2025", "10", "010", "F009", "GAR1", "001", 0, 0, 0, 0),
    ],
    "ptv_detcuadre_caja": [("F001", "13"), ("F002", "39")],
}

CATALOG_SEED = {
    "inv_items": [("M1", "MOTO UNO  ", 19), ("M2", "MOTO DOS", None), ("M3", "MOTO TRES", 19)],
    "inv_acum": [("M1", "2025", 3), ("M2", "2025", 1), ("M3", "2025", 0), ("M1", "2024", 5)],
    "inv_lispre": [
        ("M1", "11", 1000000),
        ("M1", "29", 1100000),
        ("M1", "05", 900000),
        ("M2", "11", 500000),
        ("M3", "11", 700000),
    ],
}

STORE_POSTS = [
    (10, "Moto Uno", "product", "publish"),
    (11, "Casco", "product", "publish"),
    (12, "Moto Vieja", "product", "trash"),
    (13, "Repuesto", "product_variation", "publish"),
    (14, "Pagina", "page", "publish"),
]

STORE_META = [
    (10, "_sku", "M1"),
    (10, "_regular_price", "5200000"),
    (10, "_sale_price", "5000000"),
    (10, "_price", "5000000"),
    (10, "_stock", "3"),
    (11, "_sku", "C9"),
    (11, "_regular_price", "180000"),
    (11, "_sale_price", ""),
    (11, "_price", "180000"),
    (11, "_stock", "10"),
    (12, "_sku", "OLD1"),
    (12, "_price", "1000"),
    (13, "_codigo_novasoft", "ALT7"),
    (13, "_regular_price", "100000"),
    (13, "_price", "99999.5"),
    (13, "_stock", "2"),
    (14, "_sku", "PAGE1"),
]

# Rows returned by the point-of-sale stored procedures
POS_STOCK_ROWS = [
    {"cod_item": "M1   ", "des_item": "MOTO UNO  ", "existencia": Decimal("3.000")},
    {"cod_item": "C9", "des_item": "CASCO", "existencia": Decimal("10")},
    {"cod_item": "X/1", "des_item": "KIT", "existencia": Decimal("5")},
    {"cod_item": "NEG", "des_item": "AJUSTE", "existencia": Decimal("-1")},
    {"cod_item": "ALT7", "des_item": "REPUESTO", "existencia": Decimal("2")},
]

POS_PRICE_ROWS = [
    {"cod_lis": "22", "cod_item": "M1   ", "precioiva": Decimal("5200000.4")},
    {"cod_lis": "05", "cod_item": "M1   ", "precioiva": Decimal("4999999.5")},
    {"cod_lis": "22", "cod_item": "C9", "precioiva": Decimal("180000")},
    {"cod_lis": "05", "cod_item": "C9", "precioiva": Decimal("170000")},
    {"cod_lis": "22", "cod_item": "ALT7", "precioiva": Decimal("100000")},
    {"cod_lis": "05", "cod_item": "ALT7", "precioiva": Decimal("100000")},
    {"cod_lis": "11", "cod_item": "ALT7", "precioiva": Decimal("1")},
]


class FakeProcedureDatabase:
    """Stands in for the point-of-sale database, which is only reached through procedures."""

    alias = POS

    def __init__(self, procedures: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.dialect = get_dialect("mssql")
        self.procedures = procedures if procedures is not None else {
            "Consulta_Bodega_existencia": POS_STOCK_ROWS,
            "Consulta_Listas": POS_PRICE_ROWS,
        }
        self.calls: List[tuple] = []

    async def call_procedure(self, name: str, params: Sequence[Any]) -> List[Dict[str, Any]]:
        self.calls.append((name, list(params)))
        return [dict(row) for row in self.procedures.get(name, [])]


async def _insert(alias: str, table: str, rows: List[tuple]) -> None:
    if not rows:
        return
    placeholders = ", ".join(["?"] * len(rows[0]))
    await connections.get(alias).execute_many(
        f"INSERT INTO {table} VALUES ({placeholders})", [list(row) for row in rows]
    )


async def seed_databases() -> None:
    await connections.get(WAREHOUSE).execute_script(WAREHOUSE_SCHEMA)
    await connections.get(SALES).execute_script(SALES_SCHEMA)
    await connections.get(CATALOG).execute_script(CATALOG_SCHEMA)
    await connections.get(STORE).execute_script(STORE_SCHEMA)

    await _insert(WAREHOUSE, "V_INV_BIN007_POWER_BI_TOTAL", INVENTORY_ROWS)
    await _insert(WAREHOUSE, "V_INV_BVEN020_POWER_BI_TOTAL", INVOICE_ROWS)
    for table, rows in SALES_SEED.items():
        await _insert(SALES, table, rows)
    for table, rows in CATALOG_SEED.items():
        await _insert(CATALOG, table, rows)
    await _insert(STORE, "wp_posts", STORE_POSTS)
    await connections.get(STORE).execute_many(
        "INSERT INTO wp_postmeta (post_id, meta_key, meta_value) VALUES (?, ?, ?)",
        [list(row) for row in STORE_META],
    )


def build_test_databases(pos: Optional[FakeProcedureDatabase] = None) -> Databases:
    return Databases(
        warehouse=Database(WAREHOUSE, connections.get(WAREHOUSE)),
        sales=Database(SALES, connections.get(SALES)),
        pos=pos or FakeProcedureDatabase(),
        catalog=Database(CATALOG, connections.get(CATALOG)),
        store=Database(STORE, connections.get(STORE)),
    )


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """
    Specifies the asyncio backend for pytest-asyncio.
    """
    return "asyncio"


@pytest_asyncio.fixture(scope="function", autouse=True)
async def initialize_test_db() -> AsyncGenerator[None, None]:
    """
    Creates fresh in-memory databases for each test function and tears them down afterwards.
    """
    await Tortoise.init(config=TEST_DB_CONFIG)
    await seed_databases()

    yield

    await Tortoise.close_connections()


@pytest.fixture
def databases() -> Databases:
    return build_test_databases()


@pytest.fixture(scope="function")
def app_for_testing(databases: Databases) -> Generator[FastAPI, Any, None]:
    """
    Provides the FastAPI application with its production lifespan disabled
    and the test database handles installed.
    """
    original_lifespan = actual_app.router.lifespan_context

    @asynccontextmanager
    async def dummy_lifespan(app: FastAPI):
        yield

    actual_app.router.lifespan_context = dummy_lifespan
    actual_app.state.databases = databases
    actual_app.state.sync_history = SyncHistory(10)
    actual_app.state.limiter.reset()

    yield actual_app

    # Restore the original lifespan context after the test
    actual_app.router.lifespan_context = original_lifespan


@pytest_asyncio.fixture(scope="function")
async def client(app_for_testing: FastAPI) -> AsyncGenerator[AsyncClient, Any]:
    """
    Provides a non-authenticated httpx client bound to the app.
    """
    transport = ASGITransport(app=app_for_testing)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def login(client: AsyncClient, role: str) -> str:
    username, password = TEST_USERS[role]
    response = await client.post("/api/auth/login", json={"username": username, "password": password})
    if response.status_code != 200:
        raise Exception(f"Authentication failed for {username}: {response.text}")
    return response.json()["token"]


async def _authenticated_client(app: FastAPI, role: str) -> AsyncClient:
    ac = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    token = await login(ac, role)
    ac.headers["Authorization"] = f"Bearer {token}"
    return ac


@pytest_asyncio.fixture(scope="function")
async def admin_client(app_for_testing: FastAPI) -> AsyncGenerator[AsyncClient, Any]:
    """
    Provides a client authenticated as the configured admin user.
    """
    ac = await _authenticated_client(app_for_testing, "admin")
    yield ac
    await ac.aclose()


@pytest_asyncio.fixture(scope="function")
async def user_client(app_for_testing: FastAPI) -> AsyncGenerator[AsyncClient, Any]:
    """
    Provides a client authenticated as the configured read-only user.
    """
    ac = await _authenticated_client(app_for_testing, "user")
    yield ac
    await ac.aclose()


@pytest_asyncio.fixture(scope="function")
async def api_client(app_for_testing: FastAPI) -> AsyncGenerator[AsyncClient, Any]:
    """
    Provides a client authenticated as the configured service account.
    """
    ac = await _authenticated_client(app_for_testing, "api")
    yield ac
    await ac.aclose()
