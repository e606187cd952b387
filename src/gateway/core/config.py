import os

ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

# In a real deployment, load from environment variables or a secrets store
SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key-for-jwt-!ChangeMe!")
ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480"))

# "username:password:role" entries separated by commas
AUTH_USERS: str = os.getenv(
    "AUTH_USERS",
    "admin:admin-dev-password:admin,user:user-dev-password:user,api:api-dev-password:api",
)

API_KEY: str = os.getenv("API_KEY", "dev-admin-api-key")
SWAGGER_API_KEY: str = os.getenv("SWAGGER_API_KEY", "")
EXTERNAL_API_KEY: str = os.getenv("EXTERNAL_API_KEY", "")
DOCS_PUBLIC: bool = os.getenv("DOCS_PUBLIC", "False").lower() in ("true", "1", "t")

CORS_ORIGINS: list[str] = [
    origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()
]

# SQL Server (warehouse and the other databases on the same server)
DB_HOST: str = os.getenv("DB_HOST", "localhost")
DB_PORT: int = int(os.getenv("DB_PORT", "1433"))
DB_USER: str = os.getenv("DB_USER", "sa")
DB_PASSWORD: str = os.getenv("DB_PASSWORD", "")
DB_NAME: str = os.getenv("DB_NAME", "warehouse")
DB_SALES_NAME: str = os.getenv("DB_SALES_NAME", "CBBSAS")
DB_POS_NAME: str = os.getenv("DB_POS_NAME", "WebVentas")
DB_CATALOG_NAME: str = os.getenv("DB_CATALOG_NAME", "base_0018")
DB_ODBC_DRIVER: str = os.getenv("DB_ODBC_DRIVER", "ODBC Driver 18 for SQL Server")
DB_POOL_MAX: int = int(os.getenv("DB_POOL_MAX", "10"))

# MySQL (WordPress / WooCommerce)
MYSQL_HOST: str = os.getenv("MYSQL_HOST", "localhost")
MYSQL_PORT: int = int(os.getenv("MYSQL_PORT", "3306"))
MYSQL_USER: str = os.getenv("MYSQL_USER", "wordpress")
MYSQL_PASSWORD: str = os.getenv("MYSQL_PASSWORD", "")
MYSQL_DATABASE: str = os.getenv("MYSQL_DATABASE", "wordpress")
MYSQL_POOL_MAX: int = int(os.getenv("MYSQL_POOL_MAX", "10"))
WP_TABLE_PREFIX: str = os.getenv("WP_TABLE_PREFIX", "wp_")
WP_ALT_SKU_KEY: str = os.getenv("WP_ALT_SKU_KEY", "_codigo_novasoft")

# Report behaviour
INVOICE_DEFAULT_YEAR: str = os.getenv("INVOICE_DEFAULT_YEAR", "")  # empty = current year
INVOICE_DOCUMENT_TYPE: str = os.getenv("INVOICE_DOCUMENT_TYPE", "FACTURA")
WARRANTY_BRAND: str = os.getenv("WARRANTY_BRAND", "ZURICH")
WARRANTY_EXCLUDED_NIT: str = os.getenv("WARRANTY_EXCLUDED_NIT", "901634743")

# Product synchronization
PRICE_LIST_BEFORE: str = os.getenv("PRICE_LIST_BEFORE", "22")
PRICE_LIST_NOW: str = os.getenv("PRICE_LIST_NOW", "05")
SYNC_BODEGA: str = os.getenv("SYNC_BODEGA", "080")
SYNC_SUCURSAL: str = os.getenv("SYNC_SUCURSAL", "cuc")
SYNC_EMPRESA: str = os.getenv("SYNC_EMPRESA", "cbb sas")
RECONCILE_CONCURRENCY: int = int(os.getenv("RECONCILE_CONCURRENCY", "10"))
SYNC_HISTORY_SIZE: int = int(os.getenv("SYNC_HISTORY_SIZE", "50"))

# Rate limiting, per client IP over the whole API
RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "True").lower() in ("true", "1", "t")
RATE_LIMIT: int = int(os.getenv("RATE_LIMIT", "100"))
RATE_LIMIT_WINDOW: str = os.getenv("RATE_LIMIT_WINDOW", "15 minutes")
RATE_LIMIT_STORAGE_URL: str = os.getenv("RATE_LIMIT_STORAGE_URL", "memory://")
