import logging
import sys


class NamespaceFilter(logging.Filter):
    def __init__(self, allowed_namespaces=None):
        super().__init__()
        self.allowed_namespaces = allowed_namespaces if allowed_namespaces is not None else []

    def filter(self, record):
        if not self.allowed_namespaces:
            return True  # If no namespaces are specified, allow all records
        # Allow record if its name starts with any of the allowed namespaces
        return any(record.name.startswith(ns) for ns in self.allowed_namespaces)


log_formatter = logging.Formatter(
    fmt="%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

app_logger = logging.getLogger("gateway")
app_logger.setLevel(logging.INFO)

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setFormatter(log_formatter)

# --- Namespace-based Filter (Optional) ---
# To only see logs from the sync feature and the database layer:
#
# allowed_log_namespaces = ["gateway.features.sync", "gateway.core.database"]
# console_handler.addFilter(NamespaceFilter(allowed_log_namespaces))
app_logger.addHandler(console_handler)

# Reconciliation runs log one line per product at DEBUG
logging.getLogger("gateway.features.sync").setLevel(logging.INFO)

# Modules use logging.getLogger(__name__), which creates loggers like
# "gateway.features.inventory.service" that inherit from "gateway".

# To see the SQL Tortoise sends to the drivers:
# logging.getLogger("tortoise.db_client").setLevel(logging.DEBUG)
