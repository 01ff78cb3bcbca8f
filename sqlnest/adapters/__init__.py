"""Native driver adapters.

Adapters are selected from a PDO-style DSN prefix:

- ``sqlite:/path/to/app.db``, ``sqlite::memory:`` → :class:`~sqlnest.adapters.sqlite.SqliteAdapter`
- ``pgsql:host=localhost;dbname=app`` → :class:`~sqlnest.adapters.psycopg.PsycopgAdapter`
- ``postgresql://user@host/app`` → :class:`~sqlnest.adapters.psycopg.PsycopgAdapter`

Adapters for optional drivers are imported only when requested.
"""

from typing import Final

from sqlnest.adapters.base import DriverAdapter, NativeStatement
from sqlnest.exceptions import ImproperConfigurationError
from sqlnest.utils.module_loader import ensure_installed, import_string

__all__ = ("ADAPTERS", "DriverAdapter", "NativeStatement", "get_adapter")

ADAPTERS: Final[dict[str, str]] = {
    "sqlite": "sqlnest.adapters.sqlite.SqliteAdapter",
    "pgsql": "sqlnest.adapters.psycopg.PsycopgAdapter",
    "postgresql": "sqlnest.adapters.psycopg.PsycopgAdapter",
    "postgres": "sqlnest.adapters.psycopg.PsycopgAdapter",
}

_REQUIREMENTS: Final[dict[str, str]] = {
    "pgsql": "psycopg",
    "postgresql": "psycopg",
    "postgres": "psycopg",
}

_URL_DRIVERS: Final = frozenset({"postgresql", "postgres"})


def get_adapter(dsn: str) -> DriverAdapter:
    """Create the adapter for a DSN.

    Args:
        dsn: ``driver:connection_info`` string.

    Returns:
        Configured adapter instance.

    Raises:
        ImproperConfigurationError: The DSN is malformed or names an unknown driver.
        MissingDependencyError: The driver's package is not installed.
    """
    if ":" not in dsn:
        msg = f"Invalid DSN: '{dsn}'. Expected 'driver:connection_info'."
        raise ImproperConfigurationError(msg)

    driver, connection_info = dsn.split(":", 1)
    driver = driver.lower()
    adapter_path = ADAPTERS.get(driver)
    if adapter_path is None:
        msg = f"Unknown database driver: '{driver}'. Supported: {', '.join(sorted(ADAPTERS))}"
        raise ImproperConfigurationError(msg)

    if driver in _REQUIREMENTS:
        ensure_installed(_REQUIREMENTS[driver])
    if driver in _URL_DRIVERS:
        connection_info = dsn

    adapter_class: type[DriverAdapter] = import_string(adapter_path)
    return adapter_class.from_dsn(connection_info)
