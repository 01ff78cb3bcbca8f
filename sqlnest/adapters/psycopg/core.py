"""Psycopg adapter helpers that do not need the driver installed."""

from typing import Final

from sqlnest.parameters import iter_placeholders

__all__ = ("convert_placeholders", "parse_pgsql_dsn")

_URL_PREFIXES: Final = ("postgresql://", "postgres://")


def convert_placeholders(sql: str) -> str:
    """Translate ``:name`` and ``?`` placeholders to psycopg's pyformat style.

    Literal ``%`` characters are doubled, since psycopg interprets them whenever
    parameters are passed.

    Args:
        sql: SQL using ``:name`` or ``?`` placeholders.

    Returns:
        SQL using ``%(name)s`` or ``%s`` placeholders.
    """
    parts: list[str] = []
    last = 0
    for placeholder in iter_placeholders(sql):
        parts.append(sql[last : placeholder.start].replace("%", "%%"))
        parts.append("%s" if placeholder.name is None else f"%({placeholder.name})s")
        last = placeholder.end
    parts.append(sql[last:].replace("%", "%%"))
    return "".join(parts)


def parse_pgsql_dsn(connection_info: str) -> str:
    """Return a libpq connection string.

    Accepts PDO style ``host=localhost;port=5432;dbname=app`` (the part after
    ``pgsql:``) as well as ``postgresql://`` URLs, which are returned unchanged.
    """
    connection_info = connection_info.strip()
    if connection_info.startswith(_URL_PREFIXES):
        return connection_info
    pairs = [pair.strip() for pair in connection_info.split(";") if pair.strip()]
    return " ".join(pairs)
