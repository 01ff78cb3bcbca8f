"""Psycopg connection parameters as TypedDict."""

from typing import TypedDict

from typing_extensions import NotRequired

__all__ = ("PsycopgConnectionParams",)


class PsycopgConnectionParams(TypedDict, total=False):
    """Keyword arguments accepted by ``psycopg.connect()``."""

    host: NotRequired[str]
    """Database server host."""

    port: NotRequired[int]
    """Database server port."""

    user: NotRequired[str]
    """Database user."""

    password: NotRequired[str]
    """Database password."""

    dbname: NotRequired[str]
    """Database name."""

    connect_timeout: NotRequired[int]
    """Connection timeout in seconds."""

    options: NotRequired[str]
    """Command-line options to send to the server at connection start."""

    application_name: NotRequired[str]
    """Application name reported to the server."""

    sslmode: NotRequired[str]
    """SSL negotiation mode."""
