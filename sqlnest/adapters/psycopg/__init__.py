from sqlnest.adapters.psycopg.config import PsycopgConnectionParams
from sqlnest.adapters.psycopg.driver import PsycopgAdapter, PsycopgConnection

__all__ = ("PsycopgAdapter", "PsycopgConnection", "PsycopgConnectionParams")
