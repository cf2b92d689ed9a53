"""
Relational store abstraction: raw SQL pass-through over SQLAlchemy.

Any SQLAlchemy URL works (Postgres in production, SQLite for local runs
and tests). Statements are handed to the driver untouched; there is no
parameter binding.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Protocol

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

from vibeflare.errors import QueryError

logger = logging.getLogger(__name__)

IN_MEMORY_DATABASE_URL = "sqlite+pysqlite:///:memory:"


@dataclass
class QueryResult:
    results: list[dict[str, Any]] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)


class SqlDatabase(Protocol):
    """Interface for executing caller-supplied SQL."""

    def execute(self, sql: str) -> QueryResult:
        ...


def _is_in_memory_sqlite(database_url: str) -> bool:
    url = make_url(database_url)
    return url.get_backend_name() == "sqlite" and url.database in (
        None,
        "",
        ":memory:",
    )


def create_database_engine(database_url: str) -> Engine:
    if not database_url:
        raise ValueError("DATABASE_URL is required for SqlAlchemyDatabase")
    if _is_in_memory_sqlite(database_url):
        # One shared connection, otherwise every checkout sees an empty database.
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=1800,
    )


def _json_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        # Blobs come back as a list of byte values.
        return list(bytes(value))
    return value


def _json_row(mapping) -> dict[str, Any]:
    return {key: _json_value(value) for key, value in mapping.items()}


def _error_message(exc: SQLAlchemyError) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig) or "Database error"
    return str(exc) or "Database error"


class SqlAlchemyDatabase:
    """
    SQLAlchemy-backed implementation that executes one statement per call.
    """

    def __init__(self, database_url: str = IN_MEMORY_DATABASE_URL):
        self.engine = create_database_engine(database_url)

    def execute(self, sql: str) -> QueryResult:
        started = time.perf_counter()
        try:
            with self.engine.begin() as conn:
                # no_parameters keeps %-style drivers (psycopg2) from formatting the text.
                result = conn.execution_options(no_parameters=True).exec_driver_sql(sql)
                if result.returns_rows:
                    columns = list(result.keys())
                    rows = [_json_row(row._mapping) for row in result.all()]
                    changes = 0
                    last_row_id = None
                else:
                    columns = []
                    rows = []
                    changes = max(result.rowcount, 0)
                    last_row_id = result.lastrowid
        except SQLAlchemyError as exc:
            message = _error_message(exc)
            logger.warning("SQL statement failed: %s", message)
            raise QueryError(message, sql) from exc

        duration_ms = (time.perf_counter() - started) * 1000
        return QueryResult(
            results=rows,
            meta={
                "changes": changes,
                "last_row_id": last_row_id,
                "rows_read": len(rows),
                "columns": columns,
                "duration": round(duration_ms, 3),
            },
        )

    def dispose(self) -> None:
        self.engine.dispose()
