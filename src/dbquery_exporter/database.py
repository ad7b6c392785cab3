"""Database access for scrapes – one short-lived connection per scrape."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, CursorResult
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.pool import NullPool

logger = logging.getLogger(__name__)


@contextmanager
def get_conn(dsn: str) -> Iterator[Connection]:
    """Open a connection for *dsn* and release it (and its engine) on exit.

    ``NullPool`` keeps nothing open between scrapes. A DSN that cannot be
    parsed is reported as :class:`~sqlalchemy.exc.ArgumentError`.
    """
    try:
        engine = create_engine(dsn, poolclass=NullPool)
    except ValueError as exc:
        raise ArgumentError(f"Could not parse DSN: {exc}") from exc
    try:
        with engine.connect() as conn:
            logger.debug("Connected to %s", engine.url.render_as_string(hide_password=True))
            yield conn
    finally:
        engine.dispose()


def execute(conn: Connection, query: str) -> CursorResult:
    """Execute *query* verbatim.

    The statement is handed to the driver untouched: no bind-parameter
    parsing, and no parameter collection is passed to ``cursor.execute``.
    A failed statement rolls the connection back so later statements on
    the same connection are unaffected.
    """
    try:
        return conn.execution_options(no_parameters=True).exec_driver_sql(query)
    except SQLAlchemyError:
        conn.rollback()
        raise
