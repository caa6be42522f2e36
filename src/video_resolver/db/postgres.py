"""Postgres access for the remote ``settings`` key/value table."""

from __future__ import annotations

import os
from contextlib import closing
from typing import Optional

import psycopg2

from ..logging import jlog


def remote_configured() -> bool:
    """True when enough environment is present to reach the settings database."""

    return bool(os.getenv("DB_PASSWORD") and (os.getenv("DB_HOST") or os.getenv("DB_SQL_CONN")))


def sql_connect(sql_conn: str | None = None, db_host: str | None = None, db_port: int | None = None):
    """Return a psycopg2 connection using either TCP or a Cloud SQL socket."""

    dbname = os.getenv("DB_NAME", "postgres")
    user = os.getenv("DB_USER", "postgres")
    password = os.getenv("DB_PASSWORD")
    if not password:
        raise RuntimeError("DB_PASSWORD environment variable is required for database connections")

    db_host = db_host or os.getenv("DB_HOST")
    if db_host:
        return psycopg2.connect(
            host=db_host,
            port=db_port or int(os.getenv("DB_PORT", "5432")),
            dbname=dbname,
            user=user,
            password=password,
            connect_timeout=10,
            sslmode=os.getenv("DB_SSLMODE", "prefer"),
        )

    sql_conn = sql_conn or os.getenv("DB_SQL_CONN")
    if not sql_conn:
        raise RuntimeError("sql_conn must be provided when db_host is not set")
    return psycopg2.connect(
        host=f"/cloudsql/{sql_conn}",
        dbname=dbname,
        user=user,
        password=password,
        connect_timeout=10,
    )


def fetch_setting(con, key: str) -> Optional[str]:
    """Return ``settings.value`` for ``key`` or ``None`` when the row is missing."""

    with con.cursor() as cur:
        cur.execute("SELECT value FROM settings WHERE key = %s", (key,))
        row = cur.fetchone()
    if not row or row[0] is None:
        return None
    return str(row[0]) or None


def get_setting(key: str, *, connect=sql_connect) -> Optional[str]:
    """Open a short-lived connection and read one setting; errors read as absent."""

    try:
        with closing(connect()) as con:
            return fetch_setting(con, key)
    except (psycopg2.Error, RuntimeError) as exc:
        jlog("warning", event="settings_lookup_failed", key=key, error=str(exc))
        return None
