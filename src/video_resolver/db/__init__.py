"""Database helpers for the remote session store."""

from .postgres import fetch_setting, get_setting, remote_configured, sql_connect

__all__ = [
    "fetch_setting",
    "get_setting",
    "remote_configured",
    "sql_connect",
]
