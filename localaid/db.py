"""Database setup utilities.

Exposes the shared ``db`` object used by the models. The application
factory binds it to the Flask app.

SQLite has no trigonometric functions in every build, so every new
SQLite connection gets the ones used by the radius filter registered
here. Other backends (PostgreSQL) ship them natively and run the same
SQL expression unchanged.
"""
from __future__ import annotations

import sqlite3

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine

from .util.geo import register_sqlite_functions

db = SQLAlchemy()


@event.listens_for(Engine, "connect")
def _configure_sqlite(dbapi_connection, _connection_record) -> None:
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return
    register_sqlite_functions(dbapi_connection)
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()
