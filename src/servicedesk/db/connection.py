"""SQLite connection helpers."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

IN_MEMORY = ":memory:"


def get_connection(database_path: Path | str) -> sqlite3.Connection:
    """Open a SQLite connection with row access by name and foreign keys on."""
    if database_path != IN_MEMORY:
        Path(database_path).parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(str(database_path))
    connection.row_factory = sqlite3.Row
    connection.execute("PRAGMA foreign_keys = ON;")
    return connection


@contextmanager
def transaction(connection: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Commit on success, roll back and re-raise on any error."""
    try:
        yield connection
    except Exception:
        connection.rollback()
        raise
    else:
        connection.commit()


def now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")
