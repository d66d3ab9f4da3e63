"""Shared SQL helpers for record-dict based repositories."""

from __future__ import annotations

import sqlite3
from typing import Any, Mapping, Optional

from servicedesk.db.connection import transaction
from servicedesk.logging_config import get_logger


class RecordRepository:
    """Insert, update and fetch rows from one table using record dicts."""

    table: str = ""
    key: str = "id"

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def _insert(self, record: Mapping[str, Any]) -> int:
        columns = [
            name
            for name, value in record.items()
            if not (name == self.key and value is None)
        ]
        placeholders = ", ".join(["?"] * len(columns))
        try:
            with transaction(self._connection):
                cursor = self._connection.execute(
                    f"INSERT INTO {self.table} ({', '.join(columns)}) VALUES ({placeholders})",
                    [record[name] for name in columns],
                )
        except Exception:
            self._logger.exception("Failed to insert into %s", self.table)
            raise
        return int(cursor.lastrowid)

    def _update(self, record: Mapping[str, Any]) -> bool:
        columns = [name for name in record if name != self.key]
        assignments = ", ".join(f"{name} = ?" for name in columns)
        try:
            with transaction(self._connection):
                cursor = self._connection.execute(
                    f"UPDATE {self.table} SET {assignments} WHERE {self.key} = ?",
                    [record[name] for name in columns] + [record[self.key]],
                )
        except Exception:
            self._logger.exception(
                "Failed to update %s %s=%s", self.table, self.key, record[self.key]
            )
            raise
        return cursor.rowcount > 0

    def _fetch_one(self, key_value: Any) -> Optional[sqlite3.Row]:
        try:
            return self._connection.execute(
                f"SELECT * FROM {self.table} WHERE {self.key} = ?",
                (key_value,),
            ).fetchone()
        except Exception:
            self._logger.exception(
                "Failed to get %s %s=%s", self.table, self.key, key_value
            )
            raise

    def _fetch_all(
        self,
        where: str = "",
        params: tuple[Any, ...] = (),
        order_by: str = "",
    ) -> list[sqlite3.Row]:
        sql = f"SELECT * FROM {self.table}"
        if where:
            sql += f" WHERE {where}"
        if order_by:
            sql += f" ORDER BY {order_by}"
        try:
            return self._connection.execute(sql, params).fetchall()
        except Exception:
            self._logger.exception("Failed to list %s", self.table)
            raise

    def delete(self, key_value: Any) -> bool:
        try:
            with transaction(self._connection):
                cursor = self._connection.execute(
                    f"DELETE FROM {self.table} WHERE {self.key} = ?",
                    (key_value,),
                )
        except Exception:
            self._logger.exception(
                "Failed to delete %s %s=%s", self.table, self.key, key_value
            )
            raise
        return cursor.rowcount > 0

    def list_ids(self, prefix: str) -> list[str]:
        rows = self._fetch_all(f"{self.key} LIKE ?", (f"{prefix}%",))
        return [str(row[self.key]) for row in rows]
