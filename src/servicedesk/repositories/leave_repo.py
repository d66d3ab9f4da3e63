"""Repositories for leave requests, balances and holidays."""

from __future__ import annotations

from typing import Dict, List, Optional

from servicedesk.db.connection import transaction
from servicedesk.domain.models import Holiday, LeaveRequest
from servicedesk.repositories.base import RecordRepository
from servicedesk.repositories.mappers import (
    holiday_from_row,
    leave_from_row,
    leave_to_record,
)


class LeaveRepo(RecordRepository):
    table = "leave_requests"

    def add(self, request: LeaveRequest) -> LeaveRequest:
        request.id = self._insert(leave_to_record(request))
        return request

    def save(self, request: LeaveRequest) -> bool:
        return self._update(leave_to_record(request))

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        row = self._fetch_one(request_id)
        return leave_from_row(row) if row else None

    def list_by_user(self, user_id: int) -> List[LeaveRequest]:
        rows = self._fetch_all("user_id = ?", (user_id,), order_by="start_date")
        return [leave_from_row(row) for row in rows]

    def list_all(self) -> List[LeaveRequest]:
        return [leave_from_row(row) for row in self._fetch_all(order_by="start_date")]

    def get_balance(self, user_id: int, leave_type: str) -> Optional[float]:
        """Return the remaining days, or None when no balance is tracked."""
        try:
            row = self._connection.execute(
                "SELECT balance FROM leave_balances WHERE user_id = ? AND leave_type = ?",
                (user_id, leave_type),
            ).fetchone()
        except Exception:
            self._logger.exception(
                "Failed to get leave balance user_id=%s type=%s", user_id, leave_type
            )
            raise
        return float(row["balance"]) if row else None

    def get_balances(self, user_id: int) -> Dict[str, float]:
        try:
            rows = self._connection.execute(
                "SELECT leave_type, balance FROM leave_balances WHERE user_id = ?",
                (user_id,),
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list leave balances user_id=%s", user_id)
            raise
        return {row["leave_type"]: float(row["balance"]) for row in rows}

    def set_balance(self, user_id: int, leave_type: str, balance: float) -> None:
        try:
            with transaction(self._connection):
                self._connection.execute(
                    """
                    INSERT INTO leave_balances (user_id, leave_type, balance)
                    VALUES (?, ?, ?)
                    ON CONFLICT (user_id, leave_type)
                    DO UPDATE SET balance = excluded.balance
                    """,
                    (user_id, leave_type, balance),
                )
        except Exception:
            self._logger.exception(
                "Failed to set leave balance user_id=%s type=%s", user_id, leave_type
            )
            raise


class HolidayRepo(RecordRepository):
    table = "holidays"

    def add(self, holiday_date: str, name: str) -> Holiday:
        holiday_id = self._insert({"id": None, "date": holiday_date, "name": name})
        return Holiday(id=holiday_id, date=holiday_date, name=name)

    def add_many(self, holidays: List[tuple[str, str]]) -> List[Holiday]:
        return [self.add(holiday_date, name) for holiday_date, name in holidays]

    def list_all(self) -> List[Holiday]:
        return [holiday_from_row(row) for row in self._fetch_all(order_by="date")]

    def list_dates(self) -> List[str]:
        return [holiday.date for holiday in self.list_all()]
