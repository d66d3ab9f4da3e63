"""Leave day counting, balance checks and the two-level approval flow."""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Callable, Iterable, Optional

from servicedesk.config import (
    FINAL_APPROVER_ROLE,
    LEAVE_REASON_MIN_LENGTH,
    UNPAID_LEAVE_TYPE,
)
from servicedesk.db.connection import now_iso
from servicedesk.domain.models import (
    DEFAULT_LEAVE_TYPES,
    LEAVE_TRANSITIONS,
    ApprovalEntry,
    HalfDay,
    Holiday,
    LeaveRequest,
    LeaveStatus,
    LeaveType,
)
from servicedesk.logging_config import get_logger
from servicedesk.repositories.leave_repo import HolidayRepo, LeaveRepo
from servicedesk.services.date_math import DateLike, as_date, inclusive_day_count
from servicedesk.services.errors import (
    InsufficientBalanceError,
    InvalidRangeError,
    NotFoundError,
    ValidationError,
)

HALF_DAY = 0.5


def compute_days(
    start: DateLike,
    end: DateLike,
    exclude_weekends: bool = True,
    half_day: Optional[HalfDay | str] = None,
    holidays: Iterable[DateLike] = (),
) -> float:
    """Working days a request consumes; a half-day request is always 0.5."""
    if half_day:
        return HALF_DAY
    return float(inclusive_day_count(start, end, exclude_weekends, holidays))


def _format_days(value: float) -> str:
    return f"{value:g}"


def check_balance(
    requested: float, available: Optional[float], leave_type: str
) -> None:
    """Raise when a paid leave type would overdraw the available balance.

    Unpaid leave is never balance-checked, and an untracked balance
    (``available`` is None) is allowed through.
    """
    if leave_type == UNPAID_LEAVE_TYPE or available is None:
        return
    if requested > available:
        message = f"Insufficient balance. Available: {_format_days(available)} days"
        raise InsufficientBalanceError(message, {"days": message})


def validate_request(
    request: LeaveRequest,
    today: DateLike,
    leave_type: Optional[LeaveType],
    available: Optional[float],
    exclude_weekends: bool = True,
    holidays: Iterable[DateLike] = (),
) -> float:
    """Check a request before it is stored and return the day count.

    All problems are gathered into one :class:`ValidationError` so a form
    can show every message at once.
    """
    errors: dict[str, str] = {}
    if not request.user_id:
        errors["user_id"] = "Please select an employee"
    if leave_type is None:
        errors["leave_type"] = "Please select leave type"
    if not request.start_date:
        errors["start_date"] = "Start date is required"
    if not request.end_date:
        errors["end_date"] = "End date is required"
    if len((request.reason or "").strip()) < LEAVE_REASON_MIN_LENGTH:
        errors["reason"] = (
            f"Please provide a reason (min {LEAVE_REASON_MIN_LENGTH} characters)"
        )

    days = 0.0
    if request.start_date and request.end_date:
        start = as_date(request.start_date)
        end = as_date(request.end_date)
        if request.half_day and start != end:
            errors["end_date"] = "Half-day leave must start and end on the same date"
        try:
            days = compute_days(
                start, end, exclude_weekends, request.half_day, holidays
            )
        except InvalidRangeError as exc:
            errors.update(exc.field_errors)
        else:
            if days <= 0:
                errors["days"] = "Selected dates contain no working days"
        if leave_type is not None:
            notice = (start - as_date(today)).days
            if notice < leave_type.advance_notice_days:
                errors["start_date"] = (
                    f"{leave_type.name} needs {leave_type.advance_notice_days} "
                    "day(s) notice"
                )
            limit = leave_type.max_days_per_request
            if limit is not None and days > limit:
                errors["days"] = (
                    f"{leave_type.name} allows at most {_format_days(limit)} "
                    "days per request"
                )

    if leave_type is not None and "days" not in errors:
        try:
            check_balance(days, available, leave_type.id)
        except InsufficientBalanceError as exc:
            errors.update(exc.field_errors)

    if errors:
        raise ValidationError("Leave request is invalid.", errors)
    return days


def _ensure_pending(request: LeaveRequest, target: LeaveStatus) -> None:
    if target not in LEAVE_TRANSITIONS[LeaveStatus(request.status)]:
        raise ValidationError(
            f"Leave request {request.id} is already "
            f"{LeaveStatus(request.status).value}."
        )


def approve(
    request: LeaveRequest,
    approver_name: str,
    approver_role: str,
    comments: str = "",
    timestamp: Optional[str] = None,
) -> bool:
    """Record an approval and return True when it is the final one.

    An approval by the final approver role, or any approval after an
    earlier one, closes the request as Approved. Otherwise it stays Pending
    for a second level.
    """
    _ensure_pending(request, LeaveStatus.APPROVED)
    final = approver_role == FINAL_APPROVER_ROLE or len(request.approval_history) >= 1
    stamp = timestamp or now_iso()
    request.approval_history.append(
        ApprovalEntry(
            level=len(request.approval_history) + 1,
            approver_name=approver_name,
            approver_role=approver_role,
            action=LeaveStatus.APPROVED,
            timestamp=stamp,
            comments=comments or "Approved",
        )
    )
    if final:
        request.status = LeaveStatus.APPROVED
    request.updated_at = stamp
    return final


def reject(
    request: LeaveRequest,
    approver_name: str,
    approver_role: str,
    reason: str = "",
    timestamp: Optional[str] = None,
) -> None:
    _ensure_pending(request, LeaveStatus.REJECTED)
    stamp = timestamp or now_iso()
    request.approval_history.append(
        ApprovalEntry(
            level=len(request.approval_history) + 1,
            approver_name=approver_name,
            approver_role=approver_role,
            action=LeaveStatus.REJECTED,
            timestamp=stamp,
            comments=reason or "Rejected",
        )
    )
    request.status = LeaveStatus.REJECTED
    request.updated_at = stamp


class LeaveService:
    """Service for leave requests, balances and the holiday calendar."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        clock: Callable[[], date] = date.today,
        exclude_weekends: bool = True,
        leave_types: Iterable[LeaveType] = DEFAULT_LEAVE_TYPES,
    ) -> None:
        self._repo = LeaveRepo(connection)
        self._holidays = HolidayRepo(connection)
        self._clock = clock
        self._exclude_weekends = exclude_weekends
        self._leave_types = {leave_type.id: leave_type for leave_type in leave_types}
        self._logger = get_logger(self.__class__.__name__)

    def leave_types(self) -> list[LeaveType]:
        return list(self._leave_types.values())

    def get(self, request_id: int) -> LeaveRequest:
        request = self._repo.get_by_id(request_id)
        if not request:
            raise NotFoundError(f"Leave request {request_id} not found.")
        return request

    def list_requests(
        self, user_id: Optional[int] = None, status: Optional[LeaveStatus] = None
    ) -> list[LeaveRequest]:
        if user_id is None:
            requests = self._repo.list_all()
        else:
            requests = self._repo.list_by_user(user_id)
        if status is None:
            return requests
        return [r for r in requests if r.status == LeaveStatus(status)]

    def count_days(
        self,
        start: DateLike,
        end: DateLike,
        half_day: Optional[HalfDay | str] = None,
    ) -> float:
        return compute_days(
            start, end, self._exclude_weekends, half_day, self._holidays.list_dates()
        )

    def submit(
        self,
        user_id: int,
        leave_type: str,
        start_date: DateLike,
        end_date: DateLike,
        reason: str,
        half_day: Optional[HalfDay | str] = None,
    ) -> LeaveRequest:
        request = LeaveRequest(
            id=None,
            user_id=user_id,
            leave_type=leave_type,
            start_date=as_date(start_date).isoformat() if start_date else "",
            end_date=as_date(end_date).isoformat() if end_date else "",
            reason=(reason or "").strip(),
            half_day=HalfDay(half_day) if half_day else None,
        )
        request.days = validate_request(
            request,
            self._clock(),
            self._leave_types.get(leave_type),
            self._repo.get_balance(user_id, leave_type),
            self._exclude_weekends,
            self._holidays.list_dates(),
        )
        timestamp = now_iso()
        request.created_at = timestamp
        request.updated_at = timestamp
        self._repo.add(request)
        self._logger.info(
            "Leave request %s submitted for user %s (%s days)",
            request.id,
            user_id,
            request.days,
        )
        return request

    def approve(
        self,
        request_id: int,
        approver_name: str,
        approver_role: str,
        comments: str = "",
    ) -> LeaveRequest:
        request = self.get(request_id)
        final = approve(request, approver_name, approver_role, comments)
        self._repo.save(request)
        if final:
            self._deduct(request)
            self._logger.info("Leave request %s approved", request.id)
        else:
            self._logger.info(
                "Leave request %s approved at level %s, awaiting final approval",
                request.id,
                len(request.approval_history),
            )
        return request

    def reject(
        self,
        request_id: int,
        approver_name: str,
        approver_role: str,
        reason: str = "",
    ) -> LeaveRequest:
        request = self.get(request_id)
        reject(request, approver_name, approver_role, reason)
        self._repo.save(request)
        self._logger.info("Leave request %s rejected", request.id)
        return request

    def set_balance(self, user_id: int, leave_type: str, balance: float) -> None:
        if balance < 0:
            raise ValidationError(
                "Leave balance cannot be negative.", {"balance": "Must be zero or more"}
            )
        self._repo.set_balance(user_id, leave_type, float(balance))

    def balances(self, user_id: int) -> dict[str, float]:
        return self._repo.get_balances(user_id)

    def add_holiday(self, holiday_date: DateLike, name: str) -> Holiday:
        if not name.strip():
            raise ValidationError("Holiday name required.", {"name": "Required"})
        day = as_date(holiday_date).isoformat()
        if day in self._holidays.list_dates():
            raise ValidationError(
                f"{day} is already a holiday.", {"date": "Already listed"}
            )
        return self._holidays.add(day, name.strip())

    def holidays(self) -> list[Holiday]:
        return self._holidays.list_all()

    def _deduct(self, request: LeaveRequest) -> None:
        if request.leave_type == UNPAID_LEAVE_TYPE:
            return
        current = self._repo.get_balance(request.user_id, request.leave_type)
        if current is None:
            return
        self._repo.set_balance(
            request.user_id, request.leave_type, max(0.0, current - request.days)
        )
