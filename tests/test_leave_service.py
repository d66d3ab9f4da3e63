"""Tests for leave day counting, balance checks and approvals."""

from datetime import date

import pytest

from servicedesk.domain.models import HalfDay, LeaveRequest, LeaveStatus, LeaveType
from servicedesk.services.errors import (
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from servicedesk.services.leave_service import (
    LeaveService,
    approve,
    check_balance,
    compute_days,
    reject,
    validate_request,
)

TODAY = date(2024, 2, 20)
CASUAL = LeaveType("casual", "Casual Leave", 12, max_days_per_request=3, advance_notice_days=1)


def make_request(**overrides):
    values = dict(
        id=1,
        user_id=7,
        leave_type="casual",
        start_date="2024-03-04",
        end_date="2024-03-05",
        reason="Family function",
    )
    values.update(overrides)
    return LeaveRequest(**values)


class TestComputeDays:
    def test_working_week(self):
        assert compute_days("2024-03-04", "2024-03-08", True) == 5
        assert compute_days("2024-03-04", "2024-03-08", False) == 5

    def test_half_day(self):
        assert compute_days("2024-03-04", "2024-03-04", True, HalfDay.FIRST_HALF) == 0.5

    def test_holiday_excluded(self):
        assert compute_days("2024-03-04", "2024-03-08", True, holidays=["2024-03-08"]) == 4


class TestCheckBalance:
    def test_overdraw_rejected(self):
        with pytest.raises(InsufficientBalanceError, match="Available: 2 days"):
            check_balance(3, 2, "casual")

    def test_unpaid_is_exempt(self):
        check_balance(10, 0, "unpaid")

    def test_unknown_balance_passes(self):
        check_balance(10, None, "casual")

    def test_exact_balance_allowed(self):
        check_balance(2.5, 2.5, "sick")


class TestValidateRequest:
    def test_valid_request_returns_days(self):
        assert validate_request(make_request(), TODAY, CASUAL, 5) == 2

    def test_collects_errors(self):
        request = make_request(reason="ill", start_date="2024-03-08", end_date="2024-03-04")
        with pytest.raises(ValidationError) as excinfo:
            validate_request(request, TODAY, CASUAL, 5)
        assert {"reason", "end_date"} <= set(excinfo.value.field_errors)

    def test_half_day_needs_single_date(self):
        request = make_request(half_day=HalfDay.SECOND_HALF)
        with pytest.raises(ValidationError) as excinfo:
            validate_request(request, TODAY, CASUAL, 5)
        assert "end_date" in excinfo.value.field_errors

    def test_max_days_per_request(self):
        request = make_request(end_date="2024-03-08")
        with pytest.raises(ValidationError) as excinfo:
            validate_request(request, TODAY, CASUAL, 10)
        assert "days" in excinfo.value.field_errors

    def test_advance_notice(self):
        request = make_request(start_date="2024-02-20", end_date="2024-02-20")
        with pytest.raises(ValidationError) as excinfo:
            validate_request(request, TODAY, CASUAL, 10)
        assert "start_date" in excinfo.value.field_errors

    def test_balance_error_reported_on_days(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_request(make_request(), TODAY, CASUAL, 1)
        assert excinfo.value.field_errors["days"] == "Insufficient balance. Available: 1 days"


class TestApproval:
    def test_manager_then_admin(self):
        request = make_request()
        assert approve(request, "Meena", "Manager") is False
        assert request.status == LeaveStatus.PENDING
        assert approve(request, "Arjun", "HR") is True
        assert request.status == LeaveStatus.APPROVED
        assert [entry.level for entry in request.approval_history] == [1, 2]

    def test_admin_approval_is_final(self):
        request = make_request()
        assert approve(request, "Owner", "Admin")
        assert request.status == LeaveStatus.APPROVED

    def test_reject_is_terminal(self):
        request = make_request()
        reject(request, "Meena", "Manager", "Peak season")
        assert request.status == LeaveStatus.REJECTED
        assert request.approval_history[0].comments == "Peak season"
        with pytest.raises(ValidationError):
            approve(request, "Owner", "Admin")


class TestLeaveService:
    @pytest.fixture
    def service(self, connection):
        return LeaveService(connection, clock=lambda: TODAY)

    def test_submit_snapshots_days_with_holidays(self, service):
        service.add_holiday("2024-03-05", "Local festival")
        service.set_balance(7, "casual", 5)
        request = service.submit(7, "casual", "2024-03-04", "2024-03-06", "Family function")
        assert request.id is not None
        assert request.days == 2
        assert service.get(request.id).days == 2

    def test_submit_rejects_overdraw(self, service):
        service.set_balance(7, "casual", 1)
        with pytest.raises(ValidationError):
            service.submit(7, "casual", "2024-03-04", "2024-03-05", "Family function")

    def test_unknown_leave_type(self, service):
        with pytest.raises(ValidationError) as excinfo:
            service.submit(7, "sabbatical", "2024-03-04", "2024-03-05", "Long trip")
        assert "leave_type" in excinfo.value.field_errors

    def test_final_approval_deducts_balance(self, service):
        service.set_balance(7, "casual", 5)
        request = service.submit(7, "casual", "2024-03-04", "2024-03-05", "Family function")
        service.approve(request.id, "Meena", "Manager")
        assert service.balances(7)["casual"] == 5
        approved = service.approve(request.id, "Arjun", "HR")
        assert approved.status == LeaveStatus.APPROVED
        assert service.balances(7)["casual"] == 3

    def test_balance_never_negative(self, service):
        service.set_balance(7, "casual", 2)
        request = service.submit(7, "casual", "2024-03-04", "2024-03-05", "Family function")
        service.set_balance(7, "casual", 1)
        service.approve(request.id, "Owner", "Admin")
        assert service.balances(7)["casual"] == 0

    def test_reject_keeps_balance(self, service):
        service.set_balance(7, "casual", 5)
        request = service.submit(7, "casual", "2024-03-04", "2024-03-05", "Family function")
        service.reject(request.id, "Owner", "Admin", "Audit week")
        assert service.get(request.id).status == LeaveStatus.REJECTED
        assert service.balances(7)["casual"] == 5

    def test_list_by_status(self, service):
        service.submit(7, "sick", "2024-03-04", "2024-03-04", "Fever and cold")
        assert len(service.list_requests(user_id=7, status=LeaveStatus.PENDING)) == 1
        assert service.list_requests(status=LeaveStatus.APPROVED) == []

    def test_missing_request(self, service):
        with pytest.raises(NotFoundError):
            service.get(404)
