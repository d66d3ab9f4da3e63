"""Tests for AMC coverage rules and the contract service."""

from datetime import date, timedelta

import pytest

from servicedesk.domain.models import AMCContract, AMCStatus
from servicedesk.services.amc_service import (
    AMCService,
    calculate_end_date,
    default_renewal_end,
    derive_status,
    is_covered,
    lookup_coverage,
    renew,
    status_counts,
    upcoming_renewals,
)
from servicedesk.services.errors import (
    InvalidRenewalError,
    NotFoundError,
    ValidationError,
)

TODAY = date(2024, 6, 15)


def make_contract(contract_id="AMC-2024-001", end=None, mobile="9876500001", **overrides):
    end_date = end or TODAY + timedelta(days=200)
    values = dict(
        id=contract_id,
        qr_code_id=f"{contract_id}-SN{contract_id[-3:]}",
        customer="Ravi Kumar",
        mobile=mobile,
        device_serial=f"SN{contract_id[-3:]}",
        device_name="Dell Inspiron",
        start_date=(end_date - timedelta(days=364)).isoformat(),
        end_date=end_date.isoformat(),
        amc_amount=5000.0,
        services_included=["Cleaning", "OS Install"],
    )
    values.update(overrides)
    return AMCContract(**values)


class TestDeriveStatus:
    def test_active(self):
        assert derive_status(make_contract(end=TODAY + timedelta(days=31)), TODAY) == AMCStatus.ACTIVE

    def test_exactly_thirty_days_is_expiring(self):
        contract = make_contract(end=TODAY + timedelta(days=30))
        assert derive_status(contract, TODAY) == AMCStatus.EXPIRING

    def test_last_day_is_expiring_and_covered(self):
        contract = make_contract(end=TODAY)
        assert derive_status(contract, TODAY) == AMCStatus.EXPIRING
        assert is_covered(contract, TODAY)

    def test_expired(self):
        contract = make_contract(end=TODAY - timedelta(days=1))
        assert derive_status(contract, TODAY) == AMCStatus.EXPIRED
        assert not is_covered(contract, TODAY)

    def test_custom_window(self):
        contract = make_contract(end=TODAY + timedelta(days=45))
        assert derive_status(contract, TODAY, window_days=60) == AMCStatus.EXPIRING

    def test_status_only_moves_towards_expired(self):
        contract = make_contract(end=TODAY + timedelta(days=40))
        order = [AMCStatus.ACTIVE, AMCStatus.EXPIRING, AMCStatus.EXPIRED]
        seen = [
            order.index(derive_status(contract, TODAY + timedelta(days=offset)))
            for offset in range(0, 60)
        ]
        assert seen == sorted(seen)


class TestLookupCoverage:
    def test_qr_match_wins_over_mobile(self):
        by_qr = make_contract("AMC-2024-001", mobile="111")
        by_mobile = make_contract("AMC-2024-002", mobile=by_qr.qr_code_id)
        result = lookup_coverage([by_mobile, by_qr], by_qr.qr_code_id, TODAY)
        assert result.contract is by_qr
        assert result.matched_by == "qr"

    def test_mobile_fallback(self):
        contract = make_contract(mobile="9876500001")
        result = lookup_coverage([contract], " 9876500001 ", TODAY)
        assert result.found
        assert result.matched_by == "mobile"
        assert result.is_covered
        assert result.message.startswith("Active AMC until")

    def test_expired_contract_found_but_not_covered(self):
        contract = make_contract(end=date(2024, 1, 10))
        result = lookup_coverage([contract], contract.mobile, TODAY)
        assert result.found
        assert not result.is_covered
        assert result.status == AMCStatus.EXPIRED
        assert result.message == "AMC expired on 10/01/2024. Services will be charged."

    def test_no_match_is_walk_in(self):
        result = lookup_coverage([make_contract()], "0000", TODAY)
        assert not result.found
        assert not result.is_covered
        assert "Walk-in" in result.message


class TestRenewal:
    def test_calculate_end_date(self):
        assert calculate_end_date("2024-01-15", 12) == date(2025, 1, 14)

    def test_renew_extends_and_moves_start(self):
        contract = make_contract(end=date(2024, 7, 1))
        renewed = renew(contract, "2025-07-01", new_amount=5500)
        assert renewed.start_date == "2024-07-01"
        assert renewed.end_date == "2025-07-01"
        assert renewed.amc_amount == 5500
        assert contract.end_date == "2024-07-01"

    def test_renew_must_extend(self):
        contract = make_contract(end=date(2024, 7, 1))
        with pytest.raises(InvalidRenewalError):
            renew(contract, "2024-07-01")

    def test_quick_renewal_adds_a_year(self):
        contract = make_contract(end=date(2024, 7, 1))
        assert default_renewal_end(contract) == date(2025, 7, 1)


class TestReports:
    def test_upcoming_renewals_sorted_soonest_first(self):
        contracts = [
            make_contract("AMC-2024-001", end=TODAY + timedelta(days=20)),
            make_contract("AMC-2024-002", end=TODAY + timedelta(days=5)),
            make_contract("AMC-2024-003", end=TODAY + timedelta(days=90)),
            make_contract("AMC-2024-004", end=TODAY - timedelta(days=1)),
        ]
        due = upcoming_renewals(contracts, 30, TODAY)
        assert [c.id for c in due] == ["AMC-2024-002", "AMC-2024-001"]

    def test_status_counts(self):
        contracts = [
            make_contract("AMC-2024-001", end=TODAY + timedelta(days=100)),
            make_contract("AMC-2024-002", end=TODAY + timedelta(days=10)),
            make_contract("AMC-2024-003", end=TODAY - timedelta(days=10)),
        ]
        assert status_counts(contracts, TODAY) == {
            AMCStatus.ACTIVE: 1,
            AMCStatus.EXPIRING: 1,
            AMCStatus.EXPIRED: 1,
        }


class TestAMCService:
    @pytest.fixture
    def service(self, connection, clock):
        return AMCService(connection, clock=clock)

    def _create(self, service, **overrides):
        values = dict(
            customer="Ravi Kumar",
            mobile="9876500001",
            device_serial="SN123",
            device_name="Dell Inspiron",
            services_included=["Cleaning"],
            start_date="2024-01-15",
        )
        values.update(overrides)
        return service.create_contract(**values)

    def test_create_contract(self, service):
        contract = self._create(service)
        assert contract.id == "AMC-2024-001"
        assert contract.qr_code_id == "AMC-2024-001-SN123"
        assert contract.end_date == "2025-01-14"
        assert service.get(contract.id).services_included == ["Cleaning"]

    def test_ids_are_sequential(self, service):
        self._create(service)
        second = self._create(service, device_serial="SN999")
        assert second.id == "AMC-2024-002"

    def test_create_requires_fields(self, service):
        with pytest.raises(ValidationError) as excinfo:
            self._create(service, customer=" ", services_included=[])
        assert set(excinfo.value.field_errors) == {"customer", "services"}

    def test_lookup_by_qr(self, service):
        contract = self._create(service)
        result = service.lookup(contract.qr_code_id)
        assert result.contract.id == contract.id
        assert result.is_covered

    def test_renew_contract_persists(self, service):
        contract = self._create(service)
        renewed = service.renew_contract(contract.id)
        assert renewed.end_date == "2026-01-14"
        assert service.get(contract.id).start_date == "2025-01-14"

    def test_service_history_blocks_delete(self, service):
        contract = self._create(service)
        service.add_service_entry(contract.id, "Fan cleaning", job_id="JOB-2024-001")
        assert len(service.get(contract.id).service_history) == 1
        with pytest.raises(ValidationError):
            service.delete_contract(contract.id)

    def test_delete_without_history(self, service):
        contract = self._create(service)
        assert service.delete_contract(contract.id)
        with pytest.raises(NotFoundError):
            service.get(contract.id)

    def test_list_by_status(self, service):
        self._create(service)
        self._create(service, device_serial="SN2", start_date="2023-01-01")
        assert [c.device_serial for c in service.list_contracts(AMCStatus.EXPIRED)] == ["SN2"]
