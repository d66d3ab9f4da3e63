"""Tests for job intake, billing lines and workflow."""

import pytest

from servicedesk.domain.models import JobStatus, ServiceType
from servicedesk.services.amc_service import AMCService
from servicedesk.services.errors import NotFoundError, ValidationError
from servicedesk.services.job_service import (
    JobService,
    add_part,
    add_service,
    next_job_status,
    select_base_charge,
    toggle_chargeable,
)


@pytest.fixture
def service(connection, clock):
    return JobService(connection, clock=clock)


@pytest.fixture
def job(service, department):
    return service.create_job(
        customer="Anita Rao",
        mobile="9876500002",
        device="HP Pavilion",
        issue="No display",
        department_id=department.id,
    )


class TestBaseCharge:
    def test_rate_follows_service_type(self, department):
        assert select_base_charge(department, ServiceType.INSITE) == 300
        assert select_base_charge(department, "Outsite") == 500
        assert select_base_charge(department, ServiceType.REMOTE) == 200


class TestCreateJob:
    def test_walk_in_job(self, job):
        assert job.id == "JOB-2024-001"
        assert job.status == JobStatus.OPEN
        assert job.base_charge == 300
        assert not job.is_amc_covered
        assert job.grand_total == pytest.approx(354)

    def test_missing_fields(self, service):
        with pytest.raises(ValidationError) as excinfo:
            service.create_job("", "", "Laptop", "Noise", department_id=None)
        assert {"customer", "mobile", "department"} <= set(excinfo.value.field_errors)

    def test_amc_coverage_is_snapshotted(self, connection, clock, service, department):
        amc = AMCService(connection, clock=clock)
        contract = amc.create_contract(
            customer="Ravi Kumar",
            mobile="9876500001",
            device_serial="SN123",
            device_name="Dell Inspiron",
            services_included=["OS Install"],
            start_date="2024-01-01",
        )
        lookup = amc.lookup(contract.qr_code_id)
        job = service.create_job(
            customer="Ravi Kumar",
            mobile="9876500001",
            device="Dell Inspiron",
            issue="Slow boot",
            department_id=department.id,
            amc_lookup=lookup,
        )
        assert job.amc_id == contract.id
        assert job.is_amc_covered
        assert job.serial == "SN123"

        # Coverage stays as recorded at intake after the contract expires.
        later = JobService(connection, clock=lambda: clock().replace(year=2026))
        assert later.get(job.id).is_amc_covered


class TestLines:
    def test_covered_job_adds_free_services(self, job):
        job.is_amc_covered = True
        add_service(job, 1, "OS Install", 500.0)
        line = job.services_applied[0]
        assert not line.is_chargeable
        assert line.original_price == 500.0

    def test_duplicate_service_ignored(self, job):
        add_service(job, 1, "OS Install", 500.0)
        add_service(job, 1, "OS Install", 500.0)
        assert len(job.services_applied) == 1

    def test_toggle_chargeable(self, job):
        add_service(job, 1, "OS Install", 500.0)
        toggle_chargeable(job, 1)
        assert not job.services_applied[0].is_chargeable
        with pytest.raises(NotFoundError):
            toggle_chargeable(job, 99)

    def test_add_part_bumps_quantity(self, job):
        add_part(job, 7, "SSD", 1000.0, gst_percent=18.0)
        add_part(job, 7, "SSD", 1000.0, qty=1)
        assert len(job.parts_used) == 1
        assert job.parts_used[0].qty == 2

    def test_save_lines_updates_grand_total(self, service, job):
        add_part(job, 7, "SSD", 1000.0, qty=2, gst_percent=18.0)
        add_service(job, 1, "OS Install", 500.0)
        service.save_lines(job)
        stored = service.get(job.id)
        assert stored.grand_total == pytest.approx(3304)
        assert service.totals(stored).grand_total == pytest.approx(3304)


class TestWorkflow:
    def test_transition_table(self):
        assert next_job_status(JobStatus.OPEN) == JobStatus.IN_PROGRESS
        assert next_job_status(JobStatus.DELIVERED) is None

    def test_advance_to_delivered(self, service, job, today):
        for _ in range(4):
            job = service.advance(job.id)
        assert job.status == JobStatus.DELIVERED
        assert job.completed_date == today.isoformat()
        assert job.delivered_date == today.isoformat()
        with pytest.raises(ValidationError):
            service.advance(job.id)

    def test_delivered_job_is_locked(self, service, job):
        for _ in range(4):
            job = service.advance(job.id)
        with pytest.raises(ValidationError):
            service.save_lines(job, base_charge=0)

    def test_summary(self, service, job):
        add_service(job, 1, "OS Install", 500.0)
        job.is_amc_covered = True
        add_service(job, 2, "Cleaning", 200.0)
        service.save_lines(job)
        summary = service.summary()
        assert summary.counts[JobStatus.OPEN] == 1
        assert summary.amc_savings == 200
        assert summary.billed_total == pytest.approx((300 + 500) * 1.18)

    def test_unknown_job(self, service):
        with pytest.raises(NotFoundError):
            service.get("JOB-2024-999")
