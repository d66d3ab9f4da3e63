"""Tests for migrations and SQLite repositories."""

import sqlite3

import pytest

from servicedesk.db.connection import IN_MEMORY, get_connection
from servicedesk.db.migrations import MIGRATIONS, apply_migrations
from servicedesk.domain.models import (
    HistoryEntry,
    Job,
    JobStatus,
    PartLine,
    RMAStatus,
    RMATicket,
    ServiceLine,
)
from servicedesk.repositories import DepartmentRepo, HolidayRepo, JobRepo, LeaveRepo, RMARepo


class TestMigrations:
    def test_applies_latest_version(self):
        conn = get_connection(IN_MEMORY)
        assert apply_migrations(conn) == MIGRATIONS[-1].version
        tables = {
            row["name"]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
        assert {"amc_contracts", "jobs", "rma_tickets", "leave_requests", "holidays"} <= tables
        conn.close()

    def test_rerun_is_noop(self, connection):
        assert apply_migrations(connection) == MIGRATIONS[-1].version


class TestJobRepo:
    def test_lines_round_trip_as_json(self, connection, department):
        repo = JobRepo(connection)
        job = Job(
            id="JOB-2024-001",
            customer="Anita Rao",
            mobile="9876500002",
            device="HP Pavilion",
            issue="No display",
            department_id=department.id,
            parts_used=[PartLine(item_id=1, name="Panel", qty=1, price=4200.0)],
            services_applied=[
                ServiceLine(addon_id=3, name="Fitting", price=300.0, is_chargeable=False)
            ],
        )
        repo.add(job)
        stored = repo.get_by_id("JOB-2024-001")
        assert stored.parts_used == job.parts_used
        assert stored.services_applied[0].is_chargeable is False
        assert stored.status == JobStatus.OPEN
        assert repo.list_all(JobStatus.COMPLETED) == []

    def test_unknown_department_rejected(self, connection):
        job = Job(
            id="JOB-2024-001",
            customer="Anita Rao",
            mobile="9876500002",
            device="HP Pavilion",
            issue="No display",
            department_id=99,
        )
        with pytest.raises(sqlite3.IntegrityError):
            JobRepo(connection).add(job)


class TestRMARepo:
    def test_delivered_requires_date(self, connection):
        ticket = RMATicket(
            id="RMA-2024-001",
            customer="Suresh",
            mobile="9876500003",
            part_name="HDD",
            purchase_date="2023-12-01",
            status=RMAStatus.DELIVERED,
        )
        with pytest.raises(sqlite3.IntegrityError):
            RMARepo(connection).add(ticket)

    def test_history_round_trip(self, connection):
        repo = RMARepo(connection)
        ticket = RMATicket(
            id="RMA-2024-001",
            customer="Suresh",
            mobile="9876500003",
            part_name="HDD",
            purchase_date="2023-12-01",
            history=[
                HistoryEntry("2024-06-15T10:00:00", "RMA Created", RMAStatus.INBOX)
            ],
        )
        repo.add(ticket)
        assert repo.get_by_id(ticket.id).history == ticket.history
        assert repo.list_ids("RMA-2024-") == ["RMA-2024-001"]


class TestDepartmentRepo:
    def test_active_filter(self, connection, department):
        repo = DepartmentRepo(connection)
        repo.create(code="DSK", name="Desktop", is_active=False)
        assert [d.code for d in repo.list_all(active_only=True)] == ["LAP"]
        assert len(repo.list_all()) == 2


class TestLeaveRepo:
    def test_balance_upsert(self, connection):
        repo = LeaveRepo(connection)
        assert repo.get_balance(1, "casual") is None
        repo.set_balance(1, "casual", 12)
        repo.set_balance(1, "casual", 10)
        assert repo.get_balance(1, "casual") == 10
        assert repo.get_balances(1) == {"casual": 10}

    def test_holiday_dates(self, connection):
        repo = HolidayRepo(connection)
        repo.add_many([("2024-10-02", "Gandhi Jayanti"), ("2024-08-15", "Independence Day")])
        assert repo.list_dates() == ["2024-08-15", "2024-10-02"]
