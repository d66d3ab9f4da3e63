"""Seed demo data into the ServiceDesk SQLite database."""

from __future__ import annotations

import argparse
import sqlite3
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from servicedesk.db.connection import get_connection  # noqa: E402
from servicedesk.db.migrations import apply_migrations  # noqa: E402
from servicedesk.domain.models import PartLine, ServiceLine, ServiceType  # noqa: E402
from servicedesk.paths import get_db_path  # noqa: E402
from servicedesk.repositories import DepartmentRepo  # noqa: E402
from servicedesk.services.amc_service import AMCService  # noqa: E402
from servicedesk.services.job_service import JobService  # noqa: E402
from servicedesk.services.leave_service import LeaveService  # noqa: E402
from servicedesk.services.rma_service import RMAService  # noqa: E402

SEED_TAG = "Seed Demo"

DEPARTMENTS = [
    ("LAP", "Laptop Repair", 300.0, 500.0, 200.0),
    ("DSK", "Desktop Repair", 250.0, 450.0, 150.0),
    ("PRN", "Printer Service", 200.0, 400.0, 100.0),
]

STAFF_BALANCES = {
    1: {"casual": 12, "sick": 10, "earned": 15},
    2: {"casual": 6, "sick": 10, "earned": 4},
}


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed demo data for ServiceDesk")
    parser.add_argument("--db", type=Path, help="Database to seed instead of the default.")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Remove the current database and recreate it before seeding.",
    )
    return parser.parse_args()


def _has_seed(connection: sqlite3.Connection) -> bool:
    row = connection.execute(
        "SELECT COUNT(*) AS total FROM amc_contracts WHERE customer LIKE ?",
        (f"{SEED_TAG}%",),
    ).fetchone()
    return bool(row["total"])


def _seed_departments(connection: sqlite3.Connection) -> dict[str, int]:
    repo = DepartmentRepo(connection)
    existing = {department.code: department.id for department in repo.list_all()}
    for code, name, insite, outsite, remote in DEPARTMENTS:
        if code in existing:
            continue
        department = repo.create(
            code=code,
            name=name,
            base_charge_insite=insite,
            base_charge_outsite=outsite,
            base_charge_remote=remote,
        )
        existing[code] = department.id
    return existing


def _seed_contracts(amc_service: AMCService, today: date) -> list[str]:
    specs = [
        ("Asha Menon", "9876500001", "SN-LAP-001", "Dell Latitude 5420", 200),
        ("Ravi Kumar", "9876500011", "SN-LAP-002", "Lenovo ThinkPad E14", 340),
        ("Meena Iyer", "9876500021", "SN-DSK-003", "HP ProDesk 400", 380),
    ]
    ids = []
    for customer, mobile, serial, device, age_days in specs:
        contract = amc_service.create_contract(
            customer=f"{SEED_TAG} {customer}",
            mobile=mobile,
            device_serial=serial,
            device_name=device,
            services_included=["General Service", "Cleaning", "OS Reinstall"],
            start_date=today - timedelta(days=age_days),
        )
        ids.append(contract.id)
    return ids


def _seed_jobs(
    job_service: JobService,
    amc_service: AMCService,
    departments: dict[str, int],
) -> list[str]:
    covered = job_service.create_job(
        customer=f"{SEED_TAG} Asha Menon",
        mobile="9876500001",
        device="Dell Latitude 5420",
        issue="Fan noise and overheating",
        department_id=departments["LAP"],
        amc_lookup=amc_service.lookup("9876500001"),
        serial="SN-LAP-001",
    )
    job_service.save_lines(
        covered,
        parts=[PartLine(item_id=1, name="Thermal Paste", qty=1, price=0.0)],
        services=[
            ServiceLine(addon_id=1, name="Cleaning", price=500.0, is_chargeable=False),
            ServiceLine(addon_id=2, name="Fan Replacement", price=1200.0),
        ],
    )

    walk_in = job_service.create_job(
        customer=f"{SEED_TAG} Anita Rao",
        mobile="9876500002",
        device="HP Pavilion 15",
        issue="No display",
        department_id=departments["LAP"],
        service_type=ServiceType.OUTSITE,
    )
    job_service.save_lines(
        walk_in,
        parts=[PartLine(item_id=2, name="LCD Panel 15.6", qty=1, price=2000.0)],
        services=[ServiceLine(addon_id=3, name="Panel Fitting", price=300.0)],
    )
    job_service.advance(walk_in.id)

    printer = job_service.create_job(
        customer=f"{SEED_TAG} Kiran Shah",
        mobile="9876500004",
        device="Canon LBP2900",
        issue="Paper jam",
        department_id=departments["PRN"],
        service_type=ServiceType.REMOTE,
    )
    return [covered.id, walk_in.id, printer.id]


def _seed_rma(rma_service: RMAService, today: date) -> list[str]:
    inbox = rma_service.create_ticket(
        customer=f"{SEED_TAG} Suresh Pillai",
        mobile="9876500003",
        part_name="Seagate 1TB HDD",
        purchase_date=today - timedelta(days=200),
        part_serial="ZN1A2B3C",
        issue="Bad sectors",
        service_center="Seagate Bengaluru",
    )
    outbox = rma_service.create_ticket(
        customer=f"{SEED_TAG} Farah Khan",
        mobile="9876500005",
        part_name="Kingston 8GB DDR4",
        purchase_date=today - timedelta(days=400),
        warranty_years=3,
        service_center="Kingston RMA",
    )
    rma_service.advance(outbox.id)
    rma_service.advance(outbox.id)
    return [inbox.id, outbox.id]


def _seed_leave(leave_service: LeaveService, today: date) -> None:
    for user_id, balances in STAFF_BALANCES.items():
        for leave_type, days in balances.items():
            leave_service.set_balance(user_id, leave_type, days)
    holiday = date(today.year, 12, 25)
    if holiday.isoformat() not in {h.date for h in leave_service.holidays()}:
        leave_service.add_holiday(holiday, "Christmas")

    start = today + timedelta(days=10)
    while start.weekday() >= 5 or start in (holiday, holiday - timedelta(days=1)):
        start += timedelta(days=1)
    request = leave_service.submit(
        user_id=1,
        leave_type="earned",
        start_date=start,
        end_date=start + timedelta(days=1),
        reason="Family function",
    )
    leave_service.approve(request.id or 0, "Priya", "Manager", "Covered by Ravi")
    leave_service.submit(
        user_id=2,
        leave_type="sick",
        start_date=start,
        end_date=start,
        reason="Doctor appointment",
        half_day="First Half",
    )


def seed(db_path: Path, reset: bool = False, today: Optional[date] = None) -> bool:
    """Seed the database at ``db_path``; return False when already seeded."""
    if reset and db_path.exists():
        db_path.unlink()
    today = today or date.today()
    clock = lambda: today  # noqa: E731
    connection = get_connection(db_path)
    try:
        apply_migrations(connection)
        if _has_seed(connection):
            return False
        departments = _seed_departments(connection)
        amc_service = AMCService(connection, clock=clock)
        contracts = _seed_contracts(amc_service, today)
        jobs = _seed_jobs(JobService(connection, clock=clock), amc_service, departments)
        tickets = _seed_rma(RMAService(connection, clock=clock), today)
        _seed_leave(LeaveService(connection, clock=clock), today)
        print(f"AMC contracts: {', '.join(contracts)}")
        print(f"Jobs: {', '.join(jobs)}")
        print(f"RMA tickets: {', '.join(tickets)}")
        return True
    finally:
        connection.close()


def main() -> None:
    args = _parse_args()
    db_path = args.db or get_db_path()
    if seed(db_path, reset=args.reset):
        print(f"Demo data seeded into {db_path}")
    else:
        print(f"{db_path} already has demo data; use --reset to start over.")


if __name__ == "__main__":
    main()
