"""Database migrations for SQLite schema versioning."""

from __future__ import annotations

from dataclasses import dataclass
import sqlite3

from servicedesk.db.connection import transaction
from servicedesk.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Migration:
    version: int
    script: str


MIGRATIONS: list[Migration] = [
    Migration(
        version=1,
        script="""
        CREATE TABLE IF NOT EXISTS departments (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            code TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL,
            base_charge_insite REAL NOT NULL DEFAULT 0,
            base_charge_outsite REAL NOT NULL DEFAULT 0,
            base_charge_remote REAL NOT NULL DEFAULT 0,
            is_active INTEGER NOT NULL DEFAULT 1
        );

        CREATE TABLE IF NOT EXISTS amc_contracts (
            id TEXT PRIMARY KEY,
            qr_code_id TEXT NOT NULL UNIQUE,
            customer TEXT NOT NULL,
            mobile TEXT NOT NULL,
            email TEXT,
            address TEXT,
            device_serial TEXT NOT NULL,
            device_name TEXT NOT NULL,
            device_type TEXT NOT NULL,
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            period_months INTEGER NOT NULL,
            amc_amount REAL NOT NULL DEFAULT 0,
            terms TEXT,
            order_id TEXT,
            services_included TEXT NOT NULL DEFAULT '[]',
            service_history TEXT NOT NULL DEFAULT '[]',
            created_at TEXT,
            updated_at TEXT,
            CHECK (end_date > start_date)
        );

        CREATE TABLE IF NOT EXISTS jobs (
            id TEXT PRIMARY KEY,
            customer TEXT NOT NULL,
            mobile TEXT NOT NULL,
            email TEXT,
            address TEXT,
            device TEXT NOT NULL,
            serial TEXT,
            issue TEXT NOT NULL,
            service_type TEXT NOT NULL,
            department_id INTEGER NOT NULL,
            amc_id TEXT,
            is_amc_covered INTEGER NOT NULL DEFAULT 0,
            parts_used TEXT NOT NULL DEFAULT '[]',
            services_applied TEXT NOT NULL DEFAULT '[]',
            base_charge REAL NOT NULL DEFAULT 0,
            status TEXT NOT NULL,
            created_date TEXT,
            completed_date TEXT,
            delivered_date TEXT,
            grand_total REAL NOT NULL DEFAULT 0,
            updated_at TEXT,
            FOREIGN KEY (department_id) REFERENCES departments(id)
        );

        CREATE TABLE IF NOT EXISTS rma_tickets (
            id TEXT PRIMARY KEY,
            customer TEXT NOT NULL,
            mobile TEXT NOT NULL,
            part_name TEXT NOT NULL,
            part_serial TEXT,
            issue TEXT,
            purchase_date TEXT NOT NULL,
            warranty_years INTEGER NOT NULL DEFAULT 1,
            service_center TEXT,
            status TEXT NOT NULL,
            replacement_charge REAL NOT NULL DEFAULT 0,
            inbox_date TEXT,
            in_company_date TEXT,
            outbox_date TEXT,
            delivered_date TEXT,
            history TEXT NOT NULL DEFAULT '[]',
            updated_at TEXT,
            CHECK ((status = 'Delivered') = (delivered_date IS NOT NULL))
        );

        CREATE INDEX IF NOT EXISTS idx_amc_contracts_mobile
            ON amc_contracts(mobile);
        CREATE INDEX IF NOT EXISTS idx_amc_contracts_end_date
            ON amc_contracts(end_date);
        CREATE INDEX IF NOT EXISTS idx_jobs_status
            ON jobs(status);
        CREATE INDEX IF NOT EXISTS idx_rma_tickets_status
            ON rma_tickets(status);
        """,
    ),
    Migration(
        version=2,
        script="""
        CREATE TABLE IF NOT EXISTS leave_requests (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            leave_type TEXT NOT NULL,
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            half_day TEXT,
            days REAL NOT NULL,
            reason TEXT NOT NULL,
            status TEXT NOT NULL,
            approval_history TEXT NOT NULL DEFAULT '[]',
            created_at TEXT,
            updated_at TEXT,
            CHECK (end_date >= start_date)
        );

        CREATE TABLE IF NOT EXISTS leave_balances (
            user_id INTEGER NOT NULL,
            leave_type TEXT NOT NULL,
            balance REAL NOT NULL DEFAULT 0,
            PRIMARY KEY (user_id, leave_type)
        );

        CREATE TABLE IF NOT EXISTS holidays (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            date TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_leave_requests_user_id
            ON leave_requests(user_id);
        """,
    ),
]


def _fetch_schema_version(connection: sqlite3.Connection) -> int:
    connection.execute(
        """
        CREATE TABLE IF NOT EXISTS app_meta (
            schema_version INTEGER NOT NULL
        );
        """
    )
    row = connection.execute(
        "SELECT schema_version FROM app_meta LIMIT 1"
    ).fetchone()
    if row is None:
        connection.execute("INSERT INTO app_meta (schema_version) VALUES (0)")
        return 0
    return int(row[0])


def apply_migrations(connection: sqlite3.Connection) -> int:
    """Apply pending migrations and return the resulting schema version."""
    with transaction(connection):
        current_version = _fetch_schema_version(connection)

    for migration in MIGRATIONS:
        if migration.version <= current_version:
            continue
        with transaction(connection):
            connection.executescript(migration.script)
            connection.execute(
                "UPDATE app_meta SET schema_version = ?",
                (migration.version,),
            )
        logger.info("Applied schema migration %s", migration.version)
        current_version = migration.version
    return current_version
