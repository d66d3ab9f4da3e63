"""Shared fixtures: an in-memory database with the schema applied."""

from datetime import date

import pytest

from servicedesk.db.connection import IN_MEMORY, get_connection
from servicedesk.db.migrations import apply_migrations
from servicedesk.repositories import DepartmentRepo

TODAY = date(2024, 6, 15)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def clock():
    return lambda: TODAY


@pytest.fixture
def connection():
    """Create a fresh in-memory database for each test."""
    conn = get_connection(IN_MEMORY)
    apply_migrations(conn)
    yield conn
    conn.close()


@pytest.fixture
def department(connection):
    return DepartmentRepo(connection).create(
        code="LAP",
        name="Laptop Repair",
        base_charge_insite=300.0,
        base_charge_outsite=500.0,
        base_charge_remote=200.0,
    )
