"""Repositories for data access."""

from servicedesk.repositories.amc_repo import AMCRepo
from servicedesk.repositories.department_repo import DepartmentRepo
from servicedesk.repositories.job_repo import JobRepo
from servicedesk.repositories.leave_repo import HolidayRepo, LeaveRepo
from servicedesk.repositories.mappers import (
    amc_from_row,
    amc_to_record,
    department_from_row,
    job_from_row,
    job_to_record,
    leave_from_row,
    leave_to_record,
    rma_from_row,
    rma_to_record,
)
from servicedesk.repositories.rma_repo import RMARepo

__all__ = [
    "AMCRepo",
    "amc_from_row",
    "amc_to_record",
    "DepartmentRepo",
    "department_from_row",
    "HolidayRepo",
    "JobRepo",
    "job_from_row",
    "job_to_record",
    "LeaveRepo",
    "leave_from_row",
    "leave_to_record",
    "RMARepo",
    "rma_from_row",
    "rma_to_record",
]
