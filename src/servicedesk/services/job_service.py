"""Job (complaint) rules: base charges, AMC snapshot, status workflow."""

from __future__ import annotations

import sqlite3
from collections import Counter
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Optional

from servicedesk.config import DEFAULT_GST_RATE
from servicedesk.db.connection import now_iso
from servicedesk.domain.models import (
    JOB_TRANSITIONS,
    Department,
    Job,
    JobStatus,
    PartLine,
    ServiceLine,
    ServiceType,
)
from servicedesk.logging_config import get_logger
from servicedesk.repositories.department_repo import DepartmentRepo
from servicedesk.repositories.job_repo import JobRepo
from servicedesk.services.amc_service import AMCLookup
from servicedesk.services.billing import JobTotals, compute_job_totals
from servicedesk.services.errors import NotFoundError, ValidationError
from servicedesk.services.sequence import next_sequence_id

JOB_ID_PREFIX = "JOB"


@dataclass(frozen=True)
class JobSummary:
    counts: dict[JobStatus, int]
    billed_total: float
    amc_savings: float


def select_base_charge(
    department: Department, service_type: ServiceType | str
) -> float:
    rates = {
        ServiceType.INSITE: department.base_charge_insite,
        ServiceType.OUTSITE: department.base_charge_outsite,
        ServiceType.REMOTE: department.base_charge_remote,
    }
    return float(rates[ServiceType(service_type)] or 0.0)


def apply_amc_lookup(job: Job, lookup: AMCLookup) -> Job:
    """Copy contract details into the job and snapshot coverage once.

    ``is_amc_covered`` keeps the value seen at intake; later renewals or
    expiry of the contract do not change how this job is billed.
    """
    contract = lookup.contract
    if contract is None:
        job.amc_id = None
        job.is_amc_covered = False
        return job
    job.customer = contract.customer
    job.mobile = contract.mobile
    job.email = contract.email
    job.address = contract.address
    job.device = contract.device_name
    job.serial = contract.device_serial
    job.amc_id = contract.id
    job.is_amc_covered = lookup.is_covered
    return job


def add_part(
    job: Job,
    item_id: int,
    name: str,
    price: float,
    qty: int = 1,
    gst_percent: Optional[float] = None,
) -> Job:
    """Add a part line, or bump the quantity when the item is already listed."""
    for line in job.parts_used:
        if line.item_id == item_id:
            line.qty += qty
            return job
    job.parts_used.append(
        PartLine(
            item_id=item_id, name=name, qty=qty, price=price, gst_percent=gst_percent
        )
    )
    return job


def add_service(job: Job, addon_id: int, name: str, price: float) -> Job:
    if any(line.addon_id == addon_id for line in job.services_applied):
        return job
    job.services_applied.append(
        ServiceLine(
            addon_id=addon_id,
            name=name,
            price=price,
            original_price=price,
            is_chargeable=not job.is_amc_covered,
        )
    )
    return job


def toggle_chargeable(job: Job, addon_id: int) -> Job:
    for line in job.services_applied:
        if line.addon_id == addon_id:
            if line.original_price is None:
                line.original_price = line.price
            line.is_chargeable = not line.is_chargeable
            return job
    raise NotFoundError(f"Service {addon_id} is not on job {job.id}.")


def next_job_status(status: JobStatus | str) -> Optional[JobStatus]:
    return JOB_TRANSITIONS[JobStatus(status)]


def advance_status(job: Job, today: date) -> Job:
    """Move a job one step along the workflow and stamp milestone dates."""
    target = next_job_status(job.status)
    if target is None:
        raise ValidationError(f"Job {job.id} is already {JobStatus(job.status).value}.")
    job.status = target
    if target == JobStatus.COMPLETED and not job.completed_date:
        job.completed_date = today.isoformat()
    if target == JobStatus.DELIVERED and not job.delivered_date:
        job.delivered_date = today.isoformat()
    return job


def job_totals(job: Job, gst_rate: float = DEFAULT_GST_RATE) -> JobTotals:
    return compute_job_totals(
        job.base_charge, job.parts_used, job.services_applied, gst_rate
    )


def summarize_jobs(
    jobs: Iterable[Job], gst_rate: float = DEFAULT_GST_RATE
) -> JobSummary:
    jobs = list(jobs)
    counts = Counter(JobStatus(job.status) for job in jobs)
    totals = [job_totals(job, gst_rate) for job in jobs]
    return JobSummary(
        counts={status: counts.get(status, 0) for status in JobStatus},
        billed_total=sum(total.grand_total for total in totals),
        amc_savings=sum(total.amc_discount for total in totals),
    )


class JobService:
    """Service for job intake, billing lines and workflow."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        clock: Callable[[], date] = date.today,
        gst_rate: float = DEFAULT_GST_RATE,
    ) -> None:
        self._repo = JobRepo(connection)
        self._departments = DepartmentRepo(connection)
        self._clock = clock
        self._gst_rate = gst_rate
        self._logger = get_logger(self.__class__.__name__)

    def get(self, job_id: str) -> Job:
        job = self._repo.get_by_id(job_id)
        if not job:
            raise NotFoundError(f"Job {job_id} not found.")
        return job

    def list_jobs(self, status: Optional[JobStatus] = None) -> list[Job]:
        return self._repo.list_all(status)

    def totals(self, job: Job) -> JobTotals:
        return job_totals(job, self._gst_rate)

    def create_job(
        self,
        customer: str,
        mobile: str,
        device: str,
        issue: str,
        department_id: Optional[int],
        service_type: ServiceType = ServiceType.INSITE,
        amc_lookup: Optional[AMCLookup] = None,
        serial: Optional[str] = None,
        email: Optional[str] = None,
        address: Optional[str] = None,
    ) -> Job:
        errors: dict[str, str] = {}
        if not customer.strip():
            errors["customer"] = "Customer name required"
        if not mobile.strip():
            errors["mobile"] = "Mobile number required"
        if not device.strip():
            errors["device"] = "Device name required"
        if not issue.strip():
            errors["issue"] = "Issue description required"
        department = (
            self._departments.get_by_id(department_id) if department_id else None
        )
        if department is None:
            errors["department"] = "Department required"
        if errors:
            raise ValidationError("Job is incomplete.", errors)

        today = self._clock()
        job = Job(
            id=next_sequence_id(
                JOB_ID_PREFIX, today.year, self._repo.list_ids(f"{JOB_ID_PREFIX}-")
            ),
            customer=customer.strip(),
            mobile=mobile.strip(),
            device=device.strip(),
            issue=issue.strip(),
            department_id=department.id or 0,
            service_type=ServiceType(service_type),
            serial=serial,
            email=email,
            address=address,
            base_charge=select_base_charge(department, service_type),
            created_date=today.isoformat(),
        )
        if amc_lookup is not None:
            apply_amc_lookup(job, amc_lookup)
        return self._persist(job, new=True)

    def save_lines(
        self,
        job: Job,
        parts: Optional[Iterable[PartLine]] = None,
        services: Optional[Iterable[ServiceLine]] = None,
        base_charge: Optional[float] = None,
    ) -> Job:
        if JobStatus(job.status) == JobStatus.DELIVERED:
            raise ValidationError(
                f"Job {job.id} is delivered and can no longer be edited."
            )
        if parts is not None:
            job.parts_used = list(parts)
        if services is not None:
            job.services_applied = list(services)
        if base_charge is not None:
            job.base_charge = float(base_charge)
        return self._persist(job)

    def advance(self, job_id: str) -> Job:
        job = advance_status(self.get(job_id), self._clock())
        self._logger.info("Job %s moved to %s", job.id, job.status.value)
        return self._persist(job)

    def summary(self) -> JobSummary:
        return summarize_jobs(self._repo.list_all(), self._gst_rate)

    def _persist(self, job: Job, new: bool = False) -> Job:
        job.grand_total = self.totals(job).grand_total
        job.updated_at = now_iso()
        if new:
            self._repo.add(job)
            self._logger.info("Created job %s", job.id)
        elif not self._repo.save(job):
            raise NotFoundError(f"Job {job.id} not found.")
        return job
