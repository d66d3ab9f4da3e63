"""Repository for job (complaint) persistence."""

from __future__ import annotations

from typing import List, Optional

from servicedesk.domain.models import Job, JobStatus
from servicedesk.repositories.base import RecordRepository
from servicedesk.repositories.mappers import job_from_row, job_to_record


class JobRepo(RecordRepository):
    table = "jobs"

    def add(self, job: Job) -> Job:
        self._insert(job_to_record(job))
        return job

    def save(self, job: Job) -> bool:
        return self._update(job_to_record(job))

    def get_by_id(self, job_id: str) -> Optional[Job]:
        row = self._fetch_one(job_id)
        return job_from_row(row) if row else None

    def list_all(self, status: Optional[JobStatus] = None) -> List[Job]:
        if status is None:
            rows = self._fetch_all(order_by="id")
        else:
            rows = self._fetch_all("status = ?", (JobStatus(status).value,), order_by="id")
        return [job_from_row(row) for row in rows]
