"""Domain models for ServiceDesk."""

from servicedesk.domain.models import (
    AMCContract,
    AMCStatus,
    Department,
    HalfDay,
    Job,
    JobStatus,
    LeaveRequest,
    LeaveStatus,
    LeaveType,
    PartLine,
    RMAStatus,
    RMATicket,
    ServiceLine,
    ServiceType,
)

__all__ = [
    "AMCContract",
    "AMCStatus",
    "Department",
    "HalfDay",
    "Job",
    "JobStatus",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "PartLine",
    "RMAStatus",
    "RMATicket",
    "ServiceLine",
    "ServiceType",
]
