"""Domain dataclasses and enums."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class AMCStatus(str, Enum):
    ACTIVE = "Active"
    EXPIRING = "Expiring"
    EXPIRED = "Expired"


class ServiceType(str, Enum):
    INSITE = "Insite"
    OUTSITE = "Outsite"
    REMOTE = "Remote"


class JobStatus(str, Enum):
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    PENDING_PARTS = "Pending Parts"
    COMPLETED = "Completed"
    DELIVERED = "Delivered"


class RMAStatus(str, Enum):
    INBOX = "Inbox"
    IN_COMPANY = "In-Company"
    OUTBOX = "Outbox"
    DELIVERED = "Delivered"


class LeaveStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class HalfDay(str, Enum):
    FIRST_HALF = "First Half"
    SECOND_HALF = "Second Half"


JOB_TRANSITIONS: dict[JobStatus, Optional[JobStatus]] = {
    JobStatus.OPEN: JobStatus.IN_PROGRESS,
    JobStatus.IN_PROGRESS: JobStatus.PENDING_PARTS,
    JobStatus.PENDING_PARTS: JobStatus.COMPLETED,
    JobStatus.COMPLETED: JobStatus.DELIVERED,
    JobStatus.DELIVERED: None,
}

RMA_TRANSITIONS: dict[RMAStatus, Optional[RMAStatus]] = {
    RMAStatus.INBOX: RMAStatus.IN_COMPANY,
    RMAStatus.IN_COMPANY: RMAStatus.OUTBOX,
    RMAStatus.OUTBOX: RMAStatus.DELIVERED,
    RMAStatus.DELIVERED: None,
}

LEAVE_TRANSITIONS: dict[LeaveStatus, frozenset[LeaveStatus]] = {
    LeaveStatus.PENDING: frozenset({LeaveStatus.APPROVED, LeaveStatus.REJECTED}),
    LeaveStatus.APPROVED: frozenset(),
    LeaveStatus.REJECTED: frozenset(),
}


@dataclass(slots=True)
class ServiceEntry:
    date: str
    description: str
    job_id: Optional[str] = None
    technician: Optional[str] = None


@dataclass(slots=True)
class AMCContract:
    id: str
    qr_code_id: str
    customer: str
    mobile: str
    device_serial: str
    device_name: str
    start_date: str
    end_date: str
    amc_amount: float
    period_months: int = 12
    device_type: str = "Laptop"
    email: Optional[str] = None
    address: Optional[str] = None
    terms: Optional[str] = None
    order_id: Optional[str] = None
    services_included: list[str] = field(default_factory=list)
    service_history: list[ServiceEntry] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(slots=True)
class Department:
    id: Optional[int]
    code: str
    name: str
    base_charge_insite: float = 0.0
    base_charge_outsite: float = 0.0
    base_charge_remote: float = 0.0
    is_active: bool = True


@dataclass(slots=True)
class PartLine:
    item_id: int
    name: str
    qty: int
    price: float
    gst_percent: Optional[float] = None


@dataclass(slots=True)
class ServiceLine:
    addon_id: int
    name: str
    price: float
    original_price: Optional[float] = None
    is_chargeable: bool = True


@dataclass(slots=True)
class Job:
    id: str
    customer: str
    mobile: str
    device: str
    issue: str
    department_id: int
    service_type: ServiceType = ServiceType.INSITE
    serial: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    amc_id: Optional[str] = None
    is_amc_covered: bool = False
    parts_used: list[PartLine] = field(default_factory=list)
    services_applied: list[ServiceLine] = field(default_factory=list)
    base_charge: float = 0.0
    status: JobStatus = JobStatus.OPEN
    created_date: Optional[str] = None
    completed_date: Optional[str] = None
    delivered_date: Optional[str] = None
    grand_total: float = 0.0
    updated_at: Optional[str] = None


@dataclass(slots=True)
class HistoryEntry:
    timestamp: str
    action: str
    status: RMAStatus


@dataclass(slots=True)
class RMATicket:
    id: str
    customer: str
    mobile: str
    part_name: str
    purchase_date: str
    warranty_years: int = 1
    part_serial: Optional[str] = None
    service_center: Optional[str] = None
    issue: Optional[str] = None
    status: RMAStatus = RMAStatus.INBOX
    replacement_charge: float = 0.0
    inbox_date: Optional[str] = None
    in_company_date: Optional[str] = None
    outbox_date: Optional[str] = None
    delivered_date: Optional[str] = None
    history: list[HistoryEntry] = field(default_factory=list)
    updated_at: Optional[str] = None


@dataclass(frozen=True)
class LeaveType:
    id: str
    name: str
    annual_quota: float
    max_days_per_request: Optional[float] = None
    advance_notice_days: int = 0


@dataclass(slots=True)
class ApprovalEntry:
    level: int
    approver_name: str
    approver_role: str
    action: LeaveStatus
    timestamp: str
    comments: str


@dataclass(slots=True)
class LeaveRequest:
    id: Optional[int]
    user_id: int
    leave_type: str
    start_date: str
    end_date: str
    reason: str
    days: float = 0.0
    half_day: Optional[HalfDay] = None
    status: LeaveStatus = LeaveStatus.PENDING
    approval_history: list[ApprovalEntry] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(slots=True)
class Holiday:
    id: Optional[int]
    date: str
    name: str


DEFAULT_LEAVE_TYPES: tuple[LeaveType, ...] = (
    LeaveType("casual", "Casual Leave", 12, max_days_per_request=3, advance_notice_days=1),
    LeaveType("sick", "Sick Leave", 10, max_days_per_request=5, advance_notice_days=0),
    LeaveType("earned", "Earned Leave", 15, max_days_per_request=15, advance_notice_days=7),
    LeaveType("unpaid", "Unpaid Leave", 0, max_days_per_request=30, advance_notice_days=3),
)
