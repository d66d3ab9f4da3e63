"""SQLite row mappers for domain models."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import asdict
from typing import Any, Dict, Optional

from servicedesk.domain.models import (
    AMCContract,
    ApprovalEntry,
    Department,
    HalfDay,
    HistoryEntry,
    Holiday,
    Job,
    JobStatus,
    LeaveRequest,
    LeaveStatus,
    PartLine,
    RMAStatus,
    RMATicket,
    ServiceEntry,
    ServiceLine,
    ServiceType,
)


def _row_value(row: sqlite3.Row, key: str) -> Any:
    return row[key] if key in row.keys() else None


def _json_list(row: sqlite3.Row, key: str) -> list[dict[str, Any]]:
    raw = _row_value(row, key)
    if not raw:
        return []
    data = json.loads(raw)
    return data if isinstance(data, list) else []


def _dump(items: list[Any]) -> str:
    return json.dumps([asdict(item) for item in items], ensure_ascii=False)


def department_from_row(row: sqlite3.Row) -> Department:
    return Department(
        id=row["id"],
        code=row["code"],
        name=row["name"],
        base_charge_insite=float(row["base_charge_insite"]),
        base_charge_outsite=float(row["base_charge_outsite"]),
        base_charge_remote=float(row["base_charge_remote"]),
        is_active=bool(row["is_active"]),
    )


def amc_from_row(row: sqlite3.Row) -> AMCContract:
    return AMCContract(
        id=row["id"],
        qr_code_id=row["qr_code_id"],
        customer=row["customer"],
        mobile=row["mobile"],
        email=_row_value(row, "email"),
        address=_row_value(row, "address"),
        device_serial=row["device_serial"],
        device_name=row["device_name"],
        device_type=row["device_type"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        period_months=int(row["period_months"]),
        amc_amount=float(row["amc_amount"]),
        terms=_row_value(row, "terms"),
        order_id=_row_value(row, "order_id"),
        services_included=[str(name) for name in json.loads(row["services_included"] or "[]")],
        service_history=[ServiceEntry(**entry) for entry in _json_list(row, "service_history")],
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )


def amc_to_record(contract: AMCContract) -> Dict[str, Any]:
    record = {
        name: getattr(contract, name)
        for name in (
            "id",
            "qr_code_id",
            "customer",
            "mobile",
            "email",
            "address",
            "device_serial",
            "device_name",
            "device_type",
            "start_date",
            "end_date",
            "period_months",
            "amc_amount",
            "terms",
            "order_id",
            "created_at",
            "updated_at",
        )
    }
    record["services_included"] = json.dumps(list(contract.services_included))
    record["service_history"] = _dump(contract.service_history)
    return record


def job_from_row(row: sqlite3.Row) -> Job:
    return Job(
        id=row["id"],
        customer=row["customer"],
        mobile=row["mobile"],
        email=_row_value(row, "email"),
        address=_row_value(row, "address"),
        device=row["device"],
        serial=_row_value(row, "serial"),
        issue=row["issue"],
        service_type=ServiceType(row["service_type"]),
        department_id=int(row["department_id"]),
        amc_id=_row_value(row, "amc_id"),
        is_amc_covered=bool(row["is_amc_covered"]),
        parts_used=[PartLine(**line) for line in _json_list(row, "parts_used")],
        services_applied=[ServiceLine(**line) for line in _json_list(row, "services_applied")],
        base_charge=float(row["base_charge"]),
        status=JobStatus(row["status"]),
        created_date=_row_value(row, "created_date"),
        completed_date=_row_value(row, "completed_date"),
        delivered_date=_row_value(row, "delivered_date"),
        grand_total=float(row["grand_total"]),
        updated_at=_row_value(row, "updated_at"),
    )


def job_to_record(job: Job) -> Dict[str, Any]:
    return {
        "id": job.id,
        "customer": job.customer,
        "mobile": job.mobile,
        "email": job.email,
        "address": job.address,
        "device": job.device,
        "serial": job.serial,
        "issue": job.issue,
        "service_type": ServiceType(job.service_type).value,
        "department_id": job.department_id,
        "amc_id": job.amc_id,
        "is_amc_covered": int(job.is_amc_covered),
        "parts_used": _dump(job.parts_used),
        "services_applied": _dump(job.services_applied),
        "base_charge": job.base_charge,
        "status": JobStatus(job.status).value,
        "created_date": job.created_date,
        "completed_date": job.completed_date,
        "delivered_date": job.delivered_date,
        "grand_total": job.grand_total,
        "updated_at": job.updated_at,
    }


def rma_from_row(row: sqlite3.Row) -> RMATicket:
    return RMATicket(
        id=row["id"],
        customer=row["customer"],
        mobile=row["mobile"],
        part_name=row["part_name"],
        part_serial=_row_value(row, "part_serial"),
        issue=_row_value(row, "issue"),
        purchase_date=row["purchase_date"],
        warranty_years=int(row["warranty_years"]),
        service_center=_row_value(row, "service_center"),
        status=RMAStatus(row["status"]),
        replacement_charge=float(row["replacement_charge"]),
        inbox_date=_row_value(row, "inbox_date"),
        in_company_date=_row_value(row, "in_company_date"),
        outbox_date=_row_value(row, "outbox_date"),
        delivered_date=_row_value(row, "delivered_date"),
        history=[
            HistoryEntry(
                timestamp=entry["timestamp"],
                action=entry["action"],
                status=RMAStatus(entry["status"]),
            )
            for entry in _json_list(row, "history")
        ],
        updated_at=_row_value(row, "updated_at"),
    )


def rma_to_record(ticket: RMATicket) -> Dict[str, Any]:
    return {
        "id": ticket.id,
        "customer": ticket.customer,
        "mobile": ticket.mobile,
        "part_name": ticket.part_name,
        "part_serial": ticket.part_serial,
        "issue": ticket.issue,
        "purchase_date": ticket.purchase_date,
        "warranty_years": ticket.warranty_years,
        "service_center": ticket.service_center,
        "status": RMAStatus(ticket.status).value,
        "replacement_charge": ticket.replacement_charge,
        "inbox_date": ticket.inbox_date,
        "in_company_date": ticket.in_company_date,
        "outbox_date": ticket.outbox_date,
        "delivered_date": ticket.delivered_date,
        "history": json.dumps(
            [
                {
                    "timestamp": entry.timestamp,
                    "action": entry.action,
                    "status": RMAStatus(entry.status).value,
                }
                for entry in ticket.history
            ],
            ensure_ascii=False,
        ),
        "updated_at": ticket.updated_at,
    }


def _half_day(raw: Optional[str]) -> Optional[HalfDay]:
    return HalfDay(raw) if raw else None


def leave_from_row(row: sqlite3.Row) -> LeaveRequest:
    return LeaveRequest(
        id=row["id"],
        user_id=int(row["user_id"]),
        leave_type=row["leave_type"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        half_day=_half_day(_row_value(row, "half_day")),
        days=float(row["days"]),
        reason=row["reason"],
        status=LeaveStatus(row["status"]),
        approval_history=[
            ApprovalEntry(
                level=int(entry["level"]),
                approver_name=entry["approver_name"],
                approver_role=entry["approver_role"],
                action=LeaveStatus(entry["action"]),
                timestamp=entry["timestamp"],
                comments=entry["comments"],
            )
            for entry in _json_list(row, "approval_history")
        ],
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )


def leave_to_record(request: LeaveRequest) -> Dict[str, Any]:
    return {
        "id": request.id,
        "user_id": request.user_id,
        "leave_type": request.leave_type,
        "start_date": request.start_date,
        "end_date": request.end_date,
        "half_day": HalfDay(request.half_day).value if request.half_day else None,
        "days": request.days,
        "reason": request.reason,
        "status": LeaveStatus(request.status).value,
        "approval_history": json.dumps(
            [
                {**asdict(entry), "action": LeaveStatus(entry.action).value}
                for entry in request.approval_history
            ],
            ensure_ascii=False,
        ),
        "created_at": request.created_at,
        "updated_at": request.updated_at,
    }


def holiday_from_row(row: sqlite3.Row) -> Holiday:
    return Holiday(id=row["id"], date=row["date"], name=row["name"])
