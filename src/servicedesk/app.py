"""Command line entry point."""

from __future__ import annotations

import argparse
import sqlite3
from datetime import date
from pathlib import Path
from typing import Callable, Optional, Sequence

from servicedesk.config import (
    AMC_DEFAULT_AMOUNT,
    AMC_DEFAULT_PERIOD_MONTHS,
    FINAL_APPROVER_ROLE,
    AppConfig,
)
from servicedesk.db.connection import get_connection
from servicedesk.db.migrations import apply_migrations
from servicedesk.domain.models import Department, HalfDay, ServiceType
from servicedesk.logging_config import configure_logging, get_logger
from servicedesk.paths import get_config_path, get_db_path, get_pdfs_dir
from servicedesk.repositories import DepartmentRepo
from servicedesk.services.amc_service import AMCService, days_to_expiry
from servicedesk.services.billing import format_currency
from servicedesk.services.errors import (
    NotFoundError,
    OtpMismatchError,
    ServiceError,
    ValidationError,
)
from servicedesk.services.job_service import JobService
from servicedesk.services.leave_service import LeaveService
from servicedesk.services.rma_service import (
    OtpStore,
    RMALifecycle,
    RMAService,
    policy_from_settings,
)
from servicedesk.utils.pdf_generator import (
    generate_job_card_pdf,
    generate_rma_receipt_pdf,
)
from servicedesk.utils.settings import ShopSettings, load_shop_settings

Clock = Callable[[], date]


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="servicedesk",
        description="Service shop jobs, AMC contracts, RMA tickets and leave",
    )
    parser.add_argument("--db", type=Path, help="SQLite database to use.")
    commands = parser.add_subparsers(dest="command", required=True)

    renewals = commands.add_parser("renewals", help="List AMC renewals due soon.")
    renewals.add_argument(
        "--days", type=int, default=None, help="Look-ahead window in days."
    )
    commands.add_parser("summary", help="Show job, AMC and RMA status counts.")

    department = commands.add_parser("department-add", help="Register a department.")
    department.add_argument("code")
    department.add_argument("name")
    department.add_argument("--insite", type=float, default=0.0)
    department.add_argument("--outsite", type=float, default=0.0)
    department.add_argument("--remote", type=float, default=0.0)

    amc = commands.add_parser("amc-add", help="Issue an AMC contract.")
    amc.add_argument("customer")
    amc.add_argument("mobile")
    amc.add_argument("device_serial")
    amc.add_argument("device_name")
    amc.add_argument(
        "--service",
        dest="services",
        action="append",
        required=True,
        help="Covered service name; repeat for each service.",
    )
    amc.add_argument("--start", help="Start date (YYYY-MM-DD), default today.")
    amc.add_argument("--months", type=int, default=AMC_DEFAULT_PERIOD_MONTHS)
    amc.add_argument("--amount", type=float, default=AMC_DEFAULT_AMOUNT)

    amc_renew = commands.add_parser("amc-renew", help="Renew an AMC contract.")
    amc_renew.add_argument("amc_id")
    amc_renew.add_argument("--end", help="New end date, default one more year.")
    amc_renew.add_argument("--amount", type=float, default=None)

    job = commands.add_parser("job-add", help="Open a job.")
    job.add_argument("customer")
    job.add_argument("mobile")
    job.add_argument("device")
    job.add_argument("issue")
    job.add_argument("--department", required=True, help="Department code.")
    job.add_argument(
        "--service-type",
        choices=[item.value for item in ServiceType],
        default=ServiceType.INSITE.value,
    )
    job.add_argument("--serial")
    job.add_argument("--amc", help="AMC QR code or registered mobile to look up.")

    job_advance = commands.add_parser("job-advance", help="Move a job to its next status.")
    job_advance.add_argument("job_id")

    totals = commands.add_parser("job-totals", help="Show the bill for a job.")
    totals.add_argument("job_id")

    job_card = commands.add_parser("job-card", help="Export a job card PDF.")
    job_card.add_argument("job_id")
    job_card.add_argument("--output", type=Path, help="Destination PDF path.")

    rma = commands.add_parser("rma-add", help="Receive a part for RMA.")
    rma.add_argument("customer")
    rma.add_argument("mobile")
    rma.add_argument("part_name")
    rma.add_argument("purchase_date")
    rma.add_argument("--warranty-years", type=int, default=1)
    rma.add_argument("--serial")
    rma.add_argument("--issue")
    rma.add_argument("--service-center")
    rma.add_argument("--charge", type=float, default=0.0)

    rma_advance = commands.add_parser(
        "rma-advance", help="Send an RMA to the company or mark it received back."
    )
    rma_advance.add_argument("rma_id")

    rma_deliver = commands.add_parser(
        "rma-deliver", help="Issue a delivery OTP and confirm it with the customer."
    )
    rma_deliver.add_argument("rma_id")

    receipt = commands.add_parser("rma-receipt", help="Export an RMA receipt PDF.")
    receipt.add_argument("rma_id")
    receipt.add_argument("--output", type=Path, help="Destination PDF path.")

    leave = commands.add_parser("leave-submit", help="Submit a leave request.")
    leave.add_argument("user_id", type=int)
    leave.add_argument("leave_type")
    leave.add_argument("start_date")
    leave.add_argument("end_date")
    leave.add_argument("reason")
    leave.add_argument("--half-day", choices=[item.value for item in HalfDay])

    approve = commands.add_parser("leave-approve", help="Approve a leave request.")
    approve.add_argument("request_id", type=int)
    approve.add_argument("approver")
    approve.add_argument("--role", default=FINAL_APPROVER_ROLE)
    approve.add_argument("--comments", default="")

    reject = commands.add_parser("leave-reject", help="Reject a leave request.")
    reject.add_argument("request_id", type=int)
    reject.add_argument("approver")
    reject.add_argument("--role", default=FINAL_APPROVER_ROLE)
    reject.add_argument("--reason", default="")

    balance = commands.add_parser("leave-balance", help="Show or set leave balances.")
    balance.add_argument("user_id", type=int)
    balance.add_argument(
        "--set", nargs=2, metavar=("LEAVE_TYPE", "DAYS"), help="Set one balance."
    )

    holiday = commands.add_parser("holiday-add", help="Add a holiday to the calendar.")
    holiday.add_argument("date")
    holiday.add_argument("name")
    return parser.parse_args(argv)


def _amc_service(
    connection: sqlite3.Connection, settings: ShopSettings, clock: Clock
) -> AMCService:
    return AMCService(
        connection, clock=clock, expiring_window_days=settings.amc_expiring_window_days
    )


def _job_service(
    connection: sqlite3.Connection, settings: ShopSettings, clock: Clock
) -> JobService:
    return JobService(connection, clock=clock, gst_rate=settings.gst_rate)


def _rma_service(
    connection: sqlite3.Connection, settings: ShopSettings, clock: Clock
) -> RMAService:
    policy = policy_from_settings(settings.otp_validity_hours, settings.otp_max_attempts)
    return RMAService(connection, RMALifecycle(OtpStore(policy)), clock=clock)


def _leave_service(
    connection: sqlite3.Connection, settings: ShopSettings, clock: Clock
) -> LeaveService:
    return LeaveService(
        connection, clock=clock, exclude_weekends=settings.exclude_weekends_from_leave
    )


def _find_department(connection: sqlite3.Connection, code: str) -> Department:
    for department in DepartmentRepo(connection).list_all():
        if department.code.lower() == code.strip().lower():
            return department
    raise NotFoundError(f"Department {code} not found.")


def _print_renewals(
    connection: sqlite3.Connection,
    settings: ShopSettings,
    clock: Clock,
    days: Optional[int],
) -> None:
    service = _amc_service(connection, settings, clock)
    today = clock()
    contracts = service.upcoming_renewals(days)
    if not contracts:
        print("No AMC renewals due.")
        return
    for contract in contracts:
        remaining = days_to_expiry(contract, today)
        print(
            f"{contract.id}  {contract.customer:<24} {contract.mobile:<14} "
            f"ends {contract.end_date} ({remaining} days)  "
            f"{format_currency(contract.amc_amount)}"
        )


def _print_job_totals(
    connection: sqlite3.Connection, settings: ShopSettings, clock: Clock, job_id: str
) -> None:
    service = _job_service(connection, settings, clock)
    job = service.get(job_id)
    totals = service.totals(job)
    rows = [
        ("Parts", totals.parts_subtotal),
        ("Parts GST", totals.parts_gst),
        ("Services", totals.services_subtotal),
        ("Services GST", totals.services_gst),
        ("Base charge", totals.base_charge),
        ("Base charge GST", totals.base_charge_gst),
        ("Subtotal", totals.subtotal),
        ("CGST", totals.cgst),
        ("SGST", totals.sgst),
        ("Grand total", totals.grand_total),
        ("AMC savings", totals.amc_discount),
    ]
    print(f"{job.id}  {job.customer}  {job.device}  [{job.status.value}]")
    for label, value in rows:
        print(f"  {label:<16} {format_currency(value):>12}")


def _print_summary(
    connection: sqlite3.Connection, settings: ShopSettings, clock: Clock
) -> None:
    jobs = _job_service(connection, settings, clock).summary()
    amc_counts = _amc_service(connection, settings, clock).status_counts()
    rma_counts = _rma_service(connection, settings, clock).status_counts()

    print("Jobs")
    for status, count in jobs.counts.items():
        print(f"  {status.value:<16} {count}")
    print(f"  {'Billed':<16} {format_currency(jobs.billed_total)}")
    print(f"  {'AMC savings':<16} {format_currency(jobs.amc_savings)}")
    print("AMC contracts")
    for status, count in amc_counts.items():
        print(f"  {status.value:<16} {count}")
    print("RMA tickets")
    for status, count in rma_counts.items():
        print(f"  {status.value:<16} {count}")


def _add_department(connection: sqlite3.Connection, args: argparse.Namespace) -> None:
    if not args.code.strip() or not args.name.strip():
        raise ValidationError("Department code and name are required.")
    code = args.code.strip().upper()
    repo = DepartmentRepo(connection)
    if any(existing.code == code for existing in repo.list_all()):
        raise ValidationError(f"Department {code} already exists.")
    department = repo.create(
        code=code,
        name=args.name.strip(),
        base_charge_insite=args.insite,
        base_charge_outsite=args.outsite,
        base_charge_remote=args.remote,
    )
    print(f"Department {department.code} created (id {department.id})")


def _add_amc(
    connection: sqlite3.Connection,
    settings: ShopSettings,
    clock: Clock,
    args: argparse.Namespace,
) -> None:
    contract = _amc_service(connection, settings, clock).create_contract(
        customer=args.customer,
        mobile=args.mobile,
        device_serial=args.device_serial,
        device_name=args.device_name,
        services_included=args.services,
        start_date=args.start,
        period_months=args.months,
        amc_amount=args.amount,
    )
    print(
        f"{contract.id} active {contract.start_date} to {contract.end_date}  "
        f"QR {contract.qr_code_id}"
    )


def _renew_amc(
    connection: sqlite3.Connection,
    settings: ShopSettings,
    clock: Clock,
    args: argparse.Namespace,
) -> None:
    contract = _amc_service(connection, settings, clock).renew_contract(
        args.amc_id, args.end, args.amount
    )
    print(f"{contract.id} renewed until {contract.end_date}")


def _add_job(
    connection: sqlite3.Connection,
    settings: ShopSettings,
    clock: Clock,
    args: argparse.Namespace,
) -> None:
    department = _find_department(connection, args.department)
    lookup = None
    if args.amc:
        lookup = _amc_service(connection, settings, clock).lookup(args.amc)
        if not lookup.found:
            print(f"No AMC found for {args.amc}; opening as walk-in customer.")
    job = _job_service(connection, settings, clock).create_job(
        customer=args.customer,
        mobile=args.mobile,
        device=args.device,
        issue=args.issue,
        department_id=department.id,
        service_type=ServiceType(args.service_type),
        amc_lookup=lookup,
        serial=args.serial,
    )
    coverage = "AMC covered" if job.is_amc_covered else "not covered"
    print(f"{job.id} opened ({coverage})  total {format_currency(job.grand_total)}")


def _add_rma(
    connection: sqlite3.Connection,
    settings: ShopSettings,
    clock: Clock,
    args: argparse.Namespace,
) -> None:
    service = _rma_service(connection, settings, clock)
    ticket = service.create_ticket(
        customer=args.customer,
        mobile=args.mobile,
        part_name=args.part_name,
        purchase_date=args.purchase_date,
        warranty_years=args.warranty_years,
        part_serial=args.serial,
        issue=args.issue,
        service_center=args.service_center,
        replacement_charge=args.charge,
    )
    warranty = service.warranty(ticket)
    state = "under warranty" if warranty.is_under_warranty else "out of warranty"
    print(f"{ticket.id} received ({state}, ends {warranty.end_date.isoformat()})")


def _deliver_rma(
    connection: sqlite3.Connection,
    settings: ShopSettings,
    clock: Clock,
    rma_id: str,
) -> int:
    """Issue a delivery code, then read codes from the operator until one matches.

    A blank entry (or end of input) cancels and leaves the ticket in Outbox.
    """
    service = _rma_service(connection, settings, clock)
    code = service.request_delivery_otp(rma_id)
    ticket = service.get(rma_id)
    print(f"Delivery OTP for {ticket.id} (send to {ticket.mobile}): {code}")
    while True:
        try:
            entered = input("Enter OTP (blank to cancel): ")
        except EOFError:
            entered = ""
        if not entered:
            print("Delivery cancelled.")
            return 1
        try:
            ticket = service.confirm_delivery(rma_id, entered)
        except OtpMismatchError as exc:
            print(f"Error: {exc}")
            continue
        print(f"{ticket.id} delivered on {ticket.delivered_date}")
        return 0


def _submit_leave(
    connection: sqlite3.Connection,
    settings: ShopSettings,
    clock: Clock,
    args: argparse.Namespace,
) -> None:
    request = _leave_service(connection, settings, clock).submit(
        user_id=args.user_id,
        leave_type=args.leave_type,
        start_date=args.start_date,
        end_date=args.end_date,
        reason=args.reason,
        half_day=args.half_day,
    )
    print(
        f"Leave request {request.id} submitted: {request.days:g} day(s), "
        f"{request.status.value}"
    )


def _review_leave(
    connection: sqlite3.Connection,
    settings: ShopSettings,
    clock: Clock,
    args: argparse.Namespace,
) -> None:
    service = _leave_service(connection, settings, clock)
    if args.command == "leave-approve":
        request = service.approve(args.request_id, args.approver, args.role, args.comments)
    else:
        request = service.reject(args.request_id, args.approver, args.role, args.reason)
    print(f"Leave request {request.id} is {request.status.value}")


def _leave_balance(
    connection: sqlite3.Connection,
    settings: ShopSettings,
    clock: Clock,
    args: argparse.Namespace,
) -> None:
    service = _leave_service(connection, settings, clock)
    if args.set:
        leave_type, days = args.set
        try:
            balance = float(days)
        except ValueError as exc:
            raise ValidationError(f"Invalid balance: {days}") from exc
        service.set_balance(args.user_id, leave_type, balance)
    balances = service.balances(args.user_id)
    if not balances:
        print(f"No leave balances for user {args.user_id}.")
        return
    for leave_type, days in sorted(balances.items()):
        print(f"  {leave_type:<16} {days:g}")


def _export_job_card(
    connection: sqlite3.Connection,
    settings: ShopSettings,
    clock: Clock,
    job_id: str,
    output: Optional[Path],
) -> Path:
    service = _job_service(connection, settings, clock)
    job = service.get(job_id)
    department = DepartmentRepo(connection).get_by_id(job.department_id)
    path = output or get_pdfs_dir() / f"{job.id}.pdf"
    return generate_job_card_pdf(
        job, department, service.totals(job), path, shop=settings.shop_info
    )


def _export_rma_receipt(
    connection: sqlite3.Connection,
    settings: ShopSettings,
    clock: Clock,
    rma_id: str,
    output: Optional[Path],
) -> Path:
    service = RMAService(connection, clock=clock)
    ticket = service.get(rma_id)
    path = output or get_pdfs_dir() / f"{ticket.id}.pdf"
    return generate_rma_receipt_pdf(
        ticket, service.warranty(ticket), path, shop=settings.shop_info
    )


def _run(
    connection: sqlite3.Connection,
    settings: ShopSettings,
    clock: Clock,
    args: argparse.Namespace,
) -> int:
    command = args.command
    if command == "renewals":
        _print_renewals(connection, settings, clock, args.days)
    elif command == "summary":
        _print_summary(connection, settings, clock)
    elif command == "department-add":
        _add_department(connection, args)
    elif command == "amc-add":
        _add_amc(connection, settings, clock, args)
    elif command == "amc-renew":
        _renew_amc(connection, settings, clock, args)
    elif command == "job-add":
        _add_job(connection, settings, clock, args)
    elif command == "job-advance":
        job = _job_service(connection, settings, clock).advance(args.job_id)
        print(f"{job.id} is {job.status.value}")
    elif command == "job-totals":
        _print_job_totals(connection, settings, clock, args.job_id)
    elif command == "job-card":
        print(_export_job_card(connection, settings, clock, args.job_id, args.output))
    elif command == "rma-add":
        _add_rma(connection, settings, clock, args)
    elif command == "rma-advance":
        ticket = _rma_service(connection, settings, clock).advance(args.rma_id)
        print(f"{ticket.id} is {ticket.status.value}")
    elif command == "rma-deliver":
        return _deliver_rma(connection, settings, clock, args.rma_id)
    elif command == "rma-receipt":
        print(
            _export_rma_receipt(connection, settings, clock, args.rma_id, args.output)
        )
    elif command == "leave-submit":
        _submit_leave(connection, settings, clock, args)
    elif command in ("leave-approve", "leave-reject"):
        _review_leave(connection, settings, clock, args)
    elif command == "leave-balance":
        _leave_balance(connection, settings, clock, args)
    elif command == "holiday-add":
        holiday = _leave_service(connection, settings, clock).add_holiday(
            args.date, args.name
        )
        print(f"Holiday {holiday.date} {holiday.name} added")
    return 0


def main(argv: Optional[Sequence[str]] = None, clock: Clock = date.today) -> int:
    """Run one ServiceDesk command and return the process exit code."""
    args = _parse_args(argv)
    configure_logging()
    logger = get_logger(__name__)
    config = AppConfig()
    logger.info("Starting %s command %s", config.app_name, args.command)

    settings = load_shop_settings(get_config_path())
    connection = get_connection(args.db or get_db_path())
    try:
        apply_migrations(connection)
        return _run(connection, settings, clock, args)
    except ServiceError as exc:
        logger.warning("Command %s failed: %s", args.command, exc)
        print(f"Error: {exc}")
        for field, message in getattr(exc, "field_errors", {}).items():
            print(f"  {field}: {message}")
        return 1
    finally:
        connection.close()


if __name__ == "__main__":
    raise SystemExit(main())
