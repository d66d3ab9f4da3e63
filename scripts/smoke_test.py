"""Smoke test for core business flows."""

from __future__ import annotations

import tempfile
from datetime import date, timedelta
from pathlib import Path
import sys

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR / "src"))

from servicedesk.db.connection import get_connection  # noqa: E402
from servicedesk.db.migrations import apply_migrations  # noqa: E402
from servicedesk.domain.models import (  # noqa: E402
    LeaveStatus,
    PartLine,
    RMAStatus,
    ServiceLine,
)
from servicedesk.repositories import DepartmentRepo  # noqa: E402
from servicedesk.services.amc_service import AMCService  # noqa: E402
from servicedesk.services.errors import OtpMismatchError  # noqa: E402
from servicedesk.services.job_service import JobService  # noqa: E402
from servicedesk.services.leave_service import LeaveService  # noqa: E402
from servicedesk.services.rma_service import RMAService  # noqa: E402
from servicedesk.utils.pdf_generator import (  # noqa: E402
    generate_job_card_pdf,
    generate_rma_receipt_pdf,
)


def main() -> None:
    today = date.today()
    clock = lambda: today  # noqa: E731
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        connection = get_connection(temp_path / "smoke_test.db")
        try:
            apply_migrations(connection)
            department = DepartmentRepo(connection).create(
                code="LAP", name="Laptop Repair", base_charge_insite=300.0
            )

            amc_service = AMCService(connection, clock=clock)
            contract = amc_service.create_contract(
                customer="Smoke Customer",
                mobile="9000000000",
                device_serial="SMOKE-1",
                device_name="Smoke Laptop",
                services_included=["Cleaning"],
            )
            lookup = amc_service.lookup(contract.qr_code_id)
            if not lookup.is_covered:
                raise RuntimeError("Fresh AMC contract should cover the device.")

            job_service = JobService(connection, clock=clock)
            job = job_service.create_job(
                customer=contract.customer,
                mobile=contract.mobile,
                device=contract.device_name,
                issue="Slow boot",
                department_id=department.id,
                amc_lookup=lookup,
            )
            job_service.save_lines(
                job,
                parts=[PartLine(item_id=1, name="RAM 8GB", qty=1, price=2000.0)],
                services=[
                    ServiceLine(addon_id=1, name="Cleaning", price=300.0, is_chargeable=False)
                ],
            )
            totals = job_service.totals(job)
            if round(totals.grand_total, 2) != 2714.0:
                raise RuntimeError(f"Unexpected grand total {totals.grand_total}.")
            generate_job_card_pdf(job, department, totals, temp_path / "job.pdf")

            rma_service = RMAService(connection, clock=clock)
            ticket = rma_service.create_ticket(
                customer="Smoke Customer",
                mobile="9000000000",
                part_name="SSD 512GB",
                purchase_date=today - timedelta(days=90),
            )
            rma_service.advance(ticket.id)
            rma_service.advance(ticket.id)
            code = rma_service.request_delivery_otp(ticket.id)
            wrong = "0000" if code != "0000" else "1111"
            try:
                rma_service.confirm_delivery(ticket.id, wrong)
            except OtpMismatchError:
                pass
            else:
                raise RuntimeError("A wrong OTP must not deliver the part.")
            ticket = rma_service.confirm_delivery(ticket.id, code)
            if ticket.status != RMAStatus.DELIVERED:
                raise RuntimeError("RMA should be delivered after a matching OTP.")
            generate_rma_receipt_pdf(
                ticket, rma_service.warranty(ticket), temp_path / "rma.pdf"
            )

            leave_service = LeaveService(connection, clock=clock)
            leave_service.set_balance(1, "sick", 10)
            request = leave_service.submit(
                user_id=1,
                leave_type="sick",
                start_date=today,
                end_date=today,
                reason="Smoke test",
                half_day="First Half",
            )
            request = leave_service.approve(request.id or 0, "Admin User", "Admin")
            if request.status != LeaveStatus.APPROVED:
                raise RuntimeError("Admin approval should be final.")
            if leave_service.balances(1)["sick"] != 9.5:
                raise RuntimeError("Approved leave should be deducted.")
        finally:
            connection.close()
    print("Smoke test OK")


if __name__ == "__main__":
    main()
