"""Tests for job card and RMA receipt PDFs."""

from datetime import date

from servicedesk.domain.models import Job, PartLine, RMATicket, ServiceLine
from servicedesk.services import billing
from servicedesk.services.billing import compute_job_totals
from servicedesk.services.job_service import JobService
from servicedesk.services.warranty import compute_warranty
from servicedesk.utils import pdf_generator
from servicedesk.utils.pdf_generator import generate_job_card_pdf, generate_rma_receipt_pdf


class TestPdfGenerator:
    def test_job_card(self, tmp_path, connection, clock, department):
        job = JobService(connection, clock=clock).create_job(
            customer="Anita Rao",
            mobile="9876500002",
            device="HP Pavilion",
            issue="No display",
            department_id=department.id,
        )
        job.parts_used = [PartLine(item_id=1, name="Panel", qty=1, price=4200.0)]
        job.services_applied = [
            ServiceLine(addon_id=1, name="Fitting", price=300.0, is_chargeable=False)
        ]
        totals = compute_job_totals(job.base_charge, job.parts_used, job.services_applied)
        path = generate_job_card_pdf(job, department, totals, tmp_path / "out" / "job.pdf")
        assert path.read_bytes().startswith(b"%PDF")

    def test_line_amounts_use_billing_formulas(self, tmp_path, monkeypatch, department):
        calls = []

        def fake_part_amount(part):
            calls.append(("part", part.name))
            return billing.part_amount(part)

        def fake_service_amount(service):
            calls.append(("service", service.name))
            return billing.service_amount(service)

        monkeypatch.setattr(pdf_generator, "part_amount", fake_part_amount)
        monkeypatch.setattr(pdf_generator, "service_amount", fake_service_amount)
        job = Job(
            id="JOB-2024-001",
            customer="Anita Rao",
            mobile="9876500002",
            device="HP Pavilion",
            issue="No display",
            department_id=department.id,
            base_charge=300.0,
            parts_used=[PartLine(item_id=1, name="RAM", qty=2, price=1500.0)],
            services_applied=[
                ServiceLine(addon_id=1, name="Cleaning", price=200.0, is_chargeable=True)
            ],
        )
        totals = compute_job_totals(job.base_charge, job.parts_used, job.services_applied)
        generate_job_card_pdf(job, department, totals, tmp_path / "job.pdf")
        assert calls == [("part", "RAM"), ("service", "Cleaning")]

    def test_rma_receipt(self, tmp_path):
        ticket = RMATicket(
            id="RMA-2024-001",
            customer="Suresh",
            mobile="9876500003",
            part_name="HDD",
            purchase_date="2023-12-01",
            inbox_date="2024-06-15",
        )
        warranty = compute_warranty(ticket.purchase_date, ticket.warranty_years, date(2024, 6, 15))
        path = generate_rma_receipt_pdf(ticket, warranty, tmp_path / "rma.pdf")
        assert path.exists()
        assert path.read_bytes()[:4] == b"%PDF"
