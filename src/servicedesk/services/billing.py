"""Job billing calculations shared by previews, printouts and summaries.

Every surface that shows money for a job calls :func:`compute_job_totals`.
Totals keep full float precision; only :func:`round_for_display` rounds, and
only at presentation time, so recomputing from the same lines is stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping, Optional

from servicedesk.config import DEFAULT_GST_RATE
from servicedesk.domain.models import PartLine, ServiceLine


@dataclass(frozen=True)
class JobTotals:
    """Derived financial totals for a job."""

    parts_subtotal: float
    parts_gst: float
    services_subtotal: float
    services_gst: float
    base_charge: float
    base_charge_gst: float
    subtotal: float
    total_gst: float
    grand_total: float
    amc_discount: float

    @property
    def cgst(self) -> float:
        return self.total_gst / 2

    @property
    def sgst(self) -> float:
        return self.total_gst / 2


def _field(line: PartLine | ServiceLine | Mapping[str, Any], name: str) -> Any:
    if isinstance(line, Mapping):
        return line.get(name)
    return getattr(line, name, None)


def _number(value: Any) -> float:
    if value is None:
        return 0.0
    return float(value)


def is_free_part(part: PartLine | Mapping[str, Any]) -> bool:
    """A part is free when its price is zero; there is no separate flag."""
    return _number(_field(part, "price")) == 0


def part_amount(part: PartLine | Mapping[str, Any]) -> float:
    return _number(_field(part, "price")) * _number(_field(part, "qty"))


def part_gst(
    part: PartLine | Mapping[str, Any], gst_rate_default: float = DEFAULT_GST_RATE
) -> float:
    rate: Optional[Any] = _field(part, "gst_percent")
    if rate is None:
        rate = gst_rate_default
    return part_amount(part) * float(rate) / 100


def service_amount(service: ServiceLine | Mapping[str, Any]) -> float:
    if not _field(service, "is_chargeable"):
        return 0.0
    return _number(_field(service, "price"))


def service_discount(service: ServiceLine | Mapping[str, Any]) -> float:
    """Value waived on an AMC-covered line, for display only."""
    if _field(service, "is_chargeable"):
        return 0.0
    original = _field(service, "original_price")
    if original is None:
        original = _field(service, "price")
    return _number(original)


def compute_job_totals(
    base_charge: float,
    parts: Iterable[PartLine | Mapping[str, Any]],
    services: Iterable[ServiceLine | Mapping[str, Any]],
    gst_rate_default: float = DEFAULT_GST_RATE,
) -> JobTotals:
    """Compute subtotals, GST and the grand total for a job.

    Parts use their own GST percentage when one is recorded; chargeable
    services and the base charge always use ``gst_rate_default``. Covered
    services add nothing to the subtotal and their original price to
    ``amc_discount``, which is never subtracted from the grand total.
    """
    parts = list(parts)
    services = list(services)
    base = _number(base_charge)

    parts_subtotal = sum(part_amount(part) for part in parts)
    parts_gst_total = sum(part_gst(part, gst_rate_default) for part in parts)

    services_subtotal = sum(service_amount(service) for service in services)
    services_gst = sum(
        service_amount(service) * gst_rate_default / 100 for service in services
    )
    amc_discount = sum(service_discount(service) for service in services)

    base_charge_gst = base * gst_rate_default / 100
    subtotal = base + parts_subtotal + services_subtotal
    total_gst = base_charge_gst + parts_gst_total + services_gst

    return JobTotals(
        parts_subtotal=parts_subtotal,
        parts_gst=parts_gst_total,
        services_subtotal=services_subtotal,
        services_gst=services_gst,
        base_charge=base,
        base_charge_gst=base_charge_gst,
        subtotal=subtotal,
        total_gst=total_gst,
        grand_total=subtotal + total_gst,
        amc_discount=amc_discount,
    )


def round_for_display(value: float) -> int:
    """Round half-up to whole currency units for printing."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_currency(value: float) -> str:
    return f"₹{round_for_display(value):,}"
