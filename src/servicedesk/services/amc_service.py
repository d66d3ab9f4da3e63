"""AMC contract coverage rules and contract workflow."""

from __future__ import annotations

import sqlite3
from collections import Counter
from dataclasses import dataclass, replace
from datetime import date
from typing import Callable, Iterable, Optional

from dateutil.relativedelta import relativedelta

from servicedesk.config import (
    AMC_DEFAULT_AMOUNT,
    AMC_DEFAULT_PERIOD_MONTHS,
    AMC_EXPIRING_WINDOW_DAYS,
    AMC_QUICK_RENEWAL_MONTHS,
)
from servicedesk.db.connection import now_iso
from servicedesk.domain.models import AMCContract, AMCStatus, ServiceEntry
from servicedesk.logging_config import get_logger
from servicedesk.repositories.amc_repo import AMCRepo
from servicedesk.services.date_math import (
    DateLike,
    add_months_then_back_one_day,
    as_date,
    days_between,
)
from servicedesk.services.errors import (
    InvalidRenewalError,
    NotFoundError,
    ValidationError,
)
from servicedesk.services.sequence import next_sequence_id

AMC_ID_PREFIX = "AMC"


@dataclass(frozen=True)
class AMCLookup:
    """Outcome of scanning a QR code or typing a mobile number at intake."""

    contract: Optional[AMCContract]
    status: Optional[AMCStatus]
    is_covered: bool
    matched_by: Optional[str]
    message: str

    @property
    def found(self) -> bool:
        return self.contract is not None


def days_to_expiry(contract: AMCContract, today: DateLike) -> int:
    return days_between(today, contract.end_date)


def derive_status(
    contract: AMCContract,
    today: DateLike,
    window_days: int = AMC_EXPIRING_WINDOW_DAYS,
) -> AMCStatus:
    remaining = days_to_expiry(contract, today)
    if remaining < 0:
        return AMCStatus.EXPIRED
    if remaining <= window_days:
        return AMCStatus.EXPIRING
    return AMCStatus.ACTIVE


def is_covered(contract: AMCContract, today: DateLike) -> bool:
    """Covered through the last day of the contract, expiring or not."""
    return days_to_expiry(contract, today) >= 0


def find_by_qr(
    contracts: Iterable[AMCContract], qr_code_id: str
) -> Optional[AMCContract]:
    return next((c for c in contracts if c.qr_code_id == qr_code_id), None)


def find_by_mobile(
    contracts: Iterable[AMCContract], mobile: str
) -> Optional[AMCContract]:
    return next((c for c in contracts if c.mobile == mobile), None)


def lookup_coverage(
    contracts: Iterable[AMCContract], code: str, today: DateLike
) -> AMCLookup:
    """Resolve a scanned code: QR id first, mobile number only on a miss."""
    contracts = list(contracts)
    code = code.strip()
    matched_by = "qr"
    contract = find_by_qr(contracts, code)
    if contract is None:
        matched_by = "mobile"
        contract = find_by_mobile(contracts, code)
    if contract is None:
        return AMCLookup(
            contract=None,
            status=None,
            is_covered=False,
            matched_by=None,
            message="No AMC found for this QR code or mobile number. Walk-in customer.",
        )
    covered = is_covered(contract, today)
    end_label = as_date(contract.end_date).strftime("%d/%m/%Y")
    if covered:
        message = f"Active AMC until {end_label}. Covered services will be free."
    else:
        message = f"AMC expired on {end_label}. Services will be charged."
    return AMCLookup(
        contract=contract,
        status=derive_status(contract, today),
        is_covered=covered,
        matched_by=matched_by,
        message=message,
    )


def calculate_end_date(start_date: DateLike, period_months: int) -> date:
    return add_months_then_back_one_day(start_date, period_months)


def default_renewal_end(contract: AMCContract) -> date:
    """End date offered by the one-click renewal, a year after the current end."""
    return as_date(contract.end_date) + relativedelta(months=AMC_QUICK_RENEWAL_MONTHS)


def renew(
    contract: AMCContract,
    new_end_date: DateLike,
    new_amount: Optional[float] = None,
) -> AMCContract:
    """Return a renewed copy; the new term starts where the old one ended."""
    new_end = as_date(new_end_date)
    if new_end <= as_date(contract.end_date):
        raise InvalidRenewalError(
            "Renewal must extend the contract beyond its current end date.",
            {"end_date": f"Must be after {contract.end_date}"},
        )
    return replace(
        contract,
        start_date=contract.end_date,
        end_date=new_end.isoformat(),
        amc_amount=contract.amc_amount if new_amount is None else float(new_amount),
        service_history=list(contract.service_history),
        services_included=list(contract.services_included),
    )


def upcoming_renewals(
    contracts: Iterable[AMCContract], window_days: int, today: DateLike
) -> list[AMCContract]:
    """Contracts ending within ``window_days``, soonest first."""
    due = [
        contract
        for contract in contracts
        if 0 <= days_to_expiry(contract, today) <= window_days
    ]
    return sorted(due, key=lambda c: (days_to_expiry(c, today), c.id))


def status_counts(
    contracts: Iterable[AMCContract],
    today: DateLike,
    window_days: int = AMC_EXPIRING_WINDOW_DAYS,
) -> dict[AMCStatus, int]:
    counts = Counter(derive_status(c, today, window_days) for c in contracts)
    return {status: counts.get(status, 0) for status in AMCStatus}


def build_qr_code_id(contract_id: str, device_serial: str) -> str:
    return f"{contract_id}-{device_serial}"


class AMCService:
    """Service for AMC contract issuance, renewal and service logging."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        clock: Callable[[], date] = date.today,
        expiring_window_days: int = AMC_EXPIRING_WINDOW_DAYS,
    ) -> None:
        self._repo = AMCRepo(connection)
        self._clock = clock
        self._window_days = expiring_window_days
        self._logger = get_logger(self.__class__.__name__)

    def get(self, contract_id: str) -> AMCContract:
        contract = self._repo.get_by_id(contract_id)
        if not contract:
            raise NotFoundError(f"AMC {contract_id} not found.")
        return contract

    def list_contracts(self, status: Optional[AMCStatus] = None) -> list[AMCContract]:
        contracts = self._repo.list_all()
        if status is None:
            return contracts
        today = self._clock()
        return [
            c for c in contracts if derive_status(c, today, self._window_days) == status
        ]

    def status_of(self, contract: AMCContract) -> AMCStatus:
        return derive_status(contract, self._clock(), self._window_days)

    def create_contract(
        self,
        customer: str,
        mobile: str,
        device_serial: str,
        device_name: str,
        services_included: Iterable[str],
        start_date: Optional[DateLike] = None,
        period_months: int = AMC_DEFAULT_PERIOD_MONTHS,
        amc_amount: float = AMC_DEFAULT_AMOUNT,
        device_type: str = "Laptop",
        email: Optional[str] = None,
        address: Optional[str] = None,
        terms: Optional[str] = None,
        order_id: Optional[str] = None,
    ) -> AMCContract:
        services = [name for name in services_included if name]
        errors: dict[str, str] = {}
        if not customer.strip():
            errors["customer"] = "Customer name required"
        if not mobile.strip():
            errors["mobile"] = "Mobile required"
        if not device_serial.strip():
            errors["device_serial"] = "Device serial required"
        if not device_name.strip():
            errors["device_name"] = "Device name required"
        if not services:
            errors["services"] = "Select at least one service"
        if int(period_months) <= 0:
            errors["period_months"] = "Period must be at least one month"
        if errors:
            raise ValidationError("AMC contract is incomplete.", errors)

        start = as_date(start_date) if start_date is not None else self._clock()
        contract_id = next_sequence_id(
            AMC_ID_PREFIX, start.year, self._repo.list_ids(f"{AMC_ID_PREFIX}-")
        )
        timestamp = now_iso()
        contract = AMCContract(
            id=contract_id,
            qr_code_id=build_qr_code_id(contract_id, device_serial.strip()),
            customer=customer.strip(),
            mobile=mobile.strip(),
            device_serial=device_serial.strip(),
            device_name=device_name.strip(),
            device_type=device_type,
            start_date=start.isoformat(),
            end_date=calculate_end_date(start, period_months).isoformat(),
            period_months=int(period_months),
            amc_amount=float(amc_amount),
            email=email,
            address=address,
            terms=terms,
            order_id=order_id,
            services_included=services,
            created_at=timestamp,
            updated_at=timestamp,
        )
        self._repo.add(contract)
        self._logger.info("Created AMC %s ending %s", contract.id, contract.end_date)
        return contract

    def renew_contract(
        self,
        contract_id: str,
        new_end_date: Optional[DateLike] = None,
        new_amount: Optional[float] = None,
    ) -> AMCContract:
        contract = self.get(contract_id)
        end = new_end_date
        if end is None:
            end = default_renewal_end(contract)
        renewed = renew(contract, end, new_amount)
        renewed.updated_at = now_iso()
        self._repo.save(renewed)
        self._logger.info("Renewed AMC %s until %s", renewed.id, renewed.end_date)
        return renewed

    def add_service_entry(
        self,
        contract_id: str,
        description: str,
        job_id: Optional[str] = None,
        technician: Optional[str] = None,
    ) -> AMCContract:
        if not description.strip():
            raise ValidationError(
                "Service description required.", {"description": "Required"}
            )
        contract = self.get(contract_id)
        contract.service_history.append(
            ServiceEntry(
                date=self._clock().isoformat(),
                description=description.strip(),
                job_id=job_id,
                technician=technician,
            )
        )
        contract.updated_at = now_iso()
        self._repo.save(contract)
        return contract

    def delete_contract(self, contract_id: str) -> bool:
        contract = self.get(contract_id)
        if contract.service_history:
            raise ValidationError(
                f"AMC {contract_id} has service history and cannot be deleted."
            )
        deleted = self._repo.delete(contract_id)
        self._logger.info("Deleted AMC %s", contract_id)
        return deleted

    def lookup(self, code: str) -> AMCLookup:
        return lookup_coverage(self._repo.list_all(), code, self._clock())

    def upcoming_renewals(self, window_days: Optional[int] = None) -> list[AMCContract]:
        window = self._window_days if window_days is None else window_days
        return upcoming_renewals(self._repo.list_all(), window, self._clock())

    def status_counts(self) -> dict[AMCStatus, int]:
        return status_counts(self._repo.list_all(), self._clock(), self._window_days)
