"""RMA ticket lifecycle with OTP-confirmed delivery.

Tickets move Inbox -> In-Company -> Outbox -> Delivered. The first two steps
are plain status writes. Handing the replacement back to the customer needs
a one-time code: the operator issues a code, the customer reads it back, and
only a matching code moves the ticket to Delivered.

Codes live in an in-memory :class:`OtpStore`, never on the ticket record.
Whether a code can expire or lock after failed tries is decided by an
:class:`OtpPolicy`; the default policy allows unlimited retries forever.
"""

from __future__ import annotations

import secrets
import sqlite3
import threading
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Protocol

from servicedesk.config import OTP_LENGTH
from servicedesk.db.connection import now_iso
from servicedesk.domain.models import (
    RMA_TRANSITIONS,
    HistoryEntry,
    RMAStatus,
    RMATicket,
)
from servicedesk.logging_config import get_logger
from servicedesk.repositories.rma_repo import RMARepo
from servicedesk.services.date_math import DateLike, as_date
from servicedesk.services.errors import (
    NotFoundError,
    OtpMismatchError,
    ValidationError,
)
from servicedesk.services.sequence import next_sequence_id
from servicedesk.services.warranty import Warranty, compute_warranty

RMA_ID_PREFIX = "RMA"

STATUS_ACTIONS = {
    RMAStatus.IN_COMPANY: "Sent to company/service center",
    RMAStatus.OUTBOX: "Replacement received from company",
    RMAStatus.DELIVERED: "Delivered to customer with OTP verification",
}


@dataclass(slots=True)
class IssuedOtp:
    code: str
    issued_at: datetime
    attempts: int = 0


@dataclass(frozen=True)
class OtpCheck:
    ok: bool
    message: str


class OtpPolicy(Protocol):
    def rejection(self, issued: IssuedOtp, now: datetime) -> Optional[str]:
        """Return a user-facing reason when the code may no longer be used."""


class NoExpiryPolicy:
    """Codes never expire and may be retried any number of times."""

    def rejection(self, issued: IssuedOtp, now: datetime) -> Optional[str]:
        return None


@dataclass(frozen=True)
class ExpiringOtpPolicy:
    validity_hours: Optional[float] = 24
    max_attempts: Optional[int] = None

    def rejection(self, issued: IssuedOtp, now: datetime) -> Optional[str]:
        if self.validity_hours is not None and now - issued.issued_at > timedelta(
            hours=self.validity_hours
        ):
            return "OTP expired. Generate a new code."
        if self.max_attempts is not None and issued.attempts >= self.max_attempts:
            return "Too many incorrect attempts. Generate a new code."
        return None


def policy_from_settings(
    validity_hours: Optional[float], max_attempts: Optional[int]
) -> OtpPolicy:
    if validity_hours is None and max_attempts is None:
        return NoExpiryPolicy()
    return ExpiringOtpPolicy(validity_hours=validity_hours, max_attempts=max_attempts)


def _random_code() -> str:
    low = 10 ** (OTP_LENGTH - 1)
    return str(low + secrets.randbelow(9 * low))


class OtpStore:
    """Current delivery code per ticket; the last issued code wins."""

    def __init__(
        self,
        policy: Optional[OtpPolicy] = None,
        generator: Callable[[], str] = _random_code,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._policy = policy or NoExpiryPolicy()
        self._generator = generator
        self._now = now
        self._codes: dict[str, IssuedOtp] = {}
        self._lock = threading.Lock()

    def issue(self, ticket_id: str) -> str:
        code = self._generator()
        with self._lock:
            self._codes[ticket_id] = IssuedOtp(code=code, issued_at=self._now())
        return code

    def has_code(self, ticket_id: str) -> bool:
        with self._lock:
            return ticket_id in self._codes

    def check(self, ticket_id: str, entered: str) -> OtpCheck:
        entered = entered or ""
        with self._lock:
            issued = self._codes.get(ticket_id)
            if issued is None:
                return OtpCheck(False, "OTP not generated")
            if len(entered) != OTP_LENGTH or not entered.isdigit():
                return OtpCheck(False, f"Please enter {OTP_LENGTH}-digit OTP")
            reason = self._policy.rejection(issued, self._now())
            if reason:
                return OtpCheck(False, reason)
            if entered != issued.code:
                issued.attempts += 1
                return OtpCheck(False, "Invalid OTP")
        return OtpCheck(True, "OTP verified successfully")

    def discard(self, ticket_id: str) -> None:
        with self._lock:
            self._codes.pop(ticket_id, None)


def next_status(status: RMAStatus | str) -> Optional[RMAStatus]:
    return RMA_TRANSITIONS[RMAStatus(status)]


def _record(ticket: RMATicket, action: str) -> None:
    ticket.history.append(
        HistoryEntry(
            timestamp=now_iso(), action=action, status=RMAStatus(ticket.status)
        )
    )


class RMALifecycle:
    """Applies status transitions to tickets; delivery is gated by OTP."""

    def __init__(self, otp_store: Optional[OtpStore] = None) -> None:
        self._otp = otp_store or OtpStore()

    def advance(self, ticket: RMATicket, today: DateLike) -> RMATicket:
        target = next_status(ticket.status)
        if target is None:
            raise ValidationError(f"RMA {ticket.id} is already delivered.")
        if target == RMAStatus.DELIVERED:
            raise ValidationError(
                f"RMA {ticket.id} needs OTP verification before delivery."
            )
        day = as_date(today).isoformat()
        ticket.status = target
        if target == RMAStatus.IN_COMPANY and not ticket.in_company_date:
            ticket.in_company_date = day
        if target == RMAStatus.OUTBOX and not ticket.outbox_date:
            ticket.outbox_date = day
        _record(ticket, STATUS_ACTIONS[target])
        return ticket

    def generate_otp(self, ticket: RMATicket) -> str:
        if RMAStatus(ticket.status) != RMAStatus.OUTBOX:
            raise ValidationError(
                f"RMA {ticket.id} must be in Outbox before a delivery OTP is issued."
            )
        code = self._otp.issue(ticket.id)
        _record(ticket, "OTP generated for delivery")
        return code

    def verify_otp(self, ticket: RMATicket, entered: str, today: DateLike) -> RMATicket:
        """Deliver the ticket when ``entered`` matches its current code.

        A failed check leaves the ticket and the issued code untouched so
        the operator can retry.
        """
        if RMAStatus(ticket.status) != RMAStatus.OUTBOX:
            raise ValidationError(f"RMA {ticket.id} is not awaiting delivery.")
        result = self._otp.check(ticket.id, entered)
        if not result.ok:
            raise OtpMismatchError(result.message, {"otp": result.message})
        self._otp.discard(ticket.id)
        ticket.status = RMAStatus.DELIVERED
        ticket.delivered_date = as_date(today).isoformat()
        _record(ticket, STATUS_ACTIONS[RMAStatus.DELIVERED])
        return ticket


def status_counts(tickets: list[RMATicket]) -> dict[RMAStatus, int]:
    counts = Counter(RMAStatus(ticket.status) for ticket in tickets)
    return {status: counts.get(status, 0) for status in RMAStatus}


def delivered_in_month(tickets: list[RMATicket], today: DateLike) -> int:
    month_start = as_date(today).replace(day=1)
    return sum(
        1
        for ticket in tickets
        if ticket.delivered_date and as_date(ticket.delivered_date) >= month_start
    )


class RMAService:
    """Service for RMA intake, workflow and delivery confirmation."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        lifecycle: Optional[RMALifecycle] = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._repo = RMARepo(connection)
        self._lifecycle = lifecycle or RMALifecycle()
        self._clock = clock
        self._logger = get_logger(self.__class__.__name__)

    def get(self, ticket_id: str) -> RMATicket:
        ticket = self._repo.get_by_id(ticket_id)
        if not ticket:
            raise NotFoundError(f"RMA {ticket_id} not found.")
        return ticket

    def list_tickets(self, status: Optional[RMAStatus] = None) -> list[RMATicket]:
        tickets = self._repo.list_all()
        if status is None:
            return tickets
        return [ticket for ticket in tickets if ticket.status == RMAStatus(status)]

    def create_ticket(
        self,
        customer: str,
        mobile: str,
        part_name: str,
        purchase_date: DateLike,
        warranty_years: int = 1,
        part_serial: Optional[str] = None,
        issue: Optional[str] = None,
        service_center: Optional[str] = None,
        replacement_charge: float = 0.0,
    ) -> RMATicket:
        errors: dict[str, str] = {}
        if not customer.strip():
            errors["customer"] = "Customer name required"
        if not mobile.strip():
            errors["mobile"] = "Mobile number required"
        if not part_name.strip():
            errors["part_name"] = "Part name required"
        if int(warranty_years) < 0:
            errors["warranty_years"] = "Warranty cannot be negative"
        if float(replacement_charge) < 0:
            errors["replacement_charge"] = "Charge cannot be negative"
        if errors:
            raise ValidationError("RMA ticket is incomplete.", errors)

        today = self._clock()
        ticket = RMATicket(
            id=next_sequence_id(
                RMA_ID_PREFIX, today.year, self._repo.list_ids(f"{RMA_ID_PREFIX}-")
            ),
            customer=customer.strip(),
            mobile=mobile.strip(),
            part_name=part_name.strip(),
            part_serial=part_serial,
            issue=issue,
            purchase_date=as_date(purchase_date).isoformat(),
            warranty_years=int(warranty_years),
            service_center=service_center,
            replacement_charge=float(replacement_charge),
            inbox_date=today.isoformat(),
            updated_at=now_iso(),
        )
        _record(ticket, "RMA Created - Part received from customer")
        self._repo.add(ticket)
        self._logger.info("Created RMA %s for %s", ticket.id, ticket.part_name)
        return ticket

    def warranty(self, ticket: RMATicket) -> Warranty:
        return compute_warranty(
            ticket.purchase_date, ticket.warranty_years, self._clock()
        )

    def advance(self, ticket_id: str) -> RMATicket:
        ticket = self._lifecycle.advance(self.get(ticket_id), self._clock())
        self._logger.info("RMA %s moved to %s", ticket.id, ticket.status.value)
        return self._save(ticket)

    def request_delivery_otp(self, ticket_id: str) -> str:
        ticket = self.get(ticket_id)
        code = self._lifecycle.generate_otp(ticket)
        self._save(ticket)
        self._logger.info("Issued delivery OTP for RMA %s", ticket.id)
        return code

    def confirm_delivery(self, ticket_id: str, entered: str) -> RMATicket:
        ticket = self.get(ticket_id)
        try:
            self._lifecycle.verify_otp(ticket, entered, self._clock())
        except OtpMismatchError as exc:
            self._logger.warning("Delivery OTP rejected for RMA %s: %s", ticket_id, exc)
            raise
        self._logger.info("RMA %s delivered", ticket.id)
        return self._save(ticket)

    def status_counts(self) -> dict[RMAStatus, int]:
        return status_counts(self._repo.list_all())

    def _save(self, ticket: RMATicket) -> RMATicket:
        ticket.updated_at = now_iso()
        if not self._repo.save(ticket):
            raise NotFoundError(f"RMA {ticket.id} not found.")
        return ticket
