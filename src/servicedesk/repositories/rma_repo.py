"""Repository for RMA ticket persistence."""

from __future__ import annotations

from typing import List, Optional

from servicedesk.domain.models import RMATicket
from servicedesk.repositories.base import RecordRepository
from servicedesk.repositories.mappers import rma_from_row, rma_to_record


class RMARepo(RecordRepository):
    """Stores tickets; OTP codes are kept out of this table."""

    table = "rma_tickets"

    def add(self, ticket: RMATicket) -> RMATicket:
        self._insert(rma_to_record(ticket))
        return ticket

    def save(self, ticket: RMATicket) -> bool:
        return self._update(rma_to_record(ticket))

    def get_by_id(self, ticket_id: str) -> Optional[RMATicket]:
        row = self._fetch_one(ticket_id)
        return rma_from_row(row) if row else None

    def list_all(self) -> List[RMATicket]:
        return [rma_from_row(row) for row in self._fetch_all(order_by="id DESC")]
