"""Repository for AMC contract persistence."""

from __future__ import annotations

from typing import List, Optional

from servicedesk.domain.models import AMCContract
from servicedesk.repositories.base import RecordRepository
from servicedesk.repositories.mappers import amc_from_row, amc_to_record


class AMCRepo(RecordRepository):
    """Stores contracts; status is derived on read and never persisted."""

    table = "amc_contracts"

    def add(self, contract: AMCContract) -> AMCContract:
        self._insert(amc_to_record(contract))
        return contract

    def save(self, contract: AMCContract) -> bool:
        return self._update(amc_to_record(contract))

    def get_by_id(self, contract_id: str) -> Optional[AMCContract]:
        row = self._fetch_one(contract_id)
        return amc_from_row(row) if row else None

    def list_all(self) -> List[AMCContract]:
        return [amc_from_row(row) for row in self._fetch_all(order_by="id")]
