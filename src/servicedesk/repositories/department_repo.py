"""Repository for department persistence."""

from __future__ import annotations

from typing import List, Optional

from servicedesk.domain.models import Department
from servicedesk.repositories.base import RecordRepository
from servicedesk.repositories.mappers import department_from_row


class DepartmentRepo(RecordRepository):
    """CRUD operations for departments and their base charge rates."""

    table = "departments"

    def create(
        self,
        code: str,
        name: str,
        base_charge_insite: float = 0.0,
        base_charge_outsite: float = 0.0,
        base_charge_remote: float = 0.0,
        is_active: bool = True,
    ) -> Department:
        department = Department(
            id=None,
            code=code,
            name=name,
            base_charge_insite=base_charge_insite,
            base_charge_outsite=base_charge_outsite,
            base_charge_remote=base_charge_remote,
            is_active=is_active,
        )
        department.id = self._insert(self._to_record(department))
        return department

    def update(self, department: Department) -> Optional[Department]:
        if not self._update(self._to_record(department)):
            return None
        return self.get_by_id(department.id or 0)

    def get_by_id(self, department_id: int) -> Optional[Department]:
        row = self._fetch_one(department_id)
        return department_from_row(row) if row else None

    def list_all(self, active_only: bool = False) -> List[Department]:
        where = "is_active = 1" if active_only else ""
        rows = self._fetch_all(where, order_by="name")
        return [department_from_row(row) for row in rows]

    @staticmethod
    def _to_record(department: Department) -> dict[str, object]:
        return {
            "id": department.id,
            "code": department.code,
            "name": department.name,
            "base_charge_insite": department.base_charge_insite,
            "base_charge_outsite": department.base_charge_outsite,
            "base_charge_remote": department.base_charge_remote,
            "is_active": int(department.is_active),
        }
