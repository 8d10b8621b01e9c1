from __future__ import annotations

import logging
import re
from typing import Protocol

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shifteaze.exceptions import EmployeeDirectoryUnavailable
from shifteaze.models import WorkerRecord

logger = logging.getLogger(__name__)

_NAME_PATTERN = re.compile(r"^[a-zA-Z\s]+$")


class Employee(BaseModel):
    id: str
    first_name: str
    last_name: str
    position: str
    photo_url: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class EmployeeDirectory(Protocol):
    def list_employees(self) -> list[Employee]: ...


class StaticEmployeeDirectory:
    def __init__(self, employees: list[Employee]):
        self.employees = list(employees)

    def list_employees(self) -> list[Employee]:
        return list(self.employees)


class SqlEmployeeDirectory:
    """Roster of the signed-in manager; ``manager_id`` is None when nobody is signed in."""

    def __init__(self, db: Session, manager_id: int | None):
        self.db = db
        self.manager_id = manager_id

    def list_employees(self) -> list[Employee]:
        if self.manager_id is None:
            raise EmployeeDirectoryUnavailable("User not authenticated.")
        try:
            records = self.db.scalars(
                select(WorkerRecord)
                .where(WorkerRecord.manager_id == self.manager_id)
                .order_by(WorkerRecord.sort_order, WorkerRecord.id)
            ).all()
        except SQLAlchemyError as exc:
            raise EmployeeDirectoryUnavailable("Failed to fetch employees. Check your permissions.") from exc
        return [serialize_worker(record) for record in records]


def serialize_worker(record: WorkerRecord) -> Employee:
    return Employee(
        id=record.worker_id,
        first_name=record.first_name,
        last_name=record.last_name,
        position=record.position,
        photo_url=record.photo_url,
    )


def job_titles(employees: list[Employee]) -> list[str]:
    seen: dict[str, None] = {}
    for employee in employees:
        if employee.position:
            seen.setdefault(employee.position, None)
    return list(seen)


def has_valid_name(employee: Employee) -> bool:
    return bool(_NAME_PATTERN.match(employee.first_name)) and bool(_NAME_PATTERN.match(employee.last_name))


def selectable_employees(employees: list[Employee], job_title: str | None) -> list[Employee]:
    if not job_title:
        return []
    return [employee for employee in employees if employee.position == job_title and has_valid_name(employee)]
