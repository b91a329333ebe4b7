# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from hr_leave.models.enums import EmploymentStatus


class EmployeeInfo(BaseModel):
    """Employee metadata from the employee directory."""

    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    hire_date: date
    employment_status: EmploymentStatus = EmploymentStatus.ACTIVE
    manager_id: uuid.UUID | None = None
    department_id: uuid.UUID | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_active(self) -> bool:
        return self.employment_status == EmploymentStatus.ACTIVE


@runtime_checkable
class EmployeeDirectory(Protocol):
    """Interface for the employee directory."""

    async def get_employee(self, employee_id: uuid.UUID) -> EmployeeInfo | None:
        """Fetch employee metadata. Returns None if not found."""
        ...

    async def list_employees(self, status: EmploymentStatus | None = None) -> list[EmployeeInfo]:
        """List employees, optionally filtered by employment status."""
        ...

    async def list_team_members(self, manager_id: uuid.UUID) -> list[EmployeeInfo]:
        """List employees reporting to the given manager."""
        ...


class InMemoryEmployeeDirectory:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._employees: dict[uuid.UUID, EmployeeInfo] = {}

    def seed(self, employee: EmployeeInfo) -> None:
        """Seed an employee for testing."""
        self._employees[employee.id] = employee

    async def get_employee(self, employee_id: uuid.UUID) -> EmployeeInfo | None:
        """Fetch employee metadata. Returns None if not found."""
        return self._employees.get(employee_id)

    async def list_employees(self, status: EmploymentStatus | None = None) -> list[EmployeeInfo]:
        """List employees, optionally filtered by employment status."""
        if status is None:
            return list(self._employees.values())
        return [e for e in self._employees.values() if e.employment_status == status]

    async def list_team_members(self, manager_id: uuid.UUID) -> list[EmployeeInfo]:
        """List employees reporting to the given manager."""
        return [e for e in self._employees.values() if e.manager_id == manager_id]


_employee_directory: EmployeeDirectory = InMemoryEmployeeDirectory()


def get_employee_directory() -> EmployeeDirectory:
    """FastAPI dependency for the employee directory."""
    return _employee_directory


def set_employee_directory(directory: EmployeeDirectory) -> None:
    """Override the directory (for testing or production wiring)."""
    global _employee_directory
    _employee_directory = directory
