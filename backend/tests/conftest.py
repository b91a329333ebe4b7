from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hr_leave.db import get_session
from hr_leave.main import app
from hr_leave.models import SQLModel
from hr_leave.models.enums import AccrualFrequency, EmploymentStatus, Role
from hr_leave.schemas.assignment import AssignmentResponse, CreateAssignmentRequest
from hr_leave.schemas.auth import AuthorizationContext
from hr_leave.schemas.balance import CreateAdjustmentRequest
from hr_leave.schemas.leave_type import CreateLeaveTypeRequest, LeaveTypeResponse
from hr_leave.schemas.policy import CreatePolicyRequest, PolicyResponse
from hr_leave.services import accrual as accrual_service
from hr_leave.services import assignment as assignment_service
from hr_leave.services import leave_type as leave_type_service
from hr_leave.services import policy as policy_service
from hr_leave.services.clock import FixedClock, SystemClock, set_clock
from hr_leave.services.duration import set_day_counter
from hr_leave.services.employee import EmployeeInfo, InMemoryEmployeeDirectory, set_employee_directory
from hr_leave.services.notification import InMemoryNotificationSink, set_notification_sink
from hr_leave.services.role import InMemoryRoleAuthority, set_role_authority
from hr_leave.services.validation import december_annual_leave_rule, set_blackout_rules

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine

# Monday 3 March 2025, 09:00 UTC.
TODAY = date(2025, 3, 3)
NOW = datetime(2025, 3, 3, 9, 0, tzinfo=UTC)

ADMIN_ID = uuid.uuid4()


def headers_for(user_id: uuid.UUID) -> dict[str, str]:
    """Request headers identifying the caller."""
    return {"X-User-Id": str(user_id)}


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """A fresh in-memory database per test, shared by every connection."""
    _engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a session configured like the application's."""
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def clock() -> Iterator[FixedClock]:
    """Pin "today" for every test."""
    fixed = FixedClock(NOW)
    set_clock(fixed)
    yield fixed
    set_clock(SystemClock())


@pytest.fixture(autouse=True)
def directory() -> Iterator[InMemoryEmployeeDirectory]:
    """A fresh employee directory for every test."""
    fresh = InMemoryEmployeeDirectory()
    set_employee_directory(fresh)
    yield fresh
    set_employee_directory(InMemoryEmployeeDirectory())


@pytest.fixture(autouse=True)
def roles() -> Iterator[InMemoryRoleAuthority]:
    """A fresh role authority with the admin seeded."""
    fresh = InMemoryRoleAuthority()
    fresh.seed(ADMIN_ID, Role.HR_ADMIN)
    set_role_authority(fresh)
    yield fresh
    set_role_authority(InMemoryRoleAuthority())


@pytest.fixture(autouse=True)
def notifications() -> Iterator[InMemoryNotificationSink]:
    """Capture notifications instead of delivering them."""
    sink = InMemoryNotificationSink()
    set_notification_sink(sink)
    yield sink
    set_notification_sink(InMemoryNotificationSink())


@pytest.fixture(autouse=True)
def _reset_day_rules() -> Iterator[None]:
    """Calendar-day counting and the default blackout rule unless a test says otherwise."""
    set_day_counter(None)
    set_blackout_rules([december_annual_leave_rule])
    yield
    set_day_counter(None)
    set_blackout_rules([december_annual_leave_rule])


# ---------------------------------------------------------------------------
# Data builders
# ---------------------------------------------------------------------------


class LeaveWorld:
    """Builds employees, leave types, policies and balances through the services."""

    def __init__(
        self,
        session: AsyncSession,
        directory: InMemoryEmployeeDirectory,
        roles: InMemoryRoleAuthority,
    ) -> None:
        self.session = session
        self.directory = directory
        self.roles = roles
        self.admin = AuthorizationContext(user_id=ADMIN_ID, role=Role.HR_ADMIN)

    def employee(
        self,
        first_name: str = "Test",
        last_name: str = "Employee",
        *,
        hire_date: date = date(2020, 1, 6),
        manager_id: uuid.UUID | None = None,
        status: EmploymentStatus = EmploymentStatus.ACTIVE,
        role: Role | None = Role.EMPLOYEE,
    ) -> EmployeeInfo:
        info = EmployeeInfo(
            id=uuid.uuid4(),
            first_name=first_name,
            last_name=last_name,
            email=f"{first_name.lower()}.{last_name.lower()}@example.com",
            hire_date=hire_date,
            employment_status=status,
            manager_id=manager_id,
        )
        self.directory.seed(info)
        if role is not None:
            self.roles.seed(info.id, role)
        return info

    def auth(self, user_id: uuid.UUID, role: Role = Role.EMPLOYEE) -> AuthorizationContext:
        return AuthorizationContext(user_id=user_id, role=role)

    async def leave_type(self, name: str = "Vacation", **overrides: Any) -> LeaveTypeResponse:
        payload = CreateLeaveTypeRequest(name=name, **overrides)
        return await leave_type_service.create_leave_type(self.session, self.admin, payload)

    async def policy(
        self,
        leave_type_id: uuid.UUID,
        name: str | None = None,
        *,
        annual_allocation: Decimal = Decimal(21),
        accrual_rate: Decimal = Decimal("1.75"),
        accrual_frequency: AccrualFrequency = AccrualFrequency.MONTHLY,
        **overrides: Any,
    ) -> PolicyResponse:
        payload = CreatePolicyRequest(
            name=name or f"Policy {uuid.uuid4().hex[:8]}",
            leave_type_id=leave_type_id,
            annual_allocation=annual_allocation,
            accrual_rate=accrual_rate,
            accrual_frequency=accrual_frequency,
            **overrides,
        )
        return await policy_service.create_policy(self.session, self.admin, payload)

    async def assign(
        self,
        employee_id: uuid.UUID,
        policy_id: uuid.UUID,
        effective_date: date = date(2025, 1, 1),
        **overrides: Any,
    ) -> AssignmentResponse:
        payload = CreateAssignmentRequest(
            employee_id=employee_id, policy_id=policy_id, effective_date=effective_date, **overrides
        )
        return await assignment_service.assign_policy(self.session, self.admin, payload)

    async def grant(
        self,
        employee_id: uuid.UUID,
        leave_type_id: uuid.UUID,
        days: Decimal | int,
        effective_date: date = date(2025, 1, 1),
    ) -> None:
        payload = CreateAdjustmentRequest(
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            amount=Decimal(days),
            reason="Opening balance",
            effective_date=effective_date,
        )
        await accrual_service.apply_manual_adjustment(self.session, self.admin, payload)


@pytest.fixture
def world(
    db_session: AsyncSession,
    directory: InMemoryEmployeeDirectory,
    roles: InMemoryRoleAuthority,
) -> LeaveWorld:
    return LeaveWorld(db_session, directory, roles)
