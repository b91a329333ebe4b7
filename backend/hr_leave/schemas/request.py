# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from hr_leave.models.enums import RequestStatus
from hr_leave.schemas.common import BulkFailure

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class SubmitLeaveRequestPayload(BaseModel):
    """Request body for submitting a leave request."""

    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    start_date: date
    end_date: date
    reason: str | None = Field(default=None, max_length=1000)


class UpdateLeaveRequestPayload(BaseModel):
    """Change the dates or reason of a pending request."""

    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = Field(default=None, max_length=1000)


class ValidateLeaveRequestPayload(BaseModel):
    """Dry-run validation of a prospective request."""

    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    start_date: date
    end_date: date
    exclude_request_id: uuid.UUID | None = None


class TransitionPayload(BaseModel):
    """Optional reason attached to a workflow transition."""

    reason: str | None = Field(default=None, max_length=1000)


WorkflowAction = Literal["approve", "deny", "withdraw", "cancel", "resubmit"]


class BulkTransitionPayload(BaseModel):
    """Apply one workflow action to many requests."""

    request_ids: list[uuid.UUID] = Field(min_length=1)
    action: WorkflowAction
    reason: str | None = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def _validate_reason(self) -> Self:
        if self.action in ("deny", "cancel") and not (self.reason and self.reason.strip()):
            msg = f"reason is required to {self.action} requests"
            raise ValueError(msg)
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class RequestResponse(BaseModel):
    """Response schema for a single leave request."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    start_date: date
    end_date: date
    total_days: Decimal
    reason: str | None
    status: RequestStatus
    approved_by: uuid.UUID | None
    approved_at: datetime | None
    denial_reason: str | None
    cancellation_reason: str | None
    created_by: uuid.UUID
    updated_by: uuid.UUID | None
    created_at: datetime
    updated_at: datetime | None


class RequestListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[RequestResponse]
    total: int


class RequestActionResponse(BaseModel):
    """A request after a create/update/transition plus non-blocking warnings."""

    request: RequestResponse
    warnings: list[str] = []


class ValidationResultResponse(BaseModel):
    """Outcome of running every validation check against a prospective request."""

    is_valid: bool
    errors: list[str]
    warnings: list[str]
    total_days: Decimal


class AvailableActionsResponse(BaseModel):
    """Target statuses the caller may move the request to."""

    request_id: uuid.UUID
    status: RequestStatus
    actions: list[RequestStatus]


class BulkTransitionResponse(BaseModel):
    """Per-request outcome of a bulk workflow action."""

    successful: list[uuid.UUID]
    failed: list[BulkFailure]
