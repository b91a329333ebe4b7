# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel


class BulkFailure(BaseModel):
    """One failed item of a bulk operation."""

    id: uuid.UUID
    error: str
