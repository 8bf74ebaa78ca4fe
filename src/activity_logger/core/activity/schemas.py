"""Pydantic schemas for activity entries."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


ActionName = Literal["create", "update", "delete"]
SortDirection = Literal["asc", "desc"]


class ActivityEntry(BaseModel):
    """A persisted activity entry.

    ``actor`` is only filled in when the read asked for actor details and
    the actor record could be found.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    action: ActionName
    entity_type: str
    record_id: str
    changes: dict[str, Any] = Field(default_factory=dict)
    actor_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    actor: dict[str, Any] | None = None
