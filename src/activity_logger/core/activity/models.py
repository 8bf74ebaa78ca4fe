"""Activity log database model.

Stores one append-only entry per audited create, update or delete.
"""

from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from activity_logger.core.constants import (
    MAX_ACTION_LENGTH,
    MAX_ACTOR_ID_LENGTH,
    MAX_ENTITY_TYPE_LENGTH,
    MAX_RECORD_ID_LENGTH,
)
from activity_logger.core.database.base import Base, IntegerIDMixin, TimestampMixin


class ActivityLog(Base, IntegerIDMixin, TimestampMixin):
    """Activity log entry for a single record mutation.

    Attributes:
        action: Type of action (create, update, delete)
        entity_type: Kind of record affected (model/table identity)
        record_id: ID of the affected record, always stored as a string
        changes: Diff payload ({before, after} or {deleted})
        actor_id: The user who performed the action (nullable)
        created_at: When the entry was stored
        updated_at: Storage-managed timestamp, never changed by this system
    """

    __tablename__ = "activity_logs"

    action: Mapped[str] = mapped_column(
        String(MAX_ACTION_LENGTH),
        nullable=False,
        index=True,
    )
    entity_type: Mapped[str] = mapped_column(
        String(MAX_ENTITY_TYPE_LENGTH),
        nullable=False,
        index=True,
    )
    record_id: Mapped[str] = mapped_column(
        String(MAX_RECORD_ID_LENGTH),
        nullable=False,
        index=True,
    )
    changes: Mapped[dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
        default=dict,
    )
    actor_id: Mapped[str | None] = mapped_column(
        String(MAX_ACTOR_ID_LENGTH),
        nullable=True,
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<ActivityLog(id={self.id}, action={self.action}, "
            f"entity_type={self.entity_type}, record_id={self.record_id})>"
        )
