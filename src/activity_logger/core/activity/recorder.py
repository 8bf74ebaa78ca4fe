"""Append-only write path for activity entries."""

import enum
from collections.abc import Mapping
from typing import Any

import structlog

from activity_logger.core.activity.policy import TrackingPolicy
from activity_logger.core.activity.schemas import ActivityEntry
from activity_logger.core.activity.store import RecordStore
from activity_logger.core.constants import ACTIONS, ACTIVITY_ENTITY
from activity_logger.core.errors import InvalidActivityError


log = structlog.get_logger()


class Skip(enum.Enum):
    """Non-error outcome of a record call that performed no write."""

    NOT_TRACKED = "not_tracked"


def _validate(action: Any, entity_type: Any, record_id: Any) -> None:
    errors: list[dict[str, str]] = []
    if action not in ACTIONS:
        errors.append(
            {
                "field": "action",
                "message": f"Must be one of: {', '.join(sorted(ACTIONS))}",
            }
        )
    if not entity_type or not isinstance(entity_type, str):
        errors.append({"field": "entity_type", "message": "Entity type is required"})
    if record_id is None or str(record_id) == "":
        errors.append({"field": "record_id", "message": "Record ID is required"})
    if errors:
        raise InvalidActivityError("Invalid activity", errors=errors)


class ActivityRecorder:
    """Persist activity entries for tracked entity types.

    Contract errors are raised to the caller. Storage errors are logged
    and swallowed: an audit write must never break the mutation it
    describes.
    """

    def __init__(self, store: RecordStore, policy: TrackingPolicy) -> None:
        self.store = store
        self.policy = policy

    async def record(
        self,
        action: str,
        entity_type: str,
        record_id: Any,
        changes: Mapping[str, Any] | None = None,
        actor_id: Any = None,
    ) -> ActivityEntry | Skip | None:
        """Record one activity.

        Args:
            action: One of create, update, delete
            entity_type: Kind of record affected
            record_id: ID of the affected record (stored as a string)
            changes: Diff payload
            actor_id: ID of the user who performed the action

        Returns:
            The created entry, ``Skip.NOT_TRACKED`` if the entity type is
            not tracked, or None if the write failed

        Raises:
            InvalidActivityError: If action, entity_type or record_id is invalid
        """
        _validate(action, entity_type, record_id)
        record_id = str(record_id)
        actor_id = None if actor_id in (None, "") else str(actor_id)

        log.debug(
            "activity_log_attempt",
            action=action,
            entity_type=entity_type,
            record_id=record_id,
            actor_id=actor_id,
        )

        if actor_id is None:
            log.warning(
                "activity_missing_actor",
                action=action,
                entity_type=entity_type,
                record_id=record_id,
            )

        if not self.policy.should_track(entity_type):
            log.debug("activity_entity_not_tracked", entity_type=entity_type)
            return Skip.NOT_TRACKED

        try:
            created = await self.store.insert(
                ACTIVITY_ENTITY,
                {
                    "action": action,
                    "entity_type": entity_type,
                    "record_id": record_id,
                    "changes": dict(changes or {}),
                    "actor_id": actor_id,
                },
            )
            entry = ActivityEntry.model_validate(created)
        except Exception as e:
            log.error(
                "activity_log_failed",
                action=action,
                entity_type=entity_type,
                record_id=record_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        log.info(
            "activity_log_created",
            activity_id=entry.id,
            action=action,
            entity_type=entity_type,
            record_id=record_id,
            actor_id=actor_id,
        )
        return entry
