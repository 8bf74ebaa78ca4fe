"""Activity service: the entry point for code outside the CRUD routes.

Custom mutation flows record activities through ``log``; readers query
the trail through ``get_latest_activities``.
"""

from collections.abc import Mapping
from typing import Any

import structlog
from starlette.requests import Request

from activity_logger.config import ActivityLoggerConfig
from activity_logger.core.activity.attribution import (
    Attribution,
    RequestContext,
    UserAttributionResolver,
)
from activity_logger.core.activity.changes import calculate_changes
from activity_logger.core.activity.recorder import ActivityRecorder, Skip
from activity_logger.core.activity.schemas import ActivityEntry
from activity_logger.core.activity.store import Record, RecordStore
from activity_logger.core.constants import (
    ACTIONS,
    ACTIVITY_ENTITY,
    DEFAULT_ACTIVITY_LIMIT,
    SORT_DIRECTIONS,
)
from activity_logger.core.errors import InvalidActivityError


log = structlog.get_logger()


class ActivityService:
    """Service for recording and reading activity entries.

    Attributes:
        recorder: Write path for activity entries
        store: Record storage
        resolver: User attribution resolver
        config: Tracking configuration
    """

    def __init__(
        self,
        recorder: ActivityRecorder,
        store: RecordStore,
        resolver: UserAttributionResolver,
        config: ActivityLoggerConfig,
    ) -> None:
        self.recorder = recorder
        self.store = store
        self.resolver = resolver
        self.config = config

    async def log(
        self,
        action: str,
        entity_type: str,
        record_id: Any,
        changes: Mapping[str, Any] | None = None,
        actor_id: Any = None,
    ) -> ActivityEntry | Skip | None:
        """Record an activity directly.

        Changes are dropped when data tracking is disabled.

        Args:
            action: One of create, update, delete
            entity_type: Kind of record affected
            record_id: ID of the affected record
            changes: Diff payload
            actor_id: ID of the user who performed the action

        Returns:
            The created entry, ``Skip.NOT_TRACKED``, or None if the write failed

        Raises:
            InvalidActivityError: If action, entity_type or record_id is invalid

        Example:
            await service.log(
                "update",
                "invoice",
                invoice.id,
                service.calculate_changes(before, after),
                actor_id=service.get_user_id(request).user_id,
            )
        """
        if not self.config.track_data:
            changes = {}
        return await self.recorder.record(action, entity_type, record_id, changes, actor_id)

    def get_user_id(self, request: Request | RequestContext) -> Attribution:
        """Resolve the acting user for a request."""
        if isinstance(request, RequestContext):
            return self.resolver.resolve(request)
        return self.resolver.resolve(RequestContext.from_request(request))

    def calculate_changes(
        self,
        original: Mapping[str, Any] | None,
        updated: Mapping[str, Any] | None,
        exclude_fields: set[str] | frozenset[str] | None = None,
    ) -> dict[str, Any]:
        """Diff two snapshots, excluding the configured fields as well."""
        exclude = self.config.exclude_fields | frozenset(exclude_fields or ())
        return calculate_changes(original, updated, exclude)

    async def get_latest_activities(
        self,
        *,
        entity_type: str | None = None,
        record_id: str | None = None,
        actor_id: str | None = None,
        action: str | None = None,
        limit: int = DEFAULT_ACTIVITY_LIMIT,
        skip: int = 0,
        sort: str = "desc",
        populate: bool = True,
    ) -> list[ActivityEntry]:
        """Retrieve activity entries, newest first by default.

        Args:
            entity_type: Filter by entity type
            record_id: Filter by record ID
            actor_id: Filter by acting user
            action: Filter by action (create, update, delete)
            limit: Maximum number of entries
            skip: Number of entries to skip
            sort: Creation-time sort direction (asc or desc)
            populate: Attach the actor's record to each entry

        Returns:
            Matching entries

        Raises:
            InvalidActivityError: If a filter or paging value is invalid
        """
        errors: list[dict[str, str]] = []
        if action is not None and action not in ACTIONS:
            errors.append({"field": "action", "message": "Must be one of: create, delete, update"})
        if sort not in SORT_DIRECTIONS:
            errors.append({"field": "sort", "message": "Must be asc or desc"})
        if limit < 1:
            errors.append({"field": "limit", "message": "Must be at least 1"})
        if skip < 0:
            errors.append({"field": "skip", "message": "Must not be negative"})
        if errors:
            raise InvalidActivityError("Invalid activity query", errors=errors)

        criteria: dict[str, Any] = {}
        if entity_type:
            criteria["entity_type"] = entity_type
        if record_id:
            criteria["record_id"] = str(record_id)
        if actor_id:
            criteria["actor_id"] = str(actor_id)
        if action:
            criteria["action"] = action

        records = await self.store.query(
            ACTIVITY_ENTITY,
            criteria,
            limit=limit,
            skip=skip,
            sort=[("created_at", sort), ("id", sort)],
        )
        entries = [ActivityEntry.model_validate(record) for record in records]

        if populate and entries:
            actors = await self._load_actors({e.actor_id for e in entries if e.actor_id})
            for entry in entries:
                if entry.actor_id:
                    entry.actor = actors.get(entry.actor_id)

        return entries

    async def _load_actors(self, actor_ids: set[str]) -> dict[str, Record]:
        """Look up actor records by ID; missing actors are left out."""
        if not actor_ids or not self.store.has_model(self.config.user_model):
            return {}
        try:
            users = await self.store.query(self.config.user_model, {"id": sorted(actor_ids)})
        except Exception as e:
            log.warning(
                "activity_actor_lookup_failed",
                user_model=self.config.user_model,
                error=str(e),
            )
            return {}
        return {str(user["id"]): user for user in users}
