"""Automatic activity capture around the generic CRUD mutations.

The interceptor wraps the ``create``, ``update`` and ``destroy`` blueprint
actions. For each tracked request it:

1. snapshots the request and, for update/destroy, the current record
2. delegates to the original action, passing its response through
3. on a 2xx response, records the activity in a background task that runs
   after the response has been sent

Nothing in steps 1 or 3 can fail or alter the response; errors are
logged and the request continues with less audit detail.
"""

import functools
from collections.abc import MutableMapping
from dataclasses import dataclass
from typing import Any

import structlog
from fastapi import Request, Response

from activity_logger.config import ActivityLoggerConfig
from activity_logger.core.activity.attribution import RequestContext, UserAttributionResolver
from activity_logger.core.activity.changes import calculate_changes, has_changes
from activity_logger.core.activity.policy import TrackingPolicy
from activity_logger.core.activity.recorder import ActivityRecorder
from activity_logger.core.activity.store import Record, RecordStore
from activity_logger.core.blueprints.actions import (
    BlueprintAction,
    Blueprints,
    FinalizedResponse,
    on_response_finalized,
)
from activity_logger.core.constants import (
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_UPDATE,
    MUTATION_ACTIONS,
)


log = structlog.get_logger()

# Blueprint action name -> activity action
ACTIVITY_ACTIONS = {
    "create": ACTION_CREATE,
    "update": ACTION_UPDATE,
    "destroy": ACTION_DELETE,
}


@dataclass
class CaptureContext:
    """Audit state for one in-flight request.

    Created before the mutation runs and handed explicitly to the
    response-finalized callback; never stored on the request.

    Attributes:
        action: Activity action (create, update, delete)
        entity_type: Entity type being mutated
        request: Snapshot of the request
        record_id: Record ID from the route (update/delete)
        original_record: Record state before the mutation (update/delete)
    """

    action: str
    entity_type: str
    request: RequestContext
    record_id: str | None = None
    original_record: Record | None = None


def _body_id(body: Any) -> str | None:
    if isinstance(body, dict) and body.get("id") not in (None, ""):
        return str(body["id"])
    return None


def _created_record_id(response: FinalizedResponse) -> str | None:
    """ID of a created record, from the body or the Location header."""
    record_id = _body_id(response.body)
    if record_id:
        return record_id

    location = response.headers.get("location")
    if location:
        last = location.rstrip("/").rsplit("/", 1)[-1]
        if last:
            return last
    return None


class MutationInterceptor:
    """Wrap generic CRUD mutations with activity capture.

    Attributes:
        store: Record storage used for pre- and post-mutation lookups
        recorder: Write path for activity entries
        resolver: User attribution resolver
        policy: Tracking policy deciding which requests are captured
        config: Tracking configuration
    """

    def __init__(
        self,
        store: RecordStore,
        recorder: ActivityRecorder,
        resolver: UserAttributionResolver,
        policy: TrackingPolicy,
        config: ActivityLoggerConfig,
    ) -> None:
        self.store = store
        self.recorder = recorder
        self.resolver = resolver
        self.policy = policy
        self.config = config
        self.installed = False

    # ============================================================
    # Installation
    # ============================================================

    def install(self, blueprints: Blueprints | None) -> bool:
        """Wrap the create, update and destroy actions.

        Either all three actions are wrapped or none are.

        Args:
            blueprints: The generic CRUD layer, if the host has one

        Returns:
            True if the actions are intercepted
        """
        if self.installed:
            return True

        actions = getattr(blueprints, "actions", None)
        if not isinstance(actions, MutableMapping):
            log.warning(
                "activity_blueprints_unavailable",
                reason="generic CRUD layer not found",
            )
            return False

        missing = [name for name in MUTATION_ACTIONS if not callable(actions.get(name))]
        if missing:
            log.warning(
                "activity_blueprints_unavailable",
                reason="missing actions",
                missing=missing,
            )
            return False

        wrapped = {name: self.wrap(name, actions[name]) for name in MUTATION_ACTIONS}
        actions.update(wrapped)
        self.installed = True

        log.info("activity_blueprints_intercepted", actions=list(MUTATION_ACTIONS))
        return True

    def wrap(self, name: str, handler: BlueprintAction) -> BlueprintAction:
        """Return ``handler`` augmented with activity capture."""
        action = ACTIVITY_ACTIONS[name]

        @functools.wraps(handler)
        async def intercepted(request: Request, entity_type: str) -> Response:
            capture = await self.begin(action, request, entity_type)
            response = await handler(request, entity_type)
            if capture is not None:
                self.observe(capture, response)
            return response

        return intercepted

    # ============================================================
    # Request path
    # ============================================================

    async def begin(
        self,
        action: str,
        request: Request,
        entity_type: str,
    ) -> CaptureContext | None:
        """Start capturing a request.

        Returns:
            The capture context, or None if the request is not audited
        """
        try:
            if not self.policy.should_track(entity_type):
                return None
            ctx = RequestContext.from_request(request, entity_type)
            capture = CaptureContext(
                action=action,
                entity_type=entity_type,
                request=ctx,
                record_id=ctx.record_id,
            )
        except Exception:
            log.exception("activity_capture_failed", stage="begin", entity_type=entity_type)
            return None

        if action in (ACTION_UPDATE, ACTION_DELETE) and capture.record_id is not None:
            capture.original_record = await self._prefetch(capture)

        return capture

    async def _prefetch(self, capture: CaptureContext) -> Record | None:
        try:
            original = await self.store.find_by_id(capture.entity_type, capture.record_id)
        except Exception as e:
            log.warning(
                "activity_prefetch_failed",
                entity_type=capture.entity_type,
                record_id=capture.record_id,
                error=str(e),
            )
            return None

        if original is None:
            log.debug(
                "activity_prefetch_missing",
                entity_type=capture.entity_type,
                record_id=capture.record_id,
            )
        return original

    def observe(self, capture: CaptureContext, response: Response) -> None:
        """Schedule recording for after the response is sent."""
        try:
            on_response_finalized(response, functools.partial(self.finalize, capture))
        except Exception:
            log.exception(
                "activity_capture_failed",
                stage="observe",
                entity_type=capture.entity_type,
            )

    # ============================================================
    # Background recording
    # ============================================================

    async def finalize(self, capture: CaptureContext, response: FinalizedResponse) -> None:
        """Record the activity for a finished request.

        Runs after the response has been sent. Never raises.
        """
        if not response.is_success:
            log.debug(
                "activity_skipped_unsuccessful",
                entity_type=capture.entity_type,
                action=capture.action,
                status_code=response.status_code,
            )
            return

        try:
            actor_id = self.resolver.resolve(capture.request).user_id
            if capture.action == ACTION_CREATE:
                await self._record_create(capture, response, actor_id)
            elif capture.action == ACTION_UPDATE:
                await self._record_update(capture, response, actor_id)
            else:
                await self._record_delete(capture, response, actor_id)
        except Exception:
            log.exception(
                "activity_capture_failed",
                stage="record",
                entity_type=capture.entity_type,
                action=capture.action,
            )

    async def _record_create(
        self,
        capture: CaptureContext,
        response: FinalizedResponse,
        actor_id: str | None,
    ) -> None:
        record_id = _created_record_id(response)
        if record_id is None:
            log.warning("activity_create_unidentified", entity_type=capture.entity_type)
            return

        await self.recorder.record(ACTION_CREATE, capture.entity_type, record_id, {}, actor_id)

    async def _record_update(
        self,
        capture: CaptureContext,
        response: FinalizedResponse,
        actor_id: str | None,
    ) -> None:
        record_id = capture.record_id or _body_id(response.body)
        if record_id is None:
            log.warning("activity_update_unidentified", entity_type=capture.entity_type)
            return

        if not self.config.track_data:
            await self.recorder.record(ACTION_UPDATE, capture.entity_type, record_id, {}, actor_id)
            return

        if capture.original_record is None:
            log.warning(
                "activity_update_without_original",
                entity_type=capture.entity_type,
                record_id=record_id,
            )
            return

        updated = await self._fetch_updated(capture, record_id, response)
        if updated is None:
            log.warning(
                "activity_updated_record_missing",
                entity_type=capture.entity_type,
                record_id=record_id,
            )
            return

        changes = calculate_changes(
            capture.original_record,
            updated,
            self.config.exclude_fields,
        )
        if not has_changes(changes):
            log.debug(
                "activity_update_unchanged",
                entity_type=capture.entity_type,
                record_id=record_id,
            )
            return

        await self.recorder.record(
            ACTION_UPDATE, capture.entity_type, record_id, changes, actor_id
        )

    async def _fetch_updated(
        self,
        capture: CaptureContext,
        record_id: str,
        response: FinalizedResponse,
    ) -> Record | None:
        """Current record state, falling back to the response body."""
        try:
            updated = await self.store.find_by_id(capture.entity_type, record_id)
        except Exception as e:
            log.warning(
                "activity_refetch_failed",
                entity_type=capture.entity_type,
                record_id=record_id,
                error=str(e),
            )
            updated = None

        if updated is None and isinstance(response.body, dict):
            return response.body
        return updated

    async def _record_delete(
        self,
        capture: CaptureContext,
        response: FinalizedResponse,
        actor_id: str | None,
    ) -> None:
        original = capture.original_record
        record_id = capture.record_id or _body_id(original) or _body_id(response.body)
        if record_id is None:
            log.warning("activity_delete_unidentified", entity_type=capture.entity_type)
            return

        changes: dict[str, Any] = {}
        if self.config.track_data:
            if original is None:
                log.warning(
                    "activity_delete_without_original",
                    entity_type=capture.entity_type,
                    record_id=record_id,
                )
                return
            changes = {"deleted": original}

        await self.recorder.record(
            ACTION_DELETE, capture.entity_type, record_id, changes, actor_id
        )
