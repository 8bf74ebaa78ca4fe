"""Generic CRUD actions ("blueprints") for registered models.

Every registered entity type gets default REST handlers without any
per-model code. Handlers live in the mutable ``Blueprints.actions``
mapping and the router looks them up on each request, so integrations
can wrap an action after the router has been built.
"""

import json
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog
from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.background import BackgroundTasks

from activity_logger.core.activity.store import SQLAlchemyRecordStore
from activity_logger.core.errors import BadRequestError, NotFoundError, UnknownEntityError


log = structlog.get_logger()

BlueprintAction = Callable[[Request, str], Awaitable[Response]]

DEFAULT_FIND_LIMIT = 100


@dataclass(frozen=True)
class FinalizedResponse:
    """Final state of a response as seen by response-finalized callbacks.

    Attributes:
        status_code: HTTP status code sent to the client
        body: Decoded JSON body, or None if the body was not JSON
        headers: Response headers (lower-cased names)
    """

    status_code: int
    body: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @classmethod
    def from_response(cls, response: Response) -> "FinalizedResponse":
        body: Any = None
        raw = getattr(response, "body", None)
        if raw and "json" in (response.media_type or ""):
            try:
                body = json.loads(raw)
            except ValueError:
                body = None
        return cls(
            status_code=response.status_code,
            body=body,
            headers=dict(response.headers),
        )


def on_response_finalized(
    response: Response,
    callback: Callable[[FinalizedResponse], Awaitable[None]],
) -> None:
    """Run ``callback`` once the response has been sent.

    The callback runs as a Starlette background task, after any
    background work already attached to the response. The client never
    waits on it.

    Args:
        response: Response about to be returned to the client
        callback: Coroutine function receiving the finalized response
    """

    async def notify() -> None:
        await callback(FinalizedResponse.from_response(response))

    tasks = BackgroundTasks()
    if response.background is not None:
        tasks.tasks.append(response.background)
    tasks.add_task(notify)
    response.background = tasks


async def _json_object(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise BadRequestError("Request body must be valid JSON") from None
    if not isinstance(body, dict):
        raise BadRequestError("Request body must be a JSON object")
    return body


def _int_param(request: Request, name: str, default: int) -> int:
    raw = request.query_params.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise BadRequestError(f"Query parameter '{name}' must be an integer") from None
    if value < 0:
        raise BadRequestError(f"Query parameter '{name}' must not be negative")
    return value


class Blueprints:
    """Default REST handlers for a set of registered entity types.

    Attributes:
        store: Record storage
        entity_types: Entity types served by the generic routes
        actions: Action name -> handler, looked up on every request
    """

    def __init__(self, store: SQLAlchemyRecordStore, entity_types: Iterable[str]) -> None:
        self.store = store
        self.entity_types = frozenset(entity_types)
        self.actions: dict[str, BlueprintAction] = {
            "find": self.find,
            "find_one": self.find_one,
            "create": self.create,
            "update": self.update,
            "destroy": self.destroy,
        }

    # ============================================================
    # Actions
    # ============================================================

    async def find(self, request: Request, entity_type: str) -> Response:
        """List records, paginated with ``limit``/``skip`` query params."""
        records = await self.store.query(
            entity_type,
            limit=_int_param(request, "limit", DEFAULT_FIND_LIMIT),
            skip=_int_param(request, "skip", 0),
            sort=[("id", "asc")],
        )
        return JSONResponse(records)

    async def find_one(self, request: Request, entity_type: str) -> Response:
        """Get a single record."""
        record_id = request.path_params["record_id"]
        record = await self.store.find_by_id(entity_type, record_id)
        if record is None:
            raise NotFoundError(resource=entity_type, resource_id=record_id)
        return JSONResponse(record)

    async def create(self, request: Request, entity_type: str) -> Response:
        """Create a record; responds 201 with a Location header."""
        fields = await _json_object(request)
        record = await self.store.insert(entity_type, fields)
        location = f"{request.url.path.rstrip('/')}/{record['id']}"
        return JSONResponse(
            record,
            status_code=status.HTTP_201_CREATED,
            headers={"Location": location},
        )

    async def update(self, request: Request, entity_type: str) -> Response:
        """Update a record's fields."""
        record_id = request.path_params["record_id"]
        fields = await _json_object(request)
        record = await self.store.update(entity_type, record_id, fields)
        if record is None:
            raise NotFoundError(resource=entity_type, resource_id=record_id)
        return JSONResponse(record)

    async def destroy(self, request: Request, entity_type: str) -> Response:
        """Delete a record; responds with the deleted record."""
        record_id = request.path_params["record_id"]
        record = await self.store.delete(entity_type, record_id)
        if record is None:
            raise NotFoundError(resource=entity_type, resource_id=record_id)
        return JSONResponse(record)

    # ============================================================
    # Routing
    # ============================================================

    async def dispatch(self, name: str, request: Request, entity_type: str) -> Response:
        """Run the current handler for an action.

        Raises:
            UnknownEntityError: If the entity type is not served here
        """
        if entity_type not in self.entity_types:
            raise UnknownEntityError(entity_type)
        return await self.actions[name](request, entity_type)

    def build_router(self) -> APIRouter:
        """Build the generic routes.

        Mount it after any explicit routes so that ``/{model}`` does not
        shadow them.
        """
        router = APIRouter(tags=["blueprints"])

        @router.get("/{model}", summary="List records")
        async def find_records(request: Request, model: str) -> Response:
            return await self.dispatch("find", request, model)

        @router.post("/{model}", summary="Create a record")
        async def create_record(request: Request, model: str) -> Response:
            return await self.dispatch("create", request, model)

        @router.get("/{model}/{record_id}", summary="Get a record")
        async def find_record(
            request: Request, model: str, record_id: str  # noqa: ARG001
        ) -> Response:
            return await self.dispatch("find_one", request, model)

        @router.api_route(
            "/{model}/{record_id}",
            methods=["PATCH", "PUT"],
            summary="Update a record",
        )
        async def update_record(
            request: Request, model: str, record_id: str  # noqa: ARG001
        ) -> Response:
            return await self.dispatch("update", request, model)

        @router.delete("/{model}/{record_id}", summary="Delete a record")
        async def destroy_record(
            request: Request, model: str, record_id: str  # noqa: ARG001
        ) -> Response:
            return await self.dispatch("destroy", request, model)

        return router
