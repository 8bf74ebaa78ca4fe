"""Activity API routes."""

from fastapi import APIRouter, Query

from activity_logger.api.dependencies import ActivitySvc
from activity_logger.core.activity.schemas import ActionName, ActivityEntry, SortDirection
from activity_logger.core.constants import DEFAULT_ACTIVITY_LIMIT, MAX_ACTIVITY_LIMIT


router = APIRouter(prefix="/activities", tags=["activities"])


@router.get(
    "",
    response_model=list[ActivityEntry],
    summary="List activities",
    description="Activity entries filtered by entity, record, actor and action.",
)
async def list_activities(
    service: ActivitySvc,
    entity_type: str | None = Query(None, description="Filter by entity type"),
    record_id: str | None = Query(None, description="Filter by record ID"),
    actor_id: str | None = Query(None, description="Filter by acting user"),
    action: ActionName | None = Query(None, description="Filter by action"),
    limit: int = Query(
        DEFAULT_ACTIVITY_LIMIT, ge=1, le=MAX_ACTIVITY_LIMIT, description="Maximum entries"
    ),
    skip: int = Query(0, ge=0, description="Entries to skip"),
    sort: SortDirection = Query("desc", description="Creation-time sort direction"),
    populate: bool = Query(True, description="Include the actor's record"),
) -> list[ActivityEntry]:
    """List activity entries."""
    return await service.get_latest_activities(
        entity_type=entity_type,
        record_id=record_id,
        actor_id=actor_id,
        action=action,
        limit=limit,
        skip=skip,
        sort=sort,
        populate=populate,
    )
