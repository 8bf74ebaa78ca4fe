"""Fixtures for activity unit tests."""

from collections.abc import Mapping, Sequence
from itertools import count
from typing import Any

import pytest

from activity_logger.config import ActivityLoggerConfig
from activity_logger.core.activity.attribution import UserAttributionResolver
from activity_logger.core.activity.policy import TrackingPolicy
from activity_logger.core.activity.recorder import ActivityRecorder
from activity_logger.core.constants import ACTIVITY_ENTITY


class InMemoryRecordStore:
    """Dict-backed RecordStore; IDs are assigned as strings."""

    def __init__(self) -> None:
        self.tables: dict[str, dict[str, dict[str, Any]]] = {}
        self._ids = count(1)

    def has_model(self, entity_type: str) -> bool:
        return entity_type in self.tables or entity_type == ACTIVITY_ENTITY

    def seed(self, entity_type: str, record: dict[str, Any]) -> dict[str, Any]:
        self.tables.setdefault(entity_type, {})[str(record["id"])] = dict(record)
        return record

    def activities(self) -> list[dict[str, Any]]:
        return list(self.tables.get(ACTIVITY_ENTITY, {}).values())

    async def find_by_id(self, entity_type: str, record_id: Any) -> dict[str, Any] | None:
        record = self.tables.get(entity_type, {}).get(str(record_id))
        return None if record is None else dict(record)

    async def insert(self, entity_type: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        record = {**fields, "id": next(self._ids)}
        self.tables.setdefault(entity_type, {})[str(record["id"])] = record
        return dict(record)

    async def update(
        self, entity_type: str, record_id: Any, fields: Mapping[str, Any]
    ) -> dict[str, Any] | None:
        record = self.tables.get(entity_type, {}).get(str(record_id))
        if record is None:
            return None
        record.update(fields)
        return dict(record)

    async def delete(self, entity_type: str, record_id: Any) -> dict[str, Any] | None:
        return self.tables.get(entity_type, {}).pop(str(record_id), None)

    async def query(
        self,
        entity_type: str,
        criteria: Mapping[str, Any] | None = None,
        *,
        limit: int | None = None,
        skip: int = 0,
        sort: Sequence[tuple[str, str]] | None = None,
    ) -> list[dict[str, Any]]:
        records = list(self.tables.get(entity_type, {}).values())
        for key, value in (criteria or {}).items():
            if isinstance(value, list | tuple | set | frozenset):
                wanted = {str(v) for v in value}
                records = [r for r in records if str(r.get(key)) in wanted]
            else:
                records = [r for r in records if r.get(key) == value]
        for key, direction in reversed(list(sort or ())):
            records.sort(key=lambda r: r.get(key) or 0, reverse=direction == "desc")
        records = records[skip:]
        if limit is not None:
            records = records[:limit]
        return [dict(r) for r in records]


@pytest.fixture
def memory_store() -> InMemoryRecordStore:
    """Empty in-memory record store."""
    return InMemoryRecordStore()


@pytest.fixture
def config() -> ActivityLoggerConfig:
    """Configuration tracking the ``user`` entity type."""
    return ActivityLoggerConfig(models=frozenset({"user"}))


@pytest.fixture
def policy(config: ActivityLoggerConfig) -> TrackingPolicy:
    return TrackingPolicy(config.models)


@pytest.fixture
def resolver() -> UserAttributionResolver:
    return UserAttributionResolver()


@pytest.fixture
def recorder(memory_store: InMemoryRecordStore, policy: TrackingPolicy) -> ActivityRecorder:
    return ActivityRecorder(memory_store, policy)
