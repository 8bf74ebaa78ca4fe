"""Record storage used by the activity layer and the generic CRUD actions.

Records cross this boundary as plain dicts of JSON-compatible values, so
snapshots taken before and after a mutation compare cleanly and can be
stored as-is in an activity entry.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Protocol

from sqlalchemy import inspect, select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from activity_logger.core.activity.serialization import serialize_value
from activity_logger.core.database.base import Base
from activity_logger.core.errors import UnknownEntityError, ValidationError


Record = dict[str, Any]

_INVALID_ID = object()


class RecordStore(Protocol):
    """Storage capability consumed by the activity layer."""

    def has_model(self, entity_type: str) -> bool: ...

    async def find_by_id(self, entity_type: str, record_id: Any) -> Record | None: ...

    async def insert(self, entity_type: str, fields: Mapping[str, Any]) -> Record: ...

    async def update(
        self, entity_type: str, record_id: Any, fields: Mapping[str, Any]
    ) -> Record | None: ...

    async def delete(self, entity_type: str, record_id: Any) -> Record | None: ...

    async def query(
        self,
        entity_type: str,
        criteria: Mapping[str, Any] | None = None,
        *,
        limit: int | None = None,
        skip: int = 0,
        sort: Sequence[tuple[str, str]] | None = None,
    ) -> list[Record]: ...


def to_record(obj: Base) -> Record:
    """Snapshot a model instance's column values as JSON-compatible data."""
    mapper = inspect(type(obj))
    return {
        attr.key: serialize_value(getattr(obj, attr.key))
        for attr in mapper.column_attrs
    }


class SQLAlchemyRecordStore:
    """RecordStore backed by SQLAlchemy async sessions.

    Each operation runs in its own session and commits on success, so a
    failed audit write never shares a transaction with the mutation it
    describes.

    Attributes:
        session_factory: Factory producing async sessions
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        models: Mapping[str, type[Base]] | None = None,
    ) -> None:
        self.session_factory = session_factory
        self._models: dict[str, type[Base]] = dict(models or {})

    # ============================================================
    # Model registry
    # ============================================================

    def register(self, entity_type: str, model: type[Base]) -> None:
        """Register a model under an entity type identifier."""
        self._models[entity_type] = model

    def has_model(self, entity_type: str) -> bool:
        return entity_type in self._models

    @property
    def entity_types(self) -> list[str]:
        return sorted(self._models)

    def model_for(self, entity_type: str) -> type[Base]:
        """Get the model registered for an entity type.

        Raises:
            UnknownEntityError: If no model is registered
        """
        try:
            return self._models[entity_type]
        except KeyError:
            raise UnknownEntityError(entity_type) from None

    # ============================================================
    # Helpers
    # ============================================================

    @staticmethod
    def _coerce_id(model: type[Base], record_id: Any) -> Any:
        pk = inspect(model).primary_key[0]
        try:
            python_type = pk.type.python_type
        except NotImplementedError:
            return record_id
        if isinstance(record_id, python_type):
            return record_id
        try:
            return python_type(record_id)
        except (TypeError, ValueError):
            return _INVALID_ID

    @staticmethod
    def _writable_values(model: type[Base], fields: Mapping[str, Any]) -> dict[str, Any]:
        """Keep only columns the caller may set.

        Primary keys and storage-assigned columns (server defaults) are
        dropped; unknown keys are ignored.
        """
        values: dict[str, Any] = {}
        for attr in inspect(model).column_attrs:
            column = attr.columns[0]
            if column.primary_key or column.server_default is not None:
                continue
            if attr.key in fields:
                values[attr.key] = fields[attr.key]
        return values

    @staticmethod
    def _column(model: type[Base], key: str) -> Any:
        if key not in inspect(model).column_attrs:
            raise ValidationError(
                f"Unknown field: {key}",
                errors=[{"field": key, "message": "Unknown field"}],
            )
        return getattr(model, key)

    # ============================================================
    # Operations
    # ============================================================

    async def find_by_id(self, entity_type: str, record_id: Any) -> Record | None:
        """Get a record by primary key.

        Returns:
            The record if found, None otherwise (including unparseable IDs)
        """
        model = self.model_for(entity_type)
        pk = self._coerce_id(model, record_id)
        if pk is _INVALID_ID:
            return None

        async with self.session_factory() as session:
            obj = await session.get(model, pk)
            return None if obj is None else to_record(obj)

    async def insert(self, entity_type: str, fields: Mapping[str, Any]) -> Record:
        """Create a record.

        Returns:
            The stored record including storage-assigned ID and timestamps
        """
        model = self.model_for(entity_type)
        obj = model(**self._writable_values(model, fields))

        async with self.session_factory() as session:
            session.add(obj)
            await session.flush()
            await session.refresh(obj)
            record = to_record(obj)
            await session.commit()
        return record

    async def update(
        self, entity_type: str, record_id: Any, fields: Mapping[str, Any]
    ) -> Record | None:
        """Update a record's writable fields.

        Returns:
            The updated record, or None if it does not exist
        """
        model = self.model_for(entity_type)
        pk = self._coerce_id(model, record_id)
        if pk is _INVALID_ID:
            return None

        async with self.session_factory() as session:
            obj = await session.get(model, pk)
            if obj is None:
                return None
            for key, value in self._writable_values(model, fields).items():
                setattr(obj, key, value)
            await session.flush()
            await session.refresh(obj)
            record = to_record(obj)
            await session.commit()
        return record

    async def delete(self, entity_type: str, record_id: Any) -> Record | None:
        """Delete a record.

        Returns:
            The deleted record, or None if it does not exist
        """
        model = self.model_for(entity_type)
        pk = self._coerce_id(model, record_id)
        if pk is _INVALID_ID:
            return None

        async with self.session_factory() as session:
            obj = await session.get(model, pk)
            if obj is None:
                return None
            record = to_record(obj)
            await session.delete(obj)
            await session.commit()
        return record

    async def query(
        self,
        entity_type: str,
        criteria: Mapping[str, Any] | None = None,
        *,
        limit: int | None = None,
        skip: int = 0,
        sort: Sequence[tuple[str, str]] | None = None,
    ) -> list[Record]:
        """Find records matching equality criteria.

        List/tuple/set criteria values match any of their members.

        Args:
            entity_type: Entity type to query
            criteria: Field -> value (or collection of values) filters
            limit: Maximum number of records
            skip: Number of records to skip
            sort: (field, "asc" | "desc") pairs applied in order

        Returns:
            Matching records
        """
        model = self.model_for(entity_type)
        pk_key = inspect(model).primary_key[0].key
        stmt = select(model)

        for key, value in (criteria or {}).items():
            column = self._column(model, key)
            if isinstance(value, list | tuple | set | frozenset):
                values: Iterable[Any] = value
                if key == pk_key:
                    values = [
                        v for v in (self._coerce_id(model, v) for v in value)
                        if v is not _INVALID_ID
                    ]
                stmt = stmt.where(column.in_(list(values)))
            else:
                stmt = stmt.where(column == value)

        for key, direction in sort or ():
            column = self._column(model, key)
            stmt = stmt.order_by(column.desc() if direction == "desc" else column.asc())

        if skip:
            stmt = stmt.offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)

        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [to_record(obj) for obj in result.scalars().all()]

    async def ping(self) -> None:
        """Run a trivial query to check connectivity."""
        async with self.session_factory() as session:
            await session.execute(text("SELECT 1"))
